# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from .parametrization import Box as Box
from .optimization import SlimeMold as SlimeMold
from .optimization import Cell as Cell
from .optimization import callbacks as callbacks


__all__ = ["SlimeMold", "Cell", "Box", "callbacks", "errors", "typing"]


__version__ = "0.1.0"
