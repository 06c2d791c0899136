# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import Optimizer as Optimizer
from .sma import SlimeMold as SlimeMold
from .population import Cell as Cell
from .population import Population as Population
from .population import BestTracker as BestTracker
