# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

# base classes


class SlimeError(Exception):
    """Base class for error raised by slimemold"""


class SlimeWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class SlimeEarlyStopping(StopIteration, SlimeError):
    """Stops the optimization loop if raised"""


class SlimeRuntimeError(RuntimeError, SlimeError):
    """Runtime error raised by slimemold"""


class SlimeTypeError(TypeError, SlimeError):
    """Type error raised by slimemold"""


class SlimeValueError(ValueError, SlimeError):
    """Value error raised by slimemold"""


class BadLossError(SlimeValueError):
    """The objective function returned a value which cannot be ranked (NaN or infinite)"""


# warnings


class SlimeRuntimeWarning(RuntimeWarning, SlimeWarning):
    """Runtime warning raised by slimemold"""


class InefficientSettingsWarning(SlimeRuntimeWarning):
    """Optimization settings are not optimal for the optimizer"""
