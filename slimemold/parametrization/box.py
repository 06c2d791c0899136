# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import slimemold.common.typing as tp
from slimemold.common import errors


class BoundChecker:
    """Simple object for checking whether an array lies
    between provided bounds.

    Parameter
    ---------
    lower: array
        minimum value
    upper: array
        maximum value
    """

    def __init__(self, lower: np.ndarray, upper: np.ndarray) -> None:
        self.bounds = (lower, upper)

    def __call__(self, value: np.ndarray) -> bool:
        """Checks whether the array lies within the bounds

        Parameter
        ---------
        value: np.ndarray
            array to check

        Returns
        -------
        bool
            True iff the array lies within the bounds
        """
        for k, bound in enumerate(self.bounds):
            if np.any((value > bound) if k else (value < bound)):
                return False
        return True


def _as_bound_array(value: tp.BoundValue, name: str) -> np.ndarray:
    try:
        array = np.array(value, dtype=float)
    except (TypeError, ValueError) as e:
        raise errors.SlimeTypeError(f"{name} bound must be a float or a sequence of floats (got {value!r})") from e
    if array.ndim > 1:
        raise errors.SlimeValueError(f"{name} bound must be one dimensional (got shape {array.shape})")
    if not np.all(np.isfinite(array)):
        raise errors.SlimeValueError(f"{name} bound must be finite (got {value!r})")
    return array.reshape(-1)


class Box:
    """Axis-aligned search box, in which the positions of the cells live.

    Positions are 1-D float arrays of size :code:`dimension`, so that the
    elementwise arithmetic of the algorithm is numpy arithmetic. Scalar bounds
    create a 1-dimensional box which hands floats (and not arrays) to the
    objective function.

    Parameters
    ----------
    lower: float or sequence of floats
        lower bound, for each dimension
    upper: float or sequence of floats
        upper bound, for each dimension (same size as lower)
    """

    def __init__(self, lower: tp.BoundValue, upper: tp.BoundValue) -> None:
        self.is_scalar = bool(np.ndim(lower) == 0 and np.ndim(upper) == 0)
        self.lower = _as_bound_array(lower, "Lower")
        self.upper = _as_bound_array(upper, "Upper")
        if self.lower.shape != self.upper.shape:
            raise errors.SlimeValueError(
                f"Lower and upper bounds must have the same dimension (got {self.lower.size} and {self.upper.size})"
            )
        if not self.lower.size:
            raise errors.SlimeValueError("No variable to optimize in this box.")
        if (self.lower > self.upper).any():
            raise errors.SlimeValueError(
                f"Lower bounds {self.lower.tolist()} should be smaller than upper bounds {self.upper.tolist()}"
            )
        for array in (self.lower, self.upper):
            array.flags.writeable = False
        self._checker = BoundChecker(self.lower, self.upper)

    @property
    def dimension(self) -> int:
        """int: number of coordinates of a position"""
        return self.lower.size

    @property
    def span(self) -> np.ndarray:
        """np.ndarray: size of the box along each dimension"""
        return self.upper - self.lower

    def sample(self, rng: np.random.RandomState) -> np.ndarray:
        """Samples a position uniformly in the box (independently for each dimension)"""
        return rng.uniform(self.lower, self.upper)

    def clip(self, data: np.ndarray) -> np.ndarray:
        """Returns a copy of data clipped into the box (data already inside is unchanged)"""
        return np.clip(data, self.lower, self.upper)

    def contains(self, data: tp.ArrayLike) -> bool:
        return self._checker(np.asarray(data, dtype=float))

    def to_value(self, data: np.ndarray) -> tp.PositionValue:
        """Converts internal data to what the objective function receives:
        a float for scalar boxes, otherwise a copy of the array
        """
        if self.is_scalar:
            return float(data[0])
        return np.array(data, copy=True)

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Box):
            return False
        return (
            self.is_scalar == other.is_scalar
            and np.array_equal(self.lower, other.lower)
            and np.array_equal(self.upper, other.upper)
        )

    def __repr__(self) -> str:
        if self.is_scalar:
            return f"Box[{self.lower[0]}, {self.upper[0]}]"
        return f"Box{{({self.dimension},)}}[{self.lower.tolist()}, {self.upper.tolist()}]"
