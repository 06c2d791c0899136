# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Classical test functions for global optimization, all meant to be minimized.
Each function is registered with the box it is usually studied in (lower and upper bounds)
and the list of its global minima (optima).
"""

from math import pi
import numpy as np
import slimemold.common.typing as tp
from slimemold.common.decorators import Registry


registry: Registry[tp.Callable[[np.ndarray], float]] = Registry()


def _as_array(x: tp.Union[float, tp.ArrayLike]) -> np.ndarray:
    return np.atleast_1d(np.asarray(x, dtype=float))


@registry.register_with_info(lower=[-5.12, -5.12], upper=[5.12, 5.12], optima=[[0.0, 0.0]])
def sphere(x: np.ndarray) -> float:
    """The most classical continuous optimization testbed.

    If you do not solve that one then you have a bug."""
    x = _as_array(x)
    return float(x.dot(x))


@registry.register_with_info(
    lower=[-5.12, -5.12, -5.12], upper=[5.12, 5.12, 5.12], optima=[[0.0, 0.0, 0.0]]
)
def rastrigin(x: np.ndarray) -> float:
    """Classical multimodal function, with a regular grid of local minima."""
    x = _as_array(x)
    cosi = float(np.sum(np.cos(2 * pi * x)))
    return float(10 * (len(x) - cosi) + x.dot(x))


@registry.register_with_info(lower=[-15.0, -3.0], upper=[-5.0, 3.0], optima=[[-10.0, 1.0]])
def bukin6(x: np.ndarray) -> float:
    """Bukin function N.6, with a narrow curved valley of local minima."""
    x1, x2 = _as_array(x)[:2]
    return float(100 * np.sqrt(abs(x2 - 0.01 * x1 ** 2)) + 0.01 * abs(x1 + 10))


@registry.register_with_info(
    lower=[-10.0, -10.0],
    upper=[10.0, 10.0],
    optima=[[1.3491, -1.3491], [1.3491, 1.3491], [-1.3491, 1.3491], [-1.3491, -1.3491]],
)
def cross_in_tray(x: np.ndarray) -> float:
    """Cross-in-tray function, with 4 symmetric global minima."""
    x1, x2 = _as_array(x)[:2]
    t1 = np.sin(x1) * np.sin(x2)
    t2 = np.exp(abs(100 - np.sqrt(x1 ** 2 + x2 ** 2) / pi))
    return float(-0.0001 * (abs(t1 * t2) + 1) ** 0.1)


@registry.register_with_info(lower=[-5.12, -5.12], upper=[5.12, 5.12], optima=[[0.0, 0.0]])
def drop_wave(x: np.ndarray) -> float:
    """Drop-wave function: concentric rings of local minima around the global one."""
    x1, x2 = _as_array(x)[:2]
    squared_norm = x1 ** 2 + x2 ** 2
    return float(-(1 + np.cos(12 * np.sqrt(squared_norm))) / (0.5 * squared_norm + 2))


@registry.register_with_info(lower=[-512.0, -512.0], upper=[512.0, 512.0], optima=[[512.0, 404.2319]])
def eggholder(x: np.ndarray) -> float:
    """Eggholder function, very rugged, with its global minimum on the border of the box."""
    x1, x2 = _as_array(x)[:2]
    t1 = -(x2 + 47) * np.sin(np.sqrt(abs(x2 + x1 / 2 + 47)))
    t2 = -x1 * np.sin(np.sqrt(abs(x1 - (x2 + 47))))
    return float(t1 + t2)


@registry.register_with_info(lower=[0.5], upper=[2.5], optima=[[0.5486]])
def gramacy_lee(x: np.ndarray) -> float:
    """Gramacy & Lee (2012) one dimensional function."""
    x1 = float(_as_array(x)[0])
    return float(np.sin(10 * pi * x1) / (2 * x1) + (x1 - 1) ** 4)
