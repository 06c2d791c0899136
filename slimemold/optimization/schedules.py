# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Curves shaping the slime mold oscillation: rank weights, explore/exploit
threshold and vibration amplitudes over the iterations.
"""

import numpy as np


# atanh(1 - 1e-9) is about 10.7, this keeps the aggressive amplitude finite
ATANH_ARGUMENT_MAX = 1.0 - 1e-9
RANGE_EPSILON = 0.1


def relative_value(fitness: np.ndarray, best: float, worst: float, epsilon: float = RANGE_EPSILON) -> np.ndarray:
    """Logarithmic curve, 0 for the best fitness and up to about 0.3 for the worst one.

    Parameters
    ----------
    fitness: np.ndarray
        fitnesses of the cells (higher is better)
    best: float
        best fitness of the population
    worst: float
        worst fitness of the population
    epsilon: float
        added to the population fitness range to avoid dividing by zero when all fitnesses are equal
    """
    distance_from_best = best - np.asarray(fitness, dtype=float)
    value = np.log10(distance_from_best / (best - worst + epsilon) + 1)
    assert not np.any(np.isnan(value)), f"Invalid relative values {value}"
    return value


def weights(fitness: np.ndarray, rng: np.random.RandomState) -> np.ndarray:
    """Oscillation weights of a population sorted by decreasing fitness.

    Cells from the better half get weights in [1, 1 + l] while the others get
    weights in [1 - l, 1], with l the relative value of the cell.
    One uniform draw is made per cell, in rank order.
    """
    fitness = np.asarray(fitness, dtype=float)
    num = fitness.size
    values = relative_value(fitness, best=fitness[0], worst=fitness[-1])
    r = rng.uniform(0.0, 1.0, size=num)
    better_half = np.arange(num) <= num // 2
    return np.where(better_half, 1 + r * values, 1 - r * values)


def exploitation_threshold(fitness: float, best: float) -> float:
    """Hyperbolic tangent curve from 0 at the best fitness to 1 for very unfit cells.
    A cell explores when a uniform draw exceeds this threshold, and exploits
    (moves around the best known position) otherwise.
    """
    return abs(float(np.tanh(fitness - best)))


def linear_amplitude(iteration: int, max_iterations: int) -> float:
    """Linear curve from 1 (at iteration 0) to 0 at max_iterations"""
    return 1.0 - iteration / max_iterations


def aggressive_amplitude(iteration: int, max_iterations: int) -> float:
    """Inverse hyperbolic tangent curve, decaying from very large values on the first
    iterations to 0 at max_iterations.
    """
    argument = min(1.0 - iteration / max_iterations, ATANH_ARGUMENT_MAX)
    return float(np.arctanh(argument))
