# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import warnings
from numbers import Real
import numpy as np
import slimemold.common.typing as tp
from slimemold.common import errors
from . import base
from . import schedules
from .population import Cell
from .population import Population
from .population import BestTracker


# run with LOGLEVEL=DEBUG for more debug information
logger = logging.getLogger(__name__)


class SlimeMold(base.Optimizer):
    """`Slime Mold Algorithm <https://doi.org/10.1016/j.future.2020.03.055>`_:
    a population of cells oscillates in the search box, pulled toward the best
    position found so far with an amplitude which decays over the iterations.

    Each iteration:

    - contains the cells in the box and evaluates them,
    - records the best cells ever seen, sorts the population and updates the weights,
    - with probability :code:`z`, resamples the whole population uniformly (global randomization),
    - otherwise, each cell either explores (small vibration around its own position) or exploits
      (moves around the best known position, by a weighted difference of two random cells of the
      population). The further a cell's fitness is from the current best, the more likely it is
      to exploit.

    Parameters
    ----------
    objective: callable
        function to optimize, taking a position (a float for scalar bounds, a 1-D array otherwise)
        and returning a float
    lower: float or sequence of floats
        lower bound of the search box
    upper: float or sequence of floats
        upper bound of the search box (same dimension as lower)
    population_size: int
        number of cells. Each iteration performs :code:`population_size` evaluations.
    max_iterations: int
        iteration index at which the optimization stops (:code:`max_iterations - 1` iterations are run)
    direction: str
        "maximize" (higher objective values are better) or "minimize"
    z: float
        probability in [0, 1] of fully randomizing the population at a given iteration.
        This can improve searches in large boxes or with small populations.
    best_count: int
        number of best cells to keep track of
    record_history: bool
        whether to record a copy of the population (with new uids) after each iteration, in :code:`history`
    random_state: int, np.random.RandomState or None
        seed or random state the optimizer draws all its random numbers from

    Note
    ----
    - Reference:
      Li, S., Chen, H., Wang, M., Heidari, A. A., & Mirjalili, S. (2020).
      Slime mould algorithm: A new method for stochastic optimization.
      Future Generation Computer Systems, 111, 300-323.
    - The aggressive amplitude :code:`atanh(1 - t / max_iterations)` is very large on the first
      iterations, its argument is bounded so that it stays finite, and positions are clipped
      back into the box afterwards.
    """

    def __init__(
        self,
        objective: tp.ObjectiveLike,
        lower: tp.BoundValue,
        upper: tp.BoundValue,
        population_size: int = 20,
        max_iterations: int = 100,
        direction: tp.Direction = "maximize",
        z: float = 0.3,
        best_count: int = 3,
        record_history: bool = False,
        random_state: tp.RandomStateLike = None,
    ) -> None:
        super().__init__(
            objective,
            lower,
            upper,
            max_iterations=max_iterations,
            direction=direction,
            random_state=random_state,
        )
        for name, value in [("population_size", population_size), ("best_count", best_count)]:
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise errors.SlimeTypeError(f"{name} must be an integer (got {value!r})")
            if value < 1:
                raise errors.SlimeValueError(f"{name} must be at least 1 (got {value})")
        if isinstance(z, bool) or not isinstance(z, (Real, float)):
            raise errors.SlimeTypeError(f"z must be a float (got {z!r})")
        if not 0 <= z <= 1:
            raise errors.SlimeValueError(f"z must be a probability in [0, 1] (got {z})")
        if population_size == 1:
            warnings.warn(
                "SlimeMold with a single cell can only exploit its own position",
                errors.InefficientSettingsWarning,
            )
        self.population_size = int(population_size)
        self.z = float(z)
        self.best_count = int(best_count)
        self._population = Population.sample(self.population_size, lambda: self.box.sample(self._rng))
        self._best_cells = BestTracker(self.best_count)
        self.history: tp.Optional[tp.List[Cell]] = [] if record_history else None

    def __repr__(self) -> str:
        return (
            f"Instance of {self.name}(box={self.box}, population_size={self.population_size}, "
            f"max_iterations={self.max_iterations}, direction={self.direction}, z={self.z}, "
            f"best_count={self.best_count})"
        )

    @property
    def population(self) -> Population:
        """Population: detached snapshot of the current population"""
        return self._population.copy()

    @property
    def best_cells(self) -> BestTracker:
        """BestTracker: detached snapshot of the best cells ever observed"""
        return self._best_cells.copy()

    @property
    def best(self) -> tp.Optional[Cell]:
        """Cell or None: detached copy of the best cell ever observed, None before the first iteration"""
        return self._best_cells.best.copy() if self._best_cells else None

    def _internal_recommend(self) -> tp.Optional[Cell]:
        return self._best_cells.best if self._best_cells else None

    def _contain(self) -> None:
        for cell in self._population:
            cell.position = self.box.clip(cell.position)

    def _internal_step(self, iteration: int) -> None:
        self._contain()
        self._evaluate_population()
        population = self._population
        population.sort()
        for cell, weight in zip(population, schedules.weights(population.fitnesses, self._rng)):
            cell.weight = float(weight)
        if self._rng.uniform(0.0, 1.0) < self.z:
            logger.debug("Iteration %s: randomizing the whole population", iteration)
            for cell in population:
                cell.position = self.box.sample(self._rng)
        else:
            self._vibrate(iteration)
        self._contain()
        if self.history is not None:
            self.history.extend(population.copy(new_uids=True))

    def _evaluate_population(self) -> None:
        previous = self._best_cells.best.fitness if self._best_cells else None
        for cell in self._population:
            cell.fitness = self._evaluate(cell.position)
            self._best_cells.add(cell)
        best = self._best_cells.best.fitness
        if previous is None or best > previous:
            logger.debug("Best fitness improved to %s after %s evaluations", best, self.num_evaluations)

    def _vibrate(self, iteration: int) -> None:
        population = self._population
        current_best = population.best.fitness
        best_position = self._best_cells.best.position
        linear = schedules.linear_amplitude(iteration, self.max_iterations)
        aggressive = schedules.aggressive_amplitude(iteration, self.max_iterations)
        step_scale = self.box.span / 100.0
        num_explore = 0
        for cell in population:
            if self._rng.uniform(0.0, 1.0) > schedules.exploitation_threshold(cell.fitness, current_best):
                vibration = self._rng.uniform(-linear, linear, size=self.dimension)
                cell.position = cell.position + vibration * step_scale
                num_explore += 1
            else:
                # partners may already have moved during this iteration
                a, b = self._rng.randint(len(population), size=2)
                difference = population[a].position - population[b].position
                vibration = self._rng.uniform(-aggressive, aggressive, size=self.dimension)
                cell.position = best_position + vibration * (cell.weight * difference)
            if np.any(np.isnan(cell.position)):
                raise errors.SlimeRuntimeError(f"Vibration led to an invalid position at iteration {iteration}: {cell}")
        logger.debug(
            "Iteration %s: %s cells explored, %s exploited", iteration, num_explore, len(population) - num_explore
        )
