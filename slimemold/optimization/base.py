# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pickle
import logging
import warnings
from numbers import Real
from pathlib import Path
import numpy as np
import slimemold.common.typing as tp
from slimemold.common import errors
from slimemold.parametrization import Box
from .population import Cell


logger = logging.getLogger(__name__)
X = tp.TypeVar("X", bound="Optimizer")
_OptimCallBack = tp.Callable[["Optimizer"], None]
DIRECTIONS = ("minimize", "maximize")


def load(cls: tp.Type[X], filepath: tp.PathLike) -> X:
    """Loads a pickle file and checks that it contains an optimizer of the given class."""
    filepath = Path(filepath)
    with filepath.open("rb") as f:
        opt = pickle.load(f)
    assert isinstance(opt, cls), f"You should only load {cls} with this method (found {type(opt)})"
    return opt


def _check_loss(loss: tp.Any) -> float:
    """Converts an objective output to a float, making sure it can be ranked"""
    if isinstance(loss, (np.ndarray, list, tuple)) and np.size(loss) == 1:
        loss = np.asarray(loss).ravel()[0]
    # using "float" along "Real" because mypy does not understand "Real" for now Issue #3186
    if isinstance(loss, (bool, np.bool_)) or not isinstance(loss, (Real, float)):
        raise errors.SlimeTypeError(
            f"The objective function must return a float, but it returned: {loss} (type: {type(loss)})."
        )
    loss = float(loss)
    if not np.isfinite(loss):
        raise errors.BadLossError(f"The objective function returned a non-finite value: {loss}")
    return loss


class Optimizer:  # pylint: disable=too-many-instance-attributes
    """Iterative optimizer framework, for algorithms working generation by generation
    in a bounded box:

    - :code:`step()` runs one iteration (evaluations included) and returns whether it did.
    - :code:`run()` calls :code:`step()` until the iteration limit is reached.
    - :code:`recommend()` provides the best cell observed so far.

    This class is abstract, :code:`_internal_step` and :code:`_internal_recommend`
    must be overridden.

    Parameters
    ----------
    objective: callable
        function to optimize, taking a position (a float for scalar bounds, a 1-D array otherwise)
        and returning a float
    lower: float or sequence of floats
        lower bound of the search box
    upper: float or sequence of floats
        upper bound of the search box (same dimension as lower)
    max_iterations: int
        iteration index at which the optimization stops. Steps are indexed from 1,
        so :code:`max_iterations - 1` steps are performed at most.
    direction: str
        "maximize" (higher objective values are better) or "minimize"
    random_state: int, np.random.RandomState or None
        seed or random state the optimizer draws all its random numbers from
    """

    def __init__(
        self,
        objective: tp.ObjectiveLike,
        lower: tp.BoundValue,
        upper: tp.BoundValue,
        max_iterations: int,
        direction: tp.Direction = "maximize",
        random_state: tp.RandomStateLike = None,
    ) -> None:
        if not callable(objective):
            raise errors.SlimeTypeError(f"The objective function must be callable (got {objective!r})")
        if direction not in DIRECTIONS:
            raise errors.SlimeValueError(f"Direction must be one of {DIRECTIONS} (got {direction!r})")
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, (int, np.integer)):
            raise errors.SlimeTypeError(f"max_iterations must be an integer (got {max_iterations!r})")
        if max_iterations < 1:
            raise errors.SlimeValueError(f"max_iterations must be at least 1 (got {max_iterations})")
        if max_iterations == 1:
            warnings.warn(
                "max_iterations=1 leaves no iteration to run (steps are indexed from 1)",
                errors.InefficientSettingsWarning,
            )
        self.box = Box(lower, upper)
        self.max_iterations = int(max_iterations)
        self.direction = direction
        self.name = self.__class__.__name__  # printed name in repr
        self._objective = objective
        self._rng = self._make_random_state(random_state)
        # instance state
        self._iteration = 1
        self._num_evaluations = 0
        self._callbacks: tp.Dict[str, tp.List[_OptimCallBack]] = {}

    @staticmethod
    def _make_random_state(random_state: tp.RandomStateLike) -> np.random.RandomState:
        if isinstance(random_state, np.random.RandomState):
            return random_state
        if random_state is None:
            random_state = np.random.randint(2 ** 32, dtype=np.uint32)
        return np.random.RandomState(random_state)

    @property
    def random_state(self) -> np.random.RandomState:
        """np.random.RandomState: the random state the optimizer pulls all its random numbers from.
        It can be seeded through the :code:`random_state` argument of the constructor.
        """
        return self._rng

    @property
    def dimension(self) -> int:
        """int: Dimension of the search box."""
        return self.box.dimension

    @property
    def lower(self) -> np.ndarray:
        return self.box.lower

    @property
    def upper(self) -> np.ndarray:
        return self.box.upper

    @property
    def iteration(self) -> int:
        """int: Index of the next iteration to run (starts at 1)."""
        return self._iteration

    @property
    def num_iterations(self) -> int:
        """int: Number of completed iterations."""
        return self._iteration - 1

    @property
    def num_evaluations(self) -> int:
        """int: Number of calls to the objective function."""
        return self._num_evaluations

    def dump(self, filepath: tp.PathLike) -> None:
        """Pickles the optimizer into a file."""
        filepath = Path(filepath)
        with filepath.open("wb") as f:
            pickle.dump(self, f)

    @classmethod
    def load(cls: tp.Type[X], filepath: tp.PathLike) -> X:
        """Loads a pickle and checks that the class is correct."""
        return load(cls, filepath)

    def __repr__(self) -> str:
        return f"Instance of {self.name}(box={self.box}, max_iterations={self.max_iterations}, direction={self.direction})"

    def register_callback(self, name: str, callback: _OptimCallBack) -> None:
        """Add a callback method called either at the start of each step (before any state change)
        or at the end of each step, with the optimizer as argument.
        This can be useful for custom logging or early stopping.

        Parameters
        ----------
        name: str
            name of the hook to register the callback for (either :code:`start` or :code:`step`)
        callback: callable
            a callable taking the optimizer as argument
        """
        assert name in ["start", "step"], f'Only "start" and "step" can have callbacks (not {name})'
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    def fitness_from_loss(self, loss: float) -> float:
        """Signed fitness (higher is better) from a raw objective value"""
        return loss if self.direction == "maximize" else -loss

    def loss_from_fitness(self, fitness: float) -> float:
        """Raw objective value from a signed fitness"""
        return fitness if self.direction == "maximize" else -fitness

    def _evaluate(self, data: np.ndarray) -> float:
        """Calls the objective function on a detached copy of the data and
        returns the signed fitness.
        """
        self._num_evaluations += 1
        loss = _check_loss(self._objective(self.box.to_value(data)))
        return self.fitness_from_loss(loss)

    def step(self, iteration: tp.Optional[int] = None) -> bool:
        """Runs one iteration of the algorithm.

        Parameters
        ----------
        iteration: int or None
            1-based index of the iteration, defaults to the internal counter.
            Providing it lets the caller drive the counter; the internal counter then
            restarts from the following index.

        Returns
        -------
        bool
            False if the iteration index has reached max_iterations (in which case nothing was done),
            True otherwise

        Note
        ----
        Errors raised by the objective function (eg: BadLossError) interrupt the iteration where it stands:
        the cells evaluated before the error hold their new fitness and may have entered the record of
        best cells, the others keep their previous fitness, and the population is not sorted.
        The iteration counter does not move, and the optimizer should not be stepped further.
        """
        t = self._iteration if iteration is None else int(iteration)
        if t < 1:
            raise errors.SlimeValueError(f"Iterations are indexed from 1 (got {t})")
        if t >= self.max_iterations:
            return False
        # call callbacks for early stopping etc...
        for callback in self._callbacks.get("start", []):
            callback(self)
        self._internal_step(t)
        self._iteration = t + 1
        # call callbacks for logging etc...
        for callback in self._callbacks.get("step", []):
            callback(self)
        return True

    def run(self) -> Cell:
        """Runs all the remaining iterations (or until an early stopping callback interrupts it)

        Returns
        -------
        Cell
            the best cell observed
        """
        while True:
            try:
                if not self.step():
                    break
            except errors.SlimeEarlyStopping as e:
                logger.info("Stopping %s at iteration %s: %s", self.name, self._iteration, e)
                break
        return self.recommend()

    def recommend(self) -> Cell:
        """Provides a detached copy of the best cell observed so far."""
        cell = self._internal_recommend()
        if cell is None:
            raise errors.SlimeRuntimeError("No recommendation available before the first iteration.")
        return cell.copy()

    @property
    def recommended_value(self) -> tp.PositionValue:
        """Position of the best cell, as provided to the objective function"""
        return self.box.to_value(self.recommend().position)

    @property
    def recommended_loss(self) -> float:
        """Objective function value of the best cell"""
        return self.loss_from_fitness(self.recommend().fitness)

    # Internal methods which must be overridden
    def _internal_step(self, iteration: int) -> None:
        raise NotImplementedError

    def _internal_recommend(self) -> tp.Optional[Cell]:
        raise NotImplementedError
