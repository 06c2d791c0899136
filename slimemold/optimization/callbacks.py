# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import json
import time
import warnings
import datetime
import logging
from pathlib import Path
import numpy as np
import slimemold.common.typing as tp
from slimemold.common import errors
from . import base

global_logger = logging.getLogger(__name__)


class OptimizationPrinter:
    """Printer to register as callback on the "step" hook of an optimizer,
    for printing the best cell regularly.

    Parameters
    ----------
    print_interval_iterations: int
        max number of iterations before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_iterations: int = 1, print_interval_seconds: float = 60.0) -> None:
        assert print_interval_iterations > 0
        assert print_interval_seconds > 0
        self._print_interval_iterations = int(print_interval_iterations)
        self._print_interval_seconds = print_interval_seconds
        self._next_iteration = self._print_interval_iterations
        self._next_time = time.time() + print_interval_seconds

    def __call__(self, optimizer: base.Optimizer) -> None:
        if time.time() >= self._next_time or optimizer.num_iterations >= self._next_iteration:
            self._next_time = time.time() + self._print_interval_seconds
            self._next_iteration = optimizer.num_iterations + self._print_interval_iterations
            x = optimizer.recommend()
            print(f"After {optimizer.num_iterations} iterations, recommendation is {x}")


class OptimizationLogger:
    """Logger to register as callback on the "step" hook of an optimizer,
    for logging the best cell regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_iterations: int
        max number of iterations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_iterations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_iterations > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_iterations = int(log_interval_iterations)
        self._log_interval_seconds = log_interval_seconds
        self._next_iteration = self._log_interval_iterations
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, optimizer: base.Optimizer) -> None:
        if time.time() >= self._next_time or optimizer.num_iterations >= self._next_iteration:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_iteration = optimizer.num_iterations + self._log_interval_iterations
            self._logger.log(
                self._log_level,
                "After %s iterations (%s evaluations), best loss is %s",
                optimizer.num_iterations,
                optimizer.num_evaluations,
                optimizer.recommended_loss,
            )


class HistoryLogger:
    """Logs the state of the optimizer into a file (one json line per iteration)
    during optimization.

    Parameters
    ----------
    filepath: str or pathlib.Path
        the path to dump data to
    append: bool
        whether to append the file (otherwise it replaces it)

    Example
    -------

    .. code-block:: python

        logger = HistoryLogger(filepath)
        optimizer.register_callback("step",  logger)
        optimizer.run()
        list_of_dict_of_data = logger.load()

    Note
    ----
    Arrays are converted to lists
    """

    def __init__(self, filepath: tp.PathLike, append: bool = True) -> None:
        self._session = datetime.datetime.now().strftime("%y-%m-%d %H:%M:%S")
        self._filepath = Path(filepath)
        if self._filepath.exists() and not append:
            self._filepath.unlink()  # missing_ok argument added in python 3.8
        self._filepath.parent.mkdir(exist_ok=True, parents=True)

    def __call__(self, optimizer: base.Optimizer) -> None:
        best = optimizer.recommend()
        data: tp.Dict[str, tp.Any] = {
            "#optimizer": optimizer.name,
            "#session": self._session,
            "#iteration": optimizer.num_iterations,
            "#num-evaluations": optimizer.num_evaluations,
            "#uid": best.uid,
            "#fitness": best.fitness,
            "#loss": optimizer.loss_from_fitness(best.fitness),
            "position": best.position.tolist(),
        }
        population = getattr(optimizer, "population", None)
        if population is not None:
            data["#population-fitnesses"] = population.fitnesses.tolist()
        try:  # avoid bugging as much as possible
            with self._filepath.open("a") as f:
                f.write(json.dumps(data) + "\n")
        except Exception as e:  # pylint: disable=broad-except
            warnings.warn(f"Failing to json data: {e}")

    def load(self) -> tp.List[tp.Dict[str, tp.Any]]:
        """Loads data from the log file"""
        data: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath.exists():
            with self._filepath.open("r") as f:
                for line in f.readlines():
                    data.append(json.loads(line))
        return data


class OptimizerDump:
    """Dumps the optimizer to a pickle file at every call.

    Parameters
    ----------
    filepath: str or Path
        path to the pickle file
    """

    def __init__(self, filepath: tp.PathLike) -> None:
        self._filepath = filepath

    def __call__(self, opt: base.Optimizer) -> None:
        opt.dump(self._filepath)


class ProgressBar:
    """Progress bar to register as callback on the "step" hook of an optimizer"""

    def __init__(self) -> None:
        self._progress_bar: tp.Any = None
        self._current = 0

    def __call__(self, optimizer: base.Optimizer) -> None:
        if self._progress_bar is None:
            # pylint: disable=import-outside-toplevel
            try:
                from tqdm import tqdm  # Inline import to avoid additional dependency
            except ImportError as e:
                raise ImportError(
                    f"{self.__class__.__name__} requires tqdm which is not installed by default "
                    "(pip install tqdm)"
                ) from e
            self._progress_bar = tqdm()
            self._progress_bar.total = optimizer.max_iterations - 1
            self._progress_bar.update(self._current)
        self._progress_bar.update(1)
        self._current += 1

    def __getstate__(self) -> tp.Dict[str, tp.Any]:
        """Used for pickling (tqdm is not picklable)"""
        state = dict(self.__dict__)
        state["_progress_bar"] = None
        return state


class EarlyStopping:
    """Callback for stopping the :code:`run` method before the iteration limit.

    Parameters
    ----------
    stopping_criterion: func(optimizer) -> bool
        function that takes the current optimizer as input and returns True
        if the optimization must be stopped

    Note
    ----
    This callback must be registered on the "start" hook only, so that it stops
    the optimization before the iteration starts.

    Example
    -------
    In the following code, the :code:`run` method will be stopped after the 4th iteration

    >>> early_stopping = slimemold.callbacks.EarlyStopping(lambda opt: opt.num_iterations > 3)
    >>> optimizer.register_callback("start", early_stopping)
    >>> optimizer.run()

    Stopping if the loss is below 12 (for minimization):

    >>> early_stopping = slimemold.callbacks.EarlyStopping(lambda opt: opt.num_iterations and opt.recommended_loss < 12)
    """

    def __init__(self, stopping_criterion: tp.Callable[[base.Optimizer], bool]) -> None:
        self.stopping_criterion = stopping_criterion

    def __call__(self, optimizer: base.Optimizer) -> None:
        if optimizer._callbacks.get("step") and self in optimizer._callbacks["step"]:
            raise errors.SlimeRuntimeError("EarlyStopping must be registered on the start hook")
        if self.stopping_criterion(optimizer):
            raise errors.SlimeEarlyStopping("Early stopping criterion is reached")

    @classmethod
    def timer(cls, max_duration: float) -> "EarlyStopping":
        """Early stop when max_duration seconds has been reached (from the first iteration)"""
        return cls(_DurationCriterion(max_duration))

    @classmethod
    def no_improvement_stopper(cls, tolerance_window: int) -> "EarlyStopping":
        """Early stop when the best fitness did not improve during tolerance_window iterations"""
        return cls(_FitnessImprovementToleranceCriterion(tolerance_window))


class _DurationCriterion:
    def __init__(self, max_duration: float) -> None:
        self._start = float("inf")
        self._max_duration = max_duration

    def __call__(self, optimizer: base.Optimizer) -> bool:
        if np.isinf(self._start):
            self._start = time.time()
        return time.time() > self._start + self._max_duration


class _FitnessImprovementToleranceCriterion:
    def __init__(self, tolerance_window: int) -> None:
        self._tolerance_window: int = tolerance_window
        self._best_value: tp.Optional[float] = None
        self._tolerance_count: int = 0

    def __call__(self, optimizer: base.Optimizer) -> bool:
        if not optimizer.num_iterations:
            return False
        best_fitness = optimizer.recommend().fitness
        if self._best_value is None:
            self._best_value = best_fitness
            return False
        if self._best_value >= best_fitness:
            self._tolerance_count += 1
        else:
            self._tolerance_count = 0
            self._best_value = best_fitness
        return self._tolerance_count > self._tolerance_window
