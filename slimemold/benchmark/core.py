# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
from pathlib import Path
import numpy as np
import pandas as pd
import slimemold.common.typing as tp
from slimemold.functions import corefuncs
from slimemold.optimization import SlimeMold


logger = logging.getLogger(__name__)


class DelayedJob:
    """Future-like object which delays computation
    """

    def __init__(self, func: tp.Callable[..., tp.Any], *args: tp.Any, **kwargs: tp.Any) -> None:
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self._result: tp.Optional[tp.Any] = None
        self._computed = False

    def done(self) -> bool:
        return True

    def result(self) -> tp.Any:
        if not self._computed:
            self._result = self.func(*self.args, **self.kwargs)
            self._computed = True
        return self._result


class SequentialExecutor:
    """Executor which run sequentially and locally
    (just calls the function and returns a DelayedJob)
    """

    def submit(self, fn: tp.Callable[..., tp.Any], *args: tp.Any, **kwargs: tp.Any) -> DelayedJob:
        return DelayedJob(fn, *args, **kwargs)


class Experiment:
    """Specifies a run of the slime mold algorithm on one of the registered test functions.

    Parameters
    ----------
    function_name: str
        name of a function of :code:`slimemold.functions.corefuncs.registry`
    population_size: int
        number of cells
    max_iterations: int
        iteration index at which the optimization stops
    z: float
        probability of randomizing the whole population at a given iteration
    seed: int or None
        seed of the optimizer random state (the run is not reproducible if None)

    Note
    ----
    The distance is computed from the best position to the global minimum of the function
    which is the closest to the mean position of the best cells ever observed.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        function_name: str,
        population_size: int = 20,
        max_iterations: int = 100,
        z: float = 0.3,
        seed: tp.Optional[int] = None,
    ) -> None:
        if function_name not in corefuncs.registry:
            raise ValueError(f'Unknown function "{function_name}", choose among {sorted(corefuncs.registry)}')
        self.function_name = function_name
        self.population_size = population_size
        self.max_iterations = max_iterations
        self.z = z
        self.seed = seed

    def __repr__(self) -> str:
        return (
            f"Experiment: {self.function_name} with population_size={self.population_size}, "
            f"max_iterations={self.max_iterations}, z={self.z} and seed {self.seed}"
        )

    def get_description(self) -> tp.Dict[str, tp.Any]:
        """Returns a dictionary describing the experiment settings"""
        info = corefuncs.registry.get_info(self.function_name)
        return {
            "function": self.function_name,
            "dimension": len(info["lower"]),
            "population_size": self.population_size,
            "max_iterations": self.max_iterations,
            "z": self.z,
            "seed": self.seed,
        }

    def run(self) -> tp.Dict[str, tp.Any]:
        """Runs the experiment

        Returns
        -------
        dict
            the description of the experiment, along with its results: "loss" (best objective value),
            "distance" (to the closest optimum), "num_evaluations" and "elapsed_time"
        """
        info = corefuncs.registry.get_info(self.function_name)
        optimizer = SlimeMold(
            corefuncs.registry[self.function_name],
            info["lower"],
            info["upper"],
            population_size=self.population_size,
            max_iterations=self.max_iterations,
            direction="minimize",
            z=self.z,
            random_state=self.seed,
        )
        start = time.time()
        best = optimizer.run()
        elapsed = time.time() - start
        center = np.mean([cell.position for cell in optimizer.best_cells], axis=0)
        closest = min(info["optima"], key=lambda optimum: float(np.linalg.norm(center - np.array(optimum))))
        distance = float(np.linalg.norm(best.position - np.array(closest)))
        summary = self.get_description()
        summary.update(
            loss=optimizer.loss_from_fitness(best.fitness),
            distance=distance,
            num_evaluations=optimizer.num_evaluations,
            elapsed_time=elapsed,
        )
        logger.debug("Finished %s: %s", self, summary)
        return summary


# pylint: disable=too-many-arguments
def compute(
    function_names: tp.Optional[tp.Iterable[str]] = None,
    repetitions: int = 1,
    population_size: int = 20,
    max_iterations: int = 100,
    z: float = 0.3,
    seed: tp.Optional[int] = None,
    executor: tp.Optional[tp.ExecutorLike] = None,
) -> pd.DataFrame:
    """Runs experiments on the provided functions and returns the result dataframe.

    Parameters
    ----------
    function_names: list of str or None
        names of the registered functions to run on (all of them if None)
    repetitions: int
        number of independent runs per function. If a seed is provided,
        it is incremented at each repetition.
    population_size: int
        number of cells
    max_iterations: int
        iteration index at which the optimization stops
    z: float
        probability of randomizing the whole population at a given iteration
    seed: int or None
        a seed for the first repetition
    executor: Executor-like object
        an object such as concurrent.futures.ProcessPoolExecutor for running experiments in parallel

    Returns
    -------
    pd.DataFrame
        one row per experiment
    """
    names = sorted(corefuncs.registry) if function_names is None else list(function_names)
    if executor is None:
        executor = SequentialExecutor()
    experiments = [
        Experiment(name, population_size=population_size, max_iterations=max_iterations, z=z, seed=None if seed is None else seed + k)
        for name in names
        for k in range(repetitions)
    ]
    jobs = [executor.submit(xp.run) for xp in experiments]
    summaries = []
    for xp, job in zip(experiments, jobs):
        summaries.append(job.result())
        print(f"Finished {xp}", flush=True)
    return pd.DataFrame(summaries)


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """Mean and median distance to the optimum, and mean loss, for each function"""
    grouped = df.groupby("function")
    summary = grouped["distance"].agg(["mean", "median"]).rename(columns=lambda name: f"distance_{name}")
    summary["loss_mean"] = grouped["loss"].mean()
    summary["repetitions"] = grouped.size()
    return summary


def save_or_append_to_csv(df: pd.DataFrame, path: Path) -> None:
    """Saves a dataframe to a file in append mode
    """
    if path.exists():
        print("Appending to existing file")
        predf = pd.read_csv(str(path))
        df = pd.concat([predf, df], sort=False)
    df.to_csv(path, index=False)
