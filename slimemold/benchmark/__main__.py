# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import argparse
from pathlib import Path
from concurrent import futures
import pandas as pd
import slimemold.common.typing as tp
from slimemold.functions import corefuncs
from . import core


# pylint: disable=too-many-arguments
def launch(
    function_names: tp.Optional[tp.List[str]] = None,
    repetitions: int = 1,
    population_size: int = 20,
    max_iterations: int = 100,
    z: float = 0.3,
    seed: tp.Optional[int] = None,
    num_workers: int = 1,
    output: tp.Optional[tp.PathLike] = None,
    plot: tp.Union[bool, tp.PathLike] = False,
) -> Path:
    """Runs the experiments, saves them to a csv file and prints a summary
    """
    kwargs: tp.Dict[str, tp.Any] = dict(
        repetitions=repetitions, population_size=population_size, max_iterations=max_iterations, z=z, seed=seed
    )
    if num_workers == 1:
        df = core.compute(function_names, **kwargs)
    else:
        with futures.ProcessPoolExecutor(max_workers=num_workers) as executor:
            df = core.compute(function_names, executor=executor, **kwargs)
    csvpath = Path("slimemold_benchmark.csv") if output is None else Path(output)
    core.save_or_append_to_csv(df, csvpath)
    print(f"Saved data to {csvpath}")
    with pd.option_context("display.max_columns", None, "display.width", 200):
        print(core.summarize(df))
    if plot:
        from . import plotting  # pylint: disable=import-outside-toplevel

        folder = str(csvpath.with_suffix("")) + "_plots" if isinstance(plot, bool) else plot
        plotting.create_plots(pd.read_csv(str(csvpath)), output_folder=folder)
    return csvpath


def get_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the slime mold algorithm on test functions and create a result csv file.")
    parser.add_argument(
        "functions",
        type=str,
        nargs="*",
        default=None,
        help=f"names of the test functions to run on, among {sorted(corefuncs.registry)} (default: all of them)",
    )
    parser.add_argument("--repetitions", type=int, default=1, help="Number of independent runs per function (seeds will be incremented)")
    parser.add_argument("--population_size", type=int, default=20, help="Number of cells")
    parser.add_argument("--max_iterations", type=int, default=100, help="Iteration index at which each run stops")
    parser.add_argument("--z", type=float, default=0.3, help="Probability of randomizing the whole population at each iteration")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Use a seed for reproducibility",
    )
    parser.add_argument(
        "--num_workers",
        type=int,
        default=1,
        help="Numbers of processes to use for the computation",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output path for the CSV file (default: slimemold_benchmark.csv). Existing files are appended",
    )
    parser.add_argument(
        "--plot",
        nargs="?",
        default=False,
        const=True,
        help="Creates the corresponding plots (provide a path, or folder <output>_plots will be used)",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = get_args()
    launch(
        args.functions or None,
        repetitions=args.repetitions,
        population_size=args.population_size,
        max_iterations=args.max_iterations,
        z=args.z,
        seed=args.seed,
        num_workers=args.num_workers,
        output=args.output,
        plot=args.plot,
    )
