# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from pathlib import Path
import pandas as pd
from matplotlib import pyplot as plt
import slimemold.common.typing as tp


_DPI = 250


class BoxPlotter:
    """Box plot of one column of the benchmark results, with one box per function

    Parameters
    ----------
    df: pd.DataFrame
        benchmark results (one row per experiment)
    column: str
        the column to plot (eg: "distance" or "loss")
    log: bool
        whether to use a log scale (only applied if all values are positive)
    """

    def __init__(self, df: pd.DataFrame, column: str, log: bool = False) -> None:
        names = sorted(df["function"].unique())
        data = [df.loc[df["function"] == name, column].values for name in names]
        self._fig = plt.figure()
        self._ax = self._fig.add_subplot(111)
        self._ax.boxplot(data)
        self._ax.set_xticks(range(1, len(names) + 1))
        self._ax.set_xticklabels(names, rotation=45, ha="right")
        if log and (df[column] > 0).all():
            self._ax.set_yscale("log")
        self._ax.set_ylabel(column)
        self._ax.set_title(f"{column} over {len(df)} runs")
        self._ax.grid(True, which="both")

    def save(self, output_filepath: tp.PathLike) -> None:
        """Saves the box plot to a file"""
        self._fig.savefig(str(output_filepath), bbox_inches="tight", dpi=_DPI)

    def __del__(self) -> None:
        plt.close(self._fig)


def create_plots(df: pd.DataFrame, output_folder: tp.PathLike) -> tp.List[Path]:
    """Saves distance and loss box plots of the benchmark results into a folder

    Parameters
    ----------
    df: pd.DataFrame
        benchmark results, as returned by :code:`core.compute`
    output_folder: str or Path
        folder where the plots will be saved (created if need be)

    Returns
    -------
    list
        the paths of the created files
    """
    output_folder = Path(output_folder)
    output_folder.mkdir(exist_ok=True, parents=True)
    paths = []
    for column, log in [("distance", True), ("loss", False)]:
        filepath = output_folder / f"{column}.png"
        print(f"Saving plot {filepath}")
        plotter = BoxPlotter(df, column, log=log)
        plotter.save(filepath)
        paths.append(filepath)
    plt.close("all")
    return paths
