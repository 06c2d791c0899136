# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import uuid
import numpy as np
import slimemold.common.typing as tp


UNEVALUATED_FITNESS = -1.0


class Cell:
    """Candidate solution of the slime mold: a position in the search box,
    its fitness (higher is better) and its weight.

    Parameters
    ----------
    position: np.ndarray
        1-D array of coordinates
    fitness: float
        signed fitness (raw objective for maximization, negated objective for minimization).
        Defaults to -1 until the first evaluation.
    weight: float
        weight of the cell, used to scale its exploitation step

    Note
    ----
    Cells do not share any state: the position is copied at construction and by :code:`copy`.
    """

    def __init__(
        self, position: tp.ArrayLike, fitness: float = UNEVALUATED_FITNESS, weight: float = 1.0
    ) -> None:
        self.position = np.array(position, dtype=float, copy=True)
        self.fitness = float(fitness)
        self.weight = float(weight)
        self.uid = uuid.uuid4().hex

    def copy(self, new_uid: bool = False) -> "Cell":
        """Creates a detached copy of the cell (with the same uid unless new_uid is True)"""
        cell = Cell(self.position, fitness=self.fitness, weight=self.weight)
        if not new_uid:
            cell.uid = self.uid
        return cell

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Cell):
            return False
        return (
            self.fitness == other.fitness
            and self.weight == other.weight
            and np.array_equal(self.position, other.position)
        )

    def __repr__(self) -> str:
        return f"Cell<fitness: {self.fitness}, weight: {self.weight}, position: {self.position.tolist()}>"


class Population:
    """Fixed-size ordered collection of cells.
    Once sorted, index 0 holds the current best cell and index -1 the current worst.
    """

    def __init__(self, cells: tp.Iterable[Cell]) -> None:
        self._cells: tp.List[Cell] = list(cells)

    @classmethod
    def sample(cls, size: int, sampler: tp.Callable[[], np.ndarray]) -> "Population":
        """Creates a population of unevaluated cells from a position sampler"""
        return cls(Cell(sampler()) for _ in range(size))

    def sort(self) -> None:
        """Sorts the cells by decreasing fitness (stable for equal fitnesses)"""
        self._cells.sort(key=lambda cell: cell.fitness, reverse=True)

    @property
    def best(self) -> Cell:
        return self._cells[0]

    @property
    def worst(self) -> Cell:
        return self._cells[-1]

    @property
    def fitnesses(self) -> np.ndarray:
        return np.array([cell.fitness for cell in self._cells])

    @property
    def positions(self) -> np.ndarray:
        """np.ndarray: copy of the positions, as a (size, dimension) array"""
        return np.array([cell.position for cell in self._cells])

    def copy(self, new_uids: bool = False) -> "Population":
        """Detached snapshot of the population"""
        return Population(cell.copy(new_uid=new_uids) for cell in self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> tp.Iterator[Cell]:
        return iter(self._cells)

    def __getitem__(self, index: int) -> Cell:
        return self._cells[index]

    def __repr__(self) -> str:
        return f"Population<size: {len(self)}>"


class BestTracker:
    """Ranked record of the best cells ever observed, with bounded capacity.

    Cells are stored as detached copies, sorted by decreasing fitness,
    so that later changes in the population do not alter them.

    Parameters
    ----------
    capacity: int
        maximum number of cells to keep
    """

    def __init__(self, capacity: int = 3) -> None:
        if capacity < 1:
            raise ValueError(f"Capacity must be strictly positive (got {capacity})")
        self.capacity = int(capacity)
        self._cells: tp.List[Cell] = []

    def add(self, cell: Cell) -> bool:
        """Inserts a copy of the cell at its rank if it belongs in the record,
        and drops the entries beyond capacity.

        Returns
        -------
        bool
            whether the cell was inserted
        """
        if len(self._cells) >= self.capacity and cell.fitness <= self._cells[-1].fitness:
            return False
        # equal fitnesses keep their order of arrival
        index = next((k for k, kept in enumerate(self._cells) if cell.fitness > kept.fitness), len(self._cells))
        self._cells.insert(index, cell.copy())
        del self._cells[self.capacity :]
        return True

    @property
    def best(self) -> Cell:
        if not self._cells:
            raise IndexError("No cell was recorded yet")
        return self._cells[0]

    @property
    def fitnesses(self) -> np.ndarray:
        return np.array([cell.fitness for cell in self._cells])

    def copy(self) -> "BestTracker":
        tracker = BestTracker(self.capacity)
        tracker._cells = [cell.copy() for cell in self._cells]
        return tracker

    def __len__(self) -> int:
        return len(self._cells)

    def __bool__(self) -> bool:
        return bool(self._cells)

    def __iter__(self) -> tp.Iterator[Cell]:
        return iter(self._cells)

    def __getitem__(self, index: int) -> Cell:
        return self._cells[index]

    def __repr__(self) -> str:
        return f"BestTracker<capacity: {self.capacity}, fitnesses: {self.fitnesses.tolist()}>"
