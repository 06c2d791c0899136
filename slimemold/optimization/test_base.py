# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from pathlib import Path
import numpy as np
import pytest
import slimemold.common.typing as tp
from slimemold.common import testing
from slimemold.common import errors
from . import base
from .population import Cell


class CounterOptimizer(base.Optimizer):
    """Evaluates the lower corner of the box at each iteration"""

    def __init__(self, *args: tp.Any, **kwargs: tp.Any) -> None:
        super().__init__(*args, **kwargs)
        self.iterations: tp.List[int] = []
        self._best: tp.Optional[Cell] = None

    def _internal_step(self, iteration: int) -> None:
        self.iterations.append(iteration)
        cell = Cell(self.box.lower)
        cell.fitness = self._evaluate(cell.position)
        self._best = cell

    def _internal_recommend(self) -> tp.Optional[Cell]:
        return self._best


def _constant(x: tp.Any) -> float:
    return 12.0


@testing.parametrized(
    float_=(12.0, 12.0),
    int_=(3, 3.0),
    np_float=(np.float32(1.5), 1.5),
    np_int=(np.int_(2), 2.0),
    array=(np.array([4.0]), 4.0),
    list_=([5], 5.0),
)
def test_check_loss(loss: tp.Any, expected: float) -> None:
    value = base._check_loss(loss)
    assert isinstance(value, float)
    assert value == expected


@testing.parametrized(
    nan=(np.nan, errors.BadLossError),
    inf=(float("inf"), errors.BadLossError),
    minus_inf=(-np.inf, errors.BadLossError),
    string=("blublu", errors.SlimeTypeError),
    none=(None, errors.SlimeTypeError),
    array=(np.array([1.0, 2.0]), errors.SlimeTypeError),
    complex_=(1j, errors.SlimeTypeError),
    bool_=(True, errors.SlimeTypeError),
    np_bool=(np.bool_(False), errors.SlimeTypeError),
)
def test_check_loss_errors(loss: tp.Any, error: tp.Type[Exception]) -> None:
    with pytest.raises(error):
        base._check_loss(loss)


def test_base_optimizer() -> None:
    opt = CounterOptimizer(_constant, [0, 1], [1, 2], max_iterations=4, random_state=12)
    assert opt.dimension == 2
    assert opt.iteration == 1
    assert opt.num_iterations == 0
    with pytest.raises(errors.SlimeRuntimeError):
        opt.recommend()
    assert opt.step()
    assert opt.iteration == 2
    assert opt.num_evaluations == 1
    recommendation = opt.run()
    assert opt.iterations == [1, 2, 3]
    assert not opt.step()
    assert opt.num_evaluations == 3
    np.testing.assert_array_equal(recommendation.position, [0, 1])
    assert recommendation.fitness == 12  # maximization by default
    assert opt.recommended_loss == 12
    np.testing.assert_array_equal(opt.recommended_value, [0, 1])
    assert repr(opt) == "Instance of CounterOptimizer(box=Box{(2,)}[[0.0, 1.0], [1.0, 2.0]], max_iterations=4, direction=maximize)"


def test_explicit_iteration() -> None:
    opt = CounterOptimizer(_constant, 0, 1, max_iterations=10)
    assert opt.step(5)
    assert opt.iteration == 6
    assert not opt.step(10)
    assert opt.iteration == 6
    with pytest.raises(errors.SlimeValueError):
        opt.step(0)
    assert opt.iterations == [5]


def test_minimization_sign() -> None:
    opt = CounterOptimizer(_constant, 0, 1, max_iterations=2, direction="minimize")
    cell = opt.run()
    assert cell.fitness == -12
    assert opt.recommended_loss == 12
    assert opt.recommended_value == 0.0
    assert opt.fitness_from_loss(3.0) == -3
    assert opt.loss_from_fitness(-3.0) == 3


def test_recommendation_is_detached() -> None:
    opt = CounterOptimizer(_constant, [0, 0], [1, 1], max_iterations=2)
    opt.step()
    cell = opt.recommend()
    cell.position[0] = 12
    np.testing.assert_array_equal(opt.recommend().position, [0, 0])


@testing.parametrized(
    not_callable=(12, "maximize", 10, errors.SlimeTypeError),
    direction=(_constant, "blublu", 10, errors.SlimeValueError),
    float_iterations=(_constant, "maximize", 10.0, errors.SlimeTypeError),
    bool_iterations=(_constant, "maximize", True, errors.SlimeTypeError),
    zero_iterations=(_constant, "maximize", 0, errors.SlimeValueError),
)
def test_optimizer_errors(objective: tp.Any, direction: tp.Any, max_iterations: tp.Any, error: tp.Type[Exception]) -> None:
    with pytest.raises(error):
        CounterOptimizer(objective, 0, 1, max_iterations=max_iterations, direction=direction)


def test_single_iteration_warning() -> None:
    with pytest.warns(errors.InefficientSettingsWarning):
        opt = CounterOptimizer(_constant, 0, 1, max_iterations=1)
    assert not opt.step()
    with pytest.raises(errors.SlimeRuntimeError):
        opt.run()


def test_random_state() -> None:
    rng = np.random.RandomState(12)
    opt = CounterOptimizer(_constant, 0, 1, max_iterations=2, random_state=rng)
    assert opt.random_state is rng
    values = [CounterOptimizer(_constant, 0, 1, max_iterations=2, random_state=3).random_state.uniform() for _ in range(2)]
    assert values[0] == values[1]
    assert isinstance(CounterOptimizer(_constant, 0, 1, max_iterations=2).random_state, np.random.RandomState)


def test_callbacks() -> None:
    opt = CounterOptimizer(_constant, 0, 1, max_iterations=4)
    calls: tp.List[tp.Tuple[str, int]] = []
    opt.register_callback("start", lambda o: calls.append(("start", o.num_iterations)))
    opt.register_callback("step", lambda o: calls.append(("step", o.num_iterations)))
    opt.run()
    assert calls == [("start", 0), ("step", 1), ("start", 1), ("step", 2), ("start", 2), ("step", 3)]
    with pytest.raises(AssertionError):
        opt.register_callback("blublu", print)
    opt.remove_all_callbacks()
    assert not opt._callbacks


def test_dump_load(tmp_path: Path) -> None:
    filepath = tmp_path / "dump.pkl"
    opt = CounterOptimizer(_constant, [0, 0], [1, 1], max_iterations=5)
    opt.step()
    opt.dump(filepath)
    loaded = CounterOptimizer.load(filepath)
    assert loaded.num_evaluations == 1
    assert loaded.iterations == [1]
    loaded.run()
    assert loaded.iterations == [1, 2, 3, 4]
    assert opt.iterations == [1]
