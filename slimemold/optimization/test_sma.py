# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
from pathlib import Path
import numpy as np
import pytest
import slimemold.common.typing as tp
from slimemold.common import testing
from slimemold.common import errors
from slimemold.functions import corefuncs
from .sma import SlimeMold


def _quadratic(x: float) -> float:
    return (x - 3.0) ** 2


class RecordingObjective:
    """Sphere function keeping track of all evaluated positions"""

    def __init__(self) -> None:
        self.positions: tp.List[tp.Any] = []

    def __call__(self, x: tp.Any) -> float:
        self.positions.append(x)
        return float(np.sum(np.asarray(x) ** 2))


def test_sma_quadratic_convergence() -> None:
    errors_ = []
    for seed in range(20):
        opt = SlimeMold(_quadratic, -10, 10, population_size=20, max_iterations=100, direction="minimize", random_state=seed)
        best = opt.run()
        errors_.append(abs(best.position[0] - 3.0))
    assert np.median(errors_) < 0.1, f"Errors: {errors_}"


def test_sma_drop_wave_baseline() -> None:
    info = corefuncs.registry.get_info("drop_wave")
    distances = []
    for seed in range(20):
        opt = SlimeMold(
            corefuncs.drop_wave,
            info["lower"],
            info["upper"],
            population_size=10,
            max_iterations=100,
            direction="minimize",
            random_state=seed,
        )
        distances.append(float(np.linalg.norm(opt.run().position)))
    assert np.median(distances) < 0.53, f"Distances: {distances}"


def test_sma_maximization_by_default() -> None:
    opt = SlimeMold(lambda x: -_quadratic(x), -10, 10, max_iterations=50, random_state=12)
    assert opt.direction == "maximize"
    best = opt.run()
    assert abs(best.position[0] - 3) < 1
    assert best.fitness == opt.recommended_loss
    assert best.fitness <= 0


@testing.parametrized(
    scalar=(-10, 10, float),
    vector=([-1, -2, -3], [1, 2, 3], np.ndarray),
)
def test_sma_invariants(lower: tp.Any, upper: tp.Any, expected_type: tp.Type[tp.Any]) -> None:
    objective = RecordingObjective()
    num, max_iterations = 7, 12
    opt = SlimeMold(objective, lower, upper, population_size=num, max_iterations=max_iterations, direction="minimize", random_state=12)
    best_fitness = -np.inf
    while opt.step():
        population = opt.population
        assert len(population) == num
        testing.assert_sorted_descending(population.fitnesses)
        testing.assert_within_bounds(population.positions, opt.lower, opt.upper)
        tracked = opt.best_cells
        assert 1 <= len(tracked) <= opt.best_count
        testing.assert_sorted_descending(tracked.fitnesses)
        assert tracked.best.fitness >= best_fitness
        assert tracked.best.fitness >= population.best.fitness
        best_fitness = tracked.best.fitness
        assert opt.num_evaluations == num * opt.num_iterations
    assert opt.num_iterations == max_iterations - 1
    assert len(objective.positions) == num * (max_iterations - 1)
    assert all(isinstance(x, expected_type) for x in objective.positions)
    testing.assert_within_bounds(np.array(objective.positions, dtype=float).reshape(len(objective.positions), -1), opt.lower, opt.upper)


def test_sma_iteration_limit() -> None:
    opt = SlimeMold(_quadratic, -10, 10, population_size=5, max_iterations=3, random_state=12)
    assert opt.step()
    assert opt.step()
    positions = opt.population.positions
    tracked = opt.best_cells.fitnesses
    state = opt.random_state.get_state()
    assert not opt.step()
    assert not opt.step(12)
    np.testing.assert_array_equal(opt.population.positions, positions)
    np.testing.assert_array_equal(opt.best_cells.fitnesses, tracked)
    np.testing.assert_array_equal(opt.random_state.get_state()[1], state[1])
    assert opt.num_evaluations == 10


def _run_history(seed: int) -> tp.Tuple[np.ndarray, np.ndarray]:
    opt = SlimeMold(corefuncs.rastrigin, [-5.12] * 3, [5.12] * 3, population_size=8, max_iterations=20, record_history=True, random_state=seed)
    opt.run()
    assert opt.history is not None
    return (np.array([c.position for c in opt.history]), np.array([c.fitness for c in opt.history]))


def test_sma_seeded_runs_are_identical() -> None:
    positions, fitnesses = _run_history(12)
    positions2, fitnesses2 = _run_history(12)
    np.testing.assert_array_equal(positions, positions2)
    np.testing.assert_array_equal(fitnesses, fitnesses2)
    positions3, _ = _run_history(13)
    assert not np.array_equal(positions, positions3)


def test_sma_history() -> None:
    opt = SlimeMold(_quadratic, -10, 10, population_size=4, max_iterations=6, record_history=True, random_state=12)
    assert opt.history == []
    opt.step()
    assert opt.history is not None
    assert len(opt.history) == 4
    assert not {c.uid for c in opt.history} & {c.uid for c in opt.population}
    opt.run()
    assert len(opt.history) == 4 * 5
    assert len({c.uid for c in opt.history}) == 20
    assert SlimeMold(_quadratic, -10, 10, max_iterations=6).history is None


@testing.parametrized(
    always=(1.0,),
    never=(0.0,),
)
def test_sma_global_randomization(z: float) -> None:
    opt = SlimeMold(corefuncs.sphere, [-1, 0], [1, 10], population_size=6, max_iterations=10, z=z, random_state=12)
    opt.run()
    testing.assert_within_bounds(opt.population.positions, [-1, 0], [1, 10])
    assert opt.num_evaluations == 6 * 9


def test_sma_single_cell() -> None:
    with pytest.warns(errors.InefficientSettingsWarning):
        opt = SlimeMold(_quadratic, -10, 10, population_size=1, max_iterations=10, direction="minimize", random_state=12)
    best = opt.run()
    assert opt.num_evaluations == 9
    assert -10 <= best.position[0] <= 10


def test_sma_before_first_step() -> None:
    opt = SlimeMold(_quadratic, -10, 10, max_iterations=10, random_state=12)
    assert opt.best is None
    assert not opt.best_cells
    assert len(opt.population) == 20
    assert all(c.fitness == -1 for c in opt.population)
    with pytest.raises(errors.SlimeRuntimeError):
        opt.recommend()
    opt.step()
    assert opt.best is not None
    assert opt.best.uid == opt.recommend().uid


@testing.parametrized(
    population_zero=(dict(population_size=0), errors.SlimeValueError),
    population_float=(dict(population_size=2.5), errors.SlimeTypeError),
    best_count_zero=(dict(best_count=0), errors.SlimeValueError),
    z_above=(dict(z=1.5), errors.SlimeValueError),
    z_below=(dict(z=-0.1), errors.SlimeValueError),
    z_string=(dict(z="0.3"), errors.SlimeTypeError),
    z_bool=(dict(z=True), errors.SlimeTypeError),
    direction=(dict(direction="blublu"), errors.SlimeValueError),
    iterations=(dict(max_iterations=-3), errors.SlimeValueError),
    bounds=(dict(lower=[0, 0], upper=[1]), errors.SlimeValueError),
)
def test_sma_config_errors(kwargs: tp.Dict[str, tp.Any], error: tp.Type[Exception]) -> None:
    params: tp.Dict[str, tp.Any] = dict(lower=-10, upper=10)
    params.update(kwargs)
    with pytest.raises(error):
        SlimeMold(_quadratic, **params)


@testing.parametrized(
    nan=(lambda x: np.nan, errors.BadLossError),
    inf=(lambda x: np.inf, errors.BadLossError),
    string=(lambda x: "blublu", errors.SlimeTypeError),
    vector=(lambda x: [x, x], errors.SlimeTypeError),
    boolean=(lambda x: x > 0, errors.SlimeTypeError),
)
def test_sma_bad_objective(objective: tp.Callable[[float], tp.Any], error: tp.Type[Exception]) -> None:
    opt = SlimeMold(objective, -10, 10, population_size=3, max_iterations=10, random_state=12)
    with pytest.raises(error):
        opt.step()


def test_sma_interrupted_evaluation() -> None:
    calls: tp.List[float] = []

    def objective(x: float) -> float:
        calls.append(x)
        return float("nan") if len(calls) == 3 else float(len(calls))

    opt = SlimeMold(objective, -10, 10, population_size=5, max_iterations=10, random_state=12)
    with pytest.raises(errors.BadLossError):
        opt.step()
    assert opt.num_evaluations == 3
    assert opt.iteration == 1  # the counter did not move
    np.testing.assert_array_equal(opt.population.fitnesses, [1, 2, -1, -1, -1])
    np.testing.assert_array_equal(opt.best_cells.fitnesses, [2, 1])


def test_sma_objective_cannot_alter_population() -> None:
    def objective(x: np.ndarray) -> float:
        value = float(x.sum())
        x[:] = 12.0
        return value

    opt = SlimeMold(objective, [0, 0], [1, 1], population_size=5, max_iterations=2, z=0.0, random_state=12)
    opt.step()
    testing.assert_within_bounds(opt.population.positions, [0, 0], [1, 1])
    testing.assert_within_bounds(opt.recommend().position, [0, 0], [1, 1])


def test_sma_dump_load(tmp_path: Path) -> None:
    filepath = tmp_path / "sma.pkl"
    opt = SlimeMold(_quadratic, -10, 10, population_size=5, max_iterations=10, direction="minimize", random_state=12)
    opt.step()
    opt.step()
    opt.dump(filepath)
    loaded = SlimeMold.load(filepath)
    assert loaded.num_iterations == 2
    best = opt.run()
    best2 = loaded.run()
    assert best == best2
    np.testing.assert_array_equal(opt.population.positions, loaded.population.positions)


def test_sma_repr() -> None:
    opt = SlimeMold(_quadratic, -10, 10, population_size=5, max_iterations=10)
    assert repr(opt) == (
        "Instance of SlimeMold(box=Box[-10.0, 10.0], population_size=5, max_iterations=10, "
        "direction=maximize, z=0.3, best_count=3)"
    )


def test_sma_debug_logs(caplog: tp.Any) -> None:
    caplog.set_level(logging.DEBUG, logger="slimemold.optimization.sma")
    opt = SlimeMold(_quadratic, -10, 10, population_size=5, max_iterations=4, z=0.0, random_state=12)
    opt.run()
    messages = [record.getMessage() for record in caplog.records]
    assert any(m.startswith("Best fitness improved") for m in messages)
    assert sum("explored" in m for m in messages) == 3
