import numpy as np
import pytest

from pigmix.core.color_science import LabColor
from pigmix.core.data_types import (
    HyperparameterConfig,
    OptimizationResult,
    TrainingItem,
    get_transform,
    int_transform,
    log10_transform,
    round_transform,
)
from pigmix.core.exceptions import UnknownStrategyError
from pigmix.evaluation.samples import SampleOutcome
from pigmix.hyperparameter import (
    SENTINEL_FITNESS,
    BoundsPenaltyObjective,
    HyperparameterObjective,
    HyperparameterSearch,
    available_search_spaces,
    get_search_space,
    resolve_parameters,
)


TARGET = LabColor(50.0, 0.0, 0.0)
INNER_EVALUATIONS = 7


class StubGenerator:
    """结果颜色的明度偏离目标 (x - 2)，因此平均误差在 x = 2 处最小"""

    def __init__(self):
        self.calls = []

    def generate(self, items, settings, output_path=None):
        self.calls.append((dict(settings.parameters), output_path, settings.optimizer_name))
        x = settings.parameters['x']
        outcomes = []
        for item in items:
            result = OptimizationResult(weights=[1.0], objective_value=0.0,
                                        evaluations=INNER_EVALUATIONS, converged=True,
                                        algorithm_name=settings.optimizer_name)
            result_lab = LabColor(item.target_lab.l + (x - 2.0), 0.0, 0.0)
            outcomes.append(SampleOutcome(item, result, result_lab, np.ones(1), TARGET, 0.1))
        return outcomes


@pytest.fixture
def items():
    return [TrainingItem(TARGET, (1.0,)), TrainingItem(TARGET, (1.0,))]


@pytest.fixture
def x_space():
    return [HyperparameterConfig("x", initial_value=4.9, sigma=1.0, lower_bound=0.0, upper_bound=5.0)]


class TestHyperparameterConfig:

    def test_from_dict(self):
        config = HyperparameterConfig.from_dict(
            {"name": "stop_fitness", "initial": -3, "sigma": 1, "min": -6, "max": -2, "transform": "log10"})
        assert config.resolve(-3.0) == pytest.approx(1e-3)
        assert config.in_bounds(-2.0)
        assert not config.in_bounds(-1.5)
        assert config.clamp(0.0) == -2.0

    def test_initial_outside_bounds_rejected(self):
        with pytest.raises(ValueError):
            HyperparameterConfig("x", initial_value=6.0, sigma=1.0, lower_bound=0.0, upper_bound=5.0)

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValueError):
            HyperparameterConfig("x", initial_value=1.0, sigma=1.0, lower_bound=2.0, upper_bound=0.0)

    def test_transforms(self):
        assert int_transform(9.9) == 9
        assert int_transform(-1.5) == -1
        assert round_transform(9.5) == 10
        assert log10_transform(-2.0) == pytest.approx(0.01)
        assert get_transform("exp")(0.0) == 1.0
        with pytest.raises(UnknownStrategyError):
            get_transform("sqrt")


class TestSearchSpaces:

    def test_every_optimizer_but_hybrid_has_a_space(self):
        assert set(available_search_spaces()) == {
            "CMA-ES", "NSGA-II", "SPEA2", "SMS-EMOA", "COBYQA", "Powell", "Nelder-Mead",
        }

    def test_cmaes_space_resolves_to_strategy_parameters(self):
        space = get_search_space("CMA-ES")
        params = resolve_parameters(space, [10.7, 0.3, 12.9, -3.0])
        assert list(params) == ["population_multiplier", "sigma", "diagonal_only", "stop_fitness"]
        assert params["population_multiplier"] == 10
        assert params["diagonal_only"] == 12
        assert params["stop_fitness"] == pytest.approx(1e-3)

    def test_initial_values_are_inside_bounds(self):
        for name in available_search_spaces():
            for config in get_search_space(name):
                assert config.in_bounds(config.initial_value)

    def test_unknown_space(self):
        with pytest.raises(UnknownStrategyError):
            get_search_space("BFGS")


class TestObjective:

    def test_runs_one_batch_per_call(self, items, x_space, tmp_path):
        generator = StubGenerator()
        objective = HyperparameterObjective(items, "Powell", x_space, generator=generator,
                                            output_dir=tmp_path)
        assert objective([3.0]) == pytest.approx(1.0, abs=1e-2)
        assert objective([2.0]) == pytest.approx(0.0, abs=1e-9)
        assert objective.batch_runs == 2
        assert objective.inner_evaluations == 2 * 2 * INNER_EVALUATIONS
        assert [s.parameters for s in objective.history] == [{'x': 3.0}, {'x': 2.0}]
        params, path, optimizer_name = generator.calls[0]
        assert optimizer_name == "Powell"
        assert path == tmp_path / "Powell-run-0000.csv"

    def test_bounds_penalty_skips_inner_batch(self, items, x_space):
        generator = StubGenerator()
        objective = HyperparameterObjective(items, "Powell", x_space, generator=generator)
        bounded = BoundsPenaltyObjective(objective, x_space)
        assert bounded([5.5]) == SENTINEL_FITNESS
        assert bounded([-0.1]) == SENTINEL_FITNESS
        assert generator.calls == []
        assert bounded.sentinel_hits == 2
        bounded([5.0])
        assert objective.batch_runs == 1


class TestHyperparameterSearch:

    def test_cmaes_backend_finds_minimum(self, items, x_space):
        search = HyperparameterSearch(items, "Powell", x_space, num_samples=2,
                                      generator=StubGenerator())
        sample = search.optimize(max_evaluations=200, population_size=6, seed=1)
        assert sample.optimizer_name == "Powell"
        assert sample.parameters['x'] == pytest.approx(2.0, abs=0.05)
        assert sample.mean_error < 0.05
        assert sample.outer_evaluations == search.last_objective.batch_runs
        assert sample.outer_evaluations <= 200
        assert sample.inner_evaluations == sample.outer_evaluations * 2 * INNER_EVALUATIONS

    def test_cmaes_backend_keeps_fixed_dimension(self, items, x_space):
        fixed = HyperparameterConfig("population_multiplier", initial_value=5, sigma=1.0,
                                     lower_bound=5, upper_bound=5, transform=int_transform)
        generator = StubGenerator()
        search = HyperparameterSearch(items, "Powell", x_space + [fixed], num_samples=2,
                                      generator=generator)
        sample = search.optimize(max_evaluations=200, population_size=6, seed=1)
        assert sample.parameters['population_multiplier'] == 5
        assert sample.parameters['x'] == pytest.approx(2.0, abs=0.05)
        assert all(params['population_multiplier'] == 5 for params, _, _ in generator.calls)

    def test_cmaes_backend_with_every_dimension_fixed(self, items):
        space = [HyperparameterConfig("x", initial_value=3.0, sigma=1.0, lower_bound=3.0, upper_bound=3.0)]
        generator = StubGenerator()
        search = HyperparameterSearch(items, "Powell", space, num_samples=2, generator=generator)
        sample = search.optimize(max_evaluations=50, seed=1)
        assert sample.parameters['x'] == 3.0
        assert sample.outer_evaluations == 1
        assert len(generator.calls) == 1
        assert sample.mean_error == pytest.approx(1.0, abs=0.01)

    def test_nelder_mead_backend_with_sentinel(self, items, x_space):
        generator = StubGenerator()
        search = HyperparameterSearch(items, "Powell", x_space, num_samples=2, generator=generator)
        sample = search.optimize_with_nelder_mead(max_evaluations=200)
        objective = search.last_objective

        assert sample.parameters['x'] == pytest.approx(2.0, abs=1e-3)
        # 初始单纯形的第二个顶点 4.9 + 0.5 越界，只计外层评估
        assert objective.batch_runs < sample.outer_evaluations
        assert all(0.0 <= params['x'] <= 5.0 for params, _, _ in generator.calls)
        assert sample.inner_evaluations == objective.batch_runs * 2 * INNER_EVALUATIONS

    def test_num_samples_limits_batch(self, items, x_space):
        search = HyperparameterSearch(items, "Powell", x_space, num_samples=1)
        assert search.settings.num_samples == 1

    def test_default_search_space(self, items):
        search = HyperparameterSearch(items, "CMA-ES")
        assert [c.name for c in search.hyperparameters] == [
            "population_multiplier", "sigma", "diagonal_only", "stop_fitness",
        ]

    def test_empty_search_space_rejected(self, items):
        with pytest.raises(ValueError):
            HyperparameterSearch(items, "Powell", [])
