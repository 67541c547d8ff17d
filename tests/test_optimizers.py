import math

import numpy as np
import pytest

from pigmix.core.color_science import DeltaE2000
from pigmix.core.exceptions import MinimizerError, SampleGenerationError, UnknownStrategyError
from pigmix.core.goal import Goal
from pigmix.core.normalizer import ProportionsNormalizer
from pigmix.core.penalty import SparsityPenalty
from pigmix.optimizer import (
    CMAESStrategy,
    COBYQAStrategy,
    NelderMeadStrategy,
    NSGA2Strategy,
    PowellStrategy,
    SMSEMOAStrategy,
    SPEA2Strategy,
    available_optimizers,
    create_optimizer,
)
from pigmix.optimizer.base import CountingObjective, as_bounds
from pigmix.optimizer.configs import CMAESConfig, EvolutionaryConfig, HybridConfig, NelderMeadConfig


class Quadratic:
    """sum((x - center)^2)，记录调用次数"""

    def __init__(self, center=0.3):
        self.center = center
        self.calls = 0

    def __call__(self, x):
        self.calls += 1
        return float(np.sum((np.asarray(x) - self.center) ** 2))


class TestConfigParsing:

    def test_defaults(self):
        config = CMAESConfig.from_params({})
        assert config.max_evaluations == 10000
        assert config.sigma == 0.3
        assert config.stds is None

    def test_int_accepted_for_float_field(self):
        config = CMAESConfig.from_params({'sigma': 1})
        assert config.sigma == 1.0
        assert isinstance(config.sigma, float)

    def test_float_for_int_field_falls_back(self):
        assert CMAESConfig.from_params({'max_evaluations': 5.0}).max_evaluations == 10000

    def test_bool_for_numeric_field_falls_back(self):
        assert CMAESConfig.from_params({'sigma': True}).sigma == 0.3
        assert CMAESConfig.from_params({'max_evaluations': False}).max_evaluations == 10000

    def test_numpy_scalars_accepted(self):
        config = CMAESConfig.from_params({'population_multiplier': np.int64(7), 'sigma': np.float64(0.1)})
        assert config.population_multiplier == 7
        assert config.sigma == pytest.approx(0.1)

    def test_unknown_keys_ignored(self):
        assert NelderMeadConfig.from_params({'banana': 1}) == NelderMeadConfig()

    def test_float_sequence(self):
        assert CMAESConfig.from_params({'stds': [1, 0.5]}).stds == (1.0, 0.5)
        assert CMAESConfig.from_params({'stds': "abc"}).stds is None
        assert CMAESConfig.from_params({'stds': []}).stds is None

    def test_popsize(self):
        assert CMAESConfig(population_multiplier=4).popsize(3) == 12
        assert CMAESConfig(population_size=7).popsize(3) == 7
        assert CMAESConfig(population_size=1).popsize(3) == 2

    def test_hybrid_defaults(self):
        config = HybridConfig.from_params(None)
        assert config.global_optimizer == "CMA-ES"
        assert config.local_optimizer == "Nelder-Mead"
        assert math.isinf(config.refine_threshold)

    def test_strategy_parses_once(self):
        strategy = create_optimizer("NSGA-II", {'population_size': 30, 'max_generations': "ten"})
        assert strategy.config == EvolutionaryConfig(population_size=30)


class TestFactory:

    def test_all_names_registered(self):
        assert available_optimizers() == [
            "CMA-ES", "Nelder-Mead", "Powell", "COBYQA", "NSGA-II", "SPEA2", "SMS-EMOA", "Hybrid",
        ]

    @pytest.mark.parametrize("name", ["CMA-ES", "Nelder-Mead", "Powell", "COBYQA", "NSGA-II",
                                      "SPEA2", "SMS-EMOA", "Hybrid"])
    def test_create_by_name(self, name):
        assert create_optimizer(name).name == name

    def test_unknown_name(self):
        with pytest.raises(UnknownStrategyError) as excinfo:
            create_optimizer("BFGS")
        assert "BFGS" in str(excinfo.value)


class TestBounds:

    def test_none_passes_through(self):
        assert as_bounds(None, 3) is None

    def test_wrong_shape_rejected(self):
        with pytest.raises(ValueError):
            as_bounds(([0, 0], [1, 1]), 3)

    def test_inverted_rejected(self):
        with pytest.raises(ValueError):
            as_bounds(([1.0], [0.0]), 1)

    def test_counting_objective_tracks_best(self):
        counter = CountingObjective(Quadratic(0.0))
        counter([1.0])
        counter([0.5])
        counter([2.0])
        assert counter.evaluations == 3
        assert counter.best_value == 0.25
        np.testing.assert_array_equal(counter.best_point, [0.5])


class TestLocalStrategies:

    def test_nelder_mead_finds_minimum(self):
        objective = Quadratic()
        result = NelderMeadStrategy({'xatol': 1e-8, 'fatol': 1e-10}).minimize(objective, [0.9, 0.1])
        np.testing.assert_allclose(result.weights, [0.3, 0.3], atol=1e-4)
        assert result.converged
        assert result.evaluations == objective.calls
        assert result.algorithm_name == "Nelder-Mead"

    def test_nelder_mead_ignores_bounds(self):
        result = NelderMeadStrategy().minimize(Quadratic(2.0), [0.5], ([0.0], [1.0]))
        assert result.weights[0] == pytest.approx(2.0, abs=1e-3)

    def test_initial_simplex_steps(self):
        simplex = NelderMeadStrategy({'step_sizes': [0.1, 0.5]}).initial_simplex(np.array([1.0, 2.0]))
        np.testing.assert_allclose(simplex, [[1.0, 2.0], [1.1, 2.0], [1.0, 2.5]])

    @pytest.mark.parametrize("strategy_class", [PowellStrategy, COBYQAStrategy])
    def test_bounded_strategies_stay_in_bounds(self, strategy_class):
        objective = Quadratic(2.0)
        result = strategy_class().minimize(objective, [0.5, 0.5], ([0.0, 0.0], [1.0, 1.0]))
        assert np.all(result.weights >= -1e-9)
        assert np.all(result.weights <= 1.0 + 1e-9)
        np.testing.assert_allclose(result.weights, [1.0, 1.0], atol=1e-3)
        assert result.evaluations == objective.calls

    @pytest.mark.parametrize("strategy_class", [PowellStrategy, COBYQAStrategy])
    def test_bounded_strategies_find_interior_minimum(self, strategy_class):
        result = strategy_class().minimize(Quadratic(), [0.9, 0.9], ([0.0, 0.0], [1.0, 1.0]))
        np.testing.assert_allclose(result.weights, [0.3, 0.3], atol=1e-3)


class TestCMAES:

    def test_finds_minimum(self):
        objective = Quadratic()
        strategy = CMAESStrategy({'seed': 1, 'stop_fitness': 1e-8, 'max_evaluations': 5000})
        result = strategy.minimize(objective, [0.5, 0.5, 0.5], ([0, 0, 0], [1, 1, 1]))
        np.testing.assert_allclose(result.weights, [0.3, 0.3, 0.3], atol=1e-2)
        assert result.converged
        assert result.evaluations == objective.calls

    def test_respects_max_evaluations(self):
        objective = Quadratic()
        strategy = CMAESStrategy({'seed': 1, 'stop_fitness': -1.0, 'max_evaluations': 60,
                                  'population_size': 6})
        result = strategy.minimize(objective, [0.5, 0.5], ([0, 0], [1, 1]))
        assert result.evaluations <= 60
        assert not result.converged

    def test_one_dimensional_problem(self):
        strategy = CMAESStrategy({'seed': 2, 'stop_fitness': 1e-8, 'max_evaluations': 3000})
        result = strategy.minimize(Quadratic(), [0.9], ([0.0], [1.0]))
        assert result.weights.shape == (1,)
        assert result.weights[0] == pytest.approx(0.3, abs=1e-2)

    def test_seed_makes_runs_repeatable(self):
        params = {'seed': 5, 'max_evaluations': 200}
        a = CMAESStrategy(params).minimize(Quadratic(), [0.5, 0.5], ([0, 0], [1, 1]))
        b = CMAESStrategy(params).minimize(Quadratic(), [0.5, 0.5], ([0, 0], [1, 1]))
        assert a == b


class TestEvolutionary:

    def test_nsga2_approaches_minimum(self):
        objective = Quadratic()
        strategy = NSGA2Strategy({'population_size': 20, 'max_generations': 30, 'seed': 1})
        result = strategy.minimize(objective, [0.5, 0.5], ([0, 0], [1, 1]))
        assert result.objective_value < 1e-2
        assert result.evaluations == objective.calls
        assert result.converged

    def test_initial_point_is_in_population(self):
        strategy = NSGA2Strategy({'population_size': 5, 'seed': 3})
        bounds = (np.zeros(2), np.ones(2))
        population = strategy.initial_population(np.array([1.5, 0.25]), bounds)
        assert population.shape == (5, 2)
        np.testing.assert_array_equal(population[0], [1.0, 0.25])
        assert np.all((population >= 0) & (population <= 1))

    @pytest.mark.parametrize("strategy_class", [NSGA2Strategy, SPEA2Strategy, SMSEMOAStrategy])
    def test_each_algorithm_runs_on_single_objective(self, strategy_class):
        objective = Quadratic()
        strategy = strategy_class({'population_size': 12, 'max_generations': 15, 'seed': 2})
        result = strategy.minimize(objective, [0.9, 0.1], ([0, 0], [1, 1]))
        assert math.isfinite(result.objective_value)
        assert result.objective_value <= Quadratic()([0.9, 0.1])
        assert result.evaluations == objective.calls

    @pytest.mark.parametrize("strategy_class", [NSGA2Strategy, SPEA2Strategy, SMSEMOAStrategy])
    def test_each_algorithm_mixes_default_palette(self, strategy_class, palette):
        uniform = [1.0 / len(palette)] * len(palette)
        goal = Goal(palette, palette[0].lab, [SparsityPenalty(0.01, 1.0)], DeltaE2000())
        strategy = strategy_class({'population_size': 10, 'max_generations': 5, 'seed': 0})
        result = strategy.optimize(goal, uniform)
        assert math.isfinite(result.objective_value)
        assert result.objective_value <= goal.evaluate(uniform)
        assert len(result.weights) == len(palette)


class TestErrorHandling:

    def test_solver_failure_is_wrapped(self):
        calls = []

        def broken(x):
            calls.append(x)
            if len(calls) == 3:
                raise RuntimeError("boom")
            return 1.0

        with pytest.raises(MinimizerError) as excinfo:
            NelderMeadStrategy().minimize(broken, [0.5, 0.5])
        assert excinfo.value.evaluations == 3
        assert excinfo.value.algorithm == "Nelder-Mead"
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_own_errors_pass_through(self):
        def failing(x):
            raise SampleGenerationError(4, "inner batch failed")

        with pytest.raises(SampleGenerationError):
            PowellStrategy().minimize(failing, [0.5], ([0.0], [1.0]))


def test_cmaes_recovers_pure_pigment(red, blue):
    goal = Goal([red, blue], red.lab, [], DeltaE2000())
    strategy = CMAESStrategy({'seed': 0, 'max_evaluations': 2000})
    result = strategy.optimize(goal, [0.5, 0.5])
    proportions = ProportionsNormalizer().normalize(result.weights)
    assert proportions[0] > 0.9
    assert result.objective_value < 1.0


def test_optimize_checks_initial_size(red, blue):
    goal = Goal([red, blue], red.lab, [], DeltaE2000())
    with pytest.raises(ValueError):
        NelderMeadStrategy().optimize(goal, [1.0, 0.0, 0.0])
