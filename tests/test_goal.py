import numpy as np
import pytest

from pigmix.core.color_science import DeltaE2000, DeltaE76
from pigmix.core.exceptions import UnknownStrategyError
from pigmix.core.goal import Goal
from pigmix.core.initial_guess import (
    RandomInitialGuessGenerator,
    SimilarityInitialGuessGenerator,
    UniformInitialGuessGenerator,
    create_initial_guess_generator,
)
from pigmix.core.normalizer import ProportionsNormalizer, SoftmaxNormalizer, create_normalizer
from pigmix.core.penalty import (
    L1RegularizationPenalty,
    L2RegularizationPenalty,
    SimilarityPenalty,
    SparsityPenalty,
)


class TestNormalizers:

    def test_proportions_sum_to_one(self):
        result = ProportionsNormalizer().normalize([2.0, 1.0, 1.0])
        np.testing.assert_allclose(result, [0.5, 0.25, 0.25])

    def test_negative_weights_are_clipped(self):
        result = ProportionsNormalizer().normalize([-1.0, 3.0])
        np.testing.assert_allclose(result, [0.0, 1.0])

    @pytest.mark.parametrize("weights", [[0.0, 0.0, 0.0, 0.0], [-1.0, -2.0, 0.0, -0.5]])
    def test_zero_total_falls_back_to_uniform(self, weights):
        np.testing.assert_allclose(ProportionsNormalizer().normalize(weights), [0.25] * 4)

    def test_softmax(self):
        result = SoftmaxNormalizer().normalize([0.0, np.log(3.0)])
        np.testing.assert_allclose(result, [0.25, 0.75])

    def test_softmax_large_values_do_not_overflow(self):
        result = SoftmaxNormalizer().normalize([1000.0, 1000.0])
        np.testing.assert_allclose(result, [0.5, 0.5])

    def test_factory(self):
        assert isinstance(create_normalizer("Proportions"), ProportionsNormalizer)
        assert isinstance(create_normalizer("Softmax"), SoftmaxNormalizer)
        with pytest.raises(UnknownStrategyError):
            create_normalizer("MinMax")


class TestPenalties:

    def test_sparsity_counts_active_colors(self):
        penalty = SparsityPenalty(threshold=0.01, penalty_per_color=2.5)
        assert penalty.calculate([0.5, 0.3, 0.2, 0.005, 0.0]) == pytest.approx(7.5)

    def test_similarity_requires_both_above_threshold(self):
        penalty = SimilarityPenalty([(0, 1)], threshold=0.1, penalty_per_pair=3.0)
        assert penalty.calculate([0.5, 0.5, 0.0]) == 3.0
        assert penalty.calculate([0.9, 0.05, 0.05]) == 0.0

    def test_similarity_ignores_out_of_range_pairs(self):
        penalty = SimilarityPenalty([(0, 1), (2, 7)], threshold=0.1)
        assert penalty.calculate([0.5, 0.5, 0.0]) == 1.0

    def test_regularization(self):
        assert L1RegularizationPenalty(0.5).calculate([0.2, -0.4]) == pytest.approx(0.3)
        assert L2RegularizationPenalty(2.0).calculate([0.5, 0.5]) == pytest.approx(1.0)

    def test_name_is_class_name(self):
        assert SparsityPenalty().name == "SparsityPenalty"


class TestGoal:

    def test_pure_pigment_hits_its_own_color(self, red, blue):
        goal = Goal([red, blue], red.lab, [], DeltaE2000())
        assert goal.evaluate([1.0, 0.0]) == pytest.approx(0.0, abs=1e-9)

    def test_penalties_are_added(self, red, blue):
        goal = Goal([red, blue], red.lab, [SparsityPenalty(0.01, 1.0)], DeltaE2000())
        assert goal.evaluate([1.0, 0.0]) == pytest.approx(1.0, abs=1e-9)

    def test_penalty_sees_normalized_weights(self, red, blue):
        goal = Goal([red, blue], red.lab, [L1RegularizationPenalty(1.0)], DeltaE76())
        # 归一化后 L1 恒为 1
        assert goal.evaluate([5.0, 0.0]) == pytest.approx(1.0, abs=1e-9)

    def test_deterministic(self, palette):
        target = palette[2].lab
        goal = Goal(palette, target, [SparsityPenalty()], DeltaE2000())
        weights = np.linspace(0.1, 1.0, len(palette))
        assert goal.evaluate(weights) == goal.evaluate(weights)
        assert goal(weights) == goal.evaluate(weights)

    def test_size_mismatch_rejected(self, red, blue):
        goal = Goal([red, blue], red.lab, [], DeltaE2000())
        with pytest.raises(ValueError):
            goal.evaluate([1.0, 0.0, 0.0])

    def test_mix_and_dimensions(self, red, blue):
        goal = Goal([red, blue], blue.lab, [], DeltaE2000())
        assert goal.dimensions == 2
        assert goal.mix([0.0, 3.0]) == blue.lab


class TestInitialGuess:

    def test_uniform(self):
        np.testing.assert_allclose(UniformInitialGuessGenerator().generate(4), [0.25] * 4)

    def test_random_is_seeded_and_normalized(self):
        a = RandomInitialGuessGenerator(seed=3).generate(5)
        b = RandomInitialGuessGenerator(seed=3).generate(5)
        np.testing.assert_array_equal(a, b)
        assert a.sum() == pytest.approx(1.0)
        assert (a >= 0).all()

    def test_similarity_favors_closest_pigment(self, red, blue, yellow):
        generator = SimilarityInitialGuessGenerator([red, blue, yellow], blue.lab)
        np.testing.assert_allclose(generator.generate(3), [0.25, 0.5, 0.25])

    def test_similarity_single_pigment(self, red):
        np.testing.assert_allclose(SimilarityInitialGuessGenerator([red], red.lab).generate(1), [1.0])

    def test_similarity_rejects_empty_palette(self, red):
        with pytest.raises(ValueError):
            SimilarityInitialGuessGenerator([], red.lab)

    def test_factory(self, red, blue):
        palette = [red, blue]
        assert isinstance(create_initial_guess_generator("Uniform", palette, red.lab),
                          UniformInitialGuessGenerator)
        assert isinstance(create_initial_guess_generator("Similarity", palette, red.lab),
                          SimilarityInitialGuessGenerator)
        with pytest.raises(UnknownStrategyError):
            create_initial_guess_generator("Zeros", palette, red.lab)
