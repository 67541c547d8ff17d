import numpy as np

from pigmix.core.exceptions import MinimizerError
from pigmix.evaluation import oracle
from pigmix.evaluation.oracle import ColorOracle
from pigmix.optimizer.base import OptimizerStrategy


class AlwaysFails(OptimizerStrategy):
    name = "Broken"

    def _minimize(self, objective, x0, bounds):
        raise MinimizerError(self.name, "no progress", 0)


def test_optimizer_failure_returns_initial_guess(monkeypatch, red, blue, yellow):
    monkeypatch.setattr(oracle, "create_optimizer", lambda name, params=None: AlwaysFails())
    weights = ColorOracle().predict_mixture(red.lab, palette=[red, blue, yellow])
    np.testing.assert_allclose(weights, [1 / 3] * 3)


def test_default_parameters_reach_the_optimizer(monkeypatch, red, blue):
    seen = {}

    def fake_create(name, params=None):
        seen['name'] = name
        seen['params'] = dict(params)
        return AlwaysFails()

    monkeypatch.setattr(oracle, "create_optimizer", fake_create)
    ColorOracle().predict_mixture(red.lab, palette=[red, blue])
    assert seen['name'] == "CMA-ES"
    assert seen['params'] == oracle.DEFAULT_ORACLE_PARAMETERS


def test_predicts_pure_pigment(red, blue, yellow):
    weights = ColorOracle().predict_mixture(
        red.lab, palette=[red, blue, yellow],
        parameters={'seed': 0, 'max_evaluations': 1500, 'sigma': 0.2},
    )
    assert weights.shape == (3,)
    assert int(np.argmax(weights)) == 0


def test_similarity_guess_with_local_optimizer(red, blue, yellow):
    weights = ColorOracle().predict_mixture(
        blue.lab, palette=[red, blue, yellow], optimizer_name="Nelder-Mead",
        initial_guess="Similarity", include_sparsity_penalty=False,
        parameters={'max_evaluations': 300},
    )
    assert int(np.argmax(weights)) == 1
