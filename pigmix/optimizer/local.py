"""
无导数局部搜索（scipy.optimize.minimize）

- Nelder-Mead: 单纯形法，不支持边界（传入的边界被忽略）
- Powell: 共轭方向法，支持边界
- COBYQA: 二次模型信赖域法，支持边界
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.optimize import Bounds as ScipyBounds
from scipy.optimize import minimize

from pigmix.core.data_types import OptimizationResult
from .base import Bounds, CountingObjective, OptimizerStrategy
from .configs import COBYQAConfig, NelderMeadConfig, PowellConfig


def _scipy_bounds(bounds: Optional[Bounds]) -> Optional[ScipyBounds]:
    if bounds is None:
        return None
    return ScipyBounds(bounds[0], bounds[1])


class NelderMeadStrategy(OptimizerStrategy):
    """适合全局搜索之后的局部细化，低维问题上快速、稳健"""

    name = "Nelder-Mead"
    config_class = NelderMeadConfig

    def initial_simplex(self, x0: np.ndarray) -> np.ndarray:
        """x0 加上沿每个坐标轴偏移 step 的 N 个顶点"""
        config: NelderMeadConfig = self.config
        if config.step_sizes is not None:
            if len(config.step_sizes) != x0.size:
                raise ValueError(
                    f"step_sizes needs {x0.size} entries, got {len(config.step_sizes)}"
                )
            steps = np.asarray(config.step_sizes, dtype=np.float64)
        else:
            steps = np.full(x0.size, config.step_size)
        simplex = np.tile(x0, (x0.size + 1, 1))
        simplex[1:] += np.diag(steps)
        return simplex

    def _minimize(self, objective: CountingObjective, x0: np.ndarray,
                  bounds: Optional[Bounds]) -> OptimizationResult:
        config: NelderMeadConfig = self.config
        res = minimize(
            objective,
            x0,
            method='Nelder-Mead',
            options={
                'maxfev': config.max_evaluations,
                'xatol': config.xatol,
                'fatol': config.fatol,
                'adaptive': config.adaptive,
                'initial_simplex': self.initial_simplex(x0),
            },
        )
        return self._result(objective, res.x, res.fun, res.success)


class PowellStrategy(OptimizerStrategy):
    name = "Powell"
    config_class = PowellConfig

    def _minimize(self, objective: CountingObjective, x0: np.ndarray,
                  bounds: Optional[Bounds]) -> OptimizationResult:
        config: PowellConfig = self.config
        if bounds is not None:
            x0 = np.clip(x0, bounds[0], bounds[1])
        res = minimize(
            objective,
            x0,
            method='Powell',
            bounds=_scipy_bounds(bounds),
            options={
                'maxfev': config.max_evaluations,
                'xtol': config.xtol,
                'ftol': config.ftol,
            },
        )
        return self._result(objective, res.x, res.fun, res.success)


class COBYQAStrategy(OptimizerStrategy):
    """
    有界无导数信赖域法（BOBYQA 的后继算法）

    initial_trust_region_radius / final_trust_region_radius 控制信赖域的起止半径。
    """

    name = "COBYQA"
    config_class = COBYQAConfig

    def _minimize(self, objective: CountingObjective, x0: np.ndarray,
                  bounds: Optional[Bounds]) -> OptimizationResult:
        config: COBYQAConfig = self.config
        if bounds is not None:
            x0 = np.clip(x0, bounds[0], bounds[1])
        res = minimize(
            objective,
            x0,
            method='COBYQA',
            bounds=_scipy_bounds(bounds),
            options={
                'maxfev': config.max_evaluations,
                'initial_tr_radius': config.initial_trust_region_radius,
                'final_tr_radius': config.final_trust_region_radius,
            },
        )
        return self._result(objective, res.x, res.fun, res.success)
