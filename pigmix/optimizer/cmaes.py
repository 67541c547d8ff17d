"""
CMA-ES 全局随机搜索（cma 库的 ask/tell 循环）
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

import cma
import numpy as np

from pigmix.core.data_types import OptimizationResult
from .base import Bounds, CountingObjective, OptimizerStrategy
from .configs import CMAESConfig


class CMAESStrategy(OptimizerStrategy):
    """
    CMA-ES（协方差矩阵自适应进化策略）

    适合非凸、带噪声的目标，常作为局部细化之前的全局探索。
    原生支持边界约束；converged 表示最终值低于 stop_fitness。
    """

    name = "CMA-ES"
    config_class = CMAESConfig

    @staticmethod
    def _options(config: CMAESConfig, dimensions: int, bounds: Optional[Bounds]) -> dict:
        opts = {
            'maxfevals': config.max_evaluations,
            'ftarget': config.stop_fitness,
            'popsize': config.popsize(dimensions),
            'CMA_diagonal': config.diagonal_only,
            'CMA_active': config.active,
            'verbose': -9,
            'verb_disp': 0,
            'verb_log': 0,
        }
        if bounds is not None:
            opts['bounds'] = [bounds[0].tolist(), bounds[1].tolist()]
        if config.stds is not None:
            stds = list(config.stds)
            if len(stds) != dimensions:
                raise ValueError(f"stds needs {dimensions} entries, got {len(stds)}")
            opts['CMA_stds'] = stds
        if config.seed is not None:
            opts['seed'] = config.seed
        return opts

    def _minimize(self, objective: CountingObjective, x0: np.ndarray,
                  bounds: Optional[Bounds]) -> OptimizationResult:
        config: CMAESConfig = self.config

        # cma 不支持一维问题：补一个目标函数忽略的哑变量
        padded = x0.size == 1
        if padded:
            x0 = np.append(x0, 0.5)
            if bounds is not None:
                bounds = (np.append(bounds[0], 0.0), np.append(bounds[1], 1.0))
            if config.stds is not None:
                config = replace(config, stds=config.stds + (1.0,))

        def evaluate(x):
            return objective(x[:1] if padded else x)

        opts = self._options(config, x0.size, bounds)
        es = cma.CMAEvolutionStrategy(x0.tolist(), config.sigma, opts)
        while not es.stop():
            xs = es.ask()
            fs = [evaluate(np.asarray(x)) for x in xs]
            es.tell(xs, fs)

        res = es.result
        if res.xbest is None:
            point, value = objective.best_point, objective.best_value
        else:
            point = np.asarray(res.xbest, dtype=np.float64)
            value = float(res.fbest)
            if padded:
                point = point[:1]

        return self._result(objective, point, value, value < config.stop_fitness)
