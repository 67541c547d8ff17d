"""
两阶段混合策略：全局搜索 → 局部细化
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import numpy as np

from pigmix.core.data_types import OptimizationResult
from pigmix.core.exceptions import MinimizerError
from pigmix.utils.debug_logger import debug, warning
from .base import Bounds, CountingObjective, OptimizerStrategy
from .configs import HybridConfig


class HybridStrategy(OptimizerStrategy):
    """
    先运行全局策略（默认 CMA-ES），视结果决定是否用局部策略（默认 Nelder-Mead）细化。

    1. 全局结果 <= converged_threshold：直接返回，标记为已收敛
    2. 全局结果 < refine_threshold：从全局最优点出发运行局部策略；局部失败则回退到全局结果
    3. 返回两者中目标值较小者，评估次数为实际运行各阶段之和

    名称标记参与结果的阶段：只有全局阶段时为全局策略名，局部结果被采用时为 "全局+局部"。
    同一参数表同时传给两个阶段，各自忽略不认识的键。
    """

    name = "Hybrid"
    config_class = HybridConfig

    def __init__(self, params: Optional[Mapping[str, Any]] = None,
                 global_strategy: Optional[OptimizerStrategy] = None,
                 local_strategy: Optional[OptimizerStrategy] = None):
        super().__init__(params)
        config: HybridConfig = self.config
        if self.name in (config.global_optimizer, config.local_optimizer):
            raise ValueError("Hybrid stages cannot themselves be Hybrid")
        if global_strategy is None or local_strategy is None:
            # 延迟导入，避免与 factory 循环依赖
            from .factory import create_optimizer
            if global_strategy is None:
                global_strategy = create_optimizer(config.global_optimizer, self.params)
            if local_strategy is None:
                local_strategy = create_optimizer(config.local_optimizer, self.params)
        self.global_strategy = global_strategy
        self.local_strategy = local_strategy

    def _minimize(self, objective: CountingObjective, x0: np.ndarray,
                  bounds: Optional[Bounds]) -> OptimizationResult:
        config: HybridConfig = self.config

        global_result = self.global_strategy.minimize(objective, x0, bounds)
        global_label = global_result.algorithm_name
        debug(f"Global stage {global_label}: value={global_result.objective_value:.6g}, "
              f"evaluations={global_result.evaluations}", "hybrid")

        if global_result.objective_value <= config.converged_threshold:
            return global_result.with_changes(converged=True, algorithm_name=global_label)

        if not global_result.objective_value < config.refine_threshold:
            debug(f"Skipping local stage: {global_result.objective_value:.6g} >= "
                  f"refine threshold {config.refine_threshold}", "hybrid")
            return global_result.with_changes(algorithm_name=global_label)

        try:
            local_result = self.local_strategy.minimize(objective, global_result.weights, bounds)
        except MinimizerError as exc:
            warning(f"Local stage failed, keeping global result: {exc}", "hybrid")
            return global_result.with_changes(
                evaluations=global_result.evaluations + exc.evaluations,
                algorithm_name=global_label,
            )

        total_evaluations = global_result.evaluations + local_result.evaluations
        debug(f"Local stage {local_result.algorithm_name}: value={local_result.objective_value:.6g}, "
              f"evaluations={local_result.evaluations}", "hybrid")

        if local_result.objective_value < global_result.objective_value:
            return local_result.with_changes(
                evaluations=total_evaluations,
                converged=(local_result.converged
                           or local_result.objective_value <= config.converged_threshold),
                algorithm_name=f"{global_label}+{local_result.algorithm_name}",
            )
        return global_result.with_changes(evaluations=total_evaluations, algorithm_name=global_label)
