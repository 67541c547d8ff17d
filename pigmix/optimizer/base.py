"""
优化策略的统一接口

- minimize(objective, initial, bounds): 黑盒最小化契约，内外两层搜索共用
- optimize(goal, initial_weights, bounds): 在 Goal 上运行 minimize，默认边界 [0, 1]

评估次数在目标函数边界处精确计数（CountingObjective），与底层库自己的统计无关。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

import numpy as np

from pigmix.core.data_types import OptimizationResult, check_weights_size
from pigmix.core.exceptions import MinimizerError, PigmixError
from pigmix.core.goal import Goal


Bounds = Tuple[np.ndarray, np.ndarray]
Objective = Callable[[np.ndarray], float]


def default_bounds(dimensions: int) -> Bounds:
    return np.zeros(dimensions), np.ones(dimensions)


def as_bounds(bounds: Optional[Tuple[Sequence[float], Sequence[float]]],
              dimensions: int) -> Optional[Bounds]:
    if bounds is None:
        return None
    lower = np.asarray(bounds[0], dtype=np.float64)
    upper = np.asarray(bounds[1], dtype=np.float64)
    if lower.shape != (dimensions,) or upper.shape != (dimensions,):
        raise ValueError(
            f"Bounds must have {dimensions} entries, got {lower.shape} and {upper.shape}"
        )
    if np.any(lower > upper):
        raise ValueError("Lower bounds must not exceed upper bounds")
    return lower, upper


class CountingObjective:
    """包装目标函数：统计调用次数，并记录目前为止最好的点"""

    def __init__(self, func: Objective):
        self.func = func
        self.evaluations = 0
        self.best_point: Optional[np.ndarray] = None
        self.best_value = float('inf')

    def __call__(self, x: Sequence[float]) -> float:
        point = np.array(x, dtype=np.float64)
        self.evaluations += 1
        value = float(self.func(point))
        if value < self.best_value:
            self.best_value = value
            self.best_point = point
        return value


class OptimizerStrategy(ABC):
    """
    可插拔的黑盒最小化策略

    Args:
        params: 字符串键参数表，构造时由 config_class.from_params 解析一次
    """

    name: str = ""
    config_class: Any = None

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        self.params = dict(params or {})
        self.config = self.config_class.from_params(self.params) if self.config_class else None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config!r})"

    def optimize(self, goal: Goal, initial_weights: Sequence[float],
                 bounds: Optional[Tuple[Sequence[float], Sequence[float]]] = None) -> OptimizationResult:
        """
        从初始权重出发最小化 Goal

        Args:
            goal: 目标函数
            initial_weights: 初始权重，长度必须等于调色板长度
            bounds: (lower, upper)，缺省为每维 [0, 1]

        Returns:
            OptimizationResult
        """
        initial = np.asarray(initial_weights, dtype=np.float64)
        check_weights_size(initial, goal.palette)
        if bounds is None:
            bounds = default_bounds(initial.size)
        return self.minimize(goal.evaluate, initial, bounds)

    def minimize(self, objective: Objective, initial: Sequence[float],
                 bounds: Optional[Tuple[Sequence[float], Sequence[float]]] = None) -> OptimizationResult:
        """
        黑盒最小化

        Raises:
            MinimizerError: 底层求解器内部失败（原异常链接在 __cause__ 上）
        """
        x0 = np.asarray(initial, dtype=np.float64)
        resolved_bounds = as_bounds(bounds, x0.size)
        counter = CountingObjective(objective)
        try:
            return self._minimize(counter, x0, resolved_bounds)
        except PigmixError:
            raise
        except Exception as exc:
            raise MinimizerError(self.name, str(exc), counter.evaluations) from exc

    @abstractmethod
    def _minimize(self, objective: CountingObjective, x0: np.ndarray,
                  bounds: Optional[Bounds]) -> OptimizationResult:
        ...

    def _result(self, objective: CountingObjective, point: Sequence[float], value: float,
                converged: bool) -> OptimizationResult:
        return OptimizationResult(
            weights=np.asarray(point, dtype=np.float64),
            objective_value=float(value),
            evaluations=objective.evaluations,
            converged=bool(converged),
            algorithm_name=self.name,
        )
