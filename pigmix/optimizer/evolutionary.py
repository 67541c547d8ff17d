"""
多目标进化算法（pymoo）应用于单一目标

NSGA-II / SPEA2 / SMS-EMOA 共用同一套包装：
- 问题定义为 ElementwiseProblem，F = objective(x)
- 初始种群 = 初始点（裁剪到边界内）+ 边界内均匀随机个体
- 终止条件：max_generations 代，或（若配置）max_evaluations 次评估，先到先停
- 结果取非支配集中目标值最小的个体
- SMS-EMOA 的超体积生存要求至少两个目标，单目标时改用按适应度排序的生存策略
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from pymoo.algorithms.moo.nsga2 import NSGA2
from pymoo.algorithms.moo.sms import SMSEMOA
from pymoo.algorithms.moo.spea2 import SPEA2
from pymoo.algorithms.soo.nonconvex.ga import FitnessSurvival
from pymoo.core.problem import ElementwiseProblem
from pymoo.core.termination import TerminateIfAny
from pymoo.optimize import minimize
from pymoo.termination import get_termination

from pigmix.core.data_types import OptimizationResult
from .base import Bounds, CountingObjective, OptimizerStrategy, default_bounds
from .configs import EvolutionaryConfig


class _ObjectiveProblem(ElementwiseProblem):

    def __init__(self, objective: CountingObjective, lower: np.ndarray, upper: np.ndarray):
        super().__init__(n_var=lower.size, n_obj=1, xl=lower, xu=upper)
        self.objective = objective

    def _evaluate(self, x, out, *args, **kwargs):
        out["F"] = [self.objective(x)]


class EvolutionaryStrategy(OptimizerStrategy):
    """pymoo 进化算法基类，子类只需提供 algorithm_class"""

    config_class = EvolutionaryConfig
    algorithm_class = None

    def initial_population(self, x0: np.ndarray, bounds: Bounds) -> np.ndarray:
        config: EvolutionaryConfig = self.config
        lower, upper = bounds
        pop_size = max(1, config.population_size)
        rng = np.random.default_rng(config.seed)
        population = rng.uniform(lower, upper, size=(pop_size, x0.size))
        population[0] = np.clip(x0, lower, upper)
        return population

    def algorithm_options(self) -> dict:
        return {}

    def _termination(self):
        config: EvolutionaryConfig = self.config
        by_generation = get_termination("n_gen", max(1, config.max_generations))
        if config.max_evaluations is None:
            return by_generation
        return TerminateIfAny(by_generation, get_termination("n_eval", max(1, config.max_evaluations)))

    def _minimize(self, objective: CountingObjective, x0: np.ndarray,
                  bounds: Optional[Bounds]) -> OptimizationResult:
        config: EvolutionaryConfig = self.config
        if bounds is None:
            bounds = default_bounds(x0.size)

        problem = _ObjectiveProblem(objective, bounds[0], bounds[1])
        population = self.initial_population(x0, bounds)
        algorithm = self.algorithm_class(pop_size=population.shape[0], sampling=population,
                                         **self.algorithm_options())

        res = minimize(problem, algorithm, self._termination(), seed=config.seed, verbose=False)

        if res.X is None:
            return self._result(objective, objective.best_point, objective.best_value, False)

        xs = np.atleast_2d(res.X)
        fs = np.atleast_2d(res.F)
        if fs.shape[0] != xs.shape[0]:
            fs = fs.reshape(xs.shape[0], -1)
        best = int(np.argmin(fs[:, 0]))
        return self._result(objective, xs[best], fs[best, 0], True)


class NSGA2Strategy(EvolutionaryStrategy):
    name = "NSGA-II"
    algorithm_class = NSGA2


class SPEA2Strategy(EvolutionaryStrategy):
    name = "SPEA2"
    algorithm_class = SPEA2


class SMSEMOAStrategy(EvolutionaryStrategy):
    name = "SMS-EMOA"
    algorithm_class = SMSEMOA

    def algorithm_options(self) -> dict:
        # 单目标下超体积无定义
        return {"survival": FitnessSurvival()}
