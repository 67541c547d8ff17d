#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
双层超参数搜索

外层把内层优化器的参数当作连续向量来优化：
- 对候选向量 x 逐维应用 transform，得到内层参数表
- 用该参数表构建内层策略，在一批训练条目上运行
- 目标值 = 批次上目标颜色与结果颜色的平均 CIEDE2000

两种外层后端共用同一个黑盒最小化接口：
- optimize(): CMA-ES，原生支持边界
- optimize_with_nelder_mead(): Nelder-Mead，不支持边界；越界候选直接返回哨兵值
  （不触发内层批次），结束时先把结果裁剪到边界内再做 transform
"""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from pigmix.core.data_types import HyperparameterConfig, HyperparameterSample, TrainingItem
from pigmix.evaluation.samples import SampleSettings, SamplesGenerator, mean_error
from pigmix.optimizer.cmaes import CMAESStrategy
from pigmix.optimizer.local import NelderMeadStrategy
from pigmix.utils.debug_logger import debug, info
from .search_space import get_search_space


SENTINEL_FITNESS = sys.float_info.max / 2.0


def resolve_parameters(hyperparameters: Sequence[HyperparameterConfig],
                       x: Sequence[float]) -> Dict[str, Any]:
    """连续值 → 内层参数表（键顺序与 hyperparameters 一致）"""
    return {config.name: config.resolve(float(x[i])) for i, config in enumerate(hyperparameters)}


class HyperparameterObjective:
    """
    外层目标函数：每次调用运行一个完整的内层批次

    Attributes:
        batch_runs: 已运行的内层批次数
        inner_evaluations: 所有批次中内层 Goal 评估次数之和
        history: 每次调用对应一个 HyperparameterSample
    """

    def __init__(self,
                 items: Sequence[TrainingItem],
                 inner_optimizer_name: str,
                 hyperparameters: Sequence[HyperparameterConfig],
                 settings: Optional[SampleSettings] = None,
                 generator: Optional[SamplesGenerator] = None,
                 output_dir: Optional[Union[str, Path]] = None):
        self.items = list(items)
        self.inner_optimizer_name = inner_optimizer_name
        self.hyperparameters = list(hyperparameters)
        self.settings = settings if settings is not None else SampleSettings()
        self.generator = generator if generator is not None else SamplesGenerator()
        self.output_dir = Path(output_dir) if output_dir is not None else None

        self.batch_runs = 0
        self.inner_evaluations = 0
        self.history: List[HyperparameterSample] = []

    def evaluate(self, x: Sequence[float]) -> float:
        params = resolve_parameters(self.hyperparameters, x)
        settings = replace(self.settings, optimizer_name=self.inner_optimizer_name, parameters=params)

        output_path = None
        if self.output_dir is not None:
            output_path = self.output_dir / f"{self.inner_optimizer_name}-run-{self.batch_runs:04d}.csv"

        outcomes = self.generator.generate(self.items, settings, output_path)
        batch_evaluations = sum(o.result.evaluations for o in outcomes)
        error = mean_error(outcomes)

        self.batch_runs += 1
        self.inner_evaluations += batch_evaluations
        self.history.append(HyperparameterSample(
            optimizer_name=self.inner_optimizer_name,
            parameters=params,
            mean_error=error,
            outer_evaluations=self.batch_runs,
            inner_evaluations=batch_evaluations,
        ))
        info(f"Batch {self.batch_runs}: {params} -> mean error {error:.4f} "
             f"({batch_evaluations} inner evaluations)", "hyperparameter")
        return error

    __call__ = evaluate


class BoundsPenaltyObjective:
    """越界候选返回 SENTINEL_FITNESS，不调用被包装的目标函数"""

    def __init__(self, objective, hyperparameters: Sequence[HyperparameterConfig]):
        self.objective = objective
        self.hyperparameters = list(hyperparameters)
        self.sentinel_hits = 0

    def __call__(self, x: Sequence[float]) -> float:
        if not all(config.in_bounds(float(x[i])) for i, config in enumerate(self.hyperparameters)):
            self.sentinel_hits += 1
            debug(f"Candidate {list(map(float, x))} out of bounds, sentinel fitness", "hyperparameter")
            return SENTINEL_FITNESS
        return self.objective(x)


class HyperparameterSearch:
    """
    为指定内层算法寻找最优参数

    Args:
        items: 训练条目（每次外层评估都在其前 num_samples 条上运行）
        inner_optimizer_name: 内层算法名称
        hyperparameters: 搜索空间；缺省时使用该算法的内置/配置搜索空间
        num_samples: 每批条目数
        settings: 内层批次的其余配置（误差、惩罚、初始猜测）
        generator: 批量样本生成器
        output_dir: 若给定，每批结果写入该目录
    """

    def __init__(self,
                 items: Sequence[TrainingItem],
                 inner_optimizer_name: str,
                 hyperparameters: Optional[Sequence[HyperparameterConfig]] = None,
                 num_samples: int = 100,
                 settings: Optional[SampleSettings] = None,
                 generator: Optional[SamplesGenerator] = None,
                 output_dir: Optional[Union[str, Path]] = None):
        self.items = list(items)
        self.inner_optimizer_name = inner_optimizer_name
        self.hyperparameters = list(hyperparameters) if hyperparameters is not None \
            else get_search_space(inner_optimizer_name)
        if not self.hyperparameters:
            raise ValueError("At least one hyperparameter is required")
        base_settings = settings if settings is not None else SampleSettings()
        self.settings = replace(base_settings, num_samples=num_samples)
        self.generator = generator
        self.output_dir = output_dir
        self.last_objective: Optional[HyperparameterObjective] = None

    def _objective(self) -> HyperparameterObjective:
        self.last_objective = HyperparameterObjective(
            self.items, self.inner_optimizer_name, self.hyperparameters,
            self.settings, self.generator, self.output_dir,
        )
        return self.last_objective

    def _arrays(self):
        initial = np.array([c.initial_value for c in self.hyperparameters], dtype=np.float64)
        lower = np.array([c.lower_bound for c in self.hyperparameters], dtype=np.float64)
        upper = np.array([c.upper_bound for c in self.hyperparameters], dtype=np.float64)
        return initial, lower, upper

    def _sample(self, x: Sequence[float], value: float, outer_evaluations: int,
                objective: HyperparameterObjective) -> HyperparameterSample:
        clamped = [c.clamp(x[i]) for i, c in enumerate(self.hyperparameters)]
        return HyperparameterSample(
            optimizer_name=self.inner_optimizer_name,
            parameters=resolve_parameters(self.hyperparameters, clamped),
            mean_error=float(value),
            outer_evaluations=outer_evaluations,
            inner_evaluations=objective.inner_evaluations,
        )

    def optimize(self, max_evaluations: int = 300, population_size: int = 20,
                 seed: Optional[int] = None) -> HyperparameterSample:
        """
        CMA-ES 外层搜索，每维探索尺度取各自的 sigma

        lower == upper 的维度固定在该值，不进入 CMA-ES 的搜索向量；
        全部固定时只评估一次。
        """
        objective = self._objective()
        initial, lower, upper = self._arrays()
        free = upper > lower

        if not free.any():
            value = objective(initial)
            return self._sample(initial, value, 1, objective)

        def on_free_dimensions(x_free):
            x = initial.copy()
            x[free] = x_free
            return objective(x)

        outer = CMAESStrategy({
            'max_evaluations': max_evaluations,
            'stop_fitness': 0.0,
            'population_size': population_size,
            'sigma': 1.0,
            'stds': [c.sigma for c, f in zip(self.hyperparameters, free) if f],
            'diagonal_only': 5,
            'seed': seed,
        })
        info(f"Tuning {self.inner_optimizer_name} with CMA-ES over "
             f"{[c.name for c, f in zip(self.hyperparameters, free) if f]}", "hyperparameter")
        result = outer.minimize(on_free_dimensions, initial[free], (lower[free], upper[free]))

        x = initial.copy()
        x[free] = result.weights
        return self._sample(x, result.objective_value, result.evaluations, objective)

    def optimize_with_nelder_mead(self, max_evaluations: int = 1000,
                                  xatol: float = 1e-6,
                                  fatol: float = 1e-6) -> HyperparameterSample:
        """Nelder-Mead 外层搜索，初始单纯形步长为各维范围的 10%"""
        objective = self._objective()
        initial, lower, upper = self._arrays()
        span = upper - lower
        steps = np.where(span > 0, span * 0.1, 1e-6)

        bounded = BoundsPenaltyObjective(objective, self.hyperparameters)
        outer = NelderMeadStrategy({
            'max_evaluations': max_evaluations,
            'step_sizes': steps.tolist(),
            'xatol': xatol,
            'fatol': fatol,
        })
        info(f"Tuning {self.inner_optimizer_name} with Nelder-Mead over "
             f"{[c.name for c in self.hyperparameters]}", "hyperparameter")
        result = outer.minimize(bounded, initial, None)
        info(f"Nelder-Mead finished: {result.evaluations} outer evaluations, "
             f"{bounded.sentinel_hits} out of bounds", "hyperparameter")
        return self._sample(result.weights, result.objective_value, result.evaluations, objective)
