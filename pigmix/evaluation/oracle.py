"""
单次预测：给定目标颜色，返回调色板上的混合权重
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from pigmix.core.color_science import LabColor, create_mixing_error
from pigmix.core.data_types import Pigment
from pigmix.core.exceptions import MinimizerError
from pigmix.core.goal import Goal
from pigmix.core.initial_guess import create_initial_guess_generator
from pigmix.core.mixer import MixboxColorMixer
from pigmix.core.normalizer import ProportionsNormalizer
from pigmix.core.penalty import SparsityPenalty
from pigmix.optimizer.factory import create_optimizer
from pigmix.utils.debug_logger import warning
from pigmix.utils.palette_loader import default_palette


DEFAULT_ORACLE_PARAMETERS: Dict[str, Any] = {
    'population_multiplier': 12,
    'sigma': 0.2,
    'diagonal_only': 12,
    'stop_fitness': 0.002,
}

ORACLE_SPARSITY_THRESHOLD = 0.01
ORACLE_SPARSITY_PENALTY = 20.0


class ColorOracle:

    def predict_mixture(self,
                        target: LabColor,
                        palette: Optional[Sequence[Pigment]] = None,
                        optimizer_name: str = "CMA-ES",
                        error_name: str = "DeltaE2000",
                        include_sparsity_penalty: bool = True,
                        initial_guess: str = "Uniform",
                        parameters: Optional[Mapping[str, Any]] = None) -> np.ndarray:
        """
        预测目标颜色的混合权重

        Args:
            target: 目标 Lab 颜色
            palette: 调色板，默认内置调色板
            optimizer_name: 优化算法名称
            error_name: 感知误差名称
            include_sparsity_penalty: 是否加入稀疏惩罚（每种活跃颜料 20）
            initial_guess: 初始猜测类型
            parameters: 优化器参数表，默认 DEFAULT_ORACLE_PARAMETERS

        Returns:
            长度等于调色板的原始（未归一化）权重；优化器失败时返回初始猜测
        """
        palette = list(palette) if palette is not None else list(default_palette())
        target = LabColor(*target)

        penalties = []
        if include_sparsity_penalty:
            penalties.append(SparsityPenalty(ORACLE_SPARSITY_THRESHOLD, ORACLE_SPARSITY_PENALTY))

        goal = Goal(palette, target, penalties, create_mixing_error(error_name),
                    ProportionsNormalizer(), MixboxColorMixer())

        guess = create_initial_guess_generator(initial_guess, palette, target).generate(len(palette))

        strategy = create_optimizer(
            optimizer_name,
            DEFAULT_ORACLE_PARAMETERS if parameters is None else parameters,
        )
        try:
            result = strategy.optimize(goal, guess)
        except MinimizerError as exc:
            warning(f"Prediction fell back to the initial guess: {exc}", "oracle")
            return guess
        return np.array(result.weights)
