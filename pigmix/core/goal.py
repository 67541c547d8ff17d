"""
Goal：优化器唯一可以调用的目标函数

evaluate(weights):
1. 长度校验
2. 归一化
3. 混色
4. 基础误差（混合色与目标的距离）
5. 加上各项惩罚

纯函数，无副作用。
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .color_science import LabColor, MixingError
from .data_types import Pigment, check_weights_size
from .mixer import ColorMixer, MixboxColorMixer
from .normalizer import Normalizer, ProportionsNormalizer
from .penalty import Penalty


class Goal:

    def __init__(self,
                 palette: Sequence[Pigment],
                 target: LabColor,
                 penalties: Sequence[Penalty],
                 mixing_error: MixingError,
                 normalizer: Optional[Normalizer] = None,
                 color_mixer: Optional[ColorMixer] = None):
        self.palette = tuple(palette)
        self.target = LabColor(*target)
        self.penalties = tuple(penalties)
        self.mixing_error = mixing_error
        self.normalizer = normalizer if normalizer is not None else ProportionsNormalizer()
        self.color_mixer = color_mixer if color_mixer is not None else MixboxColorMixer()

    @property
    def dimensions(self) -> int:
        return len(self.palette)

    def mix(self, weights: Sequence[float]) -> LabColor:
        """归一化后混色，返回混合颜色"""
        check_weights_size(weights, self.palette)
        return self.color_mixer.mix_colors(self.normalizer.normalize(weights), self.palette)

    def evaluate(self, weights: Sequence[float]) -> float:
        check_weights_size(weights, self.palette)

        normalized = self.normalizer.normalize(np.asarray(weights, dtype=np.float64))
        mixed = self.color_mixer.mix_colors(normalized, self.palette)

        total = self.mixing_error.calculate(mixed, self.target)
        for penalty in self.penalties:
            total += penalty.calculate(normalized)

        return float(total)

    __call__ = evaluate
