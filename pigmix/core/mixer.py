"""
混色器：权重向量 + 调色板 → 单一混合颜色

- MixboxColorMixer: 基于 Mixbox 的颜料（减色）混合，按权重降序两两混合
- LabBlendColorMixer: Lab 空间线性加权平均，用于对照与测试
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

import mixbox

from .color_science import NEUTRAL_GRAY_RGB, LabColor
from .data_types import Pigment, check_weights_size
from .exceptions import UnknownStrategyError


class ColorMixer(ABC):
    """纯函数：相同输入总是得到相同输出"""

    name: str = ""

    @abstractmethod
    def mix_colors(self, weights: Sequence[float], palette: Sequence[Pigment]) -> LabColor:
        ...


def _neutral_gray() -> LabColor:
    return LabColor.from_rgb(*NEUTRAL_GRAY_RGB)


class MixboxColorMixer(ColorMixer):
    """
    Mixbox 颜料混合。

    低于阈值的贡献被忽略；其余按权重严格降序迭代混合:
    t = w_next / (running_total + w_next)。
    Mixbox 的 lerp 不满足结合律，顺序改变结果也会改变。
    """

    name = "Mixbox"

    def __init__(self, threshold: float = 0.1):
        self.threshold = threshold

    def mix_colors(self, weights: Sequence[float], palette: Sequence[Pigment]) -> LabColor:
        check_weights_size(weights, palette)

        if len(palette) == 0:
            return _neutral_gray()

        weighted: List[Tuple[LabColor, float]] = [
            (pigment.lab, float(weight))
            for pigment, weight in zip(palette, weights)
            if weight > self.threshold
        ]
        # sorted() 是稳定的，同权重保持调色板顺序
        weighted.sort(key=lambda item: item[1], reverse=True)

        if not weighted:
            return _neutral_gray()

        if len(weighted) == 1:
            return weighted[0][0]

        mixed_rgb = weighted[0][0].to_rgb()
        total_weight = weighted[0][1]

        for lab, weight in weighted[1:]:
            t = weight / (total_weight + weight)
            mixed_rgb = tuple(mixbox.lerp(mixed_rgb, lab.to_rgb(), t))[:3]
            total_weight += weight

        return LabColor.from_rgb(*mixed_rgb)


class LabBlendColorMixer(ColorMixer):
    """Lab 空间加权平均（忽略颜料混合的非线性）"""

    name = "LabBlend"

    def __init__(self, threshold: float = 1e-10):
        self.threshold = threshold

    def mix_colors(self, weights: Sequence[float], palette: Sequence[Pigment]) -> LabColor:
        check_weights_size(weights, palette)

        if len(palette) == 0:
            return _neutral_gray()

        sum_l = sum_a = sum_b = 0.0
        total_weight = 0.0
        for pigment, weight in zip(palette, weights):
            if weight > self.threshold:
                sum_l += pigment.lab.l * weight
                sum_a += pigment.lab.a * weight
                sum_b += pigment.lab.b * weight
                total_weight += weight

        if total_weight <= 0.0:
            return _neutral_gray()

        return LabColor(sum_l / total_weight, sum_a / total_weight, sum_b / total_weight)


COLOR_MIXERS = {
    MixboxColorMixer.name: MixboxColorMixer,
    LabBlendColorMixer.name: LabBlendColorMixer,
}


def create_color_mixer(mixer_name: str, **kwargs) -> ColorMixer:
    try:
        mixer_cls = COLOR_MIXERS[mixer_name]
    except KeyError:
        raise UnknownStrategyError("color mixer", mixer_name, COLOR_MIXERS) from None
    return mixer_cls(**kwargs)
