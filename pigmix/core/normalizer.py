"""
权重归一化：原始权重 → 非负、和为 1 的比例
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Sequence, Type

import numpy as np

from .exceptions import UnknownStrategyError


class Normalizer(ABC):
    name: str = ""

    @abstractmethod
    def normalize(self, weights: Sequence[float]) -> np.ndarray:
        ...


class ProportionsNormalizer(Normalizer):
    """
    负数裁剪为 0 后除以总和。

    总和恰为 0（全零或全负）时返回均匀分布 1/N，这不是错误。
    """

    name = "Proportions"

    def normalize(self, weights: Sequence[float]) -> np.ndarray:
        clipped = np.clip(np.asarray(weights, dtype=np.float64), 0.0, None)
        if clipped.size == 0:
            return clipped
        total = float(clipped.sum())
        if total == 0.0:
            return np.full(clipped.size, 1.0 / clipped.size)
        return clipped / total


class SoftmaxNormalizer(Normalizer):
    """exp(w - max) / sum，先减最大值防止溢出"""

    name = "Softmax"

    def normalize(self, weights: Sequence[float]) -> np.ndarray:
        arr = np.asarray(weights, dtype=np.float64)
        if arr.size == 0:
            return arr
        exp_weights = np.exp(arr - arr.max())
        total = float(exp_weights.sum())
        if total > 0.0 and np.isfinite(total):
            return exp_weights / total
        return np.full(arr.size, 1.0 / arr.size)


NORMALIZERS: Dict[str, Type[Normalizer]] = {
    ProportionsNormalizer.name: ProportionsNormalizer,
    SoftmaxNormalizer.name: SoftmaxNormalizer,
}


def create_normalizer(normalizer_name: str) -> Normalizer:
    try:
        return NORMALIZERS[normalizer_name]()
    except KeyError:
        raise UnknownStrategyError("normalizer", normalizer_name, NORMALIZERS) from None
