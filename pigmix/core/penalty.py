"""
惩罚项：只作用于数值权重向量，从不接触领域对象。

各项惩罚相加组合，与顺序无关。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Sequence, Tuple

import numpy as np


class Penalty(ABC):

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def calculate(self, weights: Sequence[float]) -> float:
        ...


class SparsityPenalty(Penalty):
    """活跃颜料（权重 > threshold）每种加 penalty_per_color"""

    def __init__(self, threshold: float = 0.01, penalty_per_color: float = 1.0):
        self.threshold = threshold
        self.penalty_per_color = penalty_per_color

    def calculate(self, weights: Sequence[float]) -> float:
        active = int(np.count_nonzero(np.asarray(weights, dtype=np.float64) > self.threshold))
        return active * self.penalty_per_color


class SimilarityPenalty(Penalty):
    """
    相近颜料同时使用时的惩罚。

    每对 (i, j) 仅当两者都超过阈值时计一次；越界下标直接忽略。
    """

    def __init__(self, similarity_pairs: Iterable[Tuple[int, int]],
                 threshold: float = 0.1, penalty_per_pair: float = 1.0):
        self.similarity_pairs = [(int(i), int(j)) for i, j in similarity_pairs]
        self.threshold = threshold
        self.penalty_per_pair = penalty_per_pair

    def calculate(self, weights: Sequence[float]) -> float:
        size = len(weights)
        penalty = 0.0
        for i, j in self.similarity_pairs:
            if not (0 <= i < size and 0 <= j < size):
                continue
            if weights[i] > self.threshold and weights[j] > self.threshold:
                penalty += self.penalty_per_pair
        return penalty


class L1RegularizationPenalty(Penalty):
    """lambda * sum(|w|)"""

    def __init__(self, lam: float = 0.1):
        self.lam = lam

    def calculate(self, weights: Sequence[float]) -> float:
        return self.lam * float(np.abs(np.asarray(weights, dtype=np.float64)).sum())


class L2RegularizationPenalty(Penalty):
    """lambda * sum(w^2)"""

    def __init__(self, lam: float = 0.1):
        self.lam = lam

    def calculate(self, weights: Sequence[float]) -> float:
        arr = np.asarray(weights, dtype=np.float64)
        return self.lam * float(np.dot(arr, arr))
