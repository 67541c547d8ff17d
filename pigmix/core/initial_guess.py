"""
初始猜测生成器
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from .color_science import LabColor, delta_e_2000
from .data_types import Pigment
from .exceptions import UnknownStrategyError


class InitialGuessGenerator(ABC):
    name: str = ""

    @abstractmethod
    def generate(self, dimensions: int) -> np.ndarray:
        ...


class UniformInitialGuessGenerator(InitialGuessGenerator):
    name = "Uniform"

    def generate(self, dimensions: int) -> np.ndarray:
        return np.full(dimensions, 1.0 / dimensions)


class RandomInitialGuessGenerator(InitialGuessGenerator):
    name = "Random"

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def generate(self, dimensions: int) -> np.ndarray:
        values = self._rng.random(dimensions)
        return values / values.sum()


class SimilarityInitialGuessGenerator(InitialGuessGenerator):
    """与目标最接近（CIEDE2000）的颜料得 0.5，其余平分剩下的 0.5"""

    name = "Similarity"

    similar_weight = 0.5

    def __init__(self, palette: Sequence[Pigment], target_lab: LabColor):
        if not palette:
            raise ValueError("Palette is empty")
        self.palette = list(palette)
        self.target_lab = target_lab

    def most_similar_index(self) -> int:
        distances = [delta_e_2000(p.lab, self.target_lab) for p in self.palette]
        return int(np.argmin(distances))

    def generate(self, dimensions: int) -> np.ndarray:
        if dimensions == 1:
            return np.ones(1)
        base_weight = (1.0 - self.similar_weight) / (dimensions - 1)
        guess = np.full(dimensions, base_weight)
        guess[self.most_similar_index()] = self.similar_weight
        return guess


INITIAL_GUESS_GENERATORS = ("Uniform", "Random", "Similarity")


def create_initial_guess_generator(generator_name: str,
                                   palette: Sequence[Pigment],
                                   target_lab: LabColor,
                                   seed: Optional[int] = None) -> InitialGuessGenerator:
    if generator_name == "Uniform":
        return UniformInitialGuessGenerator()
    if generator_name == "Random":
        return RandomInitialGuessGenerator(seed)
    if generator_name == "Similarity":
        return SimilarityInitialGuessGenerator(palette, target_lab)
    raise UnknownStrategyError("initial guess generator", generator_name, INITIAL_GUESS_GENERATORS)
