"""
训练集生成：用混色器把已知权重混合成目标颜色
"""

from __future__ import annotations

from itertools import combinations
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

import numpy as np

from pigmix.core.data_types import Pigment, TrainingItem
from pigmix.core.mixer import ColorMixer
from .dataset_io import write_training_set


def weight_grid(k: int, step: float = 0.01) -> List[List[float]]:
    """
    k 个分量、步长为 step、和为 1 的所有权重组合（最后一个分量取余量）

    中间值四舍五入到 4 位小数，避免浮点累积误差多出或漏掉格点。
    """
    if k < 1:
        raise ValueError("k must be at least 1")
    if step <= 0:
        raise ValueError("step must be positive")

    results: List[List[float]] = []

    def recurse(index: int, remaining: float, current: List[float]):
        if index == k - 1:
            results.append(current + [remaining])
            return
        w = 0.0
        while w <= remaining:
            recurse(index + 1, round(remaining - w, 4), current + [w])
            w = round(w + step, 4)

    recurse(0, 1.0, [])
    return results


class TrainingSetCreator:

    def __init__(self, mixer: ColorMixer):
        self.mixer = mixer

    def _item(self, weights: Sequence[float], palette: Sequence[Pigment]) -> TrainingItem:
        return TrainingItem(target_lab=self.mixer.mix_colors(weights, palette), weights=tuple(weights))

    def pairwise_items(self, palette: Sequence[Pigment]) -> List[TrainingItem]:
        """每个有序对 (i, j), i != j，权重 k/100 与 1 - k/100，k = 1..99"""
        items = []
        n = len(palette)
        for i in range(n):
            for j in range(n):
                if i == j:
                    continue
                for k in range(1, 100):
                    weights = [0.0] * n
                    weights[i] = k / 100.0
                    weights[j] = 1.0 - k / 100.0
                    items.append(self._item(weights, palette))
        return items

    def k_color_items(self, palette: Sequence[Pigment], k: int,
                      step: float = 0.01) -> Iterator[TrainingItem]:
        """所有 k 色组合 × 权重网格"""
        grid = weight_grid(k, step)
        for combo in combinations(range(len(palette)), k):
            for partial in grid:
                weights = [0.0] * len(palette)
                for palette_index, w in zip(combo, partial):
                    weights[palette_index] = w
                yield self._item(weights, palette)

    def random_k_color_items(self, palette: Sequence[Pigment], k: int = 3,
                             max_items: int = 100,
                             seed: Optional[int] = None) -> List[TrainingItem]:
        """随机选 k 种颜料，随机权重归一化到和为 1"""
        if k > len(palette):
            raise ValueError(f"Cannot pick {k} colours from a palette of {len(palette)}")
        rng = np.random.default_rng(seed)
        items = []
        for _ in range(max_items):
            indices = rng.choice(len(palette), size=k, replace=False)
            raw = rng.random(k)
            weights = [0.0] * len(palette)
            for palette_index, w in zip(indices, raw / raw.sum()):
                weights[int(palette_index)] = float(w)
            items.append(self._item(weights, palette))
        return items

    # ---- 直接写文件 ----
    def create_pairwise_dataset(self, palette: Sequence[Pigment],
                                output_path: Union[str, Path]) -> int:
        return write_training_set(self.pairwise_items(palette), output_path)

    def create_k_color_dataset(self, palette: Sequence[Pigment], k: int, step: float,
                               output_path: Union[str, Path]) -> int:
        return write_training_set(self.k_color_items(palette, k, step), output_path)

    def create_random_dataset(self, palette: Sequence[Pigment], output_path: Union[str, Path],
                              k: int = 3, max_items: int = 100,
                              seed: Optional[int] = None) -> int:
        return write_training_set(self.random_k_color_items(palette, k, max_items, seed), output_path)
