"""
配方展示：把优化得到的权重转换为 "2 parts X, 1 part Y" 形式的小整数比例
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from math import gcd
from typing import Dict, List, Sequence

from pigmix.core.data_types import Pigment, check_weights_size


def _describe(part: int, pigment: Pigment) -> str:
    return f"{part} {'part' if part == 1 else 'parts'} {pigment.title}"


@dataclass(frozen=True)
class PresentableRecipe:
    pigments: List[Pigment]
    parts: List[int]

    @property
    def is_empty(self) -> bool:
        return not self.pigments

    def formatted(self) -> str:
        """例如 "2 parts Yellow Ochre, 1 part Vermilion Red" """
        if self.is_empty:
            return "No significant colors"
        return ", ".join(self.display_list())

    def display_list(self) -> List[str]:
        return [_describe(part, pigment) for pigment, part in zip(self.pigments, self.parts)]

    def as_dict(self) -> Dict[str, int]:
        return {pigment.title: part for pigment, part in zip(self.pigments, self.parts)}


def present_recipe(weights: Sequence[float], palette: Sequence[Pigment],
                   significance_threshold: float = 0.05) -> PresentableRecipe:
    """
    过滤掉不显著的权重，以最小显著权重为 1 份换算整数份数

    Raises:
        ValueError: 权重与调色板长度不一致
    """
    check_weights_size(weights, palette)

    significant = [(p, float(w)) for p, w in zip(palette, weights) if w > significance_threshold]
    if not significant:
        return PresentableRecipe([], [])

    smallest = min(w for _, w in significant)
    pigments: List[Pigment] = []
    parts: List[int] = []
    for pigment, weight in significant:
        part = int(round(weight / smallest))
        if part >= 1:
            pigments.append(pigment)
            parts.append(part)
    return PresentableRecipe(pigments, parts)


def simplify_ratio(parts: Sequence[int]) -> List[int]:
    """[4, 2, 6] -> [2, 1, 3]"""
    parts = list(parts)
    if not parts or all(p == 0 for p in parts):
        return parts
    divisor = reduce(gcd, parts)
    if divisor > 1:
        return [p // divisor for p in parts]
    return parts


def format_as_percentages(weights: Sequence[float]) -> List[str]:
    return [f"{w * 100:.1f}%" for w in weights]
