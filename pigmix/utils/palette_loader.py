#!/usr/bin/env python3
"""
调色板加载器

- 从 config/palettes/<name>.json 读取颜料列表、相近颜料对和分组规则
- Palette 是有序、不可变的颜料序列：顺序决定每个权重向量的下标对齐
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union, overload

from pigmix.core.color_science import LabColor
from pigmix.core.data_types import Pigment
from pigmix.core.exceptions import PaletteLoadError
from pigmix.utils.app_paths import resolve_data_path
from pigmix.utils.debug_logger import debug, info


class Palette(Sequence[Pigment]):
    """有序、不可变的颜料集合"""

    def __init__(self, pigments: Sequence[Pigment],
                 similar_titles: Sequence[Tuple[str, str]] = (),
                 group_rules: Optional[Dict[str, Dict[str, List[str]]]] = None,
                 name: str = ""):
        self._pigments: Tuple[Pigment, ...] = tuple(pigments)
        self._similar_titles = tuple((str(a), str(b)) for a, b in similar_titles)
        self._group_rules = dict(group_rules or {})
        self.name = name

    # ---- Sequence 协议 ----
    @overload
    def __getitem__(self, index: int) -> Pigment: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[Pigment, ...]: ...

    def __getitem__(self, index):
        return self._pigments[index]

    def __len__(self) -> int:
        return len(self._pigments)

    def __iter__(self) -> Iterator[Pigment]:
        return iter(self._pigments)

    def __repr__(self) -> str:
        return f"Palette(name={self.name!r}, pigments={len(self._pigments)})"

    # ---- 查询 ----
    @property
    def pigments(self) -> Tuple[Pigment, ...]:
        return self._pigments

    @property
    def labs(self) -> List[LabColor]:
        return [p.lab for p in self._pigments]

    @property
    def titles(self) -> List[str]:
        return [p.title for p in self._pigments]

    def favorites(self) -> "Palette":
        """仅包含常用颜料的子调色板（保持原顺序）"""
        return self.subset(p.title for p in self._pigments if p.is_favorite)

    def subset(self, titles) -> "Palette":
        wanted = {t.lower() for t in titles}
        return Palette(
            [p for p in self._pigments if p.title.lower() in wanted],
            similar_titles=self._similar_titles,
            group_rules=self._group_rules,
            name=self.name,
        )

    def by_title(self, title: str) -> Optional[Pigment]:
        """按标题查找（忽略大小写）"""
        lowered = title.lower()
        for pigment in self._pigments:
            if pigment.title.lower() == lowered:
                return pigment
        return None

    def by_id(self, pigment_id: int) -> Optional[Pigment]:
        for pigment in self._pigments:
            if pigment.id == pigment_id:
                return pigment
        return None

    def index_of(self, title: str) -> Optional[int]:
        lowered = title.lower()
        for i, pigment in enumerate(self._pigments):
            if pigment.title.lower() == lowered:
                return i
        return None

    def similarity_pairs(self) -> List[Tuple[int, int]]:
        """
        相近颜料对的下标（供 SimilarityPenalty 使用）

        只返回两种颜料都在当前调色板中的对。
        """
        pairs = []
        for first, second in self._similar_titles:
            i = self.index_of(first)
            j = self.index_of(second)
            if i is not None and j is not None:
                pairs.append((i, j))
        return pairs

    def groups(self) -> Dict[str, List[Pigment]]:
        """按分组规则归类：contains 为标题子串匹配，titles 为精确标题列表"""
        result: Dict[str, List[Pigment]] = {}
        for group_name, rule in self._group_rules.items():
            contains = [s.lower() for s in rule.get("contains", [])]
            titles = set(rule.get("titles", []))
            result[group_name] = [
                p for p in self._pigments
                if p.title in titles or any(s in p.title.lower() for s in contains)
            ]
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pigments": [p.to_dict() for p in self._pigments],
            "similar_pairs": [list(pair) for pair in self._similar_titles],
            "groups": self._group_rules,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: str = "") -> "Palette":
        pigments = [Pigment.from_dict(entry) for entry in data["pigments"]]
        return cls(
            pigments,
            similar_titles=[tuple(pair) for pair in data.get("similar_pairs", [])],
            group_rules=data.get("groups", {}),
            name=data.get("name", name),
        )


_PALETTE_CACHE: Dict[str, Palette] = {}


def load_palette(name_or_path: Union[str, Path] = "default") -> Palette:
    """
    加载调色板

    Args:
        name_or_path: 内置调色板名称（config/palettes/<name>.json）或 JSON 文件路径

    Returns:
        Palette

    Raises:
        PaletteLoadError: 文件不存在或格式错误
    """
    key = str(name_or_path)
    if key in _PALETTE_CACHE:
        return _PALETTE_CACHE[key]

    file_path = _resolve_palette_path(name_or_path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise PaletteLoadError(f"Palette file is malformed: {file_path} - {e}") from e

    _validate_palette_schema(data, file_path)

    try:
        palette = Palette.from_dict(data, name=Path(file_path).stem)
    except (KeyError, TypeError, ValueError) as e:
        raise PaletteLoadError(f"Invalid pigment entry in {file_path}: {e}") from e

    info(f"Loaded palette '{palette.name}' with {len(palette)} pigments from {file_path}",
         "palette_loader")
    _PALETTE_CACHE[key] = palette
    return palette


def default_palette() -> Palette:
    return load_palette("default")


def _resolve_palette_path(name_or_path: Union[str, Path]) -> Path:
    candidate = Path(name_or_path)
    if candidate.suffix == ".json":
        if candidate.exists():
            debug(f"Palette path given directly: {candidate}", "palette_loader")
            return candidate
        raise PaletteLoadError(f"Palette file not found: {candidate}")
    try:
        return resolve_data_path("config", "palettes", f"{name_or_path}.json")
    except FileNotFoundError:
        raise PaletteLoadError(f"Unknown palette: {name_or_path}") from None


def _validate_palette_schema(data: Any, file_path: Path) -> None:
    if not isinstance(data, dict):
        raise PaletteLoadError(f"Palette file {file_path} must contain a JSON object")
    pigments = data.get("pigments")
    if not isinstance(pigments, list) or not pigments:
        raise PaletteLoadError(f"Palette file {file_path} has no 'pigments' list")
    for i, entry in enumerate(pigments):
        for field in ("title", "hex", "lab"):
            if field not in entry:
                raise PaletteLoadError(f"Pigment #{i} in {file_path} missing field: {field}")
