"""
超参数搜索空间

优先从 config/hyperparameter/search_spaces.json 读取；若文件不存在，回退到内置的 CMA-ES 搜索空间。
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from pigmix.core.data_types import HyperparameterConfig
from pigmix.core.exceptions import UnknownStrategyError
from pigmix.utils.app_paths import resolve_data_path
from pigmix.utils.debug_logger import info


BUILTIN_SEARCH_SPACES: Dict[str, List[Dict[str, Any]]] = {
    "CMA-ES": [
        {"name": "population_multiplier", "initial": 10.0, "sigma": 5.0, "min": 3.0, "max": 40.0, "transform": "int"},
        {"name": "sigma", "initial": 0.3, "sigma": 0.1, "min": 0.01, "max": 1.0, "transform": "identity"},
        {"name": "diagonal_only", "initial": 10.0, "sigma": 5.0, "min": 0.0, "max": 20.0, "transform": "int"},
        {"name": "stop_fitness", "initial": -3.0, "sigma": 1.0, "min": -6.0, "max": -2.0, "transform": "log10"},
    ],
}


_SEARCH_SPACE_CACHE: Optional[Dict[str, List[Dict[str, Any]]]] = None


def _load_raw_search_spaces() -> Dict[str, List[Dict[str, Any]]]:
    global _SEARCH_SPACE_CACHE
    if _SEARCH_SPACE_CACHE is not None:
        return _SEARCH_SPACE_CACHE

    try:
        path = resolve_data_path("config", "hyperparameter", "search_spaces.json")
    except FileNotFoundError:
        info("search_spaces.json not found, using built-in search spaces", "search_space")
        _SEARCH_SPACE_CACHE = dict(BUILTIN_SEARCH_SPACES)
        return _SEARCH_SPACE_CACHE

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Search space file {path} must contain a JSON object")
    info(f"Loaded {len(data)} search spaces from {path}", "search_space")
    _SEARCH_SPACE_CACHE = data
    return data


def available_search_spaces() -> List[str]:
    return list(_load_raw_search_spaces())


def get_search_space(optimizer_name: str) -> List[HyperparameterConfig]:
    """
    Raises:
        UnknownStrategyError: 没有该算法的搜索空间
        ValueError: 条目的边界或初始值非法
    """
    spaces = _load_raw_search_spaces()
    try:
        entries = spaces[optimizer_name]
    except KeyError:
        raise UnknownStrategyError("hyperparameter search space", optimizer_name, spaces) from None
    return [HyperparameterConfig.from_dict(entry) for entry in entries]
