"""
核心数据类型定义
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .color_science import LabColor, parse_hex
from .exceptions import UnknownStrategyError


@dataclass(frozen=True, eq=False)
class Pigment:
    """
    调色板中的一种颜料（不可变事实）。

    相等性只看 hex，与 id 无关。
    """
    title: str
    hex: str
    lab: LabColor
    id: Optional[int] = None
    image_name: str = ""
    rgb: Optional[Tuple[int, int, int]] = None
    is_favorite: bool = False

    def __post_init__(self):
        # 构造时校验 hex 格式
        parse_hex(self.hex)

    def _key(self) -> str:
        return self.hex.lstrip("#").lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pigment):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'title': self.title,
            'image_name': self.image_name,
            'hex': self.hex,
            'lab': list(self.lab),
            'is_favorite': self.is_favorite,
        }
        if self.rgb is not None:
            data['rgb'] = list(self.rgb)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pigment":
        lab = data['lab']
        if isinstance(lab, dict):
            lab = (lab['l'], lab['a'], lab['b'])
        rgb = data.get('rgb')
        return cls(
            id=data.get('id'),
            title=data['title'],
            image_name=data.get('image_name', ''),
            hex=data['hex'],
            rgb=tuple(int(c) for c in rgb) if rgb else None,
            lab=LabColor(*(float(v) for v in lab)),
            is_favorite=bool(data.get('is_favorite', False)),
        )


def check_weights_size(weights: Sequence[float], palette: Sequence[Any]) -> None:
    """权重长度必须等于调色板长度，否则在任何计算前拒绝。"""
    if len(weights) != len(palette):
        raise ValueError(
            f"Weights size ({len(weights)}) must match palette size ({len(palette)})"
        )


def _frozen_array(values: Sequence[float]) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class OptimizationResult:
    """
    一次优化运行的结果，生成后不再修改。

    Attributes:
        weights: 最终（未归一化的）权重向量
        objective_value: 最终目标函数值
        evaluations: 目标函数调用次数
        converged: 是否收敛
        algorithm_name: 产生该结果的算法（或阶段组合）名称
    """
    weights: np.ndarray
    objective_value: float
    evaluations: int
    converged: bool
    algorithm_name: str

    def __post_init__(self):
        object.__setattr__(self, 'weights', _frozen_array(self.weights))
        object.__setattr__(self, 'objective_value', float(self.objective_value))
        object.__setattr__(self, 'evaluations', int(self.evaluations))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptimizationResult):
            return NotImplemented
        return (np.array_equal(self.weights, other.weights)
                and self.objective_value == other.objective_value
                and self.evaluations == other.evaluations
                and self.converged == other.converged
                and self.algorithm_name == other.algorithm_name)

    def with_changes(self, **changes: Any) -> "OptimizationResult":
        values = {
            'weights': self.weights,
            'objective_value': self.objective_value,
            'evaluations': self.evaluations,
            'converged': self.converged,
            'algorithm_name': self.algorithm_name,
        }
        values.update(changes)
        return OptimizationResult(**values)


# ===== 超参数变换 =====

def identity_transform(x: float) -> float:
    return float(x)


def int_transform(x: float) -> int:
    """向零截断"""
    return int(x)


def round_transform(x: float) -> int:
    return int(round(x))


def log10_transform(x: float) -> float:
    return float(10.0 ** x)


def exp_transform(x: float) -> float:
    return float(math.exp(x))


TRANSFORMS: Dict[str, Callable[[float], Any]] = {
    'identity': identity_transform,
    'int': int_transform,
    'round': round_transform,
    'log10': log10_transform,
    'exp': exp_transform,
}


def get_transform(name: str) -> Callable[[float], Any]:
    try:
        return TRANSFORMS[name]
    except KeyError:
        raise UnknownStrategyError("hyperparameter transform", name, TRANSFORMS) from None


@dataclass(frozen=True)
class HyperparameterConfig:
    """
    单个超参数的搜索配置

    Attributes:
        name: 内层优化器使用的参数名
        initial_value: 初始值（连续搜索空间）
        sigma: 探索尺度（CMA-ES 每维标准差）
        lower_bound / upper_bound: 连续搜索空间边界
        transform: 连续值 → 实际参数值（取整、指数、恒等……）
    """
    name: str
    initial_value: float
    sigma: float
    lower_bound: float
    upper_bound: float
    transform: Callable[[float], Any] = identity_transform

    def __post_init__(self):
        if self.lower_bound > self.upper_bound:
            raise ValueError(
                f"Hyperparameter {self.name}: lower bound {self.lower_bound} "
                f"exceeds upper bound {self.upper_bound}"
            )
        if not self.lower_bound <= self.initial_value <= self.upper_bound:
            raise ValueError(
                f"Hyperparameter {self.name}: initial value {self.initial_value} "
                f"outside [{self.lower_bound}, {self.upper_bound}]"
            )

    def in_bounds(self, value: float) -> bool:
        return self.lower_bound <= value <= self.upper_bound

    def clamp(self, value: float) -> float:
        return max(self.lower_bound, min(self.upper_bound, float(value)))

    def resolve(self, value: float) -> Any:
        return self.transform(value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HyperparameterConfig":
        return cls(
            name=data['name'],
            initial_value=float(data['initial']),
            sigma=float(data['sigma']),
            lower_bound=float(data['min']),
            upper_bound=float(data['max']),
            transform=get_transform(data.get('transform', 'identity')),
        )


@dataclass(frozen=True)
class HyperparameterSample:
    """外层一次评估（或最终结果）：内层算法名、解析后的参数、平均误差"""
    optimizer_name: str
    parameters: Dict[str, Any]
    mean_error: float
    outer_evaluations: int = 0
    inner_evaluations: int = 0


@dataclass(frozen=True)
class TrainingItem:
    """目标 Lab 颜色及生成它所用的权重向量"""
    target_lab: LabColor
    weights: Tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'target_lab', LabColor(*self.target_lab))
        object.__setattr__(self, 'weights', tuple(float(w) for w in self.weights))

    def to_line(self) -> str:
        lab = f"{self.target_lab.l};{self.target_lab.a};{self.target_lab.b}"
        weights = ";".join(str(round(w, 2)) for w in self.weights)
        return f"{lab},{weights}"

    @classmethod
    def from_line(cls, line: str) -> "TrainingItem":
        """
        解析 `L;a;b,w1;w2;...;wN`

        Raises:
            ValueError: 格式错误
        """
        parts = line.strip().split(",", 1)
        if len(parts) != 2:
            raise ValueError(f"Invalid training record: {line!r}")
        lab_values = [float(v) for v in parts[0].split(";")]
        if len(lab_values) != 3:
            raise ValueError(f"Expected 3 LAB values, got: {lab_values}")
        weights = [float(v) for v in parts[1].split(";") if v.strip()]
        return cls(target_lab=LabColor(*lab_values), weights=tuple(weights))


def lab_to_field(lab: LabColor) -> str:
    return f"{lab.l};{lab.a};{lab.b}"


def weights_to_field(weights: Sequence[float]) -> str:
    return ";".join(str(float(w)) for w in weights)


def parameter_to_field(value: Any) -> str:
    """序列值（如 CMA-ES 的 stds）以分号连接，避免在 CSV 行中引入额外的逗号"""
    if isinstance(value, (list, tuple, np.ndarray)):
        return ";".join(str(v) for v in value)
    return str(value)


@dataclass(frozen=True)
class OptimizationRecord:
    """
    结果记录（一行 CSV）。

    列顺序由 FIELDS 显式声明，参数列按配置字典键的给定顺序追加在后面。
    """
    target_lab: LabColor
    result_lab: LabColor
    initial_lab: LabColor
    target_weights: Tuple[float, ...]
    result_weights: Tuple[float, ...]
    initial_weights: Tuple[float, ...]
    optimizer: str
    number_of_evaluations: int
    mixing_error: str
    penalties: Tuple[str, ...]
    normalizer: str
    initial_guess_type: str
    runtime_ms: float
    converged: bool
    parameters: Dict[str, Any] = field(default_factory=dict)

    FIELDS = (
        "targetLab", "resultLab", "initialLab",
        "targetWeights", "resultWeights", "initialWeights",
        "optimizer", "numberOfEvaluations", "mixingError", "penalties",
        "normalizer", "initialGuessType", "runtimeMs", "converged",
    )

    @classmethod
    def header(cls, parameter_names: Sequence[str] = ()) -> List[str]:
        return list(cls.FIELDS) + list(parameter_names)

    def to_row(self, parameter_names: Optional[Sequence[str]] = None) -> List[str]:
        names = list(self.parameters) if parameter_names is None else list(parameter_names)
        row = [
            lab_to_field(self.target_lab),
            lab_to_field(self.result_lab),
            lab_to_field(self.initial_lab),
            weights_to_field(self.target_weights),
            weights_to_field(self.result_weights),
            weights_to_field(self.initial_weights),
            self.optimizer,
            str(self.number_of_evaluations),
            self.mixing_error,
            ";".join(self.penalties),
            self.normalizer,
            self.initial_guess_type,
            f"{self.runtime_ms:.3f}",
            str(self.converged).lower(),
        ]
        row.extend(parameter_to_field(self.parameters.get(name, "")) for name in names)
        return row
