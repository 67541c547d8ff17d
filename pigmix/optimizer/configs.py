"""
各优化算法的配置结构

每个配置都是带显式默认值的不可变 dataclass，在策略构造时通过
``from_params(mapping)`` 解析一次：

- 已知键且类型正确：采用
- 缺失键或类型错误：使用默认值（不报错）
- 未知键：忽略
- float 字段接受 int；数值字段不接受 bool；int 字段不接受 float
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional, Tuple

from pigmix.utils.debug_logger import debug


def _param(default: Any, kind: str):
    return field(default=default, metadata={'kind': kind})


def _is_int(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _coerce(kind: str, value: Any) -> Tuple[bool, Any]:
    """返回 (是否接受, 转换后的值)"""
    if kind == 'int':
        return (True, int(value)) if _is_int(value) else (False, None)
    if kind == 'float':
        return (True, float(value)) if _is_real(value) else (False, None)
    if kind == 'bool':
        return (True, value) if isinstance(value, bool) else (False, None)
    if kind == 'str':
        return (True, value) if isinstance(value, str) else (False, None)
    if kind == 'optional_int':
        if value is None:
            return True, None
        return _coerce('int', value)
    if kind == 'optional_float':
        if value is None:
            return True, None
        return _coerce('float', value)
    if kind == 'float_seq':
        if value is None:
            return True, None
        if isinstance(value, (str, bytes)):
            return False, None
        try:
            items = list(value)
        except TypeError:
            return False, None
        if not items or not all(_is_real(v) for v in items):
            return False, None
        return True, tuple(float(v) for v in items)
    raise ValueError(f"Unsupported parameter kind: {kind}")


class _ParamsMixin:

    @classmethod
    def from_params(cls, params: Optional[Mapping[str, Any]] = None):
        """从字符串键参数表构建配置，规则见模块说明"""
        params = params or {}
        values = {}
        for f in fields(cls):
            if f.name not in params:
                continue
            accepted, value = _coerce(f.metadata['kind'], params[f.name])
            if accepted:
                values[f.name] = value
            else:
                debug(f"Ignoring {f.name}={params[f.name]!r} for {cls.__name__}, using default",
                      "optimizer")
        return cls(**values)


@dataclass(frozen=True)
class CMAESConfig(_ParamsMixin):
    max_evaluations: int = _param(10000, 'int')
    stop_fitness: float = _param(1e-3, 'float')
    sigma: float = _param(0.3, 'float')
    population_multiplier: int = _param(5, 'int')
    # 指定时覆盖 population_multiplier
    population_size: Optional[int] = _param(None, 'optional_int')
    diagonal_only: int = _param(10, 'int')
    active: bool = _param(True, 'bool')
    seed: Optional[int] = _param(None, 'optional_int')
    # 每维探索尺度（乘以 sigma）
    stds: Optional[Tuple[float, ...]] = _param(None, 'float_seq')

    def popsize(self, dimensions: int) -> int:
        if self.population_size is not None:
            return max(2, self.population_size)
        return max(2, self.population_multiplier * dimensions)


@dataclass(frozen=True)
class NelderMeadConfig(_ParamsMixin):
    max_evaluations: int = _param(100000, 'int')
    step_size: float = _param(0.2, 'float')
    step_sizes: Optional[Tuple[float, ...]] = _param(None, 'float_seq')
    xatol: float = _param(1e-6, 'float')
    fatol: float = _param(1e-6, 'float')
    adaptive: bool = _param(False, 'bool')


@dataclass(frozen=True)
class PowellConfig(_ParamsMixin):
    max_evaluations: int = _param(10000, 'int')
    xtol: float = _param(1e-6, 'float')
    ftol: float = _param(1e-6, 'float')


@dataclass(frozen=True)
class COBYQAConfig(_ParamsMixin):
    max_evaluations: int = _param(10000, 'int')
    initial_trust_region_radius: float = _param(0.5, 'float')
    final_trust_region_radius: float = _param(1e-6, 'float')


@dataclass(frozen=True)
class EvolutionaryConfig(_ParamsMixin):
    """NSGA-II / SPEA2 / SMS-EMOA 共用"""
    population_size: int = _param(100, 'int')
    max_generations: int = _param(100, 'int')
    # 指定时与 max_generations 同时生效，先到先停
    max_evaluations: Optional[int] = _param(None, 'optional_int')
    seed: Optional[int] = _param(None, 'optional_int')


@dataclass(frozen=True)
class HybridConfig(_ParamsMixin):
    global_optimizer: str = _param("CMA-ES", 'str')
    local_optimizer: str = _param("Nelder-Mead", 'str')
    converged_threshold: float = _param(1e-3, 'float')
    refine_threshold: float = _param(math.inf, 'float')
