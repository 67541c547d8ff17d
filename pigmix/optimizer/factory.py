"""
按名称创建优化策略
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Type

from pigmix.core.exceptions import UnknownStrategyError
from pigmix.utils.debug_logger import debug
from .base import OptimizerStrategy
from .cmaes import CMAESStrategy
from .evolutionary import NSGA2Strategy, SMSEMOAStrategy, SPEA2Strategy
from .hybrid import HybridStrategy
from .local import COBYQAStrategy, NelderMeadStrategy, PowellStrategy


OPTIMIZERS: Dict[str, Type[OptimizerStrategy]] = {
    CMAESStrategy.name: CMAESStrategy,
    NelderMeadStrategy.name: NelderMeadStrategy,
    PowellStrategy.name: PowellStrategy,
    COBYQAStrategy.name: COBYQAStrategy,
    NSGA2Strategy.name: NSGA2Strategy,
    SPEA2Strategy.name: SPEA2Strategy,
    SMSEMOAStrategy.name: SMSEMOAStrategy,
    HybridStrategy.name: HybridStrategy,
}


def available_optimizers():
    return list(OPTIMIZERS)


def create_optimizer(algorithm_name: str,
                     params: Optional[Mapping[str, Any]] = None) -> OptimizerStrategy:
    """
    Args:
        algorithm_name: OPTIMIZERS 中的名称
        params: 字符串键参数表；未知键被忽略，类型错误的值使用默认值

    Raises:
        UnknownStrategyError: 未知算法名
    """
    try:
        strategy_cls = OPTIMIZERS[algorithm_name]
    except KeyError:
        raise UnknownStrategyError("optimizer", algorithm_name, OPTIMIZERS) from None
    strategy = strategy_cls(params)
    debug(f"Created {strategy!r}", "optimizer")
    return strategy
