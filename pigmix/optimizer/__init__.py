"""
优化策略：统一的黑盒最小化接口、各算法配置、具体策略与混合策略
"""

from .base import CountingObjective, OptimizerStrategy, default_bounds
from .cmaes import CMAESStrategy
from .configs import (
    CMAESConfig,
    COBYQAConfig,
    EvolutionaryConfig,
    HybridConfig,
    NelderMeadConfig,
    PowellConfig,
)
from .evolutionary import NSGA2Strategy, SMSEMOAStrategy, SPEA2Strategy
from .factory import OPTIMIZERS, available_optimizers, create_optimizer
from .hybrid import HybridStrategy
from .local import COBYQAStrategy, NelderMeadStrategy, PowellStrategy
