from .color_science import LabColor, DeltaE2000, DeltaE76, MixingError, create_mixing_error, delta_e_2000
from .data_types import (
    HyperparameterConfig,
    HyperparameterSample,
    OptimizationRecord,
    OptimizationResult,
    Pigment,
    TrainingItem,
)
from .goal import Goal
from .mixer import ColorMixer, LabBlendColorMixer, MixboxColorMixer
from .normalizer import Normalizer, ProportionsNormalizer, SoftmaxNormalizer, create_normalizer
from .penalty import (
    L1RegularizationPenalty,
    L2RegularizationPenalty,
    Penalty,
    SimilarityPenalty,
    SparsityPenalty,
)
