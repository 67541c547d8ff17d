"""
评估：数据集读写、训练集生成、批量样本生成、单次预测与配方展示
"""

from .dataset_io import (
    TRAINING_HEADER,
    ResultRecordWriter,
    mean_error_from_results,
    parse_training_line,
    read_training_set,
    write_training_set,
)
from .oracle import ColorOracle
from .presenter import PresentableRecipe, present_recipe, simplify_ratio
from .samples import SampleOutcome, SampleSettings, SamplesGenerator, mean_error
from .training_set import TrainingSetCreator, weight_grid
