"""
批量样本生成：对训练集中的每个目标运行一次优化，可选地把结果逐条追加到结果集
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from pigmix.core.color_science import LabColor, MixingError, create_mixing_error
from pigmix.core.data_types import OptimizationRecord, OptimizationResult, Pigment, TrainingItem
from pigmix.core.exceptions import SampleGenerationError
from pigmix.core.goal import Goal
from pigmix.core.initial_guess import create_initial_guess_generator
from pigmix.core.mixer import ColorMixer, MixboxColorMixer
from pigmix.core.normalizer import create_normalizer
from pigmix.core.penalty import Penalty, SparsityPenalty
from pigmix.optimizer.base import OptimizerStrategy
from pigmix.optimizer.factory import create_optimizer
from pigmix.utils.debug_logger import debug, error, info
from pigmix.utils.palette_loader import default_palette
from .dataset_io import ResultRecordWriter, read_training_set


@dataclass(frozen=True)
class SampleSettings:
    """
    一次批量运行的配置

    Attributes:
        optimizer_name: 内层优化算法
        error_name: 感知误差（DeltaE2000 / DeltaE76）
        include_sparsity_penalty: 是否加入稀疏惩罚
        sparsity_threshold / sparsity_penalty_per_color: 稀疏惩罚参数
        normalizer_name: 归一化方式
        initial_guess_type: Uniform / Random / Similarity
        parameters: 传给优化器的参数表（键顺序即结果集参数列顺序）
        num_samples: 最多处理的条目数
        seed: Random 初始猜测的种子（第 i 条使用 seed + i）
    """
    optimizer_name: str = "CMA-ES"
    error_name: str = "DeltaE2000"
    include_sparsity_penalty: bool = True
    sparsity_threshold: float = 0.01
    sparsity_penalty_per_color: float = 1.0
    normalizer_name: str = "Proportions"
    initial_guess_type: str = "Uniform"
    parameters: Dict[str, Any] = field(default_factory=dict)
    num_samples: int = 100
    seed: Optional[int] = None

    def penalties(self) -> List[Penalty]:
        if not self.include_sparsity_penalty:
            return []
        return [SparsityPenalty(self.sparsity_threshold, self.sparsity_penalty_per_color)]


@dataclass(frozen=True)
class SampleOutcome:
    item: TrainingItem
    result: OptimizationResult
    result_lab: LabColor
    initial_weights: np.ndarray
    initial_lab: LabColor
    runtime_ms: float


def mean_error(outcomes: Sequence[SampleOutcome], metric: Optional[MixingError] = None) -> float:
    """目标颜色与结果颜色之间的平均感知距离（默认 CIEDE2000）"""
    if not outcomes:
        raise ValueError("No outcomes to average")
    metric = metric if metric is not None else create_mixing_error("DeltaE2000")
    return float(np.mean([metric.calculate(o.result_lab, o.item.target_lab) for o in outcomes]))


class SamplesGenerator:
    """
    按输入顺序逐条处理，任一条目失败则中止整个批次（抛出 SampleGenerationError），
    已写入结果集的记录保留在磁盘上。
    """

    def __init__(self, palette: Optional[Sequence[Pigment]] = None,
                 color_mixer: Optional[ColorMixer] = None):
        self.palette = list(palette) if palette is not None else list(default_palette())
        self.color_mixer = color_mixer if color_mixer is not None else MixboxColorMixer()

    def generate(self, items: Sequence[TrainingItem], settings: Optional[SampleSettings] = None,
                 output_path: Optional[Union[str, Path]] = None,
                 strategy: Optional[OptimizerStrategy] = None) -> List[SampleOutcome]:
        """
        Args:
            items: 训练条目
            settings: 批量配置；为 None 时使用默认配置
            output_path: 结果集路径；为 None 时不写文件
            strategy: 预先构建的优化策略；为 None 时按 settings 创建

        Returns:
            每条处理过的条目对应一个 SampleOutcome

        Raises:
            SampleGenerationError: 某条目处理失败（原异常在 __cause__ 上）
        """
        if settings is None:
            settings = SampleSettings()
        if strategy is None:
            strategy = create_optimizer(settings.optimizer_name, settings.parameters)
        mixing_error = create_mixing_error(settings.error_name)
        normalizer = create_normalizer(settings.normalizer_name)
        penalties = settings.penalties()

        writer = None
        if output_path is not None:
            writer = ResultRecordWriter(output_path, list(settings.parameters))

        selected = list(items)[:max(0, settings.num_samples)]
        info(f"Generating {len(selected)} samples with {strategy.name}", "samples")

        outcomes: List[SampleOutcome] = []
        for index, item in enumerate(selected):
            goal = Goal(self.palette, item.target_lab, penalties, mixing_error,
                        normalizer, self.color_mixer)
            seed = None if settings.seed is None else settings.seed + index
            try:
                initial = create_initial_guess_generator(
                    settings.initial_guess_type, self.palette, item.target_lab, seed
                ).generate(goal.dimensions)

                start = time.perf_counter()
                result = strategy.optimize(goal, initial)
                runtime_ms = (time.perf_counter() - start) * 1000.0

                result_lab = goal.mix(result.weights)
                initial_lab = goal.mix(initial)
            except Exception as exc:
                error(f"Sample {index} failed, aborting batch: {exc}", "samples")
                raise SampleGenerationError(index, str(exc)) from exc

            outcome = SampleOutcome(item, result, result_lab, initial, initial_lab, runtime_ms)
            outcomes.append(outcome)
            debug(f"Sample {index}: value={result.objective_value:.6g}, "
                  f"evaluations={result.evaluations}, {runtime_ms:.1f} ms", "samples")

            if writer is not None:
                writer.append(self._record(outcome, settings, strategy, mixing_error,
                                           normalizer.name, penalties))

        return outcomes

    def generate_from_file(self, training_path: Union[str, Path],
                           settings: Optional[SampleSettings] = None,
                           output_path: Optional[Union[str, Path]] = None,
                           strategy: Optional[OptimizerStrategy] = None) -> List[SampleOutcome]:
        return self.generate(read_training_set(training_path), settings, output_path, strategy)

    @staticmethod
    def _record(outcome: SampleOutcome, settings: SampleSettings, strategy: OptimizerStrategy,
                mixing_error: MixingError, normalizer_name: str,
                penalties: Sequence[Penalty]) -> OptimizationRecord:
        return OptimizationRecord(
            target_lab=outcome.item.target_lab,
            result_lab=outcome.result_lab,
            initial_lab=outcome.initial_lab,
            target_weights=outcome.item.weights,
            result_weights=tuple(float(w) for w in outcome.result.weights),
            initial_weights=tuple(float(w) for w in outcome.initial_weights),
            optimizer=strategy.name,
            number_of_evaluations=outcome.result.evaluations,
            mixing_error=mixing_error.name,
            penalties=tuple(p.name for p in penalties),
            normalizer=normalizer_name,
            initial_guess_type=settings.initial_guess_type,
            runtime_ms=outcome.runtime_ms,
            converged=outcome.result.converged,
            parameters=dict(settings.parameters),
        )
