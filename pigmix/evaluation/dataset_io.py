"""
数据集读写

训练集（文本 CSV）::

    target_lab,target_weights
    L;a;b,w1;w2;...;wN

结果集：表头为 OptimizationRecord.FIELDS + 参数列，每条记录追加一行。
写入方只追加，从不回读刚写入的内容。
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from pigmix.core.color_science import LabColor, MixingError, create_mixing_error
from pigmix.core.data_types import OptimizationRecord, TrainingItem


TRAINING_HEADER = "target_lab,target_weights"

PathLike = Union[str, Path]


def parse_training_line(line: str) -> TrainingItem:
    return TrainingItem.from_line(line)


def read_training_set(file_path: PathLike) -> List[TrainingItem]:
    """
    读取训练集：跳过表头行和空行

    Raises:
        ValueError: 任一数据行格式错误（包含行号）
    """
    items: List[TrainingItem] = []
    with open(file_path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            if line_no == 1 or not line.strip():
                continue
            try:
                items.append(parse_training_line(line))
            except ValueError as e:
                raise ValueError(f"{file_path}:{line_no}: {e}") from e
    return items


def write_training_set(items: Iterable[TrainingItem], file_path: PathLike) -> int:
    """写出完整训练集（覆盖），返回写入条数"""
    count = 0
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(TRAINING_HEADER + "\n")
        for item in items:
            f.write(item.to_line() + "\n")
            count += 1
    return count


class ResultRecordWriter:
    """
    结果集追加写入器

    表头只写一次（构造时截断文件并写表头），之后每条记录追加一行；
    参数列按 parameter_names 给定的顺序排列。
    """

    def __init__(self, file_path: PathLike, parameter_names: Sequence[str] = ()):
        self.file_path = Path(file_path)
        self.parameter_names = list(parameter_names)
        self.records_written = 0
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as f:
            f.write(",".join(OptimizationRecord.header(self.parameter_names)) + "\n")

    def append(self, record: OptimizationRecord) -> None:
        with open(self.file_path, "a", encoding="utf-8") as f:
            f.write(",".join(record.to_row(self.parameter_names)) + "\n")
        self.records_written += 1


def parse_lab_field(text: str) -> LabColor:
    values = [float(v) for v in text.split(";")]
    if len(values) != 3:
        raise ValueError(f"Expected 3 LAB values, got: {values}")
    return LabColor(*values)


def read_result_rows(file_path: PathLike) -> List[Dict[str, str]]:
    """读取结果集，每行映射为 {列名: 原始字符串}"""
    with open(file_path, "r", encoding="utf-8") as f:
        lines = [line.rstrip("\n") for line in f if line.strip()]
    if not lines:
        raise ValueError(f"Empty result file: {file_path}")
    header = lines[0].split(",")
    return [dict(zip(header, line.split(","))) for line in lines[1:]]


def mean_error_from_results(file_path: PathLike,
                            mixing_error: Optional[MixingError] = None) -> float:
    """
    由 targetLab / resultLab 两列计算平均感知误差

    Raises:
        ValueError: 文件为空、无数据行或缺少 Lab 列
    """
    metric = mixing_error if mixing_error is not None else create_mixing_error("DeltaE2000")
    rows = read_result_rows(file_path)
    if not rows:
        raise ValueError(f"No data rows in file: {file_path}")
    if "targetLab" not in rows[0] or "resultLab" not in rows[0]:
        raise ValueError(f"Result file missing LAB columns: {file_path}")
    errors = [
        metric.calculate(parse_lab_field(row["resultLab"]), parse_lab_field(row["targetLab"]))
        for row in rows
    ]
    return sum(errors) / len(errors)
