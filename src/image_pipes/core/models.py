"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from image_pipes.core.exceptions import ImpError


@dataclass(slots=True, frozen=True)
class ResizeInstruction:
    """保持宽高比的缩放指令，只约束一条边。"""

    dimension: str  # width | height
    value: int


@dataclass(slots=True, frozen=True)
class PipeDescriptor:
    """单个输出文件的完整处理计划。"""

    output_path: Path
    format: str
    resize: Optional[ResizeInstruction] = None
    encode_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    target_name: str = ""


PipeSet = list[PipeDescriptor]


@dataclass(slots=True)
class FileOutcome:
    """记录单个输入文件的处理结果。"""

    source_path: Path
    status: str
    produced: int = 0
    error: Optional[ImpError] = None


@dataclass(slots=True)
class BatchResult:
    """批处理的全部产出。"""

    outcomes: list[FileOutcome]

    @property
    def succeeded(self) -> list[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.error is None]

    @property
    def failed(self) -> list[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.error is not None]

    @property
    def total_produced(self) -> int:
        """所有成功文件产出数量之和。"""

        return sum(outcome.produced for outcome in self.succeeded)

    def first_failure(self) -> Optional[FileOutcome]:
        """按输入顺序返回第一个失败记录。"""

        failures = self.failed
        return failures[0] if failures else None
