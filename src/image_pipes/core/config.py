"""处理任务的配置模型。"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

MODE_NO_SCALE = "no-scale"
MODE_KEEP_ASPECT = "keep-aspect"

FormatOptions = Mapping[str, Mapping[str, Any]]


@dataclass(slots=True, frozen=True)
class TargetSpec:
    """单个命名输出目标：缩放模式、格式列表与文件名后缀。"""

    name: str
    mode: str  # no-scale | keep-aspect，未知值交由规划阶段报错
    formats: Tuple[str, ...] = ()
    filename_suffix: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(slots=True)
class LoggingConfig:
    """日志相关配置。"""

    level: int = logging.INFO


@dataclass(slots=True)
class ResolvedConfig:
    """命令行与配置文件合并后的完整配置。"""

    input_files: list[Path]
    output_dir: Path
    targets: Dict[str, TargetSpec]
    format_options: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    max_concurrency: int = 4
    logging: LoggingConfig = field(default_factory=LoggingConfig)
