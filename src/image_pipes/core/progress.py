"""批处理进度通知。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(slots=True, frozen=True)
class ProgressUpdate:
    """已完成的输入文件数量；source_path 为刚结束的文件，开始与结束通知时为空。"""

    total: int
    completed: int
    source_path: Optional[Path] = None
    message: Optional[str] = None
