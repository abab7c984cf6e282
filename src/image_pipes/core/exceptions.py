"""项目内使用的自定义异常定义。"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional


class ErrorKind(str, Enum):
    """异常分类，供命令行入口映射退出码。"""

    CONFIGURATION = "configuration"
    PROCESSING = "processing"
    UNEXPECTED = "unexpected"
    INTERRUPTED = "interrupted"


class ImpError(Exception):
    """基础异常类型。"""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, *, input_file: Optional[Path] = None) -> None:
        super().__init__(message)
        self.input_file = input_file


class ConfigurationError(ImpError):
    """配置不合法时抛出。"""

    kind = ErrorKind.CONFIGURATION


class PlannerError(ConfigurationError):
    """单个输出管道无法规划。"""

    def __init__(self, message: str, *, target: Optional[str] = None, format_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.target = target
        self.format_id = format_id


class UnsupportedFormat(PlannerError):
    """请求了不支持的输出格式，可跳过。"""

    def __init__(self, format_id: str, target: Optional[str] = None) -> None:
        super().__init__(f"不支持的输出格式: {format_id}", target=target, format_id=format_id)


class InvalidModeConfiguration(PlannerError):
    """keep-aspect 模式缺少或重复指定 width/height。"""


class UnknownMode(PlannerError):
    """目标配置使用了未知的缩放模式。"""

    def __init__(self, mode: str, target: Optional[str] = None, format_id: Optional[str] = None) -> None:
        super().__init__(f"未知的缩放模式: {mode}", target=target, format_id=format_id)
        self.mode = mode


class ProcessingError(ImpError):
    """单个输入文件处理失败。"""

    kind = ErrorKind.PROCESSING


class NoPipes(ProcessingError):
    """没有可执行的输出管道。"""


class SourceReadError(ProcessingError):
    """源图片无法读取或解码。"""


class PipeProcessingError(ProcessingError):
    """至少一个输出管道在编码或写入时失败。"""


class UnexpectedProcessingError(ProcessingError):
    """处理过程中出现了未归类的异常。"""

    kind = ErrorKind.UNEXPECTED


class ProcessingAborted(ImpError):
    """任务被用户中断时抛出。"""

    kind = ErrorKind.INTERRUPTED
