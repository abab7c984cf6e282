"""批处理入口：每个输入文件一个处理单元，并发执行并汇总结果。"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from image_pipes.core.config import ResolvedConfig
from image_pipes.core.exceptions import (
    ConfigurationError,
    ImpError,
    PlannerError,
    ProcessingAborted,
    UnexpectedProcessingError,
)
from image_pipes.core.models import BatchResult, FileOutcome
from image_pipes.core.progress import ProgressUpdate
from image_pipes.processing.builder import build_pipe_set
from image_pipes.processing.executor import PipeExecutor

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


class FileRunner:
    """单个输入文件的处理单元：构建管道集合并交给执行器。"""

    def __init__(self, input_file: Path, config: ResolvedConfig) -> None:
        self.input_file = input_file
        self.config = config
        self.executor = PipeExecutor(input_file)

    @property
    def file_basename(self) -> str:
        return self.input_file.stem

    async def process(self) -> int:
        """处理该文件，返回生成的输出文件数量。"""

        try:
            pipe_set = build_pipe_set(
                self.config.targets,
                self.config.format_options,
                self.file_basename,
                self.config.output_dir,
            )
            return await self.executor.execute(pipe_set)
        except PlannerError as exc:
            exc.input_file = self.input_file
            LOGGER.error("%s: 目标 %s (格式 %s) 配置无效: %s", self.input_file, exc.target, exc.format_id, exc)
            raise
        except ImpError as exc:
            exc.input_file = self.input_file
            LOGGER.error("%s: %s", self.input_file, exc)
            raise
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("处理 %s 时出现未预期的异常", self.input_file, exc_info=exc)
            LOGGER.error("%s: 出现未预期的错误: %s", self.input_file, exc)
            raise UnexpectedProcessingError(
                f"处理 {self.input_file} 时出现未预期的错误",
                input_file=self.input_file,
            ) from exc
        finally:
            self.executor.close()


async def run_batch(config: ResolvedConfig, progress_callback: ProgressCallback = None) -> BatchResult:
    """并发处理全部输入文件。

    所有文件都会处理完毕，失败记录在结果中而不会中断其他文件。
    """

    total = len(config.input_files)
    LOGGER.info("开始处理 %d 个输入文件", total)
    _emit_progress(progress_callback, 0, total, message="开始执行处理任务")

    config.output_dir.mkdir(parents=True, exist_ok=True)

    semaphore = asyncio.Semaphore(config.max_concurrency)
    completed = 0

    async def run_unit(input_file: Path) -> FileOutcome:
        nonlocal completed
        async with semaphore:
            runner = FileRunner(input_file, config)
            try:
                produced = await runner.process()
            except ImpError as exc:
                outcome = FileOutcome(source_path=input_file, status=_failure_status(exc), error=exc)
            else:
                outcome = FileOutcome(source_path=input_file, status="processed", produced=produced)

        completed += 1
        _emit_progress(progress_callback, completed, total, source_path=input_file, message=f"完成 {input_file.name}")
        return outcome

    outcomes = await asyncio.gather(*(run_unit(input_file) for input_file in config.input_files))
    result = BatchResult(outcomes=list(outcomes))

    _emit_progress(progress_callback, total, total, message="处理完成")
    LOGGER.info(
        "处理完成：成功 %d 个文件，失败 %d 个文件，共生成 %d 个输出文件",
        len(result.succeeded),
        len(result.failed),
        result.total_produced,
    )
    return result


def process_batch(config: ResolvedConfig, progress_callback: ProgressCallback = None) -> int:
    """同步入口：返回生成的输出文件总数，有文件失败时抛出第一个失败的异常。"""

    try:
        result = asyncio.run(run_batch(config, progress_callback))
    except KeyboardInterrupt as exc:
        LOGGER.info("收到中断信号，停止处理")
        raise ProcessingAborted("处理被用户中断") from exc

    failure = result.first_failure()
    if failure is not None:
        assert failure.error is not None
        if result.succeeded:
            LOGGER.warning(
                "%d 个文件处理成功（共 %d 个输出文件），但 %d 个文件失败",
                len(result.succeeded),
                result.total_produced,
                len(result.failed),
            )
        raise failure.error

    return result.total_produced


def _failure_status(exc: ImpError) -> str:
    if isinstance(exc, ConfigurationError):
        return "error-config"
    if isinstance(exc, UnexpectedProcessingError):
        return "error-unexpected"
    return "error-processing"


def _emit_progress(
    callback: ProgressCallback,
    completed: int,
    total: int,
    *,
    source_path: Optional[Path] = None,
    message: Optional[str] = None,
) -> None:
    if callback is None:
        return
    callback(ProgressUpdate(total=total, completed=completed, source_path=source_path, message=message))
