"""管道执行器：解码源文件一次，并发执行所有输出管道。"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from image_pipes.core.exceptions import NoPipes, PipeProcessingError, SourceReadError
from image_pipes.core.models import PipeDescriptor, PipeSet
from image_pipes.processing.codec import SourceEntry, open_source, render_pipe

LOGGER = logging.getLogger(__name__)

SourceOpener = Callable[[Path], SourceEntry]
PipeRenderer = Callable[[Image.Image, PipeDescriptor], Path]


class PipeExecutor:
    """针对单个输入文件执行一组管道。

    解码句柄在首次使用时创建，并在该执行器的生命周期内被所有管道共享；
    每个管道克隆自己的分支后独立缩放、编码与写入。
    """

    def __init__(
        self,
        input_file: Path,
        opener: SourceOpener = open_source,
        renderer: PipeRenderer = render_pipe,
    ) -> None:
        self.input_file = input_file
        self._opener = opener
        self._renderer = renderer
        self._source_entry: Optional[SourceEntry] = None

    async def source_entry(self) -> SourceEntry:
        """返回（必要时创建）共享的解码句柄。"""

        if self._source_entry is None:
            try:
                self._source_entry = await asyncio.to_thread(self._opener, self.input_file)
            except Exception as exc:  # noqa: BLE001
                LOGGER.debug("读取源文件失败 %s: %s", self.input_file, exc)
                raise SourceReadError("无法读取源文件", input_file=self.input_file) from exc
        return self._source_entry

    async def execute(self, pipe_set: PipeSet) -> int:
        """执行全部管道，返回生成的文件数量。"""

        if not pipe_set:
            raise NoPipes("没有可处理的管道", input_file=self.input_file)

        entry = await self.source_entry()
        branches = [asyncio.to_thread(self._render_branch, entry, descriptor) for descriptor in pipe_set]
        results = await asyncio.gather(*branches, return_exceptions=True)

        failures = 0
        for descriptor, result in zip(pipe_set, results):
            if isinstance(result, BaseException):
                failures += 1
                LOGGER.error(
                    "管道处理失败 %s (目标 %s, 格式 %s): %s",
                    descriptor.output_path,
                    descriptor.target_name,
                    descriptor.format,
                    result,
                )

        if failures:
            raise PipeProcessingError(
                f"{failures}/{len(pipe_set)} 个管道处理失败",
                input_file=self.input_file,
            )
        return len(pipe_set)

    def _render_branch(self, entry: SourceEntry, descriptor: PipeDescriptor) -> Path:
        """在工作线程中克隆分支、渲染并释放分支。"""

        branch = entry.clone()
        try:
            return self._renderer(branch, descriptor)
        finally:
            branch.close()

    def close(self) -> None:
        """释放解码句柄。"""

        if self._source_entry is not None:
            self._source_entry.close()
            self._source_entry = None
