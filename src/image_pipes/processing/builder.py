"""为单个输入文件构建完整的管道集合。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

from image_pipes.core.config import FormatOptions, TargetSpec
from image_pipes.core.exceptions import UnsupportedFormat
from image_pipes.core.models import PipeSet
from image_pipes.processing.planner import plan

LOGGER = logging.getLogger(__name__)


def build_pipe_set(
    targets: Mapping[str, TargetSpec],
    format_options: FormatOptions,
    input_basename: str,
    output_dir: Path,
) -> PipeSet:
    """按目标声明顺序、格式列出顺序生成管道描述。

    不支持的格式记录警告后跳过；其他规划错误直接向上抛出，不返回部分结果。
    结果可能为空，空集合由执行阶段拒绝。
    """

    pipe_set: PipeSet = []
    seen_paths: set[Path] = set()

    for target in targets.values():
        for format_id in target.formats:
            try:
                descriptor = plan(target, format_id, input_basename, output_dir, format_options)
            except UnsupportedFormat:
                LOGGER.warning("目标 %s 请求了不支持的格式 %s，已跳过", target.name, format_id)
                continue

            if descriptor.output_path in seen_paths:
                LOGGER.warning(
                    "目标 %s 的输出路径与其他管道重复，将被覆盖: %s",
                    target.name,
                    descriptor.output_path,
                )
            seen_paths.add(descriptor.output_path)
            pipe_set.append(descriptor)

    LOGGER.debug("%s: 共生成 %d 个管道", input_basename, len(pipe_set))
    return pipe_set
