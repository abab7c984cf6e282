"""单个 (目标, 格式) 组合的输出管道规划。"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Optional

from image_pipes.core.config import MODE_KEEP_ASPECT, MODE_NO_SCALE, FormatOptions, TargetSpec
from image_pipes.core.exceptions import InvalidModeConfiguration, UnknownMode, UnsupportedFormat
from image_pipes.core.formats import extension_for, is_supported
from image_pipes.core.models import PipeDescriptor, ResizeInstruction


def plan(
    target: TargetSpec,
    format_id: str,
    input_basename: str,
    output_dir: Path,
    format_options: FormatOptions,
) -> PipeDescriptor:
    """根据目标定义与格式生成 PipeDescriptor。

    格式不受支持时抛出 UnsupportedFormat（调用方可跳过）；
    目标定义本身无效时抛出 InvalidModeConfiguration 或 UnknownMode。
    """

    if not is_supported(format_id):
        raise UnsupportedFormat(format_id, target=target.name)

    file_basename = input_basename + target.filename_suffix
    output_path = Path(output_dir) / (file_basename + extension_for(format_id))
    encode_options = MappingProxyType(dict(format_options.get(format_id) or {}))

    return PipeDescriptor(
        output_path=output_path,
        format=format_id,
        resize=_resolve_resize(target, format_id),
        encode_options=encode_options,
        target_name=target.name,
    )


def _resolve_resize(target: TargetSpec, format_id: str) -> Optional[ResizeInstruction]:
    if target.mode == MODE_NO_SCALE:
        return None

    if target.mode != MODE_KEEP_ASPECT:
        raise UnknownMode(target.mode, target=target.name, format_id=format_id)

    if target.width is not None and target.height is not None:
        raise InvalidModeConfiguration(
            f"目标 {target.name} 的 keep-aspect 模式只能指定 width 或 height 之一",
            target=target.name,
            format_id=format_id,
        )

    if target.width is not None:
        instruction = ResizeInstruction(dimension="width", value=target.width)
    elif target.height is not None:
        instruction = ResizeInstruction(dimension="height", value=target.height)
    else:
        raise InvalidModeConfiguration(
            f"目标 {target.name} 的 keep-aspect 模式需要指定 width 或 height",
            target=target.name,
            format_id=format_id,
        )

    if instruction.value <= 0:
        raise InvalidModeConfiguration(
            f"目标 {target.name} 的 {instruction.dimension} 必须大于 0",
            target=target.name,
            format_id=format_id,
        )
    return instruction
