"""输出格式目录：格式标识 -> 扩展名与 Pillow 编码器名称。

只有 Pillow 当前注册了保存器的格式才视为受支持，
例如未安装 HEIF 插件时 heif 会按不支持的格式跳过。
"""

from __future__ import annotations

from typing import NamedTuple

from PIL import Image

from image_pipes.core.exceptions import UnsupportedFormat


class FormatEntry(NamedTuple):
    extension: str
    codec_name: str


FORMAT_TABLE: dict[str, FormatEntry] = {
    "avif": FormatEntry(".avif", "AVIF"),
    "gif": FormatEntry(".gif", "GIF"),
    "heif": FormatEntry(".heif", "HEIF"),
    "jpeg": FormatEntry(".jpg", "JPEG"),
    "jpg": FormatEntry(".jpg", "JPEG"),
    "png": FormatEntry(".png", "PNG"),
    "tiff": FormatEntry(".tiff", "TIFF"),
    "tif": FormatEntry(".tif", "TIFF"),
    "webp": FormatEntry(".webp", "WEBP"),
}


def codec_can_encode(codec_name: str) -> bool:
    """Pillow 是否注册了该格式的保存器。"""

    Image.init()
    return codec_name in Image.SAVE


def is_supported(format_id: str) -> bool:
    entry = FORMAT_TABLE.get(format_id)
    return entry is not None and codec_can_encode(entry.codec_name)


def _lookup(format_id: str) -> FormatEntry:
    try:
        return FORMAT_TABLE[format_id]
    except (KeyError, TypeError) as exc:
        raise UnsupportedFormat(str(format_id)) from exc


def extension_for(format_id: str) -> str:
    """返回格式对应的文件扩展名（含点号）。"""

    return _lookup(format_id).extension


def codec_name_for(format_id: str) -> str:
    """返回 Pillow 保存时使用的格式名称。"""

    return _lookup(format_id).codec_name


def supported_formats() -> list[str]:
    """当前环境下可以写出的格式标识，按目录顺序。"""

    return [format_id for format_id in FORMAT_TABLE if is_supported(format_id)]
