"""基于 Pillow 的解码、缩放与编码实现。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps

from image_pipes.core.formats import codec_name_for
from image_pipes.core.models import PipeDescriptor, ResizeInstruction

LOGGER = logging.getLogger(__name__)

# 各编码器可直接写入的图像模式，其余模式需先转换
WRITABLE_MODES = {
    "JPEG": {"RGB", "L", "CMYK"},
    "GIF": {"P", "L", "RGB", "RGBA"},
    "PNG": {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"},
    "TIFF": {"1", "L", "LA", "I", "I;16", "F", "P", "RGB", "RGBA", "CMYK", "YCbCr", "LAB"},
    "WEBP": {"RGB", "RGBA"},
    "AVIF": {"RGB", "RGBA"},
    "HEIF": {"RGB", "RGBA"},
}
DEFAULT_WRITABLE = {"RGB", "RGBA"}


@dataclass(slots=True)
class SourceEntry:
    """单个输入文件解码后的共享句柄，各管道从中克隆各自的分支。"""

    path: Path
    image: Image.Image

    def clone(self) -> Image.Image:
        return self.image.copy()

    def close(self) -> None:
        self.image.close()


def open_source(path: Path) -> SourceEntry:
    """读取并完整解码源图片，校正 EXIF 方向。

    返回的句柄与文件描述符无关，调用者负责 close()。
    异常（OSError、UnidentifiedImageError 等）原样抛出，由执行器归类。
    """

    with Image.open(path) as img:
        img.load()
        transposed = ImageOps.exif_transpose(img)
        image = transposed.copy() if transposed is img else transposed
    LOGGER.debug("已解码 %s: %s %s", path, image.mode, image.size)
    return SourceEntry(path=path, image=image)


def compute_target_size(size: tuple[int, int], instruction: ResizeInstruction) -> tuple[int, int]:
    """按单边约束计算保持宽高比的目标尺寸，另一边四舍五入且不小于 1。"""

    width, height = size
    if instruction.dimension == "width":
        new_width = instruction.value
        new_height = max(1, round(height * new_width / width))
    else:
        new_height = instruction.value
        new_width = max(1, round(width * new_height / height))
    return new_width, new_height


def render_pipe(image: Image.Image, descriptor: PipeDescriptor) -> Path:
    """对克隆出的图像执行缩放、编码并写入输出路径。"""

    working = image
    if descriptor.resize is not None:
        target_size = compute_target_size(image.size, descriptor.resize)
        working = image.resize(target_size, Image.LANCZOS)

    codec_name = codec_name_for(descriptor.format)
    working = _convert_for_codec(working, codec_name)

    destination = descriptor.output_path
    destination.parent.mkdir(parents=True, exist_ok=True)
    working.save(destination, format=codec_name, **dict(descriptor.encode_options))
    LOGGER.debug("已写入 %s", destination)
    return destination


def _convert_for_codec(image: Image.Image, codec_name: str) -> Image.Image:
    writable = WRITABLE_MODES.get(codec_name, DEFAULT_WRITABLE)
    if image.mode in writable:
        return image

    has_alpha = image.mode in {"RGBA", "LA", "PA"} or (image.mode == "P" and "transparency" in image.info)
    if has_alpha and "RGBA" in writable:
        return image.convert("RGBA")
    if has_alpha:
        # 不支持透明通道的格式以白色背景混合
        rgba = image.convert("RGBA")
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background

    return image.convert("RGB")
