"""输入路径展开逻辑：文件原样保留，目录展开为其中的图片文件。"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Sequence

IMAGE_EXTENSIONS = {
    ".avif",
    ".bmp",
    ".gif",
    ".heic",
    ".heif",
    ".jpeg",
    ".jpg",
    ".png",
    ".tif",
    ".tiff",
    ".webp",
}


def _iter_directory(path: Path, recursive: bool) -> Iterator[Path]:
    """遍历目录下的所有图片文件。"""

    iterator = path.rglob("*") if recursive else path.glob("*")
    for candidate in iterator:
        if candidate.is_file() and candidate.suffix.lower() in IMAGE_EXTENSIONS:
            yield candidate


def collect_input_files(paths: Sequence[Path], recursive: bool = False) -> list[Path]:
    """展开输入路径并去重，保持给定顺序。

    显式给出的文件不做扩展名过滤，是否可读由处理阶段判断；
    不存在的路径同样原样保留，以便在处理阶段报告 SourceReadError。
    """

    collected: list[Path] = []
    seen: set[Path] = set()

    for path in paths:
        if path.is_dir():
            candidates = sorted(_iter_directory(path, recursive), key=lambda x: str(x).lower())
        else:
            candidates = [path]

        for candidate in candidates:
            if candidate in seen:
                continue
            seen.add(candidate)
            collected.append(candidate)

    return collected
