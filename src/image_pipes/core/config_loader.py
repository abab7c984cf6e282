"""配置文件的查找、解析与命令行参数合并。"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import yaml

from image_pipes.core.config import LoggingConfig, ResolvedConfig, TargetSpec
from image_pipes.core.exceptions import ConfigurationError
from image_pipes.core.scanner import collect_input_files

LOGGER = logging.getLogger(__name__)

CONFIG_FILENAMES = (
    ".imprc",
    ".imprc.json",
    ".imprc.yaml",
    ".imprc.yml",
    "imp.config.json",
    "imp.config.yaml",
    "imp.config.yml",
)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """从 start 目录开始向上查找第一个存在的配置文件。"""

    directory = (start or Path.cwd()).absolute()
    for candidate_dir in (directory, *directory.parents):
        for name in CONFIG_FILENAMES:
            candidate = candidate_dir / name
            if candidate.is_file():
                return candidate
    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """读取并解析配置文件，返回原始字典。"""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"无法读取配置文件: {path}") from exc

    try:
        if path.suffix == ".json":
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        LOGGER.debug("配置文件解析失败 %s: %s", path, exc)
        raise ConfigurationError(f"无法解析配置文件: {path}") from exc

    if not document:
        raise ConfigurationError(f"配置文件不能为空: {path}")
    if not isinstance(document, dict):
        raise ConfigurationError(f"配置文件顶层必须是映射: {path}")

    LOGGER.debug("已读取配置文件: %s", path)
    return document


def parse_targets(raw: Any) -> dict[str, TargetSpec]:
    """将原始 targets 映射转换为 TargetSpec。

    只检查结构类型；缩放模式与尺寸的语义校验在规划阶段进行。
    """

    if not isinstance(raw, Mapping) or not raw:
        raise ConfigurationError("targets 必须是非空映射")

    targets: dict[str, TargetSpec] = {}
    for name, item in raw.items():
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"目标 {name} 的定义必须是映射")

        mode = item.get("mode")
        if not isinstance(mode, str):
            raise ConfigurationError(f"目标 {name} 缺少 mode")

        formats = item.get("formats", [])
        if isinstance(formats, str) or not isinstance(formats, Sequence):
            raise ConfigurationError(f"目标 {name} 的 formats 必须是列表")
        if not all(isinstance(fmt, str) for fmt in formats):
            raise ConfigurationError(f"目标 {name} 的 formats 只能包含字符串")

        suffix = item.get("filename_suffix", "")
        if suffix is None:
            suffix = ""
        if not isinstance(suffix, str):
            raise ConfigurationError(f"目标 {name} 的 filename_suffix 必须是字符串")

        targets[str(name)] = TargetSpec(
            name=str(name),
            mode=mode,
            formats=tuple(formats),
            filename_suffix=suffix,
            width=_optional_int(item.get("width"), name, "width"),
            height=_optional_int(item.get("height"), name, "height"),
        )
    return targets


def _optional_int(value: Any, target: str, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"目标 {target} 的 {key} 必须是整数")
    return value


def _parse_format_options(raw: Any) -> dict[str, dict[str, Any]]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError("format_options 必须是映射")

    options: dict[str, dict[str, Any]] = {}
    for format_id, values in raw.items():
        if values is None:
            continue
        if not isinstance(values, Mapping):
            raise ConfigurationError(f"格式 {format_id} 的编码参数必须是映射")
        options[str(format_id)] = dict(values)
    return options


def _parse_logging(raw: Any) -> LoggingConfig:
    if raw is None:
        return LoggingConfig()
    if not isinstance(raw, Mapping):
        raise ConfigurationError("logging 必须是映射")

    level_name = str(raw.get("level", "info")).lower()
    level = LOG_LEVELS.get(level_name)
    if level is None:
        raise ConfigurationError(f"未知的日志级别: {level_name}")
    return LoggingConfig(level=level)


def resolve_config(
    *,
    config_file: Optional[Path] = None,
    input_paths: Sequence[Path] = (),
    output_dir: Optional[Path] = None,
    max_concurrency: Optional[int] = None,
    recursive: bool = False,
    search_from: Optional[Path] = None,
) -> ResolvedConfig:
    """合并命令行参数与配置文件，得到 ResolvedConfig。

    命令行给出的输入路径、输出目录与并发数优先于配置文件中的值。
    """

    if config_file is None:
        config_file = find_config_file(search_from)
        if config_file is None:
            raise ConfigurationError("未找到配置文件")
    elif not config_file.is_file():
        raise ConfigurationError(f"配置文件不存在: {config_file}")

    document = load_config_file(config_file)
    base_dir = config_file.absolute().parent

    if input_paths:
        raw_inputs = [path.expanduser() for path in input_paths]
    else:
        raw_list = document.get("input_files") or []
        if isinstance(raw_list, str) or not isinstance(raw_list, Sequence):
            raise ConfigurationError("input_files 必须是列表")
        raw_inputs = [_relative_to(base_dir, item) for item in raw_list]

    input_files = collect_input_files(raw_inputs, recursive=recursive)
    if not input_files:
        raise ConfigurationError("没有指定输入文件")

    if output_dir is not None:
        resolved_output = output_dir.expanduser()
    elif document.get("output_dir"):
        resolved_output = _relative_to(base_dir, document["output_dir"])
    else:
        raise ConfigurationError("没有指定输出目录")

    concurrency = max_concurrency if max_concurrency is not None else document.get("max_concurrency", 4)
    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ConfigurationError(f"max_concurrency 必须是正整数: {concurrency}")

    return ResolvedConfig(
        input_files=input_files,
        output_dir=resolved_output,
        targets=parse_targets(document.get("targets")),
        format_options=_parse_format_options(document.get("format_options")),
        max_concurrency=concurrency,
        logging=_parse_logging(document.get("logging")),
    )


def _relative_to(base_dir: Path, value: Any) -> Path:
    """配置文件中的相对路径以配置文件所在目录为基准。"""

    path = Path(str(value)).expanduser()
    if path.is_absolute():
        return path
    return base_dir / path
