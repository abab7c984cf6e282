"""日志初始化。"""

from __future__ import annotations

import logging


def setup_logging(level: int = logging.INFO) -> None:
    """初始化项目日志配置，重复调用时覆盖之前的配置。"""

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def resolve_log_level(configured: int, *, debug: bool = False, quiet: bool = False) -> int:
    """根据命令行开关决定最终日志级别；debug 优先于 quiet。"""

    if debug:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return configured
