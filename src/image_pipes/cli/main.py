"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from image_pipes.core.config_loader import resolve_config
from image_pipes.core.exceptions import ErrorKind, ImpError
from image_pipes.core.formats import codec_name_for, extension_for, supported_formats
from image_pipes.core.progress import ProgressUpdate
from image_pipes.processing.runner import process_batch
from image_pipes.utils.logging import resolve_log_level, setup_logging

LOGGER = logging.getLogger(__name__)

# sysexits.h 风格的退出码
EXIT_SUCCESS = 0
EXIT_DATA_ERROR = 65
EXIT_INTERNAL_ERROR = 70
EXIT_CONFIG_ERROR = 78
EXIT_SIGINT = 130

EXIT_CODES = {
    ErrorKind.CONFIGURATION: EXIT_CONFIG_ERROR,
    ErrorKind.PROCESSING: EXIT_DATA_ERROR,
    ErrorKind.UNEXPECTED: EXIT_INTERNAL_ERROR,
    ErrorKind.INTERRUPTED: EXIT_SIGINT,
}

app = typer.Typer(help="按目标配置批量缩放并转换图片格式。")


def exit_code_for(exc: ImpError) -> int:
    return EXIT_CODES.get(exc.kind, EXIT_INTERNAL_ERROR)


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("处理图片", total=update.total)
        description = update.source_path.name if update.source_path is not None else "处理图片"
        progress.update(task_id, completed=update.completed, description=description)

    return callback


@app.command("run")
def run_cli(  # noqa: PLR0913
    inputs: List[Path] = typer.Argument(None, help="输入图片文件或目录，可指定多个；省略时使用配置文件中的 input_files"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="输出目录，覆盖配置文件"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="配置文件路径；省略时自动查找"),
    max_workers: Optional[int] = typer.Option(None, "--workers", "-w", help="同时处理的文件数量"),
    recursive: bool = typer.Option(False, "--recursive/--no-recursive", help="是否递归展开输入目录"),
    debug: bool = typer.Option(False, "--debug", "-d", help="输出调试日志"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="只输出错误日志"),
) -> None:
    """执行批量处理。"""

    setup_logging(resolve_log_level(logging.INFO, debug=debug, quiet=quiet))

    try:
        config = resolve_config(
            config_file=config_file,
            input_paths=inputs or [],
            output_dir=output,
            max_concurrency=max_workers,
            recursive=recursive,
        )
        setup_logging(resolve_log_level(config.logging.level, debug=debug, quiet=quiet))
        LOGGER.debug("配置解析完成: %s", config)

        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            disable=quiet and not debug,
        )
        with progress:
            total = process_batch(config, progress_callback=_build_progress_callback(progress))
    except ImpError as exc:
        code = exit_code_for(exc)
        if exc.kind is ErrorKind.INTERRUPTED:
            LOGGER.info("收到中断信号 (Ctrl-C)，退出")
        else:
            if exc.input_file is not None:
                LOGGER.error("%s: %s", exc.input_file, exc)
            else:
                LOGGER.error("%s", exc)
            LOGGER.critical("处理失败，退出码 %d", code)
        raise typer.Exit(code=code) from exc
    except KeyboardInterrupt as exc:
        LOGGER.info("收到中断信号 (Ctrl-C)，退出")
        raise typer.Exit(code=EXIT_SIGINT) from exc
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("出现未预期的错误：%s", exc)
        raise typer.Exit(code=EXIT_INTERNAL_ERROR) from exc

    if not quiet:
        typer.echo(f"处理完成：共生成 {total} 个文件。")


@app.command("formats")
def formats_cli() -> None:
    """列出支持的输出格式。"""

    for format_id in supported_formats():
        typer.echo(f"{format_id}\t{extension_for(format_id)}\t{codec_name_for(format_id)}")


if __name__ == "__main__":
    app()
