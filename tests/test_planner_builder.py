"""测试管道规划与管道集合构建。"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from PIL import Image

from image_pipes.core.config import TargetSpec
from image_pipes.core.exceptions import InvalidModeConfiguration, UnknownMode, UnsupportedFormat
from image_pipes.core.formats import extension_for, is_supported, supported_formats
from image_pipes.core.models import ResizeInstruction
from image_pipes.processing.builder import build_pipe_set
from image_pipes.processing.planner import plan

OUTPUT_DIR = Path("out")


def test_format_table_is_complete() -> None:
    for format_id in ("gif", "jpeg", "png", "tiff", "webp"):
        assert is_supported(format_id)
        assert extension_for(format_id).startswith(".")
    assert not is_supported("pngs")
    assert not is_supported("PNG")
    with pytest.raises(UnsupportedFormat):
        extension_for("pngs")


def test_catalog_follows_installed_encoders(monkeypatch: pytest.MonkeyPatch) -> None:
    Image.init()
    monkeypatch.delitem(Image.SAVE, "HEIF", raising=False)

    assert not is_supported("heif")
    assert "heif" not in supported_formats()
    assert "png" in supported_formats()
    assert extension_for("heif") == ".heif"


def test_unencodable_format_is_rejected_by_planner(monkeypatch: pytest.MonkeyPatch) -> None:
    Image.init()
    monkeypatch.delitem(Image.SAVE, "HEIF", raising=False)
    target = TargetSpec(name="full", mode="no-scale", formats=("heif",))

    with pytest.raises(UnsupportedFormat) as exc_info:
        plan(target, "heif", "photo", OUTPUT_DIR, {})
    assert exc_info.value.format_id == "heif"


@pytest.mark.parametrize("format_id", ["gif", "jpeg", "jpg", "png", "tiff", "tif", "webp"])
def test_no_scale_never_resizes(format_id: str) -> None:
    target = TargetSpec(name="full", mode="no-scale", formats=(format_id,))

    descriptor = plan(target, format_id, "photo", OUTPUT_DIR, {})

    assert descriptor.resize is None
    assert descriptor.output_path == OUTPUT_DIR / f"photo{extension_for(format_id)}"
    assert dict(descriptor.encode_options) == {}


def test_keep_aspect_with_width() -> None:
    target = TargetSpec(name="small", mode="keep-aspect", formats=("png",), width=1337)

    descriptor = plan(target, "png", "photo", OUTPUT_DIR, {})

    assert descriptor.resize == ResizeInstruction(dimension="width", value=1337)


def test_keep_aspect_with_height_and_suffix() -> None:
    target = TargetSpec(name="thumb", mode="keep-aspect", formats=("webp",), filename_suffix="-thumb", height=64)

    descriptor = plan(target, "webp", "photo", OUTPUT_DIR, {"webp": {"quality": 80}})

    assert descriptor.resize == ResizeInstruction(dimension="height", value=64)
    assert descriptor.output_path == OUTPUT_DIR / "photo-thumb.webp"
    assert dict(descriptor.encode_options) == {"quality": 80}
    assert descriptor.target_name == "thumb"


@pytest.mark.parametrize("format_id", ["png", "jpeg", "webp"])
def test_keep_aspect_without_dimension_fails(format_id: str) -> None:
    target = TargetSpec(name="broken", mode="keep-aspect", formats=(format_id,))

    with pytest.raises(InvalidModeConfiguration) as exc_info:
        plan(target, format_id, "photo", OUTPUT_DIR, {})
    assert exc_info.value.target == "broken"


def test_keep_aspect_with_both_dimensions_fails() -> None:
    target = TargetSpec(name="broken", mode="keep-aspect", formats=("png",), width=10, height=10)

    with pytest.raises(InvalidModeConfiguration):
        plan(target, "png", "photo", OUTPUT_DIR, {})


def test_unknown_mode_fails() -> None:
    target = TargetSpec(name="odd", mode="unknownmode", formats=("png",))

    with pytest.raises(UnknownMode) as exc_info:
        plan(target, "png", "photo", OUTPUT_DIR, {})
    assert exc_info.value.mode == "unknownmode"
    assert exc_info.value.format_id == "png"


def test_unsupported_format_is_checked_first() -> None:
    target = TargetSpec(name="odd", mode="unknownmode", formats=("pngs",))

    with pytest.raises(UnsupportedFormat) as exc_info:
        plan(target, "pngs", "photo", OUTPUT_DIR, {})
    assert exc_info.value.format_id == "pngs"
    assert exc_info.value.target == "odd"


def test_build_single_target() -> None:
    targets = {"full": TargetSpec(name="full", mode="no-scale", formats=("png",))}

    pipe_set = build_pipe_set(targets, {}, "photo", OUTPUT_DIR)

    assert len(pipe_set) == 1
    assert pipe_set[0].output_path == OUTPUT_DIR / "photo.png"


def test_build_preserves_target_then_format_order() -> None:
    targets = {
        "full": TargetSpec(name="full", mode="no-scale", formats=("png",)),
        "small": TargetSpec(name="small", mode="keep-aspect", formats=("jpeg", "webp"), filename_suffix="-s", width=300),
    }

    pipe_set = build_pipe_set(targets, {}, "photo", OUTPUT_DIR)

    assert [d.output_path.name for d in pipe_set] == ["photo.png", "photo-s.jpg", "photo-s.webp"]
    assert [d.target_name for d in pipe_set] == ["full", "small", "small"]
    assert pipe_set[0].resize is None
    assert pipe_set[1].resize == ResizeInstruction(dimension="width", value=300)


def test_build_skips_unsupported_format(caplog: pytest.LogCaptureFixture) -> None:
    targets = {"full": TargetSpec(name="full", mode="no-scale", formats=("pngs",))}

    with caplog.at_level(logging.WARNING):
        pipe_set = build_pipe_set(targets, {}, "photo", OUTPUT_DIR)

    assert pipe_set == []
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "pngs" in warnings[0].getMessage()
    assert "full" in warnings[0].getMessage()


def test_build_keeps_valid_pipes_around_unsupported_one() -> None:
    targets = {
        "full": TargetSpec(name="full", mode="no-scale", formats=("png", "bmpx", "gif")),
        "small": TargetSpec(name="small", mode="keep-aspect", formats=("jpeg",), filename_suffix="-s", height=50),
    }

    pipe_set = build_pipe_set(targets, {}, "photo", OUTPUT_DIR)

    assert [d.format for d in pipe_set] == ["png", "gif", "jpeg"]


def test_build_aborts_on_invalid_target() -> None:
    targets = {
        "full": TargetSpec(name="full", mode="no-scale", formats=("png",)),
        "broken": TargetSpec(name="broken", mode="keep-aspect", formats=("png",)),
    }

    with pytest.raises(InvalidModeConfiguration):
        build_pipe_set(targets, {}, "photo", OUTPUT_DIR)


def test_build_is_idempotent() -> None:
    targets = {
        "full": TargetSpec(name="full", mode="no-scale", formats=("png", "webp")),
        "small": TargetSpec(name="small", mode="keep-aspect", formats=("jpeg",), filename_suffix="-s", width=20),
    }
    options = {"jpeg": {"quality": 70}}

    first = build_pipe_set(targets, options, "photo", OUTPUT_DIR)
    second = build_pipe_set(targets, options, "photo", OUTPUT_DIR)

    assert first == second


def test_build_warns_on_colliding_paths(caplog: pytest.LogCaptureFixture) -> None:
    targets = {
        "a": TargetSpec(name="a", mode="no-scale", formats=("png",)),
        "b": TargetSpec(name="b", mode="keep-aspect", formats=("png",), width=10),
    }

    with caplog.at_level(logging.WARNING):
        pipe_set = build_pipe_set(targets, {}, "photo", OUTPUT_DIR)

    assert len(pipe_set) == 2
    assert pipe_set[0].output_path == pipe_set[1].output_path
    assert any("photo.png" in r.getMessage() for r in caplog.records)
