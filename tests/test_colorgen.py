"""Tests for the command line tool."""

from __future__ import annotations

from pathlib import Path

import pytest

import colorgen
from config import (
    COLORMAP_BYTES,
    NUM_LEVELS,
    PALETTE_COLORS,
    ColormapSystemConfig,
    GeneratorConfig,
    OutputConfig,
    reload_config,
)
from pngn_colormap import generate
from pngn_palette import load_colormap_from_path
from pngn_preview import palette_to_image


def test_main_writes_colormap(tmp_path, random_palette, capsys) -> None:
    source = tmp_path / "palette.lmp"
    source.write_bytes(random_palette.to_bytes())
    output = tmp_path / "colormap.lmp"

    assert colorgen.main([str(source), "-o", str(output)]) == 0

    assert output.stat().st_size == COLORMAP_BYTES
    assert load_colormap_from_path(output) == generate(random_palette)
    out = capsys.readouterr().out
    assert "Successfully wrote" in out
    assert "Done!" in out


def test_main_with_threads_and_preview(tmp_path, grayscale_palette) -> None:
    source = tmp_path / "palette.lmp"
    source.write_bytes(grayscale_palette.to_bytes())
    output = tmp_path / "colormap.lmp"
    preview = tmp_path / "colormap.png"

    result = colorgen.main([
        str(source), "-o", str(output), "--workers", "4",
        "--preview", str(preview), "--preview-scale", "2",
    ])

    assert result == 0
    assert output.read_bytes() == generate(grayscale_palette).to_bytes()
    assert preview.exists()


def test_main_reads_palette_image(tmp_path, grayscale_palette) -> None:
    source = tmp_path / "palette.png"
    palette_to_image(grayscale_palette).save(source)
    output = tmp_path / "colormap.lmp"

    assert colorgen.main([str(source), "--from-image", "-o", str(output)]) == 0
    assert output.read_bytes() == generate(grayscale_palette).to_bytes()


def test_main_honours_fullbright_count(tmp_path, grayscale_palette) -> None:
    source = tmp_path / "palette.lmp"
    source.write_bytes(grayscale_palette.to_bytes())
    output = tmp_path / "colormap.lmp"

    assert colorgen.main([str(source), "-o", str(output), "--fullbrights", "0"]) == 0

    colormap = load_colormap_from_path(output)
    assert colormap[NUM_LEVELS - 1][PALETTE_COLORS - 1] == 0


def test_main_rejects_wrong_palette_size(tmp_path, capsys) -> None:
    source = tmp_path / "palette.lmp"
    source.write_bytes(b"\x00" * 767)
    output = tmp_path / "colormap.lmp"

    assert colorgen.main([str(source), "-o", str(output)]) == 1

    assert not output.exists()
    assert "768 bytes" in capsys.readouterr().err


def test_main_reports_missing_palette(tmp_path) -> None:
    output = tmp_path / "colormap.lmp"

    assert colorgen.main([str(tmp_path / "missing.lmp"), "-o", str(output)]) == 1
    assert not output.exists()


def test_main_reports_unwritable_output(tmp_path, random_palette) -> None:
    source = tmp_path / "palette.lmp"
    source.write_bytes(random_palette.to_bytes())

    assert colorgen.main([str(source), "-o", str(tmp_path / "missing" / "colormap.lmp")]) == 1


@pytest.mark.parametrize("args", [["--fullbrights", "257"], ["--workers", "0"], ["--preview-scale", "0"]])
def test_main_rejects_bad_options(tmp_path, args) -> None:
    with pytest.raises(SystemExit) as excinfo:
        colorgen.main([str(tmp_path / "palette.lmp"), *args])
    assert excinfo.value.code == 2


def test_main_failed_preview_leaves_no_colormap(tmp_path, random_palette, capsys) -> None:
    source = tmp_path / "palette.lmp"
    source.write_bytes(random_palette.to_bytes())
    output = tmp_path / "colormap.lmp"

    result = colorgen.main([
        str(source), "-o", str(output), "--preview", str(tmp_path / "missing_dir" / "p.png"),
    ])

    assert result == 1
    assert not output.exists()
    assert "Error:" in capsys.readouterr().err


def test_main_failed_colormap_removes_preview(tmp_path, random_palette) -> None:
    source = tmp_path / "palette.lmp"
    source.write_bytes(random_palette.to_bytes())
    preview = tmp_path / "colormap.png"

    result = colorgen.main([
        str(source), "-o", str(tmp_path / "missing_dir" / "colormap.lmp"), "--preview", str(preview),
    ])

    assert result == 1
    assert not preview.exists()


def test_parser_defaults_follow_config() -> None:
    reload_config(ColormapSystemConfig(
        generator=GeneratorConfig(num_fullbright=8, max_worker_threads=2),
        output=OutputConfig(colormap_filename="lights.lmp", preview_scale=3),
    ))
    try:
        args = colorgen.build_arg_parser().parse_args(["palette.lmp"])
    finally:
        reload_config(ColormapSystemConfig())

    assert args.output == Path("lights.lmp")
    assert args.fullbrights == 8
    assert args.workers == 2
    assert args.preview_scale == 3
