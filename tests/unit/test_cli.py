"""Tests for the pixdiff command line."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner
from image_helpers import write_png
from PIL import Image

from pixdiff.cli import main


def _dot(tmp_path: Path, name: str, dot: tuple[int, ...] = (255, 0, 0, 255)) -> Path:
    """4x4 black image with one colored pixel at (0, 0)."""
    img = Image.new("RGBA", (4, 4), (0, 0, 0, 255))
    img.putpixel((0, 0), dot)
    p = tmp_path / name
    img.save(p)
    return p


class TestCompareExitCodes:
    def test_identical_exit_0(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        b = write_png(tmp_path, "b.png", (0, 0, 0, 255))
        result = CliRunner().invoke(main, ["compare", str(a), str(b)])
        assert result.exit_code == 0
        assert "match" in result.output

    def test_differs_exit_1(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        b = write_png(tmp_path, "b.png", (255, 255, 255, 255))
        result = CliRunner().invoke(main, ["compare", str(a), str(b)])
        assert result.exit_code == 1
        assert "diff: 16/16 pixels (100.00%)" in result.output

    def test_size_mismatch_is_a_diff(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255), size=(4, 4))
        b = write_png(tmp_path, "b.png", (0, 0, 0, 255), size=(8, 8))
        result = CliRunner().invoke(main, ["compare", str(a), str(b)])
        assert result.exit_code == 1
        assert "75.00%" in result.output

    def test_scale_flag(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255), size=(4, 4))
        b = write_png(tmp_path, "b.png", (0, 0, 0, 255), size=(8, 8))
        result = CliRunner().invoke(main, ["compare", "--scale", str(a), str(b)])
        assert result.exit_code == 0

    def test_unreadable_image_exit_2(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not a png")
        result = CliRunner().invoke(main, ["compare", str(a), str(bad)])
        assert result.exit_code == 2
        assert "error:" in result.output

    def test_box_outside_exit_2(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        result = CliRunner().invoke(
            main, ["compare", "--bounding-box", "0,0,9,9", str(a), str(a)]
        )
        assert result.exit_code == 2
        assert "outside" in result.output

    def test_malformed_color_is_usage_error(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        result = CliRunner().invoke(main, ["compare", "--error-color", "1,2", str(a), str(a)])
        assert result.exit_code == 2
        assert "R,G,B" in result.output


class TestCompareOptions:
    def test_threshold_allows_diff(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        b = _dot(tmp_path, "b.png")
        result = CliRunner().invoke(main, ["compare", "--threshold", "10", str(a), str(b)])
        assert result.exit_code == 0

    def test_ignore_nothing(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (100, 100, 100, 255))
        b = write_png(tmp_path, "b.png", (101, 100, 100, 255))
        assert CliRunner().invoke(main, ["compare", str(a), str(b)]).exit_code == 0
        result = CliRunner().invoke(main, ["compare", "--ignore", "nothing", str(a), str(b)])
        assert result.exit_code == 1

    def test_ignore_box(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        b = _dot(tmp_path, "b.png")
        result = CliRunner().invoke(
            main, ["compare", "--ignore-box", "0,0,1,1", str(a), str(b)]
        )
        assert result.exit_code == 0

    def test_config_file(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (100, 100, 100, 255))
        b = write_png(tmp_path, "b.png", (101, 100, 100, 255))
        cfg = tmp_path / "opts.json"
        cfg.write_text(json.dumps({"ignore": "nothing"}))
        result = CliRunner().invoke(main, ["compare", "--config", str(cfg), str(a), str(b)])
        assert result.exit_code == 1

    def test_flag_overrides_config(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (100, 100, 100, 255))
        b = write_png(tmp_path, "b.png", (101, 100, 100, 255))
        cfg = tmp_path / "opts.json"
        cfg.write_text(json.dumps({"ignore": "nothing"}))
        result = CliRunner().invoke(
            main, ["compare", "--config", str(cfg), "--ignore", "less", str(a), str(b)]
        )
        assert result.exit_code == 0

    def test_config_not_an_object(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        cfg = tmp_path / "opts.json"
        cfg.write_text("[1, 2]")
        result = CliRunner().invoke(main, ["compare", "--config", str(cfg), str(a), str(a)])
        assert result.exit_code == 2
        assert "JSON object" in result.output


class TestCompareOutput:
    def test_diff_output_written(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        b = _dot(tmp_path, "b.png")
        diff = tmp_path / "diff.png"
        result = CliRunner().invoke(
            main,
            ["compare", "--diff-output", str(diff), "--transparency", "0", str(a), str(b)],
        )
        assert result.exit_code == 1
        with Image.open(diff) as img:
            assert img.getpixel((0, 0)) == (255, 0, 255, 255)

    def test_no_diff_output_when_identical(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        diff = tmp_path / "diff.png"
        result = CliRunner().invoke(main, ["compare", "--diff-output", str(diff), str(a), str(a)])
        assert result.exit_code == 0
        assert not diff.exists()

    def test_json(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        b = _dot(tmp_path, "b.png")
        result = CliRunner().invoke(main, ["compare", "--json", str(a), str(b)])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["mismatch_percentage"] == 6.25
        assert data["identical"] is False
        assert data["diff_bounds"] == {"left": 0, "top": 0, "right": 1, "bottom": 1}

    def test_details(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        result = CliRunner().invoke(main, ["compare", "--details", str(a), str(a)])
        assert result.exit_code == 0
        assert "mismatch_percentage:" in result.output
        assert "identical:" in result.output


class TestMask:
    def test_writes_mask(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        out = tmp_path / "mask.png"
        result = CliRunner().invoke(
            main, ["mask", "--ignore-box", "0,0,2,2", str(a), str(a), str(out)]
        )
        assert result.exit_code == 0
        assert "scored: 12/16 pixels" in result.output
        with Image.open(out) as img:
            assert img.getpixel((0, 0)) == 0
            assert img.getpixel((3, 3)) == 255

    def test_invalid_box(self, tmp_path: Path) -> None:
        a = write_png(tmp_path, "a.png", (0, 0, 0, 255))
        out = tmp_path / "mask.png"
        result = CliRunner().invoke(
            main, ["mask", "--ignore-box", "3,0,1,1", str(a), str(a), str(out)]
        )
        assert result.exit_code == 2
        assert "inverted" in result.output


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "pixdiff" in result.output


def test_help_lists_commands() -> None:
    result = CliRunner().invoke(main, ["--help"])
    assert "compare" in result.output
    assert "mask" in result.output
