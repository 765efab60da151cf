"""Shared comparison options for pixdiff commands."""

from __future__ import annotations

import dataclasses
import functools
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from pixdiff.options import (
    Box,
    ComparisonOptions,
    ErrorType,
    IgnoreMode,
    OutputSettings,
    parse_error_type,
    parse_ignore_mode,
)


def _int_tuple(count: int, label: str) -> Callable[..., Any]:
    """Click callback parsing ``a,b,c`` into a tuple of *count* ints (or a list of them)."""

    def _one(raw: str, ctx: click.Context, param: click.Parameter) -> tuple[int, ...]:
        parts = [p.strip() for p in raw.split(",")]
        try:
            values = tuple(int(p) for p in parts)
        except ValueError:
            values = ()
        if len(values) != count:
            raise click.BadParameter(f"{raw!r} is not {label}", ctx=ctx, param=param)
        return values

    def _callback(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, tuple):
            return tuple(_one(v, ctx, param) for v in value)
        return _one(value, ctx, param)

    return _callback


def comparison_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the comparison configuration options to a Click command."""

    @click.option(
        "--config",
        "config_path",
        default=None,
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="JSON options file (camelCase keys); flags override it.",
    )
    @click.option(
        "--ignore",
        default=None,
        type=click.Choice([m.value for m in IgnoreMode]),
        help="Ignore preset.",
    )
    @click.option(
        "--error-type",
        default=None,
        type=click.Choice([t.value for t in ErrorType]),
        help="Diff rendering mode.",
    )
    @click.option(
        "--error-color",
        default=None,
        metavar="R,G,B",
        callback=_int_tuple(3, "R,G,B"),
        help="Color used for mismatched pixels.",
    )
    @click.option("--transparency", default=None, type=float, help="Error overlay transparency.")
    @click.option(
        "--large-image-threshold",
        default=None,
        type=int,
        help="Skip movement search above this width/height (0 = never).",
    )
    @click.option("--scale", is_flag=True, help="Scale ACTUAL to EXPECTED's size.")
    @click.option(
        "--return-early",
        default=None,
        type=float,
        metavar="PCT",
        help="Stop scoring once the mismatch exceeds PCT (approximate result).",
    )
    @click.option(
        "--bounding-box",
        multiple=True,
        metavar="L,T,R,B",
        callback=_int_tuple(4, "L,T,R,B"),
        help="Only score pixels inside this box (repeatable).",
    )
    @click.option(
        "--ignore-box",
        multiple=True,
        metavar="L,T,R,B",
        callback=_int_tuple(4, "L,T,R,B"),
        help="Exclude pixels inside this box (repeatable).",
    )
    @click.option(
        "--ignore-color",
        default=None,
        metavar="R,G,B,A",
        callback=_int_tuple(4, "R,G,B,A"),
        help="Exclude pixels of exactly this color in either image.",
    )
    @click.option("--workers", default=None, type=click.IntRange(min=1), help="Worker threads.")
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return fn(*args, **kwargs)

    return wrapper


def build_options(
    *,
    config_path: Path | None = None,
    ignore: str | None = None,
    error_type: str | None = None,
    error_color: tuple[int, int, int] | None = None,
    transparency: float | None = None,
    large_image_threshold: int | None = None,
    scale: bool = False,
    return_early: float | None = None,
    bounding_box: tuple[tuple[int, ...], ...] = (),
    ignore_box: tuple[tuple[int, ...], ...] = (),
    ignore_color: tuple[int, int, int, int] | None = None,
    workers: int | None = None,
    output_diff: bool = True,
) -> ComparisonOptions:
    """Merge an optional JSON options file with command-line overrides.

    Raises:
        ValueError: Malformed JSON or option values (including PixdiffError).
        OSError: The options file cannot be read.
    """
    base = ComparisonOptions()
    if config_path is not None:
        data = json.loads(config_path.read_text())
        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: options file must hold a JSON object")
        base = ComparisonOptions.from_mapping(data)

    out: dict[str, Any] = {"output_diff": output_diff}
    if error_type is not None:
        out["error_type"] = parse_error_type(error_type)
    if error_color is not None:
        out["error_color"] = error_color
    if transparency is not None:
        out["transparency"] = transparency
    if large_image_threshold is not None:
        out["large_image_threshold"] = large_image_threshold
    if bounding_box:
        out["bounding_boxes"] = tuple(Box(*b) for b in bounding_box)
    if ignore_box:
        out["ignored_boxes"] = tuple(Box(*b) for b in ignore_box)
    if ignore_color is not None:
        out["ignore_areas_colored_with"] = ignore_color
    output: OutputSettings = dataclasses.replace(base.output, **out)

    top: dict[str, Any] = {"output": output}
    if ignore is not None:
        top["ignore"] = parse_ignore_mode(ignore)
    if scale:
        top["scale_to_same_size"] = True
    if return_early is not None:
        top["return_early_threshold"] = return_early
    if workers is not None:
        top["max_workers"] = workers
    return dataclasses.replace(base, **top)
