"""Text and JSON rendering of comparison results."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, TextIO

from pixdiff.result import ComparisonResult


def result_to_dict(
    result: ComparisonResult,
    *,
    diff_image: Path | None = None,
    threshold: float | None = None,
) -> dict[str, Any]:
    """Flatten a result into JSON-friendly values (the diff image becomes its path)."""
    data: dict[str, Any] = {
        "is_same_dimensions": result.is_same_dimensions,
        "dimension_difference": {
            "width": result.dimension_difference.width,
            "height": result.dimension_difference.height,
        },
        "mismatch_percentage": result.mismatch_percentage,
        "raw_mismatch_percentage": result.raw_mismatch_percentage,
        "mismatched_pixels": result.mismatched_pixels,
        "total_pixels": result.total_pixels,
        "excluded_pixels": result.excluded_pixels,
        "antialiased_pixels": result.antialiased_pixels,
        "diff_bounds": result.diff_bounds.as_dict(),
        "analysis_time_ms": result.analysis_time_ms,
        "returned_early": result.returned_early,
        "diff_image": str(diff_image) if diff_image else None,
    }
    if threshold is not None:
        data["threshold"] = threshold
        data["identical"] = result.mismatch_percentage <= threshold
    return data


def _scalar(value: Any) -> Any:
    if isinstance(value, dict):
        return " ".join(f"{k}={v}" for k, v in value.items())
    if isinstance(value, bool):
        return "yes" if value else "no"
    return value


def format_kv(data: dict[str, Any]) -> str:
    """Format a dict as aligned key-value pairs.

    Nested dicts render inline as ``k=v`` pairs; None and empty-string values
    render as ``-``.
    """
    if not data:
        return ""
    max_key = max(len(str(k)) for k in data)
    lines: list[str] = []
    for k, v in data.items():
        v = _scalar(v)
        if v is None or v == "":
            v = "-"
        label = str(k) + ":"
        lines.append(f"{label:<{max_key + 2}}{v}")
    return "\n".join(lines)


def write_kv(data: dict[str, Any], out: TextIO | None = None) -> None:
    dest = out or sys.stdout
    dest.write(format_kv(data) + "\n")


def write_json(data: Any, *, out: TextIO | None = None, indent: int | None = None) -> None:
    """Write data as JSON followed by a newline."""
    dest = out or sys.stdout
    dest.write(json.dumps(data, default=str, indent=indent) + "\n")
