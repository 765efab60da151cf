"""pixdiff compare command -- tolerance-aware image comparison."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import click

from pixdiff import codec
from pixdiff.commands._options import build_options, comparison_options
from pixdiff.engine import compare
from pixdiff.report import result_to_dict, write_json, write_kv

log = logging.getLogger(__name__)


@click.command("compare")
@click.argument("expected", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("actual", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--threshold", default=0.0, type=float, help="Mismatch percentage still a match.")
@click.option(
    "--diff-output",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write diff visualization PNG.",
)
@comparison_options
@click.option("--details", is_flag=True, help="Print every result field.")
@click.option("--json", "use_json", is_flag=True, help="JSON output.")
def compare_cmd(
    expected: Path,
    actual: Path,
    threshold: float,
    diff_output: Path | None,
    details: bool,
    use_json: bool,
    **option_args: Any,
) -> None:
    """Compare two images with color and antialiasing tolerance.

    Exit 0 if the mismatch percentage is within threshold, exit 1 if it is
    above, exit 2 on error (unreadable image, invalid configuration).
    """
    try:
        options = build_options(output_diff=diff_output is not None, **option_args)
        result = compare(codec.decode(expected), codec.decode(actual), options)
        written: Path | None = None
        if diff_output is not None and result.diff_image is not None and result.mismatched_pixels:
            written = codec.save(result.diff_image, diff_output)
            log.debug("diff image written to %s", written)
    except (ValueError, OSError) as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(2)

    identical = result.mismatch_percentage <= threshold
    if use_json:
        write_json(result_to_dict(result, diff_image=written, threshold=threshold))
    elif details:
        write_kv(result_to_dict(result, diff_image=written, threshold=threshold))
    elif identical:
        click.echo("match")
    else:
        click.echo(
            f"diff: {result.mismatched_pixels}/{result.total_pixels} pixels "
            f"({result.mismatch_percentage:.2f}%)"
        )

    sys.exit(0 if identical else 1)
