"""pixdiff mask command -- preview which pixels a comparison scores."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import click
import numpy as np

from pixdiff import codec
from pixdiff.commands._options import build_options, comparison_options
from pixdiff.engine import region_mask


@click.command("mask")
@click.argument("expected", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("actual", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@comparison_options
def mask_cmd(expected: Path, actual: Path, output: Path, **option_args: Any) -> None:
    """Write the region mask as a PNG: white pixels are scored, black are excluded."""
    try:
        options = build_options(output_diff=False, **option_args)
        excluded = region_mask(codec.decode(expected), codec.decode(actual), options)
        codec.save_mask(excluded, output)
    except (ValueError, OSError) as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(2)

    scored = int(excluded.size - np.count_nonzero(excluded))
    click.echo(f"scored: {scored}/{excluded.size} pixels")
