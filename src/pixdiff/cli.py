from __future__ import annotations

import logging

import click

from pixdiff import __version__
from pixdiff.commands.compare import compare_cmd
from pixdiff.commands.mask import mask_cmd


def _configure_logging(ctx: click.Context, param: click.Parameter, value: int) -> None:
    """Send library debug/info logs to stderr when -v is given."""
    if not value:
        return
    level = logging.DEBUG if value > 1 else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="pixdiff")
@click.option(
    "-v",
    "--verbose",
    count=True,
    expose_value=False,
    is_eager=True,
    callback=_configure_logging,
    help="Log to stderr (-vv for debug).",
)
def main() -> None:
    """pixdiff: visual regression diffs for decoded raster images."""


main.add_command(compare_cmd, name="compare")
main.add_command(mask_cmd, name="mask")


if __name__ == "__main__":
    main()
