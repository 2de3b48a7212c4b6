"""Click CLI entry point for Harbinger."""

from __future__ import annotations

import click

from harbinger._version import __version__


@click.group()
@click.version_option(version=__version__, prog_name="harbinger")
def cli():
    """Harbinger - nightly maintainer and local-first model router.

    Scan a project, fix what is safe to fix, and route tasks to the
    cheapest model that can handle them.
    """
    pass


# Import and register subcommands
from harbinger.cli.maintain_cmd import maintain  # noqa: E402
from harbinger.cli.scan_cmd import scan  # noqa: E402
from harbinger.cli.route_cmd import route, routes  # noqa: E402

cli.add_command(maintain)
cli.add_command(scan)
cli.add_command(route)
cli.add_command(routes)


if __name__ == "__main__":
    cli()
