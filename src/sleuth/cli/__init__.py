"""Sleuth CLI -- terminal interface for the research agent.

This module is NEVER imported from sleuth/__init__.py.
It is only loaded via the ``sleuth`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install sleuth[cli]"
    ) from None


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Sleuth: iterative search / read / reflect research agent."""
    ctx.ensure_object(dict)


def configure_logging() -> None:
    """Route ``sleuth`` log records at INFO to a RichHandler on stderr."""
    from rich.logging import RichHandler

    from sleuth.cli.formatting import get_console

    handler = RichHandler(console=get_console(stderr=True), show_path=False)
    root = logging.getLogger("sleuth")
    root.handlers[:] = [handler]
    root.setLevel(logging.INFO)


# Register subcommands after cli group is defined
from sleuth.cli.commands.ask import ask  # noqa: E402

cli.add_command(ask)
