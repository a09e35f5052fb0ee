"""
NodeKeeper — CLI entrypoint.

Usage:
    nodekeeper                      # interactive menu
    nodekeeper install
    nodekeeper update consensus
    python -m nodekeeper.main status --json
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from nodekeeper.core.observability.logging_config import setup_logging

from nodekeeper import __version__


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="nodekeeper")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to nodekeeper.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """NodeKeeper — install, update and operate a Story validator node."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("NODEKEEPER_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("NODEKEEPER_LOG_FILE"),
        log_file_level=os.environ.get("NODEKEEPER_LOG_FILE_LEVEL"),
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(menu)


from nodekeeper.ui.cli.lifecycle import install, peers, status, update
from nodekeeper.ui.cli.menu import menu
from nodekeeper.ui.cli.tools import block_height, dashboard, faucet, requirements, validator

cli.add_command(menu)
cli.add_command(install)
cli.add_command(update)
cli.add_command(peers)
cli.add_command(status)
cli.add_command(requirements)
cli.add_command(block_height)
cli.add_command(dashboard)
cli.add_command(faucet)
cli.add_command(validator)


if __name__ == "__main__":
    cli()
