"""
Interactive menu — the default when ``nodekeeper`` runs without a command.

Each option reuses the helper behind the matching single command. An
operation failure is printed and the menu is shown again; only ``q``
(or end of input) leaves the loop.
"""

from __future__ import annotations

import logging
import sys

import click

from nodekeeper.core.errors import NodeKeeperError
from nodekeeper.core.services.node_install.data.components import CONSENSUS, EXECUTION
from nodekeeper.ui.cli.context import get_state
from nodekeeper.ui.cli.lifecycle import run_install, run_update
from nodekeeper.ui.cli import tools

logger = logging.getLogger(__name__)

MENU_OPTIONS: list[tuple[str, str]] = [
    ("0", "Check system hardware requirements"),
    ("1", "Install Story Node"),
    ("2", "Update Story Consensus"),
    ("3", "Update Story Geth"),
    ("4", "Create validator"),
    ("5", "Get latest block height"),
    ("6", "Get Validator dashboard link"),
    ("7", "Get Validator Public and Private Key"),
    ("8", "Get faucet"),
    ("q", "Quit"),
]


def _print_menu() -> None:
    click.echo()
    click.secho("Story node manager", fg="cyan", bold=True)
    for key, label in MENU_OPTIONS:
        click.echo(f"{key}. {label}")
    click.echo()


def install_menu(ctx: click.Context) -> None:
    """Offer the latest and previous consensus versions, then install."""
    from nodekeeper.core.services.node_install.orchestration.install import install_choices

    choices = install_choices(get_state(ctx))
    options: list[tuple[str, str | None]] = [
        (f"Install version {choices.latest} - Latest", choices.latest),
    ]
    if choices.previous:
        options.append((f"Install version {choices.previous}", choices.previous))

    while True:
        for i, (label, _) in enumerate(options, start=1):
            click.echo(f"{i}) {label}")
        click.echo(f"{len(options) + 1}) Back")
        reply = click.prompt("Select an option", type=str, default="", show_default=False).strip()

        if reply == str(len(options) + 1):
            return
        if reply.isdigit() and 1 <= int(reply) <= len(options):
            run_install(ctx, options[int(reply) - 1][1])
            return
        click.secho(f"Invalid option {reply}", fg="yellow")


def _dispatch(ctx: click.Context, choice: str) -> None:
    if choice == "0":
        tools.show_requirements()
    elif choice == "1":
        install_menu(ctx)
    elif choice == "2":
        run_update(ctx, CONSENSUS)
    elif choice == "3":
        run_update(ctx, EXECUTION)
    elif choice == "4":
        tools.run_create_validator(ctx)
    elif choice == "5":
        tools.show_block_height(ctx)
    elif choice == "6":
        tools.show_dashboard(ctx)
    elif choice == "7":
        tools.run_export_keys(ctx)
    elif choice == "8":
        tools.show_faucet(ctx)
    else:
        click.secho("Invalid option", fg="yellow")


def run_menu(ctx: click.Context) -> None:
    """Loop until the operator quits."""
    while True:
        _print_menu()
        try:
            choice = click.prompt(
                "Enter the number of the option you want",
                type=str, default="", show_default=False,
            ).strip().lower()
        except click.Abort:
            click.echo()
            return

        if choice == "q":
            return

        click.echo()
        try:
            _dispatch(ctx, choice)
        except NodeKeeperError as e:
            logger.debug("Menu option %s failed", choice, exc_info=True)
            click.secho(f"❌ {e}", fg="red")
        except click.Abort:
            click.echo()
            return
        except Exception as e:
            logger.error("Menu option %s crashed", choice, exc_info=True)
            click.secho(f"❌ Unexpected error: {e}", fg="red")


@click.command()
@click.pass_context
def menu(ctx: click.Context) -> None:
    """Interactive menu (default when no command is given)."""
    run_menu(ctx)
    sys.exit(0)
