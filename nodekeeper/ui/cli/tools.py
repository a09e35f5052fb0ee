"""
CLI commands for node tools: requirements, block height, dashboard,
faucet and the validator helpers.

Thin wrappers over ``nodekeeper.core.services.node_tools``. Each
``show_*`` helper renders one result and is reused by the menu.
"""

from __future__ import annotations

import json
import sys

import click

from nodekeeper.ui.cli.context import get_config, get_state


def show_requirements() -> bool:
    from nodekeeper.core.services.node_install.detection.requirements import (
        REQUIREMENTS_TABLE,
        check_system_requirements,
    )

    click.secho("🖥️  Validator requirements:", fg="cyan", bold=True)
    for name, value in REQUIREMENTS_TABLE:
        click.echo(f"   {name:<10} {value}")
    click.echo()

    result = check_system_requirements()
    if result["ok"]:
        click.secho("✅ System meets the minimum requirements", fg="green")
        return True
    for failure in result["failures"]:
        click.secho(f"❌ {failure}", fg="red")
    return False


def show_block_height(ctx: click.Context) -> bool:
    from nodekeeper.core.services.node_tools import latest_block_height

    config = get_config(ctx)
    result = latest_block_height(config.rpc_endpoint, timeout=config.http_timeout)
    if not result["ok"]:
        click.secho(f"❌ {result['error']}", fg="red")
        return False
    click.echo(result["height"])
    return True


def show_dashboard(ctx: click.Context) -> bool:
    from nodekeeper.core.services.node_tools import dashboard_link

    result = dashboard_link(get_state(ctx).validator_key_file, get_config(ctx).explorer_url)
    if not result["ok"]:
        click.secho(f"❌ {result['error']}", fg="red")
        return False
    click.echo(result["url"])
    return True


def show_faucet(ctx: click.Context) -> bool:
    click.echo(get_config(ctx).faucet_url)
    return True


def run_create_validator(ctx: click.Context, private_key: str | None = None) -> bool:
    from nodekeeper.core.services.node_tools import VALIDATOR_STAKE, create_validator

    click.secho(
        "⚠️  This will stake 0.5 IP to your validator, make sure you have some in your wallet.",
        fg="yellow",
    )
    if private_key is None:
        private_key = click.prompt("Please enter your private key", hide_input=True, type=str)

    result = create_validator(get_state(ctx), private_key.strip(), stake=VALIDATOR_STAKE)
    if not result["ok"]:
        click.secho(f"❌ {result['error']}", fg="red")
        return False
    if result["output"]:
        click.echo(result["output"])
    click.secho("✅ Validator created", fg="green")
    return True


def run_export_keys(ctx: click.Context) -> bool:
    from nodekeeper.core.services.node_tools import export_keys

    result = export_keys(get_state(ctx))
    if not result["ok"]:
        click.secho(f"❌ {result['error']}", fg="red")
        return False
    if result["output"]:
        click.echo(result["output"])
    click.echo(result["private_key"])
    return True


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def requirements(as_json: bool) -> None:
    """Check this host against the validator hardware minimums."""
    if as_json:
        from nodekeeper.core.services.node_install.detection.requirements import (
            check_system_requirements,
        )

        result = check_system_requirements()
        click.echo(json.dumps(result, indent=2))
        if not result["ok"]:
            sys.exit(1)
        return

    if not show_requirements():
        sys.exit(1)


@click.command("block-height")
@click.pass_context
def block_height(ctx: click.Context) -> None:
    """Latest block height of the local node."""
    if not show_block_height(ctx):
        sys.exit(1)


@click.command()
@click.pass_context
def dashboard(ctx: click.Context) -> None:
    """Explorer link for this node's validator."""
    if not show_dashboard(ctx):
        sys.exit(1)


@click.command()
@click.pass_context
def faucet(ctx: click.Context) -> None:
    """Testnet faucet link."""
    show_faucet(ctx)


@click.group()
def validator() -> None:
    """Validator helpers (delegates to the story binary)."""


@validator.command("create")
@click.option(
    "--private-key", envvar="NODEKEEPER_PRIVATE_KEY", default=None,
    help="EVM private key (prompted, hidden, if omitted).",
)
@click.pass_context
def validator_create(ctx: click.Context, private_key: str | None) -> None:
    """Create the validator, staking 0.5 IP."""
    if not run_create_validator(ctx, private_key):
        sys.exit(1)


@validator.command("export")
@click.pass_context
def validator_export(ctx: click.Context) -> None:
    """Export the validator's public and private EVM key."""
    if not run_export_keys(ctx):
        sys.exit(1)
