"""
CLI commands for the node lifecycle: install, update, peers, status.

Thin wrappers over ``nodekeeper.core.services.node_install``. The
``run_*`` helpers are shared with the interactive menu: they print the
outcome, write the audit entry and return whether it succeeded, but
never raise a ``NodeKeeperError``.
"""

from __future__ import annotations

import dataclasses
import json
import sys
import time

import click

from nodekeeper.adapters.console import AssumeYes
from nodekeeper.core.errors import NodeKeeperError
from nodekeeper.core.persistence.audit import AuditEntry
from nodekeeper.core.services.node_install.data.components import COMPONENTS, CONSENSUS, EXECUTION
from nodekeeper.ui.cli.context import get_state, record


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def run_install(ctx: click.Context, tag: str | None = None) -> bool:
    """Fresh install; prints the outcome. Returns True on success."""
    from nodekeeper.core.services.node_install.orchestration.install import fresh_install

    state = get_state(ctx)
    start = time.monotonic()
    click.secho("📦 Installing Story node...", fg="cyan", bold=True)

    try:
        report = fresh_install(state, consensus_tag=tag)
    except NodeKeeperError as e:
        click.secho(f"❌ {e}", fg="red")
        record(ctx, AuditEntry(
            operation="install", status="failed", to_version=tag,
            step=e.step, error=e.message, duration_ms=_elapsed_ms(start),
        ))
        return False

    record(ctx, AuditEntry(
        operation="install", status="ok", to_version=report.consensus_tag,
        duration_ms=_elapsed_ms(start), context=report.to_dict(),
    ))

    click.secho(f"✅ Node '{report.moniker}' installed", fg="green", bold=True)
    click.echo(f"   story {report.consensus_tag} │ geth {report.execution_tag}")
    click.echo(f"   Peers: {report.peer_count}")
    for name, up in report.running.items():
        marker = click.style("running", fg="green") if up else click.style("not running", fg="red")
        click.echo(f"   • {name}: {marker}")
    return True


def run_update(ctx: click.Context, role: str, *, assume_yes: bool = False) -> bool:
    """Update one component; prints the outcome. Returns True unless it failed."""
    from nodekeeper.core.services.node_install.orchestration.update import (
        describe_failure,
        update_component,
    )

    component = COMPONENTS[role]
    state = get_state(ctx)
    if assume_yes:
        state = dataclasses.replace(state, confirmer=AssumeYes())

    start = time.monotonic()
    try:
        report = update_component(component, state)
    except NodeKeeperError as e:
        if not e.fatal:
            click.secho(f"Exiting update process for {component.name}.", fg="yellow")
            record(ctx, AuditEntry(
                operation="update", component=component.name, status="declined",
                step=e.step, duration_ms=_elapsed_ms(start),
            ))
            return True
        click.secho(f"❌ {describe_failure(e)}", fg="red")
        record(ctx, AuditEntry(
            operation="update", component=component.name, status="failed",
            step=e.step, phase=e.phase, error=e.message, duration_ms=_elapsed_ms(start),
        ))
        return False

    record(ctx, AuditEntry(
        operation="update", component=component.name, status="ok",
        from_version=report.installed_version, to_version=report.latest_version,
        duration_ms=_elapsed_ms(start), context=report.to_dict(),
    ))
    click.secho(
        f"✅ Done updating {component.name}: {report.installed_version} → {report.latest_version}",
        fg="green", bold=True,
    )
    if report.same_version:
        click.echo("   (installed version already matched the latest release)")
    return True


@click.command()
@click.option("--tag", default=None, help="Consensus version to install (default: latest).")
@click.option("--previous", is_flag=True, help="Install the previous consensus release.")
@click.pass_context
def install(ctx: click.Context, tag: str | None, previous: bool) -> None:
    """Install a new node: binaries, chain state, peers, services."""
    if previous:
        from nodekeeper.core.services.node_install.orchestration.install import install_choices

        try:
            choices = install_choices(get_state(ctx))
        except NodeKeeperError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)
        if choices.previous is None:
            click.secho("❌ No previous release to install", fg="red")
            sys.exit(1)
        tag = choices.previous

    if not run_install(ctx, tag):
        sys.exit(1)


@click.command()
@click.argument("component", type=click.Choice([CONSENSUS, EXECUTION]))
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def update(ctx: click.Context, component: str, assume_yes: bool) -> None:
    """Stop, replace and restart one engine (consensus or execution)."""
    if not run_update(ctx, component, assume_yes=assume_yes):
        sys.exit(1)


@click.command()
@click.option("--apply", "apply_", is_flag=True, help="Write the peers into config.toml.")
@click.option("--seed", default=None, help="Seed RPC endpoint (default: from config).")
@click.pass_context
def peers(ctx: click.Context, apply_: bool, seed: str | None) -> None:
    """Show (or apply) the persistent peer list from the seed node."""
    from nodekeeper.core.services.node_install.detection.peers import (
        build_peer_string,
        peer_exclusions,
    )
    from nodekeeper.core.services.node_install.execution.node_config import set_persistent_peers

    state = get_state(ctx)
    try:
        peer_string = build_peer_string(
            seed or state.seed_endpoint,
            timeout=state.http_timeout,
            exclude_ids=peer_exclusions(
                state.rpc_endpoint, state.exclude_peer_ids, timeout=state.http_timeout,
            ),
        )
        click.echo(peer_string)
        if apply_:
            replaced = set_persistent_peers(state.config_toml, peer_string)
            if not replaced:
                click.secho(f"⚠️  No persistent_peers line in {state.config_toml}", fg="yellow")
                sys.exit(1)
            click.secho(f"✅ persistent_peers updated in {state.config_toml}", fg="green")
    except NodeKeeperError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Installed versions and service state of both engines."""
    state = get_state(ctx)
    result: dict[str, dict] = {}
    for role, component in COMPONENTS.items():
        entry: dict = {"component": component.name, "service": component.service_name}
        try:
            entry["version"] = state.version_probe.installed_version(component)
        except NodeKeeperError as e:
            entry["version"] = None
            entry["version_error"] = e.message
        if state.supervisor.is_registered(component.service_name):
            entry["registered"] = True
            entry["running"] = state.supervisor.is_running(component.service_name)
        else:
            entry["registered"] = False
            entry["running"] = False
        result[role] = entry

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.secho("🧭 Node status", fg="cyan", bold=True)
    for role, entry in result.items():
        version = entry["version"] or click.style("not installed", fg="yellow")
        if not entry["registered"]:
            svc = click.style("not registered", fg="yellow")
        elif entry["running"]:
            svc = click.style("running", fg="green")
        else:
            svc = click.style("stopped", fg="red")
        click.echo(f"   {role:<10} {entry['component']:<6} {version}  [{entry['service']}: {svc}]")
