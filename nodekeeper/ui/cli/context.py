"""
Shared CLI plumbing — config, deployment state and audit for commands.

Commands never build adapters themselves; they ask for the
``DeploymentState`` here. Tests inject one through ``obj={"state": ...}``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from nodekeeper.adapters.console import ClickConfirmer, ClickPrompter
from nodekeeper.core.config.loader import ConfigError, NodeKeeperConfig, load_config
from nodekeeper.core.deployment import DeploymentState
from nodekeeper.core.persistence.audit import AuditEntry, AuditWriter


def get_config(ctx: click.Context) -> NodeKeeperConfig:
    """Load (once) the config for this invocation; exit 1 if it is invalid."""
    obj = ctx.ensure_object(dict)
    if obj.get("config") is None:
        config_path: Path | None = obj.get("config_path")
        try:
            obj["config"] = load_config(config_path)
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)
    return obj["config"]


def get_state(ctx: click.Context) -> DeploymentState:
    """The deployment state for this invocation (live unless injected)."""
    obj = ctx.ensure_object(dict)
    if obj.get("state") is None:
        obj["state"] = DeploymentState.from_config(
            get_config(ctx),
            confirmer=ClickConfirmer(),
            prompter=ClickPrompter(),
        )
    return obj["state"]


def record(ctx: click.Context, entry: AuditEntry) -> None:
    """Append ``entry`` to the audit ledger."""
    AuditWriter(get_config(ctx).state_dir).write(entry)
