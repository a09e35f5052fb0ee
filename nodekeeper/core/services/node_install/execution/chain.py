"""
L4 Execution — Consensus chain-state initialisation.

Runs ``story init`` once per node to create the chain-state directory
and default ``config.toml`` under the operator's moniker.
"""

from __future__ import annotations

import logging

from nodekeeper.core.deployment import DeploymentState
from nodekeeper.core.errors import ChainInitFailed
from nodekeeper.core.models.component import Component

logger = logging.getLogger(__name__)


def init_chain(component: Component, moniker: str, state: DeploymentState) -> None:
    """``<story> init --network <network> --moniker <moniker> --home <node_home>``.

    Raises:
        ChainInitFailed: Empty moniker or the command failed.
    """
    if not moniker:
        raise ChainInitFailed("Moniker must not be empty")

    cmd = [
        str(component.binary_path(state.bin_dir)),
        "init",
        "--network", state.network,
        "--moniker", moniker,
        "--home", str(state.node_home),
    ]
    result = state.runner(cmd, timeout=120)
    if not result.get("ok"):
        detail = result.get("stderr") or result.get("error", "unknown error")
        raise ChainInitFailed(f"{component.name} init failed: {detail}")
    logger.info("Initialised %s chain state for %r on %s", component.name, moniker, state.network)
