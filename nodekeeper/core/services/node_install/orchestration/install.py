"""
L5 Orchestration — First-time node setup.

Installs both engines, initialises the consensus chain state under the
operator's moniker, writes the peer list from the seed node, registers
both services and starts them. Any failure aborts the rest; completed
steps are left as they are (re-running reuses staged archives).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from nodekeeper.core.deployment import DeploymentState
from nodekeeper.core.errors import InstallFailed, ReleaseNotFound
from nodekeeper.core.models.component import Component
from nodekeeper.core.models.service import ServiceUnit
from nodekeeper.core.services.node_install.data.components import (
    CONSENSUS,
    EXECUTION,
    COMPONENTS,
)
from nodekeeper.core.services.node_install.detection.peers import (
    build_peer_string,
    peer_exclusions,
)
from nodekeeper.core.services.node_install.execution.artifacts import install_component
from nodekeeper.core.services.node_install.execution.chain import init_chain
from nodekeeper.core.services.node_install.execution.node_config import set_persistent_peers
from nodekeeper.core.services.node_install.orchestration.steps import step
from nodekeeper.core.services.node_install.resolver.releases import resolve_latest, resolve_tag

logger = logging.getLogger(__name__)


@dataclass
class InstallChoices:
    """Consensus versions offered for a fresh install."""

    latest: str
    previous: str | None = None


@dataclass
class InstallReport:
    """Result of a completed fresh install."""

    consensus_tag: str | None
    execution_tag: str | None
    moniker: str
    peers: str
    services: list[str] = field(default_factory=list)
    running: dict[str, bool] = field(default_factory=dict)

    @property
    def peer_count(self) -> int:
        return len(self.peers.split(",")) if self.peers else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "consensus_tag": self.consensus_tag,
            "execution_tag": self.execution_tag,
            "moniker": self.moniker,
            "peers": self.peers,
            "peer_count": self.peer_count,
            "services": self.services,
            "running": self.running,
        }


def service_unit_for(component: Component, state: DeploymentState) -> ServiceUnit:
    """The supervised unit that runs ``component``."""
    return ServiceUnit(
        name=component.service_name,
        exec_start=component.exec_start(state.bin_dir, state.node_home),
        description=component.description,
    )


def install_choices(state: DeploymentState) -> InstallChoices:
    """Latest and previous consensus tags, for the install menu.

    The previous tag is optional: a repo with a single release, or a
    failed tag listing, offers only the latest.
    """
    consensus = COMPONENTS[CONSENSUS]
    latest = resolve_latest(consensus, state).tag
    try:
        previous = resolve_tag(consensus, 2, state)
    except ReleaseNotFound as e:
        logger.warning("No previous %s tag to offer: %s", consensus.name, e)
        previous = None
    if previous == latest:
        previous = None
    return InstallChoices(latest=latest, previous=previous)


def fresh_install(
    state: DeploymentState,
    *,
    consensus_tag: str | None = None,
) -> InstallReport:
    """Set up a new node from nothing.

    Args:
        state: Deployment paths and host capabilities.
        consensus_tag: Consensus version to install (None = latest).
            The execution engine always installs at latest.
    """
    consensus = COMPONENTS[CONSENSUS]
    execution = COMPONENTS[EXECUTION]

    with step(f"install {consensus.name}"):
        consensus_outcome = install_component(consensus, state, tag=consensus_tag)

    with step(f"install {execution.name}"):
        execution_outcome = install_component(execution, state)

    with step("choose moniker"):
        moniker = state.prompter.ask("Please enter your moniker").strip()

    with step("initialise chain state"):
        init_chain(consensus, moniker, state)

    with step("discover peers"):
        exclude = peer_exclusions(
            state.rpc_endpoint, state.exclude_peer_ids, timeout=state.http_timeout,
        )
        peers = build_peer_string(
            state.seed_endpoint, timeout=state.http_timeout, exclude_ids=exclude,
        )

    with step("write persistent peers"):
        if not set_persistent_peers(state.config_toml, peers):
            raise InstallFailed(f"No persistent_peers line in {state.config_toml}")

    services: list[str] = []
    with step("register services"):
        for component in (consensus, execution):
            state.supervisor.register(service_unit_for(component, state))
            services.append(component.service_name)

    with step("verify services"):
        running = {name: state.supervisor.is_running(name) for name in services}

    for name, up in running.items():
        if not up:
            logger.warning("Service %s is registered but not running", name)

    return InstallReport(
        consensus_tag=consensus_outcome.release.tag if consensus_outcome.release else consensus_tag,
        execution_tag=execution_outcome.release.tag if execution_outcome.release else None,
        moniker=moniker,
        peers=peers,
        services=services,
        running=running,
    )
