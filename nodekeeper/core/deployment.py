"""
DeploymentState — the explicit value every orchestrator call receives.

Instead of scattering ``/usr/local/bin`` lookups and ``systemctl`` calls
through the code, the orchestrators read paths, endpoints and host
capabilities from this one object. Production builds it with
``from_config``; tests build it by hand with mocks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from nodekeeper.adapters.base import (
    CommandRunner,
    Confirmer,
    Prompter,
    Supervisor,
    VersionProbe,
)
from nodekeeper.adapters.shell.command import run_command
from nodekeeper.core.config.loader import NodeKeeperConfig


@dataclass
class DeploymentState:
    """Where the node lives and how to reach the host."""

    supervisor: Supervisor
    version_probe: VersionProbe
    confirmer: Confirmer
    prompter: Prompter
    runner: CommandRunner = run_command

    bin_dir: Path = Path("/usr/local/bin")
    work_dir: Path = Path(".")
    node_home: Path = Path("~/.story/story")
    network: str = "iliad"
    seed_endpoint: str = "https://story-rpc.oreonserv.com"
    rpc_endpoint: str = "http://localhost:26657"
    release_api: str = "https://api.github.com"
    http_timeout: int = 30
    exclude_peer_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def config_toml(self) -> Path:
        """Consensus engine configuration file."""
        return self.node_home / "config" / "config.toml"

    @property
    def validator_key_file(self) -> Path:
        return self.node_home / "config" / "priv_validator_key.json"

    @classmethod
    def from_config(
        cls,
        config: NodeKeeperConfig,
        *,
        confirmer: Confirmer,
        prompter: Prompter,
        runner: CommandRunner = run_command,
    ) -> DeploymentState:
        """Build the live state: systemd supervisor, command version probe."""
        from nodekeeper.adapters.shell.probes import CommandVersionProbe
        from nodekeeper.adapters.supervisor.systemd import SystemdSupervisor

        return cls(
            supervisor=SystemdSupervisor(
                unit_dir=config.unit_dir,
                runner=runner,
                timeout=config.service_timeout,
            ),
            version_probe=CommandVersionProbe(config.bin_dir, runner=runner),
            confirmer=confirmer,
            prompter=prompter,
            runner=runner,
            bin_dir=config.bin_dir,
            work_dir=config.work_dir,
            node_home=config.node_home,
            network=config.network,
            seed_endpoint=config.seed_endpoint,
            rpc_endpoint=config.rpc_endpoint,
            release_api=config.release_api,
            http_timeout=config.http_timeout,
            exclude_peer_ids=tuple(config.exclude_peer_ids),
        )
