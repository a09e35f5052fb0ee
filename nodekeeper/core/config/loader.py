"""
Configuration loader — reads nodekeeper.yml into a typed config model.

The file is optional: without one, the built-in defaults target the
public iliad testnet on a standard systemd host. When present, it is
read with YAML ``safe_load`` and validated against ``NodeKeeperConfig``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "nodekeeper.yml"


class ConfigError(Exception):
    """Raised when nodekeeper configuration is invalid or unreadable."""


class NodeKeeperConfig(BaseModel):
    """Deployment settings. Every field has a production default."""

    model_config = ConfigDict(extra="forbid")

    network: str = "iliad"
    seed_endpoint: str = "https://story-rpc.oreonserv.com"
    release_api: str = "https://api.github.com"
    rpc_endpoint: str = "http://localhost:26657"
    exclude_peer_ids: list[str] = Field(default_factory=list)

    bin_dir: Path = Path("/usr/local/bin")
    unit_dir: Path = Path("/etc/systemd/system")
    work_dir: Path = Path(".")
    node_home: Path = Path("~/.story/story")
    state_dir: Path = Path("~/.nodekeeper")

    http_timeout: int = Field(default=30, ge=1)
    service_timeout: int = Field(default=60, ge=1)

    explorer_url: str = "https://testnet.story.explorers.guru/validator"
    faucet_url: str = "https://story.faucetme.pro/"

    def expanded(self) -> NodeKeeperConfig:
        """Copy with ``~`` expanded in every path field."""
        updates = {
            name: getattr(self, name).expanduser()
            for name in ("bin_dir", "unit_dir", "work_dir", "node_home", "state_dir")
        }
        return self.model_copy(update=updates)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for nodekeeper.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to nodekeeper.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> NodeKeeperConfig:
    """Load and validate nodekeeper configuration.

    Args:
        path: Explicit path to nodekeeper.yml. If None, searches upward
            and falls back to defaults when nothing is found.

    Returns:
        Validated config with ``~`` expanded.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return NodeKeeperConfig().expanded()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Allow everything nested under a top-level "nodekeeper" key
    if isinstance(data.get("nodekeeper"), dict):
        data = data["nodekeeper"]

    try:
        config = NodeKeeperConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config from %s (network=%s)", path, config.network)
    return config.expanded()
