"""
Node tools — one-shot lookups and delegations to the node's own CLI.

Block height, dashboard link, faucet link, validator creation and key
export. None of these hold state; each returns a result dict the CLI
renders (``{"ok": True, ...}`` or ``{"ok": False, "error": "..."}``).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from nodekeeper.core.deployment import DeploymentState
from nodekeeper.core.services.node_install.data.components import COMPONENTS, CONSENSUS
from nodekeeper.core.services.node_install.net import fetch_json

logger = logging.getLogger(__name__)

# 0.5 IP, in wei
VALIDATOR_STAKE = 500_000_000_000_000_000


def latest_block_height(rpc_endpoint: str, *, timeout: int = 10) -> dict[str, Any]:
    """``result.sync_info.latest_block_height`` from the local node's ``/status``."""
    url = f"{rpc_endpoint.rstrip('/')}/status"
    try:
        data = fetch_json(url, timeout=timeout)
    except (OSError, ValueError) as e:
        return {"ok": False, "error": f"Cannot query {url}: {e}"}
    try:
        height = int(data["result"]["sync_info"]["latest_block_height"])
    except (KeyError, TypeError, ValueError):
        return {"ok": False, "error": f"Unexpected /status response from {url}"}
    return {"ok": True, "height": height}


def validator_address(key_file: Path) -> str | None:
    """``address`` field of ``priv_validator_key.json`` (display only)."""
    try:
        data = json.loads(key_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("Cannot read %s: %s", key_file, e)
        return None
    address = data.get("address") if isinstance(data, dict) else None
    return address or None


def dashboard_link(key_file: Path, explorer_url: str) -> dict[str, Any]:
    address = validator_address(key_file)
    if not address:
        return {"ok": False, "error": f"No validator address in {key_file}"}
    return {"ok": True, "address": address, "url": f"{explorer_url.rstrip('/')}/{address}"}


def create_validator(
    state: DeploymentState,
    private_key: str,
    *,
    stake: int = VALIDATOR_STAKE,
) -> dict[str, Any]:
    """Delegate to ``story validator create``. The key is never logged."""
    if not private_key:
        return {"ok": False, "error": "Private key must not be empty"}
    story = COMPONENTS[CONSENSUS].binary_path(state.bin_dir)
    result = state.runner(
        [str(story), "validator", "create", "--stake", str(stake), "--private-key", private_key],
        timeout=300,
    )
    if not result.get("ok"):
        return {"ok": False, "error": result.get("stderr") or result.get("error", "unknown error")}
    return {"ok": True, "output": result.get("stdout", "")}


def export_keys(state: DeploymentState) -> dict[str, Any]:
    """``story validator export --export-evm-key`` then read the exported key file."""
    story = COMPONENTS[CONSENSUS].binary_path(state.bin_dir)
    result = state.runner([str(story), "validator", "export", "--export-evm-key"], timeout=60)
    if not result.get("ok"):
        return {"ok": False, "error": result.get("stderr") or result.get("error", "unknown error")}

    key_path = state.node_home / "config" / "private_key.txt"
    try:
        private_key = key_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        return {"ok": False, "error": f"Cannot read {key_path}: {e}"}
    return {"ok": True, "output": result.get("stdout", ""), "private_key": private_key}
