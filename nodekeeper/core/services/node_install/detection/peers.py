"""
L3 Detection — Peer discovery from a seed node's ``net_info``.

Read-only: queries the seed's network-status endpoint and turns the
reported peers into ``PeerDescriptor`` values / the ``persistent_peers``
string. Only the port of ``listen_addr`` is used, because the address
part is often the peer's own bind host (``tcp://0.0.0.0:26656``) and
unroutable from here; the routable host is ``remote_ip``.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from nodekeeper.core.errors import PeerQueryFailed
from nodekeeper.core.models.peer import PeerDescriptor, format_peer_string
from nodekeeper.core.services.node_install.net import fetch_json

logger = logging.getLogger(__name__)


def _listen_port(listen_addr: str) -> int:
    _, sep, port = listen_addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"no port in listen_addr {listen_addr!r}")
    return int(port)


def parse_net_info(data: Any) -> list[PeerDescriptor]:
    """Turn a ``net_info`` response into peer descriptors, in order.

    Raises:
        PeerQueryFailed: ``result.peers`` missing, or a peer lacks a field.
    """
    try:
        peers = data["result"]["peers"]
    except (KeyError, TypeError) as e:
        raise PeerQueryFailed(f"net_info response has no result.peers: {e!r}") from e
    if not isinstance(peers, list):
        raise PeerQueryFailed("net_info result.peers is not a list")

    descriptors: list[PeerDescriptor] = []
    for index, peer in enumerate(peers):
        try:
            node_info = peer["node_info"]
            descriptors.append(PeerDescriptor(
                id=node_info["id"],
                host=peer["remote_ip"],
                port=_listen_port(node_info["listen_addr"]),
            ))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise PeerQueryFailed(f"Malformed peer #{index} in net_info: {e}") from e
    return descriptors


def discover_peers(
    seed_endpoint: str,
    *,
    timeout: int = 30,
    exclude_ids: tuple[str, ...] = (),
) -> list[PeerDescriptor]:
    """Query ``<seed>/net_info`` and return the reachable peer set.

    Peers whose id is in ``exclude_ids`` (the local node) are dropped.
    """
    url = f"{seed_endpoint.rstrip('/')}/net_info"
    try:
        data = fetch_json(url, timeout=timeout)
    except (OSError, ValueError) as e:
        raise PeerQueryFailed(f"Cannot query {url}: {e}") from e

    peers = [p for p in parse_net_info(data) if p.id not in exclude_ids]
    logger.info("Seed %s reported %d peer(s)", seed_endpoint, len(peers))
    return peers


def build_peer_string(
    seed_endpoint: str,
    *,
    timeout: int = 30,
    exclude_ids: tuple[str, ...] = (),
) -> str:
    """``id@ip:port`` tokens joined by commas. No peers → ``""``."""
    return format_peer_string(
        discover_peers(seed_endpoint, timeout=timeout, exclude_ids=exclude_ids)
    )


def local_node_id(rpc_endpoint: str, *, timeout: int = 10) -> str | None:
    """``result.node_info.id`` from the local node's ``/status``.

    None when the local node is not answering (e.g. before its first
    start) or the response has no id.
    """
    url = f"{rpc_endpoint.rstrip('/')}/status"
    try:
        data = fetch_json(url, timeout=timeout)
        node_id = data["result"]["node_info"]["id"]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.debug("No local node id from %s: %s", url, e)
        return None
    return node_id if isinstance(node_id, str) and node_id else None


def peer_exclusions(
    rpc_endpoint: str,
    configured: tuple[str, ...] = (),
    *,
    timeout: int = 10,
) -> tuple[str, ...]:
    """Ids to leave out of the peer set: configured ones plus the local node."""
    node_id = local_node_id(rpc_endpoint, timeout=timeout)
    if node_id is None or node_id in configured:
        return tuple(configured)
    logger.info("Excluding local node %s from peers", node_id)
    return (*configured, node_id)
