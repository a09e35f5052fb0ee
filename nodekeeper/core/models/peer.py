"""
PeerDescriptor — one reachable node from a seed's network-status report.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PeerDescriptor(BaseModel):
    """A remote peer the node should proactively connect to."""

    id: str
    host: str
    port: int = Field(ge=1, le=65535)

    @property
    def token(self) -> str:
        """``id@host:port`` form used in ``persistent_peers``."""
        return f"{self.id}@{self.host}:{self.port}"


def format_peer_string(peers: list[PeerDescriptor]) -> str:
    """Comma-join peer tokens in order. No peers → empty string."""
    return ",".join(p.token for p in peers)
