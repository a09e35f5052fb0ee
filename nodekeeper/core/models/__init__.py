"""
Domain models — Pydantic types for nodekeeper.

All models are re-exported here for convenient access:

    from nodekeeper.core.models import Component, Release, PeerDescriptor, ServiceUnit
"""

from nodekeeper.core.models.component import Component, Release
from nodekeeper.core.models.peer import PeerDescriptor, format_peer_string
from nodekeeper.core.models.service import ServiceUnit

__all__ = [
    # component.py
    "Component",
    # peer.py
    "PeerDescriptor",
    "Release",
    # service.py
    "ServiceUnit",
    "format_peer_string",
]
