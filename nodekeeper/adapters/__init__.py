"""Adapters — host bindings (systemd, subprocess, terminal).

Public re-exports for convenient access.
"""

from nodekeeper.adapters.base import (
    Confirmer,
    Prompter,
    StatusProbe,
    Supervisor,
    VersionProbe,
)
from nodekeeper.adapters.mock import MockSupervisor

__all__ = [
    "Confirmer",
    "MockSupervisor",
    "Prompter",
    "StatusProbe",
    "Supervisor",
    "VersionProbe",
]
