"""
Adapter base — the capability contracts between orchestrators and the host.

The orchestrators never shell out, read a terminal or talk to systemd
directly. They go through these contracts, which have a live variant
(``adapters/shell``, ``adapters/supervisor``, ``adapters/console``) and a
test double (``adapters/mock``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol

from nodekeeper.core.models.component import Component
from nodekeeper.core.models.service import ServiceUnit


class CommandRunner(Protocol):
    """Callable that runs a command and returns a result dict.

    Result shape: ``{"ok": bool, "stdout": str, "stderr": str, "error": str}``.
    """

    def __call__(
        self,
        cmd: list[str],
        *,
        needs_sudo: bool = False,
        timeout: int = 120,
    ) -> dict[str, Any]: ...


class VersionProbe(ABC):
    """Ask an installed component which version it is."""

    @abstractmethod
    def installed_version(self, component: Component) -> str:
        """Return the version the installed binary reports.

        Raises:
            VersionQueryFailed: The binary is missing or did not answer.
        """


class StatusProbe(ABC):
    """Ask the host whether a service is currently active."""

    @abstractmethod
    def is_active(self, service: str) -> bool:
        """Whether ``service`` is running right now. Should never raise."""


class Supervisor(ABC):
    """Register and drive supervised background services.

    All operations on a name that was never registered raise
    ``UnknownService``. ``start``/``stop``/``restart`` are synchronous:
    they return once the transition is confirmed or raise
    ``SupervisorTimeout``.
    """

    @abstractmethod
    def register(self, unit: ServiceUnit) -> None:
        """Write the unit, reload, enable on boot, then start it."""

    @abstractmethod
    def is_registered(self, name: str) -> bool:
        """Whether a unit called ``name`` exists."""

    @abstractmethod
    def start(self, name: str) -> None: ...

    @abstractmethod
    def stop(self, name: str) -> None: ...

    @abstractmethod
    def restart(self, name: str) -> None: ...

    @abstractmethod
    def is_running(self, name: str) -> bool: ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class Confirmer(ABC):
    """Yes/no gate in front of destructive operations."""

    @abstractmethod
    def confirm(self, question: str) -> bool:
        """Return True only on an explicit affirmative answer."""


class Prompter(ABC):
    """Free-text operator input (e.g. the node moniker)."""

    @abstractmethod
    def ask(self, question: str) -> str: ...
