"""
L1 Domain — In-place update state machine (pure).

States:
    RUNNING     → Service up on the old binary. Nothing touched yet.
    STOPPED     → Service stopped, old binary still on disk.
    UNINSTALLED → Old binary deleted. No way back from here.
    INSTALLING  → New binary being resolved/downloaded/installed.
    STARTED     → Service up on the new binary. Done.

Transitions (strictly linear):
    RUNNING → STOPPED → UNINSTALLED → INSTALLING → STARTED

Once UNINSTALLED is reached the previous binary is gone; a failure
from that point leaves the service stopped with nothing to roll back
to. That window is a known risk, reported as such, never masked.
No I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class UpdatePhase(StrEnum):
    """Update progress states."""

    RUNNING = "running"
    STOPPED = "stopped"
    UNINSTALLED = "uninstalled"
    INSTALLING = "installing"
    STARTED = "started"


_NEXT: dict[UpdatePhase, UpdatePhase] = {
    UpdatePhase.RUNNING: UpdatePhase.STOPPED,
    UpdatePhase.STOPPED: UpdatePhase.UNINSTALLED,
    UpdatePhase.UNINSTALLED: UpdatePhase.INSTALLING,
    UpdatePhase.INSTALLING: UpdatePhase.STARTED,
}

_NO_ROLLBACK = {UpdatePhase.UNINSTALLED, UpdatePhase.INSTALLING}


class InvalidTransition(RuntimeError):
    """An update step was attempted out of order."""


@dataclass
class UpdateMachine:
    """Tracks one update attempt through its linear phases."""

    component: str
    phase: UpdatePhase = UpdatePhase.RUNNING
    history: list[UpdatePhase] = field(default_factory=lambda: [UpdatePhase.RUNNING])

    def advance(self, to: UpdatePhase) -> None:
        """Move to ``to``; only the single next phase is allowed."""
        expected = _NEXT.get(self.phase)
        if to != expected:
            raise InvalidTransition(
                f"{self.component}: cannot go {self.phase} → {to}"
                + (f" (next is {expected})" if expected else " (update finished)")
            )
        self.phase = to
        self.history.append(to)

    @property
    def service_stopped(self) -> bool:
        """Whether the service is down because of this update."""
        return self.phase not in (UpdatePhase.RUNNING, UpdatePhase.STARTED)

    @property
    def rollback_possible(self) -> bool:
        """False once the old binary has been deleted and the new one is not up."""
        return self.phase not in _NO_ROLLBACK

    @property
    def done(self) -> bool:
        return self.phase == UpdatePhase.STARTED
