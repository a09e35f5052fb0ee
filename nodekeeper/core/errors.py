"""
Error kinds — every failure an orchestrator operation can surface.

All kinds abort the current operation. None of them are retried.
The orchestrators tag the failing step on the exception before
re-raising so the operator sees *where* it broke, not just *what*.

``ConfirmationDeclined`` is the one non-fatal kind: the operator said
no, nothing was touched, and the caller should treat it as a clean exit.
"""

from __future__ import annotations


class NodeKeeperError(Exception):
    """Base class for orchestrator failures.

    Attributes:
        step: Name of the orchestrator step that failed (set by the
            orchestrator, ``None`` when raised outside one).
        phase: Update phase the service was left in, for update failures.
        rollback_possible: For update failures, whether the previous
            binary was still on disk when it failed (``None`` otherwise).
        fatal: Whether the operation failed (``False`` for a deliberate abort).
    """

    fatal: bool = True

    def __init__(self, message: str, *, step: str | None = None):
        super().__init__(message)
        self.message = message
        self.step = step
        self.phase: str | None = None
        self.rollback_possible: bool | None = None

    def __str__(self) -> str:
        if self.step:
            return f"{self.step}: {self.message}"
        return self.message


class ReleaseNotFound(NodeKeeperError):
    """No tag or no matching artifact URL, or the release index was unreachable."""


class DownloadFailed(NodeKeeperError):
    """The artifact transfer did not complete."""


class ExtractFailed(NodeKeeperError):
    """The archive is corrupt or does not contain exactly one expected binary."""


class InstallFailed(NodeKeeperError):
    """Copying the binary into the binary directory failed."""


class PeerQueryFailed(NodeKeeperError):
    """The seed's network-status endpoint was unreachable or unparseable."""


class UnknownService(NodeKeeperError):
    """The service name was never registered with the supervisor."""


class SupervisorTimeout(NodeKeeperError):
    """The supervisor did not confirm a start/stop transition in time."""


class VersionQueryFailed(NodeKeeperError):
    """The installed binary did not answer a version probe."""


class ChainInitFailed(NodeKeeperError):
    """The consensus engine could not initialise its chain-state directory."""


class ConfirmationDeclined(NodeKeeperError):
    """The operator declined; no side effects were performed."""

    fatal = False
