"""
L5 Orchestration — In-place component update.

Strictly ordered:

1. resolve the latest published release
2. ask the installed binary for its version
3. refuse if a staged archive would shadow the download
4. show both, require an explicit yes (a no touches nothing)
5. stop the service
6. delete the installed binary
7. reinstall (resolver + artifact installer, pinned to the tag from 1)
8. start the service

Steps 5–8 run back to back through an ``UpdateMachine``. Once step 6
has run there is no previous binary to go back to: a failure in 7 or 8
is raised with ``phase`` set and the service left stopped. There is no
automatic rollback and no retry.

Equal installed and latest versions are reported, not skipped: if the
operator confirms, the reinstall still happens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from nodekeeper.core.deployment import DeploymentState
from nodekeeper.core.errors import ConfirmationDeclined, InstallFailed, NodeKeeperError
from nodekeeper.core.models.component import Component
from nodekeeper.core.services.node_install.domain.update_machine import (
    UpdateMachine,
    UpdatePhase,
)
from nodekeeper.core.services.node_install.execution.artifacts import install_component
from nodekeeper.core.services.node_install.orchestration.steps import step
from nodekeeper.core.services.node_install.resolver.releases import resolve_latest

logger = logging.getLogger(__name__)


@dataclass
class UpdateReport:
    """Result of a completed update."""

    component: str
    service: str
    installed_version: str
    latest_version: str
    archive_reused: bool = False
    phases: list[str] = field(default_factory=list)

    @property
    def same_version(self) -> bool:
        return self.installed_version.lstrip("v") == self.latest_version.lstrip("v")

    def to_dict(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "service": self.service,
            "installed_version": self.installed_version,
            "latest_version": self.latest_version,
            "same_version": self.same_version,
            "archive_reused": self.archive_reused,
            "phases": self.phases,
        }


def update_component(
    component: Component,
    state: DeploymentState,
    *,
    service_name: str | None = None,
) -> UpdateReport:
    """Stop, replace and restart ``component``'s service.

    Raises:
        ConfirmationDeclined: Operator said no (nothing changed).
        ReleaseNotFound, VersionQueryFailed: Before anything was touched.
        SupervisorTimeout, InstallFailed, DownloadFailed, ExtractFailed:
            With ``step`` and ``phase`` set on the exception.
    """
    service = service_name or component.service_name
    binary = component.binary_path(state.bin_dir)

    with step("resolve latest release"):
        latest = resolve_latest(component, state)

    with step("query installed version"):
        installed = state.version_probe.installed_version(component)

    logger.info("%s installed %s, latest %s", component.name, installed, latest.tag)

    with step("check staging area"):
        staged = state.work_dir / component.archive_name
        if staged.exists():
            raise InstallFailed(
                f"Stale {staged.name} in {state.work_dir} would be reused instead of "
                f"downloading {latest.tag}; delete it and retry"
            )

    with step("confirm update"):
        question = (
            f"Installed {component.name} version: {installed}. "
            f"Latest version: {latest.tag}. Are you sure you want to update?"
        )
        if not state.confirmer.confirm(question):
            raise ConfirmationDeclined(f"Update of {component.name} cancelled by operator")

    machine = UpdateMachine(component=component.name)

    with step("stop service", machine):
        state.supervisor.stop(service)
        machine.advance(UpdatePhase.STOPPED)

    with step("remove installed binary", machine):
        try:
            binary.unlink(missing_ok=True)
        except OSError as e:
            # Old binary is still in place: bring the service back before failing
            logger.error("Cannot remove %s (%s); restarting %s", binary, e, service)
            message = f"Cannot remove {binary}: {e}"
            phase = UpdatePhase.RUNNING
            try:
                state.supervisor.start(service)
            except NodeKeeperError as restart_error:
                logger.error("Restart of %s failed: %s", service, restart_error)
                message += f" (restart of {service} also failed: {restart_error})"
                phase = UpdatePhase.STOPPED
            error = InstallFailed(message)
            error.phase = str(phase)
            error.rollback_possible = True
            raise error from e
        machine.advance(UpdatePhase.UNINSTALLED)

    logger.warning(
        "%s binary removed; %s stays down until the reinstall completes", component.name, service
    )

    with step("reinstall", machine):
        machine.advance(UpdatePhase.INSTALLING)
        outcome = install_component(component, state, tag=latest.tag)
        if not binary.is_file():
            raise InstallFailed(
                f"{binary} missing after install"
                + (f" (stale {outcome.archive.name} was reused; delete it and retry)"
                   if outcome.skipped else "")
            )

    with step("start service", machine):
        state.supervisor.start(service)
        machine.advance(UpdatePhase.STARTED)

    logger.info("Done updating %s to %s", component.name, latest.tag)
    return UpdateReport(
        component=component.name,
        service=service,
        installed_version=installed,
        latest_version=latest.tag,
        archive_reused=outcome.skipped,
        phases=[str(p) for p in machine.history],
    )


def describe_failure(error: NodeKeeperError) -> str:
    """Operator-facing explanation of an update failure."""
    if error.rollback_possible is False:
        return (
            f"{error}. The previous binary was already removed; the service is "
            "stopped and no rollback is possible. Fix the cause and run the update again."
        )
    if error.phase == UpdatePhase.STOPPED:
        return f"{error}. The service is stopped."
    return str(error)
