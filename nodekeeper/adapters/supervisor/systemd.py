"""
systemd supervisor adapter — register and drive engine services.

Unit files live in ``unit_dir`` (``/etc/systemd/system`` in production).
A service is "registered" when its unit file exists there. Transitions
are confirmed by polling a ``StatusProbe``; ``systemctl`` returning is
not taken as proof the engine is up (or down).
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from nodekeeper.adapters.base import CommandRunner, StatusProbe, Supervisor
from nodekeeper.adapters.shell.command import run_command
from nodekeeper.adapters.shell.probes import SystemctlStatusProbe
from nodekeeper.core.errors import InstallFailed, SupervisorTimeout, UnknownService
from nodekeeper.core.models.service import ServiceUnit

logger = logging.getLogger(__name__)

DEFAULT_UNIT_DIR = Path("/etc/systemd/system")


class SystemdSupervisor(Supervisor):
    """Supervisor backed by ``systemctl``.

    Args:
        unit_dir: Directory unit files are written to.
        runner: Command runner (``run_command`` unless testing).
        status_probe: Probe used to confirm transitions.
        timeout: Seconds to wait for a start/stop to be confirmed.
        poll_interval: Seconds between status polls.
    """

    def __init__(
        self,
        unit_dir: Path = DEFAULT_UNIT_DIR,
        runner: CommandRunner = run_command,
        status_probe: StatusProbe | None = None,
        timeout: float = 60.0,
        poll_interval: float = 1.0,
    ):
        self.unit_dir = unit_dir
        self._runner = runner
        self._status = status_probe or SystemctlStatusProbe(runner)
        self.timeout = timeout
        self.poll_interval = poll_interval

    # ── Registration ─────────────────────────────────────────────

    def unit_path(self, name: str) -> Path:
        return self.unit_dir / f"{name}.service"

    def is_registered(self, name: str) -> bool:
        return self.unit_path(name).is_file()

    def register(self, unit: ServiceUnit) -> None:
        path = self.unit_path(unit.name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(unit.render(), encoding="utf-8")
        except OSError as e:
            raise InstallFailed(f"Cannot write unit file {path}: {e}") from e
        logger.info("Wrote unit %s", path)

        self._systemctl("daemon-reload")
        self._systemctl("enable", unit.name)
        self.start(unit.name)

    # ── Transitions ──────────────────────────────────────────────

    def start(self, name: str) -> None:
        self._require(name)
        self._systemctl("start", name)
        self._wait_for(name, active=True)
        logger.info("Service %s started", name)

    def stop(self, name: str) -> None:
        self._require(name)
        self._systemctl("stop", name)
        self._wait_for(name, active=False)
        logger.info("Service %s stopped", name)

    def restart(self, name: str) -> None:
        self._require(name)
        self._systemctl("restart", name)
        self._wait_for(name, active=True)
        logger.info("Service %s restarted", name)

    def is_running(self, name: str) -> bool:
        self._require(name)
        return self._status.is_active(name)

    # ── Internals ────────────────────────────────────────────────

    def _require(self, name: str) -> None:
        if not self.is_registered(name):
            raise UnknownService(f"Service '{name}' is not registered ({self.unit_path(name)} missing)")

    def _systemctl(self, *args: str) -> None:
        cmd = ["systemctl", *args]
        result = self._runner(cmd, needs_sudo=True, timeout=max(int(self.timeout), 1))
        if not result.get("ok"):
            detail = result.get("stderr") or result.get("error", "unknown error")
            raise SupervisorTimeout(f"'{' '.join(cmd)}' was not confirmed: {detail}")

    def _wait_for(self, name: str, *, active: bool) -> None:
        deadline = time.monotonic() + self.timeout
        while True:
            if self._status.is_active(name) == active:
                return
            if time.monotonic() >= deadline:
                state = "active" if active else "inactive"
                raise SupervisorTimeout(
                    f"Service '{name}' did not become {state} within {self.timeout:g}s"
                )
            time.sleep(self.poll_interval)
