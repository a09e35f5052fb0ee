"""
Live probes — ask the host for installed versions and service state.

Read-only. Both run their command through the shared command runner.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from nodekeeper.adapters.base import CommandRunner, StatusProbe, VersionProbe
from nodekeeper.adapters.shell.command import run_command
from nodekeeper.core.errors import VersionQueryFailed
from nodekeeper.core.models.component import Component

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"v?\d+\.\d+\.\d+(?:-[0-9A-Za-z.]+)?")


def parse_version(output: str) -> str | None:
    """Pull the first semver-looking token out of a ``version`` output."""
    match = _VERSION_RE.search(output)
    return match.group(0) if match else None


class CommandVersionProbe(VersionProbe):
    """Run ``<bin_dir>/<binary> <version_args>`` and parse its output."""

    def __init__(self, bin_dir: Path, runner: CommandRunner = run_command):
        self._bin_dir = bin_dir
        self._runner = runner

    def installed_version(self, component: Component) -> str:
        binary = component.binary_path(self._bin_dir)
        if not binary.is_file():
            raise VersionQueryFailed(f"{component.name} is not installed at {binary}")

        result = self._runner([str(binary), *component.version_args], timeout=15)
        # Some binaries print their version on stderr
        output = (result.get("stdout") or "") + (result.get("stderr") or "")
        if not result.get("ok"):
            raise VersionQueryFailed(
                f"{component.name} did not answer a version probe: "
                f"{result.get('error', 'unknown error')}"
            )

        version = parse_version(output)
        if version is None:
            first_line = output.strip().splitlines()[0] if output.strip() else ""
            if not first_line:
                raise VersionQueryFailed(f"{component.name} reported no version")
            logger.debug("No semver in %s output, using %r", component.name, first_line)
            return first_line
        return version


class SystemctlStatusProbe(StatusProbe):
    """``systemctl is-active <service>`` — exit 0 means active."""

    def __init__(self, runner: CommandRunner = run_command):
        self._runner = runner

    def is_active(self, service: str) -> bool:
        result = self._runner(["systemctl", "is-active", "--quiet", service], timeout=10)
        return bool(result.get("ok"))
