"""
Shell command adapter — the single place ``subprocess.run`` is called.

Every host command nodekeeper issues (systemctl, the node CLI, version
probes) goes through ``run_command``. Failures come back as a result
dict, never as an exception; the caller decides which error kind a
failed command becomes.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

# Values following these flags never reach the log
_SECRET_FLAGS = ("--private-key",)


def _redact(cmd: list[str]) -> list[str]:
    out: list[str] = []
    hide_next = False
    for arg in cmd:
        out.append("***" if hide_next else arg)
        hide_next = arg in _SECRET_FLAGS
    return out


def run_command(
    cmd: list[str],
    *,
    needs_sudo: bool = False,
    timeout: int = 120,
    cwd: str | None = None,
    env_overrides: dict[str, str] | None = None,
    input_text: str | None = None,
) -> dict[str, Any]:
    """Run a command and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        needs_sudo: Prefix with non-interactive ``sudo -n`` unless already root.
        timeout: Seconds before ``TimeoutExpired``.
        cwd: Working directory for the command.
        env_overrides: Extra env vars.
        input_text: Text piped to stdin.

    Returns:
        ``{"ok": True, "stdout": "...", "stderr": "...", "elapsed_ms": N}``
        on success, ``{"ok": False, "error": "...", ...}`` on failure.
    """
    if needs_sudo and os.geteuid() != 0:
        cmd = ["sudo", "-n"] + cmd

    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Executing: %s", " ".join(_redact(cmd)))
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            input=input_text,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)", "stdout": "", "stderr": ""}
    except OSError as e:
        return {"ok": False, "error": str(e), "stdout": "", "stderr": ""}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-2000:] if result.stdout else ""
    stderr = result.stderr[-2000:] if result.stderr else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "stderr": stderr, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "returncode": result.returncode,
        "stdout": stdout,
        "stderr": stderr,
        "elapsed_ms": elapsed_ms,
    }
