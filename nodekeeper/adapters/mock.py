"""
Mock adapters — test doubles for every host capability.

Used in tests (and ``--dry-run``-style experiments) to drive the
orchestrators without touching systemd, the terminal or installed
binaries. Every mock keeps a call log so tests can assert ordering.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from nodekeeper.adapters.base import (
    Confirmer,
    Prompter,
    StatusProbe,
    Supervisor,
    VersionProbe,
)
from nodekeeper.core.errors import NodeKeeperError, UnknownService, VersionQueryFailed
from nodekeeper.core.models.component import Component
from nodekeeper.core.models.service import ServiceUnit


class MockSupervisor(Supervisor):
    """In-memory service registry.

    ``register`` starts the unit, like the systemd adapter. Failures can
    be injected per operation with ``set_failure("start", "story", exc)``.
    """

    def __init__(self) -> None:
        self.units: dict[str, ServiceUnit] = {}
        self.running: dict[str, bool] = {}
        self._failures: dict[tuple[str, str], NodeKeeperError] = {}
        self._call_log: list[tuple[str, str]] = []

    @property
    def call_log(self) -> list[tuple[str, str]]:
        """``(operation, service)`` pairs in call order."""
        return self._call_log

    def add_running(self, unit: ServiceUnit) -> None:
        """Seed an already-registered, running service (no call logged)."""
        self.units[unit.name] = unit
        self.running[unit.name] = True

    def set_failure(self, operation: str, name: str, error: NodeKeeperError) -> None:
        self._failures[(operation, name)] = error

    def register(self, unit: ServiceUnit) -> None:
        self._call_log.append(("register", unit.name))
        self._maybe_fail("register", unit.name)
        self.units[unit.name] = unit
        self.running.setdefault(unit.name, False)
        self.start(unit.name)

    def is_registered(self, name: str) -> bool:
        return name in self.units

    def start(self, name: str) -> None:
        self._transition("start", name, True)

    def stop(self, name: str) -> None:
        self._transition("stop", name, False)

    def restart(self, name: str) -> None:
        self._transition("restart", name, True)

    def is_running(self, name: str) -> bool:
        self._require(name)
        return self.running[name]

    def _transition(self, operation: str, name: str, running: bool) -> None:
        self._call_log.append((operation, name))
        self._require(name)
        self._maybe_fail(operation, name)
        self.running[name] = running

    def _require(self, name: str) -> None:
        if name not in self.units:
            raise UnknownService(f"Service '{name}' is not registered")

    def _maybe_fail(self, operation: str, name: str) -> None:
        error = self._failures.get((operation, name))
        if error is not None:
            raise error


class MockVersionProbe(VersionProbe):
    """Returns configured versions; unknown components fail the probe."""

    def __init__(self, versions: dict[str, str] | None = None):
        self.versions: dict[str, str] = dict(versions or {})
        self.call_count = 0

    def installed_version(self, component: Component) -> str:
        self.call_count += 1
        if component.name not in self.versions:
            raise VersionQueryFailed(f"{component.name} is not installed")
        return self.versions[component.name]


class MockStatusProbe(StatusProbe):
    """Replays a scripted sequence of answers per service, then repeats the last."""

    def __init__(self, answers: dict[str, list[bool]] | None = None):
        self._answers = {k: list(v) for k, v in (answers or {}).items()}
        self.calls: list[str] = []

    def is_active(self, service: str) -> bool:
        self.calls.append(service)
        answers = self._answers.get(service, [False])
        if len(answers) > 1:
            return answers.pop(0)
        return answers[0]


class MockConfirmer(Confirmer):
    def __init__(self, answer: bool = True):
        self.answer = answer
        self.questions: list[str] = []

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        return self.answer


class MockPrompter(Prompter):
    def __init__(self, answer: str = "test-moniker"):
        self.answer = answer
        self.questions: list[str] = []

    def ask(self, question: str) -> str:
        self.questions.append(question)
        return self.answer


class MockRunner:
    """Command runner double.

    Returns success for everything unless a response is configured for a
    command prefix (first N tokens). Records every command it receives.
    """

    def __init__(self) -> None:
        self._responses: list[tuple[list[str], dict[str, Any]]] = []
        self.commands: list[list[str]] = []

    def set_response(self, prefix: list[str], result: dict[str, Any]) -> None:
        self._responses.append((prefix, result))

    def set_failure(self, prefix: list[str], error: str = "Mock failure") -> None:
        self.set_response(prefix, {"ok": False, "error": error, "stdout": "", "stderr": error})

    def __call__(self, cmd: list[str], **kwargs: Any) -> dict[str, Any]:
        self.commands.append(list(cmd))
        for prefix, result in self._responses:
            if cmd[: len(prefix)] == prefix:
                return result
        return {"ok": True, "stdout": "", "stderr": ""}


def fake_binary(bin_dir: Path, name: str, content: str = "#!/bin/sh\n") -> Path:
    """Create an executable placeholder binary (test helper)."""
    bin_dir.mkdir(parents=True, exist_ok=True)
    path = bin_dir / name
    path.write_text(content)
    path.chmod(0o755)
    return path
