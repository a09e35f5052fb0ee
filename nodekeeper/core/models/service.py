"""
ServiceUnit — a supervisor-managed service definition.

Created once at install time, stopped/started many times during
updates, never deleted by nodekeeper (manual uninstall only).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class ServiceUnit(BaseModel):
    """Declarative unit for one engine process."""

    name: str
    exec_start: str
    description: str = ""
    user: str = "root"
    after: str = "network.target"
    restart: Literal["on-failure", "always", "no"] = "on-failure"
    restart_sec: int = 3
    limit_nofile: int = 4096
    wanted_by: str = "multi-user.target"

    @property
    def file_name(self) -> str:
        return f"{self.name}.service"

    def render(self) -> str:
        """Render the unit as systemd INI text."""
        description = self.description or f"{self.name} Service"
        return (
            "[Unit]\n"
            f"Description={description}\n"
            f"After={self.after}\n"
            "\n"
            "[Service]\n"
            f"User={self.user}\n"
            f"ExecStart={self.exec_start}\n"
            f"Restart={self.restart}\n"
            f"RestartSec={self.restart_sec}\n"
            f"LimitNOFILE={self.limit_nofile}\n"
            "\n"
            "[Install]\n"
            f"WantedBy={self.wanted_by}\n"
        )
