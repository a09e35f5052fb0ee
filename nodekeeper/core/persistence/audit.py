"""
Audit ledger — append-only record of install and update operations.

Every install/update attempt writes one entry to an NDJSON
(newline-delimited JSON) file in the state directory, whatever its
outcome. Entries are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation: Literal["install", "update"]
    component: str = ""            # empty for a full install

    status: Literal["ok", "failed", "declined"] = "ok"
    from_version: str | None = None
    to_version: str | None = None
    duration_ms: int = 0

    # Failure details
    step: str | None = None
    phase: str | None = None
    error: str | None = None

    context: dict[str, Any] = Field(default_factory=dict)


class AuditWriter:
    """Append-only audit ledger writer.

    Each call to write() appends a single JSON line to the ledger file.
    The file and its directory are created if they don't exist.
    """

    def __init__(self, state_dir: Path):
        self._path = state_dir / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append an audit entry. A write failure is logged, not raised."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s/%s", entry.operation, entry.status)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def read_all(self) -> list[AuditEntry]:
        """All entries, oldest first. Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries = []
        with self._path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(AuditEntry.model_validate(json.loads(line)))
                except ValueError as e:
                    logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        return self.read_all()[-n:]
