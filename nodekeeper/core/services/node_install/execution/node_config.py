"""
L4 Execution — Consensus engine config edits.

Replaces the ``persistent_peers`` line of ``config.toml`` in place.
Only that line changes; every other line is written back byte for byte.
The previous file is kept as ``config.toml.bak`` and the new one is
written atomically (temp file + rename).
"""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from pathlib import Path

from nodekeeper.core.errors import InstallFailed

logger = logging.getLogger(__name__)

_PEERS_LINE = re.compile(r"^persistent_peers *=.*$", re.MULTILINE)


def read_persistent_peers(config_path: Path) -> str | None:
    """Current ``persistent_peers`` value, or None if the line is absent."""
    match = re.search(
        r'^persistent_peers *= *"([^"]*)"',
        config_path.read_text(encoding="utf-8"),
        re.MULTILINE,
    )
    return match.group(1) if match else None


def set_persistent_peers(config_path: Path, peers: str) -> int:
    """Overwrite the ``persistent_peers`` value (full replacement, no merge).

    Returns:
        Number of lines replaced (0 if the file has no such line).

    Raises:
        InstallFailed: The file cannot be read, backed up or written.
    """
    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise InstallFailed(f"Cannot read {config_path}: {e}") from e

    replacement = f'persistent_peers = "{peers}"'
    updated, count = _PEERS_LINE.subn(lambda _: replacement, content)
    if count == 0:
        logger.warning("No persistent_peers line in %s; left unchanged", config_path)
        return 0

    backup = config_path.with_name(config_path.name + ".bak")
    try:
        shutil.copy2(config_path, backup)
        fd, tmp_name = tempfile.mkstemp(dir=config_path.parent, prefix=".config_", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with open(fd, "w", encoding="utf-8") as f:
                f.write(updated)
            shutil.copymode(backup, tmp)
            tmp.replace(config_path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        raise InstallFailed(f"Cannot update {config_path}: {e}") from e

    logger.info("persistent_peers updated in %s (backup %s)", config_path, backup.name)
    return count
