"""
Logging configuration for the nodekeeper process.

``main.py`` calls ``setup_logging`` once per invocation; modules log
through ``logging.getLogger(__name__)`` and never touch handlers.

Console level precedence: -v/-q/--debug flag, then NODEKEEPER_LOG_LEVEL,
then WARNING. NODEKEEPER_LOG_FILE adds a file record of the run (installs
and updates are mostly silent on the console), at NODEKEEPER_LOG_FILE_LEVEL
or the console level.

Validator private keys travel on the ``story validator create`` command
line. Every handler installed here masks them, so neither the console nor
the file log can carry one.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

# Marks handlers owned by setup_logging so a second call replaces only those
_HANDLER_TAG = "_nodekeeper_handler"

_DEBUG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"
_INFO_FORMAT = "%(asctime)s [%(name)s] %(message)s"
_FILE_FORMAT = _DEBUG_FORMAT
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

MASK = "***"

_SECRET_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(--private-key[ =])(\S+)"), rf"\g<1>{MASK}"),
    (re.compile(r"\b(?:0x)?[0-9a-fA-F]{64}\b"), MASK),
)


def mask_secrets(text: str) -> str:
    """Replace private-key material in ``text`` with ``***``."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class _MaskingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return mask_secrets(super().format(record))


def _console_handler(level: int) -> logging.Handler:
    if level <= logging.DEBUG:
        fmt, datefmt = _DEBUG_FORMAT, "%H:%M:%S"
    elif level <= logging.INFO:
        fmt, datefmt = _INFO_FORMAT, "%H:%M:%S"
    else:
        fmt, datefmt = "%(message)s", None
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_MaskingFormatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(_MaskingFormatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler (and optional file handler) on the root logger.

    Args:
        level: Console level name.
        log_file: Path of a log file to append to; ``~`` is expanded.
        log_file_level: File level name, defaults to ``level``.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(Path(log_file).expanduser(), file_level))

    root = logging.getLogger()
    for old in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        setattr(handler, _HANDLER_TAG, True)
        root.addHandler(handler)

    # The root level has to admit the most verbose handler
    root.setLevel(min(h.level for h in handlers))
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to number; empty or unknown names give WARNING."""
    numeric = getattr(logging, level.upper(), None) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
