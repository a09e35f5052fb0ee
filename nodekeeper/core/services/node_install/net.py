"""
Network helpers — blocking HTTP GET and file download.

The only outbound calls nodekeeper makes (release index, seed
``net_info``, artifact download) go through here. Every call blocks
until completion or ``timeout``; nothing is retried. Errors propagate
as ``OSError`` (``urllib.error.URLError`` is one) or ``ValueError`` for
bad JSON, and the caller maps them to its own error kind.
"""

from __future__ import annotations

import json
import logging
import urllib.request
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

USER_AGENT = "nodekeeper/1.0"


def fetch_text(url: str, *, timeout: int = 30, accept: str | None = None) -> str:
    """GET ``url`` and return the body decoded as UTF-8."""
    headers = {"User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    req = urllib.request.Request(url, headers=headers)
    logger.debug("GET %s", url)
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return resp.read().decode("utf-8")


def fetch_json(url: str, *, timeout: int = 30) -> Any:
    """GET ``url`` and parse the body as JSON.

    Raises:
        OSError: Transport failure or timeout.
        ValueError: Body is not valid JSON.
    """
    return json.loads(fetch_text(url, timeout=timeout, accept="application/json"))


def download_file(url: str, dest: Path, *, timeout: int = 60) -> int:
    """Stream ``url`` into ``dest``. Returns bytes written.

    A partially written ``dest`` is removed before the error propagates.
    """
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    written = 0
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            with open(dest, "wb") as f:
                while True:
                    chunk = resp.read(8192)
                    if not chunk:
                        break
                    f.write(chunk)
                    written += len(chunk)
    except Exception:
        dest.unlink(missing_ok=True)
        raise
    logger.debug("Downloaded %d bytes from %s to %s", written, url, dest)
    return written
