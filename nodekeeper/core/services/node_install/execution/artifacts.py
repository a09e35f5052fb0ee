"""
L4 Execution — Artifact download and binary install.

Downloads a release archive into the working directory, extracts it,
copies the one expected executable into the binary directory and
removes the transient files.

Idempotence guard: if the archive is already present in the working
directory it is treated as "already staged" and the whole install is
skipped. A re-run after a partial failure therefore never re-downloads.
"""

from __future__ import annotations

import http.client
import logging
import os
import shutil
import tarfile
from dataclasses import dataclass
from pathlib import Path

from nodekeeper.core.deployment import DeploymentState
from nodekeeper.core.errors import DownloadFailed, ExtractFailed, InstallFailed
from nodekeeper.core.models.component import Component, Release
from nodekeeper.core.services.node_install.net import download_file
from nodekeeper.core.services.node_install.resolver.releases import resolve_release

logger = logging.getLogger(__name__)


@dataclass
class InstallOutcome:
    """What ``install_from`` did."""

    archive: Path
    skipped: bool = False
    binary: Path | None = None
    release: Release | None = None


def _extract_dir(archive: Path) -> Path:
    name = archive.name
    for ext in (".tar.gz", ".tgz", ".tar.xz", ".tar"):
        if name.endswith(ext):
            name = name[: -len(ext)]
            break
    return archive.with_name(f"{name}.extract")


def _extract(archive: Path, dest: Path) -> None:
    if dest.exists():
        shutil.rmtree(dest)
    dest.mkdir(parents=True)
    try:
        with tarfile.open(archive, "r:*") as tf:
            tf.extractall(dest, filter="data")
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ExtractFailed(f"Cannot extract {archive.name}: {e}") from e


def _locate_binary(root: Path, binary_name: str) -> Path:
    found = [p for p in root.rglob(binary_name) if p.is_file() and not p.is_symlink()]
    if len(found) == 1:
        return found[0]
    if not found:
        available = sorted(str(p.relative_to(root)) for p in root.rglob("*") if p.is_file())
        raise ExtractFailed(
            f"'{binary_name}' not found in archive (contains: {', '.join(available[:10]) or 'nothing'})"
        )
    raise ExtractFailed(
        f"Archive holds {len(found)} files named '{binary_name}', expected exactly one"
    )


def install_from(
    url: str,
    archive_name: str,
    state: DeploymentState,
    *,
    binary_name: str,
) -> InstallOutcome:
    """Download ``url`` to ``archive_name`` and install ``binary_name`` from it.

    Raises:
        DownloadFailed: The transfer did not complete.
        ExtractFailed: Corrupt archive or unexpected layout.
        InstallFailed: Copy into ``state.bin_dir`` failed.
    """
    archive = state.work_dir / archive_name
    if archive.exists():
        logger.warning("%s already exists. Skipping download.", archive)
        return InstallOutcome(archive=archive, skipped=True)

    logger.info("Downloading %s", url)
    try:
        download_file(url, archive, timeout=state.http_timeout)
    except (OSError, http.client.HTTPException) as e:
        raise DownloadFailed(f"Download of {url} failed: {e}") from e

    extract_dir = _extract_dir(archive)
    _extract(archive, extract_dir)
    source = _locate_binary(extract_dir, binary_name)

    target = state.bin_dir / binary_name
    try:
        state.bin_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        os.chmod(target, 0o755)
    except OSError as e:
        raise InstallFailed(f"Cannot install {binary_name} to {state.bin_dir}: {e}") from e

    shutil.rmtree(extract_dir, ignore_errors=True)
    archive.unlink(missing_ok=True)
    logger.info("Installed %s", target)
    return InstallOutcome(archive=archive, binary=target)


def install_component(
    component: Component,
    state: DeploymentState,
    tag: str | None = None,
) -> InstallOutcome:
    """Resolve ``component`` (latest, or ``tag``) and install it."""
    release = resolve_release(component, state, tag)
    outcome = install_from(
        release.url,
        component.archive_name,
        state,
        binary_name=component.binary_name,
    )
    outcome.release = release
    return outcome
