"""
L2 Resolver — Release index lookups.

Resolves the published tag and platform artifact URL for a component
from the GitHub releases API. Nothing is cached: every call queries the
index again, so "latest" always means latest at the time of the call.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from nodekeeper.core.deployment import DeploymentState
from nodekeeper.core.errors import ReleaseNotFound
from nodekeeper.core.models.component import Component, Release
from nodekeeper.core.services.node_install.net import fetch_json

logger = logging.getLogger(__name__)


def _repo_url(state: DeploymentState, component: Component, path: str) -> str:
    return f"{state.release_api.rstrip('/')}/repos/{component.repo}/{path}"


def _query(url: str, component: Component, state: DeploymentState) -> Any:
    try:
        return fetch_json(url, timeout=state.http_timeout)
    except (OSError, ValueError) as e:
        raise ReleaseNotFound(f"Release index query failed for {component.repo}: {e}") from e


def extract_artifact_url(release: dict[str, Any], component: Component) -> str | None:
    """Find the platform artifact URL in a release document.

    The release body is searched in its JSON-escaped form, the way the
    index transmits it, for ``https?://<...><artifact_pattern><...>``.
    The body lists the URL followed by descriptive text glued to it
    (markdown closer, escaped line break), so exactly
    ``component.url_suffix_len`` trailing characters are cut off.

    If the body has no usable match, release assets whose name contains
    the pattern are used instead (their URLs need no trimming).
    """
    body = release.get("body") or ""
    escaped = json.dumps(body, ensure_ascii=False)[1:-1]
    pattern = re.compile(r"https?://[^ ]+" + re.escape(component.artifact_pattern) + r"[^ ]+")

    suffix = component.url_suffix_len
    for match in pattern.finditer(escaped):
        candidate = match.group(0)
        url = candidate[:-suffix] if suffix else candidate
        if component.artifact_pattern in url:
            return url
        logger.debug("Discarding %r: too short for a %d-char suffix", candidate, suffix)

    for asset in release.get("assets") or []:
        name = asset.get("name", "")
        if component.artifact_pattern in name and asset.get("browser_download_url"):
            return asset["browser_download_url"]

    return None


def _release_from(data: Any, component: Component) -> Release:
    if not isinstance(data, dict):
        raise ReleaseNotFound(f"Unexpected release document for {component.repo}")

    tag = data.get("tag_name")
    if not tag:
        raise ReleaseNotFound(f"No tag in release document for {component.repo}")

    url = extract_artifact_url(data, component)
    if not url:
        raise ReleaseNotFound(
            f"No '{component.artifact_pattern}' artifact in {component.repo} {tag}"
        )

    return Release(component=component.name, tag=tag, url=url)


def resolve_latest(component: Component, state: DeploymentState) -> Release:
    """Most recently published release of ``component``.

    Raises:
        ReleaseNotFound: Index unreachable, no tag, or no matching artifact.
    """
    data = _query(_repo_url(state, component, "releases/latest"), component, state)
    release = _release_from(data, component)
    logger.info("Latest %s release: %s", component.name, release.tag)
    return release


def resolve_release(
    component: Component,
    state: DeploymentState,
    tag: str | None = None,
) -> Release:
    """Release for ``tag``, or the latest one when ``tag`` is None."""
    if tag is None:
        return resolve_latest(component, state)
    data = _query(_repo_url(state, component, f"releases/tags/{tag}"), component, state)
    return _release_from(data, component)


def resolve_tag(component: Component, nth: int, state: DeploymentState) -> str:
    """The ``nth`` published tag, most recent first (1 = latest).

    Used to offer a "previous stable" install choice (``nth=2``).

    Raises:
        ReleaseNotFound: Index unreachable, or fewer than ``nth`` tags.
    """
    if nth < 1:
        raise ValueError(f"nth must be >= 1, got {nth}")

    data = _query(_repo_url(state, component, "tags"), component, state)
    if not isinstance(data, list):
        raise ReleaseNotFound(f"Unexpected tag listing for {component.repo}")

    names = [t.get("name") for t in data if isinstance(t, dict) and t.get("name")]
    if len(names) < nth:
        raise ReleaseNotFound(
            f"{component.repo} has {len(names)} published tag(s), cannot select #{nth}"
        )
    return names[nth - 1]
