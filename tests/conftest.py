"""
Shared test fixtures and configuration.

Nothing here touches the network, systemd or the real binary directory:
HTTP goes through ``FakeNetwork``, services through ``MockSupervisor``
and every path lives under ``tmp_path``.
"""

from __future__ import annotations

import io
import tarfile
import urllib.error
from pathlib import Path
from typing import Any

import pytest

from nodekeeper.adapters.mock import (
    MockConfirmer,
    MockPrompter,
    MockRunner,
    MockSupervisor,
    MockVersionProbe,
)
from nodekeeper.core.deployment import DeploymentState

RELEASE_API = "https://api.test"
SEED = "https://seed.test"

STORY_URL = "https://binaries.test/story-public/story-linux-amd64-0.10.1-57567e5.tar.gz"
GETH_URL = "https://binaries.test/geth-public/geth-linux-amd64-0.9.3-b224fdf.tar.gz"


def release_doc(tag: str, pattern: str, url: str) -> dict[str, Any]:
    """A GitHub release document whose body lists ``url`` as a markdown link."""
    body = (
        "## Binaries\r\n"
        f"- [{pattern}]({url})\r\n"
        "- [checksums](https://binaries.test/checksums.txt)"
    )
    return {"tag_name": tag, "body": body, "assets": []}


def make_archive(binary_name: str, content: bytes = b"#!/bin/sh\necho new\n", *, prefix: str = "") -> bytes:
    """gzip'd tarball holding one executable (optionally inside ``prefix``/)."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        info = tarfile.TarInfo(f"{prefix}{binary_name}")
        info.size = len(content)
        info.mode = 0o755
        tf.addfile(info, io.BytesIO(content))
    return buf.getvalue()


class FakeNetwork:
    """URL-keyed stand-in for ``fetch_json`` and ``download_file``.

    Unknown URLs fail like an unreachable host. A stored exception is
    raised instead of returned.
    """

    def __init__(self) -> None:
        self.json: dict[str, Any] = {}
        self.files: dict[str, bytes | Exception] = {}
        self.requests: list[str] = []
        self.downloads: list[str] = []

    def fetch_json(self, url: str, *, timeout: int = 30) -> Any:
        self.requests.append(url)
        if url not in self.json:
            raise urllib.error.URLError(f"unreachable: {url}")
        value = self.json[url]
        if isinstance(value, Exception):
            raise value
        return value

    def download_file(self, url: str, dest: Path, *, timeout: int = 60) -> int:
        self.downloads.append(url)
        payload = self.files.get(url)
        if payload is None:
            raise urllib.error.URLError(f"unreachable: {url}")
        if isinstance(payload, Exception):
            raise payload
        dest.write_bytes(payload)
        return len(payload)

    # ── Scenario helpers ────────────────────────────────────────

    def publish(self, repo: str, tag: str, pattern: str, url: str, binary_name: str) -> None:
        """Serve ``tag`` as latest (and by tag) for ``repo``, with its archive."""
        doc = release_doc(tag, pattern, url)
        self.json[f"{RELEASE_API}/repos/{repo}/releases/latest"] = doc
        self.json[f"{RELEASE_API}/repos/{repo}/releases/tags/{tag}"] = doc
        self.files[url] = make_archive(binary_name, f"#!/bin/sh\necho {tag}\n".encode())

    def tags(self, repo: str, names: list[str]) -> None:
        self.json[f"{RELEASE_API}/repos/{repo}/tags"] = [{"name": n} for n in names]

    def seed_peers(self, peers: list[tuple[str, str, str]]) -> None:
        """``net_info`` on the seed reporting ``(id, remote_ip, listen_addr)`` peers."""
        self.json[f"{SEED}/net_info"] = {
            "result": {
                "n_peers": str(len(peers)),
                "peers": [
                    {"node_info": {"id": pid, "listen_addr": addr}, "remote_ip": ip}
                    for pid, ip, addr in peers
                ],
            }
        }


@pytest.fixture
def network(monkeypatch: pytest.MonkeyPatch) -> FakeNetwork:
    """Route every outbound call through a ``FakeNetwork``."""
    from nodekeeper.core.services import node_tools
    from nodekeeper.core.services.node_install.detection import peers
    from nodekeeper.core.services.node_install.execution import artifacts
    from nodekeeper.core.services.node_install.resolver import releases

    fake = FakeNetwork()
    monkeypatch.setattr(releases, "fetch_json", fake.fetch_json)
    monkeypatch.setattr(peers, "fetch_json", fake.fetch_json)
    monkeypatch.setattr(node_tools, "fetch_json", fake.fetch_json)
    monkeypatch.setattr(artifacts, "download_file", fake.download_file)
    return fake


@pytest.fixture
def supervisor() -> MockSupervisor:
    return MockSupervisor()


@pytest.fixture
def runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def state(tmp_path: Path, supervisor: MockSupervisor, runner: MockRunner) -> DeploymentState:
    """Deployment state rooted in ``tmp_path`` with mock capabilities."""
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    return DeploymentState(
        supervisor=supervisor,
        version_probe=MockVersionProbe(),
        confirmer=MockConfirmer(answer=True),
        prompter=MockPrompter(answer="test-moniker"),
        runner=runner,
        bin_dir=tmp_path / "bin",
        work_dir=work_dir,
        node_home=tmp_path / "home" / ".story" / "story",
        network="iliad",
        seed_endpoint=SEED,
        release_api=RELEASE_API,
        http_timeout=5,
    )


@pytest.fixture
def tmp_state_dir(tmp_path: Path) -> Path:
    """Return a temporary directory for state files."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir
