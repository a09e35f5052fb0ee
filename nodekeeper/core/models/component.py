"""
Component and Release models — what can be installed, and where from.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from pydantic import BaseModel, Field


class Component(BaseModel):
    """A named installable program (consensus or execution engine).

    Exactly one version of a component lives on disk at a time:
    installing overwrites ``binary_path``, it never versions side by side.
    """

    name: str                               # canonical name, e.g. "story"
    repo: str                               # release index repo, "owner/name"
    artifact_pattern: str                   # platform substring in the artifact URL
    archive_name: str                       # local staging file name
    binary_name: str                        # executable inside the archive
    version_args: list[str] = Field(default_factory=lambda: ["version"])
    service_name: str = ""
    exec_args: list[str] = Field(default_factory=list)
    description: str = ""
    url_suffix_len: int = 6                 # non-URL trailer after the match
    takes_home: bool = False                # accepts --home <node_home>

    def binary_path(self, bin_dir: Path) -> Path:
        """Installed location of this component's executable."""
        return bin_dir / self.binary_name

    def exec_start(self, bin_dir: Path, home: Path | None = None) -> str:
        """Full start command for the supervised service."""
        args = [str(self.binary_path(bin_dir)), *self.exec_args]
        if home is not None and self.takes_home:
            args += ["--home", str(home)]
        return shlex.join(args)


class Release(BaseModel):
    """A published release resolved from the index.

    Resolved fresh on every query, never cached across runs.
    """

    component: str
    tag: str
    url: str
