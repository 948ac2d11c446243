"""Release information baked into a build."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class BuildInfo:
    """Values set when the node is built; all empty for a development build."""

    commit_hash: str = ""
    release_cid: str = ""
    version: str = ""


@dataclass(frozen=True)
class ReleaseSummary:
    commit: str
    ipfs: str
    version: str

    def to_dict(self) -> dict[str, Any]:
        return {"commit": self.commit, "ipfs": self.ipfs, "version": self.version}


@dataclass(frozen=True)
class ReleaseInfo:
    from_build: bool
    ipfs: str
    version: str
    commit: str


def get_build_release_summary(build: BuildInfo) -> Optional[ReleaseSummary]:
    """Return the release summary, or ``None`` when the build carries no commit hash."""
    if not build.commit_hash:
        return None
    return ReleaseSummary(commit=build.commit_hash, ipfs=build.release_cid, version=build.version)


def get_build_release_info(build: BuildInfo) -> ReleaseInfo:
    """Collect the release info from the build values."""
    return ReleaseInfo(
        from_build=True,
        ipfs=build.release_cid,
        version=build.version,
        commit=build.commit_hash,
    )