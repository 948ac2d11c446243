"""Agent (detection bot) configuration and naming."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .config import CONTAINER_NAME_PREFIX

AGENT_GRPC_PORT = "50051"


def split_image_ref(ref: str) -> tuple[str, str]:
    """Split ``name@sha256:digest`` into the name and the bare digest."""
    name, sep, digest = ref.partition("@")
    if not sep:
        return ref, ""
    _, colon, value = digest.partition(":")
    return name, value if colon else digest


def shorten_string(value: str, length: int) -> str:
    """Return at most the first ``length`` characters of ``value``."""
    return value[:length]


@dataclass(frozen=True)
class AgentInfo:
    id: str
    image: str
    image_hash: str
    manifest: str


@dataclass
class AgentConfig:
    id: str
    image: str
    manifest: str = ""
    is_local: bool = False
    start_block: Optional[int] = None
    stop_block: Optional[int] = None

    def to_agent_info(self) -> AgentInfo:
        return AgentInfo(
            id=self.id, image=self.image, image_hash=self.image_hash(), manifest=self.manifest
        )

    def image_hash(self) -> str:
        return split_image_ref(self.image)[1]

    def container_name(self) -> str:
        short_id = shorten_string(self.id, 8)
        if self.is_local:
            return f"{CONTAINER_NAME_PREFIX}-agent-{short_id}"
        digest = self.image_hash()
        return f"{CONTAINER_NAME_PREFIX}-agent-{short_id}-{shorten_string(digest, 4)}"

    def grpc_port(self) -> str:
        return AGENT_GRPC_PORT

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "image": self.image,
            "manifest": self.manifest,
            "isLocal": self.is_local,
        }
        if self.start_block is not None:
            data["startBlock"] = self.start_block
        if self.stop_block is not None:
            data["stopBlock"] = self.stop_block
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AgentConfig":
        if not isinstance(data, Mapping):
            raise ValueError("agent config must be a mapping")
        return cls(
            id=str(data.get("id") or ""),
            image=str(data.get("image") or ""),
            manifest=str(data.get("manifest") or ""),
            is_local=bool(data.get("isLocal", False)),
            start_block=_optional_int(data.get("startBlock")),
            stop_block=_optional_int(data.get("stopBlock")),
        )


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"expected a non-negative block number, got {value!r}")
    return value