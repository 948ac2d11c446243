"""Container bookkeeping for the node: labels, lookups, log cleanup and error matching."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

DOCKER_LABEL_FORTA = "network.forta"
DOCKER_LABEL_FORTA_SUPERVISOR = "network.forta.supervisor"
DOCKER_LABEL_FORTA_SUPERVISOR_STRATEGY_VERSION = "network.forta.supervisor.strategy-version"
DOCKER_LABEL_FORTA_SETTINGS_AGENT_LOGS_ENABLE = "network.forta.settings.agent-logs.enable"

_AGENT_NAME_MARKER = "forta-agent"


@dataclass(frozen=True)
class DockerLabel:
    name: str
    value: str


DEFAULT_LABELS: tuple[DockerLabel, ...] = (DockerLabel(DOCKER_LABEL_FORTA, "true"),)


class ContainerNotFoundError(LookupError):
    """No container matched a lookup by name or id."""

    def __init__(self, key: str, value: str):
        super().__init__(f"container not found with {key} '{value}'")
        self.key = key
        self.value = value


@dataclass(frozen=True)
class ContainerSummary:
    """A container as listed by the container engine."""

    id: str
    names: tuple[str, ...] = ()
    state: str = ""
    image: str = ""
    labels: Mapping[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """The first name without its leading slash, or an empty string."""
        if not self.names:
            return ""
        return self.names[0][1:]

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ContainerSummary":
        """Build a summary from an engine API container listing entry."""
        if not isinstance(data, Mapping):
            raise ValueError("container entry must be a mapping")
        return cls(
            id=str(data.get("Id") or ""),
            names=tuple(str(n) for n in (data.get("Names") or ())),
            state=str(data.get("State") or ""),
            image=str(data.get("Image") or ""),
            labels={str(k): str(v) for k, v in (data.get("Labels") or {}).items()},
        )


def init_labels(name: str) -> list[DockerLabel]:
    """Labels put on everything a client creates; a named client adds its supervisor label."""
    labels = list(DEFAULT_LABELS)
    if name:
        labels.append(DockerLabel(DOCKER_LABEL_FORTA_SUPERVISOR, name))
    return labels


def labels_to_map(labels: Iterable[DockerLabel]) -> dict[str, str]:
    return {label.name: label.value for label in labels}


def label_filters(labels: Iterable[DockerLabel]) -> dict[str, list[str]]:
    """Engine list filters that match every one of the labels."""
    values = [f"{label.name}={label.value}" for label in labels]
    return {"label": values} if values else {}


def registry_auth_value(username: str, password: str) -> str:
    """Encode registry credentials for image pulls; empty when there are none."""
    if not username and not password:
        return ""
    text = json.dumps(
        {"username": username, "password": password}, sort_keys=True, separators=(",", ":")
    )
    text = text.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def find_by_id(containers: Iterable[ContainerSummary], container_id: str) -> Optional[ContainerSummary]:
    return next((c for c in containers if c.id == container_id), None)


def find_by_name(containers: Iterable[ContainerSummary], name: str) -> Optional[ContainerSummary]:
    """Find a container with the name, with or without the leading slash."""
    wanted = {name, f"/{name}"}
    return next((c for c in containers if any(n in wanted for n in c.names)), None)


def contains_any(containers: Iterable[ContainerSummary], name: str) -> Optional[ContainerSummary]:
    """Return the first container whose first name contains ``name``."""
    return next((c for c in containers if c.names and name in c.names[0]), None)


def service_containers(containers: Iterable[ContainerSummary]) -> list[ContainerSummary]:
    """Keep the node's own service containers, leaving out agent containers."""
    return [c for c in containers if _AGENT_NAME_MARKER not in c.name]


def clean_container_logs(raw: bytes | str, truncate: int) -> str:
    """Cut the logs to ``truncate`` bytes (negative means no limit) and drop the
    stream header that precedes the timestamp on each line."""
    data = raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)
    if 0 <= truncate < len(data):
        data = data[:truncate]
    lines = data.decode("utf-8", errors="replace").split("\n")
    return "\n".join(_strip_log_prefix(line) for line in lines)


def _strip_log_prefix(line: str) -> str:
    if not line:
        return line
    start = line.find("2")  # timestamps begin with the year
    return line[start:] if start >= 0 else line


def image_pull_succeeded(response: bytes | str) -> bool:
    """Tell from the engine's pull output whether the image is now present."""
    text = response.decode("utf-8", errors="replace") if isinstance(response, bytes) else response
    text = text.lower()
    return "downloaded" in text or "up to date" in text


def is_no_such_container_err(message: str) -> bool:
    return "no such container" in message.lower()


def is_not_running_err(message: str) -> bool:
    return "is not running" in message.lower()


def supervisor_first(
    containers: Sequence[ContainerSummary], supervisor: Optional[ContainerSummary]
) -> list[ContainerSummary]:
    """Order containers for shutdown with the supervisor, when known, at the front."""
    ordered = list(containers)
    if supervisor is not None:
        ordered.insert(0, supervisor)
    return ordered