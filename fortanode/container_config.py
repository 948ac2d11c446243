"""Settings for starting a node container and their translation to engine API structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .containers import DockerLabel, labels_to_map

DEFAULT_HOST_IP = "0.0.0.0"
DEFAULT_MAX_LOG_SIZE = "10m"
DEFAULT_MAX_LOG_FILES = 10
LOG_DRIVER = "json-file"
HOST_GATEWAY_ENTRY = "host.docker.internal:host-gateway"


@dataclass
class DockerContainerConfig:
    """What the node asks for when it starts one container."""

    name: str
    image: str
    env: dict[str, str] = field(default_factory=dict)
    link_network_ids: list[str] = field(default_factory=list)
    network_id: str = ""
    ports: dict[str, str] = field(default_factory=dict)
    publish_all_ports: bool = False  # publish the ports the image exposes
    volumes: dict[str, str] = field(default_factory=dict)
    files: dict[str, bytes] = field(default_factory=dict)
    max_log_size: str = ""
    max_log_files: int = 0
    cpu_quota: int = 0
    memory: int = 0
    cmd: list[str] = field(default_factory=list)
    dial_host: bool = False
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PortBinding:
    """One host address and port that a container port is published on."""

    host_ip: str
    host_port: str

    def to_api(self) -> dict[str, str]:
        return {"HostIp": self.host_ip, "HostPort": self.host_port}


def env_vars(env: Mapping[str, str]) -> list[str]:
    """Turn environment settings into ``KEY=value`` entries."""
    return [f"{key}={value}" for key, value in env.items()]


def _tcp(port: str) -> str:
    return f"{port}/tcp"


def port_bindings(ports: Mapping[str, str]) -> dict[str, list[PortBinding]]:
    """Map host ports (``port`` or ``ip:port``) to container TCP ports."""
    bindings: dict[str, list[PortBinding]] = {}
    for host_port, container_port in ports.items():
        host_ip = DEFAULT_HOST_IP
        parts = host_port.split(":")
        if len(parts) == 2:
            host_ip, host_port = parts
        bindings[_tcp(container_port)] = [PortBinding(host_ip=host_ip, host_port=host_port)]
    return bindings


def volume_binds(volumes: Mapping[str, str]) -> list[str]:
    """Turn host-path to mount-point pairs into ``host:mount`` bind entries."""
    return [f"{host}:{mount}" for host, mount in volumes.items()]


def log_config(cfg: DockerContainerConfig) -> dict[str, Any]:
    """The log driver settings, with the default size and file count where unset."""
    max_size = cfg.max_log_size or DEFAULT_MAX_LOG_SIZE
    max_files = cfg.max_log_files or DEFAULT_MAX_LOG_FILES
    return {
        "Type": LOG_DRIVER,
        "Config": {"max-file": str(max_files), "max-size": max_size},
    }


def container_labels(cfg: DockerContainerConfig, labels: Iterable[DockerLabel]) -> dict[str, str]:
    """The client's labels with the container's own labels laid over them."""
    merged = labels_to_map(labels)
    merged.update(cfg.labels)
    return merged


def host_config(cfg: DockerContainerConfig) -> dict[str, Any]:
    """The engine host configuration for the container."""
    extra_hosts = [HOST_GATEWAY_ENTRY] if cfg.dial_host else []
    return {
        "NetworkMode": cfg.network_id,
        "PortBindings": {
            port: [binding.to_api() for binding in bound]
            for port, bound in port_bindings(cfg.ports).items()
        },
        "PublishAllPorts": cfg.publish_all_ports,
        "Binds": volume_binds(cfg.volumes),
        "LogConfig": log_config(cfg),
        "CpuQuota": cfg.cpu_quota,
        "Memory": cfg.memory,
        "ExtraHosts": extra_hosts,
    }