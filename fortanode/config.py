"""Scan node configuration: the YAML settings file, its defaults and well-known paths."""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass, field, fields, is_dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union, get_args, get_origin

import yaml

if TYPE_CHECKING:
    from .agents import AgentConfig

# File and port defaults
DEFAULT_LOCAL_AGENTS_FILE_NAME = "local-agents.json"
DEFAULT_KEYS_DIR_NAME = ".keys"
DEFAULT_CONFIG_FILE_NAME = "config.yml"
DEFAULT_NATS_PORT = "4222"
DEFAULT_CONTAINER_PORT = "8089"
DEFAULT_HEALTH_PORT = "8090"
DEFAULT_FORTA_NODE_BINARY_PATH = "/forta-node"

# Container names and paths
CONTAINER_NAME_PREFIX = "forta"

DOCKER_SUPERVISOR_IMAGE = "forta-network/forta-node:latest"
DOCKER_UPDATER_IMAGE = "forta-network/forta-node:latest"
USE_DOCKER_IMAGES = "local"

DOCKER_SUPERVISOR_MANAGED_CONTAINERS = 4
DOCKER_UPDATER_CONTAINER_NAME = f"{CONTAINER_NAME_PREFIX}-updater"
DOCKER_SUPERVISOR_CONTAINER_NAME = f"{CONTAINER_NAME_PREFIX}-supervisor"
DOCKER_NATS_CONTAINER_NAME = f"{CONTAINER_NAME_PREFIX}-nats"
DOCKER_IPFS_CONTAINER_NAME = f"{CONTAINER_NAME_PREFIX}-ipfs"
DOCKER_SCANNER_CONTAINER_NAME = f"{CONTAINER_NAME_PREFIX}-scanner"
DOCKER_JSON_RPC_PROXY_CONTAINER_NAME = f"{CONTAINER_NAME_PREFIX}-json-rpc"

DOCKER_NETWORK_NAME = DOCKER_SCANNER_CONTAINER_NAME

DEFAULT_CONTAINER_FORTA_DIR_PATH = "/.forta"
DEFAULT_CONTAINER_CONFIG_PATH = posixpath.join(DEFAULT_CONTAINER_FORTA_DIR_PATH, DEFAULT_CONFIG_FILE_NAME)
DEFAULT_CONTAINER_KEY_DIR_PATH = posixpath.join(DEFAULT_CONTAINER_FORTA_DIR_PATH, DEFAULT_KEYS_DIR_NAME)
DEFAULT_CONTAINER_LOCAL_AGENTS_FILE_PATH = posixpath.join(
    DEFAULT_CONTAINER_FORTA_DIR_PATH, DEFAULT_LOCAL_AGENTS_FILE_NAME
)

# Environment variables
ENV_HOST_FORTA_DIR = "HOST_FORTA_DIR"
ENV_DEVELOPMENT = "FORTA_DEVELOPMENT"
ENV_RELEASE_INFO = "FORTA_RELEASE_INFO"
ENV_JSON_RPC_HOST = "JSON_RPC_HOST"
ENV_JSON_RPC_PORT = "JSON_RPC_PORT"
ENV_AGENT_GRPC_PORT = "AGENT_GRPC_PORT"

_POLYGON_RPC_URL = "https://polygon-rpc.com"
_FORTA_IPFS_URL = "https://ipfs.forta.network"


def _setting(key, kind, default=None, *, factory=None):
    """Declare a config field read from ``key`` in YAML (``None`` for runtime-only fields)."""
    metadata = {"yaml": key, "kind": kind}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


@dataclass
class JsonRpcConfig:
    url: str = _setting("url", str, "")
    headers: dict[str, str] = _setting("headers", dict[str, str], factory=dict)


@dataclass
class ScannerConfig:
    start_block: int = _setting(None, int, 0)
    end_block: int = _setting(None, int, 0)
    json_rpc: JsonRpcConfig = _setting("jsonRpc", JsonRpcConfig, factory=JsonRpcConfig)
    disable_autostart: bool = _setting("disableAutostart", bool, False)
    block_rate_limit: int = _setting("blockRateLimit", int, 200)
    block_max_age_seconds: int = _setting(("blockmaxageseconds", "blockMaxAgeSeconds"), int, 600)


@dataclass
class TraceConfig:
    json_rpc: JsonRpcConfig = _setting("jsonRpc", JsonRpcConfig, factory=JsonRpcConfig)
    enabled: bool = _setting("enabled", bool, False)


@dataclass
class RateLimitConfig:
    rate: float = _setting("rate", float, 0.0)
    burst: int = _setting("burst", int, 0)


@dataclass
class JsonRpcProxyConfig:
    json_rpc: JsonRpcConfig = _setting("jsonRpc", JsonRpcConfig, factory=JsonRpcConfig)
    rate_limit: Optional[RateLimitConfig] = _setting("rateLimit", Optional[RateLimitConfig], None)


@dataclass
class LogConfig:
    level: str = _setting("level", str, "info")
    max_log_size: str = _setting("maxLogSize", str, "50m")
    max_log_files: int = _setting("maxLogFiles", int, 10)


@dataclass
class IPFSConfig:
    gateway_url: str = _setting("gatewayUrl", str, _FORTA_IPFS_URL)
    api_url: str = _setting("apiUrl", str, _FORTA_IPFS_URL)
    username: str = _setting("username", str, "")
    password: str = _setting("password", str, "")


@dataclass
class RegistryConfig:
    json_rpc: JsonRpcConfig = _setting(
        "jsonRpc", JsonRpcConfig, factory=lambda: JsonRpcConfig(url=_POLYGON_RPC_URL)
    )
    ipfs: IPFSConfig = _setting("ipfs", IPFSConfig, factory=IPFSConfig)
    contract_address: str = _setting("contractAddress", str, "")
    container_registry: str = _setting("containerRegistry", str, "disco.forta.network")
    username: str = _setting("username", str, "")
    password: str = _setting("password", str, "")
    disable: bool = _setting("disable", bool, False)
    check_interval_seconds: int = _setting("checkIntervalSeconds", int, 15)


@dataclass
class BatchConfig:
    skip_empty: bool = _setting("skipEmpty", bool, False)
    interval_seconds: Optional[int] = _setting("intervalSeconds", Optional[int], 15)
    max_alerts: Optional[int] = _setting("maxAlerts", Optional[int], 1000)


@dataclass
class TestAlertsConfig:
    __test__ = False

    disable: bool = _setting("disable", bool, False)
    webhook_url: str = _setting("webhookUrl", str, "")


@dataclass
class PublisherConfig:
    skip_publish: bool = _setting("skipPublish", bool, False)
    api_url: str = _setting("apiUrl", str, "https://alerts.forta.network")
    ipfs: IPFSConfig = _setting("ipfs", IPFSConfig, factory=IPFSConfig)
    batch: BatchConfig = _setting("batch", BatchConfig, factory=BatchConfig)
    test_alerts: TestAlertsConfig = _setting("testAlerts", TestAlertsConfig, factory=TestAlertsConfig)


@dataclass
class ResourcesConfig:
    disable_agent_limits: bool = _setting("disableAgentLimits", bool, False)
    agent_max_memory_mib: int = _setting("agentMaxMemoryMib", int, 0)
    agent_max_cpus: float = _setting("agentMaxCpus", float, 0.0)


@dataclass
class ENSConfig:
    default_contract: bool = _setting("defaultContract", bool, False)
    contract_address: str = _setting(
        "contractAddress", str, "0x08f42fcc52a9C2F391bF507C4E8688D0b53e1bd7"
    )
    json_rpc: JsonRpcConfig = _setting(
        "jsonRpc", JsonRpcConfig, factory=lambda: JsonRpcConfig(url=_POLYGON_RPC_URL)
    )
    override: bool = _setting("override", bool, False)


@dataclass
class TelemetryConfig:
    url: str = _setting("url", str, "https://alerts.forta.network/telemetry")
    disable: bool = _setting("disable", bool, False)


@dataclass
class AutoUpdateConfig:
    disable: bool = _setting("disable", bool, False)
    update_delay: Optional[int] = _setting("updateDelay", Optional[int], None)


@dataclass
class AgentLogsConfig:
    url: str = _setting("url", str, "https://alerts.forta.network/logs/agents")
    disable: bool = _setting("disable", bool, False)


@dataclass
class ContainerRegistryConfig:
    username: str = _setting("username", str, "")
    password: str = _setting("password", str, "")


@dataclass
class PrivateModeConfig:
    enable: bool = _setting("enable", bool, False)
    agent_images: list[str] = _setting("botImages", list[str], factory=list)
    webhook_url: str = _setting("webhookUrl", str, "")
    container_registry: Optional[ContainerRegistryConfig] = _setting(
        "containerRegistry", Optional[ContainerRegistryConfig], None
    )


@dataclass
class Config:
    """The whole node configuration: runtime values plus the settings file."""

    development: bool = _setting(None, bool, False)
    forta_dir: str = _setting(None, str, "")
    key_dir_path: str = _setting(None, str, "")
    passphrase: str = _setting(None, str, "")
    expose_nats: bool = _setting(None, bool, False)
    local_agents_path: str = _setting(None, str, "")
    local_agents: list[AgentConfig] = _setting(None, list, factory=list)
    agent_registry_contract_address: str = _setting(None, str, "")
    scanner_version_contract_address: str = _setting(None, str, "")
    scanner_registry_contract_address: str = _setting(None, str, "")

    chain_id: int = _setting("chainId", int, 1)
    scan: ScannerConfig = _setting("scan", ScannerConfig, factory=ScannerConfig)
    trace: TraceConfig = _setting("trace", TraceConfig, factory=TraceConfig)
    registry: RegistryConfig = _setting("registry", RegistryConfig, factory=RegistryConfig)
    publish: PublisherConfig = _setting("publish", PublisherConfig, factory=PublisherConfig)
    json_rpc_proxy: JsonRpcProxyConfig = _setting(
        "jsonRpcProxy", JsonRpcProxyConfig, factory=JsonRpcProxyConfig
    )
    log: LogConfig = _setting("log", LogConfig, factory=LogConfig)
    resources: ResourcesConfig = _setting("resources", ResourcesConfig, factory=ResourcesConfig)
    ens: ENSConfig = _setting("ens", ENSConfig, factory=ENSConfig)
    telemetry: TelemetryConfig = _setting("telemetry", TelemetryConfig, factory=TelemetryConfig)
    auto_update: AutoUpdateConfig = _setting("autoUpdate", AutoUpdateConfig, factory=AutoUpdateConfig)
    agent_logs: AgentLogsConfig = _setting("agentLogs", AgentLogsConfig, factory=AgentLogsConfig)
    private_mode: PrivateModeConfig = _setting(
        "privateMode", PrivateModeConfig, factory=PrivateModeConfig
    )

    def config_file_path(self) -> str:
        return os.path.join(self.forta_dir, DEFAULT_CONFIG_FILE_NAME)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        """Build a config from parsed YAML, filling defaults where values are missing or zero."""
        return _build(cls, data)


def _build(cls, data):
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValueError(f"expected a mapping for {cls.__name__}, got {type(data).__name__}")
    kwargs = {}
    for f in fields(cls):
        key = f.metadata.get("yaml")
        if key is None:
            continue
        aliases = key if isinstance(key, tuple) else (key,)
        raw = next((data[alias] for alias in aliases if alias in data), None)
        kind = f.metadata["kind"]
        value = _convert(kind, raw, aliases[0])
        if _is_zero(kind, value):
            continue  # leave the declared default in place
        kwargs[f.name] = value
    return cls(**kwargs)


def _convert(kind, raw, key):
    if raw is None:
        return None
    origin = get_origin(kind)
    if origin is Union:
        inner = next(arg for arg in get_args(kind) if arg is not type(None))
        return _convert(inner, raw, key)
    if is_dataclass(kind):
        return _build(kind, raw)
    if origin is list:
        if not isinstance(raw, list):
            raise ValueError(f"{key}: expected a list")
        (item_kind,) = get_args(kind)
        return [_convert(item_kind, item, key) for item in raw]
    if origin is dict:
        if not isinstance(raw, Mapping):
            raise ValueError(f"{key}: expected a mapping")
        _, value_kind = get_args(kind)
        return {str(k): _convert(value_kind, v, key) for k, v in raw.items()}
    if kind is bool:
        if not isinstance(raw, bool):
            raise ValueError(f"{key}: expected a boolean, got {raw!r}")
        return raw
    if kind is int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ValueError(f"{key}: expected an integer, got {raw!r}")
        return raw
    if kind is float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"{key}: expected a number, got {raw!r}")
        return float(raw)
    if kind is str:
        if isinstance(raw, (Mapping, list)):
            raise ValueError(f"{key}: expected a string")
        if isinstance(raw, bool):
            return "true" if raw else "false"
        return str(raw)
    raise TypeError(f"{key}: unsupported setting type {kind!r}")


def _is_zero(kind, value) -> bool:
    if value is None:
        return True
    origin = get_origin(kind)
    if origin is Union:
        return False
    if is_dataclass(kind):
        return all(_is_zero(f.metadata["kind"], getattr(value, f.name)) for f in fields(kind))
    if origin in (list, dict) or kind in (list, dict):
        return not value
    return value == kind()


def load_config(path: str) -> Config:
    """Read a YAML settings file and apply defaults."""
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        raise ValueError(f"config file {path} is empty")
    return Config.from_dict(data)


def get_config_for_container(path: str = DEFAULT_CONTAINER_CONFIG_PATH) -> Config:
    """Load the configuration the way a node container does."""
    if not os.path.exists(path):
        raise FileNotFoundError("config file not found")
    cfg = load_config(path)
    apply_context_defaults(cfg)
    return cfg


def apply_context_defaults(cfg: Config) -> None:
    """Apply defaults that depend on the other values and on the container context."""
    if cfg.chain_id == 1:
        cfg.trace.enabled = True
    if cfg.ens.default_contract:
        cfg.ens.contract_address = ""
    cfg.forta_dir = DEFAULT_CONTAINER_FORTA_DIR_PATH
    cfg.key_dir_path = posixpath.join(cfg.forta_dir, DEFAULT_KEYS_DIR_NAME)


@dataclass(frozen=True)
class EnvDefaults:
    disco_subdomain: str


def get_env_defaults(development: bool) -> EnvDefaults:
    if development:
        return EnvDefaults(disco_subdomain="disco-dev")
    return EnvDefaults(disco_subdomain="disco")


def parse_big_int(num: int) -> Optional[int]:
    """Return ``num``, or ``None`` when it is zero (meaning unset)."""
    return num if num != 0 else None


_LOG_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": 5,
}


def init_log_level(cfg: Config) -> int:
    """Configure the root logger from ``cfg.log.level`` and return the level used."""
    name = cfg.log.level
    if name:
        level = _LOG_LEVELS.get(name.lower())
        if level is None:
            raise ValueError(f"not a valid log level: {name!r}")
    else:
        level = logging.INFO
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    for handler in root.handlers:
        handler.setFormatter(formatter)
    return level