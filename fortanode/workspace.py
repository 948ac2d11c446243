"""The local node directory: initialisation, the local agent list and the contract address cache."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

from .agents import AgentConfig
from .config import DEFAULT_CONFIG_FILE_NAME, DEFAULT_KEYS_DIR_NAME

CONTRACTS_FILE_NAME = "contracts.json"

_DEFAULT_CONFIG = """# Auto generated by 'forta init' - safe to modify
# The chainId is the chainId of the network that is analyzed (1=mainnet)
chainId: 1

# The scan settings are used to retrieve the transactions that are analyzed
scan:
  jsonRpc:
    url: <required>

# The trace endpoint must support trace_block (such as alchemy)
trace:
  jsonRpc:
    url: <required>

# The registry settings are used to discover and load agents
# registry:
#  jsonRpc:
#    url: https://polygon-rpc.com/
#  ipfs:
#    gatewayUrl: https://ipfs.forta.network
#    username: <set if needed>
#    password: <set if needed>

# The jsonRpcProxy settings are used make query requests (defaults to scan url)
# jsonRpcProxy:
#   jsonRpc:
#     url: <enter if different from scan value>

# The publish settings drive how alerts are sent
# publish:
#  ipfs:
#    apiUrl: https://ipfs.forta.network
#    username: <set if needed>
#    password: <set if needed>

# The log settings drive the log output of the scan node
# log:
#  level: info
#  maxLogSize: 50m
#  maxLogFiles: 10
"""


def default_config() -> str:
    """Return the settings file written by a fresh initialisation."""
    return _DEFAULT_CONFIG


@dataclass
class Workspace:
    """A node directory holding the settings file and the key directory."""

    forta_dir: str
    key_dir_path: str = ""

    def __post_init__(self) -> None:
        if not self.key_dir_path:
            self.key_dir_path = os.path.join(self.forta_dir, DEFAULT_KEYS_DIR_NAME)

    @property
    def config_file_path(self) -> str:
        return os.path.join(self.forta_dir, DEFAULT_CONFIG_FILE_NAME)

    def is_dir_initialized(self) -> bool:
        return os.path.isdir(self.forta_dir)

    def is_config_file_initialized(self) -> bool:
        return os.path.exists(self.config_file_path) and not os.path.isdir(self.config_file_path)

    def is_key_dir_initialized(self) -> bool:
        return os.path.isdir(self.key_dir_path)

    def is_key_initialized(self) -> bool:
        """True when the first entry of the key directory is a key file."""
        if not self.is_key_dir_initialized():
            return False
        try:
            entries = sorted(os.scandir(self.key_dir_path), key=lambda entry: entry.name)
        except OSError:
            return False
        if not entries:
            return False
        return not entries[0].is_dir()

    def is_initialized(self) -> bool:
        return self.is_dir_initialized() and self.is_config_file_initialized() and self.is_key_initialized()

    def initialize_files(self) -> List[str]:
        """Create whatever of the directory, settings file and key directory is missing.

        The key itself is not created. Returns the paths that were created.
        """
        created = []
        if not self.is_dir_initialized():
            os.mkdir(self.forta_dir, 0o755)
            created.append(self.forta_dir)
        if not self.is_config_file_initialized():
            with open(self.config_file_path, "w", encoding="utf-8") as handle:
                handle.write(default_config())
            created.append(self.config_file_path)
        if not self.is_key_dir_initialized():
            os.mkdir(self.key_dir_path, 0o755)
            created.append(self.key_dir_path)
        return created


def read_local_agents(path: str) -> List[AgentConfig]:
    """Read the local agent list; a missing or unreadable file gives an empty list."""
    try:
        with open(path, "rb") as handle:
            raw = handle.read()
    except OSError:
        return []
    try:
        data = json.loads(raw)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError("expected a list of agents")
        agents = [AgentConfig.from_dict(item) for item in data]
    except ValueError as exc:
        raise ValueError(f"failed to unmarshal the local agents file: {exc}") from exc
    for agent in agents:
        agent.is_local = True
    return agents


def write_local_agents(path: str, agents: List[AgentConfig]) -> None:
    """Write the agent list; an empty list leaves the file untouched."""
    if not agents:
        return
    text = json.dumps([agent.to_dict() for agent in agents], indent=2)
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(text)


def add_local_agent(agents: List[AgentConfig], agent: AgentConfig) -> bool:
    """Append the agent unless the same id with the same image is listed; True when appended."""
    if any(local.id == agent.id and local.image == agent.image for local in agents):
        return False
    agents.append(agent)
    return True


_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIME_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.year < 1000:
        text = f"{moment.year:04d}" + text[text.index("-"):]
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + "Z"


def _parse_time(text: str) -> datetime:
    match = _TIME_PATTERN.match(text)
    if match is None:
        raise ValueError(f"invalid time: {text!r}")
    base, fraction, zone = match.groups()
    micros = int((fraction or "")[:6].ljust(6, "0"))
    offset = "+00:00" if zone == "Z" else zone
    return datetime.fromisoformat(f"{base}{offset}").replace(microsecond=micros)


@dataclass
class ContractAddressCache:
    """Registry contract addresses resolved through ENS, valid until ``expires_at``."""

    dispatch: str = ""
    agents: str = ""
    scanner_version: str = ""
    expires_at: datetime = field(default=_ZERO_TIME)

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


def _cache_to_dict(cache: ContractAddressCache) -> dict[str, Any]:
    return {
        "dispatch": cache.dispatch,
        "agents": cache.agents,
        "scannerVersion": cache.scanner_version,
        "expiresAt": _format_time(cache.expires_at),
    }


def _cache_from_dict(data: Any) -> ContractAddressCache:
    if not isinstance(data, dict):
        raise ValueError("contract cache must be a JSON object")
    expires = data.get("expiresAt")
    return ContractAddressCache(
        dispatch=str(data.get("dispatch") or ""),
        agents=str(data.get("agents") or ""),
        scanner_version=str(data.get("scannerVersion") or ""),
        expires_at=_parse_time(expires) if isinstance(expires, str) else _ZERO_TIME,
    )


def read_contract_cache(forta_dir: str) -> Optional[ContractAddressCache]:
    """Read the cached contract addresses, or ``None`` when there is no usable cache."""
    try:
        with open(os.path.join(forta_dir, CONTRACTS_FILE_NAME), "rb") as handle:
            return _cache_from_dict(json.loads(handle.read()))
    except (OSError, ValueError):
        return None


def write_contract_cache(forta_dir: str, cache: ContractAddressCache) -> None:
    text = json.dumps(_cache_to_dict(cache), indent=2)
    with open(os.path.join(forta_dir, CONTRACTS_FILE_NAME), "w", encoding="utf-8") as handle:
        handle.write(text)