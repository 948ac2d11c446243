import json
import os
from datetime import datetime, timedelta, timezone

import pytest

from fortanode.agents import AgentConfig
from fortanode.workspace import (
    ContractAddressCache,
    Workspace,
    add_local_agent,
    default_config,
    read_contract_cache,
    read_local_agents,
    write_contract_cache,
    write_local_agents,
)


def test_default_config_sets_mainnet():
    assert "chainId: 1\n" in default_config()
    assert default_config().startswith("# Auto generated by 'forta init'")


def test_initialize_files_creates_layout(tmp_path):
    ws = Workspace(str(tmp_path / "forta"))
    created = ws.initialize_files()
    assert created == [ws.forta_dir, ws.config_file_path, ws.key_dir_path]
    assert ws.is_dir_initialized()
    assert ws.is_config_file_initialized()
    assert ws.is_key_dir_initialized()
    with open(ws.config_file_path, encoding="utf-8") as handle:
        assert handle.read() == default_config()


def test_initialize_files_is_idempotent(tmp_path):
    ws = Workspace(str(tmp_path / "forta"))
    ws.initialize_files()
    assert ws.initialize_files() == []


def test_not_initialized_without_key(tmp_path):
    ws = Workspace(str(tmp_path / "forta"))
    ws.initialize_files()
    assert not ws.is_key_initialized()
    assert not ws.is_initialized()


def test_initialized_with_key_file(tmp_path):
    ws = Workspace(str(tmp_path / "forta"))
    ws.initialize_files()
    with open(os.path.join(ws.key_dir_path, "keyfile"), "w") as handle:
        handle.write("{}")
    assert ws.is_key_initialized()
    assert ws.is_initialized()


def test_key_dir_with_subdirectory_is_not_a_key(tmp_path):
    ws = Workspace(str(tmp_path / "forta"))
    ws.initialize_files()
    os.mkdir(os.path.join(ws.key_dir_path, "nested"))
    assert not ws.is_key_initialized()


def test_key_dir_defaults_inside_forta_dir(tmp_path):
    ws = Workspace(str(tmp_path))
    assert ws.key_dir_path == os.path.join(str(tmp_path), ".keys")


def test_local_agents_round_trip_marks_local(tmp_path):
    path = str(tmp_path / "local-agents.json")
    agents = [AgentConfig(id="0xabc", image="img@sha256:1234"), AgentConfig(id="0xdef", image="other")]
    write_local_agents(path, agents)
    loaded = read_local_agents(path)
    assert [(a.id, a.image) for a in loaded] == [(a.id, a.image) for a in agents]
    assert all(a.is_local for a in loaded)


def test_local_agents_file_format(tmp_path):
    path = str(tmp_path / "local-agents.json")
    write_local_agents(path, [AgentConfig(id="0xabc", image="img")])
    with open(path, encoding="utf-8") as handle:
        assert json.load(handle) == [{"id": "0xabc", "image": "img", "manifest": "", "isLocal": False}]


def test_read_missing_local_agents_is_empty(tmp_path):
    assert read_local_agents(str(tmp_path / "missing.json")) == []


def test_read_invalid_local_agents_raises(tmp_path):
    path = tmp_path / "local-agents.json"
    path.write_text("{not json")
    with pytest.raises(ValueError, match="failed to unmarshal"):
        read_local_agents(str(path))


def test_write_empty_agents_writes_nothing(tmp_path):
    path = tmp_path / "local-agents.json"
    write_local_agents(str(path), [])
    assert not path.exists()


def test_add_local_agent_skips_same_image():
    agents = [AgentConfig(id="0xabc", image="img1")]
    assert add_local_agent(agents, AgentConfig(id="0xabc", image="img1")) is False
    assert len(agents) == 1


def test_add_local_agent_appends_new_version():
    agents = [AgentConfig(id="0xabc", image="img1")]
    assert add_local_agent(agents, AgentConfig(id="0xabc", image="img2")) is True
    assert [a.image for a in agents] == ["img1", "img2"]


def test_contract_cache_round_trip(tmp_path):
    expires = datetime(2022, 6, 10, 12, 30, 0, 250000, tzinfo=timezone.utc)
    cache = ContractAddressCache(dispatch="0x1", agents="0x2", scanner_version="0x3", expires_at=expires)
    write_contract_cache(str(tmp_path), cache)
    assert read_contract_cache(str(tmp_path)) == cache


def test_contract_cache_file_uses_rfc3339(tmp_path):
    expires = datetime(2022, 6, 10, 12, 30, tzinfo=timezone.utc)
    write_contract_cache(str(tmp_path), ContractAddressCache(dispatch="0x1", expires_at=expires))
    with open(tmp_path / "contracts.json", encoding="utf-8") as handle:
        data = json.load(handle)
    assert data["expiresAt"] == "2022-06-10T12:30:00Z"
    assert set(data) == {"dispatch", "agents", "scannerVersion", "expiresAt"}


def test_contract_cache_reads_nanosecond_times(tmp_path):
    (tmp_path / "contracts.json").write_text(
        json.dumps({"dispatch": "0x1", "expiresAt": "2022-06-10T12:30:00.123456789Z"})
    )
    cache = read_contract_cache(str(tmp_path))
    assert cache.expires_at == datetime(2022, 6, 10, 12, 30, 0, 123456, tzinfo=timezone.utc)


def test_read_missing_or_invalid_cache_is_none(tmp_path):
    assert read_contract_cache(str(tmp_path)) is None
    (tmp_path / "contracts.json").write_text("garbage")
    assert read_contract_cache(str(tmp_path)) is None


def test_cache_freshness():
    now = datetime.now(timezone.utc)
    cache = ContractAddressCache(expires_at=now + timedelta(hours=1))
    assert cache.is_fresh(now)
    assert not cache.is_fresh(now + timedelta(hours=2))
    assert not ContractAddressCache().is_fresh(now)