# fortanode

A library of building blocks for running and inspecting a Forta scan node
from Python. It needs Python 3.10 or later and depends on `pyyaml`,
`requests` and `termcolor`.

## What is in it

- **`fortanode.config`**: dataclasses for the node's `config.yml`
  (`Config`, `ScannerConfig`, `RegistryConfig`, `PublisherConfig`,
  `ENSConfig` and the rest). `Config.from_dict` and `load_config` fill in
  the node's defaults wherever a value is missing or zero, and raise
  `ValueError` on values of the wrong type. `get_config_for_container`
  loads the file at the container path (raising `FileNotFoundError` when it
  is absent) and then `apply_context_defaults`, which turns tracing on for
  chain 1, clears the ENS contract address when the default contract is
  asked for, and sets the container's node and key directories. Also
  `get_env_defaults`, `parse_big_int` and `init_log_level`, which sets the
  root logger's level from `cfg.log.level` and raises `ValueError` on an
  unknown level name.
- **`fortanode.agents`**: `AgentConfig` with `container_name()`,
  `image_hash()`, `grpc_port()`, `to_agent_info()` and JSON-style
  `to_dict()` / `from_dict()`; helpers `split_image_ref` and
  `shorten_string`.
- **`fortanode.chains`**: `get_chain_settings` and `get_block_offset` for
  the known chains, with generic settings for any other chain id.
- **`fortanode.resources`**: `get_agent_resource_limits`, giving the CPU
  quota and memory limit for an agent container.
- **`fortanode.release`**: `get_build_release_summary` (``None`` when the
  `BuildInfo` has no commit hash) and `get_build_release_info`.
- **`fortanode.metrics`**: `get_block_metrics`, `get_tx_metrics`,
  `get_jsonrpc_metrics` and `create_agent_metric`, producing `AgentMetric`
  values; the metric names and message subject names as constants, and
  `ScannerPayload` with JSON conversion.
- **`fortanode.jsonrpc`**: a per-client token-bucket `RateLimiter` (idle
  clients are forgotten after ten minutes, by `cleanup()` or automatically
  every hour) and `too_many_requests_response`, which builds the HTTP 429
  JSON-RPC error reply as a `(HTTPStatus, bytes)` pair.
- **`fortanode.alertapi`**: `AlertApiClient.post_batch` sends an alert
  batch to `/batch/<ref>` with a bearer token and returns the decoded JSON
  reply; a non-2xx status raises `AlertApiError`.
- **`fortanode.status`**: `Report` and `Status`, and `render_status`, which
  sorts reports by name, selects them (`summary`, `important` or `all`) and
  formats them as `pretty`, `oneline`, `json` or `csv`. Any other format
  raises `ValueError`. The individual steps are `sort_reports`,
  `filter_reports`, `format_pretty`, `format_oneline`, `format_json` and
  `format_csv`.
- **`fortanode.workspace`**: `Workspace`, which checks whether a node
  directory, its `config.yml` and its key directory are in place and
  `initialize_files()` to create the missing ones with `default_config()`;
  the local agent list (`read_local_agents`, `write_local_agents`,
  `add_local_agent`); and the contract address cache
  (`ContractAddressCache`, `read_contract_cache`, `write_contract_cache`).
- **`fortanode.containers`**: container labels (`init_labels`,
  `labels_to_map`, `label_filters`), `registry_auth_value`, lookups over
  `ContainerSummary` lists (`find_by_id`, `find_by_name`, `contains_any`,
  `service_containers`), `clean_container_logs`, `image_pull_succeeded`
  and error-message checks.
- **`fortanode.container_config`**: `DockerContainerConfig` and its
  translation into engine API structures (`env_vars`, `port_bindings`,
  `volume_binds`, `log_config`, `container_labels`, `host_config`).

## Examples

Load a configuration file and look at the chain it scans:

```python
from fortanode.config import load_config
from fortanode.chains import get_chain_settings, get_block_offset

cfg = load_config("config.yml")
settings = get_chain_settings(cfg.chain_id)
print(settings.name, get_block_offset(cfg.chain_id))
```

Work out the container name of an agent:

```python
from fortanode.agents import AgentConfig

agent = AgentConfig.from_dict({
    "id": "0x04f65c638f234548104790d7c692c9273d41f82d784b174ff2fdc3e8e5bf1636",
    "image": "bafybeibvkqkf7i3c5ouehviwjb2dzbukgqied3cg36axl7gzm23r6ielnu"
             "@sha256:de866feeb97cba4cad6343c4137cb48bc798be0136015bec16d97c8ef28852b9",
})
print(agent.container_name())  # forta-agent-0x04f65c-de86
```

Rate limit JSON-RPC requests per agent:

```python
from fortanode.jsonrpc import RateLimiter, too_many_requests_response

limiter = RateLimiter(0.5, 1)
if limiter.exceeds_limit("agent-1"):
    status, body = too_many_requests_response(b'{"id": 123}')
```

Render health reports:

```python
from fortanode.status import Report, Status, render_status

reports = [Report("scanner.summary", Status.OK, "at block 123.")]
print(render_status(reports, "oneline", "important", False))
```

## What it does not do

This is a library only. It installs no command-line program, and it does
not run any node services: there is no block scanner, supervisor, updater,
publisher or JSON-RPC proxy server here, and no messaging client. It does
not talk to a container engine itself; `fortanode.containers` and
`fortanode.container_config` only prepare and interpret the data such a
client would send and receive. It creates no keys and does not resolve
contract addresses over ENS; `Workspace.initialize_files()` leaves the key
directory empty, and the contract cache functions only read and write the
cache file.