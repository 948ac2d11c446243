"""Agent metrics and the message subjects they travel on."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any, Sequence

from .agents import AgentConfig

METRIC_FINDING = "finding"
METRIC_TX_REQUEST = "tx.request"
METRIC_TX_LATENCY = "tx.latency"
METRIC_TX_ERROR = "tx.error"
METRIC_TX_SUCCESS = "tx.success"
METRIC_TX_DROP = "tx.drop"
METRIC_TX_BLOCK_AGE = "tx.block.age"
METRIC_TX_EVENT_AGE = "tx.event.age"
METRIC_BLOCK_BLOCK_AGE = "block.block.age"
METRIC_BLOCK_EVENT_AGE = "block.event.age"
METRIC_BLOCK_REQUEST = "block.request"
METRIC_BLOCK_LATENCY = "block.latency"
METRIC_BLOCK_ERROR = "block.error"
METRIC_BLOCK_SUCCESS = "block.success"
METRIC_BLOCK_DROP = "block.drop"
METRIC_STOP = "agent.stop"
METRIC_JSONRPC_LATENCY = "jsonrpc.latency"
METRIC_JSONRPC_REQUEST = "jsonrpc.request"
METRIC_JSONRPC_SUCCESS = "jsonrpc.success"
METRIC_JSONRPC_THROTTLED = "jsonrpc.throttled"
METRIC_FINDINGS_DROPPED = "findings.dropped"

SUBJECT_AGENTS_VERSIONS_LATEST = "agents.versions.latest"
SUBJECT_AGENTS_ACTION_RUN = "agents.action.run"
SUBJECT_AGENTS_ACTION_STOP = "agents.action.stop"
SUBJECT_AGENTS_STATUS_RUNNING = "agents.status.running"
SUBJECT_AGENTS_STATUS_ATTACHED = "agents.status.attached"
SUBJECT_AGENTS_STATUS_STOPPED = "agents.status.stopped"
SUBJECT_METRIC_AGENT = "metric.agent"
SUBJECT_SCANNER_BLOCK = "scanner.block"


class ResponseStatus(IntEnum):
    UNKNOWN = 0
    ERROR = 1
    SUCCESS = 2


@dataclass(frozen=True)
class AgentMetric:
    agent_id: str
    timestamp: str
    name: str
    value: float


@dataclass(frozen=True)
class TrackingTimestamps:
    """When a block was produced, fed to the node and sent to the bot."""

    block: datetime
    feed: datetime
    bot_request: datetime


@dataclass(frozen=True)
class EvaluationResponse:
    """The parts of a bot's block or transaction evaluation response that metrics use."""

    status: ResponseStatus = ResponseStatus.UNKNOWN
    findings: Sequence[Any] = field(default_factory=tuple)
    latency_ms: int = 0
    timestamp: str = ""


@dataclass(frozen=True)
class ScannerPayload:
    latest_block_input: int

    def to_json(self) -> str:
        return json.dumps({"latestBlockInput": self.latest_block_input})

    @classmethod
    def from_json(cls, data: str | bytes) -> "ScannerPayload":
        parsed = json.loads(data)
        if not isinstance(parsed, dict):
            raise ValueError("scanner payload must be a JSON object")
        value = parsed.get("latestBlockInput", 0)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"invalid latestBlockInput: {value!r}")
        return cls(latest_block_input=value)


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.replace(microsecond=0).isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


def _milliseconds(delta: timedelta) -> int:
    micros = delta // timedelta(microseconds=1)
    whole = abs(micros) // 1000
    return whole if micros >= 0 else -whole


def _duration_ms(start: datetime, end: datetime) -> float:
    return float(_milliseconds(end - start))


def _create_metrics(agent_id: str, timestamp: str, values: dict[str, float]) -> list[AgentMetric]:
    return [AgentMetric(agent_id, timestamp, name, value) for name, value in values.items()]


def create_agent_metric(agent_id: str, metric: str, value: float) -> AgentMetric:
    """Create one metric stamped with the current time."""
    return AgentMetric(agent_id, _rfc3339(datetime.now().astimezone()), metric, value)


def _evaluation_metrics(
    agent: AgentConfig,
    resp: EvaluationResponse,
    times: TrackingTimestamps,
    names: tuple[str, str, str, str, str, str],
) -> list[AgentMetric]:
    request, latency, block_age, event_age, error, success = names
    values: dict[str, float] = {
        request: 1,
        METRIC_FINDING: float(len(resp.findings)),
        latency: float(resp.latency_ms),
        block_age: _duration_ms(times.block, times.bot_request),
        event_age: _duration_ms(times.feed, times.bot_request),
    }
    if resp.status == ResponseStatus.ERROR:
        values[error] = 1
    elif resp.status == ResponseStatus.SUCCESS:
        values[success] = 1
    return _create_metrics(agent.id, resp.timestamp, values)


def get_block_metrics(
    agent: AgentConfig, resp: EvaluationResponse, times: TrackingTimestamps
) -> list[AgentMetric]:
    return _evaluation_metrics(
        agent,
        resp,
        times,
        (
            METRIC_BLOCK_REQUEST,
            METRIC_BLOCK_LATENCY,
            METRIC_BLOCK_BLOCK_AGE,
            METRIC_BLOCK_EVENT_AGE,
            METRIC_BLOCK_ERROR,
            METRIC_BLOCK_SUCCESS,
        ),
    )


def get_tx_metrics(
    agent: AgentConfig, resp: EvaluationResponse, times: TrackingTimestamps
) -> list[AgentMetric]:
    return _evaluation_metrics(
        agent,
        resp,
        times,
        (
            METRIC_TX_REQUEST,
            METRIC_TX_LATENCY,
            METRIC_TX_BLOCK_AGE,
            METRIC_TX_EVENT_AGE,
            METRIC_TX_ERROR,
            METRIC_TX_SUCCESS,
        ),
    )


def get_jsonrpc_metrics(
    agent: AgentConfig, at: datetime, success: int, throttled: int, latency: timedelta
) -> list[AgentMetric]:
    """Metrics for JSON-RPC requests an agent made through the proxy."""
    values: dict[str, float] = {}
    if latency > timedelta(0):
        values[METRIC_JSONRPC_LATENCY] = float(_milliseconds(latency))
    if success > 0:
        values[METRIC_JSONRPC_SUCCESS] = float(success)
        values[METRIC_JSONRPC_REQUEST] = values.get(METRIC_JSONRPC_REQUEST, 0.0) + success
    if throttled > 0:
        values[METRIC_JSONRPC_THROTTLED] = float(throttled)
        values[METRIC_JSONRPC_REQUEST] = values.get(METRIC_JSONRPC_REQUEST, 0.0) + throttled
    return _create_metrics(agent.id, _rfc3339(at), values)