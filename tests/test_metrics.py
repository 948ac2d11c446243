from datetime import datetime, timedelta, timezone

import pytest

from fortanode.agents import AgentConfig
from fortanode.metrics import (
    METRIC_BLOCK_BLOCK_AGE,
    METRIC_BLOCK_ERROR,
    METRIC_BLOCK_EVENT_AGE,
    METRIC_BLOCK_LATENCY,
    METRIC_BLOCK_REQUEST,
    METRIC_BLOCK_SUCCESS,
    METRIC_FINDING,
    METRIC_JSONRPC_LATENCY,
    METRIC_JSONRPC_REQUEST,
    METRIC_JSONRPC_SUCCESS,
    METRIC_JSONRPC_THROTTLED,
    METRIC_TX_ERROR,
    METRIC_TX_REQUEST,
    METRIC_TX_SUCCESS,
    EvaluationResponse,
    ResponseStatus,
    ScannerPayload,
    TrackingTimestamps,
    create_agent_metric,
    get_block_metrics,
    get_jsonrpc_metrics,
    get_tx_metrics,
)

AGENT = AgentConfig(id="0xagent", image="image@sha256:abcdef")
T0 = datetime(2022, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _times(block_ms, feed_ms):
    request = T0 + timedelta(milliseconds=block_ms)
    return TrackingTimestamps(
        block=T0, feed=request - timedelta(milliseconds=feed_ms), bot_request=request
    )


def _as_map(metrics):
    return {m.name: m.value for m in metrics}


def test_block_metrics_error():
    resp = EvaluationResponse(
        status=ResponseStatus.ERROR, findings=["a", "b"], latency_ms=42, timestamp="ts"
    )
    values = _as_map(get_block_metrics(AGENT, resp, _times(1500, 200)))
    assert values[METRIC_BLOCK_REQUEST] == 1
    assert values[METRIC_FINDING] == 2
    assert values[METRIC_BLOCK_LATENCY] == 42
    assert values[METRIC_BLOCK_BLOCK_AGE] == 1500
    assert values[METRIC_BLOCK_EVENT_AGE] == 200
    assert values[METRIC_BLOCK_ERROR] == 1
    assert METRIC_BLOCK_SUCCESS not in values


def test_block_metrics_carry_agent_and_timestamp():
    resp = EvaluationResponse(status=ResponseStatus.SUCCESS, timestamp="2022-06-01T12:00:00Z")
    metrics = get_block_metrics(AGENT, resp, _times(10, 5))
    assert {m.agent_id for m in metrics} == {"0xagent"}
    assert {m.timestamp for m in metrics} == {"2022-06-01T12:00:00Z"}
    assert _as_map(metrics)[METRIC_BLOCK_SUCCESS] == 1


def test_tx_metrics_success():
    resp = EvaluationResponse(status=ResponseStatus.SUCCESS, findings=["x"], latency_ms=7)
    values = _as_map(get_tx_metrics(AGENT, resp, _times(30, 10)))
    assert values[METRIC_TX_REQUEST] == 1
    assert values[METRIC_TX_SUCCESS] == 1
    assert METRIC_TX_ERROR not in values


def test_tx_metrics_unknown_status_has_neither():
    values = _as_map(get_tx_metrics(AGENT, EvaluationResponse(), _times(0, 0)))
    assert METRIC_TX_ERROR not in values
    assert METRIC_TX_SUCCESS not in values


def test_jsonrpc_success_metrics():
    values = _as_map(get_jsonrpc_metrics(AGENT, T0, 1, 0, timedelta(milliseconds=250)))
    assert values == {
        METRIC_JSONRPC_LATENCY: 250,
        METRIC_JSONRPC_SUCCESS: 1,
        METRIC_JSONRPC_REQUEST: 1,
    }


def test_jsonrpc_throttled_metrics():
    values = _as_map(get_jsonrpc_metrics(AGENT, T0, 0, 1, timedelta(0)))
    assert values == {METRIC_JSONRPC_THROTTLED: 1, METRIC_JSONRPC_REQUEST: 1}


def test_jsonrpc_request_counts_both():
    values = _as_map(get_jsonrpc_metrics(AGENT, T0, 2, 3, timedelta(0)))
    assert values[METRIC_JSONRPC_REQUEST] == values[METRIC_JSONRPC_SUCCESS] + values[
        METRIC_JSONRPC_THROTTLED
    ]


def test_jsonrpc_nothing_to_report():
    assert get_jsonrpc_metrics(AGENT, T0, 0, 0, timedelta(0)) == []


def test_jsonrpc_timestamp_is_rfc3339_utc():
    metrics = get_jsonrpc_metrics(AGENT, T0, 1, 0, timedelta(0))
    assert metrics[0].timestamp == "2022-06-01T12:00:00Z"


def test_create_agent_metric():
    metric = create_agent_metric("0xagent", "agent.stop", 1.0)
    assert (metric.agent_id, metric.name, metric.value) == ("0xagent", "agent.stop", 1.0)
    parsed = datetime.strptime(metric.timestamp, "%Y-%m-%dT%H:%M:%S%z")
    assert abs(datetime.now(timezone.utc) - parsed) < timedelta(minutes=1)


def test_scanner_payload_round_trip():
    payload = ScannerPayload(latest_block_input=12345)
    assert ScannerPayload.from_json(payload.to_json()) == payload
    assert '"latestBlockInput": 12345' in payload.to_json()


def test_scanner_payload_rejects_bad_value():
    with pytest.raises(ValueError):
        ScannerPayload.from_json('{"latestBlockInput": "x"}')