import json
from http import HTTPStatus

import pytest

from fortanode.jsonrpc import RateLimiter, too_many_requests_response

TEST_REQUEST_ID = 123
TEST_CLIENT_ID = "1"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_too_many_requests_error():
    status, body = too_many_requests_response(json.dumps({"id": TEST_REQUEST_ID}).encode())
    assert status == HTTPStatus.TOO_MANY_REQUESTS
    reply = json.loads(body)
    assert reply["jsonrpc"] == "2.0"
    assert reply["id"] == TEST_REQUEST_ID
    assert reply["error"]["code"] == -32000
    assert "exceeds" in reply["error"]["message"]


def test_undecodable_body_gives_empty_reply():
    status, body = too_many_requests_response(b"not json")
    assert status == 429
    assert body == b""


def test_non_integer_id_gives_empty_reply():
    assert too_many_requests_response('{"id": "abc"}') == (HTTPStatus.TOO_MANY_REQUESTS, b"")


def test_missing_id_defaults_to_zero():
    _, body = too_many_requests_response(b"{}")
    assert json.loads(body)["id"] == 0


def test_rate_limiting():
    clock = FakeClock()
    limiter = RateLimiter(0.5, 1, clock=clock)
    assert limiter.exceeds_limit(TEST_CLIENT_ID) is False
    assert limiter.exceeds_limit(TEST_CLIENT_ID) is True
    clock.now += 5
    assert limiter.exceeds_limit(TEST_CLIENT_ID) is False


def test_clients_are_limited_separately():
    limiter = RateLimiter(0.5, 1, clock=FakeClock())
    assert limiter.exceeds_limit("a") is False
    assert limiter.exceeds_limit("a") is True
    assert limiter.exceeds_limit("b") is False


def test_burst_allows_several_requests():
    limiter = RateLimiter(1, 3, clock=FakeClock())
    results = [limiter.exceeds_limit(TEST_CLIENT_ID) for _ in range(4)]
    assert results == [False, False, False, True]


def test_cleanup_forgets_idle_clients():
    clock = FakeClock()
    limiter = RateLimiter(1, 1, clock=clock)
    limiter.exceeds_limit("old")
    clock.now += 11 * 60
    limiter.exceeds_limit("new")
    limiter.cleanup()
    assert len(limiter) == 1


def test_cleanup_runs_after_an_hour():
    clock = FakeClock()
    limiter = RateLimiter(1, 1, clock=clock)
    limiter.exceeds_limit("old")
    clock.now += 3601
    limiter.exceeds_limit("new")
    assert len(limiter) == 1


def test_non_positive_rate_rejected():
    with pytest.raises(ValueError):
        RateLimiter(0, 1)