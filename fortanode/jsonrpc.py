"""JSON-RPC proxy helpers: per-client rate limiting and the throttling error reply."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from http import HTTPStatus
from typing import Callable

log = logging.getLogger(__name__)

_ERROR_CODE = -32000
_ERROR_MESSAGE = "agent exceeds scan node request limit"

_CLEANUP_INTERVAL = 3600.0
_IDLE_LIMIT = 600.0


def too_many_requests_response(body: bytes | str) -> tuple[HTTPStatus, bytes]:
    """Build the 429 reply to a throttled JSON-RPC request.

    The body is empty when the request's id cannot be read.
    """
    try:
        payload = json.loads(body)
        if not isinstance(payload, dict):
            raise ValueError("request body is not a JSON object")
        request_id = payload.get("id")
        if request_id is None:
            request_id = 0
        if isinstance(request_id, bool) or not isinstance(request_id, int):
            raise ValueError(f"request id is not an integer: {request_id!r}")
    except ValueError:
        log.exception("failed to decode jsonrpc request body")
        return HTTPStatus.TOO_MANY_REQUESTS, b""

    reply = {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": _ERROR_CODE, "message": _ERROR_MESSAGE},
    }
    return HTTPStatus.TOO_MANY_REQUESTS, (json.dumps(reply, separators=(",", ":")) + "\n").encode()


@dataclass
class _Bucket:
    tokens: float
    updated: float
    last_reservation: float


class RateLimiter:
    """Token-bucket rate limiting kept separately for each client."""

    def __init__(self, rate: float, burst: int, clock: Callable[[], float] = time.monotonic):
        if rate <= 0:
            raise ValueError("non-positive rate limiter arg")
        self._rate = rate
        self._burst = burst
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def exceeds_limit(self, client_id: str) -> bool:
        """Take one request from the client's allowance; True when none is left."""
        with self._lock:
            now = self._clock()
            if now - self._last_cleanup >= _CLEANUP_INTERVAL:
                self._remove_idle(now)
            bucket = self._buckets.get(client_id)
            if bucket is None:
                bucket = _Bucket(tokens=float(self._burst), updated=now, last_reservation=now)
                self._buckets[client_id] = bucket
            bucket.last_reservation = now
            elapsed = max(0.0, now - bucket.updated)
            bucket.tokens = min(float(self._burst), bucket.tokens + elapsed * self._rate)
            bucket.updated = now
            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return False
            return True

    def cleanup(self) -> None:
        """Forget clients that made no request in the last ten minutes."""
        with self._lock:
            self._remove_idle(self._clock())

    def _remove_idle(self, now: float) -> None:
        for client_id in [c for c, b in self._buckets.items() if now - b.last_reservation > _IDLE_LIMIT]:
            del self._buckets[client_id]
        self._last_cleanup = now