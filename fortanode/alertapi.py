"""Client for the alert API that stores alert batches."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

import requests

log = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 30


class AlertApiError(Exception):
    """The alert API answered with a non-2xx status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"{status} error: {body}")
        self.status = status
        self.body = body


class AlertApiClient:
    def __init__(self, api_url: str, session: Optional[requests.Session] = None):
        self.api_url = api_url
        self._session = session or requests.Session()

    def _post(self, path: str, body: Any, headers: Mapping[str, str]) -> Any:
        payload = json.dumps(body)
        resp = self._session.post(
            f"{self.api_url}{path}", data=payload, headers=dict(headers), timeout=_TIMEOUT_SECONDS
        )
        text = resp.text
        if not 200 <= resp.status_code < 300:
            log.error(
                "alert api error: apiUrl=%s path=%s body=%s response=%s status=%d",
                self.api_url,
                path,
                payload,
                text,
                resp.status_code,
            )
            raise AlertApiError(resp.status_code, text)
        try:
            return json.loads(text)
        except ValueError as exc:
            raise ValueError(f"invalid alert api response: {exc}") from exc

    def post_batch(self, batch: Mapping[str, Any], token: str) -> Any:
        """Send an alert batch, addressed by its ``ref``, and return the decoded reply."""
        path = f"/batch/{batch['ref']}"
        headers = {
            "content-type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        return self._post(path, batch, headers)