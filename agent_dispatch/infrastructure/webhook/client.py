from __future__ import annotations

from typing import Any, Mapping, Optional

import requests

from ...domain.errors import TransportError
from ..logging import get_logger
from ..timeouts import http_timeout_seconds

logger = get_logger("agent_dispatch.webhook.client")


class WebhookClient:
    """Plain JSON POST to agents that do not implement tool discovery (n8n, Make.com, ...)."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def post(self, url: str, headers: Mapping[str, str], payload: Mapping[str, Any]) -> Any:
        """POST ``payload`` and return the decoded JSON body, or the raw text when it is not JSON.

        Raises:
            TransportError: Network failure, timeout, non-2xx status or empty body.
        """
        h = dict(headers)
        h["Accept"] = "application/json"
        timeout = float(self._timeout or http_timeout_seconds())
        try:
            r = requests.post(url, json=dict(payload), headers=h, timeout=timeout)
        except requests.RequestException as ex:
            raise TransportError(f"Webhook request to {url} failed: {ex}") from ex
        if not r.ok:
            body = (r.text or "").strip()[:200] or "Unknown error"
            raise TransportError(f"Agent returned {r.status_code}: {body}", status_code=r.status_code)
        try:
            return r.json()
        except ValueError:
            text = (r.text or "").strip()
            if not text:
                raise TransportError("Agent returned an empty body", status_code=r.status_code)
            logger.info("Webhook replied with non-JSON body | url=%s | chars=%d", url, len(text))
            return text
