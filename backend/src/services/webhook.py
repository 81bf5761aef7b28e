"""POST finished scan reports to the configured callback endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..scanner.errors import WebhookError

logger = logging.getLogger(__name__)

SCAN_ID_HEADER = "X-Malice-ID"


class WebhookClient:
    """HTTP client delivering one JSON report per scan.

    Example usage:
        with WebhookClient(settings.webhook_endpoint) as client:
            body = client.post_report(report.to_dict(include_markdown=False), scan_id)
    """

    DEFAULT_TIMEOUT = 30.0  # seconds

    def __init__(
        self,
        endpoint: Optional[str],
        *,
        proxy: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not endpoint:
            raise WebhookError("Webhook endpoint not configured: set MALICE_ENDPOINT.")
        self.endpoint = endpoint
        self.proxy = proxy
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            kwargs: Dict[str, Any] = {"timeout": self.timeout}
            if self._transport is not None:
                kwargs["transport"] = self._transport
            elif self.proxy:
                kwargs["proxy"] = self.proxy
            self._client = httpx.Client(**kwargs)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "WebhookClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def post_report(self, payload: Dict[str, Any], scan_id: str) -> str:
        """Send ``payload`` and return the endpoint's response body.

        Raises:
            WebhookError: If the endpoint cannot be reached or times out.
        """
        try:
            response = self._get_client().post(
                self.endpoint,
                content=json.dumps(payload),
                headers={SCAN_ID_HEADER: scan_id, "Content-Type": "application/json"},
            )
        except httpx.TimeoutException as exc:
            raise WebhookError(f"Webhook request to {self.endpoint} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise WebhookError(f"Unable to reach webhook at {self.endpoint}: {exc}") from exc

        logger.info("Webhook %s responded with HTTP %s", self.endpoint, response.status_code)
        return response.text
