"""Artifact Builder client — command channel subscriber that POSTs over HTTP.

Endpoint: POST {ARTIFACT_BUILDER_URL}
Auth: Authorization: Bearer {ARTIFACT_BUILDER_TOKEN} (when configured)
Idempotency: Idempotency-Key header, so a retried request on the builder side
never builds twice.
"""
import logging
import time
from typing import Optional

import httpx

from config.settings import get_settings
from core.exceptions import DispatchError
from observability.redaction import redact_dict
from schemas.commands import Command

logger = logging.getLogger(__name__)


class HttpArtifactBuilder:
    """Async callable: ``await builder(command)``."""

    def __init__(self, endpoint: str, token: str = "", timeout_s: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.endpoint = endpoint
        self.token = token
        self.timeout_s = timeout_s
        self._transport = transport

    def _headers(self, command: Command) -> dict:
        headers = {"Content-Type": "application/json"}
        if command.command_id:
            headers["Idempotency-Key"] = command.command_id
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def __call__(self, command: Command) -> None:
        start = time.monotonic()
        headers = self._headers(command)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    json=command.model_dump(by_alias=True),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error("[Builder] Submit failed: kind=%s endpoint=%s error=%s",
                         command.kind, self.endpoint, str(e))
            raise DispatchError(f"Artifact builder unreachable: {e}") from e

        latency_ms = (time.monotonic() - start) * 1000
        if response.status_code >= 400:
            logger.warning(
                "[Builder] Rejected: kind=%s status=%d headers=%s body=%s",
                command.kind, response.status_code, redact_dict(headers), response.text[:200],
            )
            raise DispatchError(f"Artifact builder rejected command ({response.status_code})")

        logger.info(
            "[Builder] Submitted: kind=%s endpoint=%s status=%d latency=%.0fms",
            command.kind, self.endpoint, response.status_code, latency_ms,
        )


def get_http_builder() -> Optional[HttpArtifactBuilder]:
    """Configured HTTP subscriber, or None when ARTIFACT_BUILDER_URL is unset."""
    settings = get_settings()
    if not settings.ARTIFACT_BUILDER_URL:
        return None
    return HttpArtifactBuilder(
        endpoint=settings.ARTIFACT_BUILDER_URL,
        token=settings.ARTIFACT_BUILDER_TOKEN,
        timeout_s=settings.ARTIFACT_BUILDER_TIMEOUT_S,
    )
