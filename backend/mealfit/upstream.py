"""
Upstream HTTP Base
Shared request handling for the third-party API adapters
"""

import logging
from typing import Any, Optional

import httpx

from mealfit.errors import UpstreamError

logger = logging.getLogger(__name__)


def _error_body(response: httpx.Response) -> Any:
    """Decoded provider error payload, or raw text when it isn't JSON"""
    try:
        return response.json()
    except ValueError:
        return response.text or None


class UpstreamClient:
    """
    Base for one upstream provider. Subclasses set `provider` and build
    their own URLs, params and headers; this class sends the request and
    turns every failure into an UpstreamError. No caching, no retries.
    """
    provider = "upstream"

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self.client = client
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict:
        return {}

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self.client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error("%s transport error on %s: %s", self.provider, endpoint, e)
            raise UpstreamError(self.provider, body=str(e)) from e

        if not response.is_success:
            body = _error_body(response)
            logger.error(
                "%s API error (%s) on %s: %s",
                self.provider, response.status_code, endpoint, body
            )
            raise UpstreamError(self.provider, status=response.status_code, body=body)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                self.provider, status=response.status_code, body="Invalid JSON in response"
            ) from e


def drop_empty(params: dict) -> dict:
    """Omit query params with no value"""
    return {key: value for key, value in params.items() if value not in (None, "")}
