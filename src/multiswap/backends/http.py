"""Shared HTTP client for the swap backend."""

import logging
from typing import Any, Optional

import httpx

from multiswap.config import Settings, get_settings

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin async wrapper around the swap backend's REST API.

    One httpx.AsyncClient is created lazily and reused by every chain
    adapter. Pass ``transport`` to route requests elsewhere (tests use
    httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.backend_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    @staticmethod
    def _get_headers(token: Optional[str] = None) -> dict:
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        token: Optional[str] = None,
    ) -> httpx.Response:
        """Send a request; transport errors propagate as httpx.HTTPError."""
        client = self._get_client()
        logger.debug(f"{method} {path}")
        return await client.request(
            method, path, json=json, params=params, headers=self._get_headers(token)
        )

    async def post(self, path: str, payload: dict, token: Optional[str] = None) -> httpx.Response:
        return await self.request("POST", path, json=payload, token=token)

    async def get(
        self, path: str, params: Optional[dict] = None, token: Optional[str] = None
    ) -> httpx.Response:
        return await self.request("GET", path, params=params, token=token)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


def parse_json(response: httpx.Response) -> dict:
    """Decode a JSON object body; anything else becomes an empty dict."""
    try:
        data = response.json()
    except ValueError:
        logger.warning(f"Non-JSON response from {response.request.url}: {response.status_code}")
        return {}
    return data if isinstance(data, dict) else {}
