from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from calbook.services.exceptions import DownstreamServiceError

logger = logging.getLogger(__name__)


class BookingBackendClient:
    """Async HTTP client for the persistent booking backend."""

    def __init__(
        self,
        base_url: str | None,
        *,
        timeout: float = 10.0,
        use_mock_data: bool = True,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/") if base_url else None
        self._timeout = timeout
        self.use_mock_data = use_mock_data or not self._base_url
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        if not self.use_mock_data and self._base_url:
            self._client = self._build_client()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data or not self._base_url:
            raise RuntimeError("HTTP client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> Any:
        client = await self._ensure_client()
        try:
            logger.debug("%s %s params=%s payload=%s", method, path, params, payload)
            response = await client.request(method, path, params=params, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.exception("Booking backend returned error %s", exc.response.status_code)
            raise DownstreamServiceError(
                "Booking backend returned an error response",
                status_code=exc.response.status_code,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach booking backend: %s", exc)
            raise DownstreamServiceError(
                "Unable to reach booking backend", status_code=None, cause=exc
            ) from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.exception("Booking backend returned a non-JSON body for %s %s", method, path)
            raise DownstreamServiceError(
                "Booking backend returned an unreadable response",
                status_code=response.status_code,
                cause=exc,
            ) from exc

    async def get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, payload: Dict[str, Any]) -> Any:
        return await self._request("POST", path, payload=payload)

    async def delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

