"""Thin async HTTP wrapper used by every platform adapter.

One client is opened per adapter operation (``async with``), so adapters
never share a connection pool or any other mutable state between
concurrent calls.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from app.core.exceptions import (
    VendorConnectionError,
    VendorHttpError,
    VendorTimeoutError,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

# Vendor error bodies can be large HTML pages
_MAX_ERROR_BODY = 300


class VendorHttpClient:
    """HTTP client bound to one vendor environment.

    Args:
        platform_id: Registry id, used for errors and log context.
        base_url: Sandbox or production host, chosen by the adapter.
        headers: Auth and content headers sent on every request.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use ``MockTransport``).
    """

    def __init__(
        self,
        platform_id: str,
        base_url: str,
        headers: dict[str, str],
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.platform_id = platform_id
        self.base_url = base_url
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> VendorHttpClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = await self._request("GET", path, params=params)
        return self._decode(response)

    async def post_json(self, path: str, body: dict[str, Any]) -> Any:
        response = await self._request("POST", path, json=body)
        if not response.content:
            return None
        return self._decode(response)

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise VendorHttpError(
                self.platform_id,
                response.status_code,
                f"invalid JSON body: {response.text[:_MAX_ERROR_BODY]!r}",
            ) from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise VendorTimeoutError(self.platform_id, self.timeout) from exc
        except httpx.TransportError as exc:
            raise VendorConnectionError(self.platform_id, str(exc)) from exc

        logger.debug(
            "%s %s%s -> %d",
            method,
            self.base_url,
            path,
            response.status_code,
        )

        if not response.is_success:
            raise VendorHttpError(
                self.platform_id,
                response.status_code,
                f"HTTP error! status: {response.status_code} "
                f"body: {response.text[:_MAX_ERROR_BODY]!r}",
            )
        return response
