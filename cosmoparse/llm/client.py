from __future__ import annotations

import logging
import threading
from typing import Any, Optional

import httpx

from cosmoparse.config import DEFAULT_TIMEOUT
from cosmoparse.errors import TransportError
from cosmoparse.schemas import HttpRequest


logger = logging.getLogger(__name__)


class CosmoClient:
    """
    Thin wrapper over httpx for the parsing service.

    Both underlying clients are created on first use. An httpx.AsyncClient
    keeps its connection pool bound to the event loop that opened it, so the
    shared instance from `get()` is only meant for sync calls; async callers
    use a client scoped to their own loop (`async with CosmoClient(...)`).
    """

    _instance: Optional["CosmoClient"] = None
    _lock = threading.Lock()

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport
        self._async_transport = async_transport
        self._client: Optional[httpx.Client] = None
        self._async_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def get(cls, timeout: float = DEFAULT_TIMEOUT) -> "CosmoClient":
        # timeout only applies when the shared instance is first created
        with cls._lock:
            if cls._instance is None:
                cls._instance = CosmoClient(timeout=timeout)
            return cls._instance

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, transport=self._transport)
        return self._client

    def _get_async_client(self) -> httpx.AsyncClient:
        if self._async_client is None:
            self._async_client = httpx.AsyncClient(timeout=self.timeout, transport=self._async_transport)
        return self._async_client

    def send(self, request: HttpRequest) -> httpx.Response:
        logger.debug("POST %s", request.url)
        try:
            resp = self._get_client().post(request.url, json=request.json_body, headers=request.headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc
        return resp

    async def asend(self, request: HttpRequest) -> httpx.Response:
        logger.debug("POST %s", request.url)
        try:
            resp = await self._get_async_client().post(request.url, json=request.json_body, headers=request.headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc
        return resp

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def aclose(self) -> None:
        """Close both connection pools."""
        self.close()
        if self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None

    async def __aenter__(self) -> "CosmoClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def raise_for_status(resp: httpx.Response) -> None:
    try:
        resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise TransportError(
            f"Remote returned {resp.status_code}: {resp.text[:200]}",
            status_code=resp.status_code,
        ) from exc


def decode_json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise TransportError(
            f"Remote returned a non-JSON body: {resp.text[:200]}",
            status_code=resp.status_code,
        ) from exc
