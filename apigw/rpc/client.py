"""JSON-over-HTTP transport for backend RPC calls.

A call is `POST {base_url}/{Service}/{Method}` with the request message as the
JSON body. A 2xx reply carries the result message; failures come back as
`{"error": {"code": <number or name>, "message": "..."}}`.

Every outcome that is not a result is raised as `RpcError`, so callers only
ever deal with one failure type carrying one status code.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from apigw.rpc.errors import RpcError, RpcStatus

logger = logging.getLogger(__name__)

ReplyT = TypeVar("ReplyT", bound=BaseModel)


class RpcClient:
    """Base client for one backend service; subclasses set `service` and add typed methods."""

    service: str = ""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        # Opened on the first call, so building a client holds no connections.
        self._http: httpx.AsyncClient | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def is_open(self) -> bool:
        return self._http is not None and not self._http.is_closed

    def _session(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(transport=self._transport, timeout=self._timeout)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()

    async def call(self, method: str, request: BaseModel, reply_type: type[ReplyT]) -> ReplyT:
        url = f"{self._base_url}/{self.service}/{method}"
        logger.debug("rpc call %s/%s", self.service, method)

        try:
            # The deadline scope is left on every path, including cancellation.
            async with asyncio.timeout(self._timeout):
                response = await self._session().post(url, json=request.model_dump(mode="json"))
        except TimeoutError as exc:
            raise RpcError(RpcStatus.DEADLINE_EXCEEDED, f"{self.service}/{method} deadline exceeded") from exc
        except httpx.TimeoutException as exc:
            raise RpcError(RpcStatus.DEADLINE_EXCEEDED, str(exc)) from exc
        except httpx.TransportError as exc:
            raise RpcError(RpcStatus.UNAVAILABLE, str(exc)) from exc

        return _read_reply(response, reply_type)


def _read_reply(response: httpx.Response, reply_type: type[ReplyT]) -> ReplyT:
    data: Any = None
    if response.content:
        try:
            data = response.json()
        except ValueError as exc:
            if response.is_success:
                raise RpcError(RpcStatus.INTERNAL, "reply is not valid JSON") from exc
            raise RpcError(RpcStatus.UNKNOWN, f"backend replied with HTTP {response.status_code}") from exc

    if isinstance(data, dict) and "error" in data:
        raise _error_from_envelope(data["error"])

    if not response.is_success:
        raise RpcError(RpcStatus.UNKNOWN, f"backend replied with HTTP {response.status_code}")

    try:
        return reply_type.model_validate(data if data is not None else {})
    except ValidationError as exc:
        raise RpcError(RpcStatus.INTERNAL, f"malformed {reply_type.__name__} reply") from exc


def _error_from_envelope(err: Any) -> RpcError:
    if isinstance(err, dict):
        status = RpcStatus.parse(err.get("code"))
        message = str(err.get("message") or "")
    else:
        status = RpcStatus.UNKNOWN
        message = str(err)

    # An error envelope claiming success is still an error.
    if status is RpcStatus.OK:
        status = RpcStatus.UNKNOWN
    return RpcError(status, message)
