"""JSON-RPC client for registry nodes.

Calls are passed through a chain of middleware before the final HTTP POST, in the same way the rest of
the service composes outbound requests. Every failure on the way to a result is raised as FetchError.
"""

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from time import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence
from aiohttp import ClientError, ClientSession, ClientTimeout

from social.graze.ebsi.app.metrics import MetricsClient
from social.graze.ebsi.errors import FetchError

logger = logging.getLogger(__name__)

_request_ids = itertools.count(1)


@dataclass
class RpcRequest:
    method: str
    params: List[Any] = field(default_factory=list)
    id: int = field(default_factory=lambda: next(_request_ids))

    def to_payload(self) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": self.id,
            "method": self.method,
            "params": self.params,
        }


@dataclass
class RpcResponse:
    status: int
    result: Any = None


NextRpcCallbackType = Callable[[RpcRequest], Awaitable[RpcResponse]]


class RpcMiddlewareBase(ABC):
    @abstractmethod
    async def handle(
        self, next: NextRpcCallbackType, request: RpcRequest
    ) -> RpcResponse:
        pass

    def handle_gen(self, next: NextRpcCallbackType) -> NextRpcCallbackType:
        async def next_invoke(request: RpcRequest) -> RpcResponse:
            return await self.handle(next, request)

        return next_invoke


class MetricsMiddleware(RpcMiddlewareBase):
    """Counts and times every call, tagged with the RPC method and the outcome."""

    def __init__(self, metrics_client: MetricsClient, network: str) -> None:
        super().__init__()
        self._metrics_client = metrics_client
        self._network = network

    async def handle(
        self, next: NextRpcCallbackType, request: RpcRequest
    ) -> RpcResponse:
        start_time = time()
        outcome = "error"
        try:
            response = await next(request)
            outcome = "ok"
            return response
        finally:
            tags = {"method": request.method, "network": self._network}
            self._metrics_client.timer("ebsi.rpc.call.time", time() - start_time, tag_dict=tags)
            self._metrics_client.increment(
                "ebsi.rpc.call.count", 1, tag_dict={**tags, "outcome": outcome}
            )


class DebugMiddleware(RpcMiddlewareBase):
    async def handle(
        self, next: NextRpcCallbackType, request: RpcRequest
    ) -> RpcResponse:
        logger.debug("rpc request %s: %s %s", request.id, request.method, request.params)
        response = await next(request)
        logger.debug("rpc response %s: %s", request.id, response.result)
        return response


class EndOfLineRpcMiddleware:
    """Performs the HTTP POST and unwraps the JSON-RPC envelope."""

    def __init__(
        self,
        session: ClientSession,
        endpoint: str,
        timeout: Optional[ClientTimeout] = None,
    ) -> None:
        self._session = session
        self._endpoint = endpoint
        self._timeout = timeout

    async def handle(self, request: RpcRequest) -> RpcResponse:
        try:
            async with self._session.post(
                self._endpoint, json=request.to_payload(), timeout=self._timeout
            ) as resp:
                if resp.status != 200:
                    raise FetchError(
                        f"{request.method} returned HTTP {resp.status}", request.method
                    )
                body = await resp.json(content_type=None)
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            raise FetchError(f"{request.method} failed: {e!r}", request.method) from e

        if not isinstance(body, dict):
            raise FetchError(f"{request.method} returned a non-object body", request.method)

        error = body.get("error")
        if error is not None:
            message = error.get("message") if isinstance(error, dict) else error
            raise FetchError(f"{request.method} error: {message}", request.method)

        return RpcResponse(status=resp.status, result=body.get("result"))


class JsonRpcClient:
    """
    JSON-RPC client bound to one node endpoint.

    The aiohttp session is shared and owned by the caller; the client never closes it.
    """

    def __init__(
        self,
        session: ClientSession,
        endpoint: str,
        middleware: Sequence[RpcMiddlewareBase] | None = None,
        timeout: Optional[ClientTimeout] = None,
    ) -> None:
        self.endpoint = endpoint
        self.middleware = list(middleware or [])

        chain_callback: NextRpcCallbackType = EndOfLineRpcMiddleware(
            session, endpoint, timeout
        ).handle
        for mw in reversed(self.middleware):
            chain_callback = mw.handle_gen(chain_callback)
        self._chain_callback = chain_callback

    async def call(self, method: str, *params: Any) -> Any:
        """
        Invoke a JSON-RPC method and return its result.

        Raises:
            FetchError: On transport failure, timeout, non-200 status or a JSON-RPC error object
        """
        response = await self._chain_callback(RpcRequest(method=method, params=list(params)))
        return response.result
