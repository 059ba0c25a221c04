"""
Unit tests for the JSON-RPC middleware chain in social.graze.ebsi.registry.rpc

Tests cover request payloads, JSON-RPC envelope handling, transport failure mapping to FetchError,
middleware ordering and metrics recording.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from aiohttp import ClientConnectionError, ClientResponse, ClientSession, ClientTimeout

from social.graze.ebsi.errors import FetchError
from social.graze.ebsi.registry.rpc import (
    DebugMiddleware,
    EndOfLineRpcMiddleware,
    JsonRpcClient,
    MetricsMiddleware,
    RpcMiddlewareBase,
    RpcRequest,
    RpcResponse,
)

ENDPOINT = "https://node.example.com/rpc"


def create_mock_session(status: int = 200, body=None) -> AsyncMock:
    """Create a mock ClientSession whose post() yields a response with the given JSON body."""
    mock_session = AsyncMock(spec=ClientSession)
    mock_response = AsyncMock(spec=ClientResponse)
    mock_response.status = status
    mock_response.json.return_value = body
    mock_session.post.return_value.__aenter__.return_value = mock_response
    return mock_session


class RecordingMiddleware(RpcMiddlewareBase):
    def __init__(self, name: str, calls: list) -> None:
        self.name = name
        self.calls = calls

    async def handle(self, next, request):
        self.calls.append(f"{self.name}:before")
        response = await next(request)
        self.calls.append(f"{self.name}:after")
        return response


class TestRpcRequest:
    """Test RpcRequest payload generation."""

    def test_payload(self):
        """Test the JSON-RPC 2.0 request payload."""
        request = RpcRequest(method="eth_call", params=[{"to": "0x1"}, "latest"], id=7)
        assert request.to_payload() == {
            "jsonrpc": "2.0",
            "id": 7,
            "method": "eth_call",
            "params": [{"to": "0x1"}, "latest"],
        }

    def test_ids_are_unique(self):
        """Test each request gets its own id."""
        assert RpcRequest(method="a").id != RpcRequest(method="a").id


class TestEndOfLineRpcMiddleware:
    """Test the HTTP POST and envelope unwrapping."""

    @pytest.mark.asyncio
    async def test_success(self):
        """Test a successful call returns the result."""
        mock_session = create_mock_session(body={"jsonrpc": "2.0", "id": 1, "result": "0x10"})
        timeout = ClientTimeout(total=5)
        middleware = EndOfLineRpcMiddleware(mock_session, ENDPOINT, timeout)

        request = RpcRequest(method="eth_blockNumber", id=1)
        response = await middleware.handle(request)

        assert response == RpcResponse(status=200, result="0x10")
        mock_session.post.assert_called_once_with(
            ENDPOINT, json=request.to_payload(), timeout=timeout
        )

    @pytest.mark.asyncio
    async def test_null_result(self):
        """Test a null result is returned as None."""
        mock_session = create_mock_session(body={"jsonrpc": "2.0", "id": 1, "result": None})
        response = await EndOfLineRpcMiddleware(mock_session, ENDPOINT).handle(
            RpcRequest(method="eth_getTransactionByHash")
        )
        assert response.result is None

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        """Test a non-200 response raises FetchError."""
        mock_session = create_mock_session(status=503, body=None)
        with pytest.raises(FetchError, match="HTTP 503") as exc_info:
            await EndOfLineRpcMiddleware(mock_session, ENDPOINT).handle(
                RpcRequest(method="eth_getLogs")
            )
        assert exc_info.value.method == "eth_getLogs"

    @pytest.mark.asyncio
    async def test_json_rpc_error(self):
        """Test a JSON-RPC error object raises FetchError."""
        mock_session = create_mock_session(
            body={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}}
        )
        with pytest.raises(FetchError, match="header not found"):
            await EndOfLineRpcMiddleware(mock_session, ENDPOINT).handle(
                RpcRequest(method="eth_call")
            )

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test connection errors raise FetchError."""
        mock_session = AsyncMock(spec=ClientSession)
        mock_session.post.side_effect = ClientConnectionError("connection refused")
        with pytest.raises(FetchError, match="eth_call failed"):
            await EndOfLineRpcMiddleware(mock_session, ENDPOINT).handle(
                RpcRequest(method="eth_call")
            )

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test timeouts raise FetchError."""
        mock_session = AsyncMock(spec=ClientSession)
        mock_session.post.side_effect = asyncio.TimeoutError()
        with pytest.raises(FetchError):
            await EndOfLineRpcMiddleware(mock_session, ENDPOINT).handle(
                RpcRequest(method="eth_getLogs")
            )

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        """Test an unparseable body raises FetchError."""
        mock_session = create_mock_session()
        response = mock_session.post.return_value.__aenter__.return_value
        response.json.side_effect = ValueError("Expecting value")
        with pytest.raises(FetchError):
            await EndOfLineRpcMiddleware(mock_session, ENDPOINT).handle(
                RpcRequest(method="eth_call")
            )

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        """Test a body that is not an object raises FetchError."""
        mock_session = create_mock_session(body=["not", "an", "object"])
        with pytest.raises(FetchError, match="non-object"):
            await EndOfLineRpcMiddleware(mock_session, ENDPOINT).handle(
                RpcRequest(method="eth_call")
            )


class TestJsonRpcClient:
    """Test client call composition."""

    @pytest.mark.asyncio
    async def test_call_returns_result(self):
        """Test call sends the request and returns the result."""
        mock_session = create_mock_session(body={"jsonrpc": "2.0", "id": 1, "result": ["log"]})
        client = JsonRpcClient(mock_session, ENDPOINT)

        result = await client.call("eth_getLogs", {"fromBlock": "0x1"})

        assert result == ["log"]
        payload = mock_session.post.call_args.kwargs["json"]
        assert payload["method"] == "eth_getLogs"
        assert payload["params"] == [{"fromBlock": "0x1"}]

    @pytest.mark.asyncio
    async def test_middleware_order(self):
        """The first middleware in the list is the outermost."""
        mock_session = create_mock_session(body={"jsonrpc": "2.0", "id": 1, "result": "0x0"})
        calls: list = []
        client = JsonRpcClient(
            mock_session,
            ENDPOINT,
            middleware=[RecordingMiddleware("outer", calls), RecordingMiddleware("inner", calls)],
        )

        await client.call("eth_blockNumber")

        assert calls == ["outer:before", "inner:before", "inner:after", "outer:after"]

    @pytest.mark.asyncio
    async def test_debug_middleware_passes_through(self):
        """Test the debug middleware does not alter the result."""
        mock_session = create_mock_session(body={"jsonrpc": "2.0", "id": 1, "result": "0x2a"})
        client = JsonRpcClient(mock_session, ENDPOINT, middleware=[DebugMiddleware()])

        assert await client.call("eth_blockNumber") == "0x2a"


class TestMetricsMiddleware:
    """Test RPC metrics recording."""

    @pytest.mark.asyncio
    async def test_records_success(self):
        """Test successful calls are counted and timed."""
        metrics_client = Mock()
        middleware = MetricsMiddleware(metrics_client, "ebsi")
        next_call = AsyncMock(return_value=RpcResponse(status=200, result="0x1"))

        response = await middleware.handle(next_call, RpcRequest(method="eth_call"))

        assert response.result == "0x1"
        metrics_client.increment.assert_called_once_with(
            "ebsi.rpc.call.count",
            1,
            tag_dict={"method": "eth_call", "network": "ebsi", "outcome": "ok"},
        )
        timer_call = metrics_client.timer.call_args
        assert timer_call.args[0] == "ebsi.rpc.call.time"
        assert timer_call.kwargs["tag_dict"] == {"method": "eth_call", "network": "ebsi"}

    @pytest.mark.asyncio
    async def test_records_failure_and_reraises(self):
        """Test failed calls are counted and the error is raised again."""
        metrics_client = Mock()
        middleware = MetricsMiddleware(metrics_client, "testnet")
        next_call = AsyncMock(side_effect=FetchError("boom", "eth_getLogs"))

        with pytest.raises(FetchError):
            await middleware.handle(next_call, RpcRequest(method="eth_getLogs"))

        metrics_client.increment.assert_called_once_with(
            "ebsi.rpc.call.count",
            1,
            tag_dict={"method": "eth_getLogs", "network": "testnet", "outcome": "error"},
        )
