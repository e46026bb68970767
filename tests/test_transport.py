"""Tests for RestTransport against a local aiohttp server."""

from __future__ import annotations

from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from cartfleet._transport import RestTransport, _error_from_response
from cartfleet.config import CartFleetConfig
from cartfleet.exceptions import CartFleetApiError, CartFleetTransportError
from cartfleet.resilience import is_transient


def _config(server: test_utils.TestServer, **kwargs: Any) -> CartFleetConfig:
    return CartFleetConfig(base_url=str(server.make_url("")).rstrip("/"), api_key="anon-key", **kwargs)


@pytest.mark.asyncio
async def test_request_sends_auth_headers_and_decodes_json() -> None:
    seen: dict[str, Any] = {}

    async def handler(request: web.Request) -> web.Response:
        seen["apikey"] = request.headers.get("apikey")
        seen["authorization"] = request.headers.get("Authorization")
        seen["query"] = dict(request.query)
        return web.json_response([{"id": "a", "status": "active"}])

    app = web.Application()
    app.router.add_get("/rest/v1/carts", handler)

    async with test_utils.TestServer(app) as server, aiohttp.ClientSession() as http:
        transport = RestTransport(_config(server, access_token="user-jwt"), http)
        result = await transport.request("GET", "/carts", params={"select": "*"})

    assert result == [{"id": "a", "status": "active"}]
    assert seen["apikey"] == "anon-key"
    assert seen["authorization"] == "Bearer user-jwt"
    assert seen["query"] == {"select": "*"}


@pytest.mark.asyncio
async def test_request_sends_json_body_and_handles_empty_reply() -> None:
    seen: dict[str, Any] = {}

    async def handler(request: web.Request) -> web.Response:
        seen["body"] = await request.json()
        return web.Response(status=204)

    app = web.Application()
    app.router.add_patch("/rest/v1/carts", handler)

    async with test_utils.TestServer(app) as server, aiohttp.ClientSession() as http:
        transport = RestTransport(_config(server), http)
        result = await transport.request("PATCH", "/carts", params={"id": "eq.a"}, json_body={"status": "retired"})

    assert result is None
    assert seen["body"] == {"status": "retired"}


@pytest.mark.asyncio
async def test_server_unavailable_is_transient() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.Response(status=503, text="upstream unavailable")

    app = web.Application()
    app.router.add_get("/rest/v1/carts", handler)

    async with test_utils.TestServer(app) as server, aiohttp.ClientSession() as http:
        transport = RestTransport(_config(server), http)
        with pytest.raises(CartFleetTransportError) as exc_info:
            await transport.request("GET", "/carts")

    assert exc_info.value.status_code == 503
    assert exc_info.value.endpoint == "/rest/v1/carts"
    assert is_transient(exc_info.value)


@pytest.mark.asyncio
async def test_invalid_json_reply() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.Response(status=200, text="<html>oops</html>")

    app = web.Application()
    app.router.add_get("/rest/v1/carts", handler)

    async with test_utils.TestServer(app) as server, aiohttp.ClientSession() as http:
        transport = RestTransport(_config(server), http)
        with pytest.raises(CartFleetTransportError, match="Invalid JSON"):
            await transport.request("GET", "/carts")


@pytest.mark.asyncio
async def test_connection_failure_is_transient() -> None:
    async with test_utils.TestServer(web.Application()) as server:
        config = _config(server)
    # Server is closed now; the port refuses connections.
    async with aiohttp.ClientSession() as http:
        transport = RestTransport(config, http)
        with pytest.raises(CartFleetTransportError) as exc_info:
            await transport.request("GET", "/carts")

    assert exc_info.value.status_code is None
    assert is_transient(exc_info.value)


def test_error_from_response_maps_postgrest_body() -> None:
    exc = _error_from_response(400, "/rest/v1/carts", '{"code": "22P02", "message": "invalid input syntax"}')

    assert isinstance(exc, CartFleetApiError)
    assert exc.code == "22P02"
    assert "invalid input syntax" in str(exc)
    assert not is_transient(exc)


def test_error_from_response_rate_limit_keeps_status() -> None:
    exc = _error_from_response(429, "/rest/v1/carts", "slow down")

    assert isinstance(exc, CartFleetTransportError)
    assert exc.status_code == 429
    assert not is_transient(exc)
