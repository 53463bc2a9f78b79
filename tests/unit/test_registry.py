"""Unit tests for hpm.registry."""

from __future__ import annotations

import httpx
import pytest
import respx

from hpm.config import RegistrySettings
from hpm.errors import ErrorCode, TransportError
from hpm.registry import RegistryClient, build_http_client, parse_search_response

SEARCH_HOST = "registry.npmjs.org"
SEARCH_PATH = "/-/v1/search"


def _payload(*names: str) -> dict:
    return {
        "objects": [
            {"package": {"name": name, "version": "1.0.0", "description": f"{name} plugin"}}
            for name in names
        ],
        "total": len(names),
    }


# ---------------------------------------------------------------------------
# parse_search_response
# ---------------------------------------------------------------------------


class TestParseSearchResponse:
    def test_preserves_registry_order(self) -> None:
        packages = parse_search_response(_payload("zeta", "alpha", "mid"))
        assert [p.name for p in packages] == ["zeta", "alpha", "mid"]
        assert packages[0].version == "1.0.0"
        assert packages[0].description == "zeta plugin"

    def test_missing_description_defaults_empty(self) -> None:
        payload = {"objects": [{"package": {"name": "foo", "version": "0.1.0"}}]}
        assert parse_search_response(payload)[0].description == ""

    def test_null_description_defaults_empty(self) -> None:
        package = {"name": "foo", "version": "0.1.0", "description": None}
        payload = {"objects": [{"package": package}]}
        assert parse_search_response(payload)[0].description == ""

    def test_empty_results(self) -> None:
        assert parse_search_response({"objects": []}) == []

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"results": []},
            {"objects": "nope"},
            {"objects": [{"score": 1}]},
            {"objects": [{"package": {"version": "1.0.0"}}]},
        ],
    )
    def test_malformed_payload_raises(self, payload: object) -> None:
        with pytest.raises(TransportError) as exc_info:
            parse_search_response(payload)
        assert exc_info.value.code == ErrorCode.REGISTRY_UNAVAILABLE
        assert exc_info.value.recoverable is True


# ---------------------------------------------------------------------------
# build_http_client
# ---------------------------------------------------------------------------


class TestBuildHttpClient:
    def test_client_configuration(self) -> None:
        client = build_http_client(RegistrySettings(timeout_seconds=5))
        assert isinstance(client, httpx.AsyncClient)
        assert client.timeout.read == 5
        assert client.headers["User-Agent"].startswith("hpm/")


# ---------------------------------------------------------------------------
# RegistryClient
# ---------------------------------------------------------------------------


class TestRegistryClient:
    async def test_successful_search(self) -> None:
        with respx.mock:
            route = respx.route(method="GET", host=SEARCH_HOST, path=SEARCH_PATH).mock(
                return_value=httpx.Response(200, json=_payload("hain-plugin-a", "hain-plugin-b"))
            )
            async with httpx.AsyncClient() as client:
                registry = RegistryClient(client, RegistrySettings())
                packages = await registry.search("hain-plugin")

            assert [p.name for p in packages] == ["hain-plugin-a", "hain-plugin-b"]
            params = route.calls.last.request.url.params
            assert params["text"] == "keywords:hain-plugin"
            assert params["size"] == "250"

    async def test_http_error_raises_transport_error(self) -> None:
        with respx.mock:
            respx.route(method="GET", host=SEARCH_HOST, path=SEARCH_PATH).mock(
                return_value=httpx.Response(503)
            )
            async with httpx.AsyncClient() as client:
                registry = RegistryClient(client, RegistrySettings())
                with pytest.raises(TransportError) as exc_info:
                    await registry.search("hain-plugin")
            assert "503" in str(exc_info.value)

    async def test_network_error_raises_transport_error(self) -> None:
        with respx.mock:
            respx.route(method="GET", host=SEARCH_HOST, path=SEARCH_PATH).mock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            async with httpx.AsyncClient() as client:
                registry = RegistryClient(client, RegistrySettings())
                with pytest.raises(TransportError):
                    await registry.search("hain-plugin")

    async def test_invalid_json_raises_transport_error(self) -> None:
        with respx.mock:
            respx.route(method="GET", host=SEARCH_HOST, path=SEARCH_PATH).mock(
                return_value=httpx.Response(200, text="<html>not json</html>")
            )
            async with httpx.AsyncClient() as client:
                registry = RegistryClient(client, RegistrySettings())
                with pytest.raises(TransportError):
                    await registry.search("hain-plugin")

    async def test_custom_url_and_page_size(self) -> None:
        settings = RegistrySettings(url="https://mirror.example.com/search", page_size=10)
        with respx.mock:
            route = respx.route(
                method="GET", host="mirror.example.com", path="/search"
            ).mock(return_value=httpx.Response(200, json=_payload()))
            async with httpx.AsyncClient() as client:
                registry = RegistryClient(client, settings)
                assert await registry.search("topic") == []
            assert route.calls.last.request.url.params["size"] == "10"
