from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import orjson
import pytest

from adapters.graphql.client import GET_ALL_SYSTEMS_QUERY, GET_SYSTEM_QUERY, GraphQLSystemSource
from domain.errors import NetworkError, NotFound, ParseError
from domain.services.normalize_system_payload import SystemPayloadNormalizer
from tests.helpers.system_payloads import flat_tetrad_payload, slices_dyad_payload

ENDPOINT = "http://stubbed-graphql.local/graphql"


def _source(
    normalizer: SystemPayloadNormalizer,
    handler: Callable[[httpx.Request], httpx.Response],
) -> GraphQLSystemSource:
    return GraphQLSystemSource(ENDPOINT, normalizer, transport=httpx.MockTransport(handler))


def test_fetch_system_posts_query_and_normalizes(normalizer: SystemPayloadNormalizer) -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(orjson.loads(request.content))
        return httpx.Response(200, json={"data": {"system": flat_tetrad_payload()}})

    model = asyncio.run(_source(normalizer, handler).fetch_system("tetrad"))

    assert model.system_id == "tetrad"
    assert model.node_count == 4
    assert seen == [{"query": GET_SYSTEM_QUERY, "variables": {"name": "tetrad"}}]


def test_null_system_is_not_found(normalizer: SystemPayloadNormalizer) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"system": None}})

    with pytest.raises(NotFound) as exc_info:
        asyncio.run(_source(normalizer, handler).fetch_system("ennead"))

    assert exc_info.value.system_id == "ennead"


def test_http_error_status_is_network_error(normalizer: SystemPayloadNormalizer) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(NetworkError, match="Request failed with status: 503"):
        asyncio.run(_source(normalizer, handler).fetch_system("tetrad"))


def test_transport_failure_is_network_error(normalizer: SystemPayloadNormalizer) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError, match="connection refused"):
        asyncio.run(_source(normalizer, handler).fetch_system("tetrad"))


def test_graphql_errors_are_parse_errors(normalizer: SystemPayloadNormalizer) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"errors": [{"message": "Unknown field"}]})

    with pytest.raises(ParseError, match="Unknown field"):
        asyncio.run(_source(normalizer, handler).fetch_system("tetrad"))


def test_malformed_body_is_parse_error(normalizer: SystemPayloadNormalizer) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    with pytest.raises(ParseError):
        asyncio.run(_source(normalizer, handler).fetch_system("tetrad"))


def test_fetch_all_systems(normalizer: SystemPayloadNormalizer) -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(orjson.loads(request.content))
        systems = [slices_dyad_payload(), flat_tetrad_payload(), {"unexpected": True}]
        return httpx.Response(200, json={"data": {"allSystems": systems}})

    models = asyncio.run(_source(normalizer, handler).fetch_all_systems())

    assert [model.system_id for model in models] == ["dyad", "tetrad"]
    assert seen == [{"query": GET_ALL_SYSTEMS_QUERY}]
