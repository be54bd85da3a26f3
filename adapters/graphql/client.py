from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final

import httpx
import orjson

from domain.errors import NetworkError, NotFound, ParseError
from domain.models import GraphModel
from domain.ports.systems import SystemSource
from domain.services.normalize_system_payload import SystemPayloadNormalizer

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT: Final[str] = "http://localhost:8000/graphql"

SYSTEM_FIELDS: Final[str] = """
    name
    coherenceAttribute
    termDesignation
    connectiveDesignation
    source
    color
    nodes
    edges { from to }
    points { x y z }
    lines { start { x y z } end { x y z } }
    termCharacters {
        name
        systemName
        index
        color
        hexColor
        coordinate { x y z }
    }
    connectiveCharacters { name fromTerm toTerm }
    navigationEdges { node targetSystem }
"""

GET_SYSTEM_QUERY: Final[str] = (
    "query GetSystem($name: String!) { system(name: $name) { " + SYSTEM_FIELDS + " } }"
)
GET_ALL_SYSTEMS_QUERY: Final[str] = "query GetAllSystems { allSystems { " + SYSTEM_FIELDS + " } }"


class GraphQLSystemSource(SystemSource):
    def __init__(
        self,
        endpoint: str,
        normalizer: SystemPayloadNormalizer,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.normalizer = normalizer
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def fetch_system(self, system_id: str) -> GraphModel:
        body = await self._execute(GET_SYSTEM_QUERY, {"name": system_id})
        data = body.get("data")
        if not isinstance(data, Mapping) or data.get("system") is None:
            raise NotFound(system_id)
        return self.normalizer.normalize(data["system"], requested_system_id=system_id)

    async def fetch_all_systems(self) -> list[GraphModel]:
        body = await self._execute(GET_ALL_SYSTEMS_QUERY, None)
        data = body.get("data")
        if not isinstance(data, Mapping) or data.get("allSystems") is None:
            raise NotFound("*", "No systems found")
        return self.normalizer.normalize_many(data)

    async def _execute(self, query: str, variables: dict[str, Any] | None) -> dict[str, Any]:
        request_body: dict[str, Any] = {"query": query}
        if variables is not None:
            request_body["variables"] = variables
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(self.endpoint, json=request_body)
        except httpx.HTTPError as exc:
            logger.warning("GraphQL request to %s failed: %s", self.endpoint, exc)
            raise NetworkError(str(exc)) from exc

        if response.is_error:
            msg = f"Request failed with status: {response.status_code}"
            raise NetworkError(msg)
        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as exc:
            msg = f"Malformed GraphQL response: {exc}"
            raise ParseError(msg) from exc
        if not isinstance(body, dict):
            msg = "GraphQL response must be a JSON object"
            raise ParseError(msg)
        errors = body.get("errors")
        if errors:
            messages = [
                str(error.get("message", error)) if isinstance(error, Mapping) else str(error)
                for error in errors
            ]
            msg = ", ".join(messages)
            raise ParseError(msg)
        return body
