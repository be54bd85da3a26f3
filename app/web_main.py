from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import ORJSONResponse, RedirectResponse

from app.config import AppSettings, configure_logging, load_settings
from app.wiring import build_config_catalog, build_normalizer, build_system_source
from domain.errors import (
    NetworkError,
    NotFound,
    ParseError,
    SystematicsError,
    UnsupportedSystemSize,
)
from domain.ports.systems import SystemSource
from domain.services.build_graph_view import build_graph_view
from domain.services.interaction import (
    EdgeClicked,
    NodeClicked,
    SelectionEvent,
    SelectionState,
    ToggleEdgeLabels,
    reduce_selection,
)
from domain.services.normalize_system_payload import SystemPayloadNormalizer, parse_payload

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[SystematicsError], int] = {
    NotFound: 404,
    ParseError: 422,
    NetworkError: 502,
    UnsupportedSystemSize: 400,
}


@dataclass(frozen=True)
class SystemsContext:
    settings: AppSettings
    normalizer: SystemPayloadNormalizer
    source: SystemSource


def create_app(settings: AppSettings) -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title=settings.title)

    normalizer = build_normalizer(settings, build_config_catalog(settings))
    context = SystemsContext(
        settings=settings,
        normalizer=normalizer,
        source=build_system_source(settings, normalizer),
    )
    app.state.context = context

    @app.get("/")
    def index() -> RedirectResponse:
        return RedirectResponse(url="/api/systems")

    @app.get("/api/systems")
    async def api_systems(context: SystemsContext = Depends(get_context)) -> ORJSONResponse:
        try:
            systems = await context.source.fetch_all_systems()
        except SystematicsError as exc:
            raise to_http_error(exc) from exc
        return ORJSONResponse([model.to_dict() for model in systems])

    @app.get("/api/systems/{system_id}")
    async def api_system(
        system_id: str,
        context: SystemsContext = Depends(get_context),
    ) -> ORJSONResponse:
        try:
            model = await context.source.fetch_system(system_id)
        except SystematicsError as exc:
            raise to_http_error(exc) from exc
        return ORJSONResponse(model.to_dict())

    @app.get("/api/systems/{system_id}/view")
    async def api_system_view(
        system_id: str,
        node: int | None = Query(default=None, ge=1),
        edge: str | None = Query(default=None),
        labels: bool = Query(default=False),
        context: SystemsContext = Depends(get_context),
    ) -> ORJSONResponse:
        events = build_selection_events(node, edge, labels)
        try:
            model = await context.source.fetch_system(system_id)
        except SystematicsError as exc:
            raise to_http_error(exc) from exc
        if node is not None and node > model.node_count:
            raise HTTPException(status_code=400, detail=f"node must be within 1..{model.node_count}")
        for event in events:
            if isinstance(event, EdgeClicked) and max(event.a, event.b) >= model.node_count:
                raise HTTPException(
                    status_code=400, detail=f"edge must join nodes within 1..{model.node_count}"
                )
        state = SelectionState()
        effects: list[dict[str, str]] = []
        for event in events:
            state, emitted = reduce_selection(state, event, model)
            effects.extend(effect.to_dict() for effect in emitted)
        payload = build_graph_view(model, state).to_dict()
        payload["effects"] = effects
        return ORJSONResponse(payload)

    @app.post("/api/normalize")
    async def api_normalize(
        request: Request,
        context: SystemsContext = Depends(get_context),
    ) -> ORJSONResponse:
        body = await request.body()
        if not body:
            raise HTTPException(status_code=400, detail="Empty payload")
        try:
            model = context.normalizer.normalize(parse_payload(body))
        except SystematicsError as exc:
            raise to_http_error(exc) from exc
        return ORJSONResponse(model.to_dict())

    return app


def get_context(request: Request) -> SystemsContext:
    return request.app.state.context


def to_http_error(exc: SystematicsError) -> HTTPException:
    status_code = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.warning("Upstream failure: %s", exc)
    return HTTPException(status_code=status_code, detail=str(exc))


def build_selection_events(
    node: int | None,
    edge: str | None,
    labels: bool,
) -> list[SelectionEvent]:
    events: list[SelectionEvent] = []
    if node is not None:
        events.append(NodeClicked(node - 1))
    if edge:
        first, second = parse_edge_param(edge)
        events.append(EdgeClicked(first, second))
    if labels:
        events.append(ToggleEdgeLabels())
    return events


def parse_edge_param(value: str) -> tuple[int, int]:
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise HTTPException(status_code=400, detail="edge must look like 'a,b'")
    first, second = int(parts[0]), int(parts[1])
    if first < 1 or second < 1 or first == second:
        raise HTTPException(status_code=400, detail="edge must join two distinct 1-based nodes")
    return first - 1, second - 1


app = create_app(load_settings())
