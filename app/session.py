from __future__ import annotations

import logging
from enum import Enum

from domain.errors import SystematicsError, describe_error
from domain.models import GraphModel
from domain.ports.systems import SystemSource
from domain.services.build_graph_view import GraphView, build_graph_view
from domain.services.interaction import (
    Effect,
    NavigateTo,
    SelectionEvent,
    SelectionState,
    reduce_selection,
)

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class SystemSession:
    """Tracks the displayed system and guards against out-of-order fetch completions.

    Every fetch is tagged with a request token. A completion whose token is no
    longer the latest one belongs to an abandoned selection and is dropped, so
    the displayed model is always the one most recently asked for.
    """

    def __init__(self, source: SystemSource) -> None:
        self.source = source
        self.systems: tuple[GraphModel, ...] = ()
        self.model: GraphModel | None = None
        self.selection = SelectionState()
        self.loading = False
        self.systems_loading = False
        self.error: str | None = None
        self.breadcrumbs: list[str] = []
        self.requested_system_id: str | None = None
        self._latest_request = 0
        self._latest_systems_request = 0

    @property
    def status(self) -> SessionStatus:
        if self.error is not None:
            return SessionStatus.ERROR
        if self.loading:
            return SessionStatus.LOADING
        if self.model is not None:
            return SessionStatus.READY
        return SessionStatus.IDLE

    async def load_systems(self) -> None:
        self._latest_systems_request += 1
        token = self._latest_systems_request
        self.systems_loading = True
        try:
            systems = await self.source.fetch_all_systems()
        except SystematicsError as exc:
            if token != self._latest_systems_request:
                logger.debug("Ignoring stale systems failure: %s", exc)
                return
            logger.warning("Failed to load systems: %s", exc)
            self.systems_loading = False
            self.error = describe_error(exc)
            return
        if token != self._latest_systems_request:
            logger.debug("Ignoring stale systems response")
            return
        self.systems = tuple(systems)
        self.systems_loading = False
        if self.model is None and self.requested_system_id is None and self.systems:
            self._swap(self.systems[0])

    async def select_system(self, system_id: str) -> None:
        self.breadcrumbs.clear()
        await self._load(system_id)

    async def navigate_to(self, system_id: str) -> None:
        previous = self.model.system_id if self.model is not None else None
        if await self._load(system_id) and previous is not None:
            self.breadcrumbs.append(previous)

    async def navigate_back(self) -> None:
        if not self.breadcrumbs:
            return
        await self._load(self.breadcrumbs.pop())

    async def dispatch(self, event: SelectionEvent) -> tuple[Effect, ...]:
        if self.model is None:
            return ()
        self.selection, effects = reduce_selection(self.selection, event, self.model)
        for effect in effects:
            if isinstance(effect, NavigateTo):
                await self.navigate_to(effect.target_system_id)
        return effects

    def view(self) -> GraphView | None:
        if self.model is None or self.loading or self.error is not None:
            return None
        return build_graph_view(self.model, self.selection)

    async def _load(self, system_id: str) -> bool:
        self._latest_request += 1
        token = self._latest_request
        self.requested_system_id = system_id
        self.loading = True
        self.error = None
        try:
            model = await self.source.fetch_system(system_id)
        except SystematicsError as exc:
            if token != self._latest_request:
                logger.debug("Ignoring stale failure for %s: %s", system_id, exc)
                return False
            logger.warning("Failed to load system %s: %s", system_id, exc)
            self.loading = False
            self.error = describe_error(exc)
            return False
        if token != self._latest_request:
            logger.debug("Ignoring stale response for %s", system_id)
            return False
        self._swap(model)
        return True

    def _swap(self, model: GraphModel) -> None:
        self.model = model
        self.selection = SelectionState(show_edge_labels=self.selection.show_edge_labels)
        self.loading = False
        self.error = None
