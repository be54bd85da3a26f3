from __future__ import annotations

import asyncio

from app.session import SessionStatus, SystemSession
from domain.errors import NetworkError, NotFound
from domain.models import GraphModel
from domain.services.interaction import NodeClicked, ToggleEdgeLabels
from tests.helpers.graph_models import dyad_model, square_model


class FakeSystemSource:
    def __init__(self, models: list[GraphModel]) -> None:
        self.models = {model.system_id: model for model in models}
        self.gates: dict[str, asyncio.Event] = {}
        self.failure: Exception | None = None

    async def fetch_system(self, system_id: str) -> GraphModel:
        gate = self.gates.get(system_id)
        if gate is not None:
            await gate.wait()
        if self.failure is not None:
            raise self.failure
        if system_id not in self.models:
            raise NotFound(system_id)
        return self.models[system_id]

    async def fetch_all_systems(self) -> list[GraphModel]:
        if self.failure is not None:
            raise self.failure
        return list(self.models.values())


def _session() -> tuple[SystemSession, FakeSystemSource]:
    source = FakeSystemSource([dyad_model(navigation_edges={1: "tetrad"}), square_model()])
    return SystemSession(source), source


def test_load_systems_shows_the_first_one() -> None:
    session, _ = _session()
    assert session.status is SessionStatus.IDLE

    asyncio.run(session.load_systems())

    assert [model.system_id for model in session.systems] == ["dyad", "tetrad"]
    assert session.model is not None
    assert session.model.system_id == "dyad"
    assert session.status is SessionStatus.READY


def test_stale_completion_is_ignored() -> None:
    session, source = _session()

    async def scenario() -> None:
        gate = asyncio.Event()
        source.gates["tetrad"] = gate
        slow = asyncio.create_task(session.select_system("tetrad"))
        await asyncio.sleep(0)
        assert session.status is SessionStatus.LOADING
        assert session.view() is None
        await session.select_system("dyad")
        gate.set()
        await slow

    asyncio.run(scenario())

    assert session.model is not None
    assert session.model.system_id == "dyad"
    assert session.status is SessionStatus.READY


def test_stale_failure_does_not_replace_newer_model() -> None:
    session, source = _session()

    async def scenario() -> None:
        gate = asyncio.Event()
        source.gates["ennead"] = gate
        slow = asyncio.create_task(session.select_system("ennead"))
        await asyncio.sleep(0)
        await session.select_system("tetrad")
        gate.set()
        await slow

    asyncio.run(scenario())

    assert session.error is None
    assert session.model is not None
    assert session.model.system_id == "tetrad"


def test_not_found_and_network_errors_become_error_state() -> None:
    session, source = _session()

    asyncio.run(session.select_system("ennead"))
    assert session.status is SessionStatus.ERROR
    assert session.error == "Not found: System ennead not found"
    assert session.view() is None

    source.failure = NetworkError("connection refused")
    asyncio.run(session.select_system("dyad"))
    assert session.error == "Network error: connection refused"

    source.failure = None
    asyncio.run(session.select_system("dyad"))
    assert session.status is SessionStatus.READY


def test_navigation_pushes_breadcrumbs_and_back_pops() -> None:
    session, _ = _session()

    async def scenario() -> None:
        await session.select_system("dyad")
        effects = await session.dispatch(NodeClicked(1))
        assert [effect.target_system_id for effect in effects] == ["tetrad"]

    asyncio.run(scenario())

    assert session.model is not None
    assert session.model.system_id == "tetrad"
    assert session.breadcrumbs == ["dyad"]

    asyncio.run(session.navigate_back())
    assert session.model.system_id == "dyad"
    assert session.breadcrumbs == []

    asyncio.run(session.navigate_back())
    assert session.model.system_id == "dyad"


def test_select_system_clears_breadcrumbs() -> None:
    session, _ = _session()

    async def scenario() -> None:
        await session.select_system("dyad")
        await session.navigate_to("tetrad")
        await session.select_system("dyad")

    asyncio.run(scenario())

    assert session.breadcrumbs == []


def test_failed_navigation_leaves_no_breadcrumb() -> None:
    session, _ = _session()

    async def scenario() -> None:
        await session.select_system("dyad")
        await session.navigate_to("ennead")

    asyncio.run(scenario())

    assert session.status is SessionStatus.ERROR
    assert session.breadcrumbs == []


def test_superseded_navigation_leaves_no_breadcrumb() -> None:
    session, source = _session()

    async def scenario() -> None:
        await session.select_system("dyad")
        gate = asyncio.Event()
        source.gates["tetrad"] = gate
        slow = asyncio.create_task(session.navigate_to("tetrad"))
        await asyncio.sleep(0)
        source.gates.clear()
        await session.select_system("dyad")
        gate.set()
        await slow

    asyncio.run(scenario())

    assert session.model is not None
    assert session.model.system_id == "dyad"
    assert session.breadcrumbs == []


def test_new_model_resets_selection_but_keeps_label_toggle() -> None:
    session, _ = _session()

    async def scenario() -> None:
        await session.select_system("tetrad")
        await session.dispatch(NodeClicked(2))
        await session.dispatch(ToggleEdgeLabels())
        await session.select_system("dyad")

    asyncio.run(scenario())

    assert session.selection.selected_node is None
    assert session.selection.show_edge_labels is True
    view = session.view()
    assert view is not None
    assert [label.text for label in view.labels] == ["Polarity"]


def test_dispatch_without_model_is_a_no_op() -> None:
    session, _ = _session()

    assert asyncio.run(session.dispatch(NodeClicked(0))) == ()
    assert session.selection.selected_node is None


def test_failed_system_list_sets_error() -> None:
    session, source = _session()
    source.failure = NetworkError("timeout")

    asyncio.run(session.load_systems())

    assert session.error == "Network error: timeout"
    assert session.systems == ()
