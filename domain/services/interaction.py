from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Union

from domain.models import GraphModel, UndirectedEdge


@dataclass(frozen=True)
class NoSelection:
    kind: Literal["none"] = "none"


@dataclass(frozen=True)
class NodeSelected:
    index: int
    kind: Literal["node"] = "node"


@dataclass(frozen=True)
class EdgeSelected:
    edge: UndirectedEdge
    kind: Literal["edge"] = "edge"


Selection = Union[NoSelection, NodeSelected, EdgeSelected]


@dataclass(frozen=True)
class SelectionState:
    selection: Selection = NoSelection()
    show_edge_labels: bool = False

    @property
    def kind(self) -> str:
        return self.selection.kind

    @property
    def selected_node(self) -> int | None:
        if isinstance(self.selection, NodeSelected):
            return self.selection.index
        return None

    @property
    def selected_edge(self) -> tuple[int, int] | None:
        if isinstance(self.selection, EdgeSelected):
            return self.selection.edge.as_tuple()
        return None

    def is_node_selected(self, index: int) -> bool:
        return self.selected_node == index

    def is_edge_selected(self, edge: UndirectedEdge) -> bool:
        return self.selected_edge == edge.as_tuple()

    def to_dict(self) -> dict[str, object]:
        edge = self.selected_edge
        return {
            "kind": self.kind,
            "selected_node": self.selected_node,
            "selected_edge": list(edge) if edge else None,
            "show_edge_labels": self.show_edge_labels,
        }


@dataclass(frozen=True)
class NodeClicked:
    index: int


@dataclass(frozen=True)
class EdgeClicked:
    a: int
    b: int


@dataclass(frozen=True)
class ToggleEdgeLabels:
    pass


@dataclass(frozen=True)
class ClearSelection:
    pass


SelectionEvent = Union[NodeClicked, EdgeClicked, ToggleEdgeLabels, ClearSelection]


@dataclass(frozen=True)
class NavigateTo:
    target_system_id: str

    def to_dict(self) -> dict[str, str]:
        return {"targetSystemId": self.target_system_id}


Effect = NavigateTo


def reduce_selection(
    state: SelectionState,
    event: SelectionEvent,
    model: GraphModel | None = None,
) -> tuple[SelectionState, tuple[Effect, ...]]:
    if isinstance(event, NodeClicked):
        target = model.navigation_target(event.index) if model is not None else None
        if target:
            return state, (NavigateTo(target),)
        if state.selected_node == event.index:
            return replace(state, selection=NoSelection()), ()
        return replace(state, selection=NodeSelected(event.index)), ()
    if isinstance(event, EdgeClicked):
        if event.a == event.b:
            return state, ()
        edge = UndirectedEdge.of(event.a, event.b)
        if state.selected_edge == edge.as_tuple():
            return replace(state, selection=NoSelection()), ()
        return replace(state, selection=EdgeSelected(edge)), ()
    if isinstance(event, ToggleEdgeLabels):
        return replace(state, show_edge_labels=not state.show_edge_labels), ()
    if isinstance(event, ClearSelection):
        return replace(state, selection=NoSelection()), ()
    msg = f"Unsupported selection event: {event!r}"
    raise TypeError(msg)


@dataclass(frozen=True)
class RenderPolicy:
    node_radius: float = 12.0
    selected_radius_factor: float = 1.5
    edge_width: float = 1.5
    selected_width_factor: float = 2.0
    node_stroke: str = "white"
    node_stroke_width: float = 2.0

    def radius_for(self, state: SelectionState, index: int) -> float:
        if state.is_node_selected(index):
            return self.node_radius * self.selected_radius_factor
        return self.node_radius

    def width_for(self, state: SelectionState, edge: UndirectedEdge) -> float:
        if state.is_edge_selected(edge):
            return self.edge_width * self.selected_width_factor
        return self.edge_width


class GraphInteraction:
    def __init__(self, model: GraphModel, state: SelectionState | None = None) -> None:
        self.model = model
        self.state = state or SelectionState()

    def dispatch(self, event: SelectionEvent) -> tuple[Effect, ...]:
        self.state, effects = reduce_selection(self.state, event, self.model)
        return effects

    def click_node(self, index: int) -> tuple[Effect, ...]:
        return self.dispatch(NodeClicked(index))

    def click_edge(self, a: int, b: int) -> tuple[Effect, ...]:
        return self.dispatch(EdgeClicked(a, b))

    def toggle_edge_labels(self) -> tuple[Effect, ...]:
        return self.dispatch(ToggleEdgeLabels())
