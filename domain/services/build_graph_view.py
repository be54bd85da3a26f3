from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from domain.models import GraphModel, Point
from domain.services.edge_labels import (
    EdgeLabelPlacement,
    LabelPlacementConfig,
    place_edge_labels,
)
from domain.services.interaction import RenderPolicy, SelectionState


@dataclass(frozen=True)
class NodeView:
    index: int
    center: Point
    radius: float
    fill: str
    stroke: str
    stroke_width: float
    number: int
    term: str | None
    selected: bool
    navigates_to: str | None

    @property
    def key(self) -> str:
        return f"node-{self.index}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "index": self.index,
            "x": self.center.x,
            "y": self.center.y,
            "radius": self.radius,
            "fill": self.fill,
            "stroke": self.stroke,
            "stroke_width": self.stroke_width,
            "number": self.number,
            "term": self.term,
            "selected": self.selected,
            "navigates_to": self.navigates_to,
        }


@dataclass(frozen=True)
class EdgeView:
    a: int
    b: int
    start: Point
    end: Point
    stroke: str
    stroke_width: float
    selected: bool

    @property
    def key(self) -> str:
        return f"edge-{self.a}-{self.b}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "a": self.a,
            "b": self.b,
            "x1": self.start.x,
            "y1": self.start.y,
            "x2": self.end.x,
            "y2": self.end.y,
            "stroke": self.stroke,
            "stroke_width": self.stroke_width,
            "selected": self.selected,
        }


@dataclass(frozen=True)
class CircleView:
    key: str
    center: Point
    radius: float
    stroke: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "x": self.center.x,
            "y": self.center.y,
            "radius": self.radius,
            "stroke": self.stroke,
        }


@dataclass(frozen=True)
class GraphView:
    system_id: str
    display_name: str
    k_notation: str
    description: str
    nodes: tuple[NodeView, ...]
    edges: tuple[EdgeView, ...]
    labels: tuple[EdgeLabelPlacement, ...]
    circles: tuple[CircleView, ...]
    selection: SelectionState

    def node(self, index: int) -> NodeView:
        for node in self.nodes:
            if node.index == index:
                return node
        msg = f"Node {index} is not part of view {self.system_id!r}"
        raise KeyError(msg)

    def edge(self, a: int, b: int) -> EdgeView:
        first, second = min(a, b), max(a, b)
        for edge in self.edges:
            if (edge.a, edge.b) == (first, second):
                return edge
        msg = f"Edge ({a}, {b}) is not part of view {self.system_id!r}"
        raise KeyError(msg)

    def to_dict(self) -> dict[str, Any]:
        return {
            "system_id": self.system_id,
            "display_name": self.display_name,
            "k_notation": self.k_notation,
            "description": self.description,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "labels": [label.to_dict() for label in self.labels],
            "circles": [circle.to_dict() for circle in self.circles],
            "selection": self.selection.to_dict(),
        }


def build_graph_view(
    model: GraphModel,
    state: SelectionState | None = None,
    *,
    policy: RenderPolicy | None = None,
    label_config: LabelPlacementConfig | None = None,
) -> GraphView:
    state = state or SelectionState()
    policy = policy or RenderPolicy()
    scheme = model.color_scheme

    edges: list[EdgeView] = []
    for edge in model.sorted_edges():
        start = model.node(edge.a)
        end = model.node(edge.b)
        selected = state.is_edge_selected(edge)
        edges.append(
            EdgeView(
                a=edge.a,
                b=edge.b,
                start=Point(start.x, start.y),
                end=Point(end.x, end.y),
                stroke=scheme.selected_edge_stroke if selected else scheme.edge_stroke,
                stroke_width=policy.width_for(state, edge),
                selected=selected,
            )
        )

    nodes: list[NodeView] = []
    for node in sorted(model.nodes, key=lambda item: item.index):
        selected = state.is_node_selected(node.index)
        nodes.append(
            NodeView(
                index=node.index,
                center=Point(node.x, node.y),
                radius=policy.radius_for(state, node.index),
                fill=scheme.selected_node_fill if selected else model.color_for(node.index),
                stroke=policy.node_stroke,
                stroke_width=policy.node_stroke_width,
                number=node.index + 1,
                term=model.term_for(node.index),
                selected=selected,
                navigates_to=model.navigation_target(node.index),
            )
        )

    circles = tuple(
        CircleView(
            key=f"circle-{position}",
            center=circle.center,
            radius=circle.radius,
            stroke=scheme.node_fill,
        )
        for position, circle in enumerate(model.decorative_circles)
    )

    return GraphView(
        system_id=model.system_id,
        display_name=model.display_name,
        k_notation=model.k_notation,
        description=model.description,
        nodes=tuple(nodes),
        edges=tuple(edges),
        labels=tuple(place_edge_labels(model, state.show_edge_labels, label_config)),
        circles=circles,
        selection=state,
    )
