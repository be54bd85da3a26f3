from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_NODE_FILL = "#4A90E2"
DEFAULT_EDGE_STROKE = "#888888"
DEFAULT_SELECTED_NODE_FILL = "#FF6B6B"
DEFAULT_SELECTED_EDGE_STROKE = "#FF6B6B"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Coordinate:
    x: float
    y: float
    z: float | None = None


@dataclass(frozen=True)
class NodePosition:
    index: int
    x: float
    y: float
    z: float | None = None


@dataclass(frozen=True, order=True)
class UndirectedEdge:
    a: int
    b: int

    def __post_init__(self) -> None:
        if self.a == self.b:
            msg = f"Self-loop edges are not allowed: ({self.a}, {self.b})"
            raise ValueError(msg)
        if self.a > self.b:
            msg = f"Edge endpoints must be ordered a < b: ({self.a}, {self.b})"
            raise ValueError(msg)

    @classmethod
    def of(cls, first: int, second: int) -> UndirectedEdge:
        if first <= second:
            return cls(first, second)
        return cls(second, first)

    def as_tuple(self) -> tuple[int, int]:
        return (self.a, self.b)

    def key(self) -> str:
        return f"{self.a}-{self.b}"


@dataclass(frozen=True)
class Connective:
    label: str
    from_term: str
    to_term: str

    def matches(self, first_term: str, second_term: str) -> bool:
        return (self.from_term == first_term and self.to_term == second_term) or (
            self.from_term == second_term and self.to_term == first_term
        )


@dataclass(frozen=True)
class DecorativeCircle:
    center: Point
    radius: float


class ColorScheme(BaseModel):
    model_config = {"frozen": True}

    node_fill: str = DEFAULT_NODE_FILL
    edge_stroke: str = DEFAULT_EDGE_STROKE
    selected_node_fill: str = DEFAULT_SELECTED_NODE_FILL
    selected_edge_stroke: str = DEFAULT_SELECTED_EDGE_STROKE


class SystemConfig(BaseModel):
    model_config = {"frozen": True, "populate_by_name": True}

    name: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    node_count: int = Field(..., ge=1, le=12)
    k_notation: str = ""
    description: str = ""
    color_scheme: ColorScheme = Field(default_factory=ColorScheme)

    @field_validator("name", mode="after")
    @classmethod
    def normalize_name(cls, name: str) -> str:
        return name.strip().lower()

    @field_validator("color_scheme", mode="before")
    @classmethod
    def accept_short_color_keys(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        aliases = {
            "nodes": "node_fill",
            "edges": "edge_stroke",
            "selected_node": "selected_node_fill",
            "selected_edge": "selected_edge_stroke",
        }
        return {aliases.get(key, key): item for key, item in value.items()}

    def resolved_k_notation(self) -> str:
        return self.k_notation or f"K{self.node_count}"

    def resolved_description(self) -> str:
        return self.description or self.display_name


def _frozen_mapping(value: Mapping[Any, Any] | None) -> Mapping[Any, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class GraphModel:
    system_id: str
    display_name: str
    k_notation: str
    description: str
    node_count: int
    nodes: tuple[NodePosition, ...]
    edges: frozenset[UndirectedEdge]
    terms: Mapping[int, str] = field(default_factory=dict)
    term_colors: Mapping[int, str] = field(default_factory=dict)
    connectives: tuple[Connective, ...] = ()
    navigation_edges: Mapping[int, str] = field(default_factory=dict)
    color_scheme: ColorScheme = field(default_factory=ColorScheme)
    decorative_circles: tuple[DecorativeCircle, ...] = ()
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", frozenset(self.edges))
        object.__setattr__(self, "connectives", tuple(self.connectives))
        object.__setattr__(self, "decorative_circles", tuple(self.decorative_circles))
        object.__setattr__(self, "warnings", tuple(self.warnings))
        object.__setattr__(self, "terms", _frozen_mapping(self.terms))
        object.__setattr__(self, "term_colors", _frozen_mapping(self.term_colors))
        object.__setattr__(self, "navigation_edges", _frozen_mapping(self.navigation_edges))
        self._validate()

    def _validate(self) -> None:
        if not self.display_name or not self.k_notation:
            msg = f"System {self.system_id!r} is missing display metadata"
            raise ValueError(msg)
        if self.node_count < 0:
            msg = f"node_count must be non-negative, got {self.node_count}"
            raise ValueError(msg)
        if len(self.nodes) != self.node_count:
            msg = f"Expected {self.node_count} nodes, got {len(self.nodes)}"
            raise ValueError(msg)
        indices = [node.index for node in self.nodes]
        if sorted(indices) != list(range(self.node_count)):
            msg = f"Node indices must be contiguous 0..{self.node_count - 1}: {indices}"
            raise ValueError(msg)
        for edge in self.edges:
            if edge.b >= self.node_count:
                msg = f"Edge {edge.as_tuple()} references a node outside 0..{self.node_count - 1}"
                raise ValueError(msg)
        for index in self.navigation_edges:
            if not 0 <= index < self.node_count:
                msg = f"Navigation edge references unknown node {index}"
                raise ValueError(msg)

    def node(self, index: int) -> NodePosition:
        for node in self.nodes:
            if node.index == index:
                return node
        msg = f"Node {index} not found in system {self.system_id!r}"
        raise KeyError(msg)

    def sorted_edges(self) -> list[UndirectedEdge]:
        return sorted(self.edges)

    def term_for(self, index: int) -> str | None:
        return self.terms.get(index)

    def color_for(self, index: int) -> str:
        return self.term_colors.get(index) or self.color_scheme.node_fill

    def navigation_target(self, index: int) -> str | None:
        return self.navigation_edges.get(index)

    def to_dict(self) -> dict[str, Any]:
        return {
            "system_id": self.system_id,
            "display_name": self.display_name,
            "k_notation": self.k_notation,
            "description": self.description,
            "node_count": self.node_count,
            "nodes": [
                {"index": node.index, "x": node.x, "y": node.y, "z": node.z}
                for node in sorted(self.nodes, key=lambda item: item.index)
            ],
            "edges": [list(edge.as_tuple()) for edge in self.sorted_edges()],
            "terms": {str(key): value for key, value in sorted(self.terms.items())},
            "term_colors": {str(key): value for key, value in sorted(self.term_colors.items())},
            "connectives": [
                {"label": item.label, "from_term": item.from_term, "to_term": item.to_term}
                for item in self.connectives
            ],
            "navigation_edges": {
                str(key): value for key, value in sorted(self.navigation_edges.items())
            },
            "color_scheme": self.color_scheme.model_dump(),
            "decorative_circles": [
                {"x": circle.center.x, "y": circle.center.y, "radius": circle.radius}
                for circle in self.decorative_circles
            ],
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class GeometryLayout:
    nodes: tuple[Point, ...]
    edges: tuple[UndirectedEdge, ...]
    decorative_circles: tuple[DecorativeCircle, ...] = ()
    node_radius: float = 12.0


def complete_graph_edges(node_count: int) -> list[UndirectedEdge]:
    return [
        UndirectedEdge(first, second)
        for first in range(node_count)
        for second in range(first + 1, node_count)
    ]
