from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from domain.models import Connective, GraphModel, Point, UndirectedEdge


@dataclass(frozen=True)
class LabelPlacementConfig:
    band_min: float = 300.0
    band_max: float = 500.0
    diagonal_threshold: float = 100.0
    nudge: float = 25.0
    char_width: float = 7.0
    box_height: float = 16.0


@dataclass(frozen=True)
class EdgeLabelPlacement:
    edge: UndirectedEdge
    text: str
    anchor: Point
    rotation: float
    box_width: float
    box_height: float

    @property
    def key(self) -> str:
        return f"label-{self.edge.key()}"

    def to_dict(self) -> dict[str, object]:
        return {
            "key": self.key,
            "edge": list(self.edge.as_tuple()),
            "text": self.text,
            "x": self.anchor.x,
            "y": self.anchor.y,
            "rotation": self.rotation,
            "box": {
                "x": self.anchor.x - self.box_width / 2.0,
                "y": self.anchor.y - self.box_height / 2.0,
                "width": self.box_width,
                "height": self.box_height,
            },
        }


def find_connective(
    connectives: Iterable[Connective], first_term: str | None, second_term: str | None
) -> Connective | None:
    if not first_term or not second_term:
        return None
    for connective in connectives:
        if connective.matches(first_term, second_term):
            return connective
    return None


def readable_rotation(dx: float, dy: float) -> float:
    angle = math.degrees(math.atan2(dy, dx))
    if angle > 90.0 or angle < -90.0:
        return angle + 180.0
    return angle


def place_edge_labels(
    model: GraphModel,
    show_edge_labels: bool,
    config: LabelPlacementConfig | None = None,
) -> list[EdgeLabelPlacement]:
    if not show_edge_labels:
        return []
    config = config or LabelPlacementConfig()
    placements: list[EdgeLabelPlacement] = []
    for position, edge in enumerate(model.sorted_edges()):
        connective = find_connective(
            model.connectives, model.term_for(edge.a), model.term_for(edge.b)
        )
        if connective is None:
            continue
        start = model.node(edge.a)
        end = model.node(edge.b)
        dx = end.x - start.x
        dy = end.y - start.y
        mid_x = (start.x + end.x) / 2.0
        mid_y = (start.y + end.y) / 2.0
        if _crosses_center(dx, dy, mid_x, mid_y, config):
            mid_y += -config.nudge if position % 2 == 0 else config.nudge
        placements.append(
            EdgeLabelPlacement(
                edge=edge,
                text=connective.label,
                anchor=Point(mid_x, mid_y),
                rotation=readable_rotation(dx, dy),
                box_width=len(connective.label) * config.char_width,
                box_height=config.box_height,
            )
        )
    return placements


def _crosses_center(
    dx: float, dy: float, mid_x: float, mid_y: float, config: LabelPlacementConfig
) -> bool:
    is_diagonal = abs(dx) > config.diagonal_threshold and abs(dy) > config.diagonal_threshold
    near_center = (
        config.band_min < mid_x < config.band_max and config.band_min < mid_y < config.band_max
    )
    return is_diagonal and near_center
