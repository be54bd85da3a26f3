from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

from domain.errors import UnsupportedSystemSize
from domain.models import DecorativeCircle, GeometryLayout, Point, complete_graph_edges
from domain.ports.layout import LayoutEngine
from domain.systems import MAX_NODE_COUNT, MIN_NODE_COUNT, node_count_for


@dataclass(frozen=True)
class ClosedFormLayoutConfig:
    node_radius: float = 12.0
    unity_circle_ratio: float = 0.45
    pair_spacing_ratio: float = 0.18
    pair_circle_ratio: float = 0.36
    triangle_side_ratio: float = 0.70
    triangle_nudge_ratio: float = 0.05
    polygon_radius_ratio: float = 0.38


class ClosedFormLayoutEngine(LayoutEngine):
    def __init__(self, config: ClosedFormLayoutConfig | None = None) -> None:
        self.config = config or ClosedFormLayoutConfig()

    def layout(
        self,
        node_count: int,
        center_x: float,
        center_y: float,
        size: float,
    ) -> GeometryLayout:
        if (
            isinstance(node_count, bool)
            or not isinstance(node_count, int)
            or not MIN_NODE_COUNT <= node_count <= MAX_NODE_COUNT
        ):
            raise UnsupportedSystemSize(node_count)
        return GeometryLayout(
            nodes=tuple(self._node_positions(node_count, center_x, center_y, size)),
            edges=tuple(complete_graph_edges(node_count)),
            decorative_circles=tuple(
                self._decorative_circles(node_count, center_x, center_y, size)
            ),
            node_radius=self.config.node_radius,
        )

    def layout_system(
        self,
        system_id: str,
        center_x: float,
        center_y: float,
        size: float,
    ) -> GeometryLayout:
        node_count = node_count_for(system_id)
        if node_count is None:
            raise UnsupportedSystemSize(system_id)
        return self.layout(node_count, center_x, center_y, size)

    def _node_positions(self, node_count: int, cx: float, cy: float, size: float) -> List[Point]:
        if node_count == 1:
            return [Point(cx, cy)]
        if node_count == 2:
            spacing = size * self.config.pair_spacing_ratio
            return [Point(cx - spacing, cy), Point(cx + spacing, cy)]
        if node_count == 3:
            side = size * self.config.triangle_side_ratio
            height = side * math.sqrt(3.0) / 2.0
            half_side = side / 2.0
            right_offset = height / 2.0 + size * self.config.triangle_nudge_ratio
            return [
                Point(cx - height / 2.0, cy - half_side),
                Point(cx + right_offset, cy),
                Point(cx - height / 2.0, cy + half_side),
            ]
        radius = size * self.config.polygon_radius_ratio
        if node_count == 4:
            return [
                Point(cx, cy - radius),
                Point(cx + radius, cy),
                Point(cx - radius, cy),
                Point(cx, cy + radius),
            ]
        # Screen space is Y-down, so increasing angles walk clockwise from 12 o'clock.
        rotation = -math.pi / 2.0
        points: List[Point] = []
        for idx in range(node_count):
            angle = 2.0 * math.pi * idx / node_count + rotation
            points.append(Point(cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
        return points

    def _decorative_circles(
        self, node_count: int, cx: float, cy: float, size: float
    ) -> List[DecorativeCircle]:
        if node_count == 1:
            return [DecorativeCircle(Point(cx, cy), size * self.config.unity_circle_ratio)]
        if node_count == 2:
            spacing = size * self.config.pair_spacing_ratio
            radius = size * self.config.pair_circle_ratio
            return [
                DecorativeCircle(Point(cx - spacing, cy), radius),
                DecorativeCircle(Point(cx + spacing, cy), radius),
            ]
        return []
