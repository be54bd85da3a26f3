from __future__ import annotations

from typing import Protocol

from domain.models import GeometryLayout


class LayoutEngine(Protocol):
    def layout(
        self,
        node_count: int,
        center_x: float,
        center_y: float,
        size: float,
    ) -> GeometryLayout:
        ...
