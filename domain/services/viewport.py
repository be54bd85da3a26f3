from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from domain.models import Coordinate

MIN_EXTENT: Final[float] = 1e-4


@dataclass(frozen=True)
class ViewportBox:
    width: float
    height: float
    margin: float = 0.0

    @property
    def center_x(self) -> float:
        return self.width / 2.0

    @property
    def center_y(self) -> float:
        return self.height / 2.0

    @property
    def available_size(self) -> float:
        return min(self.width, self.height) - 2.0 * self.margin


API_VIEWPORT: Final[ViewportBox] = ViewportBox(800.0, 800.0, 100.0)
LOCAL_VIEWPORT: Final[ViewportBox] = ViewportBox(1600.0, 1600.0, 100.0)
LOCAL_WORKING_SIZE: Final[float] = 1400.0


def fit_to_viewport(
    points: Sequence[Coordinate],
    box_width: float,
    box_height: float,
    margin: float,
) -> list[Coordinate]:
    if not points:
        return []
    box = ViewportBox(box_width, box_height, margin)
    if len(points) == 1:
        return [Coordinate(box.center_x, box.center_y, points[0].z)]

    min_x = min(point.x for point in points)
    max_x = max(point.x for point in points)
    min_y = min(point.y for point in points)
    max_y = max(point.y for point in points)
    center_x = (min_x + max_x) / 2.0
    center_y = (min_y + max_y) / 2.0
    extent = max(max_x - min_x, max_y - min_y, MIN_EXTENT)
    scale = box.available_size / extent

    # Upstream coordinates are Y-up; the render surface is Y-down.
    return [
        Coordinate(
            (point.x - center_x) * scale + box.center_x,
            -(point.y - center_y) * scale + box.center_y,
            point.z,
        )
        for point in points
    ]


def fit_to_box(points: Sequence[Coordinate], box: ViewportBox) -> list[Coordinate]:
    return fit_to_viewport(points, box.width, box.height, box.margin)
