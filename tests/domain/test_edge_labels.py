from __future__ import annotations

import math

import pytest

from domain.models import Connective, Point, UndirectedEdge
from domain.services.edge_labels import (
    EdgeLabelPlacement,
    LabelPlacementConfig,
    find_connective,
    place_edge_labels,
    readable_rotation,
)
from tests.helpers.graph_models import dyad_model, square_model

TERMS = {0: "North", 1: "East", 2: "South", 3: "West"}


def _labels_by_text(connectives: list[Connective]) -> dict[str, EdgeLabelPlacement]:
    model = square_model(terms=TERMS, connectives=connectives)
    return {label.text: label for label in place_edge_labels(model, True)}


def test_no_labels_when_hidden() -> None:
    assert place_edge_labels(dyad_model(), False) == []


def test_dyad_label_sits_on_the_midpoint() -> None:
    (label,) = place_edge_labels(dyad_model(), True)

    assert label.text == "Polarity"
    assert label.edge == UndirectedEdge(0, 1)
    assert label.anchor == Point(400.0, 400.0)
    assert label.rotation == 0.0
    assert label.box_width == 7.0 * len("Polarity")
    assert label.box_height == 16.0
    assert label.key == "label-0-1"


def test_edges_without_matching_connective_get_no_label() -> None:
    labels = place_edge_labels(
        square_model(terms=TERMS, connectives=[Connective("Tension", "North", "East")]), True
    )

    assert [label.edge for label in labels] == [UndirectedEdge(0, 1)]


def test_crossing_diagonals_are_nudged_apart() -> None:
    labels = _labels_by_text(
        [Connective("Axis", "South", "North"), Connective("Span", "East", "West")]
    )

    axis = labels["Axis"]
    span = labels["Span"]
    assert axis.anchor == Point(400.0, 425.0)
    assert span.anchor == Point(400.0, 375.0)
    assert math.isclose(axis.rotation, 45.0)
    assert math.isclose(span.rotation, 315.0)


def test_edges_away_from_center_are_not_nudged() -> None:
    labels = _labels_by_text([Connective("Top", "North", "East")])

    assert labels["Top"].anchor == Point(400.0, 200.0)


def test_custom_band_disables_nudge() -> None:
    model = square_model(terms=TERMS, connectives=[Connective("Axis", "North", "South")])
    config = LabelPlacementConfig(band_min=0.0, band_max=100.0)

    (label,) = place_edge_labels(model, True, config)

    assert label.anchor == Point(400.0, 400.0)


@pytest.mark.parametrize(
    "dx,dy,expected",
    [
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 90.0),
        (0.0, -1.0, -90.0),
        (-1.0, 0.0, 360.0),
        (-1.0, 1.0, 315.0),
        (-1.0, -1.0, 45.0),
    ],
)
def test_rotation_is_never_upside_down(dx: float, dy: float, expected: float) -> None:
    assert math.isclose(readable_rotation(dx, dy), expected)


def test_find_connective_needs_both_terms() -> None:
    connectives = [Connective("Polarity", "Essence", "Existence")]

    assert find_connective(connectives, "Existence", "Essence") == connectives[0]
    assert find_connective(connectives, "Essence", None) is None
    assert find_connective(connectives, "Essence", "Other") is None


def test_label_dict_includes_centered_box() -> None:
    (label,) = place_edge_labels(dyad_model(), True)

    payload = label.to_dict()

    assert payload["box"] == {"x": 372.0, "y": 392.0, "width": 56.0, "height": 16.0}
    assert payload["edge"] == [0, 1]
