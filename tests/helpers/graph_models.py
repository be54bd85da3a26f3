from __future__ import annotations

from collections.abc import Mapping, Sequence

from domain.models import Connective, GraphModel, NodePosition, complete_graph_edges


def square_model(
    *,
    terms: Mapping[int, str] | None = None,
    connectives: Sequence[Connective] = (),
    navigation_edges: Mapping[int, str] | None = None,
) -> GraphModel:
    corners = [(200.0, 200.0), (600.0, 200.0), (600.0, 600.0), (200.0, 600.0)]
    return GraphModel(
        system_id="tetrad",
        display_name="Tetrad",
        k_notation="K4",
        description="Activity",
        node_count=4,
        nodes=tuple(NodePosition(index, x, y) for index, (x, y) in enumerate(corners)),
        edges=frozenset(complete_graph_edges(4)),
        terms=terms or {},
        connectives=tuple(connectives),
        navigation_edges=navigation_edges or {},
    )


def dyad_model(*, navigation_edges: Mapping[int, str] | None = None) -> GraphModel:
    return GraphModel(
        system_id="dyad",
        display_name="Dyad",
        k_notation="K2",
        description="Complementarity",
        node_count=2,
        nodes=(NodePosition(0, 250.0, 400.0), NodePosition(1, 550.0, 400.0)),
        edges=frozenset(complete_graph_edges(2)),
        terms={0: "Essence", 1: "Existence"},
        connectives=(Connective("Polarity", "Essence", "Existence"),),
        navigation_edges=navigation_edges or {},
    )
