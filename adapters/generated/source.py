from __future__ import annotations

from typing import Any, Final

from domain.errors import NotFound
from domain.models import GraphModel
from domain.ports.systems import SystemSource
from domain.services.normalize_system_payload import SystemPayloadNormalizer
from domain.systems import SYSTEM_NAMES, node_count_for

_TERMS: Final[dict[str, list[str]]] = {
    "monad": ["Unity"],
    "dyad": ["Positive", "Negative"],
    "triad": ["Thesis", "Antithesis", "Synthesis"],
    "tetrad": ["North", "East", "South", "West"],
    "pentad": ["Purpose", "Higher Potential", "Quintessence", "Lower Potential", "Source"],
}

_CONNECTIVES: Final[dict[str, list[tuple[str, str, str]]]] = {
    "dyad": [("Polarity", "Positive", "Negative")],
    "pentad": [
        ("Aspiration", "Source", "Purpose"),
        ("Input", "Source", "Lower Potential"),
        ("Output", "Higher Potential", "Purpose"),
    ],
}


def generated_terms(system_id: str, node_count: int) -> list[str]:
    terms = _TERMS.get(system_id)
    if terms is not None:
        return list(terms)
    return [f"Node {position}" for position in range(1, node_count + 1)]


def build_generated_payload(system_id: str) -> dict[str, Any]:
    node_count = node_count_for(system_id)
    if node_count is None:
        raise NotFound(system_id, f"Unknown system: {system_id}")
    return {
        "name": system_id,
        "nodes": list(range(1, node_count + 1)),
        "termCharacters": [
            {"name": name, "index": position}
            for position, name in enumerate(generated_terms(system_id, node_count), start=1)
        ],
        "connectiveCharacters": [
            {"name": label, "fromTerm": from_term, "toTerm": to_term}
            for label, from_term, to_term in _CONNECTIVES.get(system_id, [])
        ],
        "navigationEdges": [],
    }


class GeneratedSystemSource(SystemSource):
    def __init__(self, normalizer: SystemPayloadNormalizer) -> None:
        self.normalizer = normalizer

    async def fetch_system(self, system_id: str) -> GraphModel:
        return self.build(system_id)

    async def fetch_all_systems(self) -> list[GraphModel]:
        return [self.build(name) for name in SYSTEM_NAMES]

    def build(self, system_id: str) -> GraphModel:
        normalized = system_id.strip().lower()
        payload = build_generated_payload(normalized)
        return self.normalizer.normalize(payload, requested_system_id=normalized)
