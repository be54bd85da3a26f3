from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

import orjson

from domain.errors import NotFound, ParseError, SystematicsError, UnsupportedSystemSize
from domain.models import (
    ColorScheme,
    Connective,
    Coordinate,
    DecorativeCircle,
    GeometryLayout,
    GraphModel,
    NodePosition,
    UndirectedEdge,
    complete_graph_edges,
)
from domain.ports.layout import LayoutEngine
from domain.ports.systems import SystemConfigLookup
from domain.services.viewport import API_VIEWPORT, ViewportBox, fit_to_box
from domain.systems import capitalize_first, node_count_for, normalize_system_id, system_name_for

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_SIZE: Final[float] = 700.0
COORDINATE_TOLERANCE: Final[float] = 1e-6

_FLAT_KEYS: Final[frozenset[str]] = frozenset(
    {
        "nodes",
        "edges",
        "points",
        "termCharacters",
        "connectiveCharacters",
        "navigationEdges",
        "coherenceAttribute",
    }
)
_POSITIONAL_KEYS: Final[frozenset[str]] = frozenset(
    {"order", "terms", "coordinates", "colours", "lines", "links", "connectives", "coherence"}
)
_LINE_LINK_TYPE = "LINE"
_CONNECTIVE_LINK_TYPE = "CONNECTIVE"


class PayloadVariant(str, Enum):
    FLAT = "flat"
    POSITIONAL = "positional"
    SLICES = "slices"
    LEGACY = "legacy"


@dataclass
class _TermSlot:
    name: str | None = None
    color: str | None = None
    coordinate: Coordinate | None = None


@dataclass
class _PendingConnective:
    label: str
    base_slot: int
    target_slot: int


@dataclass
class _Extraction:
    variant: PayloadVariant
    name: str = ""
    display_name: str = ""
    k_notation: str = ""
    description: str = ""
    node_count: int | None = None
    terms: dict[int, _TermSlot] = field(default_factory=dict)
    points: dict[int, Coordinate] = field(default_factory=dict)
    edges: list[UndirectedEdge] | None = None
    connectives: list[Connective] = field(default_factory=list)
    pending_connectives: list[_PendingConnective] = field(default_factory=list)
    navigation_edges: dict[int, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def drop(self, message: str) -> None:
        logger.warning("Dropping %s (%s payload)", message, self.variant.value)
        self.warnings.append(f"dropped {message}")

    def slot(self, value: Any, what: str) -> int | None:
        position = _as_int(value)
        if position is None or position <= 0:
            self.drop(f"{what} with invalid position {value!r}")
            return None
        return position - 1

    def term(self, slot: int) -> _TermSlot:
        return self.terms.setdefault(slot, _TermSlot())

    def add_edge(self, first: int | None, second: int | None, raw: Any) -> None:
        if self.edges is None:
            self.edges = []
        if first is None or second is None:
            return
        if first == second:
            self.drop(f"self-loop edge {raw!r}")
            return
        self.edges.append(UndirectedEdge.of(first, second))


def parse_payload(raw: bytes | str) -> Any:
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        msg = f"Malformed JSON payload: {exc}"
        raise ParseError(msg) from exc


def unwrap_system_payload(payload: Any, requested_system_id: str | None = None) -> Any:
    if isinstance(payload, (bytes, str)):
        payload = parse_payload(payload)
    system_id = requested_system_id or "unknown"
    if payload is None:
        raise NotFound(system_id)
    if not isinstance(payload, Mapping):
        msg = f"Expected a JSON object for system {system_id}, got {type(payload).__name__}"
        raise ParseError(msg)
    if "data" in payload and isinstance(payload.get("data"), (Mapping, type(None))):
        data = payload.get("data")
        if data is None:
            raise NotFound(system_id)
        payload = data
    if "system" in payload and not _looks_like_system(payload):
        system = payload.get("system")
        if system is None:
            raise NotFound(system_id)
        if not isinstance(system, Mapping):
            msg = f"Expected system object for {system_id}, got {type(system).__name__}"
            raise ParseError(msg)
        payload = system
    return payload


def detect_variant(payload: Mapping[str, Any]) -> PayloadVariant:
    keys = set(payload.keys())
    if "geometry" in keys or "vocabulary" in keys:
        return PayloadVariant.LEGACY
    if "slices" in keys:
        return PayloadVariant.SLICES
    if keys & _FLAT_KEYS:
        return PayloadVariant.FLAT
    if keys & _POSITIONAL_KEYS:
        return PayloadVariant.POSITIONAL
    if "name" in keys:
        return PayloadVariant.FLAT
    msg = f"Payload does not match any known system schema (keys: {sorted(keys)})"
    raise ParseError(msg)


class SystemPayloadNormalizer:
    def __init__(
        self,
        layout_engine: LayoutEngine,
        config_lookup: SystemConfigLookup | None = None,
        *,
        viewport: ViewportBox = API_VIEWPORT,
        fallback_size: float = DEFAULT_FALLBACK_SIZE,
    ) -> None:
        self.layout_engine = layout_engine
        self.config_lookup = config_lookup
        self.viewport = viewport
        self.fallback_size = fallback_size

    def normalize(
        self,
        payload: Any,
        config_lookup: SystemConfigLookup | None = None,
        *,
        requested_system_id: str | None = None,
    ) -> GraphModel:
        system_payload = unwrap_system_payload(payload, requested_system_id)
        variant = detect_variant(system_payload)
        logger.debug("Normalizing %s payload for %s", variant.value, requested_system_id)
        extraction = _EXTRACTORS[variant](system_payload)
        lookup = config_lookup if config_lookup is not None else self.config_lookup
        return self._build(extraction, lookup, requested_system_id)

    def normalize_many(
        self,
        payload: Any,
        config_lookup: SystemConfigLookup | None = None,
    ) -> list[GraphModel]:
        if isinstance(payload, (bytes, str)):
            payload = parse_payload(payload)
        entries: Any = payload
        if isinstance(entries, Mapping):
            entries = entries.get("data", entries)
            if isinstance(entries, Mapping):
                entries = entries.get("allSystems")
        if not isinstance(entries, list):
            msg = "Expected a list of systems"
            raise ParseError(msg)
        models: list[GraphModel] = []
        for entry in entries:
            try:
                models.append(self.normalize(entry, config_lookup))
            except SystematicsError as exc:
                logger.warning("Skipping system entry that failed to normalize: %s", exc)
        return models

    def _build(
        self,
        extraction: _Extraction,
        config_lookup: SystemConfigLookup | None,
        requested_system_id: str | None,
    ) -> GraphModel:
        node_count = self._resolve_node_count(extraction, requested_system_id)
        system_id = normalize_system_id(extraction.name or requested_system_id)
        if not system_id:
            system_id = system_name_for(node_count) or f"k{node_count}"
        self._drop_out_of_range(extraction, node_count)

        nodes, circles = self._resolve_nodes(extraction, node_count)
        edges = self._resolve_edges(extraction, node_count)
        terms = {slot: term.name for slot, term in sorted(extraction.terms.items()) if term.name}
        term_colors = {
            slot: term.color for slot, term in sorted(extraction.terms.items()) if term.color
        }
        connectives = list(extraction.connectives)
        for pending in extraction.pending_connectives:
            from_term = terms.get(pending.base_slot)
            to_term = terms.get(pending.target_slot)
            if not from_term or not to_term:
                extraction.drop(
                    f"connective {pending.label!r} with unresolved terms "
                    f"({pending.base_slot + 1}, {pending.target_slot + 1})"
                )
                continue
            connectives.append(Connective(pending.label, from_term, to_term))

        config = config_lookup(system_id) if config_lookup is not None else None
        if config is not None:
            display_name = config.display_name
            k_notation = config.resolved_k_notation()
            description = config.resolved_description()
            color_scheme = config.color_scheme
        else:
            display_name = extraction.display_name or capitalize_first(system_id)
            k_notation = extraction.k_notation or f"K{node_count}"
            description = extraction.description or display_name
            color_scheme = ColorScheme()

        return GraphModel(
            system_id=system_id,
            display_name=display_name,
            k_notation=k_notation,
            description=description,
            node_count=node_count,
            nodes=tuple(nodes),
            edges=frozenset(edges),
            terms=terms,
            term_colors=term_colors,
            connectives=tuple(connectives),
            navigation_edges=dict(extraction.navigation_edges),
            color_scheme=color_scheme,
            decorative_circles=tuple(circles),
            warnings=tuple(extraction.warnings),
        )

    def _resolve_node_count(self, extraction: _Extraction, requested_system_id: str | None) -> int:
        if extraction.node_count is not None and extraction.node_count > 0:
            return extraction.node_count
        named = node_count_for(extraction.name or requested_system_id or "")
        if named is not None:
            return named
        slots = list(extraction.terms.keys()) + list(extraction.points.keys())
        return max(slots) + 1 if slots else 0

    def _drop_out_of_range(self, extraction: _Extraction, node_count: int) -> None:
        for slot in sorted(extraction.terms):
            if slot >= node_count:
                extraction.drop(f"term at position {slot + 1} beyond {node_count} nodes")
                del extraction.terms[slot]
        for slot in sorted(extraction.points):
            if slot >= node_count:
                extraction.drop(f"coordinate at position {slot + 1} beyond {node_count} nodes")
                del extraction.points[slot]
        for slot in sorted(extraction.navigation_edges):
            if slot >= node_count:
                extraction.drop(f"navigation edge at node {slot + 1} beyond {node_count} nodes")
                del extraction.navigation_edges[slot]
        if extraction.edges is not None:
            kept: list[UndirectedEdge] = []
            for edge in extraction.edges:
                if edge.b >= node_count:
                    extraction.drop(f"edge ({edge.a + 1}, {edge.b + 1}) beyond {node_count} nodes")
                    continue
                kept.append(edge)
            extraction.edges = kept

    def _resolve_nodes(
        self, extraction: _Extraction, node_count: int
    ) -> tuple[list[NodePosition], list[DecorativeCircle]]:
        if node_count == 0:
            return [], []
        raw: dict[int, Coordinate] = {}
        for slot in range(node_count):
            term = extraction.terms.get(slot)
            embedded = term.coordinate if term else None
            point = extraction.points.get(slot)
            if embedded is not None and point is not None and not _same_point(embedded, point):
                message = (
                    f"term coordinate at position {slot + 1} disagrees with points entry "
                    f"({embedded.x}, {embedded.y}) != ({point.x}, {point.y}); using term coordinate"
                )
                logger.warning("Data quality issue: %s", message)
                extraction.warnings.append(message)
            chosen = embedded if embedded is not None else point
            if chosen is not None:
                raw[slot] = chosen

        if not raw:
            geometry = self._fallback_geometry(node_count)
            nodes = [
                NodePosition(slot, point.x, point.y) for slot, point in enumerate(geometry.nodes)
            ]
            return nodes, list(geometry.decorative_circles)

        slots = sorted(raw)
        placed = dict(zip(slots, fit_to_box([raw[slot] for slot in slots], self.viewport)))
        missing = [slot for slot in range(node_count) if slot not in placed]
        if missing:
            geometry = self._fallback_geometry(node_count)
            for slot in missing:
                extraction.warnings.append(f"no coordinate for position {slot + 1}; using layout")
                logger.warning("No coordinate for position %s; using layout position", slot + 1)
                placed[slot] = Coordinate(geometry.nodes[slot].x, geometry.nodes[slot].y)
        nodes = [
            NodePosition(slot, placed[slot].x, placed[slot].y, placed[slot].z)
            for slot in range(node_count)
        ]
        return nodes, []

    def _resolve_edges(self, extraction: _Extraction, node_count: int) -> list[UndirectedEdge]:
        if extraction.edges is None:
            return complete_graph_edges(node_count)
        return sorted(set(extraction.edges))

    def _fallback_geometry(self, node_count: int) -> GeometryLayout:
        try:
            return self.layout_engine.layout(
                node_count,
                self.viewport.center_x,
                self.viewport.center_y,
                self.fallback_size,
            )
        except UnsupportedSystemSize as exc:
            msg = f"Cannot lay out {node_count} nodes without upstream coordinates"
            raise ParseError(msg) from exc


def normalize_system_payload(
    payload: Any,
    config_lookup: SystemConfigLookup | None,
    *,
    layout_engine: LayoutEngine,
    requested_system_id: str | None = None,
    viewport: ViewportBox = API_VIEWPORT,
) -> GraphModel:
    normalizer = SystemPayloadNormalizer(layout_engine, config_lookup, viewport=viewport)
    return normalizer.normalize(payload, requested_system_id=requested_system_id)


def _extract_flat(payload: Mapping[str, Any]) -> _Extraction:
    extraction = _Extraction(PayloadVariant.FLAT)
    extraction.name = _as_text(payload.get("name"))
    extraction.description = _as_text(payload.get("coherenceAttribute"))

    raw_nodes = payload.get("nodes")
    if isinstance(raw_nodes, list):
        seen: set[int] = set()
        for raw in raw_nodes:
            slot = extraction.slot(raw, "node")
            if slot is not None:
                seen.add(slot)
        if seen:
            extraction.node_count = len(seen)

    ordered_terms: list[tuple[int, Mapping[str, Any]]] = []
    for raw in _mappings(payload.get("termCharacters")):
        slot = extraction.slot(raw.get("index"), f"term {_as_text(raw.get('name'))!r}")
        if slot is not None:
            ordered_terms.append((slot, raw))
    for slot, raw in sorted(ordered_terms, key=lambda item: item[0]):
        term = extraction.term(slot)
        term.name = _as_text(raw.get("name")) or None
        term.color = _as_text(raw.get("hexColor")) or None
        term.coordinate = _coordinate(raw.get("coordinate"))

    raw_points = payload.get("points")
    if isinstance(raw_points, list):
        for slot, raw in enumerate(raw_points):
            coordinate = _coordinate(raw)
            if coordinate is not None:
                extraction.points[slot] = coordinate

    raw_edges = payload.get("edges")
    if isinstance(raw_edges, list):
        extraction.edges = []
        for raw in _mappings(raw_edges):
            extraction.add_edge(
                extraction.slot(raw.get("from"), "edge endpoint"),
                extraction.slot(raw.get("to"), "edge endpoint"),
                dict(raw),
            )

    for raw in _mappings(payload.get("connectiveCharacters")):
        label = _as_text(raw.get("name"))
        from_term = _as_text(raw.get("fromTerm"))
        to_term = _as_text(raw.get("toTerm"))
        if not label or not from_term or not to_term:
            extraction.drop(f"incomplete connective {dict(raw)!r}")
            continue
        extraction.connectives.append(Connective(label, from_term, to_term))

    _extract_navigation(payload, extraction)
    return extraction


def _extract_positional(payload: Mapping[str, Any]) -> _Extraction:
    extraction = _Extraction(PayloadVariant.POSITIONAL)
    extraction.name = _as_text(payload.get("name"))
    extraction.description = _as_text(payload.get("coherence"))
    order = _as_int(payload.get("order"))
    if order is not None and order > 0:
        extraction.node_count = order
        if not extraction.name:
            extraction.name = system_name_for(order) or ""

    for slot, raw in _sorted_by_position(extraction, payload.get("terms"), "term"):
        extraction.term(slot).name = _character_value(raw) or None
    for slot, raw in _sorted_by_position(extraction, payload.get("colours"), "colour"):
        extraction.term(slot).color = _as_text(raw.get("value")) or None
    for slot, raw in _sorted_by_position(extraction, payload.get("coordinates"), "coordinate"):
        coordinate = _coordinate(raw)
        if coordinate is not None:
            extraction.points[slot] = coordinate

    _extract_links(payload, extraction)
    _extract_navigation(payload, extraction)
    return extraction


def _extract_slices(payload: Mapping[str, Any]) -> _Extraction:
    extraction = _Extraction(PayloadVariant.SLICES)
    extraction.name = _as_text(payload.get("name"))
    extraction.description = _as_text(payload.get("coherence"))
    slices = list(_mappings(payload.get("slices")))
    order = _as_int(payload.get("order"))
    if order is None and slices:
        order = _as_int(slices[0].get("order"))
    if order is not None and order > 0:
        extraction.node_count = order
        if not extraction.name:
            extraction.name = system_name_for(order) or ""

    for slot, raw in _sorted_by_position(extraction, slices, "slice"):
        term_payload = raw.get("term")
        if isinstance(term_payload, Mapping):
            term = extraction.term(slot)
            term.name = _character_value(term_payload) or None
            term.coordinate = _coordinate(term_payload.get("coordinate"))
        colour = raw.get("colour")
        if isinstance(colour, Mapping):
            extraction.term(slot).color = _as_text(colour.get("value")) or None
        coordinate = _coordinate(raw.get("coordinate"))
        if coordinate is not None:
            extraction.points[slot] = coordinate

    _extract_links(payload, extraction)
    _extract_navigation(payload, extraction)
    return extraction


def _extract_legacy(payload: Mapping[str, Any]) -> _Extraction:
    extraction = _Extraction(PayloadVariant.LEGACY)
    geometry = payload.get("geometry")
    geometry = geometry if isinstance(geometry, Mapping) else {}
    vocabulary = payload.get("vocabulary")
    vocabulary = vocabulary if isinstance(vocabulary, Mapping) else {}

    extraction.name = _as_text(geometry.get("system_name")) or _as_text(
        vocabulary.get("system_name")
    )
    extraction.display_name = _as_text(vocabulary.get("display_name"))
    extraction.k_notation = _as_text(vocabulary.get("k_notation")) or _as_text(
        geometry.get("k_notation")
    )
    extraction.description = _as_text(vocabulary.get("description"))
    node_count = _as_int(geometry.get("node_count"))
    if node_count is not None and node_count > 0:
        extraction.node_count = node_count

    raw_indexes = geometry.get("indexes")
    raw_coordinates = geometry.get("coordinates")
    if isinstance(raw_coordinates, list):
        indexes = raw_indexes if isinstance(raw_indexes, list) else None
        for rank, raw in enumerate(raw_coordinates):
            slot: int | None = rank
            if indexes is not None and rank < len(indexes):
                slot = extraction.slot(indexes[rank], "coordinate index")
            coordinate = _coordinate(raw)
            if slot is not None and coordinate is not None:
                extraction.points[slot] = coordinate

    raw_edges = geometry.get("edges")
    if isinstance(raw_edges, list):
        extraction.edges = []
        for raw in raw_edges:
            if isinstance(raw, Mapping):
                first, second = raw.get("from"), raw.get("to")
            elif isinstance(raw, (list, tuple)) and len(raw) == 2:
                first, second = raw[0], raw[1]
            else:
                extraction.drop(f"malformed edge {raw!r}")
                continue
            extraction.add_edge(
                extraction.slot(first, "edge endpoint"),
                extraction.slot(second, "edge endpoint"),
                raw,
            )

    raw_terms = vocabulary.get("term_characters")
    if isinstance(raw_terms, list):
        for slot, raw in enumerate(raw_terms):
            name = _as_text(raw)
            if name:
                extraction.term(slot).name = name

    raw_connectives = vocabulary.get("connective_characters")
    if isinstance(raw_connectives, list):
        for raw in raw_connectives:
            connective = _legacy_connective(raw)
            if connective is None:
                extraction.drop(f"malformed connective {raw!r}")
                continue
            extraction.connectives.append(connective)

    _extract_navigation(payload, extraction)
    return extraction


def _extract_links(payload: Mapping[str, Any], extraction: _Extraction) -> None:
    lines: list[Mapping[str, Any]] = list(_mappings(payload.get("lines")))
    connectives: list[Mapping[str, Any]] = list(_mappings(payload.get("connectives")))
    for link in _mappings(payload.get("links")):
        link_type = _as_text(link.get("linkType")).upper()
        if link_type == _LINE_LINK_TYPE:
            lines.append(link)
        elif link_type == _CONNECTIVE_LINK_TYPE:
            connectives.append(link)
        else:
            extraction.drop(f"link with unknown type {link.get('linkType')!r}")

    if isinstance(payload.get("lines"), list) or lines:
        extraction.edges = []
    for link in lines:
        extraction.add_edge(
            extraction.slot(link.get("basePosition"), "line endpoint"),
            extraction.slot(link.get("targetPosition"), "line endpoint"),
            _as_text(link.get("id")) or dict(link),
        )

    for link in connectives:
        label = _character_value(link) or _as_text(link.get("tag"))
        if not label:
            extraction.drop(f"connective link without label {_as_text(link.get('id'))!r}")
            continue
        base_slot = extraction.slot(link.get("basePosition"), f"connective {label!r}")
        target_slot = extraction.slot(link.get("targetPosition"), f"connective {label!r}")
        if base_slot is None or target_slot is None:
            continue
        extraction.pending_connectives.append(_PendingConnective(label, base_slot, target_slot))


def _extract_navigation(payload: Mapping[str, Any], extraction: _Extraction) -> None:
    for raw in _mappings(payload.get("navigationEdges")):
        target = normalize_system_id(raw.get("targetSystem"))
        if not target:
            extraction.drop(f"navigation edge without target {dict(raw)!r}")
            continue
        slot = extraction.slot(raw.get("node"), "navigation edge")
        if slot is not None:
            extraction.navigation_edges[slot] = target


def _sorted_by_position(
    extraction: _Extraction, entries: Any, what: str
) -> list[tuple[int, Mapping[str, Any]]]:
    ordered: list[tuple[int, Mapping[str, Any]]] = []
    for raw in _mappings(entries):
        slot = extraction.slot(raw.get("position"), what)
        if slot is not None:
            ordered.append((slot, raw))
    return sorted(ordered, key=lambda item: item[0])


def _legacy_connective(raw: Any) -> Connective | None:
    if isinstance(raw, Mapping):
        label = _as_text(raw.get("label") or raw.get("name"))
        from_term = _as_text(raw.get("from_term") or raw.get("fromTerm"))
        to_term = _as_text(raw.get("to_term") or raw.get("toTerm"))
    elif isinstance(raw, (list, tuple)) and len(raw) == 3:
        label, from_term, to_term = (_as_text(item) for item in raw)
    else:
        return None
    if not label or not from_term or not to_term:
        return None
    return Connective(label, from_term, to_term)


def _looks_like_system(payload: Mapping[str, Any]) -> bool:
    keys = set(payload.keys())
    return bool(keys & (_FLAT_KEYS | _POSITIONAL_KEYS | {"slices", "geometry", "vocabulary"}))


def _mappings(value: Any) -> Iterable[Mapping[str, Any]]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _character_value(payload: Mapping[str, Any]) -> str:
    character = payload.get("character")
    if isinstance(character, Mapping):
        value = _as_text(character.get("value"))
        if value:
            return value
    return _as_text(payload.get("value")) or _as_text(payload.get("name"))


def _coordinate(value: Any) -> Coordinate | None:
    if not isinstance(value, Mapping):
        return None
    x = _as_float(value.get("x"))
    y = _as_float(value.get("y"))
    if x is None or y is None:
        return None
    return Coordinate(x, y, _as_float(value.get("z")))


def _same_point(first: Coordinate, second: Coordinate) -> bool:
    return (
        abs(first.x - second.x) <= COORDINATE_TOLERANCE
        and abs(first.y - second.y) <= COORDINATE_TOLERANCE
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


_EXTRACTORS = {
    PayloadVariant.FLAT: _extract_flat,
    PayloadVariant.POSITIONAL: _extract_positional,
    PayloadVariant.SLICES: _extract_slices,
    PayloadVariant.LEGACY: _extract_legacy,
}
