from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Final

from domain.models import ColorScheme, SystemConfig

SYSTEM_NAMES: Final[tuple[str, ...]] = (
    "monad",
    "dyad",
    "triad",
    "tetrad",
    "pentad",
    "hexad",
    "heptad",
    "octad",
    "ennead",
    "decad",
    "undecad",
    "dodecad",
)
MIN_NODE_COUNT: Final[int] = 1
MAX_NODE_COUNT: Final[int] = len(SYSTEM_NAMES)

_NODE_COUNTS: Final[dict[str, int]] = {
    name: position for position, name in enumerate(SYSTEM_NAMES, start=1)
}

_DESCRIPTIONS: Final[dict[str, str]] = {
    "monad": "Unity",
    "dyad": "Complementarity",
    "triad": "Dynamism",
    "tetrad": "Activity",
    "pentad": "Significance",
    "hexad": "Coalescence",
    "heptad": "Generation",
    "octad": "Completeness",
    "ennead": "Harmony",
    "decad": "Order",
    "undecad": "Creativity",
    "dodecad": "Perfection",
}

_NODE_FILLS: Final[dict[str, str]] = {
    "monad": "#4A90E2",
    "dyad": "#7B61FF",
    "triad": "#2BB673",
    "tetrad": "#F5A623",
    "pentad": "#D0021B",
    "hexad": "#50E3C2",
    "heptad": "#B8E986",
    "octad": "#9013FE",
    "ennead": "#417505",
    "decad": "#8B572A",
    "undecad": "#4A4A4A",
    "dodecad": "#BD10E0",
}


def normalize_system_id(value: object) -> str:
    return str(value or "").strip().lower()


def node_count_for(system_id: str) -> int | None:
    return _NODE_COUNTS.get(normalize_system_id(system_id))


def system_name_for(node_count: int) -> str | None:
    if MIN_NODE_COUNT <= node_count <= MAX_NODE_COUNT:
        return SYSTEM_NAMES[node_count - 1]
    return None


def capitalize_first(value: str) -> str:
    if not value:
        return ""
    return value[0].upper() + value[1:]


def default_system_configs() -> list[SystemConfig]:
    configs: list[SystemConfig] = []
    for name in SYSTEM_NAMES:
        node_count = _NODE_COUNTS[name]
        configs.append(
            SystemConfig(
                name=name,
                display_name=capitalize_first(name),
                node_count=node_count,
                k_notation=f"K{node_count}",
                description=_DESCRIPTIONS[name],
                color_scheme=ColorScheme(node_fill=_NODE_FILLS[name]),
            )
        )
    return configs


class SystemConfigCatalog:
    def __init__(self, configs: Iterable[SystemConfig] = ()) -> None:
        self._configs: dict[str, SystemConfig] = {}
        for config in configs:
            self._configs[config.name] = config

    @classmethod
    def with_defaults(cls, overrides: Iterable[SystemConfig] = ()) -> SystemConfigCatalog:
        catalog = cls(default_system_configs())
        for config in overrides:
            catalog._configs[config.name] = config
        return catalog

    @classmethod
    def from_mapping(cls, configs: Mapping[str, SystemConfig]) -> SystemConfigCatalog:
        return cls(configs.values())

    def __call__(self, system_id: str) -> SystemConfig | None:
        return self.lookup_system_config(system_id)

    def __len__(self) -> int:
        return len(self._configs)

    def lookup_system_config(self, system_id: str) -> SystemConfig | None:
        return self._configs.get(normalize_system_id(system_id))

    def all(self) -> list[SystemConfig]:
        return sorted(self._configs.values(), key=lambda config: (config.node_count, config.name))
