from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.models import GraphModel, SystemConfig


class SystemConfigLookup(Protocol):
    def __call__(self, system_id: str) -> SystemConfig | None: ...


class SystemSource(Protocol):
    async def fetch_system(self, system_id: str) -> GraphModel: ...

    async def fetch_all_systems(self) -> Sequence[GraphModel]: ...
