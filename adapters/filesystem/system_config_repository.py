from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from pydantic import ValidationError

from adapters.filesystem.json_utils import load_json_object
from domain.errors import ParseError
from domain.models import SystemConfig
from domain.systems import SystemConfigCatalog

logger = logging.getLogger(__name__)


class FileSystemSystemConfigRepository:
    def load_all(self, directory: Path) -> List[SystemConfig]:
        configs: List[SystemConfig] = []
        for path in sorted(self._iter_paths(directory)):
            try:
                configs.append(self.load_by_path(path))
            except (ParseError, ValidationError) as exc:
                logger.warning("Skipping invalid system config %s: %s", path, exc)
        return configs

    def load_by_path(self, path: Path) -> SystemConfig:
        return SystemConfig.model_validate(load_json_object(path))

    def load_catalog(self, directory: Path | None) -> SystemConfigCatalog:
        if directory is None:
            return SystemConfigCatalog.with_defaults()
        if not directory.is_dir():
            msg = f"System config directory not found: {directory}"
            raise FileNotFoundError(msg)
        return SystemConfigCatalog.with_defaults(self.load_all(directory))

    def _iter_paths(self, directory: Path) -> Iterable[Path]:
        if not directory.exists():
            return []
        return directory.glob("*.json")
