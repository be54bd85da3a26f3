from __future__ import annotations

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from adapters.layout.closed_form import ClosedFormLayoutEngine
from app.config import AppSettings, GraphQLSettings, ViewportSettings
from domain.services.normalize_system_payload import SystemPayloadNormalizer
from domain.systems import SystemConfigCatalog


def _clear_systematics_env() -> None:
    for key in list(os.environ):
        if key.startswith("SYSTEMATICS_"):
            os.environ.pop(key, None)


_clear_systematics_env()


@pytest.fixture(autouse=True)
def clear_systematics_env() -> Generator[None, None, None]:
    _clear_systematics_env()
    yield
    _clear_systematics_env()


@pytest.fixture
def layout_engine() -> ClosedFormLayoutEngine:
    return ClosedFormLayoutEngine()


@pytest.fixture
def catalog() -> SystemConfigCatalog:
    return SystemConfigCatalog.with_defaults()


@pytest.fixture
def normalizer(
    layout_engine: ClosedFormLayoutEngine, catalog: SystemConfigCatalog
) -> SystemPayloadNormalizer:
    return SystemPayloadNormalizer(layout_engine, catalog)


@pytest.fixture
def app_settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        title="Test Systems",
        source="generated",
        graphql=GraphQLSettings(endpoint="http://stubbed-graphql.local/graphql"),
        viewport=ViewportSettings(),
        systems_config_dir=None,
        log_level="INFO",
    )


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return app_settings.model_copy(update=overrides)

    return _factory
