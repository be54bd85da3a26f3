from __future__ import annotations

from adapters.filesystem.system_config_repository import FileSystemSystemConfigRepository
from adapters.generated.source import GeneratedSystemSource
from adapters.graphql.client import GraphQLSystemSource
from adapters.layout.closed_form import ClosedFormLayoutEngine
from app.config import AppSettings
from domain.ports.systems import SystemSource
from domain.services.normalize_system_payload import SystemPayloadNormalizer
from domain.systems import SystemConfigCatalog


def build_config_catalog(settings: AppSettings) -> SystemConfigCatalog:
    return FileSystemSystemConfigRepository().load_catalog(settings.systems_config_dir)


def build_normalizer(
    settings: AppSettings,
    catalog: SystemConfigCatalog | None = None,
) -> SystemPayloadNormalizer:
    return SystemPayloadNormalizer(
        ClosedFormLayoutEngine(),
        catalog if catalog is not None else build_config_catalog(settings),
        viewport=settings.viewport.to_box(),
        fallback_size=settings.viewport.fallback_size,
    )


def build_system_source(
    settings: AppSettings,
    normalizer: SystemPayloadNormalizer | None = None,
) -> SystemSource:
    normalizer = normalizer or build_normalizer(settings)
    if settings.source == "graphql":
        graphql = settings.graphql
        if not graphql.endpoint:
            msg = "graphql.endpoint is required when source is graphql"
            raise ValueError(msg)
        return GraphQLSystemSource(
            graphql.endpoint,
            normalizer,
            timeout_seconds=graphql.timeout_seconds,
        )
    return GeneratedSystemSource(normalizer)
