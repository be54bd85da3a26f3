from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.services.viewport import ViewportBox

DEFAULT_CONFIG_PATH = Path("config/systematics.yaml")


class GraphQLSettings(BaseModel):
    endpoint: str = "http://localhost:8000/graphql"
    timeout_seconds: float = Field(default=10.0, gt=0)


class ViewportSettings(BaseModel):
    width: float = Field(default=800.0, gt=0)
    height: float = Field(default=800.0, gt=0)
    margin: float = Field(default=100.0, ge=0)
    fallback_size: float = Field(default=700.0, gt=0)

    def to_box(self) -> ViewportBox:
        return ViewportBox(self.width, self.height, self.margin)


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SYSTEMATICS_", env_nested_delimiter="__")

    title: str = "Systematics Graphs"
    source: Literal["graphql", "generated"] = "generated"
    graphql: GraphQLSettings = GraphQLSettings()
    viewport: ViewportSettings = ViewportSettings()
    systems_config_dir: Path | None = None
    log_level: str = "INFO"

    _yaml_path: ClassVar[Path | None] = None

    @field_validator("source", mode="before")
    @classmethod
    def normalize_source(cls, value: object) -> str:
        return str(value).strip().lower() if value else "generated"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        level = str(value or "INFO").strip().upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"Unknown log level: {value}"
            raise ValueError(msg)
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("SYSTEMATICS_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
