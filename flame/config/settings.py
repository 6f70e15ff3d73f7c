"""Process configuration for the transfer service.

Values come from flat environment variables (or ``.env``) such as ``DB_PATH``
and ``PIN_CATEGORIES_BY_DEFAULT``; each section model names the variables it
reads through its fields' validation aliases.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


class RuntimeConfig(BaseModel):
    """Where the store lives and how the process logs."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    db_path: str = Field(default="/data/flame.db", validation_alias="DB_PATH")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    use_loguru: bool = Field(default=True, validation_alias="LOG_USE_LOGURU")

    @field_validator("log_level", mode="before")
    @classmethod
    def _known_level(cls, value: Any) -> str:
        level = str(value or "INFO").strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level {value!r}; expected one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def _optional_path(cls, value: Any) -> str | None:
        text = "" if value is None else str(value).strip()
        return text or None

    @field_validator("use_loguru", mode="before")
    @classmethod
    def _loguru_flag(cls, value: Any) -> bool:
        return parse_bool(value)


class DashboardConfig(BaseModel):
    """Settings the dashboard shares with the transfer engine."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pin_categories_by_default: bool = Field(
        default=True,
        validation_alias=AliasChoices("PIN_CATEGORIES_BY_DEFAULT", "PIN_CATEGORIES"),
    )
    product_name: str = Field(default="flame", validation_alias="PRODUCT_NAME")
    allowed_origins: tuple[str, ...] = Field(default=(), validation_alias="ALLOWED_ORIGINS")

    @field_validator("pin_categories_by_default", mode="before")
    @classmethod
    def _pin_flag(cls, value: Any) -> bool:
        return parse_bool(value)

    @field_validator("product_name", mode="before")
    @classmethod
    def _slug(cls, value: Any) -> str:
        # used verbatim in export filenames
        name = str(value or "flame").strip().lower()
        if not name.replace("-", "").replace("_", "").isalnum():
            raise ValueError(f"Invalid product name: {value!r}")
        return name

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _origin_list(cls, value: Any) -> tuple[str, ...]:
        if not value:
            return ()
        items = value.split(",") if isinstance(value, str) else value
        return tuple(str(item).strip() for item in items if str(item).strip())


@dataclass(frozen=True)
class AppConfig:
    runtime: RuntimeConfig
    dashboard: DashboardConfig


def _env_names(field: FieldInfo) -> tuple[str, ...]:
    alias = field.validation_alias
    if isinstance(alias, str):
        return (alias,)
    if isinstance(alias, AliasChoices):
        return tuple(choice for choice in alias.choices if isinstance(choice, str))
    return ()


def _section_values(section: type[BaseModel], source: Mapping[str, Any]) -> dict[str, Any]:
    """Pick a section's fields out of a flat mapping of variable names."""
    values: dict[str, Any] = {}
    for name, field in section.model_fields.items():
        for env_name in _env_names(field):
            if env_name in source:
                values[name] = source[env_name]
                break
    return values


class Settings(BaseSettings):
    """Environment-backed settings; ``.env`` in the working directory is read too."""

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)

    @model_validator(mode="before")
    @classmethod
    def _flat_env_into_sections(cls, data: Any) -> Any:
        """Fill each section from flat variables; explicit section values win."""
        if not isinstance(data, dict):
            return data

        source = {**os.environ, **data}
        merged = dict(data)
        for name, field in cls.model_fields.items():
            section = field.annotation
            if not (isinstance(section, type) and issubclass(section, BaseModel)):
                continue
            from_env = _section_values(section, source)
            explicit = merged.get(name)
            if isinstance(explicit, dict):
                merged[name] = {**from_env, **explicit}
            elif explicit is None and from_env:
                merged[name] = from_env
        return merged

    @model_validator(mode="after")
    def _warn_on_memory_db(self) -> Settings:
        if self.runtime.db_path == ":memory:":
            logger.warning("DB_PATH is ':memory:'; imported data will not survive a restart")
        return self

    def as_app_config(self) -> AppConfig:
        return AppConfig(runtime=self.runtime, dashboard=self.dashboard)


def load_config(**overrides: Any) -> AppConfig:
    """Build the process configuration.

    Overrides are keyed by section, e.g. ``load_config(runtime={"db_path": ...})``,
    and take precedence over the environment.

    Raises:
        RuntimeError: A value failed validation.
    """
    try:
        return Settings(**overrides).as_app_config()
    except ValidationError as exc:
        raise RuntimeError(f"Configuration validation failed: {exc}") from exc


class ConfigHelper:
    """Raw access to environment variables that have no settings field."""

    @staticmethod
    def get(key: str, default: str | None = None) -> str:
        if key in os.environ:
            return os.environ[key]
        if default is None:
            raise ValueError(f"Configuration key '{key}' not found and no default provided")
        return default


Config = ConfigHelper
