from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import ConfigError, resolve_config_path

_SLUG_RE = re.compile(r"^[a-z_]+$")


def _validate_slug(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{label} must be a string")
    if not _SLUG_RE.fullmatch(value):
        raise ValueError(f"{label} {value!r} must use only lowercase letters and '_'")
    return value


class CommandSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    handler: str
    private: bool = False
    rate_limit: int | None = None
    rate_limit_reset: int | None = None

    @field_validator("handler", mode="before")
    @classmethod
    def _validate_handler(cls, value: Any) -> Any:
        if not isinstance(value, str):
            raise ValueError("handler must be a string")
        cleaned = value.strip()
        module, sep, attr = cleaned.partition(":")
        if not sep or not module.strip() or not attr.strip():
            raise ValueError("handler must look like 'package.module:function'")
        return cleaned

    @field_validator("rate_limit", "rate_limit_reset", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any, info) -> Any:
        if isinstance(value, bool):
            raise ValueError(f"{info.field_name} must be an integer")
        return value

    @field_validator("rate_limit", "rate_limit_reset")
    @classmethod
    def _validate_positive(cls, value: int | None, info) -> int | None:
        if value is not None and value < 1:
            raise ValueError(f"{info.field_name} must be positive")
        return value


class StreamCommandSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        env_prefix="STREAMCMD__",
        env_nested_delimiter="__",
    )

    operator: str
    strict_aliases: bool = False
    debug: bool = False
    commands: dict[str, CommandSettings] = Field(default_factory=dict)
    aliases: dict[str, str] = Field(default_factory=dict)

    @field_validator("operator", mode="before")
    @classmethod
    def _validate_operator(cls, value: Any) -> Any:
        if not isinstance(value, str):
            raise ValueError("operator must be a string")
        cleaned = value.strip().removeprefix("@").strip()
        if not cleaned:
            raise ValueError("operator must be a non-empty string")
        return cleaned

    @model_validator(mode="after")
    def _validate_slugs(self) -> StreamCommandSettings:
        for slug in self.commands:
            _validate_slug(slug, "command")
        for alias, target in self.aliases.items():
            _validate_slug(alias, "alias")
            _validate_slug(target, f"target of alias {alias!r}")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(
    path: str | Path | None = None,
) -> tuple[StreamCommandSettings, Path]:
    cfg_path = resolve_config_path(path)
    if cfg_path.exists() and not cfg_path.is_file():
        raise ConfigError(f"Config path {cfg_path} exists but is not a file.") from None
    if not cfg_path.exists():
        raise ConfigError(f"Missing config file {cfg_path}.") from None
    return _load_settings_from_path(cfg_path), cfg_path


def validate_settings_data(
    data: dict[str, Any], *, config_path: Path
) -> StreamCommandSettings:
    try:
        return StreamCommandSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc


def _load_settings_from_path(cfg_path: Path) -> StreamCommandSettings:
    cfg = dict(StreamCommandSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "StreamCommandSettingsBound",
        (StreamCommandSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    try:
        return Bound()
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {cfg_path}: {exc}") from exc
    except Exception as exc:  # pragma: no cover - safety net
        raise ConfigError(f"Failed to load config {cfg_path}: {exc}") from exc
