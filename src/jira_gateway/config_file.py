"""Typed parsing and validation for gateway config files.

The file holds non-secret settings only. The schema forbids unknown keys, so an API
token pasted into the file is rejected instead of being silently persisted.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class GatewayConfigFile:
    """Validated gateway config values loaded from a TOML file."""

    jira_url: str | None = None
    jira_email: str | None = None
    auth_type: str | None = None
    request_timeout_seconds: float | None = None
    cache_enabled: bool | None = None
    cache_ttl_seconds: float | None = None
    cache_max_size: int | None = None
    cache_dir: str | None = None
    snapshot_interval_seconds: float | None = None
    enhanced_error_handling: bool | None = None


class _GatewaySectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    jira_url: str | None = None
    jira_email: str | None = None
    auth_type: str | None = None
    request_timeout_seconds: float | None = None
    cache_enabled: bool | None = None
    cache_ttl_seconds: float | None = None
    cache_max_size: int | None = None
    cache_dir: str | None = None
    snapshot_interval_seconds: float | None = None
    enhanced_error_handling: bool | None = None

    @field_validator("auth_type")
    @classmethod
    def _validate_auth_type(cls, value: str | None) -> str | None:
        if value is None:
            return None
        mode = value.strip().lower()
        if mode not in {"basic", "bearer"}:
            raise ValueError
        return mode

    @field_validator("jira_url", "jira_email", "cache_dir")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("cache_max_size")
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError
        return value

    @field_validator(
        "request_timeout_seconds", "cache_ttl_seconds", "snapshot_interval_seconds"
    )
    @classmethod
    def _validate_positive_seconds(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0:
            raise ValueError
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    gateway: _GatewaySectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_gateway_config_file(path: Path) -> GatewayConfigFile:
    """Load and validate a gateway TOML config file."""
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    raw_payload = path.read_text(encoding="utf-8")
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.gateway
    return GatewayConfigFile(
        jira_url=section.jira_url,
        jira_email=section.jira_email,
        auth_type=section.auth_type,
        request_timeout_seconds=section.request_timeout_seconds,
        cache_enabled=section.cache_enabled,
        cache_ttl_seconds=section.cache_ttl_seconds,
        cache_max_size=section.cache_max_size,
        cache_dir=section.cache_dir,
        snapshot_interval_seconds=section.snapshot_interval_seconds,
        enhanced_error_handling=section.enhanced_error_handling,
    )
