"""Centralised, injectable configuration for the Jira gateway."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Self

from dotenv import load_dotenv

from .config_file import GatewayConfigFile
from .exceptions import InvalidEnvVarError

DEFAULT_CACHE_DIR = str(Path.home() / ".cache" / "jira-gateway")


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable configuration object for the gateway.

    Load from environment with `GatewayConfig.from_env()` or construct directly for testing.
    Reconfiguration means building a new instance and rebuilding the services from it.
    """

    # Connection and credentials
    jira_url: str = ""
    jira_email: str = ""
    jira_api_token: str = ""
    auth_type: str = "basic"
    request_timeout_seconds: float = 10.0

    # Cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = 300.0
    cache_max_size: int = 100
    cache_dir: str = DEFAULT_CACHE_DIR
    snapshot_interval_seconds: float = 60.0

    # Error reporting
    enhanced_error_handling: bool = True

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            GatewayConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            jira_url=os.getenv("JIRA_URL", "").strip(),
            jira_email=os.getenv("JIRA_EMAIL", "").strip(),
            jira_api_token=os.getenv("JIRA_API_TOKEN", "").strip(),
            auth_type=os.getenv("JIRA_AUTH_TYPE", "basic").strip().lower() or "basic",
            request_timeout_seconds=_parse_positive_float(
                os.getenv("JIRA_REQUEST_TIMEOUT_SECONDS", "10"),
                env_name="JIRA_REQUEST_TIMEOUT_SECONDS",
            ),
            cache_enabled=_parse_bool(
                os.getenv("JIRA_CACHE_ENABLED", "true"), env_name="JIRA_CACHE_ENABLED"
            ),
            cache_ttl_seconds=_parse_positive_float(
                os.getenv("JIRA_CACHE_TTL_SECONDS", "300"), env_name="JIRA_CACHE_TTL_SECONDS"
            ),
            cache_max_size=_parse_positive_int(
                os.getenv("JIRA_CACHE_MAX_SIZE", "100"), env_name="JIRA_CACHE_MAX_SIZE"
            ),
            cache_dir=os.getenv("JIRA_CACHE_DIR", "").strip() or DEFAULT_CACHE_DIR,
            snapshot_interval_seconds=_parse_positive_float(
                os.getenv("JIRA_SNAPSHOT_INTERVAL_SECONDS", "60"),
                env_name="JIRA_SNAPSHOT_INTERVAL_SECONDS",
            ),
            enhanced_error_handling=_parse_bool(
                os.getenv("JIRA_ENHANCED_ERROR_HANDLING", "true"),
                env_name="JIRA_ENHANCED_ERROR_HANDLING",
            ),
        )

    def with_overrides(
        self,
        *,
        cache_enabled: bool | None = None,
        request_timeout_seconds: float | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            cache_enabled=self.cache_enabled if cache_enabled is None else cache_enabled,
            request_timeout_seconds=self.request_timeout_seconds
            if request_timeout_seconds is None
            else request_timeout_seconds,
        )

    def with_file_overrides(self, file_config: GatewayConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            jira_url=self.jira_url if file_config.jira_url is None else file_config.jira_url,
            jira_email=self.jira_email
            if file_config.jira_email is None
            else file_config.jira_email,
            auth_type=self.auth_type if file_config.auth_type is None else file_config.auth_type,
            request_timeout_seconds=self.request_timeout_seconds
            if file_config.request_timeout_seconds is None
            else file_config.request_timeout_seconds,
            cache_enabled=self.cache_enabled
            if file_config.cache_enabled is None
            else file_config.cache_enabled,
            cache_ttl_seconds=self.cache_ttl_seconds
            if file_config.cache_ttl_seconds is None
            else file_config.cache_ttl_seconds,
            cache_max_size=self.cache_max_size
            if file_config.cache_max_size is None
            else file_config.cache_max_size,
            cache_dir=self.cache_dir if file_config.cache_dir is None else file_config.cache_dir,
            snapshot_interval_seconds=self.snapshot_interval_seconds
            if file_config.snapshot_interval_seconds is None
            else file_config.snapshot_interval_seconds,
            enhanced_error_handling=self.enhanced_error_handling
            if file_config.enhanced_error_handling is None
            else file_config.enhanced_error_handling,
        )


def _parse_positive_float(value: str, *, env_name: str) -> float:
    """Parse a positive float from an environment variable."""
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise InvalidEnvVarError(env_name, "a positive number") from exc
    if parsed <= 0:
        raise InvalidEnvVarError(env_name, "a positive number")
    return parsed


def _parse_positive_int(value: str, *, env_name: str) -> int:
    """Parse a positive integer from an environment variable."""
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise InvalidEnvVarError(env_name, "a positive integer") from exc
    if parsed < 1:
        raise InvalidEnvVarError(env_name, "a positive integer")
    return parsed


def _parse_bool(value: str, *, env_name: str) -> bool:
    """Parse a boolean from an environment variable."""
    text = value.strip().lower()
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    raise InvalidEnvVarError(env_name, "a boolean value (true/false, 1/0, yes/no, on/off)")
