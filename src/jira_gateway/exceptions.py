"""Custom exceptions for the Jira gateway.

Every failure the gateway can surface derives from ``GatewayError`` so callers can catch
one base type, while the concrete subclasses keep errors introspectable (status code,
endpoint, timeout) until a human-facing boundary formats them.
"""

from __future__ import annotations

from collections.abc import Sequence


class GatewayError(Exception):
    """Base exception for all gateway errors."""

    pass


# =============================================================================
# Configuration (fatal, never retried)
# =============================================================================


class ConfigurationError(GatewayError):
    """Raised when the gateway cannot be configured.

    This is a fatal error - retrying without changing configuration cannot succeed.
    """


class MissingBaseUrlError(ConfigurationError):
    """Raised when no Jira base URL is configured."""

    def __init__(self) -> None:
        super().__init__("Jira URL missing. Please set JIRA_URL in your environment or config.")


class MissingBasicCredentialsError(ConfigurationError):
    """Raised when basic auth is selected without an email and token."""

    def __init__(self) -> None:
        super().__init__("Basic authentication requires both email and API token.")


class MissingBearerTokenError(ConfigurationError):
    """Raised when bearer auth is selected without a token."""

    def __init__(self) -> None:
        super().__init__("Bearer authentication requires an API token.")


class InvalidAuthModeError(ConfigurationError):
    """Raised when the auth mode is not one of the supported values."""

    def __init__(self, auth_mode: str) -> None:
        self.auth_mode = auth_mode
        super().__init__(f"Unsupported auth type {auth_mode!r}; expected 'basic' or 'bearer'.")


class InvalidEnvVarError(ConfigurationError):
    """Raised when an environment variable has an unusable value."""

    def __init__(self, env_name: str, expected: str) -> None:
        self.env_name = env_name
        super().__init__(f"{env_name} must be {expected}.")


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when a config file path is supplied but does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(ConfigurationError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} is not valid TOML: {detail}")


class ConfigFileValidationError(ConfigurationError):
    """Raised when a config file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} is invalid: {detail}")


# =============================================================================
# Request failures
# =============================================================================


class RequestError(GatewayError):
    """Base exception for failures of a single remote call."""


class ApiResponseError(RequestError):
    """Raised when the API answers with a status code of 400 or above."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        *,
        method: str = "GET",
        endpoint: str = "",
        api_version: str = "",
        error_messages: Sequence[str] = (),
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.method = method
        self.endpoint = endpoint
        self.api_version = api_version
        self.error_messages = tuple(error_messages)
        message = f"API Error: {status_code}"
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class NetworkError(RequestError):
    """Raised when the request never produced an HTTP response."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Network error: {detail}")


class RequestTimeoutError(NetworkError):
    """Raised when a request exceeds its fixed timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"request timeout after {timeout_seconds:g}s")


class DecodeError(RequestError):
    """Raised when a successful response body cannot be decoded."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to parse JSON response: {detail}")


class UnsupportedMethodError(GatewayError):
    """Raised when a request uses an HTTP method the dispatcher does not issue."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Unsupported HTTP method: {method}")


# =============================================================================
# Cache and workflow
# =============================================================================


class UnknownCacheNamespaceError(GatewayError, KeyError):
    """Raised when a cache namespace name is not one of the known resource kinds."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown cache namespace: {name}")

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidIssueKeyError(GatewayError):
    """Raised when an issue key does not look like PROJECT-123."""

    def __init__(self, issue_key: str) -> None:
        self.issue_key = issue_key
        if not issue_key:
            super().__init__("Issue key cannot be empty")
        else:
            super().__init__(
                f"Invalid issue key format {issue_key!r}. Expected format: PROJECT-123"
            )


class AssigneeNotFoundError(GatewayError):
    """Raised when an assignee query matches no user."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"No user found matching {query!r}")


class InvalidStateTransitionError(GatewayError, RuntimeError):
    """Raised when the transition workflow is driven into an illegal state."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Illegal workflow move: {current} -> {target}")
