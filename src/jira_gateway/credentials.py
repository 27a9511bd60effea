"""Credential context and endpoint path resolution.

The context is built once from configuration and never mutated; reconfiguration builds
a new context and the services that hold it are rebuilt by the composition root.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from .exceptions import (
    InvalidAuthModeError,
    MissingBaseUrlError,
    MissingBasicCredentialsError,
    MissingBearerTokenError,
)
from .types import ApiVersion, AuthMode, ServerFlavor

if TYPE_CHECKING:
    from .config import GatewayConfig

CLOUD_DOMAIN_SUFFIXES: tuple[str, ...] = ("atlassian.net", "jira.com")

_V2_PATH = "/rest/api/2"
_V3_PATH = "/rest/api/3"
_AGILE_PATH = "/rest/agile/1.0"
_AGILE_LATEST_PATH = "/rest/agile/latest"


@dataclass(frozen=True)
class CredentialContext:
    """Resolved connection details shared by every request."""

    base_url: str
    auth_header: str
    server_flavor: ServerFlavor
    versioned_paths: Mapping[ApiVersion, str]

    def path_for(self, api_version: ApiVersion) -> str:
        return self.versioned_paths[api_version]

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": self.auth_header,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def browse_url(self, issue_key: str) -> str:
        return f"{self.base_url}/browse/{issue_key}"

    @property
    def is_cloud(self) -> bool:
        return self.server_flavor is ServerFlavor.CLOUD


def detect_server_flavor(base_url: str) -> ServerFlavor:
    """Return CLOUD when the URL host ends with a known hosted-service domain."""
    host = (urlsplit(base_url).hostname or "").lower()
    for suffix in CLOUD_DOMAIN_SUFFIXES:
        if host == suffix or host.endswith(f".{suffix}"):
            return ServerFlavor.CLOUD
    return ServerFlavor.SELF_HOSTED


def resolve_versioned_paths(server_flavor: ServerFlavor) -> Mapping[ApiVersion, str]:
    # Self-hosted servers often lack the v3 REST API, so v3 resolves to the v2 prefix.
    v3_path = _V3_PATH if server_flavor is ServerFlavor.CLOUD else _V2_PATH
    return MappingProxyType(
        {
            ApiVersion.V2: _V2_PATH,
            ApiVersion.V3: v3_path,
            ApiVersion.AGILE: _AGILE_PATH,
            ApiVersion.AGILE_LATEST: _AGILE_LATEST_PATH,
        }
    )


def build_auth_header(identity: str, secret: str, auth_mode: AuthMode) -> str:
    if auth_mode is AuthMode.BEARER:
        if not secret:
            raise MissingBearerTokenError()
        return f"Bearer {secret}"
    if not identity or not secret:
        raise MissingBasicCredentialsError()
    token = base64.b64encode(f"{identity}:{secret}".encode()).decode("ascii")
    return f"Basic {token}"


def build_credential_context(
    base_url: str,
    identity: str,
    secret: str,
    auth_mode: AuthMode | str = AuthMode.BASIC,
) -> CredentialContext:
    """Validate credentials and resolve endpoint prefixes.

    Args:
        base_url: Jira site root, e.g. ``https://example.atlassian.net``.
        identity: Account email (basic auth only).
        secret: API token or personal access token.
        auth_mode: ``basic`` or ``bearer``.

    Returns:
        An immutable CredentialContext.

    Raises:
        ConfigurationError: When a required value is missing or the auth mode is unknown.
    """
    cleaned_url = base_url.strip().rstrip("/")
    if not cleaned_url:
        raise MissingBaseUrlError()
    try:
        mode = AuthMode(str(auth_mode).strip().lower())
    except ValueError as exc:
        raise InvalidAuthModeError(str(auth_mode)) from exc

    auth_header = build_auth_header(identity.strip(), secret.strip(), mode)
    server_flavor = detect_server_flavor(cleaned_url)
    return CredentialContext(
        base_url=cleaned_url,
        auth_header=auth_header,
        server_flavor=server_flavor,
        versioned_paths=resolve_versioned_paths(server_flavor),
    )


def credential_context_from_config(config: GatewayConfig) -> CredentialContext:
    return build_credential_context(
        config.jira_url,
        config.jira_email,
        config.jira_api_token,
        config.auth_type,
    )
