"""Error classification and friendly remediation hints.

Classification works on the rendered error message so that it applies equally to typed
gateway errors and to opaque text from the host. Numeric status-code literals are
checked before textual patterns, and the first matching rule wins. A status literal only
counts at the head of the message (``API Error: 404``, ``HTTP 502``, ``401 Unauthorized``);
numbers inside issue keys or request paths are never read as statuses. Messages with the
``Network error:`` prefix raised by the transport stay in the network category whatever
the wrapped text says.

Usage example:
    import random

    from jira_gateway.domain.error_classifier import ErrorClassifier

    classifier = ErrorClassifier(random.Random(7))
    print(classifier.format_friendly("API Error: 404 - Issue does not exist"))
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum


class ErrorCategory(StrEnum):
    AUTH = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"


RETRYABLE_CATEGORIES = frozenset({ErrorCategory.NETWORK, ErrorCategory.SERVER})

_DEFAULT_MESSAGE = "An error occurred"
_HINT_COUNT = 2


@dataclass(frozen=True)
class ClassificationRule:
    pattern: re.Pattern[str]
    category: ErrorCategory
    message: str


def _rule(pattern: str, category: ErrorCategory, message: str) -> ClassificationRule:
    return ClassificationRule(re.compile(pattern, re.IGNORECASE), category, message)


_AUTH_MESSAGE = "Authentication failed. Check your credentials."
_PERMISSION_MESSAGE = "Permission denied. You don't have access to this resource."
_NOT_FOUND_MESSAGE = "Resource not found. Check that the issue or project exists."
_SERVER_MESSAGE = "Jira server error. Please try again later."
_REQUIRED_MESSAGE = "Missing required field. Check your input."

_TIMEOUT_MESSAGE = "Request timed out. Check your connection or try again later."
_REFUSED_MESSAGE = "Connection refused. Check your Jira URL or network settings."
_NETWORK_MESSAGE = "Network error. Check your connection."

# A status code is only read from the head of a message, optionally after a label.
_STATUS_PREFIX = r"^\s*(?:API Error:|HTTP(?: Error)?|status(?: code)?:?)?\s*"


def _status_rule(code: str, category: ErrorCategory, message: str) -> ClassificationRule:
    return _rule(rf"{_STATUS_PREFIX}{code}\b", category, message)


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    # Status-code literals
    _status_rule("401", ErrorCategory.AUTH, _AUTH_MESSAGE),
    _status_rule("403", ErrorCategory.PERMISSION, _PERMISSION_MESSAGE),
    _status_rule("404", ErrorCategory.NOT_FOUND, _NOT_FOUND_MESSAGE),
    _status_rule(
        "400", ErrorCategory.VALIDATION, "Invalid request. Check your input parameters."
    ),
    _status_rule(r"5\d\d", ErrorCategory.SERVER, _SERVER_MESSAGE),
    # Transport failures
    _rule(r"^Network error: request timeout", ErrorCategory.NETWORK, _TIMEOUT_MESSAGE),
    _rule(r"^Network error: (?s:.*)connection refused", ErrorCategory.NETWORK, _REFUSED_MESSAGE),
    _rule(r"^Network error:", ErrorCategory.NETWORK, _NETWORK_MESSAGE),
    # Authentication
    _rule(r"authentication failed", ErrorCategory.AUTH, _AUTH_MESSAGE),
    _rule(r"api token", ErrorCategory.AUTH, "API token is invalid or expired."),
    _rule(
        r"invalid credentials",
        ErrorCategory.AUTH,
        "Invalid credentials. Please check your Jira email and API token.",
    ),
    _rule(
        r"login failed",
        ErrorCategory.AUTH,
        "Login failed. Check your Jira email and API token.",
    ),
    # Permission
    _rule(r"permission denied", ErrorCategory.PERMISSION, _PERMISSION_MESSAGE),
    _rule(
        r"not authori[sz]ed",
        ErrorCategory.PERMISSION,
        "Not authorized. You don't have permission to perform this action.",
    ),
    # Not found
    _rule(r"not found", ErrorCategory.NOT_FOUND, _NOT_FOUND_MESSAGE),
    _rule(r"does not exist", ErrorCategory.NOT_FOUND, "The requested resource does not exist."),
    # Validation
    _rule(r"invalid", ErrorCategory.VALIDATION, "Invalid input. Please check your parameters."),
    _rule(r"required field", ErrorCategory.VALIDATION, _REQUIRED_MESSAGE),
    _rule(r"field is required", ErrorCategory.VALIDATION, _REQUIRED_MESSAGE),
    # Server
    _rule(r"server error", ErrorCategory.SERVER, _SERVER_MESSAGE),
    _rule(r"internal error", ErrorCategory.SERVER, "Jira internal error. Please try again later."),
    # Network
    _rule(r"network", ErrorCategory.NETWORK, _NETWORK_MESSAGE),
    _rule(r"time(d)? ?out", ErrorCategory.NETWORK, _TIMEOUT_MESSAGE),
    _rule(r"connection refused", ErrorCategory.NETWORK, _REFUSED_MESSAGE),
)

SOLUTION_HINTS: dict[ErrorCategory, tuple[str, ...]] = {
    ErrorCategory.AUTH: (
        "Check JIRA_EMAIL and JIRA_API_TOKEN, then run `jira-gateway whoami`.",
        "Check that your API token is valid and not expired at "
        "https://id.atlassian.com/manage-profile/security/api-tokens.",
        "Ensure your email matches the one registered with Atlassian.",
        "Make sure your Jira URL is correct (should be like https://your-domain.atlassian.net).",
    ),
    ErrorCategory.PERMISSION: (
        "Contact your Jira administrator to request access.",
        "Check if you have the necessary project role or permissions.",
        "Verify that your account has access to this project or issue.",
        "Some Jira actions require specific permissions that you might not have.",
    ),
    ErrorCategory.NOT_FOUND: (
        "Check that you're using the correct issue key or project key.",
        "Verify that the issue or project exists in your Jira instance.",
        "The issue might have been deleted or moved.",
        "If you're using a board ID, verify that it exists in the boards list.",
    ),
    ErrorCategory.VALIDATION: (
        "Check your input parameters for errors.",
        "Ensure required fields are provided and have valid values.",
        "Some fields might have constraints (e.g., character limits, format).",
        "Jira projects may have custom required fields for issue creation.",
    ),
    ErrorCategory.SERVER: (
        "Try again later as the Jira server might be experiencing issues.",
        "Check the Jira status page for any ongoing incidents.",
        "This is often a temporary issue that resolves itself.",
        "If the problem persists, contact your Jira administrator.",
    ),
    ErrorCategory.NETWORK: (
        "Check your internet connection.",
        "Ensure the Jira URL is accessible from your network.",
        "There might be firewall or proxy settings blocking the connection.",
        "Try increasing JIRA_REQUEST_TIMEOUT_SECONDS.",
        "If you're behind a corporate firewall, you may need to configure proxy settings.",
    ),
    ErrorCategory.UNKNOWN: (
        "Check your Jira URL and credentials.",
        "Run `jira-gateway troubleshoot` for common fixes.",
        "Retry the operation once the underlying problem is fixed.",
        "Check the error message for specific details that might help resolve the issue.",
    ),
}

TROUBLESHOOTING_GUIDE = """\
Jira Troubleshooting Guide

1. Authentication problems
  - Check JIRA_URL, JIRA_EMAIL and JIRA_API_TOKEN in your environment or .env file
  - Verify your API token at https://id.atlassian.com/manage-profile/security/api-tokens
  - Self-hosted servers with personal access tokens need JIRA_AUTH_TYPE=bearer
  - Test the connection with `jira-gateway whoami`

2. Issue not found or permission errors
  - Verify you have access to the issue or project
  - Check that you're using the correct issue key (PROJECT-123)
  - Some operations need additional project permissions

3. Network or connectivity issues
  - Check your internet connection
  - Verify the Jira URL is reachable from your network
  - Increase JIRA_REQUEST_TIMEOUT_SECONDS for slow servers
  - If you use a proxy, set HTTPS_PROXY accordingly

4. Cache issues
  - Inspect hit rates with `jira-gateway cache-stats`
  - Drop stale data with `jira-gateway cache-clear`
  - Disable caching with JIRA_CACHE_ENABLED=false
"""


@dataclass(frozen=True)
class Classification:
    category: ErrorCategory
    message: str

    @property
    def retryable(self) -> bool:
        return self.category in RETRYABLE_CATEGORIES


UNKNOWN_CLASSIFICATION = Classification(ErrorCategory.UNKNOWN, _DEFAULT_MESSAGE)


def classify(raw_message: str | None) -> Classification:
    """Return the category and headline for a raw error message."""
    if not raw_message:
        return UNKNOWN_CLASSIFICATION
    for rule in CLASSIFICATION_RULES:
        if rule.pattern.search(raw_message):
            return Classification(rule.category, rule.message)
    return UNKNOWN_CLASSIFICATION


def hints_for(category: ErrorCategory) -> tuple[str, ...]:
    return SOLUTION_HINTS.get(category, SOLUTION_HINTS[ErrorCategory.UNKNOWN])


class ErrorClassifier:
    """Classifies errors and renders them with randomly chosen remediation hints.

    The random source is injected so hint selection is reproducible in tests.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def classify(self, raw_message: str | None) -> Classification:
        return classify(raw_message)

    def hints_for(self, category: ErrorCategory) -> tuple[str, ...]:
        return hints_for(category)

    def select_hints(self, category: ErrorCategory, count: int = _HINT_COUNT) -> list[str]:
        """Pick up to ``count`` distinct hints for a category."""
        pool: Sequence[str] = self.hints_for(category)
        return self._rng.sample(list(pool), min(count, len(pool)))

    def format_friendly(self, raw_message: str | None) -> str:
        classification = self.classify(raw_message)
        lines = [
            f"Error: {classification.message}",
            "",
            f"Details: {raw_message or 'no details available'}",
            "",
            "Possible solutions:",
        ]
        lines.extend(f"- {hint}" for hint in self.select_hints(classification.category))
        return "\n".join(lines)
