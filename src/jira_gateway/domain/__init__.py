"""Domain records and pure helpers for the gateway."""

from .error_classifier import Classification, ErrorCategory, ErrorClassifier
from .issues import (
    PROJECT_DEFAULT_ASSIGNEE,
    UNASSIGNED,
    Assignee,
    Issue,
    Person,
    SearchResults,
    Transition,
    Unassigned,
)

__all__ = [
    "PROJECT_DEFAULT_ASSIGNEE",
    "UNASSIGNED",
    "Assignee",
    "Classification",
    "ErrorCategory",
    "ErrorClassifier",
    "Issue",
    "Person",
    "SearchResults",
    "Transition",
    "Unassigned",
]
