"""JQL clause formatting."""

from __future__ import annotations

import re
from collections.abc import Sequence

_NEEDS_QUOTES = re.compile(r"[\s,]")
_EMPTINESS_OPERATORS = frozenset({"IS EMPTY", "IS NOT EMPTY"})

JqlValue = str | int | float | Sequence[str] | None
JqlClause = tuple[str, str] | tuple[str, str, JqlValue]


def _quote(value: str) -> str:
    return f'"{value}"' if _NEEDS_QUOTES.search(value) else value


def format_clause(clause: JqlClause) -> str:
    """Render one ``(field, operator[, value])`` clause.

    Values containing whitespace or commas are double-quoted. ``IS EMPTY`` and
    ``IS NOT EMPTY`` take no value, and ``IN`` accepts a sequence of values.
    """
    field_name, operator = clause[0], clause[1].strip()
    value = clause[2] if len(clause) > 2 else None
    normalised_operator = operator.upper()
    if normalised_operator in _EMPTINESS_OPERATORS:
        return f"{field_name} {normalised_operator}"
    if normalised_operator in {"IN", "NOT IN"} and not isinstance(value, str):
        items = [] if value is None or isinstance(value, int | float) else list(value)
        return f"{field_name} {normalised_operator} ({','.join(_quote(item) for item in items)})"
    if isinstance(value, str):
        return f"{field_name} {operator} {_quote(value)}"
    return f"{field_name} {operator} {value}"


def format_jql(clauses: Sequence[JqlClause], combine: str = "AND") -> str:
    """Join clauses with ``combine`` (``AND`` or ``OR``)."""
    return f" {combine} ".join(format_clause(clause) for clause in clauses)
