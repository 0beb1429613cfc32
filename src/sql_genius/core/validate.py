"""
core/validate.py

Error taxonomy and input guards for SQL Genius.

Errors:
- SqlGeniusError: common base, lets UIs catch everything from core in one place
- ValidationError: missing / unusable user input, raised before any model call

GenerationError lives in core/generate.py and DataFormatError in core/mock_data.py,
next to the code that raises them.
"""

from __future__ import annotations


MISSING_INPUT_MESSAGE = "Please provide both a database schema and a question."


class SqlGeniusError(Exception):
    """Base class for every error raised by sql_genius.core."""


class ValidationError(SqlGeniusError):
    """Raised when user input is missing or cannot be used."""


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def require_text(value: str | None, field: str) -> str:
    """Return `value` unchanged, or raise ValidationError if it is empty/whitespace."""
    if is_blank(value):
        raise ValidationError(f"{field} must not be empty.")
    return value


def require_schema_and_question(schema: str | None, question: str | None) -> None:
    """
    Entry guard for the "Generate" action.

    Both the schema text and the question must be non-empty; otherwise nothing
    is generated and the caller stays idle.
    """
    if is_blank(schema) or is_blank(question):
        raise ValidationError(MISSING_INPUT_MESSAGE)
