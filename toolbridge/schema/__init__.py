"""Schema translation for the toolbridge package."""

from .translator import (
    SchemaKind,
    ValidationModel,
    Violation,
    translate,
    translate_schema,
)

__all__ = [
    "SchemaKind",
    "ValidationModel",
    "Violation",
    "translate",
    "translate_schema",
]
