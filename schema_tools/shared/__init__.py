"""Shared utilities for schema tools."""

from .schema_loader import (
    load_document,
    collect_document_paths,
)
from .errors import (
    SchemaError,
    SchemaValidationError,
    UnsupportedLiteralError,
    InvalidDefaultFunctionError,
    UnknownAttributeKindError,
    MigrationError,
    MigrationStatusError,
    SchemaSourceError,
)

__all__ = [
    # Document loading
    "load_document",
    "collect_document_paths",
    # Errors
    "SchemaError",
    "SchemaValidationError",
    "UnsupportedLiteralError",
    "InvalidDefaultFunctionError",
    "UnknownAttributeKindError",
    "MigrationError",
    "MigrationStatusError",
    "SchemaSourceError",
]
