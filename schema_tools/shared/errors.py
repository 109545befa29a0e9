"""Custom exceptions for schema tools."""

from __future__ import annotations

from typing import Any


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when a schema document is malformed."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class UnsupportedLiteralError(SchemaError):
    """Raised when a value cannot be rendered as a source literal."""

    def __init__(self, value: Any, schema_path: str | None = None) -> None:
        self.value = value
        super().__init__(
            f"Cannot encode value {value!r} of type '{type(value).__name__}' as a literal",
            schema_path,
        )


class InvalidDefaultFunctionError(SchemaError):
    """Raised when a default names a function outside the allow-list."""

    def __init__(self, name: str, schema_path: str | None = None) -> None:
        self.name = name
        super().__init__(f"Invalid default function name '{name}'", schema_path)


class UnknownAttributeKindError(SchemaError):
    """Raised when an attribute carries a kind the encoder does not know."""

    def __init__(self, kind: str, schema_path: str | None = None) -> None:
        self.kind = kind
        super().__init__(f"Invalid attribute type '{kind}'", schema_path)


class MigrationError(SchemaError):
    """Raised when a migration cannot be applied."""

    def __init__(
        self,
        message: str,
        version: int | None = None,
        schema_path: str | None = None,
    ) -> None:
        self.version = version
        if version is not None:
            message = f"Migration {version}: {message}"
        super().__init__(message, schema_path)


class MigrationStatusError(SchemaError):
    """Raised when migration status cannot be fetched from the server."""


class SchemaSourceError(SchemaError):
    """Raised when generated schema source cannot be read back."""

    def __init__(
        self,
        message: str,
        position: int | None = None,
        schema_path: str | None = None,
    ) -> None:
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message, schema_path)
