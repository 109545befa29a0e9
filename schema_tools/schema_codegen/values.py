"""Value encoder: literals, default values and attribute options."""

from __future__ import annotations

import json
import math
from functools import lru_cache
from typing import Any, Final

from ..shared.errors import InvalidDefaultFunctionError, UnsupportedLiteralError
from .ir import DefaultValue, FunctionCall, ValueOptions

# Builder namespace the generated module imports the schema API under
NAMESPACE: Final[str] = "S"

DEFAULT_FUNCTIONS: Final[frozenset[str]] = frozenset({"now", "uuid"})


@lru_cache(maxsize=1024)
def quote(value: str) -> str:
    """Quote a string as a double-quoted literal. Cached for performance."""
    return json.dumps(value, ensure_ascii=False)


def encode_literal(value: Any) -> str:
    """Render a scalar as a source literal.

    Raises:
        UnsupportedLiteralError: For anything but str, int, float, bool or None,
            and for non-finite floats.
    """
    if value is None:
        return "null"
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedLiteralError(value)
        return json.dumps(value)
    raise UnsupportedLiteralError(value)


def encode_default(default: DefaultValue) -> str:
    """Render a default value, validating function defaults.

    Raises:
        InvalidDefaultFunctionError: If a function default is not allowed.
    """
    if isinstance(default, FunctionCall):
        if default.name not in DEFAULT_FUNCTIONS:
            raise InvalidDefaultFunctionError(default.name)
        args = ", ".join(encode_literal(arg) for arg in default.args)
        return f"{NAMESPACE}.Default.{default.name}({args})"
    return encode_literal(default)


def encode_value_options(options: ValueOptions) -> str:
    """Render the options argument of a type constructor.

    Returns an empty string when neither ``nullable`` nor ``default`` is set,
    so callers emit the constructor with no argument at all.
    """
    parts: list[str] = []
    if options.nullable is not None:
        parts.append(f"nullable: {encode_literal(options.nullable)}")
    if options.has_default:
        parts.append(f"default: {encode_default(options.default)}")
    if not parts:
        return ""
    return "{" + ", ".join(parts) + "}"


def encode_structure(value: Any, indent: int | None = None) -> str:
    """Embed a JSON-shaped value (lists, mappings, scalars) as a literal.

    The value is transcribed as-is; strings get the JSON encoder's escaping
    and nothing more.

    Raises:
        UnsupportedLiteralError: If the value contains something JSON cannot
            represent.
    """
    try:
        return json.dumps(value, ensure_ascii=False, indent=indent, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise UnsupportedLiteralError(value) from e
