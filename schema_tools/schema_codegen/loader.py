"""Read generated schema modules back into the IR.

Only the subset of the builder syntax that :mod:`.module` emits is
understood: the import and export statements, ``S.*`` constructor calls,
object and array literals, strings, numbers, ``true``/``false``/``null``
and comments. The schema version is not part of the source and loads as 0.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Iterator

from ..shared.errors import SchemaSourceError
from .attributes import PRIMITIVE_CONSTRUCTORS
from .ir import (
    MISSING,
    AttributeDefinition,
    AttributeTree,
    CollectionDefinition,
    FunctionCall,
    Primitive,
    RecordAttribute,
    RelationAttribute,
    RelationQuery,
    SchemaIR,
    SetAttribute,
    ValueOptions,
)

_TOKEN_RE: Final = re.compile(
    r"""
    (?P<ws>\s+)
    | (?P<comment>//[^\n]*|/\*.*?\*/)
    | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
    | (?P<number>-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    | (?P<name>[A-Za-z_$][A-Za-z0-9_$]*)
    | (?P<punct>[{}()\[\],:;.=])
    """,
    re.VERBOSE | re.DOTALL,
)

_KINDS_BY_CONSTRUCTOR: Final[dict[str, str]] = {
    constructor: kind for kind, constructor in PRIMITIVE_CONSTRUCTORS.items()
}


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    text: str
    position: int


@dataclass(frozen=True, slots=True)
class Call:
    """A parsed ``a.b.c(args)`` expression."""

    name: tuple[str, ...]
    args: tuple[Any, ...]


def tokenize(source: str) -> Iterator[Token]:
    position = 0
    length = len(source)
    while position < length:
        match = _TOKEN_RE.match(source, position)
        if match is None:
            raise SchemaSourceError(f"unexpected character {source[position]!r}", position)
        kind = match.lastgroup or ""
        if kind not in ("ws", "comment"):
            yield Token(kind, match.group(), position)
        position = match.end()


def _decode_string(token: Token) -> str:
    text = token.text
    if text[0] == "'":
        inner = text[1:-1].replace("\\'", "'").replace('"', '\\"')
        text = f'"{inner}"'
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaSourceError(f"unsupported string literal {token.text}: {e.msg}", token.position) from e


class _Parser:
    """Recursive-descent parser over the token stream."""

    def __init__(self, source: str) -> None:
        self._tokens = list(tokenize(source))
        self._index = 0
        self._end = len(source)

    def _peek(self) -> Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            raise SchemaSourceError("unexpected end of input", self._end)
        self._index += 1
        return token

    def _expect(self, text: str) -> Token:
        token = self._next()
        if token.text != text:
            raise SchemaSourceError(f"expected {text!r}, found {token.text!r}", token.position)
        return token

    def _accept(self, text: str) -> bool:
        token = self._peek()
        if token is not None and token.text == text and token.kind != "string":
            self._index += 1
            return True
        return False

    def parse_module(self) -> tuple[str, Any]:
        """Parse the module, returning (namespace alias, exported value)."""
        namespace = "S"
        while True:
            token = self._next()
            if token.kind == "name" and token.text == "import":
                namespace = self._parse_import() or namespace
            elif token.kind == "name" and token.text == "export":
                self._expect("const")
                name = self._next()
                if name.kind != "name":
                    raise SchemaSourceError("expected an identifier", name.position)
                self._expect("=")
                value = self.parse_value()
                self._accept(";")
                trailing = self._peek()
                if trailing is not None:
                    raise SchemaSourceError(
                        f"unexpected {trailing.text!r} after export", trailing.position
                    )
                return namespace, value
            else:
                raise SchemaSourceError(f"unexpected {token.text!r}", token.position)

    def _parse_import(self) -> str | None:
        alias = None
        self._expect("{")
        while not self._accept("}"):
            imported = self._next()
            if self._accept("as"):
                local = self._next()
                if imported.text == "Schema":
                    alias = local.text
            elif imported.text == "Schema":
                alias = "Schema"
            self._accept(",")
        self._expect("from")
        source = self._next()
        if source.kind != "string":
            raise SchemaSourceError("expected a module path", source.position)
        self._accept(";")
        return alias

    def parse_value(self) -> Any:
        token = self._next()
        if token.kind == "string":
            return _decode_string(token)
        if token.kind == "number":
            text = token.text
            return float(text) if any(c in text for c in ".eE") else int(text)
        if token.text == "{" and token.kind == "punct":
            return self._parse_object()
        if token.text == "[" and token.kind == "punct":
            return self._parse_array()
        if token.kind == "name":
            if token.text == "true":
                return True
            if token.text == "false":
                return False
            if token.text == "null":
                return None
            return self._parse_call(token)
        raise SchemaSourceError(f"unexpected {token.text!r}", token.position)

    def _parse_object(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        while not self._accept("}"):
            key = self._next()
            if key.kind == "string":
                name = _decode_string(key)
            elif key.kind == "name":
                name = key.text
            else:
                raise SchemaSourceError(f"invalid object key {key.text!r}", key.position)
            self._expect(":")
            result[name] = self.parse_value()
            if not self._accept(","):
                self._expect("}")
                break
        return result

    def _parse_array(self) -> list[Any]:
        result: list[Any] = []
        while not self._accept("]"):
            result.append(self.parse_value())
            if not self._accept(","):
                self._expect("]")
                break
        return result

    def _parse_call(self, first: Token) -> Call:
        name = [first.text]
        while self._accept("."):
            part = self._next()
            if part.kind != "name":
                raise SchemaSourceError("expected an identifier", part.position)
            name.append(part.text)
        token = self._peek()
        if token is None or token.text != "(":
            raise SchemaSourceError(f"unsupported reference '{'.'.join(name)}'", first.position)
        self._expect("(")
        args: list[Any] = []
        while not self._accept(")"):
            args.append(self.parse_value())
            if not self._accept(","):
                self._expect(")")
                break
        return Call(tuple(name), tuple(args))


class _SchemaBuilder:
    """Converts parsed values into IR nodes."""

    def __init__(self, namespace: str) -> None:
        self._namespace = namespace

    def _constructor(self, value: Any) -> str | None:
        if isinstance(value, Call) and len(value.name) == 2 and value.name[0] == self._namespace:
            return value.name[1]
        return None

    def _require_call(self, value: Any, expected: str) -> Call:
        if self._constructor(value) != expected:
            raise SchemaSourceError(f"expected {self._namespace}.{expected}(...), found {value!r}")
        return value

    def _arg(self, call: Call, index: int) -> Any:
        if index >= len(call.args):
            raise SchemaSourceError(f"{'.'.join(call.name)}(...) is missing argument {index + 1}")
        return call.args[index]

    def options(self, args: tuple[Any, ...]) -> ValueOptions:
        if not args:
            return ValueOptions()
        raw = args[0]
        if not isinstance(raw, dict):
            raise SchemaSourceError(f"attribute options must be an object, found {raw!r}")
        default = raw.get("default", MISSING)
        if isinstance(default, Call):
            name = default.name
            if len(name) != 3 or name[0] != self._namespace or name[1] != "Default":
                raise SchemaSourceError(f"unsupported default {'.'.join(name)}(...)")
            default = FunctionCall(name=name[2], args=default.args)
        return ValueOptions(nullable=raw.get("nullable"), default=default)

    def attribute(self, value: Any) -> tuple[AttributeDefinition, bool]:
        """Return the attribute and whether it was wrapped in ``Optional``."""
        constructor = self._constructor(value)
        if constructor == "Optional":
            inner, _ = self.attribute(self._arg(value, 0))
            return inner, True
        if constructor in _KINDS_BY_CONSTRUCTOR:
            return Primitive(_KINDS_BY_CONSTRUCTOR[constructor], self.options(value.args)), False
        if constructor == "Set":
            items, _ = self.attribute(self._arg(value, 0))
            if not isinstance(items, Primitive):
                raise SchemaSourceError("set items must be a primitive type")
            return SetAttribute(items, self.options(value.args[1:])), False
        if constructor == "Record":
            return RecordAttribute(self.tree(self._arg(value, 0))), False
        if constructor == "RelationById":
            target, entity_id = self._arg(value, 0), self._arg(value, 1)
            query = RelationQuery(where=[["id", "=", entity_id]])
            return RelationAttribute("one", target, query), False
        if constructor in ("RelationOne", "RelationMany"):
            target = self._arg(value, 0)
            subquery = value.args[1] if len(value.args) > 1 else {}
            if not isinstance(subquery, dict):
                raise SchemaSourceError(f"relation subquery must be an object, found {subquery!r}")
            query = RelationQuery(
                where=subquery.get("where"),
                limit=subquery.get("limit"),
                order=subquery.get("order"),
            )
            cardinality = "one" if constructor == "RelationOne" else "many"
            return RelationAttribute(cardinality, target, query), False
        raise SchemaSourceError(f"unsupported attribute expression {value!r}")

    def tree(self, value: Any) -> AttributeTree:
        if not isinstance(value, dict):
            raise SchemaSourceError(f"expected an object of attributes, found {value!r}")
        properties: dict[str, AttributeDefinition] = {}
        optional: set[str] = set()
        for key, child in value.items():
            attribute, is_optional = self.attribute(child)
            properties[key] = attribute
            if is_optional:
                optional.add(key)
        return AttributeTree(properties=properties, optional=frozenset(optional))

    def schema(self, value: Any) -> SchemaIR:
        if not isinstance(value, dict):
            raise SchemaSourceError("exported schema must be an object")
        collections: dict[str, CollectionDefinition] = {}
        for name, collection in value.items():
            if not isinstance(collection, dict) or "schema" not in collection:
                raise SchemaSourceError(f"collection '{name}' has no schema")
            root = self._require_call(collection["schema"], "Schema")
            collections[name] = CollectionDefinition(
                schema=self.tree(root.args[0] if root.args else {}),
                rules=collection.get("rules"),
            )
        return SchemaIR(version=0, collections=collections)


def load_schema_source(source: str) -> SchemaIR:
    """Parse generated module text into a :class:`SchemaIR`.

    Raises:
        SchemaSourceError: If the text is outside the supported subset.
    """
    namespace, value = _Parser(source).parse_module()
    return _SchemaBuilder(namespace).schema(value)


def load_schema_file(path: Path) -> SchemaIR | None:
    """Load a generated schema file; None if it does not exist."""
    if not path.exists():
        return None
    try:
        return load_schema_source(path.read_text(encoding="utf-8"))
    except SchemaSourceError as e:
        raise SchemaSourceError(str(e), schema_path=str(path)) from e
