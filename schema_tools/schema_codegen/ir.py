"""Schema intermediate representation.

The IR is an immutable tree of dataclasses. Optionality is a property of
the containing :class:`AttributeTree` (its ``optional`` key set), never of
the attribute itself.

``schema_from_json`` and ``schema_to_json`` convert to and from the JSON
shape exchanged with migrations and sync servers::

    {"version": 3,
     "collections": {
        "todos": {
            "schema": {"type": "record", "properties": {...}, "optional": [...]},
            "rules": {...}}}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Mapping, Union

from ..shared.errors import SchemaValidationError

PRIMITIVE_KINDS: Final[frozenset[str]] = frozenset({"string", "boolean", "number", "date"})
CARDINALITIES: Final[frozenset[str]] = frozenset({"one", "many"})

LiteralValue = Union[str, int, float, bool, None]

# Access rules are carried through untouched. Modelled as a JSON value so
# callers see they are transcribed, not validated.
Rules = Mapping[str, Any]


class _Missing:
    """Marker for an option key that is absent (distinct from ``None``)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """A default value computed by the runtime, e.g. ``uuid()``."""

    name: str
    args: tuple[LiteralValue, ...] = ()


DefaultValue = Union[LiteralValue, FunctionCall]


@dataclass(frozen=True, slots=True)
class ValueOptions:
    nullable: bool | None = None
    default: Any = MISSING

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING


@dataclass(frozen=True, slots=True)
class Primitive:
    kind: str
    options: ValueOptions = field(default_factory=ValueOptions)


@dataclass(frozen=True, slots=True)
class SetAttribute:
    items: Primitive
    options: ValueOptions = field(default_factory=ValueOptions)


@dataclass(frozen=True, slots=True)
class AttributeTree:
    """Ordered properties plus the keys that are optional at this level."""

    properties: dict[str, AttributeDefinition] = field(default_factory=dict)
    optional: frozenset[str] = frozenset()

    def is_optional(self, key: str) -> bool:
        return key in self.optional


@dataclass(frozen=True, slots=True)
class RecordAttribute:
    properties: AttributeTree = field(default_factory=AttributeTree)


@dataclass(frozen=True, slots=True)
class RelationQuery:
    where: list[Any] | None = None
    limit: int | None = None
    order: list[Any] | None = None


@dataclass(frozen=True, slots=True)
class RelationAttribute:
    cardinality: str
    target: str
    query: RelationQuery = field(default_factory=RelationQuery)


AttributeDefinition = Union[Primitive, SetAttribute, RecordAttribute, RelationAttribute]


@dataclass(frozen=True, slots=True)
class CollectionDefinition:
    schema: AttributeTree
    rules: Rules | None = None


@dataclass(frozen=True, slots=True)
class SchemaIR:
    version: int = 0
    collections: dict[str, CollectionDefinition] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# JSON conversion
# ---------------------------------------------------------------------------


def _require_mapping(value: Any, what: str, schema_path: str | None) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SchemaValidationError(f"{what} must be a mapping", schema_path)
    return value


def default_from_json(value: Any, schema_path: str | None = None) -> DefaultValue:
    """Convert a JSON default into a literal or :class:`FunctionCall`."""
    if isinstance(value, Mapping):
        name = value.get("func")
        if not isinstance(name, str):
            raise SchemaValidationError(
                "function default is missing 'func'", schema_path, field="default"
            )
        args = value.get("args") or ()
        return FunctionCall(name=name, args=tuple(args))
    return value


def options_from_json(value: Any, schema_path: str | None = None) -> ValueOptions:
    if value is None:
        return ValueOptions()
    options = _require_mapping(value, "attribute options", schema_path)
    nullable = options.get("nullable")
    default = (
        default_from_json(options["default"], schema_path)
        if "default" in options
        else MISSING
    )
    return ValueOptions(nullable=nullable, default=default)


def tree_from_json(
    properties: Any,
    optional: Any = None,
    schema_path: str | None = None,
) -> AttributeTree:
    """Build an :class:`AttributeTree` from a properties mapping and optional list."""
    props = _require_mapping(properties or {}, "properties", schema_path)
    converted = {
        str(key): attribute_from_json(value, schema_path, key=str(key))
        for key, value in props.items()
    }
    return AttributeTree(
        properties=converted,
        optional=frozenset(str(key) for key in optional or ()),
    )


def attribute_from_json(
    data: Any,
    schema_path: str | None = None,
    key: str | None = None,
) -> AttributeDefinition:
    """Convert one JSON attribute into its IR variant.

    Type names other than ``set``, ``record`` and ``query`` become a
    :class:`Primitive` carrying that kind; unsupported kinds are reported
    when the attribute is encoded.
    """
    attribute = _require_mapping(data, f"attribute '{key}'", schema_path)
    type_name = attribute.get("type")
    if not type_name:
        raise SchemaValidationError("attribute is missing required 'type'", schema_path, field=key)

    if type_name == "record":
        return RecordAttribute(
            properties=tree_from_json(
                attribute.get("properties"), attribute.get("optional"), schema_path
            )
        )

    if type_name == "set":
        items = attribute_from_json(attribute.get("items"), schema_path, key=key)
        if not isinstance(items, Primitive):
            raise SchemaValidationError("set items must be a primitive type", schema_path, field=key)
        return SetAttribute(items=items, options=options_from_json(attribute.get("options"), schema_path))

    if type_name == "query":
        query = _require_mapping(attribute.get("query"), f"query of '{key}'", schema_path)
        target = query.get("collectionName")
        if not target:
            raise SchemaValidationError("relation is missing 'collectionName'", schema_path, field=key)
        cardinality = attribute.get("cardinality", "many")
        if cardinality not in CARDINALITIES:
            raise SchemaValidationError(
                f"relation cardinality must be 'one' or 'many', got {cardinality!r}",
                schema_path,
                field=key,
            )
        return RelationAttribute(
            cardinality=cardinality,
            target=str(target),
            query=RelationQuery(
                where=query.get("where"),
                limit=query.get("limit"),
                order=query.get("order"),
            ),
        )

    return Primitive(kind=str(type_name), options=options_from_json(attribute.get("options"), schema_path))


def collection_from_json(data: Any, schema_path: str | None = None) -> CollectionDefinition:
    collection = _require_mapping(data, "collection", schema_path)
    schema = _require_mapping(collection.get("schema"), "collection schema", schema_path)
    return CollectionDefinition(
        schema=tree_from_json(schema.get("properties"), schema.get("optional"), schema_path),
        rules=collection.get("rules"),
    )


def schema_from_json(data: Any, schema_path: str | None = None) -> SchemaIR | None:
    """Convert a JSON schema document into a :class:`SchemaIR`.

    Returns None when ``data`` is None (no schema to generate).
    """
    if data is None:
        return None
    document = _require_mapping(data, "schema", schema_path)
    collections = _require_mapping(document.get("collections") or {}, "collections", schema_path)
    return SchemaIR(
        version=int(document.get("version", 0)),
        collections={
            str(name): collection_from_json(value, schema_path)
            for name, value in collections.items()
        },
    )


def _options_to_json(options: ValueOptions) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if options.nullable is not None:
        result["nullable"] = options.nullable
    if options.has_default:
        default = options.default
        if isinstance(default, FunctionCall):
            result["default"] = {"func": default.name, "args": list(default.args) or None}
        else:
            result["default"] = default
    return result


def tree_to_json(tree: AttributeTree) -> dict[str, Any]:
    return {
        "type": "record",
        "properties": {key: attribute_to_json(value) for key, value in tree.properties.items()},
        "optional": [key for key in tree.properties if key in tree.optional],
    }


def attribute_to_json(attribute: AttributeDefinition) -> dict[str, Any]:
    if isinstance(attribute, RecordAttribute):
        return tree_to_json(attribute.properties)
    if isinstance(attribute, SetAttribute):
        return {
            "type": "set",
            "items": attribute_to_json(attribute.items),
            "options": _options_to_json(attribute.options),
        }
    if isinstance(attribute, RelationAttribute):
        query: dict[str, Any] = {"collectionName": attribute.target}
        for name in ("where", "limit", "order"):
            value = getattr(attribute.query, name)
            if value is not None:
                query[name] = value
        return {"type": "query", "cardinality": attribute.cardinality, "query": query}
    return {"type": attribute.kind, "options": _options_to_json(attribute.options)}


def schema_to_json(schema: SchemaIR) -> dict[str, Any]:
    collections: dict[str, Any] = {}
    for name, collection in schema.collections.items():
        entry: dict[str, Any] = {"schema": tree_to_json(collection.schema)}
        if collection.rules is not None:
            entry["rules"] = collection.rules
        collections[name] = entry
    return {"version": schema.version, "collections": collections}
