"""Attribute encoder: renders one attribute node as a builder expression."""

from __future__ import annotations

from typing import Final

from ..shared.errors import UnknownAttributeKindError
from .ir import (
    AttributeDefinition,
    AttributeTree,
    Primitive,
    RecordAttribute,
    RelationAttribute,
    RelationQuery,
    SetAttribute,
)
from .values import NAMESPACE, encode_literal, encode_structure, encode_value_options, quote
from .writer import CodeWriter

PRIMITIVE_CONSTRUCTORS: Final[dict[str, str]] = {
    "string": "String",
    "boolean": "Boolean",
    "number": "Number",
    "date": "Date",
}


def _call(constructor: str, *args: str) -> str:
    """Render ``S.<constructor>(args)``, dropping empty arguments."""
    rendered = ", ".join(arg for arg in args if arg)
    return f"{NAMESPACE}.{constructor}({rendered})"


def wrap_optional(expression: str, optional: bool) -> str:
    return _call("Optional", expression) if optional else expression


def encode_tree(tree: AttributeTree, constructor: str) -> str:
    """Render ``S.<constructor>({...})`` for every property of ``tree``.

    Properties keep their declared order and each one's optional flag is
    read from ``tree.optional``.
    """
    if not tree.properties:
        return _call(constructor, "{}")

    writer = CodeWriter()
    writer.line(f"{NAMESPACE}.{constructor}({{")
    with writer.indented():
        for key, child in tree.properties.items():
            value = encode_attribute(child, tree.is_optional(key))
            writer.line(f"{quote(key)}: {value},")
    writer.line("})")
    return writer.expression()


def is_relation_by_id(relation: RelationAttribute) -> bool:
    """True when a relation is exactly ``one`` with ``where [["id", "=", V]]``."""
    query = relation.query
    if relation.cardinality != "one":
        return False
    if query.limit is not None or query.order is not None:
        return False
    where = query.where
    if not isinstance(where, (list, tuple)) or len(where) != 1:
        return False
    clause = where[0]
    return (
        isinstance(clause, (list, tuple))
        and len(clause) == 3
        and clause[0] == "id"
        and clause[1] == "="
    )


def encode_subquery(query: RelationQuery) -> str:
    """Render the subquery object with only the fields that are present."""
    parts: list[str] = []
    if query.where is not None:
        parts.append(f"where: {encode_structure(query.where)}")
    if query.limit is not None:
        parts.append(f"limit: {encode_literal(query.limit)}")
    if query.order is not None:
        parts.append(f"order: {encode_structure(query.order)}")
    return "{" + ", ".join(parts) + "}"


def _encode_relation(relation: RelationAttribute) -> str:
    target = quote(relation.target)
    if is_relation_by_id(relation):
        entity_id = relation.query.where[0][2]
        return _call("RelationById", target, encode_literal(entity_id))
    constructor = "RelationOne" if relation.cardinality == "one" else "RelationMany"
    return _call(constructor, target, encode_subquery(relation.query))


def _encode_primitive(node: Primitive) -> str:
    constructor = PRIMITIVE_CONSTRUCTORS.get(node.kind)
    if constructor is None:
        raise UnknownAttributeKindError(node.kind)
    return _call(constructor, encode_value_options(node.options))


def encode_attribute(node: AttributeDefinition, optional: bool = False) -> str:
    """Render one attribute as a builder expression.

    Nested records come back as multi-line text relative to column zero.
    Relations are never wrapped in ``S.Optional``.

    Raises:
        UnknownAttributeKindError: For a kind with no builder constructor.
    """
    if isinstance(node, RelationAttribute):
        return _encode_relation(node)

    if isinstance(node, Primitive):
        result = _encode_primitive(node)
    elif isinstance(node, SetAttribute):
        # Set members are never optional
        items = encode_attribute(node.items, optional=False)
        result = _call("Set", items, encode_value_options(node.options))
    elif isinstance(node, RecordAttribute):
        result = encode_tree(node.properties, "Record")
    else:
        raise UnknownAttributeKindError(type(node).__name__)

    return wrap_optional(result, optional)
