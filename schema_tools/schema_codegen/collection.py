"""Collection assembler."""

from __future__ import annotations

from .attributes import encode_tree
from .ir import CollectionDefinition
from .values import encode_structure
from .writer import CodeWriter


def encode_collection(definition: CollectionDefinition) -> str:
    """Render ``{schema: S.Schema({...}), rules: {...}}`` for one collection.

    ``rules`` is emitted only when present and is transcribed verbatim as
    indented JSON.
    """
    writer = CodeWriter()
    writer.line("{")
    with writer.indented():
        writer.line(f"schema: {encode_tree(definition.schema, 'Schema')},")
        if definition.rules is not None:
            writer.line(f"rules: {encode_structure(definition.rules, indent=2)},")
    writer.line("}")
    return writer.expression()
