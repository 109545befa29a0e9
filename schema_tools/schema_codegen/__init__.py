"""Schema Code Generator - Serializes a schema IR into builder-syntax source."""

from .attributes import encode_attribute, encode_subquery, encode_tree, is_relation_by_id
from .collection import encode_collection
from .ir import (
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
    schema_from_json,
    schema_to_json,
)
from .loader import load_schema_file, load_schema_source
from .module import ModuleOptions, encode_module
from .values import encode_default, encode_literal, encode_value_options
from .writer import CodeWriter

__all__ = [
    "encode_attribute",
    "encode_subquery",
    "encode_tree",
    "is_relation_by_id",
    "encode_collection",
    "AttributeTree",
    "CollectionDefinition",
    "FunctionCall",
    "Primitive",
    "RecordAttribute",
    "RelationAttribute",
    "RelationQuery",
    "SchemaIR",
    "SetAttribute",
    "ValueOptions",
    "schema_from_json",
    "schema_to_json",
    "load_schema_file",
    "load_schema_source",
    "ModuleOptions",
    "encode_module",
    "encode_default",
    "encode_literal",
    "encode_value_options",
    "CodeWriter",
]
