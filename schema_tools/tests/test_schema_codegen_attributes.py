import pytest

from schema_tools.schema_codegen.attributes import (
    encode_attribute,
    encode_subquery,
    encode_tree,
    is_relation_by_id,
)
from schema_tools.schema_codegen.ir import (
    AttributeTree,
    FunctionCall,
    Primitive,
    RecordAttribute,
    RelationAttribute,
    RelationQuery,
    SetAttribute,
    ValueOptions,
)
from schema_tools.shared.errors import InvalidDefaultFunctionError, UnknownAttributeKindError


def users_by_id(**extra):
    return RelationAttribute("one", "users", RelationQuery(where=[["id", "=", "42"]], **extra))


class TestPrimitives:
    @pytest.mark.parametrize(
        "kind,expected",
        [
            ("string", "S.String()"),
            ("boolean", "S.Boolean()"),
            ("number", "S.Number()"),
            ("date", "S.Date()"),
        ],
    )
    def test_constructors(self, kind, expected):
        assert encode_attribute(Primitive(kind)) == expected

    def test_options(self):
        node = Primitive("string", ValueOptions(nullable=True, default="x"))
        assert encode_attribute(node) == 'S.String({nullable: true, default: "x"})'

    def test_optional_wrapper(self):
        assert encode_attribute(Primitive("date"), optional=True) == "S.Optional(S.Date())"

    def test_unknown_kind(self):
        with pytest.raises(UnknownAttributeKindError):
            encode_attribute(Primitive("uuid"))

    def test_unknown_variant(self):
        with pytest.raises(UnknownAttributeKindError):
            encode_attribute(object())


class TestSet:
    def test_plain(self):
        assert encode_attribute(SetAttribute(Primitive("string"))) == "S.Set(S.String())"

    def test_with_options(self):
        node = SetAttribute(Primitive("number"), ValueOptions(nullable=True))
        assert encode_attribute(node) == "S.Set(S.Number(), {nullable: true})"

    def test_optional_set(self):
        node = SetAttribute(Primitive("string"))
        assert encode_attribute(node, optional=True) == "S.Optional(S.Set(S.String()))"

    def test_unknown_item_kind(self):
        with pytest.raises(UnknownAttributeKindError):
            encode_attribute(SetAttribute(Primitive("json")))


class TestRecord:
    def test_property_order_and_optional_lookup(self):
        tree = AttributeTree(
            properties={"b": Primitive("string"), "a": Primitive("number")},
            optional=frozenset({"a"}),
        )
        assert encode_attribute(RecordAttribute(tree)) == (
            "S.Record({\n"
            '  "b": S.String(),\n'
            '  "a": S.Optional(S.Number()),\n'
            "})"
        )

    def test_nested_records_indent(self):
        inner = AttributeTree(properties={"x": Primitive("string")}, optional=frozenset({"x"}))
        outer = AttributeTree(properties={"inner": RecordAttribute(inner)})
        assert encode_attribute(RecordAttribute(outer), optional=True) == (
            "S.Optional(S.Record({\n"
            '  "inner": S.Record({\n'
            '    "x": S.Optional(S.String()),\n'
            "  }),\n"
            "}))"
        )

    def test_optional_flag_belongs_to_parent(self):
        # the same node renders differently depending on its container
        node = Primitive("string")
        with_flag = AttributeTree(properties={"name": node}, optional=frozenset({"name"}))
        without_flag = AttributeTree(properties={"name": node})
        assert "S.Optional(S.String())" in encode_tree(with_flag, "Record")
        assert "S.Optional" not in encode_tree(without_flag, "Record")

    def test_empty(self):
        assert encode_attribute(RecordAttribute(AttributeTree())) == "S.Record({})"

    def test_error_in_child_aborts(self):
        tree = AttributeTree(
            properties={
                "ok": Primitive("string"),
                "bad": Primitive("string", ValueOptions(default=FunctionCall("sum"))),
            }
        )
        with pytest.raises(InvalidDefaultFunctionError):
            encode_attribute(RecordAttribute(tree))


class TestRelations:
    def test_by_id_shorthand(self):
        assert encode_attribute(users_by_id()) == 'S.RelationById("users", "42")'

    def test_limit_disables_shorthand(self):
        assert encode_attribute(users_by_id(limit=1)) == (
            'S.RelationOne("users", {where: [["id", "=", "42"]], limit: 1})'
        )

    def test_order_disables_shorthand(self):
        assert not is_relation_by_id(users_by_id(order=[["name", "ASC"]]))

    def test_many_never_shorthand(self):
        relation = RelationAttribute("many", "users", RelationQuery(where=[["id", "=", "42"]]))
        assert encode_attribute(relation) == 'S.RelationMany("users", {where: [["id", "=", "42"]]})'

    def test_other_field_is_general_form(self):
        relation = RelationAttribute("one", "users", RelationQuery(where=[["email", "=", "a@b.c"]]))
        assert encode_attribute(relation).startswith('S.RelationOne("users", ')

    def test_two_clauses_is_general_form(self):
        relation = RelationAttribute(
            "one", "users", RelationQuery(where=[["id", "=", "1"], ["active", "=", True]])
        )
        assert not is_relation_by_id(relation)

    def test_relation_is_never_optional(self):
        assert encode_attribute(users_by_id(), optional=True) == 'S.RelationById("users", "42")'

    def test_many_with_order(self):
        relation = RelationAttribute(
            "many",
            "todos",
            RelationQuery(where=[["owner", "=", "$id"]], order=[["created_at", "DESC"]]),
        )
        assert encode_attribute(relation) == (
            'S.RelationMany("todos", {where: [["owner", "=", "$id"]], '
            'order: [["created_at", "DESC"]]})'
        )


class TestEncodeSubquery:
    def test_empty(self):
        assert encode_subquery(RelationQuery()) == "{}"

    def test_zero_limit_is_present(self):
        assert encode_subquery(RelationQuery(limit=0)) == "{limit: 0}"

    def test_nested_filter_embedded(self):
        where = [{"mod": "or", "filters": [["a", "=", 1], ["b", "=", 2]]}]
        assert encode_subquery(RelationQuery(where=where)) == (
            '{where: [{"mod": "or", "filters": [["a", "=", 1], ["b", "=", 2]]}]}'
        )
