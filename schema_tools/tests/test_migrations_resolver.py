import pytest

from schema_tools.migrations.resolver import apply_migration, resolve_current_schema
from schema_tools.schema_codegen.ir import (
    FunctionCall,
    Primitive,
    RecordAttribute,
    ValueOptions,
)
from schema_tools.shared.errors import MigrationError

CREATE_TODOS = {
    "version": 1,
    "parent": 0,
    "name": "create_todos",
    "up": [
        [
            "create_collection",
            {
                "name": "todos",
                "schema": {
                    "id": {"type": "string", "options": {"default": {"func": "uuid", "args": None}}},
                    "text": {"type": "string", "options": {}},
                },
            },
        ]
    ],
    "down": [["drop_collection", {"name": "todos"}]],
}

ADD_FIELDS = {
    "version": 2,
    "parent": 1,
    "name": "add_fields",
    "up": [
        [
            "add_attribute",
            {
                "collection": "todos",
                "path": ["done"],
                "attribute": {"type": "boolean", "options": {"default": False}},
            },
        ],
        [
            "add_attribute",
            {
                "collection": "todos",
                "path": ["meta"],
                "attribute": {"type": "record", "properties": {}, "optional": []},
                "optional": True,
            },
        ],
        [
            "add_attribute",
            {
                "collection": "todos",
                "path": ["meta", "note"],
                "attribute": {"type": "string", "options": {}},
                "optional": True,
            },
        ],
    ],
    "down": [],
}


def migration(version, *steps):
    return {"version": version, "parent": version - 1, "up": [list(step) for step in steps], "down": []}


class TestResolveCurrentSchema:
    def test_no_migrations(self):
        assert resolve_current_schema([]) is None

    def test_applies_in_version_order(self):
        schema = resolve_current_schema([ADD_FIELDS, CREATE_TODOS])
        todos = schema.collections["todos"].schema

        assert schema.version == 2
        assert list(todos.properties) == ["id", "text", "done", "meta"]
        assert todos.optional == frozenset({"meta"})
        assert todos.properties["id"] == Primitive(
            "string", ValueOptions(default=FunctionCall("uuid"))
        )
        meta = todos.properties["meta"]
        assert isinstance(meta, RecordAttribute)
        assert meta.properties.optional == frozenset({"note"})

    def test_does_not_mutate_input(self):
        resolve_current_schema([CREATE_TODOS, ADD_FIELDS])
        assert ADD_FIELDS["up"][1][1]["attribute"] == {"type": "record", "properties": {}, "optional": []}

    def test_drop_collection(self):
        schema = resolve_current_schema(
            [CREATE_TODOS, migration(2, ("drop_collection", {"name": "todos"}))]
        )
        assert schema.collections == {}
        assert schema.version == 2

    def test_drop_attribute_clears_optional(self):
        schema = resolve_current_schema(
            [
                CREATE_TODOS,
                ADD_FIELDS,
                migration(3, ("drop_attribute", {"collection": "todos", "path": ["meta"]})),
            ]
        )
        todos = schema.collections["todos"].schema
        assert "meta" not in todos.properties
        assert todos.optional == frozenset()

    def test_alter_and_drop_option(self):
        schema = resolve_current_schema(
            [
                CREATE_TODOS,
                migration(
                    2,
                    ("alter_attribute_option", {"collection": "todos", "path": ["text"], "options": {"nullable": True, "default": ""}}),
                    ("drop_attribute_option", {"collection": "todos", "path": ["text"], "option": "default"}),
                ),
            ]
        )
        assert schema.collections["todos"].schema.properties["text"] == Primitive(
            "string", ValueOptions(nullable=True)
        )

    def test_set_attribute_optional(self):
        schema = resolve_current_schema(
            [
                CREATE_TODOS,
                migration(2, ("set_attribute_optional", {"collection": "todos", "path": ["text"], "optional": True})),
            ]
        )
        assert schema.collections["todos"].schema.optional == frozenset({"text"})

    def test_rules(self):
        rule = {"filter": [["author", "=", "$SESSION_USER_ID"]]}
        schema = resolve_current_schema(
            [
                CREATE_TODOS,
                migration(2, ("add_rule", {"collection": "todos", "scope": "read", "id": "own", "rule": rule})),
            ]
        )
        assert schema.collections["todos"].rules == {"read": {"own": rule}}

        dropped = resolve_current_schema(
            [
                CREATE_TODOS,
                migration(2, ("add_rule", {"collection": "todos", "scope": "read", "id": "own", "rule": rule})),
                migration(3, ("drop_rule", {"collection": "todos", "scope": "read", "id": "own"})),
            ]
        )
        assert dropped.collections["todos"].rules is None

    def test_create_with_rules_and_optional(self):
        schema = resolve_current_schema(
            [
                migration(
                    1,
                    (
                        "create_collection",
                        {
                            "name": "notes",
                            "schema": {"body": {"type": "string"}},
                            "optional": ["body"],
                            "rules": {"read": {}},
                        },
                    ),
                )
            ]
        )
        notes = schema.collections["notes"]
        assert notes.schema.optional == frozenset({"body"})
        assert notes.rules == {"read": {}}


class TestMigrationErrors:
    def test_unknown_operation(self):
        with pytest.raises(MigrationError, match="unknown operation 'rename_collection'"):
            resolve_current_schema([migration(1, ("rename_collection", {"name": "x"}))])

    def test_missing_collection(self):
        with pytest.raises(MigrationError, match="does not exist"):
            resolve_current_schema([migration(1, ("drop_collection", {"name": "ghosts"}))])

    def test_duplicate_collection(self):
        with pytest.raises(MigrationError, match="already exists"):
            resolve_current_schema([CREATE_TODOS, migration(2, CREATE_TODOS["up"][0])])

    def test_path_through_non_record(self):
        with pytest.raises(MigrationError, match="record attribute"):
            resolve_current_schema(
                [
                    CREATE_TODOS,
                    migration(
                        2,
                        ("add_attribute", {"collection": "todos", "path": ["text", "x"], "attribute": {"type": "string"}}),
                    ),
                ]
            )

    def test_missing_parameter(self):
        with pytest.raises(MigrationError, match="parameter 'name'"):
            resolve_current_schema([migration(1, ("create_collection", {}))])

    def test_malformed_step(self):
        state = {"version": 0, "collections": {}}
        with pytest.raises(MigrationError, match="malformed"):
            apply_migration(state, {"version": 1, "up": [["create_collection"]]})

    def test_missing_version(self):
        with pytest.raises(MigrationError, match="version"):
            resolve_current_schema([{"up": []}])

    def test_invalid_resulting_schema(self):
        with pytest.raises(MigrationError, match="invalid schema"):
            resolve_current_schema(
                [migration(1, ("create_collection", {"name": "x", "schema": {"bad": {"options": {}}}}))]
            )

    def test_schema_must_be_mapping(self):
        with pytest.raises(MigrationError, match="parameter 'schema' must be a mapping"):
            resolve_current_schema([migration(1, ("create_collection", {"name": "x", "schema": ["oops"]}))])

    def test_optional_must_be_list(self):
        with pytest.raises(MigrationError, match="parameter 'optional' must be a list"):
            resolve_current_schema(
                [migration(1, ("create_collection", {"name": "x", "schema": {}, "optional": "id"}))]
            )

    def test_attribute_must_be_mapping(self):
        with pytest.raises(MigrationError, match="parameter 'attribute' must be a mapping"):
            resolve_current_schema(
                [CREATE_TODOS, migration(2, ("add_attribute", {"collection": "todos", "path": ["x"], "attribute": "string"}))]
            )

    def test_options_must_be_mapping(self):
        with pytest.raises(MigrationError, match="parameter 'options' must be a mapping"):
            resolve_current_schema(
                [
                    CREATE_TODOS,
                    migration(
                        2,
                        ("alter_attribute_option", {"collection": "todos", "path": ["text"], "options": [1, 2]}),
                    ),
                ]
            )

    def test_unhashable_collection_name(self):
        with pytest.raises(MigrationError, match="parameter 'name' must be a string"):
            resolve_current_schema([migration(1, ("create_collection", {"name": ["todos"]}))])

    def test_unhashable_operation_name(self):
        with pytest.raises(MigrationError, match="unknown operation"):
            resolve_current_schema([migration(1, (["create_collection"], {"name": "x"}))])


class TestNumericKeys:
    def test_numeric_keys_keep_optional_flag(self):
        schema = resolve_current_schema(
            [migration(1, ("create_collection", {"name": "x", "schema": {1: {"type": "string"}}, "optional": [1]}))]
        )
        tree = schema.collections["x"].schema
        assert list(tree.properties) == ["1"]
        assert tree.is_optional("1")

    def test_numeric_path_matches_string_key(self):
        schema = resolve_current_schema(
            [
                migration(1, ("create_collection", {"name": "x", "schema": {1: {"type": "string"}}})),
                migration(2, ("set_attribute_optional", {"collection": "x", "path": [1], "optional": True})),
            ]
        )
        assert schema.collections["x"].schema.is_optional("1")
