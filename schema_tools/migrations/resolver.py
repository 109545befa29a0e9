"""Schema resolution: folds migration records into the current schema.

A migration record looks like::

    {"version": 2, "parent": 1, "name": "add_todos",
     "up": [["create_collection", {"name": "todos", "schema": {...}}]],
     "down": [["drop_collection", {"name": "todos"}]]}

Migrations are applied in ascending ``version`` order and only their ``up``
operations are used. Operations are applied to a JSON-shaped working copy
which is converted to the IR once at the end.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Mapping, Sequence

from ..schema_codegen.ir import SchemaIR, schema_from_json
from ..shared.errors import MigrationError, SchemaValidationError

logger = logging.getLogger(__name__)

Operation = Callable[[dict[str, Any], Mapping[str, Any], int], None]


def _empty_record() -> dict[str, Any]:
    return {"type": "record", "properties": {}, "optional": []}


def _collection(state: dict[str, Any], name: str, version: int) -> dict[str, Any]:
    collection = state["collections"].get(name)
    if collection is None:
        raise MigrationError(f"collection '{name}' does not exist", version)
    return collection


def _param(params: Mapping[str, Any], name: str, version: int) -> Any:
    if name not in params:
        raise MigrationError(f"operation is missing parameter '{name}'", version)
    return params[name]


def _name_param(params: Mapping[str, Any], name: str, version: int) -> str:
    value = _param(params, name, version)
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise MigrationError(f"parameter '{name}' must be a string, got {value!r}", version)
    return str(value)


def _mapping(value: Any, name: str, version: int) -> dict[str, Any]:
    """Copy a mapping parameter, treating None as empty."""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise MigrationError(f"parameter '{name}' must be a mapping, got {value!r}", version)
    return {str(key): copy.deepcopy(item) for key, item in value.items()}


def _keys(value: Any, name: str, version: int) -> list[str]:
    """Normalize a list of attribute keys; YAML may load numeric keys as ints."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise MigrationError(f"parameter '{name}' must be a list, got {value!r}", version)
    return [str(key) for key in value]


def _locate(
    state: dict[str, Any],
    params: Mapping[str, Any],
    version: int,
) -> tuple[dict[str, Any], str]:
    """Return the record holding the attribute at ``params['path']`` and its key."""
    collection = _collection(state, _name_param(params, "collection", version), version)
    raw_path = _param(params, "path", version)
    path = [str(raw_path)] if isinstance(raw_path, (str, int)) else _keys(raw_path, "path", version)
    if not path:
        raise MigrationError("attribute path is empty", version)

    record = collection["schema"]
    for key in path[:-1]:
        child = record["properties"].get(key)
        if not isinstance(child, dict) or child.get("type") != "record":
            raise MigrationError(f"'{'.'.join(path)}' does not resolve to a record attribute", version)
        child["properties"] = _mapping(child.get("properties"), "properties", version)
        child["optional"] = _keys(child.get("optional"), "optional", version)
        record = child
    return record, path[-1]


def _existing_attribute(
    record: dict[str, Any], key: str, version: int
) -> dict[str, Any]:
    attribute = record["properties"].get(key)
    if attribute is None:
        raise MigrationError(f"attribute '{key}' does not exist", version)
    if not isinstance(attribute, dict):
        raise MigrationError(f"attribute '{key}' is not a mapping", version)
    return attribute


def _set_optional(record: dict[str, Any], key: str, optional: bool) -> None:
    keys = [str(k) for k in record.get("optional") or [] if str(k) != key]
    if optional:
        keys.append(key)
    record["optional"] = keys


def _rules(collection: dict[str, Any], version: int) -> dict[str, Any]:
    rules = collection.setdefault("rules", {})
    if not isinstance(rules, dict):
        raise MigrationError("collection rules must be a mapping", version)
    return rules


def create_collection(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    name = _name_param(params, "name", version)
    if name in state["collections"]:
        raise MigrationError(f"collection '{name}' already exists", version)
    record = _empty_record()
    record["properties"] = _mapping(params.get("schema"), "schema", version)
    record["optional"] = _keys(params.get("optional"), "optional", version)
    collection: dict[str, Any] = {"schema": record}
    if params.get("rules") is not None:
        collection["rules"] = _mapping(params["rules"], "rules", version)
    state["collections"][name] = collection


def drop_collection(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    name = _name_param(params, "name", version)
    _collection(state, name, version)
    del state["collections"][name]


def add_attribute(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    record, key = _locate(state, params, version)
    if key in record["properties"]:
        raise MigrationError(f"attribute '{key}' already exists", version)
    attribute = _param(params, "attribute", version)
    if not isinstance(attribute, Mapping):
        raise MigrationError(f"parameter 'attribute' must be a mapping, got {attribute!r}", version)
    record["properties"][key] = copy.deepcopy(dict(attribute))
    _set_optional(record, key, bool(params.get("optional", False)))


def drop_attribute(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    record, key = _locate(state, params, version)
    _existing_attribute(record, key, version)
    del record["properties"][key]
    _set_optional(record, key, False)


def alter_attribute_option(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    record, key = _locate(state, params, version)
    attribute = _existing_attribute(record, key, version)
    options = _mapping(attribute.get("options"), "options", version)
    options.update(_mapping(_param(params, "options", version), "options", version))
    attribute["options"] = options


def drop_attribute_option(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    record, key = _locate(state, params, version)
    attribute = _existing_attribute(record, key, version)
    options = _mapping(attribute.get("options"), "options", version)
    options.pop(_name_param(params, "option", version), None)
    attribute["options"] = options


def set_attribute_optional(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    record, key = _locate(state, params, version)
    _existing_attribute(record, key, version)
    _set_optional(record, key, bool(_param(params, "optional", version)))


def add_rule(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    collection = _collection(state, _name_param(params, "collection", version), version)
    rules = _rules(collection, version)
    scope = rules.setdefault(_name_param(params, "scope", version), {})
    if not isinstance(scope, dict):
        raise MigrationError("rule scope must be a mapping", version)
    scope[_name_param(params, "id", version)] = copy.deepcopy(_param(params, "rule", version))


def drop_rule(state: dict[str, Any], params: Mapping[str, Any], version: int) -> None:
    collection = _collection(state, _name_param(params, "collection", version), version)
    scope_name = _name_param(params, "scope", version)
    rules = _rules(collection, version)
    scope = rules.get(scope_name) or {}
    if not isinstance(scope, dict):
        raise MigrationError("rule scope must be a mapping", version)
    scope.pop(_name_param(params, "id", version), None)
    if not scope:
        rules.pop(scope_name, None)
    if not rules:
        collection.pop("rules", None)


OPERATIONS: dict[str, Operation] = {
    "create_collection": create_collection,
    "drop_collection": drop_collection,
    "add_attribute": add_attribute,
    "drop_attribute": drop_attribute,
    "alter_attribute_option": alter_attribute_option,
    "drop_attribute_option": drop_attribute_option,
    "set_attribute_optional": set_attribute_optional,
    "add_rule": add_rule,
    "drop_rule": drop_rule,
}


def _migration_version(migration: Any) -> int:
    if not isinstance(migration, Mapping) or "version" not in migration:
        raise MigrationError("migration record is missing 'version'")
    try:
        return int(migration["version"])
    except (TypeError, ValueError) as e:
        raise MigrationError(f"invalid migration version {migration['version']!r}") from e


def apply_migration(state: dict[str, Any], migration: Mapping[str, Any]) -> None:
    """Apply one migration's ``up`` operations to the working state."""
    version = _migration_version(migration)
    for step in migration.get("up") or []:
        if not isinstance(step, Sequence) or isinstance(step, str) or len(step) != 2:
            raise MigrationError(f"malformed operation {step!r}", version)
        op_name, params = step
        operation = OPERATIONS.get(op_name) if isinstance(op_name, str) else None
        if operation is None:
            raise MigrationError(f"unknown operation '{op_name}'", version)
        if not isinstance(params, Mapping):
            raise MigrationError(f"parameters of '{op_name}' must be a mapping", version)
        operation(state, params, version)
    state["version"] = version


def resolve_current_schema(migrations: Sequence[Mapping[str, Any]]) -> SchemaIR | None:
    """Apply ``migrations`` in version order and return the resulting schema.

    Returns None when there are no migrations (nothing to generate).

    Raises:
        MigrationError: If a migration cannot be applied.
    """
    if not migrations:
        return None

    ordered = sorted(migrations, key=_migration_version)
    state: dict[str, Any] = {"version": 0, "collections": {}}
    for migration in ordered:
        logger.debug("Applying migration %s (%s)", migration["version"], migration.get("name", ""))
        apply_migration(state, migration)

    try:
        return schema_from_json(state)
    except SchemaValidationError as e:
        raise MigrationError(f"migrations produced an invalid schema: {e}", state["version"]) from e
