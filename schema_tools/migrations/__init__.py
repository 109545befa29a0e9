"""Migration sources and schema resolution."""

from .resolver import OPERATIONS, apply_migration, resolve_current_schema
from .status import (
    APPLICABLE_STATUSES,
    MigrationStatusClient,
    load_local_migrations,
    select_applicable_migrations,
)

__all__ = [
    "OPERATIONS",
    "apply_migration",
    "resolve_current_schema",
    "APPLICABLE_STATUSES",
    "MigrationStatusClient",
    "load_local_migrations",
    "select_applicable_migrations",
]
