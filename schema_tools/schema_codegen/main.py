"""
Schema Code Generator - Generates a TypeScript schema module from migrations.

Pipeline:
1. Collect migrations (sync server status, or local migration files)
2. Keep the ones that are IN_SYNC or UNAPPLIED (server source only)
3. Resolve the current schema
4. Serialize it to builder syntax
5. Format and write ``<project>/triplit/schema.ts``
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from ..config import CodegenConfig
from ..migrations.resolver import resolve_current_schema
from ..migrations.status import (
    MigrationStatusClient,
    load_local_migrations,
    select_applicable_migrations,
)
from ..shared.errors import SchemaError
from .formatter import format_source
from .ir import SchemaIR, schema_to_json
from .module import ModuleOptions, encode_module

logger = logging.getLogger(__name__)


def schema_file_content(schema: SchemaIR | None, options: ModuleOptions | None = None) -> str:
    """Serialize a resolved schema; an absent schema yields an empty module."""
    return encode_module(schema, options)


def schema_file_content_from_migrations(
    migrations: list[dict[str, Any]],
    options: ModuleOptions | None = None,
) -> str:
    return schema_file_content(resolve_current_schema(migrations), options)


def write_schema_file(
    content: str,
    directory: Path | None = None,
    *,
    config: CodegenConfig | None = None,
    format_output: bool = True,
) -> Path:
    """Format ``content`` and write it to ``<directory>/schema.ts`` as UTF-8.

    ``directory`` defaults to the project's ``triplit`` directory. Any
    existing file is replaced.
    """
    config = config or CodegenConfig.from_env()
    path = config.output_path if directory is None else directory / config.output_filename
    path.parent.mkdir(parents=True, exist_ok=True)
    if format_output:
        content = format_source(content, parser="typescript")
    path.write_text(content, encoding="utf-8")
    return path


def collect_migrations(config: CodegenConfig, migration_paths: list[Path] | None) -> list[dict[str, Any]]:
    """Gather the migrations to resolve from local files or the sync server."""
    if migration_paths:
        return load_local_migrations(migration_paths)
    if config.server_url:
        client = MigrationStatusClient(config.server_url, config.token)
        return select_applicable_migrations(client.fetch_status())
    if config.migrations_dir.is_dir():
        return load_local_migrations([config.migrations_dir])
    raise SchemaError(
        "No migration source: pass --migrations, --server, "
        f"or create {config.migrations_dir}"
    )


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def build_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--migrations",
        type=Path,
        nargs="+",
        default=None,
        help="Migration file(s) or directories of YAML/JSON migration files",
    )
    parser.add_argument(
        "--server",
        default=None,
        help="Sync server URL to fetch migration status from",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Service token for the sync server",
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=None,
        help="Project root (the schema is written under <project>/triplit)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> CodegenConfig:
    return CodegenConfig.from_env(
        project_dir=args.project_dir,
        server_url=args.server,
        token=args.token,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``codegen``."""
    parser = build_parser("Generate a schema file based on your current migrations")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory to write schema.ts to (default: <project>/triplit)",
    )
    parser.add_argument(
        "--no-format",
        action="store_true",
        help="Skip formatting with prettier",
    )
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = _config_from_args(args)
        migrations = collect_migrations(config, args.migrations)
        content = schema_file_content_from_migrations(
            migrations, ModuleOptions(import_path=config.import_path)
        )
        written = write_schema_file(
            content, args.output_dir, config=config, format_output=not args.no_format
        )
        print(f"New schema has been saved at {written}")
    except (SchemaError, OSError) as e:
        raise SystemExit(f"Error: {e}") from e


def resolve_main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``resolve``: print the resolved schema as JSON."""
    parser = build_parser("Print the schema your current migrations resolve to")
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = _config_from_args(args)
        schema = resolve_current_schema(collect_migrations(config, args.migrations))
    except (SchemaError, OSError) as e:
        raise SystemExit(f"Error: {e}") from e

    if schema is None:
        print("null")
        return
    print(json.dumps(schema_to_json(schema), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
