#!/usr/bin/env python3
"""
Schema tools CLI.

Usage:
    python -m schema_tools <command> [options]

Commands:
    codegen     Generate schema.ts from the current migrations
    resolve     Print the resolved schema as JSON

Examples:
    python -m schema_tools codegen --migrations triplit/migrations
    python -m schema_tools codegen --server http://localhost:6543 --token $TOKEN
    python -m schema_tools resolve --migrations triplit/migrations
"""

from __future__ import annotations

import sys


def cmd_codegen(args: list[str]) -> int:
    """Generate the schema module."""
    from schema_tools.schema_codegen import main as codegen
    try:
        codegen.main(args)
        return 0
    except SystemExit as e:
        if isinstance(e.code, str):
            print(e.code, file=sys.stderr)
        return e.code if isinstance(e.code, int) else 1


def cmd_resolve(args: list[str]) -> int:
    """Print the resolved schema."""
    from schema_tools.schema_codegen import main as codegen
    try:
        codegen.resolve_main(args)
        return 0
    except SystemExit as e:
        if isinstance(e.code, str):
            print(e.code, file=sys.stderr)
        return e.code if isinstance(e.code, int) else 1


COMMANDS = {
    "codegen": (cmd_codegen, "Generate schema.ts from the current migrations"),
    "resolve": (cmd_resolve, "Print the resolved schema as JSON"),
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command, args = argv[0], argv[1:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
