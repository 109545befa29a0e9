"""Module assembler: wraps all collections into one source module."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

from .collection import encode_collection
from .ir import SchemaIR
from .values import NAMESPACE, quote
from .writer import CodeWriter

logger = logging.getLogger(__name__)

TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"
MODULE_TEMPLATE: Final[str] = "schema.ts.j2"


@dataclass(frozen=True, slots=True)
class ModuleOptions:
    """Names used in the generated module's header, import and export."""

    generator_name: str = "Triplit CLI"
    import_path: str = "@triplit/db"
    export_name: str = "schema"


@dataclass
class ModuleContext:
    """Template environment for module rendering, compiled once."""

    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
        )
        self._module_template = self.template_env.get_template(MODULE_TEMPLATE)

    @property
    def module_template(self) -> Template:
        return self._module_template


_default_context: ModuleContext | None = None


def _get_context() -> ModuleContext:
    global _default_context
    if _default_context is None:
        _default_context = ModuleContext()
    return _default_context


def encode_collections(schema: SchemaIR | None) -> str:
    """Render the outer ``{"name": {...}, ...}`` object in declaration order."""
    collections = schema.collections if schema is not None else {}
    if not collections:
        return "{}"

    writer = CodeWriter()
    writer.line("{")
    with writer.indented():
        for name, definition in collections.items():
            writer.line(f"{quote(name)}: {encode_collection(definition)},")
    writer.line("}")
    return writer.expression()


def encode_module(
    schema: SchemaIR | None,
    options: ModuleOptions | None = None,
    ctx: ModuleContext | None = None,
) -> str:
    """Render the complete schema module.

    The collections body is built in full before the template is rendered,
    so an encoding error leaves no partial output behind.
    """
    options = options or ModuleOptions()
    ctx = ctx or _get_context()

    body = encode_collections(schema)
    logger.debug(
        "Encoded %d collection(s)",
        len(schema.collections) if schema is not None else 0,
    )
    return ctx.module_template.render(
        generator_name=options.generator_name,
        namespace=NAMESPACE,
        import_path=options.import_path,
        export_name=options.export_name,
        collections=body,
    )
