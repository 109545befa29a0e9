"""Configuration for schema tools.

Resolution order (highest priority first):
1. Explicit overrides (CLI flags)
2. Environment variables (TRIPLIT_DB_URL, TRIPLIT_SERVICE_TOKEN,
   SCHEMA_TOOLS_PROJECT_DIR)
3. Defaults (current directory, ``schema.ts``)

Tokens are only ever read from flags or the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

ENV_SERVER_URL = "TRIPLIT_DB_URL"
ENV_TOKEN = "TRIPLIT_SERVICE_TOKEN"
ENV_PROJECT_DIR = "SCHEMA_TOOLS_PROJECT_DIR"

PROJECT_SUBDIR = "triplit"


@dataclass
class CodegenConfig:
    """Where migrations come from and where the schema module goes."""

    project_dir: Path = field(default_factory=Path.cwd)
    server_url: str | None = None
    token: str | None = None
    import_path: str = "@triplit/db"
    output_filename: str = "schema.ts"

    @property
    def triplit_dir(self) -> Path:
        return self.project_dir / PROJECT_SUBDIR

    @property
    def migrations_dir(self) -> Path:
        return self.triplit_dir / "migrations"

    @property
    def output_path(self) -> Path:
        return self.triplit_dir / self.output_filename

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> CodegenConfig:
        """Build a config from the environment, then apply non-None overrides."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if env.get(ENV_PROJECT_DIR):
            values["project_dir"] = Path(env[ENV_PROJECT_DIR])
        if env.get(ENV_SERVER_URL):
            values["server_url"] = env[ENV_SERVER_URL]
        if env.get(ENV_TOKEN):
            values["token"] = env[ENV_TOKEN]

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown config option: {key}")
            if value is not None:
                values[key] = value

        if "project_dir" in values:
            values["project_dir"] = Path(values["project_dir"])

        config = cls(**values)
        logger.debug("Resolved config: project_dir=%s server_url=%s", config.project_dir, config.server_url)
        return config
