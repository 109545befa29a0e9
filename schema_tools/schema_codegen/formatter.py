"""Pretty-print generated source with prettier, when it is installed."""

from __future__ import annotations

import logging
import shutil
import subprocess

logger = logging.getLogger(__name__)

FORMAT_TIMEOUT_SECONDS: float = 30.0


def prettier_command(parser: str = "typescript") -> list[str] | None:
    """Resolve the prettier invocation, or None if it is unavailable."""
    prettier = shutil.which("prettier")
    if prettier:
        return [prettier, "--parser", parser]
    npx = shutil.which("npx")
    if npx:
        return [npx, "--no-install", "prettier", "--parser", parser]
    return None


def format_source(text: str, parser: str = "typescript") -> str:
    """Format ``text`` through prettier.

    Formatting is best effort: when prettier is missing or rejects the
    input, the text is returned unchanged and a warning is logged.
    """
    command = prettier_command(parser)
    if command is None:
        logger.warning("prettier not found; writing unformatted output")
        return text

    try:
        result = subprocess.run(
            command,
            input=text,
            capture_output=True,
            text=True,
            check=True,
            timeout=FORMAT_TIMEOUT_SECONDS,
        )
    except subprocess.CalledProcessError as e:
        logger.warning("prettier failed (exit %s): %s", e.returncode, (e.stderr or "").strip())
        return text
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("prettier could not run: %s", e)
        return text

    return result.stdout
