"""Migration sources: the sync server's status endpoint or local files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Mapping, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..shared.errors import MigrationError, MigrationStatusError
from ..shared.schema_loader import collect_document_paths, load_document

logger = logging.getLogger(__name__)

APPLICABLE_STATUSES: Final[frozenset[str]] = frozenset({"IN_SYNC", "UNAPPLIED"})
STATUS_ENDPOINT: Final[str] = "/migration/status"
REQUEST_TIMEOUT_SECONDS: Final[float] = 10.0


def _retrying_session() -> requests.Session:
    """Session that retries transient server errors with backoff."""
    session = requests.Session()
    retries = Retry(total=3, backoff_factor=0.5, status_forcelist=(500, 502, 503, 504))
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


@dataclass
class MigrationStatusClient:
    """Fetches the project's migrations and their sync statuses."""

    server_url: str
    token: str | None = None
    timeout: float = REQUEST_TIMEOUT_SECONDS
    session: requests.Session = field(default_factory=_retrying_session)

    def fetch_status(self) -> dict[str, Any]:
        """GET the status document ``{project: {migrations, statuses}}``.

        Raises:
            MigrationStatusError: On transport errors, non-2xx responses or
                an unexpected body.
        """
        url = self.server_url.rstrip("/") + STATUS_ENDPOINT
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.debug("Fetching migration status from %s", url)
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise MigrationStatusError(f"Failed to fetch migration status: {e}", url) from e
        except ValueError as e:
            raise MigrationStatusError(f"Migration status is not valid JSON: {e}", url) from e

        if not isinstance(payload, dict) or not isinstance(payload.get("project"), dict):
            raise MigrationStatusError("Migration status has no 'project' section", url)
        return payload


def select_applicable_migrations(status: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Keep the migrations whose status is IN_SYNC or UNAPPLIED."""
    project = status.get("project") or {}
    statuses = project.get("statuses") or {}
    selected = []
    for migration in project.get("migrations") or []:
        version = migration.get("version")
        # JSON object keys are strings
        state = statuses.get(str(version), statuses.get(version))
        if state in APPLICABLE_STATUSES:
            selected.append(migration)
        else:
            logger.debug("Skipping migration %s with status %s", version, state)
    return selected


def load_local_migrations(inputs: Sequence[Path]) -> list[dict[str, Any]]:
    """Read migration records from YAML/JSON files or directories of them.

    A file may hold a single migration mapping or a list of them.

    Raises:
        FileNotFoundError: If an input path doesn't exist.
        MigrationError: If a document is not a migration record.
    """
    migrations: list[dict[str, Any]] = []
    for path in collect_document_paths(inputs):
        document = load_document(path)
        records = document if isinstance(document, list) else [document]
        for record in records:
            if not isinstance(record, dict) or "version" not in record:
                raise MigrationError("not a migration record (missing 'version')", schema_path=str(path))
            migrations.append(record)
    logger.debug("Loaded %d local migration(s)", len(migrations))
    return migrations
