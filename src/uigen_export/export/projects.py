"""Project records and the JSON-file backed project store.

The export pipeline only ever reads a project, once, through
:meth:`ProjectStore.find`. Creation exists for the sign-in flow (which turns
anonymous work into a project) and for seeding via the CLI.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ProjectData(BaseModel):
    """Serialized project payload.

    `files` maps a path relative to the project root to the file's text.
    Values are kept as-is; non-text values are skipped at export time.
    """

    model_config = ConfigDict(extra="allow")

    files: dict[str, Any] = Field(default_factory=dict)


class ProjectRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    name: str
    data: ProjectData = Field(default_factory=ProjectData)
    created_at: str = Field(default_factory=lambda: datetime.now(tz=UTC).isoformat())


class ProjectStore:
    """JSON-file backed store for project records."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    def _load_unlocked(self) -> list[ProjectRecord]:
        if not self._path.exists():
            return []

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Project state file is not valid JSON; treating as empty",
                extra={"path": str(self._path)},
            )
            return []

        if not isinstance(raw, list):
            logger.warning(
                "Project state file has unexpected shape; treating as empty",
                extra={"path": str(self._path)},
            )
            return []

        return [ProjectRecord.model_validate(item) for item in raw]

    def _save_unlocked(self, projects: list[ProjectRecord]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [p.model_dump(mode="json") for p in projects]
        self._path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def load(self) -> list[ProjectRecord]:
        with self._lock:
            return self._load_unlocked()

    def find(self, project_id: str, owner_id: str) -> ProjectRecord | None:
        """Return the project only if it exists AND belongs to `owner_id`.

        Not-owned and missing look the same to the caller.
        """

        with self._lock:
            for project in self._load_unlocked():
                if project.id == project_id and project.owner_id == owner_id:
                    return project
            return None

    def create(self, *, owner_id: str, name: str, files: dict[str, Any]) -> ProjectRecord:
        with self._lock:
            projects = self._load_unlocked()
            record = ProjectRecord(
                id=uuid.uuid4().hex,
                owner_id=owner_id,
                name=name,
                data=ProjectData(files=dict(files)),
            )
            projects.append(record)
            self._save_unlocked(projects)
            logger.info(
                "Project created",
                extra={"project_id": record.id, "owner_id": owner_id, "files": len(files)},
            )
            return record
