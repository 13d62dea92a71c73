"""Caller identity lookup.

Sessions are issued by the sign-in flow, which is not part of this service.
The exporter only needs to answer one question: which user, if any, does
this token belong to?
"""

from __future__ import annotations

import json
import secrets
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class SessionRecord(BaseModel):
    token: str
    user_id: str
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= now


class SessionStore:
    """JSON-file backed lookup of issued session tokens."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> list[SessionRecord]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Session state file is not valid JSON; treating as empty",
                extra={"path": str(self._path)},
            )
            return []
        if not isinstance(raw, list):
            return []

        records: list[SessionRecord] = []
        for item in raw:
            try:
                records.append(SessionRecord.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed session entry", extra={"path": str(self._path)})
        return records

    def resolve(self, token: str | None) -> str | None:
        """Return the user id for a live session token, else None."""

        if not token:
            return None
        now = datetime.now(tz=UTC)
        for record in self.load():
            if secrets.compare_digest(record.token.encode(), token.encode()):
                return None if record.is_expired(now) else record.user_id
        return None
