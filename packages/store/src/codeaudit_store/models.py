"""Audit log data models.

Kept free of any state-machine knowledge so the store layer can be read
on its own; interpretation of states lives in codeaudit_core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

_TRUTHY = {"true", "yes", "1", "on"}


@dataclass
class AuditLogEntry:
    """One commit in the audit repository's history."""

    commit_hash: str
    author_email: str
    author_name: str
    author_timestamp: int  # seconds since the epoch
    free_text: str = ""
    structured_record: dict = field(default_factory=dict)

    def get(self, key: str, default=None):
        return self.structured_record.get(key, default)

    @property
    def state(self) -> str | None:
        return self.get("state")

    @property
    def state_previous(self) -> str | None:
        return self.get("state_previous")

    @property
    def profile(self) -> str | None:
        return self.get("profile")

    @property
    def reason(self) -> str | None:
        return self.get("reason")

    @property
    def reviewer(self) -> str | None:
        return self.get("reviewer")

    @property
    def fixed_by(self) -> str | None:
        return self.get("fixed_by")

    @property
    def message(self) -> str:
        return self.free_text or str(self.get("message") or "")

    @property
    def commit_date(self) -> str | None:
        for key in ("commit_date", "date", "select_date"):
            if self.get(key):
                return str(self.get(key))
        return None

    @property
    def skip(self) -> bool:
        value = self.get("skip")
        if isinstance(value, bool):
            return value
        return value is not None and str(value).strip().lower() in _TRUTHY

    @property
    def authored_at(self) -> datetime:
        return datetime.fromtimestamp(self.author_timestamp, tz=timezone.utc)
