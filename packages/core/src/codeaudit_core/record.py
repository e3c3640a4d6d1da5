"""Commit records: one source commit under audit, one ``.patch`` file.

A record is derived from two things only: the file's path (workflow state
and profile) and the file's content (who wrote the source commit and when).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from codeaudit_core.exceptions import AmbiguousCommitError, RecordError, UnknownCommitError
from codeaudit_core.states import State, StatePath
from codeaudit_core.trail import lookup_profile

if TYPE_CHECKING:
    from codeaudit_store.audit import AuditRepository

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"<([^>]+)>")


@dataclass
class CommitRecord:
    sha1: str
    state: State
    profile: str | None
    author: str
    date: str  # authored date of the source commit, as found in the patch
    current_path: str
    review_path: str | None
    base: str
    lock_user: str | None = None

    @property
    def location(self) -> StatePath:
        return StatePath.parse(self.current_path)

    @property
    def select_date(self) -> str | None:
        """``YYYY-MM`` of the review directory the record was selected into."""
        if not self.review_path:
            return None
        review = StatePath.parse(self.review_path)
        return f"{review.year}-{review.month}" if review.is_dated else None

    def as_dict(self) -> dict:
        return {
            "sha1": self.sha1,
            "state": self.state.value,
            "profile": self.profile,
            "author": self.author,
            "date": self.date,
            "select_date": self.select_date,
            "current_path": self.current_path,
            "review_path": self.review_path,
            "base": self.base,
            "lock_user": self.lock_user,
        }


def parse_patch_headers(text: str) -> tuple[str, str]:
    """Return ``(author_email, date)`` from a ``git show`` style patch.

    Only the first ``Author:`` and ``Date:`` lines are used; the date is the
    first whitespace-delimited token after the label.
    """
    author = date = None
    for line in text.splitlines():
        if author is None and line.startswith("Author:"):
            value = line[len("Author:") :].strip()
            match = _EMAIL_RE.search(value)
            author = match.group(1) if match else value
        elif date is None and line.startswith("Date:"):
            tokens = line[len("Date:") :].split()
            date = tokens[0] if tokens else None
        if author is not None and date is not None:
            break

    if not author:
        raise RecordError("patch has no Author: header")
    if not date:
        raise RecordError("patch has no Date: header")
    return author, date


def matches(audit: AuditRepository, obj: str) -> list[str]:
    """Tracked record files whose path contains ``obj``."""
    obj = (obj or "").strip()
    if not obj:
        return []
    return [p for p in audit.ls_files(f"*{obj}*") if p.endswith(".patch")]


def record_exists(audit: AuditRepository, obj: str) -> bool:
    return bool(matches(audit, obj))


def resolve_record(audit: AuditRepository, obj: str) -> CommitRecord:
    """Resolve a sha1, partial sha1 or path to exactly one record."""
    found = matches(audit, obj)
    if not found:
        raise UnknownCommitError(f"unknown commit object: {obj}")
    if len(found) > 1:
        raise AmbiguousCommitError(obj, found)
    return build_record(audit, found[0])


def build_record(audit: AuditRepository, path: str) -> CommitRecord:
    """Build the record stored at ``path`` (relative to the audit root)."""
    if not audit.path(path).is_file():
        raise RecordError(f"nothing here: {path}")

    location = StatePath.parse(path)
    sha1 = location.sha1
    if sha1 is None:
        raise RecordError(f"not a record file: {path}")
    author, date = parse_patch_headers(audit.read_file(path))

    profile = location.profile
    if location.state is State.LOCKED:
        # Locked/<user>/ hides the profile; the audit trail remembers it.
        profile = lookup_profile(audit, sha1)

    review_path = None
    if profile:
        review_path = str(StatePath.review(profile, date, location.base))

    return CommitRecord(
        sha1=sha1,
        state=location.state,
        profile=profile,
        author=author,
        date=date,
        current_path=path,
        review_path=review_path,
        base=location.base,
        lock_user=location.user,
    )


def find_records(
    audit: AuditRepository,
    states: Iterable[State | str] | None = None,
    profile: str | None = None,
    since: str | None = None,
    until: str | None = None,
) -> list[CommitRecord]:
    """Every record, optionally filtered, ordered by source commit date.

    ``since`` and ``until`` compare against the record's ``YYYY-MM-DD`` date,
    both inclusive. Files that cannot be read as records are skipped.
    """
    wanted = {State(s) for s in states} if states else None
    records = []
    for path in audit.ls_files("*.patch"):
        try:
            record = build_record(audit, path)
        except RecordError as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        if wanted is not None and record.state not in wanted:
            continue
        if profile is not None and record.profile != profile:
            continue
        day = record.date[:10]
        if since and day < since:
            continue
        if until and day > until:
            continue
        records.append(record)
    return sorted(records, key=lambda r: (r.date, r.sha1))
