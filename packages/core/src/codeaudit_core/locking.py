"""Locks, resignations and the picklist.

A lock is the record living under ``Locked/<user>/``; acquiring it is a
``change_state`` to ``locked`` and releasing it is a move back to
``review``. A resignation is a line in ``Resigned/<user>`` and only ever
affects which records are offered to that reviewer.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Mapping

from codeaudit_core.engine import change_state
from codeaudit_core.exceptions import InvalidStateError
from codeaudit_core.record import CommitRecord, build_record, find_records
from codeaudit_core.states import LOCKED_DIR, RESIGNED_DIR, State

if TYPE_CHECKING:
    from codeaudit_core.context import AuditContext
    from codeaudit_store.audit import AuditRepository

logger = logging.getLogger(__name__)


def lock(ctx: AuditContext, record: CommitRecord, message: str = "Locked.") -> bool:
    return change_state(ctx, record, State.LOCKED, message)


def unlock(ctx: AuditContext, record: CommitRecord, message: str = "Unlocked.") -> bool:
    return change_state(ctx, record, State.REVIEW, message)


def locked_by(ctx: AuditContext, user: str | None = None) -> list[CommitRecord]:
    """Records currently locked by ``user`` (default: the current reviewer)."""
    user = user or ctx.user
    audit = ctx.audit
    paths = [p for p in audit.ls_files(str(PurePosixPath(LOCKED_DIR, user))) if p.endswith(".patch")]
    return [build_record(audit, p) for p in sorted(paths)]


class ResignationSet:
    """The records one reviewer has resigned from."""

    def __init__(self, audit: AuditRepository, user: str):
        self.audit = audit
        self.user = user
        self.relpath = str(PurePosixPath(RESIGNED_DIR, user))
        self._bases: set[str] | None = None

    @property
    def bases(self) -> set[str]:
        if self._bases is None:
            path = self.audit.path(self.relpath)
            if path.is_file():
                self._bases = {line.strip() for line in path.read_text().splitlines() if line.strip()}
            else:
                self._bases = set()
        return self._bases

    def __contains__(self, path: str) -> bool:
        return PurePosixPath(path).name in self.bases

    def __len__(self) -> int:
        return len(self.bases)

    def add(self, base: str) -> None:
        """Append ``base`` to the list and stage the file."""
        base = PurePosixPath(base).name
        if base in self.bases:
            return
        self.audit.write_file(self.relpath, f"{base}\n", append=True)
        self.audit.add(self.relpath)
        self.bases.add(base)


def resign(ctx: AuditContext, record: CommitRecord, reason: str | Mapping) -> bool:
    """Resign from ``record`` and hand it back to the review pool.

    The resignation line and the unlock land in the same audit commit.
    """
    if record.state is not State.LOCKED:
        raise InvalidStateError(f"{record.sha1} must be locked to resign from it")
    resigned = ResignationSet(ctx.audit, ctx.user)
    details = {"reason": "resign", "message": reason} if isinstance(reason, str) else dict(reason)
    details.setdefault("message", "Unlocked due to resignation.")

    logger.info("Resigning %s from %s", ctx.user, record.sha1)
    return change_state(ctx, record, State.REVIEW, details, stage=lambda audit: resigned.add(record.base))


def picklist(ctx: AuditContext, profile: str | None = None) -> list[CommitRecord]:
    """Records waiting for review that the current reviewer may pick.

    Excludes records the reviewer resigned from and records they authored.
    """
    audit = ctx.audit
    resigned = ResignationSet(audit, ctx.user)
    return [
        record
        for record in find_records(audit, states=[State.REVIEW], profile=profile)
        if record.current_path not in resigned and record.author != ctx.user
    ]
