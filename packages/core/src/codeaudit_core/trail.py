"""Audit trail replay.

Every selection, transition and comment is one commit in the audit
repository with a structured block. A record's *timeline* is every such
commit touching it; its *history* is the subset written by transitions,
where each entry's ``state_previous`` is the state of the entry before.
These helpers reconstruct views of that log; they never write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from codeaudit_core.states import State, sha1_from_base

if TYPE_CHECKING:
    from codeaudit_store.audit import AuditRepository
    from codeaudit_store.models import AuditLogEntry


def record_pathspec(sha1: str) -> str:
    return f"*{sha1}*"


def timeline(audit: AuditRepository, sha1: str, include_skipped: bool = False) -> list[AuditLogEntry]:
    """Every audit entry touching a record, oldest first.

    Includes its selection and its comments alongside the transitions.
    """
    entries = audit.log(record_pathspec(sha1))
    return [e for e in entries if include_skipped or not e.skip]


def history(
    audit: AuditRepository,
    sha1: str | None = None,
    *,
    grep: str | None = None,
    since: str | None = None,
    until: str | None = None,
    include_skipped: bool = False,
) -> list[AuditLogEntry]:
    """Audit entries in chronological order.

    With ``sha1``, the record's transition log: one entry per state or
    profile change, chained through ``state_previous``. Selection and
    comments are left out (see timeline()). Without it, the whole audit
    log. Administrative entries flagged ``skip`` are dropped unless
    ``include_skipped``.
    """
    pathspecs = [record_pathspec(sha1)] if sha1 else []
    entries = audit.log(*pathspecs, grep=grep, since=since, until=until)
    return [
        e
        for e in entries
        if (include_skipped or not e.skip) and (sha1 is None or e.state_previous is not None)
    ]


def lookup_profile(audit: AuditRepository, sha1: str) -> str | None:
    """The profile recorded by the most recent audit entry for a record."""
    for entry in reversed(timeline(audit, sha1, include_skipped=True)):
        if entry.profile:
            return str(entry.profile)
    return None


def current_concern(audit: AuditRepository, sha1: str) -> AuditLogEntry | None:
    """The concern currently standing against a record, if any.

    The latest ``concerns`` entry wins; an ``approved`` entry after it
    clears it. The entry's author is the reviewer of record.
    """
    current = None
    for entry in history(audit, sha1):
        if entry.state == State.CONCERNS.value:
            current = entry
        elif entry.state == State.APPROVED.value:
            current = None
    return current


def entry_sha1(audit: AuditRepository, entry: AuditLogEntry) -> str | None:
    """The source commit an audit entry is about.

    Prefers the structured ``commit`` key; otherwise looks for a single
    patch file among the paths the audit commit touched.
    """
    if entry.get("commit"):
        return str(entry.get("commit"))
    found = {sha1_from_base(path.rsplit("/", 1)[-1]) for path in audit.files_in(entry.commit_hash)}
    found.discard(None)
    return found.pop() if len(found) == 1 else None
