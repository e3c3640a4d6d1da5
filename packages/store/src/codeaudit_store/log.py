"""Reading the audit repository's commit log as AuditLogEntry objects."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

from codeaudit_store.message import MessageParseError, decode_message
from codeaudit_store.models import AuditLogEntry

if TYPE_CHECKING:
    from codeaudit_store.git import GitRepository

logger = logging.getLogger(__name__)

# Unit/record separators cannot appear in commit metadata and are
# vanishingly rare in messages, so they delimit fields and commits.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_FORMAT = "%H%x1f%ae%x1f%an%x1f%at%x1f%B%x1e"


def read_log(
    repo: GitRepository,
    *pathspecs: str,
    grep: str | None = None,
    since: str | None = None,
    until: str | None = None,
    reverse: bool = True,
    max_count: int | None = None,
    rev: str | None = None,
) -> Iterator[AuditLogEntry]:
    """Yield log entries, oldest first unless ``reverse`` is False.

    An entry whose structured block cannot be parsed is logged and skipped;
    it never aborts the traversal.
    """
    args = ["log", f"--format={_FORMAT}"]
    if reverse:
        args.append("--reverse")
    if grep:
        args += ["--fixed-strings", f"--grep={grep}"]
    if since:
        args.append(f"--since={since}")
    if until:
        args.append(f"--until={until}")
    if max_count is not None:
        args.append(f"--max-count={max_count}")
    if rev:
        args.append(rev)
    args.append("--")
    args.extend(pathspecs)

    if repo.rev_parse("HEAD") is None:
        # Unborn branch: nothing has been committed yet.
        return

    for chunk in repo.run(*args).split(_RECORD_SEP):
        chunk = chunk.lstrip("\n")
        if not chunk:
            continue
        entry = parse_entry(chunk)
        if entry is not None:
            yield entry


def parse_entry(chunk: str) -> AuditLogEntry | None:
    """Parse one formatted log record; None if its message is malformed."""
    try:
        commit, email, name, timestamp, body = chunk.split(_FIELD_SEP, 4)
    except ValueError:
        logger.warning("Skipping unreadable log record: %r", chunk[:80])
        return None

    try:
        free_text, data = decode_message(body)
    except MessageParseError as e:
        logger.warning("Skipping audit commit %s: %s", commit[:12], e)
        return None

    return AuditLogEntry(
        commit_hash=commit,
        author_email=email,
        author_name=name,
        author_timestamp=int(timestamp or 0),
        free_text=free_text,
        structured_record=data,
    )
