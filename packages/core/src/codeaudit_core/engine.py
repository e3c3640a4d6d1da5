"""State transition engine.

A transition is one audit commit: the record's file is moved (``git mv``)
from the path encoding its current state to the path encoding the new one,
and the commit message carries the structured details of the change.

Every mutation runs reset -> check -> move -> commit -> push. The remote
head observed after the reset is the expected head for the push; if any
other reviewer published in between, the local commit is discarded and
ConcurrentUpdateError propagates to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Callable, Mapping

from codeaudit_core.exceptions import (
    ConfigurationError,
    InvalidStateError,
    LockConflictError,
    RecordError,
    StaleRecordError,
)
from codeaudit_core.profiles import check_profile_name, profiles
from codeaudit_core.record import CommitRecord, build_record, parse_patch_headers, record_exists
from codeaudit_core.states import PATH_STATES, State, StatePath
from codeaudit_store.message import encode_message

if TYPE_CHECKING:
    from codeaudit_core.context import AuditContext
    from codeaudit_store.audit import AuditRepository

logger = logging.getLogger(__name__)


def _as_details(details: str | Mapping | None) -> dict:
    if details is None:
        return {}
    if isinstance(details, str):
        return {"message": details}
    return dict(details)


def _record_details(ctx: AuditContext, record: CommitRecord) -> dict:
    return {
        "profile": record.profile,
        "commit": record.sha1,
        "commit_date": record.date,
        "author": record.author,
        "reviewer": ctx.user,
    }


def _check_lock(ctx: AuditContext, record: CommitRecord) -> None:
    if record.state is State.LOCKED and record.lock_user and record.lock_user != ctx.user:
        raise LockConflictError(f"{record.sha1} is locked by {record.lock_user}")


def _begin(ctx: AuditContext, record: CommitRecord) -> str | None:
    """Synchronise with the remote and confirm the record has not moved."""
    audit = ctx.audit
    audit.reset()
    expected = audit.remote_head()
    if not audit.is_tracked(record.current_path):
        raise StaleRecordError(
            f"{record.sha1} is no longer at {record.current_path}; another reviewer changed it, resolve it again"
        )
    return expected


def target_path(ctx: AuditContext, record: CommitRecord, new_state: State) -> str:
    """Where ``record`` lives once it is in ``new_state``."""
    if new_state is State.LOCKED:
        return str(record.location.with_state(State.LOCKED, user=ctx.user))
    if not record.review_path:
        raise RecordError(f"no review path for {record.base} (profile unknown)")
    review = StatePath.parse(record.review_path)
    return str(review if new_state is State.REVIEW else review.with_state(new_state))


def change_state(
    ctx: AuditContext,
    record: CommitRecord,
    new_state: State | str,
    details: str | Mapping | None = None,
    stage: Callable[[AuditRepository], None] | None = None,
) -> bool:
    """Move ``record`` into ``new_state``, recording ``details``.

    Returns False when the record is already in that state (nothing is
    written), True after the transition has been committed and pushed.
    ``record`` is updated in place. ``stage`` runs after the move and may
    stage further changes into the same audit commit.
    """
    try:
        new_state = State(new_state)
    except ValueError:
        raise InvalidStateError(f"invalid state: {new_state}") from None

    _check_lock(ctx, record)
    if record.state is new_state:
        logger.debug("%s is already in state %s, noop", record.sha1, new_state.value)
        return False
    if new_state not in PATH_STATES:
        raise InvalidStateError(f"invalid state: {new_state.value} is not a transition target")

    details = _as_details(details)
    target = target_path(ctx, record, new_state)
    audit = ctx.audit
    expected = _begin(ctx, record)

    if target != record.current_path:
        logger.info("Moving %s to %s", record.current_path, target)
        audit.mv(record.current_path, target)
        if stage is not None:
            stage(audit)
        payload = {**_record_details(ctx, record), **details}
        payload.update(state=new_state.value, state_previous=record.state.value)
        audit.commit(encode_message(payload))
        audit.push(expected_head=expected)
    else:
        logger.debug("%s already at %s", record.sha1, target)

    record.state = new_state
    record.current_path = target
    record.lock_user = ctx.user if new_state is State.LOCKED else None
    return True


def change_profile(
    ctx: AuditContext,
    record: CommitRecord,
    new_profile: str,
    details: str | Mapping | None = None,
) -> bool:
    """Move ``record`` (and its comments) into another profile."""
    new_profile = check_profile_name(new_profile)
    if new_profile == record.profile:
        logger.debug("%s is already in profile %s, noop", record.sha1, new_profile)
        return False
    if record.state is State.LOCKED:
        raise InvalidStateError(f"{record.sha1} is locked; unlock it before moving it to another profile")

    audit = ctx.audit
    if new_profile not in profiles(audit):
        raise ConfigurationError(f"Unknown profile '{new_profile}', valid profiles: {', '.join(profiles(audit))}")

    details = _as_details(details)
    location = record.location
    target = str(location.with_profile(new_profile))
    expected = _begin(ctx, record)

    logger.info("Moving %s to profile %s", record.current_path, new_profile)
    audit.mv(record.current_path, target)
    comments = location.comments_dir()
    if audit.ls_files(comments):
        audit.mv(comments, location.with_profile(new_profile).comments_dir())

    payload = {**_record_details(ctx, record), **details}
    payload.update(
        profile=new_profile,
        profile_previous=record.profile,
        state=record.state.value,
        state_previous=record.state.value,
    )
    audit.commit(encode_message(payload))
    audit.push(expected_head=expected)

    record.profile = new_profile
    record.current_path = target
    if record.review_path:
        record.review_path = str(replace(StatePath.parse(record.review_path), profile=new_profile))
    return True


def select_records(
    ctx: AuditContext,
    patches: Mapping[str, str],
    profile: str,
    reason: str | None = None,
) -> list[CommitRecord]:
    """Write candidate commits as new ``review`` records in one audit commit.

    ``patches`` maps full source sha1 to its exported patch text. Commits
    already present in the audit are skipped.
    """
    profile = check_profile_name(profile)
    audit = ctx.audit
    audit.reset()

    created = []
    for sha1, patch in patches.items():
        if record_exists(audit, sha1):
            logger.info("%s is already in the audit, skipping", sha1)
            continue
        _, date = parse_patch_headers(patch)
        path = str(StatePath.review(profile, date, f"{sha1}.patch"))
        audit.write_file(path, patch)
        audit.add(path)
        created.append(path)

    if not created:
        return []

    commits = [StatePath.parse(p).sha1 for p in created]
    audit.commit(
        encode_message(
            {
                "state": "select",
                "profile": profile,
                "reviewer": ctx.user,
                "reason": reason,
                "commits": commits,
            },
            message=f"Selected {len(commits)} commit(s) for review in {profile}.",
        )
    )
    audit.push()
    return [build_record(audit, p) for p in created]


def clean_comment(text: str) -> str:
    """Drop ``#`` lines and collapse runs of blank lines."""
    lines = []
    blank = 0
    for line in (text or "").splitlines():
        if line.startswith("#"):
            continue
        if not line.strip():
            blank += 1
            if blank > 1:
                continue
        else:
            blank = 0
        lines.append(line.rstrip())
    return "\n".join(lines).strip()


def comment(
    ctx: AuditContext,
    record: CommitRecord,
    text: str,
    author: str | None = None,
    when: datetime | None = None,
) -> str | None:
    """Attach a comment to ``record`` without changing its state.

    Returns the comment's repository path, or None if an identical comment
    file (same author and timestamp) already exists.
    """
    if not record.review_path:
        raise RecordError(f"no review path for {record.base} (profile unknown)")
    author = author or ctx.user
    when = when or datetime.now()

    comment_id = f"{when:%Y-%m-%d-%H:%M:%S}-{author}.txt"
    path = str(PurePosixPath(StatePath.parse(record.review_path).comments_dir(), comment_id))

    audit = ctx.audit
    audit.reset()
    if audit.path(path).exists():
        logger.warning("Comment %s already exists.", path)
        return None

    audit.write_file(path, text.rstrip("\n") + "\n")
    audit.add(path)
    payload = _record_details(ctx, record)
    payload.update(state=State.COMMENT.value, reviewer=author)
    audit.commit(encode_message(payload, message=text))
    audit.push()
    return path
