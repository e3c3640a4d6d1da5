"""Source repository operations: attaching it, refreshing it and selecting from it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from codeaudit_core.engine import select_records
from codeaudit_core.profiles import load_selection_criteria
from codeaudit_core.record import record_exists
from codeaudit_store.message import encode_message

if TYPE_CHECKING:
    from codeaudit_core.context import AuditContext
    from codeaudit_core.record import CommitRecord

logger = logging.getLogger(__name__)

README_PATH = ".code-review/README"
_README = "This directory holds the per-profile selection and notification configuration.\n"


def initialize(ctx: AuditContext, url: str, branch: str = "master") -> bool:
    """Attach ``url`` as the source repository of a fresh audit.

    Returns False when a source repository is already attached.
    """
    audit = ctx.audit
    audit.reset()
    source = ctx.source
    if source.is_initialized():
        return False

    source.initialize(url, branch)
    if not audit.path(README_PATH).exists():
        audit.write_file(README_PATH, _README)
        audit.add(README_PATH)
    audit.commit(
        encode_message(
            {
                "state": "init",
                "reviewer": ctx.user,
                "source_repo": url,
                "branch": branch,
                "audit_repo": audit.origin(),
            },
            message="Initializing source repository.",
        )
    )
    audit.push()
    logger.info("Initialized source repository %s (%s)", url, branch)
    return True


def refresh_source(ctx: AuditContext) -> bool:
    """Bring the source submodule up to date, recording the bump if it moved."""
    return ctx.source.reset(ctx.user)


def candidate_commits(
    ctx: AuditContext,
    profile: str | None = None,
    since: str | None = None,
    until: str | None = None,
) -> list[str]:
    """Source commits matching the profile's criteria that are not yet audited."""
    profile = profile or ctx.profile
    criteria = load_selection_criteria(ctx.audit, profile)
    found = ctx.source.candidates(criteria, since=since, until=until)
    fresh = [sha1 for sha1 in found if not record_exists(ctx.audit, sha1)]
    logger.info("%d of %d matching commits are not yet in the audit", len(fresh), len(found))
    return fresh


def select(
    ctx: AuditContext,
    commits: Iterable[str],
    profile: str | None = None,
    reason: str | None = None,
) -> list[CommitRecord]:
    """Export ``commits`` from the source and record them for review."""
    source = ctx.source
    patches = {}
    for ref in commits:
        sha1 = source.resolve_commit(ref)
        patches[sha1] = source.show(sha1)
    if not patches:
        return []
    return select_records(ctx, patches, profile or ctx.profile, reason=reason)
