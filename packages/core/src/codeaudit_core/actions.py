"""Reviewer decisions on a locked record."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from codeaudit_core.engine import change_state
from codeaudit_core.exceptions import DecisionError, InvalidStateError
from codeaudit_core.locking import resign, unlock
from codeaudit_core.states import State

if TYPE_CHECKING:
    from codeaudit_core.context import AuditContext
    from codeaudit_core.record import CommitRecord

logger = logging.getLogger(__name__)

MIN_EXPLANATION = 10

_SHA1_RE = re.compile(r"^[0-9a-f]{40}$")


class PickAction(str, Enum):
    APPROVE = "approve"
    CONCERNS = "concerns"
    RESIGN = "resign"
    SKIP = "skip"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    PickAction.APPROVE: "Approve this commit.",
    PickAction.CONCERNS: "Raise a concern with this commit.",
    PickAction.RESIGN: "Resign from this commit.",
    PickAction.SKIP: "Skip (just exits unlocking the commit.)",
}

APPROVE_REASONS = {
    "cosmetic": "Cosmetic change only, no functional difference.",
    "correct": "Calculations are all accurate.",
    "outofbounds": "Changes are not in the bounds for the audit.",
    "other": "Other (requires explanation)",
}

CONCERN_REASONS = {
    "incorrect": "Calculations are incorrect.",
    "unclear": "Code is not clear, requires more information from the author.",
    "other": "Other",
}

RESIGN_REASONS = {
    "experience": "No experience with systems covered.",
    "bleeding": "My eyes are bleeding.",
    "other": "Other (requires explanation)",
}

FIXED_REASONS = {
    "fixed": "Fixed in a later commit.",
    "correct": "Author clarified and the commit is correct.",
    "other": "Other, requires explanation.",
}

# Reasons whose catalogue label is not explanation enough.
_EXPLAIN = {
    PickAction.APPROVE: {"other"},
    PickAction.CONCERNS: set(CONCERN_REASONS),
    PickAction.RESIGN: {"other"},
}
_FIXED_EXPLAIN = {"correct", "other"}

CATALOGUES = {
    PickAction.APPROVE: APPROVE_REASONS,
    PickAction.CONCERNS: CONCERN_REASONS,
    PickAction.RESIGN: RESIGN_REASONS,
}


@dataclass
class Decision:
    action: PickAction
    reason: str | None = None
    message: str | None = None
    fixed_by: str | None = None

    def __post_init__(self):
        try:
            self.action = PickAction(self.action)
        except ValueError:
            raise DecisionError(f"Unknown action '{self.action}'") from None

    def needs_explanation(self) -> bool:
        return self.reason in _EXPLAIN.get(self.action, ())

    def validate(self, record: CommitRecord | None = None) -> None:
        """Raise DecisionError unless the decision can be recorded as-is."""
        if self.fixed_by is not None:
            _check_fixed_by(self.fixed_by, record)
        if self.action is PickAction.SKIP:
            return
        catalogue = CATALOGUES[self.action]
        if self.reason not in catalogue:
            raise DecisionError(
                f"Invalid reason '{self.reason}' for {self.action.value}; choose one of {', '.join(catalogue)}"
            )
        if self.needs_explanation():
            _check_explanation(self.message)

    def details(self) -> dict:
        """The structured details this decision adds to the transition."""
        if self.action is PickAction.SKIP:
            return {"message": "Unlocked due to skip."}
        label = CATALOGUES[self.action][self.reason]
        if self.action is PickAction.CONCERNS:
            message = f"{label}\n{self.message}"
        elif self.needs_explanation():
            message = self.message
        else:
            message = label
        return {"reason": self.reason, "message": message}


def _check_explanation(message: str | None) -> None:
    if len((message or "").strip()) < MIN_EXPLANATION:
        raise DecisionError(f"An explanation of at least {MIN_EXPLANATION} characters is required.")


def _check_fixed_by(fixed_by: str | None, record: CommitRecord | None) -> None:
    fixed_by = (fixed_by or "").strip()
    if not _SHA1_RE.match(fixed_by):
        raise DecisionError("fixed_by must be a full 40 character SHA1 hash")
    if record is not None and fixed_by == record.sha1:
        raise DecisionError("A commit cannot be fixed by itself")


def apply_decision(ctx: AuditContext, record: CommitRecord, decision: Decision) -> bool:
    """Record the reviewer's decision on a record they hold locked."""
    decision.validate(record)
    action = decision.action
    logger.info("%s %s (%s)", action.value, record.sha1, decision.reason or "-")

    if action is PickAction.APPROVE:
        return change_state(ctx, record, State.APPROVED, decision.details())
    if action is PickAction.CONCERNS:
        return change_state(ctx, record, State.CONCERNS, decision.details())
    if action is PickAction.RESIGN:
        return resign(ctx, record, decision.details())
    if action is PickAction.SKIP:
        return unlock(ctx, record, decision.details()["message"])
    raise DecisionError(f"Unhandled action: {action}")


def validate_fixed(record: CommitRecord, decision: Decision) -> None:
    if decision.reason not in FIXED_REASONS:
        raise DecisionError(
            f"Invalid reason '{decision.reason}' for fixed; choose one of {', '.join(FIXED_REASONS)}"
        )
    if decision.reason == "fixed":
        _check_fixed_by(decision.fixed_by, record)
    if decision.reason in _FIXED_EXPLAIN:
        _check_explanation(decision.message)


def approve_fixed(ctx: AuditContext, record: CommitRecord, decision: Decision) -> bool:
    """Approve a record that was in ``concerns`` once the concern is resolved."""
    if record.state is not State.CONCERNS:
        raise InvalidStateError(f"{record.sha1} is {record.state.value}, only concerns can be fixed")
    validate_fixed(record, decision)

    details = {"reason": decision.reason}
    if decision.reason == "fixed":
        details["message"] = FIXED_REASONS["fixed"]
        details["fixed_by"] = decision.fixed_by.strip()
    else:
        details["message"] = decision.message
    return change_state(ctx, record, State.APPROVED, details)
