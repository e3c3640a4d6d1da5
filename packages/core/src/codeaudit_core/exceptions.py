"""Errors raised by the audit workflow.

All of them are fatal for the current command: the CLI prints the message
to stderr and exits non-zero. None are retried.
"""

from __future__ import annotations


class AuditError(Exception):
    """Base class for audit workflow errors."""


class ConfigurationError(AuditError):
    """Missing or invalid profile, selection file, identity or remote."""


class UnknownCommitError(AuditError):
    """No record matches the given identifier."""


class AmbiguousCommitError(AuditError):
    """More than one record matches the given identifier."""

    def __init__(self, obj: str, candidates: list[str]):
        self.obj = obj
        self.candidates = list(candidates)
        listing = "\n".join(f"  {c}" for c in self.candidates)
        super().__init__(f"ambiguous commit object: {obj} matches {len(self.candidates)} records:\n{listing}")


class RecordError(AuditError):
    """A record's patch file or path cannot be interpreted."""


class InvalidStateError(AuditError):
    """A transition was requested into a state that is not a valid target."""


class LockConflictError(AuditError):
    """The record is locked by another reviewer."""


class StaleRecordError(AuditError):
    """The record moved after it was resolved; resolve it again and retry."""


class DecisionError(AuditError):
    """Reviewer input for an action is incomplete or invalid."""
