"""Review states and the directory grammar that encodes them.

A record's path in the audit repository *is* its state:

    <profile>/<yyyy>/<mm>/Review/<sha1>.patch      review
    <profile>/<yyyy>/<mm>/Approved/<sha1>.patch    approved
    <profile>/<yyyy>/<mm>/Concerns/<sha1>.patch    concerns
    Locked/<user>/<sha1>.patch                     locked

StatePath is the only place that builds or parses these paths.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import PurePosixPath

from codeaudit_core.exceptions import RecordError

LOCKED_DIR = "Locked"
COMMENTS_DIR = "Comments"
RESIGNED_DIR = "Resigned"

_SHA1_RE = re.compile(r"([0-9a-f]+)\.patch$")


class State(str, Enum):
    LOCKED = "locked"
    REVIEW = "review"
    APPROVED = "approved"
    CONCERNS = "concerns"
    COMMENT = "comment"
    RESIGNED = "resigned"
    UNKNOWN = "unknown"

    @property
    def color(self) -> str:
        return _COLORS.get(self, "magenta")


_COLORS = {
    State.LOCKED: "cyan",
    State.REVIEW: "yellow",
    State.APPROVED: "green",
    State.CONCERNS: "red",
    State.COMMENT: "white",
}

# State directories inside <profile>/<yyyy>/<mm>/.
_STATE_DIRS = {
    State.REVIEW: "Review",
    State.APPROVED: "Approved",
    State.CONCERNS: "Concerns",
}
_DIR_STATES = {name.lower(): state for state, name in _STATE_DIRS.items()}

# States a record can be moved into with change_state().
PATH_STATES = frozenset({State.LOCKED, State.REVIEW, State.APPROVED, State.CONCERNS})


def sha1_from_base(base: str) -> str | None:
    match = _SHA1_RE.search(base)
    return match.group(1) if match else None


@dataclass(frozen=True)
class StatePath:
    """A parsed record location."""

    state: State
    base: str
    profile: str | None = None
    year: str | None = None
    month: str | None = None
    user: str | None = None

    @classmethod
    def parse(cls, path: str) -> StatePath:
        parts = PurePosixPath(path).parts
        if not parts:
            raise RecordError("empty record path")
        base = parts[-1]

        if len(parts) >= 3 and parts[0].lower() == LOCKED_DIR.lower():
            return cls(State.LOCKED, base, user=parts[1])

        if len(parts) == 5:
            profile, year, month, label, _ = parts
            state = _DIR_STATES.get(label.lower(), State.UNKNOWN)
            return cls(state, base, profile=profile, year=year, month=month)

        return cls(State.UNKNOWN, base, profile=parts[0] if len(parts) > 1 else None)

    @classmethod
    def review(cls, profile: str, commit_date: str, base: str) -> StatePath:
        """Canonical review location for a commit authored on ``commit_date``."""
        year, month = _year_month(commit_date)
        return cls(State.REVIEW, base, profile=profile, year=year, month=month)

    @property
    def sha1(self) -> str | None:
        return sha1_from_base(self.base)

    @property
    def is_dated(self) -> bool:
        return bool(self.profile and self.year and self.month)

    def with_state(self, state: State, user: str | None = None) -> StatePath:
        """The location this record moves to when it enters ``state``.

        ``locked`` nests the file under the reviewer; the other path states
        swap the state directory of a dated (profile/year/month) location.
        """
        state = State(state)
        if state is State.LOCKED:
            if not user:
                raise RecordError("a reviewer is required to lock a record")
            return StatePath(State.LOCKED, self.base, user=user)
        if state not in _STATE_DIRS:
            raise RecordError(f"{state.value} is not encoded in the record path")
        if not self.is_dated:
            raise RecordError(f"no review path for {self.base}")
        return replace(self, state=state, user=None)

    def with_profile(self, profile: str) -> StatePath:
        if not self.is_dated:
            raise RecordError(f"{self.base} is not in a profile directory")
        return replace(self, profile=profile)

    def comments_dir(self) -> str:
        if not self.is_dated:
            raise RecordError(f"no review path for {self.base}")
        return str(PurePosixPath(self.profile, self.year, self.month, COMMENTS_DIR, self.sha1 or self.base))

    def render(self) -> str:
        if self.state is State.LOCKED:
            return str(PurePosixPath(LOCKED_DIR, self.user, self.base))
        if self.state in _STATE_DIRS and self.is_dated:
            return str(PurePosixPath(self.profile, self.year, self.month, _STATE_DIRS[self.state], self.base))
        raise RecordError(f"cannot render a {self.state.value} path for {self.base}")

    def __str__(self) -> str:
        return self.render()


def _year_month(commit_date: str) -> tuple[str, str]:
    parts = (commit_date or "").split("-")
    if len(parts) < 2 or not (parts[0].isdigit() and parts[1][:2].isdigit()):
        raise RecordError(f"cannot derive year/month from date {commit_date!r}")
    return parts[0], parts[1][:2]
