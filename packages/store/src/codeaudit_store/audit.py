"""AuditRepository — the audit working tree, codeaudit's system of record.

The remote branch of this repository is the only shared state between
reviewers. Writers follow reset -> mutate -> commit -> push; the push step
either compares the remote head against the one observed at reset time
(state transitions) or re-synchronises immediately before publishing
(additive administrative commits).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from codeaudit_store.git import ConcurrentUpdateError, GitError, GitRepository, MissingRemoteError
from codeaudit_store.log import read_log
from codeaudit_store.models import AuditLogEntry

logger = logging.getLogger(__name__)

_REJECTED_MARKERS = ("[rejected]", "non-fast-forward", "fetch first", "failed to push")


class AuditRepository(GitRepository):
    """Read-write handle on the audit working tree."""

    def __init__(self, work_tree: str | Path, remote: str = "origin", branch: str = "master"):
        super().__init__(work_tree)
        self.remote = remote
        self.branch = branch
        self._origin: str | None = None

    @property
    def tracking_ref(self) -> str:
        return f"refs/remotes/{self.remote}/{self.branch}"

    def origin(self) -> str | None:
        """URL of the configured remote, memoized for the handle's lifetime."""
        if self._origin is None:
            self._origin = self.config_get(f"remote.{self.remote}.url")
        return self._origin

    def reset(self) -> None:
        """Synchronise the working tree with the upstream branch.

        Local modifications (including untracked files) are stashed, the
        tracking branch is checked out (created if needed) and pulled.
        """
        url = self.origin()
        if url is None:
            raise MissingRemoteError(f"no remote '{self.remote}' configured for {self.work_tree}")

        if self.is_dirty():
            logger.warning("Audit working tree is dirty, stashing local changes.")
            self.run("stash", "push", "--include-untracked", "-m", "codeaudit: reset")

        if self.current_branch() != self.branch:
            if self.rev_parse(f"refs/heads/{self.branch}"):
                self.run("checkout", self.branch)
            else:
                self.run("checkout", "-b", self.branch)

        logger.info("Pulling %s/%s from %s", self.remote, self.branch, url)
        self.run("pull", "--no-rebase", "--quiet", self.remote, self.branch)

    def fetch(self) -> None:
        self.run("fetch", "--quiet", self.remote, self.branch)

    def remote_head(self) -> str | None:
        return self.rev_parse(self.tracking_ref)

    def push(self, expected_head: str | None = None) -> None:
        """Publish local commits to the remote tracking branch.

        With ``expected_head``, the remote must still point at that commit;
        otherwise the local work is discarded and ConcurrentUpdateError is
        raised. Without it, the tree is reset (pulled) first so remote
        changes are absorbed before pushing.
        """
        if expected_head is None:
            self.reset()
        else:
            self.fetch()
            current = self.remote_head()
            if current != expected_head:
                self._discard_local()
                raise ConcurrentUpdateError(
                    f"{self.remote}/{self.branch} moved from {_short(expected_head)} to {_short(current)} "
                    "while the change was prepared; re-run the command"
                )

        logger.info("Pushing to %s/%s", self.remote, self.branch)
        try:
            self.run("push", "--quiet", self.remote, f"HEAD:refs/heads/{self.branch}")
        except GitError as e:
            if any(marker in e.stderr for marker in _REJECTED_MARKERS):
                self.fetch()
                self._discard_local()
                raise ConcurrentUpdateError(
                    f"push to {self.remote}/{self.branch} was rejected; re-run the command",
                    command=e.command,
                    returncode=e.returncode,
                    stderr=e.stderr,
                ) from e
            raise

    def _discard_local(self) -> None:
        logger.warning("Discarding local audit commits, resetting to %s/%s", self.remote, self.branch)
        self.run("reset", "--hard", self.tracking_ref)

    # --- working tree mutation -------------------------------------------

    def mkdir(self, relpath: str) -> Path:
        directory = self.path(relpath)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def write_file(self, relpath: str, content: str, append: bool = False) -> Path:
        target = self.path(relpath)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a" if append else "w", encoding="utf-8") as f:
            f.write(content)
        return target

    def add(self, *paths: str) -> None:
        self.run("add", "--", *paths)

    def mv(self, source: str, target: str) -> None:
        self.mkdir(str(Path(target).parent))
        self.run("mv", "--", source, target)

    def commit(self, message: str) -> str:
        """Commit the index verbatim and return the new HEAD."""
        self.run("commit", "--quiet", "--cleanup=verbatim", "-m", message)
        return self.head()

    # --- history -----------------------------------------------------------

    def log(self, *pathspecs: str, **options) -> Iterator[AuditLogEntry]:
        return read_log(self, *pathspecs, **options)

    def files_in(self, commit: str) -> list[str]:
        """Paths touched by an audit commit."""
        out = self.run("diff-tree", "--no-commit-id", "--name-only", "-r", "-z", "--root", commit)
        return [p for p in out.split("\0") if p]


def _short(sha: str | None) -> str:
    return sha[:12] if sha else "nothing"
