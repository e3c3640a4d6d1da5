"""Thin wrapper around the git command line.

Every repository operation in codeaudit goes through GitRepository.run(),
so there is exactly one place where a non-zero git exit status is turned
into an exception. Nothing here retries: a failed command surfaces as a
GitError carrying git's own stderr and the operator re-runs the command.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class GitError(Exception):
    """A git invocation failed."""

    def __init__(self, message: str, command: list[str] | None = None, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr


class MissingRemoteError(GitError):
    """The audit repository has no upstream remote configured."""


class ConcurrentUpdateError(GitError):
    """The remote branch moved while a change was being prepared.

    The local commit has already been discarded when this is raised; the
    caller must re-resolve the record against the refreshed tree.
    """


class GitRepository:
    """A git working tree driven through ``git -C <work_tree> ...``."""

    def __init__(self, work_tree: str | Path):
        self.work_tree = Path(work_tree)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.work_tree)!r})"

    def run(self, *args: str, check: bool = True, env: dict | None = None) -> str:
        """Run a git subcommand and return its stdout.

        Raises GitError when ``check`` is set and git exits non-zero.
        """
        cmd = ["git", "-C", str(self.work_tree), *args]
        logger.debug("git %s", " ".join(args))
        result = subprocess.run(cmd, capture_output=True, text=True, env=env, check=False)
        if check and result.returncode != 0:
            stderr = result.stderr.strip()
            raise GitError(
                f"git {' '.join(args)} failed (exit {result.returncode}): {stderr}",
                command=cmd,
                returncode=result.returncode,
                stderr=stderr,
            )
        return result.stdout

    def lines(self, *args: str) -> list[str]:
        return [line for line in self.run(*args).splitlines() if line]

    def config_get(self, key: str, file: str | None = None) -> str | None:
        """Return a git config value, or None when the key is unset."""
        args = ["config"]
        if file is not None:
            args += ["--file", file]
        value = self.run(*args, "--get", key, check=False).strip()
        return value or None

    def rev_parse(self, ref: str) -> str | None:
        value = self.run("rev-parse", "--verify", "--quiet", ref, check=False).strip()
        return value or None

    def head(self) -> str:
        return self.run("rev-parse", "HEAD").strip()

    def current_branch(self) -> str:
        return self.run("rev-parse", "--abbrev-ref", "HEAD").strip()

    def is_dirty(self) -> bool:
        return bool(self.run("status", "--porcelain").strip())

    def ls_files(self, *pathspecs: str) -> list[str]:
        """Tracked paths matching the given pathspecs (all files if none)."""
        out = self.run("ls-files", "-z", "--", *pathspecs)
        return [p for p in out.split("\0") if p]

    def is_tracked(self, path: str) -> bool:
        result = self.run("ls-files", "--error-unmatch", "--", path, check=False)
        return bool(result.strip())

    def path(self, relpath: str) -> Path:
        return self.work_tree / relpath

    def read_file(self, relpath: str) -> str:
        return self.path(relpath).read_text(encoding="utf-8", errors="replace")
