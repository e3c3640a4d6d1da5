"""SourceRepository — the tracked code repository, checked out as a submodule.

The source tree is read-mostly: codeaudit only exports patches from it and
searches its log. Refreshing it moves the submodule pointer, which is then
recorded in the audit repository as an administrative (skipped) commit.
"""

from __future__ import annotations

import logging
from pathlib import Path

from codeaudit_store.audit import AuditRepository
from codeaudit_store.git import GitError, GitRepository
from codeaudit_store.message import encode_message

logger = logging.getLogger(__name__)


class SourceRepository(GitRepository):
    def __init__(self, work_tree: str | Path, audit: AuditRepository | None = None, name: str = "source"):
        super().__init__(work_tree)
        self.audit = audit
        self.name = name
        self._origin: str | None = None

    def origin(self) -> str | None:
        """URL of the source submodule, memoized."""
        if self._origin is None and self.audit is not None:
            key = f"submodule.{self.name}.url"
            self._origin = self.audit.config_get(key)
            if self._origin is None and self.audit.path(".gitmodules").exists():
                self._origin = self.audit.config_get(key, file=str(self.audit.path(".gitmodules")))
        return self._origin

    def is_initialized(self) -> bool:
        return self.origin() is not None

    def initialize(self, url: str, branch: str = "master") -> None:
        """Register ``url`` as the source submodule tracking ``branch``."""
        self._require_audit()
        self.audit.run("submodule", "add", "--name", self.name, "-b", branch, url, self.name)
        self._origin = url

    def reset(self, reviewer: str) -> bool:
        """Update the submodule to its remote branch.

        Returns True when the submodule pointer moved, in which case the bump
        has been committed to the audit repository and pushed.
        """
        self._require_audit()
        if not self.is_initialized():
            raise GitError(f"source repository '{self.name}' is not initialized; run `codeaudit init` first")

        self.audit.run("submodule", "update", "--init", "--remote", "--merge", "--", self.name)
        if not self.audit.run("status", "--porcelain", "--", self.name).strip():
            logger.debug("Source repository already current.")
            return False

        logger.info("Recording source repository refresh.")
        self.audit.add(self.name)
        self.audit.commit(
            encode_message(
                {"skip": True, "reviewer": reviewer, "action": "source_refresh"},
                message="Source Repository Refresh",
            )
        )
        self.audit.push()
        return True

    def resolve_commit(self, ref: str) -> str:
        """Expand a (partial) hash or ref to a full commit hash."""
        sha = self.rev_parse(f"{ref}^{{commit}}")
        if sha is None:
            raise GitError(f"unknown commit in source repository: {ref}")
        return sha

    def show(self, sha1: str) -> str:
        """Export one commit as the patch text stored in the audit."""
        return self.run("show", "--stat", "--patch", "--pretty=medium", "--date=iso", "--no-color", sha1)

    def candidates(self, criteria: dict, since: str | None = None, until: str | None = None) -> list[str]:
        """Commit hashes matching selection criteria, oldest first.

        Each author glob becomes an ``--author`` regex (git ORs them and
        matches anywhere in ``Name <email>``);
        path patterns are passed as pathspecs, where ``*`` also matches ``/``.
        """
        args = ["log", "--no-merges", "--reverse", "--extended-regexp", "--format=%H"]
        if since:
            args.append(f"--since={since}")
        if until:
            args.append(f"--until={until}")
        for author in criteria.get("author", []):
            args.append(f"--author={glob_to_regex(author)}")
        args.append("--")
        args.extend(criteria.get("path", []))
        return self.lines(*args)

    def _require_audit(self) -> None:
        if self.audit is None:
            raise GitError("source repository handle is not attached to an audit repository")


_REGEX_SPECIALS = set(".^$+{}()|[]\\")


def glob_to_regex(pattern: str) -> str:
    """Translate a selection glob (``*`` and ``?``) into a git extended regex."""
    out = []
    for ch in pattern:
        if ch == "*":
            out.append(".*")
        elif ch == "?":
            out.append(".")
        elif ch in _REGEX_SPECIALS:
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)
