"""Per-process audit context.

Built once at startup from the loaded configuration and handed to every
core operation, so the reviewer identity, active profile and repository
handles are resolved in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from codeaudit_core.config import DEFAULT_CONFIG
from codeaudit_core.exceptions import ConfigurationError
from codeaudit_core.profiles import resolve_profile
from codeaudit_store.audit import AuditRepository
from codeaudit_store.source import SourceRepository

REPO_KINDS = ("audit", "source")


@dataclass
class AuditContext:
    audit_dir: Path
    user: str
    profile: str
    config: dict = field(default_factory=lambda: dict(DEFAULT_CONFIG))
    _repos: dict = field(default_factory=dict, repr=False)

    def repo(self, kind: str = "audit"):
        """Repository handle for ``audit`` or ``source``, created once."""
        if kind not in REPO_KINDS:
            raise ValueError(f"Unknown repository kind: {kind!r}. Choose 'audit' or 'source'.")
        if kind not in self._repos:
            if kind == "audit":
                self._repos[kind] = AuditRepository(
                    self.audit_dir,
                    remote=self.config.get("remote", "origin"),
                    branch=self.config.get("branch", "master"),
                )
            else:
                name = self.config.get("source_dir", "source")
                self._repos[kind] = SourceRepository(self.audit_dir / name, audit=self.audit, name=name)
        return self._repos[kind]

    @property
    def audit(self) -> AuditRepository:
        return self.repo("audit")

    @property
    def source(self) -> SourceRepository:
        return self.repo("source")


def build_context(config: dict, profile_override: str | None = None) -> AuditContext:
    """Resolve identity and profile and return the context for this run."""
    audit_dir = Path(config.get("audit_dir") or ".").resolve()
    audit = AuditRepository(audit_dir, remote=config.get("remote", "origin"), branch=config.get("branch", "master"))

    user = config.get("user") or audit.config_get("user.email")
    if not user:
        raise ConfigurationError("No reviewer identity: set `git config user.email` or `user` in the config file.")

    profile = resolve_profile(audit_dir, profile_override, audit.config_get("code-review.profile"))

    ctx = AuditContext(audit_dir=audit_dir, user=user, profile=profile, config=config)
    ctx._repos["audit"] = audit
    return ctx
