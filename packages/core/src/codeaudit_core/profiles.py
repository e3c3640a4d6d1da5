"""Profiles: named review namespaces with their own selection criteria.

A profile exists when ``.code-review/profiles/<name>/selection.yaml`` is
tracked in the audit repository. The ``default`` profile always exists and
matches everything when it has no selection file.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

import yaml

from codeaudit_core.exceptions import ConfigurationError
from codeaudit_core.states import LOCKED_DIR, RESIGNED_DIR
from codeaudit_store.message import encode_message

if TYPE_CHECKING:
    from codeaudit_core.context import AuditContext
    from codeaudit_store.audit import AuditRepository

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
PROFILE_ROOT = ".code-review/profiles"
SELECTION_FILE = "selection.yaml"
NOTIFICATION_FILE = "notification.config"
SEARCH_TYPES = ("path", "author")
DEFAULT_CRITERIA = {"path": ["**"]}

# Top-level directories of the audit repository that are not profiles.
RESERVED_NAMES = frozenset({LOCKED_DIR.lower(), RESIGNED_DIR.lower(), "source", ".code-review"})

_SELECTION_TEMPLATE = """\
# Selection Criteria for {profile}
#
#  Valid options are path and author, globbing allowed.
---
path:
  - '**'
"""

_NOTIFICATION_TEMPLATE = """\
; Notification Configuration for {profile}
;   Valid headers are global and template where template takes a name
;
[global]
  from = {user}

;[ignore]
;  overdue = no

;[template "select"]
;  to = {user}
"""


def check_profile_name(name: str) -> str:
    """Return ``name`` if it can be used as a profile, else raise ConfigurationError."""
    name = (name or "").strip()
    if not name or "/" in name or name.lower() in RESERVED_NAMES:
        raise ConfigurationError(f"Invalid profile name: {name!r}")
    return name


def profile_dir(profile: str) -> str:
    return str(PurePosixPath(PROFILE_ROOT, profile))


def profiles(audit: AuditRepository) -> list[str]:
    """Names of every profile with a selection file, plus ``default``."""
    names = {DEFAULT_PROFILE}
    for path in audit.ls_files(f"*{SELECTION_FILE}"):
        p = PurePosixPath(path)
        if p.name == SELECTION_FILE and len(p.parts) >= 2:
            names.add(p.parts[-2])
    return sorted(names)


def load_selection_criteria(audit: AuditRepository, profile: str) -> dict[str, list[str]]:
    """Read a profile's selection criteria as ``{search_type: [patterns]}``."""
    relpath = str(PurePosixPath(PROFILE_ROOT, profile, SELECTION_FILE))
    path = audit.path(relpath)
    if not path.is_file():
        if profile == DEFAULT_PROFILE:
            return {k: list(v) for k, v in DEFAULT_CRITERIA.items()}
        raise ConfigurationError(f"Profile '{profile}' has no selection criteria ({relpath}).")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid selection criteria in {relpath}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Selection criteria in {relpath} must be a mapping.")

    criteria: dict[str, list[str]] = {}
    for key, patterns in data.items():
        if key not in SEARCH_TYPES:
            raise ConfigurationError(f"Unknown search type '{key}' in {relpath}; expected one of {', '.join(SEARCH_TYPES)}.")
        if isinstance(patterns, str):
            patterns = [patterns]
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise ConfigurationError(f"'{key}' in {relpath} must be a list of patterns.")
        criteria[key] = patterns
    return criteria


def resolve_profile(audit_dir: str | Path, override: str | None = None, configured: str | None = None) -> str:
    """Pick the active profile: command line > git config > ``default``.

    A non-default profile must have a provisioned directory.
    """
    profile = check_profile_name(override or configured or DEFAULT_PROFILE)
    if profile != DEFAULT_PROFILE:
        directory = Path(audit_dir) / PROFILE_ROOT / profile
        if not directory.is_dir():
            raise ConfigurationError(f"Invalid profile: {profile}, missing {directory}")
    return profile


def profile_summary(audit: AuditRepository, profile: str) -> Counter:
    """Record counts per state for one profile."""
    from codeaudit_core.record import find_records

    return Counter(record.state.value for record in find_records(audit, profile=profile))


def add_profile(ctx: AuditContext, name: str, message: str) -> list[str]:
    """Provision a new profile with default selection and notification files."""
    name = check_profile_name(name)
    if not (message or "").strip():
        raise ConfigurationError("A reason is required to add a profile.")

    audit = ctx.audit
    audit.reset()
    if name in profiles(audit):
        raise ConfigurationError(f"Profile '{name}' exists, cannot add.")

    files = []
    for filename, template in ((SELECTION_FILE, _SELECTION_TEMPLATE), (NOTIFICATION_FILE, _NOTIFICATION_TEMPLATE)):
        relpath = str(PurePosixPath(PROFILE_ROOT, name, filename))
        audit.write_file(relpath, template.format(profile=name, user=ctx.user))
        files.append(relpath)
    audit.add(*files)
    audit.commit(
        encode_message(
            {
                "reviewer": ctx.user,
                "state": "profile_add",
                "profile": name,
                "files": files,
                "skip": True,
            },
            message=message,
        )
    )
    audit.push()
    logger.info("Added profile %s", name)
    return files
