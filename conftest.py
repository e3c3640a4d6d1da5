"""Shared fixtures: throwaway git remotes and reviewer clones."""

import os
import subprocess

import pytest

from codeaudit_core.context import AuditContext
from codeaudit_core.engine import select_records


def git(cwd, *args):
    result = subprocess.run(["git", "-C", str(cwd), *args], check=True, capture_output=True, text=True)
    return result.stdout


def _clone(remote, dest, email):
    subprocess.run(["git", "clone", "--quiet", str(remote), str(dest)], check=True, capture_output=True)
    git(dest, "config", "user.email", email)
    git(dest, "config", "user.name", email.split("@")[0])
    git(dest, "config", "commit.gpgsign", "false")
    return dest


def _patch(sha1, date="2024-03-01", author="Dev <dev@example.com>", subject="Change things"):
    return (
        f"commit {sha1}\n"
        f"Author: {author}\n"
        f"Date:   {date} 10:00:00 +0000\n"
        "\n"
        f"    {subject}\n"
        "\n"
        " lib/thing.py | 2 +-\n"
        " 1 file changed, 1 insertion(+), 1 deletion(-)\n"
        "\n"
        "diff --git a/lib/thing.py b/lib/thing.py\n"
        "--- a/lib/thing.py\n"
        "+++ b/lib/thing.py\n"
        "@@ -1 +1 @@\n"
        "-old = 1\n"
        "+new = 2\n"
    )


@pytest.fixture(autouse=True)
def isolated_git(tmp_path, monkeypatch):
    """Keep the developer's git configuration out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    # Local file:// submodules are refused by default since git 2.38.1.
    monkeypatch.setenv("GIT_CONFIG_COUNT", "1")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "protocol.file.allow")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "always")


@pytest.fixture
def audit_remote(tmp_path):
    remote = tmp_path / "audit.git"
    subprocess.run(["git", "init", "--bare", "--quiet", str(remote)], check=True)
    git(remote, "symbolic-ref", "HEAD", "refs/heads/master")
    return remote


@pytest.fixture
def alice_dir(tmp_path, audit_remote):
    """Alice's clone of the audit repository, with one initial commit pushed."""
    path = _clone(audit_remote, tmp_path / "alice", "alice@example.com")
    git(path, "symbolic-ref", "HEAD", "refs/heads/master")
    (path / "README").write_text("audit\n")
    git(path, "add", "README")
    git(path, "commit", "--quiet", "-m", "Initial commit")
    git(path, "push", "--quiet", "-u", "origin", "master")
    return path


@pytest.fixture
def bob_dir(tmp_path, audit_remote, alice_dir):
    return _clone(audit_remote, tmp_path / "bob", "bob@example.com")


@pytest.fixture
def source_origin(tmp_path):
    """A small source repository with commits by two authors."""
    path = tmp_path / "source-origin"
    subprocess.run(["git", "init", "--quiet", str(path)], check=True)
    git(path, "symbolic-ref", "HEAD", "refs/heads/master")
    git(path, "config", "commit.gpgsign", "false")

    commits = [
        ("carol@example.com", "lib/core.py", "2024-03-01T10:00:00+00:00"),
        ("dave@example.com", "docs/index.md", "2024-03-15T10:00:00+00:00"),
        ("carol@example.com", "lib/util.py", "2024-04-02T10:00:00+00:00"),
    ]
    for email, relpath, date in commits:
        target = path / relpath
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f"# {relpath}\n")
        git(path, "add", relpath)
        subprocess.run(
            [
                "git", "-C", str(path),
                "-c", f"user.email={email}", "-c", f"user.name={email.split('@')[0]}",
                "commit", "--quiet", "-m", f"Add {relpath}",
            ],
            check=True,
            capture_output=True,
            env={**os.environ, "GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date},
        )
    return path


@pytest.fixture
def make_patch():
    """Factory for ``git show`` style patch text."""
    return _patch


@pytest.fixture
def run_git():
    return git


@pytest.fixture
def alice(alice_dir):
    return AuditContext(audit_dir=alice_dir, user="alice@example.com", profile="default")


@pytest.fixture
def bob(bob_dir):
    return AuditContext(audit_dir=bob_dir, user="bob@example.com", profile="default")


@pytest.fixture
def selected(make_patch):
    """Factory: select one commit into a profile and return its record."""

    def _select(ctx, sha1, profile="teamA", date="2024-03-01", author="Dev <dev@example.com>"):
        return select_records(ctx, {sha1: make_patch(sha1, date=date, author=author)}, profile)[0]

    return _select
