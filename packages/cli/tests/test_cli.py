"""Tests for the CLI entry point."""

from pathlib import Path
from unittest.mock import MagicMock

from click.testing import CliRunner
from rich.console import Console

from codeaudit_cli.cli import main
from codeaudit_core.actions import PickAction
from codeaudit_core.exceptions import AmbiguousCommitError, ConfigurationError
from codeaudit_core.record import CommitRecord
from codeaudit_core.states import State
from codeaudit_store.git import ConcurrentUpdateError
from codeaudit_store.models import AuditLogEntry

SHA = "abc123" + "0" * 34


def _make_record(state=State.REVIEW, sha1=SHA, profile="teamA"):
    review_path = f"{profile}/2024/03/Review/{sha1}.patch"
    current = f"Locked/alice@example.com/{sha1}.patch" if state is State.LOCKED else review_path
    return CommitRecord(
        sha1=sha1,
        state=state,
        profile=profile,
        author="dev@example.com",
        date="2024-03-01",
        current_path=current,
        review_path=review_path,
        base=f"{sha1}.patch",
        lock_user="alice@example.com" if state is State.LOCKED else None,
    )


def _patch_common(mocker, user="alice@example.com", profile="default"):
    """Patch config loading and context construction for most tests."""
    mocker.patch("codeaudit_core.config.load_config", return_value={"audit_dir": "/srv/audit"})
    audit_ctx = MagicMock()
    audit_ctx.user = user
    audit_ctx.profile = profile
    audit_ctx.audit_dir = Path("/srv/audit")
    audit_ctx.audit.origin.return_value = "/srv/audit.git"
    audit_ctx.source.origin.return_value = "/srv/source.git"
    mocker.patch("codeaudit_cli.session.build_context", return_value=audit_ctx)
    return audit_ctx


# ---------------------------------------------------------------------------
# Group options and error handling
# ---------------------------------------------------------------------------


class TestCLIGroup:
    def test_audit_errors_exit_one(self, mocker):
        mocker.patch("codeaudit_core.config.load_config", return_value={})
        mocker.patch(
            "codeaudit_cli.session.build_context",
            side_effect=ConfigurationError("No reviewer identity: set `git config user.email`."),
        )

        result = CliRunner().invoke(main, ["info"])
        assert result.exit_code == 1
        assert "No reviewer identity" in result.output

    def test_git_errors_exit_one(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.engine.change_profile", side_effect=ConcurrentUpdateError("origin/master moved"))
        mocker.patch("codeaudit_core.record.resolve_record", return_value=_make_record())

        result = CliRunner().invoke(main, ["move", SHA, "--to", "teamB", "--reason", "Belongs elsewhere."])
        assert result.exit_code == 1
        assert "origin/master moved" in result.output

    def test_ambiguity_lists_candidates(self, mocker):
        _patch_common(mocker)
        candidates = [f"teamA/2024/03/Review/{SHA}.patch", "teamA/2024/03/Review/abc12399.patch"]
        mocker.patch("codeaudit_core.record.resolve_record", side_effect=AmbiguousCommitError("abc123", candidates))

        result = CliRunner().invoke(main, ["show", "abc123"])
        assert result.exit_code == 1
        for candidate in candidates:
            assert candidate in result.output

    def test_options_reach_context(self, mocker):
        audit_ctx = _patch_common(mocker)
        load = mocker.patch("codeaudit_core.config.load_config", return_value={"audit_dir": "/srv/audit"})
        build = mocker.patch("codeaudit_cli.session.build_context", return_value=audit_ctx)
        mocker.patch("codeaudit_core.profiles.profiles", return_value=["default"])

        CliRunner().invoke(main, ["--audit-dir", "/srv/audit", "--profile", "teamA", "info"])

        assert load.call_args.kwargs["cli_overrides"] == {"audit_dir": "/srv/audit"}
        assert build.call_args.kwargs["profile_override"] == "teamA"

    def test_invalid_log_level(self):
        result = CliRunner().invoke(main, ["--log-level", "LOUD", "info"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# init / select
# ---------------------------------------------------------------------------


class TestInitSelect:
    def test_init_already_initialized(self, mocker):
        audit_ctx = _patch_common(mocker)
        audit_ctx.source.is_initialized.return_value = True
        initialize = mocker.patch("codeaudit_core.selection.initialize")

        result = CliRunner().invoke(main, ["init", "--repo", "/srv/source.git"])
        assert result.exit_code == 0
        assert "Already initialized" in result.output
        initialize.assert_not_called()

    def test_init_attaches_source(self, mocker):
        audit_ctx = _patch_common(mocker)
        audit_ctx.source.is_initialized.return_value = False
        initialize = mocker.patch("codeaudit_core.selection.initialize", return_value=True)

        result = CliRunner().invoke(main, ["init", "--repo", "/srv/source.git", "--branch", "main"])
        assert result.exit_code == 0
        initialize.assert_called_once_with(audit_ctx, "/srv/source.git", "main")

    def test_select_noop_writes_nothing(self, mocker):
        _patch_common(mocker)
        refresh = mocker.patch("codeaudit_core.selection.refresh_source")
        mocker.patch("codeaudit_core.selection.candidate_commits", return_value=[SHA])
        select = mocker.patch("codeaudit_core.selection.select")

        result = CliRunner().invoke(main, ["select", "--noop"])
        assert result.exit_code == 0
        assert SHA in result.output
        refresh.assert_not_called()
        select.assert_not_called()

    def test_select_explicit_commits(self, mocker):
        audit_ctx = _patch_common(mocker)
        mocker.patch("codeaudit_core.selection.refresh_source", return_value=False)
        candidates = mocker.patch("codeaudit_core.selection.candidate_commits")
        select = mocker.patch("codeaudit_core.selection.select", return_value=[_make_record()])

        result = CliRunner().invoke(main, ["select", "abc123", "--reason", "Spot check"])
        assert result.exit_code == 0
        candidates.assert_not_called()
        select.assert_called_once_with(audit_ctx, ["abc123"], reason="Spot check")
        assert "Selected 1 commit(s)" in result.output

    def test_select_nothing_found(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.selection.refresh_source", return_value=False)
        mocker.patch("codeaudit_core.selection.candidate_commits", return_value=[])

        result = CliRunner().invoke(main, ["select"])
        assert result.exit_code == 0
        assert "Nothing to select" in result.output


# ---------------------------------------------------------------------------
# pick
# ---------------------------------------------------------------------------


class TestPick:
    def test_empty_picklist_succeeds(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.locking.locked_by", return_value=[])
        mocker.patch("codeaudit_core.locking.picklist", return_value=[])

        result = CliRunner().invoke(main, ["pick"])
        assert result.exit_code == 0
        assert "All reviews completed!" in result.output

    def test_pick_with_options(self, mocker):
        audit_ctx = _patch_common(mocker)
        record = _make_record()
        mocker.patch("codeaudit_core.locking.locked_by", return_value=[])
        mocker.patch("codeaudit_core.locking.picklist", return_value=[record])
        lock = mocker.patch("codeaudit_core.locking.lock", return_value=True)
        apply = mocker.patch("codeaudit_core.actions.apply_decision", return_value=True)

        result = CliRunner().invoke(main, ["pick", "--action", "approve", "--reason", "correct", "--no-view"])

        assert result.exit_code == 0, result.output
        lock.assert_called_once_with(audit_ctx, record)
        decision = apply.call_args.args[2]
        assert decision.action is PickAction.APPROVE
        assert decision.reason == "correct"

    def test_pick_prompts_for_decision(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.locking.locked_by", return_value=[])
        mocker.patch("codeaudit_core.locking.picklist", return_value=[_make_record()])
        mocker.patch("codeaudit_core.locking.lock", return_value=True)
        apply = mocker.patch("codeaudit_core.actions.apply_decision", return_value=True)

        result = CliRunner().invoke(
            main, ["pick", "--no-view"], input="concerns\nunclear\nThe limit of 7 is not explained.\n"
        )

        assert result.exit_code == 0, result.output
        decision = apply.call_args.args[2]
        assert decision.action is PickAction.CONCERNS
        assert decision.reason == "unclear"
        assert decision.message == "The limit of 7 is not explained."

    def test_existing_lock_is_continued(self, mocker):
        _patch_common(mocker)
        held = _make_record(state=State.LOCKED)
        mocker.patch("codeaudit_core.locking.locked_by", return_value=[held])
        picklist = mocker.patch("codeaudit_core.locking.picklist")
        mocker.patch("codeaudit_core.locking.lock", return_value=False)
        apply = mocker.patch("codeaudit_core.actions.apply_decision", return_value=True)

        result = CliRunner().invoke(main, ["pick", "--action", "skip", "--no-view"])

        assert result.exit_code == 0, result.output
        picklist.assert_not_called()
        assert apply.call_args.args[1] is held

    def test_patch_is_paged(self, mocker):
        audit_ctx = _patch_common(mocker)
        audit_ctx.audit.read_file.return_value = "commit abc\nAuthor: Dev <dev@example.com>\n"
        mocker.patch("codeaudit_core.locking.locked_by", return_value=[])
        mocker.patch("codeaudit_core.locking.picklist", return_value=[_make_record()])
        mocker.patch("codeaudit_core.locking.lock", return_value=True)
        mocker.patch("codeaudit_core.actions.apply_decision", return_value=True)

        result = CliRunner().invoke(main, ["pick", "--action", "skip"])
        assert "Author: Dev <dev@example.com>" in result.output


# ---------------------------------------------------------------------------
# approve / fixed, comment, move
# ---------------------------------------------------------------------------


class TestRecordCommands:
    def test_fixed_alias(self, mocker):
        audit_ctx = _patch_common(mocker)
        record = _make_record(state=State.CONCERNS)
        mocker.patch("codeaudit_core.record.resolve_record", return_value=record)
        approve = mocker.patch("codeaudit_core.actions.approve_fixed", return_value=True)

        fix = "d" * 40
        result = CliRunner().invoke(main, ["fixed", SHA, "--reason", "fixed", "--fixed-by", fix])

        assert result.exit_code == 0, result.output
        ctx_arg, record_arg, decision = approve.call_args.args
        assert ctx_arg is audit_ctx and record_arg is record
        assert decision.fixed_by == fix

    def test_approve_prompts_for_clarification(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.record.resolve_record", return_value=_make_record(state=State.CONCERNS))
        approve = mocker.patch("codeaudit_core.actions.approve_fixed", return_value=True)

        result = CliRunner().invoke(main, ["approve", SHA], input="correct\nAuthor explained the rounding.\n")

        assert result.exit_code == 0, result.output
        decision = approve.call_args.args[2]
        assert decision.reason == "correct"
        assert decision.message == "Author explained the rounding."

    def test_comment_with_message(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.record.resolve_record", return_value=_make_record())
        comment = mocker.patch("codeaudit_core.engine.comment", return_value=f"teamA/2024/03/Comments/{SHA}/x.txt")

        result = CliRunner().invoke(main, ["comment", SHA, "-m", "Needs a test.\n# not this"])

        assert result.exit_code == 0, result.output
        assert comment.call_args.args[2] == "Needs a test."
        assert "Comment recorded" in result.output

    def test_comment_from_editor(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.record.resolve_record", return_value=_make_record())
        mocker.patch("click.edit", return_value="Edited text.\n# Commenting on abc\n")
        comment = mocker.patch("codeaudit_core.engine.comment", return_value="path")

        result = CliRunner().invoke(main, ["comment", SHA])
        assert result.exit_code == 0, result.output
        assert comment.call_args.args[2] == "Edited text."

    def test_empty_comment_is_usage_error(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.record.resolve_record", return_value=_make_record())
        comment = mocker.patch("codeaudit_core.engine.comment")

        result = CliRunner().invoke(main, ["comment", SHA, "-m", "# only a comment line"])
        assert result.exit_code == 2
        comment.assert_not_called()

    def test_move(self, mocker):
        audit_ctx = _patch_common(mocker)
        record = _make_record()
        mocker.patch("codeaudit_core.record.resolve_record", return_value=record)
        change = mocker.patch("codeaudit_core.engine.change_profile", return_value=True)

        result = CliRunner().invoke(main, ["move", SHA, "--to", "teamB", "--reason", "Docs only."])

        assert result.exit_code == 0, result.output
        change.assert_called_once_with(audit_ctx, record, "teamB", {"reason": "move", "message": "Docs only."})
        assert "from teamA to teamB" in result.output


# ---------------------------------------------------------------------------
# listing commands
# ---------------------------------------------------------------------------


def _entry(state, **extra):
    return AuditLogEntry(
        commit_hash="e" * 40,
        author_email="alice@example.com",
        author_name="alice",
        author_timestamp=1709287200,
        free_text=extra.pop("message", ""),
        structured_record={"state": state, **extra},
    )


class TestListingCommands:
    def test_list_applies_resigned_overlay(self, mocker):
        _patch_common(mocker)
        resigned = _make_record(sha1="b" * 40)
        mocker.patch("codeaudit_core.record.find_records", return_value=[_make_record(), resigned])
        mocker.patch("codeaudit_core.locking.ResignationSet", return_value={resigned.current_path})

        result = CliRunner().invoke(main, ["list"])

        assert result.exit_code == 0, result.output
        assert "resigned:1" in result.output
        assert "review:1" in result.output

    def test_list_state_filter(self, mocker):
        _patch_common(mocker)
        mocker.patch(
            "codeaudit_core.record.find_records",
            return_value=[_make_record(), _make_record(state=State.LOCKED, sha1="c" * 40)],
        )
        mocker.patch("codeaudit_core.locking.ResignationSet", return_value=set())

        result = CliRunner().invoke(main, ["list", "--state", "locked"])

        assert "c" * 40 in result.output
        assert SHA not in result.output
        assert "locked:1" in result.output and "review:1" in result.output

    def test_list_unknown_state(self, mocker):
        _patch_common(mocker)
        result = CliRunner().invoke(main, ["list", "--state", "pending"])
        assert result.exit_code == 2
        assert "Unknown state" in result.output

    def test_concerns_shows_reviewer(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_cli.commands.concerns.console", Console(width=200))
        mocker.patch("codeaudit_core.record.find_records", return_value=[_make_record(state=State.CONCERNS)])
        mocker.patch("codeaudit_core.trail.current_concern", return_value=_entry("concerns", reason="unclear"))

        result = CliRunner().invoke(main, ["concerns"])

        assert result.exit_code == 0, result.output
        assert "alice@example.com" in result.output
        assert "unclear" in result.output

    def test_no_concerns(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.record.find_records", return_value=[])
        result = CliRunner().invoke(main, ["concerns"])
        assert "No commits flagged with concerns!" in result.output

    def test_show_history_with_notes(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.record.resolve_record", return_value=_make_record(state=State.APPROVED))
        mocker.patch(
            "codeaudit_core.trail.timeline",
            return_value=[
                _entry("locked", message="Locked."),
                _entry("approved", reason="fixed", fixed_by="d" * 40, message="Fixed in a later commit."),
            ],
        )

        result = CliRunner().invoke(main, ["show", SHA])

        assert result.exit_code == 0, result.output
        assert "Fixed by:" in result.output
        assert "d" * 40 in result.output
        assert "Locked." not in result.output

    def test_show_without_notes(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.record.resolve_record", return_value=_make_record(state=State.APPROVED))
        mocker.patch("codeaudit_core.trail.timeline", return_value=[_entry("approved", message="Calculations are all accurate.")])

        result = CliRunner().invoke(main, ["show", SHA, "--no-notes"])
        assert "Calculations are all accurate." not in result.output

    def test_profile_listing(self, mocker):
        _patch_common(mocker, profile="teamA")
        mocker.patch("codeaudit_core.profiles.profiles", return_value=["default", "teamA"])
        mocker.patch("codeaudit_core.profiles.profile_summary", return_value={"review": 2, "approved": 1})

        result = CliRunner().invoke(main, ["profile"])

        assert result.exit_code == 0, result.output
        assert "teamA *" in result.output
        assert "approved:1, review:2" in result.output

    def test_profile_add(self, mocker):
        audit_ctx = _patch_common(mocker)
        add = mocker.patch("codeaudit_core.profiles.add_profile", return_value=[".code-review/profiles/teamB/selection.yaml"])

        result = CliRunner().invoke(main, ["profile", "--add", "teamB", "-m", "Team B."])

        assert result.exit_code == 0, result.output
        add.assert_called_once_with(audit_ctx, "teamB", "Team B.")

    def test_info_prints_yaml(self, mocker):
        _patch_common(mocker)
        mocker.patch("codeaudit_core.profiles.profiles", return_value=["default", "teamA"])

        result = CliRunner().invoke(main, ["info"])

        assert result.exit_code == 0, result.output
        assert "user: alice@example.com" in result.output
        assert "source: /srv/source.git" in result.output
        assert "- teamA" in result.output
