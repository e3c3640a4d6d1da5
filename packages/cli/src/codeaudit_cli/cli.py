"""CLI entry point for codeaudit.

Commands:
  init      — attach the source repository to a fresh audit repository
  select    — record source commits for review
  pick      — lock a commit, show it and record a decision
  approve   — approve a commit that had concerns (alias: fixed)
  comment   — attach a comment to a commit
  concerns  — list commits with outstanding concerns
  list      — list commits and their review state
  show      — print the audit history of commits
  move      — move a commit into another profile
  profile   — list or add profiles
  info      — print the current user, profile and repositories
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console

from codeaudit_cli.commands.approve import approve_cmd
from codeaudit_cli.commands.comment import comment_cmd
from codeaudit_cli.commands.concerns import concerns_cmd
from codeaudit_cli.commands.info import info_cmd
from codeaudit_cli.commands.init import init_cmd
from codeaudit_cli.commands.list import list_cmd
from codeaudit_cli.commands.move import move_cmd
from codeaudit_cli.commands.pick import pick_cmd
from codeaudit_cli.commands.profile import profile_cmd
from codeaudit_cli.commands.select import select_cmd
from codeaudit_cli.commands.show import show_cmd
from codeaudit_core.exceptions import AuditError
from codeaudit_store.git import GitError

console = Console()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class AuditGroup(click.Group):
    """Turns workflow and git failures into a one-line error and exit 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except (AuditError, GitError) as e:
            raise click.ClickException(str(e)) from e


@click.group(cls=AuditGroup)
@click.version_option(
    version=importlib.metadata.version("codeaudit"),
    prog_name="codeaudit",
)
@click.option(
    "--config",
    "config_path",
    default=".codeaudit.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="CODEAUDIT_CONFIG",
)
@click.option(
    "--audit-dir",
    default=None,
    help="Audit repository working tree. Overrides config file.",
    envvar="CODEAUDIT_DIR",
)
@click.option("--profile", default=None, help="Review profile. Overrides `git config code-review.profile`.")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
@click.pass_context
def main(ctx: click.Context, config_path: str, audit_dir: str | None, profile: str | None, log_level: str):
    """Git-backed commit audit workflow."""
    from codeaudit_core.config import load_config

    logging.basicConfig(format="%(levelname)s: %(message)s", level=log_level.upper())

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path, cli_overrides={"audit_dir": audit_dir})
    ctx.obj["profile"] = profile


main.add_command(init_cmd)
main.add_command(select_cmd)
main.add_command(pick_cmd)
main.add_command(approve_cmd)
main.add_command(approve_cmd, name="fixed")
main.add_command(comment_cmd)
main.add_command(concerns_cmd)
main.add_command(list_cmd)
main.add_command(show_cmd)
main.add_command(move_cmd)
main.add_command(profile_cmd)
main.add_command(info_cmd)
