"""comment command — attach a comment to a commit."""

from __future__ import annotations

import click
from rich.console import Console

from codeaudit_cli.session import get_audit_context

console = Console()

_TEMPLATE = """

# Commenting on {sha1}
#   State: {state}, profile: {profile}
# Lines starting with '#' are ignored. An empty comment aborts.
"""


@click.command("comment")
@click.argument("commit")
@click.option("--message", "-m", default=None, help="Comment text. Opens an editor when omitted.")
@click.pass_context
def comment_cmd(ctx, commit: str, message: str | None):
    """Comment on COMMIT without changing its state."""
    from codeaudit_core.engine import clean_comment, comment
    from codeaudit_core.record import resolve_record

    audit_ctx = get_audit_context(ctx)
    audit_ctx.audit.reset()
    record = resolve_record(audit_ctx.audit, commit)

    if message is None:
        message = click.edit(
            _TEMPLATE.format(sha1=record.sha1, state=record.state.value, profile=record.profile),
            extension=".txt",
        )
    text = clean_comment(message or "")
    if not text:
        raise click.UsageError("Empty comment, nothing recorded.")

    path = comment(audit_ctx, record, text)
    if path is None:
        console.print("[yellow]That comment already exists.[/yellow]")
        return
    console.print(f"[green]+ Comment recorded at {path}[/green]")
