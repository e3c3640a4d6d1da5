"""move command — move a commit into another profile."""

from __future__ import annotations

import click
from rich.console import Console

from codeaudit_cli.session import get_audit_context

console = Console()


@click.command("move")
@click.argument("commit")
@click.option("--to", "to_profile", required=True, help="Destination profile.")
@click.option("--reason", default=None, help="Why the commit is moved.")
@click.pass_context
def move_cmd(ctx, commit: str, to_profile: str, reason: str | None):
    """Move COMMIT (and its comments) into another profile."""
    from codeaudit_core.engine import change_profile
    from codeaudit_core.record import resolve_record

    audit_ctx = get_audit_context(ctx)
    audit_ctx.audit.reset()
    record = resolve_record(audit_ctx.audit, commit)

    if reason is None:
        reason = click.prompt("Why are you moving this commit?")
    previous = record.profile
    if not change_profile(audit_ctx, record, to_profile, {"reason": "move", "message": reason}):
        console.print(f"[yellow]{record.sha1[:12]} is already in {to_profile}.[/yellow]")
        return
    console.print(f"[green]+ Moved {record.sha1[:12]} from {previous} to {to_profile}.[/green]")
