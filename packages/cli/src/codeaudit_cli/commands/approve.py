"""approve command — approve a commit whose concerns have been resolved."""

from __future__ import annotations

import click
from rich.console import Console

from codeaudit_cli.session import get_audit_context
from codeaudit_core.actions import FIXED_REASONS

console = Console()


@click.command("approve")
@click.argument("commit")
@click.option("--reason", type=click.Choice(list(FIXED_REASONS)), default=None, help="Why the concern is resolved.")
@click.option("--fixed-by", default=None, help="Full SHA1 of the commit that fixed the concern.")
@click.option("--message", "-m", default=None, help="Clarification, for reasons other than 'fixed'.")
@click.pass_context
def approve_cmd(ctx, commit: str, reason: str | None, fixed_by: str | None, message: str | None):
    """Approve COMMIT, which was flagged with concerns."""
    from codeaudit_core.actions import Decision, PickAction, approve_fixed
    from codeaudit_core.record import resolve_record

    audit_ctx = get_audit_context(ctx)
    audit_ctx.audit.reset()
    record = resolve_record(audit_ctx.audit, commit)

    if reason is None:
        reason = click.prompt(
            "Why are you setting this commit as fixed?",
            type=click.Choice(list(FIXED_REASONS)),
        )
    if reason == "fixed" and not fixed_by:
        fixed_by = click.prompt("Which commit fixed this?")
    elif reason != "fixed" and not message:
        message = click.prompt("What was the clarification?" if reason == "correct" else "Explain")

    decision = Decision(PickAction.APPROVE, reason=reason, message=message, fixed_by=fixed_by)
    approve_fixed(audit_ctx, record, decision)
    console.print(f"[green]+ {record.sha1[:12]} approved ({reason}).[/green]")
