"""concerns command — list commits with outstanding concerns."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from codeaudit_cli.session import get_audit_context

console = Console()


@click.command("concerns")
@click.pass_context
def concerns_cmd(ctx):
    """List commits flagged with concerns and who raised them."""
    from codeaudit_core.record import find_records
    from codeaudit_core.states import State
    from codeaudit_core.trail import current_concern

    audit_ctx = get_audit_context(ctx)
    audit = audit_ctx.audit
    audit.reset()

    records = find_records(audit, states=[State.CONCERNS])
    if not records:
        console.print("[green]No commits flagged with concerns![/green]")
        return

    table = Table(title="Commits flagged with concerns", show_header=True, header_style="bold cyan")
    table.add_column("SHA1", style="bold")
    table.add_column("Profile")
    table.add_column("Date", width=10)
    table.add_column("Author")
    table.add_column("Reviewer")
    table.add_column("Reason")

    for record in records:
        concern = current_concern(audit, record.sha1)
        table.add_row(
            record.sha1,
            record.profile or "",
            record.date,
            record.author,
            concern.author_email if concern else "",
            str(concern.reason or "") if concern else "",
        )

    console.print(table)
