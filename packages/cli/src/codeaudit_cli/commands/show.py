"""show command — print the audit history of commits."""

from __future__ import annotations

import click
from rich.console import Console

from codeaudit_cli.session import get_audit_context

console = Console()


@click.command("show")
@click.argument("commits", nargs=-1, required=True)
@click.option("--notes/--no-notes", default=True, show_default=True, help="Include messages recorded with each entry.")
@click.pass_context
def show_cmd(ctx, commits: tuple[str, ...], notes: bool):
    """Show the audit history of each COMMIT."""
    from codeaudit_core.record import resolve_record
    from codeaudit_core.states import State
    from codeaudit_core.trail import timeline

    audit_ctx = get_audit_context(ctx)
    audit = audit_ctx.audit
    audit.reset()

    for obj in commits:
        record = resolve_record(audit, obj)
        console.rule(f"[green]Audit History of {record.sha1}[/green]")
        console.print(f"  profile: {record.profile or '-'}  state: {record.state.value}  author: {record.author}")

        for entry in timeline(audit, record.sha1):
            state = entry.state or "other"
            try:
                color = State(state).color
            except ValueError:
                color = "cyan"
            fields = [entry.authored_at.strftime("%Y-%m-%d %H:%M:%S"), entry.author_email, state]
            fields += [str(entry.get(key)) for key in ("profile", "reason") if entry.get(key)]
            console.print(f"  [{color}]" + "\t".join(fields) + f"[/{color}]", highlight=False)

            if notes and entry.message and state != State.LOCKED.value:
                message = entry.message
                if entry.fixed_by:
                    message = f"{message}  Fixed by: {entry.fixed_by}"
                for line in message.splitlines():
                    console.print(f"    {line}", highlight=False, markup=False)
