"""list command — list commits in the audit with their state."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console

from codeaudit_cli.session import get_audit_context

console = Console()


@click.command("list")
@click.option("--state", "states", default="", help="Comma separated states to show, e.g. review,concerns.")
@click.pass_context
def list_cmd(ctx, states: str):
    """List commits in the audit.

    Commits you resigned from are shown as `resigned`; the totals at the
    end always cover every commit.
    """
    from codeaudit_core.locking import ResignationSet
    from codeaudit_core.record import find_records
    from codeaudit_core.states import State

    wanted = {s.strip().lower() for s in states.replace(" ", ",").split(",") if s.strip()}
    unknown = wanted - {s.value for s in State}
    if unknown:
        raise click.UsageError(f"Unknown state(s): {', '.join(sorted(unknown))}")

    audit_ctx = get_audit_context(ctx)
    audit = audit_ctx.audit
    audit.reset()

    records = find_records(audit)
    if not records:
        console.print("[green]No commits in the audit.[/green]")
        return

    resigned = ResignationSet(audit, audit_ctx.user)
    title = f"({','.join(sorted(wanted))}) " if wanted else ""
    console.print(f"[cyan]-[ Commits in the Audit {title}:: {audit.origin()} ]-[/cyan]")

    totals: Counter = Counter()
    for record in records:
        state = State.RESIGNED if record.current_path in resigned else record.state
        totals[state.value] += 1
        if wanted and state.value not in wanted:
            continue
        console.print(
            f"  [{state.color}]{state.value}\t{record.date}\t{record.sha1}\t{record.author}[/{state.color}]"
        )

    summary = ", ".join(f"{state}:{count}" for state, count in sorted(totals.items()))
    console.print(f"[cyan]-[ Status {summary} from {audit_ctx.source.origin()} ]-[/cyan]")
