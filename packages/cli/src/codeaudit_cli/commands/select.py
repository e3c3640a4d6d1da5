"""select command — record source commits for review."""

from __future__ import annotations

import click
from rich.console import Console

from codeaudit_cli.session import get_audit_context, print_record

console = Console()


@click.command("select")
@click.argument("commits", nargs=-1)
@click.option("--since", default=None, help="Only consider source commits after this date.")
@click.option("--until", default=None, help="Only consider source commits before this date.")
@click.option("--reason", default=None, help="Why these commits are being selected.")
@click.option("--noop", is_flag=True, help="Show what would be selected without writing anything.")
@click.pass_context
def select_cmd(ctx, commits: tuple[str, ...], since: str | None, until: str | None, reason: str | None, noop: bool):
    """Select source commits for review in the current profile.

    With explicit COMMITS (full or partial hashes) those are selected;
    otherwise every commit matching the profile's selection criteria that
    is not yet in the audit.
    """
    from codeaudit_core.selection import candidate_commits, refresh_source, select

    audit_ctx = get_audit_context(ctx)
    if not noop:
        refresh_source(audit_ctx)

    candidates = list(commits) or candidate_commits(audit_ctx, since=since, until=until)
    if not candidates:
        console.print("[green]Nothing to select.[/green]")
        return

    if noop:
        console.print(f"[cyan]Would select {len(candidates)} commit(s) into {audit_ctx.profile}:[/cyan]")
        for sha1 in candidates:
            console.print(f"  {sha1}")
        return

    records = select(audit_ctx, candidates, reason=reason)
    if not records:
        console.print("[yellow]All of these commits are already in the audit.[/yellow]")
        return
    console.print(f"[green]+ Selected {len(records)} commit(s) for review in {audit_ctx.profile}.[/green]")
    for record in records:
        print_record(record)
