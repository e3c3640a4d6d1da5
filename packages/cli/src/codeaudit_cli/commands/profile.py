"""profile command — list profiles or add one."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from codeaudit_cli.session import get_audit_context

console = Console()


@click.command("profile")
@click.option("--add", "add_name", default=None, help="Create a new profile with this name.")
@click.option("--message", "-m", default=None, help="Why the profile is added.")
@click.pass_context
def profile_cmd(ctx, add_name: str | None, message: str | None):
    """List profiles with their per-state counts, or add a profile."""
    from codeaudit_core.profiles import add_profile, profile_summary, profiles

    audit_ctx = get_audit_context(ctx)
    audit = audit_ctx.audit

    if add_name:
        if not message:
            message = click.prompt("Why are you adding this profile?")
        files = add_profile(audit_ctx, add_name, message)
        console.print(f"[green]+ Added profile {add_name}:[/green]")
        for path in files:
            console.print(f"  {path}")
        return

    audit.reset()
    table = Table(title="Profiles", show_header=True, header_style="bold cyan")
    table.add_column("Profile", style="bold")
    table.add_column("Commits", justify="right")
    table.add_column("States")
    for name in profiles(audit):
        counts = profile_summary(audit, name)
        marker = " *" if name == audit_ctx.profile else ""
        table.add_row(
            f"{name}{marker}",
            str(sum(counts.values())),
            ", ".join(f"{state}:{n}" for state, n in sorted(counts.items())),
        )
    console.print(table)
