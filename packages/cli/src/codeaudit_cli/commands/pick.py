"""pick command — lock a commit, show it and record a decision."""

from __future__ import annotations

import random

import click
from rich.console import Console

from codeaudit_cli.session import get_audit_context, print_record, view_patch
from codeaudit_core.actions import CATALOGUES, PickAction

console = Console()


def choose(title: str, options: dict[str, str]) -> str:
    """Prompt for one key of ``options``, listing their labels first."""
    console.print(f"\n[bold]{title}[/bold]")
    for key, label in options.items():
        console.print(f"  [cyan]{key:<12}[/cyan] {label}")
    return click.prompt("Choice", type=click.Choice(list(options)), show_choices=False)


@click.command("pick")
@click.option("--action", type=click.Choice([a.value for a in PickAction]), default=None, help="Action to take.")
@click.option("--reason", default=None, help="Reason for the action, from its catalogue.")
@click.option("--message", "-m", default=None, help="Explanation, where the reason requires one.")
@click.option("--no-view", is_flag=True, help="Do not page the patch before asking for an action.")
@click.pass_context
def pick_cmd(ctx, action: str | None, reason: str | None, message: str | None, no_view: bool):
    """Pick a commit to review.

    Continues a commit you already hold locked, otherwise locks a random
    commit from your picklist (not authored by you, not resigned from).
    """
    from codeaudit_core.actions import Decision, apply_decision
    from codeaudit_core.locking import lock, locked_by, picklist

    audit_ctx = get_audit_context(ctx)
    audit_ctx.audit.reset()

    locked = locked_by(audit_ctx)
    if locked:
        console.print("[red]You are currently locking commits, ignoring picklist.[/red]")
        record = locked[0]
        if len(locked) > 1:
            by_sha1 = {r.sha1: r for r in locked}
            record = by_sha1[choose("Select the commit to action:", {r.sha1: r.current_path for r in locked})]
    else:
        candidates = picklist(audit_ctx, profile=audit_ctx.profile)
        if not candidates:
            console.print("[green]All reviews completed![/green]")
            return
        console.print(f"[cyan]+ Picklist currently contains {len(candidates)} commits.[/cyan]")
        record = random.choice(candidates)

    lock(audit_ctx, record)
    print_record(record)
    if not no_view:
        view_patch(audit_ctx, record)

    if action is None:
        action = choose("Action?", {a.value: a.label for a in PickAction})
    action = PickAction(action)

    if action is not PickAction.SKIP and reason is None:
        reason = choose(f"Why {action.value}?", CATALOGUES[action])
    decision = Decision(action, reason=reason, message=message)
    if decision.needs_explanation() and not message:
        decision.message = click.prompt("Explain")

    console.print(f"[cyan]We are going to {action.value} {record.base}[/cyan]")
    apply_decision(audit_ctx, record, decision)
    console.print(f"[green]+ {record.sha1[:12]} is now {record.state.value}.[/green]")
