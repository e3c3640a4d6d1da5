"""Shared helpers for commands: the audit context and record display."""

from __future__ import annotations

import click
from rich.console import Console

from codeaudit_core.context import AuditContext, build_context
from codeaudit_core.record import CommitRecord

console = Console()


def get_audit_context(ctx: click.Context) -> AuditContext:
    """The AuditContext for this invocation, built on first use."""
    obj = ctx.find_root().obj
    if obj.get("audit_context") is None:
        obj["audit_context"] = build_context(obj["config"], profile_override=obj.get("profile"))
    return obj["audit_context"]


def state_markup(state) -> str:
    return f"[{state.color}]{state.value}[/{state.color}]"


def print_record(record: CommitRecord) -> None:
    console.print(
        f"[bold]{record.sha1[:12]}[/bold] {state_markup(record.state)} "
        f"{record.profile or '-'} {record.date} [dim]{record.author}[/dim]"
    )


def view_patch(audit_ctx: AuditContext, record: CommitRecord) -> None:
    """Page the patch under review."""
    click.echo_via_pager(audit_ctx.audit.read_file(record.current_path))
