"""info command — print the current user, profile and repositories."""

from __future__ import annotations

import click
import yaml
from rich.console import Console

from codeaudit_cli.session import get_audit_context

console = Console()


@click.command("info")
@click.pass_context
def info_cmd(ctx):
    """Show the resolved configuration for this audit repository."""
    from codeaudit_core.profiles import profiles

    audit_ctx = get_audit_context(ctx)
    audit = audit_ctx.audit
    data = {
        "user": audit_ctx.user,
        "profile": audit_ctx.profile,
        "audit_dir": str(audit_ctx.audit_dir),
        "origin": {
            "audit": audit.origin(),
            "source": audit_ctx.source.origin(),
        },
        "profiles": profiles(audit),
    }
    console.print(f"[cyan]codeaudit config for (profile:{audit_ctx.profile}):[/cyan]")
    click.echo(yaml.safe_dump(data, sort_keys=False, default_flow_style=False))
