"""init command — attach the source repository to the audit repository."""

from __future__ import annotations

import click
from rich.console import Console

from codeaudit_cli.session import get_audit_context

console = Console()


@click.command("init")
@click.option("--repo", "-r", "url", default=None, help="Source repository URL. Prompted for when omitted.")
@click.option("--branch", "-b", default="master", show_default=True, help="Branch of the source repository to track.")
@click.pass_context
def init_cmd(ctx, url: str | None, branch: str):
    """Initialize an audit repository against a source repository.

    The source repository is added as the `source` submodule of the audit
    repository; run this once from a clone of an empty audit repository.
    """
    from codeaudit_core.selection import initialize

    audit_ctx = get_audit_context(ctx)
    if audit_ctx.source.is_initialized():
        console.print("[green]Already initialized![/green]")
        return

    if url is None:
        url = click.prompt("Source repository")

    if not initialize(audit_ctx, url, branch):
        console.print("[green]Already initialized![/green]")
        return
    console.print("[green]+ Initialized repository, to get started `codeaudit select --help`[/green]")
