from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from ..analysis import AnalysisResult, resolve_approvals
from ..config import ApprovalsConfig
from ..errors import UpstreamUnavailable
from ..log import configure_logging
from ..owners.models import OwnerKind, OwnerRef, ReviewState, Team
from ..pipeline import analyze_pull_request_url
from ..report import AnalysisReport

app = typer.Typer(add_completion=False, pretty_exceptions_show_locals=False)


async def _offline_team_lookup(team_name: str) -> Team:
    return Team.unresolvable(OwnerRef.team(team_name))


def _print_report(report: AnalysisReport) -> None:
    if report.pr_info is not None:
        pr = report.pr_info
        print(f"[bold]{escape(pr.repo)}#{pr.number}[/bold] {escape(pr.title)} ({pr.state})")

    total = len(report.min_required_approvals)
    print(
        f"[bold]{report.total_groups_needing_approval}[/bold] of {total} "
        f"group{'s' if total != 1 else ''} still need approval"
    )
    for idx, group in enumerate(report.min_required_approvals, start=1):
        if group.unowned:
            status = "[yellow]unowned[/yellow]"
        elif group.needs_approval:
            status = "[red]needs approval[/red]"
        elif group.approver_type is OwnerKind.team:
            status = (
                f"[green]approved by @{escape(group.approved_by or '')} "
                f"(member of {escape(group.team_name or '')})[/green]"
            )
        else:
            status = f"[green]approved by @{escape(group.approved_by or '')}[/green]"
        owners = ", ".join(f"@{o}" for o in group.owners) or "-"
        print(f"[bold]Group {idx}[/bold] {status}")
        print(f"  any one of: {escape(owners)}")
        for f in group.files:
            print(f"  - {escape(f)}")

    if report.diagnostics:
        print("[bold]Diagnostics[/bold]")
        for d in report.diagnostics:
            where = f" (line {d.line})" if d.line is not None else ""
            print(f"  [dim]{d.kind.value}[/dim] {escape(d.message)}{where}")

    if report.rate_limit_info is not None and report.rate_limit_info.show_warning:
        rl = report.rate_limit_info
        print(
            f"[yellow]GitHub rate limit low:[/yellow] {rl.remaining}/{rl.limit} left, "
            f"resets in {rl.minutes_until_reset} min ({rl.reset_time_formatted})"
        )


def _emit(result: AnalysisResult, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(result.report.to_json_dict(), indent=2, sort_keys=True))
    else:
        _print_report(result.report)


@app.command()
def check(
    pr_url: str = typer.Argument(..., help="GitHub pull request URL"),
    token: str | None = typer.Option(None, help="GitHub token (defaults to gh / GITHUB_TOKEN)"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug events"),
):
    """Show which code-owner approvals a pull request still needs."""
    configure_logging(verbose)
    try:
        result = asyncio.run(
            analyze_pull_request_url(pr_url, token=token, config=ApprovalsConfig.from_env())
        )
    except (UpstreamUnavailable, ValueError, RuntimeError) as exc:
        print(f"[red]error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    _emit(result, as_json)


@app.command()
def explain(
    files: list[str] = typer.Argument(..., help="Changed file paths"),
    rules: Path = typer.Option(..., exists=True, dir_okay=False, help="CODEOWNERS file"),
    approved: list[str] = typer.Option([], "--approved", help="Login that approved (repeatable)"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug events"),
):
    """Evaluate a local CODEOWNERS file against paths, without GitHub."""
    configure_logging(verbose)
    result = asyncio.run(
        resolve_approvals(
            files,
            rules.read_text(encoding="utf-8"),
            ReviewState(approvals=approved),
            _offline_team_lookup,
        )
    )
    _emit(result, as_json)
