from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Sequence

import structlog

from .config import DEFAULT_TEAM_CONCURRENCY, DEFAULT_TEAM_RESOLUTION_TIMEOUT
from .errors import Diagnostic, DiagnosticKind
from .owners.evaluator import evaluate_groups
from .owners.groups import build_approval_groups, team_owners
from .owners.models import ReviewState
from .owners.patterns import PatternCache
from .owners.resolver import dropped_path_diagnostics, resolve_file_ownership
from .owners.rules import parse_ownership_rules
from .report import AnalysisReport, build_report
from .teams.cache import TeamRosterCache
from .teams.resolver import TeamLookup, TeamResolution, TeamResolver

logger = structlog.get_logger(__name__)


@dataclass
class AnalysisResult:
    report: AnalysisReport
    diagnostics: list[Diagnostic] = field(default_factory=list)


async def resolve_approvals(
    changed_files: Sequence[str],
    rules_text: str,
    review_state: ReviewState,
    team_lookup: TeamLookup,
    *,
    cache: TeamRosterCache | None = None,
    concurrency: int = DEFAULT_TEAM_CONCURRENCY,
    timeout: float | None = DEFAULT_TEAM_RESOLUTION_TIMEOUT,
    stop: asyncio.Event | None = None,
) -> AnalysisResult:
    """Compute approval groups for a change and which of them are satisfied.

    Parsing, matching and grouping are purely local. Team rosters are the
    only remote input; when they cannot be fetched the affected teams lose
    member attribution but the report is still complete.
    """
    diagnostics: list[Diagnostic] = []

    parsed = parse_ownership_rules(rules_text)
    diagnostics.extend(parsed.diagnostics)

    if not changed_files:
        diagnostics.append(
            Diagnostic(kind=DiagnosticKind.empty_input, message="no changed files")
        )
    if not parsed.rules:
        diagnostics.append(
            Diagnostic(kind=DiagnosticKind.empty_input, message="no ownership rules")
        )
    diagnostics.extend(dropped_path_diagnostics(changed_files))

    ownerships = resolve_file_ownership(changed_files, parsed.rules, PatternCache())
    groups = build_approval_groups(ownerships) if parsed.rules else []

    resolver = TeamResolver(
        team_lookup, cache=cache, concurrency=concurrency, timeout=timeout
    )

    teams = team_owners(groups)
    resolution: TeamResolution = await resolver.resolve(teams, stop=stop)
    diagnostics.extend(resolution.diagnostics)

    evaluations = evaluate_groups(groups, resolution.rosters, review_state)
    report = build_report(
        ownerships=ownerships,
        evaluations=evaluations,
        rosters=resolution.rosters,
        review_state=review_state,
        diagnostics=diagnostics,
    )
    logger.debug(
        "approvals_resolved",
        files=len(ownerships),
        rules=len(parsed.rules),
        groups=len(groups),
        teams=len(teams),
        needing_approval=report.total_groups_needing_approval,
    )
    return AnalysisResult(report=report, diagnostics=diagnostics)


def resolve_approvals_sync(
    changed_files: Sequence[str],
    rules_text: str,
    review_state: ReviewState,
    team_lookup: TeamLookup,
    *,
    cache: TeamRosterCache | None = None,
    concurrency: int = DEFAULT_TEAM_CONCURRENCY,
    timeout: float | None = DEFAULT_TEAM_RESOLUTION_TIMEOUT,
    stop: asyncio.Event | None = None,
) -> AnalysisResult:
    return asyncio.run(
        resolve_approvals(
            changed_files,
            rules_text,
            review_state,
            team_lookup,
            cache=cache,
            concurrency=concurrency,
            timeout=timeout,
            stop=stop,
        )
    )
