from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence, assert_never

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import Diagnostic
from .owners.evaluator import GroupEvaluation
from .owners.models import FileOwnership, OwnerKind, OwnerRef, ReviewState, Team, TeamMember
from .teams.cache import cache_key


class ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OwnerDetail(ReportModel):
    username: str
    type: OwnerKind
    name: str | None = None
    avatar_url: str | None = None
    slug: str | None = None
    description: str | None = None
    member_count: int | None = None
    members: list[TeamMember] = Field(default_factory=list)
    members_resolvable: bool | None = None


class ApprovalGroupView(ReportModel):
    files: list[str]
    owners: list[str]
    needs_approval: bool
    unowned: bool = False
    approved_by: str | None = None
    approver_type: OwnerKind | None = None
    team_name: str | None = None
    approved_team_members: list[str] = Field(default_factory=list)
    owner_details: list[OwnerDetail] = Field(default_factory=list)


class FileApprovalDetail(ReportModel):
    file: str
    pattern: str | None
    line: int | None = None
    owners: list[str] = Field(default_factory=list)


class PullRequestStatus(ReportModel):
    is_merged: bool = False
    merged_at: datetime | None = None
    mergeable_state: str | None = None
    is_draft: bool = False


class PullRequestInfo(ReportModel):
    repo: str
    number: int
    title: str
    author: str | None
    state: str
    url: str
    base_ref: str | None = None
    base_sha: str | None = None
    head_sha: str | None = None
    status_details: PullRequestStatus = Field(default_factory=PullRequestStatus)


class RateLimitInfo(ReportModel):
    limit: int
    remaining: int
    reset_at: datetime
    minutes_until_reset: int
    reset_time_formatted: str
    show_warning: bool


class AnalysisReport(ReportModel):
    min_required_approvals: list[ApprovalGroupView] = Field(default_factory=list)
    file_approval_details: list[FileApprovalDetail] = Field(default_factory=list)
    total_groups_needing_approval: int = 0
    all_user_details: list[OwnerDetail] = Field(default_factory=list)
    approvals: list[str] = Field(default_factory=list)
    requested_reviewers: list[str] = Field(default_factory=list)
    teams_configured: bool = False
    unowned_files: list[str] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    pr_info: PullRequestInfo | None = None
    rate_limit_info: RateLimitInfo | None = None

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def user_avatar_url(login: str) -> str | None:
    if "@" in login:
        return None
    return f"https://github.com/{login}.png"


def owner_detail(owner: OwnerRef, rosters: Mapping[str, Team]) -> OwnerDetail:
    if owner.kind is OwnerKind.user:
        return OwnerDetail(
            username=owner.name,
            type=OwnerKind.user,
            avatar_url=user_avatar_url(owner.name),
        )
    if owner.kind is OwnerKind.team:
        team = rosters.get(cache_key(owner.name)) or Team.unresolvable(owner)
        return OwnerDetail(
            username=owner.name,
            type=OwnerKind.team,
            name=team.display_name,
            slug=team.slug,
            description=team.description,
            member_count=len(team.members) if team.members_resolvable else None,
            members=list(team.members),
            members_resolvable=team.members_resolvable,
        )
    assert_never(owner.kind)


def group_view(ev: GroupEvaluation, rosters: Mapping[str, Team]) -> ApprovalGroupView:
    view = ApprovalGroupView(
        files=list(ev.group.files),
        owners=[o.name for o in ev.group.owners],
        needs_approval=ev.needs_approval,
        unowned=ev.group.unowned,
        owner_details=[owner_detail(o, rosters) for o in ev.group.owners],
    )
    if ev.satisfied_by is not None:
        view.approved_by = ev.approved_by
        view.approver_type = ev.satisfied_by.kind
        if ev.satisfied_by.kind is OwnerKind.team:
            view.team_name = ev.satisfied_by.name
            view.approved_team_members = list(ev.satisfying_team_members)
    return view


def build_report(
    *,
    ownerships: Sequence[FileOwnership],
    evaluations: Sequence[GroupEvaluation],
    rosters: Mapping[str, Team],
    review_state: ReviewState,
    diagnostics: Sequence[Diagnostic] = (),
) -> AnalysisReport:
    groups = [group_view(ev, rosters) for ev in evaluations]

    all_users: list[OwnerDetail] = []
    seen: set[tuple[str, str]] = set()
    for ev in evaluations:
        for o in ev.group.owners:
            if o.key in seen:
                continue
            seen.add(o.key)
            all_users.append(owner_detail(o, rosters))

    return AnalysisReport(
        min_required_approvals=groups,
        file_approval_details=[
            FileApprovalDetail(
                file=fo.path,
                pattern=fo.rule.pattern if fo.rule else None,
                line=fo.rule.line if fo.rule else None,
                owners=[o.handle for o in fo.owners],
            )
            for fo in ownerships
        ],
        total_groups_needing_approval=sum(1 for g in groups if g.needs_approval),
        all_user_details=all_users,
        approvals=list(review_state.approvals),
        requested_reviewers=list(review_state.requested_reviewers),
        teams_configured=any(o.kind is OwnerKind.team for ev in evaluations for o in ev.group.owners),
        unowned_files=[f for ev in evaluations if ev.group.unowned for f in ev.group.files],
        diagnostics=list(diagnostics),
    )
