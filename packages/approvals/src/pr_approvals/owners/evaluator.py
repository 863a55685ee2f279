from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence, assert_never

from .models import ApprovalGroup, OwnerKind, OwnerRef, ReviewState, Team


@dataclass(frozen=True)
class GroupEvaluation:
    group: ApprovalGroup
    satisfied: bool
    satisfied_by: OwnerRef | None = None
    approved_by: str | None = None
    satisfying_team_members: list[str] = field(default_factory=list)

    @property
    def needs_approval(self) -> bool:
        return not self.satisfied and not self.group.unowned


def _approved_set(review_state: ReviewState) -> set[str]:
    return {a.lstrip("@").lower() for a in review_state.approvals}


def _team_approvals(
    owner: OwnerRef, team: Team | None, approved: set[str]
) -> tuple[bool, list[str]]:
    members = [
        login for login in (team.member_logins if team else []) if login.lower() in approved
    ]
    literal = owner.name.lower() in approved
    return (bool(members) or literal, members)


def evaluate_group(
    group: ApprovalGroup,
    rosters: Mapping[str, Team],
    review_state: ReviewState,
) -> GroupEvaluation:
    """Decide whether one group already has an approval from any of its owners.

    Owners are checked in declaration order and the first satisfied one is
    recorded. `rosters` is keyed by lowercased `org/team`.
    """
    approved = _approved_set(review_state)
    for owner in group.owners:
        if owner.kind is OwnerKind.user:
            if owner.name.lower() in approved:
                return GroupEvaluation(
                    group=group,
                    satisfied=True,
                    satisfied_by=owner,
                    approved_by=owner.name,
                )
        elif owner.kind is OwnerKind.team:
            ok, members = _team_approvals(owner, rosters.get(owner.name.lower()), approved)
            if ok:
                return GroupEvaluation(
                    group=group,
                    satisfied=True,
                    satisfied_by=owner,
                    approved_by=members[0] if members else owner.name,
                    satisfying_team_members=members,
                )
        else:
            assert_never(owner.kind)
    return GroupEvaluation(group=group, satisfied=False)


def evaluate_groups(
    groups: Sequence[ApprovalGroup],
    rosters: Mapping[str, Team],
    review_state: ReviewState,
) -> list[GroupEvaluation]:
    return [evaluate_group(g, rosters, review_state) for g in groups]
