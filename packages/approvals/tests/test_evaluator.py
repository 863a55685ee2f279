from __future__ import annotations

from pr_approvals.owners.evaluator import evaluate_group, evaluate_groups
from pr_approvals.owners.models import (
    ApprovalGroup,
    OwnerRef,
    ReviewState,
    Team,
    TeamMember,
)


def _group(*owners: OwnerRef, files: list[str] | None = None) -> ApprovalGroup:
    return ApprovalGroup(signature="sig", owners=tuple(owners), files=files or ["f.py"])


def _team(name: str, *members: str, resolvable: bool = True) -> Team:
    org, slug = name.split("/", 1)
    return Team(
        slug=slug,
        org=org,
        display_name=slug.title(),
        members=[TeamMember(login=m) for m in members],
        members_resolvable=resolvable,
    )


def test_user_owner_approval_satisfies_group() -> None:
    ev = evaluate_group(
        _group(OwnerRef.user("alice"), OwnerRef.user("bob")),
        {},
        ReviewState(approvals=["Bob"]),
    )

    assert ev.satisfied
    assert ev.satisfied_by == OwnerRef.user("bob")
    assert ev.approved_by == "bob"
    assert not ev.needs_approval


def test_group_without_matching_approval_needs_approval() -> None:
    ev = evaluate_group(_group(OwnerRef.user("alice")), {}, ReviewState(approvals=["mallory"]))

    assert not ev.satisfied
    assert ev.needs_approval
    assert ev.satisfied_by is None


def test_team_member_approval_satisfies_team_group() -> None:
    team = OwnerRef.team("acme/web")
    ev = evaluate_group(
        _group(team),
        {"acme/web": _team("acme/web", "carol", "dave", "erin")},
        ReviewState(approvals=["erin", "carol", "zed"]),
    )

    assert ev.satisfied
    assert ev.satisfied_by == team
    assert ev.satisfying_team_members == ["carol", "erin"]
    assert ev.approved_by == "carol"


def test_literal_team_approval_counts_without_roster() -> None:
    team = OwnerRef.team("acme/web")
    ev = evaluate_group(
        _group(team),
        {"acme/web": _team("acme/web", resolvable=False)},
        ReviewState(approvals=["@acme/web"]),
    )

    assert ev.satisfied
    assert ev.approved_by == "acme/web"
    assert ev.satisfying_team_members == []


def test_unresolvable_team_without_literal_approval_is_unsatisfied() -> None:
    ev = evaluate_group(
        _group(OwnerRef.team("acme/web")),
        {},
        ReviewState(approvals=["carol"]),
    )

    assert not ev.satisfied


def test_tie_break_follows_owner_declaration_order() -> None:
    group = _group(OwnerRef.team("acme/web"), OwnerRef.user("bob"))
    ev = evaluate_group(
        group,
        {"acme/web": _team("acme/web", "carol")},
        ReviewState(approvals=["bob", "carol"]),
    )

    assert ev.satisfied_by == OwnerRef.team("acme/web")
    assert ev.satisfying_team_members == ["carol"]


def test_unowned_group_is_unsatisfied_but_needs_no_approval() -> None:
    ev = evaluate_group(_group(), {}, ReviewState(approvals=["anyone"]))

    assert not ev.satisfied
    assert not ev.needs_approval
    assert ev.group.unowned


def test_evaluation_is_deterministic() -> None:
    groups = [
        _group(OwnerRef.user("alice"), files=["a"]),
        _group(OwnerRef.team("acme/web"), OwnerRef.user("bob"), files=["b"]),
    ]
    rosters = {"acme/web": _team("acme/web", "carol")}
    state = ReviewState(approvals=["carol", "bob"])

    assert evaluate_groups(groups, rosters, state) == evaluate_groups(groups, rosters, state)
