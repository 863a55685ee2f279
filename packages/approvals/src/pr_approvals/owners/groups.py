from __future__ import annotations

from typing import Iterable, Sequence

from .models import ApprovalGroup, FileOwnership, OwnerKind, OwnerRef

UNOWNED_SIGNATURE = "__unowned__"


def owner_signature(owners: Iterable[OwnerRef]) -> str:
    keys = sorted({o.key for o in owners})
    if not keys:
        return UNOWNED_SIGNATURE
    return "|".join(f"{kind}:{name}" for kind, name in keys)


def build_approval_groups(ownerships: Sequence[FileOwnership]) -> list[ApprovalGroup]:
    """Partition files into groups that share an identical owner set.

    Groups are emitted in first-occurrence order of their signature. Files
    without owners share one unowned group. A group keeps the owner order of
    the first file that created it.
    """
    by_signature: dict[str, ApprovalGroup] = {}
    for fo in ownerships:
        sig = owner_signature(fo.owners)
        group = by_signature.get(sig)
        if group is None:
            group = ApprovalGroup(signature=sig, owners=tuple(fo.owners))
            by_signature[sig] = group
        group.files.append(fo.path)
    return list(by_signature.values())


def team_owners(groups: Iterable[ApprovalGroup]) -> list[OwnerRef]:
    """Distinct team owners across groups, in first-reference order."""
    out: list[OwnerRef] = []
    seen: set[tuple[str, str]] = set()
    for g in groups:
        for o in g.owners:
            if o.kind is not OwnerKind.team or o.key in seen:
                continue
            seen.add(o.key)
            out.append(o)
    return out
