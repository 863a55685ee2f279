from __future__ import annotations

from typing import Iterable, Sequence

from ..errors import Diagnostic, DiagnosticKind
from .models import FileOwnership, OwnershipRule
from .patterns import PatternCache, normalize_path


def match_rule(
    path: str, rules: Sequence[OwnershipRule], cache: PatternCache
) -> OwnershipRule | None:
    """Return the last rule whose pattern matches `path`."""
    for rule in reversed(rules):
        if cache.matches(rule.pattern, path):
            return rule
    return None


def unique_paths(files: Iterable[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for f in files:
        p = normalize_path(f)
        if not p or p in seen:
            continue
        seen.add(p)
        out.append(p)
    return out


def dropped_path_diagnostics(files: Iterable[str]) -> list[Diagnostic]:
    """Count the changed paths that `unique_paths` leaves out."""
    blank = duplicate = 0
    seen: set[str] = set()
    for f in files:
        p = normalize_path(f)
        if not p:
            blank += 1
        elif p in seen:
            duplicate += 1
        else:
            seen.add(p)

    out: list[Diagnostic] = []
    if blank:
        out.append(
            Diagnostic(
                kind=DiagnosticKind.empty_input,
                message=f"ignored {blank} blank path(s)",
                subject="path",
            )
        )
    if duplicate:
        out.append(
            Diagnostic(
                kind=DiagnosticKind.empty_input,
                message=f"merged {duplicate} duplicate path(s)",
                subject="path",
            )
        )
    return out


def resolve_file_ownership(
    files: Iterable[str],
    rules: Sequence[OwnershipRule],
    cache: PatternCache | None = None,
) -> list[FileOwnership]:
    """Resolve owners per changed file, last matching rule wins.

    An explicitly unowned rule is authoritative: a file it matches last is
    unowned even if an earlier rule would have assigned owners.
    """
    patterns = cache if cache is not None else PatternCache()
    out: list[FileOwnership] = []
    for path in unique_paths(files):
        rule = match_rule(path, rules, patterns)
        owners = rule.owners if rule is not None else ()
        out.append(FileOwnership(path=path, rule=rule, owners=owners))
    return out
