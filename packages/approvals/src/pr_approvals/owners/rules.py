from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..errors import Diagnostic, DiagnosticKind
from .models import OwnerRef, OwnershipRule

_TEAM_RE = re.compile(r"^@?(?P<org>[A-Za-z0-9](?:[A-Za-z0-9-]{0,38}))/(?P<team>[A-Za-z0-9][A-Za-z0-9_.-]*)$")
_USER_RE = re.compile(r"^@?(?P<user>[A-Za-z0-9](?:[A-Za-z0-9_-]{0,38})(?:\[bot\])?)$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_INLINE_COMMENT_RE = re.compile(r"\s+#.*$")

# CODEOWNERS does not support negation or character ranges.
_UNSUPPORTED_PATTERN_PREFIXES = ("!",)
_UNSUPPORTED_PATTERN_CHARS = ("[", "]")


@dataclass(frozen=True)
class ParsedRules:
    rules: list[OwnershipRule]
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return sum(
            1
            for d in self.diagnostics
            if d.kind is DiagnosticKind.malformed_rule and d.subject == "line"
        )


def parse_owner_token(token: str) -> OwnerRef | None:
    """Tag one owner token, or return None if it is not a usable owner.

    `org/team` is a team; a login or an email address is a user. The leading
    `@` is optional.
    """
    m = _TEAM_RE.match(token)
    if m:
        return OwnerRef.team(f"{m.group('org')}/{m.group('team')}")
    m = _USER_RE.match(token)
    if m:
        return OwnerRef.user(m.group("user"))
    if _EMAIL_RE.match(token):
        return OwnerRef.user(token)
    return None


def _strip_line(raw: str) -> str:
    line = raw.strip()
    if line.startswith("\\#"):
        return "#" + _INLINE_COMMENT_RE.sub("", line[2:])
    if not line or line.startswith("#"):
        return ""
    return _INLINE_COMMENT_RE.sub("", line)


def _pattern_supported(pattern: str) -> bool:
    if pattern.startswith(_UNSUPPORTED_PATTERN_PREFIXES):
        return False
    return not any(c in pattern for c in _UNSUPPORTED_PATTERN_CHARS)


def parse_ownership_rules(text: str) -> ParsedRules:
    """Parse CODEOWNERS-style text into rules in declaration order.

    Lines with a pattern and no usable owners are kept as explicitly unowned
    rules so they can still override earlier matches. Owner tokens that cannot
    be tagged and lines with unsupported patterns are reported as
    `malformed_rule` diagnostics; parsing never raises.
    """
    rules: list[OwnershipRule] = []
    diagnostics: list[Diagnostic] = []
    for idx, raw in enumerate(text.splitlines(), start=1):
        line = _strip_line(raw)
        if not line:
            continue

        pattern, *tokens = line.split()
        if not _pattern_supported(pattern):
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.malformed_rule,
                    message=f"unsupported pattern syntax: {pattern}",
                    subject="line",
                    line=idx,
                )
            )
            continue

        owners: list[OwnerRef] = []
        seen: set[tuple[str, str]] = set()
        for token in tokens:
            owner = parse_owner_token(token)
            if owner is None:
                diagnostics.append(
                    Diagnostic(
                        kind=DiagnosticKind.malformed_rule,
                        message=f"invalid owner {token!r}",
                        subject="owner",
                        line=idx,
                    )
                )
                continue
            if owner.key in seen:
                continue
            seen.add(owner.key)
            owners.append(owner)

        # A line whose owners were all rejected still overrides earlier rules.
        rules.append(
            OwnershipRule(
                pattern=pattern,
                owners=tuple(owners),
                line=idx,
                explicitly_unowned=not owners,
            )
        )
    return ParsedRules(rules=rules, diagnostics=diagnostics)
