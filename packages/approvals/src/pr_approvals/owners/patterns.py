from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CompiledPattern:
    """A CODEOWNERS glob compiled to a regular expression.

    Semantics (gitignore-derived, as GitHub applies them):
    - a leading or inner `/` anchors the pattern at the repository root,
      otherwise it matches at any depth (basename match);
    - `*` and `?` stay within one path segment, `**` crosses segments;
    - a trailing `/` matches everything below that directory;
    - `dir/*` matches direct children of `dir` only;
    - anything else also matches files below a directory it names.
    """

    pattern: str
    regex: re.Pattern[str]
    anchored: bool

    def matches(self, path: str) -> bool:
        return self.regex.search(normalize_path(path)) is not None


def normalize_path(path: str) -> str:
    p = path.replace("\\", "/").strip()
    while p.startswith("./"):
        p = p[2:]
    return p.lstrip("/")


def _translate_segment(segment: str) -> str:
    out: list[str] = []
    for ch in segment:
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(ch))
    return "".join(out)


def compile_pattern(pattern: str) -> CompiledPattern:
    raw = pattern.strip()
    matches_dir = raw.endswith("/")
    body = raw.strip("/")
    anchored = raw.startswith("/") or "/" in body

    if not body:
        # A bare "/" covers the whole tree.
        return CompiledPattern(pattern=pattern, regex=re.compile(r"\A"), anchored=True)

    segments = [s for s in body.split("/") if s]
    parts: list[str] = []
    need_sep = False
    for i, seg in enumerate(segments):
        last = i == len(segments) - 1
        if seg == "**":
            if i == 0:
                parts.append(".*" if last else "(?:.*/)?")
                need_sep = False
            elif last:
                parts.append("/.*")
            else:
                parts.append("(?:/.*)?")
                need_sep = True
            continue
        if need_sep:
            parts.append("/")
        parts.append(_translate_segment(seg))
        need_sep = True

    prefix = r"\A" if anchored else r"(?:\A|/)"
    if segments[-1] == "**":
        suffix = ""
    elif matches_dir:
        suffix = "/"
    elif len(segments) > 1 and segments[-1] == "*":
        suffix = r"\Z"
    else:
        suffix = r"(?:\Z|/)"

    return CompiledPattern(
        pattern=pattern,
        regex=re.compile(prefix + "".join(parts) + suffix),
        anchored=anchored,
    )


@dataclass
class PatternCache:
    """Compiled matchers keyed by pattern string, scoped to one request."""

    _compiled: dict[str, CompiledPattern] = field(default_factory=dict)

    def get(self, pattern: str) -> CompiledPattern:
        hit = self._compiled.get(pattern)
        if hit is None:
            hit = compile_pattern(pattern)
            self._compiled[pattern] = hit
        return hit

    def matches(self, pattern: str, path: str) -> bool:
        return self.get(pattern).matches(path)

    def __len__(self) -> int:
        return len(self._compiled)
