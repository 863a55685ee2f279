from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class DiagnosticKind(StrEnum):
    malformed_rule = "malformed_rule"
    unresolved_team = "unresolved_team"
    empty_input = "empty_input"


class Diagnostic(BaseModel):
    """A recoverable problem met while building a report."""

    kind: DiagnosticKind
    message: str
    subject: str | None = None
    line: int | None = None


class UpstreamUnavailable(RuntimeError):
    """The source of PR and ownership data could not be reached."""
