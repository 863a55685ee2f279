"""pr-approvals: which code-owner approvals a pull request still needs."""

from .analysis import AnalysisResult, resolve_approvals, resolve_approvals_sync
from .config import ApprovalsConfig
from .errors import Diagnostic, DiagnosticKind, UpstreamUnavailable
from .owners.models import OwnerKind, OwnerRef, ReviewState, Team, TeamMember
from .report import AnalysisReport
from .teams.cache import TeamRosterCache

__all__ = [
    "AnalysisReport",
    "AnalysisResult",
    "ApprovalsConfig",
    "Diagnostic",
    "DiagnosticKind",
    "OwnerKind",
    "OwnerRef",
    "ReviewState",
    "Team",
    "TeamMember",
    "TeamRosterCache",
    "UpstreamUnavailable",
    "resolve_approvals",
    "resolve_approvals_sync",
]
