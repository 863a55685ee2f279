"""Ownership rules, matching, grouping and approval evaluation."""

from .evaluator import GroupEvaluation, evaluate_groups
from .groups import build_approval_groups, owner_signature
from .models import (
    ApprovalGroup,
    FileOwnership,
    OwnerKind,
    OwnerRef,
    OwnershipRule,
    ReviewState,
    Team,
    TeamMember,
)
from .patterns import CompiledPattern, PatternCache, compile_pattern
from .resolver import resolve_file_ownership
from .rules import ParsedRules, parse_ownership_rules

__all__ = [
    "ApprovalGroup",
    "CompiledPattern",
    "FileOwnership",
    "GroupEvaluation",
    "OwnerKind",
    "OwnerRef",
    "OwnershipRule",
    "ParsedRules",
    "PatternCache",
    "ReviewState",
    "Team",
    "TeamMember",
    "build_approval_groups",
    "compile_pattern",
    "evaluate_groups",
    "owner_signature",
    "parse_ownership_rules",
    "resolve_file_ownership",
]
