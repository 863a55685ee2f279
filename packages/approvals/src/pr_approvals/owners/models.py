from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class OwnerKind(StrEnum):
    user = "user"
    team = "team"


class OwnerRef(BaseModel):
    """A user or team named as an owner in the rules file.

    `name` is stored without the leading `@`; teams use the `org/team` form.
    Identity is `(kind, name.lower())`.
    """

    model_config = ConfigDict(frozen=True)

    kind: OwnerKind
    name: str

    @classmethod
    def user(cls, handle: str) -> OwnerRef:
        return cls(kind=OwnerKind.user, name=handle.lstrip("@"))

    @classmethod
    def team(cls, name: str) -> OwnerRef:
        return cls(kind=OwnerKind.team, name=name.lstrip("@"))

    @property
    def key(self) -> tuple[str, str]:
        return (self.kind.value, self.name.lower())

    @property
    def handle(self) -> str:
        return f"@{self.name}"

    @property
    def org(self) -> str | None:
        if self.kind is OwnerKind.team and "/" in self.name:
            return self.name.split("/", 1)[0]
        return None

    @property
    def slug(self) -> str:
        if self.kind is OwnerKind.team and "/" in self.name:
            return self.name.split("/", 1)[1]
        return self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OwnerRef):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


@dataclass(frozen=True)
class OwnershipRule:
    pattern: str
    owners: tuple[OwnerRef, ...]
    line: int
    explicitly_unowned: bool = False


@dataclass(frozen=True)
class FileOwnership:
    path: str
    rule: OwnershipRule | None
    owners: tuple[OwnerRef, ...]

    @property
    def unowned(self) -> bool:
        return not self.owners


@dataclass
class ApprovalGroup:
    """Changed files that share one resolved owner set."""

    signature: str
    owners: tuple[OwnerRef, ...]
    files: list[str] = field(default_factory=list)

    @property
    def unowned(self) -> bool:
        return not self.owners


class TeamMember(BaseModel):
    login: str
    name: str | None = None
    avatar_url: str | None = None


class Team(BaseModel):
    slug: str
    org: str | None = None
    display_name: str
    description: str | None = None
    members: list[TeamMember] = Field(default_factory=list)
    members_resolvable: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.org}/{self.slug}" if self.org else self.slug

    @property
    def member_logins(self) -> list[str]:
        return [m.login for m in self.members]

    @classmethod
    def unresolvable(cls, owner: OwnerRef) -> Team:
        return cls(
            slug=owner.slug,
            org=owner.org,
            display_name=owner.slug,
            members_resolvable=False,
        )


class ReviewState(BaseModel):
    approvals: list[str] = Field(default_factory=list)
    requested_reviewers: list[str] = Field(default_factory=list)

    def approved_by(self, handle: str) -> bool:
        wanted = handle.lstrip("@").lower()
        return any(a.lstrip("@").lower() == wanted for a in self.approvals)
