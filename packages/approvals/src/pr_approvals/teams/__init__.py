from .cache import TeamRosterCache
from .resolver import TeamLookup, TeamResolution, TeamResolver

__all__ = ["TeamLookup", "TeamResolution", "TeamResolver", "TeamRosterCache"]
