"""
Leaderboard data models for the live claim leaderboard.

Provides immutable data transfer objects for rankings, claims, history and the
events fanned out to live observers.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class RankedParticipant:
    """Single leaderboard row."""
    participant_id: int
    name: str
    points: int
    rank: int


@dataclass(frozen=True)
class RankingSnapshot:
    """Every participant ordered by points descending, annotated with rank."""
    entries: Tuple[RankedParticipant, ...]
    version: int
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_participants(self) -> int:
        return len(self.entries)

    def entry_for(self, participant_id: int) -> Optional[RankedParticipant]:
        for entry in self.entries:
            if entry.participant_id == participant_id:
                return entry
        return None

    def page(self, page: int, page_size: int) -> "LeaderboardPage":
        total_pages = max(1, -(-len(self.entries) // page_size))
        page = min(max(page, 1), total_pages)
        start = (page - 1) * page_size
        return LeaderboardPage(
            entries=list(self.entries[start:start + page_size]),
            current_page=page,
            total_pages=total_pages,
            total_participants=len(self.entries),
        )


@dataclass(frozen=True)
class LeaderboardPage:
    """Paginated leaderboard data."""
    entries: List[RankedParticipant]
    current_page: int
    total_pages: int
    total_participants: int


@dataclass(frozen=True)
class ClaimResult:
    """Outcome of a single claim."""
    participant_id: int
    name: str
    points_gained: int
    new_total: int


@dataclass(frozen=True)
class HistoryRecord:
    """Immutable view of one stored claim."""
    id: int
    participant_id: int
    participant_name: str
    points_gained: int
    total_points_after: int
    timestamp: datetime


@dataclass(frozen=True)
class RankingUpdate:
    """Broadcast after a ranking change; claimed_by is set only for claims."""
    snapshot: RankingSnapshot
    claimed_by: Optional[ClaimResult] = None


@dataclass(frozen=True)
class ResetNotice:
    """Broadcast after every participant's points were zeroed."""
    snapshot: RankingSnapshot


LeaderboardEvent = Union[RankingUpdate, ResetNotice]
