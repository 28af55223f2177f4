"""
History Operations Module

Append-only log of completed claims. Entries are never modified; reads are
capped at the most recent Config.HISTORY_LIMIT entries, newest first.
"""

from datetime import timezone
from typing import List, Optional
from contextlib import asynccontextmanager

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from bot.config import Config
from bot.data_models.leaderboard import HistoryRecord
from bot.database.models import ClaimHistory, Participant


def to_record(entry: ClaimHistory) -> HistoryRecord:
    timestamp = entry.timestamp
    if timestamp is not None and timestamp.tzinfo is None:
        # SQLite CURRENT_TIMESTAMP is UTC but comes back naive
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return HistoryRecord(
        id=entry.id,
        participant_id=entry.participant_id,
        participant_name=entry.participant_name,
        points_gained=entry.points_gained,
        total_points_after=entry.total_points_after,
        timestamp=timestamp,
    )


class HistoryLog:
    """Append-only claim history."""

    def __init__(self, database):
        self.db = database

    @asynccontextmanager
    async def _get_session_context(self, session: Optional[AsyncSession] = None, write: bool = False):
        if session:
            yield session
        elif write:
            async with self.db.transaction() as new_session:
                yield new_session
        else:
            async with self.db.get_session() as new_session:
                yield new_session

    async def append(
        self,
        participant: Participant,
        points_gained: int,
        total_points_after: int,
        session: Optional[AsyncSession] = None
    ) -> HistoryRecord:
        """Record a claim, snapshotting the participant's current name."""
        if points_gained <= 0:
            raise ValueError(f"points_gained must be positive, got {points_gained}")
        async with self._get_session_context(session, write=True) as s:
            entry = ClaimHistory(
                participant_id=participant.id,
                participant_name=participant.name,
                points_gained=points_gained,
                total_points_after=total_points_after,
            )
            s.add(entry)
            await s.flush()  # Use flush to get ID, let caller handle commit
            await s.refresh(entry)
            return to_record(entry)

    async def list_recent(self, limit: int = Config.HISTORY_LIMIT, session: Optional[AsyncSession] = None) -> List[HistoryRecord]:
        """Most recent claims, newest first, never more than HISTORY_LIMIT."""
        limit = max(0, min(limit, Config.HISTORY_LIMIT))
        if limit == 0:
            return []
        async with self._get_session_context(session) as s:
            result = await s.execute(
                select(ClaimHistory)
                .order_by(ClaimHistory.timestamp.desc(), ClaimHistory.id.desc())
                .limit(limit)
            )
            return [to_record(entry) for entry in result.scalars().all()]

    async def clear(self, session: Optional[AsyncSession] = None) -> int:
        """Delete every entry. Only the administrative reset calls this."""
        async with self._get_session_context(session, write=True) as s:
            result = await s.execute(delete(ClaimHistory))
            return result.rowcount
