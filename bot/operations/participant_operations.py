"""
Participant Operations Module

Data access for Participant records: lookups, registration, and the two
write paths that touch leaderboard state (points and rank).

Every method accepts an optional session. Passing one lets the caller compose
several operations into a single transaction; without one the method runs in
its own scope.
"""

from typing import List, Optional
from contextlib import asynccontextmanager

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bot.constants import LeaderboardConstants
from bot.database.models import Participant
from bot.utils.leaderboard_exceptions import (
    DuplicateNameError, InvalidNameError, ParticipantNotFoundError
)
from bot.utils.logger import setup_logger

logger = setup_logger(__name__)


def normalize_name(name: Optional[str]) -> str:
    """Trim and validate a participant name."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidNameError("Participant name is required.")
    if len(cleaned) > LeaderboardConstants.MAX_NAME_LENGTH:
        raise InvalidNameError(
            f"Participant name must be at most {LeaderboardConstants.MAX_NAME_LENGTH} characters."
        )
    return cleaned


def ranking_order():
    """Points descending, then registration order."""
    return (Participant.points.desc(), Participant.registered_at.asc(), Participant.id.asc())


class ParticipantStore:
    """Durable mapping from participant id to name, points and rank."""

    def __init__(self, database):
        """Initialize with database instance"""
        self.db = database

    @asynccontextmanager
    async def _get_session_context(self, session: Optional[AsyncSession] = None, write: bool = False):
        """
        Provides a session context. Uses the provided session if available,
        otherwise creates and manages a new one.
        """
        if session:
            # If a session is provided, we do not manage its lifecycle
            yield session
        elif write:
            async with self.db.transaction() as new_session:
                yield new_session
        else:
            async with self.db.get_session() as new_session:
                yield new_session

    async def list_all(self, session: Optional[AsyncSession] = None) -> List[Participant]:
        """All participants in ranking order."""
        async with self._get_session_context(session) as s:
            result = await s.execute(select(Participant).order_by(*ranking_order()))
            return list(result.scalars().all())

    async def get_by_id(
        self,
        participant_id: int,
        session: Optional[AsyncSession] = None,
        for_update: bool = False
    ) -> Participant:
        """
        Get a participant by id or raise ParticipantNotFoundError.

        With for_update the row is locked until the surrounding transaction
        ends. On SQLite the BEGIN IMMEDIATE transaction already holds the
        database write lock, so the clause is a no-op there.
        """
        async with self._get_session_context(session) as s:
            query = select(Participant).where(Participant.id == participant_id)
            if for_update:
                query = query.with_for_update()
            result = await s.execute(query)
            participant = result.scalar_one_or_none()
            if participant is None:
                raise ParticipantNotFoundError(participant_id)
            return participant

    async def get_by_name(self, name: str, session: Optional[AsyncSession] = None) -> Participant:
        """Get a participant by name (case insensitive)."""
        async with self._get_session_context(session) as s:
            result = await s.execute(
                select(Participant).where(func.lower(Participant.name) == func.lower(name.strip()))
            )
            participant = result.scalar_one_or_none()
            if participant is None:
                raise ParticipantNotFoundError(name)
            return participant

    async def search_names(self, fragment: str, limit: int, session: Optional[AsyncSession] = None) -> List[Participant]:
        """Participants whose name contains fragment, in ranking order."""
        async with self._get_session_context(session) as s:
            query = select(Participant).order_by(*ranking_order()).limit(limit)
            if fragment:
                query = query.where(func.lower(Participant.name).contains(fragment.lower()))
            result = await s.execute(query)
            return list(result.scalars().all())

    async def count(self, session: Optional[AsyncSession] = None) -> int:
        async with self._get_session_context(session) as s:
            result = await s.execute(select(func.count(Participant.id)))
            return result.scalar() or 0

    async def insert(self, name: str, session: Optional[AsyncSession] = None) -> Participant:
        """
        Register a participant with zero points.

        Raises DuplicateNameError when the name is taken. The unique index is
        the source of truth; the lookup only produces the friendlier error
        without a failed INSERT.
        """
        name = normalize_name(name)
        async with self._get_session_context(session, write=True) as s:
            existing = await s.execute(
                select(Participant.id).where(func.lower(Participant.name) == func.lower(name))
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateNameError(name)

            participant = Participant(name=name, points=0, rank=0)
            s.add(participant)
            try:
                await s.flush()
            except IntegrityError as e:
                raise DuplicateNameError(name) from e
            await s.refresh(participant)
            logger.info(f"Registered participant {participant.name} (id={participant.id})")
            return participant

    async def update_points(self, participant_id: int, new_total: int, session: Optional[AsyncSession] = None):
        """
        Store a new point total.

        Callers must hold the participant's claim lock and have read the
        current total inside the same transaction.
        """
        if new_total < 0:
            raise ValueError(f"Point total cannot be negative: {new_total}")
        async with self._get_session_context(session, write=True) as s:
            result = await s.execute(
                update(Participant)
                .where(Participant.id == participant_id)
                .values(points=new_total)
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount == 0:
                raise ParticipantNotFoundError(participant_id)

    async def update_rank(self, participant_id: int, rank: int, session: Optional[AsyncSession] = None):
        async with self._get_session_context(session, write=True) as s:
            await s.execute(
                update(Participant)
                .where(Participant.id == participant_id)
                .values(rank=rank)
                .execution_options(synchronize_session="fetch")
            )

    async def reset_points(self, session: Optional[AsyncSession] = None) -> int:
        """Zero every participant's points. Returns the number of rows touched."""
        async with self._get_session_context(session, write=True) as s:
            result = await s.execute(
                update(Participant).values(points=0).execution_options(synchronize_session="fetch")
            )
            return result.rowcount
