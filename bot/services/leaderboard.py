"""
Leaderboard service.

Front door for everything the command layer needs besides claims:
registration, lookups, history reads and the administrative reset. Owns the
wiring of the ranking engine, observer hub and claim coordinator so the bot
builds one object at startup.
"""

import logging
from typing import List, Optional

from bot.config import Config
from bot.constants import LeaderboardConstants
from bot.data_models.leaderboard import (
    ClaimResult, HistoryRecord, RankedParticipant, RankingSnapshot, RankingUpdate, ResetNotice
)
from bot.services.base import BaseService
from bot.services.claim_coordinator import ClaimCoordinator, RandomPointsSource
from bot.services.observer_hub import Observer, ObserverHub
from bot.services.ranking_engine import RankingEngine

logger = logging.getLogger(__name__)


class LeaderboardService(BaseService):
    """Registration, reads, claims and reset for the live leaderboard."""

    def __init__(
        self,
        database,
        points_source: Optional[RandomPointsSource] = None,
        *,
        observer_queue_size: int = None,
        observer_send_timeout: float = None
    ):
        super().__init__(database)
        self.ranking_engine = RankingEngine(database, self.participants, self.history)
        self.observer_hub = ObserverHub(
            self.ranking_engine.snapshot,
            queue_size=observer_queue_size,
            send_timeout=observer_send_timeout,
        )
        self.claims = ClaimCoordinator(
            database,
            self.ranking_engine,
            self.observer_hub,
            points_source=points_source,
            participant_store=self.participants,
            history_log=self.history,
        )

    # Claims and live observers

    async def claim(self, participant_id: int) -> ClaimResult:
        return await self.claims.claim(participant_id)

    async def subscribe(self, observer: Observer):
        await self.observer_hub.register(observer)

    def unsubscribe(self, observer: Observer):
        self.observer_hub.unregister(observer)

    # Participants

    async def register_participant(self, name: str) -> RankedParticipant:
        """
        Add a participant with zero points and announce the new ranking.

        Raises InvalidNameError or DuplicateNameError.
        """
        participant = await self.participants.insert(name)
        snapshot = await self.ranking_engine.recompute()
        self.observer_hub.broadcast(RankingUpdate(snapshot=snapshot))
        return snapshot.entry_for(participant.id)

    async def get_participant(self, participant_id: int) -> RankedParticipant:
        participant = await self.participants.get_by_id(participant_id)
        snapshot = await self.ranking_engine.snapshot()
        return snapshot.entry_for(participant.id)

    async def find_participant(self, name: str) -> RankedParticipant:
        participant = await self.participants.get_by_name(name)
        snapshot = await self.ranking_engine.snapshot()
        return snapshot.entry_for(participant.id)

    async def search_participants(self, fragment: str, limit: int) -> List[RankedParticipant]:
        matches = await self.participants.search_names(fragment, limit)
        snapshot = await self.ranking_engine.snapshot()
        # Stored ranks can trail a claim whose recompute is still running
        entries = (snapshot.entry_for(p.id) for p in matches)
        return sorted((entry for entry in entries if entry is not None), key=lambda entry: entry.rank)

    async def get_rankings(self) -> RankingSnapshot:
        return await self.ranking_engine.snapshot()

    async def get_recent_history(self, limit: int = Config.HISTORY_LIMIT) -> List[HistoryRecord]:
        return await self.history.list_recent(limit)

    # Administration

    async def reset(self) -> RankingSnapshot:
        """
        Zero all points, delete all history, re-rank and send a ResetNotice.

        Not excluded against in-flight claims: a claim committing around a
        reset may land before it (and be wiped) or after it (and survive).
        """
        async with self.db.transaction() as session:
            participants_reset = await self.participants.reset_points(session=session)
            history_deleted = await self.history.clear(session=session)
        snapshot = await self.ranking_engine.recompute()
        self.observer_hub.broadcast(ResetNotice(snapshot=snapshot))
        logger.info(
            f"Leaderboard reset: {participants_reset} participants zeroed, "
            f"{history_deleted} history entries deleted"
        )
        return snapshot

    async def seed_sample_participants(self) -> int:
        """Create the sample participants when the store is empty. Returns how many were added."""
        if not Config.SEED_SAMPLE_PARTICIPANTS:
            return 0
        if await self.participants.count() > 0:
            return 0

        async with self.db.transaction() as session:
            for name in LeaderboardConstants.SAMPLE_PARTICIPANTS:
                await self.participants.insert(name, session=session)
        await self.ranking_engine.recompute()
        logger.info(f"Seeded {len(LeaderboardConstants.SAMPLE_PARTICIPANTS)} sample participants")
        return len(LeaderboardConstants.SAMPLE_PARTICIPANTS)

    async def close(self):
        await self.claims.drain()
        await self.observer_hub.close()
