"""
Ranking engine.

Derives ranks from point totals and writes them back to the participant
store. Recomputations run one at a time behind an engine-wide lock: two
back-to-back claims still trigger two recomputes, but the second always
starts from the first one's persisted result, so stored ranks never mix
rows from different recomputations. Each completed recompute bumps the
snapshot version, which observers use to spot a stale snapshot.
"""

import asyncio
import logging

from bot.data_models.leaderboard import RankingSnapshot
from bot.services.base import BaseService
from bot.utils.ranking import RankingUtility

logger = logging.getLogger(__name__)


class RankingEngine(BaseService):
    """Computes, persists and snapshots the ranking."""

    def __init__(self, database, participant_store=None, history_log=None):
        super().__init__(database, participant_store, history_log)
        self._lock = asyncio.Lock()
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    async def recompute(self) -> RankingSnapshot:
        """
        Re-rank every participant and persist changed ranks.

        Store failures propagate unchanged as StoreFailure; in that case the
        transaction rolls back and the previous ranks stay in place.
        """
        async with self._lock:
            async with self.db.transaction() as session:
                participants = await self.participants.list_all(session=session)
                ranked = RankingUtility.assign_ranks(participants)
                changed = 0
                # Write in id order so concurrent writers lock rows consistently
                for participant, rank in sorted(ranked, key=lambda pair: pair[0].id):
                    if participant.rank != rank:
                        await self.participants.update_rank(participant.id, rank, session=session)
                        changed += 1
            self._version += 1
            snapshot = RankingUtility.build_snapshot(ranked, self._version)

        logger.debug(
            f"Recomputed ranking v{snapshot.version}: "
            f"{snapshot.total_participants} participants, {changed} rank changes"
        )
        return snapshot

    async def snapshot(self) -> RankingSnapshot:
        """
        Current ranking derived from committed points, without writing.

        Ranks are positions in the ranking order, so the snapshot reflects
        every committed claim even if its recompute has not run yet.
        """
        async with self._lock:
            participants = await self.participants.list_all()
            return RankingUtility.build_snapshot(RankingUtility.assign_ranks(participants), self._version)
