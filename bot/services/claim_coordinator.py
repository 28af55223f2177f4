"""
Claim coordinator.

A claim awards a random number of points to one participant:

1. draw the delta from the points source
2. under the participant's claim lock, in one transaction: read the current
   total, store total + delta, append the history entry, commit
3. recompute the ranking
4. broadcast the new ranking with the claim attached

Steps 1-2 are the durable part. A failure or cancellation before the commit
leaves nothing behind. Once the commit succeeds, steps 3-4 run in their own
task that the caller's cancellation cannot interrupt, so every committed
claim is followed by a recompute that includes it.

Claims on different participants take different locks (lock sharding by
participant id) and only meet at the database's write serialization.
"""

import asyncio
import logging
import random
from typing import Optional

from bot.config import Config
from bot.data_models.leaderboard import ClaimResult, RankingUpdate
from bot.services.base import BaseService
from bot.services.observer_hub import ObserverHub
from bot.services.ranking_engine import RankingEngine
from bot.utils.leaderboard_exceptions import RankingRefreshError, StoreFailure

logger = logging.getLogger(__name__)


class RandomPointsSource:
    """Uniform integer points in [minimum, maximum], inclusive."""

    def __init__(self, minimum: int = Config.CLAIM_MIN_POINTS, maximum: int = Config.CLAIM_MAX_POINTS, rng: random.Random = None):
        if not 1 <= minimum <= maximum:
            raise ValueError(f"Invalid points range [{minimum}, {maximum}]")
        self.minimum = minimum
        self.maximum = maximum
        self._rng = rng or random.SystemRandom()

    def draw(self) -> int:
        return self._rng.randint(self.minimum, self.maximum)


class ShardedLock:
    """A fixed pool of asyncio locks addressed by key."""

    def __init__(self, shards: int = Config.CLAIM_LOCK_SHARDS):
        if shards < 1:
            raise ValueError("shards must be at least 1")
        self._locks = [asyncio.Lock() for _ in range(shards)]

    def for_key(self, key) -> asyncio.Lock:
        return self._locks[hash(key) % len(self._locks)]


class ClaimCoordinator(BaseService):
    """Runs claims as one serialized unit per participant."""

    def __init__(
        self,
        database,
        ranking_engine: RankingEngine,
        observer_hub: ObserverHub,
        points_source: Optional[RandomPointsSource] = None,
        participant_store=None,
        history_log=None,
        lock_shards: int = Config.CLAIM_LOCK_SHARDS
    ):
        super().__init__(database, participant_store, history_log)
        self.ranking_engine = ranking_engine
        self.observer_hub = observer_hub
        self.points_source = points_source or RandomPointsSource()
        self._locks = ShardedLock(lock_shards)
        self._background_tasks: set = set()

    async def claim(self, participant_id: int) -> ClaimResult:
        """
        Award random points to a participant.

        Raises:
            ParticipantNotFoundError: participant_id is unknown; nothing changes.
            StoreFailure: the point update could not be committed; nothing changes.
            RankingRefreshError: the claim committed but the recompute failed;
                the error carries the committed ClaimResult and no broadcast
                was sent.
        """
        delta = self.points_source.draw()
        result = await self._commit_claim(participant_id, delta)
        logger.info(f"{result.name} claimed {result.points_gained} points (total {result.new_total})")

        publish = asyncio.create_task(self._publish(result), name=f"claim-publish:{participant_id}")
        self._background_tasks.add(publish)
        publish.add_done_callback(self._publish_done)
        await asyncio.shield(publish)
        return result

    async def _commit_claim(self, participant_id: int, delta: int) -> ClaimResult:
        async with self._locks.for_key(participant_id):
            async with self.db.transaction() as session:
                participant = await self.participants.get_by_id(participant_id, session=session, for_update=True)
                new_total = participant.points + delta
                await self.participants.update_points(participant.id, new_total, session=session)
                await self.history.append(participant, delta, new_total, session=session)
                return ClaimResult(
                    participant_id=participant.id,
                    name=participant.name,
                    points_gained=delta,
                    new_total=new_total,
                )

    async def _publish(self, result: ClaimResult):
        try:
            snapshot = await self.ranking_engine.recompute()
        except StoreFailure as e:
            logger.error(f"Ranking recompute after claim by {result.name} failed: {e}")
            raise RankingRefreshError(result, str(e)) from e
        self.observer_hub.broadcast(RankingUpdate(snapshot=snapshot, claimed_by=result))

    def _publish_done(self, task: asyncio.Task):
        self._background_tasks.discard(task)
        if not task.cancelled():
            # Already logged in _publish; retrieve it so an orphaned task stays quiet
            task.exception()

    async def drain(self):
        """Wait for post-commit work that outlived a cancelled caller."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
