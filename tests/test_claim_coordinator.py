"""
Claim coordinator tests.

Covers the claim unit end to end: the committed point update and history
entry, failure atomicity, cancellation on either side of the commit, and
concurrent claims against one participant.
"""

import asyncio
import random

import pytest
from sqlalchemy.exc import OperationalError

from bot.data_models.leaderboard import RankingUpdate
from bot.services.claim_coordinator import RandomPointsSource, ShardedLock
from bot.utils.leaderboard_exceptions import (
    ParticipantNotFoundError, RankingRefreshError, StoreFailure
)

from conftest import wait_for


def claim_updates(observer):
    return [e for e in observer.events if isinstance(e, RankingUpdate) and e.claimed_by is not None]


async def test_claim_updates_points_and_history(service, points):
    entry = await service.register_participant("Rahul")
    points.queue(42)

    result = await service.claim(entry.participant_id)

    assert result.participant_id == entry.participant_id
    assert result.name == "Rahul"
    assert result.points_gained == 42
    assert result.new_total == 42

    stored = await service.participants.get_by_id(entry.participant_id)
    assert stored.points == 42

    history = await service.get_recent_history()
    assert len(history) == 1
    assert history[0].participant_id == entry.participant_id
    assert history[0].participant_name == "Rahul"
    assert history[0].points_gained == 42
    assert history[0].total_points_after == 42
    assert history[0].timestamp.tzinfo is not None


async def test_successive_claims_accumulate(service, points):
    entry = await service.register_participant("Kamal")
    points.queue(5, 7, 100)

    totals = [(await service.claim(entry.participant_id)).new_total for _ in range(3)]

    assert totals == [5, 12, 112]
    history = await service.get_recent_history()
    assert [record.total_points_after for record in history] == [112, 12, 5]


async def test_unknown_participant_changes_nothing(service, observer):
    await service.register_participant("Sanak")
    await wait_for(lambda: len(observer.events) == 2)

    with pytest.raises(ParticipantNotFoundError):
        await service.claim(9999)

    assert await service.get_recent_history() == []
    await asyncio.sleep(0.05)
    assert claim_updates(observer) == []


async def test_concurrent_claims_do_not_lose_updates(service, points):
    entry = await service.register_participant("Priya")
    deltas = [3, 17, 29, 41, 53, 61, 77, 88, 99, 1]
    points.queue(*deltas)

    results = await asyncio.gather(*(service.claim(entry.participant_id) for _ in deltas))

    stored = await service.participants.get_by_id(entry.participant_id)
    assert stored.points == sum(deltas)
    # Every claim saw the total left by the one before it
    previous = 0
    for result in sorted(results, key=lambda r: r.new_total):
        assert result.new_total == previous + result.points_gained
        previous = result.new_total
    history = await service.get_recent_history()
    assert len(history) == len(deltas)
    assert max(record.total_points_after for record in history) == sum(deltas)


async def test_concurrent_claims_on_different_participants(service, points):
    first = await service.register_participant("Amit")
    second = await service.register_participant("Sneha")
    points.queue(10, 20, 30, 40)

    await asyncio.gather(
        service.claim(first.participant_id),
        service.claim(second.participant_id),
        service.claim(first.participant_id),
        service.claim(second.participant_id),
    )

    snapshot = await service.get_rankings()
    assert sum(entry.points for entry in snapshot.entries) == 100
    assert len(await service.get_recent_history()) == 4


async def test_failed_point_update_leaves_no_trace(service, observer, monkeypatch):
    entry = await service.register_participant("Rohit")
    await wait_for(lambda: len(observer.events) == 2)

    async def broken_update(*args, **kwargs):
        raise StoreFailure("update points", "disk full")

    monkeypatch.setattr(service.participants, "update_points", broken_update)

    with pytest.raises(StoreFailure):
        await service.claim(entry.participant_id)

    stored = await service.participants.get_by_id(entry.participant_id)
    assert stored.points == 0
    assert await service.get_recent_history() == []
    await asyncio.sleep(0.05)
    assert claim_updates(observer) == []


async def test_failed_history_append_rolls_back_points(service, observer, monkeypatch):
    entry = await service.register_participant("Kavya")
    await wait_for(lambda: len(observer.events) == 2)

    async def broken_append(*args, **kwargs):
        raise OperationalError("INSERT INTO claim_history", {}, Exception("disk I/O error"))

    monkeypatch.setattr(service.history, "append", broken_append)

    with pytest.raises(StoreFailure):
        await service.claim(entry.participant_id)

    stored = await service.participants.get_by_id(entry.participant_id)
    assert stored.points == 0
    await asyncio.sleep(0.05)
    assert claim_updates(observer) == []


async def test_recompute_failure_keeps_committed_claim(service, points, observer, monkeypatch):
    entry = await service.register_participant("Arjun")
    await wait_for(lambda: len(observer.events) == 2)
    points.queue(25)

    async def broken_recompute():
        raise StoreFailure("ranking recompute", "database is locked")

    monkeypatch.setattr(service.ranking_engine, "recompute", broken_recompute)

    with pytest.raises(RankingRefreshError) as excinfo:
        await service.claim(entry.participant_id)

    assert excinfo.value.claim_result.points_gained == 25
    assert excinfo.value.claim_result.new_total == 25
    assert "25" in excinfo.value.user_message
    stored = await service.participants.get_by_id(entry.participant_id)
    assert stored.points == 25
    assert len(await service.get_recent_history()) == 1
    await asyncio.sleep(0.05)
    assert claim_updates(observer) == []


async def test_cancel_before_commit_has_no_effect(service, observer):
    entry = await service.register_participant("Meera")
    await wait_for(lambda: len(observer.events) == 2)

    lock = service.claims._locks.for_key(entry.participant_id)
    await lock.acquire()
    try:
        task = asyncio.create_task(service.claim(entry.participant_id))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
    finally:
        lock.release()

    await service.claims.drain()
    stored = await service.participants.get_by_id(entry.participant_id)
    assert stored.points == 0
    assert await service.get_recent_history() == []
    assert claim_updates(observer) == []


async def test_cancel_after_commit_still_broadcasts(service, points, observer, monkeypatch):
    entry = await service.register_participant("Rahul")
    await wait_for(lambda: len(observer.events) == 2)
    points.queue(33)

    recompute = service.ranking_engine.recompute
    entered = asyncio.Event()
    gate = asyncio.Event()

    async def gated_recompute():
        entered.set()
        await gate.wait()
        return await recompute()

    monkeypatch.setattr(service.ranking_engine, "recompute", gated_recompute)

    task = asyncio.create_task(service.claim(entry.participant_id))
    await asyncio.wait_for(entered.wait(), timeout=2)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    gate.set()
    await service.claims.drain()

    stored = await service.participants.get_by_id(entry.participant_id)
    assert stored.points == 33
    await wait_for(lambda: len(claim_updates(observer)) == 1)
    update = claim_updates(observer)[0]
    assert update.claimed_by.new_total == 33
    assert update.snapshot.entry_for(entry.participant_id).points == 33


def test_random_points_stay_in_range():
    source = RandomPointsSource(rng=random.Random(1234))

    draws = [source.draw() for _ in range(2000)]

    assert min(draws) >= 1
    assert max(draws) <= 100
    assert len(set(draws)) > 50


@pytest.mark.parametrize("minimum,maximum", [(0, 100), (10, 5), (-3, 2)])
def test_random_points_rejects_invalid_range(minimum, maximum):
    with pytest.raises(ValueError):
        RandomPointsSource(minimum, maximum)


async def test_sharded_lock_is_stable_per_key():
    locks = ShardedLock(8)

    assert locks.for_key(42) is locks.for_key(42)
    assert locks.for_key(1) is not locks.for_key(2)

    with pytest.raises(ValueError):
        ShardedLock(0)
