"""
Live channel observer and embed rendering tests. Discord objects are mocked.
"""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from bot.constants import UIConstants
from bot.data_models.leaderboard import (
    ClaimResult, LeaderboardPage, RankedParticipant, RankingSnapshot, RankingUpdate, ResetNotice
)
from bot.utils.embeds import (
    build_claim_embed, build_history_embed, build_leaderboard_embed, build_live_embed, rank_badge
)
from bot.views.live_leaderboard import LiveLeaderboardMessage


def make_snapshot(version: int, points=(60, 50)) -> RankingSnapshot:
    names = ["Bob", "Alice", "Carol", "Dave"]
    entries = tuple(
        RankedParticipant(participant_id=i + 1, name=names[i], points=p, rank=i + 1)
        for i, p in enumerate(points)
    )
    return RankingSnapshot(entries=entries, version=version)


@pytest.fixture
def channel():
    channel = MagicMock()
    channel.id = 1234
    message = MagicMock()
    message.edit = AsyncMock()
    channel.send = AsyncMock(return_value=message)
    return channel


class TestLiveLeaderboardMessage:
    async def test_first_event_posts_message(self, channel):
        live = LiveLeaderboardMessage(channel)

        await live.send(RankingUpdate(snapshot=make_snapshot(1)))

        assert live.observer_id == "channel:1234"
        channel.send.assert_awaited_once()
        assert live.message is channel.send.return_value
        assert live.last_version == 1

    async def test_later_events_edit_in_place(self, channel):
        live = LiveLeaderboardMessage(channel)
        await live.send(RankingUpdate(snapshot=make_snapshot(1)))

        await live.send(RankingUpdate(snapshot=make_snapshot(2)))

        channel.send.assert_awaited_once()
        live.message.edit.assert_awaited_once()
        assert live.last_version == 2

    async def test_stale_snapshot_is_skipped(self, channel):
        live = LiveLeaderboardMessage(channel)
        await live.send(RankingUpdate(snapshot=make_snapshot(5)))

        await live.send(RankingUpdate(snapshot=make_snapshot(4)))

        live.message.edit.assert_not_awaited()
        assert live.last_version == 5

    async def test_deleted_message_is_reposted(self, channel):
        live = LiveLeaderboardMessage(channel)
        await live.send(RankingUpdate(snapshot=make_snapshot(1)))
        live.message.edit.side_effect = discord.NotFound(
            MagicMock(status=404, reason="Not Found"), "Unknown Message"
        )

        await live.send(RankingUpdate(snapshot=make_snapshot(2)))

        assert channel.send.await_count == 2
        assert live.last_version == 2

    async def test_channel_errors_propagate(self, channel):
        channel.send.side_effect = discord.Forbidden(
            MagicMock(status=403, reason="Forbidden"), "Missing Access"
        )
        live = LiveLeaderboardMessage(channel)

        with pytest.raises(discord.Forbidden):
            await live.send(RankingUpdate(snapshot=make_snapshot(1)))
        assert live.last_version == -1


class TestEmbeds:
    def test_live_embed_shows_latest_claim(self):
        claim = ClaimResult(participant_id=1, name="Bob", points_gained=10, new_total=60)

        embed = build_live_embed(RankingUpdate(snapshot=make_snapshot(3), claimed_by=claim))

        assert "Bob" in embed.description
        assert embed.fields[0].name.endswith("Latest Claim")
        assert "+10" in embed.fields[0].value
        assert rank_badge(1) in embed.fields[0].value
        assert embed.footer.text.endswith("ranking v3")

    def test_live_embed_for_reset(self):
        embed = build_live_embed(ResetNotice(snapshot=make_snapshot(4, points=(0, 0))))

        assert embed.color.value == UIConstants.RESET_COLOR
        assert embed.fields[0].name.endswith("Reset")

    def test_live_embed_without_claim_has_no_fields(self):
        embed = build_live_embed(RankingUpdate(snapshot=make_snapshot(1)))

        assert embed.fields == []

    def test_leaderboard_embed_pages(self):
        snapshot = make_snapshot(1, points=(40, 30, 20, 10))

        embed = build_leaderboard_embed(snapshot.page(2, 3))

        assert "Dave" in embed.description
        assert "Bob" not in embed.description
        assert embed.footer.text == "Page 2/2 | Total Participants: 4"

    def test_empty_leaderboard_embed(self):
        page = LeaderboardPage(entries=[], current_page=1, total_pages=1, total_participants=0)

        embed = build_leaderboard_embed(page)

        assert "No participants yet" in embed.description

    def test_claim_embed_includes_rank(self):
        result = ClaimResult(participant_id=2, name="Alice", points_gained=7, new_total=57)
        entry = RankedParticipant(participant_id=2, name="Alice", points=57, rank=4)

        embed = build_claim_embed(result, entry)

        assert [field.name for field in embed.fields] == ["Total Points", "Rank"]
        assert embed.fields[1].value == "#4"

    def test_empty_history_embed(self):
        embed = build_history_embed([])

        assert embed.description == "No points have been claimed yet."
