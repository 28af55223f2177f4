"""
Live leaderboard channel observer.

A channel subscribed with /leaderboard-live holds one message that is edited
in place on every ranking change. Discord errors are left to propagate: the
observer hub treats them as a delivery failure and unsubscribes the channel.
"""

import logging
from typing import Optional

import discord

from bot.data_models.leaderboard import LeaderboardEvent
from bot.utils.embeds import build_live_embed

logger = logging.getLogger(__name__)


class LiveLeaderboardMessage:
    """Observer that mirrors the ranking into a single channel message."""

    def __init__(self, channel: discord.abc.Messageable):
        self.channel = channel
        self.message: Optional[discord.Message] = None
        self.last_version = -1

    @property
    def observer_id(self) -> str:
        return f"channel:{self.channel.id}"

    async def send(self, event: LeaderboardEvent) -> None:
        version = event.snapshot.version
        if version < self.last_version:
            # Recomputes can finish out of broadcast order; never step backwards
            logger.debug(f"{self.observer_id}: skipping stale ranking v{version} (showing v{self.last_version})")
            return

        embed = build_live_embed(event)
        if self.message is None:
            self.message = await self.channel.send(embed=embed)
        else:
            try:
                await self.message.edit(embed=embed)
            except discord.NotFound:
                # Someone deleted the live message; start a fresh one
                self.message = await self.channel.send(embed=embed)
        self.last_version = version
