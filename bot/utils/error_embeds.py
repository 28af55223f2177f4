"""
Centralized error embeds for consistent error handling across the leaderboard bot.

Provides standardized error messages and formatting to maintain consistency
and improve user experience when errors occur.
"""

import discord
from bot.constants import UIConstants
from bot.utils.leaderboard_exceptions import LeaderboardException, RankingRefreshError, StoreFailure


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def from_exception(error: LeaderboardException) -> discord.Embed:
        """Create embed from a leaderboard exception's user-facing message."""
        if isinstance(error, RankingRefreshError):
            title = "Leaderboard Refresh Failed"
            color = discord.Color.orange()
        elif isinstance(error, StoreFailure):
            title = "Database Error"
            color = discord.Color.red()
        else:
            title = "Request Failed"
            color = discord.Color.red()
        return discord.Embed(title=title, description=error.user_message, color=color)

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        """Create embed for general command errors."""
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=UIConstants.ERROR_COLOR
        )

    @staticmethod
    def permission_denied(title: str = "Permission Denied", description: str = None) -> discord.Embed:
        """Create embed for permission errors."""
        return discord.Embed(
            title=f"❌ {title}",
            description=description or "You don't have permission to perform this action.",
            color=discord.Color.red()
        )
