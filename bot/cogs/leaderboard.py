import discord
from discord import app_commands
from discord.ext import commands
from typing import Dict, List, Optional
from bot.config import Config
from bot.constants import PaginationConstants, UIConstants
from bot.services.rate_limiter import rate_limit
from bot.utils.embeds import (
    build_claim_embed, build_history_embed, build_leaderboard_embed, build_participant_embed
)
from bot.utils.error_embeds import ErrorEmbeds
from bot.utils.leaderboard_exceptions import LeaderboardException
from bot.views.leaderboard import LeaderboardView
from bot.views.live_leaderboard import LiveLeaderboardMessage
import logging

logger = logging.getLogger(__name__)

class LeaderboardCog(commands.Cog):
    """Live leaderboard: rankings, claims, history and live channels"""

    def __init__(self, bot):
        self.bot = bot
        self.leaderboard_service = bot.leaderboard_service
        self.live_channels: Dict[int, LiveLeaderboardMessage] = {}

    async def cog_unload(self):
        for observer in self.live_channels.values():
            self.leaderboard_service.unsubscribe(observer)
        self.live_channels.clear()

    async def _send_error(self, interaction: discord.Interaction, embed: discord.Embed):
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="leaderboard", description="View the current leaderboard")
    @rate_limit("leaderboard", limit=5, window=60)
    async def leaderboard(self, interaction: discord.Interaction):
        """Display the first page of the leaderboard."""
        await interaction.response.defer()

        try:
            snapshot = await self.leaderboard_service.get_rankings()
            page_data = snapshot.page(1, PaginationConstants.DEFAULT_PAGE_SIZE)
            view = LeaderboardView(
                leaderboard_service=self.leaderboard_service,
                current_page=page_data.current_page,
                total_pages=page_data.total_pages
            )
            await interaction.followup.send(embed=build_leaderboard_embed(page_data), view=view)
        except LeaderboardException as e:
            await self._send_error(interaction, ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in leaderboard command: {e}", exc_info=True)
            await self._send_error(interaction, ErrorEmbeds.command_error("An error occurred while fetching the leaderboard. Please try again later."))

    @app_commands.command(name="claim", description="Claim 1-100 random points for a participant")
    @app_commands.describe(participant="Participant to award points to")
    @rate_limit("claim", limit=Config.CLAIM_RATE_LIMIT, window=Config.CLAIM_RATE_WINDOW)
    async def claim(self, interaction: discord.Interaction, participant: str):
        """Award random points and push the new ranking to live channels."""
        await interaction.response.defer()

        try:
            target = await self.leaderboard_service.find_participant(participant)
            result = await self.leaderboard_service.claim(target.participant_id)
            snapshot = await self.leaderboard_service.get_rankings()
            await interaction.followup.send(
                embed=build_claim_embed(result, snapshot.entry_for(result.participant_id))
            )
        except LeaderboardException as e:
            await self._send_error(interaction, ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in claim command: {e}", exc_info=True)
            await self._send_error(interaction, ErrorEmbeds.command_error("Failed to claim points. Please try again."))

    @app_commands.command(name="participant-add", description="Add a participant to the leaderboard")
    @app_commands.describe(name="Unique participant name")
    async def participant_add(self, interaction: discord.Interaction, name: str):
        await interaction.response.defer()

        try:
            entry = await self.leaderboard_service.register_participant(name)
            embed = discord.Embed(
                title="✅ Participant Added",
                description=f"**{entry.name}** joined the leaderboard at rank #{entry.rank}.",
                color=UIConstants.SUCCESS_COLOR
            )
            await interaction.followup.send(embed=embed)
        except LeaderboardException as e:
            await self._send_error(interaction, ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error adding participant '{name}': {e}", exc_info=True)
            await self._send_error(interaction, ErrorEmbeds.command_error("Failed to add participant."))

    @app_commands.command(name="participant", description="Show a participant's points and rank")
    @app_commands.describe(participant="Participant to look up")
    async def participant_info(self, interaction: discord.Interaction, participant: str):
        await interaction.response.defer()

        try:
            entry = await self.leaderboard_service.find_participant(participant)
            snapshot = await self.leaderboard_service.get_rankings()
            await interaction.followup.send(embed=build_participant_embed(entry, snapshot.total_participants))
        except LeaderboardException as e:
            await self._send_error(interaction, ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error looking up participant '{participant}': {e}", exc_info=True)
            await self._send_error(interaction, ErrorEmbeds.command_error("Failed to look up participant."))

    @app_commands.command(name="claim-history", description="Show the most recent point claims")
    @app_commands.describe(limit="Number of claims to show (max 100)")
    async def claim_history(
        self,
        interaction: discord.Interaction,
        limit: Optional[app_commands.Range[int, 1, 100]] = None
    ):
        await interaction.response.defer()

        try:
            records = await self.leaderboard_service.get_recent_history(
                limit or PaginationConstants.DEFAULT_HISTORY_DISPLAY
            )
            await interaction.followup.send(embed=build_history_embed(records))
        except LeaderboardException as e:
            await self._send_error(interaction, ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in claim-history command: {e}", exc_info=True)
            await self._send_error(interaction, ErrorEmbeds.command_error("Failed to fetch claim history."))

    @app_commands.command(name="leaderboard-live", description="Keep a live-updating leaderboard in this channel")
    @app_commands.default_permissions(manage_channels=True)
    async def leaderboard_live(self, interaction: discord.Interaction):
        channel = interaction.channel
        existing = self.live_channels.get(channel.id)
        if existing and self.leaderboard_service.observer_hub.is_registered(existing.observer_id):
            await interaction.response.send_message("This channel already has a live leaderboard.", ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True)
        observer = LiveLeaderboardMessage(channel)
        try:
            await self.leaderboard_service.subscribe(observer)
        except LeaderboardException as e:
            await self._send_error(interaction, ErrorEmbeds.from_exception(e))
            return
        self.live_channels[channel.id] = observer
        logger.info(f"Live leaderboard enabled in channel {channel.id} by {interaction.user}")
        await interaction.followup.send("📡 Live leaderboard enabled for this channel.", ephemeral=True)

    @app_commands.command(name="leaderboard-stop", description="Stop the live leaderboard in this channel")
    @app_commands.default_permissions(manage_channels=True)
    async def leaderboard_stop(self, interaction: discord.Interaction):
        observer = self.live_channels.pop(interaction.channel.id, None)
        if observer is None:
            await interaction.response.send_message("This channel has no live leaderboard.", ephemeral=True)
            return
        self.leaderboard_service.unsubscribe(observer)
        await interaction.response.send_message("🔌 Live leaderboard stopped.", ephemeral=True)

    @app_commands.command(name="admin-reset-leaderboard", description="Reset all points and delete claim history")
    @app_commands.check(lambda interaction: interaction.user.id == Config.OWNER_DISCORD_ID)
    async def admin_reset_leaderboard(self, interaction: discord.Interaction):
        await interaction.response.defer()

        try:
            snapshot = await self.leaderboard_service.reset()
            logger.info(f"Leaderboard reset by {interaction.user} ({interaction.user.id})")
            embed = discord.Embed(
                title=f"{UIConstants.RESET_EMOJI} Leaderboard Reset",
                description=f"All points and history were cleared for {snapshot.total_participants} participants.",
                color=UIConstants.RESET_COLOR
            )
            await interaction.followup.send(embed=embed)
        except LeaderboardException as e:
            await self._send_error(interaction, ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error resetting leaderboard: {e}", exc_info=True)
            await self._send_error(interaction, ErrorEmbeds.command_error("Failed to reset the leaderboard."))

    @claim.autocomplete('participant')
    @participant_info.autocomplete('participant')
    async def participant_autocomplete(
        self,
        interaction: discord.Interaction,
        current: str,
    ) -> List[app_commands.Choice[str]]:
        """Provide participant name suggestions."""
        try:
            matches = await self.leaderboard_service.search_participants(
                current, PaginationConstants.MAX_AUTOCOMPLETE_CHOICES
            )
            return [
                app_commands.Choice(name=f"{entry.name} ({entry.points:,} pts)", value=entry.name)
                for entry in matches
            ]
        except Exception as e:
            logger.error(f"Error in participant autocomplete: {e}")
            return []

async def setup(bot):
    await bot.add_cog(LeaderboardCog(bot))
