"""
Leaderboard view components.

Provides the paginated leaderboard view used by /leaderboard.
"""

import discord
from discord.ui import View, Button
from bot.constants import PaginationConstants
from bot.utils.embeds import build_leaderboard_embed


class LeaderboardView(View):
    """Paginated leaderboard view. Each page turn reads the current ranking."""

    def __init__(
        self,
        leaderboard_service,
        current_page: int,
        total_pages: int,
        *,
        page_size: int = PaginationConstants.DEFAULT_PAGE_SIZE,
        timeout: int = 900
    ):
        super().__init__(timeout=timeout)
        self.leaderboard_service = leaderboard_service
        self.current_page = current_page
        self.total_pages = total_pages
        self.page_size = page_size

        self._update_buttons()

    def _update_buttons(self):
        """Update button states based on current page."""
        self.clear_items()

        prev_button = Button(
            label="Previous",
            style=discord.ButtonStyle.primary,
            disabled=self.current_page <= 1,
            custom_id="leaderboard:prev"
        )
        prev_button.callback = self.previous_page
        self.add_item(prev_button)

        page_indicator = Button(
            label=f"Page {self.current_page}/{self.total_pages}",
            style=discord.ButtonStyle.secondary,
            disabled=True
        )
        self.add_item(page_indicator)

        next_button = Button(
            label="Next",
            style=discord.ButtonStyle.primary,
            disabled=self.current_page >= self.total_pages,
            custom_id="leaderboard:next"
        )
        next_button.callback = self.next_page
        self.add_item(next_button)

        refresh_button = Button(
            label="Refresh",
            style=discord.ButtonStyle.secondary,
            custom_id="leaderboard:refresh"
        )
        refresh_button.callback = self.refresh
        self.add_item(refresh_button)

    async def previous_page(self, interaction: discord.Interaction):
        """Navigate to previous page."""
        await interaction.response.defer()
        if self.current_page > 1:
            self.current_page -= 1
            await self._update_leaderboard(interaction)

    async def next_page(self, interaction: discord.Interaction):
        """Navigate to next page."""
        await interaction.response.defer()
        if self.current_page < self.total_pages:
            self.current_page += 1
            await self._update_leaderboard(interaction)

    async def refresh(self, interaction: discord.Interaction):
        await interaction.response.defer()
        await self._update_leaderboard(interaction)

    async def _update_leaderboard(self, interaction: discord.Interaction):
        """Fetch and display updated leaderboard page."""
        try:
            snapshot = await self.leaderboard_service.get_rankings()
            page_data = snapshot.page(self.current_page, self.page_size)

            # Participants may have been added since the last render
            self.current_page = page_data.current_page
            self.total_pages = page_data.total_pages

            self._update_buttons()
            await interaction.followup.edit_message(
                message_id=interaction.message.id,
                embed=build_leaderboard_embed(page_data),
                view=self
            )
        except Exception as e:
            await interaction.followup.send(f"Error updating leaderboard: {e}", ephemeral=True)
