"""
Shared embed utilities for the live leaderboard bot.

Provides reusable embed building functions so the slash commands, the
paginated view and the live channel message all render rankings the same way.
"""

import discord
from typing import List
from bot.constants import PaginationConstants, UIConstants
from bot.data_models.leaderboard import (
    ClaimResult, HistoryRecord, LeaderboardEvent, LeaderboardPage, RankedParticipant,
    RankingSnapshot, ResetNotice
)


def rank_badge(rank: int) -> str:
    return UIConstants.RANK_MEDALS.get(rank, f"#{rank}")


def _ranking_table(entries: List[RankedParticipant]) -> str:
    lines = ["```", f"{'#':<4} {'Participant':<22} {'Points':>8}", "-" * 36]
    for entry in entries:
        lines.append(f"{entry.rank:<4} {entry.name[:22]:<22} {entry.points:>8,}")
    lines.append("```")
    return "\n".join(lines)


def build_leaderboard_embed(page_data: LeaderboardPage) -> discord.Embed:
    """Build a paginated leaderboard embed."""
    embed = discord.Embed(
        title=f"{UIConstants.TROPHY_EMOJI} Leaderboard",
        color=UIConstants.GOLD_RANK_COLOR
    )

    if not page_data.entries:
        embed.description = "No participants yet. Use `/participant-add` to add one!"
        return embed

    embed.description = _ranking_table(page_data.entries)
    embed.set_footer(
        text=f"Page {page_data.current_page}/{page_data.total_pages} | "
             f"Total Participants: {page_data.total_participants}"
    )
    return embed


def build_live_embed(event: LeaderboardEvent) -> discord.Embed:
    """
    Build the embed kept up to date in a live leaderboard channel.

    Shows the top of the ranking and, for claim-triggered updates, who
    claimed and how much.
    """
    snapshot: RankingSnapshot = event.snapshot
    is_reset = isinstance(event, ResetNotice)

    embed = discord.Embed(
        title=f"{UIConstants.TROPHY_EMOJI} Live Leaderboard",
        color=UIConstants.RESET_COLOR if is_reset else UIConstants.GOLD_RANK_COLOR,
        timestamp=snapshot.generated_at
    )

    top = snapshot.entries[:PaginationConstants.LIVE_LEADERBOARD_ROWS]
    embed.description = _ranking_table(top) if top else "No participants yet."

    if is_reset:
        embed.add_field(
            name=f"{UIConstants.RESET_EMOJI} Reset",
            value="All points and history were cleared.",
            inline=False
        )
    elif getattr(event, "claimed_by", None):
        claim = event.claimed_by
        entry = snapshot.entry_for(claim.participant_id)
        position = f" and is now {rank_badge(entry.rank)}" if entry else ""
        embed.add_field(
            name=f"{UIConstants.GIFT_EMOJI} Latest Claim",
            value=f"**{claim.name}** claimed **+{claim.points_gained}** "
                  f"({claim.new_total:,} total){position}",
            inline=False
        )

    embed.set_footer(text=f"{snapshot.total_participants} participants | ranking v{snapshot.version}")
    return embed


def build_claim_embed(result: ClaimResult, entry: RankedParticipant = None) -> discord.Embed:
    """Embed confirming a claim to the user who made it."""
    embed = discord.Embed(
        title=f"{UIConstants.GIFT_EMOJI} Points Claimed!",
        description=f"**{result.name}** claimed **{result.points_gained}** points!",
        color=UIConstants.SUCCESS_COLOR
    )
    embed.add_field(name="Total Points", value=f"{result.new_total:,}", inline=True)
    if entry:
        embed.add_field(name="Rank", value=rank_badge(entry.rank), inline=True)
    return embed


def build_participant_embed(entry: RankedParticipant, total_participants: int) -> discord.Embed:
    color = UIConstants.GOLD_RANK_COLOR if entry.rank == 1 else UIConstants.DEFAULT_EMBED_COLOR
    embed = discord.Embed(title=f"{rank_badge(entry.rank)} {entry.name}", color=color)
    embed.add_field(name="Points", value=f"{entry.points:,}", inline=True)
    embed.add_field(name="Rank", value=f"#{entry.rank} / {total_participants}", inline=True)
    return embed


def build_history_embed(records: List[HistoryRecord]) -> discord.Embed:
    """Recent claims, newest first."""
    embed = discord.Embed(
        title="📝 Claim History",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )
    if not records:
        embed.description = "No points have been claimed yet."
        return embed

    lines = []
    for record in records:
        when = discord.utils.format_dt(record.timestamp, style="R") if record.timestamp else ""
        lines.append(
            f"**{record.participant_name}** +{record.points_gained} → {record.total_points_after:,} {when}"
        )
    # Embed descriptions are capped at 4096 characters
    description = ""
    for line in lines:
        if len(description) + len(line) + 1 > 4000:
            break
        description += line + "\n"
    embed.description = description
    embed.set_footer(text=f"Showing {len(records)} most recent claims")
    return embed
