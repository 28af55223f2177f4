"""
Bot-wide constants for the Live Leaderboard Discord Bot.

This module contains all magic numbers and configuration values used throughout
the codebase to improve maintainability and clarity.
"""

class LeaderboardConstants:
    """Constants related to participants and claims."""

    # Maximum stored length of a participant name
    MAX_NAME_LENGTH = 100

    # Participants created on first start when the store is empty
    SAMPLE_PARTICIPANTS = (
        "Rahul", "Kamal", "Sanak", "Priya", "Amit",
        "Sneha", "Rohit", "Kavya", "Arjun", "Meera",
    )

class PaginationConstants:
    """Constants for paginated displays."""

    # Default page size for leaderboards
    DEFAULT_PAGE_SIZE = 10

    # Rows shown in the live channel leaderboard
    LIVE_LEADERBOARD_ROWS = 15

    # Default number of history entries shown by /claim-history
    DEFAULT_HISTORY_DISPLAY = 10

    # Discord autocomplete choice limit
    MAX_AUTOCOMPLETE_CHOICES = 25

class UIConstants:
    """Constants for Discord UI elements."""

    # Embed colors
    DEFAULT_EMBED_COLOR = 0x3498db  # Blue
    GOLD_RANK_COLOR = 0xffd700     # Gold for the #1 participant
    ERROR_COLOR = 0xe74c3c         # Red for errors
    SUCCESS_COLOR = 0x2ecc71       # Green for success
    RESET_COLOR = 0xe67e22         # Orange for reset notices

    # Emoji for UI elements
    TROPHY_EMOJI = "🏆"
    GIFT_EMOJI = "🎁"
    RESET_EMOJI = "🔄"
    RANK_MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}
