"""
Base service class for the live leaderboard bot.

Gives every service the shared Database plus the participant store and
history log built on top of it.
"""

from bot.operations.history_operations import HistoryLog
from bot.operations.participant_operations import ParticipantStore


class BaseService:
    """Base class for all services with shared storage collaborators."""

    def __init__(self, database, participant_store: ParticipantStore = None, history_log: HistoryLog = None):
        """
        Initialize base service.

        Args:
            database: Database instance providing sessions and transactions
            participant_store: Optional store, built from database if omitted
            history_log: Optional history log, built from database if omitted
        """
        self.db = database
        self.participants = participant_store or ParticipantStore(database)
        self.history = history_log or HistoryLog(database)
