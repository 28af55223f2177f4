"""
Custom exceptions for the leaderboard with user-friendly error messages.
"""

class LeaderboardException(Exception):
    """Base exception for leaderboard-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class ParticipantNotFoundError(LeaderboardException):
    """Raised when a participant id or name does not resolve."""
    def __init__(self, participant_ref):
        self.participant_ref = participant_ref
        super().__init__(
            f"Participant '{participant_ref}' not found",
            f"❌ Participant '{participant_ref}' is not on the leaderboard!"
        )

class DuplicateNameError(LeaderboardException):
    """Raised when registering a name that already exists."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Participant name '{name}' already exists",
            f"❌ A participant named '{name}' already exists!"
        )

class InvalidNameError(LeaderboardException):
    """Raised when a participant name fails validation."""
    def __init__(self, reason: str):
        super().__init__(
            f"Invalid participant name: {reason}",
            f"❌ {reason}"
        )

class StoreFailure(LeaderboardException):
    """Raised when storage is unavailable or rejects a write."""
    def __init__(self, operation: str, details: str = None):
        self.operation = operation
        super().__init__(
            f"Database error during {operation}: {details}",
            "❌ Database error occurred. Please try again later."
        )

class RankingRefreshError(StoreFailure):
    """Raised when a claim committed but the ranking could not be recomputed."""
    def __init__(self, claim_result, details: str = None):
        self.claim_result = claim_result
        super().__init__("ranking recompute", details)
        self.user_message = (
            f"⚠️ {claim_result.name} received {claim_result.points_gained} points, "
            "but the leaderboard could not be refreshed. It will catch up on the next claim."
        )

class DeliveryFailure(LeaderboardException):
    """Raised inside the observer hub when an observer cannot take an event."""
    def __init__(self, observer_id: str, reason: str):
        self.observer_id = observer_id
        super().__init__(f"Delivery to observer {observer_id} failed: {reason}")

class RateLimitError(LeaderboardException):
    """Raised when rate limit is exceeded."""
    def __init__(self, cooldown_remaining: int):
        super().__init__(
            f"Rate limit exceeded, {cooldown_remaining}s remaining",
            f"❌ Please wait {cooldown_remaining} seconds before claiming again."
        )
