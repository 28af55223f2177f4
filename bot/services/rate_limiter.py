"""
Rate limiting infrastructure for Discord commands.

Simple in-memory sliding-window rate limiting using deques, used to keep a
single user from hammering /claim.
"""

import math
import time
import asyncio
from functools import wraps
from collections import defaultdict, deque
import logging

from bot.utils.leaderboard_exceptions import RateLimitError

logger = logging.getLogger(__name__)

class SimpleRateLimiter:
    """In-memory rate limiter for Discord commands.

    Timestamps older than the window are pruned whenever the same
    user and command are checked again.
    """

    def __init__(self, clock=time.monotonic):
        self._requests = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._clock = clock

    async def retry_after(self, user_id: int, command: str, limit: int, window: int) -> int:
        """
        Seconds until the user may run command again; 0 means allowed now.

        An allowed call is recorded against the window.
        """
        # Input validation: reject invalid parameters
        if limit <= 0 or window <= 0:
            return max(window, 1)

        key = f"{user_id}:{command}"
        now = self._clock()

        async with self._lock:
            requests = self._requests[key]
            while requests and requests[0] <= now - window:
                requests.popleft()

            if len(requests) < limit:
                requests.append(now)
                return 0

            return max(1, math.ceil(requests[0] + window - now))

def rate_limit(command: str, limit: int = 1, window: int = 60):
    """Decorator for rate limiting Discord commands."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, interaction, *args, **kwargs):
            rate_limiter = self.bot.rate_limiter

            # Bot owner bypasses rate limits
            from bot.config import Config
            if interaction.user.id == Config.OWNER_DISCORD_ID:
                return await func(self, interaction, *args, **kwargs)

            wait = await rate_limiter.retry_after(interaction.user.id, command, limit, window)
            if wait:
                logger.info(f"Rate limited /{command} for user {interaction.user.id} ({wait}s)")
                await interaction.response.send_message(RateLimitError(wait).user_message, ephemeral=True)
                return

            return await func(self, interaction, *args, **kwargs)
        return wrapper
    return decorator
