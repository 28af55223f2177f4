"""
Services package for the live leaderboard bot.
"""

from .base import BaseService
from .claim_coordinator import ClaimCoordinator, RandomPointsSource
from .leaderboard import LeaderboardService
from .observer_hub import Observer, ObserverHub
from .ranking_engine import RankingEngine
from .rate_limiter import SimpleRateLimiter

__all__ = [
    'BaseService',
    'ClaimCoordinator',
    'LeaderboardService',
    'Observer',
    'ObserverHub',
    'RandomPointsSource',
    'RankingEngine',
    'SimpleRateLimiter',
]
