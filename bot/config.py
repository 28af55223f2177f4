import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Bot configuration settings"""

    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    OWNER_DISCORD_ID = int(os.getenv('OWNER_DISCORD_ID', 0))

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///leaderboard.db')
    SEED_SAMPLE_PARTICIPANTS = os.getenv('SEED_SAMPLE_PARTICIPANTS', 'True').lower() == 'true'

    # Bot settings
    COMMAND_PREFIX = os.getenv('COMMAND_PREFIX', '!')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')

    # Claim settings
    CLAIM_MIN_POINTS = 1
    CLAIM_MAX_POINTS = 100
    CLAIM_LOCK_SHARDS = int(os.getenv('CLAIM_LOCK_SHARDS', 64))
    CLAIM_RATE_LIMIT = int(os.getenv('CLAIM_RATE_LIMIT', 5))    # claims per window per user
    CLAIM_RATE_WINDOW = int(os.getenv('CLAIM_RATE_WINDOW', 60))  # seconds

    # History settings
    HISTORY_LIMIT = 100  # read-time cap, storage is unbounded

    # Live observer settings
    OBSERVER_QUEUE_SIZE = int(os.getenv('OBSERVER_QUEUE_SIZE', 32))
    OBSERVER_SEND_TIMEOUT = float(os.getenv('OBSERVER_SEND_TIMEOUT', 10.0))

    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            # Multi-guild support: comma-separated IDs
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []

    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.OWNER_DISCORD_ID:
            raise ValueError("OWNER_DISCORD_ID is required")
        if not 1 <= cls.CLAIM_MIN_POINTS <= cls.CLAIM_MAX_POINTS:
            raise ValueError("CLAIM_MIN_POINTS must be positive and not exceed CLAIM_MAX_POINTS")
        if cls.CLAIM_LOCK_SHARDS < 1:
            raise ValueError("CLAIM_LOCK_SHARDS must be at least 1")
        if cls.OBSERVER_QUEUE_SIZE < 1:
            raise ValueError("OBSERVER_QUEUE_SIZE must be at least 1")
        if cls.OBSERVER_SEND_TIMEOUT <= 0:
            raise ValueError("OBSERVER_SEND_TIMEOUT must be positive")
