import os
import logging

from dotenv import load_dotenv


# Load env early
load_dotenv()

# Logging configuration
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, log_level, logging.INFO),
)
logger = logging.getLogger("chesspuzzlebot")

# Reduce noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.ExtBot").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.Updater").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.Application").setLevel(logging.WARNING)
logging.getLogger("telegram.bot").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "t", "yes")


class Config:
    """Application configuration read from the environment."""

    # Telegram Bot Configuration
    BOT_TOKEN: str | None = os.getenv("BOT_TOKEN")
    # Only group admins may (un)subscribe a group
    ADMIN_ONLY: bool = _env_flag("ADMIN_ONLY", "true")
    # Reaction added to each delivered post; empty disables it
    POST_REACTION: str = os.getenv("POST_REACTION", "👌").strip()

    # Puzzle API Configuration
    PUZZLE_API_URL: str = os.getenv("PUZZLE_API_URL", "https://api.chess.com/pub/puzzle").strip()
    HTTP_TIMEOUT_SECS: float = float(os.getenv("HTTP_TIMEOUT_SECS", "25"))

    # Dispatcher polling
    POLL_SECS: int = int(os.getenv("POLL_SECS", "1800"))  # 30 minutes between ticks
    FIRST_POLL_SECS: int = int(os.getenv("FIRST_POLL_SECS", "10"))

    # Persistence
    SUBSCRIPTIONS_FILE: str = os.getenv("SUBSCRIPTIONS_FILE", "subscriptions.json").strip()

    @classmethod
    def validate_config(cls) -> None:
        if not cls.BOT_TOKEN:
            raise ValueError("BOT_TOKEN environment variable is required")
        if cls.POLL_SECS <= 0:
            raise ValueError("POLL_SECS must be a positive number of seconds")
        if not cls.SUBSCRIPTIONS_FILE:
            raise ValueError("SUBSCRIPTIONS_FILE must not be empty")

    @classmethod
    def get_puzzle_url(cls) -> str:
        logger.info(f"Using puzzle endpoint: {cls.PUZZLE_API_URL}")
        return cls.PUZZLE_API_URL


config = Config()
BOT_TOKEN = config.BOT_TOKEN
ADMIN_ONLY = config.ADMIN_ONLY
POST_REACTION = config.POST_REACTION
PUZZLE_API_URL = config.PUZZLE_API_URL
HTTP_TIMEOUT_SECS = config.HTTP_TIMEOUT_SECS
POLL_SECS = config.POLL_SECS
FIRST_POLL_SECS = config.FIRST_POLL_SECS
SUBSCRIPTIONS_FILE = config.SUBSCRIPTIONS_FILE
