"""Chess Puzzle Bot package.

Posts the chess.com daily puzzle to subscribed Telegram chats:
- config: environment and logging
- errors: exception hierarchy
- http: session and request helpers
- puzzle: daily puzzle model and fetcher
- storage: persisted chat subscriptions
- formatting: message building utilities
- dispatcher: periodic fan-out of the puzzle
- auth: access control helpers
- commands: telegram command handlers
- app: application bootstrap and wiring
"""

from .config import Config, BOT_TOKEN, PUZZLE_API_URL, POLL_SECS, SUBSCRIPTIONS_FILE
from .errors import PuzzleBotError, FetchError, StoreError, DeliveryError
from .http import make_session, fetch_json, build_headers
from .puzzle import Puzzle, parse_puzzle, fetch_current_puzzle
from .storage import SubscriptionStore
from .formatting import fmt_puzzle_date, fmt_puzzle_post, fmt_help
from .state import BotState, get_state
from .dispatcher import (
    DispatchResult,
    deliver_puzzle,
    deliver_current_puzzle,
    run_dispatch,
    dispatch_job,
)
from .auth import is_group_admin, is_authorized_admin, guard_admin
from .commands import start_cmd, subscribe_cmd, unsubscribe_cmd, puzzle_cmd
from .app import main, build_application, startup_health_check

__all__ = [
    # Config / errors / HTTP
    "Config", "BOT_TOKEN", "PUZZLE_API_URL", "POLL_SECS", "SUBSCRIPTIONS_FILE",
    "PuzzleBotError", "FetchError", "StoreError", "DeliveryError",
    "make_session", "fetch_json", "build_headers",
    # Puzzle / storage / formatting
    "Puzzle", "parse_puzzle", "fetch_current_puzzle",
    "SubscriptionStore",
    "fmt_puzzle_date", "fmt_puzzle_post", "fmt_help",
    # Dispatcher
    "BotState", "get_state",
    "DispatchResult", "deliver_puzzle", "deliver_current_puzzle", "run_dispatch", "dispatch_job",
    # Auth / Commands / App
    "is_group_admin", "is_authorized_admin", "guard_admin",
    "start_cmd", "subscribe_cmd", "unsubscribe_cmd", "puzzle_cmd",
    "main", "build_application", "startup_health_check",
]
