from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .config import ADMIN_ONLY, POST_REACTION, PUZZLE_API_URL
from .storage import SubscriptionStore


BOT_STATE_KEY = "puzzle_bot_state"


@dataclass
class BotState:
    """Runtime dependencies shared by handlers and the dispatcher job."""

    store: SubscriptionStore
    puzzle_url: str = PUZZLE_API_URL
    reaction: str = POST_REACTION
    admin_only: bool = ADMIN_ONLY


def get_state(context: Any) -> BotState:
    bot_data: Mapping[str, Any] = context.bot_data
    state = bot_data.get(BOT_STATE_KEY)
    if state is None:
        raise RuntimeError("Bot state not initialized; start the bot through app.main()")
    return state
