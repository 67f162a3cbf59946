from __future__ import annotations

from telegram import BotCommand
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes
from telegram.request import HTTPXRequest

from .config import Config, FIRST_POLL_SECS, POLL_SECS, SUBSCRIPTIONS_FILE, logger
from .commands import (
    start_cmd,
    subscribe_cmd,
    unsubscribe_cmd,
    puzzle_cmd,
)
from .dispatcher import dispatch_job
from .errors import FetchError, StoreError
from .puzzle import fetch_current_puzzle
from .state import BOT_STATE_KEY, BotState
from .storage import SubscriptionStore

BOT_DESCRIPTION = (
    "For now I'm a friendly bot who posts daily chess puzzles from chess.com. "
    "But one day I'll take over the world 🤫"
)
BOT_SHORT_DESCRIPTION = "Daily chess.com puzzles for your chats"

BOT_COMMANDS = [
    BotCommand("start", "Show help and subscription status"),
    BotCommand("subscribe", "Post the daily puzzle in this chat"),
    BotCommand("unsubscribe", "Stop posting puzzles in this chat"),
    BotCommand("puzzle", "Show today's puzzle now"),
]


async def startup_health_check(state: BotState) -> bool:
    """Fetch the puzzle and read the registry once so misconfiguration shows up in the logs."""
    logger.info("🏥 Running startup health check...")
    ok = True
    try:
        puzzle = await fetch_current_puzzle(state.puzzle_url)
        logger.info(f"✅ Puzzle API reachable: '{puzzle.title}' ({puzzle.publish_time})")
    except FetchError as e:
        logger.error(f"❌ Puzzle API health check failed: {e}")
        ok = False
    try:
        count = state.store.subscriber_count()
        logger.info(f"✅ {count} subscribed chats in {state.store.path}")
    except StoreError as e:
        logger.error(f"❌ Subscriptions file unreadable: {e}")
        ok = False
    return ok


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error(f"Unhandled error while processing {update!r}: {context.error}", exc_info=context.error)


def build_application(token: str, state: BotState) -> Application:
    # Configure request with longer timeout to prevent startup failures
    request = HTTPXRequest(
        connection_pool_size=8,
        connect_timeout=30.0,
        read_timeout=30.0,
        write_timeout=30.0,
        pool_timeout=30.0,
    )

    async def post_init(application: Application) -> None:
        try:
            logger.info("🔧 Setting up bot commands...")
            await application.bot.set_my_commands(BOT_COMMANDS)
            await application.bot.set_my_description(BOT_DESCRIPTION)
            await application.bot.set_my_short_description(BOT_SHORT_DESCRIPTION)
            logger.info("✅ Bot commands configured successfully")
        except TelegramError as e:
            logger.error(f"❌ Failed to set bot commands: {e}")
            logger.warning("⚠️ Bot will continue but commands may not be visible in Telegram")

        await startup_health_check(state)

    app = Application.builder().token(token).request(request).post_init(post_init).build()
    app.bot_data[BOT_STATE_KEY] = state

    app.add_handler(CommandHandler(["start", "help"], start_cmd))
    app.add_handler(CommandHandler("subscribe", subscribe_cmd))
    app.add_handler(CommandHandler("unsubscribe", unsubscribe_cmd))
    app.add_handler(CommandHandler("puzzle", puzzle_cmd))
    app.add_error_handler(error_handler)

    app.job_queue.run_repeating(
        dispatch_job,
        interval=POLL_SECS,
        first=FIRST_POLL_SECS,
        name="daily_puzzle_dispatch",
    )
    return app


def main():
    try:
        Config.validate_config()
    except ValueError as e:
        raise SystemExit(f"❌ {e}. Check your .env file.")

    state = BotState(store=SubscriptionStore(SUBSCRIPTIONS_FILE), puzzle_url=Config.get_puzzle_url())
    app = build_application(Config.BOT_TOKEN, state)

    logger.info(f"Bot started! Posting puzzles every {POLL_SECS}s")
    app.run_polling(drop_pending_updates=True)
