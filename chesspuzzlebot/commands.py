from __future__ import annotations

from telegram import Update
from telegram.ext import ContextTypes

from .auth import guard_admin
from .config import logger
from .dispatcher import deliver_current_puzzle, deliver_puzzle
from .errors import DeliveryError, FetchError, StoreError
from .formatting import fmt_help
from .puzzle import fetch_current_puzzle
from .state import get_state

# Constants for common messages
SUBSCRIBED_MSG = "✅ Subscribed successfully. The daily chess puzzle will be posted here."
ALREADY_SUBSCRIBED_MSG = "ℹ️ This chat is already subscribed."
UNSUBSCRIBED_MSG = "✅ Unsubscribed. No more puzzles will be posted here."
ALREADY_UNSUBSCRIBED_MSG = "ℹ️ This chat is already unsubscribed."
STORE_FAILURE_MSG = "❌ Could not update subscriptions right now. Please try again later."
FIRST_PUZZLE_FAILED_MSG = "⚠️ Couldn't post today's puzzle right now, it will be posted on the next check."
PUZZLE_UNAVAILABLE_MSG = "❌ Could not fetch today's puzzle. Please try again later."


def _channel_id(update: Update) -> str:
    return str(update.effective_chat.id)


async def start_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE):
    state = get_state(context)
    try:
        subscribed = state.store.is_subscribed(_channel_id(update))
    except StoreError as e:
        logger.error(f"/start could not read subscriptions for chat {_channel_id(update)}: {e}")
        subscribed = None
    await update.effective_message.reply_text(fmt_help(subscribed), parse_mode="HTML")


async def subscribe_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not await guard_admin(update, context):
        return

    state = get_state(context)
    channel_id = _channel_id(update)
    try:
        added = await state.store.subscribe(channel_id)
    except StoreError as e:
        logger.error(f"/subscribe failed for chat {channel_id}: {e}")
        await update.effective_message.reply_text(STORE_FAILURE_MSG)
        return

    if not added:
        await update.effective_message.reply_text(ALREADY_SUBSCRIBED_MSG)
        return

    await update.effective_message.reply_text(SUBSCRIBED_MSG)

    # The subscription is committed even if the first post fails
    try:
        await deliver_current_puzzle(context.bot, state.store, channel_id, state.puzzle_url, state.reaction)
    except FetchError as e:
        logger.warning(f"First puzzle for chat {channel_id} not fetched: {e}")
        await update.effective_message.reply_text(FIRST_PUZZLE_FAILED_MSG)
    except DeliveryError as e:
        logger.warning(f"First puzzle for chat {channel_id} not delivered: {e}")
        await update.effective_message.reply_text(FIRST_PUZZLE_FAILED_MSG)
    except StoreError as e:
        # Posted but not recorded: the next tick posts it again
        logger.error(f"First puzzle for chat {channel_id} posted but not recorded: {e}")


async def unsubscribe_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not await guard_admin(update, context):
        return

    state = get_state(context)
    channel_id = _channel_id(update)
    try:
        removed = await state.store.unsubscribe(channel_id)
    except StoreError as e:
        logger.error(f"/unsubscribe failed for chat {channel_id}: {e}")
        await update.effective_message.reply_text(STORE_FAILURE_MSG)
        return

    await update.effective_message.reply_text(UNSUBSCRIBED_MSG if removed else ALREADY_UNSUBSCRIBED_MSG)


async def puzzle_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Post today's puzzle in this chat without touching subscriptions."""
    state = get_state(context)
    channel_id = _channel_id(update)
    try:
        puzzle = await fetch_current_puzzle(state.puzzle_url)
        await deliver_puzzle(context.bot, channel_id, puzzle, state.reaction)
    except (FetchError, DeliveryError) as e:
        logger.warning(f"/puzzle failed for chat {channel_id}: {e}")
        await update.effective_message.reply_text(PUZZLE_UNAVAILABLE_MSG)
