from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Union

from telegram.error import BadRequest, TelegramError

from .config import PUZZLE_API_URL, POST_REACTION, logger
from .errors import DeliveryError, FetchError, StoreError
from .formatting import fmt_puzzle_post
from .puzzle import Puzzle, fetch_current_puzzle
from .state import get_state
from .storage import SubscriptionStore


PuzzleFetcher = Callable[[str], Awaitable[Puzzle]]


@dataclass
class DispatchResult:
    """Outcome of one dispatcher tick."""

    puzzle: Optional[Puzzle] = None
    delivered: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self.error is not None


def to_chat_id(channel_id: str) -> Union[int, str]:
    """Registry keys are strings; numeric ones go back to Telegram as ints."""
    if re.fullmatch(r"-?[0-9]+", channel_id):
        return int(channel_id)
    return channel_id


def _still_subscribed(store: SubscriptionStore, channel_id: str) -> bool:
    try:
        return store.is_subscribed(channel_id)
    except StoreError as e:
        # Fall back to the snapshot taken at the start of the tick
        logger.warning(f"Could not re-check subscription of chat {channel_id}: {e}")
        return True


async def deliver_puzzle(bot, channel_id: str, puzzle: Puzzle, reaction: str = POST_REACTION) -> int:
    """Post the puzzle to one chat and return the created message id.

    Raises DeliveryError when nothing could be posted. A failed reaction is
    only logged since the post itself went through.
    """
    chat_id = to_chat_id(channel_id)
    try:
        if puzzle.image:
            try:
                sent = await bot.send_photo(
                    chat_id=chat_id,
                    photo=puzzle.image,
                    caption=fmt_puzzle_post(puzzle),
                    parse_mode="HTML",
                )
            except BadRequest as e:
                # Telegram could not fetch the board image, post the link instead
                logger.warning(f"Photo rejected for chat {channel_id}: {e}; falling back to text")
                sent = await bot.send_message(
                    chat_id=chat_id,
                    text=fmt_puzzle_post(puzzle, include_image_link=True),
                    parse_mode="HTML",
                )
        else:
            sent = await bot.send_message(chat_id=chat_id, text=fmt_puzzle_post(puzzle), parse_mode="HTML")
    except TelegramError as e:
        raise DeliveryError(f"Could not post puzzle to chat {channel_id}: {e}", channel_id=channel_id) from e

    if reaction:
        try:
            await bot.set_message_reaction(chat_id=chat_id, message_id=sent.message_id, reaction=reaction)
        except TelegramError as e:
            logger.warning(f"Could not add reaction in chat {channel_id}: {e}")

    logger.info(f"Posted puzzle {puzzle.publish_time} to chat {channel_id}")
    return sent.message_id


async def run_dispatch(
    bot,
    store: SubscriptionStore,
    puzzle_url: str = PUZZLE_API_URL,
    reaction: str = POST_REACTION,
    fetch_puzzle: Optional[PuzzleFetcher] = None,
) -> DispatchResult:
    """One tick: fetch the puzzle once and post it to every chat that has not seen it.

    Delivered chats are recorded in a single save at the end. A crash before
    that save means they get the puzzle again next tick.
    """
    result = DispatchResult()

    try:
        puzzle = await (fetch_puzzle or fetch_current_puzzle)(puzzle_url)
    except FetchError as e:
        logger.warning(f"Dispatch aborted, puzzle fetch failed: {e}")
        result.error = f"fetch: {e}"
        return result
    result.puzzle = puzzle

    try:
        registry = store.load()
    except StoreError as e:
        logger.error(f"Dispatch aborted, could not load subscriptions: {e}")
        result.error = f"store: {e}"
        return result

    for channel_id, last_published in registry.items():
        if last_published == puzzle.publish_time:
            result.skipped.append(channel_id)
            continue
        # The chat may have unsubscribed while earlier chats were being served
        if not _still_subscribed(store, channel_id):
            logger.info(f"Chat {channel_id} unsubscribed during the tick, not posting")
            continue
        try:
            await deliver_puzzle(bot, channel_id, puzzle, reaction)
        except DeliveryError as e:
            logger.warning(f"Delivery failed, will retry next tick: {e}")
            result.failed[channel_id] = str(e)
            continue
        except Exception as e:
            logger.exception(f"Unexpected error posting to chat {channel_id}, will retry next tick: {e}")
            result.failed[channel_id] = f"{type(e).__name__}: {e}"
            continue
        result.delivered.append(channel_id)

    if result.delivered:
        try:
            await store.record_delivery(result.delivered, puzzle.publish_time)
        except StoreError as e:
            logger.error(f"Could not record deliveries, they will repeat next tick: {e}")
            result.error = f"store: {e}"

    logger.info(
        f"Dispatch for puzzle {puzzle.publish_time}: {len(result.delivered)} delivered, "
        f"{len(result.skipped)} up to date, {len(result.failed)} failed"
    )
    return result


async def deliver_current_puzzle(
    bot,
    store: SubscriptionStore,
    channel_id: str,
    puzzle_url: str = PUZZLE_API_URL,
    reaction: str = POST_REACTION,
    fetch_puzzle: Optional[PuzzleFetcher] = None,
) -> Puzzle:
    """Fetch the puzzle and post it to one subscribed chat right away.

    Raises FetchError, DeliveryError or StoreError.
    """
    puzzle = await (fetch_puzzle or fetch_current_puzzle)(puzzle_url)
    await deliver_puzzle(bot, channel_id, puzzle, reaction)
    await store.record_delivery([channel_id], puzzle.publish_time)
    return puzzle


async def dispatch_job(context) -> None:
    """JobQueue callback for the periodic tick."""
    state = get_state(context)
    result = await run_dispatch(context.bot, state.store, state.puzzle_url, state.reaction)
    if result.aborted:
        logger.debug(f"Tick ended early: {result.error}")
