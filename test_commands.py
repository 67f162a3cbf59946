"""Command handler tests for /subscribe, /unsubscribe, /puzzle and /start."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from telegram import ChatMember
from telegram.error import Forbidden

from chesspuzzlebot import BotState, FetchError, Puzzle, StoreError, SubscriptionStore
from chesspuzzlebot.commands import (
    ALREADY_SUBSCRIBED_MSG,
    ALREADY_UNSUBSCRIBED_MSG,
    FIRST_PUZZLE_FAILED_MSG,
    PUZZLE_UNAVAILABLE_MSG,
    STORE_FAILURE_MSG,
    SUBSCRIBED_MSG,
    UNSUBSCRIBED_MSG,
    puzzle_cmd,
    start_cmd,
    subscribe_cmd,
    unsubscribe_cmd,
)
from chesspuzzlebot.state import BOT_STATE_KEY

PUZZLE = Puzzle(title="Knight Moves", url="https://www.chess.com/daily-puzzle", publish_time=200, image="https://img")


@pytest.fixture
def store(tmp_path):
    return SubscriptionStore(str(tmp_path / "subscriptions.json"))


@pytest.fixture
def fetch(monkeypatch):
    calls = []

    async def fake_fetch(url):
        calls.append(url)
        return PUZZLE

    fake_fetch.calls = calls
    monkeypatch.setattr("chesspuzzlebot.dispatcher.fetch_current_puzzle", fake_fetch)
    monkeypatch.setattr("chesspuzzlebot.commands.fetch_current_puzzle", fake_fetch)
    return fake_fetch


def make_update(chat_id=-100123, chat_type="group", user_id=7):
    message = SimpleNamespace(reply_text=AsyncMock())
    return SimpleNamespace(
        effective_chat=SimpleNamespace(id=chat_id, type=chat_type),
        effective_user=SimpleNamespace(id=user_id),
        effective_message=message,
    )


def make_context(store, status=ChatMember.ADMINISTRATOR, admin_only=True):
    bot = AsyncMock()
    bot.send_photo.return_value = SimpleNamespace(message_id=11)
    bot.get_chat_member.return_value = SimpleNamespace(status=status)
    state = BotState(store=store, puzzle_url="https://example.test/puzzle", reaction="", admin_only=admin_only)
    return SimpleNamespace(bot=bot, bot_data={BOT_STATE_KEY: state}, args=[])


def replies(update):
    return [call.args[0] for call in update.effective_message.reply_text.await_args_list]


@pytest.mark.asyncio
async def test_subscribe_registers_and_posts_current_puzzle(store, fetch):
    update = make_update()
    context = make_context(store)

    await subscribe_cmd(update, context)

    assert replies(update) == [SUBSCRIBED_MSG]
    assert context.bot.send_photo.await_args.kwargs["chat_id"] == -100123
    assert store.load() == {"-100123": 200}


@pytest.mark.asyncio
async def test_subscribe_twice_is_idempotent(store, fetch):
    store.save({"-100123": 150})
    update = make_update()
    context = make_context(store)

    await subscribe_cmd(update, context)

    assert replies(update) == [ALREADY_SUBSCRIBED_MSG]
    context.bot.send_photo.assert_not_awaited()
    assert fetch.calls == []
    assert store.load() == {"-100123": 150}


@pytest.mark.asyncio
async def test_subscribe_keeps_subscription_when_first_post_fails(store, fetch):
    update = make_update()
    context = make_context(store)
    context.bot.send_photo.side_effect = Forbidden("bot is not a member of the chat")

    await subscribe_cmd(update, context)

    assert replies(update) == [SUBSCRIBED_MSG, FIRST_PUZZLE_FAILED_MSG]
    assert store.load() == {"-100123": 0}


@pytest.mark.asyncio
async def test_subscribe_keeps_subscription_when_fetch_fails(store, monkeypatch):
    async def broken_fetch(url):
        raise FetchError("HTTP 502")

    monkeypatch.setattr("chesspuzzlebot.dispatcher.fetch_current_puzzle", broken_fetch)
    update = make_update()
    context = make_context(store)

    await subscribe_cmd(update, context)

    assert replies(update) == [SUBSCRIBED_MSG, FIRST_PUZZLE_FAILED_MSG]
    assert store.load() == {"-100123": 0}


@pytest.mark.asyncio
async def test_subscribe_reports_store_failure(store, fetch):
    with open(store.path, "w", encoding="utf-8") as f:
        f.write("{broken")
    update = make_update()
    context = make_context(store)

    await subscribe_cmd(update, context)

    assert replies(update) == [STORE_FAILURE_MSG]
    context.bot.send_photo.assert_not_awaited()


@pytest.mark.asyncio
async def test_unsubscribe_removes_channel(store, fetch):
    store.save({"-100123": 200, "42": 200})
    update = make_update()

    await unsubscribe_cmd(update, make_context(store))

    assert replies(update) == [UNSUBSCRIBED_MSG]
    assert store.load() == {"42": 200}


@pytest.mark.asyncio
async def test_unsubscribe_absent_channel_is_idempotent(store, fetch):
    store.save({"42": 200})
    update = make_update()

    await unsubscribe_cmd(update, make_context(store))

    assert replies(update) == [ALREADY_UNSUBSCRIBED_MSG]
    assert store.load() == {"42": 200}


@pytest.mark.asyncio
async def test_resubscribe_receives_puzzle_again(store, fetch):
    context = make_context(store)

    await subscribe_cmd(make_update(), context)
    await unsubscribe_cmd(make_update(), context)
    await subscribe_cmd(make_update(), context)

    assert context.bot.send_photo.await_count == 2
    assert store.load() == {"-100123": 200}


@pytest.mark.asyncio
async def test_non_admin_cannot_subscribe_group(store, fetch):
    update = make_update()
    context = make_context(store, status=ChatMember.MEMBER)

    await subscribe_cmd(update, context)

    assert "admins" in replies(update)[0]
    assert store.load() == {}


@pytest.mark.asyncio
async def test_member_can_subscribe_when_admin_only_disabled(store, fetch):
    update = make_update()
    context = make_context(store, status=ChatMember.MEMBER, admin_only=False)

    await subscribe_cmd(update, context)

    assert replies(update) == [SUBSCRIBED_MSG]
    context.bot.get_chat_member.assert_not_awaited()


@pytest.mark.asyncio
async def test_private_chat_does_not_need_admin(store, fetch):
    update = make_update(chat_id=555, chat_type="private")
    context = make_context(store, status=ChatMember.MEMBER)

    await subscribe_cmd(update, context)

    assert replies(update) == [SUBSCRIBED_MSG]
    assert store.load() == {"555": 200}


@pytest.mark.asyncio
async def test_puzzle_command_does_not_touch_subscriptions(store, fetch):
    update = make_update()
    context = make_context(store)

    await puzzle_cmd(update, context)

    context.bot.send_photo.assert_awaited_once()
    assert replies(update) == []
    assert store.load() == {}


@pytest.mark.asyncio
async def test_puzzle_command_reports_fetch_failure(store, monkeypatch):
    async def broken_fetch(url):
        raise FetchError("timeout")

    monkeypatch.setattr("chesspuzzlebot.commands.fetch_current_puzzle", broken_fetch)
    update = make_update()

    await puzzle_cmd(update, make_context(store))

    assert replies(update) == [PUZZLE_UNAVAILABLE_MSG]


@pytest.mark.asyncio
async def test_start_shows_subscription_status(store):
    store.save({"-100123": 0})
    update = make_update()

    await start_cmd(update, make_context(store))

    text = replies(update)[0]
    assert "is subscribed" in text
    assert update.effective_message.reply_text.await_args.kwargs["parse_mode"] == "HTML"


@pytest.mark.asyncio
async def test_already_subscribed_reply_survives_unwritable_store(store, fetch, monkeypatch):
    store.save({"-100123": 150})

    def failing_save(registry):
        raise StoreError("read-only filesystem")

    monkeypatch.setattr(store, "save", failing_save)
    update = make_update()

    await subscribe_cmd(update, make_context(store))
    await unsubscribe_cmd(make_update(chat_id=42), make_context(store))

    assert replies(update) == [ALREADY_SUBSCRIBED_MSG]
    assert store.load() == {"-100123": 150}


@pytest.mark.asyncio
async def test_already_unsubscribed_reply_survives_unwritable_store(store, fetch, monkeypatch):
    def failing_save(registry):
        raise StoreError("read-only filesystem")

    monkeypatch.setattr(store, "save", failing_save)
    update = make_update()

    await unsubscribe_cmd(update, make_context(store))

    assert replies(update) == [ALREADY_UNSUBSCRIBED_MSG]


@pytest.mark.asyncio
async def test_start_reports_unreadable_store(store):
    with open(store.path, "w", encoding="utf-8") as f:
        f.write("{broken")
    update = make_update()

    await start_cmd(update, make_context(store))

    text = replies(update)[0]
    assert "Could not read the subscription status" in text
    assert "not subscribed" not in text
