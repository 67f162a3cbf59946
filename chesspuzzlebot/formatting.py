from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from .puzzle import Puzzle


def _escape_html(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def fmt_puzzle_date(publish_time: int) -> str:
    """Publish date as M/D/YYYY in UTC, no zero padding."""
    d = datetime.fromtimestamp(publish_time, tz=timezone.utc)
    return f"{d.month}/{d.day}/{d.year}"


def fmt_puzzle_post(puzzle: Puzzle, include_image_link: bool = False) -> str:
    message = (
        f"♟️ <b>Daily Puzzle - {fmt_puzzle_date(puzzle.publish_time)}</b>\n"
        f"<b>{_escape_html(puzzle.title)}</b>\n"
        f'<a href="{_escape_html(puzzle.url)}">Solve on Chess.com ⤴️</a>'
    )
    if include_image_link and puzzle.image:
        message += f'\n<a href="{_escape_html(puzzle.image)}">🖼 Board</a>'
    return message


def fmt_help(subscribed: Optional[bool]) -> str:
    if subscribed is None:
        status = "⚠️ Could not read the subscription status right now."
    elif subscribed:
        status = "✅ This chat is subscribed."
    else:
        status = "❓ This chat is not subscribed."
    return (
        "♟️ <b>Chess Puzzle Bot</b>\n\n"
        f"{status}\n\n"
        "<b>Commands:</b>\n"
        "/subscribe - Post the daily chess.com puzzle in this chat\n"
        "/unsubscribe - Stop posting puzzles here\n"
        "/puzzle - Show today's puzzle now"
    )
