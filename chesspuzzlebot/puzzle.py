from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict

import aiohttp

from .config import PUZZLE_API_URL, logger
from .errors import FetchError
from .http import make_session, fetch_json


@dataclass(frozen=True)
class Puzzle:
    """The current daily puzzle. publish_time is the dedup key."""

    title: str
    url: str
    publish_time: int
    fen: str = ""
    pgn: str = ""
    image: str = ""


def _text_field(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise FetchError(f"Puzzle field '{key}' is not a string: {value!r}")
    return value.strip()


def parse_puzzle(data: Any) -> Puzzle:
    if not isinstance(data, dict):
        raise FetchError(f"Puzzle response is not a JSON object: {type(data).__name__}")

    publish_time = data.get("publish_time")
    # bool is an int subclass
    if isinstance(publish_time, bool) or not isinstance(publish_time, int):
        raise FetchError(f"Puzzle field 'publish_time' is not an integer: {publish_time!r}")

    title = _text_field(data, "title")
    url = _text_field(data, "url")
    if not title or not url:
        raise FetchError("Puzzle response is missing 'title' or 'url'")

    return Puzzle(
        title=title,
        url=url,
        publish_time=publish_time,
        fen=_text_field(data, "fen"),
        pgn=_text_field(data, "pgn"),
        image=_text_field(data, "image"),
    )


async def fetch_current_puzzle(url: str = PUZZLE_API_URL) -> Puzzle:
    """Fetch today's puzzle with a single GET. No retry, no cache."""
    try:
        async with make_session() as session:
            data = await fetch_json(session, url)
    except FetchError:
        raise
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.warning(f"Puzzle fetch failed for {url}: {type(e).__name__}: {e}")
        raise FetchError(f"Could not fetch puzzle from {url}: {e}", url=url) from e

    puzzle = parse_puzzle(data)
    logger.debug(f"Fetched puzzle '{puzzle.title}' published at {puzzle.publish_time}")
    return puzzle
