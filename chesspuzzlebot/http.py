from __future__ import annotations

import aiohttp
from typing import Any, Dict
from .config import HTTP_TIMEOUT_SECS, logger
from .errors import FetchError


def build_headers() -> Dict[str, str]:
    return {
        "accept": "application/json",
        # chess.com rejects requests without an identifying UA
        "user-agent": "chesspuzzlebot/1.0 (Telegram daily puzzle bot)",
        "cache-control": "no-cache",
    }


def make_session(timeout_secs: float | None = None) -> aiohttp.ClientSession:
    timeout = aiohttp.ClientTimeout(total=timeout_secs or HTTP_TIMEOUT_SECS)
    return aiohttp.ClientSession(
        timeout=timeout,
        headers=build_headers(),
        trust_env=True,
    )


async def fetch_json(session: aiohttp.ClientSession, url: str, params: Dict[str, str] | None = None) -> Any:
    logger.debug(f"API request: {url}")
    async with session.get(url, params=params) as r:
        if r.status != 200:
            txt = await r.text()
            logger.error(f"API error for {url}: {r.status}")
            raise FetchError(f"HTTP {r.status} for {url} :: {txt[:300]}", status_code=r.status, url=url)
        logger.debug(f"API success: {url}")
        return await r.json(content_type=None)
