from __future__ import annotations

import asyncio
import json
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable

from .config import logger
from .errors import StoreError


Registry = Dict[str, int]


class SubscriptionStore:
    """Chat subscriptions persisted as one JSON object: chat id -> last delivered publish time.

    A timestamp of 0 means the chat never received a puzzle. Every mutation
    must go through transaction() so the dispatcher and the commands do not
    overwrite each other's saves.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = asyncio.Lock()

    def load(self) -> Registry:
        if not os.path.exists(self.path):
            logger.debug(f"No subscriptions file at {self.path}, starting empty")
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            logger.error(f"Could not read subscriptions: {e}")
            raise StoreError(f"Could not read {self.path}: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error(f"Subscriptions file is not valid JSON: {e}")
            raise StoreError(f"Could not decode {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Subscriptions in {self.path} must be a JSON object")
        registry: Registry = {}
        for channel_id, ts in data.items():
            if isinstance(ts, bool) or not isinstance(ts, int):
                raise StoreError(f"Invalid timestamp for channel {channel_id}: {ts!r}")
            registry[str(channel_id)] = ts
        return registry

    def save(self, registry: Registry) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(registry, f, indent=2, sort_keys=True)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not save subscriptions: {e}")
            raise StoreError(f"Could not write {self.path}: {e}") from e
        logger.debug(f"Subscriptions saved ({len(registry)} channels)")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Registry]:
        """Load, let the caller mutate, then save, all under the store lock.

        Nothing is saved when the body raises or leaves the registry unchanged.
        """
        async with self._lock:
            registry = self.load()
            original = dict(registry)
            yield registry
            if registry != original:
                self.save(registry)

    async def subscribe(self, channel_id: str) -> bool:
        """Add a channel at timestamp 0. Returns False if it was already subscribed."""
        async with self.transaction() as registry:
            if channel_id in registry:
                return False
            registry[channel_id] = 0
        logger.info(f"Channel {channel_id} subscribed")
        return True

    async def unsubscribe(self, channel_id: str) -> bool:
        """Remove a channel. Returns False if it was not subscribed."""
        async with self.transaction() as registry:
            if channel_id not in registry:
                return False
            del registry[channel_id]
        logger.info(f"Channel {channel_id} unsubscribed")
        return True

    async def record_delivery(self, channel_ids: Iterable[str], publish_time: int) -> int:
        """Mark channels as having received the puzzle published at publish_time.

        Channels that unsubscribed in the meantime are left out. Returns the
        number of channels updated.
        """
        updated = 0
        async with self.transaction() as registry:
            for channel_id in channel_ids:
                if channel_id in registry:
                    registry[channel_id] = publish_time
                    updated += 1
        return updated

    def is_subscribed(self, channel_id: str) -> bool:
        return channel_id in self.load()

    def subscriber_count(self) -> int:
        return len(self.load())
