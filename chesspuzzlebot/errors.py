"""Exception hierarchy for the chess puzzle bot."""

from __future__ import annotations


class PuzzleBotError(Exception):
    """Base exception for all bot errors."""


class FetchError(PuzzleBotError):
    """The daily puzzle could not be fetched or parsed."""

    def __init__(self, message: str, *, status_code: int | None = None, url: str = "") -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class StoreError(PuzzleBotError):
    """The subscription registry could not be read or written."""


class DeliveryError(PuzzleBotError):
    """Posting the puzzle to a chat failed."""

    def __init__(self, message: str, *, channel_id: str = "") -> None:
        self.channel_id = channel_id
        super().__init__(message)
