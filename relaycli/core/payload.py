"""Pending payload slot and payload response parsing."""

from __future__ import annotations

import logging
import threading
from typing import Any

from relaycli.core.errors import SourceFetchError

logger = logging.getLogger("relay.payload")


class PayloadSlot:
    """Single-value buffer where the newest write wins.

    A write that lands before the previous value was taken silently replaces
    it. Safe to use from the poller thread and the event loop at once.
    """

    def __init__(self) -> None:
        self._value: str | None = None
        self._lock = threading.Lock()

    @property
    def has_value(self) -> bool:
        with self._lock:
            return self._value is not None

    def put(self, value: str) -> None:
        with self._lock:
            dropped = self._value
            self._value = value
        if dropped is not None and dropped != value:
            logger.debug("Dropped unconsumed payload: %s", dropped)

    def peek(self) -> str | None:
        """Return the live payload without consuming it."""
        with self._lock:
            return self._value

    def take(self) -> str | None:
        """Return the live payload and clear the slot."""
        with self._lock:
            value, self._value = self._value, None
            return value

    def take_if(self, expected: str) -> bool:
        """Clear the slot only if it still holds ``expected``.

        Returns:
            True if the value was consumed, False if a newer one replaced it
        """
        with self._lock:
            if self._value != expected:
                return False
            self._value = None
            return True


def parse_payload(data: Any) -> str | None:
    """Extract the message text from a payload source response.

    Accepts both response shapes served by the source:
    ``{"status": "success", "data": {"text": "..."}}`` and
    ``{"status": "success", "data": [{"text": "..."}, ...]}``. For a list the
    first item with non-empty text wins.

    Args:
        data: Decoded JSON body

    Returns:
        Message text, or None when the response carries no message

    Raises:
        SourceFetchError: If the body matches neither shape
    """
    if not isinstance(data, dict):
        raise SourceFetchError(f"Expected JSON object, got {type(data).__name__}")

    status = data.get("status")
    if not isinstance(status, str):
        raise SourceFetchError("Response has no 'status' string")
    if status != "success":
        logger.debug("Payload source returned status=%s", status)
        return None

    body = data.get("data")
    if isinstance(body, dict):
        items = [body]
    elif isinstance(body, list):
        items = body
    else:
        raise SourceFetchError("Response 'data' is neither an object nor a list")

    for item in items:
        if not isinstance(item, dict):
            raise SourceFetchError("Response 'data' item is not an object")
        text = item.get("text")
        if text is not None and not isinstance(text, str):
            raise SourceFetchError("Response 'text' is not a string")
        if text:
            return text

    return None
