"""Periodic polling of the payload source."""

from __future__ import annotations

import asyncio
import logging

import requests

from relaycli.core.errors import SourceFetchError
from relaycli.core.payload import PayloadSlot, parse_payload

logger = logging.getLogger("relay.poller")


class MessagePoller:
    """Fetch the pending message on a fixed interval.

    Every tick issues one GET against the source and, when the response holds
    a message, overwrites the payload slot. A failed tick is logged and the
    loop carries on.

    Usage:
        poller = MessagePoller("http://host/api/message", slot)
        poller.start()
        # ... slot.peek() / slot.take() from the consumer ...
        poller.stop()
    """

    def __init__(
        self,
        url: str,
        slot: PayloadSlot,
        interval: float = 10.0,
        request_timeout: float = 5.0,
        session: requests.Session | None = None,
    ):
        """Initialize poller.

        Args:
            url: Payload source endpoint
            slot: Slot receiving accepted payloads
            interval: Seconds between ticks
            request_timeout: Per-request timeout in seconds
            session: Optional requests session (a new one is created if omitted)
        """
        self._url = url
        self._slot = slot
        self._interval = interval
        self._request_timeout = request_timeout
        self._session = session or requests.Session()
        self._task: asyncio.Task[None] | None = None
        self._tick_count = 0
        self._failure_count = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def fetch(self) -> str | None:
        """Issue one request to the source.

        Returns:
            Message text, or None if the source has nothing pending

        Raises:
            SourceFetchError: On network, HTTP, JSON or schema failure
        """
        try:
            response = self._session.get(self._url, timeout=self._request_timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise SourceFetchError(f"Request to {self._url} failed: {e}") from e
        except ValueError as e:
            raise SourceFetchError(f"Invalid JSON from {self._url}: {e}") from e

        return parse_payload(data)

    def poll_once(self) -> str | None:
        """Run one tick: fetch and publish to the slot.

        Returns:
            The accepted payload, or None
        """
        self._tick_count += 1
        try:
            payload = self.fetch()
        except SourceFetchError as e:
            self._failure_count += 1
            logger.warning("Poll #%d failed: %s", self._tick_count, e)
            return None

        if payload:
            logger.info("Poll #%d received message: %s", self._tick_count, payload)
            self._slot.put(payload)
        else:
            logger.debug("Poll #%d: no pending message", self._tick_count)
        return payload

    async def run(self) -> None:
        """Poll until cancelled."""
        logger.info("Polling %s every %.1fs", self._url, self._interval)
        try:
            while True:
                await asyncio.to_thread(self.poll_once)
                await asyncio.sleep(self._interval)
        finally:
            logger.info(
                "Polling stopped (%d ticks, %d failures)",
                self._tick_count,
                self._failure_count,
            )

    def start(self) -> asyncio.Task[None]:
        """Schedule the poll loop on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    def stop(self) -> None:
        """Cancel the poll loop without waiting for an in-flight fetch."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def close(self) -> None:
        """Close the network session."""
        self.stop()
        self._session.close()
