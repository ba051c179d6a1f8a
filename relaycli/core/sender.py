"""Single-flight message sender.

Clicking the input box, typing the message and pressing send run as one
operation. Only one send may be in progress per sender; a second caller is
refused rather than queued. The whole operation is retried with a growing
delay and cut off by an overall timeout. A device call still running in a
worker thread when the timeout fires keeps the sender busy until it returns.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

from relaycli.core.config import SenderConfig
from relaycli.core.errors import (
    ConcurrentRejection,
    RelayError,
    SendControlNotFoundError,
    TargetNotFoundError,
    TimeoutExceeded,
    TransientNotFound,
)
from relaycli.models.snapshot import Snapshot

logger = logging.getLogger("relay.sender")

SnapshotProvider = Callable[[], Snapshot | None]
CompletionCallback = Callable[[bool], None]


class MessageSender:
    """Send messages through the chat input box, one at a time.

    Usage:
        sender = MessageSender(config.sender)
        ok = await sender.send(env.snapshot, "hello", on_complete=print)
    """

    def __init__(self, config: SenderConfig | None = None):
        """Initialize sender.

        Args:
            config: Identifiers and timing (defaults if not provided)
        """
        self._config = config or SenderConfig()
        self._guard = threading.Lock()
        self._inflight: asyncio.Future[Any] | None = None

    @property
    def config(self) -> SenderConfig:
        return self._config

    @property
    def is_sending(self) -> bool:
        """Check if a send is in progress."""
        return self._guard.locked()

    def reset_sending_state(self) -> None:
        """Force the guard back to idle.

        Only for recovery from a stuck state; ``send`` always releases the
        guard itself.
        """
        self._release_guard()
        logger.debug("Sending state reset")

    async def send(
        self,
        snapshot_provider: SnapshotProvider,
        message: str,
        on_complete: CompletionCallback | None = None,
    ) -> bool:
        """Send a message as one guarded operation.

        Args:
            snapshot_provider: Returns a fresh snapshot each time it is called
            message: Text to send
            on_complete: Called exactly once with the outcome

        Returns:
            True if the send button was pressed, False on rejection, timeout
            or exhausted retries
        """
        try:
            self._acquire_guard()
        except ConcurrentRejection as e:
            logger.warning("%s, ignoring message: %s", e, message)
            self._notify(on_complete, False)
            return False

        success = False
        try:
            await self._run_with_timeout(snapshot_provider, message)
            success = True
        except asyncio.CancelledError:
            logger.warning("Send cancelled: %s", message)
            raise
        except RelayError as e:
            logger.error("Message send failed: %s (%s)", message, e)
        except Exception as e:
            logger.exception("Unexpected error while sending message: %s", e)
        finally:
            try:
                await self._wait_for_inflight()
            finally:
                self._release_guard()
                self._notify(on_complete, success)

        if success:
            logger.info("Message sent: %s", message)
        return success

    async def _call_blocking(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a device call in a worker thread and track it.

        Cancelling the caller does not stop the thread, so the call stays
        recorded until ``_wait_for_inflight`` sees it finish.
        """
        future = asyncio.ensure_future(asyncio.to_thread(func, *args))
        self._inflight = future
        result = await asyncio.shield(future)
        self._inflight = None
        return result

    async def _wait_for_inflight(self) -> None:
        """Block until a device call abandoned by a timeout has returned."""
        future, self._inflight = self._inflight, None
        if future is None or future.done():
            return
        logger.warning("Waiting for in-flight device call before releasing send guard")
        try:
            await future
        except Exception as e:
            logger.debug("Abandoned device call raised: %s", e)

    def _acquire_guard(self) -> None:
        if not self._guard.acquire(blocking=False):
            raise ConcurrentRejection("Message send already in progress")

    def _release_guard(self) -> None:
        try:
            self._guard.release()
        except RuntimeError:
            pass  # already idle

    @staticmethod
    def _notify(on_complete: CompletionCallback | None, success: bool) -> None:
        if on_complete is None:
            return
        try:
            on_complete(success)
        except Exception:
            logger.exception("Send completion callback raised")

    async def _run_with_timeout(self, snapshot_provider: SnapshotProvider, message: str) -> None:
        timeout = self._config.timeout
        try:
            await asyncio.wait_for(self._perform_send(snapshot_provider, message), timeout)
        except asyncio.TimeoutError:
            raise TimeoutExceeded(f"Send did not finish within {timeout:.1f}s") from None

    async def _perform_send(self, snapshot_provider: SnapshotProvider, message: str) -> None:
        """Retry the composite send up to ``max_attempts`` times.

        Raises:
            TransientNotFound: If every attempt failed, typed after the last
                               attempt's cause
            RelayError: If the last attempt failed with an unexpected error
        """
        cfg = self._config
        last_error: Exception | None = None

        for attempt in range(1, cfg.max_attempts + 1):
            logger.debug("Attempt %d/%d to send message: %s", attempt, cfg.max_attempts, message)
            try:
                await self._attempt_send(snapshot_provider, message)
                return
            except TargetNotFoundError as e:
                last_error = e
                logger.warning("Attempt %d/%d: %s", attempt, cfg.max_attempts, e)
                await asyncio.sleep(cfg.missing_input_delay)
                continue
            except SendControlNotFoundError as e:
                last_error = e
                logger.warning("Attempt %d/%d: %s", attempt, cfg.max_attempts, e)
            except Exception as e:
                last_error = e
                logger.exception("Attempt %d/%d raised: %s", attempt, cfg.max_attempts, e)

            if attempt < cfg.max_attempts:
                delay = attempt * cfg.retry_delay
                logger.debug("Retrying in %.2fs", delay)
                await asyncio.sleep(delay)

        summary = f"All {cfg.max_attempts} attempts failed: {last_error}"
        if isinstance(last_error, TransientNotFound):
            raise type(last_error)(summary) from last_error
        raise RelayError(summary) from last_error

    async def _attempt_send(self, snapshot_provider: SnapshotProvider, message: str) -> None:
        """Click input, type, then find and press send.

        The send button only renders once the input box holds text, so the
        order is fixed.

        Raises:
            TargetNotFoundError: Input box not in the snapshot
            SendControlNotFoundError: Send button never appeared
        """
        cfg = self._config

        snapshot = await self._call_blocking(snapshot_provider)
        input_node = (
            snapshot.find_by_id_and_class(cfg.input_id, cfg.input_class)
            if snapshot is not None
            else None
        )
        if input_node is None:
            self._log_candidates("editable", snapshot.editable_elements() if snapshot else [])
            raise TargetNotFoundError(f"Input box {cfg.input_id} not found")

        logger.debug("Clicking input box")
        await self._call_blocking(input_node.activate)
        await asyncio.sleep(cfg.activate_settle)

        logger.debug("Entering message: %s", message)
        await self._call_blocking(input_node.set_text, message)
        await asyncio.sleep(cfg.input_settle)

        for button_attempt in range(1, cfg.button_attempts + 1):
            snapshot = await self._call_blocking(snapshot_provider)
            button = (
                snapshot.find_by_id_and_class(cfg.send_button_id, cfg.send_button_class)
                if snapshot is not None
                else None
            )
            if button is not None:
                logger.debug("Send button found, clicking")
                await self._call_blocking(button.activate, False)
                await asyncio.sleep(cfg.post_send_delay)
                return

            logger.debug(
                "Send button not visible yet (%d/%d)", button_attempt, cfg.button_attempts
            )
            self._log_candidates("button", snapshot.buttons() if snapshot else [])
            await asyncio.sleep(cfg.button_retry_delay)

        raise SendControlNotFoundError(
            f"Send button {cfg.send_button_id} did not appear after "
            f"{cfg.button_attempts} checks"
        )

    @staticmethod
    def _log_candidates(kind: str, elements: list) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        for element in elements:
            logger.debug("Found %s node: %s", kind, element.describe())
