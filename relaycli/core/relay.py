"""Relay service: poll for messages and deliver them through the UI."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Literal, Protocol

from relaycli.core.config import RelayConfig
from relaycli.core.errors import ConfigError
from relaycli.core.flows import build_dynamic_send_flow
from relaycli.core.payload import PayloadSlot
from relaycli.core.poller import MessagePoller
from relaycli.core.sender import MessageSender
from relaycli.core.state_machine import StateMachine
from relaycli.core.steps import DynamicInputStep
from relaycli.models.snapshot import Snapshot

logger = logging.getLogger("relay.relay")

RelayMode = Literal["sender", "flow"]


class Environment(Protocol):
    def snapshot(self) -> Snapshot: ...


class RelayService:
    """Connect the poller, the payload slot and one consumer.

    In ``sender`` mode each pending message is taken from the slot and handed
    to the single-flight sender while the chat screen is open. In ``flow``
    mode a state machine built over the live slot value walks from the chat
    list to the send button; completing it consumes the message that was
    typed, unless a newer one has replaced it in the slot meanwhile.

    Snapshots are captured and dispatched from a single loop, so the state
    machine never sees two events at once.
    """

    def __init__(
        self,
        environment: Environment,
        config: RelayConfig,
        mode: RelayMode = "sender",
        slot: PayloadSlot | None = None,
        poller: MessagePoller | None = None,
        sender: MessageSender | None = None,
        on_sent: Callable[[str, bool], None] | None = None,
    ):
        """Initialize service.

        Args:
            environment: Snapshot capability
            config: Relay configuration
            mode: "sender" or "flow"
            slot: Payload slot (new if not provided)
            poller: Poller (built from config.source_url if not provided)
            sender: Sender (built from config.sender if not provided)
            on_sent: Called with (message, success) after each delivery attempt

        Raises:
            ConfigError: If mode is unknown, flow mode has no contact, or no
                         poller can be built
        """
        if mode not in ("sender", "flow"):
            raise ConfigError(f"Unknown relay mode: {mode}")

        self._environment = environment
        self._config = config
        self._mode = mode
        self._slot = slot or PayloadSlot()
        self._on_sent = on_sent

        if poller is None:
            if not config.source_url:
                raise ConfigError("Relay service needs a payload source URL")
            poller = MessagePoller(
                config.source_url,
                self._slot,
                interval=config.poller.interval,
                request_timeout=config.poller.request_timeout,
            )
        self._poller = poller
        self._sender = sender or MessageSender(config.sender)

        self._machine: StateMachine | None = None
        self._input_step: DynamicInputStep | None = None
        if mode == "flow":
            if not config.contact:
                raise ConfigError("Flow mode needs a contact name")
            steps = build_dynamic_send_flow(config.contact, self._slot.peek)
            self._input_step = next(s for s in steps if isinstance(s, DynamicInputStep))
            self._machine = StateMachine(steps, tag="RelayFlow")

        self._watch_task: asyncio.Task[None] | None = None

    @property
    def slot(self) -> PayloadSlot:
        return self._slot

    @property
    def sender(self) -> MessageSender:
        return self._sender

    @property
    def machine(self) -> StateMachine | None:
        return self._machine

    def _in_target_app(self, snapshot: Snapshot) -> bool:
        package = snapshot.package
        if package is None:
            return True
        return package == self._config.target_package

    async def handle_snapshot(self, snapshot: Snapshot) -> bool:
        """Dispatch one snapshot to the consumer.

        Returns:
            True if a message was delivered or a flow step advanced
        """
        if not self._in_target_app(snapshot):
            logger.debug(
                "Skipping snapshot: %s has focus, not %s",
                snapshot.package,
                self._config.target_package,
            )
            return False

        if self._machine is not None:
            return self._advance_flow(self._machine, snapshot)
        return await self._deliver_pending()

    def _advance_flow(self, machine: StateMachine, snapshot: Snapshot) -> bool:
        if not self._slot.has_value:
            return False

        advanced = machine.process_event(snapshot)
        logger.debug("Flow status: %s", machine.status())

        if machine.is_completed:
            sent = None
            if self._input_step is not None:
                sent, self._input_step.entered_text = self._input_step.entered_text, None
            machine.reset()
            if sent is None:
                logger.warning("Flow completed without entering a message")
                return advanced
            if self._slot.take_if(sent):
                logger.info("Flow delivered message: %s", sent)
            else:
                # Slot was overwritten after typing; the newer payload gets its own run
                logger.info("Flow delivered message: %s (newer payload pending)", sent)
            self._report(sent, True)
        return advanced

    async def _deliver_pending(self) -> bool:
        if self._sender.is_sending or not self._slot.has_value:
            return False

        message = self._slot.take()
        if not message:
            return False

        success = await self._sender.send(self._environment.snapshot, message)
        if not success:
            logger.error("Dropped message after failed send: %s", message)
        self._report(message, success)
        return success

    def _report(self, message: str, success: bool) -> None:
        if self._on_sent is None:
            return
        try:
            self._on_sent(message, success)
        except Exception:
            logger.exception("on_sent callback raised")

    async def watch(self) -> None:
        """Capture and dispatch snapshots until cancelled."""
        interval = self._config.watch_interval
        while True:
            try:
                snapshot = await asyncio.to_thread(self._environment.snapshot)
                await self.handle_snapshot(snapshot)
            except Exception as e:
                # Don't crash on dump failures - just log and continue
                logger.warning("Snapshot dispatch failed: %s", e)
            await asyncio.sleep(interval)

    async def run(self) -> None:
        """Run poller and watch loop until cancelled."""
        logger.info("Relay service started (mode=%s)", self._mode)
        poll_task = self._poller.start()
        self._watch_task = asyncio.get_running_loop().create_task(self.watch())
        try:
            await asyncio.gather(poll_task, self._watch_task)
        finally:
            self.stop()
            self._poller.close()
            logger.info("Relay service stopped")

    def stop(self) -> None:
        """Cancel the poller and the watch loop."""
        self._poller.stop()
        if self._watch_task is not None:
            self._watch_task.cancel()
            self._watch_task = None
