"""Steps evaluated by the state machine.

Each step is a named (condition, action) pair. The condition only reads the
snapshot (and, for dynamic steps, a value provider); the action acts on the
device through the elements it finds.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from relaycli.models.snapshot import EDIT_TEXT_CLASS, Element, Snapshot

logger = logging.getLogger("relay.steps")

SEND_LABEL = "发送"

ValueProvider = Callable[[], str | None]


def find_input(snapshot: Snapshot) -> Element | None:
    """Find the text input, preferring the EditText class."""
    return snapshot.find_by_class_name(EDIT_TEXT_CLASS) or snapshot.find_editable()


def find_send_control(snapshot: Snapshot) -> Element | None:
    return snapshot.find_by_label(SEND_LABEL) or snapshot.find_by_text(SEND_LABEL)


class Step(ABC):
    """A named precondition and action."""

    name: str

    @abstractmethod
    def condition(self, snapshot: Snapshot) -> bool:
        """Check whether the step can run against ``snapshot``."""

    @abstractmethod
    def action(self, snapshot: Snapshot) -> None:
        """Perform the step."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class FindAndClickContactStep(Step):
    """Click the contact whose label matches."""

    def __init__(self, contact_name: str, name: str | None = None):
        self.contact_name = contact_name
        self.name = name or f"Find and click contact ({contact_name})"

    def condition(self, snapshot: Snapshot) -> bool:
        return snapshot.find_by_label(self.contact_name) is not None

    def action(self, snapshot: Snapshot) -> None:
        contact = snapshot.find_by_label(self.contact_name)
        if contact is not None:
            logger.debug("Clicking contact: %s", self.contact_name)
            contact.activate()


class InputTextStep(Step):
    """Click the input box and enter text.

    With ``press_send`` the send control is also clicked when the same
    snapshot already shows it.
    """

    def __init__(self, text: str, press_send: bool = False, name: str | None = None):
        self.text = text
        self.press_send = press_send
        self.name = name or ("Input and send text" if press_send else "Click input and enter text")

    def condition(self, snapshot: Snapshot) -> bool:
        return find_input(snapshot) is not None

    def action(self, snapshot: Snapshot) -> None:
        input_node = find_input(snapshot)
        if input_node is None:
            return
        logger.debug("Entering text: %s", self.text)
        input_node.activate()
        input_node.set_text(self.text)

        if self.press_send:
            send = find_send_control(snapshot)
            if send is not None:
                send.activate()
            else:
                logger.debug("Send control not in snapshot, text left in input box")


class InputAndSendStep(InputTextStep):
    def __init__(self, text: str, name: str | None = None):
        super().__init__(text, press_send=True, name=name)


class ClickSendStep(Step):
    def __init__(self, name: str = "Click send button"):
        self.name = name

    def condition(self, snapshot: Snapshot) -> bool:
        return snapshot.find_by_text(SEND_LABEL) is not None

    def action(self, snapshot: Snapshot) -> None:
        button = snapshot.find_by_text(SEND_LABEL)
        if button is not None:
            button.activate()


class WaitForUIStep(Step):
    """Wait until a UI check passes. The action does nothing."""

    def __init__(self, ui_check: Callable[[Snapshot], bool], name: str = "Wait for UI"):
        self._ui_check = ui_check
        self.name = name

    def condition(self, snapshot: Snapshot) -> bool:
        return self._ui_check(snapshot)

    def action(self, snapshot: Snapshot) -> None:
        logger.debug("Target UI is present: %s", self.name)


class CustomStep(Step):
    def __init__(
        self,
        condition_fn: Callable[[Snapshot], bool],
        action_fn: Callable[[Snapshot], None],
        name: str,
    ):
        self._condition_fn = condition_fn
        self._action_fn = action_fn
        self.name = name

    def condition(self, snapshot: Snapshot) -> bool:
        return self._condition_fn(snapshot)

    def action(self, snapshot: Snapshot) -> None:
        self._action_fn(snapshot)


class DelayStep(Step):
    """Hold the sequence for ``delay_ms`` milliseconds.

    The clock starts on the first evaluation, which always reports
    not-satisfied. The action rearms the step.
    """

    def __init__(
        self,
        delay_ms: int,
        name: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.delay_ms = delay_ms
        self.name = name or f"Delay ({delay_ms}ms)"
        self._clock = clock
        self._start_time: float | None = None

    def condition(self, snapshot: Snapshot) -> bool:
        if self._start_time is None:
            self._start_time = self._clock()
            logger.debug("Delay started: %dms", self.delay_ms)
            return False

        elapsed_ms = (self._clock() - self._start_time) * 1000
        return elapsed_ms >= self.delay_ms

    def action(self, snapshot: Snapshot) -> None:
        logger.debug("Delay finished: %dms", self.delay_ms)
        self._start_time = None


class DynamicInputStep(Step):
    """Enter whatever text the provider holds when the step runs.

    ``entered_text`` keeps the value last typed, which may differ from what
    the provider holds by the time the message is sent.
    """

    def __init__(self, provider: ValueProvider, name: str = "Input dynamic message"):
        self._provider = provider
        self.name = name
        self.entered_text: str | None = None

    def condition(self, snapshot: Snapshot) -> bool:
        return bool(self._provider()) and find_input(snapshot) is not None

    def action(self, snapshot: Snapshot) -> None:
        message = self._provider()
        if not message:
            return
        input_node = find_input(snapshot)
        if input_node is not None:
            input_node.activate()
            input_node.set_text(message)
            self.entered_text = message


class DynamicSendStep(Step):
    """Press the send control while the provider still holds a message."""

    def __init__(self, provider: ValueProvider, name: str = "Send dynamic message"):
        self._provider = provider
        self.name = name

    def condition(self, snapshot: Snapshot) -> bool:
        return bool(self._provider()) and snapshot.find_by_label(SEND_LABEL) is not None

    def action(self, snapshot: Snapshot) -> None:
        if not self._provider():
            return
        button = snapshot.find_by_label(SEND_LABEL)
        if button is not None:
            button.activate()
