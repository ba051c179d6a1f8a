"""Builders for common step sequences."""

from __future__ import annotations

from relaycli.core.errors import InvalidGoalError
from relaycli.core.steps import (
    ClickSendStep,
    DelayStep,
    DynamicInputStep,
    DynamicSendStep,
    FindAndClickContactStep,
    InputAndSendStep,
    InputTextStep,
    Step,
    ValueProvider,
    WaitForUIStep,
)
from relaycli.models.snapshot import Snapshot

CHAT_LOAD_DELAY_MS = 1000
SEND_SETTLE_DELAY_MS = 500


def _require_contact(contact_name: str) -> str:
    if not contact_name or not contact_name.strip():
        raise InvalidGoalError("Contact name must not be empty")
    return contact_name


def _require_message(message: str) -> str:
    if not message:
        raise InvalidGoalError("Message must not be empty")
    return message


def build_send_message_flow(contact_name: str, message: str) -> tuple[Step, ...]:
    """Build the full flow for sending a message to a contact.

    Args:
        contact_name: Label of the contact in the chat list
        message: Text to send

    Returns:
        Steps: open chat, wait for it, type, press send, wait for delivery

    Raises:
        InvalidGoalError: If contact or message is empty
    """
    contact_name = _require_contact(contact_name)
    message = _require_message(message)
    return (
        FindAndClickContactStep(contact_name),
        DelayStep(CHAT_LOAD_DELAY_MS, "Wait for chat screen"),
        InputTextStep(message),
        ClickSendStep(),
        DelayStep(SEND_SETTLE_DELAY_MS, "Wait for send to finish"),
    )


def build_simple_send_flow(contact_name: str, message: str) -> tuple[Step, ...]:
    """Build a three-step flow where typing and sending happen in one step."""
    contact_name = _require_contact(contact_name)
    message = _require_message(message)
    return (
        FindAndClickContactStep(contact_name),
        DelayStep(CHAT_LOAD_DELAY_MS, "Wait for chat screen"),
        InputAndSendStep(message),
    )


def build_dynamic_send_flow(contact_name: str, message_provider: ValueProvider) -> tuple[Step, ...]:
    """Build a flow that reads the message when its steps run.

    The same sequence can be reused for each new message: the input and send
    steps call ``message_provider`` on every evaluation and hold while it
    returns nothing.

    Args:
        contact_name: Label of the contact in the chat list
        message_provider: Zero-argument callable returning the live message

    Returns:
        Steps: open chat, wait for it, type live message, press send

    Raises:
        InvalidGoalError: If contact is empty or provider is not callable
    """
    contact_name = _require_contact(contact_name)
    if not callable(message_provider):
        raise InvalidGoalError("Message provider must be callable")
    return (
        FindAndClickContactStep(contact_name),
        DelayStep(CHAT_LOAD_DELAY_MS, "Wait for chat screen"),
        DynamicInputStep(message_provider),
        DynamicSendStep(message_provider),
    )


def build_wait_for_ui_step(ui_identifier: str, name: str = "Wait for UI") -> Step:
    """Build a step that waits for an element with the given text or class."""
    if not ui_identifier:
        raise InvalidGoalError("UI identifier must not be empty")

    def ui_present(snapshot: Snapshot) -> bool:
        return (
            snapshot.find_by_text(ui_identifier) is not None
            or snapshot.find_by_class_name(ui_identifier) is not None
        )

    return WaitForUIStep(ui_present, name=name)
