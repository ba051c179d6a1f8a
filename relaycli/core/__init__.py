"""Core modules for relay."""

from relaycli.core.config import ConfigLoader, PollerConfig, RelayConfig, SenderConfig
from relaycli.core.device_controller import DeviceController
from relaycli.core.environment import AdbEnvironment
from relaycli.core.payload import PayloadSlot, parse_payload
from relaycli.core.poller import MessagePoller
from relaycli.core.relay import RelayService
from relaycli.core.sender import MessageSender
from relaycli.core.state_machine import StateMachine
from relaycli.core.ui_element_parser import UIElementParser

__all__ = [
    "AdbEnvironment",
    "ConfigLoader",
    "DeviceController",
    "MessagePoller",
    "MessageSender",
    "PayloadSlot",
    "PollerConfig",
    "RelayConfig",
    "RelayService",
    "SenderConfig",
    "StateMachine",
    "UIElementParser",
    "parse_payload",
]
