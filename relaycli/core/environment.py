"""Snapshot and element capabilities backed by an adb device."""

from __future__ import annotations

import logging
import time

from relaycli.core.device_controller import DeviceController
from relaycli.core.ui_element_parser import UIElementParser
from relaycli.models.snapshot import Element, Snapshot

logger = logging.getLogger("relay.environment")


class AdbEnvironment:
    """Produces snapshots from uiautomator dumps and acts on their elements.

    Usage:
        env = AdbEnvironment(DeviceController("emulator-5554"))
        snapshot = env.snapshot()
        snapshot.find_by_label("Alice").activate()
    """

    def __init__(self, controller: DeviceController):
        self._controller = controller
        self._parser = UIElementParser(actions=self)

    @property
    def controller(self) -> DeviceController:
        return self._controller

    def snapshot(self) -> Snapshot:
        """Capture the current element tree.

        Returns:
            Snapshot of the focused window
        """
        package, activity = self._controller.get_focused_window()
        xml = self._controller.dump_hierarchy()
        elements = self._parser.parse_xml_string(xml)
        logger.debug(
            "Snapshot of %s/%s: %d elements", package, activity, len(elements)
        )
        return Snapshot(elements, package=package, activity=activity, timestamp=time.time())

    def activate(self, element: Element, focus: bool = True) -> None:
        """Tap the element center.

        ``focus`` is accepted for parity with accessibility clicks; a tap
        always focuses on Android, so it has no effect here.
        """
        x, y = element.center()
        try:
            self._controller.tap(x, y)
        except (RuntimeError, ValueError) as e:
            logger.warning("Activate failed for %s: %s", element.describe(), e)

    def set_text(self, element: Element, value: str) -> None:
        """Focus the element and type ``value`` into it."""
        x, y = element.center()
        try:
            self._controller.tap(x, y)
            self._controller.type_text(value)
        except (RuntimeError, ValueError) as e:
            logger.warning("set_text failed for %s: %s", element.describe(), e)
