"""Parse UI elements from uiautomator XML dumps."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path

from relaycli.models.snapshot import Element, ElementActions

_BOUNDS_RE = re.compile(r"\[(-?\d+),(-?\d+)\]\[(-?\d+),(-?\d+)\]")


class UIElementParser:
    """Parse uiautomator XML dumps into snapshot elements."""

    def __init__(self, actions: ElementActions | None = None):
        """Initialize parser.

        Args:
            actions: Backend attached to every parsed element so that
                     activate/set_text reach the device. None yields
                     detached elements (useful for offline dumps).
        """
        self._actions = actions

    def parse_xml_file(self, path: Path) -> list[Element]:
        """Parse XML file to list of elements.

        Args:
            path: Path to XML file

        Returns:
            List of Element objects
        """
        tree = ET.parse(path)
        return self._parse_tree(tree.getroot())

    def parse_xml_string(self, xml_string: str) -> list[Element]:
        """Parse XML string to list of elements.

        Args:
            xml_string: XML content as string

        Returns:
            List of Element objects
        """
        root = ET.fromstring(xml_string)
        return self._parse_tree(root)

    def _parse_tree(self, root: ET.Element) -> list[Element]:
        """Flatten the tree in document order, parents before children."""
        elements: list[Element] = []
        for node in root.iter("node"):
            elements.append(self._parse_node(node))
        return elements

    def _parse_node(self, node: ET.Element) -> Element:
        class_name = node.get("class", "")
        return Element(
            resource_id=node.get("resource-id", ""),
            class_name=class_name,
            text=node.get("text", ""),
            content_desc=node.get("content-desc", ""),
            bounds=self._parse_bounds(node.get("bounds", "")),
            clickable=node.get("clickable", "false") == "true",
            # uiautomator does not report editability; EditText subclasses are editable
            editable="EditText" in class_name,
            scrollable=node.get("scrollable", "false") == "true",
            _actions=self._actions,
        )

    def _parse_bounds(self, bounds_str: str) -> tuple[int, int, int, int]:
        """Parse bounds string to tuple.

        Args:
            bounds_str: Format "[left,top][right,bottom]"

        Returns:
            Tuple of (left, top, right, bottom)
        """
        match = _BOUNDS_RE.match(bounds_str)
        if match:
            left, top, right, bottom = match.groups()
            return (int(left), int(top), int(right), int(bottom))
        return (0, 0, 0, 0)
