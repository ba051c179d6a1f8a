"""Snapshot data models."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger("relay.snapshot")

EDIT_TEXT_CLASS = "android.widget.EditText"


class ElementActions(Protocol):
    """Primitive operations the environment performs on an element."""

    def activate(self, element: Element, focus: bool = True) -> None: ...

    def set_text(self, element: Element, value: str) -> None: ...


@dataclass(frozen=True)
class Element:
    """A single node of the element tree at one instant."""

    resource_id: str = ""
    class_name: str = ""
    text: str = ""
    content_desc: str = ""
    bounds: tuple[int, int, int, int] = (0, 0, 0, 0)  # left, top, right, bottom
    clickable: bool = False
    editable: bool = False
    scrollable: bool = False
    _actions: ElementActions | None = field(
        default=None, repr=False, compare=False, hash=False
    )

    @property
    def short_class(self) -> str:
        """Class name without package prefix."""
        return self.class_name.split(".")[-1]

    def center(self) -> tuple[int, int]:
        """Center point of the element bounds."""
        left, top, right, bottom = self.bounds
        return (left + right) // 2, (top + bottom) // 2

    def activate(self, focus: bool = True) -> None:
        """Click the element. Best-effort."""
        if self._actions is None:
            logger.debug("activate ignored, element is detached: %s", self.describe())
            return
        self._actions.activate(self, focus)

    def set_text(self, value: str) -> None:
        """Enter text into the element. Best-effort."""
        if self._actions is None:
            logger.debug("set_text ignored, element is detached: %s", self.describe())
            return
        self._actions.set_text(self, value)

    def describe(self) -> str:
        """One-line description for logs."""
        return (
            f"id={self.resource_id}, className={self.class_name}, "
            f"text={self.text}, clickable={self.clickable}, editable={self.editable}"
        )


class Snapshot:
    """Immutable view of the element tree.

    Elements are kept in document order, so parents come before their
    children. Every ``find_*`` query returns the first match in that order.
    """

    def __init__(
        self,
        elements: Iterable[Element],
        package: str | None = None,
        activity: str | None = None,
        timestamp: float | None = None,
    ):
        self._elements = tuple(elements)
        self._package = package
        self._activity = activity
        self._timestamp = timestamp if timestamp is not None else time.time()

    @property
    def elements(self) -> tuple[Element, ...]:
        return self._elements

    @property
    def package(self) -> str | None:
        return self._package

    @property
    def activity(self) -> str | None:
        return self._activity

    @property
    def timestamp(self) -> float:
        return self._timestamp

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[Element]:
        return iter(self._elements)

    def _first(self, predicate: Callable[[Element], bool]) -> Element | None:
        for element in self._elements:
            if predicate(element):
                return element
        return None

    def find_by_label(self, label: str) -> Element | None:
        """Find first element whose content description equals ``label``."""
        return self._first(lambda e: e.content_desc == label)

    def find_by_class_name(self, class_name: str) -> Element | None:
        return self._first(lambda e: e.class_name == class_name)

    def find_by_text(self, text: str) -> Element | None:
        return self._first(lambda e: e.text == text)

    def find_by_id(self, resource_id: str) -> Element | None:
        return self._first(lambda e: e.resource_id == resource_id)

    def find_by_id_and_class(self, resource_id: str, class_name: str) -> Element | None:
        """Find first element matching both resource id and class name."""
        return self._first(
            lambda e: e.resource_id == resource_id and e.class_name == class_name
        )

    def find_editable(self) -> Element | None:
        return self._first(lambda e: e.editable)

    def editable_elements(self) -> list[Element]:
        return [e for e in self._elements if e.editable]

    def buttons(self) -> list[Element]:
        """Clickable elements with a Button class."""
        return [e for e in self._elements if e.clickable and "Button" in e.class_name]
