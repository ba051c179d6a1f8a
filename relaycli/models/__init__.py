"""Data models for relay."""

from relaycli.models.snapshot import EDIT_TEXT_CLASS, Element, ElementActions, Snapshot

__all__ = [
    "EDIT_TEXT_CLASS",
    "Element",
    "ElementActions",
    "Snapshot",
]
