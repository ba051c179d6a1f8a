"""Shared fixtures for relay tests."""

from unittest.mock import MagicMock

import pytest

from relaycli.models.snapshot import Element, Snapshot


@pytest.fixture
def actions():
    """Recording backend for element primitives."""
    return MagicMock()


@pytest.fixture
def make_element(actions):
    """Factory for elements attached to the recording backend."""

    def factory(**kwargs):
        kwargs.setdefault("bounds", (0, 0, 100, 100))
        return Element(_actions=actions, **kwargs)

    return factory


@pytest.fixture
def chat_screen(make_element):
    """Chat screen with input box and send button (send button rendered)."""
    return Snapshot(
        [
            make_element(class_name="android.widget.FrameLayout"),
            make_element(
                resource_id="com.tencent.mm:id/bkk",
                class_name="android.widget.EditText",
                editable=True,
                clickable=True,
            ),
            make_element(
                resource_id="com.tencent.mm:id/bql",
                class_name="android.widget.Button",
                text="发送",
                clickable=True,
            ),
        ],
        package="com.tencent.mm",
    )
