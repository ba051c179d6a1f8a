"""Tests for snapshot data models."""

import dataclasses

import pytest

from relaycli.models.snapshot import Element, Snapshot


class TestElement:
    """Tests for Element."""

    def test_center(self):
        """Center is the midpoint of the bounds."""
        element = Element(bounds=(100, 200, 300, 600))
        assert element.center() == (200, 400)

    def test_short_class(self):
        element = Element(class_name="android.widget.EditText")
        assert element.short_class == "EditText"

    def test_is_immutable(self):
        element = Element(text="a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            element.text = "b"

    def test_activate_delegates_to_backend(self, make_element, actions):
        """activate forwards the focus flag."""
        element = make_element(text="Send")

        element.activate(focus=False)

        actions.activate.assert_called_once_with(element, False)

    def test_detached_element_is_noop(self):
        """Elements without a backend ignore primitives."""
        element = Element(text="orphan")
        element.activate()
        element.set_text("ignored")  # Should not raise

    def test_backend_not_part_of_equality(self, make_element):
        """Two elements with the same fields compare equal."""
        assert make_element(text="x") == Element(text="x", bounds=(0, 0, 100, 100))


class TestSnapshotQueries:
    """Tests for Snapshot lookups."""

    @pytest.fixture
    def snapshot(self):
        return Snapshot([
            Element(resource_id="id/a", class_name="android.widget.TextView", text="one"),
            Element(
                resource_id="id/a",
                class_name="android.widget.EditText",
                text="two",
                editable=True,
            ),
            Element(content_desc="Alice", text="Alice"),
            Element(content_desc="Alice", text="second"),
            Element(class_name="android.widget.Button", text="OK", clickable=True),
            Element(class_name="android.widget.Button", text="off", clickable=False),
        ])

    def test_find_by_label_returns_first_match(self, snapshot):
        assert snapshot.find_by_label("Alice").text == "Alice"

    def test_find_by_text(self, snapshot):
        assert snapshot.find_by_text("two").class_name == "android.widget.EditText"

    def test_find_by_class_name(self, snapshot):
        assert snapshot.find_by_class_name("android.widget.Button").text == "OK"

    def test_find_by_id_returns_first_of_duplicates(self, snapshot):
        """Identifiers are not unique; first in order wins."""
        assert snapshot.find_by_id("id/a").text == "one"

    def test_find_by_id_and_class_requires_both(self, snapshot):
        """Composite key skips elements matching only one field."""
        found = snapshot.find_by_id_and_class("id/a", "android.widget.EditText")
        assert found.text == "two"
        assert snapshot.find_by_id_and_class("id/b", "android.widget.EditText") is None

    def test_missing_returns_none(self, snapshot):
        assert snapshot.find_by_label("Bob") is None
        assert snapshot.find_by_text("nothing") is None

    def test_editable_helpers(self, snapshot):
        assert snapshot.find_editable().text == "two"
        assert len(snapshot.editable_elements()) == 1

    def test_buttons_only_clickable(self, snapshot):
        assert [b.text for b in snapshot.buttons()] == ["OK"]

    def test_elements_are_tuple(self, snapshot):
        """Snapshot content cannot be modified through its accessor."""
        assert isinstance(snapshot.elements, tuple)
        assert len(snapshot) == 6

    def test_window_metadata(self):
        snapshot = Snapshot([], package="com.tencent.mm", activity="LauncherUI", timestamp=5.0)
        assert snapshot.package == "com.tencent.mm"
        assert snapshot.activity == "LauncherUI"
        assert snapshot.timestamp == 5.0
