"""Tests for payload slot and response parsing."""

import threading

import pytest

from relaycli.core.errors import SourceFetchError
from relaycli.core.payload import PayloadSlot, parse_payload


class TestPayloadSlot:
    """Tests for last-write-wins slot."""

    def test_empty_slot(self):
        slot = PayloadSlot()
        assert slot.has_value is False
        assert slot.peek() is None
        assert slot.take() is None

    def test_last_write_wins(self):
        slot = PayloadSlot()
        slot.put("A")
        slot.put("B")

        assert slot.peek() == "B"
        assert slot.take() == "B"
        assert slot.take() is None

    def test_peek_does_not_consume(self):
        slot = PayloadSlot()
        slot.put("A")

        assert slot.peek() == "A"
        assert slot.has_value is True

    def test_take_if_consumes_matching_value(self):
        slot = PayloadSlot()
        slot.put("A")

        assert slot.take_if("A") is True
        assert slot.has_value is False

    def test_take_if_keeps_newer_value(self):
        slot = PayloadSlot()
        slot.put("A")
        slot.put("B")

        assert slot.take_if("A") is False
        assert slot.peek() == "B"

    def test_concurrent_writers_leave_one_value(self):
        slot = PayloadSlot()
        threads = [threading.Thread(target=slot.put, args=(str(i),)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert slot.take() in {str(i) for i in range(20)}
        assert slot.has_value is False


class TestParsePayload:
    """Tests for the tolerant response parser."""

    def test_object_shape(self):
        data = {"status": "success", "data": {"text": "hello"}}
        assert parse_payload(data) == "hello"

    def test_list_shape_takes_first_text(self):
        data = {"status": "success", "data": [{"text": ""}, {"text": "one"}, {"text": "two"}]}
        assert parse_payload(data) == "one"

    def test_empty_list_has_no_message(self):
        assert parse_payload({"status": "success", "data": []}) is None

    def test_empty_text_has_no_message(self):
        assert parse_payload({"status": "success", "data": {"text": ""}}) is None

    def test_non_success_status_ignored(self):
        assert parse_payload({"status": "empty", "data": {"text": "stale"}}) is None

    @pytest.mark.parametrize(
        "data",
        [
            ["not", "an", "object"],
            {"data": {"text": "x"}},
            {"status": "success"},
            {"status": "success", "data": "text"},
            {"status": "success", "data": [1, 2]},
            {"status": "success", "data": {"text": 42}},
        ],
    )
    def test_schema_mismatch_raises(self, data):
        with pytest.raises(SourceFetchError):
            parse_payload(data)
