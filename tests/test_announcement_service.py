"""Decoding, serialization and status evaluation of announcement bars."""
import json
from datetime import datetime, timezone

import pytest

from app.schemas import AnnouncementBar, BarStatus
from app.services.announcement_service import (
    STATUS_MESSAGE_DISABLED,
    STATUS_MESSAGE_MISSING_DATES,
    decode_bar,
    decode_bars,
    duplicate_ids,
    evaluate_status,
    evaluate_status_message,
    parse_timestamp,
    serialize_bars,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def scheduled_bar(**overrides):
    fields = {
        "id": "bar-1",
        "text": "Sale ends soon",
        "start_date": "2024-01-01T00:00:00Z",
        "end_date": "2024-01-31T00:00:00Z",
    }
    fields.update(overrides)
    return AnnouncementBar(**fields)


class TestDecodeBar:
    def test_keeps_well_typed_fields(self):
        bar = decode_bar({
            "id": "abc",
            "text": "Free shipping",
            "backgroundColor": "#ff0000",
            "textColor": "#00ff00",
            "startDate": "2024-01-01T00:00:00Z",
            "endDate": "2024-02-01T00:00:00Z",
            "enabled": False,
            "dismissible": False,
            "updatedAt": "2024-01-01T10:00:00.000Z",
        })

        assert bar.to_json() == {
            "id": "abc",
            "text": "Free shipping",
            "backgroundColor": "#ff0000",
            "textColor": "#00ff00",
            "startDate": "2024-01-01T00:00:00Z",
            "endDate": "2024-02-01T00:00:00Z",
            "enabled": False,
            "dismissible": False,
            "updatedAt": "2024-01-01T10:00:00.000Z",
        }

    def test_wrong_types_fall_back_to_defaults(self, id_factory):
        bar = decode_bar({
            "id": 42,
            "text": ["not", "text"],
            "backgroundColor": 0,
            "textColor": None,
            "startDate": 1704067200,
            "endDate": {},
            "enabled": "yes",
            "dismissible": 1,
        }, id_factory)

        assert bar.id == "bar-1"
        assert bar.text == ""
        assert bar.background_color == "#000000"
        assert bar.text_color == "#ffffff"
        assert bar.start_date is None
        assert bar.end_date is None
        assert bar.enabled is True
        assert bar.dismissible is True

    def test_legacy_entry_without_updated_at(self):
        bar = decode_bar({"id": "old", "text": "Hello"})
        assert bar.updated_at is None

    def test_non_object_entry_decodes_to_defaults(self, id_factory):
        bar = decode_bar("just a string", id_factory)
        assert bar.id == "bar-1"
        assert bar.text == ""

    def test_whitespace_text_is_kept(self):
        assert decode_bar({"id": "x", "text": "   "}).text == "   "

    def test_unknown_fields_are_dropped(self):
        bar = decode_bar({"id": "x", "text": "Hi", "priority": 5})
        assert "priority" not in bar.to_json()


class TestDecodeBars:
    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_payload(self, raw):
        assert decode_bars(raw) == []

    @pytest.mark.parametrize("raw", [
        "not json",
        "[{\"id\": \"a\", \"text\": ",
        "{\"id\": \"a\", \"text\": \"object not array\"}",
        "42",
        "null",
        "\"[]\"",
        "[" * 100000,
    ])
    def test_malformed_payload_decodes_to_empty(self, raw):
        assert decode_bars(raw) == []

    def test_blank_text_is_filtered_out(self):
        raw = json.dumps([
            {"id": "a", "text": "Keep me"},
            {"id": "b", "text": "   "},
            {"id": "c"},
            None,
            {"id": "d", "text": "Keep me too"},
        ])

        bars = decode_bars(raw)

        assert [bar.id for bar in bars] == ["a", "d"]
        assert all(bar.text.strip() for bar in bars)

    def test_order_is_preserved(self):
        raw = json.dumps([{"id": str(i), "text": f"Bar {i}"} for i in range(5)])
        assert [bar.id for bar in decode_bars(raw)] == ["0", "1", "2", "3", "4"]

    def test_round_trip(self):
        bars = [
            scheduled_bar(updated_at="2024-01-01T00:00:00.000Z"),
            AnnouncementBar(id="bar-2", text="Second", enabled=False, dismissible=False),
        ]

        decoded = decode_bars(serialize_bars(bars))

        assert [bar.to_json() for bar in decoded] == [bar.to_json() for bar in bars]

    def test_decoding_is_idempotent(self):
        raw = json.dumps([{"id": "a", "text": "Hi", "enabled": "nope"}, {"text": ""}])
        once = decode_bars(raw)
        twice = decode_bars(serialize_bars(once))
        assert [bar.to_json() for bar in twice] == [bar.to_json() for bar in once]


class TestSerializeBars:
    def test_uses_stored_field_names(self):
        stored = json.loads(serialize_bars([scheduled_bar()]))
        assert set(stored[0]) == {
            "id", "text", "backgroundColor", "textColor",
            "startDate", "endDate", "enabled", "dismissible", "updatedAt",
        }


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2024-01-01T00:00:00Z") == utc(2024, 1, 1)

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-01-01T12:30") == utc(2024, 1, 1, 12, 30)

    def test_offset(self):
        assert parse_timestamp("2024-01-01T02:00:00+02:00") == utc(2024, 1, 1)

    @pytest.mark.parametrize("value", [None, "", "tomorrow", "2024-13-45"])
    def test_unusable(self, value):
        assert parse_timestamp(value) is None


class TestEvaluateStatus:
    def test_disabled_wins_over_dates(self):
        bar = scheduled_bar(enabled=False)
        assert evaluate_status(bar, utc(2024, 1, 15)) == BarStatus.DISABLED

    @pytest.mark.parametrize("missing", ["start_date", "end_date"])
    def test_missing_date_is_disabled(self, missing):
        bar = scheduled_bar(**{missing: None})
        assert evaluate_status(bar, utc(2024, 1, 15)) == BarStatus.DISABLED

    @pytest.mark.parametrize("now, expected", [
        (utc(2024, 1, 15), BarStatus.ACTIVE),
        (utc(2023, 12, 1), BarStatus.SCHEDULED),
        (utc(2024, 2, 1), BarStatus.EXPIRED),
        (utc(2024, 1, 1), BarStatus.ACTIVE),
        (utc(2024, 1, 31), BarStatus.ACTIVE),
    ])
    def test_window(self, now, expected):
        assert evaluate_status(scheduled_bar(), now) == expected

    def test_end_before_start_never_activates(self):
        bar = scheduled_bar(start_date="2024-02-01T00:00:00Z", end_date="2024-01-01T00:00:00Z")
        assert evaluate_status(bar, utc(2024, 1, 15)) == BarStatus.SCHEDULED
        assert evaluate_status(bar, utc(2024, 3, 1)) == BarStatus.EXPIRED

    def test_unparseable_date_is_disabled(self):
        bar = scheduled_bar(start_date="soon")
        assert evaluate_status(bar, utc(2024, 1, 15)) == BarStatus.DISABLED
        assert evaluate_status_message(bar) == STATUS_MESSAGE_MISSING_DATES

    def test_naive_now_is_utc(self):
        assert evaluate_status(scheduled_bar(), datetime(2024, 1, 15)) == BarStatus.ACTIVE


class TestEvaluateStatusMessage:
    def test_disabled(self):
        assert evaluate_status_message(scheduled_bar(enabled=False)) == STATUS_MESSAGE_DISABLED

    def test_missing_dates(self):
        assert evaluate_status_message(scheduled_bar(end_date=None)) == STATUS_MESSAGE_MISSING_DATES

    def test_schedulable(self):
        assert evaluate_status_message(scheduled_bar()) is None


class TestDuplicateIds:
    def test_unique(self):
        assert duplicate_ids([scheduled_bar(id="a"), scheduled_bar(id="b")]) == []

    def test_repeated(self):
        bars = [scheduled_bar(id=bar_id) for bar_id in ["a", "b", "a", "b", "a"]]
        assert duplicate_ids(bars) == ["a", "b"]
