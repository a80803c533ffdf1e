"""Tests for the attribute resolver."""

import math

import pytest

from snapinspect.attributes import (
    age_ns,
    aliases,
    duration_ns,
    first_bool,
    first_int,
    first_number,
    first_present,
    first_string,
    first_timestamp_ns,
    normalize_timestamp_ns,
    parse_attrs_json,
)


class TestParseAttrsJson:
    """Tests for decoding the attrs column."""

    def test_parses_object(self):
        """Test that a JSON object becomes a dict."""
        assert parse_attrs_json('{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("raw", [None, "", "   ", "{not json", "[1, 2]", '"text"', 42])
    def test_bad_input_degrades_to_empty_bag(self, raw):
        """Test that malformed or non-object input never raises."""
        assert parse_attrs_json(raw) == {}

    def test_bytes_are_decoded(self):
        """Test that bytes input is decoded as UTF-8."""
        assert parse_attrs_json(b'{"k": "v"}') == {"k": "v"}


class TestFirstAccessors:
    """Tests for alias-ordered lookups."""

    def test_first_present_respects_alias_order(self):
        """Test that the first listed alias wins."""
        bag = {"request.method": "Old.call", "method": "New.call"}
        assert first_present(bag, aliases.REQUEST_METHOD) == "New.call"

    def test_first_present_skips_blank_and_none(self):
        """Test that blank strings and None count as absent."""
        bag = {"method": "  ", "request.method": "Fallback.call"}
        assert first_present(bag, aliases.REQUEST_METHOD) == "Fallback.call"
        assert first_present({"method": None}, aliases.REQUEST_METHOD) is None

    def test_first_string_coerces(self):
        """Test string coercion of non-string values."""
        assert first_string({"status": True}, aliases.STATUS) == "true"
        assert first_string({"status": 7}, aliases.STATUS) == "7"
        assert first_string({"status": " open "}, aliases.STATUS) == "open"

    def test_first_number_skips_unparseable_alias(self):
        """Test that a non-numeric alias falls through to the next one."""
        bag = {"elapsed_ns": "soon", "request.elapsed_ns": "1500"}
        assert first_number(bag, aliases.ELAPSED_NS) == 1500

    def test_missing_number_is_absent_not_zero(self):
        """Test that a missing numeric field is None, never 0."""
        assert first_number({}, aliases.PENDING_REQUESTS) is None
        assert first_int({"pending": "n/a"}, aliases.PENDING_REQUESTS) is None

    def test_zero_is_a_real_value(self):
        """Test that an explicit 0 is kept."""
        assert first_number({"pending": 0}, aliases.PENDING_REQUESTS) == 0

    def test_booleans_are_not_numbers(self):
        """Test that True does not read as 1."""
        assert first_number({"pending": True}, aliases.PENDING_REQUESTS) is None

    def test_non_finite_rejected(self):
        """Test that NaN and infinity are absent."""
        assert first_number({"pending": float("nan")}, aliases.PENDING_REQUESTS) is None
        assert first_number({"pending": "inf"}, aliases.PENDING_REQUESTS) is None

    def test_first_bool(self):
        """Test boolean coercion."""
        assert first_bool({"receiver_alive": "yes"}, aliases.RECEIVER_ALIVE) is True
        assert first_bool({"receiver_alive": 0}, aliases.RECEIVER_ALIVE) is False
        assert first_bool({"receiver_alive": "maybe"}, aliases.RECEIVER_ALIVE) is None


class TestTimestampNormalization:
    """Tests for magnitude-based unit detection."""

    def test_seconds_scale(self):
        """Test that seconds are scaled to nanoseconds."""
        assert normalize_timestamp_ns(1_700_000_000) == 1_700_000_000 * 1_000_000_000

    def test_millis_scale(self):
        """Test that milliseconds are scaled to nanoseconds."""
        assert normalize_timestamp_ns(1_700_000_000_000) == 1_700_000_000_000_000_000

    def test_micros_scale(self):
        """Test that microseconds are scaled to nanoseconds."""
        assert normalize_timestamp_ns(1_700_000_000_000_000) == 1_700_000_000_000_000_000

    def test_nanoseconds_unchanged(self):
        """Test that nanosecond values are a no-op."""
        ns = 1_700_000_000_123_456_789
        assert normalize_timestamp_ns(ns) == ns
        assert normalize_timestamp_ns(normalize_timestamp_ns(ns)) == ns

    def test_float_seconds(self):
        """Test that fractional seconds round to integer nanoseconds."""
        assert normalize_timestamp_ns(1.5) == 1_500_000_000

    def test_first_timestamp_ns_ignores_non_positive(self):
        """Test that zero or negative timestamps are absent."""
        assert first_timestamp_ns({"created_at": 0}, aliases.CREATED_AT) is None
        assert first_timestamp_ns({"created_at": -5}, aliases.CREATED_AT) is None

    def test_first_timestamp_ns_normalizes(self):
        """Test that lookups return nanoseconds."""
        bag = {"created_at_ns": 1_700_000_000_000}
        assert first_timestamp_ns(bag, aliases.CREATED_AT) == 1_700_000_000_000_000_000


class TestDurations:
    """Tests for duration and age helpers."""

    def test_duration_requires_both_ends(self):
        """Test that a missing end yields an absent duration."""
        assert duration_ns(None, 10) is None
        assert duration_ns(10, None) is None

    def test_negative_duration_is_absent(self):
        """Test that end before start yields an absent duration."""
        assert duration_ns(20, 10) is None

    def test_duration(self):
        """Test a regular duration."""
        assert duration_ns(10, 25) == 15
        assert duration_ns(10, 10) == 0

    def test_duration_non_finite(self):
        """Test that non-finite ends are absent."""
        assert duration_ns(0, math.inf) is None

    def test_age_floors_at_zero(self):
        """Test that timestamps after capture have zero age."""
        assert age_ns(100, 150) == 0
        assert age_ns(150, 100) == 50
        assert age_ns(None, 100) is None
