# tests/test_layouts.py
"""Tests for reference-date time layouts."""
from datetime import datetime, timedelta, timezone

import pytest

from helperbars.core.layouts import format_time, parse_any, parse_time, tokenize
from helperbars.exceptions import CoercionError

MOMENT = datetime(2021, 4, 8, 16, 32, 20, 123000, tzinfo=timezone.utc)


class TestFormatTime:
    @pytest.mark.parametrize("layout, expected", [
        ("2006-01-02", "2021-04-08"),
        ("Mon Jan 2 2006", "Thu Apr 8 2021"),
        ("Monday, January _2", "Thursday, April  8"),
        ("2006-01-02T15:04:05Z", "2021-04-08T16:32:20Z"),
        ("2006-01-02T15:04:05Z07:00", "2021-04-08T16:32:20Z"),
        ("3:04PM", "4:32PM"),
        ("15:04:05.000", "16:32:20.123"),
        ("15:04:05.999", "16:32:20.123"),
        ("06/1/2", "21/4/8"),
        ("%Y%m%d", "20210408"),
    ])
    def test_layouts(self, layout, expected):
        assert format_time(MOMENT, layout) == expected

    def test_numeric_offset(self):
        moment = MOMENT.astimezone(timezone(timedelta(hours=-5)))
        assert format_time(moment, "15:04 -0700") == "11:32 -0500"
        assert format_time(moment, "Z07:00") == "-05:00"

    def test_nanosecond_override(self):
        assert format_time(MOMENT, "05.000000000") == "20.123000000"
        assert format_time(MOMENT, "05.000000000", nanosecond=123456789) == "20.123456789"

    def test_tokenize_marks_literals(self):
        assert tokenize("2006-01") == [("year", "2006"), ("literal", "-"), ("month_zero", "01")]


class TestParseTime:
    def test_reference_layout(self):
        parsed = parse_time("2020-11-23", "2006-01-02")
        assert parsed == datetime(2020, 11, 23, tzinfo=timezone.utc)

    def test_offset_is_kept(self):
        parsed = parse_time("2021-04-08 11:32:20 -0500", "2006-01-02 15:04:05 -0700")
        assert parsed.utcoffset() == timedelta(hours=-5)
        assert parsed.astimezone(timezone.utc).hour == 16

    def test_twelve_hour_clock(self):
        assert parse_time("12:15AM", "3:04PM").hour == 0
        assert parse_time("1:15PM", "3:04PM").hour == 13

    def test_mismatch_raises(self):
        with pytest.raises(CoercionError):
            parse_time("23/11/2020", "2006-01-02")

    def test_invalid_date_raises(self):
        with pytest.raises(CoercionError):
            parse_time("2021-02-30", "2006-01-02")


class TestParseAny:
    def test_iso_with_fraction(self):
        earlier = parse_any("2021-08-26 02:26:05.000")
        later = parse_any("2021-08-26 02:33:08.000")
        assert (later - earlier).total_seconds() == 423

    def test_iso_zulu(self):
        assert parse_any("2021-04-08T16:32:20Z") == MOMENT.replace(microsecond=0)

    def test_epoch_seconds(self):
        assert parse_any("1617899540") == MOMENT.replace(microsecond=0)
        assert parse_any("1617924740") == datetime(2021, 4, 8, 23, 32, 20, tzinfo=timezone.utc)

    @pytest.mark.parametrize("text", ["Apr 8, 2021", "04/08/2021 16:32", "8 April 2021", "2021/04/08"])
    def test_named_layouts(self, text):
        assert parse_any(text).date() == MOMENT.date()

    def test_unknown(self):
        with pytest.raises(CoercionError):
            parse_any("not a time")
