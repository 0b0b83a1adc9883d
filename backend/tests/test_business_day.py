# Overview: Pytest coverage for business-day resolution at UTC+8.

from datetime import datetime

import pytest
from stockgrid.business_day import manila_to_utc, resolve_day, resolve_range, resolve_window, to_local_iso
from stockgrid.services.errors import ValidationError


class TestResolveDay:

    def test_explicit_date_bounds(self):
        day = resolve_day("2025-09-10").to_dict()
        assert day == {
            "date": "2025-09-10",
            "start": "2025-09-09T16:00:00.000Z",
            "end": "2025-09-10T15:59:59.999Z",
        }

    def test_bounds_are_inclusive(self):
        day = resolve_day("2025-09-10")
        assert day.contains(datetime(2025, 9, 9, 16, 0, 0))
        assert day.contains(datetime(2025, 9, 10, 15, 59, 59, 999000))
        assert not day.contains(datetime(2025, 9, 9, 15, 59, 59, 999999))
        assert not day.contains(datetime(2025, 9, 10, 16, 0, 0))

    def test_default_is_today_at_utc_plus_8(self):
        # 20:30 UTC is already the next morning in Manila
        day = resolve_day(None, now=datetime(2025, 9, 9, 20, 30))
        assert day.label == "2025-09-10"
        assert day.start == datetime(2025, 9, 9, 16, 0)

    def test_empty_string_means_today(self):
        assert resolve_day("", now=datetime(2025, 1, 1, 3, 0)).label == "2025-01-01"

    @pytest.mark.parametrize("bad", ["2025-13-01", "10-09-2025", "yesterday", "2025-02-30"])
    def test_malformed_date_rejected(self, bad):
        with pytest.raises(ValidationError):
            resolve_day(bad)


class TestRangesAndConversions:

    def test_range_spans_both_days(self):
        span = resolve_range("2025-09-10", "2025-09-12")
        assert span.label == "2025-09-10..2025-09-12"
        assert span.start == datetime(2025, 9, 9, 16, 0)
        assert span.end == datetime(2025, 9, 12, 15, 59, 59, 999000)

    def test_reversed_range_rejected(self):
        with pytest.raises(ValidationError):
            resolve_range("2025-09-12", "2025-09-10")

    def test_window_prefers_range_over_date(self):
        assert resolve_window("2025-09-01", "2025-09-10", "2025-09-12").label == "2025-09-10..2025-09-12"
        assert resolve_window("2025-09-01", end_str="2025-09-10").label == "2025-09-10"
        assert resolve_window("2025-09-01").label == "2025-09-01"
        assert resolve_window(now=datetime(2025, 9, 10, 16, 30)).label == "2025-09-11"

    def test_manila_wall_clock_to_utc(self):
        assert manila_to_utc("2025-09-10T08:00:00") == datetime(2025, 9, 10, 0, 0)
        assert manila_to_utc("2025-09-10T08:00:00Z") == datetime(2025, 9, 10, 8, 0)
        assert manila_to_utc(None) is None

    def test_manila_invalid_datetime(self):
        with pytest.raises(ValidationError):
            manila_to_utc("not a time")

    def test_local_iso_rendering(self):
        assert to_local_iso(datetime(2025, 9, 9, 16, 0)) == "2025-09-10T00:00:00+08:00"
