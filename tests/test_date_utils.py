import datetime
import random

import pytest

from award_scraper.date_utils import (
    closest_year,
    coerce_time,
    duration_range,
    get_date_range_info,
    parse_date_list,
    parse_date_or_range,
    parse_duration,
)


def test_parse_date_or_range_expands_ranges():
    assert parse_date_or_range("2025-12-15") == ["2025-12-15"]
    assert parse_date_or_range("2025-12-30:2026-01-01") == ["2025-12-30", "2025-12-31", "2026-01-01"]
    with pytest.raises(ValueError):
        parse_date_or_range("2025-12-17:2025-12-15")
    with pytest.raises(ValueError):
        parse_date_or_range("2025-13-40")


def test_parse_date_list_sorts_and_dedupes():
    dates = parse_date_list(["2025-12-17", "2025-12-15:2025-12-16", "2025-12-16"])
    assert dates == ["2025-12-15", "2025-12-16", "2025-12-17"]
    assert get_date_range_info(dates) == (3, 3)
    assert get_date_range_info(["2025-12-15", "2025-12-17"]) == (2, 0)


@pytest.mark.parametrize(
    "spec,seconds",
    [
        (45, 45.0),
        ("00:30", 30.0),
        ("15:00", 900.0),
        ("1:30:00", 5400.0),
        ("1:02:00:00", 93600.0),
        ("00:01.5", 1.5),
    ],
)
def test_parse_duration(spec, seconds):
    assert parse_duration(spec) == seconds


@pytest.mark.parametrize("spec", ["", "ab:cd", "60:00:00", "00:60", -5, "1:2:3:4:5", True])
def test_parse_duration_rejects_garbage(spec):
    with pytest.raises(ValueError):
        parse_duration(spec)


def test_duration_range_scalar_and_pair():
    assert duration_range("10:00") == 600.0
    rng = random.Random(7)
    for _ in range(20):
        assert 300.0 <= duration_range(("05:00", "10:00"), rng) <= 600.0
    with pytest.raises(ValueError):
        duration_range(("10:00", "05:00"))


def test_coerce_time():
    assert coerce_time("07:05") == datetime.time(7, 5)
    assert coerce_time(datetime.datetime(2019, 9, 18, 12, 55, 30)) == datetime.time(12, 55)
    with pytest.raises(ValueError):
        coerce_time("25:00")


def test_closest_year_skips_impossible_leap_days():
    assert closest_year(2, 29, datetime.date(2019, 3, 1)) == datetime.date(2020, 2, 29)
    with pytest.raises(ValueError):
        closest_year(2, 30, datetime.date(2019, 3, 1))
