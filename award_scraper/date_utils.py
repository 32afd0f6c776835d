"""Date, time and duration helpers"""

import datetime
import random
from typing import List, Sequence, Tuple, Union

from dateutil.parser import parse as parse_date
from dateutil.rrule import rrule, DAILY
from loguru import logger

DurationSpec = Union[str, int, float]
DurationRange = Union[DurationSpec, Sequence[DurationSpec]]


def parse_date_or_range(date_spec: str) -> List[str]:
    """
    Parse a date specification that can be a single date or a range.

    Args:
        date_spec: A date in YYYY-MM-DD format or a range in YYYY-MM-DD:YYYY-MM-DD format

    Returns:
        List of date strings in YYYY-MM-DD format

    Raises:
        ValueError: If the date format is invalid or the end date is before the start date
    """
    if ":" in date_spec:
        try:
            start_date_str, end_date_str = date_spec.split(":", 1)
            start_date = parse_date(start_date_str).date()
            end_date = parse_date(end_date_str).date()

            if end_date < start_date:
                raise ValueError(f"End date {end_date_str} is before start date {start_date_str}")

            return [
                dt.strftime("%Y-%m-%d")
                for dt in rrule(DAILY, dtstart=start_date, until=end_date)
            ]
        except ValueError as e:
            raise ValueError(f"Invalid date range '{date_spec}': {str(e)}")

    try:
        date = parse_date(date_spec).date()
        return [date.strftime("%Y-%m-%d")]
    except ValueError as e:
        raise ValueError(f"Invalid date '{date_spec}': {str(e)}")


def parse_date_list(date_specs: List[str]) -> List[str]:
    """
    Parse a list of date specifications that can include individual dates and ranges.

    Returns:
        Sorted list of unique date strings in YYYY-MM-DD format
    """
    all_dates = []
    for spec in date_specs:
        all_dates.extend(parse_date_or_range(spec))

    unique_dates = sorted(set(all_dates))
    if len(unique_dates) != len(all_dates):
        logger.warning(f"Removed {len(all_dates) - len(unique_dates)} duplicate dates from input")

    return unique_dates


def get_date_range_info(dates: List[str]) -> Tuple[int, int]:
    """
    Get information about a list of parsed dates.

    Returns:
        Tuple of (total_dates, consecutive_days). consecutive_days is the span in
        days when the dates form one continuous range, otherwise 0
    """
    total_dates = len(dates)
    if total_dates < 2:
        return total_dates, 0

    date_objs = sorted(coerce_date(d) for d in dates)
    expected_days = (date_objs[-1] - date_objs[0]).days + 1
    consecutive_days = expected_days if len(date_objs) == expected_days else 0
    return total_dates, consecutive_days


def coerce_date(value) -> datetime.date:
    """Convert a date, datetime or date string into a ``datetime.date``"""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value.strip():
        return parse_date(value).date()
    raise ValueError(f"Invalid date: {value!r}")


def coerce_time(value) -> datetime.time:
    """Convert a time, datetime or ``HH:MM`` string into a naive ``datetime.time``"""
    if isinstance(value, datetime.datetime):
        return value.time().replace(second=0, microsecond=0)
    if isinstance(value, datetime.time):
        return value.replace(tzinfo=None)
    if isinstance(value, str):
        try:
            return datetime.datetime.strptime(value.strip(), "%H:%M").time()
        except ValueError:
            pass
    raise ValueError(f"Invalid time: {value!r}")


def closest_year(month: int, day: int, reference: datetime.date) -> datetime.date:
    """
    Place a year-less calendar date in the year that puts it nearest to ``reference``.

    Sites often render "Sep 18" without a year; the query's own dates are the reference.
    """
    candidates = []
    for year in (reference.year - 1, reference.year, reference.year + 1):
        try:
            candidates.append(datetime.date(year, month, day))
        except ValueError:
            continue  # Feb 29 on a non-leap year
    if not candidates:
        raise ValueError(f"Invalid month/day: {month}/{day}")
    return min(candidates, key=lambda d: abs((d - reference).days))


def parse_duration(spec: DurationSpec) -> float:
    """
    Parse a duration in seconds.

    Accepts a number of seconds or a ``"[[[d:]h:]m:]s[.ms]"`` string, e.g. ``"00:30"``
    (thirty seconds), ``"15:00"`` (fifteen minutes) or ``"1:02:00:00"`` (a day and two hours).
    """
    if isinstance(spec, bool):
        raise ValueError(f"Unparsable duration: {spec!r}")
    if isinstance(spec, (int, float)):
        if spec < 0:
            raise ValueError(f"Negative duration: {spec!r}")
        return float(spec)

    parts = str(spec).strip().split(":")
    if not 1 <= len(parts) <= 4:
        raise ValueError(f"Unparsable duration: {spec!r}")

    # (multiplier, upper bound) from seconds up to days
    units = [(1, 60), (60, 60), (3600, 24), (86400, None)]
    total = 0.0
    for (multiplier, bound), part in zip(units, reversed(parts)):
        try:
            value = float(part) if multiplier == 1 else int(part)
        except ValueError:
            raise ValueError(f"Unparsable duration: {spec!r}")
        if value < 0 or (bound is not None and value >= bound):
            raise ValueError(f"Unparsable duration: {spec!r}")
        total += value * multiplier
    return total


def duration_range(value: DurationRange, rng=random) -> float:
    """Pick a duration in seconds: fixed for a scalar, uniform for a ``(min, max)`` pair"""
    if isinstance(value, (list, tuple)):
        bounds = [parse_duration(x) for x in value]
        if len(bounds) == 1:
            return bounds[0]
        if len(bounds) != 2 or bounds[0] > bounds[1]:
            raise ValueError(f"Invalid duration range: {value!r}")
        return rng.uniform(bounds[0], bounds[1])
    return parse_duration(value)
