"""Format checks for airline, flight, airport and currency values"""

import re
from typing import Any

RE_AIRLINE = re.compile(r"^[A-Z0-9]{2}$")
RE_FLIGHT = re.compile(r"^[A-Z0-9]{2}\d{1,4}$")
RE_AIRPORT = re.compile(r"^[A-Z0-9]{3}$")
RE_CURRENCY = re.compile(r"((?=.*?\d)^(([1-9]\d{0,2}(,\d{3})*)|\d+)?(\.\d{1,2})?)\s+([A-Z]{3})$")


def _matches(pattern: re.Pattern, value: Any) -> bool:
    return isinstance(value, str) and bool(pattern.match(value))


def valid_airline_code(value: Any) -> bool:
    return _matches(RE_AIRLINE, value)


def valid_flight_designator(value: Any) -> bool:
    return _matches(RE_FLIGHT, value)


def valid_airport_code(value: Any) -> bool:
    return _matches(RE_AIRPORT, value)


def valid_currency(value: Any) -> bool:
    """Check a fee string such as ``"1,234.50 USD"``"""
    return _matches(RE_CURRENCY, value)


def positive_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
