"""Airport timezone lookup"""

from datetime import timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger

# IATA code -> IANA timezone
AIRPORT_TIMEZONES = {
    # North America
    "ATL": "America/New_York",
    "BOS": "America/New_York",
    "CLT": "America/New_York",
    "DCA": "America/New_York",
    "DTW": "America/Detroit",
    "EWR": "America/New_York",
    "IAD": "America/New_York",
    "JFK": "America/New_York",
    "LGA": "America/New_York",
    "MIA": "America/New_York",
    "MCO": "America/New_York",
    "PHL": "America/New_York",
    "ORD": "America/Chicago",
    "DFW": "America/Chicago",
    "IAH": "America/Chicago",
    "MSP": "America/Chicago",
    "DEN": "America/Denver",
    "PHX": "America/Phoenix",
    "SLC": "America/Denver",
    "LAX": "America/Los_Angeles",
    "SFO": "America/Los_Angeles",
    "SEA": "America/Los_Angeles",
    "SAN": "America/Los_Angeles",
    "LAS": "America/Los_Angeles",
    "HNL": "Pacific/Honolulu",
    "ANC": "America/Anchorage",
    "YYZ": "America/Toronto",
    "YUL": "America/Toronto",
    "YOW": "America/Toronto",
    "YVR": "America/Vancouver",
    "YYC": "America/Edmonton",
    "YEG": "America/Edmonton",
    "YHZ": "America/Halifax",
    "YWG": "America/Winnipeg",
    "MEX": "America/Mexico_City",
    "CUN": "America/Cancun",
    # South America
    "GRU": "America/Sao_Paulo",
    "GIG": "America/Sao_Paulo",
    "EZE": "America/Argentina/Buenos_Aires",
    "SCL": "America/Santiago",
    "BOG": "America/Bogota",
    "LIM": "America/Lima",
    "PTY": "America/Panama",
    # Europe
    "LHR": "Europe/London",
    "LGW": "Europe/London",
    "MAN": "Europe/London",
    "DUB": "Europe/Dublin",
    "CDG": "Europe/Paris",
    "ORY": "Europe/Paris",
    "AMS": "Europe/Amsterdam",
    "BRU": "Europe/Brussels",
    "FRA": "Europe/Berlin",
    "MUC": "Europe/Berlin",
    "BER": "Europe/Berlin",
    "ZRH": "Europe/Zurich",
    "GVA": "Europe/Zurich",
    "VIE": "Europe/Vienna",
    "CPH": "Europe/Copenhagen",
    "ARN": "Europe/Stockholm",
    "OSL": "Europe/Oslo",
    "HEL": "Europe/Helsinki",
    "MAD": "Europe/Madrid",
    "BCN": "Europe/Madrid",
    "LIS": "Europe/Lisbon",
    "FCO": "Europe/Rome",
    "MXP": "Europe/Rome",
    "ATH": "Europe/Athens",
    "IST": "Europe/Istanbul",
    "WAW": "Europe/Warsaw",
    "PRG": "Europe/Prague",
    "SVO": "Europe/Moscow",
    # Middle East and Africa
    "DXB": "Asia/Dubai",
    "AUH": "Asia/Dubai",
    "DOH": "Asia/Qatar",
    "TLV": "Asia/Jerusalem",
    "CAI": "Africa/Cairo",
    "ADD": "Africa/Addis_Ababa",
    "JNB": "Africa/Johannesburg",
    "NBO": "Africa/Nairobi",
    # Asia Pacific
    "PEK": "Asia/Shanghai",
    "PVG": "Asia/Shanghai",
    "CAN": "Asia/Shanghai",
    "HKG": "Asia/Hong_Kong",
    "TPE": "Asia/Taipei",
    "ICN": "Asia/Seoul",
    "HND": "Asia/Tokyo",
    "NRT": "Asia/Tokyo",
    "KIX": "Asia/Tokyo",
    "SIN": "Asia/Singapore",
    "BKK": "Asia/Bangkok",
    "KUL": "Asia/Kuala_Lumpur",
    "MNL": "Asia/Manila",
    "DEL": "Asia/Kolkata",
    "BOM": "Asia/Kolkata",
    "SYD": "Australia/Sydney",
    "MEL": "Australia/Melbourne",
    "BNE": "Australia/Brisbane",
    "PER": "Australia/Perth",
    "AKL": "Pacific/Auckland",
}


@lru_cache(maxsize=None)
def airport_timezone(code: str) -> tzinfo:
    """Return the timezone of an airport, UTC when the airport is unknown"""
    name = AIRPORT_TIMEZONES.get(code)
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning(f"No tz data for {name} ({code}), falling back to UTC")
        return timezone.utc
