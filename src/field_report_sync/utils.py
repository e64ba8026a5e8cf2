# -*- coding: utf-8 -*-
"""
Shared utility functions for field report sync operations.

This module provides small string helpers and the time-zone conversions used to
turn the captured-on value typed by the field user into the instant SharePoint
expects. All calendar math happens in the fixed operational time zone, never in
the time zone of the machine running the submission.
"""

import os
import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from .exceptions import ConfigurationError

# Operational calendar used for folder partitions and captured-on timestamps
DEFAULT_TIME_ZONE = "Pacific/Auckland"

GUID_PATTERN = re.compile(r"^\{?[0-9a-fA-F]{8}(-?[0-9a-fA-F]{4}){3}-?[0-9a-fA-F]{12}\}?$")


def is_debug_enabled():
    """
    Check if debug mode is enabled via DEBUG environment variable.

    Returns:
        bool: True if debug mode is enabled, False otherwise
    """
    return os.environ.get('DEBUG', 'false').lower() == 'true'


def to_str(value, fallback=""):
    """Return value as a string, or fallback when it is None."""
    return fallback if value is None else str(value)


def is_guid(value):
    """
    Check whether a configured list/drive value is already an identifier.

    Accepts the usual GUID spellings: with or without braces and dashes.
    """
    return bool(GUID_PATTERN.match(to_str(value)))


def trim_slashes(path):
    """Strip leading and trailing forward slashes from a path."""
    return re.sub(r"^/+|/+$", "", to_str(path))


def now_in_zone(time_zone=DEFAULT_TIME_ZONE):
    """Current wall-clock time in the operational time zone."""
    return datetime.now(ZoneInfo(time_zone))


def format_datetime_local(moment, time_zone=DEFAULT_TIME_ZONE):
    """
    Format an instant as a 'YYYY-MM-DDTHH:MM' string in the given time zone.

    This is the shape the captured-on input is pre-filled with.

    Args:
        moment (datetime): Aware datetime (naive values are treated as UTC)
        time_zone (str): IANA time zone name

    Returns:
        str: Local date/time without seconds or offset
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(time_zone)).strftime("%Y-%m-%dT%H:%M")


def parse_zoned_datetime(value, time_zone=DEFAULT_TIME_ZONE):
    """
    Interpret a user-entered local date/time in the operational time zone.

    Args:
        value (str): 'YYYY-MM-DDTHH:MM' or 'YYYY-MM-DDTHH:MM:SS'. Values that
            already carry an offset are honoured as-is. An empty value means
            "now".
        time_zone (str): IANA time zone name

    Returns:
        datetime: Aware datetime in the operational time zone

    Raises:
        ConfigurationError: If the value cannot be parsed as a date/time
    """
    zone = ZoneInfo(time_zone)
    text = to_str(value).strip()
    if not text:
        return datetime.now(zone)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ConfigurationError(
            f"Captured-on value '{text}' is not a valid date/time (expected YYYY-MM-DDTHH:MM)"
        )

    if parsed.tzinfo is None:
        # Wall-clock time as read off a clock in the operational zone
        return parsed.replace(tzinfo=zone)
    return parsed.astimezone(zone)


def zoned_datetime_string_to_utc(value, time_zone=DEFAULT_TIME_ZONE):
    """Convert a user-entered local date/time to a UTC datetime."""
    return parse_zoned_datetime(value, time_zone).astimezone(timezone.utc)


def format_datetime_for_sharepoint(value, time_zone=DEFAULT_TIME_ZONE):
    """
    Convert a captured-on value to the ISO 8601 instant written to the list.

    The result keeps the operational wall-clock time and carries the zone's
    offset for that date, e.g. '2024-07-01T09:30:00+12:00', so the instant is
    the same regardless of where the submission ran.

    Args:
        value (str): User-entered local date/time
        time_zone (str): IANA time zone name

    Returns:
        str: ISO 8601 timestamp with explicit UTC offset
    """
    return parse_zoned_datetime(value, time_zone).isoformat(timespec='seconds')
