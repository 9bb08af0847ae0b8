#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Geodetic and temporal conversions shared by the readers.

Stored timestamps are always Unix seconds, UTC. Time zones only ever come
into play when a timestamp is turned into something for a human to read.

"""
import calendar
from datetime import datetime, timedelta

import pytz


TZ_UTC = pytz.utc

# FIT timestamps count from 1989-12-31T00:00:00Z.
GARMIN_EPOCH_OFFSET = 631065600

# According to Garmin, all times are stored in UTC. Despite what the schema
# says, there are files out in the wild with fractional seconds and explicit
# offsets...
ISO8601_FORMATS = (
    '%Y-%m-%dT%H:%M:%SZ',
    '%Y-%m-%dT%H:%M:%S.%fZ',
    '%Y-%m-%dT%H:%M:%S%z',
    '%Y-%m-%dT%H:%M:%S.%f%z',
)


def semicircles_to_degrees(semicircles):
    """Positional data conversion for *.fit files.

    Works element-wise on numpy arrays too. 2**31 semicircles is 180 degrees.
    """
    return semicircles * (180.0 / 2**31)


def garmin_epoch_to_unix(timestamp):
    return timestamp + GARMIN_EPOCH_OFFSET


def apply_tz_offset(unix_ts, offset_seconds):
    """Shift a UTC timestamp for display. Never store the result."""
    return unix_ts + offset_seconds


def utc_offset(tz_str, unix_ts):
    """Offset (seconds) of the named time zone from UTC at `unix_ts`.

    Raises
    ------
    pytz.UnknownTimeZoneError
        If `tz_str` isn't a known zone name.
    """
    timezone = pytz.timezone(tz_str)
    moment = datetime.fromtimestamp(unix_ts, TZ_UTC).astimezone(timezone)
    return int(moment.utcoffset().total_seconds())


def format_local_time(unix_ts, offset_seconds=0):
    """asctime-style string for a UTC timestamp shifted by `offset_seconds`.

        >>> format_local_time(631065600)
        'Sun Dec 31 00:00:00 1989'
    """
    shifted = datetime(1970, 1, 1) + timedelta(
        seconds=apply_tz_offset(unix_ts, offset_seconds))
    return shifted.strftime('%a %b %d %H:%M:%S %Y')


def parse_iso8601_utc(text):
    """ISO-8601 string --> Unix seconds (fractions truncated), or None."""
    if not text:
        return None

    text = text.strip()
    for fmt in ISO8601_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(TZ_UTC)
        return calendar.timegm(parsed.timetuple())

    return None
