#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The normalised records every reader produces.

All quantities are SI (metres, seconds, m/s, degrees, bpm, steps/min, J,
degrees C). A field that the source didn't record is ``None``; it is never
zero and never a float sentinel.

"""
from collections import namedtuple
from enum import Enum


MISSING = None


class UnitSystem(Enum):
    METRIC = 'metric'
    ENGLISH = 'english'


class PlotKind(Enum):
    PACE = 'pace'
    CADENCE = 'cadence'
    HEART_RATE = 'heart_rate'
    ALTITUDE = 'altitude'
    LAP = 'lap'


SampleRecord = namedtuple('SampleRecord', (
    'timestamp',        # Unix seconds, always present
    'latitude',
    'longitude',
    'speed',
    'distance',         # cumulative
    'altitude',
    'cadence',
    'heart_rate',
))
SampleRecord.__new__.__defaults__ = (MISSING,) * 7


LapRecord = namedtuple('LapRecord', (
    'timestamp',        # end of lap, Unix seconds, always present
    'start_lat',
    'start_lng',
    'end_lat',
    'end_lng',
    'total_distance',
    'total_calories',
    'total_elapsed_time',
    'total_timer_time',
))
LapRecord.__new__.__defaults__ = (MISSING,) * 8


SESSION_FIELDS = (
    'timestamp',
    'start_time',
    'start_position_lat',
    'start_position_long',
    'total_elapsed_time',
    'total_timer_time',
    'total_distance',
    'nec_lat',
    'nec_long',
    'swc_lat',
    'swc_long',
    'total_work',
    'total_moving_time',
    'avg_lap_time',
    'total_calories',
    'avg_speed',
    'max_speed',
    'total_ascent',
    'total_descent',
    'avg_altitude',
    'max_altitude',
    'min_altitude',
    'avg_heart_rate',
    'max_heart_rate',
    'min_heart_rate',
    'avg_cadence',
    'max_cadence',
    'avg_temperature',
    'max_temperature',
    'total_anaerobic_training_effect',
)


class SessionSummary:
    """Whole-activity aggregates.

    Each of the `SESSION_FIELDS` is independently present or ``None``.
    ``timestamp`` is the end of the session and ``start_time`` its start,
    both Unix seconds.
    """
    __slots__ = SESSION_FIELDS

    def __init__(self, **kwargs):
        for name in self.__slots__:
            setattr(self, name, kwargs.pop(name, MISSING))
        if kwargs:
            raise TypeError('unknown session field(s): %s'
                            % ', '.join(sorted(kwargs)))

    def __iter__(self):
        for name in self.__slots__:
            yield name, getattr(self, name)

    def __eq__(self, other):
        if not isinstance(other, SessionSummary):
            return NotImplemented
        return dict(self) == dict(other)

    def __repr__(self):
        present = ('%s=%r' % item for item in self if item[1] is not None)
        return 'SessionSummary(%s)' % ', '.join(present)

    @property
    def missing(self):
        """Names of the fields that weren't recorded."""
        return tuple(name for name, value in self if value is MISSING)

    def replace(self, **kwargs):
        values = dict(self)
        values.update(kwargs)
        return type(self)(**values)
