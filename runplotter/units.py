#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Project SI records into display units.

Everything a reader produces is SI. Nothing is converted in place: the
functions here return new arrays and new `SessionSummary` objects, and a
missing value always stays missing.

"""
import math

import numpy as np

from runplotter._types import (
    MISSING, PLOT_AXES, Bounds, PlotKind, SessionSummary, UnitSystem)
from runplotter._util.conversions import format_local_time
from runplotter.tools import sg_smooth


METRIC, ENGLISH = UnitSystem.METRIC, UnitSystem.ENGLISH

FACTORS = {
    'distance': {METRIC: 0.001, ENGLISH: 0.00062137119},    # m --> km, mi
    'pace': {METRIC: 0.06, ENGLISH: 0.037282272},           # m/s --> /min
    'speed': {METRIC: 3.6, ENGLISH: 2.2369363},             # m/s --> /h
    'altitude': {METRIC: 1.0, ENGLISH: 3.2808399},          # m --> m, ft
    'work': {METRIC: 0.001, ENGLISH: 0.001},                # J --> kJ
    'lap_time': {METRIC: 1 / 60, ENGLISH: 1 / 60},          # s --> min
}

# Passed straight through whatever the system.
IDENTITY = frozenset(('cadence', 'heart_rate', 'calories', 'duration',
                      'degrees', 'time', 'count'))

# SI quantity of each plot's y values (x is always distance).
PLOT_QUANTITIES = {
    PlotKind.PACE: 'pace',
    PlotKind.CADENCE: 'cadence',
    PlotKind.HEART_RATE: 'heart_rate',
    PlotKind.ALTITUDE: 'altitude',
    PlotKind.LAP: 'lap_time',
}

DISTANCE_LABELS = {METRIC: 'Distance(km)', ENGLISH: 'Distance(miles)'}

AXIS_LABELS = {
    PlotKind.PACE: {METRIC: (DISTANCE_LABELS[METRIC], 'Pace(min/km)'),
                    ENGLISH: (DISTANCE_LABELS[ENGLISH], 'Pace(min/mile)')},
    PlotKind.CADENCE: {system: (label, 'Cadence(steps/min)')
                       for system, label in DISTANCE_LABELS.items()},
    PlotKind.HEART_RATE: {system: (label, 'Heart rate (bpm)')
                          for system, label in DISTANCE_LABELS.items()},
    PlotKind.ALTITUDE: {
        METRIC: (DISTANCE_LABELS[METRIC], 'Altitude(meters)'),
        ENGLISH: (DISTANCE_LABELS[ENGLISH], 'Altitude (feet)')},
    PlotKind.LAP: {system: ('Lap', 'Elapsed Split Time(min)')
                   for system in UnitSystem},
}


def _units(metric, english=None):
    return {METRIC: metric, ENGLISH: metric if english is None else english}


# field --> (quantity, label, units)
SESSION_LABELS = {
    'start_time': ('time', 'Start time', _units('')),
    'start_position_lat': ('degrees', 'Starting latitude', _units('deg')),
    'start_position_long': ('degrees', 'Starting longitude', _units('deg')),
    'total_elapsed_time': ('duration', 'Total elapsed time', _units('')),
    'total_timer_time': ('duration', 'Total timer time', _units('')),
    'total_distance': ('distance', 'Total distance',
                       _units('kilometers', 'miles')),
    'nec_lat': ('degrees', 'North-east corner latitude', _units('deg')),
    'nec_long': ('degrees', 'North-east corner longitude', _units('deg')),
    'swc_lat': ('degrees', 'South-west corner latitude', _units('deg')),
    'swc_long': ('degrees', 'South-west corner longitude', _units('deg')),
    'total_work': ('work', 'Total work', _units('kJ')),
    'total_moving_time': ('duration', 'Total moving time', _units('')),
    'avg_lap_time': ('duration', 'Average lap time', _units('')),
    'total_calories': ('calories', 'Total calories', _units('kcal')),
    'avg_speed': ('speed', 'Average speed',
                  _units('kilometers/hour', 'miles/hour')),
    'max_speed': ('speed', 'Maximum speed',
                  _units('kilometers/hour', 'miles/hour')),
    'total_ascent': ('altitude', 'Total ascent', _units('meters', 'feet')),
    'total_descent': ('altitude', 'Total descent', _units('meters', 'feet')),
    'avg_altitude': ('altitude', 'Average altitude',
                     _units('meters', 'feet')),
    'max_altitude': ('altitude', 'Maximum altitude',
                     _units('meters', 'feet')),
    'min_altitude': ('altitude', 'Minimum altitude',
                     _units('meters', 'feet')),
    'avg_heart_rate': ('heart_rate', 'Average heart rate', _units('bpm')),
    'max_heart_rate': ('heart_rate', 'Maximum heart rate', _units('bpm')),
    'min_heart_rate': ('heart_rate', 'Minimum heart rate', _units('bpm')),
    'avg_cadence': ('cadence', 'Average cadence', _units('steps/min')),
    'max_cadence': ('cadence', 'Maximum cadence', _units('steps/min')),
    'avg_temperature': ('temperature', 'Average temperature',
                        _units('deg C', 'deg F')),
    'max_temperature': ('temperature', 'Maximum temperature',
                        _units('deg C', 'deg F')),
    'total_anaerobic_training_effect': (
        'count', 'Total anaerobic training effect', _units('')),
    'timestamp': ('time', 'End time', _units('')),
}

SLOWEST_PACE = 999   # minutes, shown for a standstill


def factor(quantity, system):
    """Multiplier from SI for `quantity` (not defined for temperature)."""
    if quantity in IDENTITY:
        return 1.0
    return FACTORS[quantity][system]


def convert(quantity, value, system):
    """Convert an SI scalar or numpy array to `system`.

    Parameters
    ----------
    quantity : str
        One of the keys of `FACTORS`, one of `IDENTITY` or 'temperature'.
    value : number, numpy array or None
        ``None`` stays ``None``; NaN in an array stays NaN.
    system : UnitSystem

    Raises
    ------
    KeyError
        If `quantity` isn't known.
    """
    if value is MISSING:
        return MISSING

    if quantity in IDENTITY:
        return value
    if quantity == 'temperature':
        return 1.8 * value + 32.0 if system is ENGLISH else 1.0 * value
    return value * FACTORS[quantity][system]


class PlotSeries:
    """One plot's worth of display values.

    Attributes
    ----------
    x, y : numpy arrays
        Display units; NaN where the store had nothing.
    lat, lng : numpy arrays
        Degrees, for drawing the same points on a map.
    bounds : Bounds
        Initial axis limits, display units.
    xlabel, ylabel : str
    start_time : str or None
        Local time of the start of the activity, for a title.
    """
    __slots__ = ('kind', 'system', 'x', 'y', 'lat', 'lng', 'bounds',
                 'xlabel', 'ylabel', 'start_time')

    def __init__(self, **kwargs):
        for name in self.__slots__:
            setattr(self, name, kwargs.get(name))

    def __len__(self):
        return len(self.x)

    def __repr__(self):
        return '<PlotSeries %s (%s): %d points>' % (
            self.kind.value, self.system.value, len(self))


def _extent(values):
    finite = values[~np.isnan(values)]
    if not len(finite):
        return None, None
    return float(finite.min()), float(finite.max())


def _start_time(store, utc_offset):
    start = store.session.start_time
    if start is MISSING and store.sample_count:
        start = int(store.column('timestamp')[0])
    if start is MISSING:
        return None

    if utc_offset is None:
        utc_offset = store.utc_offset or 0
    return format_local_time(start, utc_offset)


def project_plot(store, kind, system, *, smooth=False, utc_offset=None):
    """Display values for one plot.

    Parameters
    ----------
    store : RecordStore
    kind : PlotKind
    system : UnitSystem
    smooth : bool, optional
        Run the y values through a Savitzky-Golay filter.
    utc_offset : int, optional
        Seconds, for `start_time`. Defaults to the offset the file gave, if
        any, else UTC.

    Returns
    -------
    PlotSeries
    """
    xname, yname = PLOT_AXES[kind]
    xfactor = factor('distance', system)
    yfactor = factor(PLOT_QUANTITIES[kind], system)

    if kind is PlotKind.LAP:
        column = store.lap_column
        lat, lng = column('start_lat'), column('start_lng')
    else:
        column = store.column
        lat, lng = column('latitude'), column('longitude')

    x = column(xname) * xfactor
    y = column(yname) * yfactor
    bounds = store.bounds[kind].scaled(xfactor, yfactor)

    if smooth:
        y = sg_smooth(y)
        bounds = Bounds(bounds.xmin, bounds.xmax, *_extent(y))

    xlabel, ylabel = AXIS_LABELS[kind][system]
    return PlotSeries(kind=kind, system=system, x=x, y=y, lat=lat, lng=lng,
                      bounds=bounds, xlabel=xlabel, ylabel=ylabel,
                      start_time=_start_time(store, utc_offset))


def project_session(session, system):
    """New `SessionSummary` in display units (timestamps untouched)."""
    values = {name: convert(SESSION_LABELS[name][0], value, system)
              for name, value in session}
    return SessionSummary(**values)


def pace_parts(value):
    """(minutes, seconds) of the pace for a speed already converted to
    distance per minute (see the 'pace' factor).

    A standstill, or no speed at all, is `SLOWEST_PACE` minutes.

        >>> pace_parts(0.2)     # 0.2 km/min
        (5, 0)
    """
    if value is MISSING or math.isnan(value) or value <= 0:
        return SLOWEST_PACE, 0

    minutes, fraction = divmod(1.0 / value, 1)
    seconds = int(round(fraction * 60))
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return int(minutes), seconds


def format_pace(value):
    """mm:ss

        >>> format_pace(0.15)
        '06:40'
    """
    return '%02d:%02d' % pace_parts(value)


def format_timer(seconds):
    """H:MM:SS for a duration in seconds; None if it's missing."""
    if seconds is MISSING:
        return None

    hours, remainder = divmod(int(round(seconds)), 3600)
    minutes, seconds = divmod(remainder, 60)
    return '%d:%02d:%02d' % (hours, minutes, seconds)


def format_session(session, system, *, utc_offset=0):
    """Human readable lines for a session already in display units.

    Missing fields are left out.
    """
    lines = []
    for name, value in session:
        if value is MISSING:
            continue

        quantity, label, units = SESSION_LABELS[name]
        if quantity == 'time':
            text = format_local_time(value, utc_offset)
        elif quantity == 'duration':
            text = format_timer(value)
        else:
            text = '%10.2f   %s' % (value, units[system])
        lines.append('%-30s = %s' % (label, text.rstrip()))
    return lines
