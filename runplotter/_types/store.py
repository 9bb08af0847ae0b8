#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Fixed-capacity storage for the records produced by a single decode.

Samples and laps live in pre-sized numpy arrays with an explicit length
counter; appending past the end raises `CapacityExceededError` rather than
overwriting anything. Missing values are kept as NaN inside the arrays and
handed back to callers as ``None``.

"""
import math
from contextlib import contextmanager

import numpy as np
from pandas import DataFrame, RangeIndex

from runplotter._types.frames import ActivityData
from runplotter._types.records import (
    LapRecord, PlotKind, SampleRecord, SessionSummary)
from runplotter._util.exceptions import CapacityExceededError


# 2880 is large enough for a 4 hour marathon at 5 second intervals.
DEFAULT_SAMPLE_CAPACITY = 2880
DEFAULT_LAP_CAPACITY = 400

# (x field, y field) backing each plot, in SI units.
PLOT_AXES = {
    PlotKind.PACE: ('distance', 'speed'),
    PlotKind.CADENCE: ('distance', 'cadence'),
    PlotKind.HEART_RATE: ('distance', 'heart_rate'),
    PlotKind.ALTITUDE: ('distance', 'altitude'),
    PlotKind.LAP: ('total_distance', 'total_elapsed_time'),
}

SAMPLE_PLOTS = (PlotKind.PACE, PlotKind.CADENCE,
                PlotKind.HEART_RATE, PlotKind.ALTITUDE)
LAP_PLOTS = (PlotKind.LAP,)


class Bounds:
    """Running minimum/maximum of a plot's x and y values.

    Missing values never contribute, so an axis with no data at all keeps
    ``None`` limits.
    """
    __slots__ = ('xmin', 'xmax', 'ymin', 'ymax')

    def __init__(self, xmin=None, xmax=None, ymin=None, ymax=None):
        self.xmin, self.xmax = xmin, xmax
        self.ymin, self.ymax = ymin, ymax

    def __repr__(self):
        return 'Bounds(x=[{0.xmin}, {0.xmax}], y=[{0.ymin}, {0.ymax}])'.format(
            self)

    def __eq__(self, other):
        if not isinstance(other, Bounds):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def as_tuple(self):
        return self.xmin, self.xmax, self.ymin, self.ymax

    def update(self, x, y):
        if x is not None:
            self.xmin = x if self.xmin is None else min(self.xmin, x)
            self.xmax = x if self.xmax is None else max(self.xmax, x)
        if y is not None:
            self.ymin = y if self.ymin is None else min(self.ymin, y)
            self.ymax = y if self.ymax is None else max(self.ymax, y)

    def scaled(self, xfactor, yfactor):
        """New bounds with each axis multiplied by a (positive) factor."""
        def scale(value, factor):
            return None if value is None else value * factor
        return Bounds(scale(self.xmin, xfactor), scale(self.xmax, xfactor),
                      scale(self.ymin, yfactor), scale(self.ymax, yfactor))


def _optional(value):
    """numpy scalar --> python scalar, with NaN --> None."""
    value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


class _Arena:
    """Pre-sized columns for one record type, plus a length counter."""
    __slots__ = ('record_cls', 'capacity', 'what', 'length', 'columns')

    def __init__(self, record_cls, capacity, what):
        if capacity < 0:
            raise ValueError('capacity must not be negative')

        self.record_cls = record_cls
        self.capacity = capacity
        self.what = what
        self.length = 0
        self.columns = {
            name: (np.zeros(capacity, dtype=np.int64) if name == 'timestamp'
                   else np.full(capacity, np.nan))
            for name in record_cls._fields}

    def clear(self):
        for name, column in self.columns.items():
            column.fill(0 if name == 'timestamp' else np.nan)
        self.length = 0

    def append(self, record):
        if record.timestamp is None:
            raise ValueError('%s records need a timestamp' % self.what)
        if self.length >= self.capacity:
            raise CapacityExceededError(self.what, self.capacity)

        i = self.length
        for name, value in zip(record._fields, record):
            if value is not None:
                self.columns[name][i] = value
        self.length += 1

    def column(self, name):
        return self.columns[name][:self.length].copy()

    def record(self, i):
        return self.record_cls._make(_optional(self.columns[name][i])
                                     for name in self.record_cls._fields)

    def records(self):
        return [self.record(i) for i in range(self.length)]


class RecordStore:
    """Everything one decode produces: samples, laps and a session summary.

    A reader fills a fresh store (or clears the one it is given) and hands
    it over to the caller, who owns it from then on.

    Attributes
    ----------
    session : SessionSummary
        Whole-activity aggregates. All fields missing until a reader sets it.
    utc_offset : int or None
        Offset of the device's local time from UTC in seconds, when the file
        says so. Only ever used for display.
    bounds : dict
        `Bounds` per `PlotKind`, in SI units, for initial axis limits.
    """
    def __init__(self, sample_capacity=DEFAULT_SAMPLE_CAPACITY,
                 lap_capacity=DEFAULT_LAP_CAPACITY):
        self._samples = _Arena(SampleRecord, sample_capacity, 'sample')
        self._laps = _Arena(LapRecord, lap_capacity, 'lap')
        self._reset_aggregates()

    def __repr__(self):
        return '<%s: %d/%d samples, %d/%d laps>' % (
            type(self).__name__, self.sample_count, self.sample_capacity,
            self.lap_count, self.lap_capacity)

    def _reset_aggregates(self):
        self.session = SessionSummary()
        self.utc_offset = None
        self.bounds = {kind: Bounds() for kind in PlotKind}

    def _track(self, kinds, record):
        for kind in kinds:
            xname, yname = PLOT_AXES[kind]
            self.bounds[kind].update(getattr(record, xname),
                                     getattr(record, yname))

    def clear(self):
        """Forget everything; capacities are kept."""
        self._samples.clear()
        self._laps.clear()
        self._reset_aggregates()

    @contextmanager
    def filling(self):
        """Clear the store, and clear it again if filling it fails.

        Readers fill inside this block so that a failed decode never leaves
        partial results behind.
        """
        self.clear()
        try:
            yield self
        except Exception:
            self.clear()
            raise

    def append_sample(self, sample):
        """Raises `CapacityExceededError` once `sample_capacity` is reached."""
        self._samples.append(sample)
        self._track(SAMPLE_PLOTS, sample)

    def append_lap(self, lap):
        """Raises `CapacityExceededError` once `lap_capacity` is reached."""
        self._laps.append(lap)
        self._track(LAP_PLOTS, lap)

    @property
    def sample_capacity(self):
        return self._samples.capacity

    @property
    def lap_capacity(self):
        return self._laps.capacity

    @property
    def sample_count(self):
        return self._samples.length

    @property
    def lap_count(self):
        return self._laps.length

    @property
    def samples(self):
        return self._samples.records()

    @property
    def laps(self):
        return self._laps.records()

    @property
    def last_sample(self):
        if self._samples.length == 0:
            return None
        return self._samples.record(self._samples.length - 1)

    def column(self, name):
        """Copy of a sample column (NaN where missing)."""
        return self._samples.column(name)

    def lap_column(self, name):
        """Copy of a lap column (NaN where missing)."""
        return self._laps.column(name)

    def samples_frame(self):
        columns = {name: self.column(name) for name in SampleRecord._fields}
        return ActivityData._from_columns(columns)

    def laps_frame(self):
        columns = {name: self.lap_column(name) for name in LapRecord._fields}
        frame = DataFrame(columns)
        frame.index = RangeIndex(1, self.lap_count + 1, name='lap')
        return frame
