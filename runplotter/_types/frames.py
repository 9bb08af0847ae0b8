#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pandas views of a record store, for callers that prefer tables.

"""
from datetime import datetime

from pandas import DataFrame, TimedeltaIndex, to_timedelta

from runplotter._util.conversions import TZ_UTC


class DataFrameSubclass(DataFrame):
    _metadata = []

    @property
    def _constructor(self):
        return self.__class__

    def __finalize__(self, other, method=None, **kwargs):
        """Propagate metadata from other to self."""
        for name in self._metadata:
            object.__setattr__(self, name, getattr(other, name, None))
        return self


class ActivityData(DataFrameSubclass):
    """Samples indexed by time elapsed since the first sample.

    Attributes
    ----------
    start : datetime.datetime
        UTC time of the first sample (``None`` if there are no samples).
    """
    _metadata = ['start']

    @property
    def time(self):   # makes accessing the index more readable
        if isinstance(self.index, TimedeltaIndex):
            return self.index
        else:
            # because recursion problems with super().__getattr__()
            raise AttributeError('index is not TimedeltaIndex')

    @classmethod
    def _from_columns(cls, columns):
        """`columns` must contain a 'timestamp' column of Unix seconds."""
        data = cls(columns)
        timestamps = data.pop('timestamp')

        if len(timestamps):
            tstart = int(timestamps.iloc[0])
            data.start = datetime.fromtimestamp(tstart, TZ_UTC)
            offsets = to_timedelta(timestamps.values - tstart, unit='s')
            data.index = TimedeltaIndex(offsets, name='time')
        else:
            data.start = None

        return data
