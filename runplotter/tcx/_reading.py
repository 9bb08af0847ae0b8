#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Flatten a parsed TCX tree into this package's records.

"""
import logging

from runplotter._types import (
    MISSING, LapRecord, RecordStore, SampleRecord, SessionSummary)
from runplotter._types.store import (
    DEFAULT_LAP_CAPACITY, DEFAULT_SAMPLE_CAPACITY)
from runplotter._util import drydoc, exceptions
from runplotter._util.conversions import parse_iso8601_utc
from runplotter.tcx._tree import parse_tcx


logger = logging.getLogger(__name__)

# Degrees. A fix this close to (0, 0) is a GPS that hasn't locked on yet.
# You don't run off the coast of Africa.
ZERO_THRESHOLD = 0.1


def near_null_island(trackpoint, threshold=ZERO_THRESHOLD):
    """Is this trackpoint's position missing, or (almost) exactly (0, 0)?"""
    if not trackpoint.has_position:
        return True
    return (abs(trackpoint.latitude) <= threshold
            and abs(trackpoint.longitude) <= threshold)


class _Flattener:
    """Depth-first walk of the tree, keeping track of the previous sample."""
    def __init__(self, store, threshold):
        self.store = store
        self.threshold = threshold
        self.total = 0      # trackpoints, less the ones left out
        self.dropped = 0
        self.skipped = 0
        self.previous = None

    def speed(self, timestamp, distance):
        """Speed from the previous sample, else carried forward from it.

        The first sample of each activity has nothing to go on and gets
        ``None``.
        """
        previous = self.previous
        if previous is None:
            return MISSING

        dt = timestamp - previous.timestamp
        if dt > 0 and distance is not None and previous.distance is not None:
            return (distance - previous.distance) / dt
        return previous.speed

    def trackpoint(self, trkpt):
        self.total += 1
        if near_null_island(trkpt, self.threshold):
            self.total -= 1
            self.dropped += 1
            return None

        timestamp = parse_iso8601_utc(trkpt.time)
        if timestamp is None:
            self.total -= 1
            self.skipped += 1
            logger.debug('skipping trackpoint with time %r', trkpt.time)
            return None

        sample = SampleRecord(
            timestamp=timestamp,
            latitude=trkpt.latitude,
            longitude=trkpt.longitude,
            speed=self.speed(timestamp, trkpt.distance),
            distance=trkpt.distance,
            altitude=trkpt.elevation,
            cadence=trkpt.cadence,
            heart_rate=trkpt.heart_rate,
        )
        self.store.append_sample(sample)
        self.previous = sample
        return sample

    def lap(self, lap):
        trackpoints = lap.trackpoints()
        first = None    # first sample kept from this lap
        for trkpt in trackpoints:
            sample = self.trackpoint(trkpt)
            if first is None:
                first = sample

        timestamp = lap_end(lap, trackpoints)
        if timestamp is None:
            logger.debug('skipping lap without a usable time')
            return

        self.store.append_lap(LapRecord(
            timestamp=timestamp,
            start_lat=first.latitude if first is not None else MISSING,
            start_lng=first.longitude if first is not None else MISSING,
            total_distance=lap.distance,
            total_elapsed_time=lap.total_time,
        ))

    def session(self, activity):
        start = activity.start_point
        if start is not None:
            lat, lng = start.latitude, start.longitude
        else:
            lat = lng = MISSING

        self.store.session = SessionSummary(
            timestamp=activity.ended_at,
            start_time=activity.started_at,
            start_position_lat=lat,
            start_position_long=lng,
            total_elapsed_time=activity.total_time,
            total_distance=activity.total_distance,
            total_calories=activity.total_calories,
            avg_speed=activity.speed_average,
            max_speed=activity.speed_maximum,
            total_ascent=activity.total_elevation_gain,
            total_descent=activity.total_elevation_loss,
            max_altitude=activity.elevation_maximum,
            min_altitude=activity.elevation_minimum,
            avg_heart_rate=activity.heart_rate_average,
            max_heart_rate=activity.heart_rate_maximum,
            min_heart_rate=activity.heart_rate_minimum,
            avg_cadence=activity.cadence_average,
            max_cadence=activity.cadence_maximum,
        )


def lap_end(lap, trackpoints):
    """Lap start plus its total time, else the time of its last trackpoint."""
    start = parse_iso8601_utc(lap.start_time)
    if start is not None and lap.total_time is not None:
        return start + int(lap.total_time)

    for trkpt in reversed(trackpoints):
        timestamp = parse_iso8601_utc(trkpt.time)
        if timestamp is not None:
            return timestamp
    return None


def flatten(tree, store, *, threshold=ZERO_THRESHOLD):
    """Walk `tree` depth-first, filling `store`.

    Returns
    -------
    int
        Number of trackpoints left once the near-(0, 0) ones are dropped.
    """
    flattener = _Flattener(store, threshold)

    activities = tree.activities()
    if len(activities) > 1:
        logger.warning('%d activities in this file; the session summary '
                       'is taken from the last one', len(activities))

    for activity in activities:
        flattener.previous = None   # distance starts over
        for lap in activity.laps():
            flattener.lap(lap)
        flattener.session(activity)

    logger.debug('%d trackpoints kept, %d dropped near (0, 0), %d skipped',
                 flattener.total, flattener.dropped, flattener.skipped)
    return flattener.total


@drydoc.read
def read(file_path, *, sample_capacity=DEFAULT_SAMPLE_CAPACITY,
         lap_capacity=DEFAULT_LAP_CAPACITY, store=None):
    if store is None:
        store = RecordStore(sample_capacity, lap_capacity)

    with store.filling():
        try:
            tree = parse_tcx(file_path)
        except OSError as e:
            raise exceptions.OpenFailedError(
                'unable to open %s: %s' % (file_path, e.strerror)) from e
        flatten(tree, store)

    return store
