#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Parse Training Center XML (TCX) into an activity --> lap --> track -->
trackpoint tree.

Activities are pulled out of the document one at a time (see
`xml_reading.gen_nodes`), turned into the light-weight classes below and the
XML is thrown away. Once an activity is built its whole-activity aggregates
are worked out by `calculate_summary`.

"""
from xml.etree.ElementTree import ParseError

import numpy as np

from runplotter._util import exceptions
from runplotter._util.conversions import parse_iso8601_utc
from runplotter._util.xml_reading import (
    child_text, children, gen_nodes, recursive_text_extract, sans_ns)


ROOT_TAG = 'TrainingCenterDatabase'

# Leaf tags of a trackpoint, as flattened by `recursive_text_extract`.
# (`Value` is the only leaf of <HeartRateBpm>.)
TRACKPOINT_LEAVES = {
    'LatitudeDegrees': 'latitude',
    'LongitudeDegrees': 'longitude',
    'DistanceMeters': 'distance',
    'AltitudeMeters': 'elevation',
    'Cadence': 'cadence',
    'Value': 'heart_rate',
}


def to_number(text):
    """XML text --> float, or None if there isn't a number there."""
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


class Trackpoint:
    """A single sample. Every field may be ``None``.

    `time` is the ISO-8601 string from the file; the rest are floats.
    """
    __slots__ = ('time', 'latitude', 'longitude', 'distance', 'elevation',
                 'cadence', 'heart_rate')

    def __init__(self, time=None, **fields):
        self.time = time
        for name in self.__slots__[1:]:
            setattr(self, name, fields.get(name))

    def __repr__(self):
        return '<Trackpoint %s (%s, %s)>' % (self.time, self.latitude,
                                              self.longitude)

    @classmethod
    def _from_node(cls, node):
        leaves = recursive_text_extract(node)
        fields = {name: to_number(leaves.get(tag))
                  for tag, name in TRACKPOINT_LEAVES.items()}
        if fields['cadence'] is None:   # running watches use an extension
            fields['cadence'] = to_number(leaves.get('RunCadence'))
        return cls(time=leaves.get('Time'), **fields)

    @property
    def has_position(self):
        return self.latitude is not None and self.longitude is not None


class Track:
    __slots__ = ('_trackpoints',)

    def __init__(self, trackpoints=()):
        self._trackpoints = list(trackpoints)

    def trackpoints(self):
        return self._trackpoints


class Lap:
    """<Lap> node: totals as the device reported them.

    Attributes
    ----------
    start_time : str
        ISO-8601 ``StartTime`` attribute.
    total_time : float
        Seconds.
    distance : float
        Metres.
    calories : float
    maximum_speed : float
        m/s.
    """
    __slots__ = ('start_time', 'total_time', 'distance', 'calories',
                 'maximum_speed', '_tracks')

    def __init__(self, start_time=None, total_time=None, distance=None,
                 calories=None, maximum_speed=None, tracks=()):
        self.start_time = start_time
        self.total_time = total_time
        self.distance = distance
        self.calories = calories
        self.maximum_speed = maximum_speed
        self._tracks = list(tracks)

    @classmethod
    def _from_node(cls, node):
        tracks = [Track(Trackpoint._from_node(trkpt)
                        for trkpt in children(track, 'Trackpoint'))
                  for track in children(node, 'Track')]
        return cls(start_time=node.get('StartTime'),
                   total_time=to_number(child_text(node, 'TotalTimeSeconds')),
                   distance=to_number(child_text(node, 'DistanceMeters')),
                   calories=to_number(child_text(node, 'Calories')),
                   maximum_speed=to_number(child_text(node, 'MaximumSpeed')),
                   tracks=tracks)

    def tracks(self):
        return self._tracks

    def trackpoints(self):
        return [trkpt for track in self._tracks
                for trkpt in track.trackpoints()]


SUMMARY_FIELDS = (
    'started_at', 'ended_at', 'start_point', 'end_point', 'total_time',
    'total_calories', 'total_distance', 'total_elevation_gain',
    'total_elevation_loss', 'speed_average', 'speed_maximum',
    'speed_minimum', 'elevation_maximum', 'elevation_minimum',
    'cadence_average', 'cadence_maximum', 'cadence_minimum',
    'heart_rate_average', 'heart_rate_maximum', 'heart_rate_minimum',
)


class Activity:
    """<Activity> node plus the aggregates from `calculate_summary`.

    `started_at` and `ended_at` are Unix seconds; `start_point` and
    `end_point` are the first and last positioned trackpoints. All of the
    aggregates are ``None`` when there is nothing to compute them from.
    """
    __slots__ = ('sport', 'id', '_laps') + SUMMARY_FIELDS

    def __init__(self, sport=None, id=None, laps=()):
        self.sport, self.id = sport, id
        self._laps = list(laps)
        for name in SUMMARY_FIELDS:
            setattr(self, name, None)

    def __repr__(self):
        return '<Activity %s (%d laps)>' % (self.sport, len(self._laps))

    @classmethod
    def _from_node(cls, node):
        return cls(sport=node.get('Sport'), id=child_text(node, 'Id'),
                   laps=(Lap._from_node(lap) for lap in children(node, 'Lap')))

    def laps(self):
        return self._laps

    def trackpoints(self):
        return [trkpt for lap in self._laps for trkpt in lap.trackpoints()]


class TrainingCenter:
    __slots__ = ('_activities',)

    def __init__(self, activities=()):
        self._activities = list(activities)

    def activities(self):
        return self._activities


def _column(trackpoints, name):
    return np.array([getattr(trkpt, name) for trkpt in trackpoints
                     if getattr(trkpt, name) is not None], dtype=float)


def _stats(values):
    """(mean, max, min) of a 1-d array; Nones if it's empty."""
    if not len(values):
        return None, None, None
    return float(values.mean()), float(values.max()), float(values.min())


def _point_speeds(trackpoints):
    """m/s between consecutive trackpoints with a time and a distance."""
    timed = [(parse_iso8601_utc(trkpt.time), trkpt.distance)
             for trkpt in trackpoints if trkpt.distance is not None]
    timed = np.array([pair for pair in timed if pair[0] is not None],
                     dtype=float).reshape(-1, 2)

    dt = np.diff(timed[:, 0])
    dd = np.diff(timed[:, 1])
    moving = dt > 0
    return dd[moving] / dt[moving]


def _lap_total(laps, name):
    values = [getattr(lap, name) for lap in laps
              if getattr(lap, name) is not None]
    return float(sum(values)) if values else None


def calculate_summary(activity):
    """Work out the whole-activity aggregates (in place)."""
    laps = activity.laps()
    trackpoints = activity.trackpoints()

    times = [t for t in (parse_iso8601_utc(trkpt.time)
                         for trkpt in trackpoints) if t is not None]
    if times:
        activity.started_at, activity.ended_at = times[0], times[-1]
    elif laps:
        activity.started_at = parse_iso8601_utc(laps[0].start_time)

    positioned = [trkpt for trkpt in trackpoints if trkpt.has_position]
    if positioned:
        activity.start_point = positioned[0]
        activity.end_point = positioned[-1]

    activity.total_time = _lap_total(laps, 'total_time')
    activity.total_distance = _lap_total(laps, 'distance')
    activity.total_calories = _lap_total(laps, 'calories')

    elevation = _column(trackpoints, 'elevation')
    if len(elevation):
        steps = np.diff(elevation)
        activity.total_elevation_gain = float(steps[steps > 0].sum())
        activity.total_elevation_loss = float(-steps[steps < 0].sum())
    __, activity.elevation_maximum, activity.elevation_minimum = _stats(
        elevation)

    speeds = _point_speeds(trackpoints)
    __, activity.speed_maximum, activity.speed_minimum = _stats(speeds)
    if activity.total_time and activity.total_distance is not None:
        activity.speed_average = activity.total_distance / activity.total_time
    else:
        activity.speed_average = _stats(speeds)[0]

    lap_maximum = [lap.maximum_speed for lap in laps
                   if lap.maximum_speed is not None]
    if lap_maximum:   # the device's own figure beats ours
        activity.speed_maximum = max(lap_maximum)

    (activity.cadence_average, activity.cadence_maximum,
     activity.cadence_minimum) = _stats(_column(trackpoints, 'cadence'))

    (activity.heart_rate_average, activity.heart_rate_maximum,
     activity.heart_rate_minimum) = _stats(_column(trackpoints, 'heart_rate'))

    return activity


def parse_tcx(file_path):
    """Parse a *.tcx file (path or file object) into a `TrainingCenter`.

    Raises
    ------
    OSError
        If the file can't be opened.
    TreeParseFailedError
        If the file isn't well-formed XML, or isn't TCX at all.
    """
    try:
        nodes = gen_nodes(file_path, ('Activity',), with_root=True)

        root = next(nodes)
        if sans_ns(root.tag) != ROOT_TAG:
            raise exceptions.TreeParseFailedError(
                "this doesn't look like a tcx file!")

        activities = [calculate_summary(Activity._from_node(node))
                      for node in nodes]
    except ParseError as e:
        raise exceptions.TreeParseFailedError(
            'unable to parse the activity tree: %s' % e) from e

    return TrainingCenter(activities)
