#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Check what ``runplotter.tcx`` makes of small hand-written TCX documents.

"""
import calendar
import logging

import pytest

from runplotter import tcx
from runplotter._types import RecordStore, SessionSummary
from runplotter._util import exceptions
from runplotter.tcx._reading import near_null_island
from runplotter.tcx._tree import Trackpoint


NOON = calendar.timegm((2020, 5, 1, 12, 0, 0))

DOCUMENT = '''<?xml version="1.0" encoding="UTF-8"?>
<TrainingCenterDatabase
    xmlns="http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2">
  <Activities>
{activities}
  </Activities>
</TrainingCenterDatabase>'''


def trackpoint(time, lat=None, lng=None, distance=None, altitude=None,
               heart_rate=None, cadence=None, run_cadence=None):
    parts = ['<Time>2020-05-01T%sZ</Time>' % time]
    if lat is not None:
        parts.append('<Position><LatitudeDegrees>%s</LatitudeDegrees>'
                     '<LongitudeDegrees>%s</LongitudeDegrees></Position>'
                     % (lat, lng))
    if altitude is not None:
        parts.append('<AltitudeMeters>%s</AltitudeMeters>' % altitude)
    if distance is not None:
        parts.append('<DistanceMeters>%s</DistanceMeters>' % distance)
    if heart_rate is not None:
        parts.append('<HeartRateBpm><Value>%s</Value></HeartRateBpm>'
                     % heart_rate)
    if cadence is not None:
        parts.append('<Cadence>%s</Cadence>' % cadence)
    if run_cadence is not None:
        parts.append(
            '<Extensions><TPX xmlns="http://www.garmin.com/xmlschemas/'
            'ActivityExtension/v2"><RunCadence>%s</RunCadence></TPX>'
            '</Extensions>' % run_cadence)
    return '<Trackpoint>%s</Trackpoint>' % ''.join(parts)


def lap(start, trackpoints, total_time=None, distance=None, calories=None,
        maximum_speed=None):
    parts = []
    for tag, value in (('TotalTimeSeconds', total_time),
                       ('DistanceMeters', distance),
                       ('MaximumSpeed', maximum_speed),
                       ('Calories', calories)):
        if value is not None:
            parts.append('<%s>%s</%s>' % (tag, value, tag))
    parts.append('<Track>%s</Track>' % ''.join(trackpoints))
    return '<Lap StartTime="2020-05-01T%sZ">%s</Lap>' % (start,
                                                         ''.join(parts))


def activity(*laps):
    return ('<Activity Sport="Running"><Id>2020-05-01T12:00:00Z</Id>%s'
            '</Activity>' % ''.join(laps))


def document(*activities):
    return DOCUMENT.format(activities='\n'.join(activities))


RUN = document(activity(lap('12:00:00', [
    trackpoint('12:00:00', 45.0, -93.0, distance=0, altitude=100,
               heart_rate=120, cadence=80),
    trackpoint('12:00:10', 0.05, -0.05, distance=40),     # no GPS lock yet
    trackpoint('12:00:20', 45.001, -93.0, distance=100, altitude=99,
               heart_rate=140, cadence=84),
    trackpoint('12:00:25', distance=100),                 # no position
    trackpoint('12:00:30', 0.05, 40.0, altitude=103, run_cadence=88),
], total_time=30.5, distance=100, calories=12, maximum_speed=6.5)))


@pytest.fixture
def run_file(text_file):
    return text_file(RUN)


def test_near_null_island():
    assert near_null_island(Trackpoint(latitude=0.05, longitude=-0.05))
    assert near_null_island(Trackpoint(latitude=0.1, longitude=0.1))
    assert near_null_island(Trackpoint(latitude=None, longitude=None))
    assert near_null_island(Trackpoint(latitude=51.5, longitude=None))

    assert not near_null_island(Trackpoint(latitude=0.2, longitude=40.0))
    assert not near_null_island(Trackpoint(latitude=0.05, longitude=40.0))
    assert not near_null_island(Trackpoint(latitude=0.05, longitude=-0.05),
                                threshold=0.01)


def test_parse_tree(run_file):
    tree = tcx.parse_tcx(run_file)

    act, = tree.activities()
    assert act.sport == 'Running'
    assert act.id == '2020-05-01T12:00:00Z'

    the_lap, = act.laps()
    assert the_lap.total_time == 30.5 and the_lap.distance == 100.0
    assert len(the_lap.tracks()) == 1
    assert len(the_lap.trackpoints()) == 5

    first = the_lap.trackpoints()[0]
    assert first.time == '2020-05-01T12:00:00Z'
    assert (first.latitude, first.longitude) == (45.0, -93.0)
    assert first.heart_rate == 120.0 and first.cadence == 80.0
    assert the_lap.trackpoints()[-1].cadence == 88.0   # RunCadence


def test_summary(run_file):
    act, = tcx.parse_tcx(run_file).activities()

    assert act.started_at == NOON and act.ended_at == NOON + 30
    assert act.start_point.latitude == 45.0
    assert act.end_point.longitude == 40.0
    assert act.total_time == 30.5
    assert act.total_distance == 100.0
    assert act.total_calories == 12.0
    assert act.speed_average == pytest.approx(100 / 30.5)
    assert act.speed_maximum == 6.5      # from the lap
    assert act.total_elevation_gain == 4.0
    assert act.total_elevation_loss == 1.0
    assert (act.elevation_maximum, act.elevation_minimum) == (103.0, 99.0)
    assert (act.heart_rate_average, act.heart_rate_maximum,
            act.heart_rate_minimum) == (130.0, 140.0, 120.0)
    assert (act.cadence_average, act.cadence_maximum,
            act.cadence_minimum) == (84.0, 88.0, 80.0)


def test_samples(run_file):
    store = tcx.read(run_file)

    assert store.sample_count == 3
    samples = store.samples
    assert [s.timestamp for s in samples] == [NOON, NOON + 20, NOON + 30]
    assert [s.latitude for s in samples] == [45.0, 45.001, 0.05]
    # first sample has no speed; the last has no distance, so its speed
    # is carried forward
    assert [s.speed for s in samples] == [None, 5.0, 5.0]
    assert samples[-1].distance is None
    assert [s.heart_rate for s in samples] == [120.0, 140.0, None]
    assert [s.cadence for s in samples] == [80.0, 84.0, 88.0]


def test_flatten_count(run_file):
    store = RecordStore()
    # five trackpoints; one near (0, 0) and one without a position
    assert tcx.flatten(tcx.parse_tcx(run_file), store) == 3
    assert store.sample_count == 3


def test_each_dropped_point_lowers_the_count(text_file):
    points = [trackpoint('12:00:%02d' % i, 0.05, -0.05) for i in range(4)]
    points.append(trackpoint('12:00:10', 0.2, 40.0))
    path = text_file(document(activity(lap('12:00:00', points))))

    store = RecordStore()
    assert tcx.flatten(tcx.parse_tcx(path), store) == 1
    assert store.samples[0].latitude == 0.2


def test_laps(run_file):
    the_lap, = tcx.read(run_file).laps

    assert the_lap.timestamp == NOON + 30     # start + int(30.5)
    assert the_lap.total_distance == 100.0
    assert the_lap.total_elapsed_time == 30.5
    assert (the_lap.start_lat, the_lap.start_lng) == (45.0, -93.0)
    assert the_lap.total_calories is None
    assert the_lap.total_timer_time is None
    assert the_lap.end_lat is None


def test_lap_without_total_time_ends_at_last_trackpoint(text_file):
    path = text_file(document(activity(lap('12:00:00', [
        trackpoint('12:00:00', 45.0, -93.0),
        trackpoint('12:01:00', 45.0, -93.0),
    ]))))
    the_lap, = tcx.read(path).laps
    assert the_lap.timestamp == NOON + 60


def test_session(run_file):
    session = tcx.read(run_file).session

    assert session.start_time == NOON
    assert session.timestamp == NOON + 30
    assert session.start_position_lat == 45.0
    assert session.total_distance == 100.0
    assert session.total_elapsed_time == 30.5
    assert session.total_calories == 12.0
    assert session.max_speed == 6.5
    assert session.avg_heart_rate == 130.0
    assert session.total_ascent == 4.0
    # not in TCX
    assert session.total_work is None
    assert session.avg_temperature is None


def test_multiple_activities(text_file, caplog):
    first = activity(lap('12:00:00', [
        trackpoint('12:00:00', 45.0, -93.0, distance=0),
        trackpoint('12:00:10', 45.0, -93.1, distance=1000),
    ], total_time=10, distance=1000))
    second = activity(lap('13:00:00', [
        trackpoint('13:00:00', 46.0, -93.0, distance=0),
        trackpoint('13:00:10', 46.0, -93.1, distance=50),
    ], total_time=10, distance=50))
    path = text_file(document(first, second))

    with caplog.at_level(logging.WARNING, logger='runplotter.tcx._reading'):
        store = tcx.read(path)

    assert '2 activities' in caplog.text
    assert store.sample_count == 4 and store.lap_count == 2
    # distance starts over with each activity
    assert [s.speed for s in store.samples] == [None, 100.0, None, 5.0]
    assert store.session.total_distance == 50.0
    assert store.session.start_time == NOON + 3600


def test_empty_activity(text_file):
    store = tcx.read(text_file(document()))
    assert store.sample_count == 0
    assert store.session == SessionSummary()


@pytest.mark.parametrize('text', [
    '<gpx><trk></trk></gpx>',
    '<TrainingCenterDatabase><Activities>',
    'definitely not xml',
    '',
])
def test_tree_parse_failed(text_file, text):
    with pytest.raises(exceptions.TreeParseFailedError):
        tcx.read(text_file(text))


def test_open_failed(tmp_path):
    with pytest.raises(exceptions.OpenFailedError):
        tcx.read(str(tmp_path / 'missing.tcx'))


def test_capacity(run_file):
    store = RecordStore(sample_capacity=2)
    with pytest.raises(exceptions.CapacityExceededError):
        tcx.read(run_file, store=store)
    assert store.sample_count == 0


def test_lap_starts_at_its_first_kept_trackpoint(text_file):
    path = text_file(document(activity(
        lap('12:00:00', [
            trackpoint('12:00:00', 0.01, 0.02),       # no GPS lock yet
            trackpoint('12:00:10', 45.0, -93.0),
        ]),
        lap('12:00:10', [
            trackpoint('12:00:20', 0.0, 0.0),
        ]),
    )))
    first, second = tcx.read(path).laps
    assert (first.start_lat, first.start_lng) == (45.0, -93.0)
    assert (second.start_lat, second.start_lng) == (None, None)
