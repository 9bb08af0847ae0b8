#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Translate the `_protocol` module functionality into this package's records.

The file is fed to a `FitDecoder` in small chunks. After every chunk all of
the messages it completed are drained and dispatched by name before the next
chunk goes in.

"""
import logging
from collections import Counter

from runplotter._types import (
    MISSING, SESSION_FIELDS, LapRecord, RecordStore, SampleRecord,
    SessionSummary)
from runplotter._types.store import (
    DEFAULT_LAP_CAPACITY, DEFAULT_SAMPLE_CAPACITY)
from runplotter._util import drydoc, exceptions
from runplotter._util.conversions import (
    garmin_epoch_to_unix, semicircles_to_degrees)
from runplotter.fit._protocol import DecodeStatus, FitDecoder


logger = logging.getLogger(__name__)

CHUNK_SIZE = 8   # bytes per feed

STATUS_ERRORS = {
    DecodeStatus.ERROR: exceptions.MalformedStreamError,
    DecodeStatus.DATA_TYPE_NOT_SUPPORTED: exceptions.UnsupportedFormatError,
    DecodeStatus.PROTOCOL_VERSION_NOT_SUPPORTED:
        exceptions.UnsupportedVersionError,
}

TIMESTAMP_FIELDS = ('timestamp', 'start_time')

POSITION_FIELDS = ('start_position_lat', 'start_position_long',
                   'nec_lat', 'nec_long', 'swc_lat', 'swc_long')

# Session fields with an "enhanced" (wider) variant that takes precedence.
ENHANCED_FIELDS = ('avg_speed', 'max_speed',
                   'avg_altitude', 'max_altitude', 'min_altitude')


def _session_source(name):
    """(FIT field names to try, conversion) for a `SessionSummary` field."""
    if name in TIMESTAMP_FIELDS:
        return (name,), garmin_epoch_to_unix
    if name in POSITION_FIELDS:
        return (name,), semicircles_to_degrees
    if name in ENHANCED_FIELDS:
        return ('enhanced_' + name, name), None
    return (name,), None


SESSION_SOURCES = {name: _session_source(name) for name in SESSION_FIELDS}


def derived_speed(previous, sample):
    """Speed from the distance covered since the previous sample.

    Returns
    -------
    ``None`` if there is no previous sample, either distance is missing or
    no time has passed.
    """
    if previous is None:
        return MISSING
    if previous.distance is MISSING or sample.distance is MISSING:
        return MISSING

    dt = sample.timestamp - previous.timestamp
    if dt <= 0:
        return MISSING
    return (sample.distance - previous.distance) / dt


class FitExtractor:
    """Turn decoded messages into records, by message name.

    A message named ``X`` is handled by an ``on_X`` method if there is one,
    and ignored otherwise (file_id, user_profile, event, device_info and
    anything the profile doesn't know).
    """
    def __init__(self, store):
        self.store = store
        self.counts = Counter()
        self.skipped = Counter()
        self.session_seen = False

    def dispatch(self, name, fields):
        self.counts[name] += 1
        handler = getattr(self, 'on_' + name, None)
        if handler is not None:
            handler(fields)
        elif self.counts[name] == 1:
            logger.debug('ignoring %s messages', name)

    def on_session(self, fields):
        if self.session_seen:
            logger.warning('more than one session in this file; '
                           'keeping the first')
            return
        self.session_seen = True

        values = {}
        for name, (sources, convert) in SESSION_SOURCES.items():
            values[name] = fields.first_value(*sources, convert=convert)
        self.store.session = SessionSummary(**values)

    def on_activity(self, fields):
        # Only used to show local times; stored timestamps stay UTC.
        timestamp = fields.value('timestamp')
        local_timestamp = fields.value('local_timestamp')
        if timestamp is not MISSING and local_timestamp is not MISSING:
            self.store.utc_offset = local_timestamp - timestamp

    def on_lap(self, fields):
        timestamp = fields.value('timestamp', garmin_epoch_to_unix)
        if timestamp is MISSING:
            self.skipped['lap'] += 1
            logger.debug('skipping lap without a timestamp')
            return

        self.store.append_lap(LapRecord(
            timestamp=timestamp,
            start_lat=fields.value('start_position_lat',
                                   semicircles_to_degrees),
            start_lng=fields.value('start_position_long',
                                   semicircles_to_degrees),
            end_lat=fields.value('end_position_lat', semicircles_to_degrees),
            end_lng=fields.value('end_position_long', semicircles_to_degrees),
            total_distance=fields.value('total_distance'),
            total_calories=fields.value('total_calories'),
            total_elapsed_time=fields.value('total_elapsed_time'),
            total_timer_time=fields.value('total_timer_time'),
        ))

    def on_record(self, fields):
        timestamp = fields.value('timestamp', garmin_epoch_to_unix)
        if timestamp is MISSING:
            self.skipped['record'] += 1
            logger.debug('skipping record without a timestamp')
            return

        sample = SampleRecord(
            timestamp=timestamp,
            latitude=fields.value('position_lat', semicircles_to_degrees),
            longitude=fields.value('position_long', semicircles_to_degrees),
            speed=fields.first_value('enhanced_speed', 'speed'),
            distance=fields.value('distance'),
            altitude=fields.first_value('enhanced_altitude', 'altitude'),
            cadence=fields.value('cadence'),
            heart_rate=fields.value('heart_rate'),
        )
        if sample.speed is MISSING:
            sample = sample._replace(
                speed=derived_speed(self.store.last_sample, sample))

        self.store.append_sample(sample)


def decode_stream(stream, store, *, chunk_size=CHUNK_SIZE):
    """Decode a binary file object into `store`.

    Raises
    ------
    MalformedStreamError, UnsupportedFormatError, UnsupportedVersionError
        When the decoder gives up on the stream.
    TruncatedStreamError
        If the stream runs dry before the file CRC. That includes anything
        shorter than a file header, FIT or not.
    CapacityExceededError
        If `store` can't take all the samples or laps.
    """
    decoder = FitDecoder()
    extractor = FitExtractor(store)

    status = DecodeStatus.CONTINUE
    while status is not DecodeStatus.END_OF_FILE:
        chunk = stream.read(chunk_size)
        if not chunk:
            raise exceptions.TruncatedStreamError()

        status = decoder.feed(chunk)
        while status is DecodeStatus.MESSAGE_AVAILABLE:
            extractor.dispatch(*decoder.next_message())
            status = decoder.status

        if status in STATUS_ERRORS:
            raise STATUS_ERRORS[status](message=decoder.error)

    logger.debug('decoded messages: %s', dict(extractor.counts))
    if extractor.skipped:
        logger.debug('skipped messages: %s', dict(extractor.skipped))
    return store


@drydoc.read
def read(file_path, *, sample_capacity=DEFAULT_SAMPLE_CAPACITY,
         lap_capacity=DEFAULT_LAP_CAPACITY, store=None,
         chunk_size=CHUNK_SIZE):
    if store is None:
        store = RecordStore(sample_capacity, lap_capacity)

    try:
        stream = open(file_path, 'rb')
    except OSError as e:
        store.clear()
        raise exceptions.OpenFailedError(
            'unable to open %s: %s' % (file_path, e.strerror)) from e

    with stream, store.filling():
        decode_stream(stream, store, chunk_size=chunk_size)

    return store
