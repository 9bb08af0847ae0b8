#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The slice of the FIT global profile this package understands.

Base types are straight from the FIT SDK. Message and field definitions are
limited to the messages a running activity file is made of; anything else
decodes as 'unknown' and gets ignored by the readers.

Field entries follow the SDK's Profile.xlsx: `field_name`, and optionally
`scale`, `offset` and `units`. Scaled values are ``raw / scale - offset``.

"""
import struct


class BaseType:
    __slots__ = ('name', 'identifier', 'fmt', 'invalid')

    def __init__(self, **kwargs):
        for name, value in kwargs.items():
            setattr(self, name, value)

    def __repr__(self):
        return '<BaseType %s>' % self.name

    @property
    def size(self):
        return struct.calcsize(self.fmt)

    @property
    def type_num(self):
        return self.identifier & 0x1F


NAN = float('nan')

BASE_TYPE_BYTE = BaseType(name='byte', identifier=0x0D, fmt='B', invalid=0xFF)

# `invalid` is the value a device writes when it has nothing to record.
BASE_TYPES = {
    0x00: BaseType(name='enum',    identifier=0x00, fmt='B', invalid=0xFF),
    0x01: BaseType(name='sint8',   identifier=0x01, fmt='b', invalid=0x7F),
    0x02: BaseType(name='uint8',   identifier=0x02, fmt='B', invalid=0xFF),
    0x83: BaseType(name='sint16',  identifier=0x83, fmt='h', invalid=0x7FFF),
    0x84: BaseType(name='uint16',  identifier=0x84, fmt='H', invalid=0xFFFF),
    0x85: BaseType(name='sint32',  identifier=0x85, fmt='i', invalid=0x7FFFFFFF),
    0x86: BaseType(name='uint32',  identifier=0x86, fmt='I', invalid=0xFFFFFFFF),
    0x07: BaseType(name='string',  identifier=0x07, fmt='s', invalid=b''),
    0x88: BaseType(name='float32', identifier=0x88, fmt='f', invalid=NAN),
    0x89: BaseType(name='float64', identifier=0x89, fmt='d', invalid=NAN),
    0x0A: BaseType(name='uint8z',  identifier=0x0A, fmt='B', invalid=0x0),
    0x8B: BaseType(name='uint16z', identifier=0x8B, fmt='H', invalid=0x0),
    0x8C: BaseType(name='uint32z', identifier=0x8C, fmt='I', invalid=0x0),
    0x0D: BASE_TYPE_BYTE,
    0x8E: BaseType(name='sint64',  identifier=0x8E, fmt='q', invalid=0x7FFFFFFFFFFFFFFF),
    0x8F: BaseType(name='uint64',  identifier=0x8F, fmt='Q', invalid=0xFFFFFFFFFFFFFFFF),
    0x90: BaseType(name='uint64z', identifier=0x90, fmt='Q', invalid=0x0),
}

BASE_TYPES_BY_NAME = {bt.name: bt for bt in BASE_TYPES.values()}


GLOBAL_MESG_NUMS = {
    0: 'file_id',
    3: 'user_profile',
    18: 'session',
    19: 'lap',
    20: 'record',
    21: 'event',
    23: 'device_info',
    34: 'activity',
}

MESG_NUMS_BY_NAME = {name: num for num, name in GLOBAL_MESG_NUMS.items()}

TIMESTAMP_FIELD_NUM = 253


def _timestamp():
    return {'field_name': 'timestamp', 'units': 's'}


def _semicircles(name):
    return {'field_name': name, 'units': 'semicircles'}


def _altitude(name):
    return {'field_name': name, 'scale': 5, 'offset': 500, 'units': 'm'}


def _scaled(name, scale, units):
    return {'field_name': name, 'scale': scale, 'units': units}


def _plain(name, units=''):
    return {'field_name': name, 'units': units} if units else {
        'field_name': name}


MESSAGE_TYPES = {
    'file_id': {
        0: _plain('type'),
        1: _plain('manufacturer'),
        2: _plain('product'),
        3: _plain('serial_number'),
        4: _plain('time_created', 's'),
        5: _plain('number'),
    },
    'user_profile': {
        254: _plain('message_index'),
        1: _plain('gender'),
        2: _plain('age', 'years'),
        3: _scaled('height', 100, 'm'),
        4: _scaled('weight', 10, 'kg'),
    },
    'session': {
        254: _plain('message_index'),
        253: _timestamp(),
        0: _plain('event'),
        1: _plain('event_type'),
        2: _plain('start_time', 's'),
        3: _semicircles('start_position_lat'),
        4: _semicircles('start_position_long'),
        5: _plain('sport'),
        6: _plain('sub_sport'),
        7: _scaled('total_elapsed_time', 1000, 's'),
        8: _scaled('total_timer_time', 1000, 's'),
        9: _scaled('total_distance', 100, 'm'),
        10: _plain('total_cycles', 'cycles'),
        11: _plain('total_calories', 'kcal'),
        13: _plain('total_fat_calories', 'kcal'),
        14: _scaled('avg_speed', 1000, 'm/s'),
        15: _scaled('max_speed', 1000, 'm/s'),
        16: _plain('avg_heart_rate', 'bpm'),
        17: _plain('max_heart_rate', 'bpm'),
        18: _plain('avg_cadence', 'rpm'),
        19: _plain('max_cadence', 'rpm'),
        20: _plain('avg_power', 'watts'),
        21: _plain('max_power', 'watts'),
        22: _plain('total_ascent', 'm'),
        23: _plain('total_descent', 'm'),
        24: _scaled('total_training_effect', 10, ''),
        25: _plain('first_lap_index'),
        26: _plain('num_laps'),
        28: _plain('trigger'),
        29: _semicircles('nec_lat'),
        30: _semicircles('nec_long'),
        31: _semicircles('swc_lat'),
        32: _semicircles('swc_long'),
        48: _plain('total_work', 'J'),
        49: _altitude('avg_altitude'),
        50: _altitude('max_altitude'),
        57: _plain('avg_temperature', 'C'),
        58: _plain('max_temperature', 'C'),
        59: _scaled('total_moving_time', 1000, 's'),
        64: _plain('min_heart_rate', 'bpm'),
        69: _scaled('avg_lap_time', 1000, 's'),
        71: _altitude('min_altitude'),
        124: _scaled('enhanced_avg_speed', 1000, 'm/s'),
        125: _scaled('enhanced_max_speed', 1000, 'm/s'),
        126: _altitude('enhanced_avg_altitude'),
        127: _altitude('enhanced_min_altitude'),
        128: _altitude('enhanced_max_altitude'),
        137: _scaled('total_anaerobic_training_effect', 10, ''),
    },
    'lap': {
        254: _plain('message_index'),
        253: _timestamp(),
        0: _plain('event'),
        1: _plain('event_type'),
        2: _plain('start_time', 's'),
        3: _semicircles('start_position_lat'),
        4: _semicircles('start_position_long'),
        5: _semicircles('end_position_lat'),
        6: _semicircles('end_position_long'),
        7: _scaled('total_elapsed_time', 1000, 's'),
        8: _scaled('total_timer_time', 1000, 's'),
        9: _scaled('total_distance', 100, 'm'),
        10: _plain('total_cycles', 'cycles'),
        11: _plain('total_calories', 'kcal'),
        13: _scaled('avg_speed', 1000, 'm/s'),
        14: _scaled('max_speed', 1000, 'm/s'),
        15: _plain('avg_heart_rate', 'bpm'),
        16: _plain('max_heart_rate', 'bpm'),
        17: _plain('avg_cadence', 'rpm'),
        18: _plain('max_cadence', 'rpm'),
        21: _plain('total_ascent', 'm'),
        22: _plain('total_descent', 'm'),
        24: _plain('lap_trigger'),
        25: _plain('sport'),
    },
    'record': {
        253: _timestamp(),
        0: _semicircles('position_lat'),
        1: _semicircles('position_long'),
        2: _altitude('altitude'),
        3: _plain('heart_rate', 'bpm'),
        4: _plain('cadence', 'rpm'),
        5: _scaled('distance', 100, 'm'),
        6: _scaled('speed', 1000, 'm/s'),
        7: _plain('power', 'watts'),
        13: _plain('temperature', 'C'),
        73: _scaled('enhanced_speed', 1000, 'm/s'),
        78: _altitude('enhanced_altitude'),
    },
    'event': {
        253: _timestamp(),
        0: _plain('event'),
        1: _plain('event_type'),
        3: _plain('data'),
        4: _plain('event_group'),
    },
    'device_info': {
        253: _timestamp(),
        0: _plain('device_index'),
        1: _plain('device_type'),
        2: _plain('manufacturer'),
        3: _plain('serial_number'),
        4: _plain('product'),
        5: _scaled('software_version', 100, ''),
    },
    'activity': {
        253: _timestamp(),
        0: _scaled('total_timer_time', 1000, 's'),
        1: _plain('num_sessions'),
        2: _plain('type'),
        3: _plain('event'),
        4: _plain('event_type'),
        5: _plain('local_timestamp', 's'),
        6: _plain('event_group'),
    },
}
