#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Fixtures shared by the test modules.

FIT files are put together in memory by `FitWriter`, CRCs and all, so the
tests don't need binary files checked in.

"""
import struct

import pytest

from runplotter.fit._profile import BASE_TYPES, BASE_TYPES_BY_NAME
from runplotter.fit._protocol import crc16


# base type numbers
ENUM = BASE_TYPES_BY_NAME['enum'].identifier
UINT8 = BASE_TYPES_BY_NAME['uint8'].identifier
SINT8 = BASE_TYPES_BY_NAME['sint8'].identifier
UINT16 = BASE_TYPES_BY_NAME['uint16'].identifier
SINT16 = BASE_TYPES_BY_NAME['sint16'].identifier
UINT32 = BASE_TYPES_BY_NAME['uint32'].identifier
SINT32 = BASE_TYPES_BY_NAME['sint32'].identifier
STRING = BASE_TYPES_BY_NAME['string'].identifier

# global message numbers
FILE_ID, SESSION, LAP, RECORD, EVENT, ACTIVITY = 0, 18, 19, 20, 21, 34

GARMIN_EPOCH_OFFSET = 631065600


class FitWriter:
    """Build a FIT file one record at a time.

        writer = FitWriter()
        writer.definition(0, RECORD, [(253, 4, UINT32)]).data(0, 1000)
        data = writer.build()
    """
    def __init__(self, *, header_size=14, protocol=0x20, profile=2093,
                 signature=b'.FIT'):
        self.header_size = header_size
        self.protocol = protocol
        self.profile = profile
        self.signature = signature
        self.records = bytearray()
        self.definitions = {}

    def definition(self, local, global_num, fields, *, big_endian=False,
                   developer_fields=()):
        """`fields` and `developer_fields` are (number, size, type) tuples."""
        endian = '>' if big_endian else '<'
        header = 0x40 | local | (0x20 if developer_fields else 0)

        record = bytearray([header, 0, 1 if big_endian else 0])
        record += struct.pack(endian + 'HB', global_num, len(fields))
        for field in fields:
            record += bytes(field)
        if developer_fields:
            record.append(len(developer_fields))
            for field in developer_fields:
                record += bytes(field)

        self.records += record
        self.definitions[local] = (fields, endian, developer_fields)
        return self

    def data(self, local, *values, time_offset=None):
        """One value per field of the local definition, in order.

        Developer field bytes are filled with zeros.
        """
        fields, endian, developer_fields = self.definitions[local]
        if time_offset is None:
            header = local
        else:
            header = 0x80 | (local << 5) | time_offset

        record = bytearray([header])
        for (__, size, base_type_num), value in zip(fields, values):
            record += pack_value(value, size, BASE_TYPES[base_type_num],
                                 endian)
        record += bytes(sum(size for __, size, __ in developer_fields))

        self.records += record
        return self

    def header(self, data_size=None):
        if data_size is None:
            data_size = len(self.records)
        header = struct.pack('<2BHI4s', self.header_size, self.protocol,
                             self.profile, data_size, self.signature)
        if self.header_size >= 14:
            header += struct.pack('<H', crc16(header))
        return header

    def build(self, *, data_size=None, corrupt_crc=False):
        body = self.header(data_size) + bytes(self.records)
        crc = crc16(body)
        if corrupt_crc:
            crc ^= 0xFFFF
        return body + struct.pack('<H', crc)


def pack_value(value, size, base_type, endian='<'):
    if base_type.name == 'string':
        return struct.pack('%s%ds' % (endian, size), value)
    n_values = size // base_type.size
    values = value if isinstance(value, (tuple, list)) else (value,)
    return struct.pack('%s%d%s' % (endian, n_values, base_type.fmt), *values)


def running_file(distances=(0, 10000, 25000), start=1000, step=5,
                 with_lap=True):
    """Records (distance in cm) every `step` seconds, then one lap."""
    writer = FitWriter()
    writer.definition(0, FILE_ID, [(0, 1, ENUM), (4, 4, UINT32)])
    writer.data(0, 4, start)

    writer.definition(1, RECORD, [(253, 4, UINT32), (5, 4, UINT32)])
    for i, distance in enumerate(distances):
        writer.data(1, start + i * step, distance)

    if with_lap:
        writer.definition(2, LAP, [(253, 4, UINT32), (9, 4, UINT32),
                                   (7, 4, UINT32)])
        end = start + (len(distances) - 1) * step
        writer.data(2, end, distances[-1], (end - start) * 1000)
    return writer


@pytest.fixture
def fit_writer():
    return FitWriter


@pytest.fixture
def fit_file(tmp_path):
    """Write FIT bytes to a temporary *.fit file and return its path."""
    def write(data, name='activity.fit'):
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return write


@pytest.fixture
def text_file(tmp_path):
    def write(text, name='activity.tcx'):
        path = tmp_path / name
        path.write_text(text, encoding='utf-8')
        return str(path)
    return write
