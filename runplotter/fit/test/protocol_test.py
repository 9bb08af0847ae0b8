#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Check the incremental decoder against files put together by `FitWriter`.

"""
import struct

import pytest

from conftest import (
    RECORD, UINT8, UINT16, UINT32, FitWriter, running_file)
from runplotter.fit._protocol import (
    CompressedTimestampHeader, DecodeStatus, FitDecoder, NormalHeader,
    crc16, read_message_header, resolve_compressed_timestamp)


def decode_all(data, chunk_size=8):
    """Feed `data` in chunks, draining after each; stop at a terminal
    status."""
    decoder = FitDecoder()
    messages = []
    for i in range(0, len(data), chunk_size):
        status = decoder.feed(data[i:i + chunk_size])
        while status is DecodeStatus.MESSAGE_AVAILABLE:
            messages.append(decoder.next_message())
            status = decoder.status
        if status.is_terminal:
            break
    return decoder, messages


def with_file_crc(body):
    return bytes(body) + struct.pack('<H', crc16(bytes(body)))


def test_crc16():
    assert crc16(b'') == 0
    assert crc16(b'123456789') == 0xBB3D   # CRC-16/ARC check value

    data = b'some bytes to check'
    assert crc16(struct.pack('<H', crc16(data)), crc16(data)) == 0


def test_message_headers():
    header = read_message_header(0x41)
    assert isinstance(header, NormalHeader)
    assert header.is_definition and header.local_message_type == 1
    assert not header.has_developer_data

    header = read_message_header(0x6F)
    assert header.is_definition and header.has_developer_data
    assert header.local_message_type == 15

    header = read_message_header(0xA7)   # 1 01 00111
    assert isinstance(header, CompressedTimestampHeader)
    assert not header.is_definition
    assert header.local_message_type == 1 and header.time_offset == 7


def test_messages_then_end_of_file():
    decoder, messages = decode_all(running_file().build())

    assert decoder.status is DecodeStatus.END_OF_FILE
    assert decoder.error is None
    assert [name for name, __ in messages] == [
        'file_id', 'record', 'record', 'record', 'lap']

    records = [fields for name, fields in messages if name == 'record']
    assert [f.value('timestamp') for f in records] == [1000, 1005, 1010]
    assert [f.value('distance') for f in records] == [0.0, 100.0, 250.0]
    assert records[1]['distance'] == 10000   # raw

    __, lap = messages[-1]
    assert lap.value('total_elapsed_time') == 10.0
    assert lap.definition('total_distance').base_type.name == 'uint32'


def test_version_info():
    decoder, __ = decode_all(running_file().build())
    assert decoder.protocol_version == 2.0
    assert decoder.profile_version == 20.93


@pytest.mark.parametrize('chunk_size', [1, 2, 3, 7, 8, 13, 64, 4096])
def test_chunk_boundaries_make_no_difference(chunk_size):
    data = running_file().build()
    __, want = decode_all(data, chunk_size=len(data))
    decoder, got = decode_all(data, chunk_size=chunk_size)

    assert decoder.status is DecodeStatus.END_OF_FILE
    assert ([(name, dict(fields)) for name, fields in got]
            == [(name, dict(fields)) for name, fields in want])


def test_twelve_byte_header():
    decoder, messages = decode_all(running_file().build())
    assert decoder.status is DecodeStatus.END_OF_FILE

    writer = running_file()
    writer.header_size = 12
    decoder, short = decode_all(writer.build())
    assert decoder.status is DecodeStatus.END_OF_FILE
    assert len(short) == len(messages)


def test_not_a_fit_file():
    decoder, messages = decode_all(b'<?xml version="1.0"?><gpx></gpx>')
    assert decoder.status is DecodeStatus.DATA_TYPE_NOT_SUPPORTED
    assert 'fit' in decoder.error
    assert messages == []


def test_short_input_waits_for_a_whole_header():
    decoder, messages = decode_all(b'<gpx/>')
    assert decoder.status is DecodeStatus.CONTINUE
    assert messages == []

    decoder.feed(b'<trk></trk></gpx>')
    assert decoder.status is DecodeStatus.DATA_TYPE_NOT_SUPPORTED


def test_protocol_version_too_new():
    writer = running_file()
    writer.protocol = 0x30   # 3.0
    decoder, __ = decode_all(writer.build())
    assert decoder.status is DecodeStatus.PROTOCOL_VERSION_NOT_SUPPORTED


def test_header_size_too_small():
    writer = running_file()
    writer.header_size = 10
    decoder, __ = decode_all(writer.build())
    assert decoder.status is DecodeStatus.ERROR


def test_header_crc():
    data = bytearray(running_file().build())
    data[12] ^= 0x01
    data[13] ^= 0x80
    decoder, __ = decode_all(bytes(data))
    assert decoder.status is DecodeStatus.ERROR

    # zero means "not computed"
    writer = running_file()
    body = bytearray(writer.header() + bytes(writer.records))
    body[12:14] = b'\x00\x00'
    decoder, __ = decode_all(with_file_crc(body))
    assert decoder.status is DecodeStatus.END_OF_FILE


def test_file_crc_mismatch_discards_queued_messages():
    decoder = FitDecoder()
    status = decoder.feed(running_file().build(corrupt_crc=True))

    assert status is DecodeStatus.ERROR
    assert decoder.status is DecodeStatus.ERROR
    assert 'CRC' in decoder.error
    with pytest.raises(LookupError):
        decoder.next_message()


def test_undefined_local_message():
    writer = FitWriter()
    writer.definition(0, RECORD, [(253, 4, UINT32)]).data(0, 1000)
    writer.records += bytes([0x03]) + bytes(4)   # local type 3 never defined
    decoder, messages = decode_all(writer.build())

    assert decoder.status is DecodeStatus.ERROR
    assert 'local message type' in decoder.error


def test_record_overruns_data_size():
    writer = running_file()
    decoder, __ = decode_all(writer.build(data_size=len(writer.records) - 2))
    assert decoder.status is DecodeStatus.ERROR


def test_truncated_file_keeps_asking_for_more():
    data = running_file().build()
    decoder, messages = decode_all(data[:-5])
    assert decoder.status is DecodeStatus.CONTINUE
    assert len(messages) == 4   # the lap never completes


def test_compressed_timestamps():
    writer = FitWriter()
    writer.definition(0, RECORD, [(253, 4, UINT32), (5, 4, UINT32)])
    writer.definition(1, RECORD, [(5, 4, UINT32)])

    writer.data(0, 1000, 0)                 # 1000 & 0x1F == 8
    writer.data(1, 100, time_offset=13)     # same 32 s window
    writer.data(1, 200, time_offset=2)      # rolled over
    decoder, messages = decode_all(writer.build())

    assert decoder.status is DecodeStatus.END_OF_FILE
    assert [f.value('timestamp') for __, f in messages] == [1000, 1005, 1026]
    assert decoder.last_timestamp == 1026


def test_resolve_compressed_timestamp():
    assert resolve_compressed_timestamp(1000, 13) == 1005
    assert resolve_compressed_timestamp(1005, 2) == 1026
    assert resolve_compressed_timestamp(0x3F, 0x1F) == 0x3F
    assert resolve_compressed_timestamp(0x3F, 0x00) == 0x40


def test_developer_fields_are_skipped():
    writer = FitWriter()
    writer.definition(0, RECORD, [(253, 4, UINT32), (3, 1, UINT8)],
                      developer_fields=[(0, 3, 0), (1, 2, 0)])
    writer.data(0, 1000, 150)
    writer.data(0, 1001, 151)
    decoder, messages = decode_all(writer.build())

    assert decoder.status is DecodeStatus.END_OF_FILE
    assert [f.value('heart_rate') for __, f in messages] == [150, 151]
    assert decoder.local_messages[0].developer_size == 5


def test_big_endian_fields():
    writer = FitWriter()
    writer.definition(0, RECORD, [(253, 4, UINT32), (2, 2, UINT16)],
                      big_endian=True)
    writer.data(0, 1000, 2600)
    decoder, messages = decode_all(writer.build())

    __, fields = messages[0]
    assert fields.value('timestamp') == 1000
    assert fields.value('altitude') == 20.0    # 2600 / 5 - 500


def test_sentinels_through_field_view():
    writer = FitWriter()
    writer.definition(0, RECORD, [(253, 4, UINT32), (3, 1, UINT8),
                                  (6, 2, UINT16)])
    writer.data(0, 1000, 0xFF, 0xFFFF)
    writer.data(0, 1001, 0xFE, 0xFFFE)
    __, messages = decode_all(writer.build())

    (__, missing), (__, present) = messages
    assert missing['heart_rate'] == 0xFF
    assert missing.value('heart_rate') is None
    assert missing.value('speed') is None
    assert missing.value('cadence') is None     # not in the message at all

    assert present.value('heart_rate') == 254
    assert present.value('speed') == pytest.approx(65.534)
    assert present.value('speed', convert=lambda v: v * 2) == (
        pytest.approx(131.068))


def test_unknown_messages_still_decode():
    writer = FitWriter()
    writer.definition(0, 9999, [(0, 2, UINT16)]).data(0, 42)
    decoder, messages = decode_all(writer.build())

    assert decoder.status is DecodeStatus.END_OF_FILE
    name, fields = messages[0]
    assert name == 'unknown'
    assert dict(fields) == {'unknown_0': 42}


def test_bytes_after_the_file_crc_are_ignored():
    decoder = FitDecoder()
    decoder.feed(running_file().build() + b'\x00\x01')
    while decoder.status is DecodeStatus.MESSAGE_AVAILABLE:
        decoder.next_message()

    assert decoder.status is DecodeStatus.END_OF_FILE
    assert decoder.trailing_bytes == 2
    assert decoder.feed(b'more') is DecodeStatus.END_OF_FILE
    assert decoder.trailing_bytes == 6


def test_nothing_to_drain():
    decoder = FitDecoder()
    assert decoder.status is DecodeStatus.CONTINUE
    with pytest.raises(LookupError):
        decoder.next_message()


def test_terminal_error_sticks():
    decoder = FitDecoder()
    assert decoder.feed(b'not a fit file at all') is (
        DecodeStatus.DATA_TYPE_NOT_SUPPORTED)
    assert decoder.feed(running_file().build()) is (
        DecodeStatus.DATA_TYPE_NOT_SUPPORTED)
