#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Implement the Flexible and Interoperable data Transfer (FIT) protocol, one
chunk of bytes at a time.

`FitDecoder` is fed arbitrary slices of a file and queues every data message
it manages to complete. The caller drains the queue before feeding the next
chunk. Everything the decoder remembers between chunks (the partial message
buffer, local message definitions, the last full timestamp for compressed
timestamp headers and the running CRC) lives on the instance, so a decoder
must never be shared between files.

TODO:
-----
    + chained FIT files (bytes after the first file CRC are ignored)
    + developer field values (their bytes are skipped)

"""
from collections import deque
from collections.abc import Mapping
from enum import Enum
from struct import unpack

from runplotter._types.records import MISSING
from runplotter.fit import _sentinel
from runplotter.fit._profile import (
    BASE_TYPE_BYTE, BASE_TYPES, BASE_TYPES_BY_NAME, GLOBAL_MESG_NUMS,
    MESSAGE_TYPES, TIMESTAMP_FIELD_NUM)


EMPTY_DICT = {}    # single instance to save some memory

SUPPORTED_PROTOCOL_MAJOR = 2

FILE_HEADER_MIN_SIZE = 12
CRC_SIZE = 2

CRC_TABLE = (
    0x0000, 0xCC01, 0xD801, 0x1400, 0xF001, 0x3C00, 0x2800, 0xE401,
    0xA001, 0x6C00, 0x7800, 0xB401, 0x5000, 0x9C01, 0x8801, 0x4400,
)


class DecodeStatus(Enum):
    CONTINUE = 'continue'                      # need more bytes
    MESSAGE_AVAILABLE = 'message available'    # drain with next_message()
    END_OF_FILE = 'end of file'
    ERROR = 'error'
    DATA_TYPE_NOT_SUPPORTED = 'data type not supported'
    PROTOCOL_VERSION_NOT_SUPPORTED = 'protocol version not supported'

    @property
    def is_terminal(self):
        return self not in (DecodeStatus.CONTINUE,
                            DecodeStatus.MESSAGE_AVAILABLE)


class FitProtocolError(Exception):
    """Raised internally; `FitDecoder` turns these into a `status`."""
    status = DecodeStatus.ERROR


class FileHeaderError(FitProtocolError):
    pass


class MessageHeaderError(FitProtocolError):
    pass


class CRCError(FitProtocolError):
    pass


class NotFitError(FitProtocolError):
    status = DecodeStatus.DATA_TYPE_NOT_SUPPORTED


class ProtocolVersionError(FitProtocolError):
    status = DecodeStatus.PROTOCOL_VERSION_NOT_SUPPORTED


def crc16(data, crc=0):
    """The FIT SDK's CRC-16, continuing from `crc`."""
    for byte in data:
        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[byte & 0xF]

        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[(byte >> 4) & 0xF]
    return crc


class FitMessageHeader:
    """From the FIT SDK release 20.03.00

    The record header is a one byte bit field. There are actually two types of
    record header: normal header and compressed timestamp header. The header
    type is indicated in the most significant bit (msb) of the record header.
    The normal header identifies whether the record is a definition or data
    message, and identifies the local message type. A compressed timestamp
    header is a special compressed header that may also be used with some
    local data messages to allow a compressed time format.
    """
    __slots__ = ('is_definition', 'has_developer_data',
                 'local_message_type', 'time_offset')


class NormalHeader(FitMessageHeader):
    """From the FIT SDK release 20.03.00

    Normal Header Bit Field Description
    -----------------------------------

    =====  =============  ========================
    Bit        Value      Description
    =====  =============  ========================
      7          0        Normal header
      6        0 or 1     Message type:
                            1: definition message
                            0: data message
      5     0 (default)   Message type specific
                            (developer data flag)
      4          0        Reserved
     0-3        0-15      Local message type
    =====  =============  ========================
    """
    __slots__ = tuple()

    def __init__(self, header_byte):
        self.is_definition = bool(header_byte & 0x40)
        self.has_developer_data = self.is_definition and bool(
            header_byte & 0x20)
        # `local_message_type` is the key (int) for the definition
        # associated with this message
        self.local_message_type = header_byte & 0xF    # bits 0-3
        self.time_offset = None


class CompressedTimestampHeader(FitMessageHeader):
    """From the FIT SDK release 20.03.00

    =====  =============  ========================
    Bit        Value      Description
    =====  =============  ========================
      7          1        Compressed timestamp
     5-6        0-3       Local message type
     0-4        0-31      Time offset (seconds)
    =====  =============  ========================

    NOTE: this type of record header is used for a *data message only*.
    """
    __slots__ = tuple()

    def __init__(self, header_byte):
        self.is_definition = False
        self.has_developer_data = False
        self.local_message_type = (header_byte >> 5) & 0x3   # bits 5-6
        self.time_offset = header_byte & 0x1F                # bits 0-4


def read_message_header(header_byte):
    # A value of 0 in bit 7 indicates that this is a normal header.
    header_cls = (CompressedTimestampHeader if (header_byte & 0x80) else
                  NormalHeader)
    return header_cls(header_byte)


def resolve_compressed_timestamp(last_timestamp, time_offset):
    """Rebuild a full timestamp from the 5 bit offset of a compressed header.

    The offset holds the low 5 bits of the new timestamp; a rollover is
    assumed whenever it is smaller than the low bits of the last timestamp.
    """
    timestamp = (last_timestamp & ~0x1F) + time_offset
    if time_offset < (last_timestamp & 0x1F):
        timestamp += 0x20
    return timestamp


class FieldDefinition:
    """From the FIT SDK release 20.03.00

    Field Definition Contents
    -------------------------

    ======  =================  ===============================================
     Byte    Name               Description
    ======  =================  ===============================================
      0     Field definition   Defined in the global FIT profile for the
            number             specified FIT message.
      1     Size               Size (in bytes) of the specified FIT message's
                               field.
      2     Base type          Base type of the specified FIT message's field.
    ======  =================  ===============================================

    """
    __slots__ = ('def_num', 'size', 'base_type', 'data', 'name')

    def __init__(self, def_num, size, base_type_num, message_type):
        base_type = BASE_TYPES.get(base_type_num, BASE_TYPE_BYTE)
        if size % base_type.size:
            base_type = BASE_TYPE_BYTE   # what the SDK does too

        self.def_num, self.size, self.base_type = def_num, size, base_type
        self.data = message_type.get(def_num, EMPTY_DICT)
        self.name = self.data.get('field_name', 'unknown_%d' % def_num)

    @classmethod
    def _from_bytes(cls, raw, message_type):
        # NOTE: reading single bytes, so no need to apply endianness here.
        return cls(*unpack('<3B', raw), message_type=message_type)

    @property
    def n_values(self):
        return self.size // self.base_type.size

    def fmt(self, endian):
        """Format for struct.unpacking."""
        if self.base_type.name == 'string':
            return '%s%ds' % (endian, self.size)
        return '%s%d%s' % (endian, self.n_values, self.base_type.fmt)

    def unpack(self, raw, endian):
        """Raw value(s) of this field; arrays come back as tuples."""
        values = unpack(self.fmt(endian), raw)
        return values[0] if len(values) == 1 else values


TIMESTAMP_DEF = FieldDefinition(
    TIMESTAMP_FIELD_NUM, 4, BASE_TYPES_BY_NAME['uint32'].identifier,
    {TIMESTAMP_FIELD_NUM: {'field_name': 'timestamp', 'units': 's'}})


class DefinitionMessage:
    """From the FIT SDK release 20.03.00

    The definition message is used to create an association between the local
    message type contained in the record header, and a Global Message Number
    that relates to the global FIT message.


    Definition Message Contents
    ---------------------------

    ======  =======================  =============  ===========================
    Byte    Description                 Length      Value
    (bytes)
    ======  =======================  =============  ===========================
      0     Reserved                       1         0
      1     Architecture                   1         0 or 1
                                                       0: little endian
                                                       1: big endian
     2-3    Global message number          2         Unique to each message
      4     Fields                         1         Number of fields in the
                                                     data message
      5     Field definition(s)            3         See table below
     ...                              (per field)
    ======  =======================  =============  ===========================

    Developer field definitions follow when the header says so: a count byte,
    then 3 bytes (number, size, developer data index) per field.
    """
    __slots__ = ('header', 'endian', 'global_mesg_num', 'name',
                 'field_defs', 'developer_size')

    def __init__(self, header, raw):
        self.header = header

        __, architecture = unpack('<2B', raw[:2])   # ignore reserved
        if architecture not in (0, 1):
            raise MessageHeaderError(
                'invalid architecture (%d)' % architecture)
        self.endian = '>' if architecture else '<'

        self.global_mesg_num, field_count = unpack(self.endian + 'HB',
                                                   raw[2:5])
        self.name = GLOBAL_MESG_NUMS.get(self.global_mesg_num, 'unknown')
        message_type = MESSAGE_TYPES.get(self.name, EMPTY_DICT)

        offset = 5
        self.field_defs = []
        for _ in range(field_count):
            self.field_defs.append(FieldDefinition._from_bytes(
                raw[offset:offset + 3], message_type))
            offset += 3

        self.developer_size = 0
        if header.has_developer_data:
            developer_count = raw[offset]
            offset += 1
            for _ in range(developer_count):
                self.developer_size += raw[offset + 1]   # size byte
                offset += 3

    @property
    def size(self):
        """Bytes of content in each associated data message."""
        return (sum(field_def.size for field_def in self.field_defs)
                + self.developer_size)


class FieldView(Mapping):
    """Read-only view of a data message: field name --> raw value.

    Raw values are exactly as unpacked, sentinels included. Use `value` to
    get a checked, scaled value out.
    """
    __slots__ = ('_fields',)

    def __init__(self, fields):
        self._fields = fields   # name --> (raw, FieldDefinition)

    def __getitem__(self, name):
        return self._fields[name][0]

    def __iter__(self):
        return iter(self._fields)

    def __len__(self):
        return len(self._fields)

    def __repr__(self):
        return 'FieldView(%r)' % dict(self)

    def definition(self, name):
        return self._fields[name][1]

    def value(self, name, convert=None):
        """Check-then-convert a field.

        The raw value is compared to its base type's sentinel first. Only if
        it is a real measurement is the profile's scale/offset applied,
        followed by `convert`.

        Returns
        -------
        ``None`` if the field is absent or holds its "no data" value.
        """
        try:
            raw, field_def = self._fields[name]
        except KeyError:
            return MISSING

        def scale(x):
            x = apply_scale_offset(field_def, x)
            return convert(x) if convert is not None else x

        return _sentinel.checked(raw, field_def.base_type, scale)

    def first_value(self, *names, convert=None):
        """`value` of the first of `names` that is present."""
        for name in names:
            value = self.value(name, convert)
            if value is not MISSING:
                return value
        return MISSING


class DataMessage:
    """The useful part of a *.fit file.

    The header identifies an associated definition message. We pull the
    field definitions from that message and use them to parse the content.
    """
    __slots__ = ('header', 'name', 'global_mesg_num', 'fields',
                 'raw_timestamp')

    def __init__(self, header, definition, raw):
        self.header = header
        self.name = definition.name
        self.global_mesg_num = definition.global_mesg_num
        self.raw_timestamp = None

        fields = {}
        offset = 0
        for field_def in definition.field_defs:
            value = field_def.unpack(raw[offset:offset + field_def.size],
                                     definition.endian)
            offset += field_def.size
            fields[field_def.name] = (value, field_def)

            if (field_def.def_num == TIMESTAMP_FIELD_NUM
                    and not _sentinel.is_sentinel(value, field_def.base_type)):
                self.raw_timestamp = value
        # Developer data (if any) is left unread at the end of `raw`.

        self.fields = FieldView(fields)

    def set_timestamp(self, raw_timestamp):
        """Attach a timestamp rebuilt from a compressed header."""
        self.raw_timestamp = raw_timestamp
        self.fields._fields['timestamp'] = (raw_timestamp, TIMESTAMP_DEF)


def apply_scale_offset(field_def, field_value):
    """From the FIT SDK release 20.03.00

    The FIT SDK supports applying a scale or offset to binary fields. This
    allows efficient representation of values within a particular range and
    provides a convenient method for representing floating point values in
    integer systems. A scale or offset may be specified in the FIT profile for
    binary fields (sint/uint etc.) only. When specified, the binary quantity
    is divided by the scale factor and then the offset is subtracted, yielding
    a floating point quantity.
    """
    scale = field_def.data.get('scale', 1)
    offset = field_def.data.get('offset', 0)
    if scale == 1 and offset == 0:
        return field_value
    return field_value / scale - offset


class FitDecoder:
    """Incremental FIT decoder.

    Usage::

        status = decoder.feed(chunk)
        while status is DecodeStatus.MESSAGE_AVAILABLE:
            tag, fields = decoder.next_message()
            ...
            status = decoder.status

    Attributes
    ----------
    status : DecodeStatus
        Where decoding stands. Terminal once an error is hit.
    error : str or None
        Diagnostic for an error status.
    local_messages : dict
        Definition messages by local message type.
    last_timestamp : int or None
        Last full (raw) timestamp seen, for compressed timestamp headers.
    protocol_version, profile_version : float
        File version information taken from the file header.
    trailing_bytes : int
        Bytes received after the file CRC, which are ignored.
    """
    def __init__(self):
        self.status = DecodeStatus.CONTINUE
        self.error = None
        self.local_messages = {}
        self.last_timestamp = None
        self.protocol_version = self.profile_version = None
        self.trailing_bytes = 0

        self._buffer = bytearray()
        self._messages = deque()
        self._state = self._read_file_header
        self._bytes_left = 0     # of the data section
        self._crc = 0
        self._failed = None
        self._finished = False

    def feed(self, chunk):
        """Supply the next bytes of the file and decode as far as possible."""
        if self._failed is not None:
            pass
        elif self._finished:
            self.trailing_bytes += len(chunk)
        else:
            self._buffer.extend(chunk)
            try:
                self._advance()
            except FitProtocolError as e:
                self._fail(e)

        return self._update_status()

    def next_message(self):
        """Pop the oldest complete data message.

        Returns
        -------
        (str, FieldView)
            Message name from the profile ('unknown' if it isn't in there)
            and its fields.
        """
        if self._failed is not None or not self._messages:
            raise LookupError('no message available')

        message = self._messages.popleft()
        self._update_status()
        return message.name, message.fields

    def _update_status(self):
        if self._failed is not None:
            self.status = self._failed
        elif self._messages:
            self.status = DecodeStatus.MESSAGE_AVAILABLE
        elif self._finished:
            self.status = DecodeStatus.END_OF_FILE
        else:
            self.status = DecodeStatus.CONTINUE
        return self.status

    def _fail(self, error):
        self._failed = error.status
        self.error = str(error)
        self._messages.clear()     # no partial results
        self._buffer.clear()

    def _advance(self):
        # Each state returns True if it made progress and we should go on.
        while self._state is not None and self._state():
            pass

    def _take(self, size):
        raw = bytes(self._buffer[:size])
        del self._buffer[:size]
        self._crc = crc16(raw, self._crc)
        return raw

    def _set_version_info(self, prot, prof):
        """Decode version info the same way the FIT SDK does."""
        self.protocol_version = float(
            '{:d}.{:d}'.format(prot >> 4, prot & ((1 << 4) - 1)))
        self.profile_version = float(
            '{:d}.{:02d}'.format(prof // 100, prof % 100))

    def _read_file_header(self):
        """Check the file header once enough of it has arrived.

        The signature can't be checked until the first 12 bytes are in, so
        a shorter stream of any kind just waits for more.
        """
        buf = self._buffer
        if len(buf) < FILE_HEADER_MIN_SIZE:
            return False

        if bytes(buf[8:12]) != b'.FIT':
            raise NotFitError("this doesn't look like a fit file!")

        header_size = buf[0]
        if header_size < FILE_HEADER_MIN_SIZE:
            raise FileHeaderError('irregular file header size')

        if buf[1] >> 4 > SUPPORTED_PROTOCOL_MAJOR:
            raise ProtocolVersionError(
                'protocol version %d.%d not supported'
                % (buf[1] >> 4, buf[1] & 0xF))

        if len(buf) < header_size:
            return False

        header = self._take(header_size)

        # Larger fields are explicitly little endian from SDK.
        __, prot, prof, data_size = unpack('<2BHI', header[:8])
        self._set_version_info(prot, prof)

        if header_size >= 14:
            header_crc, = unpack('<H', header[12:14])
            # Zero means the writer didn't bother.
            if header_crc and header_crc != crc16(header[:12]):
                raise CRCError('file header CRC mismatch')

        self._bytes_left = data_size
        self._state = self._read_record
        return True

    def _definition_size(self, header):
        """Total record size of a definition message, if we can tell yet."""
        buf = self._buffer
        if len(buf) < 6:
            return None

        size = 6 + 3 * buf[5]
        if header.has_developer_data:
            if len(buf) < size + 1:
                return None
            size += 1 + 3 * buf[size]
        return size

    def _read_record(self):
        if self._bytes_left <= 0:
            self._state = self._read_file_crc
            return True

        buf = self._buffer
        if not buf:
            return False

        header = read_message_header(buf[0])

        if header.is_definition:
            size = self._definition_size(header)
            if size is None:
                return False
        else:
            definition = self.local_messages.get(header.local_message_type)
            if definition is None:
                raise MessageHeaderError('invalid local message type (%d)' %
                                         header.local_message_type)
            size = 1 + definition.size

        if size > self._bytes_left:
            raise MessageHeaderError('message overruns the data section')

        if len(buf) < size:
            return False

        raw = self._take(size)
        self._bytes_left -= size

        if header.is_definition:
            # Save this local message.
            self.local_messages[header.local_message_type] = (
                DefinitionMessage(header, raw[1:]))
        else:
            self._messages.append(self._data_message(header, definition,
                                                     raw[1:]))
        return True

    def _data_message(self, header, definition, raw):
        message = DataMessage(header, definition, raw)

        if header.time_offset is not None:
            if self.last_timestamp is not None:
                self.last_timestamp = resolve_compressed_timestamp(
                    self.last_timestamp, header.time_offset)
                message.set_timestamp(self.last_timestamp)
        elif message.raw_timestamp is not None:
            self.last_timestamp = message.raw_timestamp

        return message

    def _read_file_crc(self):
        if len(self._buffer) < CRC_SIZE:
            return False

        expected = self._crc
        file_crc, = unpack('<H', bytes(self._buffer[:CRC_SIZE]))
        del self._buffer[:CRC_SIZE]

        if file_crc != expected:
            raise CRCError('file CRC mismatch')

        self.trailing_bytes += len(self._buffer)
        self._buffer.clear()
        self._finished = True
        self._state = None
        return False
