#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions for this package.

Every exception here is terminal for a decode call: nothing is retried and no
partially filled record store is handed back to the caller.

"""


class RunPlotterError(Exception):
    """Base exception."""
    _default_message = ''
    kind = 'Error'

    def __init__(self, message=None):
        super().__init__(message if message else self._default_message)


class OpenFailedError(RunPlotterError):
    _default_message = 'unable to open the source file'
    kind = 'OpenFailed'


class MalformedStreamError(RunPlotterError):
    _default_message = 'error decoding file'
    kind = 'MalformedStream'


class UnsupportedFormatError(RunPlotterError):
    _default_message = 'file format not supported'
    kind = 'UnsupportedFormat'

    def __init__(self, fmt=None, message=None):
        if message is None and fmt is not None:
            determiner = 'an' if fmt[0] in 'aeiou' else 'a'   # grammar
            message = "this doesn't look like %s %s file!" % (determiner, fmt)
        super().__init__(message)


class UnsupportedVersionError(RunPlotterError):
    _default_message = 'protocol version not supported'
    kind = 'UnsupportedVersion'


class TruncatedStreamError(RunPlotterError):
    _default_message = 'unexpected end of file'
    kind = 'TruncatedStream'


class CapacityExceededError(RunPlotterError):
    kind = 'CapacityExceeded'

    def __init__(self, what, capacity):
        message = 'more than %d %ss in this file' % (capacity, what)
        super().__init__(message)
        self.what, self.capacity = what, capacity


class TreeParseFailedError(RunPlotterError):
    _default_message = 'unable to parse the activity tree'
    kind = 'TreeParseFailed'
