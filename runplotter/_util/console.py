#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Terminal output for the command line tool.

Escape codes are only added when the stream is a terminal, so redirected
output stays clean.

"""
import sys


ANSI_CODES = {
    'title': '\033[95m',
    'warn': '\033[93m',
    'fail': '\033[91m',
    'bold': '\033[1m',
}
RESET = '\033[0m'


def is_terminal(stream):
    isatty = getattr(stream, 'isatty', None)
    return isatty is not None and isatty()


def styled(text, *styles, stream=None):
    """Wrap `text` in ANSI escape codes if `stream` is a terminal.

    Parameters
    ----------
    text : str
    *styles : str
        Keys of `ANSI_CODES`.
    stream : file, optional
        Where the text is going; stdout by default.
    """
    stream = sys.stdout if stream is None else stream
    if not styles or not is_terminal(stream):
        return text
    return ''.join(ANSI_CODES[s] for s in styles) + text + RESET


def report_failure(kind, message, stream=None):
    """One line on stderr (by default): ``kind: message``."""
    stream = sys.stderr if stream is None else stream
    print(styled('%s: %s' % (kind, message), 'fail', stream=stream),
          file=stream)
