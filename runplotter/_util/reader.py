#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from importlib import import_module
from os.path import splitext

from runplotter._util.exceptions import UnsupportedFormatError


SUPPORTED_FORMATS = ('fit', 'tcx')

MODULE_CACHE = {}


def reader_module(fmt):
    """The subpackage that reads `fmt` files (imported once)."""
    fmt = fmt.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(
            message='%s is not a supported file type' % (fmt or 'this'))

    module = MODULE_CACHE.get(fmt, None)
    if module is None:
        module = MODULE_CACHE[fmt] = import_module('runplotter.' + fmt)
    return module


def decode(file_path, *, fmt=None, **kwargs):
    """Dispatch a file reader based on file extension.

    Parameters
    ----------
    file_path : str
        Path to the file to be read.
    fmt : str, optional
        'fit' or 'tcx', if the extension doesn't say (or lies).
    **kwargs
        Passed on to the reader: `sample_capacity`, `lap_capacity`, `store`.

    Returns
    -------
    RecordStore

    Raises
    ------
    UnsupportedFormatError
        If the file type (based on the extension) is not supported.
    """
    if fmt is None:
        fmt = splitext(file_path)[-1][1:]   # drop period from the extension

    return reader_module(fmt).read(file_path, **kwargs)
