#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Avoid repeating documentation. A bit hacky but it will do.

Each format subpackage exposes functions with the same signature; decorate
them with the function of the same name here to share its docstring.

"""
import inspect


def _this_doc():
    """Docstring of the calling function (looked up by name)."""
    caller = inspect.stack()[1][3]
    return globals().get(caller).__doc__


def read(func):
    """Read a file into a `RecordStore`.

    Parameters
    ----------
    file_path : str
        Path to the file.
    sample_capacity, lap_capacity : int, optional
        Sizes of a new store. Ignored if `store` is given.
    store : RecordStore, optional
        Store to (re)fill instead of making a new one. It is left empty if
        reading fails.

    Other keyword arguments are particular to the format; see the reading
    module of its subpackage.

    Returns
    -------
    RecordStore
        Samples, laps and the session summary, all SI.

    Raises
    ------
    OpenFailedError
        If the file can't be opened.
    RunPlotterError
        Any of its subclasses, if the contents can't be decoded or don't fit
        in the store.
    """
    func.__doc__ = _this_doc()
    return func
