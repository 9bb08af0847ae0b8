#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Map the FIT "no data" encodings to a single missing value.

Every integer base type reserves one value (usually its maximum) to mean
"this field wasn't recorded". The comparison must happen on the *raw* value,
before scales, offsets or unit conversions are applied; after this point a
missing value is ``None`` and nothing downstream ever looks at a sentinel
again.

"""
from math import isnan

from runplotter._types.records import MISSING


def is_sentinel(raw, base_type):
    """Does `raw` encode "no data" for `base_type`?

    Arrays are only missing when every element is.
    """
    if raw is None:
        return True

    if isinstance(raw, tuple):
        return all(is_sentinel(value, base_type) for value in raw)

    if isinstance(raw, (bytes, bytearray)):
        return not raw.split(b'\x00')[0]

    if isinstance(raw, float):
        return isnan(raw)

    return raw == base_type.invalid


def checked(raw, base_type, convert=None):
    """Check-then-convert.

    Parameters
    ----------
    raw : int, float, bytes or tuple
        The value exactly as unpacked from the message.
    base_type : BaseType
        Supplies the sentinel for `raw`.
    convert : callable, optional
        Applied to `raw` (element-wise for arrays) only if it is present.

    Returns
    -------
    `MISSING` (``None``) or the converted value.
    """
    if is_sentinel(raw, base_type):
        return MISSING

    if isinstance(raw, tuple):
        return tuple(checked(value, base_type, convert) for value in raw)

    if isinstance(raw, (bytes, bytearray)):
        return raw.split(b'\x00')[0].decode('utf-8', 'replace')

    return convert(raw) if convert is not None else raw
