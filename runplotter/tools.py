#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General tools that complement the API.

These help whoever draws the plots and maps; nothing here knows about
widgets or rendering.

"""
import numpy as np


# Geographical centre of the contiguous US, for a track with no positions.
DEFAULT_CENTER = (39.8355, -99.0909)

# Heat map colours (RGB) from the slowest band to the fastest.
HEATMAP_COLOURS = (
    (255, 255, 212),
    (254, 227, 145),
    (254, 196, 79),
    (254, 153, 41),
    (217, 95, 14),
    (153, 52, 4),
)

# Five point quadratic/cubic Savitzky-Golay convolution coefficients.
SG_COEFFICIENTS = np.array([-3, 12, 17, 12, -3]) / 35


def _as_float_array(values):
    """Sequence (Nones allowed) --> float array with NaN for the Nones."""
    return np.array([np.nan if v is None else v for v in values], dtype=float)


def find_center(lat, lng):
    """Centre and bounding box of a track.

    Parameters
    ----------
    lat, lng : numpy arrays or lists
        Positions in degrees. Missing (NaN or None) points are ignored.

    Returns
    -------
    center : (float, float)
        (latitude, longitude) halfway between the extremes.
    bounding_box : (float, float, float, float) or None
        (min_lat, min_lng, max_lat, max_lng); None if there are no positions,
        in which case `center` is `DEFAULT_CENTER`.

    Examples
    --------
        >>> find_center([52.0, 52.5], [-1.0, -1.5])
        ((52.25, -1.25), (52.0, -1.5, 52.5, -1.0))
    """
    lat, lng = _as_float_array(lat), _as_float_array(lng)
    valid = ~(np.isnan(lat) | np.isnan(lng))
    if not valid.any():
        return DEFAULT_CENTER, None

    lat, lng = lat[valid], lng[valid]
    bounding_box = (float(lat.min()), float(lng.min()),
                    float(lat.max()), float(lng.max()))
    center = ((bounding_box[0] + bounding_box[2]) / 2,
              (bounding_box[1] + bounding_box[3]) / 2)
    return center, bounding_box


def pace_bands(speeds):
    """Heat map band for each speed: 0 (slowest) to 5 (fastest).

    Assume a normal curve: bands are split at the mean and at half and one
    standard deviation either side of it. Stopped (non-positive) or missing
    speeds are always the slowest band and don't count towards the
    statistics.

    Returns
    -------
    numpy array of ints
        Index into `HEATMAP_COLOURS`.
    """
    speeds = _as_float_array(speeds)
    bands = np.zeros(len(speeds), dtype=int)

    moving = ~np.isnan(speeds)
    moving[moving] = speeds[moving] > 0
    if not moving.any():
        return bands

    average, stdev = speeds[moving].mean(), speeds[moving].std()
    edges = np.array([average - stdev, average - 0.5 * stdev, average,
                      average + 0.5 * stdev, average + stdev])

    bands[moving] = np.searchsorted(edges, speeds[moving], side='left')
    return bands


def sg_smooth(y):
    """Five point Savitzky-Golay smoothing.

    The ends of the series are mirrored so the output is the same length as
    the input. Series shorter than three points come back untouched.

    References
    ----------
    https://en.wikipedia.org/wiki/Savitzky%E2%80%93Golay_filter
    """
    y = np.asarray(y, dtype=float)
    if len(y) < 3:
        return y.copy()

    padded = np.pad(y, 2, mode='reflect')
    return np.convolve(padded, SG_COEFFICIENTS[::-1], mode='valid')
