#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
runplotter is installed as an executable console_script with this package.

    $ runplotter decode run.fit --units english --summary

Exits with 0 on success and 1 on failure, with the reason on stderr.

"""
import logging
import sys
from argparse import ArgumentParser
from functools import partial

import pytz

from runplotter import units
from runplotter._types import (
    DEFAULT_LAP_CAPACITY, DEFAULT_SAMPLE_CAPACITY, UnitSystem)
from runplotter._util import console, conversions, reader
from runplotter._util.exceptions import RunPlotterError


logger = logging.getLogger(__name__)

UNIT_CHOICES = tuple(system.value for system in UnitSystem)

# column --> quantity, for tables in display units
SAMPLE_QUANTITIES = {'distance': 'distance', 'speed': 'speed',
                     'altitude': 'altitude'}
LAP_QUANTITIES = {'total_distance': 'distance',
                  'total_elapsed_time': 'lap_time',
                  'total_timer_time': 'lap_time'}


def build_parser():
    parser = ArgumentParser(prog='runplotter',
                            description='read running activity files')
    subparsers = parser.add_subparsers(dest='command')
    subparsers.required = True

    decode = subparsers.add_parser('decode', help='decode an activity file')
    decode.add_argument('input',
                        type=str,
                        help='raw file to read')
    decode.add_argument('--format',
                        type=str,
                        default=None,
                        help='optional; format of the file',
                        choices=reader.SUPPORTED_FORMATS)
    decode.add_argument('--units',
                        type=str,
                        default=None,
                        help='optional; display units (default: SI)',
                        choices=UNIT_CHOICES)
    decode.add_argument('--tz',
                        type=str,
                        metavar='zone',
                        default=None,
                        help='optional; time zone for displayed times, '
                             'e.g. America/Denver')

    what = decode.add_mutually_exclusive_group()
    what.add_argument('--laps',
                      action='store_true',
                      help='write laps instead of samples')
    what.add_argument('--summary',
                      action='store_true',
                      help='print the session summary instead of samples')

    decode.add_argument('--output',
                        type=str,
                        metavar='filename',
                        default=None,
                        help='optional; file to write to')
    decode.add_argument('--sample-capacity',
                        type=int,
                        default=DEFAULT_SAMPLE_CAPACITY,
                        help='optional; most samples to accept '
                             '(default: %(default)s)')
    decode.add_argument('--lap-capacity',
                        type=int,
                        default=DEFAULT_LAP_CAPACITY,
                        help='optional; most laps to accept '
                             '(default: %(default)s)')
    decode.add_argument('--verbose', '-v',
                        action='store_true',
                        help='log what the readers are doing')
    return parser


def display_frame(frame, quantities, system):
    """Convert the columns of a table in place; SI if `system` is None."""
    if system is not None:
        for column, quantity in quantities.items():
            frame[column] = units.convert(quantity, frame[column], system)
    return frame


def display_offset(store, tz_str):
    """UTC offset (seconds) to show times with."""
    if tz_str is None:
        return store.utc_offset or 0

    start = store.session.start_time
    if start is None and store.sample_count:
        start = int(store.column('timestamp')[0])
    return conversions.utc_offset(tz_str, start or 0)


def write_summary(store, system, offset, output):
    session = units.project_session(store.session, system)
    lines = units.format_session(session, system, utc_offset=offset)
    text = '\n'.join(lines) + '\n'
    if output is None:
        print(console.styled('Session summary', 'title', 'bold'))
        sys.stdout.write(text)
    else:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text)


def decode(args):
    store = reader.decode(args.input, fmt=args.format,
                          sample_capacity=args.sample_capacity,
                          lap_capacity=args.lap_capacity)
    logger.debug('decoded %r', store)
    system = UnitSystem(args.units) if args.units is not None else None
    offset = display_offset(store, args.tz)

    if args.summary:
        write_summary(store, system or UnitSystem.METRIC, offset, args.output)
        return

    if args.laps:
        data = display_frame(store.laps_frame(), LAP_QUANTITIES, system)
        index_label = 'lap'
    else:
        data = display_frame(store.samples_frame(), SAMPLE_QUANTITIES, system)
        index_label = 'time'

    write = partial(data.to_csv,
                    na_rep='NA', index_label=index_label, encoding='utf-8')
    if args.output is None:
        sys.stdout.write(write())
    else:
        write(args.output)


def main(argv=None):

    # Argument handling
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s')

    # Script begins
    try:
        decode(args)
    except RunPlotterError as e:
        console.report_failure(e.kind, e)
        return 1
    except pytz.UnknownTimeZoneError as e:
        console.report_failure('UnknownTimeZone', 'unknown time zone: %s' % e)
        return 1
    except OSError as e:
        console.report_failure('WriteFailed', 'unable to write output: %s' % e)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
