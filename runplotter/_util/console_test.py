#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import io

from runplotter._util import console


class Terminal(io.StringIO):
    def isatty(self):
        return True


def test_styled_only_on_terminals():
    assert console.styled('done', 'bold', stream=io.StringIO()) == 'done'
    assert console.styled('done', 'bold', 'fail', stream=Terminal()) == (
        '\033[1m\033[91mdone\033[0m')
    assert console.styled('done', stream=Terminal()) == 'done'


def test_report_failure():
    stream = io.StringIO()
    console.report_failure('OpenFailed', 'unable to open x.fit', stream)
    assert stream.getvalue() == 'OpenFailed: unable to open x.fit\n'
