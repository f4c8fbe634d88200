"""
=================================================
Comprehensive pytest suite for logs/diagnostics.py
=================================================

Sections:
---------
1. Unit tests - Log levels and layout of LoggingDiagnosticSink

Available markers:
------------------
unit

How to Execute:
---------------
All tests:          pytest tests/tests_logs/test_diagnostics.py -v

Note: Use 'python -m pytest' (not just 'pytest') to ensure correct Python path resolution.
"""

import logging

import pytest

from logs.diagnostics import LoggingDiagnosticSink

LOGGER_NAME = 'tests.diagnostics'


@pytest.fixture
def sink(caplog):
    """Provide a sink writing to a captured logger."""
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    return LoggingDiagnosticSink(logging.getLogger(LOGGER_NAME))


def records(caplog):
    return [(record.levelname, record.getMessage()) for record in caplog.records]


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_note_and_text(sink, caplog):
    """Notes and text go out at INFO, one record per line."""
    sink.note('A note')
    sink.text(['line 1', 'line 2'])
    sink.text('single line')

    assert records(caplog) == [
        ('INFO', 'A note'),
        ('INFO', 'line 1'),
        ('INFO', 'line 2'),
        ('INFO', 'single line'),
    ]


@pytest.mark.unit
def test_listing(sink, caplog):
    """Listings are bulleted."""
    sink.listing(['@A@', '@B@'])

    assert records(caplog) == [('INFO', ' * @A@'), ('INFO', ' * @B@')]


@pytest.mark.unit
def test_warning_list(sink, caplog):
    """Warning lists go out at WARNING."""
    sink.warning_list('Routines in the files below are not loaded:', ['a.psql'])

    assert records(caplog) == [
        ('WARNING', 'Routines in the files below are not loaded:'),
        ('WARNING', ' * a.psql'),
    ]


@pytest.mark.unit
def test_error_list(sink, caplog):
    """Error lists go out at ERROR."""
    sink.error_list("File not exists: 'x.psql'", [])

    assert records(caplog) == [('ERROR', "File not exists: 'x.psql'")]


@pytest.mark.unit
def test_title(sink, caplog):
    """Titles are framed by rules."""
    sink.title('Loader')

    assert [message for _, message in records(caplog)] == ['=' * 60, 'Loader', '=' * 60]
