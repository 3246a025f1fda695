"""Tests for console display of the report."""

import pytest
from io import StringIO
from rich.console import Console

from dagreport.aggregate import build_report
from dagreport.display import display_databases, display_preview, display_summary


@pytest.fixture
def console():
    return Console(file=StringIO(), width=200, color_system=None)


def output(console):
    return console.file.getvalue()


def test_summary_shows_counters_and_alarm_panels(console, report):
    display_summary(console, report)
    text = output(console)

    assert 'Backup Summary' in text
    assert 'Dismounted' in text
    assert 'Failed Copies' in text
    assert 'Low Disk (< 10%)' in text


def test_low_disk_panel_shows_disk_lines(console, report):
    display_summary(console, report)
    text = output(console)

    assert 'DB02: 4% free (Active MBX2 E:\\' in text


def test_summary_without_alarms(console, quiet_report):
    display_summary(console, quiet_report)
    text = output(console)

    assert 'Dismounted' not in text
    assert 'Low Disk' not in text


def test_bracketed_names_are_printed_verbatim(console, database_factory, copy_factory,
                                             disk_factory, thresholds, now):
    name = 'DB[/]01'
    db = database_factory(name, copies=[
        copy_factory(name, 'MBX1', '[bold]Dismounted', **disk_factory(3)),
    ])
    result = build_report([db], thresholds, now)

    display_summary(console, result)
    display_databases(console, result, verbose=True)
    text = output(console)

    assert 'DB[/]01' in text
    assert '[bold]Dismounted' in text


def test_databases_table_in_report_order(console, report):
    display_databases(console, report)
    text = output(console)

    positions = [text.index(db.name) for db in report.databases]
    assert positions == sorted(positions)


def test_preview_escapes_subject(console):
    preview = {
        'subject': '[PROD] DAG Report',
        'sender': 'dag-report@example.com',
        'recipients': ['ops@example.com'],
        'priority': 'normal',
        'smtp_host': 'smtp.example.com',
        'smtp_port': 25,
        'text_content': 'DB[/]01 body',
        'html_content': '<html></html>',
    }
    display_preview(console, preview, verbose=True)
    text = output(console)

    assert '[PROD] DAG Report' in text
    assert 'DB[/]01 body' in text
