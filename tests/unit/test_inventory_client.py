"""Unit tests for the Exchange shell client and inventory collector."""

import base64
import subprocess
import pytest
from unittest.mock import MagicMock, patch

from dagreport.exceptions import InventoryCommandError, InventoryParseError
from dagreport.inventory import ExchangeShellClient, InventoryCollector
from dagreport.inventory.client import DATABASES_SCRIPT, encode_command


def completed(stdout='', stderr='', returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def client():
    return ExchangeShellClient('exch01.example.com', shell='powershell', timeout=60, ssh_timeout=5)


def test_encode_command_is_utf16le_base64():
    encoded = encode_command("Get-MailboxDatabase")
    assert base64.b64decode(encoded).decode('utf-16-le') == "Get-MailboxDatabase"


@patch('dagreport.inventory.client.subprocess.run')
def test_run_script_invokes_ssh(mock_run, client):
    mock_run.return_value = completed(stdout='[]')

    assert client.get_databases_json() == []

    args, kwargs = mock_run.call_args
    cmd = args[0]
    assert cmd[:4] == ['ssh', '-o', 'ConnectTimeout=5', 'exch01.example.com']
    assert cmd[4].startswith('powershell -NoProfile -NonInteractive -EncodedCommand ')
    assert kwargs['timeout'] == 60

    script = base64.b64decode(cmd[4].split()[-1]).decode('utf-16-le')
    assert 'Get-MailboxDatabase -Status' in script
    assert script.endswith(DATABASES_SCRIPT)


@patch('dagreport.inventory.client.subprocess.run')
def test_run_script_failure(mock_run, client):
    mock_run.return_value = completed(stderr='The term Get-MailboxDatabase is not recognized', returncode=1)

    with pytest.raises(InventoryCommandError, match='not recognized'):
        client.get_copy_status_json()


@patch('dagreport.inventory.client.subprocess.run')
def test_run_script_timeout(mock_run, client):
    mock_run.side_effect = subprocess.TimeoutExpired(cmd='ssh', timeout=60)

    with pytest.raises(InventoryCommandError, match='timed out'):
        client.get_databases_json()


@patch('dagreport.inventory.client.subprocess.run')
def test_run_script_invalid_json(mock_run, client):
    mock_run.return_value = completed(stdout='WARNING: not json')

    with pytest.raises(InventoryParseError):
        client.get_databases_json()


@patch('dagreport.inventory.client.subprocess.run')
def test_empty_output_is_none(mock_run, client):
    mock_run.return_value = completed(stdout='\r\n')
    assert client.get_copy_status_json() is None


@patch('dagreport.inventory.client.subprocess.run')
def test_mailbox_count(mock_run, client):
    mock_run.return_value = completed(stdout='250\r\n')
    assert client.get_mailbox_count("DB01") == 250

    script = base64.b64decode(mock_run.call_args[0][0][4].split()[-1]).decode('utf-16-le')
    assert "-Database 'DB01'" in script


@patch('dagreport.inventory.client.subprocess.run')
def test_mailbox_count_failure_is_zero(mock_run, client):
    mock_run.return_value = completed(stderr='access denied', returncode=1)
    assert client.get_mailbox_count("DB01") == 0


@patch('dagreport.inventory.client.subprocess.run')
def test_mailbox_count_quotes_database_name(mock_run, client):
    mock_run.return_value = completed(stdout='1')
    client.get_mailbox_count("O'Brien DB")

    script = base64.b64decode(mock_run.call_args[0][0][4].split()[-1]).decode('utf-16-le')
    assert "-Database 'O''Brien DB'" in script


def test_collector_builds_complete_snapshot():
    client = MagicMock()
    client.get_databases_json.return_value = [
        {'Name': 'DB01', 'Server': 'MBX1', 'BackupInProgress': False},
        {'Name': 'DB02', 'Server': 'MBX2', 'BackupInProgress': True},
    ]
    client.get_copy_status_json.return_value = [
        {'DatabaseName': 'DB01', 'MailboxServer': 'MBX1', 'Status': 'Mounted', 'CopyQueueLength': 0},
        {'DatabaseName': 'DB02', 'MailboxServer': 'MBX2', 'Status': 'Mounted', 'CopyQueueLength': 0},
        {'DatabaseName': 'DB01', 'MailboxServer': 'MBX2', 'Status': 'Healthy', 'CopyQueueLength': 1},
    ]
    client.get_mailbox_count.side_effect = lambda name: {'DB01': 10, 'DB02': 0}[name]

    snapshot = InventoryCollector(client).collect()

    assert [db.name for db in snapshot.databases] == ['DB01', 'DB02']
    assert [c.server for c in snapshot.databases[0].copies] == ['MBX1', 'MBX2']
    assert len(snapshot.copies) == 3
    assert snapshot.mailbox_counts == {'DB01': 10, 'DB02': 0}
    assert snapshot.collected_at.tzinfo is not None


def test_collector_propagates_inventory_failure():
    client = MagicMock()
    client.get_databases_json.side_effect = InventoryCommandError("ssh: connect refused")

    with pytest.raises(InventoryCommandError):
        InventoryCollector(client).collect()
