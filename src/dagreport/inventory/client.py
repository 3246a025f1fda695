"""
Exchange Management Shell execution client.
"""

import base64
import json
import logging
import subprocess

from ..exceptions import InventoryCommandError, InventoryParseError

# Loads the Exchange snap-in so the scripts also work outside an EMS session.
EMS_PREAMBLE = (
    "$ErrorActionPreference = 'Stop'; "
    "if (-not (Get-Command Get-MailboxDatabase -ErrorAction SilentlyContinue)) "
    "{ Add-PSSnapin Microsoft.Exchange.Management.PowerShell.SnapIn }; "
)

DATABASES_SCRIPT = """
Get-MailboxDatabase -Status | ForEach-Object {
    [pscustomobject]@{
        Name = $_.Name
        Server = $_.Server.Name
        LastFullBackup = if ($_.LastFullBackup) { $_.LastFullBackup.ToUniversalTime().ToString('yyyy-MM-ddTHH:mm:ssZ') } else { $null }
        LastIncrementalBackup = if ($_.LastIncrementalBackup) { $_.LastIncrementalBackup.ToUniversalTime().ToString('yyyy-MM-ddTHH:mm:ssZ') } else { $null }
        BackupInProgress = [bool]$_.BackupInProgress
        DAG = if ($_.MasterType -eq 'DatabaseAvailabilityGroup') { $_.MasterServerOrAvailabilityGroup.Name } else { $null }
        DatabaseSize = if ($_.DatabaseSize) { $_.DatabaseSize.ToString() } else { $null }
        AvailableNewMailboxSpaceBytes = if ($_.AvailableNewMailboxSpace) { $_.AvailableNewMailboxSpace.ToBytes() } else { 0 }
    }
} | ConvertTo-Json -Depth 3
"""

COPY_STATUS_SCRIPT = """
Get-MailboxDatabase | Get-MailboxDatabaseCopyStatus | ForEach-Object {
    [pscustomobject]@{
        DatabaseName = $_.DatabaseName
        MailboxServer = $_.MailboxServer
        Status = $_.Status.ToString()
        CopyQueueLength = $_.CopyQueueLength
        DiskTotalSpaceBytes = if ($_.DiskTotalSpace) { $_.DiskTotalSpace.ToBytes() } else { $null }
        DiskFreeSpaceBytes = if ($_.DiskFreeSpace) { $_.DiskFreeSpace.ToBytes() } else { $null }
        DiskFreeSpacePercent = $_.DiskFreeSpacePercent
        DatabaseVolumeMountPoint = $_.DatabaseVolumeMountPoint
    }
} | ConvertTo-Json -Depth 3
"""

MAILBOX_COUNT_SCRIPT = """
@(Get-Mailbox -Database '{database}' -ResultSize Unlimited).Count
"""


def encode_command(script):
    """Encode a PowerShell script for ``-EncodedCommand`` (base64 of UTF-16LE)."""
    return base64.b64encode(script.encode('utf-16-le')).decode('ascii')


class ExchangeShellClient:
    """
    Wrapper for Exchange Management Shell execution.
    Handles SSH invocation, timeouts, and error capture.
    """

    def __init__(self, host, shell='powershell', timeout=120, ssh_timeout=10):
        self.host = host
        self.shell = shell
        self.timeout = timeout
        self.ssh_timeout = ssh_timeout
        self.logger = logging.getLogger(__name__)

    def run_script(self, script, json_output=False):
        """
        Execute a PowerShell script on the Exchange host via SSH.

        Args:
            script: PowerShell source (the EMS preamble is prepended)
            json_output: If True, parse JSON response

        Returns:
            Parsed JSON (dict, list or None for empty output) or raw string output

        Raises:
            InventoryCommandError: If the command fails or times out
            InventoryParseError: If json_output is set and the output is not JSON
        """
        encoded = encode_command(EMS_PREAMBLE + script)
        cmd = [
            'ssh', '-o', f'ConnectTimeout={self.ssh_timeout}', self.host,
            f'{self.shell} -NoProfile -NonInteractive -EncodedCommand {encoded}',
        ]
        summary = script.strip().splitlines()[0]

        self.logger.debug(f"Running on {self.host}: {summary}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            raise InventoryCommandError(f"Command timed out after {self.timeout}s: {summary}")

        if result.returncode != 0:
            error_msg = result.stderr.strip() or result.stdout.strip()
            raise InventoryCommandError(f"Command failed (exit {result.returncode}): {summary}\n{error_msg}")

        output = result.stdout

        if json_output:
            if not output.strip():
                return None
            try:
                return json.loads(output)
            except json.JSONDecodeError as e:
                self.logger.error(f"JSON parse error: {e}")
                self.logger.error(f"Output (first 500 chars): {output[:500]}")
                raise InventoryParseError(f"Invalid JSON from {summary}: {e}")

        return output

    def get_databases_json(self):
        """Execute Get-MailboxDatabase -Status"""
        return self.run_script(DATABASES_SCRIPT, json_output=True)

    def get_copy_status_json(self):
        """Execute Get-MailboxDatabaseCopyStatus for every database"""
        return self.run_script(COPY_STATUS_SCRIPT, json_output=True)

    def get_mailbox_count(self, database):
        """
        Count the mailboxes homed in one database.

        Any failure is logged and counted as 0 mailboxes.
        """
        script = MAILBOX_COUNT_SCRIPT.replace('{database}', database.replace("'", "''"))
        try:
            return int(self.run_script(script).strip() or 0)
        except (InventoryCommandError, ValueError) as e:
            self.logger.warning(f"Could not count mailboxes in {database}: {e}")
            return 0
