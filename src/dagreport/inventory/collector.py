"""
Inventory collection for a report run.
"""

import logging
from datetime import datetime, timezone

from ..models import InventorySnapshot, attach_copies
from .client import ExchangeShellClient
from .parsers import InventoryParser


class InventoryCollector:
    """Gather one complete snapshot of databases, copies and mailbox counts."""

    def __init__(self, client: ExchangeShellClient):
        self.client = client
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config):
        return cls(ExchangeShellClient(
            config.exchange_host,
            shell=config.shell,
            timeout=config.command_timeout,
            ssh_timeout=config.ssh_timeout,
        ))

    def collect(self) -> InventorySnapshot:
        """
        Collect every fact needed for one report.

        Database and copy queries must succeed; mailbox counts degrade to 0.
        """
        collected_at = datetime.now(timezone.utc)

        self.logger.info("Collecting database data...")
        databases = InventoryParser.parse_databases(self.client.get_databases_json())
        self.logger.info(f"  Databases: {len(databases)}")

        self.logger.info("Collecting copy status data...")
        copies = InventoryParser.parse_copies(self.client.get_copy_status_json())
        orphans = attach_copies(databases, copies)
        self.logger.info(f"  Copies: {len(copies)}")
        for copy in orphans:
            self.logger.warning(f"  Copy on {copy.server} names unknown database {copy.database_name}")

        self.logger.info("Collecting mailbox counts...")
        mailbox_counts = {db.name: self.client.get_mailbox_count(db.name) for db in databases}
        self.logger.info(f"  Mailboxes: {sum(mailbox_counts.values())}")

        return InventorySnapshot(
            collected_at=collected_at,
            databases=databases,
            copies=copies,
            mailbox_counts=mailbox_counts,
        )
