"""
Exchange inventory parser.

ConvertTo-Json writes a bare object instead of a one-element array, and
nothing at all for an empty pipeline, so every payload is normalized to a
list before it reaches the schemas.
"""

import logging
from typing import List

from marshmallow import ValidationError

from ..exceptions import InventoryParseError
from ..models import CopyFact, DatabaseFact
from ..schemas import CopyFactSchema, DatabaseFactSchema


logger = logging.getLogger(__name__)


class InventoryParser:
    """Parse Exchange Management Shell JSON into facts."""

    @staticmethod
    def as_list(payload) -> List[dict]:
        """Normalize a ConvertTo-Json payload to a list of records."""
        if payload is None:
            return []
        if isinstance(payload, dict):
            return [payload]
        if isinstance(payload, list):
            return payload
        raise InventoryParseError(f"Expected JSON object or array, got {type(payload).__name__}")

    @staticmethod
    def parse_databases(payload) -> List[DatabaseFact]:
        """
        Parse Get-MailboxDatabase -Status output.

        Args:
            payload: Decoded JSON from the databases script

        Returns:
            List of DatabaseFact without copies attached
        """
        records = InventoryParser.as_list(payload)
        try:
            return DatabaseFactSchema(many=True).load(records)
        except ValidationError as e:
            raise InventoryParseError(f"Invalid database record: {e.messages}")

    @staticmethod
    def parse_copies(payload) -> List[CopyFact]:
        """
        Parse Get-MailboxDatabaseCopyStatus output.

        Records missing their database name or server are skipped with a
        warning; the rest of the copies are still reported.
        """
        schema = CopyFactSchema()

        copies = []
        for record in InventoryParser.as_list(payload):
            try:
                copies.append(schema.load(record))
            except ValidationError as e:
                logger.warning(f"Skipping copy status record {record.get('Name', '?')}: {e.messages}")
        return copies
