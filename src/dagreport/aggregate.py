"""
Sorting, alarms and summary counters for a classified snapshot.

The whole snapshot is classified before anything is sorted, so group
boundaries and alarms always see the complete collection.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .classify import classify
from .models import (
    BackupCategory,
    ClassifiedDatabase,
    DatabaseFact,
    ReportResult,
    Severity,
    Thresholds,
)

logger = logging.getLogger(__name__)


def sort_key(database: ClassifiedDatabase) -> Tuple[int, str, str]:
    """NoBackup first, then InProgress, then everything else; by server, then name."""
    if database.backup_category is BackupCategory.NO_BACKUP:
        group = 0
    elif database.backup_category is BackupCategory.IN_PROGRESS:
        group = 1
    else:
        group = 2
    return group, database.active_server or "", database.name


def sort_databases(databases: Iterable[ClassifiedDatabase]) -> List[ClassifiedDatabase]:
    return sorted(databases, key=sort_key)


def dismounted_alarms(databases: Iterable[ClassifiedDatabase]) -> List[ClassifiedDatabase]:
    return [db for db in databases if db.has_copy_severity(Severity.DISMOUNTED)]


def failed_alarms(databases: Iterable[ClassifiedDatabase]) -> List[ClassifiedDatabase]:
    return [db for db in databases if db.has_copy_severity(Severity.FAIL)]


def low_disk_alarms(databases: Iterable[ClassifiedDatabase],
                    thresholds: Thresholds) -> List[ClassifiedDatabase]:
    return [db for db in databases
            if db.min_disk_free_percent < thresholds.disk_free_percent]


def summary_counts(databases: Iterable[ClassifiedDatabase]) -> Dict[str, int]:
    """
    Count databases by backup state.

    ``not_backed_up`` is derived from the other counts so the three always
    add up to ``total``.
    """
    databases = list(databases)
    total = len(databases)
    backed_up = sum(1 for db in databases if db.backup_category.is_backed_up)
    in_progress = sum(1 for db in databases
                      if db.backup_category is BackupCategory.IN_PROGRESS)
    return {
        'total': total,
        'backed_up': backed_up,
        'in_progress': in_progress,
        'not_backed_up': total - backed_up - in_progress,
    }


def build_report(databases: Iterable[DatabaseFact], thresholds: Thresholds,
                 now: datetime,
                 mailbox_counts: Optional[Dict[str, int]] = None) -> ReportResult:
    """
    Classify a complete snapshot and assemble the report result.

    Args:
        databases: Every database fact of the snapshot, copies attached
        thresholds: Classification thresholds
        now: Reference time for backup freshness
        mailbox_counts: Mailbox count per database name

    Returns:
        ReportResult with sorted databases, alarm lists and counters
    """
    classified = [classify(db, thresholds, now, mailbox_counts) for db in databases]
    ordered = sort_databases(classified)
    counts = summary_counts(ordered)

    result = ReportResult(
        generated_at=now,
        thresholds=thresholds,
        databases=tuple(ordered),
        dismounted=tuple(dismounted_alarms(ordered)),
        failed=tuple(failed_alarms(ordered)),
        low_disk=tuple(low_disk_alarms(ordered, thresholds)),
        **counts,
    )

    logger.info(
        f"  Databases: {result.total} total, {result.backed_up} backed up, "
        f"{result.in_progress} in progress, {result.not_backed_up} not backed up"
    )
    if result.has_alarms:
        logger.warning(
            f"  Alarms: {len(result.dismounted)} dismounted, {len(result.failed)} failed, "
            f"{len(result.low_disk)} low disk"
        )
    return result
