"""
Classification of database and copy facts.

Turns one ``DatabaseFact`` (with its copies) into a ``ClassifiedDatabase``:

- server group label and per-copy health annotations
- backup status (first matching rule wins)
- database status, taken from the active copy
- disk telemetry lines and the lowest free percentage across copies

Nothing in here raises for well-formed facts. Missing backups, DAG, disk
telemetry or mailbox counts all have fallback values.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from .models import (
    BackupCategory,
    ClassifiedDatabase,
    COPY_HEALTH_SEVERITY,
    CopyFact,
    CopyHealth,
    CopyStatus,
    DATABASE_STATUS_DISPLAY,
    DatabaseFact,
    DiskLine,
    Severity,
    Thresholds,
)

logger = logging.getLogger(__name__)

BYTES_PER_GB = 1024 ** 3
NO_DISK_TELEMETRY_PERCENT = 100


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _bytes_to_gb(value: int) -> float:
    return round(value / BYTES_PER_GB, 2)


# ============================================================================
# Fact normalization
# ============================================================================

def copy_role(database: DatabaseFact, copy: CopyFact) -> str:
    """'Active' for the copy on the database's active server, 'Passive' otherwise."""
    return "Active" if copy.server == database.active_server else "Passive"


def server_group_label(database: DatabaseFact) -> str:
    """
    Build the server group label, e.g. ``A: MBX1 | P: MBX2, MBX3 | DAG: DAG01``.

    The label does not depend on the order of the copies.
    """
    servers = {copy.server for copy in database.copies if copy.server}
    active = sorted(s for s in servers if s == database.active_server)
    passive = sorted(s for s in servers if s != database.active_server)

    label = f"A: {', '.join(active) if active else database.active_server}"
    if passive:
        label += f" | P: {', '.join(passive)}"
    if database.dag:
        label += f" | DAG: {database.dag}"
    return label


def copy_health(copy: CopyFact, thresholds: Thresholds) -> CopyHealth:
    """Annotate one copy with a severity class."""
    status = CopyStatus.parse(copy.status)
    severity = COPY_HEALTH_SEVERITY.get(status)
    if severity is None:
        if copy.copy_queue_length > thresholds.copy_queue_length:
            severity = Severity.FAIL
        else:
            severity = Severity.DEFAULT

    return CopyHealth(
        server=copy.server,
        status=copy.status or "Unknown",
        copy_queue_length=copy.copy_queue_length,
        severity=severity,
    )


# ============================================================================
# Status classification
# ============================================================================

def classify_backup(database: DatabaseFact, thresholds: Thresholds,
                    now: datetime) -> Tuple[BackupCategory, Optional[datetime]]:
    """
    Decide the backup category and the timestamp shown as "last backup".

    Rules are checked in order and the first match wins. The displayed time
    is always the last full backup, even when a recent incremental backup
    decided the category.
    """
    cutoff = _as_utc(now) - thresholds.backup_window
    full = _as_utc(database.last_full_backup) if database.last_full_backup else None
    incremental = (_as_utc(database.last_incremental_backup)
                   if database.last_incremental_backup else None)

    if database.backup_in_progress:
        category = BackupCategory.IN_PROGRESS
    elif full is not None and full > cutoff:
        category = BackupCategory.FULL_BACKUP
    elif incremental is not None and incremental > cutoff:
        category = BackupCategory.INCREMENTAL_BACKUP
    elif any(c.copy_queue_length > thresholds.copy_queue_length for c in database.copies):
        category = BackupCategory.COPY_QUEUE_WARNING
    else:
        category = BackupCategory.NO_BACKUP

    return category, full


def select_active_copy(database: DatabaseFact) -> Optional[CopyFact]:
    """
    Pick the copy that represents the database status.

    The copy on the active server wins; without one the first copy in
    supplied order is used. No copies at all gives None.
    """
    for copy in database.copies:
        if copy.server == database.active_server:
            return copy
    if database.copies:
        return database.copies[0]
    return None


def classify_database_status(database: DatabaseFact) -> Tuple[str, Severity]:
    """Return (display text, severity) for the database status."""
    copy = select_active_copy(database)
    if copy is None:
        return "Unknown", Severity.DEFAULT

    status = CopyStatus.parse(copy.status)
    if status is None:
        return copy.status or "Unknown", Severity.DEFAULT
    return DATABASE_STATUS_DISPLAY[status]


def disk_lines(database: DatabaseFact, thresholds: Thresholds) -> List[DiskLine]:
    """Build one disk line per copy that reports disk telemetry."""
    lines = []
    for copy in database.copies:
        if not copy.has_disk_telemetry:
            continue
        free_percent = copy.disk_free_percent
        lines.append(DiskLine(
            role=copy_role(database, copy),
            server=copy.server,
            volume=copy.volume_mount_point,
            free_gb=_bytes_to_gb(copy.disk_free_bytes),
            total_gb=_bytes_to_gb(copy.disk_total_bytes),
            free_percent=free_percent,
            low=free_percent <= thresholds.disk_free_percent,
        ))
    return lines


def min_disk_free_percent(lines: Sequence[DiskLine]) -> float:
    """Lowest free percentage; a database without telemetry counts as 100% free."""
    if not lines:
        return NO_DISK_TELEMETRY_PERCENT
    return min(line.free_percent for line in lines)


def free_space_summary(database: DatabaseFact, mailbox_count: int) -> str:
    return (f"{_bytes_to_gb(database.available_new_mailbox_space):.2f} GB free, "
            f"{mailbox_count} mailboxes")


def classify(database: DatabaseFact, thresholds: Thresholds, now: datetime,
             mailbox_counts: Optional[Dict[str, int]] = None) -> ClassifiedDatabase:
    """
    Classify a single database.

    Args:
        database: Database fact with its copies attached
        thresholds: Classification thresholds
        now: Reference time for backup freshness
        mailbox_counts: Mailbox count per database name (missing = 0)

    Returns:
        ClassifiedDatabase
    """
    mailbox_counts = mailbox_counts or {}

    category, last_backup = classify_backup(database, thresholds, now)
    status_text, status_severity = classify_database_status(database)
    lines = disk_lines(database, thresholds)

    classified = ClassifiedDatabase(
        name=database.name,
        active_server=database.active_server,
        server_group=server_group_label(database),
        copy_health=tuple(copy_health(c, thresholds) for c in database.copies),
        backup_category=category,
        last_backup=last_backup,
        database_status=status_text,
        database_severity=status_severity,
        database_size=database.database_size,
        free_space=free_space_summary(database, mailbox_counts.get(database.name, 0)),
        disk_lines=tuple(lines),
        min_disk_free_percent=min_disk_free_percent(lines),
    )

    logger.debug(
        f"{database.name}: backup={category.value} status={status_text} "
        f"copies={len(database.copies)} min_disk={classified.min_disk_free_percent}%"
    )
    return classified
