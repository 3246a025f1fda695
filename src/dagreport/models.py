"""
Data model for the DAG backup report.

Input facts (``DatabaseFact``, ``CopyFact``) come from the Exchange inventory
or a snapshot file. ``ClassifiedDatabase`` and ``ReportResult`` are built by
:mod:`dagreport.classify` and :mod:`dagreport.aggregate` and never mutated
afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Severity(Enum):
    """
    Display emphasis for a status.

    Values double as CSS class names in the HTML report.
    """

    SUCCESS = "success"
    FAIL = "fail"
    IN_PROGRESS = "inprogress"
    WARNING = "warning"
    DISMOUNTED = "dismounted"
    SUSPENDED = "suspended"
    RESYNCHRONIZING = "resync"
    DEFAULT = "default"


class CopyStatus(Enum):
    """Replication copy states reported by Get-MailboxDatabaseCopyStatus."""

    MOUNTED = "Mounted"
    MOUNTING = "Mounting"
    DISMOUNTED = "Dismounted"
    DISMOUNTING = "Dismounting"
    HEALTHY = "Healthy"
    FAILED = "Failed"
    SUSPENDED = "Suspended"
    SEEDING = "Seeding"
    INITIALIZING = "Initializing"
    RESYNCHRONIZING = "Resynchronizing"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional['CopyStatus']:
        """Return the matching member, or None for statuses we do not track."""
        if not raw:
            return None
        text = raw.strip()
        if text.lower() == 'resync':
            return cls.RESYNCHRONIZING
        for member in cls:
            if member.value.lower() == text.lower():
                return member
        return None


# Database status display table. Anything not listed here is shown verbatim
# with Severity.DEFAULT.
DATABASE_STATUS_DISPLAY: Dict[CopyStatus, Tuple[str, Severity]] = {
    CopyStatus.MOUNTED: ("Mounted", Severity.SUCCESS),
    CopyStatus.MOUNTING: ("Mounting", Severity.IN_PROGRESS),
    CopyStatus.DISMOUNTED: ("Dismounted", Severity.DISMOUNTED),
    CopyStatus.DISMOUNTING: ("Dismounting", Severity.WARNING),
    CopyStatus.HEALTHY: ("Healthy", Severity.SUCCESS),
    CopyStatus.FAILED: ("Failed", Severity.FAIL),
    CopyStatus.SUSPENDED: ("Suspended", Severity.SUSPENDED),
    CopyStatus.SEEDING: ("Seeding", Severity.IN_PROGRESS),
    CopyStatus.INITIALIZING: ("Initializing", Severity.IN_PROGRESS),
    CopyStatus.RESYNCHRONIZING: ("Resynchronizing", Severity.RESYNCHRONIZING),
}

# Copy health table. Statuses missing here fall through to the copy queue check.
COPY_HEALTH_SEVERITY: Dict[CopyStatus, Severity] = {
    CopyStatus.DISMOUNTED: Severity.DISMOUNTED,
    CopyStatus.SUSPENDED: Severity.SUSPENDED,
    CopyStatus.FAILED: Severity.FAIL,
    CopyStatus.RESYNCHRONIZING: Severity.RESYNCHRONIZING,
}


class BackupCategory(Enum):
    """Backup state of a database, in no particular priority order."""

    NO_BACKUP = "NoBackup"
    IN_PROGRESS = "InProgress"
    FULL_BACKUP = "FullBackup"
    INCREMENTAL_BACKUP = "IncrementalBackup"
    COPY_QUEUE_WARNING = "CopyQueueWarning"

    @property
    def display(self) -> str:
        return BACKUP_DISPLAY[self][0]

    @property
    def severity(self) -> Severity:
        return BACKUP_DISPLAY[self][1]

    @property
    def is_backed_up(self) -> bool:
        return self in (BackupCategory.FULL_BACKUP, BackupCategory.INCREMENTAL_BACKUP)


BACKUP_DISPLAY: Dict[BackupCategory, Tuple[str, Severity]] = {
    BackupCategory.IN_PROGRESS: ("In Progress", Severity.IN_PROGRESS),
    BackupCategory.FULL_BACKUP: ("Full Backup", Severity.SUCCESS),
    BackupCategory.INCREMENTAL_BACKUP: ("Incremental Backup", Severity.SUCCESS),
    BackupCategory.COPY_QUEUE_WARNING: ("Warning: CopyQueue Exceeded", Severity.FAIL),
    BackupCategory.NO_BACKUP: ("None", Severity.FAIL),
}


@dataclass(frozen=True)
class Thresholds:
    """Classification thresholds, built once from configuration."""

    backup_window: timedelta = timedelta(hours=24)
    copy_queue_length: int = 5
    disk_free_percent: int = 10


# ============================================================================
# Input facts
# ============================================================================

@dataclass
class CopyFact:
    """One database copy on one mailbox server."""

    database_name: str
    server: str
    status: str
    copy_queue_length: int = 0
    disk_total_bytes: Optional[int] = None
    disk_free_bytes: Optional[int] = None
    disk_free_percent: Optional[float] = None
    volume_mount_point: Optional[str] = None

    @property
    def has_disk_telemetry(self) -> bool:
        return (self.disk_total_bytes is not None
                and self.disk_free_bytes is not None
                and self.disk_free_percent is not None)


@dataclass
class DatabaseFact:
    """One mailbox database with the copies attached to it."""

    name: str
    active_server: str
    last_full_backup: Optional[datetime] = None
    last_incremental_backup: Optional[datetime] = None
    backup_in_progress: bool = False
    dag: Optional[str] = None
    database_size: str = ""
    available_new_mailbox_space: int = 0
    copies: List[CopyFact] = field(default_factory=list)


@dataclass
class InventorySnapshot:
    """All facts gathered for one run."""

    collected_at: datetime
    databases: List[DatabaseFact] = field(default_factory=list)
    copies: List[CopyFact] = field(default_factory=list)
    mailbox_counts: Dict[str, int] = field(default_factory=dict)


def attach_copies(databases: List[DatabaseFact], copies: List[CopyFact]) -> List[CopyFact]:
    """
    Attach each copy to the database of the same name, keeping copy order.

    Returns the copies that matched no database.
    """
    by_name = {db.name: db for db in databases}
    for db in databases:
        db.copies = []

    orphans = []
    for copy in copies:
        database = by_name.get(copy.database_name)
        if database is None:
            orphans.append(copy)
        else:
            database.copies.append(copy)
    return orphans


# ============================================================================
# Classified output
# ============================================================================

@dataclass(frozen=True)
class CopyHealth:
    """Health annotation for a single copy."""

    server: str
    status: str
    copy_queue_length: int
    severity: Severity

    @property
    def text(self) -> str:
        return f"{self.server}: {self.status} (CopyQueue: {self.copy_queue_length})"


@dataclass(frozen=True)
class DiskLine:
    """Disk telemetry line for a single copy."""

    role: str
    server: str
    volume: Optional[str]
    free_gb: float
    total_gb: float
    free_percent: float
    low: bool

    @property
    def text(self) -> str:
        volume = f" {self.volume}" if self.volume else ""
        return (f"{self.role} {self.server}{volume}: "
                f"{self.free_gb:.2f} GB free of {self.total_gb:.2f} GB ({self.free_percent:g}%)")


@dataclass(frozen=True)
class ClassifiedDatabase:
    """A database after normalization and classification."""

    name: str
    active_server: str
    server_group: str
    copy_health: Tuple[CopyHealth, ...]
    backup_category: BackupCategory
    last_backup: Optional[datetime]
    database_status: str
    database_severity: Severity
    database_size: str
    free_space: str
    disk_lines: Tuple[DiskLine, ...]
    min_disk_free_percent: float

    @property
    def health_summary(self) -> str:
        return "; ".join(h.text for h in self.copy_health)

    @property
    def backup_display(self) -> str:
        return self.backup_category.display

    @property
    def backup_severity(self) -> Severity:
        return self.backup_category.severity

    @property
    def last_backup_display(self) -> str:
        if self.last_backup is None:
            return "N/A"
        return self.last_backup.strftime("%Y-%m-%d %H:%M")

    @property
    def disk_info(self) -> str:
        if not self.disk_lines:
            return "N/A"
        return "; ".join(line.text for line in self.disk_lines)

    def has_copy_severity(self, severity: Severity) -> bool:
        return any(h.severity is severity for h in self.copy_health)


@dataclass(frozen=True)
class ReportResult:
    """Everything the renderer needs, in display order."""

    generated_at: datetime
    thresholds: Thresholds
    databases: Tuple[ClassifiedDatabase, ...]
    dismounted: Tuple[ClassifiedDatabase, ...]
    failed: Tuple[ClassifiedDatabase, ...]
    low_disk: Tuple[ClassifiedDatabase, ...]
    total: int
    backed_up: int
    in_progress: int
    not_backed_up: int

    @property
    def has_alarms(self) -> bool:
        return bool(self.dismounted or self.failed or self.low_disk)
