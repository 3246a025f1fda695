#-------------------------------------------------------------------------bh-
# DAG Backup Report - Main exports
#-------------------------------------------------------------------------eh-

from .models import (
    Severity, CopyStatus, BackupCategory, Thresholds,
    CopyFact, DatabaseFact, InventorySnapshot,
    CopyHealth, DiskLine, ClassifiedDatabase, ReportResult,
)
from .classify import classify
from .aggregate import build_report

__version__ = '1.0.0'

__all__ = [
    # Models
    'Severity',
    'CopyStatus',
    'BackupCategory',
    'Thresholds',
    'CopyFact',
    'DatabaseFact',
    'InventorySnapshot',
    'CopyHealth',
    'DiskLine',
    'ClassifiedDatabase',
    'ReportResult',

    # Classification
    'classify',
    'build_report',
]
