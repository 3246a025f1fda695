#-------------------------------------------------------------------------bh-
# pytest configuration and fixtures for the DAG backup report tests
#-------------------------------------------------------------------------eh-

import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add src to path for imports
PROJ_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJ_ROOT / 'src'))

from dagreport.models import CopyFact, DatabaseFact, Thresholds


NOW = datetime(2025, 3, 10, 6, 0, tzinfo=timezone.utc)
GB = 1024 ** 3


@pytest.fixture
def now():
    """Fixed reference time for backup freshness."""
    return NOW


@pytest.fixture
def thresholds():
    """Default thresholds: 24h window, queue 5, disk 10%."""
    return Thresholds()


def make_copy(database='DB01', server='MBX1', status='Mounted', queue=0, **disk):
    """Build a CopyFact; pass disk_total_bytes etc. for telemetry."""
    return CopyFact(
        database_name=database,
        server=server,
        status=status,
        copy_queue_length=queue,
        **disk
    )


def make_disk(free_percent, total_gb=500, volume='E:\\'):
    """Disk telemetry keyword arguments for make_copy."""
    return {
        'disk_total_bytes': total_gb * GB,
        'disk_free_bytes': int(total_gb * GB * free_percent / 100),
        'disk_free_percent': free_percent,
        'volume_mount_point': volume,
    }


def make_database(name='DB01', active_server='MBX1', copies=None, full_age_hours=None,
                  incremental_age_hours=None, in_progress=False, dag=None, **kwargs):
    """Build a DatabaseFact with backups aged relative to NOW."""
    return DatabaseFact(
        name=name,
        active_server=active_server,
        last_full_backup=NOW - timedelta(hours=full_age_hours) if full_age_hours is not None else None,
        last_incremental_backup=(NOW - timedelta(hours=incremental_age_hours)
                                 if incremental_age_hours is not None else None),
        backup_in_progress=in_progress,
        dag=dag,
        database_size=kwargs.pop('database_size', '120.5 GB (129,385,676,800 bytes)'),
        available_new_mailbox_space=kwargs.pop('available_new_mailbox_space', 2 * GB),
        copies=copies if copies is not None else [make_copy(name, active_server)],
    )


@pytest.fixture
def copy_factory():
    return make_copy


@pytest.fixture
def disk_factory():
    return make_disk


@pytest.fixture
def database_factory():
    return make_database


@pytest.fixture
def alarm_databases():
    """Databases covering each alarm block: dismounted, failed copy, low disk."""
    return [
        make_database('DB01', 'MBX1', full_age_hours=3, dag='DAG01', copies=[
            make_copy('DB01', 'MBX1', **make_disk(40)),
            make_copy('DB01', 'MBX2', 'Healthy', queue=1, **make_disk(35)),
        ]),
        make_database('DB02', 'MBX2', copies=[
            make_copy('DB02', 'MBX2', 'Dismounted', **make_disk(4)),
        ]),
        make_database('DB03', 'MBX1', in_progress=True, copies=[
            make_copy('DB03', 'MBX1'),
            make_copy('DB03', 'MBX2', 'Failed'),
        ]),
    ]


@pytest.fixture
def report(alarm_databases, thresholds):
    """A built report with all three alarm blocks populated."""
    from dagreport.aggregate import build_report
    return build_report(alarm_databases, thresholds, NOW, {'DB01': 120, 'DB02': 30})


@pytest.fixture
def quiet_report(thresholds):
    """A built report with no alarms."""
    from dagreport.aggregate import build_report
    databases = [make_database('DB01', full_age_hours=2, copies=[make_copy(**make_disk(60))])]
    return build_report(databases, thresholds, NOW)
