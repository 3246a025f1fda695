"""
Marshmallow schemas for Exchange inventory data.

Field ``data_key`` values match the property names emitted by the Exchange
Management Shell scripts in :mod:`dagreport.inventory.client`, so the same
schemas load live cmdlet output and snapshot files written with
``--json-only``.

Usage:
    from dagreport.schemas import SnapshotSchema

    snapshot = SnapshotSchema().load(json.load(f))
    text = SnapshotSchema().dumps(snapshot, indent=2)
"""

from marshmallow import EXCLUDE, Schema, fields, post_load

from .models import CopyFact, DatabaseFact, InventorySnapshot, attach_copies


class BaseSchema(Schema):
    """
    Base schema for inventory records.

    Cmdlet output carries many properties we never look at, so unknown
    keys are dropped rather than rejected.
    """
    class Meta:
        unknown = EXCLUDE


class CopyFactSchema(BaseSchema):
    """
    Schema for one row of Get-MailboxDatabaseCopyStatus.

    Disk properties are null when the copy reports no disk telemetry.
    """
    database_name = fields.String(required=True, data_key='DatabaseName')
    server = fields.String(required=True, data_key='MailboxServer')
    status = fields.String(required=True, data_key='Status')
    copy_queue_length = fields.Integer(load_default=0, allow_none=True, data_key='CopyQueueLength')
    disk_total_bytes = fields.Integer(load_default=None, allow_none=True, data_key='DiskTotalSpaceBytes')
    disk_free_bytes = fields.Integer(load_default=None, allow_none=True, data_key='DiskFreeSpaceBytes')
    disk_free_percent = fields.Float(load_default=None, allow_none=True, data_key='DiskFreeSpacePercent')
    volume_mount_point = fields.String(load_default=None, allow_none=True, data_key='DatabaseVolumeMountPoint')

    @post_load
    def make_fact(self, data, **kwargs):
        if data.get('copy_queue_length') is None:
            data['copy_queue_length'] = 0
        return CopyFact(**data)


class DatabaseFactSchema(BaseSchema):
    """
    Schema for one row of Get-MailboxDatabase -Status.

    Copies are loaded separately and attached by database name.
    """
    name = fields.String(required=True, data_key='Name')
    active_server = fields.String(required=True, data_key='Server')
    last_full_backup = fields.DateTime(load_default=None, allow_none=True, data_key='LastFullBackup')
    last_incremental_backup = fields.DateTime(load_default=None, allow_none=True,
                                              data_key='LastIncrementalBackup')
    backup_in_progress = fields.Boolean(load_default=False, allow_none=True, data_key='BackupInProgress')
    dag = fields.String(load_default=None, allow_none=True, data_key='DAG')
    database_size = fields.String(load_default='', allow_none=True, data_key='DatabaseSize')
    available_new_mailbox_space = fields.Integer(load_default=0, allow_none=True,
                                                 data_key='AvailableNewMailboxSpaceBytes')

    @post_load
    def make_fact(self, data, **kwargs):
        data['backup_in_progress'] = bool(data.get('backup_in_progress'))
        data['database_size'] = data.get('database_size') or ''
        data['available_new_mailbox_space'] = data.get('available_new_mailbox_space') or 0
        if not data.get('dag'):
            data['dag'] = None
        return DatabaseFact(**data)


class SnapshotSchema(BaseSchema):
    """
    Schema for a complete inventory snapshot.

    Loading attaches copies to their databases; copies naming an unknown
    database stay in ``copies`` but are not attached anywhere.
    """
    collected_at = fields.DateTime(required=True)
    databases = fields.List(fields.Nested(DatabaseFactSchema), load_default=list)
    copies = fields.List(fields.Nested(CopyFactSchema), load_default=list)
    mailbox_counts = fields.Dict(keys=fields.String(), values=fields.Integer(), load_default=dict)

    @post_load
    def make_snapshot(self, data, **kwargs):
        attach_copies(data['databases'], data['copies'])
        return InventorySnapshot(**data)
