"""
Report job: gather facts, classify, render and send.
"""
import json
import logging
from pathlib import Path

from marshmallow import ValidationError
from rich.console import Console

from .aggregate import build_report
from .config import ReportConfig
from .credentials import resolve_mail_credential
from .display import display_databases, display_preview, display_summary
from .exceptions import MailError, ReportError
from .inventory import InventoryCollector
from .models import InventorySnapshot, ReportResult
from .notifications import EmailNotificationService
from .render import ReportRenderer
from .schemas import SnapshotSchema

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_FATAL = 2


class ReportJob:
    """One run of the DAG backup report."""

    def __init__(self, config: ReportConfig, snapshot_file=None, dry_run=False,
                 json_only=False, output_file=None, verbose=False, console=None):
        self.config = config
        self.snapshot_file = snapshot_file
        self.dry_run = dry_run
        self.json_only = json_only
        self.output_file = output_file
        self.verbose = verbose
        self.console = console or Console()
        self.logger = logging.getLogger(__name__)

    def load_snapshot(self) -> InventorySnapshot:
        """Read facts from a snapshot file, or collect them from Exchange."""
        if self.snapshot_file:
            self.logger.info(f"Loading snapshot from {self.snapshot_file}")
            with open(self.snapshot_file, 'r') as f:
                try:
                    return SnapshotSchema().load(json.load(f))
                except (ValueError, ValidationError) as e:
                    raise ReportError(f"Invalid snapshot file {self.snapshot_file}: {e}")

        return InventoryCollector.from_config(self.config).collect()

    def build(self, snapshot: InventorySnapshot) -> ReportResult:
        """Classify a snapshot, judging backup freshness at collection time."""
        return build_report(
            snapshot.databases,
            self.config.thresholds,
            now=snapshot.collected_at,
            mailbox_counts=snapshot.mailbox_counts,
        )

    def write_output(self, result: ReportResult):
        subject = self.config.mail.subject if self.config.mail else ''
        html = ReportRenderer().render_html(result, subject)
        Path(self.output_file).write_text(html, encoding='utf-8')
        self.logger.info(f"HTML report written to {self.output_file}")

    def run(self) -> int:
        """Execute the report. Returns an exit code."""
        try:
            snapshot = self.load_snapshot()

            if self.json_only:
                print(SnapshotSchema().dumps(snapshot, indent=2))
                return EXIT_SUCCESS

            result = self.build(snapshot)

            if self.output_file:
                self.write_output(result)

            if self.dry_run or self.verbose:
                display_summary(self.console, result)
                display_databases(self.console, result, verbose=self.verbose)

            if self.config.mail is None:
                self.logger.info("No mail settings configured, report not sent")
                return EXIT_SUCCESS

            service = EmailNotificationService(self.config.mail, self._credential())

            if self.dry_run:
                display_preview(self.console, service.preview_report(result), verbose=self.verbose)
                return EXIT_SUCCESS

            success, error = service.send_report(result)
            if not success:
                raise MailError(error)

            self.logger.info(f"✓ Report sent: {result.total} databases, "
                             f"{'alarms raised' if result.has_alarms else 'no alarms'}")
            return EXIT_SUCCESS

        except ReportError as e:
            self.logger.error(f"✗ Report failed: {e}", exc_info=True)
            return EXIT_FAILURE

    def _credential(self):
        if self.dry_run:
            return None
        return resolve_mail_credential()
