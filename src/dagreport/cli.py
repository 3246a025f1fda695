#!/usr/bin/env python3
"""
DAG Backup Report CLI

Queries an Exchange Database Availability Group for backup and replication
health and mails the HTML report.
"""

import logging
import sys

import click

from .config import ReportConfig
from .exceptions import ConfigError
from .job import EXIT_FATAL, ReportJob
from .logging_utils import setup_logging

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])
DESCRIPTION = 'DAG Backup Report'


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option('--config', '-c', 'config_file', type=click.Path(dir_okay=False),
              help='YAML configuration file (default: $DAG_REPORT_CONFIG or ./config.yaml)')
@click.option('--snapshot', 'snapshot_file', type=click.Path(exists=True, dir_okay=False),
              help='Read facts from a snapshot file instead of querying Exchange')
@click.option('--json-only', is_flag=True, help='Write the collected snapshot as JSON to stdout and exit')
@click.option('--dry-run', is_flag=True, help='Build and display the report without sending it')
@click.option('--output', '-o', 'output_file', type=click.Path(dir_okay=False, writable=True),
              help='Also write the HTML report to this file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging and detailed output')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Log file path')
def cli(config_file, snapshot_file, json_only, dry_run, output_file, verbose, log_file):
    """Report Exchange database backup and replication health by email."""
    if not json_only:
        setup_logging(log_file=log_file, verbose=verbose)

    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info(f"{DESCRIPTION} - Starting")
    logger.info("=" * 60)

    try:
        config = ReportConfig(
            config_file,
            require_exchange=snapshot_file is None,
            require_mail=not (json_only or output_file),
        )
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(EXIT_FATAL)

    job = ReportJob(
        config,
        snapshot_file=snapshot_file,
        dry_run=dry_run,
        json_only=json_only,
        output_file=output_file,
        verbose=verbose,
    )
    exit_code = job.run()

    logger.info("=" * 60)
    logger.info(f"{DESCRIPTION} - {'SUCCESS' if exit_code == 0 else 'FAILED'}")
    logger.info("=" * 60)

    sys.exit(exit_code)


def main():
    cli()


if __name__ == '__main__':
    main()
