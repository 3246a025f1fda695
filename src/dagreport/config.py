"""
Configuration management for the report job.
"""

import os
import yaml
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List
from dotenv import load_dotenv, find_dotenv

from .exceptions import ConfigError
from .models import Thresholds

PRIORITIES = ('high', 'normal', 'low')


@dataclass(frozen=True)
class MailSettings:
    """Mail transport settings, passed through to the transport unchanged."""

    sender: str
    recipients: str
    subject: str
    smtp_host: str
    smtp_port: int = 25
    use_tls: bool = False
    priority: str = 'normal'

    @property
    def recipient_list(self) -> List[str]:
        """Recipients from the semicolon-delimited ``recipients`` string."""
        return [r.strip() for r in self.recipients.split(';') if r.strip()]


def _as_flag(value) -> bool:
    """Interpret YAML booleans and quoted or environment strings alike."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def _env_flag(name, default='false'):
    return _as_flag(os.getenv(name, default))


class ReportConfig:
    """Configuration loader for the report job."""

    def __init__(self, config_file=None, require_exchange=True, require_mail=True):
        self.config_file = config_file or os.getenv('DAG_REPORT_CONFIG', 'config.yaml')
        self.require_exchange = require_exchange
        self.require_mail = require_mail
        self.logger = logging.getLogger(__name__)

        self._load_env()
        self._load_yaml()

    def _load_env(self):
        """Load environment variables from .env file."""
        env_file = find_dotenv(usecwd=True)
        load_dotenv(env_file)
        self.logger.debug(f"Loaded environment from {env_file or '(none)'}")

        self.command_timeout = int(os.getenv('EXCHANGE_COMMAND_TIMEOUT', '120'))
        self.ssh_timeout = int(os.getenv('SSH_TIMEOUT', '10'))

    def _load_yaml(self):
        """Load the site YAML configuration."""
        if not os.path.exists(self.config_file):
            raise ConfigError(f"Config file not found: {self.config_file}")

        with open(self.config_file, 'r') as f:
            self.yaml_config = yaml.safe_load(f) or {}

        self.exchange_host = self.yaml_config.get('exchange_host')
        self.shell = self.yaml_config.get('shell', 'powershell')
        if self.require_exchange and not self.exchange_host:
            raise ConfigError(f"exchange_host missing from {self.config_file}")

        self.thresholds = self._build_thresholds(self.yaml_config.get('thresholds') or {})
        mail_section = self.yaml_config.get('mail')
        if mail_section or self.require_mail:
            self.mail = self._build_mail(mail_section or {})
        else:
            self.mail = None

        self.logger.debug(f"Loaded config from {self.config_file}")

    def _build_thresholds(self, section: dict) -> Thresholds:
        try:
            thresholds = Thresholds(
                backup_window=timedelta(hours=float(section.get('backup_window_hours', 24))),
                copy_queue_length=int(section.get('copy_queue_length', 5)),
                disk_free_percent=int(section.get('disk_free_percent', 10)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid thresholds in {self.config_file}: {e}")

        if thresholds.backup_window <= timedelta(0):
            raise ConfigError("thresholds.backup_window_hours must be positive")
        if thresholds.copy_queue_length < 0:
            raise ConfigError("thresholds.copy_queue_length must not be negative")
        if not 0 <= thresholds.disk_free_percent <= 100:
            raise ConfigError("thresholds.disk_free_percent must be between 0 and 100")
        return thresholds

    def _build_mail(self, section: dict) -> MailSettings:
        for key in ('from', 'to'):
            if not section.get(key):
                raise ConfigError(f"mail.{key} missing from {self.config_file}")

        priority = str(section.get('priority', 'normal')).lower()
        if priority not in PRIORITIES:
            raise ConfigError(f"mail.priority must be one of {', '.join(PRIORITIES)}, got {priority!r}")

        smtp_host = os.getenv('MAIL_SERVER') or section.get('smtp_host')
        if not smtp_host:
            raise ConfigError("mail.smtp_host (or MAIL_SERVER) required")

        use_tls = section.get('use_tls', False)
        if os.getenv('MAIL_USE_TLS') is not None:
            use_tls = _env_flag('MAIL_USE_TLS')

        try:
            smtp_port = int(os.getenv('MAIL_PORT') or section.get('smtp_port', 25))
        except ValueError as e:
            raise ConfigError(f"Invalid SMTP port: {e}")

        recipients = section['to']
        if isinstance(recipients, (list, tuple)):
            recipients = '; '.join(str(r) for r in recipients)

        return MailSettings(
            sender=section['from'],
            recipients=recipients,
            subject=section.get('subject', 'Exchange DAG Backup Report'),
            smtp_host=smtp_host,
            smtp_port=smtp_port,
            use_tls=_as_flag(use_tls),
            priority=priority,
        )
