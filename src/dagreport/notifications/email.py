"""Email delivery of the backup report."""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formatdate, make_msgid
from typing import Dict, Optional, Tuple

from ..config import MailSettings
from ..credentials import MailCredential
from ..models import ReportResult
from ..render import ReportRenderer

# (X-Priority, Importance) per configured priority
PRIORITY_HEADERS = {
    'high': ('1 (Highest)', 'High'),
    'normal': ('3 (Normal)', 'Normal'),
    'low': ('5 (Lowest)', 'Low'),
}


class EmailNotificationService:
    """Service for sending the report by email."""

    def __init__(self, settings: MailSettings, credential: Optional[MailCredential] = None,
                 renderer: Optional[ReportRenderer] = None):
        """Initialize email service.

        Args:
            settings: Mail transport settings
            credential: SMTP login, or None for an anonymous relay
            renderer: Report renderer (defaults to the package templates)
        """
        self.settings = settings
        self.credential = credential
        self.renderer = renderer or ReportRenderer()
        self.logger = logging.getLogger(__name__)

    def build_message(self, text_content: str, html_content: str) -> MIMEMultipart:
        """Build the multipart (text + HTML) report message."""
        msg = MIMEMultipart('alternative')
        msg['Subject'] = self.settings.subject
        msg['From'] = self.settings.sender
        msg['To'] = ', '.join(self.settings.recipient_list)
        msg['Date'] = formatdate(localtime=True)
        msg['Message-ID'] = make_msgid()

        x_priority, importance = PRIORITY_HEADERS[self.settings.priority]
        msg['X-Priority'] = x_priority
        msg['Importance'] = importance

        msg.attach(MIMEText(text_content, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))
        return msg

    def send_report(self, result: ReportResult) -> Tuple[bool, Optional[str]]:
        """Render and send the report.

        Args:
            result: Report result to render

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        recipients = self.settings.recipient_list
        try:
            text_content, html_content = self.renderer.render(result, self.settings.subject)
            msg = self.build_message(text_content, html_content)

            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port) as smtp:
                if self.settings.use_tls:
                    smtp.starttls()
                if self.credential:
                    smtp.login(self.credential.username, self.credential.password)
                smtp.send_message(msg, to_addrs=recipients)

            self.logger.info(f"Report sent to {len(recipients)} recipient(s) via {self.settings.smtp_host}")
            return (True, None)

        except (smtplib.SMTPException, OSError) as e:
            error_msg = f"Failed to send report to {'; '.join(recipients)}: {str(e)}"
            self.logger.error(error_msg)
            return (False, error_msg)

    def preview_report(self, result: ReportResult) -> Dict:
        """Render the report for preview without sending.

        Returns:
            Dict with rendered email content and metadata
        """
        text_content, html_content = self.renderer.render(result, self.settings.subject)
        return {
            'subject': self.settings.subject,
            'sender': self.settings.sender,
            'recipients': self.settings.recipient_list,
            'priority': self.settings.priority,
            'smtp_host': self.settings.smtp_host,
            'smtp_port': self.settings.smtp_port,
            'text_content': text_content,
            'html_content': html_content,
        }
