"""
HTML and plain text rendering of a report result.
"""

from pathlib import Path
from typing import Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import ReportResult


class ReportRenderer:
    """Render ``ReportResult`` objects with the package templates."""

    def __init__(self, template_dir=None):
        template_dir = template_dir or Path(__file__).parent / 'templates'
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(['html']),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _template_vars(self, result: ReportResult, subject: str) -> dict:
        return {
            'subject': subject,
            'report': result,
            'generated_at': result.generated_at.strftime("%Y-%m-%d %H:%M %Z").strip(),
            'backup_window_hours': round(result.thresholds.backup_window.total_seconds() / 3600, 1),
        }

    def render_html(self, result: ReportResult, subject: str = '') -> str:
        template = self.jinja_env.get_template('report.html')
        return template.render(**self._template_vars(result, subject))

    def render_text(self, result: ReportResult, subject: str = '') -> str:
        template = self.jinja_env.get_template('report.txt')
        return template.render(**self._template_vars(result, subject))

    def render(self, result: ReportResult, subject: str = '') -> Tuple[str, str]:
        """Return (text, html) bodies for one report."""
        return self.render_text(result, subject), self.render_html(result, subject)
