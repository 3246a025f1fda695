"""Report delivery by email."""

from .email import EmailNotificationService

__all__ = ['EmailNotificationService']
