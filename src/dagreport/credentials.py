"""
SMTP credential resolution.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import CredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailCredential:
    username: str
    password: str

    def __repr__(self):
        return f"MailCredential(username={self.username!r}, password='***')"


def resolve_mail_credential() -> Optional[MailCredential]:
    """
    Resolve SMTP credentials from environment or file.

    Priority:
    1. MAIL_PASSWORD environment variable
    2. Password file named by MAIL_PASSWORD_FILE

    Returns:
        MailCredential, or None when MAIL_USERNAME is unset (anonymous relay)

    Raises:
        CredentialError: If a username is set but no password can be found
    """
    username = os.getenv('MAIL_USERNAME')
    if not username:
        logger.debug("No MAIL_USERNAME set, sending without authentication")
        return None

    if password := os.getenv('MAIL_PASSWORD'):
        logger.debug("Using SMTP password from environment variable")
        return MailCredential(username, password)

    password_file = os.getenv('MAIL_PASSWORD_FILE')
    if password_file:
        path = Path(password_file)
        try:
            password = path.read_text().strip()
        except OSError as e:
            raise CredentialError(f"Failed to read password file {path}: {e}")
        if password:
            logger.debug(f"Using SMTP password from file: {path}")
            return MailCredential(username, password)

    raise CredentialError(
        f"No SMTP password found for {username}. Set MAIL_PASSWORD "
        f"or point MAIL_PASSWORD_FILE at a file containing it"
    )
