"""
Custom exceptions for the DAG backup report.
"""


class ReportError(Exception):
    """Base exception for all report errors."""
    pass


class InventoryError(ReportError):
    """Base exception for Exchange inventory errors."""
    pass


class InventoryCommandError(InventoryError):
    """Raised when an Exchange shell command fails."""
    pass


class InventoryParseError(InventoryError):
    """Raised when Exchange shell output cannot be parsed."""
    pass


class CredentialError(ReportError):
    """Raised when mail transport credentials cannot be resolved."""
    pass


class MailError(ReportError):
    """Raised when the report cannot be delivered."""
    pass


class ConfigError(ReportError):
    """Raised for configuration errors."""
    pass
