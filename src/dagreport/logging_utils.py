"""
Logging configuration for the report job.
"""

import logging
import logging.handlers
import sys

PACKAGE_LOGGER = 'dagreport'
LOG_FORMAT = '[%(asctime)s] %(levelname)s [%(name)s] %(message)s'


def setup_logging(log_file=None, verbose=False):
    """
    Configure logging for a report run.

    The console shows INFO (DEBUG with ``verbose``); a log file always
    receives DEBUG records from this package so failed runs can be
    reconstructed. Other libraries only log warnings.

    Args:
        log_file: Path to log file (None = stdout only)
        verbose: Show DEBUG records on the console

    Returns:
        The package logger
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(formatter)
    handlers.append(console)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5,
                encoding='utf-8',
            )
        except OSError as e:
            print(f"Warning: Could not create log file {log_file}: {e}", file=sys.stderr)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

    logging.basicConfig(level=logging.WARNING, handlers=handlers, force=True)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)
    return package_logger
