"""
Logging setup for the Classroom service.
"""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach a console handler to the root logger once and set its level."""
    global _configured

    logger = logging.getLogger()
    logger.setLevel(level.upper())

    if not _configured:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)
        _configured = True

    return logger
