"""
Logging configuration for the loyalty service.

Configures the root logger once per process. Level comes from LOG_LEVEL
(default INFO). Gunicorn captures stdout, so everything goes to a single
stream handler.
"""
import os
import sys
import logging

LOG_FORMAT = '[%(asctime)s] %(levelname)s in %(name)s: %(message)s'

_configured = False


def setup_logging(level: str = None) -> None:
    """
    Configure root logging.

    Args:
        level: Log level name. Falls back to LOG_LEVEL env var, then INFO.
    """
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(log_level)
    root.addHandler(handler)

    # SQLAlchemy engine logging is very chatty at INFO
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    _configured = True
