"""
Logging setup shared by the API and the Streamlit UI.
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the package logger once; later calls only adjust the level."""
    global _configured

    if level is None:
        from .settings import get_settings
        level = get_settings().log_level

    package_logger = logging.getLogger("wrap_pricing")
    package_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    package_logger.addHandler(handler)
    _configured = True
