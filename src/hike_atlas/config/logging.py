"""
Centralized logging configuration for Hike Atlas.

Call setup_logging() from entry points (build scripts, batch runners)
before processing any documents. Library modules only create loggers.
"""

import logging
import sys


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure the root logger for the application.

    Parameters
    ----------
    level : int
        Logging level (default: logging.INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
