"""Logging setup shared by the API process and the batch recompute command."""

import logging

from donor_rank_api.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Install a single stream handler on the package logger.

    Safe to call more than once; repeated calls only update the level.
    """
    package_logger = logging.getLogger("donor_rank_api")
    package_logger.setLevel(settings.log_level.upper())

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
