"""Process-wide logging configuration."""

import logging
import sys

from . import config


def setup_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # bleak is chatty at DEBUG; keep it one notch quieter than the app.
    logging.getLogger("bleak").setLevel(max(level, logging.INFO))
