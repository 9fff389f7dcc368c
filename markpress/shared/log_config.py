"""Logging setup shared by the API server and maintenance scripts."""

from __future__ import annotations

import logging
import sys

from markpress.shared.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings.

    Logs go to stdout, and also to ``settings.log_file`` when set.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Request lines are logged by our own middleware.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
