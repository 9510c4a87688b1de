"""
Logging setup for the CV builder service.

Modules log through ``logging.getLogger(__name__)``; this only wires the
root handler once at startup.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    # httpx logs every poll request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # Handlers may already exist (uvicorn, pytest); only adjust the level then
    if logging.root.handlers:
        logging.root.setLevel(numeric_level)
        return

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
