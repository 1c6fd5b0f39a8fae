"""Logging setup shared by the API server and CLI scripts."""

import logging
import time

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    # LOG_DATEFMT is UTC.
    logging.Formatter.converter = time.gmtime
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    logging.getLogger().setLevel(level)
    # RequestLoggingMiddleware already logs every request.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
