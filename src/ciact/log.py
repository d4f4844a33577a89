#!/usr/bin/env python3
"""
log - Logging setup for ciact.

Everything goes to a log file so the live menu is never interrupted;
debug mode additionally mirrors records to stderr.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "ciact"
_FORMAT = "%(asctime)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def log_dir() -> Path:
    """Try /var/log first, fall back to /tmp."""
    d = Path("/var/log")
    if not d.exists() or not os.access(d, os.W_OK):
        d = Path("/tmp")
    return d


def setup_logging(debug: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Called once per CLI run, but tests may call it repeatedly.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    try:
        fh = logging.FileHandler(log_file or log_dir() / f"{LOGGER_NAME}.log")
        fh.setLevel(logging.DEBUG if debug else logging.INFO)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
    except OSError:
        # If logging setup fails, continue without file logging
        pass

    if debug:
        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(logging.DEBUG)
        sh.setFormatter(formatter)
        logger.addHandler(sh)
    else:
        logger.addHandler(logging.NullHandler())

    logger.propagate = False
    return logger
