"""
File logging for the server.

stdout carries the MCP stdio transport, so everything goes to
``<log_dir>/codecraft.log``.
"""

from __future__ import annotations

import logging
import os

from . import __version__

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def init_logger(log_dir: str, level: str = "INFO") -> logging.Logger:
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "codecraft.log")

    logger = logging.getLogger("codecraft")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not any(isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_path)
               for h in logger.handlers):
        fh = logging.FileHandler(log_path)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(fh)
    logger.info("codecraft MCP starting; version=%s", __version__)
    logger.info("Logging to %s", log_path)
    return logger
