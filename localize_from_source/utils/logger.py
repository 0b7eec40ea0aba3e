# -*- coding: utf-8 -*-
"""
Secure Logging Setup
====================
Configures loggers for the compiler.  Git remotes can carry access tokens or
user:password pairs, so those are masked before anything is written.
"""

import logging
import re
import sys
from typing import Optional

from localize_from_source.core.constants import DIAGNOSTICS_LOGGER

# Patterns to mask
MASKS = [
    (re.compile(r'(https?://)[^/\s:@]+:[^/\s@]+@'), r'\1***MASKED***@'),  # user:password@host
    (re.compile(r'(ghp_[a-zA-Z0-9]{30,})'), r'ghp_***MASKED***'),  # Github Token
    (re.compile(r'(github_pat_[a-zA-Z0-9_]{30,})'), r'github_pat_***MASKED***'),  # Fine-grained token
]

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def mask_sensitive(text: str) -> str:
    for pattern, replacement in MASKS:
        if pattern.search(text):
            text = pattern.sub(replacement, text)
    return text


class SensitiveDataFilter(logging.Filter):
    """Masks credentials in log records."""

    def filter(self, record):
        if not isinstance(record.msg, str):
            return True

        record.msg = mask_sensitive(record.msg)

        # Arguments too (e.g. log.info("Remote: %s", url))
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                mask_sensitive(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


def setup_logger(name: str = "localize_from_source", log_file: Optional[str] = None, level=logging.INFO):
    """Secure logger configuration: console handler plus an optional log file."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Handlers live here; the root logger would print everything twice
    logger.propagate = False

    # Clear existing handlers (avoid duplicates on repeated setup)
    if logger.handlers:
        logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler.addFilter(SensitiveDataFilter())
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SensitiveDataFilter())
    logger.addHandler(console_handler)

    return logger


def setup_diagnostics_logger(stream=None, log_file: Optional[str] = None):
    """
    Build-log diagnostics go out one per line with no timestamp prefix so that
    msbuild-style log parsers pick up the 'file(line,col) : error LFS0006: ...' shape.
    """
    logger = logging.getLogger(DIAGNOSTICS_LOGGER)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    if logger.handlers:
        logger.handlers = []

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter('%(message)s'))
    handler.addFilter(SensitiveDataFilter())
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.addFilter(SensitiveDataFilter())
        logger.addHandler(file_handler)

    return logger
