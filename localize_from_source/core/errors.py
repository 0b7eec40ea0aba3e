# -*- coding: utf-8 -*-
"""
Error Catalogue
===============

Stable numeric diagnostic codes and the exception used for faults that must
stop the current command.
"""

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Diagnostic codes, printed as LFS0001 etc."""
    TRANSLATION_REQUIRED = 1
    DEFAULT_JSON_UNUSABLE = 2
    DEFAULT_JSON_INVALID_USER_EDIT = 3
    LOCALE_JSON_UNUSABLE = 4
    LOCALE_EDITS_JSON_UNUSABLE = 5
    STRING_NOT_MARKED = 6
    IMPROPER_USE_OF_METHOD = 7
    LOCALIZING_EMPTY = 8
    BAD_CONFIG_FILE = 9
    MISSING_INGESTION_FILES = 10
    INCOMPLETE_TRANSLATION = 11
    INCOMPATIBLE_SOURCE = 12
    MUNGED_TRANSLATION_FILE = 13
    BAD_FILE = 14
    INGESTING_OUT_OF_SYNC = 15
    GIT_REPO_UNAVAILABLE = 16


class FatalError(Exception):
    """A fault that aborts the running command (config, listing, ingestion desync...)."""

    def __init__(self, message: str, error_code: ErrorCode, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.error_code = ErrorCode(error_code)
        if cause is not None:
            self.__cause__ = cause


class MarkerTableError(RuntimeError):
    """The compile-time and run-time marker definitions disagree (a bug in this tool)."""
