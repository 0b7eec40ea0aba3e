# -*- coding: utf-8 -*-
"""
Reporter / Collector
====================

Collects the localizable strings found by the scanner and writes build
diagnostics in the msbuild canonical format:

    C:/src/ModEntry.cs(12,9) : error LFS0006: String is not marked ...
    LfsCompiler : warning LFS0016: Not executed from a git repository ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from localize_from_source.core.constants import DIAGNOSTIC_ORIGIN, DIAGNOSTICS_LOGGER, ERROR_PREFIX
from localize_from_source.core.errors import ErrorCode
from localize_from_source.core.instructions import Provenance

logger = logging.getLogger(__name__)


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class DiscoveredString:
    """A string found in the assembly (or imported from a legacy table)."""
    # Format strings arrive already converted to the {{name}} table format
    text: str
    is_format: bool = False
    file: Optional[str] = None
    line: Optional[int] = None
    # Pre-existing key when imported from a legacy table
    key: Optional[str] = None


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    code: ErrorCode
    message: str
    provenance: Optional[Provenance] = None

    def format(self) -> str:
        origin = str(self.provenance) if self.provenance is not None else DIAGNOSTIC_ORIGIN
        return f"{origin} : {self.severity.value} {ERROR_PREFIX}{int(self.code):04d}: {self.message}"


class Reporter:
    """
    Deduplicates discoveries by exact text.  When the same text is found more
    than once, the first discovery (in scan order) keeps its provenance.
    """

    def __init__(self, is_strict: bool = False):
        self.is_strict = is_strict
        self._discovered: Dict[str, DiscoveredString] = {}
        self._last_unmarked_position: Optional[Tuple[str, int]] = None
        self.any_unmarked_strings = False
        self.any_usage_errors = False
        self.any_errors = False
        self.error_count = 0
        self.warning_count = 0
        self._diagnostics_logger = logging.getLogger(DIAGNOSTICS_LOGGER)

    @property
    def localizable_strings(self) -> List[DiscoveredString]:
        return list(self._discovered.values())

    # ── discoveries ──

    def report_localized(self, text: str, is_format: bool, provenance: Optional[Provenance], key: Optional[str] = None) -> None:
        if text == "":
            self.report_empty_localization(provenance)
            return
        if text in self._discovered:
            return
        self._discovered[text] = DiscoveredString(
            text=text,
            is_format=is_format,
            file=provenance.file if provenance is not None else None,
            line=provenance.line if provenance is not None else None,
            key=key,
        )

    def report_unmarked(self, text: str, provenance: Optional[Provenance]) -> None:
        self.any_unmarked_strings = True

        # Interpolated strings get split into several literals; one complaint per line is plenty
        position = (provenance.file, provenance.line) if provenance is not None else None
        if position is None or position != self._last_unmarked_position:
            self.write(
                Severity.ERROR if self.is_strict else Severity.WARNING,
                ErrorCode.STRING_NOT_MARKED,
                f"String is not marked as invariant or localized - it should be surrounded with I(), IF(), L() "
                f"or LF() to indicate which it is: \"{text}\"",
                provenance,
            )
        self._last_unmarked_position = position

    def report_misuse(self, provenance: Optional[Provenance], message: str) -> None:
        self.any_usage_errors = True
        self.write(Severity.ERROR, ErrorCode.IMPROPER_USE_OF_METHOD, message, provenance)

    def report_empty_localization(self, provenance: Optional[Provenance]) -> None:
        self.write(
            Severity.ERROR,
            ErrorCode.LOCALIZING_EMPTY,
            "The empty string should not be localized - it's empty in all locales.",
            provenance,
        )

    def report_git_problem(self, message: str) -> None:
        self.warning(ErrorCode.GIT_REPO_UNAVAILABLE, message)

    # ── generic diagnostics ──

    def error(self, code: ErrorCode, message: str, provenance: Optional[Provenance] = None) -> None:
        self.write(Severity.ERROR, code, message, provenance)

    def warning(self, code: ErrorCode, message: str, provenance: Optional[Provenance] = None) -> None:
        self.write(Severity.WARNING, code, message, provenance)

    def write(self, severity: Severity, code: ErrorCode, message: str, provenance: Optional[Provenance] = None) -> None:
        diagnostic = Diagnostic(severity, ErrorCode(code), message, provenance)
        if severity is Severity.ERROR:
            self.any_errors = True
            self.error_count += 1
        else:
            self.warning_count += 1
        self.emit(diagnostic)

    def emit(self, diagnostic: Diagnostic) -> None:
        level = logging.ERROR if diagnostic.severity is Severity.ERROR else logging.WARNING
        self._diagnostics_logger.log(level, diagnostic.format())


class RecordingReporter(Reporter):
    """Keeps diagnostics in memory instead of logging them (used by tests)."""

    def __init__(self, is_strict: bool = False):
        super().__init__(is_strict)
        self.diagnostics: List[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def codes(self, severity: Optional[Severity] = None) -> List[ErrorCode]:
        return [d.code for d in self.diagnostics if severity is None or d.severity is severity]

    @property
    def lines(self) -> List[str]:
        return [d.format() for d in self.diagnostics]
