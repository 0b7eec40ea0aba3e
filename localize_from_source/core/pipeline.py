# -*- coding: utf-8 -*-
"""
Localization Pipeline
=====================

The two commands, end to end.

build:
1. Read LocalizeFromSourceConfig.json
2. Inspect the git repository (for links and the commit comment)
3. Scan the disassembly listing for marked strings
4. Refuse to go on if markers were misused, or strict mode found unmarked strings
5. Reconcile with i18n/ and i18nSource/ and write the files

ingest:
1. Read the config and git info
2. Merge the translator's file into i18nSource/<locale>.json
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from localize_from_source.core.decompiler import Decompiler
from localize_from_source.core.errors import FatalError
from localize_from_source.core.ingestion import IngestionMerger
from localize_from_source.core.instructions import load_listing
from localize_from_source.core.reporter import Reporter
from localize_from_source.core.translation_compiler import TranslationCompiler
from localize_from_source.utils.config import CombinedConfig, read_user_config
from localize_from_source.utils.git_repo import GitRepoInfo

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    SCANNING = "scanning"
    COMPILING = "compiling"
    INGESTING = "ingesting"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class PipelineResult:
    success: bool
    message: str
    stage: PipelineStage
    stats: Optional[Dict] = None
    error: Optional[str] = None


class LocalizationPipeline:
    """Runs one command against one mod project."""

    def __init__(self, source_root: Path, reporter: Optional[Reporter] = None):
        self.source_root = Path(source_root)
        self.reporter = reporter
        self.stage = PipelineStage.IDLE

    def _set_stage(self, stage: PipelineStage, message: str) -> None:
        self.stage = stage
        logger.info(message)

    def _load_config(self) -> CombinedConfig:
        self._set_stage(PipelineStage.CONFIGURING, f"Reading configuration from {self.source_root}")
        user_config = read_user_config(self.source_root)
        if self.reporter is None:
            self.reporter = Reporter(is_strict=user_config.is_strict)
        git_info = GitRepoInfo.create(self.source_root, self.reporter.report_git_problem)
        return CombinedConfig(self.source_root, user_config, git_info)

    def build(self, listing_path: Path, verify_only: bool = False) -> PipelineResult:
        try:
            config = self._load_config()
            reporter = self.reporter

            self._set_stage(PipelineStage.SCANNING, f"Scanning {listing_path}")
            listing = load_listing(listing_path)
            decompiler = Decompiler(config)
            decompiler.find_localizable_strings(listing, reporter)

            if reporter.any_usage_errors:
                return self._refuse("Marker methods were used incorrectly - fix the errors above")
            if config.is_strict and reporter.any_unmarked_strings:
                return self._refuse("Strict mode found strings that are not marked as localized or invariant")

            self._set_stage(PipelineStage.COMPILING, "Generating translation tables")
            compiler = TranslationCompiler(config, reporter, verify_only=verify_only)
            compiled = compiler.generate_i18n_files(reporter.localizable_strings)
        except FatalError as e:
            return self._fail(e)

        stats = {
            "strings": len(compiled.source_table),
            "added": compiled.added,
            "changed": compiled.inherited,
            "removed": compiled.removed,
            "files_written": len(compiled.written),
            "locales": {locale: vars(s) for locale, s in compiled.locales.items()},
        }
        self.stage = PipelineStage.COMPLETED if compiled.success else PipelineStage.ERROR
        return PipelineResult(compiled.success, compiled.message, self.stage, stats)

    def ingest(self, translation_path: Path, author: str) -> PipelineResult:
        try:
            config = self._load_config()
            self._set_stage(PipelineStage.INGESTING, f"Ingesting {translation_path}")
            entries = IngestionMerger(config, self.reporter).ingest(translation_path, author)
        except FatalError as e:
            return self._fail(e)

        self.stage = PipelineStage.COMPLETED
        return PipelineResult(
            True,
            f"Ingested \"{translation_path}\" into {self.source_root}",
            self.stage,
            {"entries": len(entries)},
        )

    def _refuse(self, message: str) -> PipelineResult:
        self.stage = PipelineStage.ERROR
        logger.error(message)
        return PipelineResult(False, message, self.stage)

    def _fail(self, error: FatalError) -> PipelineResult:
        self.stage = PipelineStage.ERROR
        if self.reporter is None:
            self.reporter = Reporter()
        self.reporter.error(error.error_code, error.message)
        return PipelineResult(False, error.message, self.stage, error=error.error_code.name)
