# -*- coding: utf-8 -*-
"""
Ingestion Merger
================

Folds a file returned by a translator back into the durable entry store
(i18nSource/<locale>.json).  The incoming file is either

  * the annotated i18n/<locale>.json with translations filled in, or
  * the edits file i18n/<locale>.edits.json with 'newTarget' values set.

Nothing is written unless every key in the incoming file still exists in the
source table; a translator working from a stale build has to re-base first.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional

from localize_from_source.core.constants import EDITS_SUFFIX
from localize_from_source.core.errors import ErrorCode, FatalError
from localize_from_source.core.reporter import Reporter
from localize_from_source.core.translation_compiler import read_source_table, suggest_orphaned_translation
from localize_from_source.core.translation_store import (
    TranslationEntry, entry_store_path, is_locale_name, is_machine_author, looks_like_edits, parse_edits,
    read_entry_store, render_entry_store,
)
from localize_from_source.utils.config import CombinedConfig
from localize_from_source.utils.encoding import read_text_safely, save_text_if_changed
from localize_from_source.utils.json_io import find_commit_comment, loads_lenient, parse_string_mapping

logger = logging.getLogger(__name__)

_RE_AUTHOR = re.compile(r"^[a-z]+:[^:]+$", re.IGNORECASE)


def is_author_id(author: str) -> bool:
    return _RE_AUTHOR.match(author) is not None


def locale_of_incoming_file(path: Path) -> str:
    """'de.json' -> 'de', 'pt-BR.edits.json' -> 'pt-br'.  Anything else is fatal."""
    name = Path(path).stem
    if name.lower().endswith(EDITS_SUFFIX):
        name = name[:-len(EDITS_SUFFIX)]
    if not is_locale_name(name):
        raise FatalError(
            f"The filename of the ingested translation ({Path(path).name}) should be its language or locale, e.g. 'de.json'",
            ErrorCode.BAD_FILE,
        )
    return name.lower()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IngestionMerger:
    """Merges one translator-supplied file into the locale's entry store."""

    def __init__(self, config: CombinedConfig, reporter: Reporter, now: Optional[Callable[[], datetime]] = None):
        self.config = config
        self.reporter = reporter
        self.now = now or _utc_now

    def ingest(self, incoming_path: Path, author: str) -> Dict[str, TranslationEntry]:
        incoming_path = Path(incoming_path)
        locale = locale_of_incoming_file(incoming_path)
        if not is_author_id(author):
            raise FatalError(
                f"The author '{author}' must be of the form 'platform:id', where platform is where the person "
                "can be contacted (e.g. nexus, github) and id is who they are there",
                ErrorCode.BAD_FILE,
            )

        source_table = read_source_table(self.config.i18n_folder)
        incoming = self._read_incoming(incoming_path, source_table)

        orphans = [key for key in incoming if key not in source_table]
        if orphans:
            raise FatalError(
                f"{incoming_path} contains keys that are no longer in the source table: {', '.join(orphans)}.  "
                "It was probably translated from an older build - regenerate the translation file and merge it by hand.",
                ErrorCode.INGESTING_OUT_OF_SYNC,
            )

        store_path = entry_store_path(self.config.i18n_source_folder, locale)
        try:
            old_entries = read_entry_store(store_path)
        except (OSError, ValueError) as e:
            raise FatalError(f"Could not read {store_path}: {e}", ErrorCode.BAD_FILE, e)

        # The locale file offered these, flagged, for strings similar to their old source
        orphans = {k: e for k, e in old_entries.items() if k not in source_table}

        timestamp = self.now().astimezone(timezone.utc).isoformat(timespec="seconds")
        new_entries: Dict[str, TranslationEntry] = {}
        missing = 0
        updated = 0
        for key, source in source_table.items():
            prior = old_entries.get(key)
            translation = incoming.get(key)
            if translation is None:
                missing += 1
                if prior is not None:
                    new_entries[key] = prior
                continue

            if prior is None:
                suggested = suggest_orphaned_translation(source, orphans)
                if suggested is not None and suggested.translation == translation:
                    prior = suggested

            if (prior is None
                    or prior.translation != translation
                    or (prior.is_machine_generated and not is_machine_author(author))):
                new_entries[key] = TranslationEntry(source, translation, author, timestamp)
                updated += 1
            else:
                new_entries[key] = prior
                if prior.source != source:
                    self.reporter.warning(
                        ErrorCode.INCOMPATIBLE_SOURCE,
                        f"The translation of {key} did not change even though its source string changed from "
                        f"\"{prior.source}\" to \"{source}\" - it is still flagged as needing review",
                    )

        if missing:
            self.reporter.warning(
                ErrorCode.INCOMPLETE_TRANSLATION,
                f"{incoming_path} is missing translations for {missing} of {len(source_table)} strings",
            )

        retired = [key for key in old_entries if key not in source_table]
        if retired:
            logger.info("Dropping %d translations of retired strings from %s", len(retired), store_path)

        try:
            changed = save_text_if_changed(store_path, render_entry_store(new_entries, source_table))
        except OSError as e:
            raise FatalError(f"Unable to write {store_path}: {e}", ErrorCode.BAD_FILE, e)
        logger.info(
            "Ingested %s as '%s' by %s: %d updated, %d missing%s",
            incoming_path, locale, author, updated, missing, "" if changed else " (no changes)",
        )
        return new_entries

    def _read_incoming(self, path: Path, source_table: Dict[str, str]) -> Dict[str, str]:
        if not path.is_file():
            raise FatalError(f"The translation file {path} does not exist", ErrorCode.MISSING_INGESTION_FILES)

        text = read_text_safely(path)
        if text is None:
            raise FatalError(f"Could not read {path}", ErrorCode.BAD_FILE)

        commit = find_commit_comment(text)
        if commit is None:
            self.reporter.warning(
                ErrorCode.MUNGED_TRANSLATION_FILE,
                f"{path} no longer has the comment on which commit built the file the translation was based on",
            )
        elif self.config.head_commit is not None and commit != self.config.head_commit:
            self.reporter.warning(
                ErrorCode.INGESTING_OUT_OF_SYNC,
                f"{path} was built from commit {commit} but the source is now at {self.config.head_commit}; "
                "strings that changed since then will be flagged for review",
            )

        try:
            data = loads_lenient(text)
            if looks_like_edits(data):
                return self._apply_edits(path, parse_edits(data), source_table)
            return parse_string_mapping(data, path.name)
        except ValueError as e:
            raise FatalError(f"Could not read {path}: {e}", ErrorCode.BAD_FILE, e)

    def _apply_edits(self, path: Path, edits, source_table: Dict[str, str]) -> Dict[str, str]:
        result: Dict[str, str] = {}
        for key, edit in edits.items():
            if edit.new_target is None:
                continue
            if key in source_table and edit.new_source != source_table[key]:
                self.reporter.warning(
                    ErrorCode.INCOMPATIBLE_SOURCE,
                    f"{path}: skipping {key} because its source string changed to \"{source_table[key]}\" "
                    "after the edit was written",
                )
                continue
            result[key] = edit.new_target
        return result
