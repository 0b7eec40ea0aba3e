# -*- coding: utf-8 -*-
"""
Translation Compiler (Table Reconciler)
=======================================

Turns the set of discovered strings into the files a mod ships:

    i18n/default.json          key -> source string, one link comment per entry
    i18n/<locale>.json         annotated translation file, regenerated from
                               the entry store in i18nSource/<locale>.json
    i18n/<locale>.edits.json   what a translator still has to do

Keys survive small edits to a string: a new string that closely resembles a
string that disappeared inherits its key, so the old translation shows up
next to it flagged for review instead of vanishing.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from rapidfuzz import fuzz, utils as fuzz_utils

from localize_from_source.core.constants import (
    ATTENTION_SENTINEL, COMMIT_COMMENT_PREFIX, DEFAULT_TABLE_NAME, DO_NOT_EDIT_COMMENT, KEY_LENGTH,
    LOCALE_FILE_COMMENTS, MINIMUM_KEY_INHERIT_SCORE, MINIMUM_SUGGESTION_SCORE, NO_LINK_COMMENT,
    PLACE_HOLDER_KEY, PLACE_HOLDER_VALUE,
)
from localize_from_source.core.errors import ErrorCode, FatalError
from localize_from_source.core.reporter import DiscoveredString, Reporter
from localize_from_source.core.translation_store import (
    TranslationEdit, TranslationEntry, edits_file_path, entry_store_path, list_store_locales,
    read_entry_store, render_edits_file,
)
from localize_from_source.utils.config import CombinedConfig
from localize_from_source.utils.encoding import read_text_safely, save_text_if_changed
from localize_from_source.utils.json_io import json_string, loads_lenient, parse_string_mapping

logger = logging.getLogger(__name__)


# ────────────────────────── Results ──────────────────────────

@dataclass
class LocaleStats:
    translated: int = 0
    changed: int = 0
    missing: int = 0


@dataclass
class CompileResult:
    success: bool
    message: str = ""
    source_table: Dict[str, str] = field(default_factory=dict)
    written: List[Path] = field(default_factory=list)
    # Files that are out of date (verify mode only)
    stale: List[Path] = field(default_factory=list)
    added: int = 0
    removed: int = 0
    inherited: int = 0
    locales: Dict[str, LocaleStats] = field(default_factory=dict)


# ────────────────────────── Keys & matching ──────────────────────────

def content_key(text: str, length: int = KEY_LENGTH) -> str:
    """Deterministic key for a string: base32 of its SHA-256, lower-cased and truncated."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return base64.b32encode(digest).decode("ascii").rstrip("=").lower()[:length]


def generate_unique_key(text: str, keys_in_use: Set[str]) -> str:
    """content_key, lengthened one character at a time until it clashes with nothing."""
    full = content_key(text, length=64)
    length = KEY_LENGTH
    while full[:length] in keys_in_use:
        length += 1
        if length > len(full):
            raise ValueError(f"cannot make a unique key for \"{text}\"")
    if length > KEY_LENGTH:
        logger.warning("Key collision for \"%s\"; using a %d-character key", text, length)
    return full[:length]


def similarity(a: str, b: str) -> float:
    return fuzz.token_set_ratio(a, b, processor=fuzz_utils.default_process)


def pair_changed_strings(new_strings: List[str], deleted_strings: List[str], minimum_score: float) -> Dict[str, str]:
    """
    Greedy best-first pairing of new strings with deleted ones.  Ties go to the
    earlier new string, then the earlier deleted string.  Returns new -> deleted.
    """
    candidates: List[Tuple[float, int, int]] = []
    for new_index, new_string in enumerate(new_strings):
        for deleted_index, deleted_string in enumerate(deleted_strings):
            score = similarity(new_string, deleted_string)
            if score >= minimum_score:
                candidates.append((score, new_index, deleted_index))
    candidates.sort(key=lambda c: (-c[0], c[1], c[2]))

    pairs: Dict[str, str] = {}
    taken: Set[int] = set()
    for score, new_index, deleted_index in candidates:
        new_string = new_strings[new_index]
        if new_string in pairs or deleted_index in taken:
            continue
        pairs[new_string] = deleted_strings[deleted_index]
        taken.add(deleted_index)
        logger.debug("Matched \"%s\" to former \"%s\" (%.0f)", new_string, deleted_strings[deleted_index], score)
    return pairs


def find_best_match(text: str, candidates: Iterable[Tuple[str, str]], minimum_score: float) -> Optional[str]:
    """Among (candidate_text, tag) pairs, the tag of the best match scoring above *minimum_score*."""
    best: Optional[Tuple[float, str]] = None
    for candidate_text, tag in candidates:
        score = similarity(text, candidate_text)
        if score > minimum_score and (best is None or score > best[0]):
            best = (score, tag)
    return best[1] if best is not None else None


def suggest_orphaned_translation(source: str, orphans: Dict[str, TranslationEntry]) -> Optional[TranslationEntry]:
    """The translation of a retired key whose old source is close enough to *source* to offer for review."""
    match_key = find_best_match(source, [(e.source, k) for k, e in orphans.items()], MINIMUM_SUGGESTION_SCORE)
    return orphans[match_key] if match_key is not None else None


# ────────────────────────── Source table I/O ──────────────────────────

def read_source_table(i18n_folder: Path) -> Dict[str, str]:
    """
    Reads i18n/default.json (key -> source string).  A missing file is an
    empty table; a file that can't be parsed is fatal.
    """
    path = Path(i18n_folder) / DEFAULT_TABLE_NAME
    if not path.exists():
        return {}

    text = read_text_safely(path)
    try:
        if text is None:
            raise OSError("the file cannot be read")
        table = parse_string_mapping(loads_lenient(text), DEFAULT_TABLE_NAME)
    except (OSError, ValueError) as e:
        raise FatalError(f"Unable to read {path}: {e}", ErrorCode.DEFAULT_JSON_UNUSABLE, e)

    table.pop(PLACE_HOLDER_KEY, None)
    return table


def reverse_source_table(table: Dict[str, str], reporter: Optional[Reporter] = None) -> Dict[str, str]:
    """source string -> key.  Duplicated strings keep their first key."""
    result: Dict[str, str] = {}
    for key, value in table.items():
        if value in result:
            message = (f"{DEFAULT_TABLE_NAME} contains two keys that translate to the same string - "
                       f"discarding {key} => \"{value}\"")
            if reporter is not None:
                reporter.warning(ErrorCode.DEFAULT_JSON_INVALID_USER_EDIT, message)
            else:
                logger.warning(message)
            continue
        result[value] = key
    return result


def _commit_comment(commit: Optional[str]) -> List[str]:
    return [COMMIT_COMMENT_PREFIX + commit] if commit else []


# ────────────────────────── Compiler ──────────────────────────

class TranslationCompiler:
    """Reconciles discovered strings with the persisted tables and writes the i18n folder."""

    def __init__(self, config: CombinedConfig, reporter: Reporter, verify_only: bool = False):
        self.config = config
        self.reporter = reporter
        self.verify_only = verify_only
        self.i18n_folder = config.i18n_folder
        self.source_folder = config.i18n_source_folder

    def generate_i18n_files(self, discovered_strings: Iterable[DiscoveredString]) -> CompileResult:
        result = CompileResult(success=True)
        errors_before = self.reporter.error_count

        # Same text found in several places: the first discovery wins
        found: Dict[str, DiscoveredString] = {}
        for discovered in discovered_strings:
            found.setdefault(discovered.text, discovered)

        old_table = read_source_table(self.i18n_folder)
        old_string_to_key = reverse_source_table(old_table, self.reporter)

        new_strings = [s for s in found if s not in old_string_to_key]
        deleted_strings = [s for s in old_string_to_key if s not in found]
        inherited = pair_changed_strings(new_strings, deleted_strings, MINIMUM_KEY_INHERIT_SCORE)
        result.added = len(new_strings) - len(inherited)
        result.removed = len(deleted_strings) - len(inherited)
        result.inherited = len(inherited)

        string_to_key = self._assign_keys(found, old_string_to_key, inherited)
        order = self._discovery_order(found)
        table = {string_to_key[s]: s for s in sorted(found, key=lambda s: order[s])}
        result.source_table = table

        self._emit(self.i18n_folder / DEFAULT_TABLE_NAME, self._render_source_table(table, found), result)

        for locale in list_store_locales(self.source_folder):
            self._generate_locale(locale, table, found, result)

        result.success = self.reporter.error_count == errors_before and not result.stale
        if result.stale:
            self.reporter.error(
                ErrorCode.TRANSLATION_REQUIRED,
                "Localized strings have been changed - rebuild locally and commit any localization changes. "
                f"Out of date: {', '.join(str(p) for p in result.stale)}",
            )
        result.message = (
            f"{len(table)} strings ({result.added} new, {result.inherited} changed, {result.removed} removed); "
            f"{len(result.written)} files written"
        )
        logger.info(result.message)
        return result

    # ── keys ──

    def _assign_keys(
        self,
        found: Dict[str, DiscoveredString],
        old_string_to_key: Dict[str, str],
        inherited: Dict[str, str],
    ) -> Dict[str, str]:
        string_to_key: Dict[str, str] = {}
        for text in found:
            if text in old_string_to_key:
                string_to_key[text] = old_string_to_key[text]
            elif text in inherited:
                string_to_key[text] = old_string_to_key[inherited[text]]

        keys_in_use = set(string_to_key.values())
        for text, discovered in found.items():
            if text in string_to_key:
                continue
            if discovered.key and discovered.key not in keys_in_use:
                key = discovered.key
            else:
                key = generate_unique_key(text, keys_in_use)
            string_to_key[text] = key
            keys_in_use.add(key)
        return string_to_key

    @staticmethod
    def _discovery_order(found: Dict[str, DiscoveredString]) -> Dict[str, Tuple[str, int, int]]:
        # file, then line; discovery order breaks ties and orders strings with no provenance
        return {
            text: (d.file or "", d.line or 0, index)
            for index, (text, d) in enumerate(found.items())
        }

    # ── default.json ──

    def _render_source_table(self, table: Dict[str, str], found: Dict[str, DiscoveredString]) -> str:
        lines = [DO_NOT_EDIT_COMMENT] + _commit_comment(self.config.head_commit) + ["{"]
        if not table:
            lines.append(f"  {json_string(PLACE_HOLDER_KEY)}: {json_string(PLACE_HOLDER_VALUE)}")
        keys = list(table)
        for index, key in enumerate(keys):
            text = table[key]
            discovered = found[text]
            link = self.config.make_link(discovered.file, discovered.line)
            lines.append(f"  // {link if link is not None else NO_LINK_COMMENT}")
            lines.append(f"  {json_string(key)}: {json_string(text)}{',' if index < len(keys) - 1 else ''}")
        lines.append("}")
        return "\n".join(lines) + "\n"

    # ── per-locale files ──

    def _generate_locale(
        self,
        locale: str,
        table: Dict[str, str],
        found: Dict[str, DiscoveredString],
        result: CompileResult,
    ) -> None:
        store_path = entry_store_path(self.source_folder, locale)
        try:
            entries = read_entry_store(store_path)
        except (OSError, ValueError) as e:
            self.reporter.warning(
                ErrorCode.LOCALE_JSON_UNUSABLE,
                f"Translation entries for '{locale}' ({store_path}) are unreadable and will be treated as empty: {e}",
            )
            entries = {}

        # Translations whose key no longer exists can still be suggested for a similar string
        orphans: Dict[str, TranslationEntry] = {k: e for k, e in entries.items() if k not in table}

        stats = LocaleStats()
        edits: Dict[str, TranslationEdit] = {}
        blocks: List[Tuple[List[str], Optional[str]]] = []
        for key, source in table.items():
            discovered = found[source]
            link = self.config.make_link(discovered.file, discovered.line)
            comments: List[str] = []
            entry = entries.get(key)
            if entry is None:
                entry = suggest_orphaned_translation(source, orphans)

            if entry is not None and entry.source == source:
                stats.translated += 1
                if entry.is_machine_generated:
                    comments.append(f"// {ATTENTION_SENTINEL}MACHINE GENERATED by {entry.author} on {entry.date}")
                else:
                    comments.append(f"// Translated by {entry.author} on {entry.date}")
            elif entry is not None:
                stats.changed += 1
                comments.append(f"// {ATTENTION_SENTINEL}SOURCE STRING CHANGED - originally translated by {entry.author} on {entry.date}")
                comments.append(f"//      old source string: {json_string(entry.source)}")
                edits[key] = TranslationEdit(entry.source, source, entry.translation, None, link)
            else:
                stats.missing += 1
                comments.append(f"// {ATTENTION_SENTINEL}MISSING TRANSLATION")
                edits[key] = TranslationEdit(None, source, None, None, link)
            comments.append(f"// source language string: {json_string(source)}")
            blocks.append((comments, entry.translation if entry is not None else None))

        result.locales[locale] = stats
        logger.info("%s: %d translated, %d changed, %d missing", locale, stats.translated, stats.changed, stats.missing)

        self._emit(self.i18n_folder / f"{locale}.json", self._render_locale_file(list(table), blocks), result)

        edits_path = edits_file_path(self.i18n_folder, locale)
        if edits:
            self._emit(edits_path, render_edits_file(edits), result)
        else:
            self._remove(edits_path, result)

    def _render_locale_file(self, keys: List[str], blocks: List[Tuple[List[str], Optional[str]]]) -> str:
        lines = list(LOCALE_FILE_COMMENTS) + _commit_comment(self.config.head_commit) + ["{"]
        live = [i for i, (_, value) in enumerate(blocks) if value is not None]
        last_live = live[-1] if live else -1
        for index, (key, (comments, value)) in enumerate(zip(keys, blocks)):
            if index > 0:
                lines.append("")
            lines.extend(f"  {c}" for c in comments)
            if value is not None:
                lines.append(f"  {json_string(key)}: {json_string(value)}{',' if index < last_live else ''}")
            else:
                lines.append(f"  // {json_string(key)}: \"\",")
        lines.append("}")
        return "\n".join(lines) + "\n"

    # ── file output ──

    def _emit(self, path: Path, content: str, result: CompileResult) -> None:
        if self.verify_only:
            existing = read_text_safely(path) if path.is_file() else None
            if existing is None or existing.replace("\r\n", "\n") != content:
                result.stale.append(path)
            return

        try:
            if save_text_if_changed(path, content):
                result.written.append(path)
                logger.info("Wrote %s", path)
            else:
                logger.debug("%s is unchanged", path)
        except OSError as e:
            self.reporter.error(ErrorCode.BAD_FILE, f"Unable to write {path}: {e}")

    def _remove(self, path: Path, result: CompileResult) -> None:
        if not path.exists():
            return
        if self.verify_only:
            result.stale.append(path)
            return
        try:
            path.unlink()
            result.written.append(path)
            logger.info("Removed %s (nothing pending)", path)
        except OSError as e:
            self.reporter.error(ErrorCode.LOCALE_EDITS_JSON_UNUSABLE, f"Unable to remove {path}: {e}")
