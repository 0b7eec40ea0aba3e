# -*- coding: utf-8 -*-
"""
Translation Stores
==================

The per-locale translation-entry store (i18nSource/<locale>.json) is the
durable record of every translation ever ingested:

    // Do not manually edit this file! ...
    {
      "translations": {
        "k2m4q...": {"source": "Hello", "translation": "Hallo",
                     "author": "nexus:someone", "ingestionDate": "2024-05-01T10:00:00+00:00"}
      }
    }

The edits file (i18n/<locale>.edits.json) lists what a translator still has
to do for a locale; it is regenerated on every build.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from localize_from_source.core.constants import (
    EDITS_FILE_COMMENT, EDITS_SUFFIX, ENTRY_STORE_COMMENTS, MACHINE_AUTHOR_PREFIX,
)
from localize_from_source.utils.json_io import dump_pretty, read_json_file

logger = logging.getLogger(__name__)

_RE_LOCALE = re.compile(r"^[a-z][a-z](-[a-z]+)?$", re.IGNORECASE)


def is_locale_name(name: str) -> bool:
    return _RE_LOCALE.match(name) is not None


def is_machine_author(author: str) -> bool:
    """'automation:deepl' and 'Automation:DeepL' are both machine translators."""
    return author.lower().startswith(MACHINE_AUTHOR_PREFIX)


# ────────────────────────── Data Model ──────────────────────────

@dataclass(frozen=True)
class TranslationEntry:
    """One ingested translation of one key in one locale."""
    source: str          # source-language text at the time of translation
    translation: str
    author: str          # "<platform>:<id>"; "automation:<engine>" for machine translation
    ingestion_date: str  # ISO-8601, UTC

    @property
    def is_machine_generated(self) -> bool:
        return is_machine_author(self.author)

    @property
    def date(self) -> str:
        """Just the calendar date, for annotations."""
        try:
            return datetime.fromisoformat(self.ingestion_date).date().isoformat()
        except ValueError:
            return self.ingestion_date

    def to_json(self) -> Dict[str, str]:
        return {
            "source": self.source,
            "translation": self.translation,
            "author": self.author,
            "ingestionDate": self.ingestion_date,
        }

    @classmethod
    def from_json(cls, data: Any, key: str) -> "TranslationEntry":
        if not isinstance(data, dict):
            raise ValueError(f"entry '{key}' should be an object")
        values = {}
        for json_name in ("source", "translation", "author", "ingestionDate"):
            value = data.get(json_name)
            if not isinstance(value, str):
                raise ValueError(f"entry '{key}' is missing '{json_name}'")
            values[json_name] = value
        return cls(values["source"], values["translation"], values["author"], values["ingestionDate"])


@dataclass(frozen=True)
class TranslationEdit:
    """Pending translator work for one key."""
    old_source: Optional[str]
    new_source: str
    old_target: Optional[str] = None
    new_target: Optional[str] = None
    link: Optional[str] = None

    def to_json(self) -> Dict[str, Optional[str]]:
        return {
            "oldSource": self.old_source,
            "newSource": self.new_source,
            "oldTarget": self.old_target,
            "newTarget": self.new_target,
            "link": self.link,
        }

    @classmethod
    def from_json(cls, data: Any, key: str) -> "TranslationEdit":
        if not isinstance(data, dict) or not isinstance(data.get("newSource"), str):
            raise ValueError(f"edit '{key}' should be an object with a 'newSource'")
        for name in ("oldSource", "oldTarget", "newTarget", "link"):
            if data.get(name) is not None and not isinstance(data.get(name), str):
                raise ValueError(f"edit '{key}': '{name}' should be a string or null")
        return cls(data.get("oldSource"), data["newSource"], data.get("oldTarget"), data.get("newTarget"), data.get("link"))


def looks_like_edits(data: Any) -> bool:
    """True for an edits-file body (key -> {newSource, newTarget, ...})."""
    return isinstance(data, dict) and bool(data) and all(
        isinstance(v, dict) and "newSource" in v for v in data.values()
    )


# ────────────────────────── Entry store ──────────────────────────

def entry_store_path(source_folder: Path, locale: str) -> Path:
    return Path(source_folder) / f"{locale}.json"


def list_store_locales(source_folder: Path) -> List[str]:
    """Locales that have a translation-entry store, sorted."""
    folder = Path(source_folder)
    if not folder.is_dir():
        return []
    return sorted({p.stem.lower() for p in folder.glob("*.json") if is_locale_name(p.stem)})


def parse_entry_store(data: Any) -> Dict[str, TranslationEntry]:
    if not isinstance(data, dict) or not isinstance(data.get("translations"), dict):
        raise ValueError("expected an object with a 'translations' object")
    return {key: TranslationEntry.from_json(value, key) for key, value in data["translations"].items()}


def read_entry_store(path: Path) -> Dict[str, TranslationEntry]:
    """Reads a store; a missing file is an empty store.  Raises OSError/ValueError when unreadable."""
    path = Path(path)
    if not path.exists():
        return {}
    return parse_entry_store(read_json_file(path))


def render_entry_store(entries: Dict[str, TranslationEntry], key_order: Iterable[str]) -> str:
    """Entries appear in *key_order*; keys not listed there follow in their own order."""
    ordered = [k for k in key_order if k in entries]
    listed = set(ordered)
    ordered += [k for k in entries if k not in listed]
    body = dump_pretty({"translations": {k: entries[k].to_json() for k in ordered}})
    return "\n".join(ENTRY_STORE_COMMENTS) + "\n" + body + "\n"


# ────────────────────────── Edits files ──────────────────────────

def edits_file_path(i18n_folder: Path, locale: str) -> Path:
    return Path(i18n_folder) / f"{locale}{EDITS_SUFFIX}.json"


def parse_edits(data: Any) -> Dict[str, TranslationEdit]:
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return {key: TranslationEdit.from_json(value, key) for key, value in data.items()}


def render_edits_file(edits: Dict[str, TranslationEdit]) -> str:
    body = dump_pretty({key: edit.to_json() for key, edit in edits.items()})
    return EDITS_FILE_COMMENT + "\n" + body + "\n"
