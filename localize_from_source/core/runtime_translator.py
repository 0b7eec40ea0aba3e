# -*- coding: utf-8 -*-
"""
Runtime Translator
==================

What a mod does with the generated files at run time: look the source string
up in i18n/default.json to find its key, then look the key up in the current
locale's table (falling back from 'pt-br' to 'pt').  Anything missing falls
back to the source text and is reported, never raised.

Usage:
    translator = KeyValuePairTranslator(mod_dir / "i18n", lambda: game.locale)
    loc = Localizer(translator)
    loc.L("Hello")                       # -> "Hallo" when the locale is 'de'
    loc.LF("{0}|count| coins", 12)       # -> "12 Münzen"
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Dict, Optional

from localize_from_source.core.constants import DEFAULT_SOURCE_LOCALE, DEFAULT_TABLE_NAME, PLACE_HOLDER_KEY
from localize_from_source.core.extractors import EXTRACTORS
from localize_from_source.core.formats import (
    FormatMismatchError, strip_argument_names, to_domain_format, to_host_format,
)
from localize_from_source.utils.encoding import read_text_safely
from localize_from_source.utils.json_io import loads_lenient, parse_string_mapping

logger = logging.getLogger(__name__)

_PSEUDO_TABLE = str.maketrans({"e": "ê", "E": "É", "a": "ã", "o": "ö", "B": "ß"})
# Splits a str.format template into text and {N[:spec]} placeholders
_RE_TEMPLATE_PLACEHOLDER = re.compile(r"(\{\d+(?::[^{}]*)?\})")


def pseudo_localize(text: str) -> str:
    return text.translate(_PSEUDO_TABLE)


def _pseudo_localize_template(template: str) -> str:
    parts = _RE_TEMPLATE_PLACEHOLDER.split(template)
    return "".join(part if index % 2 else pseudo_localize(part) for index, part in enumerate(parts))


class LoggingRuntimeReporter:
    """Default sink for runtime problems; a game would route these to its own log."""

    def translation_files_corrupt(self, message: str) -> None:
        logger.error(message)

    def bad_translation(self, message: str) -> None:
        logger.warning(message)


class KeyValuePairTranslator:
    """
    Translates source-language strings using the key/value tables in an i18n
    folder.  The locale is asked for on every call, so it can change while the
    game runs; tables are read once per locale.
    """

    def __init__(
        self,
        i18n_folder: Path,
        locale_getter: Callable[[], str],
        source_locale: str = DEFAULT_SOURCE_LOCALE,
        reporter=None,
        pseudo_loc: bool = False,
    ):
        self.i18n_folder = Path(i18n_folder)
        self.locale_getter = locale_getter
        self.source_locale = source_locale.lower()
        self.reporter = reporter if reporter is not None else LoggingRuntimeReporter()
        self.pseudo_loc = pseudo_loc
        self._reverse_lookup: Optional[Dict[str, str]] = None
        self._reverse_lookup_loaded = False
        self._tables: Dict[str, Dict[str, str]] = {}

    # ── locale ──

    @property
    def current_locale(self) -> str:
        # Early in startup the game can report "" for the locale
        return (self.locale_getter() or "").lower() or self.source_locale

    def _is_source_locale(self, locale: str) -> bool:
        partial = locale
        while partial:
            if partial == self.source_locale:
                return True
            partial = partial[:max(0, partial.rfind("-"))]
        return False

    # ── public operations ──

    def translate(self, text: str) -> str:
        return self._pseudo(self.get_translation(text))

    def translate_formatted(self, template: str, *args) -> str:
        translated = self._translate_template(template)
        try:
            result = translated.format(*args)
        except (ValueError, IndexError, KeyError) as e:
            # e.g. a translator changed {{count:d}} into {{count:s}}
            self.reporter.bad_translation(f"Translation of '{template}' in {self.current_locale} cannot be formatted: {e}")
            result = strip_argument_names(template).format(*args)
        return self._pseudo(result)

    def translate_event(self, template: str, *args) -> str:
        translated = EXTRACTORS["SdvEvent"].substitute(template, self._translate_slot_template)
        return translated.format(*args)

    def translate_quest(self, text: str) -> str:
        return EXTRACTORS["SdvQuest"].substitute(text, lambda s: self._pseudo(self.get_translation(s)))

    def translate_mail(self, template: str, *args) -> str:
        translated = EXTRACTORS["SdvMail"].substitute(template, self._translate_slot_template)
        return translated.format(*args)

    # ── lookup ──

    def get_translation(self, text: str) -> str:
        locale = self.current_locale
        if self._is_source_locale(locale):
            return text

        reverse_lookup = self._get_reverse_lookup()
        if reverse_lookup is None:
            return text

        key = reverse_lookup.get(text)
        if key is None:
            self.reporter.translation_files_corrupt(f"The following string is not in {DEFAULT_TABLE_NAME}: '{text}'")
            return text

        table = self._tables.get(locale)
        if table is None:
            table = self._tables[locale] = self._read_translation_table(locale)
        translation = table.get(key)
        if translation is None:
            self.reporter.bad_translation(f"The following string does not have a translation in {locale}: '{text}'")
            return text
        return translation

    def _translate_template(self, host_template: str) -> str:
        """Host format template -> translated str.format template."""
        domain_template = to_domain_format(host_template)
        translated = self.get_translation(domain_template)
        try:
            return to_host_format(translated, host_template)
        except FormatMismatchError as e:
            self.reporter.bad_translation(f"Translation of '{domain_template}' in {self.current_locale} is unusable: {e}")
            return strip_argument_names(host_template)

    def _translate_slot_template(self, slot: str) -> str:
        template = self._translate_template(slot)
        return _pseudo_localize_template(template) if self.pseudo_loc else template

    def _pseudo(self, text: str) -> str:
        return pseudo_localize(text) if self.pseudo_loc else text

    # ── table loading ──

    def _read_mapping(self, path: Path) -> Optional[Dict[str, str]]:
        text = read_text_safely(path)
        if text is None:
            self.reporter.translation_files_corrupt(f"Unable to read '{path}' - translation will not work")
            return None
        try:
            return parse_string_mapping(loads_lenient(text), path.name)
        except ValueError as e:
            self.reporter.translation_files_corrupt(f"Unable to read '{path}' - translation will not work.  Error was: {e}")
            return None

    def _get_reverse_lookup(self) -> Optional[Dict[str, str]]:
        if self._reverse_lookup_loaded:
            return self._reverse_lookup
        self._reverse_lookup_loaded = True

        path = self.i18n_folder / DEFAULT_TABLE_NAME
        if not path.is_file():
            self.reporter.translation_files_corrupt(f"'{path}' does not exist - translation will not work")
            return None
        table = self._read_mapping(path)
        if table is None:
            return None
        table.pop(PLACE_HOLDER_KEY, None)

        reverse: Dict[str, str] = {}
        for key, value in table.items():
            if value in reverse:
                self.reporter.translation_files_corrupt(
                    f"{DEFAULT_TABLE_NAME} has been modified by something other than the compiler.  It has multiple "
                    f"keys with the same source string: {key} value: '{value}'.  Translations of it may be wrong."
                )
                continue
            reverse[value] = key
        self._reverse_lookup = reverse
        return reverse

    def _read_translation_table(self, locale: str) -> Dict[str, str]:
        """Merges 'pt-br' over 'pt'; the more specific table wins."""
        table: Dict[str, str] = {}
        partial = locale
        while partial:
            path = self.i18n_folder / f"{partial}.json"
            if path.is_file():
                for key, value in (self._read_mapping(path) or {}).items():
                    table.setdefault(key, value)
            partial = partial[:max(0, partial.rfind("-"))]
        logger.debug("Loaded %d translations for %s", len(table), locale)
        return table


class Localizer:
    """The marker methods, bound to a translator.  I() and IF() only mark strings as invariant."""

    def __init__(self, translator: KeyValuePairTranslator):
        self.translator = translator

    def L(self, text: str) -> str:
        return self.translator.translate(text)

    def LF(self, template: str, *args) -> str:
        return self.translator.translate_formatted(template, *args)

    def I(self, text: str) -> str:  # noqa: E743
        return text

    def IF(self, template: str, *args) -> str:
        return strip_argument_names(template).format(*args)

    def SdvEvent(self, template: str, *args) -> str:
        return self.translator.translate_event(template, *args)

    def SdvQuest(self, text: str) -> str:
        return self.translator.translate_quest(text)

    def SdvMail(self, template: str, *args) -> str:
        return self.translator.translate_mail(template, *args)
