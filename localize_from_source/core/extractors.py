# -*- coding: utf-8 -*-
"""
Domain String Extractors
========================

Stardew Valley packs several kinds of content into single strings: event
scripts, quest records and mail templates.  Only some parts of those strings
are player-visible text.  Each extractor here knows where the translatable
slots are, and the same slot finder serves both directions:

    extract(text)                 -> the translatable fragments, in order
    substitute(text, translate)   -> text with every slot replaced by translate(slot)

so ``substitute(text, lambda s: s) == text`` for every input.

Usage:
    fragments = EXTRACTORS["SdvMail"].extract("Hi there%item object 388 5%%[#]Wood")
    # -> ["Hi there", "Wood"]
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Tuple

import pyparsing as pp

logger = logging.getLogger(__name__)

Span = Tuple[int, int]


# ────────────────────────── Base Extractor ──────────────────────────

class StringExtractor(ABC):
    """Finds the translatable slots of a structured string."""

    name: str = ""

    @abstractmethod
    def slots(self, text: str) -> List[Span]:
        """(start, end) offsets of every translatable slot, ascending and non-overlapping."""
        ...

    def extract(self, text: str) -> List[str]:
        return [text[start:end] for start, end in self.slots(text)]

    def substitute(self, text: str, translate: Callable[[str], str]) -> str:
        pieces = []
        position = 0
        for start, end in self.slots(text):
            pieces.append(text[position:start])
            pieces.append(translate(text[start:end]))
            position = end
        pieces.append(text[position:])
        return "".join(pieces)


# ────────────────────────── Event scripts ──────────────────────────

# Quoted arguments that are really asset names: "Maps/Farm", "(O)Mods.Foo.Bar"
_RE_ASSET_PATH = re.compile(r"^(\([A-Z]+\))?\w+[./\\][\w./\\]*\w$")

_QUOTED_FRAGMENT = pp.QuotedString('"', multiline=True, convert_whitespace_escapes=False)


class EventScriptExtractor(StringExtractor):
    """
    Event scripts are '/'-separated commands whose dialogue arguments are
    double-quoted:  speak Abigail "Hi!$h"/pause 500/message "It's raining."
    """

    name = "SdvEvent"

    def slots(self, text: str) -> List[Span]:
        result = []
        for tokens, start, end in _QUOTED_FRAGMENT.scan_string(text):
            fragment = tokens[0]
            if not fragment or _RE_ASSET_PATH.match(fragment):
                continue
            # Skip the surrounding quote characters
            result.append((start + 1, end - 1))
        return result


# ────────────────────────── Quest records ──────────────────────────

class QuestRecordExtractor(StringExtractor):
    """
    Quest data is type/title/description/objective/rest.  Only the title,
    description and objective are text; the last field keeps any extra '/'.
    """

    name = "SdvQuest"
    field_count = 5
    translatable_fields = (1, 2, 3)

    def slots(self, text: str) -> List[Span]:
        result = []
        start = 0
        for index, field_text in enumerate(text.split("/", self.field_count - 1)):
            end = start + len(field_text)
            if index in self.translatable_fields and field_text:
                result.append((start, end))
            start = end + 1
        return result


# ────────────────────────── Mail templates ──────────────────────────

# body, then an optional %-introduced control code (items, money, recipes...),
# then an optional "[#]" title
_RE_MAIL = re.compile(r"^(?P<body>[^%]*?)(?P<code>%.*?)?(?:\[#\](?P<title>.*))?\Z", re.DOTALL)


class MailTemplateExtractor(StringExtractor):
    name = "SdvMail"

    def slots(self, text: str) -> List[Span]:
        match = _RE_MAIL.match(text)
        if match is None:
            # Unreachable with the pattern above, but never lose text over it
            logger.warning("Mail text did not parse: %r", text)
            return [(0, len(text))] if text else []

        result = []
        if match.group("body"):
            result.append(match.span("body"))
        if match.group("title"):
            result.append(match.span("title"))
        return result


# ────────────────────────── Registry ──────────────────────────

EXTRACTORS: Dict[str, StringExtractor] = {
    extractor.name: extractor
    for extractor in (EventScriptExtractor(), QuestRecordExtractor(), MailTemplateExtractor())
}
