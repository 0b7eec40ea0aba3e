# -*- coding: utf-8 -*-
"""
Invariance Classifier
=====================

Decides whether a string literal is code rather than content.  Strings that
look like identifiers, asset paths or well-known game ids are never flagged as
unmarked, and arguments to certain framework calls are never user-facing.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Pattern, Set

logger = logging.getLogger(__name__)

# ────────────────────────── Shape heuristics ──────────────────────────

# Any letter in any script ([^\W\d_] is the unicode-letter class)
_RE_ANY_LETTER = re.compile(r"[^\W\d_]")

# dot, slash and underscore separated identifiers: Data/Events, Mods.MyMod.Item, some_flag
_RE_DELIMITED_IDENTIFIER = re.compile(r"^\w+[./\\_][\w./\\_]*\w$")

# Qualified item ids: (O)blah.blah, (BC)Chest or just (O)
_RE_QUALIFIED_ITEM_ID = re.compile(r"^\([A-Z][A-Z]?\)(?:[^\W_]|\.)*$")

# Vanilla character ids (case-sensitive, like the game's own id matching)
_RE_CHARACTER_ID = re.compile(
    r"^(Alex|Elliot|Harvey|Sam|Sebastian|Shane|Abigail|Emily|Haley|Leah|Maru|Penny|Caroline|Clint"
    r"|Demetrius|Dwarf|Evelyn|George|Gus|Jas|Jodi|Kent|Krobus|Leo|Lewis|Linus|Marnie|Pam|Pierre"
    r"|Robin|Sandy|Vincent|Willy|Wizard)$"
)

# One-word location ids
_RE_LOCATION_ID = re.compile(r"^(Farm|Mine|Forest|Woods|Town|Mountain|Beach|Desert|Museum|Saloon)$")

_RE_ALL_WORD_CHARS = re.compile(r"^\w*$")

DOMAIN_PATTERNS: List[Pattern[str]] = [
    _RE_DELIMITED_IDENTIFIER,
    _RE_QUALIFIED_ITEM_ID,
    _RE_CHARACTER_ID,
    _RE_LOCATION_ID,
]

# Framework calls whose string arguments are never shown to players
BUILTIN_INVARIANT_METHODS = frozenset({
    "System.Text.RegularExpressions.Regex..ctor",
    "StardewModdingAPI.IAssetName.IsEquivalentTo",
    "StardewModdingAPI.IAssetName.StartsWith",
    "StardewModdingAPI.IAssetName.IsDirectlyUnderPath",
    "StardewValley.Farmer.getFriendshipHeartLevelForNPC",
    "StardewValley.Game1.playSound",
    "StardewValley.GameLocation.playSound",
    "Netcode.NetFields.AddField",
    "StardewModdingAPI.Events.AssetRequestedEventArgs.LoadFromModFile",
})


def has_no_letters(s: str) -> bool:
    return _RE_ANY_LETTER.search(s) is None


def is_camel_case_identifier(s: str) -> bool:
    """camelCase / PascalCase: word characters only, with a lowercase letter or digit right before an uppercase one."""
    if not _RE_ALL_WORD_CHARS.match(s):
        return False
    return any(
        (first.islower() or first.isdecimal()) and second.isupper()
        for first, second in zip(s, s[1:])
    )


class InvarianceClassifier:
    """Any-match-wins set of invariant-string rules plus the invariant-argument call list."""

    def __init__(
        self,
        extra_patterns: Iterable[Pattern[str]] = (),
        invariant_methods: Iterable[str] = (),
        use_domain_heuristics: bool = True,
    ):
        self.use_domain_heuristics = use_domain_heuristics
        self.extra_patterns: List[Pattern[str]] = list(extra_patterns)
        self._invariant_methods: Set[str] = set(BUILTIN_INVARIANT_METHODS)
        self._invariant_methods.update(invariant_methods)

    def add_invariant_methods(self, identities: Iterable[str]) -> None:
        """Registers more calls (e.g. ones annotated in the scanned assembly)."""
        for identity in identities:
            if identity not in self._invariant_methods:
                logger.debug("Treating arguments of %s as invariant", identity)
                self._invariant_methods.add(identity)

    @property
    def invariant_methods(self) -> frozenset:
        return frozenset(self._invariant_methods)

    def is_known_invariant(self, s: str) -> bool:
        if has_no_letters(s):
            return True
        if self.use_domain_heuristics:
            if any(p.search(s) for p in DOMAIN_PATTERNS) or is_camel_case_identifier(s):
                return True
        return any(p.search(s) for p in self.extra_patterns)

    def is_invariant_argument_call(self, callee_identity: str) -> bool:
        return callee_identity in self._invariant_methods
