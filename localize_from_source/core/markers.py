# -*- coding: utf-8 -*-
"""
Marker Registration Table
=========================

Mod code wraps its literals in calls to the runtime marker methods
(SdvLocalize.L, .LF, .I, ...).  At build time each runtime marker needs a
compile-time twin that turns the literal into the strings that go in the
translation table.  The table below pairs them up once, at startup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from localize_from_source.core.constants import MARKER_TYPE
from localize_from_source.core.errors import MarkerTableError
from localize_from_source.core.extractors import EXTRACTORS
from localize_from_source.core.formats import to_domain_format

logger = logging.getLogger(__name__)

# Runtime marker name -> whether its argument is a format template
RUNTIME_MARKERS: Dict[str, bool] = {
    "L": False,
    "LF": True,
    "I": False,
    "IF": True,
    "SdvEvent": True,
    "SdvQuest": False,
    "SdvMail": True,
}


class CompileTimeMarkers:
    """Build-time implementations: literal -> strings to localize."""

    @staticmethod
    def L(s: str) -> List[str]:
        return [s]

    @staticmethod
    def LF(s: str) -> List[str]:
        return [to_domain_format(s)]

    @staticmethod
    def I(s: str) -> List[str]:  # noqa: E743
        return []

    @staticmethod
    def IF(s: str) -> List[str]:
        return []

    @staticmethod
    def SdvEvent(s: str) -> List[str]:
        return [to_domain_format(fragment) for fragment in EXTRACTORS["SdvEvent"].extract(s)]

    @staticmethod
    def SdvQuest(s: str) -> List[str]:
        return EXTRACTORS["SdvQuest"].extract(s)

    @staticmethod
    def SdvMail(s: str) -> List[str]:
        return [to_domain_format(fragment) for fragment in EXTRACTORS["SdvMail"].extract(s)]


@dataclass(frozen=True)
class MarkerMapping:
    name: str
    is_format: bool
    decompile: Callable[[str], List[str]]


class MarkerTable:
    """Runtime identity ('Namespace.Type.Method') -> MarkerMapping."""

    def __init__(self, mappings: Mapping[str, MarkerMapping]):
        self._mappings = dict(mappings)

    def __contains__(self, identity: str) -> bool:
        return identity in self._mappings

    def __len__(self) -> int:
        return len(self._mappings)

    def get(self, identity: Optional[str]) -> Optional[MarkerMapping]:
        if identity is None:
            return None
        return self._mappings.get(identity)

    def is_plain_marker(self, identity: Optional[str]) -> bool:
        mapping = self.get(identity)
        return mapping is not None and not mapping.is_format

    def format_variant(self, identity: str) -> Optional[str]:
        """'...L' -> '...LF' if that exists and takes a format template."""
        variant = self.get(identity + "F")
        return variant.name if variant is not None and variant.is_format else None


def build_marker_table(
    runtime_type: str = MARKER_TYPE,
    runtime_markers: Mapping[str, bool] = RUNTIME_MARKERS,
    compile_time_methods: type = CompileTimeMarkers,
) -> MarkerTable:
    """Pairs every runtime marker with its compile-time implementation."""
    mappings = {}
    for name, is_format in runtime_markers.items():
        implementation = getattr(compile_time_methods, name, None)
        if implementation is None:
            # A fault in this tool, not in the user's project
            raise MarkerTableError(f"{compile_time_methods.__name__} should have an implementation for {name}.")
        if not callable(implementation):
            raise MarkerTableError(f"{compile_time_methods.__name__}.{name} should be a function taking the literal string.")
        mappings[f"{runtime_type}.{name}"] = MarkerMapping(name, is_format, implementation)

    logger.debug("Marker table: %s", ", ".join(sorted(mappings)))
    return MarkerTable(mappings)
