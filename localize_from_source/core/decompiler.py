# -*- coding: utf-8 -*-
"""
Instruction Scanner ("Decompiler")
==================================

Finds the string literals in each method that reach a marker call.

Calls to the plain-string markers (L, I, ...) must be *immediately* preceded
by the literal they mark, so that pattern is checked first, strictly.  The
main pass is looser: from each interesting literal it walks forward, ignoring
whatever argument shuffling the compiler generated, until it reaches either a
marker call, a call whose arguments are known to be invariant, or another
interesting literal (in which case the first literal was never marked).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional

from localize_from_source.core.constants import INVARIANT_ARGUMENT_ATTRIBUTE, NO_STRICT_ATTRIBUTE
from localize_from_source.core.instructions import (
    AssemblyListing, Instruction, MethodBody, Provenance, TypeListing, has_attribute,
)
from localize_from_source.core.markers import MarkerTable, build_marker_table
from localize_from_source.core.reporter import Reporter
from localize_from_source.utils.config import CombinedConfig

logger = logging.getLogger(__name__)


class ScanState(Enum):
    SEEKING_LITERAL = "seeking-literal"
    SEEKING_CALL = "seeking-call"


@dataclass
class _PendingLiteral:
    text: str
    own: Optional[Provenance]
    before: Optional[Provenance]
    after: Optional[Provenance] = None

    @property
    def discovery_provenance(self) -> Optional[Provenance]:
        return self.own or self.after or self.before

    @property
    def unmarked_provenance(self) -> Optional[Provenance]:
        return self.own or self.before


@dataclass
class ScanStats:
    types: int = 0
    methods: int = 0
    skipped_methods: int = 0


class Decompiler:
    """Scans methods of a disassembly listing for marked (and unmarked) literals."""

    def __init__(self, config: CombinedConfig, markers: Optional[MarkerTable] = None):
        self.config = config
        self.markers = markers if markers is not None else build_marker_table()
        self.stats = ScanStats()

    # ────────────────────────── Walking ──────────────────────────

    def find_localizable_strings(self, listing: AssemblyListing, reporter: Reporter) -> None:
        # Methods the developer annotated as taking invariant arguments
        self.config.classifier.add_invariant_methods(listing.methods_with_attribute(INVARIANT_ARGUMENT_ATTRIBUTE))

        for type_listing in listing.types:
            self.scan_type(type_listing, reporter)

        logger.info(
            "Scanned %d types, %d methods (%d without debug info skipped); %d localizable strings",
            self.stats.types, self.stats.methods, self.stats.skipped_methods, len(reporter.localizable_strings),
        )

    def scan_type(self, type_listing: TypeListing, reporter: Reporter) -> None:
        if self.config.should_ignore_type(type_listing.name, type_listing.full_name):
            logger.debug("Ignoring type %s", type_listing.full_name)
            return

        self.stats.types += 1
        for method in type_listing.methods:
            self.scan_method(method, reporter, type_listing.attributes)

        for nested_type in type_listing.nested_types:
            self.scan_type(nested_type, reporter)

    # ────────────────────────── One method ──────────────────────────

    def scan_method(self, method: MethodBody, reporter: Reporter, type_attributes: FrozenSet[str] = frozenset()) -> None:
        if not method.has_provenance:
            # No debug info at all: compiler-generated (record ToString, Equals...)
            self.stats.skipped_methods += 1
            return

        self.stats.methods += 1
        no_strict = has_attribute(method.attributes, NO_STRICT_ATTRIBUTE) or has_attribute(type_attributes, NO_STRICT_ATTRIBUTE)
        self._check_marker_usage(method, reporter)
        self._scan_literals(method, reporter, report_unmarked=self.config.is_strict and not no_strict)

    def _check_marker_usage(self, method: MethodBody, reporter: Reporter) -> None:
        """Every plain-marker call must directly follow the literal it marks."""
        last_seen = method.first_provenance()
        previous: Optional[Instruction] = None
        for instruction in method.instructions:
            last_seen = instruction.provenance or last_seen
            if self._is_plain_marker_call(instruction) and (previous is None or previous.literal is None):
                callee = instruction.callee
                message = f"The argument to {callee} should always be a literal string."
                variant = self.markers.format_variant(callee)
                if variant is not None:
                    message += f"  If this is a formatted string, perhaps you should be using {variant}?"
                reporter.report_misuse(last_seen, message)
            previous = instruction

    def _scan_literals(self, method: MethodBody, reporter: Reporter, report_unmarked: bool) -> None:
        instructions = method.instructions
        state = ScanState.SEEKING_LITERAL
        pending: Optional[_PendingLiteral] = None
        last_seen = method.first_provenance()
        index = 0

        while index < len(instructions):
            instruction = instructions[index]
            literal = self._qualifying_literal(instructions, index)

            if state is ScanState.SEEKING_LITERAL:
                if literal is not None:
                    pending = _PendingLiteral(literal, instruction.provenance, last_seen)
                    state = ScanState.SEEKING_CALL
                last_seen = instruction.provenance or last_seen
                index += 1
                continue

            if literal is not None:
                # Reached another literal first: the pending one was never marked.
                # Stay on this instruction so it starts the next search.
                if report_unmarked:
                    reporter.report_unmarked(pending.text, pending.unmarked_provenance)
                state = ScanState.SEEKING_LITERAL
                continue

            if instruction.provenance is not None:
                pending.after = pending.after or instruction.provenance
                last_seen = instruction.provenance

            callee = instruction.callee
            if callee is not None:
                mapping = self.markers.get(callee)
                if mapping is not None:
                    for text in mapping.decompile(pending.text):
                        reporter.report_localized(text, mapping.is_format, pending.discovery_provenance)
                    state = ScanState.SEEKING_LITERAL
                elif self.config.is_method_with_invariant_args(callee):
                    state = ScanState.SEEKING_LITERAL
            index += 1

        if state is ScanState.SEEKING_CALL and report_unmarked:
            reporter.report_unmarked(pending.text, pending.unmarked_provenance)

    # ────────────────────────── Helpers ──────────────────────────

    def _is_plain_marker_call(self, instruction: Instruction) -> bool:
        return instruction.is_static_call and self.markers.is_plain_marker(instruction.callee)

    def _qualifying_literal(self, instructions: List[Instruction], index: int) -> Optional[str]:
        """
        The literal loaded at *index* if it deserves attention: always when it
        is passed straight to a plain marker, otherwise only when it is
        non-empty and doesn't look invariant.
        """
        text = instructions[index].literal
        if text is None:
            return None
        following = instructions[index + 1] if index + 1 < len(instructions) else None
        if following is not None and self._is_plain_marker_call(following):
            return text
        if text != "" and not self.config.is_known_invariant_string(text):
            return text
        return None
