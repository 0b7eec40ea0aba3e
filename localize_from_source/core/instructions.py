# -*- coding: utf-8 -*-
"""
Instruction Model & Listing Loader
==================================

The scanner works on a flat, per-method instruction stream.  The stream comes
from a JSON disassembly listing produced by an external IL disassembler:

    {"assembly": "MyMod",
     "types": [{"fullName": "MyMod.ModEntry", "name": "ModEntry", "attributes": [],
                "methods": [{"name": "Entry", "attributes": [],
                             "instructions": [{"op": "ldstr", "operand": "Hello",
                                               "file": "ModEntry.cs", "line": 12}, ...]}],
                "nestedTypes": []}]}

Property names may be camelCase or snake_case.  Call operands are either
"Declaring.Type.Member" strings or {"declaringType": ..., "name": ...} objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional

from localize_from_source.core.constants import CALL_OPCODES, LITERAL_OPCODES, STATIC_CALL_OPCODE
from localize_from_source.core.errors import ErrorCode, FatalError
from localize_from_source.utils.json_io import read_json_file

logger = logging.getLogger(__name__)


# ────────────────────────── Data Model ──────────────────────────

class OpClass(Enum):
    LITERAL = "literal"
    CALL = "call"
    OTHER = "other"


@dataclass(frozen=True)
class Provenance:
    """Source position attached to an instruction by the debug info."""
    file: str
    line: int
    column: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.file}({self.line},{self.column if self.column is not None else 1})"


@dataclass(frozen=True)
class Instruction:
    op: str
    operand: Any = None
    provenance: Optional[Provenance] = None

    @property
    def op_class(self) -> OpClass:
        op = self.op.lower()
        if op in LITERAL_OPCODES:
            return OpClass.LITERAL
        if op in CALL_OPCODES:
            return OpClass.CALL
        return OpClass.OTHER

    @property
    def literal(self) -> Optional[str]:
        """The loaded string, for a literal-load instruction."""
        if self.op_class is OpClass.LITERAL and isinstance(self.operand, str):
            return self.operand
        return None

    @property
    def callee(self) -> Optional[str]:
        """'Declaring.Type.Member' identity of a call's target."""
        if self.op_class is OpClass.CALL and isinstance(self.operand, str):
            return self.operand
        return None

    @property
    def is_static_call(self) -> bool:
        return self.op.lower() == STATIC_CALL_OPCODE and self.callee is not None

    # Convenience constructors, handy for building streams by hand

    @classmethod
    def ldstr(cls, value: str, file: Optional[str] = None, line: Optional[int] = None) -> "Instruction":
        return cls("ldstr", value, Provenance(file, line) if file is not None and line is not None else None)

    @classmethod
    def call(cls, identity: str, file: Optional[str] = None, line: Optional[int] = None, op: str = "call") -> "Instruction":
        return cls(op, identity, Provenance(file, line) if file is not None and line is not None else None)

    @classmethod
    def other(cls, op: str = "nop", file: Optional[str] = None, line: Optional[int] = None) -> "Instruction":
        return cls(op, None, Provenance(file, line) if file is not None and line is not None else None)


@dataclass
class MethodBody:
    name: str
    declaring_type: str = ""
    attributes: FrozenSet[str] = frozenset()
    instructions: List[Instruction] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.declaring_type}.{self.name}" if self.declaring_type else self.name

    @property
    def has_provenance(self) -> bool:
        return any(i.provenance is not None for i in self.instructions)

    def first_provenance(self) -> Optional[Provenance]:
        return next((i.provenance for i in self.instructions if i.provenance is not None), None)


@dataclass
class TypeListing:
    full_name: str
    name: str = ""
    attributes: FrozenSet[str] = frozenset()
    methods: List[MethodBody] = field(default_factory=list)
    nested_types: List["TypeListing"] = field(default_factory=list)

    def __post_init__(self):
        if not self.name:
            self.name = self.full_name.rsplit(".", 1)[-1].rsplit("/", 1)[-1]


@dataclass
class AssemblyListing:
    name: str
    types: List[TypeListing] = field(default_factory=list)

    def iter_types(self) -> Iterator[TypeListing]:
        """All types, nested ones included, depth-first."""
        stack = list(reversed(self.types))
        while stack:
            type_listing = stack.pop()
            yield type_listing
            stack.extend(reversed(type_listing.nested_types))

    def methods_with_attribute(self, attribute: str) -> List[str]:
        return [
            method.full_name
            for type_listing in self.iter_types()
            for method in type_listing.methods
            if has_attribute(method.attributes, attribute)
        ]


def attribute_simple_name(attribute: str) -> str:
    simple = attribute.rsplit(".", 1)[-1]
    return simple[:-len("Attribute")] if simple.endswith("Attribute") else simple


def has_attribute(attributes: Iterable[str], simple_name: str) -> bool:
    """Matches full or simple names, with or without the 'Attribute' suffix."""
    return any(attribute_simple_name(a) == simple_name for a in attributes)


# ────────────────────────── Listing Loader ──────────────────────────

def _normalized(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k.replace("_", "").lower(): v for k, v in data.items()}


def _expect_dict(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} should be an object")
    return _normalized(value)


def _parse_operand(raw: Any) -> Any:
    if isinstance(raw, dict):
        operand = _normalized(raw)
        declaring = operand.get("declaringtype", "")
        name = operand.get("name", "")
        return f"{declaring}.{name}" if declaring else name
    return raw


def _parse_instruction(raw: Any) -> Instruction:
    data = _expect_dict(raw, "instruction")
    op = data.get("op") or data.get("opcode")
    if not isinstance(op, str):
        raise ValueError("instruction without an 'op'")
    provenance = None
    file, line = data.get("file"), data.get("line")
    if file is not None and line is not None:
        provenance = Provenance(str(file), int(line), data.get("column"))
    return Instruction(op, _parse_operand(data.get("operand")), provenance)


def _parse_method(raw: Any, declaring_type: str) -> MethodBody:
    data = _expect_dict(raw, "method")
    return MethodBody(
        name=str(data.get("name", "")),
        declaring_type=declaring_type,
        attributes=frozenset(data.get("attributes") or ()),
        instructions=[_parse_instruction(i) for i in data.get("instructions") or ()],
    )


def _parse_type(raw: Any) -> TypeListing:
    data = _expect_dict(raw, "type")
    full_name = data.get("fullname") or data.get("name")
    if not isinstance(full_name, str):
        raise ValueError("type without a 'fullName'")
    return TypeListing(
        full_name=full_name,
        name=str(data.get("name") or ""),
        attributes=frozenset(data.get("attributes") or ()),
        methods=[_parse_method(m, full_name) for m in data.get("methods") or ()],
        nested_types=[_parse_type(t) for t in data.get("nestedtypes") or ()],
    )


def parse_listing(raw: Any) -> AssemblyListing:
    data = _expect_dict(raw, "listing")
    return AssemblyListing(
        name=str(data.get("assembly") or ""),
        types=[_parse_type(t) for t in data.get("types") or ()],
    )


def load_listing(path: Path) -> AssemblyListing:
    """Reads a disassembly listing.  Any problem with it is fatal."""
    try:
        listing = parse_listing(read_json_file(Path(path)))
    except (OSError, ValueError, TypeError) as e:
        raise FatalError(f"Could not read the disassembly listing {path}: {e}", ErrorCode.BAD_FILE, e)

    logger.info("Loaded listing for %s: %d types", listing.name or path, sum(1 for _ in listing.iter_types()))
    return listing
