# -*- coding: utf-8 -*-
"""
Format String Conversion
========================

Host format strings use positional placeholders, optionally followed by an
explicit argument name:  "You have {0:d}|count| coins"
The translation tables use SMAPI-style named tokens instead:  "You have {{count:d}} coins"
Unnamed arguments become argN.  Format specifiers travel unchanged.

Doubled braces are literal braces in a host string; in the tables they are
written as single braces, since a doubled brace there always opens a token.
"""

from __future__ import annotations

import re
from typing import Dict

# Escaped braces are matched before placeholders so "{{0}}" stays literal text
_RE_HOST_TOKEN = re.compile(
    r"(?P<open>\{\{)|(?P<close>\}\})|\{(?P<arg>\d+)(?P<spec>:[^{}]+)?\}(?:\|(?P<name>\w+)\|)?"
)
_RE_DOMAIN_PLACEHOLDER = re.compile(r"\{\{(?P<name>\w+)(?P<spec>:[^}]+)?\}\}")


class FormatMismatchError(ValueError):
    """A translated format string names an argument the source string doesn't have."""


def to_domain_format(host_format: str) -> str:
    """'one {0:d4}|one|, {1} {{x}}.' -> 'one {{one:d4}}, {{arg1}} {x}.'"""
    def _replace(match: re.Match) -> str:
        if match.group("open"):
            return "{"
        if match.group("close"):
            return "}"
        name = match.group("name") or f"arg{match.group('arg')}"
        return "{{" + name + (match.group("spec") or "") + "}}"

    return _RE_HOST_TOKEN.sub(_replace, host_format)


def strip_argument_names(host_format: str) -> str:
    """'{0}|count| coins' -> '{0} coins', a plain str.format() template."""
    def _replace(match: re.Match) -> str:
        if match.group("arg") is None:
            return match.group(0)
        return "{" + match.group("arg") + (match.group("spec") or "") + "}"

    return _RE_HOST_TOKEN.sub(_replace, host_format)


def argument_indexes(host_format: str) -> Dict[str, int]:
    """Name -> positional index for every placeholder of a host format string."""
    indexes: Dict[str, int] = {}
    for match in _RE_HOST_TOKEN.finditer(host_format):
        if match.group("arg") is None:
            continue
        index = int(match.group("arg"))
        indexes.setdefault(f"arg{index}", index)
        if match.group("name"):
            indexes.setdefault(match.group("name"), index)
    return indexes


def _escape_braces(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")


def to_host_format(domain_format: str, source_host_format: str) -> str:
    """
    Turns a (translated) domain format string back into a str.format() template,
    numbering arguments the way *source_host_format* does.  Literal braces are
    escaped so the result is safe to pass to str.format.
    """
    indexes = argument_indexes(source_host_format)
    pieces = []
    position = 0
    for match in _RE_DOMAIN_PLACEHOLDER.finditer(domain_format):
        name = match.group("name")
        if name not in indexes:
            raise FormatMismatchError(f"'{{{{{name}}}}}' does not correspond to any argument of \"{source_host_format}\"")
        pieces.append(_escape_braces(domain_format[position:match.start()]))
        pieces.append("{" + str(indexes[name]) + (match.group("spec") or "") + "}")
        position = match.end()
    pieces.append(_escape_braces(domain_format[position:]))
    return "".join(pieces)
