# -*- coding: utf-8 -*-
"""
Lenient JSON I/O
================

The i18n files are JSON with '//' comments (SMAPI reads them that way) and
translators sometimes leave trailing commas behind.  Comments and trailing
commas are stripped with a small pyparsing scanner that skips over string
literals, then the standard json module does the real parsing.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

import pyparsing as pp

from localize_from_source.utils.encoding import read_text_safely

logger = logging.getLogger(__name__)

# String literals are matched (and passed through untouched) before comments,
# so "https://..." inside a value is never mistaken for a comment.
_COMMENT = (pp.dbl_slash_comment | pp.c_style_comment).suppress()
_TRAILING_COMMA = pp.Regex(r",(?=(?:\s|//[^\n]*(?:\n|$)|/\*[\s\S]*?\*/)*[}\]])").suppress()
_JSONC_CLEANER = pp.dbl_quoted_string | _COMMENT | _TRAILING_COMMA

_RE_COMMIT_COMMENT = re.compile(r"//\s+Built from commit:\s+(?P<commit>[a-f0-9]{40})\b")


def strip_json_comments(text: str) -> str:
    """Removes // and /* */ comments and trailing commas outside of string literals."""
    return _JSONC_CLEANER.transform_string(text)


def loads_lenient(text: str) -> Any:
    """Parses JSON-with-comments; preserves key order. Raises ValueError on bad input."""
    cleaned = strip_json_comments(text)
    if not cleaned.strip():
        raise ValueError("the file is empty")
    return json.loads(cleaned)


def read_json_file(path: Path) -> Any:
    """Reads and parses a JSON-with-comments file.  Raises OSError or ValueError."""
    text = read_text_safely(Path(path))
    if text is None:
        raise OSError(f"cannot read {path}")
    return loads_lenient(text)


def parse_string_mapping(data: Any, what: str) -> Dict[str, str]:
    """Validates that *data* is a flat object of string values."""
    if data is None:
        raise ValueError(f"{what} contains 'null'")
    if not isinstance(data, dict):
        raise ValueError(f"{what} should contain a JSON object, not {type(data).__name__}")
    result: Dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(value, str):
            raise ValueError(f"Value for '{key}' should be a string")
        result[key] = value
    return result


def find_commit_comment(text: str) -> Optional[str]:
    """Returns the commit hash recorded by a '// Built from commit: <sha>' comment, if any."""
    match = _RE_COMMIT_COMMENT.search(text)
    return match.group("commit") if match else None


def json_string(value: Any) -> str:
    """Serializes one value the way it appears in the generated files."""
    return json.dumps(value, ensure_ascii=False)


def dump_pretty(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2)
