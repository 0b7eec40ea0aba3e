"""
Encoding helpers to read/write text defensively without crashing on bad bytes.
"""

import logging
import os
import time
import tempfile
import chardet
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def read_text_safely(path: Path, preferred: Tuple[str, ...] = ("utf-8-sig", "utf-8")) -> Optional[str]:
    """
    Read file as text with tolerant fallbacks:
    - try preferred encodings first
    - then chardet detection with errors='replace'
    Returns None on I/O failure.

    Translators edit the files we hand them with whatever editor they have, so
    UTF-16 or a legacy code page shows up now and then.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None

    for enc in preferred:
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue

    detected = chardet.detect(raw)
    enc = detected.get("encoding") or "utf-8"
    logger.info("%s is not UTF-8; decoding as %s (confidence %.2f)", path, enc, detected.get("confidence") or 0.0)
    try:
        return raw.decode(enc, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def save_text_safely(path: Path, content: str, encoding: str = "utf-8", newline: str = "\n") -> bool:
    """
    Atomic write with Windows-aware retry logic for 'Access Denied' issues.

    1. Writes content to a temporary file in the same directory.
    2. Retries up to 5 times if a PermissionError (File Lock) occurs.
    3. Replaces the destination file atomically (os.replace).
    """
    path_obj = Path(path)
    parent = path_obj.parent
    parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory so the replace stays on one filesystem
    temp_fd, temp_path = tempfile.mkstemp(dir=str(parent), suffix=".tmp", text=True)

    try:
        with os.fdopen(temp_fd, 'w', encoding=encoding, newline=newline) as f:
            f.write(content)

        max_retries = 5
        for attempt in range(max_retries):
            try:
                os.replace(temp_path, str(path_obj))
                return True
            except PermissionError:
                if attempt < max_retries - 1:
                    time.sleep(0.3 * (attempt + 1))  # Incremental backoff
                    continue
                logger.error("Could not replace %s: file is locked", path_obj)
                return False
        return False
    finally:
        if os.path.exists(temp_path):
            try:
                os.unlink(temp_path)
            except OSError:
                pass


def save_text_if_changed(path: Path, content: str) -> bool:
    """
    Writes *content* unless the file already holds exactly that text.
    Returns True when the file was (re)written.
    """
    path_obj = Path(path)
    if path_obj.is_file():
        existing = read_text_safely(path_obj)
        if existing is not None and existing.replace("\r\n", "\n") == content:
            return False

    if not save_text_safely(path_obj, content):
        raise OSError(f"Unable to write {path_obj}")
    return True
