"""helpers.py - shared test fixtures and builders"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path
from typing import List, Optional

from localize_from_source.core.constants import MARKER_TYPE
from localize_from_source.core.instructions import Instruction, MethodBody, TypeListing
from localize_from_source.core.reporter import DiscoveredString
from localize_from_source.utils.config import CombinedConfig, UserConfig
from localize_from_source.utils.git_repo import GitRepoInfo

SOURCE_FILE = "C:/src/MyMod/ModEntry.cs"


def marker(name: str) -> str:
    """Runtime identity of a marker method, e.g. marker('L')."""
    return f"{MARKER_TYPE}.{name}"


def method(*instructions: Instruction, name: str = "Entry", attributes=()) -> MethodBody:
    return MethodBody(name=name, declaring_type="MyMod.ModEntry", attributes=frozenset(attributes),
                      instructions=list(instructions))


def type_listing(*methods: MethodBody, full_name: str = "MyMod.ModEntry", attributes=(), nested=()) -> TypeListing:
    return TypeListing(full_name=full_name, attributes=frozenset(attributes), methods=list(methods),
                       nested_types=list(nested))


def found(*texts: str, file: Optional[str] = "ModEntry.cs", first_line: int = 10) -> List[DiscoveredString]:
    """DiscoveredStrings on consecutive lines, in the given order."""
    return [DiscoveredString(text, file=file, line=first_line + i) for i, text in enumerate(texts)]


def listing_json(*instructions: dict) -> dict:
    """A one-method disassembly listing in its on-disk shape."""
    return {
        "assembly": "MyMod",
        "types": [{"fullName": "MyMod.ModEntry", "methods": [{"name": "Entry", "instructions": list(instructions)}]}],
    }


def op_json(op: str, operand=None, line: Optional[int] = None) -> dict:
    data = {"op": op, "operand": operand}
    if line is not None:
        data.update(file=SOURCE_FILE, line=line)
    return data


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_json(path: Path, data, header: str = "") -> Path:
    return write_text(path, header + json.dumps(data, ensure_ascii=False, indent=2))


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class ProjectTestCase(unittest.TestCase):
    """Gives every test a fresh mod project folder."""

    def setUp(self):
        self.root = Path(tempfile.mkdtemp(prefix="lfs-test-"))
        self.addCleanup(shutil.rmtree, self.root, True)
        self.project = self.root / "MyMod"
        self.project.mkdir()

    def make_config(self, strict: bool = False, head_commit: Optional[str] = None,
                    github_url: Optional[str] = None) -> CombinedConfig:
        git_info = GitRepoInfo(self.project, head_commit, github_url) if head_commit else None
        return CombinedConfig(self.project, UserConfig(is_strict=strict), git_info)

    @property
    def i18n(self) -> Path:
        return self.project / "i18n"

    @property
    def i18n_source(self) -> Path:
        return self.project / "i18nSource"
