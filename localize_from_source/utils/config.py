"""
Configuration Manager
====================

Loads the per-project LocalizeFromSourceConfig.json and combines it with the
built-in invariance rules, the scanned assembly's annotations and git info.
"""

import logging
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Pattern

from localize_from_source.core.constants import (
    CONFIG_FILE_NAME, I18N_FOLDER, I18N_SOURCE_FOLDER,
    IGNORED_TYPE_NAMES, MARKER_NAMESPACE,
)
from localize_from_source.core.errors import ErrorCode, FatalError
from localize_from_source.core.invariance import InvarianceClassifier
from localize_from_source.utils.git_repo import GitRepoInfo
from localize_from_source.utils.json_io import read_json_file

logger = logging.getLogger(__name__)


@dataclass
class UserConfig:
    """Settings a mod author can put in LocalizeFromSourceConfig.json."""
    # Every literal must be marked with L()/I() (or be obviously invariant)
    is_strict: bool = False
    # Strings matching any of these are never localized, e.g. a mod-id prefix
    invariant_string_patterns: List[Pattern[str]] = field(default_factory=list)
    # Full method names (namespace.class.method) whose arguments are invariant
    invariant_methods: List[str] = field(default_factory=list)


def _normalize_key(key: str) -> str:
    # isStrict, IsStrict and is_strict are all accepted
    return key.replace("_", "").lower()


_FIELD_BY_NORMALIZED_NAME = {_normalize_key(f.name): f.name for f in fields(UserConfig)}


def _filter_config_data(data: Dict[str, Any], config_path: Path) -> Dict[str, Any]:
    """Map JSON property names onto dataclass fields, dropping unknown ones."""
    result = {}
    for key, value in data.items():
        field_name = _FIELD_BY_NORMALIZED_NAME.get(_normalize_key(key))
        if field_name is None:
            logger.warning(f"Ignoring unknown setting '{key}' in {config_path}")
            continue
        result[field_name] = value
    return result


def _expect_string_list(value: Any, name: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{name}' should be a list of strings")
    return list(value)


def read_user_config(source_root: Path) -> UserConfig:
    """Reads the config file if present.  A broken file is fatal."""
    config_path = Path(source_root) / CONFIG_FILE_NAME
    if not config_path.is_file():
        logger.debug(f"No {CONFIG_FILE_NAME} in {source_root}; using defaults")
        return UserConfig()

    try:
        data = read_json_file(config_path)
        if not isinstance(data, dict):
            raise ValueError("the file should contain a JSON object")
        values = _filter_config_data(data, config_path)

        if "is_strict" in values and not isinstance(values["is_strict"], bool):
            raise ValueError("'isStrict' should be true or false")
        if "invariant_string_patterns" in values:
            patterns = _expect_string_list(values["invariant_string_patterns"], "invariantStringPatterns")
            values["invariant_string_patterns"] = [re.compile(p) for p in patterns]
        if "invariant_methods" in values:
            values["invariant_methods"] = _expect_string_list(values["invariant_methods"], "invariantMethods")

        config = UserConfig(**values)
    except (OSError, ValueError, re.error) as e:
        raise FatalError(f"{config_path}: {e}", ErrorCode.BAD_CONFIG_FILE, e)

    logger.info(f"Loaded {config_path} (strict={config.is_strict})")
    return config


class CombinedConfig:
    """User configuration combined with the baseline and domain rules and git info."""

    def __init__(
        self,
        project_path: Path,
        user_config: Optional[UserConfig] = None,
        git_info: Optional[GitRepoInfo] = None,
        additional_invariant_methods: Iterable[str] = (),
    ):
        self.project_path = Path(project_path)
        self.user_config = user_config if user_config is not None else UserConfig()
        self.git_info = git_info if git_info is not None else GitRepoInfo.create_null()
        self.classifier = InvarianceClassifier(
            extra_patterns=self.user_config.invariant_string_patterns,
            invariant_methods=self.user_config.invariant_methods,
        )
        self.classifier.add_invariant_methods(additional_invariant_methods)

    @property
    def is_strict(self) -> bool:
        return self.user_config.is_strict

    @property
    def i18n_folder(self) -> Path:
        return self.project_path / I18N_FOLDER

    @property
    def i18n_source_folder(self) -> Path:
        return self.project_path / I18N_SOURCE_FOLDER

    @property
    def head_commit(self) -> Optional[str]:
        return self.git_info.head_commit

    def is_known_invariant_string(self, s: str) -> bool:
        return self.classifier.is_known_invariant(s)

    def is_method_with_invariant_args(self, identity: str) -> bool:
        return self.classifier.is_invariant_argument_call(identity)

    def should_ignore_type(self, name: str, full_name: str) -> bool:
        # SMAPI's generated I18n helper and the marker library itself
        return name in IGNORED_TYPE_NAMES or full_name.startswith(MARKER_NAMESPACE + ".")

    def make_link(self, file: Optional[str], line: Optional[int]) -> Optional[str]:
        return self.git_info.make_link(file, line)
