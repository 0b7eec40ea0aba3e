# -*- coding: utf-8 -*-
"""
Core Constants
==============
Centralized constants for the localization pipeline: marker identities,
file layout, annotation texts and matching thresholds.
"""

# ============================================================================
# MARKER LIBRARY
# ============================================================================

# Namespace of the runtime marker library referenced by mod assemblies.
# Types inside it are never scanned.
MARKER_NAMESPACE = "NermNermNerm.Stardew.LocalizeFromSource"

# The static class whose methods wrap localizable / invariant literals.
MARKER_TYPE = MARKER_NAMESPACE + ".SdvLocalize"

# Attribute names (matched by simple name, with or without 'Attribute')
NO_STRICT_ATTRIBUTE = "NoStrict"
INVARIANT_ARGUMENT_ATTRIBUTE = "ArgumentIsCultureInvariant"

# Types generated by SMAPI's i18n code generator
IGNORED_TYPE_NAMES = frozenset({"I18n"})

# ============================================================================
# OPCODES
# ============================================================================

LITERAL_OPCODES = frozenset({"ldstr"})
CALL_OPCODES = frozenset({"call", "callvirt", "newobj"})
# Marker methods are static, so only a plain 'call' invokes one directly
STATIC_CALL_OPCODE = "call"

# ============================================================================
# PROJECT LAYOUT
# ============================================================================

CONFIG_FILE_NAME = "LocalizeFromSourceConfig.json"
I18N_FOLDER = "i18n"
I18N_SOURCE_FOLDER = "i18nSource"
DEFAULT_TABLE_NAME = "default.json"
EDITS_SUFFIX = ".edits"
DEFAULT_SOURCE_LOCALE = "en"

PLACE_HOLDER_KEY = "place-holder"
PLACE_HOLDER_VALUE = "this mod is not ready to be localized"

# ============================================================================
# KEYS & MATCHING
# ============================================================================

KEY_LENGTH = 10
# Used when pairing new strings with deleted ones (key inheritance)
MINIMUM_KEY_INHERIT_SCORE = 65
# Used when suggesting an orphaned translation in an annotated file (exclusive)
MINIMUM_SUGGESTION_SCORE = 90

# Authors with this prefix are machine translators
MACHINE_AUTHOR_PREFIX = "automation:"

# ============================================================================
# ANNOTATIONS
# ============================================================================

ATTENTION_SENTINEL = ">>>"
NO_LINK_COMMENT = "? could not find associated source file ?"
DO_NOT_EDIT_COMMENT = "// Do not edit this file - it is generated during compilation"
COMMIT_COMMENT_PREFIX = "// Built from commit: "
LOCALE_FILE_COMMENTS = (
    "// Translators: every string that is missing a translation, or whose source text changed",
    "// since it was translated, has a comment starting with three '>' characters.  Search for",
    "// them, fill in the translations and send the whole file back to the mod author.",
)
EDITS_FILE_COMMENT = (
    "// Translators - only edit 'newTarget' values.  The mod author ingests this file"
    " to apply your changes."
)
ENTRY_STORE_COMMENTS = (
    "// Do not manually edit this file!",
    "// Instead, collect updates to the translation files distributed with your package and",
    "// use the tooling to merge the changes like this:",
    "//",
    "// lfscompiler ingest --translation <path-to-file>.json --sourceRoot <project> --author <author-id>",
    "//",
    "// Where 'author-id' is '<platform>:<moniker>' where '<platform>' is something like 'nexus' or 'github' and",
    "// '<moniker>' is the identity of the person who supplied the translations on that platform.",
)

# ============================================================================
# DIAGNOSTICS
# ============================================================================

ERROR_PREFIX = "LFS"
DIAGNOSTIC_ORIGIN = "LfsCompiler"
DIAGNOSTICS_LOGGER = "localize_from_source.diagnostics"
