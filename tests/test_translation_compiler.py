"""test_translation_compiler.py - source table and locale file generation"""

import random
import re
import string
import unittest

from localize_from_source.core.errors import ErrorCode, FatalError
from localize_from_source.core.markers import CompileTimeMarkers
from localize_from_source.core.reporter import DiscoveredString, RecordingReporter, Severity
from localize_from_source.core.translation_compiler import (
    TranslationCompiler, content_key, generate_unique_key, pair_changed_strings, read_source_table,
)
from localize_from_source.core.translation_store import (
    TranslationEntry, edits_file_path, entry_store_path, parse_edits, render_entry_store,
)
from localize_from_source.utils.json_io import loads_lenient, read_json_file

from helpers import ProjectTestCase, found, read_text, write_json, write_text

DATE = "2024-05-01T10:00:00+00:00"


class CompilerTestCase(ProjectTestCase):

    def setUp(self):
        super().setUp()
        self.config = self.make_config()
        self.reporter = RecordingReporter()

    def compile(self, *texts, strings=None, verify_only=False):
        compiler = TranslationCompiler(self.config, self.reporter, verify_only=verify_only)
        return compiler.generate_i18n_files(strings if strings is not None else found(*texts))

    def write_store(self, locale, entries):
        return write_text(entry_store_path(self.i18n_source, locale), render_entry_store(entries, []))

    def locale_file(self, locale="de"):
        return read_text(self.i18n / f"{locale}.json")

    def snapshot(self):
        return {p: p.read_bytes() for p in sorted(self.project.rglob("*")) if p.is_file()}


class TestKeys(unittest.TestCase):

    def test_content_key_shape(self):
        key = content_key("one two three")
        self.assertRegex(key, r"^[a-z2-7]{10}$")
        self.assertEqual(key, content_key("one two three"))

    def test_collision_extends_the_key(self):
        taken = {content_key("x")}
        key = generate_unique_key("x", taken)
        self.assertEqual(key, content_key("x", 11))
        self.assertTrue(key.startswith(content_key("x")))

    def test_greedy_pairing_prefers_the_best_match(self):
        pairs = pair_changed_strings(
            ["one two three four", "red green blue"],
            ["red green", "one two three", "completely different"],
            65,
        )
        self.assertEqual(pairs, {"one two three four": "one two three", "red green blue": "red green"})

    def test_pairing_below_threshold(self):
        self.assertEqual(pair_changed_strings(["Good morning"], ["Quest complete!"], 65), {})


class TestSourceTable(CompilerTestCase):

    def test_one_then_two_entries(self):
        first = self.compile("one two three")
        self.assertEqual(list(first.source_table.values()), ["one two three"])
        key = next(iter(first.source_table))

        second = self.compile("one two three", "a b c")
        self.assertEqual(len(second.source_table), 2)
        self.assertEqual(second.source_table[key], "one two three")
        self.assertEqual(read_source_table(self.i18n), second.source_table)

    def test_distinct_strings_get_distinct_keys(self):
        rng = random.Random(1234)
        texts = set()
        while len(texts) < 400:
            texts.add("".join(rng.choice(string.ascii_letters + " ") for _ in range(rng.randint(1, 12))).strip() or "x")
        result = self.compile(*sorted(texts))
        self.assertEqual(sorted(result.source_table.values()), sorted(texts))
        self.assertEqual(len(set(result.source_table)), len(texts))

    def test_place_holder_when_nothing_is_localized(self):
        self.compile()
        text = read_text(self.i18n / "default.json")
        self.assertIn('"place-holder": "this mod is not ready to be localized"', text)
        self.assertEqual(read_source_table(self.i18n), {})

    def test_format_strings_are_stored_in_domain_format(self):
        texts = CompileTimeMarkers.LF("You have {0}|count| coins") + CompileTimeMarkers.LF("Use {{braces}} for {0}")
        result = self.compile(strings=[DiscoveredString(text, is_format=True, file="a.cs", line=i + 1) for i, text in enumerate(texts)])
        self.assertEqual(list(result.source_table.values()), ["You have {{count}} coins", "Use {braces} for {{arg0}}"])

    def test_ordered_by_file_then_line(self):
        result = self.compile(strings=[
            DiscoveredString("B text", file="b.cs", line=1),
            DiscoveredString("A late", file="a.cs", line=50),
            DiscoveredString("A early", file="a.cs", line=5),
            DiscoveredString("No file"),
        ])
        self.assertEqual(list(result.source_table.values()), ["No file", "A early", "A late", "B text"])
        self.assertEqual(list(read_source_table(self.i18n).values()), ["No file", "A early", "A late", "B text"])

    def test_links_and_commit_comment(self):
        sha = "a" * 40
        self.config = self.make_config(head_commit=sha, github_url="https://github.com/me/MyMod")
        self.compile(strings=found("Hello there", file=str(self.project / "ModEntry.cs")))
        text = read_text(self.i18n / "default.json")
        self.assertIn(f"// Built from commit: {sha}", text)
        self.assertIn(f"// https://github.com/me/MyMod/blob/{sha}/ModEntry.cs#L10", text)

    def test_no_link_without_git(self):
        self.compile("Hello there")
        self.assertIn("// ? could not find associated source file ?", read_text(self.i18n / "default.json"))

    def test_legacy_key_is_kept_for_new_strings(self):
        result = self.compile(strings=[DiscoveredString("Hello there", file="a.cs", line=1, key="greeting")])
        self.assertEqual(result.source_table, {"greeting": "Hello there"})

    def test_duplicate_values_keep_the_first_key(self):
        write_json(self.i18n / "default.json", {"aaa": "Hello", "bbb": "Hello"})
        result = self.compile("Hello")
        self.assertEqual(result.source_table, {"aaa": "Hello"})
        self.assertIn(ErrorCode.DEFAULT_JSON_INVALID_USER_EDIT, self.reporter.codes(Severity.WARNING))

    def test_unreadable_source_table_is_fatal(self):
        write_text(self.i18n / "default.json", "{not json")
        with self.assertRaises(FatalError) as ctx:
            self.compile("Hello")
        self.assertEqual(ctx.exception.error_code, ErrorCode.DEFAULT_JSON_UNUSABLE)

    def test_second_run_changes_nothing(self):
        key = content_key("one two three")
        self.write_store("de", {key: TranslationEntry("one two three", "eins zwei drei", "nexus:joe", DATE)})
        first = self.compile("one two three", "a b c")
        self.assertTrue(first.written)
        before = self.snapshot()

        second = self.compile("one two three", "a b c")
        self.assertEqual(second.written, [])
        self.assertEqual(self.snapshot(), before)


class TestLocaleFiles(CompilerTestCase):

    def test_translated_entry(self):
        key = content_key("one two three")
        self.write_store("de", {key: TranslationEntry("one two three", "eins zwei drei", "nexus:joe", DATE)})
        result = self.compile("one two three")

        text = self.locale_file()
        self.assertIn("// Translated by nexus:joe on 2024-05-01", text)
        self.assertIn('// source language string: "one two three"', text)
        self.assertNotIn(">>>", text)
        self.assertEqual(loads_lenient(text), {key: "eins zwei drei"})
        self.assertFalse(edits_file_path(self.i18n, "de").exists())
        self.assertEqual(result.locales["de"].translated, 1)

    def test_machine_translation_is_flagged(self):
        key = content_key("Hello")
        self.write_store("de", {key: TranslationEntry("Hello", "Hallo", "automation:deepl", DATE)})
        self.compile("Hello")
        self.assertIn("// >>>MACHINE GENERATED by automation:deepl on 2024-05-01", self.locale_file())

    def test_missing_translation(self):
        self.write_store("de", {})
        result = self.compile("Hello")
        key = next(iter(result.source_table))

        text = self.locale_file()
        self.assertIn("// >>>MISSING TRANSLATION", text)
        self.assertIn(f'// "{key}": "",', text)
        self.assertEqual(loads_lenient(text), {})

        edits = parse_edits(read_json_file(edits_file_path(self.i18n, "de")))
        self.assertEqual(edits[key].new_source, "Hello")
        self.assertIsNone(edits[key].old_source)
        self.assertEqual(result.locales["de"].missing, 1)

    def test_one_word_added_shows_source_changed(self):
        key = content_key("one two three")
        self.write_store("de", {key: TranslationEntry("one two three", "eins zwei drei", "nexus:joe", DATE)})
        self.compile("one two three", "unrelated words here")

        result = self.compile("one two three four", "unrelated words here")
        self.assertEqual(result.inherited, 1)
        self.assertEqual(result.source_table[key], "one two three four")

        text = self.locale_file()
        self.assertIn("// >>>SOURCE STRING CHANGED - originally translated by nexus:joe on 2024-05-01", text)
        self.assertIn('//      old source string: "one two three"', text)
        self.assertIn(f'"{key}": "eins zwei drei"', text)
        self.assertNotIn(f'// "{key}": ""', text)

        edits = parse_edits(read_json_file(edits_file_path(self.i18n, "de")))
        self.assertEqual(edits[key].old_source, "one two three")
        self.assertEqual(edits[key].new_source, "one two three four")
        self.assertEqual(edits[key].old_target, "eins zwei drei")

    def test_orphaned_translation_is_suggested(self):
        self.write_store("de", {"oldkey0000": TranslationEntry("Hello there friend", "Hallo Freund", "nexus:joe", DATE)})
        result = self.compile("Hello there, friend!")
        key = next(iter(result.source_table))

        text = self.locale_file()
        self.assertIn(">>>SOURCE STRING CHANGED", text)
        self.assertIn(f'"{key}": "Hallo Freund"', text)

    def test_unrelated_orphan_is_not_suggested(self):
        self.write_store("de", {"oldkey0000": TranslationEntry("Goodbye", "Tschüss", "nexus:joe", DATE)})
        self.compile("Hello there")
        text = self.locale_file()
        self.assertIn(">>>MISSING TRANSLATION", text)
        self.assertNotIn("Tschüss", text)

    def test_corrupt_store_does_not_stop_other_locales(self):
        write_text(entry_store_path(self.i18n_source, "de"), "this is not json")
        self.write_store("fr", {})
        result = self.compile("Hello")

        self.assertTrue(result.success)
        self.assertEqual(self.reporter.codes(Severity.WARNING), [ErrorCode.LOCALE_JSON_UNUSABLE])
        self.assertIn(">>>MISSING TRANSLATION", self.locale_file("de"))
        self.assertTrue((self.i18n / "fr.json").is_file())

    def test_edits_file_is_removed_when_nothing_is_pending(self):
        self.write_store("de", {})
        self.compile("Hello")
        edits_path = edits_file_path(self.i18n, "de")
        self.assertTrue(edits_path.is_file())

        self.write_store("de", {content_key("Hello"): TranslationEntry("Hello", "Hallo", "nexus:joe", DATE)})
        result = self.compile("Hello")
        self.assertFalse(edits_path.exists())
        self.assertIn(edits_path, result.written)


class TestVerifyMode(CompilerTestCase):

    def test_up_to_date(self):
        self.compile("Hello")
        result = self.compile("Hello", verify_only=True)
        self.assertTrue(result.success)
        self.assertEqual(self.reporter.codes(Severity.ERROR), [])

    def test_out_of_date_writes_nothing(self):
        self.compile("Hello")
        before = self.snapshot()

        result = self.compile("Hello", "Something new", verify_only=True)
        self.assertFalse(result.success)
        self.assertIn(self.i18n / "default.json", result.stale)
        self.assertEqual(self.reporter.codes(Severity.ERROR), [ErrorCode.TRANSLATION_REQUIRED])
        self.assertEqual(self.snapshot(), before)
        self.assertTrue(re.search(r"error LFS0001: Localized strings have been changed", self.reporter.lines[-1]))


if __name__ == "__main__":
    unittest.main()
