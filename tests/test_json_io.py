"""test_json_io.py - JSON with comments, and tolerant text reading"""

import unittest

from localize_from_source.utils.encoding import read_text_safely, save_text_if_changed
from localize_from_source.utils.json_io import (
    find_commit_comment, loads_lenient, parse_string_mapping, strip_json_comments,
)

from helpers import ProjectTestCase


class TestLenientJson(unittest.TestCase):

    def test_comments_and_trailing_commas(self):
        text = '// header\n{\n  /* block */ "a": "1", // trailing\n  "b": "2",\n}\n'
        self.assertEqual(loads_lenient(text), {"a": "1", "b": "2"})

    def test_string_contents_are_untouched(self):
        text = '{"url": "https://example.com/a//b", "odd": "x,}", "quote": "say \\"hi\\" // not a comment"}'
        self.assertEqual(loads_lenient(text), {"url": "https://example.com/a//b", "odd": "x,}", "quote": 'say "hi" // not a comment'})

    def test_arrays(self):
        self.assertEqual(loads_lenient("[1, 2, // two\n]"), [1, 2])

    def test_key_order_is_kept(self):
        self.assertEqual(list(loads_lenient('{"z": "1", "a": "2", "m": "3"}')), ["z", "a", "m"])

    def test_nothing_but_comments(self):
        with self.assertRaises(ValueError):
            loads_lenient("// only a comment\n")

    def test_commented_out_entries_disappear(self):
        self.assertEqual(strip_json_comments('{\n  // "k": "",\n}').split(), ["{", "}"])

    def test_string_mapping(self):
        self.assertEqual(parse_string_mapping({"a": "b"}, "x.json"), {"a": "b"})
        for bad in (None, ["a"], {"a": 1}):
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    parse_string_mapping(bad, "x.json")

    def test_commit_comment(self):
        sha = "c0ffee" + "0" * 34
        self.assertEqual(find_commit_comment(f"// stuff\n// Built from commit: {sha}\n{{}}"), sha)
        self.assertIsNone(find_commit_comment("// Built from commit: not-a-sha\n{}"))


class TestTextFiles(ProjectTestCase):

    def test_utf16_with_bom(self):
        path = self.root / "de.json"
        path.write_bytes('{"k": "Grüße"}'.encode("utf-16"))
        self.assertEqual(loads_lenient(read_text_safely(path)), {"k": "Grüße"})

    def test_utf8_bom_is_dropped(self):
        path = self.root / "de.json"
        path.write_bytes('{"k": "x"}'.encode("utf-8-sig"))
        self.assertEqual(read_text_safely(path), '{"k": "x"}')

    def test_missing_file(self):
        self.assertIsNone(read_text_safely(self.root / "nope.json"))

    def test_unchanged_files_are_not_rewritten(self):
        path = self.root / "out" / "default.json"
        self.assertTrue(save_text_if_changed(path, "{}\n"))
        self.assertFalse(save_text_if_changed(path, "{}\n"))
        path.write_bytes(b"{}\r\n")
        self.assertFalse(save_text_if_changed(path, "{}\n"))
        self.assertTrue(save_text_if_changed(path, "{ }\n"))


if __name__ == "__main__":
    unittest.main()
