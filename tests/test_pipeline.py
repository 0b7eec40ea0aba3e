"""test_pipeline.py - build and ingest end to end"""

import unittest

from localize_from_source.core.errors import ErrorCode
from localize_from_source.core.pipeline import LocalizationPipeline, PipelineStage
from localize_from_source.core.reporter import RecordingReporter, Severity
from localize_from_source.core.translation_compiler import read_source_table
from localize_from_source.core.translation_store import entry_store_path

from helpers import ProjectTestCase, listing_json, marker, op_json, write_json, write_text

MARKED = (op_json("ldstr", "Hello there", 12), op_json("call", marker("L"), 12))
UNMARKED = (op_json("ldstr", "Unmarked words here", 14), op_json("call", "System.Console.WriteLine", 14))


class PipelineTestCase(ProjectTestCase):

    def setUp(self):
        super().setUp()
        self.reporter = RecordingReporter()

    def write_listing(self, *instructions):
        return write_json(self.root / "MyMod.listing.json", listing_json(*instructions))

    def build(self, *instructions, verify_only=False):
        listing = self.write_listing(*instructions)
        return LocalizationPipeline(self.project, self.reporter).build(listing, verify_only=verify_only)


class TestBuild(PipelineTestCase):

    def test_generates_the_source_table(self):
        result = self.build(*MARKED)
        self.assertTrue(result.success)
        self.assertIs(result.stage, PipelineStage.COMPLETED)
        self.assertEqual(result.stats["strings"], 1)
        self.assertEqual(list(read_source_table(self.project / "i18n").values()), ["Hello there"])
        self.assertEqual(self.reporter.codes(), [ErrorCode.GIT_REPO_UNAVAILABLE])

    def test_unmarked_strings_are_fine_when_not_strict(self):
        result = self.build(*MARKED, *UNMARKED)
        self.assertTrue(result.success)

    def test_strict_mode_refuses_unmarked_strings(self):
        write_json(self.project / "LocalizeFromSourceConfig.json", {"isStrict": True})
        self.reporter = RecordingReporter(is_strict=True)
        result = self.build(*MARKED, *UNMARKED)

        self.assertFalse(result.success)
        self.assertIs(result.stage, PipelineStage.ERROR)
        self.assertEqual(self.reporter.codes(Severity.ERROR), [ErrorCode.STRING_NOT_MARKED])
        self.assertFalse((self.project / "i18n").exists())

    def test_marker_misuse_is_refused(self):
        result = self.build(op_json("ldloc.0", line=12), op_json("call", marker("L"), 12))
        self.assertFalse(result.success)
        self.assertEqual(self.reporter.codes(Severity.ERROR), [ErrorCode.IMPROPER_USE_OF_METHOD])
        self.assertFalse((self.project / "i18n").exists())

    def test_bad_listing(self):
        listing = write_text(self.root / "MyMod.listing.json", "not a listing")
        result = LocalizationPipeline(self.project, self.reporter).build(listing)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "BAD_FILE")
        self.assertIn(ErrorCode.BAD_FILE, self.reporter.codes(Severity.ERROR))

    def test_bad_config(self):
        write_json(self.project / "LocalizeFromSourceConfig.json", {"isStrict": "very"})
        result = self.build(*MARKED)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "BAD_CONFIG_FILE")


class TestVerify(PipelineTestCase):

    def test_out_of_date(self):
        result = self.build(*MARKED, verify_only=True)
        self.assertFalse(result.success)
        self.assertIs(result.stage, PipelineStage.ERROR)
        self.assertIn(ErrorCode.TRANSLATION_REQUIRED, self.reporter.codes(Severity.ERROR))
        self.assertFalse((self.project / "i18n" / "default.json").exists())

    def test_up_to_date(self):
        self.build(*MARKED)
        self.reporter = RecordingReporter()
        result = self.build(*MARKED, verify_only=True)
        self.assertTrue(result.success)
        self.assertEqual(self.reporter.codes(Severity.ERROR), [])


class TestIngest(PipelineTestCase):

    def setUp(self):
        super().setUp()
        self.build(*MARKED)
        self.key = next(iter(read_source_table(self.project / "i18n")))
        self.returned = write_json(self.root / "de.json", {self.key: "Hallo"})

    def test_ingest(self):
        result = LocalizationPipeline(self.project, self.reporter).ingest(self.returned, "nexus:joe")
        self.assertTrue(result.success)
        self.assertEqual(result.stats, {"entries": 1})
        self.assertTrue(entry_store_path(self.project / "i18nSource", "de").is_file())
        # no git, so nothing records which build the file came from
        self.assertIn(ErrorCode.MUNGED_TRANSLATION_FILE, self.reporter.codes(Severity.WARNING))

    def test_bad_author(self):
        result = LocalizationPipeline(self.project, self.reporter).ingest(self.returned, "joe")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "BAD_FILE")


if __name__ == "__main__":
    unittest.main()
