"""
Unit tests for ``io_aasx.import_aasx.context``.

Tests warning accumulation, reporter fan-out, and cancellation points.
"""

import io
import unittest
from unittest.mock import patch

from io_aasx.common.errors import UserAbortedError
from io_aasx.common.types import WarningKind
from io_aasx.import_aasx.classify import classify_by_filename
from io_aasx.import_aasx.context import ImportContext, ImportOptions


class _RecordingReporter:

    def __init__(self):
        self.reports = []

    def report(self, level, message):
        self.reports.append((level, message))


class TestImportOptions(unittest.TestCase):

    def test_defaults(self):
        options = ImportOptions()
        self.assertTrue(options.verify_checksums)
        self.assertFalse(options.require_asset_model)
        self.assertIs(options.classifier, classify_by_filename)


class TestWarnings(unittest.TestCase):

    def test_add_warning_accumulates(self):
        ctx = ImportContext(reporter=_RecordingReporter())
        ctx.add_warning(WarningKind.PARTIAL_METADATA, "Missing metadata fields: serialNumber")
        ctx.add_warning(WarningKind.CORRUPTED_FILE, "Unable to extract", path="aasx/x.pdf")
        self.assertEqual([w.kind for w in ctx.warnings],
                         [WarningKind.PARTIAL_METADATA, WarningKind.CORRUPTED_FILE])

    def test_add_warning_returns_record(self):
        ctx = ImportContext(reporter=_RecordingReporter())
        warning = ctx.add_warning(WarningKind.MISSING_CONTENT, "gone", path="a.pdf")
        self.assertEqual(warning.path, "a.pdf")
        self.assertIs(ctx.warnings[0], warning)

    def test_reporter_receives_description(self):
        reporter = _RecordingReporter()
        ctx = ImportContext(reporter=reporter)
        ctx.add_warning(WarningKind.CORRUPTED_FILE, "Unable to extract", path="aasx/x.pdf")
        self.assertEqual(reporter.reports, [({"WARNING"}, "Unable to extract (aasx/x.pdf)")])

    @patch("sys.stdout", new_callable=io.StringIO)
    def test_console_without_reporter(self, mock_stdout):
        ctx = ImportContext()
        ctx.add_warning(WarningKind.MISSING_CONTENT, "Package has no content types")
        self.assertIn("WARNING: Package has no content types", mock_stdout.getvalue())

    def test_contexts_do_not_share_warnings(self):
        a = ImportContext(reporter=_RecordingReporter())
        b = ImportContext(reporter=_RecordingReporter())
        a.add_warning(WarningKind.MISSING_CONTENT, "x")
        self.assertEqual(b.warnings, [])


class TestCancellation(unittest.TestCase):

    def test_not_cancelled_by_default(self):
        ImportContext().check_cancelled()

    def test_cancel_raises_at_next_checkpoint(self):
        ctx = ImportContext()
        ctx.cancel()
        with self.assertRaises(UserAbortedError):
            ctx.check_cancelled()

    def test_cancel_is_sticky(self):
        ctx = ImportContext()
        ctx.cancel()
        for _ in range(2):
            with self.assertRaises(UserAbortedError):
                ctx.check_cancelled()


if __name__ == "__main__":
    unittest.main()
