"""
Integration tests for ``io_aasx.api``, the public programmatic API.

Tests :func:`inspect_aasx`, :func:`import_aasx` and :func:`batch_import`
against crafted packages and a temporary store.
"""

import io
import json
import unittest
import zipfile
from unittest.mock import patch

from test_base import (
    AASXTestCase,
    GLOBAL_ASSET_ID,
    asset_environment,
    corrupt_member,
    standard_package_files,
)

from io_aasx.api import (
    ImportResult,
    InspectResult,
    batch_import,
    import_aasx,
    inspect_aasx,
)
from io_aasx.common.types import CorruptedFileIssue, MissingContentIssue
from io_aasx.import_aasx.classify import Classification, ContentKind


class APITestCase(AASXTestCase):

    def setUp(self):
        super().setUp()
        self.storage_root = self.work_dir / "store"

    def corrupt_package(self, name="pump.aasx"):
        path = self.make_package(name=name, compression=zipfile.ZIP_STORED)
        corrupt_member(path, "aasx-suppl/datasheet_v2.pdf")
        return path


# ============================================================================
# inspect_aasx
# ============================================================================


class TestInspect(APITestCase):

    def test_standard_package(self):
        result = inspect_aasx(self.make_package())
        self.assertIsInstance(result, InspectResult)
        self.assertEqual(result.status, "OK")
        self.assertIn("aasx/pump/pump.aas.json", result.archive_files)
        self.assertEqual(result.content_types.content_type("a.pdf"), "application/pdf")
        self.assertEqual(len(result.relationships), 2)
        self.assertEqual(result.asset_model_part, "aasx/pump/pump.aas.json")
        self.assertEqual(result.asset_id, GLOBAL_ASSET_ID)
        self.assertEqual(result.metadata.manufacturer_name, "ACME Pumps")
        self.assertEqual(result.metadata.source_filename, "pump.aasx")
        self.assertEqual(result.issues, [])
        self.assertEqual(result.warnings, [])

    def test_writes_nothing(self):
        path = self.make_package()
        inspect_aasx(path)
        self.assertEqual(self.store.stored_asset_ids(), [])
        self.assertEqual(sorted(p.name for p in self.work_dir.iterdir()), ["pump.aasx", "store"])

    def test_missing_file(self):
        result = inspect_aasx(self.work_dir / "absent.aasx")
        self.assertEqual(result.status, "ERROR")
        self.assertEqual(result.error_message, "AASX file not found: absent.aasx")

    def test_not_a_zip(self):
        path = self.work_dir / "fake.aasx"
        path.write_text("hello", "utf-8")
        result = inspect_aasx(path)
        self.assertEqual(result.status, "ERROR")
        self.assertIn("Invalid AASX package", result.error_message)

    def test_missing_content_types(self):
        files = standard_package_files()
        del files["[Content_Types].xml"]
        result = inspect_aasx(self.make_package(files))
        self.assertEqual(result.status, "OK")
        self.assertEqual(result.warnings, ["Package has no [Content_Types].xml"])
        self.assertEqual(result.issues, [MissingContentIssue(("[Content_Types].xml",))])

    def test_unreadable_model(self):
        files = standard_package_files()
        files["aasx/pump/pump.aas.json"] = "[broken"
        result = inspect_aasx(self.make_package(files))
        self.assertEqual(result.status, "OK")
        self.assertIsNone(result.asset_id)
        self.assertIsNone(result.metadata)
        self.assertEqual(result.warnings, ["Unable to read asset model aasx/pump/pump.aas.json"])

    def test_malformed_relationships(self):
        files = standard_package_files()
        files["_rels/.rels"] = "<Relationships"
        result = inspect_aasx(self.make_package(files))
        self.assertEqual(result.status, "ERROR")
        self.assertIn("Relationship file has malformed XML", result.error_message)

    def test_corrupt_member_reported(self):
        result = inspect_aasx(self.corrupt_package())
        self.assertEqual(result.status, "OK")
        self.assertEqual(len(result.issues), 1)
        self.assertIsInstance(result.issues[0], CorruptedFileIssue)


# ============================================================================
# import_aasx
# ============================================================================


class TestImport(APITestCase):

    def test_success(self):
        result = import_aasx(self.make_package(), storage_root=self.storage_root)
        self.assertIsInstance(result, ImportResult)
        self.assertEqual(result.status, "FINISHED")
        self.assertEqual(result.error_message, "")
        self.assertEqual(result.asset_id, GLOBAL_ASSET_ID)
        self.assertEqual(result.asset_directory, self.asset_dir())
        self.assertEqual(result.parse_result.metadata.asset_name, "Pump_X100")
        self.assertEqual(result.issues, [])
        self.assertEqual(result.warnings, [])
        self.assertTrue((self.asset_dir() / "manifest.json").is_file())

    def test_asset_id_override(self):
        result = import_aasx(self.make_package(), storage_root=self.storage_root, asset_id="pump-7")
        self.assertEqual(result.asset_id, "pump-7")
        self.assertTrue(self.store.has_content("pump-7"))

    def test_abort_on_issues(self):
        result = import_aasx(self.corrupt_package(), storage_root=self.storage_root, on_issues="abort")
        self.assertEqual(result.status, "CANCELLED")
        self.assertIn("aasx-suppl/datasheet_v2.pdf", result.error_message)
        self.assertEqual(len(result.issues), 1)
        self.assertIsNone(result.parse_result)
        self.assertEqual(self.store.stored_asset_ids(), [])

    def test_continue_on_issues(self):
        result = import_aasx(self.corrupt_package(), storage_root=self.storage_root)
        self.assertEqual(result.status, "FINISHED")
        self.assertEqual(len(result.issues), 1)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("Unable to extract", result.warnings[0])

    def test_checksums_not_verified(self):
        result = import_aasx(
            self.corrupt_package(), storage_root=self.storage_root, on_issues="abort", verify_checksums=False
        )
        self.assertEqual(result.status, "FINISHED")
        self.assertEqual(result.issues, [])
        self.assertEqual(len(result.warnings), 1)

    def test_require_asset_model(self):
        files = standard_package_files()
        del files["aasx/pump/pump.aas.json"]
        result = import_aasx(
            self.make_package(files), storage_root=self.storage_root, on_issues="abort", require_asset_model=True
        )
        self.assertEqual(result.status, "CANCELLED")
        self.assertEqual(result.error_message, "Missing fields: asset model")

    def test_on_warning(self):
        files = standard_package_files()
        del files["thumbnail.png"]
        received = []
        result = import_aasx(self.make_package(files), storage_root=self.storage_root, on_warning=received.append)
        self.assertEqual(result.status, "FINISHED")
        self.assertEqual(received, result.warnings)
        self.assertEqual(len(received), 1)

    def test_classifier(self):
        def only_manuals(filename):
            if "manual" in filename.lower():
                return Classification(ContentKind.DOCUMENT)
            return None

        result = import_aasx(self.make_package(), storage_root=self.storage_root, classifier=only_manuals)
        content = result.parse_result.extracted_content
        self.assertEqual([d.original_filename for d in content.documents], ["operating_manual.pdf"])
        self.assertEqual(content.product_images, [])
        self.assertIsNotNone(content.thumbnail)

    def test_missing_file(self):
        with patch("sys.stdout", new_callable=io.StringIO):
            result = import_aasx(self.work_dir / "absent.aasx", storage_root=self.storage_root)
        self.assertEqual(result.status, "CANCELLED")
        self.assertEqual(result.error_message, "AASX file not found: absent.aasx")

    def test_bad_policy(self):
        with self.assertRaises(ValueError):
            import_aasx(self.make_package(), storage_root=self.storage_root, on_issues="ask")


# ============================================================================
# batch_import
# ============================================================================


class TestBatchImport(APITestCase):

    def test_isolation_and_order(self):
        first = self.make_package()
        files = standard_package_files()
        files["aasx/pump/pump.aas.json"] = json.dumps(asset_environment(global_asset_id="urn:second"))
        second = self.make_package(files, name="second.aasx")
        missing = self.work_dir / "missing.aasx"

        progress = []
        with patch("sys.stdout", new_callable=io.StringIO):
            results = batch_import(
                [first, missing, second],
                storage_root=self.storage_root,
                on_progress=lambda percent, message: progress.append((percent, message)),
            )

        self.assertEqual([r.status for r in results], ["FINISHED", "CANCELLED", "FINISHED"])
        self.assertEqual(results[0].asset_id, GLOBAL_ASSET_ID)
        self.assertEqual(results[2].asset_id, "urn:second")
        self.assertEqual(sorted(self.store.stored_asset_ids()), sorted([self.asset_dir().name, "urn_second"]))
        self.assertEqual(progress[0], (0, "[1/3] pump.aasx"))
        self.assertEqual(progress[-1], (100, "Batch import complete"))
        self.assertEqual(len(progress), 4)

    def test_policy_applies_to_all(self):
        results = batch_import(
            [self.corrupt_package(), self.corrupt_package(name="b.aasx")],
            storage_root=self.storage_root,
            on_issues="abort",
        )
        self.assertEqual([r.status for r in results], ["CANCELLED", "CANCELLED"])

    def test_empty(self):
        self.assertEqual(batch_import([], storage_root=self.storage_root), [])

    def test_asset_id_rejected(self):
        with self.assertRaises(TypeError):
            batch_import([self.make_package()], asset_id="x")

    def test_bad_policy(self):
        with self.assertRaises(ValueError):
            batch_import([self.make_package()], on_issues="maybe")


if __name__ == "__main__":
    unittest.main()
