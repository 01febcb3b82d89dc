"""
Unit tests for ``io_aasx.common.errors``.

Each fatal error has a kind tag and a user-facing sentence.
"""

import unittest
from io_aasx.common.errors import (
    AASXError,
    DownloadFailedError,
    ErrorKind,
    ExtractionFailedError,
    InvalidPackageError,
    MissingManifestError,
    PackageNotFoundError,
    ParsingFailedError,
    StorageError,
    UserAbortedError,
)


class TestErrorKinds(unittest.TestCase):

    def test_every_error_is_an_aasx_error(self):
        for cls in (
            PackageNotFoundError,
            InvalidPackageError,
            ExtractionFailedError,
            MissingManifestError,
            ParsingFailedError,
            StorageError,
            DownloadFailedError,
            UserAbortedError,
        ):
            self.assertTrue(issubclass(cls, AASXError), cls.__name__)

    def test_kind_tags(self):
        self.assertEqual(PackageNotFoundError("x.aasx").kind, ErrorKind.FILE_NOT_FOUND)
        self.assertEqual(InvalidPackageError("bad").kind, ErrorKind.INVALID_PACKAGE)
        self.assertEqual(ExtractionFailedError("bad").kind, ErrorKind.EXTRACTION_FAILED)
        self.assertEqual(MissingManifestError().kind, ErrorKind.MISSING_MANIFEST)
        self.assertEqual(ParsingFailedError("bad").kind, ErrorKind.PARSING_FAILED)
        self.assertEqual(StorageError("bad").kind, ErrorKind.STORAGE_ERROR)
        self.assertEqual(DownloadFailedError("bad").kind, ErrorKind.DOWNLOAD_FAILED)
        self.assertEqual(UserAbortedError().kind, ErrorKind.USER_ABORTED)


class TestMessages(unittest.TestCase):

    def test_not_found_uses_basename(self):
        e = PackageNotFoundError("/some/where/pump.aasx")
        self.assertEqual(str(e), "AASX file not found: pump.aasx")
        self.assertEqual(e.path, "/some/where/pump.aasx")

    def test_reason_templates(self):
        self.assertEqual(str(InvalidPackageError("truncated")), "Invalid AASX package: truncated")
        self.assertEqual(str(ExtractionFailedError("disk full")), "Failed to extract AASX: disk full")
        self.assertEqual(str(ParsingFailedError("bad json")), "Failed to parse AASX content: bad json")
        self.assertEqual(str(StorageError("denied")), "Failed to store extracted content: denied")
        self.assertEqual(str(DownloadFailedError("timeout")), "Failed to download AASX: timeout")

    def test_reason_attribute_kept(self):
        self.assertEqual(StorageError("denied").reason, "denied")

    def test_missing_manifest_with_and_without_reason(self):
        self.assertEqual(str(MissingManifestError()), "AASX package is missing required manifest")
        self.assertEqual(
            str(MissingManifestError("malformed XML")),
            "AASX package is missing required manifest: malformed XML",
        )

    def test_user_aborted(self):
        self.assertEqual(str(UserAbortedError()), "Import was cancelled")

    def test_catchable_as_base(self):
        with self.assertRaises(AASXError):
            raise StorageError("x")


if __name__ == "__main__":
    unittest.main()
