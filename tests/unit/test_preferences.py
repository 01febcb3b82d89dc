"""
Unit tests for ``io_aasx.preferences``.

Preferences are read from ``AASX_``-prefixed environment variables; the
``.env`` file is disabled here so the working directory cannot leak in.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

import io_aasx.common.logging as log_mod
from io_aasx.import_aasx.download import Downloader
from io_aasx.preferences import AASXPreferences
from io_aasx.store import ContentStore


def _preferences(**kwargs) -> AASXPreferences:
    return AASXPreferences(_env_file=None, **kwargs)


class TestDefaults(unittest.TestCase):

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        preferences = _preferences()
        self.assertEqual(preferences.download_timeout, 60.0)
        self.assertTrue(preferences.verify_checksums)
        self.assertFalse(preferences.require_asset_model)
        self.assertFalse(preferences.debug_mode)
        self.assertEqual(preferences.storage_root.parts[-3:], (".local", "share", "aasx"))


class TestEnvironment(unittest.TestCase):

    @patch.dict(os.environ, {
        "AASX_STORAGE_ROOT": "/data/twins",
        "AASX_DOWNLOAD_TIMEOUT": "5",
        "AASX_VERIFY_CHECKSUMS": "false",
        "AASX_REQUIRE_ASSET_MODEL": "1",
    }, clear=True)
    def test_read_from_environment(self):
        preferences = _preferences()
        self.assertEqual(preferences.storage_root, Path("/data/twins"))
        self.assertEqual(preferences.download_timeout, 5.0)
        self.assertFalse(preferences.verify_checksums)
        self.assertTrue(preferences.require_asset_model)

    @patch.dict(os.environ, {"AASX_DOWNLOAD_TIMEOUT": "0"}, clear=True)
    def test_timeout_must_be_positive(self):
        with self.assertRaises(ValidationError):
            _preferences()

    @patch.dict(os.environ, {"AASX_DEBUG_MODE": "true"}, clear=True)
    def test_apply_sets_debug_mode(self):
        original = log_mod.DEBUG_MODE
        try:
            _preferences().apply()
            self.assertTrue(log_mod.DEBUG_MODE)
        finally:
            log_mod.DEBUG_MODE = original

    @patch.dict(os.environ, {"STORAGE_ROOT": "/elsewhere"}, clear=True)
    def test_unprefixed_ignored(self):
        self.assertNotEqual(_preferences().storage_root, Path("/elsewhere"))


class TestFactories(unittest.TestCase):

    def setUp(self):
        self.base = Path(tempfile.mkdtemp(prefix="aasx_preferences_"))

    def tearDown(self):
        shutil.rmtree(self.base, ignore_errors=True)

    def test_import_options(self):
        options = _preferences(verify_checksums=False, require_asset_model=True).import_options()
        self.assertFalse(options.verify_checksums)
        self.assertTrue(options.require_asset_model)

    def test_create_store(self):
        store = _preferences(storage_root=self.base).create_store()
        self.assertIsInstance(store, ContentStore)
        self.assertEqual(store.root, self.base / "AASXContent")

    def test_create_downloader(self):
        downloader = _preferences(download_timeout=7.5).create_downloader()
        self.assertIsInstance(downloader, Downloader)
        self.assertEqual(downloader.timeout, 7.5)


if __name__ == "__main__":
    unittest.main()
