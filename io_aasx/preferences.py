# AASX package importer for offline digital twin content.
# Copyright (C) 2020 Ghostkeeper
# Copyright (C) 2025 Jack
# This program is free software; you can redistribute it and/or modify it under the terms of the GNU General Public
# License as published by the Free Software Foundation; either version 2 of the License, or (at your option) any later
# version.
# This program is distributed in the hope that it will be useful, but WITHOUT ANY WARRANTY; without even the implied
# warranty of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU General Public License for more details.
# You should have received a copy of the GNU General Public License along with this program; if not, write to the Free
# Software Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301 USA.

"""
Preferences of the importer, read from the environment.

Every field can be set with an ``AASX_``-prefixed environment variable
(``AASX_STORAGE_ROOT=/data/twins``) or in a ``.env`` file in the working
directory.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .common import logging as aasx_logging
from .import_aasx.context import ImportOptions
from .import_aasx.download import Downloader
from .store import ContentStore

__all__ = [
    "AASXPreferences",
]


def _default_storage_root() -> Path:
    return Path.home() / ".local" / "share" / "aasx"


class AASXPreferences(BaseSettings):
    """
    Preferences for the AASX importer.
    """
    model_config = SettingsConfigDict(env_prefix="AASX_", env_file=".env", extra="ignore")

    storage_root: Path = Field(
        default_factory=_default_storage_root,
        description="Directory that holds the AASXContent store",
    )

    download_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds before a stalled download gives up",
    )

    verify_checksums: bool = Field(
        default=True,
        description=("Read every member during the pre-scan to check its CRC. "
                     "Slower for large packages, but corrupt members are reported before anything is written"),
    )

    require_asset_model: bool = Field(
        default=False,
        description="Report packages without an embedded asset model before importing them",
    )

    debug_mode: bool = Field(
        default=False,
        description="Print verbose progress messages to the console",
    )

    def apply(self) -> None:
        """Apply the process-wide preferences (console verbosity)."""
        aasx_logging.DEBUG_MODE = self.debug_mode

    def import_options(self) -> ImportOptions:
        return ImportOptions(
            verify_checksums=self.verify_checksums,
            require_asset_model=self.require_asset_model,
        )

    def create_store(self) -> ContentStore:
        return ContentStore(self.storage_root)

    def create_downloader(self) -> Downloader:
        return Downloader(timeout=self.download_timeout)
