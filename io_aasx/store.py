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

# <pep8 compliant>

"""
Local store of imported AASX content.

Each asset gets one directory below ``<base>/AASXContent/``::

    <sanitized-asset-id>/
        manifest.json
        thumbnail.<ext>
        images/  markings/  documents/

Imports write through a :class:`StoreSession`: files are staged in a hidden
directory inside the store root and the finished directory replaces the
asset's directory in one rename, so an interrupted import never leaves a
half-written asset behind.
"""

import json
import os
import shutil
import uuid
from pathlib import Path
from typing import List, Optional, Union

from .common import debug, error
from .common.constants import (
    ASSET_SUBFOLDERS,
    DEFAULT_MIMETYPE,
    DOCUMENTS_FOLDER,
    DOCUMENT_EXTENSIONS,
    EXTENSION_MIMETYPES,
    IMAGES_FOLDER,
    IMAGE_EXTENSIONS,
    MANIFEST_FILENAME,
    MARKINGS_FOLDER,
    MARKING_EXTENSIONS,
    STORE_FOLDER,
    THUMBNAIL_CANDIDATES,
    UNSAFE_ID_CHARACTERS,
)
from .common.errors import StorageError
from .common.types import DocumentCategory, DocumentRecord, Metadata, ParseResult

__all__ = [
    "ContentStore",
    "StoreSession",
    "sanitize_asset_id",
    "mime_type_for",
]

LOGO_CANDIDATES = ("logo.png", "logo.jpg", "manufacturer_logo.png", "manufacturer_logo.jpg")
STAGING_PREFIX = ".staging-"
RETIRED_PREFIX = ".retired-"


def sanitize_asset_id(asset_id: str) -> str:
    """Directory name for an asset id.

    ``/ : ? &`` become ``_``.  Ids that would still name the store root or its
    parent (empty, ``.``, ``..``) are prefixed with ``_``.
    """
    sanitized = asset_id
    for character in UNSAFE_ID_CHARACTERS:
        sanitized = sanitized.replace(character, "_")
    if sanitized in ("", ".", ".."):
        sanitized = "_" + sanitized
    return sanitized


def mime_type_for(path: Union[str, Path]) -> str:
    """MIME type of a stored file by its extension."""
    return EXTENSION_MIMETYPES.get(Path(path).suffix[1:].lower(), DEFAULT_MIMETYPE)


def _check_filename(filename: str) -> None:
    if not filename or Path(filename).name != filename or filename in (".", ".."):
        raise StorageError(f"Not a plain filename: {filename!r}")


def _atomic_copy(source: Path, destination: Path) -> None:
    """Copy *source* over *destination*; readers never see a partial file."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    temporary = destination.parent / f".{destination.name}.{uuid.uuid4().hex}.tmp"
    try:
        shutil.copyfile(source, temporary)
        os.replace(temporary, destination)
    finally:
        if temporary.exists():
            temporary.unlink()


def _atomic_write(destination: Path, data: bytes) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    temporary = destination.parent / f".{destination.name}.{uuid.uuid4().hex}.tmp"
    try:
        temporary.write_bytes(data)
        os.replace(temporary, destination)
    finally:
        if temporary.exists():
            temporary.unlink()


def _manifest_bytes(metadata: Metadata) -> bytes:
    return json.dumps(metadata.to_dict(), indent=2, sort_keys=True, ensure_ascii=False).encode("utf-8")


def _files_in(directory: Path, extensions) -> List[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        (
            path for path in directory.iterdir()
            if path.is_file() and not path.name.startswith(".") and path.suffix[1:].lower() in extensions
        ),
        key=lambda path: path.name,
    )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

class StoreSession:
    """Staged writes for one asset, published by :meth:`commit`.

    Use as a context manager; leaving the block without committing discards
    the staged files::

        with store.session(asset_id) as session:
            session.copy_file(source, "images", "photo.png")
            session.commit(metadata)
    """

    def __init__(self, store: "ContentStore", asset_id: str):
        self.store = store
        self.asset_id = asset_id
        self.final_directory = store.asset_directory(asset_id)
        self.staging_directory = store.root / f"{STAGING_PREFIX}{uuid.uuid4().hex}"
        try:
            self.staging_directory.mkdir()
        except OSError as e:
            raise StorageError(f"Unable to create staging directory: {e}") from e
        self.finished = False

    def __enter__(self) -> "StoreSession":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if not self.finished:
            self.discard()

    def copy_file(self, source: Union[str, Path], subdirectory: str, filename: str) -> Path:
        """Stage a copy of *source*.

        :param source: File to copy. It is left in place.
        :param subdirectory: Folder of the asset directory, or ``""`` for its top level.
        :param filename: Name of the copy.
        :return: Where the copy will be once the session is committed.
        :raises StorageError: If the copy fails or the session is finished.
        """
        if self.finished:
            raise StorageError("Store session is already finished")
        _check_filename(filename)
        relative = Path(subdirectory, filename) if subdirectory else Path(filename)
        try:
            _atomic_copy(Path(source), self.staging_directory / relative)
        except OSError as e:
            raise StorageError(f"Unable to copy {Path(source).name}: {e}") from e
        return self.final_directory / relative

    def commit(self, metadata: Metadata) -> Path:
        """Write the manifest and publish the staged directory as the asset's directory.

        An existing directory of the same asset is replaced as a whole.

        :return: The asset directory.
        :raises StorageError: If the directory cannot be published. The previous content is kept.
        """
        if self.finished:
            raise StorageError("Store session is already finished")
        try:
            for subfolder in ASSET_SUBFOLDERS:
                (self.staging_directory / subfolder).mkdir(exist_ok=True)
            _atomic_write(self.staging_directory / MANIFEST_FILENAME, _manifest_bytes(metadata))
        except OSError as e:
            self.discard()
            raise StorageError(f"Unable to write manifest: {e}") from e

        retired = None
        try:
            if self.final_directory.exists():
                retired = self.store.root / f"{RETIRED_PREFIX}{uuid.uuid4().hex}"
                os.replace(self.final_directory, retired)
            os.replace(self.staging_directory, self.final_directory)
        except OSError as e:
            if retired is not None and retired.exists() and not self.final_directory.exists():
                os.replace(retired, self.final_directory)
            self.discard()
            raise StorageError(f"Unable to publish content of {self.asset_id}: {e}") from e

        self.finished = True
        if retired is not None:
            shutil.rmtree(retired, ignore_errors=True)
        debug(f"Committed content of {self.asset_id} to {self.final_directory}")
        return self.final_directory

    def discard(self) -> None:
        """Throw the staged files away. Safe to call more than once."""
        self.finished = True
        shutil.rmtree(self.staging_directory, ignore_errors=True)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class ContentStore:
    """Per-asset directories of extracted content below ``<base_directory>/AASXContent``."""

    def __init__(self, base_directory: Union[str, Path]):
        self.base_directory = Path(base_directory)
        self.root = self.base_directory / STORE_FOLDER
        self.is_available = True
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.is_available = False
            error(f"Unable to create content directory {self.root}: {e}")

    def _ensure_available(self) -> None:
        if not self.is_available:
            raise StorageError(f"Content directory is unavailable: {self.root}")

    def asset_directory(self, asset_id: str) -> Path:
        return self.root / sanitize_asset_id(asset_id)

    # --- Writing ------------------------------------------------------------

    def session(self, asset_id: str) -> StoreSession:
        """Start staged writes for *asset_id*.

        :raises StorageError: If the store is unavailable.
        """
        self._ensure_available()
        return StoreSession(self, asset_id)

    def copy_file(self, source: Union[str, Path], asset_id: str, subdirectory: str, filename: str) -> Path:
        """Copy *source* straight into the asset directory, replacing a file of the same name.

        :return: Path of the copy.
        :raises StorageError: If the store is unavailable or the copy fails.
        """
        self._ensure_available()
        _check_filename(filename)
        directory = self.asset_directory(asset_id)
        destination = (directory / subdirectory / filename) if subdirectory else (directory / filename)
        try:
            _atomic_copy(Path(source), destination)
        except OSError as e:
            raise StorageError(f"Unable to copy {Path(source).name}: {e}") from e
        debug(f"Copied file to: {destination}")
        return destination

    def store(self, result: ParseResult) -> Path:
        """Create the directory structure of the result's asset and write its manifest.

        :return: The asset directory.
        :raises StorageError: If the store is unavailable or writing fails.
        """
        self._ensure_available()
        directory = self.asset_directory(result.asset_id)
        try:
            for subfolder in ASSET_SUBFOLDERS:
                (directory / subfolder).mkdir(parents=True, exist_ok=True)
            _atomic_write(directory / MANIFEST_FILENAME, _manifest_bytes(result.metadata))
        except OSError as e:
            raise StorageError(f"Unable to write manifest: {e}") from e
        debug(f"Stored content for asset: {result.asset_id}")
        return directory

    # --- Queries ------------------------------------------------------------

    def thumbnail_path(self, asset_id: str) -> Optional[Path]:
        """The asset's thumbnail, else its first product image."""
        directory = self.asset_directory(asset_id)
        for candidate in THUMBNAIL_CANDIDATES:
            path = directory / candidate
            if path.is_file():
                return path
        images = self.product_images(asset_id)
        return images[0] if images else None

    def product_images(self, asset_id: str) -> List[Path]:
        images = _files_in(self.asset_directory(asset_id) / IMAGES_FOLDER, IMAGE_EXTENSIONS)
        return [path for path in images if "logo" not in path.name.lower()]

    def logo_path(self, asset_id: str) -> Optional[Path]:
        images_directory = self.asset_directory(asset_id) / IMAGES_FOLDER
        for candidate in LOGO_CANDIDATES:
            path = images_directory / candidate
            if path.is_file():
                return path
        for path in _files_in(images_directory, IMAGE_EXTENSIONS):
            if "logo" in path.name.lower():
                return path
        return None

    def marking_paths(self, asset_id: str) -> List[Path]:
        return _files_in(self.asset_directory(asset_id) / MARKINGS_FOLDER, MARKING_EXTENSIONS)

    def documents(self, asset_id: str) -> List[DocumentRecord]:
        """Records of the stored documents, rebuilt from the files."""
        records = []
        for path in _files_in(self.asset_directory(asset_id) / DOCUMENTS_FOLDER, DOCUMENT_EXTENSIONS):
            records.append(
                DocumentRecord(
                    title=path.stem,
                    local_path=path,
                    mime_type=mime_type_for(path),
                    category=DocumentCategory.from_filename(path.name),
                    original_filename=path.name,
                    file_size=path.stat().st_size,
                )
            )
        return records

    def load_manifest(self, asset_id: str) -> Optional[Metadata]:
        """The stored metadata of an asset, or None if it has no manifest.

        :raises StorageError: If the manifest cannot be read or is malformed.
        """
        path = self.asset_directory(asset_id) / MANIFEST_FILENAME
        if not path.is_file():
            return None
        try:
            return Metadata.from_dict(json.loads(path.read_bytes()))
        except OSError as e:
            raise StorageError(f"Unable to read manifest of {asset_id}: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Malformed manifest of {asset_id}: {e}") from e

    def has_content(self, asset_id: str) -> bool:
        return self.is_available and self.asset_directory(asset_id).is_dir()

    def delete_content(self, asset_id: str) -> None:
        """Remove everything stored for *asset_id*. Unknown ids are ignored.

        :raises StorageError: If the store is unavailable or removal fails.
        """
        self._ensure_available()
        directory = self.asset_directory(asset_id)
        if not directory.exists():
            return
        try:
            shutil.rmtree(directory)
        except OSError as e:
            raise StorageError(f"Unable to delete content of {asset_id}: {e}") from e
        debug(f"Deleted content for asset: {asset_id}")

    def total_storage_used(self) -> int:
        """Bytes used by all published assets."""
        if not self.is_available:
            return 0
        total = 0
        for directory, subdirectories, files in os.walk(self.root):
            subdirectories[:] = [name for name in subdirectories if not name.startswith(".")]
            for name in files:
                if name.startswith("."):
                    continue
                try:
                    total += os.path.getsize(os.path.join(directory, name))
                except OSError:  # Removed while walking.
                    continue
        return total

    def stored_asset_ids(self) -> List[str]:
        """Directory names of the published assets (sanitized ids), sorted."""
        if not self.is_available or not self.root.is_dir():
            return []
        return sorted(
            path.name for path in self.root.iterdir()
            if path.is_dir() and not path.name.startswith(".")
        )
