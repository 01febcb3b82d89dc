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
Archive reading utilities for AASX import.

Opens the ZIP container, extracts its members into a working directory, and
pre-scans a package for problems the user should decide on before anything
is written to the store.
"""

import errno
import shutil
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set, Union, TYPE_CHECKING

from ..common import (
    debug,
    warn,
    CONTENT_TYPES_LOCATION,
    ROOT_RELS_LOCATION,
    ASSET_MODEL_LOCATIONS,
)
from ..common.errors import ExtractionFailedError, InvalidPackageError, PackageNotFoundError, ParsingFailedError
from ..common.opc import Relationship, parse_relationships, rels_path, resolve_asset_model_part
from ..common.types import (
    CorruptedFileIssue,
    ImportIssue,
    MissingContentIssue,
    PartialMetadataIssue,
    UnsupportedFormatIssue,
    WarningKind,
)

if TYPE_CHECKING:
    from .context import ImportContext, ImportOptions

__all__ = [
    "ArchiveEntry",
    "open_archive",
    "list_entries",
    "safe_destination",
    "extract_entry",
    "extract_package",
    "scan_for_issues",
    "read_archive_part",
    "read_archive_relationships",
]

# Compression methods the zipfile module decodes.
SUPPORTED_COMPRESSION = {
    zipfile.ZIP_STORED: "stored",
    zipfile.ZIP_DEFLATED: "deflate",
    zipfile.ZIP_BZIP2: "bzip2",
    zipfile.ZIP_LZMA: "lzma",
}

CHUNK_SIZE = 64 * 1024

# What zipfile raises for a member whose bytes are damaged.
CORRUPT_MEMBER_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError)

# Write errors caused by one entry's own path, e.g. a file and a folder of the same name.
ENTRY_CONFLICT_ERRNOS = {errno.EEXIST, errno.ENOTDIR, errno.EISDIR, errno.ENAMETOOLONG}


@dataclass(frozen=True)
class ArchiveEntry:
    """One member of the ZIP container."""

    path: str  # As stored in the archive.
    is_directory: bool
    size: int = 0  # Uncompressed.
    compress_type: int = zipfile.ZIP_STORED

    @property
    def part_name(self) -> str:
        """The path as a package part name: forward slashes, no leading ``/``."""
        return normalize_part_name(self.path)


def normalize_part_name(name: str) -> str:
    return name.replace("\\", "/").lstrip("/")


# ---------------------------------------------------------------------------
# Opening
# ---------------------------------------------------------------------------

def open_archive(path: Union[str, Path]) -> zipfile.ZipFile:
    """Open an AASX file as a ZIP archive.

    :param path: Filesystem path to the ``.aasx`` file.
    :return: The open archive. The caller closes it.
    :raises PackageNotFoundError: If there is no file at *path*.
    :raises InvalidPackageError: If the file is not a readable ZIP archive.
    """
    if not Path(path).is_file():
        raise PackageNotFoundError(str(path))
    try:
        return zipfile.ZipFile(path)
    except (zipfile.BadZipFile, EnvironmentError) as e:
        raise InvalidPackageError(f"Not a valid ZIP archive ({e})") from e


def list_entries(archive: zipfile.ZipFile) -> List[ArchiveEntry]:
    return [
        ArchiveEntry(
            path=info.filename,
            is_directory=info.is_dir(),
            size=info.file_size,
            compress_type=info.compress_type,
        )
        for info in archive.infolist()
    ]


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def safe_destination(root: Union[str, Path], entry_path: str) -> Path:
    """Where an archive member lands inside *root*.

    Leading separators are dropped and backslashes count as separators.

    :raises ExtractionFailedError: If the member would end up outside *root*.
    """
    parts = [part for part in entry_path.replace("\\", "/").split("/") if part not in ("", ".")]
    if not parts:
        raise ExtractionFailedError(f"Empty entry path: {entry_path!r}")
    if ".." in parts:
        raise ExtractionFailedError(f"Entry path escapes the package: {entry_path}")
    if len(parts[0]) == 2 and parts[0][1] == ":":  # Windows drive, e.g. "C:".
        raise ExtractionFailedError(f"Entry path is absolute: {entry_path}")

    root = Path(root)
    destination = root.joinpath(*parts)
    try:
        destination.resolve().relative_to(root.resolve())
    except ValueError:
        raise ExtractionFailedError(f"Entry path escapes the package: {entry_path}")
    return destination


def extract_entry(archive: zipfile.ZipFile, entry: ArchiveEntry, root: Union[str, Path]) -> Path:
    """Stream one member to disk below *root*.

    :return: The path written (a directory for directory entries).
    :raises ExtractionFailedError: If the entry path is unsafe.
    :raises zipfile.BadZipFile: If the member fails its CRC check or cannot be decompressed
        (also ``zlib.error``, ``EOFError`` and ``NotImplementedError``).
    :raises OSError: If writing to disk fails.
    """
    destination = safe_destination(root, entry.path)
    if entry.is_directory:
        destination.mkdir(parents=True, exist_ok=True)
        return destination

    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        with archive.open(entry.path) as source, open(destination, "wb") as target:
            shutil.copyfileobj(source, target, CHUNK_SIZE)
    except CORRUPT_MEMBER_ERRORS:
        destination.unlink(missing_ok=True)
        raise
    return destination


def extract_package(ctx: "ImportContext", archive: zipfile.ZipFile, root: Union[str, Path]) -> List[Path]:
    """Extract every member of *archive* into *root*.

    Unsafe and corrupt members, and members whose path clashes with another
    one, are skipped with a warning on *ctx*.

    :return: Paths of the extracted files, in archive order.
    :raises ExtractionFailedError: If writing to disk fails for any other reason.
    :raises UserAbortedError: If the import is cancelled between members.
    """
    extracted: List[Path] = []
    for entry in list_entries(archive):
        ctx.check_cancelled()
        try:
            destination = extract_entry(archive, entry, root)
        except ExtractionFailedError as e:
            ctx.add_warning(WarningKind.CORRUPTED_FILE, f"Skipped unsafe entry: {e.reason}", entry.path)
            continue
        except CORRUPT_MEMBER_ERRORS as e:
            ctx.add_warning(WarningKind.CORRUPTED_FILE, f"Unable to extract: {e}", entry.path)
            continue
        except OSError as e:
            if e.errno not in ENTRY_CONFLICT_ERRNOS:
                raise ExtractionFailedError(f"Unable to write {entry.path}: {e}") from e
            ctx.add_warning(WarningKind.CORRUPTED_FILE, f"Unable to extract: {e.strerror}", entry.path)
            continue
        if not entry.is_directory:
            extracted.append(destination)

    debug(f"Extracted {len(extracted)} files to {root}")
    return extracted


# ---------------------------------------------------------------------------
# Pre-scan
# ---------------------------------------------------------------------------

def read_archive_part(archive: zipfile.ZipFile, part: str) -> Optional[bytes]:
    """Contents of a package part straight from the archive, or None if it is absent."""
    for info in archive.infolist():
        if normalize_part_name(info.filename) == part:
            return archive.read(info)
    return None


def read_archive_relationships(archive: zipfile.ZipFile, part: Optional[str] = None) -> List[Relationship]:
    """Like :func:`.opc.read_relationships`, without extracting the archive."""
    data = read_archive_part(archive, ROOT_RELS_LOCATION if part is None else rels_path(part))
    if data is None:
        return []
    return parse_relationships(data)


def _has_asset_model(archive: zipfile.ZipFile, names: Set[str]) -> bool:
    if any(location in names for location in ASSET_MODEL_LOCATIONS):
        return True
    try:
        part = resolve_asset_model_part(
            read_archive_relationships(archive),
            lambda origin: read_archive_relationships(archive, origin),
        )
    except (ParsingFailedError, *CORRUPT_MEMBER_ERRORS) as e:
        warn(f"Unable to read package relationships: {e}")
        return False
    return part is not None and part in names


def _verify_member(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> Optional[str]:
    """Read a member through to the end; zipfile checks the CRC at EOF."""
    try:
        with archive.open(info) as stream:
            while stream.read(CHUNK_SIZE):
                pass
    except CORRUPT_MEMBER_ERRORS as e:
        return str(e) or type(e).__name__
    return None


def scan_for_issues(path: Union[str, Path], options: "ImportOptions") -> List[ImportIssue]:
    """Find the problems of a package that need a continue/abort decision.

    Nothing is extracted or written.

    :param path: Filesystem path to the ``.aasx`` file.
    :param options: Which optional checks to run.
    :return: The issues, mandatory parts first. Empty for a healthy package.
    :raises PackageNotFoundError: If there is no file at *path*.
    :raises InvalidPackageError: If the file is not a readable ZIP archive.
    """
    issues: List[ImportIssue] = []
    with open_archive(path) as archive:
        infos = archive.infolist()
        names = {normalize_part_name(info.filename) for info in infos}

        for required in (CONTENT_TYPES_LOCATION, ROOT_RELS_LOCATION):
            if required not in names:
                issues.append(MissingContentIssue((required,)))

        unsupported = set()
        for info in infos:
            if info.compress_type not in SUPPORTED_COMPRESSION:
                unsupported.add(info.filename)
                issues.append(UnsupportedFormatIssue(info.filename, f"compression method {info.compress_type}"))

        if options.verify_checksums:
            for info in infos:
                if info.is_dir() or info.filename in unsupported:
                    continue
                problem = _verify_member(archive, info)
                if problem is not None:
                    issues.append(CorruptedFileIssue(info.filename, problem))

        if options.require_asset_model and not _has_asset_model(archive, names):
            issues.append(PartialMetadataIssue(("asset model",)))

    debug(f"Pre-scan of {Path(path).name} found {len(issues)} issues")
    return issues
