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
Fatal errors of the AASX import pipeline.

Each error carries an :class:`ErrorKind` tag and a reason string; ``str()``
gives the sentence shown to the user when an import ends in the failed state.
Non-fatal problems are not exceptions; see ``PackageWarning`` and
``ImportIssue`` in :mod:`.types`.
"""

import os.path
from enum import Enum

__all__ = [
    "ErrorKind",
    "AASXError",
    "PackageNotFoundError",
    "InvalidPackageError",
    "ExtractionFailedError",
    "MissingManifestError",
    "ParsingFailedError",
    "StorageError",
    "DownloadFailedError",
    "UserAbortedError",
]


class ErrorKind(Enum):
    """Category of a fatal import error."""

    FILE_NOT_FOUND = "fileNotFound"
    INVALID_PACKAGE = "invalidPackage"
    EXTRACTION_FAILED = "extractionFailed"
    MISSING_MANIFEST = "missingManifest"
    PARSING_FAILED = "parsingFailed"
    STORAGE_ERROR = "storageError"
    DOWNLOAD_FAILED = "downloadFailed"
    USER_ABORTED = "userAborted"


class AASXError(Exception):
    """Base class of all fatal import errors."""

    kind: ErrorKind = ErrorKind.PARSING_FAILED
    template: str = "{reason}"

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__(self.template.format(reason=reason))


class PackageNotFoundError(AASXError):
    kind = ErrorKind.FILE_NOT_FOUND

    def __init__(self, path: str):
        self.path = str(path)
        super().__init__(self.path)

    def __str__(self) -> str:
        return f"AASX file not found: {os.path.basename(self.path)}"


class InvalidPackageError(AASXError):
    kind = ErrorKind.INVALID_PACKAGE
    template = "Invalid AASX package: {reason}"


class ExtractionFailedError(AASXError):
    kind = ErrorKind.EXTRACTION_FAILED
    template = "Failed to extract AASX: {reason}"


class MissingManifestError(AASXError):
    kind = ErrorKind.MISSING_MANIFEST

    def __str__(self) -> str:
        if self.reason:
            return f"AASX package is missing required manifest: {self.reason}"
        return "AASX package is missing required manifest"


class ParsingFailedError(AASXError):
    kind = ErrorKind.PARSING_FAILED
    template = "Failed to parse AASX content: {reason}"


class StorageError(AASXError):
    kind = ErrorKind.STORAGE_ERROR
    template = "Failed to store extracted content: {reason}"


class DownloadFailedError(AASXError):
    kind = ErrorKind.DOWNLOAD_FAILED
    template = "Failed to download AASX: {reason}"


class UserAbortedError(AASXError):
    kind = ErrorKind.USER_ABORTED

    def __str__(self) -> str:
        return "Import was cancelled"
