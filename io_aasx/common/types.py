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
Data types for AASX import.

All structured results of the pipeline live here as ``@dataclass`` classes.
The parser, the content store, and the orchestrator import from this single
module.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

__all__ = [
    "DocumentCategory",
    "DocumentRecord",
    "Metadata",
    "ExtractedContent",
    "ParseResult",
    "WarningKind",
    "PackageWarning",
    "ImportIssue",
    "MissingContentIssue",
    "CorruptedFileIssue",
    "UnsupportedFormatIssue",
    "PartialMetadataIssue",
]


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class DocumentCategory(Enum):
    """Category of an extracted document."""

    MANUAL = "manual"
    CERTIFICATE = "certificate"
    DATASHEET = "datasheet"
    DRAWING = "drawing"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_filename(cls, filename: str) -> "DocumentCategory":
        """Infer the category from substrings of a filename.

        The checks run in a fixed order, so ``"cad_manual.pdf"`` is a manual.
        """
        lowercased = filename.lower()
        if "manual" in lowercased or "instruction" in lowercased:
            return cls.MANUAL
        if "certificate" in lowercased or "cert" in lowercased:
            return cls.CERTIFICATE
        if "datasheet" in lowercased or "spec" in lowercased:
            return cls.DATASHEET
        if "drawing" in lowercased or "cad" in lowercased:
            return cls.DRAWING
        return cls.OTHER


@dataclass(frozen=True)
class DocumentRecord:
    """A document copied out of an AASX package into the local store."""

    title: str  # Filename without extension
    local_path: Path
    mime_type: str
    category: DocumentCategory  # Inferred once, at extraction time
    original_filename: Optional[str] = None
    file_size: Optional[int] = None
    id: str = field(default_factory=_new_id)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Metadata:
    """Display metadata of the imported asset.

    Every field except ``parsed_at`` is optional; absence is not an error.
    """

    asset_name: Optional[str] = None
    manufacturer_name: Optional[str] = None
    serial_number: Optional[str] = None
    product_designation: Optional[str] = None
    source_filename: Optional[str] = None
    parsed_at: datetime.datetime = field(default_factory=_now)

    def missing_fields(self) -> List[str]:
        """Names of the asset fields that could not be resolved."""
        missing = []
        if self.asset_name is None:
            missing.append("assetName")
        if self.manufacturer_name is None:
            missing.append("manufacturerName")
        if self.serial_number is None:
            missing.append("serialNumber")
        return missing

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the manifest representation (camelCase, ISO-8601 date)."""
        document: Dict[str, Any] = {"parsedAt": self.parsed_at.isoformat()}
        optional = {
            "assetName": self.asset_name,
            "manufacturerName": self.manufacturer_name,
            "serialNumber": self.serial_number,
            "productDesignation": self.product_designation,
            "sourceFilename": self.source_filename,
        }
        document.update({key: value for key, value in optional.items() if value is not None})
        return document

    @classmethod
    def from_dict(cls, document: Dict[str, Any]) -> "Metadata":
        """Inverse of :meth:`to_dict`.

        :raises KeyError: If ``parsedAt`` is missing.
        :raises ValueError: If ``parsedAt`` is not an ISO-8601 date.
        """
        return cls(
            asset_name=document.get("assetName"),
            manufacturer_name=document.get("manufacturerName"),
            serial_number=document.get("serialNumber"),
            product_designation=document.get("productDesignation"),
            source_filename=document.get("sourceFilename"),
            parsed_at=datetime.datetime.fromisoformat(document["parsedAt"]),
        )


# ---------------------------------------------------------------------------
# Extracted content
# ---------------------------------------------------------------------------

@dataclass
class ExtractedContent:
    """Local locations of everything copied out of the package."""

    thumbnail: Optional[Path] = None
    product_images: List[Path] = field(default_factory=list)
    manufacturer_logo: Optional[Path] = None
    certification_markings: List[Path] = field(default_factory=list)
    documents: List[DocumentRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            self.thumbnail is None
            and not self.product_images
            and self.manufacturer_logo is None
            and not self.certification_markings
            and not self.documents
        )


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------

class WarningKind(Enum):
    """Kind of a non-fatal problem found while parsing."""

    MISSING_CONTENT = "missingContent"
    CORRUPTED_FILE = "corruptedFile"
    UNSUPPORTED_FORMAT = "unsupportedFormat"
    PARTIAL_METADATA = "partialMetadata"
    RELATIONSHIP_NOT_FOUND = "relationshipNotFound"


@dataclass(frozen=True)
class PackageWarning:
    """Informational problem; never aborts the import."""

    kind: WarningKind
    message: str
    path: Optional[str] = None  # Package-relative, when the problem concerns one part
    id: str = field(default_factory=_new_id)

    @property
    def description(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message


@dataclass(frozen=True)
class ParseResult:
    """Outcome of one successful parse. Owned by the caller after return."""

    asset_id: str
    metadata: Metadata
    extracted_content: ExtractedContent
    warnings: Tuple[PackageWarning, ...] = ()


# ---------------------------------------------------------------------------
# Import issues (found by the pre-scan, need a user decision)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImportIssue:
    """Base of the pre-commit findings that require continue/abort from the user."""

    title = "Import Issue"

    @property
    def id(self) -> str:
        raise NotImplementedError

    @property
    def description(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class MissingContentIssue(ImportIssue):
    paths: Tuple[str, ...]

    title = "Missing Content"

    @property
    def id(self) -> str:
        return "missing_" + "_".join(self.paths)

    @property
    def description(self) -> str:
        return "Could not find: " + ", ".join(self.paths)


@dataclass(frozen=True)
class CorruptedFileIssue(ImportIssue):
    path: str
    error: str

    title = "Corrupted File"

    @property
    def id(self) -> str:
        return f"corrupted_{self.path}"

    @property
    def description(self) -> str:
        return f"{self.path}: {self.error}"


@dataclass(frozen=True)
class UnsupportedFormatIssue(ImportIssue):
    path: str
    format: str

    title = "Unsupported Format"

    @property
    def id(self) -> str:
        return f"unsupported_{self.path}"

    @property
    def description(self) -> str:
        return f"{self.path} has unsupported format: {self.format}"


@dataclass(frozen=True)
class PartialMetadataIssue(ImportIssue):
    missing: Tuple[str, ...]

    title = "Incomplete Metadata"

    @property
    def id(self) -> str:
        return "partial_" + "_".join(self.missing)

    @property
    def description(self) -> str:
        return "Missing fields: " + ", ".join(self.missing)
