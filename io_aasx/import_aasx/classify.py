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
Content classification of extracted package files.

A classifier is any callable taking a filename and returning a
:class:`Classification`, or ``None`` for files that should not be stored.
:func:`classify_by_filename` is the default; pass another one through
``ImportOptions.classifier`` to replace the heuristics without touching
extraction or storage.

The default heuristics match substrings of the filename, so a product photo
named ``manual.png`` still ends up as a product image while ``manual.pdf``
is a manual.
"""

import os.path
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..common.constants import (
    DOCUMENTS_FOLDER,
    DOCUMENT_EXTENSIONS,
    IMAGES_FOLDER,
    IMAGE_EXTENSIONS,
    MARKINGS_FOLDER,
    RESERVED_THUMBNAIL_NAMES,
)
from ..common.types import DocumentCategory

__all__ = [
    "ContentKind",
    "Classification",
    "classify_by_filename",
    "is_image",
    "is_document",
]


class ContentKind(Enum):
    """Slot of the extracted content a file is stored in."""

    PRODUCT_IMAGE = "productImage"
    MANUFACTURER_LOGO = "manufacturerLogo"
    CERTIFICATION_MARKING = "certificationMarking"
    DOCUMENT = "document"

    @property
    def subdirectory(self) -> str:
        """Folder of the asset directory that holds this kind of content."""
        if self is ContentKind.CERTIFICATION_MARKING:
            return MARKINGS_FOLDER
        if self is ContentKind.DOCUMENT:
            return DOCUMENTS_FOLDER
        return IMAGES_FOLDER


@dataclass(frozen=True)
class Classification:
    kind: ContentKind
    category: Optional[DocumentCategory] = None  # Only for documents.


def _extension(filename: str) -> str:
    return os.path.splitext(filename)[1][1:].lower()


def is_image(filename: str) -> bool:
    return _extension(filename) in IMAGE_EXTENSIONS


def is_document(filename: str) -> bool:
    return _extension(filename) in DOCUMENT_EXTENSIONS


def classify_by_filename(filename: str) -> Optional[Classification]:
    """Classify a file by its name alone.

    Images: ``logo`` → manufacturer logo; ``marking`` / ``ce_`` / ``ul_`` →
    certification marking; reserved thumbnail names are skipped; anything else
    is a product image.  Documents get a :class:`DocumentCategory`.
    Everything else is skipped.

    :param filename: Base name of the file (no directories).
    :return: The classification, or None to skip the file.
    """
    lowercased = filename.lower()

    if is_image(lowercased):
        if "logo" in lowercased:
            return Classification(ContentKind.MANUFACTURER_LOGO)
        if "marking" in lowercased or "ce_" in lowercased or "ul_" in lowercased:
            return Classification(ContentKind.CERTIFICATION_MARKING)
        if lowercased in RESERVED_THUMBNAIL_NAMES:
            return None
        return Classification(ContentKind.PRODUCT_IMAGE)

    if is_document(lowercased):
        return Classification(ContentKind.DOCUMENT, DocumentCategory.from_filename(lowercased))

    return None
