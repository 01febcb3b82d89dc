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
This module defines some constants for the AASX package structure.

These are the constants that are inherent to the OPC container (ISO/IEC 29500-2)
and to the way AASX packages embed their asset model.
"""

from typing import Dict, Set, Tuple

# IDE and Documentation support.
__all__ = [
    "CONTENT_TYPES_LOCATION",
    "ROOT_RELS_LOCATION",
    "RELS_FOLDER",
    "RELS_EXTENSION",
    "ASSET_MODEL_LOCATIONS",
    "CORE_PROPERTIES_REL",
    "THUMBNAIL_REL",
    "AASX_ORIGIN_REL",
    "AAS_SPEC_REL",
    "AAS_SPEC_REL_LEGACY",
    "AAS_SUPPLEMENTARY_REL",
    "ASSET_MODEL_RELS",
    "RELS_MIMETYPE",
    "DEFAULT_MIMETYPE",
    "CONTENT_TYPES_NAMESPACE",
    "CONTENT_TYPES_NAMESPACES",
    "RELS_NAMESPACE",
    "RELS_NAMESPACES",
    "RELS_RELATIONSHIP_FIND",
    "EXTERNAL_TARGET_MODE",
    "IMAGE_EXTENSIONS",
    "DOCUMENT_EXTENSIONS",
    "MARKING_EXTENSIONS",
    "RESERVED_THUMBNAIL_NAMES",
    "THUMBNAIL_CANDIDATES",
    "EXTENSION_MIMETYPES",
    "STORE_FOLDER",
    "MANIFEST_FILENAME",
    "IMAGES_FOLDER",
    "MARKINGS_FOLDER",
    "DOCUMENTS_FOLDER",
    "ASSET_SUBFOLDERS",
    "UNSAFE_ID_CHARACTERS",
]

# Default storage locations inside the package.
CONTENT_TYPES_LOCATION: str = "[Content_Types].xml"  # Location of the content types definition.
ROOT_RELS_LOCATION: str = "_rels/.rels"  # Relationships of the package root.
RELS_FOLDER: str = "_rels"  # Folder name to store relationships files in.
RELS_EXTENSION: str = ".rels"

# Conventional locations of the asset model, tried in this order when looking for metadata.
ASSET_MODEL_LOCATIONS: Tuple[str, ...] = (
    "aasx/aas.json",
    "aas.json",
    "aasx/aas.xml",
)

# Relationship types.
CORE_PROPERTIES_REL: str = "http://schemas.openxmlformats.org/package/2006/relationships/metadata/core-properties"
THUMBNAIL_REL: str = "http://schemas.openxmlformats.org/package/2006/relationships/metadata/thumbnail"
AASX_ORIGIN_REL: str = "http://www.admin-shell.io/aasx/relationships/aasx-origin"  # Root → origin part.
AAS_SPEC_REL: str = "http://www.admin-shell.io/aasx/relationships/aas-spec"  # Origin → asset model.
AAS_SPEC_REL_LEGACY: str = "http://admin-shell.io/aasx/relationships/aas-spec"  # Older packages omit "www.".
AAS_SUPPLEMENTARY_REL: str = "http://www.admin-shell.io/aasx/relationships/aas-suppl"
ASSET_MODEL_RELS: Set[str] = {AASX_ORIGIN_REL, AAS_SPEC_REL, AAS_SPEC_REL_LEGACY}

# MIME types of files in the archive.
RELS_MIMETYPE: str = "application/vnd.openxmlformats-package.relationships+xml"  # MIME type of .rels files.
DEFAULT_MIMETYPE: str = "application/octet-stream"  # When nothing else matches.

# Constants in the ContentTypes file.
CONTENT_TYPES_NAMESPACE: str = "http://schemas.openxmlformats.org/package/2006/content-types"
CONTENT_TYPES_NAMESPACES: Dict[str, str] = {
    "ct": CONTENT_TYPES_NAMESPACE
}

# Constants in the .rels files.
RELS_NAMESPACE: str = "http://schemas.openxmlformats.org/package/2006/relationships"
RELS_NAMESPACES: Dict[str, str] = {  # Namespaces used for the rels files.
    "rel": RELS_NAMESPACE
}
RELS_RELATIONSHIP_FIND: str = "rel:Relationship"
EXTERNAL_TARGET_MODE: str = "external"

# File families, by lowercase extension without the dot.
IMAGE_EXTENSIONS: Set[str] = {"jpg", "jpeg", "png", "gif", "webp"}
DOCUMENT_EXTENSIONS: Set[str] = {"pdf", "doc", "docx", "xls", "xlsx", "txt"}
MARKING_EXTENSIONS: Set[str] = {"jpg", "jpeg", "png", "gif", "svg"}

# Images with these names are never product images; the thumbnail comes from its relationship.
RESERVED_THUMBNAIL_NAMES: Set[str] = {"thumbnail.jpg", "thumbnail.png"}
THUMBNAIL_CANDIDATES: Tuple[str, ...] = ("thumbnail.jpg", "thumbnail.png", "thumbnail.jpeg")

EXTENSION_MIMETYPES: Dict[str, str] = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "txt": "text/plain",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
}

# Local store layout.
STORE_FOLDER: str = "AASXContent"
MANIFEST_FILENAME: str = "manifest.json"
IMAGES_FOLDER: str = "images"
MARKINGS_FOLDER: str = "markings"
DOCUMENTS_FOLDER: str = "documents"
ASSET_SUBFOLDERS: Tuple[str, ...] = (IMAGES_FOLDER, MARKINGS_FOLDER, DOCUMENTS_FOLDER)
UNSAFE_ID_CHARACTERS: Tuple[str, ...] = ("/", ":", "?", "&")
