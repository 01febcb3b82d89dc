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
Common utilities shared across the importer and the content store.

Re-exports the most frequently used symbols for convenient access::

    from ..common import debug, warn, error
    from ..common import CONTENT_TYPES_LOCATION, ROOT_RELS_LOCATION
"""

# Logging
from .logging import DEBUG_MODE, debug, warn, error, safe_report

# Constants: re-export the most commonly used
from .constants import (
    CONTENT_TYPES_LOCATION,
    ROOT_RELS_LOCATION,
    RELS_EXTENSION,
    THUMBNAIL_REL,
    ASSET_MODEL_RELS,
    ASSET_MODEL_LOCATIONS,
    DEFAULT_MIMETYPE,
    IMAGE_EXTENSIONS,
    DOCUMENT_EXTENSIONS,
)

__all__ = [
    # Logging
    "DEBUG_MODE",
    "debug",
    "warn",
    "error",
    "safe_report",
    # Constants (subset)
    "CONTENT_TYPES_LOCATION",
    "ROOT_RELS_LOCATION",
    "RELS_EXTENSION",
    "THUMBNAIL_REL",
    "ASSET_MODEL_RELS",
    "ASSET_MODEL_LOCATIONS",
    "DEFAULT_MIMETYPE",
    "IMAGE_EXTENSIONS",
    "DOCUMENT_EXTENSIONS",
]
