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
OPC packaging layer of AASX archives.

Parses relationships (``.rels`` files) and content types
(``[Content_Types].xml``) that form the OPC (Open Packaging Conventions,
ISO/IEC 29500-2) layer of an AASX file, and follows the relationship chain
from the package root to the embedded asset model.
"""

import os.path
import posixpath
import urllib.parse
import xml.etree.ElementTree
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .constants import (
    AASX_ORIGIN_REL,
    AAS_SPEC_REL,
    AAS_SPEC_REL_LEGACY,
    ASSET_MODEL_RELS,
    CONTENT_TYPES_NAMESPACES,
    DEFAULT_MIMETYPE,
    EXTERNAL_TARGET_MODE,
    RELS_EXTENSION,
    RELS_FOLDER,
    RELS_NAMESPACES,
    RELS_RELATIONSHIP_FIND,
    ROOT_RELS_LOCATION,
    THUMBNAIL_REL,
)
from .errors import ParsingFailedError
from .logging import debug, warn

__all__ = [
    "Relationship",
    "ContentTypeTable",
    "parse_relationships",
    "parse_content_types",
    "rels_path",
    "resolve_target",
    "read_relationships",
    "find_relationship",
    "find_thumbnail",
    "resolve_asset_model_part",
]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Relationship:
    """A single ``<Relationship>`` entry of a ``.rels`` file."""

    id: str
    type: str  # Relationship type URI
    target: str  # Target path within the package, or an external URI
    target_mode: Optional[str] = None  # "Internal" / "External"

    @property
    def is_internal(self) -> bool:
        return (self.target_mode or "").lower() != EXTERNAL_TARGET_MODE

    @property
    def normalized_target(self) -> str:
        """The target with one leading ``/`` removed."""
        if self.target.startswith("/"):
            return self.target[1:]
        return self.target


@dataclass
class ContentTypeTable:
    """Content types of package parts: per-extension defaults and per-part overrides."""

    defaults: Dict[str, str] = field(default_factory=dict)  # Lowercase extension → MIME type
    overrides: Dict[str, str] = field(default_factory=dict)  # Part name → MIME type

    def content_type(self, path: str) -> str:
        """MIME type of the part at *path*.

        Overrides win over defaults.  An override matches the path as given,
        with a leading ``/`` and without one.
        """
        stripped = path.lstrip("/")
        for candidate in (path, f"/{stripped}", stripped):
            if candidate in self.overrides:
                return self.overrides[candidate]

        extension = os.path.splitext(stripped)[1][1:].lower()
        return self.defaults.get(extension, DEFAULT_MIMETYPE)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _parse_xml(data: bytes, description: str) -> xml.etree.ElementTree.Element:
    try:
        return xml.etree.ElementTree.fromstring(data)
    except xml.etree.ElementTree.ParseError as e:
        raise ParsingFailedError(
            f"{description} has malformed XML (position {e.position[0]}:{e.position[1]})"
        ) from e


def parse_relationships(data: bytes) -> List[Relationship]:
    """Parse the contents of a ``.rels`` file.

    :param data: Raw XML of the relationships part.
    :return: Relationships in document order.
    :raises ParsingFailedError: If the XML is malformed.
    """
    root = _parse_xml(data, "Relationship file")
    result: List[Relationship] = []
    for relationship_node in root.iterfind(RELS_RELATIONSHIP_FIND, RELS_NAMESPACES):
        try:
            target = relationship_node.attrib["Target"]
            namespace = relationship_node.attrib["Type"]
        except KeyError as e:
            warn(f"Relationship missing attribute: {str(e)}")
            continue
        result.append(
            Relationship(
                id=relationship_node.attrib.get("Id", ""),
                type=namespace,
                target=target,
                target_mode=relationship_node.attrib.get("TargetMode"),
            )
        )
    return result


def parse_content_types(data: bytes) -> ContentTypeTable:
    """Parse the contents of ``[Content_Types].xml``.

    :param data: Raw XML of the content types part.
    :return: The defaults and overrides it declares.
    :raises ParsingFailedError: If the XML is malformed.
    """
    root = _parse_xml(data, "[Content_Types].xml")
    table = ContentTypeTable()

    for override_node in root.iterfind("ct:Override", CONTENT_TYPES_NAMESPACES):
        if "PartName" not in override_node.attrib or "ContentType" not in override_node.attrib:
            warn("[Content_Types].xml malformed: Override node without path or MIME type.")
            continue
        table.overrides[override_node.attrib["PartName"]] = override_node.attrib["ContentType"]

    for default_node in root.iterfind("ct:Default", CONTENT_TYPES_NAMESPACES):
        if "Extension" not in default_node.attrib or "ContentType" not in default_node.attrib:
            warn("[Content_Types].xml malformed: Default node without extension or MIME type.")
            continue
        extension = default_node.attrib["Extension"].lstrip(".").lower()
        table.defaults[extension] = default_node.attrib["ContentType"]

    return table


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

def rels_path(part: str) -> str:
    """Location of the relationships file that belongs to *part*.

    ``"aasx/aas.json"`` → ``"aasx/_rels/aas.json.rels"``,
    ``"aas.json"`` → ``"_rels/aas.json.rels"``.
    """
    directory, filename = posixpath.split(part.lstrip("/"))
    if not directory:
        return f"{RELS_FOLDER}/{filename}{RELS_EXTENSION}"
    return f"{directory}/{RELS_FOLDER}/{filename}{RELS_EXTENSION}"


def resolve_target(source_part: Optional[str], relationship: Relationship) -> str:
    """Package-relative path of an internal relationship's target.

    Relative targets are resolved against the directory of the source part,
    absolute ones against the package root.

    :param source_part: The part owning the relationship, or None for the package root.
    :param relationship: An internal relationship.
    """
    base = "/"
    directory = posixpath.dirname(source_part.lstrip("/")) if source_part else ""
    if directory:
        base = f"/{directory}/"
    target = urllib.parse.urljoin(base, urllib.parse.unquote(relationship.target))
    return posixpath.normpath(target).lstrip("/")


def read_relationships(root_dir: Union[str, Path], part: Optional[str] = None) -> List[Relationship]:
    """Relationships of *part* (or of the package root) in an extracted package.

    Most parts have no companion relationships, so an absent file gives an
    empty list.

    :raises ParsingFailedError: If the file exists but is malformed.
    :raises OSError: If the file exists but cannot be read.
    """
    location = ROOT_RELS_LOCATION if part is None else rels_path(part)
    path = Path(root_dir) / location
    if not path.is_file():
        debug(f"No relationships file: {location}")
        return []
    return parse_relationships(path.read_bytes())


def find_relationship(relationships: List[Relationship], *types: str) -> Optional[Relationship]:
    """First internal relationship whose type is one of *types*."""
    for relationship in relationships:
        if relationship.type in types and relationship.is_internal:
            return relationship
    return None


def find_thumbnail(relationships: List[Relationship]) -> Optional[Relationship]:
    return find_relationship(relationships, THUMBNAIL_REL)


def resolve_asset_model_part(
    root_relationships: List[Relationship],
    load_relationships: Callable[[str], List[Relationship]],
) -> Optional[str]:
    """Follow the root relationships to the part holding the asset model.

    Standard packages point from the root to an origin part, whose own
    relationships point to the model (``aas-spec``).  Older packages point
    straight from the root to the model with either spec URI.

    :param root_relationships: Relationships of the package root.
    :param load_relationships: Returns the relationships of a part, given its
        package-relative path.  ``read_relationships`` bound to an extraction
        directory for extracted packages.
    :return: Package-relative path of the model part, or None if no relationship names one.
    """
    relationship = find_relationship(root_relationships, *ASSET_MODEL_RELS)
    if relationship is None:
        return None
    part = resolve_target(None, relationship)
    if relationship.type != AASX_ORIGIN_REL:
        return part

    try:
        origin_relationships = load_relationships(part)
    except (ParsingFailedError, OSError) as e:
        warn(f"Unable to read relationships of origin part {part}: {e}")
        return None
    spec = find_relationship(origin_relationships, AAS_SPEC_REL, AAS_SPEC_REL_LEGACY)
    if spec is None:
        debug(f"Origin part {part} has no aas-spec relationship")
        return None
    return resolve_target(part, spec)
