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
Asset metadata from the embedded asset model.

The model is an AAS document in JSON or XML.  Both are read into the same
nested-dict shape (the JSON serialization's), so that the lookups below do
not care which one a package carries.  Nothing here raises on bad content:
a package without a readable model still imports, just with less metadata.
"""

import json
import uuid
import xml.etree.ElementTree
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union, TYPE_CHECKING

from ..common import debug, warn, ASSET_MODEL_LOCATIONS
from ..common.opc import Relationship, read_relationships, resolve_asset_model_part
from ..common.types import Metadata, WarningKind

if TYPE_CHECKING:
    from .context import ImportContext

__all__ = [
    "parse_document",
    "load_document",
    "asset_id_from_document",
    "metadata_from_document",
    "find_asset_model_part",
    "resolve_asset_id",
    "extract_metadata",
    "find_element_value",
]

# XML elements whose children form a list in the JSON serialization.
XML_LIST_ELEMENTS = {
    "assetAdministrationShells",
    "submodels",
    "submodelElements",
    "conceptDescriptions",
    "description",
    "displayName",
    "keys",
    "specificAssetIds",
    "statements",
    "annotations",
}

# Wrapper elements of the version 2 XML schema that hold exactly one element.
XML_WRAPPER_ELEMENTS = {"submodelElement"}

MANUFACTURER_KEYWORD = "manufacturer"
SERIAL_NUMBER_KEYWORD = "serial"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _xml_to_object(element: xml.etree.ElementTree.Element) -> Any:
    name = _local_name(element.tag)
    children = list(element)
    if not children:
        text = (element.text or "").strip()
        return text if text else None

    if name in XML_LIST_ELEMENTS or name == "value":
        items = []
        for child in children:
            if _local_name(child.tag) in XML_WRAPPER_ELEMENTS and len(child) == 1:
                child = child[0]
            items.append(_xml_to_object(child))
        return items

    return {_local_name(child.tag): _xml_to_object(child) for child in children}


def parse_document(data: bytes, name: str) -> Optional[Dict[str, Any]]:
    """Parse the bytes of an asset model document.

    JSON is read as is.  XML is converted: element names lose their namespace,
    containers that are lists in JSON (``submodels``, ``submodelElements``,
    ``value`` of collections, ...) become lists, leaves become strings.

    :param data: Contents of the document.
    :param name: Its filename; the extension picks the format, else the first byte does.
    :return: The document as a dict, or None if it does not parse.
    """
    suffix = Path(name).suffix.lower()
    is_xml = suffix == ".xml" or (suffix != ".json" and data.lstrip().startswith(b"<"))
    if is_xml:
        try:
            document = _xml_to_object(xml.etree.ElementTree.fromstring(data))
        except xml.etree.ElementTree.ParseError as e:
            debug(f"Asset model {name} has malformed XML: {e}")
            return None
        except RecursionError:
            debug(f"Asset model {name} is nested too deeply")
            return None
    else:
        try:
            document = json.loads(data)
        except ValueError as e:  # Includes JSONDecodeError and UnicodeDecodeError.
            debug(f"Asset model {name} has malformed JSON: {e}")
            return None
        except RecursionError:
            debug(f"Asset model {name} is nested too deeply")
            return None

    if not isinstance(document, dict):
        debug(f"Asset model {name} is not an object")
        return None
    return document


def load_document(path: Union[str, Path]) -> Optional[Dict[str, Any]]:
    """Read an asset model document from disk; see :func:`parse_document`.

    :return: The document as a dict, or None if it cannot be read or parsed.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        warn(f"Unable to read asset model {path.name}: {e}")
        return None
    return parse_document(data, path.name)


def _primary_shell(document: Dict[str, Any]) -> Dict[str, Any]:
    """View a document as a single shell.

    An AAS environment lists its shells and, separately, its submodels; the
    first shell is paired with the environment's submodels.  A bare shell
    document is returned unchanged.
    """
    shells = document.get("assetAdministrationShells")
    if not isinstance(shells, list) or not shells or not isinstance(shells[0], dict):
        return document
    view = dict(shells[0])
    if isinstance(document.get("submodels"), list):
        view["submodels"] = document["submodels"]
    return view


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

def _language_text(entries: List[Any]) -> Optional[str]:
    """English text of a multi-language value, else the first text."""
    texts = [
        (str(entry.get("language") or ""), entry["text"])
        for entry in entries
        if isinstance(entry, dict) and isinstance(entry.get("text"), str)
    ]
    if not texts:
        return None
    for language, text in texts:
        if language.lower().startswith("en"):
            return text
    return texts[0][1]


def _scalar(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return _language_text(value)
    return None


def _reference_value(value: Any) -> Optional[str]:
    """``globalAssetId`` is a string in current models and a reference in older ones."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        keys = value.get("keys")
        if isinstance(keys, list) and keys and isinstance(keys[0], dict):
            return _scalar(keys[0].get("value"))
    return None


def _iter_elements(elements: Any) -> Iterable[Dict[str, Any]]:
    """Submodel elements depth-first, descending into collections."""
    if not isinstance(elements, list):
        return
    for element in elements:
        if not isinstance(element, dict):
            continue
        yield element
        children = element.get("value")
        if isinstance(children, list) and any(isinstance(child, dict) and "idShort" in child for child in children):
            yield from _iter_elements(children)


def find_element_value(document: Dict[str, Any], keyword: str) -> Optional[str]:
    """Value of the first submodel element whose ``idShort`` contains *keyword*.

    Elements without a scalar value (collections, files, ...) are passed over.
    The match is case-insensitive.
    """
    keyword = keyword.lower()
    submodels = document.get("submodels")
    if not isinstance(submodels, list):
        return None
    for submodel in submodels:
        if not isinstance(submodel, dict):
            continue
        for element in _iter_elements(submodel.get("submodelElements")):
            id_short = element.get("idShort")
            if not isinstance(id_short, str) or keyword not in id_short.lower():
                continue
            value = _scalar(element.get("value"))
            if value is not None:
                return value
    return None


# ---------------------------------------------------------------------------
# Asset identity
# ---------------------------------------------------------------------------

def find_asset_model_part(root_dir: Union[str, Path], relationships: List[Relationship]) -> Optional[str]:
    """Package-relative path of the asset model named by the root relationships."""
    return resolve_asset_model_part(relationships, lambda part: read_relationships(root_dir, part))


def asset_id_from_document(document: Dict[str, Any]) -> Optional[str]:
    """Global asset id of a model document, else its own id."""
    view = _primary_shell(document)
    asset_information = view.get("assetInformation")
    if isinstance(asset_information, dict):
        global_asset_id = _reference_value(asset_information.get("globalAssetId"))
        if global_asset_id:
            return global_asset_id
    for candidate in (document.get("id"), view.get("id")):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def resolve_asset_id(root_dir: Union[str, Path], relationships: List[Relationship]) -> str:
    """Identity of the asset in an extracted package.

    Taken from the model the relationships point to: its global asset id,
    else its own id.  When neither is available a random UUID is returned.
    """
    part = find_asset_model_part(root_dir, relationships)
    if part is not None:
        document = load_document(Path(root_dir) / part)
        if document is not None:
            asset_id = asset_id_from_document(document)
            if asset_id:
                debug(f"Asset id from {part}: {asset_id}")
                return asset_id

    asset_id = str(uuid.uuid4())
    debug(f"No asset id in package, generated {asset_id}")
    return asset_id


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def metadata_from_document(document: Dict[str, Any], filename: Optional[str] = None) -> Metadata:
    view = _primary_shell(document)
    id_short = view.get("idShort")
    return Metadata(
        asset_name=id_short if isinstance(id_short, str) and id_short else None,
        manufacturer_name=find_element_value(view, MANUFACTURER_KEYWORD),
        serial_number=find_element_value(view, SERIAL_NUMBER_KEYWORD),
        product_designation=_scalar(view.get("description")),
        source_filename=filename,
    )


def extract_metadata(
    ctx: "ImportContext",
    root_dir: Union[str, Path],
    filename: str,
    preferred: Optional[str] = None,
) -> Metadata:
    """Display metadata of the asset in an extracted package.

    The part named by the relationships (*preferred*) is tried first, then
    the conventional model locations.  The first document that parses fills
    the metadata.  Unparsable documents and unresolved fields are reported as
    partial-metadata warnings on *ctx*.

    :param ctx: The import context (for warnings).
    :param root_dir: Directory the package was extracted to.
    :param filename: Name of the source ``.aasx`` file.
    :param preferred: Package-relative path of the relationship-resolved model.
    """
    root_dir = Path(root_dir)
    locations = [preferred] if preferred else []
    locations.extend(location for location in ASSET_MODEL_LOCATIONS if location not in locations)

    metadata = Metadata(source_filename=filename)
    for location in locations:
        path = root_dir / location
        if not path.is_file():
            continue
        document = load_document(path)
        if document is None:
            ctx.add_warning(WarningKind.PARTIAL_METADATA, "Unable to parse asset model", location)
            continue

        metadata = metadata_from_document(document, filename)
        debug(f"Metadata read from {location}")
        break

    missing = metadata.missing_fields()
    if missing:
        ctx.add_warning(WarningKind.PARTIAL_METADATA, "Missing metadata fields: " + ", ".join(missing))
    return metadata
