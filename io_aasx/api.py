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
Public API for programmatic AASX import.

These entry points run the import pipeline synchronously, without the
state machine of :class:`~io_aasx.import_aasx.orchestrator.ImportManager`,
for scripts, batch jobs and tests.  Issues found by the pre-scan are handled
by policy (``on_issues``) instead of by asking a user.

Quick start::

    from io_aasx.api import import_aasx

    result = import_aasx("/path/to/pump.aasx", storage_root="/data/twins")
    print(result.status, result.asset_id, result.asset_directory)

Inspect without importing::

    from io_aasx.api import inspect_aasx

    info = inspect_aasx("/path/to/pump.aasx")
    print(info.asset_id, info.metadata, [issue.description for issue in info.issues])

Batch operations::

    from io_aasx.api import batch_import

    results = batch_import(["/a.aasx", "/b.aasx"], on_issues="abort")
    for r in results:
        print(r.status, r.asset_id)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from .common.errors import AASXError
from .common.logging import debug, error
from .common.opc import ContentTypeTable, Relationship, parse_content_types, resolve_asset_model_part
from .common.constants import CONTENT_TYPES_LOCATION
from .common.types import ImportIssue, Metadata, ParseResult
from .import_aasx.archive import (
    CORRUPT_MEMBER_ERRORS,
    open_archive,
    read_archive_part,
    read_archive_relationships,
    scan_for_issues,
)
from .import_aasx.classify import Classification
from .import_aasx.metadata import asset_id_from_document, metadata_from_document, parse_document
from .import_aasx.parser import PackageParser
from .preferences import AASXPreferences
from .store import ContentStore

__all__ = [
    # --- Core functions ---
    "import_aasx",
    "inspect_aasx",
    "batch_import",
    # --- Result types ---
    "ImportResult",
    "InspectResult",
]

ISSUE_POLICIES = ("continue", "abort")


# ═══════════════════════════════════════════════════════════════════════════
# Result dataclasses
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ImportResult:
    """Return value from :func:`import_aasx`.

    Attributes:
        status: ``"FINISHED"`` on success, ``"CANCELLED"`` on failure or when
            pre-scan issues were refused.
        error_message: Human-readable error string when the import failed.
        asset_id: Id the content was stored under.
        asset_directory: The asset's directory in the store.
        parse_result: Full :class:`ParseResult` on success.
        issues: Pre-scan issues, whether or not the import continued past them.
        warnings: Descriptions of the warnings of the parse.
    """

    status: str = "FINISHED"
    error_message: str = ""
    asset_id: Optional[str] = None
    asset_directory: Optional[Path] = None
    parse_result: Optional[ParseResult] = None
    issues: List[ImportIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class InspectResult:
    """Return value from :func:`inspect_aasx`.

    A summary of a package read straight from the archive; nothing is
    extracted and no store is touched.

    Attributes:
        status: ``"OK"`` on success, ``"ERROR"`` on failure.
        error_message: Human-readable error string when ``status == "ERROR"``.
        archive_files: All member names of the ZIP archive.
        content_types: The parsed ``[Content_Types].xml`` (empty if absent).
        relationships: Relationships of the package root.
        asset_model_part: Package-relative path of the model the relationships point to.
        asset_id: Asset id found in that model, or None (no id is invented).
        metadata: Metadata read from that model, or None.
        issues: What the pre-scan of an import would report.
        warnings: Problems met while inspecting.
    """

    status: str = "OK"
    error_message: str = ""
    archive_files: List[str] = field(default_factory=list)
    content_types: ContentTypeTable = field(default_factory=ContentTypeTable)
    relationships: List[Relationship] = field(default_factory=list)
    asset_model_part: Optional[str] = None
    asset_id: Optional[str] = None
    metadata: Optional[Metadata] = None
    issues: List[ImportIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


# Called with (percentage: int 0-100, message: str)
ProgressCallback = Callable[[int, str], None]
# Called with (warning_message: str)
WarningCallback = Callable[[str], None]


class _WarningReporter:
    """Reporter forwarding warning-level reports to a callback."""

    def __init__(self, on_warning: WarningCallback):
        self.on_warning = on_warning

    def report(self, level, message: str) -> None:
        if "WARNING" in level:
            self.on_warning(message)
        else:
            debug(message)


# ═══════════════════════════════════════════════════════════════════════════
# inspect_aasx: read-only package inspection
# ═══════════════════════════════════════════════════════════════════════════

def inspect_aasx(filepath: Union[str, os.PathLike]) -> InspectResult:
    """Inspect an AASX package without importing it.

    :param filepath: Path to the ``.aasx`` file.
    :return: :class:`InspectResult` with the package structure and asset identity.
    """
    result = InspectResult()
    preferences = AASXPreferences()

    try:
        archive = open_archive(filepath)
    except AASXError as e:
        result.status = "ERROR"
        result.error_message = str(e)
        return result

    with archive:
        result.archive_files = archive.namelist()
        try:
            data = read_archive_part(archive, CONTENT_TYPES_LOCATION)
            if data is not None:
                result.content_types = parse_content_types(data)
            else:
                result.warnings.append(f"Package has no {CONTENT_TYPES_LOCATION}")

            result.relationships = read_archive_relationships(archive)
            result.asset_model_part = resolve_asset_model_part(
                result.relationships,
                lambda part: read_archive_relationships(archive, part),
            )
            if result.asset_model_part is not None:
                model = read_archive_part(archive, result.asset_model_part)
                document = parse_document(model, result.asset_model_part) if model is not None else None
                if document is None:
                    result.warnings.append(f"Unable to read asset model {result.asset_model_part}")
                else:
                    result.asset_id = asset_id_from_document(document)
                    result.metadata = metadata_from_document(document, Path(filepath).name)
        except (AASXError, *CORRUPT_MEMBER_ERRORS) as e:
            result.status = "ERROR"
            result.error_message = str(e)
            return result

    try:
        result.issues = scan_for_issues(filepath, preferences.import_options())
    except AASXError as e:
        result.status = "ERROR"
        result.error_message = str(e)
    return result


# ═══════════════════════════════════════════════════════════════════════════
# import_aasx
# ═══════════════════════════════════════════════════════════════════════════

def import_aasx(
    filepath: Union[str, os.PathLike],
    *,
    asset_id: Optional[str] = None,
    storage_root: Optional[Union[str, os.PathLike]] = None,
    on_issues: str = "continue",
    verify_checksums: Optional[bool] = None,
    require_asset_model: Optional[bool] = None,
    classifier: Optional[Callable[[str], Optional[Classification]]] = None,
    on_warning: Optional[WarningCallback] = None,
) -> ImportResult:
    """Import an AASX package into the local content store.

    This is the synchronous counterpart to ``ImportManager.import_from_file``.

    :param filepath: Path to the ``.aasx`` file to import.
    :param asset_id: Store under this id instead of the package's own.
    :param storage_root: Directory holding the store.  Defaults to the
        ``storage_root`` preference.
    :param on_issues: ``"continue"`` imports past pre-scan issues,
        ``"abort"`` stops before anything is written.
    :param verify_checksums: Override the preference of the same name.
    :param require_asset_model: Override the preference of the same name.
    :param classifier: Replace the filename heuristics that sort files into
        images, markings, logo and documents.
    :param on_warning: Optional ``(message: str)`` callback fired for each warning.
    :return: :class:`ImportResult` with status, asset id and the parse result.
    :raises ValueError: If *on_issues* is not one of the policies.
    """
    if on_issues not in ISSUE_POLICIES:
        raise ValueError(f"on_issues must be one of {ISSUE_POLICIES}, not {on_issues!r}")

    preferences = AASXPreferences()
    options = preferences.import_options()
    if verify_checksums is not None:
        options.verify_checksums = verify_checksums
    if require_asset_model is not None:
        options.require_asset_model = require_asset_model
    if classifier is not None:
        options.classifier = classifier

    result = ImportResult()
    reporter = _WarningReporter(on_warning) if on_warning is not None else None

    try:
        store = ContentStore(storage_root) if storage_root is not None else preferences.create_store()
        parser = PackageParser(store, options, reporter)

        result.issues = parser.scan(filepath)
        if result.issues and on_issues == "abort":
            result.status = "CANCELLED"
            result.error_message = "; ".join(issue.description for issue in result.issues)
            return result

        staged = parser.stage(filepath, asset_id)
        result.asset_directory = staged.commit()
    except (AASXError, OSError) as e:
        error(f"import_aasx: {e}")
        result.status = "CANCELLED"
        result.error_message = str(e)
        return result

    result.parse_result = staged.result
    result.asset_id = staged.result.asset_id
    result.warnings = [warning.description for warning in staged.result.warnings]
    return result


# ═══════════════════════════════════════════════════════════════════════════
# batch_import
# ═══════════════════════════════════════════════════════════════════════════

def batch_import(
    filepaths: Sequence[Union[str, os.PathLike]],
    *,
    on_progress: Optional[ProgressCallback] = None,
    **import_kwargs,
) -> List[ImportResult]:
    """Import multiple AASX packages in sequence with per-file error isolation.

    A failure in one package does not prevent the others from being
    imported.  Keyword arguments of :func:`import_aasx` (except ``asset_id``,
    which would make every package overwrite the previous one) are applied
    to every package.

    :param filepaths: Sequence of ``.aasx`` file paths.
    :param on_progress: Optional ``(percentage, message)`` callback, called
        before each package and once at the end.
    :param import_kwargs: Keyword arguments forwarded to :func:`import_aasx`.
    :return: List of :class:`ImportResult`, one per input file (same order).
    """
    if "asset_id" in import_kwargs:
        raise TypeError("batch_import() does not accept asset_id")
    if import_kwargs.get("on_issues", "continue") not in ISSUE_POLICIES:
        raise ValueError(f"on_issues must be one of {ISSUE_POLICIES}, not {import_kwargs['on_issues']!r}")

    results: List[ImportResult] = []
    total = len(filepaths)
    counts: Dict[str, int] = {}

    for index, filepath in enumerate(filepaths):
        if on_progress:
            on_progress(int(index * 100 / total), f"[{index + 1}/{total}] {Path(filepath).name}")
        try:
            r = import_aasx(filepath, **import_kwargs)
        except Exception as e:
            error(f"batch_import: Failed on {filepath}: {e}")
            r = ImportResult(status="CANCELLED", error_message=str(e))
        results.append(r)
        counts[r.status] = counts.get(r.status, 0) + 1

    if on_progress:
        on_progress(100, "Batch import complete")
    debug(f"batch_import: {counts}")
    return results
