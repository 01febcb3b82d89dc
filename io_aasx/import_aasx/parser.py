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
The AASX import pipeline.

:class:`PackageParser` turns one ``.aasx`` file into a :class:`ParseResult`:
extract into a scratch directory, read the OPC layer, resolve the asset id
and metadata, classify every extracted file and copy what is kept into a
store session.  :meth:`PackageParser.stage` stops before publishing so that
the caller decides when (and whether) to commit; :meth:`PackageParser.parse`
does both.

Everything here is blocking.  The orchestrator runs it in a worker thread.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..common import debug, CONTENT_TYPES_LOCATION, ROOT_RELS_LOCATION, RELS_EXTENSION, DEFAULT_MIMETYPE
from ..common.errors import MissingManifestError, ParsingFailedError, StorageError
from ..common.opc import ContentTypeTable, Relationship, find_thumbnail, parse_content_types, read_relationships, resolve_target
from ..common.types import DocumentCategory, DocumentRecord, ExtractedContent, ImportIssue, ParseResult, WarningKind
from ..store import ContentStore, StoreSession, mime_type_for
from .archive import extract_package, open_archive, scan_for_issues
from .classify import ContentKind
from .context import ImportContext, ImportOptions
from .metadata import extract_metadata, find_asset_model_part, resolve_asset_id

__all__ = [
    "PackageParser",
    "StagedImport",
]


@dataclass
class StagedImport:
    """A parsed package whose files wait in a store session."""

    result: ParseResult
    session: StoreSession

    def commit(self) -> Path:
        """Publish the staged files and manifest. Returns the asset directory."""
        return self.session.commit(self.result.metadata)

    def discard(self) -> None:
        self.session.discard()


class PackageParser:
    """Parses AASX packages into a :class:`ContentStore`."""

    def __init__(self, store: ContentStore, options: Optional[ImportOptions] = None, reporter=None):
        self.store = store
        self.options = options if options is not None else ImportOptions()
        self.reporter = reporter

    def new_context(self) -> ImportContext:
        return ImportContext(options=self.options, reporter=self.reporter)

    def scan(self, path: Union[str, Path]) -> List[ImportIssue]:
        """Pre-scan *path*; see :func:`.archive.scan_for_issues`."""
        return scan_for_issues(path, self.options)

    def parse(
        self,
        path: Union[str, Path],
        asset_id: Optional[str] = None,
        ctx: Optional[ImportContext] = None,
    ) -> ParseResult:
        """Parse *path* and publish its content in the store.

        :raises AASXError: On fatal problems; nothing is published then.
        """
        staged = self.stage(path, asset_id, ctx)
        staged.commit()
        return staged.result

    def stage(
        self,
        path: Union[str, Path],
        asset_id: Optional[str] = None,
        ctx: Optional[ImportContext] = None,
    ) -> StagedImport:
        """Parse *path* into a store session without publishing it.

        :param path: Filesystem path to the ``.aasx`` file.
        :param asset_id: Store the content under this id instead of the one in the package.
        :param ctx: Context to use, e.g. one the caller can cancel. A fresh one by default.
        :return: The result and the session holding its files.
        :raises PackageNotFoundError: If there is no file at *path*.
        :raises InvalidPackageError: If the file is not a ZIP archive.
        :raises ExtractionFailedError: If the package cannot be written to the scratch directory.
        :raises MissingManifestError: If ``[Content_Types].xml`` is malformed.
        :raises StorageError: If the store cannot be written.
        :raises UserAbortedError: If *ctx* is cancelled.
        """
        path = Path(path)
        if ctx is None:
            ctx = self.new_context()
        ctx.source_filename = path.name

        with open_archive(path) as archive, tempfile.TemporaryDirectory(prefix="aasx-") as workspace:
            root = Path(workspace)
            extract_package(ctx, archive, root)
            ctx.check_cancelled()

            content_types = self._read_content_types(ctx, root)
            relationships = self._read_root_relationships(ctx, root)

            resolved_id = asset_id or resolve_asset_id(root, relationships)
            metadata = extract_metadata(ctx, root, path.name, find_asset_model_part(root, relationships))
            ctx.check_cancelled()

            session = self.store.session(resolved_id)
            try:
                content = self._extract_content(ctx, root, session, relationships, content_types)
            except Exception:
                session.discard()
                raise

        result = ParseResult(
            asset_id=resolved_id,
            metadata=metadata,
            extracted_content=content,
            warnings=tuple(ctx.warnings),
        )
        debug(f"Parsed {path.name}: asset {resolved_id}, {len(result.warnings)} warnings")
        return StagedImport(result=result, session=session)

    # ----- OPC layer --------------------------------------------------------

    @staticmethod
    def _read_content_types(ctx: ImportContext, root: Path) -> ContentTypeTable:
        path = root / CONTENT_TYPES_LOCATION
        if not path.is_file():
            ctx.add_warning(WarningKind.MISSING_CONTENT, "Package has no content types", CONTENT_TYPES_LOCATION)
            return ContentTypeTable()
        try:
            return parse_content_types(path.read_bytes())
        except ParsingFailedError as e:
            raise MissingManifestError(e.reason) from e
        except OSError as e:
            raise MissingManifestError(str(e)) from e

    @staticmethod
    def _read_root_relationships(ctx: ImportContext, root: Path) -> List[Relationship]:
        if not (root / ROOT_RELS_LOCATION).is_file():
            ctx.add_warning(WarningKind.RELATIONSHIP_NOT_FOUND, "Package has no root relationships", ROOT_RELS_LOCATION)
            return []
        try:
            return read_relationships(root)
        except (ParsingFailedError, OSError) as e:
            ctx.add_warning(WarningKind.RELATIONSHIP_NOT_FOUND, f"Unable to read root relationships: {e}", ROOT_RELS_LOCATION)
            return []

    # ----- Content ----------------------------------------------------------

    @staticmethod
    def _walk_files(root: Path) -> Iterator[Path]:
        """Extracted files in a stable order, hidden files excluded."""
        for directory, subdirectories, files in os.walk(root):
            subdirectories[:] = sorted(name for name in subdirectories if not name.startswith("."))
            for name in sorted(files):
                if not name.startswith("."):
                    yield Path(directory) / name

    def _extract_content(
        self,
        ctx: ImportContext,
        root: Path,
        session: StoreSession,
        relationships: List[Relationship],
        content_types: ContentTypeTable,
    ) -> ExtractedContent:
        content = ExtractedContent()

        thumbnail = find_thumbnail(relationships)
        if thumbnail is not None:
            target = resolve_target(None, thumbnail)
            source = root / target
            if source.is_file():
                try:
                    content.thumbnail = session.copy_file(source, "", f"thumbnail{source.suffix}")
                except StorageError as e:
                    ctx.add_warning(WarningKind.CORRUPTED_FILE, f"Failed to copy thumbnail: {e.reason}", target)
            else:
                ctx.add_warning(WarningKind.RELATIONSHIP_NOT_FOUND, "Thumbnail target not found", target)

        for source in self._walk_files(root):
            ctx.check_cancelled()
            name = source.name
            lowercased = name.lower()
            if lowercased.endswith(RELS_EXTENSION) or lowercased == CONTENT_TYPES_LOCATION.lower():
                continue

            classification = ctx.options.classifier(name)
            if classification is None:
                continue

            relative = source.relative_to(root).as_posix()
            is_document = classification.kind is ContentKind.DOCUMENT
            try:
                stored = session.copy_file(source, classification.kind.subdirectory, name)
            except StorageError as e:
                kind = "document" if is_document else "image"
                ctx.add_warning(WarningKind.CORRUPTED_FILE, f"Failed to copy {kind}: {e.reason}", relative)
                continue

            if classification.kind is ContentKind.MANUFACTURER_LOGO:
                content.manufacturer_logo = stored
            elif classification.kind is ContentKind.CERTIFICATION_MARKING:
                if stored not in content.certification_markings:
                    content.certification_markings.append(stored)
            elif classification.kind is ContentKind.PRODUCT_IMAGE:
                if stored not in content.product_images:
                    content.product_images.append(stored)
            else:
                mime_type = content_types.content_type(relative)
                if mime_type == DEFAULT_MIMETYPE:
                    mime_type = mime_type_for(name)
                record = DocumentRecord(
                    title=source.stem,
                    local_path=stored,
                    mime_type=mime_type,
                    category=classification.category or DocumentCategory.from_filename(name),
                    original_filename=name,
                    file_size=source.stat().st_size,
                )
                # Same filename in two folders: the later copy replaced the earlier one.
                content.documents = [document for document in content.documents if document.local_path != stored]
                content.documents.append(record)

        debug(
            f"Extracted {len(content.product_images)} images, {len(content.certification_markings)} markings, "
            f"{len(content.documents)} documents"
        )
        return content
