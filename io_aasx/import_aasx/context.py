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
Import context: the "bag" of mutable state threaded through all import functions.

``ImportContext`` is created once per import attempt, passed as the first
argument to every pipeline helper, and discarded when the import is done.
Warnings accumulate on it instead of being returned piecemeal.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set

from ..common.errors import UserAbortedError
from ..common.types import PackageWarning, WarningKind
from .classify import Classification, classify_by_filename


# ---------------------------------------------------------------------------
# Options sub-dataclass, mirrors the preferences
# ---------------------------------------------------------------------------

@dataclass
class ImportOptions:
    """User-facing import options (preferences or API keyword args)."""

    verify_checksums: bool = True  # Pre-scan reads every member to check its CRC.
    require_asset_model: bool = False  # Pre-scan reports packages without an asset model.
    classifier: Callable[[str], Optional[Classification]] = classify_by_filename


# ---------------------------------------------------------------------------
# ImportContext: the state bag
# ---------------------------------------------------------------------------

@dataclass
class ImportContext:
    """All mutable state accumulated during a single AASX import.

    Create one per import (the orchestrator and ``api.import_aasx()`` do),
    pass it to every helper function, and discard it when the import is done.
    """

    # --- User options -------------------------------------------------------
    options: ImportOptions = field(default_factory=ImportOptions)

    # --- Reporter (for safe_report) -----------------------------------------
    reporter: object = None  # Anything with report(level, message), or None.

    # --- Result tracking ----------------------------------------------------
    warnings: List[PackageWarning] = field(default_factory=list)
    source_filename: Optional[str] = None

    # --- Cancellation -------------------------------------------------------
    cancel_event: threading.Event = field(default_factory=threading.Event)

    # --- Helpers ------------------------------------------------------------

    def safe_report(self, level: Set[str], message: str) -> None:
        """Report a message through the reporter if available, or log it."""
        from ..common.logging import safe_report as _safe_report, warn, error, debug

        if self.reporter is not None:
            _safe_report(self.reporter, level, message)
        else:
            if "ERROR" in level:
                error(message)
            elif "WARNING" in level:
                warn(message)
            else:
                debug(message)

    def add_warning(self, kind: WarningKind, message: str, path: Optional[str] = None) -> PackageWarning:
        """Record a non-fatal problem and echo it to the reporter."""
        package_warning = PackageWarning(kind=kind, message=message, path=path)
        self.warnings.append(package_warning)
        self.safe_report({"WARNING"}, package_warning.description)
        return package_warning

    def cancel(self) -> None:
        self.cancel_event.set()

    def check_cancelled(self) -> None:
        """Cancellation point between units of work.

        :raises UserAbortedError: If :meth:`cancel` was called.
        """
        if self.cancel_event.is_set():
            raise UserAbortedError()
