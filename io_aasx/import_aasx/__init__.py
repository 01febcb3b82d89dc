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
AASX Import Package.

Provides the :class:`ImportManager` state machine and all supporting modules
for reading AASX packages into the local content store.

Modules:
    - ``orchestrator``: Import state machine (ImportManager and its states)
    - ``context``: ImportContext / ImportOptions dataclasses
    - ``archive``: ZIP archive opening, safe extraction, pre-scan
    - ``metadata``: Asset id and metadata from the embedded asset model
    - ``classify``: Filename classification of extracted files
    - ``parser``: Pipeline: extract → resolve → classify → stage in the store
    - ``download``: HTTP download of remote packages
"""

from .context import ImportContext, ImportOptions
from .orchestrator import ImportManager
from .parser import PackageParser, StagedImport

__all__ = [
    "ImportContext",
    "ImportOptions",
    "ImportManager",
    "PackageParser",
    "StagedImport",
]
