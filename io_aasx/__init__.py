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
Import AASX (Asset Administration Shell eXchange) packages for offline use.

The embedded content of a package (thumbnail, product images, certification
markings, manufacturer logo, documents) is copied into a per-asset local
store together with the asset's metadata.
"""

from .api import batch_import, import_aasx, inspect_aasx
from .import_aasx import ImportManager, ImportOptions, PackageParser
from .preferences import AASXPreferences
from .store import ContentStore

__version__ = "1.0.0"

# IDE and Documentation support.
__all__ = [
    "AASXPreferences",
    "ContentStore",
    "ImportManager",
    "ImportOptions",
    "PackageParser",
    "batch_import",
    "import_aasx",
    "inspect_aasx",
]
