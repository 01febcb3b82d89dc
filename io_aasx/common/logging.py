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
Logging utilities for the AASX importer.

All console output of the importer goes through the functions here, so that
hosts embedding the pipeline get one consistent, greppable format.

Usage::

    from ..common import debug, warn, error

    debug(f"Extracted {count} entries")    # Silent unless DEBUG_MODE is True
    warn(f"Missing relationship {path}")   # Always prints  WARNING: ...
    error(f"Failed to write: {e}")         # Always prints  ERROR: ...
"""

__all__ = ["DEBUG_MODE", "debug", "warn", "error", "safe_report"]


DEBUG_MODE = False
"""Set to True to enable verbose console output for development/debugging."""


def debug(*args, **kwargs):
    """Print to console only when DEBUG_MODE is enabled."""
    if DEBUG_MODE:
        print(*args, **kwargs)


def warn(*args, **kwargs):
    """Always print a warning message to the console."""
    print("WARNING:", *args, **kwargs)


def error(*args, **kwargs):
    """Always print an error message to the console."""
    print("ERROR:", *args, **kwargs)


def safe_report(reporter, level, message):
    """Report a message through the host's reporter if available, with graceful fallback.

    A reporter is any object with a ``report(level, message)`` method, e.g. a
    UI adapter that shows toasts.  Missing or failing reporters never break
    the import; the message goes to the console instead.

    :param reporter: The reporter instance (or None).
    :param level: Report level set, e.g. ``{'INFO'}``, ``{'WARNING'}``, ``{'ERROR'}``.
    :param message: The message string.
    """
    try:
        reporter.report(level, message)
    except Exception:
        # Headless usage or a reporter without UI support
        if "ERROR" in level:
            error(message)
        elif "WARNING" in level:
            warn(message)
        else:
            debug(message)
