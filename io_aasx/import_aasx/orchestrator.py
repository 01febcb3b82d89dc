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
Import state machine.

:class:`ImportManager` sequences one import at a time::

    Idle → [Downloading] → Extracting → [AwaitingUserDecision] → Parsing → StoringContent → Completed
                                                                                   ↘ Failed

Observers registered with :meth:`ImportManager.subscribe` see every state.
The import coroutine suspends in ``AwaitingUserDecision`` until
:meth:`ImportManager.continue_with_issues` or :meth:`ImportManager.abort_import`
is called, typically from an observer or another task.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from ..common import debug, error
from ..common.errors import AASXError, UserAbortedError
from ..common.types import ImportIssue, ParseResult
from ..store import ContentStore
from .context import ImportContext, ImportOptions
from .download import Downloader
from .parser import PackageParser

__all__ = [
    "ImportState",
    "Idle",
    "Downloading",
    "Extracting",
    "Parsing",
    "StoringContent",
    "AwaitingUserDecision",
    "Completed",
    "Failed",
    "ImportManager",
]


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImportState:
    @property
    def message(self) -> str:
        return ""


@dataclass(frozen=True)
class Idle(ImportState):
    pass


@dataclass(frozen=True)
class Downloading(ImportState):
    progress: float = 0.0  # 0.0 to 1.0

    @property
    def message(self) -> str:
        return f"Downloading... {int(self.progress * 100)}%"


@dataclass(frozen=True)
class Extracting(ImportState):
    @property
    def message(self) -> str:
        return "Extracting package..."


@dataclass(frozen=True)
class Parsing(ImportState):
    @property
    def message(self) -> str:
        return "Parsing content..."


@dataclass(frozen=True)
class StoringContent(ImportState):
    @property
    def message(self) -> str:
        return "Storing files..."


@dataclass(frozen=True)
class AwaitingUserDecision(ImportState):
    issues: Tuple[ImportIssue, ...] = ()

    @property
    def message(self) -> str:
        return "\n".join(f"{issue.title}: {issue.description}" for issue in self.issues)


@dataclass(frozen=True)
class Completed(ImportState):
    result: Optional[ParseResult] = None

    @property
    def message(self) -> str:
        return "Import successful!"


@dataclass(frozen=True)
class Failed(ImportState):
    reason: str = ""

    @property
    def message(self) -> str:
        return self.reason


# -{75}
# Helpers
# -{75}

def _discard_late_stage(stage: "asyncio.Future") -> None:
    """Discard the staged files of a parse that finished after its import was cancelled."""
    if stage.cancelled() or stage.exception() is not None:
        return
    stage.result().discard()


# ---------------------------------------------------------------------------
# ImportManager
# ---------------------------------------------------------------------------

class ImportManager:
    """Runs imports from files or URLs into a :class:`ContentStore`.

    One import at a time; starting another while :attr:`is_busy` raises
    ``RuntimeError``.
    """

    def __init__(
        self,
        store: ContentStore,
        options: Optional[ImportOptions] = None,
        downloader: Optional[Downloader] = None,
        reporter=None,
    ):
        self.parser = PackageParser(store, options, reporter)
        self.downloader = downloader if downloader is not None else Downloader()
        self.state: ImportState = Idle()
        self.current_result: Optional[ParseResult] = None

        self._observers: List[Callable[[ImportState], None]] = []
        self._ctx: Optional[ImportContext] = None
        self._decision: Optional[asyncio.Future] = None
        self._download_task: Optional[asyncio.Task] = None
        self._cancel_requested = False

    # ----- Observation ------------------------------------------------------

    def subscribe(self, callback: Callable[[ImportState], None]) -> Callable[[], None]:
        """Call *callback* with every new state. Returns a function that unsubscribes."""
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _set_state(self, state: ImportState) -> None:
        self.state = state
        debug(f"Import state: {type(state).__name__}")
        for callback in list(self._observers):
            try:
                callback(state)
            except Exception as e:
                error(f"Import state observer failed: {e}")

    @property
    def is_busy(self) -> bool:
        return not isinstance(self.state, (Idle, Completed, Failed))

    # ----- Entry points -----------------------------------------------------

    async def import_from_file(self, path: Union[str, Path], asset_id: Optional[str] = None) -> ImportState:
        """Import a local package.

        :param path: Filesystem path to the ``.aasx`` file.
        :param asset_id: Store under this id instead of the package's own.
        :return: The final state: Completed, Failed or Idle.
        :raises RuntimeError: If an import is already running.
        """
        self._begin()
        return await self._run(Path(path), asset_id)

    async def import_from_url(self, url: str, asset_id: Optional[str] = None) -> ImportState:
        """Download a package, then import it like :meth:`import_from_file`.

        The downloaded file is removed afterwards.
        """
        self._begin()
        task = asyncio.ensure_future(self.downloader.download(url, progress=self._on_download_progress))
        self._download_task = task
        self._set_state(Downloading(0.0))
        try:
            local_path = await task
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
            debug("Download cancelled")
            self._set_state(Idle())
            return self.state
        except AASXError as e:
            return self._fail(e)
        finally:
            self._download_task = None

        try:
            return await self._run(local_path, asset_id)
        finally:
            local_path.unlink(missing_ok=True)

    # ----- User decisions ---------------------------------------------------

    def continue_with_issues(self) -> None:
        """Resume an import waiting in :class:`AwaitingUserDecision`.

        :raises RuntimeError: If no import is waiting for a decision.
        """
        self._decide(True)

    def abort_import(self) -> None:
        """End an import waiting in :class:`AwaitingUserDecision`; nothing is written.

        :raises RuntimeError: If no import is waiting for a decision.
        """
        self._decide(False)

    def cancel(self) -> None:
        """Stop the running import and return to :class:`Idle`.

        A download is aborted and its partial file removed.  Parsing stops at
        the next file and its staged files are discarded.  Publishing the
        content (:class:`StoringContent`) is not interrupted.
        """
        self._cancel_requested = True
        if self._download_task is not None and not self._download_task.done():
            self._download_task.cancel()
        if self._decision is not None and not self._decision.done():
            self._decision.set_result(False)
        if self._ctx is not None:
            self._ctx.cancel()

    def reset(self) -> None:
        """Cancel anything running, forget the last result and go to :class:`Idle`."""
        if self.is_busy:
            self.cancel()
        self.current_result = None
        self._set_state(Idle())

    # ----- Pipeline ---------------------------------------------------------

    def _begin(self) -> None:
        if self.is_busy:
            raise RuntimeError("An import is already in progress")
        self._cancel_requested = False
        self._ctx = self.parser.new_context()

    def _decide(self, proceed: bool) -> None:
        if self._decision is None or self._decision.done():
            raise RuntimeError("No import is awaiting a decision")
        self._decision.set_result(proceed)

    def _on_download_progress(self, progress: float) -> None:
        if isinstance(self.state, Downloading):
            self._set_state(Downloading(progress))

    def _fail(self, exception: BaseException) -> ImportState:
        error(f"Import failed: {exception}")
        self._set_state(Failed(str(exception)))
        return self.state

    async def _run(self, path: Path, asset_id: Optional[str]) -> ImportState:
        self._set_state(Extracting())
        try:
            issues = await asyncio.to_thread(self.parser.scan, path)
        except Exception as e:
            return self._fail(e)

        if self._cancel_requested:
            self._set_state(Idle())
            return self.state

        if issues:
            self._decision = asyncio.get_running_loop().create_future()
            self._set_state(AwaitingUserDecision(tuple(issues)))
            try:
                proceed = await self._decision
            finally:
                self._decision = None
            if not proceed:
                debug("Import aborted by user")
                self._set_state(Idle())
                return self.state

        return await self._parse_and_store(path, asset_id)

    async def _parse_and_store(self, path: Path, asset_id: Optional[str]) -> ImportState:
        ctx = self._ctx
        self._set_state(Parsing())
        stage = asyncio.ensure_future(asyncio.to_thread(self.parser.stage, path, asset_id, ctx))
        try:
            staged = await asyncio.shield(stage)
        except UserAbortedError:
            debug("Parsing cancelled")
            self._set_state(Idle())
            return self.state
        except asyncio.CancelledError:
            ctx.cancel()  # The worker thread stops at its next file.
            stage.add_done_callback(_discard_late_stage)
            self._set_state(Idle())
            raise
        except Exception as e:
            return self._fail(e)

        if ctx.cancel_event.is_set():
            staged.discard()
            self._set_state(Idle())
            return self.state

        self._set_state(StoringContent())
        try:
            await asyncio.to_thread(staged.commit)
        except Exception as e:
            staged.discard()
            return self._fail(e)

        self.current_result = staged.result
        debug(f"Import completed: {staged.result.asset_id}")
        self._set_state(Completed(staged.result))
        return self.state
