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
Download of remote AASX packages.

Streams the response body to ``<directory>/<uuid>.aasx`` so that the rest of
the pipeline only ever deals with local files.
"""

import tempfile
import uuid
from pathlib import Path
from typing import Callable, Optional, Union

import httpx

from ..common import debug
from ..common.errors import DownloadFailedError

__all__ = ["Downloader"]


class Downloader:
    """Fetches packages over HTTP(S) with ``httpx``.

    :param client: Client to send requests with. When omitted, every download
        opens (and closes) its own ``httpx.AsyncClient``.
    :param timeout: Seconds before a stalled connection or read gives up.
    :param directory: Where downloads are written. The system temp directory by default.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        directory: Optional[Union[str, Path]] = None,
    ):
        self.client = client
        self.timeout = timeout
        self.directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())

    async def download(self, url: str, progress: Optional[Callable[[float], None]] = None) -> Path:
        """Download *url* to a fresh file.

        :param url: Location of the package.
        :param progress: Called with the fraction received (0.0 to 1.0) after
            every chunk. Stays at 0.0 while the size is unknown.
        :return: Path of the downloaded file. The caller removes it.
        :raises DownloadFailedError: On a non-2xx response, a transport error or a write error.
        """
        destination = self.directory / f"{uuid.uuid4()}.aasx"
        try:
            if self.client is not None:
                await self._fetch(self.client, url, destination, progress)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    await self._fetch(client, url, destination, progress)
        except BaseException:  # Cancellation included.
            destination.unlink(missing_ok=True)
            raise
        debug(f"Downloaded {url} to {destination}")
        return destination

    async def _fetch(
        self,
        client: httpx.AsyncClient,
        url: str,
        destination: Path,
        progress: Optional[Callable[[float], None]],
    ) -> None:
        try:
            async with client.stream("GET", url) as response:
                if not response.is_success:
                    raise DownloadFailedError(f"Server returned error {response.status_code}")

                try:
                    total = int(response.headers.get("Content-Length", ""))
                except ValueError:
                    total = 0
                received = 0
                with open(destination, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
                        received += len(chunk)
                        if progress is not None:
                            progress(min(received / total, 1.0) if total > 0 else 0.0)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DownloadFailedError(str(e) or type(e).__name__) from e
        except OSError as e:
            raise DownloadFailedError(f"Unable to write download: {e}") from e

        if progress is not None:
            progress(1.0)
