"""
Integration tests for ``io_aasx.import_aasx.download``.

Requests are answered by ``httpx.MockTransport``; nothing leaves the machine.
"""

import shutil
import tempfile
import unittest
from pathlib import Path

import httpx

from io_aasx.common.errors import DownloadFailedError
from io_aasx.import_aasx.download import Downloader

PAYLOAD = b"PK\x03\x04" + b"x" * 5000


class _ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in fixed chunks, optionally without a length."""

    def __init__(self, data, chunk_size=1000):
        self.data = data
        self.chunk_size = chunk_size

    async def __aiter__(self):
        for start in range(0, len(self.data), self.chunk_size):
            yield self.data[start:start + self.chunk_size]


class DownloadTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.directory = Path(tempfile.mkdtemp(prefix="aasx_download_"))
        self.requests = []
        self.clients = []

    async def asyncTearDown(self):
        for client in self.clients:
            await client.aclose()

    def tearDown(self):
        shutil.rmtree(self.directory, ignore_errors=True)

    def downloader(self, handler):
        def recording_handler(request):
            self.requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        self.clients.append(client)
        return Downloader(client=client, directory=self.directory)

    def leftover_files(self):
        return list(self.directory.iterdir())


class TestSuccessfulDownload(DownloadTestCase):

    async def test_writes_file(self):
        downloader = self.downloader(lambda request: httpx.Response(200, content=PAYLOAD))
        path = await downloader.download("https://example.com/pump.aasx")
        self.assertEqual(path.parent, self.directory)
        self.assertEqual(path.suffix, ".aasx")
        self.assertEqual(path.read_bytes(), PAYLOAD)
        self.assertEqual(self.requests[0].method, "GET")
        self.assertEqual(str(self.requests[0].url), "https://example.com/pump.aasx")

    async def test_fresh_name_per_download(self):
        downloader = self.downloader(lambda request: httpx.Response(200, content=PAYLOAD))
        first = await downloader.download("https://example.com/pump.aasx")
        second = await downloader.download("https://example.com/pump.aasx")
        self.assertNotEqual(first, second)

    async def test_progress_with_length(self):
        progress = []
        downloader = self.downloader(lambda request: httpx.Response(
            200, headers={"Content-Length": str(len(PAYLOAD))}, stream=_ChunkedStream(PAYLOAD)
        ))
        await downloader.download("https://example.com/pump.aasx", progress=progress.append)
        self.assertGreater(len(progress), 2)
        self.assertEqual(progress, sorted(progress))
        self.assertLess(progress[0], 1.0)
        self.assertEqual(progress[-1], 1.0)

    async def test_progress_without_length(self):
        progress = []
        downloader = self.downloader(lambda request: httpx.Response(200, stream=_ChunkedStream(PAYLOAD)))
        path = await downloader.download("https://example.com/pump.aasx", progress=progress.append)
        self.assertEqual(path.read_bytes(), PAYLOAD)
        self.assertTrue(all(value == 0.0 for value in progress[:-1]))
        self.assertEqual(progress[-1], 1.0)


class TestFailedDownload(DownloadTestCase):

    async def test_http_error_status(self):
        downloader = self.downloader(lambda request: httpx.Response(404, content=b"not here"))
        with self.assertRaises(DownloadFailedError) as cm:
            await downloader.download("https://example.com/missing.aasx")
        self.assertEqual(str(cm.exception), "Failed to download AASX: Server returned error 404")
        self.assertEqual(self.leftover_files(), [])

    async def test_server_error(self):
        downloader = self.downloader(lambda request: httpx.Response(503))
        with self.assertRaises(DownloadFailedError):
            await downloader.download("https://example.com/pump.aasx")
        self.assertEqual(self.leftover_files(), [])

    async def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        downloader = self.downloader(refuse)
        with self.assertRaises(DownloadFailedError) as cm:
            await downloader.download("https://example.com/pump.aasx")
        self.assertIn("Connection refused", str(cm.exception))
        self.assertEqual(self.leftover_files(), [])

    async def test_unwritable_directory(self):
        downloader = self.downloader(lambda request: httpx.Response(200, content=PAYLOAD))
        downloader.directory = self.directory / "missing"
        with self.assertRaises(DownloadFailedError) as cm:
            await downloader.download("https://example.com/pump.aasx")
        self.assertIn("Unable to write download", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
