import io
import os
import tarfile
import tempfile
import unittest
import zipfile
from unittest.mock import patch, MagicMock

import requests

from vendorpkg.errors import FetchError
from vendorpkg.utils.file_manager import _safe_join, download_file, extract, url_join


def make_response(status_code=200, chunks=(b"data",)):
    response = MagicMock()
    response.status_code = status_code
    response.iter_content.return_value = list(chunks)
    response.__enter__.return_value = response
    return response


class TestSafeJoin(unittest.TestCase):

    def test_safe_join(self):
        base = '/tmp'
        self.assertEqual(_safe_join(base, 'foo', 'bar'), '/tmp/foo/bar')
        with self.assertRaises(IOError):
            _safe_join(base, '../foo')


class TestExtract(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dest = self.tmp.name

    def tearDown(self):
        self.tmp.cleanup()

    def test_extract_zip_removes_archive(self):
        archive = os.path.join(self.dest, "lib.zip")
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("lib/include/lib.h", "#define LIB 1\n")
            zf.writestr("lib/CMakeLists.txt", "project(lib)\n")

        extract(archive, self.dest)

        with open(os.path.join(self.dest, "lib", "include", "lib.h")) as f:
            self.assertEqual(f.read(), "#define LIB 1\n")
        self.assertFalse(os.path.exists(archive))

    def test_extract_tar(self):
        archive = os.path.join(self.dest, "lib.zip")
        payload = b"int x;\n"
        with tarfile.open(archive, "w:gz") as tf:
            info = tarfile.TarInfo("src/x.c")
            info.size = len(payload)
            tf.addfile(info, io.BytesIO(payload))

        extract(archive, self.dest)

        with open(os.path.join(self.dest, "src", "x.c"), "rb") as f:
            self.assertEqual(f.read(), payload)

    def test_extract_rejects_path_traversal(self):
        archive = os.path.join(self.dest, "evil.zip")
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../evil.txt", "boom")
        with self.assertRaises(FetchError):
            extract(archive, os.path.join(self.dest, "out"))
        self.assertFalse(os.path.exists(os.path.join(self.dest, "evil.txt")))

    def test_extract_unsupported(self):
        archive = os.path.join(self.dest, "plain.zip")
        with open(archive, "w") as f:
            f.write("not an archive")
        with self.assertRaises(FetchError):
            extract(archive, self.dest)
        # archive is kept when extraction fails
        self.assertTrue(os.path.exists(archive))


class TestDownloadFile(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.target = os.path.join(self.tmp.name, "sub", "file.h")

    def tearDown(self):
        self.tmp.cleanup()

    def test_writes_body(self):
        session = MagicMock()
        session.get.return_value = make_response(chunks=[b"ab", b"", b"cd"])

        download_file("https://example.test/file.h", self.target, session=session, timeout=5)

        session.get.assert_called_once_with("https://example.test/file.h", stream=True, timeout=5)
        with open(self.target, "rb") as f:
            self.assertEqual(f.read(), b"abcd")

    def test_error_status(self):
        session = MagicMock()
        session.get.return_value = make_response(status_code=404)
        with self.assertRaises(FetchError) as ctx:
            download_file("https://example.test/missing", self.target, session=session)
        self.assertFalse(ctx.exception.transient)
        self.assertFalse(os.path.exists(self.target))

    def test_server_error_is_transient(self):
        session = MagicMock()
        session.get.return_value = make_response(status_code=503)
        with self.assertRaises(FetchError) as ctx:
            download_file("https://example.test/busy", self.target, session=session)
        self.assertTrue(ctx.exception.transient)

    def test_transport_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(FetchError):
            download_file("https://example.test/file.h", self.target, session=session)

    @patch('requests.get')
    def test_defaults_to_requests(self, mock_get):
        mock_get.return_value = make_response()
        download_file("https://example.test/file.h", self.target)
        mock_get.assert_called_once_with("https://example.test/file.h", stream=True, timeout=60)


class TestUrlJoin(unittest.TestCase):

    def test_url_join(self):
        self.assertEqual(url_join("https://h.test/raw/", "/a/b.h"), "https://h.test/raw/a/b.h")
        self.assertEqual(url_join("https://h.test/raw", "b.h"), "https://h.test/raw/b.h")
        self.assertEqual(url_join("https://h.test/raw/b.h", ""), "https://h.test/raw/b.h")


if __name__ == '__main__':
    unittest.main()
