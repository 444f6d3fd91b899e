import base64
import unittest
from unittest.mock import MagicMock, patch

import requests

from app.services import image_fetch
from tests.factories import png_bytes


def _response(status_code=200, content=b""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    return resp


class LoadImageTests(unittest.TestCase):
    def test_reads_size_and_mime(self):
        image = image_fetch.load_image(png_bytes(30, 10))
        self.assertEqual((image.width, image.height), (30, 10))
        self.assertEqual(image.mime, "image/png")
        self.assertTrue(image.data_uri.startswith("data:image/png;base64,"))

    def test_rejects_non_images(self):
        with self.assertRaises(image_fetch.UpstreamFetchError):
            image_fetch.load_image(b"<html>not an image</html>")


class DecodeDataUrlTests(unittest.TestCase):
    def test_data_url(self):
        raw = png_bytes()
        value = "data:image/png;base64," + base64.b64encode(raw).decode()
        self.assertEqual(image_fetch.decode_data_url(value), raw)

    def test_plain_base64(self):
        raw = png_bytes()
        self.assertEqual(image_fetch.decode_data_url(base64.b64encode(raw).decode()), raw)

    def test_rejects_non_image_data_url(self):
        with self.assertRaises(ValueError):
            image_fetch.decode_data_url("data:text/plain;base64,aGVsbG8=")

    def test_rejects_garbage(self):
        with self.assertRaises(ValueError):
            image_fetch.decode_data_url("data:image/png;base64,@@@")


class FetchImagesTests(unittest.TestCase):
    @patch("app.services.image_fetch.requests.get")
    def test_failures_are_dropped_and_order_kept(self, mock_get):
        first = png_bytes(10, 10)
        third = png_bytes(20, 10)

        def fake_get(url, timeout):
            self.assertEqual(timeout, 3)
            if url.endswith("/1.png"):
                return _response(200, first)
            if url.endswith("/2.png"):
                raise requests.ConnectionError("boom")
            if url.endswith("/3.png"):
                return _response(200, third)
            return _response(404)

        mock_get.side_effect = fake_get
        urls = [
            "http://img/1.png",
            "http://img/2.png",
            "http://img/3.png",
            "http://img/4.png",
        ]
        with self.assertLogs("vistoria.report", level="WARNING") as logs:
            images = image_fetch.fetch_images(urls, timeout=3, max_workers=4)

        self.assertEqual([image.width for image in images], [10, 20])
        self.assertEqual(len(logs.records), 2)
        self.assertEqual(mock_get.call_count, 4)

    @patch("app.services.image_fetch.requests.get")
    def test_non_image_body_is_dropped(self, mock_get):
        mock_get.return_value = _response(200, b"not an image")
        self.assertEqual(image_fetch.fetch_images(["http://img/x"], timeout=1), [])

    def test_empty_list(self):
        self.assertEqual(image_fetch.fetch_images([], timeout=1), [])
