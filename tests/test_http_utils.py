import os
import sys
import unittest


sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))


from statusbar.http_utils import HttpResponse, with_query_params  # noqa: E402


class TestHttpUtils(unittest.TestCase):
    def test_with_query_params_merges(self) -> None:
        base = "https://example.com/alerts.json?x=1"
        url = with_query_params(base, {"x": "2", "t": "3"})
        self.assertIn("x=2", url)
        self.assertIn("t=3", url)

    def test_cache_buster_replaces_previous_value(self) -> None:
        url = with_query_params("https://example.com/alerts.json?t=1", {"t": "2"})
        self.assertEqual(url, "https://example.com/alerts.json?t=2")

    def test_response_ok_range(self) -> None:
        self.assertTrue(HttpResponse(status=200, url="u", headers={}, body=b"").ok)
        self.assertFalse(HttpResponse(status=304, url="u", headers={}, body=b"").ok)
