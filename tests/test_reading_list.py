#!/usr/bin/env python3
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
"""
Tests for the cache-fronted reading list service.
Runs the whole pipeline against scripted responses.
"""

import hashlib
import unittest
from unittest.mock import MagicMock, patch

from config import Settings
from errors import AuthenticationError, TransportError
from fakes import ScriptedTransport, login_responses, make_response
from models import serialize_reading_list
from reading_list import ReadingListService, make_cache_key
from storage import MemoryCache


def pipeline_responses():
    return login_responses() + [
        make_response(
            200,
            {
                "entries": [
                    {"title": "Alpha", "created": "2023-01-01T00:00:00Z"},
                    {"title": "Beta", "created": "2023-01-02T00:00:00Z"},
                ],
                "next": "c1",
            },
        ),
        make_response(200, {"entries": [{"title": "Gamma", "created": "2023-01-03T00:00:00Z"}]}),
        make_response(
            200,
            {
                "query": {
                    "pages": {
                        "1": {"title": "Alpha", "extract": "First\nletter."},
                        "2": {"title": "Gamma", "extract": "Third letter."},
                    }
                }
            },
        ),
    ]


class TestMakeCacheKey(unittest.TestCase):
    def test_key_hides_username(self):
        key = make_cache_key("Reader")
        self.assertNotIn("Reader", key)
        self.assertEqual(
            key,
            "wikipedia#defaultList#" + hashlib.sha256(b"Reader").hexdigest(),
        )

    def test_deterministic(self):
        self.assertEqual(make_cache_key("Reader"), make_cache_key("Reader"))
        self.assertNotEqual(make_cache_key("Reader"), make_cache_key("Other"))


@patch("rate_limiter.time.sleep")
class TestReadingListService(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(username="Reader", password="secret", list_id="110563")
        self.cache = MemoryCache()
        self.transports = []

    def _service(self, responses_per_run):
        runs = iter(responses_per_run)

        def factory():
            transport = ScriptedTransport(next(runs))
            self.transports.append(transport)
            return transport

        return ReadingListService(self.settings, self.cache, transport_factory=factory)

    def test_full_pipeline(self, mock_sleep):
        service = self._service([pipeline_responses()])

        reading_list = service.get_reading_list()

        self.assertEqual(list(reading_list), ["Alpha", "Beta", "Gamma"])
        self.assertEqual(reading_list["Alpha"].extract, "Firstletter.")
        self.assertIsNone(reading_list["Beta"].extract)
        self.assertEqual(reading_list["Gamma"].created, "2023-01-03T00:00:00Z")
        # 4 login steps, 2 pages, 1 extract batch
        self.assertEqual(len(self.transports[0].requests), 7)
        self.assertEqual(mock_sleep.call_count, 7)
        mock_sleep.assert_called_with(0.5)
        self.assertTrue(self.transports[0].closed)
        self.assertEqual(
            self.transports[0].requests[4]["url"],
            "https://en.wikipedia.org/api/rest_v1/data/lists/110563/entries/",
        )

    def test_second_call_is_cache_read(self, mock_sleep):
        service = self._service([pipeline_responses()])

        first = service.get_reading_list()
        second = service.get_reading_list()

        self.assertEqual(len(self.transports), 1)
        self.assertEqual(serialize_reading_list(first), serialize_reading_list(second))
        self.assertEqual(
            self.cache.get(make_cache_key("Reader")), serialize_reading_list(first)
        )

    def test_refresh_bypasses_cache(self, mock_sleep):
        service = self._service([pipeline_responses(), pipeline_responses()])

        service.get_reading_list()
        service.get_reading_list(refresh=True)

        self.assertEqual(len(self.transports), 2)

    def test_auth_failure_not_cached(self, mock_sleep):
        responses = login_responses()
        responses[1] = make_response(200, "Incorrect password")
        cache = MagicMock()
        cache.get.return_value = None
        service = ReadingListService(
            self.settings, cache, transport_factory=lambda: ScriptedTransport(responses)
        )

        with self.assertRaises(AuthenticationError):
            service.get_reading_list()

        cache.put.assert_not_called()

    def test_enrichment_failure_not_cached(self, mock_sleep):
        responses = pipeline_responses()
        responses[-1] = make_response(500, "error")
        service = self._service([responses])

        with self.assertRaises(TransportError):
            service.get_reading_list()

        self.assertIsNone(self.cache.get(make_cache_key("Reader")))
        self.assertTrue(self.transports[0].closed)

    def test_explicit_credentials(self, mock_sleep):
        service = self._service([pipeline_responses()])

        service.get_reading_list("Other", "pw")

        submit = self.transports[0].requests[1]
        self.assertEqual(submit["data"]["wpName"], "Other")
        self.assertEqual(submit["data"]["wpPassword"], "pw")
        self.assertIsNotNone(self.cache.get(make_cache_key("Other")))
        self.assertIsNone(self.cache.get(make_cache_key("Reader")))

    def test_each_run_starts_with_fresh_cookies(self, mock_sleep):
        service = self._service([pipeline_responses(), pipeline_responses()])

        service.get_reading_list()
        service.get_reading_list(refresh=True)

        second_run_submit = self.transports[1].requests[1]
        self.assertEqual(second_run_submit["headers"]["Cookie"], "enwikiSession=s1")


if __name__ == "__main__":
    unittest.main()
