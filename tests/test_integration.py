#!/usr/bin/env python3
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
"""
Integration tests for the reading list export tool.
Tests the CLI end to end with the network replaced by scripted responses.
"""
import unittest
import json
import tempfile
import shutil
from io import StringIO
from unittest.mock import patch, MagicMock

from config import Settings
from errors import AuthenticationError
from fakes import ScriptedTransport, login_responses, make_response
from models import ListEntry
from reading_list import ReadingListService
from reading_list_export import main
from storage import FileCache


class TestIntegrationWorkflows(unittest.TestCase):
    """Integration tests for complete workflows."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp()
        self.settings = Settings(
            username="Reader",
            password="secret",
            list_id="110563",
            cache_dir=os.path.join(self.test_dir, "cache"),
        )

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _service(self):
        responses = login_responses() + [
            make_response(200, {"entries": [{"title": "Alpha", "created": "2023-01-01T00:00:00Z"}]}),
            make_response(200, {"query": {"pages": {"1": {"title": "Alpha", "extract": "First."}}}}),
        ]
        self.transport = ScriptedTransport(responses)
        return ReadingListService(
            self.settings,
            FileCache(self.settings.cache_dir),
            transport_factory=lambda: self.transport,
        )

    @patch("rate_limiter.time.sleep")
    @patch("reading_list_export.create_service")
    @patch("reading_list_export.load_settings")
    def test_export_to_file(self, mock_settings, mock_create_service, mock_sleep):
        """Test the CLI writing the reading list to a file through the file cache."""
        mock_settings.return_value = self.settings
        mock_create_service.return_value = self._service()
        output = os.path.join(self.test_dir, "out", "reading_list.json")

        with patch("sys.argv", ["reading_list_export.py", "--output", output]):
            with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
                main()

        with open(output, "r", encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data, {"Alpha": {"created": "2023-01-01T00:00:00Z", "extract": "First."}})
        self.assertIn("EXPORT SUMMARY", mock_stdout.getvalue())
        self.assertEqual(len(os.listdir(self.settings.cache_dir)), 1)

    @patch("reading_list_export.create_service")
    @patch("reading_list_export.load_settings")
    def test_export_to_stdout(self, mock_settings, mock_create_service):
        """Test the CLI printing JSON and passing --refresh through."""
        mock_settings.return_value = self.settings
        service = MagicMock()
        service.get_reading_list.return_value = {
            "Alpha": ListEntry(title="Alpha", created="2023-01-01T00:00:00Z")
        }
        mock_create_service.return_value = service

        with patch("sys.argv", ["reading_list_export.py", "--refresh"]):
            with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
                main()

        service.get_reading_list.assert_called_once_with(refresh=True)
        self.assertEqual(
            json.loads(mock_stdout.getvalue()),
            {"Alpha": {"created": "2023-01-01T00:00:00Z"}},
        )

    @patch("reading_list_export.create_service")
    @patch("reading_list_export.load_settings")
    def test_pipeline_error_exits(self, mock_settings, mock_create_service):
        """Test that a pipeline failure exits with status 1."""
        mock_settings.return_value = self.settings
        service = MagicMock()
        service.get_reading_list.side_effect = AuthenticationError("HTTP code 200 received instead of 302")
        mock_create_service.return_value = service

        with patch("sys.argv", ["reading_list_export.py"]):
            with self.assertRaises(SystemExit) as ctx:
                main()

        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
