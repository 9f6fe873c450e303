import os
import tempfile
import unittest
from unittest.mock import patch
from click.testing import CliRunner
from vendorpkg.main import cli

class TestLogCommand(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.log_dir = self.tmp.name
        self.log_file = os.path.join(self.log_dir, "vendorpkg_20240101_120000.log")
        with open(self.log_file, "w") as f:
            f.write("[12:00:00] [INFO] Resolving 1 package(s)\n")
            f.write("[12:00:01] [ERROR] Error: manifest not found\n")

    def tearDown(self):
        self.tmp.cleanup()

    def test_list(self):
        with patch("vendorpkg.commands.log.LOG_DIR", self.log_dir):
            result = self.runner.invoke(cli, ["log", "--list"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("vendorpkg_20240101_120000.log", result.output)

    def test_show_file(self):
        with patch("vendorpkg.commands.log.LOG_DIR", self.log_dir):
            result = self.runner.invoke(cli, ["log", "--filename", "vendorpkg_20240101_120000.log"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("manifest not found", result.output)

    @patch("vendorpkg.commands.log.get_latest_log_file", return_value=None)
    def test_no_logs(self, mock_latest):
        result = self.runner.invoke(cli, ["log"])
        self.assertIn("No log files found.", result.output)

if __name__ == '__main__':
    unittest.main()
