import json
import os
import tempfile
import toml
import unittest
from click.testing import CliRunner
from vendorpkg import config
from vendorpkg.commands.config import config as config_command
from vendorpkg.utils.credentials import Auth

class TestConfig(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.test_dir = self.tmp.name
        self.config_path = os.path.join(self.test_dir, config.CONFIG_FILE)
        self.sample_config = {
            "auth": [{"host": "git.example.test", "username": "ci", "token": "secret"}],
            "fetch": {"workers": 2, "retries": 1},
        }
        config.save_config(self.sample_config, path=self.test_dir)

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_config_not_found(self):
        """Loading a non-existent config returns an empty dict."""
        os.remove(self.config_path)
        self.assertEqual(config.load_config(path=self.test_dir), {})

    def test_load_config_invalid(self):
        with open(self.config_path, "w") as f:
            f.write("[fetch\nworkers = ")
        self.assertEqual(config.load_config(path=self.test_dir), {})

    def test_save_and_load_config(self):
        loaded_config = config.load_config(path=self.test_dir)
        self.assertEqual(loaded_config, self.sample_config)
        with open(self.config_path, "r") as f:
            self.assertEqual(toml.load(f), self.sample_config)

    def test_get_auths(self):
        auths = config.get_auths(config.load_config(path=self.test_dir))
        self.assertEqual(auths, [Auth(host="git.example.test", username="ci", token="secret")])

    def test_get_auths_skips_entries_without_host(self):
        self.assertEqual(config.get_auths({"auth": [{"username": "x"}]}), [])

    def test_fetch_settings(self):
        settings = config.get_fetch_settings(config.load_config(path=self.test_dir))
        self.assertEqual(settings["workers"], 2)
        self.assertEqual(settings["retries"], 1)
        self.assertEqual(settings["timeout"], config.DEFAULT_TIMEOUT)
        self.assertEqual(settings["git_timeout"], config.DEFAULT_GIT_TIMEOUT)
        self.assertFalse(settings["cleanup_on_failure"])

    def test_fetch_settings_invalid_values_fall_back(self):
        settings = config.get_fetch_settings({"fetch": {"workers": "many", "retries": -1, "timeout": "30"}})
        self.assertEqual(settings["workers"], config.DEFAULT_WORKERS)
        self.assertEqual(settings["retries"], config.DEFAULT_RETRIES)
        self.assertEqual(settings["timeout"], 30)

    def test_get_nested_value(self):
        runner = CliRunner()
        result = runner.invoke(config_command, ['get', 'fetch.workers'], obj={"path": self.test_dir})
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip().splitlines()[-1], '2')

    def test_set_nested_value(self):
        runner = CliRunner()
        result = runner.invoke(config_command, ['set', 'fetch.timeout', '30'], obj={"path": self.test_dir})
        self.assertEqual(result.exit_code, 0)
        loaded_config = config.load_config(path=self.test_dir)
        self.assertEqual(loaded_config['fetch']['timeout'], 30)
        self.assertEqual(config.get_fetch_settings(loaded_config)["timeout"], 30)

    def test_set_keeps_plain_strings(self):
        runner = CliRunner()
        result = runner.invoke(config_command, ['set', 'auth_note', 'https://git.example.test'], obj={"path": self.test_dir})
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(config.load_config(path=self.test_dir)['auth_note'], 'https://git.example.test')

    def test_set_boolean(self):
        runner = CliRunner()
        runner.invoke(config_command, ['set', 'fetch.cleanup_on_failure', 'true'], obj={"path": self.test_dir})
        self.assertTrue(config.get_fetch_settings(config.load_config(path=self.test_dir))["cleanup_on_failure"])

    def test_unset_nested_value(self):
        runner = CliRunner()
        result = runner.invoke(config_command, ['unset', 'fetch.retries'], obj={"path": self.test_dir})
        self.assertEqual(result.exit_code, 0)
        self.assertNotIn('retries', config.load_config(path=self.test_dir)['fetch'])

    def test_list_hides_tokens(self):
        runner = CliRunner()
        result = runner.invoke(config_command, ['list'], obj={"path": self.test_dir})
        self.assertEqual(result.exit_code, 0)
        self.assertNotIn("secret", result.output)
        listed = json.loads(result.output[result.output.index("{"):])
        self.assertEqual(listed["auth"][0]["token"], "***")

if __name__ == "__main__":
    unittest.main()
