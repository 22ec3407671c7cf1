import os
import sys
import json
import shutil
import tempfile
import unittest

# Add parent directory to path so we can import the application modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from autocommit.config import (
    AutoCommitConfig,
    ConfigError,
    env_overrides,
    find_config_file,
    load_config,
)


class TestAutoCommitConfig(unittest.TestCase):

    def test_defaults(self):
        config = AutoCommitConfig()

        self.assertFalse(config.automatically_push)
        self.assertFalse(config.ask_for_summary)
        self.assertEqual(config.shell_command_separator, " && ")
        self.assertIsNone(config.debounce_interval)

    def test_from_mapping_validates_types(self):
        with self.assertRaises(ConfigError):
            AutoCommitConfig.from_mapping({"automatically_push": "yes"})
        with self.assertRaises(ConfigError):
            AutoCommitConfig.from_mapping({"debounce_interval": "5"})
        with self.assertRaises(ConfigError):
            AutoCommitConfig.from_mapping({"debounce_interval": -1})
        with self.assertRaises(ConfigError):
            AutoCommitConfig.from_mapping({"debounce_interval": True})

    def test_unknown_keys_are_ignored(self):
        with self.assertLogs("autocommit.config", level="WARNING"):
            config = AutoCommitConfig.from_mapping({"colour": "blue", "silent": True})

        self.assertTrue(config.silent)

    def test_merged_skips_none(self):
        config = AutoCommitConfig(debounce_interval=5)

        merged = config.merged({"debounce_interval": None, "automatically_push": True})

        self.assertEqual(merged.debounce_interval, 5)
        self.assertTrue(merged.automatically_push)


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.sub = os.path.join(self.tmp, "docs")
        os.makedirs(self.sub)
        self.file_path = os.path.join(self.sub, "notes.txt")
        with open(self.file_path, "w", encoding="utf-8") as f:
            f.write("notes\n")

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _write_config(self, directory, data):
        path = os.path.join(directory, ".autocommit.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write(data if isinstance(data, str) else json.dumps(data))
        return path

    def test_nearest_file_wins(self):
        self._write_config(self.tmp, {"debounce_interval": 30})
        nearest = self._write_config(self.sub, {"automatically_push": True})

        self.assertEqual(str(find_config_file(self.file_path)), os.path.realpath(nearest))
        config = load_config(self.file_path, environ={})

        self.assertTrue(config.automatically_push)
        self.assertIsNone(config.debounce_interval)

    def test_environment_overrides_file(self):
        self._write_config(self.sub, {"debounce_interval": 30, "ask_for_summary": True})

        config = load_config(self.file_path, environ={
            "AUTOCOMMIT_DEBOUNCE_INTERVAL": "2.5",
            "AUTOCOMMIT_ASK_FOR_SUMMARY": "off",
        })

        self.assertEqual(config.debounce_interval, 2.5)
        self.assertFalse(config.ask_for_summary)

    def test_env_overrides_parsing(self):
        overrides = env_overrides({
            "AUTOCOMMIT_AUTOMATICALLY_PUSH": "1",
            "AUTOCOMMIT_DEBOUNCE_INTERVAL": "",
            "AUTOCOMMIT_SHELL_COMMAND_SEPARATOR": " ; ",
            "HOME": "/root",
        })

        self.assertEqual(overrides, {
            "automatically_push": True,
            "debounce_interval": None,
            "shell_command_separator": " ; ",
        })

    def test_bad_env_value(self):
        with self.assertRaises(ConfigError):
            env_overrides({"AUTOCOMMIT_SILENT": "maybe"})

    def test_invalid_json(self):
        self._write_config(self.sub, "{not json")

        with self.assertRaises(ConfigError):
            load_config(self.file_path, environ={})

    def test_non_object_json(self):
        self._write_config(self.sub, "[1, 2]")

        with self.assertRaises(ConfigError):
            load_config(self.file_path, environ={})


if __name__ == "__main__":
    unittest.main()
