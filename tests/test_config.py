"""Unit tests for configuration loading."""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from tilo.config import Config, find_config_path, load_config, parse_config
from tilo.errors import ConfigError


class TestLoadConfig(unittest.TestCase):
    """Test reading and normalizing config files."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def write(self, name, text):
        path = Path(self.temp_dir) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def test_full_config_is_normalized(self):
        path = self.write("config.yaml", (
            "colors:\n"
            "  Timestamp: RED\n"
            "disable_builtin:\n"
            "  - URL\n"
            "custom_rules:\n"
            "  - pattern: 'req-\\d+'\n"
            "    color: Yellow\n"
            "    style: BOLD\n"
            "status_bar: ' Top '\n"
            "line_numbers: false\n"
        ))
        config = load_config(path)

        self.assertEqual(config.colors, {"timestamp": "red"})
        self.assertEqual(config.disable_builtin, ["url"])
        self.assertEqual(config.custom_rules[0].color, "yellow")
        self.assertEqual(config.custom_rules[0].style, "bold")
        self.assertTrue(config.status_at_top)
        self.assertFalse(config.line_numbers)
        self.assertEqual(config.path, path)

        rules = {r.name: r for r in config.build_rules()}
        self.assertEqual(rules["timestamp"].color, "red")
        self.assertFalse(rules["url"].enabled)
        self.assertTrue(rules["custom"].pattern.search("req-12"))

    def test_empty_file_gives_defaults(self):
        config = load_config(self.write("empty.yaml", ""))
        self.assertEqual(config.colors, {})
        self.assertFalse(config.status_at_top)
        self.assertTrue(config.line_numbers)

    def test_missing_explicit_path_is_an_error(self):
        with self.assertRaises(ConfigError):
            load_config(Path(self.temp_dir) / "nope.yaml")

    def test_invalid_yaml_is_an_error(self):
        with self.assertRaises(ConfigError):
            load_config(self.write("bad.yaml", "colors: [\n"))

    def test_non_mapping_is_an_error(self):
        with self.assertRaises(ConfigError):
            load_config(self.write("list.yaml", "- a\n- b\n"))

    def test_custom_rule_without_pattern_is_an_error(self):
        with self.assertRaises(ConfigError):
            parse_config({"custom_rules": [{"color": "red"}]})

    def test_bad_custom_regex_fails_when_rules_are_built(self):
        config = parse_config({"custom_rules": [{"pattern": "(oops"}]})
        with self.assertRaises(ConfigError):
            config.build_rules()

    def test_status_bar_defaults_to_bottom(self):
        self.assertFalse(Config().status_at_top)
        self.assertFalse(parse_config({"status_bar": "bottom"}).status_at_top)


class TestConfigDiscovery(unittest.TestCase):
    """Test the default config search order."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.home = Path(self.temp_dir) / "home"
        self.xdg = Path(self.temp_dir) / "xdg"
        self.platform_dir = Path(self.temp_dir) / "platform"
        self.home.mkdir()

        self.patches = [
            patch.object(Path, "home", return_value=self.home),
            patch("tilo.config.platformdirs.user_config_dir", return_value=str(self.platform_dir)),
            patch.dict(os.environ, {"XDG_CONFIG_HOME": str(self.xdg)}),
        ]
        for p in self.patches:
            p.start()

    def tearDown(self):
        for p in reversed(self.patches):
            p.stop()
        shutil.rmtree(self.temp_dir)

    def touch(self, path):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("status_bar: top\n", encoding="utf-8")
        return path

    def test_nothing_found_gives_defaults(self):
        self.assertIsNone(find_config_path())
        config = load_config()
        self.assertIsNone(config.path)
        self.assertEqual(config.colors, {})

    def test_xdg_config_wins(self):
        xdg_file = self.touch(self.xdg / "tilo" / "config.yaml")
        self.touch(self.home / ".tilo.yaml")
        self.assertEqual(find_config_path(), xdg_file)
        self.assertTrue(load_config().status_at_top)

    def test_platform_dir_before_home_files(self):
        platform_file = self.touch(self.platform_dir / "config.yaml")
        self.touch(self.home / ".config" / "tilo" / "config.yaml")
        self.assertEqual(find_config_path(), platform_file)

    def test_dot_config_before_dotfile(self):
        dot_config = self.touch(self.home / ".config" / "tilo" / "config.yaml")
        self.touch(self.home / ".tilo.yaml")
        self.assertEqual(find_config_path(), dot_config)

    def test_home_dotfile_fallback(self):
        dotfile = self.touch(self.home / ".tilo.yaml")
        self.assertEqual(find_config_path(), dotfile)


if __name__ == "__main__":
    unittest.main()
