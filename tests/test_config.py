from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from glint.config import (
    DEFAULT_EXCLUDES,
    Config,
    ConfigError,
    find_config,
    load_config,
    load_config_with_defaults,
    validate_config,
)
from glint.models import Severity


SAMPLE_CONFIG = """
version = 1

[settings]
exclude = ["generated/**", "*.mock.go"]
min_severity = "medium"
output = "json"
workers = 2

[categories.naming]
enabled = false

[categories.patterns]
severity_override = "high"

[categories.patterns.settings]
max_lines = 40

[categories.patterns.rules.bool-compare]
severity = "critical"

[categories.patterns.rules.bool-compare.settings]
strict = true

[[categories.patterns.rules.bool-compare.exceptions]]
file = "legacy/flags.go"
reason = "generated by a vendor tool"
"""


class ConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = Config()
        self.assertEqual(config.settings.exclude, DEFAULT_EXCLUDES)
        self.assertEqual(config.min_severity, Severity.LOW)
        self.assertTrue(config.is_rule_enabled("patterns", "bool-compare"))

    def test_load_config_reads_toml(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / ".glint.toml"
            path.write_text(SAMPLE_CONFIG, encoding="utf-8")
            config = load_config(path)

        self.assertEqual(config.settings.exclude, ["generated/**", "*.mock.go"])
        self.assertEqual(config.settings.workers, 2)
        self.assertFalse(config.is_category_enabled("naming"))
        self.assertFalse(config.is_rule_enabled("naming", "naming-conventions"))
        rule_cfg = config.rule_config("patterns", "bool-compare")
        self.assertIsNotNone(rule_cfg)
        assert rule_cfg is not None
        self.assertEqual(rule_cfg.settings, {"strict": True})
        exceptions = config.rule_exceptions("patterns", "bool-compare")
        self.assertEqual(len(exceptions), 1)
        self.assertEqual(exceptions[0].file, "legacy/flags.go")
        self.assertEqual(config.categories["patterns"].settings, {"max_lines": 40})

    def test_severity_for_prefers_rule_level(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "glint.toml"
            path.write_text(SAMPLE_CONFIG, encoding="utf-8")
            config = load_config(path)

        self.assertEqual(config.severity_for("patterns", "bool-compare"), Severity.CRITICAL)
        self.assertEqual(config.severity_for("patterns", "deprecated-ioutil"), Severity.HIGH)
        self.assertIsNone(config.severity_for("typesafety", "interface-any"))

    def test_invalid_toml_raises_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / ".glint.toml"
            path.write_text("[settings\nexclude = 1", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(path)

    def test_wrong_shape_raises_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / ".glint.toml"
            path.write_text('[settings]\nexclude = "vendor/**"\n', encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(path)

    def test_missing_file_raises_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ConfigError):
                load_config(Path(tmp) / "absent.toml")

    def test_find_config_walks_upwards(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            nested = root / "cmd" / "server"
            nested.mkdir(parents=True)
            (root / ".glint.toml").write_text("version = 1\n", encoding="utf-8")

            found = find_config(str(nested))

            self.assertIsNotNone(found)
            assert found is not None
            self.assertEqual(found.resolve(), (root / ".glint.toml").resolve())

    def test_load_with_defaults_keeps_unset_fields(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / ".glint.toml").write_text('[settings]\nmin_severity = "high"\n', encoding="utf-8")

            config, path = load_config_with_defaults(str(root))

        self.assertIsNotNone(path)
        self.assertEqual(config.min_severity, Severity.HIGH)
        self.assertEqual(config.settings.exclude, DEFAULT_EXCLUDES)
        self.assertEqual(config.settings.output, "console")
        self.assertIn("duplication", config.categories)

    def test_should_exclude_matches_relative_path_and_basename(self) -> None:
        config = Config()
        self.assertTrue(config.should_exclude("vendor/github.com/x/y.go"))
        self.assertTrue(config.should_exclude("api/service.pb.go"))
        self.assertTrue(config.should_exclude("service.pb.go"))
        self.assertFalse(config.should_exclude("internal/service.go"))

    def test_invalid_severity_degrades_to_low(self) -> None:
        config = Config()
        config.settings.min_severity = "blocker"
        self.assertEqual(config.min_severity, Severity.LOW)

    def test_validate_reports_problems(self) -> None:
        config = Config()
        config.settings.output = "xml"
        config.settings.min_severity = "blocker"
        config.settings.workers = -1

        errors = validate_config(config)

        self.assertTrue(any("output" in error for error in errors))
        self.assertTrue(any("min_severity" in error for error in errors))
        self.assertTrue(any("workers" in error for error in errors))
        self.assertEqual(validate_config(Config()), [])


if __name__ == "__main__":
    unittest.main()
