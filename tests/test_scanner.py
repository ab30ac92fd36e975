from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from glint.config import CategoryConfig, Config, RuleConfig, RuleException
from glint.fix import FixEngine
from glint.models import Severity
from glint.rules import default_registry
from glint.scanner import analyze, collect_fixes, select_rules


CHECK_SOURCE = """package main

func check(x bool) int {
\ty := 1
\tif x == true {
\t\treturn y
\t}
\treturn 0
}
"""

IOUTIL_SOURCE = """package main

import "io/ioutil"

func load() ([]byte, error) {
\treturn ioutil.ReadFile("config.json") // glint:ignore deprecated-ioutil
}

func other() ([]byte, error) {
\treturn ioutil.ReadFile("other.json") // glint:ignore
}

func third() ([]byte, error) {
\treturn ioutil.ReadFile("third.json") // glint:ignore bool-compare
}
"""


class ScannerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        self.config = Config()

    def _write(self, rel_path: str, content: str) -> Path:
        path = self.root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def _violations(self, **kwargs) -> list:
        return list(analyze(str(self.root), self.config, default_registry(), **kwargs).violations)

    def test_analyze_reports_and_records_stats(self) -> None:
        self._write("main.go", CHECK_SOURCE)
        self._write("web/app.ts", "export const x = 1;\n")

        result = analyze(str(self.root), self.config, default_registry(), workers=2)

        self.assertEqual(result.files_analyzed, 2)
        self.assertEqual(result.rules_run, 9)
        self.assertEqual([(v.rule, v.line) for v in result.violations], [("bool-compare", 5)])
        self.assertIs(result.records["main.go"], result.records[str((self.root / "main.go").resolve())])

    def test_inline_ignore_comments(self) -> None:
        self._write("load.go", IOUTIL_SOURCE)

        lines = sorted(v.line for v in self._violations(rule="deprecated-ioutil"))

        # The import on line 3 and the non-matching ignore on line 14 remain.
        self.assertEqual(lines, [3, 14])

    def test_rule_exceptions_suppress_matching_violations(self) -> None:
        self._write("main.go", CHECK_SOURCE)
        self._write("other.go", CHECK_SOURCE.replace("package main", "package other"))
        self.config.categories["patterns"].rules["bool-compare"] = RuleConfig(
            exceptions=[RuleException(file="main.go", reason="legacy")]
        )

        violations = self._violations(rule="bool-compare")

        self.assertEqual([v.file_path for v in violations], ["other.go"])

    def test_exception_requires_every_criterion(self) -> None:
        self._write("main.go", CHECK_SOURCE)
        self.config.categories["patterns"].rules["bool-compare"] = RuleConfig(
            exceptions=[RuleException(file="main.go", line=99)]
        )

        self.assertEqual(len(self._violations(rule="bool-compare")), 1)

    def test_exception_by_glob_and_pattern(self) -> None:
        self._write("gen/model.go", CHECK_SOURCE)
        self.config.categories["patterns"].rules["bool-compare"] = RuleConfig(
            exceptions=[RuleException(files="gen/*.go", pattern="x == true")]
        )

        self.assertEqual(self._violations(rule="bool-compare"), [])

    def test_severity_override_rule_before_category(self) -> None:
        self._write("main.go", CHECK_SOURCE)
        self.config.categories["patterns"] = CategoryConfig(
            severity_override="high",
            rules={"bool-compare": RuleConfig(severity="critical")},
        )

        violations = self._violations(rule="bool-compare")

        self.assertEqual(violations[0].severity, Severity.CRITICAL)

    def test_min_severity_filters_report(self) -> None:
        self._write("main.go", CHECK_SOURCE)
        self.config.settings.min_severity = "medium"

        self.assertEqual(self._violations(), [])

    def test_category_selection(self) -> None:
        self._write("main.go", CHECK_SOURCE)
        result = analyze(str(self.root), self.config, default_registry(), category="naming")
        self.assertEqual(result.rules_run, 1)
        self.assertEqual(list(result.violations), [])

    def test_select_rules_unknown_rule(self) -> None:
        self.assertEqual(select_rules(default_registry(), self.config, rule="missing"), [])

    def test_cross_file_state_is_reset_between_runs(self) -> None:
        block = "".join(f"\tvalue{i} := transformInput(source{i}, parameterSet{i})\n" for i in range(12))
        self._write("a.go", "package a\n\nfunc A() {\n" + block + "}\n")
        self._write("b.go", "package b\n\nfunc B() {\n" + block + "}\n")
        registry = default_registry()

        first = analyze(str(self.root), self.config, registry, rule="cross-file-duplicate")
        second = analyze(str(self.root), self.config, registry, rule="cross-file-duplicate")

        self.assertEqual(len(first.violations), 1)
        self.assertEqual(len(second.violations), 1)


class CollectFixesTests(unittest.TestCase):
    def test_end_to_end_fix(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "main.go"
            path.write_text(CHECK_SOURCE, encoding="utf-8")
            config = Config()
            config.settings.min_severity = "critical"
            registry = default_registry()
            engine = FixEngine(registry.fixer_registry(), dry_run=False)

            fixes, result = collect_fixes(tmp, config, registry, engine)

            self.assertEqual(result.rules_run, 3)
            self.assertEqual(len(fixes), 1)
            self.assertEqual((fixes[0].old_text, fixes[0].new_text), ("x == true", "x"))
            self.assertEqual(fixes[0].file_path, str(path.resolve()))

            results = engine.apply_fixes(fixes)

            self.assertEqual(results[0].fixes_applied, 1)
            self.assertEqual(
                path.read_text(encoding="utf-8"),
                CHECK_SOURCE.replace("\tif x == true {", "\tif x {"),
            )

    def test_rule_scope(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "main.go").write_text(CHECK_SOURCE, encoding="utf-8")
            registry = default_registry()

            fixes, _ = collect_fixes(tmp, Config(), registry, FixEngine(registry.fixer_registry()), rule="interface-any")

            self.assertEqual(fixes, [])


if __name__ == "__main__":
    unittest.main()
