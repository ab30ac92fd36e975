from __future__ import annotations

import os
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from glint.config import Config
from glint.parser import ParseCache
from glint.walker import WalkError, Walker, is_analyzable


GO_SOURCE = "package main\n\nfunc main() {}\n"


def _build_tree(root: Path) -> None:
    (root / "sub").mkdir()
    (root / "vendor" / "lib").mkdir(parents=True)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "main.go").write_text(GO_SOURCE, encoding="utf-8")
    (root / "app.ts").write_text("export const x = 1;\n", encoding="utf-8")
    (root / "notes.txt").write_text("not code\n", encoding="utf-8")
    (root / "api.pb.go").write_text(GO_SOURCE, encoding="utf-8")
    (root / "sub" / "util.go").write_text("package sub\n\nfunc Util() {}\n", encoding="utf-8")
    (root / "vendor" / "lib" / "lib.go").write_text(GO_SOURCE, encoding="utf-8")
    (root / "node_modules" / "pkg" / "index.js").write_text("module.exports = 1;\n", encoding="utf-8")


class WalkerTests(unittest.TestCase):
    def test_streams_every_analyzable_file_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            _build_tree(root)

            records, errors = Walker(str(root)).walk_sync()

            rel_paths = sorted(record.rel_path for record in records)
            self.assertEqual(rel_paths, ["app.ts", "main.go", os.path.join("sub", "util.go")])
            self.assertEqual(errors, [])

    def test_stats_count_discovered_parsed_and_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            _build_tree(root)
            walker = Walker(str(root), workers=2)

            walker.walk_sync()
            stats = walker.stats()

            self.assertEqual(stats.discovered, 3)
            self.assertEqual(stats.parsed, 3)
            self.assertEqual(stats.skipped, 1)
            self.assertEqual(stats.errored, 0)

    def test_go_files_get_trees_and_others_do_not(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            _build_tree(root)

            records, _ = Walker(str(root), workers=1).walk_sync()
            by_name = {record.base_name: record for record in records}

            self.assertTrue(by_name["main.go"].has_tree())
            self.assertEqual(by_name["util.go"].go_package, "sub")
            self.assertFalse(by_name["app.ts"].has_tree())

    def test_parse_failure_still_yields_record(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "broken.go").write_text("package main\n\nfunc main() {\n\tx := )\n}\n", encoding="utf-8")

            records, errors = Walker(str(root)).walk_sync()

            self.assertEqual(len(records), 1)
            self.assertFalse(records[0].has_tree())
            self.assertEqual(records[0].line(4), "\tx := )")
            self.assertEqual(errors, [])

    def test_config_excludes_are_applied(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            _build_tree(root)
            config = Config()
            config.settings.exclude = ["sub/**"]

            records, _ = Walker(str(root), config=config).walk_sync()

            self.assertEqual(sorted(r.rel_path for r in records), ["api.pb.go", "app.ts", "main.go"])

    def test_missing_root_reports_single_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            records, errors = Walker(os.path.join(tmp, "absent")).walk_sync()

        self.assertEqual(records, [])
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], WalkError)

    def test_read_errors_go_to_error_stream(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            _build_tree(root)
            walker = Walker(str(root), workers=3)

            with mock.patch.object(Walker, "_process", side_effect=PermissionError("denied")):
                records, errors = walker.walk_sync()

            self.assertEqual(records, [])
            self.assertEqual(len(errors), 3)
            self.assertTrue(all(isinstance(error.cause, PermissionError) for error in errors))
            self.assertEqual(walker.stats().errored, 3)

    def test_single_file_root(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            _build_tree(root)

            records, _ = Walker(str(root / "main.go")).walk_sync()

            self.assertEqual([r.rel_path for r in records], ["main.go"])

    def test_shared_parse_cache_is_used(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            _build_tree(root)
            cache = ParseCache()

            Walker(str(root), parse_cache=cache).walk_sync()

            self.assertEqual(cache.size(), 2)

    def test_with_workers_ignores_non_positive_counts(self) -> None:
        walker = Walker(".").with_workers(4)
        self.assertEqual(walker.workers, 4)
        walker.with_workers(0)
        self.assertEqual(walker.workers, 4)

    def test_is_analyzable(self) -> None:
        self.assertTrue(is_analyzable("a/b.go"))
        self.assertTrue(is_analyzable("a/b.JSX"))
        self.assertFalse(is_analyzable("a/b.py"))


if __name__ == "__main__":
    unittest.main()
