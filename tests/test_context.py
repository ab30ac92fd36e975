from __future__ import annotations

import os
import unittest

from glint.context import FileRecord
from glint.parser import ParseCache


ROOT = os.path.join(os.sep, "repo")
SOURCE = b'package store\n\nimport "os"\n\nfunc Open() {\n\tos.Exit(1)\n}\n'


def _record(rel_path: str, content: bytes = SOURCE) -> FileRecord:
    return FileRecord(os.path.join(ROOT, rel_path), ROOT, content)


class FileRecordTests(unittest.TestCase):
    def test_paths_and_lines(self) -> None:
        record = _record(os.path.join("internal", "store", "store.go"))

        self.assertEqual(record.rel_path, os.path.join("internal", "store", "store.go"))
        self.assertEqual(record.base_name, "store.go")
        self.assertEqual(record.extension, ".go")
        self.assertEqual(record.directory, os.path.join(ROOT, "internal", "store"))
        self.assertEqual(record.line(1), "package store")
        self.assertEqual(record.line(6), "\tos.Exit(1)")
        self.assertEqual(record.line(0), "")
        self.assertEqual(record.line(99), "")

    def test_lines_between_is_clamped_and_inclusive(self) -> None:
        record = _record("store.go")
        self.assertEqual(record.lines_between(5, 7), ["func Open() {", "\tos.Exit(1)", "}"])
        self.assertEqual(record.lines_between(-3, 1), ["package store"])
        self.assertEqual(record.lines_between(7, 3), [])
        self.assertEqual(record.context(6, 1), ["func Open() {", "\tos.Exit(1)", "}"])

    def test_language_predicates(self) -> None:
        self.assertTrue(_record("main.go").is_go_file())
        self.assertTrue(_record("web/app.tsx").is_typescript_file())
        self.assertTrue(_record("web/app.jsx").is_javascript_file())
        self.assertFalse(_record("web/app.jsx").is_go_file())

    def test_test_file_detection(self) -> None:
        self.assertTrue(_record("store_test.go").is_test_file())
        self.assertTrue(_record("web/app.test.ts").is_test_file())
        self.assertTrue(_record("web/app.spec.js").is_test_file())
        self.assertTrue(_record(os.path.join("pkg", "testdata", "fixture.go")).is_test_file())
        self.assertTrue(_record(os.path.join("tests", "helpers.go")).is_test_file())
        self.assertFalse(_record(os.path.join("pkg", "latest", "store.go")).is_test_file())

    def test_attach_tree_populates_go_metadata_once(self) -> None:
        record = _record("store.go")
        self.assertFalse(record.has_tree())
        result = ParseCache().parse(record.path, record.content)

        record.attach_tree(result.tree)

        self.assertTrue(record.has_tree())
        self.assertEqual(record.go_package, "store")
        self.assertEqual(record.go_imports, ("os",))
        with self.assertRaises(RuntimeError):
            record.attach_tree(result.tree)

    def test_attach_missing_tree_counts_as_attached(self) -> None:
        record = _record("broken.go", b"package main\nfunc (\n")
        record.attach_tree(None)
        self.assertFalse(record.has_tree())
        self.assertEqual(record.go_package, "")
        with self.assertRaises(RuntimeError):
            record.attach_tree(None)

    def test_position_of_node(self) -> None:
        record = _record("store.go")
        tree = ParseCache().parse(record.path, record.content).tree
        assert tree is not None
        function = tree.root_node.named_children[-1]
        self.assertEqual(record.position_of(function), (5, 1))


if __name__ == "__main__":
    unittest.main()
