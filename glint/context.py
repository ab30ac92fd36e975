from __future__ import annotations

import os
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from tree_sitter import Node, Tree

from glint.parser import import_paths, package_name

if TYPE_CHECKING:
    from glint.config import Config


TEST_DIR_MARKERS = ("test", "tests", "__tests__", "testdata")


class FileRecord:
    """One source file under analysis.

    Path and content are fixed at construction. The syntax tree is optional
    and can be attached at most once; Go package and import metadata are
    derived from it at that moment.
    """

    __slots__ = (
        "_path",
        "_rel_path",
        "_project_root",
        "_content",
        "_lines",
        "_config",
        "_tree",
        "_tree_attached",
        "_go_package",
        "_go_imports",
    )

    def __init__(self, path: str, project_root: str, content: bytes, config: Config | None = None) -> None:
        self._path = path
        self._project_root = project_root
        try:
            self._rel_path = os.path.relpath(path, project_root)
        except ValueError:
            self._rel_path = path
        self._content = content
        self._lines = tuple(content.decode("utf-8", errors="replace").split("\n"))
        self._config = config
        self._tree: Tree | None = None
        self._tree_attached = False
        self._go_package = ""
        self._go_imports: tuple[str, ...] = ()

    @property
    def path(self) -> str:
        return self._path

    @property
    def rel_path(self) -> str:
        return self._rel_path

    @property
    def project_root(self) -> str:
        return self._project_root

    @property
    def content(self) -> bytes:
        return self._content

    @property
    def lines(self) -> tuple[str, ...]:
        return self._lines

    @property
    def config(self) -> Config | None:
        return self._config

    @property
    def tree(self) -> Tree | None:
        return self._tree

    @property
    def go_package(self) -> str:
        return self._go_package

    @property
    def go_imports(self) -> tuple[str, ...]:
        return self._go_imports

    def attach_tree(self, tree: Tree | None) -> None:
        if self._tree_attached:
            raise RuntimeError(f"syntax tree already attached to {self._path}")
        self._tree_attached = True
        self._tree = tree
        if tree is not None:
            self._go_package = package_name(tree)
            self._go_imports = tuple(import_paths(tree))

    def has_tree(self) -> bool:
        return self._tree is not None

    @property
    def extension(self) -> str:
        return os.path.splitext(self._path)[1]

    @property
    def base_name(self) -> str:
        return os.path.basename(self._path)

    @property
    def directory(self) -> str:
        return os.path.dirname(self._path)

    def is_go_file(self) -> bool:
        return self._path.endswith(".go")

    def is_typescript_file(self) -> bool:
        return self._path.endswith((".ts", ".tsx"))

    def is_javascript_file(self) -> bool:
        return self._path.endswith((".js", ".jsx"))

    def is_test_file(self) -> bool:
        name = self.base_name
        if name.endswith("_test.go"):
            return True
        if ".test." in name or ".spec." in name:
            return True
        parts = PurePosixPath(self._rel_path.replace(os.sep, "/")).parts[:-1]
        return any(part in TEST_DIR_MARKERS for part in parts)

    def line(self, number: int) -> str:
        if number < 1 or number > len(self._lines):
            return ""
        return self._lines[number - 1]

    def lines_between(self, start: int, end: int) -> list[str]:
        start = max(start, 1)
        end = min(end, len(self._lines))
        if start > end:
            return []
        return list(self._lines[start - 1 : end])

    def context(self, number: int, radius: int) -> list[str]:
        return self.lines_between(number - radius, number + radius)

    def position_of(self, node: Node) -> tuple[int, int]:
        row, column = node.start_point[0], node.start_point[1]
        return row + 1, column + 1

    def __repr__(self) -> str:
        return f"FileRecord({self._rel_path!r}, lines={len(self._lines)}, tree={self._tree is not None})"
