from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Iterator

from tree_sitter import Language, Node, Parser, Tree
import tree_sitter_go

logger = logging.getLogger(__name__)

GO_LANGUAGE = Language(tree_sitter_go.language())


class ParseError(Exception):
    def __init__(self, path: str, line: int, message: str = "syntax error") -> None:
        super().__init__(f"{path}:{line}: {message}")
        self.path = path
        self.line = line


@dataclass(frozen=True, slots=True)
class ParseResult:
    tree: Tree | None
    error: ParseError | None


class ParseCache:
    """Memoizes Go syntax trees by file path.

    The first request for a path parses and stores the outcome, success or
    failure. Every later request for that path gets the very same
    ``ParseResult`` object back, including when two threads race on the
    first request: only the first stored result is kept.
    """

    def __init__(self) -> None:
        self._cache: dict[str, ParseResult] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    def parse(self, path: str, content: bytes) -> ParseResult:
        with self._lock:
            cached = self._cache.get(path)
        if cached is not None:
            return cached

        result = self._parse(path, content)

        with self._lock:
            return self._cache.setdefault(path, result)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache = {}

    def size(self) -> int:
        with self._lock:
            return len(self._cache)

    def _parser(self) -> Parser:
        # Parser instances are not safe to share between threads.
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(GO_LANGUAGE)
            self._local.parser = parser
        return parser

    def _parse(self, path: str, content: bytes) -> ParseResult:
        tree = self._parser().parse(content)
        if tree.root_node.has_error:
            line = first_error_line(tree.root_node)
            logger.debug("syntax error in %s at line %d", path, line)
            return ParseResult(tree=None, error=ParseError(path, line))
        return ParseResult(tree=tree, error=None)


def first_error_line(node: Node) -> int:
    for child in walk(node):
        if child.type == "ERROR" or child.is_missing:
            return child.start_point[0] + 1
    return node.start_point[0] + 1


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal of ``node`` and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def iter_nodes(node: Node, *types: str) -> Iterator[Node]:
    wanted = set(types)
    for child in walk(node):
        if child.type in wanted:
            yield child


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def node_line(node: Node) -> int:
    return node.start_point[0] + 1


def node_column(node: Node) -> int:
    return node.start_point[1] + 1


def call_name(call: Node) -> str:
    """``Foo`` for ``pkg.Foo(...)`` and ``Foo(...)``."""
    function = call.child_by_field_name("function")
    if function is None:
        return ""
    if function.type == "identifier":
        return node_text(function)
    if function.type == "selector_expression":
        return node_text(function.child_by_field_name("field"))
    return ""


def full_call_name(call: Node) -> str:
    """``pkg.Foo`` for ``pkg.Foo(...)``; ``Foo`` when there is no plain package operand."""
    function = call.child_by_field_name("function")
    if function is None:
        return ""
    if function.type == "identifier":
        return node_text(function)
    if function.type == "selector_expression":
        operand = function.child_by_field_name("operand")
        field = node_text(function.child_by_field_name("field"))
        if operand is not None and operand.type == "identifier":
            return f"{node_text(operand)}.{field}"
        return field
    return ""


def package_name(tree: Tree) -> str:
    for clause in iter_nodes(tree.root_node, "package_clause"):
        for child in clause.named_children:
            if child.type == "package_identifier":
                return node_text(child)
    return ""


def import_paths(tree: Tree) -> list[str]:
    paths: list[str] = []
    for spec in iter_nodes(tree.root_node, "import_spec"):
        path = spec.child_by_field_name("path")
        if path is not None:
            paths.append(node_text(path).strip('"`'))
    return paths
