from __future__ import annotations

import re

from glint.context import FileRecord
from glint.models import Severity, Violation
from glint.parser import iter_nodes, node_line, node_text
from glint.rules.base import BaseRule


BOOL_LITERALS = {"true", "false"}
IOUTIL_IMPORT_PATTERN = re.compile(r'^\s*(?:import\s+)?(?:\w+\s+)?"io/ioutil"')
IOUTIL_SUGGESTIONS = {
    "ioutil.ReadFile": "Use os.ReadFile instead",
    "ioutil.WriteFile": "Use os.WriteFile instead",
    "ioutil.ReadAll": "Use io.ReadAll instead",
    "ioutil.ReadDir": "Use os.ReadDir instead",
    "ioutil.TempFile": "Use os.CreateTemp instead",
    "ioutil.TempDir": "Use os.MkdirTemp instead",
    "ioutil.NopCloser": "Use io.NopCloser instead",
    "ioutil.Discard": "Use io.Discard instead",
}


def inside_string(line: str, index: int) -> bool:
    """True when ``index`` falls inside a double-quoted literal on ``line``."""
    return line[:index].count('"') % 2 == 1


def inside_comment(line: str, index: int) -> bool:
    comment = line.find("//")
    return 0 <= comment < index and not inside_string(line, comment)


class BoolCompareRule(BaseRule):
    name = "bool-compare"
    category = "patterns"
    description = "Detects redundant boolean comparisons (x == true, x == false)"
    default_severity = Severity.LOW

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if not record.is_go_file() or record.is_test_file() or record.tree is None:
            return []
        violations: list[Violation] = []
        for node in iter_nodes(record.tree.root_node, "binary_expression"):
            operator = node_text(node.child_by_field_name("operator"))
            if operator not in ("==", "!="):
                continue
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if right is not None and right.type in BOOL_LITERALS:
                literal = right.type
            elif left is not None and left.type in BOOL_LITERALS:
                literal = left.type
            else:
                continue
            simplified_to_negation = (literal == "true") != (operator == "==")
            suggestion = (
                f"Use '!x' instead of 'x {operator} {literal}'"
                if simplified_to_negation
                else f"Use 'x' instead of 'x {operator} {literal}'"
            )
            line = node_line(node)
            violations.append(
                self.create_violation(
                    record.rel_path,
                    line,
                    "Redundant boolean comparison",
                    column=node.start_point[1] + 1,
                    code=record.line(line).strip(),
                    suggestion=suggestion,
                    metadata={"compared_to": literal},
                )
            )
        return violations


class DeprecatedIoutilRule(BaseRule):
    name = "deprecated-ioutil"
    category = "patterns"
    description = "Detects deprecated io/ioutil package usage (use io and os packages instead)"
    default_severity = Severity.MEDIUM

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if not record.is_go_file():
            return []
        violations: list[Violation] = []
        in_raw_string = False
        for idx, line in enumerate(record.lines, start=1):
            was_in_raw_string = in_raw_string
            if line.count("`") % 2 == 1:
                in_raw_string = not in_raw_string
            if was_in_raw_string:
                continue
            trimmed = line.strip()
            if trimmed.startswith("//"):
                continue

            if IOUTIL_IMPORT_PATTERN.search(line):
                violations.append(
                    self.create_violation(
                        record.rel_path,
                        idx,
                        "io/ioutil is deprecated since Go 1.16",
                        code=trimmed,
                        suggestion="Use io.ReadAll, os.ReadFile, os.WriteFile instead",
                    )
                )
                continue

            position = line.find("ioutil.")
            if position < 0 or inside_string(line, position) or inside_comment(line, position):
                continue
            if 0 <= line.find("`") < position:
                continue
            violations.append(
                self.create_violation(
                    record.rel_path,
                    idx,
                    "ioutil functions are deprecated",
                    column=position + 1,
                    code=trimmed,
                    suggestion=_ioutil_suggestion(line),
                )
            )
        return violations


def _ioutil_suggestion(line: str) -> str:
    for call, suggestion in IOUTIL_SUGGESTIONS.items():
        if call in line:
            return suggestion
    return "Use the io or os package equivalents"
