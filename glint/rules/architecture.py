from __future__ import annotations

from dataclasses import dataclass
import re

from glint.context import FileRecord
from glint.models import Severity, Violation
from glint.rules.base import BaseRule


FUNC_PATTERN = re.compile(r"^\s*func\s+(?:\(([^)]*)\)\s*)?([A-Za-z_]\w*)\s*(?:\[[^\]]*\])?\s*\(([^)]*)\)")
RECEIVER_TYPE_PATTERN = re.compile(r"(\*?\s*[A-Za-z_]\w*)(?:\[[^\]]*\])?\s*$")
STRING_LITERAL_PATTERN = re.compile(r'"(?:\\.|[^"\\])*"|`[^`]*`|\'(?:\\.|[^\'\\])*\'')
MAX_FUNCTION_LINES = 50
MAX_NESTING_DEPTH = 4
MAX_FUNCTION_PARAMS = 6


@dataclass(slots=True)
class FunctionSpan:
    name: str
    params: str
    start: int
    end: int
    column: int
    lines: list[str]

    @property
    def body_lines(self) -> int:
        return self.end - self.start


def code_only(line: str) -> str:
    """Drops string literals and a trailing line comment so brace counting sees code only."""
    stripped = STRING_LITERAL_PATTERN.sub('""', line)
    comment = stripped.find("//")
    return stripped[:comment] if comment >= 0 else stripped


def find_functions(lines: tuple[str, ...] | list[str]) -> list[FunctionSpan]:
    """Top-level Go function declarations located by brace counting. Lines are 1-based."""
    functions: list[FunctionSpan] = []
    idx = 0
    while idx < len(lines):
        line = lines[idx]
        match = FUNC_PATTERN.search(line)
        code = code_only(line)
        if not match or "{" not in code:
            idx += 1
            continue
        depth = code.count("{") - code.count("}")
        end_idx = idx
        while depth > 0 and end_idx + 1 < len(lines):
            end_idx += 1
            code = code_only(lines[end_idx])
            depth += code.count("{")
            depth -= code.count("}")
        name = match.group(2)
        receiver = match.group(1)
        if receiver:
            receiver_type = RECEIVER_TYPE_PATTERN.search(receiver.strip())
            if receiver_type:
                name = f"{receiver_type.group(1).replace(' ', '')}.{name}"
        functions.append(
            FunctionSpan(
                name=name,
                params=match.group(3),
                start=idx + 1,
                end=end_idx + 1,
                column=match.start(2) + 1,
                lines=list(lines[idx : end_idx + 1]),
            )
        )
        idx = end_idx + 1
    return functions


def count_params(params: str) -> int:
    text = params.strip()
    if not text:
        return 0
    return len([part for part in text.split(",") if part.strip()])


class LongFunctionRule(BaseRule):
    name = "long-function"
    category = "architecture"
    description = "Detects functions that exceed the maximum line count"
    default_severity = Severity.MEDIUM

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if not record.is_go_file():
            return []
        max_lines = self.get_int("max_lines", MAX_FUNCTION_LINES)
        violations: list[Violation] = []
        for function in find_functions(record.lines):
            length = function.body_lines
            if length <= max_lines:
                continue
            violation = self.create_violation(
                record.rel_path,
                function.start,
                f"{function.name} is {length} lines long (max {max_lines})",
                column=function.column,
                end_line=function.end,
                code=record.line(function.start).strip(),
                suggestion="Consider breaking this function into smaller functions",
            )
            if length > max_lines * 2:
                violation.severity = Severity.HIGH
            violations.append(violation)
        return violations


class DeepNestingRule(BaseRule):
    name = "deep-nesting"
    category = "architecture"
    description = "Detects deeply nested code that is hard to read and maintain"
    default_severity = Severity.MEDIUM

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if not record.is_go_file():
            return []
        max_depth = self.get_int("max_depth", MAX_NESTING_DEPTH)
        violations: list[Violation] = []
        for function in find_functions(record.lines):
            deepest, deepest_line = _deepest_block(function)
            if deepest <= max_depth:
                continue
            violations.append(
                self.create_violation(
                    record.rel_path,
                    deepest_line,
                    f"{function.name} has nesting depth {deepest} (max {max_depth})",
                    code=record.line(deepest_line).strip(),
                    suggestion="Use early returns or extract nested logic into helper functions",
                    metadata={"function": function.name, "depth": deepest},
                )
            )
        return violations


def _deepest_block(function: FunctionSpan) -> tuple[int, int]:
    # The function body itself is depth 0.
    depth = 0
    deepest = 0
    deepest_line = function.start
    for offset, line in enumerate(function.lines):
        code = code_only(line)
        nesting = depth - 1
        if code.strip() and nesting > deepest:
            deepest = nesting
            deepest_line = function.start + offset
        depth += code.count("{") - code.count("}")
    return deepest, deepest_line


class TooManyParamsRule(BaseRule):
    name = "too-many-params"
    category = "architecture"
    description = "Detects functions that take too many parameters"
    default_severity = Severity.MEDIUM

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if not record.is_go_file():
            return []
        max_params = self.get_int("max_params", MAX_FUNCTION_PARAMS)
        violations: list[Violation] = []
        for idx, line in enumerate(record.lines, start=1):
            match = FUNC_PATTERN.search(line)
            if not match:
                continue
            param_count = count_params(match.group(3))
            if param_count <= max_params:
                continue
            violations.append(
                self.create_violation(
                    record.rel_path,
                    idx,
                    f"Function {match.group(2)} has {param_count} parameters; target at most {max_params}",
                    column=match.start(2) + 1,
                    code=line.strip(),
                    suggestion="Group related parameters into a struct",
                )
            )
        return violations
