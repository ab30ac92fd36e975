from __future__ import annotations

import re

from glint.context import FileRecord
from glint.fix.engine import Fix
from glint.models import Violation


# (pattern, operator is ==, bool literal comes first)
BOOL_COMPARE_PATTERNS = [
    (re.compile(r"(!?\w+(?:\.\w+)*)\s*==\s*(true|false)\b"), True, False),
    (re.compile(r"\b(true|false)\s*==\s*(!?\w+(?:\.\w+)*)"), True, True),
    (re.compile(r"(!?\w+(?:\.\w+)*)\s*!=\s*(true|false)\b"), False, False),
    (re.compile(r"\b(true|false)\s*!=\s*(!?\w+(?:\.\w+)*)"), False, True),
]

IOUTIL_REPLACEMENTS = {
    "ioutil.ReadFile": "os.ReadFile",
    "ioutil.WriteFile": "os.WriteFile",
    "ioutil.ReadAll": "io.ReadAll",
    "ioutil.ReadDir": "os.ReadDir",
    "ioutil.TempFile": "os.CreateTemp",
    "ioutil.TempDir": "os.MkdirTemp",
    "ioutil.NopCloser": "io.NopCloser",
    "ioutil.Discard": "io.Discard",
}


class BoolCompareFixer:
    """``x == true`` -> ``x``, ``x == false`` -> ``!x`` and the ``!=`` mirror images."""

    rule_name = "bool-compare"

    def can_fix(self, violation: Violation) -> bool:
        return violation.rule == self.rule_name

    def generate_fix(self, record: FileRecord, violation: Violation) -> Fix | None:
        line = record.line(violation.line)
        if not line:
            return None
        for pattern, is_equal, bool_first in BOOL_COMPARE_PATTERNS:
            match = pattern.search(line)
            if match is None:
                continue
            if bool_first:
                literal, operand = match.group(1), match.group(2)
            else:
                operand, literal = match.group(1), match.group(2)
            keep_positive = (literal == "true") == is_equal
            if keep_positive:
                new_text = operand
            elif operand.startswith("!"):
                new_text = operand[1:]
            else:
                new_text = "!" + operand
            return Fix(
                file_path=record.path,
                start_line=violation.line,
                end_line=violation.line,
                old_text=match.group(0),
                new_text=new_text,
                message="Simplify boolean comparison",
                rule_name=self.rule_name,
                violation=violation,
            )
        return None


class DeprecatedIoutilFixer:
    rule_name = "deprecated-ioutil"

    def can_fix(self, violation: Violation) -> bool:
        return violation.rule == self.rule_name

    def generate_fix(self, record: FileRecord, violation: Violation) -> Fix | None:
        line = record.line(violation.line)
        for old, replacement in IOUTIL_REPLACEMENTS.items():
            if old in line:
                return Fix(
                    file_path=record.path,
                    start_line=violation.line,
                    end_line=violation.line,
                    old_text=old,
                    new_text=replacement,
                    message=f"Replace deprecated {old} with {replacement}",
                    rule_name=self.rule_name,
                    violation=violation,
                )
        return None


class InterfaceAnyFixer:
    rule_name = "interface-any"

    def can_fix(self, violation: Violation) -> bool:
        if violation.rule != self.rule_name:
            return False
        return violation.metadata.get("exception") is not True

    def generate_fix(self, record: FileRecord, violation: Violation) -> Fix | None:
        if "interface{}" not in record.line(violation.line):
            return None
        return Fix(
            file_path=record.path,
            start_line=violation.line,
            end_line=violation.line,
            old_text="interface{}",
            new_text="any",
            message="Replace interface{} with any (Go 1.18+)",
            rule_name=self.rule_name,
            violation=violation,
        )
