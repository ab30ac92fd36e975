from __future__ import annotations

import re

from glint.context import FileRecord
from glint.models import Severity, Violation
from glint.rules.base import BaseRule
from glint.rules.patterns import inside_string


# Most specific first: one violation per line.
INTERFACE_PATTERNS = [
    ("map[string]interface{}", re.compile(r"map\[string\]interface\{\}")),
    ("[]interface{}", re.compile(r"\[\]interface\{\}")),
    ("interface{}", re.compile(r"interface\{\}")),
]

# Signatures dictated by third-party callback types. Reported, but never rewritten.
FRAMEWORK_SIGNATURES = (
    "func(token *jwt.Token) (interface{}, error)",
)


class InterfaceAnyRule(BaseRule):
    name = "interface-any"
    category = "typesafety"
    description = "Detects interface{} that should be replaced with 'any' (Go 1.18+)"
    default_severity = Severity.MEDIUM

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if not record.is_go_file():
            return []
        violations: list[Violation] = []
        for idx, line in enumerate(record.lines, start=1):
            violation = self._check_line(record, idx, line)
            if violation is not None:
                violations.append(violation)
        return violations

    def _check_line(self, record: FileRecord, idx: int, line: str) -> Violation | None:
        trimmed = line.strip()
        if trimmed.startswith(("//", "/*")):
            return None
        if "regexp." in line and r"interface\{\}" in line:
            return None
        if "json.Unmarshal" in line:
            return None
        if record.is_test_file() and "map[string]interface{}" in line:
            return None

        for written, pattern in INTERFACE_PATTERNS:
            match = pattern.search(line)
            if match is None or inside_string(line, match.start()):
                continue
            replacement = written.replace("interface{}", "any")
            violation = self.create_violation(
                record.rel_path,
                idx,
                f"Use '{replacement}' instead of '{written}' (Go 1.18+)",
                column=match.start() + 1,
                code=trimmed,
                suggestion=f"Replace {written} with {replacement}",
            )
            if any(signature in line for signature in FRAMEWORK_SIGNATURES):
                violation.metadata["exception"] = True
                violation.suggestion = "Signature is required by the framework callback type"
            return violation
        return None
