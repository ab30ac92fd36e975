from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import IntEnum
import os
from typing import Any


class Severity(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def parse(cls, text: str) -> Severity:
        key = str(text).strip().lower()
        try:
            return _SEVERITY_ALIASES[key]
        except KeyError:
            raise ValueError(f"unknown severity: {text!r}") from None

    def is_at_least(self, other: Severity) -> bool:
        return self >= other


_SEVERITY_ALIASES: dict[str, Severity] = {
    "low": Severity.LOW,
    "l": Severity.LOW,
    "medium": Severity.MEDIUM,
    "med": Severity.MEDIUM,
    "m": Severity.MEDIUM,
    "high": Severity.HIGH,
    "h": Severity.HIGH,
    "critical": Severity.CRITICAL,
    "crit": Severity.CRITICAL,
    "c": Severity.CRITICAL,
}


def parse_severity(text: str | None, default: Severity = Severity.LOW) -> Severity:
    """Lenient parse: anything unrecognised degrades to ``default``."""
    if text is None:
        return default
    try:
        return Severity.parse(text)
    except ValueError:
        return default


@dataclass(slots=True)
class Violation:
    rule: str
    category: str
    file_path: str
    line: int
    severity: Severity
    message: str
    column: int = 0
    end_line: int = 0
    suggestion: str = ""
    code: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_metadata(self, **items: Any) -> Violation:
        self.metadata.update(items)
        return self

    def location(self) -> str:
        if self.column > 0:
            return f"{self.file_path}:{self.line}:{self.column}"
        return f"{self.file_path}:{self.line}"

    def relative_file(self, root: str) -> str:
        if not os.path.isabs(self.file_path):
            return self.file_path
        try:
            return os.path.relpath(self.file_path, root)
        except ValueError:
            return self.file_path

    def __str__(self) -> str:
        return f"[{self.severity.label}] {self.location()}: {self.message} ({self.rule})"


class ViolationList(list):
    """List of violations with filtering and aggregation helpers."""

    def by_severity(self, minimum: Severity) -> ViolationList:
        return ViolationList(v for v in self if v.severity >= minimum)

    def by_category(self, category: str) -> ViolationList:
        return ViolationList(v for v in self if v.category == category)

    def by_rule(self, rule: str) -> ViolationList:
        return ViolationList(v for v in self if v.rule == rule)

    def count_by_severity(self) -> dict[Severity, int]:
        return dict(Counter(v.severity for v in self))

    def count_by_category(self) -> dict[str, int]:
        return dict(Counter(v.category for v in self))

    def count_by_rule(self) -> dict[str, int]:
        return dict(Counter(v.rule for v in self))

    def has_critical(self) -> bool:
        return any(v.severity == Severity.CRITICAL for v in self)


@dataclass(slots=True)
class WalkerStats:
    discovered: int = 0
    parsed: int = 0
    skipped: int = 0
    errored: int = 0


@dataclass(slots=True)
class ScanResult:
    violations: ViolationList
    stats: WalkerStats
    rules_run: int = 0
    duration: float = 0.0
    records: dict[str, Any] = field(default_factory=dict)
    errors: list[Exception] = field(default_factory=list)

    @property
    def files_analyzed(self) -> int:
        return self.stats.parsed
