from __future__ import annotations

from typing import Any, Protocol

from glint.context import FileRecord
from glint.models import Severity, Violation


class Rule(Protocol):
    name: str
    category: str
    description: str
    default_severity: Severity

    def configure(self, settings: dict[str, Any]) -> None: ...

    def analyze_file(self, record: FileRecord) -> list[Violation]: ...

    def reset(self) -> None: ...


class BaseRule:
    """Common plumbing for rules: metadata, a settings bag and violation creation.

    Subclasses set the four class attributes and implement ``analyze_file``.
    A rule that does not apply to a file returns an empty list.
    """

    name = ""
    category = ""
    description = ""
    default_severity = Severity.LOW

    def __init__(self) -> None:
        self.settings: dict[str, Any] = {}

    def configure(self, settings: dict[str, Any]) -> None:
        self.settings.update(settings)

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        raise NotImplementedError

    def reset(self) -> None:
        pass

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.settings.get(key, default)

    def get_str(self, key: str, default: str) -> str:
        value = self.settings.get(key)
        return value if isinstance(value, str) else default

    def get_int(self, key: str, default: int) -> int:
        # Config sources frequently hand numbers over as floats.
        value = self.settings.get(key)
        if isinstance(value, bool):
            return default
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        return default

    def get_float(self, key: str, default: float) -> float:
        value = self.settings.get(key)
        if isinstance(value, bool):
            return default
        if isinstance(value, (int, float)):
            return float(value)
        return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.settings.get(key)
        return value if isinstance(value, bool) else default

    def create_violation(self, file_path: str, line: int, message: str, **fields: Any) -> Violation:
        return Violation(
            rule=self.name,
            category=self.category,
            file_path=file_path,
            line=line,
            severity=self.default_severity,
            message=message,
            **fields,
        )
