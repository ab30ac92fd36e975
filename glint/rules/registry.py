from __future__ import annotations

from dataclasses import dataclass

from glint.config import Config
from glint.fix.engine import Fixer, FixerRegistry
from glint.models import Severity
from glint.rules.base import Rule


@dataclass(frozen=True, slots=True)
class RuleEntry:
    rule: Rule
    fixer: Fixer | None = None


@dataclass(frozen=True, slots=True)
class RuleInfo:
    name: str
    category: str
    description: str
    severity: Severity
    has_auto_fix: bool


class RuleRegistry:
    """Explicit collection of rules, each optionally paired with its fixer."""

    def __init__(self) -> None:
        self._entries: dict[str, RuleEntry] = {}

    def register(self, rule: Rule, fixer: Fixer | None = None) -> None:
        if rule.name in self._entries:
            raise ValueError(f"rule {rule.name!r} already registered")
        if fixer is not None and fixer.rule_name != rule.name:
            raise ValueError(f"fixer for {fixer.rule_name!r} cannot be paired with rule {rule.name!r}")
        self._entries[rule.name] = RuleEntry(rule=rule, fixer=fixer)

    def get(self, name: str) -> Rule | None:
        entry = self._entries.get(name)
        return entry.rule if entry is not None else None

    def fixer_for(self, name: str) -> Fixer | None:
        entry = self._entries.get(name)
        return entry.fixer if entry is not None else None

    def by_category(self, category: str) -> list[Rule]:
        return [rule for rule in self.all() if rule.category == category]

    def all(self) -> list[Rule]:
        return sorted((entry.rule for entry in self._entries.values()), key=lambda r: (r.category, r.name))

    def categories(self) -> list[str]:
        return sorted({entry.rule.category for entry in self._entries.values()})

    def count(self) -> int:
        return len(self._entries)

    def count_by_category(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for entry in self._entries.values():
            counts[entry.rule.category] = counts.get(entry.rule.category, 0) + 1
        return counts

    def enabled(self, config: Config) -> list[Rule]:
        return [rule for rule in self.all() if config.is_rule_enabled(rule.category, rule.name)]

    def configure_all(self, config: Config) -> None:
        for entry in self._entries.values():
            rule = entry.rule
            category = config.categories.get(rule.category)
            if category is None:
                continue
            if category.settings:
                rule.configure(category.settings)
            rule_cfg = category.rules.get(rule.name)
            if rule_cfg is not None and rule_cfg.settings:
                rule.configure(rule_cfg.settings)

    def reset_all(self) -> None:
        for entry in self._entries.values():
            entry.rule.reset()

    def fixer_registry(self) -> FixerRegistry:
        fixers = FixerRegistry()
        for entry in self._entries.values():
            if entry.fixer is not None:
                fixers.register(entry.fixer)
        return fixers

    def rule_info(self, name: str) -> RuleInfo | None:
        entry = self._entries.get(name)
        if entry is None:
            return None
        rule = entry.rule
        return RuleInfo(
            name=rule.name,
            category=rule.category,
            description=rule.description,
            severity=rule.default_severity,
            has_auto_fix=entry.fixer is not None,
        )

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
