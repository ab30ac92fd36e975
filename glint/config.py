from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
import os
from pathlib import Path
import tomllib
from typing import Any

from glint.models import Severity, parse_severity


CONFIG_FILENAMES = (".glint.toml", "glint.toml")
OUTPUT_FORMATS = ("console", "summary", "json", "sarif")
DEFAULT_EXCLUDES = [
    "vendor/**",
    "node_modules/**",
    ".git/**",
    "**/*.generated.go",
    "**/*.pb.go",
]
DEFAULT_CATEGORIES = [
    "architecture",
    "patterns",
    "typesafety",
    "duplication",
    "naming",
]


class ConfigError(Exception):
    pass


@dataclass(slots=True)
class RuleException:
    file: str | None = None
    line: int | None = None
    files: str | None = None
    pattern: str | None = None
    function: str | None = None
    reason: str = ""


@dataclass(slots=True)
class RuleConfig:
    enabled: bool = True
    severity: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)
    exceptions: list[RuleException] = field(default_factory=list)


@dataclass(slots=True)
class CategoryConfig:
    enabled: bool = True
    severity_override: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)
    rules: dict[str, RuleConfig] = field(default_factory=dict)


@dataclass(slots=True)
class SettingsConfig:
    exclude: list[str] = field(default_factory=lambda: DEFAULT_EXCLUDES.copy())
    min_severity: str = "low"
    output: str = "console"
    workers: int = 0


@dataclass(slots=True)
class Config:
    version: int = 1
    settings: SettingsConfig = field(default_factory=SettingsConfig)
    categories: dict[str, CategoryConfig] = field(
        default_factory=lambda: {name: CategoryConfig() for name in DEFAULT_CATEGORIES}
    )

    @property
    def min_severity(self) -> Severity:
        return parse_severity(self.settings.min_severity)

    def is_category_enabled(self, category: str) -> bool:
        cat = self.categories.get(category)
        return True if cat is None else cat.enabled

    def is_rule_enabled(self, category: str, rule: str) -> bool:
        if not self.is_category_enabled(category):
            return False
        cat = self.categories.get(category)
        if cat is None or rule not in cat.rules:
            return True
        return cat.rules[rule].enabled

    def rule_config(self, category: str, rule: str) -> RuleConfig | None:
        cat = self.categories.get(category)
        if cat is None:
            return None
        return cat.rules.get(rule)

    def rule_exceptions(self, category: str, rule: str) -> list[RuleException]:
        rule_cfg = self.rule_config(category, rule)
        return list(rule_cfg.exceptions) if rule_cfg is not None else []

    def severity_for(self, category: str, rule: str) -> Severity | None:
        """Configured severity for a rule, rule level first; None keeps the rule's own."""
        rule_cfg = self.rule_config(category, rule)
        if rule_cfg is not None and rule_cfg.severity:
            return parse_severity(rule_cfg.severity)
        cat = self.categories.get(category)
        if cat is not None and cat.severity_override:
            return parse_severity(cat.severity_override)
        return None

    def should_exclude(self, rel_path: str) -> bool:
        rel_path = rel_path.replace(os.sep, "/")
        base = rel_path.rsplit("/", 1)[-1]
        for pattern in self.settings.exclude:
            if fnmatchcase(rel_path, pattern) or fnmatchcase(base, pattern):
                return True
            # "**/x" also covers x at the root.
            if pattern.startswith("**/") and fnmatchcase(rel_path, pattern[3:]):
                return True
        return False


def default_config() -> Config:
    return Config()


def find_config(start_dir: str) -> Path | None:
    directory = Path(start_dir).resolve()
    if directory.is_file():
        directory = directory.parent
    for candidate_dir in (directory, *directory.parents):
        for name in CONFIG_FILENAMES:
            candidate = candidate_dir / name
            if candidate.is_file():
                return candidate
    return None


def load_config(path: str | Path) -> Config:
    cfg_path = Path(path)
    try:
        with cfg_path.open("rb") as fh:
            payload = tomllib.load(fh)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {cfg_path}") from None
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {cfg_path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config file {cfg_path}: {exc}") from exc
    return config_from_dict(payload, source=str(cfg_path))


def config_from_dict(payload: dict[str, Any], source: str = "<config>") -> Config:
    settings = _table(payload.get("settings", {}), "settings", source)
    config = Config(categories={})
    config.version = _int(payload.get("version", config.version), "version", source)
    if "exclude" in settings:
        config.settings.exclude = [str(pattern) for pattern in _array(settings["exclude"], "settings.exclude", source)]
    else:
        config.settings.exclude = []
    config.settings.min_severity = str(settings.get("min_severity", ""))
    config.settings.output = str(settings.get("output", ""))
    config.settings.workers = _int(settings.get("workers", 0), "settings.workers", source)

    categories = _table(payload.get("categories", {}), "categories", source)
    for name, raw_category in categories.items():
        config.categories[name] = _category_from_dict(raw_category, f"categories.{name}", source)
    return config


def load_config_with_defaults(project_root: str) -> tuple[Config, Path | None]:
    config = default_config()
    config_path = find_config(project_root)
    if config_path is not None:
        config = merge_configs(config, load_config(config_path))
    return config, config_path


def merge_configs(base: Config, override: Config) -> Config:
    merged = Config(
        version=override.version,
        settings=SettingsConfig(
            exclude=list(override.settings.exclude or base.settings.exclude),
            min_severity=override.settings.min_severity or base.settings.min_severity,
            output=override.settings.output or base.settings.output,
            workers=override.settings.workers or base.settings.workers,
        ),
        categories={},
    )
    for name, category in base.categories.items():
        merged.categories[name] = CategoryConfig(
            enabled=category.enabled,
            severity_override=category.severity_override,
            settings=dict(category.settings),
            rules=dict(category.rules),
        )
    for name, category in override.categories.items():
        existing = merged.categories.get(name)
        if existing is None:
            merged.categories[name] = category
            continue
        existing.enabled = category.enabled
        if category.severity_override:
            existing.severity_override = category.severity_override
        if category.settings:
            existing.settings = dict(category.settings)
        existing.rules.update(category.rules)
    return merged


def validate_config(config: Config) -> list[str]:
    errors: list[str] = []
    if config.settings.output not in OUTPUT_FORMATS:
        errors.append(f"output must be one of: {', '.join(OUTPUT_FORMATS)}")
    severity_values: list[tuple[str, str | None]] = [("settings.min_severity", config.settings.min_severity)]
    for cat_name, category in config.categories.items():
        severity_values.append((f"categories.{cat_name}.severity_override", category.severity_override))
        for rule_name, rule_cfg in category.rules.items():
            severity_values.append((f"categories.{cat_name}.rules.{rule_name}.severity", rule_cfg.severity))
    for key, value in severity_values:
        if not value:
            continue
        try:
            Severity.parse(value)
        except ValueError:
            errors.append(f"{key} must be one of: low, medium, high, critical (got {value!r})")
    if config.settings.workers < 0:
        errors.append("settings.workers must be >= 0")
    return errors


def _category_from_dict(raw: Any, key: str, source: str) -> CategoryConfig:
    table = _table(raw, key, source)
    category = CategoryConfig(
        enabled=bool(table.get("enabled", True)),
        severity_override=table.get("severity_override"),
        settings=dict(_table(table.get("settings", {}), f"{key}.settings", source)),
    )
    rules = _table(table.get("rules", {}), f"{key}.rules", source)
    for rule_name, raw_rule in rules.items():
        rule_table = _table(raw_rule, f"{key}.rules.{rule_name}", source)
        category.rules[rule_name] = RuleConfig(
            enabled=bool(rule_table.get("enabled", True)),
            severity=rule_table.get("severity"),
            settings=dict(_table(rule_table.get("settings", {}), f"{key}.rules.{rule_name}.settings", source)),
            exceptions=[
                _exception_from_dict(item, f"{key}.rules.{rule_name}.exceptions", source)
                for item in _array(rule_table.get("exceptions", []), f"{key}.rules.{rule_name}.exceptions", source)
            ],
        )
    return category


def _exception_from_dict(raw: Any, key: str, source: str) -> RuleException:
    table = _table(raw, key, source)
    line = table.get("line")
    return RuleException(
        file=table.get("file"),
        line=int(line) if line is not None else None,
        files=table.get("files"),
        pattern=table.get("pattern"),
        function=table.get("function"),
        reason=str(table.get("reason", "")),
    )


def _table(value: Any, key: str, source: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{source}: '{key}' must be a table")
    return value


def _array(value: Any, key: str, source: str) -> list[Any]:
    if not isinstance(value, list):
        raise ConfigError(f"{source}: '{key}' must be an array")
    return value


def _int(value: Any, key: str, source: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{source}: '{key}' must be a number")
    return int(value)
