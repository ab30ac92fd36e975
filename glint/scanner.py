from __future__ import annotations

from dataclasses import replace
from fnmatch import fnmatchcase
import logging
import re
import time

from glint.config import Config, RuleException
from glint.context import FileRecord
from glint.fix.engine import Fix, FixEngine
from glint.models import ScanResult, Violation, ViolationList
from glint.parser import ParseCache
from glint.rules.base import Rule
from glint.rules.registry import RuleRegistry
from glint.walker import WalkError, Walker

logger = logging.getLogger(__name__)

INLINE_IGNORE_PATTERN = re.compile(r"glint:ignore(?:\s+([A-Za-z0-9_, -]+))?", re.IGNORECASE)


def select_rules(
    registry: RuleRegistry,
    config: Config,
    category: str | None = None,
    rule: str | None = None,
) -> list[Rule]:
    """Enabled rules, optionally narrowed to one category or a single named rule."""
    if rule:
        selected = registry.get(rule)
        return [selected] if selected is not None else []
    if category:
        return registry.by_category(category)
    return registry.enabled(config)


def analyze(
    root: str,
    config: Config,
    registry: RuleRegistry,
    workers: int | None = None,
    category: str | None = None,
    rule: str | None = None,
    parse_cache: ParseCache | None = None,
    filter_severity: bool = True,
) -> ScanResult:
    started = time.monotonic()
    registry.reset_all()
    registry.configure_all(config)
    rules = select_rules(registry, config, category=category, rule=rule)
    logger.info("running %d rules", len(rules))

    walker = Walker(root, config=config, parse_cache=parse_cache, workers=workers or config.settings.workers or None)
    records, errors = walker.walk()

    collected: dict[str, FileRecord] = {}
    violations: list[Violation] = []
    for record in records:
        collected[record.path] = record
        collected[record.rel_path] = record
        for current in rules:
            found = current.analyze_file(record)
            violations.extend(_filter_violations(found, record, config))

    walk_errors: list[WalkError] = list(errors)
    for error in walk_errors:
        logger.debug("walk error: %s", error)

    kept = ViolationList(_dedupe_violations(violations))
    if filter_severity:
        kept = kept.by_severity(config.min_severity)
    stats = walker.stats()
    logger.info(
        "analyzed %d files (%d skipped, %d errors) in %.2fs",
        stats.parsed,
        stats.skipped,
        stats.errored,
        time.monotonic() - started,
    )
    return ScanResult(
        violations=kept,
        stats=stats,
        rules_run=len(rules),
        duration=time.monotonic() - started,
        records=collected,
        errors=walk_errors,
    )


def collect_fixes(
    root: str,
    config: Config,
    registry: RuleRegistry,
    engine: FixEngine,
    rule: str | None = None,
    workers: int | None = None,
) -> tuple[list[Fix], ScanResult]:
    """Run only rules that have a fixer and turn their violations into fixes."""
    fixable = [r.name for r in select_rules(registry, config, rule=rule) if registry.fixer_for(r.name) is not None]
    scoped = RuleRegistry()
    for name in fixable:
        scoped.register(registry.get(name), registry.fixer_for(name))
    # Fixes ignore the reporting threshold.
    result = analyze(root, config, scoped, workers=workers, rule=rule, filter_severity=False)
    fixes = engine.generate_fixes(list(result.violations), result.records)
    return fixes, result


def _filter_violations(violations: list[Violation], record: FileRecord, config: Config) -> list[Violation]:
    if not violations:
        return []
    inline_map = _inline_ignore_map(record)
    allowed: list[Violation] = []
    for violation in violations:
        ignored = inline_map.get(violation.line)
        if ignored is not None and ("*" in ignored or violation.rule in ignored):
            continue
        exceptions = config.rule_exceptions(violation.category, violation.rule)
        if any(_exception_matches(exc, violation, record) for exc in exceptions):
            continue
        override = config.severity_for(violation.category, violation.rule)
        if override is not None and override != violation.severity:
            violation = replace(violation, severity=override)
        allowed.append(violation)
    return allowed


def _exception_matches(exception: RuleException, violation: Violation, record: FileRecord) -> bool:
    """All criteria an exception sets must hold; an exception that sets none never matches."""
    checks: list[bool] = []
    if exception.file:
        checks.append(record.rel_path == exception.file or record.path == exception.file)
    if exception.files:
        checks.append(fnmatchcase(record.rel_path, exception.files) or fnmatchcase(record.base_name, exception.files))
    if exception.line:
        checks.append(violation.line == exception.line)
    if exception.pattern:
        code = violation.code or record.line(violation.line)
        checks.append(exception.pattern in code)
    if exception.function:
        checks.append(
            violation.metadata.get("function") == exception.function or exception.function in violation.message
        )
    return bool(checks) and all(checks)


def _inline_ignore_map(record: FileRecord) -> dict[int, set[str]]:
    rule_map: dict[int, set[str]] = {}
    for idx, line in enumerate(record.lines, start=1):
        match = INLINE_IGNORE_PATTERN.search(line)
        if not match:
            continue
        rules = match.group(1)
        if rules is None:
            rule_map[idx] = {"*"}
            continue
        parsed = {token.strip().lower() for token in rules.split(",") if token.strip()}
        rule_map[idx] = parsed if parsed else {"*"}
    return rule_map


def _dedupe_violations(violations: list[Violation]) -> list[Violation]:
    unique: dict[tuple[str, str, int, int, str], Violation] = {}
    for violation in violations:
        key = (violation.file_path, violation.rule, violation.line, violation.column, violation.message)
        unique[key] = violation
    return sorted(unique.values(), key=lambda v: (v.file_path, v.line, v.column, v.rule))
