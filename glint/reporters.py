from __future__ import annotations

from collections import Counter
import json
from pathlib import Path
from typing import Any

from glint import __version__
from glint.models import ScanResult, Severity, Violation, ViolationList
from glint.rules.registry import RuleRegistry

LINE_WIDTH = 60
TOP_ISSUES_LIMIT = 5


def _violation_to_dict(violation: Violation) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "rule": violation.rule,
        "category": violation.category,
        "severity": str(violation.severity),
        "message": violation.message,
        "file_path": violation.file_path,
        "line": violation.line,
        "column": violation.column,
    }
    if violation.end_line:
        payload["end_line"] = violation.end_line
    if violation.suggestion:
        payload["suggestion"] = violation.suggestion
    if violation.code:
        payload["code"] = violation.code
    if violation.metadata:
        payload["metadata"] = violation.metadata
    return payload


def _severity_counts(violations: ViolationList) -> dict[str, int]:
    counts = violations.count_by_severity()
    return {str(severity): counts.get(severity, 0) for severity in Severity}


def to_json_report(result: ScanResult) -> dict[str, Any]:
    violations = result.violations
    return {
        "files_analyzed": result.files_analyzed,
        "files_skipped": result.stats.skipped,
        "files_with_issues": len({v.file_path for v in violations}),
        "rules_run": result.rules_run,
        "duration_seconds": round(result.duration, 3),
        "issues_total": len(violations),
        "severity_counts": _severity_counts(violations),
        "category_counts": dict(sorted(violations.count_by_category().items())),
        "rule_counts": dict(sorted(violations.count_by_rule().items())),
        "errors": [str(error) for error in result.errors],
        "issues": [_violation_to_dict(v) for v in violations],
    }


def to_sarif_report(result: ScanResult, registry: RuleRegistry | None = None) -> dict[str, Any]:
    sarif_results: list[dict[str, Any]] = []
    for violation in result.violations:
        region: dict[str, Any] = {"startLine": violation.line}
        if violation.column > 0:
            region["startColumn"] = violation.column
        if violation.end_line > violation.line:
            region["endLine"] = violation.end_line
        sarif_results.append(
            {
                "ruleId": violation.rule,
                "level": _severity_to_level(violation.severity),
                "message": {"text": violation.message},
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {"uri": violation.file_path.replace("\\", "/")},
                            "region": region,
                        }
                    }
                ],
            }
        )

    driver: dict[str, Any] = {"name": "glint", "version": __version__}
    if registry is not None:
        driver["rules"] = [
            {
                "id": rule.name,
                "shortDescription": {"text": rule.description},
                "properties": {"category": rule.category},
                "defaultConfiguration": {"level": _severity_to_level(rule.default_severity)},
            }
            for rule in registry.all()
        ]

    return {
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "version": "2.1.0",
        "runs": [{"tool": {"driver": driver}, "results": sarif_results}],
    }


def render_console(result: ScanResult, verbose: bool = False) -> str:
    violations = result.violations
    out: list[str] = [""]
    if not violations:
        out.append("No issues found!")
        out.append(f"Files analyzed: {result.files_analyzed}")
        out.append("")
        return "\n".join(out) + "\n"

    out.append("GLINT ANALYSIS RESULTS")
    out.append("=" * LINE_WIDTH)
    out.append(f"Files analyzed: {result.files_analyzed}")
    if result.stats.skipped:
        out.append(f"Files skipped: {result.stats.skipped}")
    if verbose:
        out.append(f"Rules run: {result.rules_run} | Duration: {result.duration:.2f}s")
    out.append("")

    by_file: dict[str, list[Violation]] = {}
    for violation in violations:
        by_file.setdefault(violation.file_path, []).append(violation)
    for file_path in sorted(by_file):
        out.append(file_path)
        for violation in sorted(by_file[file_path], key=lambda v: v.line):
            out.append(f"  {violation.line}: [{violation.severity.label}] {violation.message} ({violation.rule})")
            if violation.code:
                out.append(f"     > {violation.code.strip()}")
            if violation.suggestion:
                out.append(f"     Suggestion: {violation.suggestion}")
        out.append("")

    counts = violations.count_by_severity()
    out.append("-" * LINE_WIDTH)
    out.append(f"SUMMARY: {len(violations)} issues found")
    for severity in sorted(Severity, reverse=True):
        if counts.get(severity):
            out.append(f"  {severity.name.capitalize()}: {counts[severity]}")
    out.append("")
    return "\n".join(out) + "\n"


def render_summary(result: ScanResult) -> str:
    violations = result.violations
    counts = violations.count_by_severity()
    out = [
        "GLINT ANALYSIS SUMMARY",
        "======================",
        " | ".join(f"{severity.name.capitalize()}: {counts.get(severity, 0)}" for severity in sorted(Severity, reverse=True)),
        "",
    ]
    if violations:
        out.append("TOP ISSUES:")
        for idx, (rule, count, severity) in enumerate(_top_rules(violations)[:TOP_ISSUES_LIMIT], start=1):
            out.append(f"{idx}. [{severity.label}] {rule}: {count} violations")
        out.append("")
    out.append(f"Files analyzed: {result.files_analyzed} | Duration: {result.duration:.2f}s")
    return "\n".join(out) + "\n"


def _top_rules(violations: ViolationList) -> list[tuple[str, int, Severity]]:
    worst: dict[str, Severity] = {}
    for violation in violations:
        worst[violation.rule] = max(worst.get(violation.rule, Severity.LOW), violation.severity)
    counts = Counter(v.rule for v in violations)
    return sorted(
        ((rule, count, worst[rule]) for rule, count in counts.items()),
        key=lambda item: (-item[2], -item[1], item[0]),
    )


def write_report(payload: dict[str, Any] | str, out: str | None) -> None:
    rendered = payload if isinstance(payload, str) else json.dumps(payload, indent=2)
    if out is None:
        print(rendered, end="" if rendered.endswith("\n") else "\n")
        return
    output_path = Path(out)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(rendered, encoding="utf-8")


def _severity_to_level(severity: Severity) -> str:
    mapping = {
        Severity.LOW: "note",
        Severity.MEDIUM: "warning",
        Severity.HIGH: "error",
        Severity.CRITICAL: "error",
    }
    return mapping.get(severity, "warning")
