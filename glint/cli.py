from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import sys

from glint import __version__
from glint.config import (
    CONFIG_FILENAMES,
    OUTPUT_FORMATS,
    Config,
    ConfigError,
    find_config,
    load_config_with_defaults,
    validate_config,
)
from glint.fix.engine import FixEngine, check_git_status
from glint.models import ScanResult
from glint.reporters import render_console, render_summary, to_json_report, to_sarif_report, write_report
from glint.rules import RuleRegistry, default_registry
from glint.scanner import analyze, collect_fixes

logger = logging.getLogger(__name__)

SEVERITY_CHOICES = ["low", "medium", "high", "critical"]
INIT_TEMPLATE = """\
# glint configuration
version = 1

[settings]
exclude = ["vendor/**", "node_modules/**", "**/*_test.go"]
min_severity = "medium"
output = "console"
workers = 0

[categories.architecture]
enabled = true

[categories.patterns]
enabled = true

[categories.typesafety]
enabled = true

[categories.duplication]
enabled = true

[categories.naming]
enabled = true
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="glint", description="Static analysis for Go projects.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Analyze a project.")
    check.add_argument("path", nargs="?", default=".", help="Project root or single file.")
    check.add_argument("-c", "--category", help="Run only the specified category.")
    check.add_argument("-r", "--rule", help="Run only the specified rule.")
    check.add_argument("-s", "--min-severity", choices=SEVERITY_CHOICES, help="Minimum severity to report.")
    check.add_argument("-o", "--output", choices=OUTPUT_FORMATS, help="Output format.")
    check.add_argument("--out", help="Write the report to a file. Defaults to stdout.")
    check.add_argument("-j", "--workers", type=int, help="Number of parallel workers.")
    check.add_argument("-v", "--verbose", action="store_true", help="Show progress information.")

    rules = subparsers.add_parser("rules", help="List available rules.")
    rules.add_argument("-c", "--category", help="Filter by category.")

    explain = subparsers.add_parser("explain", help="Describe a rule.")
    explain.add_argument("rule", help="Rule name.")

    init = subparsers.add_parser("init", help="Create a default configuration file.")
    init.add_argument("path", nargs="?", default=".", help="Directory to create the file in.")

    config = subparsers.add_parser("config", help="Inspect configuration.")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    config_show = config_sub.add_parser("show", help="Print the effective configuration.")
    config_show.add_argument("path", nargs="?", default=".", help="Project root.")
    config_validate = config_sub.add_parser("validate", help="Validate the configuration file.")
    config_validate.add_argument("path", nargs="?", default=".", help="Project root.")

    fix = subparsers.add_parser("fix", help="Auto-fix issues that have fixers available.")
    fix.add_argument("path", nargs="?", default=".", help="Project root or single file.")
    fix.add_argument("--apply", action="store_true", help="Write fixes to disk (default is a dry run).")
    fix.add_argument("--force", action="store_true", help="Apply fixes even with uncommitted changes.")
    fix.add_argument("-r", "--rule", help="Fix only the specified rule.")
    fix.add_argument("-v", "--verbose", action="store_true", help="Show detailed output.")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=getattr(args, "verbose", False), debug=args.debug)

    handlers = {
        "check": run_check,
        "rules": run_rules,
        "explain": run_explain,
        "init": run_init,
        "config": run_config,
        "fix": run_fix,
    }
    try:
        exit_code = handlers[args.command](args)
    except ConfigError as exc:
        print(f"[config] {exc}", file=sys.stderr)
        exit_code = 2
    raise SystemExit(exit_code)


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def load_effective_config(path: str, args: argparse.Namespace | None = None) -> Config:
    config, config_path = load_config_with_defaults(path)
    if config_path is not None:
        logger.info("using configuration %s", config_path)
    if args is not None:
        if getattr(args, "min_severity", None):
            config.settings.min_severity = args.min_severity
        if getattr(args, "output", None):
            config.settings.output = args.output
        if getattr(args, "workers", None) is not None:
            config.settings.workers = args.workers
    # Bad severities degrade to low at use; an unknown output format falls back to console.
    for problem in validate_config(config):
        logger.warning("configuration: %s", problem)
    if config.settings.output not in OUTPUT_FORMATS:
        config.settings.output = "console"
    return config


def run_check(args: argparse.Namespace) -> int:
    config = load_effective_config(args.path, args)
    registry = default_registry()
    if args.rule and args.rule not in registry:
        print(f"unknown rule: {args.rule}", file=sys.stderr)
        return 2
    result = analyze(args.path, config, registry, category=args.category, rule=args.rule)
    if result.rules_run == 0:
        print("No rules enabled. Check your configuration.")
        return 0
    for error in result.errors:
        print(f"Warning: {error}", file=sys.stderr)

    write_report(render_report(result, config.settings.output, registry, verbose=args.verbose), args.out)
    return 1 if result.violations.has_critical() else 0


def render_report(result: ScanResult, output_format: str, registry: RuleRegistry, verbose: bool = False):
    if output_format == "sarif":
        return to_sarif_report(result, registry)
    if output_format == "json":
        return to_json_report(result)
    if output_format == "summary":
        return render_summary(result)
    if output_format == "console":
        return render_console(result, verbose=verbose)
    raise ValueError(f"Unsupported report format: {output_format}")


def run_rules(args: argparse.Namespace) -> int:
    registry = default_registry()
    rules = registry.by_category(args.category) if args.category else registry.all()
    if not rules:
        print("No rules found.")
        return 0

    print("AVAILABLE RULES")
    print("===============")
    current_category = ""
    for rule in rules:
        if rule.category != current_category:
            current_category = rule.category
            print(f"\n[{current_category}]")
        info = registry.rule_info(rule.name)
        autofix = " (auto-fix)" if info.has_auto_fix else ""
        print(f"  {info.name:<22} {info.description} [{info.severity.label}]{autofix}")
    print(f"\nTotal: {len(rules)} rules")
    return 0


def run_explain(args: argparse.Namespace) -> int:
    info = default_registry().rule_info(args.rule)
    if info is None:
        print(f"unknown rule: {args.rule}", file=sys.stderr)
        return 2
    print(f"RULE: {info.name}")
    print(f"CATEGORY: {info.category}")
    print(f"SEVERITY: {info.severity.label}")
    if info.has_auto_fix:
        print("AUTO-FIX: Available")
    print()
    print("DESCRIPTION:")
    print(f"  {info.description}")
    return 0


def run_init(args: argparse.Namespace) -> int:
    target = Path(args.path) / CONFIG_FILENAMES[0]
    if target.exists():
        print(f"{target} already exists", file=sys.stderr)
        return 1
    target.write_text(INIT_TEMPLATE, encoding="utf-8")
    print(f"Created {target}")
    return 0


def run_config(args: argparse.Namespace) -> int:
    if args.config_command == "validate":
        return run_config_validate(args)
    return run_config_show(args)


def run_config_show(args: argparse.Namespace) -> int:
    config, config_path = load_config_with_defaults(args.path)
    print("Effective configuration:")
    print(f"Source: {config_path if config_path is not None else '(built-in defaults)'}")
    print()
    print(f"Min severity: {config.settings.min_severity}")
    print(f"Output: {config.settings.output}")
    print(f"Workers: {config.settings.workers or 'auto'}")
    print()
    print("Excluded patterns:")
    for pattern in config.settings.exclude:
        print(f"  - {pattern}")
    print()
    print("Categories:")
    for name in sorted(config.categories):
        status = "enabled" if config.categories[name].enabled else "disabled"
        print(f"  {name}: {status}")
    return 0


def run_config_validate(args: argparse.Namespace) -> int:
    config_path = find_config(args.path)
    if config_path is None:
        print("No configuration file found")
        return 0
    # Unset fields fall back to defaults, so validate the merged result.
    config, _ = load_config_with_defaults(args.path)
    problems = validate_config(config)
    if problems:
        for problem in problems:
            print(f"[config] {problem}", file=sys.stderr)
        return 2
    print(f"Configuration valid: {config_path}")
    return 0


def run_fix(args: argparse.Namespace) -> int:
    project_root = os.path.abspath(args.path)
    if os.path.isfile(project_root):
        project_root = os.path.dirname(project_root)
    dry_run = not args.apply
    if not dry_run and not args.force and check_git_status(project_root):
        print("WARNING: You have uncommitted changes.")
        print("Use --force to apply fixes anyway, or commit your changes first.")
        print("Running in dry-run mode instead.")
        dry_run = True

    config = load_effective_config(args.path)
    registry = default_registry()
    if args.rule and registry.fixer_for(args.rule) is None:
        print(f"No fixer available for rule: {args.rule}")
        return 0

    engine = FixEngine(registry.fixer_registry(), dry_run=dry_run)
    fixes, result = collect_fixes(args.path, config, registry, engine, rule=args.rule)
    if not result.violations:
        print("No issues found that can be fixed.")
        return 0
    if not fixes:
        print("No automatic fixes available for the found issues.")
        return 0

    print(engine.preview(fixes), end="")
    if dry_run:
        return 0

    results = engine.apply_fixes(fixes)
    total_fixed = 0
    for fix_result in results:
        if fix_result.error is not None:
            print(f"Error fixing {fix_result.file_path}: {fix_result.error}", file=sys.stderr)
            continue
        total_fixed += fix_result.fixes_applied
        if args.verbose:
            print(f"Fixed {fix_result.fixes_applied} issues in {fix_result.file_path}")
    print(f"\nApplied {total_fixed} fixes in {len(results)} files.")
    return 0


if __name__ == "__main__":
    main()
