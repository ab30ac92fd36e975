from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import shutil
import subprocess
from typing import Protocol

from glint.context import FileRecord
from glint.models import Violation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Fix:
    """A textual edit. Lines are 1-based and inclusive; columns are 1-based, 0 means whole line."""

    file_path: str
    start_line: int
    end_line: int
    old_text: str
    new_text: str
    message: str = ""
    rule_name: str = ""
    start_column: int = 0
    end_column: int = 0
    violation: Violation | None = field(default=None, compare=False)

    @property
    def is_multiline(self) -> bool:
        return self.end_line > self.start_line

    @property
    def has_columns(self) -> bool:
        return self.start_column > 0 and self.end_column > 0


@dataclass(slots=True)
class FixResult:
    file_path: str
    fixes_applied: int = 0
    fixes: list[Fix] = field(default_factory=list)
    error: OSError | None = None


class Fixer(Protocol):
    rule_name: str

    def can_fix(self, violation: Violation) -> bool: ...

    def generate_fix(self, record: FileRecord, violation: Violation) -> Fix | None: ...


class FixerRegistry:
    def __init__(self) -> None:
        self._fixers: dict[str, Fixer] = {}

    def register(self, fixer: Fixer) -> None:
        self._fixers[fixer.rule_name] = fixer

    def get(self, rule_name: str) -> Fixer | None:
        return self._fixers.get(rule_name)

    def all(self) -> dict[str, Fixer]:
        return dict(self._fixers)

    def __contains__(self, rule_name: str) -> bool:
        return rule_name in self._fixers


def check_git_status(project_root: str) -> bool:
    """True when the working tree has uncommitted changes.

    A missing git binary or a directory outside any repository counts as
    "no uncommitted changes".
    """
    try:
        completed = subprocess.run(
            ["git", "status", "--porcelain"],
            cwd=project_root,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.debug("git status unavailable in %s: %s", project_root, exc)
        return False
    return bool(completed.stdout.strip())


class FixEngine:
    def __init__(self, registry: FixerRegistry, dry_run: bool = True) -> None:
        self.registry = registry
        self.dry_run = dry_run

    def generate_fixes(self, violations: list[Violation], records: Mapping[str, FileRecord]) -> list[Fix]:
        fixes: list[Fix] = []
        for violation in violations:
            fixer = self.registry.get(violation.rule)
            if fixer is None or not fixer.can_fix(violation):
                continue
            record = records.get(violation.file_path)
            if record is None:
                continue
            fix = fixer.generate_fix(record, violation)
            if fix is not None:
                fixes.append(fix)
        return fixes

    def apply_fixes(self, fixes: list[Fix]) -> list[FixResult]:
        return [self._apply_to_file(path, file_fixes) for path, file_fixes in _group_by_file(fixes).items()]

    def preview(self, fixes: list[Fix]) -> str:
        if not fixes:
            return "No fixes available.\n"
        by_file = _group_by_file(fixes)
        out = [f"PROPOSED FIXES ({len(fixes)} changes in {len(by_file)} files):", ""]
        cwd = os.getcwd()
        for path, file_fixes in by_file.items():
            shown = _display_path(path, cwd)
            for fix in file_fixes:
                out.append(f"  {shown}:{fix.start_line} [{fix.rule_name}]")
                for old_line in fix.old_text.split("\n"):
                    out.append(f"    - {old_line}")
                for new_line in fix.new_text.split("\n"):
                    out.append(f"    + {new_line}")
                out.append("")
        if self.dry_run:
            out.append("Run with --apply to write these changes.")
        return "\n".join(out) + "\n"

    def _apply_to_file(self, path: str, fixes: list[Fix]) -> FixResult:
        result = FixResult(file_path=path, fixes=list(fixes))
        try:
            # Undecodable bytes round-trip unchanged.
            with open(path, encoding="utf-8", errors="surrogateescape", newline="") as fh:
                content = fh.read()
        except OSError as exc:
            logger.warning("unable to read %s for fixing: %s", path, exc)
            result.error = exc
            return result

        lines = content.split("\n")
        # Bottom-up so that edits never shift the line numbers of fixes still pending.
        for fix in sorted(fixes, key=lambda item: item.start_line, reverse=True):
            if _apply_fix(lines, fix):
                result.fixes_applied += 1
            else:
                logger.debug("skipping stale fix at %s:%d [%s]", path, fix.start_line, fix.rule_name)

        if self.dry_run or result.fixes_applied == 0:
            return result
        try:
            _atomic_write(Path(path), "\n".join(lines))
        except OSError as exc:
            logger.warning("unable to write %s: %s", path, exc)
            result.error = exc
        return result


def _apply_fix(lines: list[str], fix: Fix) -> bool:
    if fix.start_line < 1 or fix.start_line > len(lines):
        return False
    start = fix.start_line - 1

    if fix.is_multiline:
        if fix.end_line > len(lines):
            return False
        end = fix.end_line
        current = "\n".join(lines[start:end])
        first_old_line = fix.old_text.split("\n", 1)[0]
        # A blank first line proves nothing, so it needs an exact match.
        if current != fix.old_text and (not first_old_line.strip() or not current.startswith(first_old_line)):
            return False
        lines[start:end] = fix.new_text.split("\n")
        return True

    line = lines[start]
    if fix.has_columns:
        col_start = fix.start_column - 1
        col_end = fix.end_column - 1
        if col_start >= len(line) or col_end > len(line) or col_start > col_end:
            return False
        replaced = line[:col_start] + fix.new_text + line[col_end:]
    else:
        if fix.old_text not in line:
            return False
        replaced = line.replace(fix.old_text, fix.new_text, 1)
    lines[start : start + 1] = replaced.split("\n")
    return True


def _atomic_write(path: Path, content: str) -> None:
    tmp = path.with_suffix(path.suffix + ".glint.tmp")
    try:
        with open(tmp, "w", encoding="utf-8", errors="surrogateescape", newline="") as fh:
            fh.write(content)
        shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def _group_by_file(fixes: list[Fix]) -> dict[str, list[Fix]]:
    by_file: dict[str, list[Fix]] = {}
    for fix in fixes:
        by_file.setdefault(fix.file_path, []).append(fix)
    return by_file


def _display_path(path: str, cwd: str) -> str:
    try:
        return os.path.relpath(path, cwd)
    except ValueError:
        return path
