from __future__ import annotations

from dataclasses import dataclass
import hashlib
import re
import threading
from typing import Iterator

from glint.context import FileRecord
from glint.models import Severity, Violation
from glint.rules.base import BaseRule

FINGERPRINT_LENGTH = 16
DEFAULT_MIN_WINDOW_CHARS = 150
DEFAULT_MIN_NON_TRIVIAL_LINES = 4
MIN_SIGNIFICANT_LINE_LENGTH = 15

TRIVIAL_LINES = {
    "{", "}", "(", ")", "[", "]",
    "else {", "} else {", "} else if",
    "default:", "break", "continue",
    "return", "return nil", "return false", "return true",
    "return err", "return result", "return v",
    "if err != nil {", "if !ok {", "if ok {",
    "defer func() {", "}()",
}
_SPACE_RUN = re.compile(r" {2,}")


def normalize_line(line: str) -> str:
    return _SPACE_RUN.sub(" ", line.strip())


def is_trivial_line(line: str) -> bool:
    """Boilerplate that should never anchor a duplicate on its own. Expects a normalized line."""
    if not line or line in TRIVIAL_LINES:
        return True
    if line.endswith(",") and len(line) < 50:
        return True
    if "`json:" in line or "`xml:" in line:
        return True
    if len(line) < MIN_SIGNIFICANT_LINE_LENGTH:
        return True
    return line.startswith(("//", "/*"))


def fingerprint(window: tuple[str, ...]) -> str:
    digest = hashlib.sha256()
    for line in window:
        digest.update(line.encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()[:FINGERPRINT_LENGTH]


@dataclass(frozen=True, slots=True)
class BlockLocation:
    file_path: str
    start_line: int
    end_line: int
    content: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class DuplicateMatch:
    fingerprint: str
    block: BlockLocation
    original: BlockLocation


class WindowFilter:
    """Decides which sliding windows are worth fingerprinting."""

    def __init__(
        self,
        size: int,
        min_non_trivial_lines: int = DEFAULT_MIN_NON_TRIVIAL_LINES,
        min_chars: int = DEFAULT_MIN_WINDOW_CHARS,
    ) -> None:
        self.size = size
        self.min_non_trivial_lines = min_non_trivial_lines
        self.min_chars = min_chars

    def is_trivial(self, window: tuple[str, ...]) -> bool:
        non_trivial = sum(1 for line in window if not is_trivial_line(line))
        total_chars = sum(len(line) for line in window)
        required = max(len(window) // 2, self.min_non_trivial_lines)
        return non_trivial < required or total_chars < self.min_chars

    def windows(self, normalized: list[str]) -> Iterator[tuple[int, tuple[str, ...], str]]:
        """Yield ``(start_index, window, fingerprint)`` for every non-trivial window."""
        for start in range(len(normalized) - self.size + 1):
            if is_trivial_line(normalized[start]):
                continue
            window = tuple(normalized[start : start + self.size])
            if self.is_trivial(window):
                continue
            yield start, window, fingerprint(window)


class DuplicateIndex:
    """Run-wide fingerprint index shared by every file the cross-file rule sees.

    ``register`` takes the lock once per file: it reports windows already
    known under another path (naming the earliest-seen location as the
    original, each fingerprint at most once) and then records all of the
    file's windows.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._blocks: dict[str, list[BlockLocation]] = {}
        self._reported: set[str] = set()

    def register(self, file_path: str, blocks: dict[str, BlockLocation]) -> list[DuplicateMatch]:
        matches: list[DuplicateMatch] = []
        with self._lock:
            for fp, block in blocks.items():
                known = self._blocks.setdefault(fp, [])
                if fp not in self._reported:
                    for existing in known:
                        if existing.file_path == file_path:
                            continue
                        # Guard against truncated-hash collisions.
                        if existing.content != block.content:
                            continue
                        self._reported.add(fp)
                        matches.append(DuplicateMatch(fingerprint=fp, block=block, original=existing))
                        break
                if not any(loc.file_path == file_path and loc.start_line == block.start_line for loc in known):
                    known.append(block)
        return matches

    def reset(self) -> None:
        with self._lock:
            self._blocks = {}
            self._reported = set()

    def locations(self, fp: str) -> list[BlockLocation]:
        with self._lock:
            return list(self._blocks.get(fp, ()))

    def is_reported(self, fp: str) -> bool:
        with self._lock:
            return fp in self._reported

    def __len__(self) -> int:
        with self._lock:
            return len(self._blocks)


def coalesce(matches: list[DuplicateMatch]) -> list[tuple[DuplicateMatch, int, int]]:
    """Merge overlapping windows that continue the same duplicate run.

    Returns ``(first_match, original_end, block_end)`` per run.
    """
    runs: list[tuple[DuplicateMatch, int, int]] = []
    for match in sorted(matches, key=lambda m: (m.original.file_path, m.block.start_line)):
        if runs:
            first, original_end, block_end = runs[-1]
            same_file = first.original.file_path == match.original.file_path
            same_offset = (
                first.block.start_line - first.original.start_line
                == match.block.start_line - match.original.start_line
            )
            if same_file and same_offset and match.block.start_line <= block_end + 1:
                runs[-1] = (first, max(original_end, match.original.end_line), max(block_end, match.block.end_line))
                continue
        runs.append((match, match.original.end_line, match.block.end_line))
    runs.sort(key=lambda run: run[0].block.start_line)
    return runs


class _DuplicationRule(BaseRule):
    category = "duplication"
    default_block_size = 10

    def __init__(self) -> None:
        super().__init__()
        self.min_block_size = self.default_block_size

    def configure(self, settings: dict) -> None:
        super().configure(settings)
        self.min_block_size = max(self.get_int("min_block_size", self.default_block_size), 2)

    def window_filter(self) -> WindowFilter:
        return WindowFilter(
            self.min_block_size,
            min_non_trivial_lines=self.get_int("min_non_trivial_lines", DEFAULT_MIN_NON_TRIVIAL_LINES),
            min_chars=self.get_int("min_window_chars", DEFAULT_MIN_WINDOW_CHARS),
        )


class DuplicateBlockRule(_DuplicationRule):
    name = "duplicate-block"
    description = "Detects duplicate code blocks within the same file (copy-paste detection)"
    default_severity = Severity.MEDIUM
    default_block_size = 8

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if record.is_test_file() or len(record.lines) < self.min_block_size * 2:
            return []
        normalized = [normalize_line(line) for line in record.lines]
        size = self.min_block_size

        occurrences: dict[str, list[tuple[int, tuple[str, ...]]]] = {}
        for start, window, fp in self.window_filter().windows(normalized):
            occurrences.setdefault(fp, []).append((start, window))

        matches: list[DuplicateMatch] = []
        for fp, found in occurrences.items():
            # Anchors are keyed by content so a truncated-hash collision cannot hide a real pair.
            anchors: dict[tuple[str, ...], int] = {}
            reported: set[tuple[str, ...]] = set()
            for start, window in found:
                first_start = anchors.setdefault(window, start)
                if window in reported or start < first_start + size:
                    continue
                reported.add(window)
                matches.append(
                    DuplicateMatch(
                        fingerprint=fp,
                        block=BlockLocation(record.rel_path, start + 1, start + size, window),
                        original=BlockLocation(record.rel_path, first_start + 1, first_start + size, window),
                    )
                )

        violations: list[Violation] = []
        for match, original_end, block_end in coalesce(matches):
            length = block_end - match.block.start_line + 1
            original = match.original
            violations.append(
                self.create_violation(
                    record.rel_path,
                    match.block.start_line,
                    f"Duplicate block ({length} lines) - same as lines {original.start_line}-{original_end}",
                    end_line=block_end,
                    code=record.line(match.block.start_line),
                    suggestion="Extract duplicate code into a shared function",
                    metadata={
                        "first_start": original.start_line,
                        "first_end": original_end,
                        "block_size": length,
                    },
                )
            )
        return violations


class CrossFileDuplicateRule(_DuplicationRule):
    name = "cross-file-duplicate"
    description = "Detects duplicate code blocks across different files"
    default_severity = Severity.HIGH
    default_block_size = 10

    def __init__(self, index: DuplicateIndex | None = None) -> None:
        super().__init__()
        self.index = index if index is not None else DuplicateIndex()

    def reset(self) -> None:
        self.index.reset()

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if not record.is_go_file() or record.is_test_file():
            return []
        if len(record.lines) < self.min_block_size:
            return []
        normalized = [normalize_line(line) for line in record.lines]
        size = self.min_block_size

        blocks: dict[str, BlockLocation] = {}
        for start, window, fp in self.window_filter().windows(normalized):
            if fp not in blocks:
                blocks[fp] = BlockLocation(record.rel_path, start + 1, start + size, window)

        violations: list[Violation] = []
        for match, original_end, block_end in coalesce(self.index.register(record.rel_path, blocks)):
            original = match.original
            violations.append(
                self.create_violation(
                    record.rel_path,
                    match.block.start_line,
                    f"Cross-file duplicate: same as {original.file_path}:{original.start_line}-{original_end}",
                    end_line=block_end,
                    code=record.line(match.block.start_line),
                    suggestion="Extract to shared package or utility function",
                    metadata={
                        "original_file": original.file_path,
                        "original_start": original.start_line,
                        "original_end": original_end,
                        "block_size": block_end - match.block.start_line + 1,
                    },
                )
            )
        return violations
