from __future__ import annotations

from dataclasses import replace
import logging
import os
from pathlib import Path
from queue import Queue
import threading
from typing import Iterator

from glint.config import Config, default_config
from glint.context import FileRecord
from glint.models import WalkerStats
from glint.parser import ParseCache

logger = logging.getLogger(__name__)

SKIP_DIR_NAMES = {
    ".git",
    ".svn",
    ".hg",
    "node_modules",
    "vendor",
    ".next",
    "out",
    "dist",
    "build",
    "bin",
    ".idea",
    ".vscode",
}
ANALYZABLE_EXTENSIONS = {".go", ".ts", ".tsx", ".js", ".jsx"}
PARSED_EXTENSIONS = {".go"}
QUEUE_SIZE = 100

_DONE = object()


class WalkError(Exception):
    def __init__(self, path: str, message: str, cause: OSError | None = None) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.cause = cause


def default_workers() -> int:
    return max(os.cpu_count() or 1, 1)


def is_analyzable(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in ANALYZABLE_EXTENSIONS


class Walker:
    """Discovers analyzable files under a root and turns them into FileRecords.

    Discovery runs on its own thread and only enqueues paths. A fixed pool of
    worker threads reads and parses them. A coordinator thread waits for the
    workers and then closes both output streams, so callers simply iterate
    until the streams end. Records arrive in completion order.
    """

    def __init__(
        self,
        project_root: str,
        config: Config | None = None,
        parse_cache: ParseCache | None = None,
        workers: int | None = None,
    ) -> None:
        root = Path(project_root).resolve()
        self._target = root
        self.project_root = str(root.parent if root.is_file() else root)
        self.config = config if config is not None else default_config()
        self.parse_cache = parse_cache if parse_cache is not None else ParseCache()
        self.workers = default_workers()
        if workers is not None:
            self.with_workers(workers)
        self._stats = WalkerStats()
        self._lock = threading.Lock()

    def with_workers(self, count: int) -> Walker:
        if count > 0:
            self.workers = count
        return self

    def stats(self) -> WalkerStats:
        with self._lock:
            return replace(self._stats)

    def walk(self) -> tuple[Iterator[FileRecord], Iterator[WalkError]]:
        """Start the walk and return ``(records, errors)`` streams.

        The record stream is bounded; drain it before (or while) draining the
        error stream.
        """
        with self._lock:
            self._stats = WalkerStats()
        paths: Queue = Queue(maxsize=QUEUE_SIZE)
        results: Queue = Queue(maxsize=QUEUE_SIZE)
        errors: Queue = Queue()

        workers = [
            threading.Thread(
                target=self._work,
                args=(paths, results, errors),
                name=f"glint-walker-{idx}",
                daemon=True,
            )
            for idx in range(self.workers)
        ]
        for thread in workers:
            thread.start()

        discovery = threading.Thread(
            target=self._discover,
            args=(paths, errors),
            name="glint-discovery",
            daemon=True,
        )
        discovery.start()

        def coordinate() -> None:
            for thread in workers:
                thread.join()
            results.put(_DONE)
            errors.put(_DONE)

        threading.Thread(target=coordinate, name="glint-walk-coordinator", daemon=True).start()
        return _drain(results), _drain(errors)

    def walk_sync(self) -> tuple[list[FileRecord], list[WalkError]]:
        records, errors = self.walk()
        collected = list(records)
        return collected, list(errors)

    def _discover(self, paths: Queue, errors: Queue) -> None:
        try:
            if not self._target.exists():
                errors.put(WalkError(str(self._target), "no such file or directory"))
                return
            if self._target.is_file():
                self._visit_file(str(self._target), paths)
                return
            for dirpath, dirnames, filenames in os.walk(self._target, onerror=_log_walk_error):
                dirnames[:] = sorted(name for name in dirnames if name not in SKIP_DIR_NAMES)
                for filename in sorted(filenames):
                    self._visit_file(os.path.join(dirpath, filename), paths)
        finally:
            for _ in range(self.workers):
                paths.put(_DONE)

    def _visit_file(self, path: str, paths: Queue) -> None:
        if not is_analyzable(path):
            return
        rel_path = os.path.relpath(path, self.project_root)
        if self.config.should_exclude(rel_path):
            with self._lock:
                self._stats.skipped += 1
            return
        with self._lock:
            self._stats.discovered += 1
        paths.put(path)

    def _work(self, paths: Queue, results: Queue, errors: Queue) -> None:
        while True:
            path = paths.get()
            if path is _DONE:
                return
            try:
                record = self._process(path)
            except OSError as exc:
                logger.warning("unable to read %s: %s", path, exc)
                with self._lock:
                    self._stats.errored += 1
                errors.put(WalkError(path, f"unable to read file: {exc}", exc))
                continue
            with self._lock:
                self._stats.parsed += 1
            results.put(record)

    def _process(self, path: str) -> FileRecord:
        with open(path, "rb") as fh:
            content = fh.read()
        record = FileRecord(path, self.project_root, content, self.config)
        if os.path.splitext(path)[1].lower() in PARSED_EXTENSIONS:
            result = self.parse_cache.parse(path, content)
            if result.error is not None:
                logger.debug("continuing without syntax tree: %s", result.error)
            record.attach_tree(result.tree)
        return record


def _drain(queue: Queue) -> Iterator:
    while True:
        item = queue.get()
        if item is _DONE:
            return
        yield item


def _log_walk_error(exc: OSError) -> None:
    logger.debug("skipping unreadable directory: %s", exc)
