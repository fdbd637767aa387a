"""Batch bundling per base name, with an optional polling watch loop."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .aggregator import Aggregator
from .config import DEFAULT_ARTIFACT_EXTENSION, DEFAULT_OUTPUT_DIR
from .logging import get_logger
from .models import BatchResult
from .naming import base_name_of, derive_candidates
from .scanner import DirectoryWalker


class BatchDriver:
    """Runs the aggregator once per base name found in a scan directory."""

    def __init__(
        self,
        aggregator: Aggregator,
        output_dir: Path = DEFAULT_OUTPUT_DIR,
        artifact_extension: str = DEFAULT_ARTIFACT_EXTENSION,
    ) -> None:
        self.aggregator = aggregator
        self.output_dir = Path(output_dir).expanduser()
        self.artifact_extension = artifact_extension.lstrip(".")
        self.logger = get_logger("batch")

    def base_names(self, scan_dir: str | Path) -> List[str]:
        """Return the base names of the immediate files in ``scan_dir``."""
        scan_path = Path(scan_dir).expanduser()
        if not scan_path.is_dir():
            raise NotADirectoryError(f"Scan directory not found: {scan_dir}")
        names: List[str] = []
        with os.scandir(scan_path) as entries:
            for entry in entries:
                if not entry.is_file():
                    continue
                name = base_name_of(entry.name)
                if name and name not in names:
                    names.append(name)
        return names

    def artifact_path(self, base_name: str) -> Path:
        return self.output_dir / f"{base_name}-code.{self.artifact_extension}"

    def run_one(
        self,
        base_name: str,
        paths: Sequence[str | Path],
        extra_roots: Sequence[str | Path] = (),
    ) -> Optional[Path]:
        """Write the bundle for ``base_name``; return None when it had no content."""
        result = self.aggregator.run(paths, extra_roots, name_filter=base_name)
        target = self.artifact_path(base_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        header = f"{self.aggregator.comment_prefix} codebundle: {base_name}\n"
        target.write_text(header + result.text, encoding="utf-8")
        if result.is_empty:
            target.unlink()
            self.logger.info("No content for %s; removed %s", base_name, target)
            return None
        self.logger.info(
            "Wrote %s (%d files, %d models)",
            target,
            result.files_processed,
            result.model_count,
        )
        return target

    def run_all(
        self,
        scan_dir: str | Path,
        paths: Sequence[str | Path],
        extra_roots: Sequence[str | Path] = (),
    ) -> BatchResult:
        batch = BatchResult()
        for base_name in self.base_names(scan_dir):
            written = self.run_one(base_name, paths, extra_roots)
            if written is None:
                batch.deleted.append(self.artifact_path(base_name))
                batch.skipped.append(base_name)
            else:
                batch.written.append(written)
        return batch


class WatchLoop:
    """Re-bundles base names whose files changed, polling on a fixed interval."""

    def __init__(
        self,
        driver: BatchDriver,
        scan_dir: str | Path,
        watch_dirs: Sequence[str | Path],
        paths: Sequence[str | Path],
        extra_roots: Sequence[str | Path] = (),
        *,
        interval: float = 1.0,
        debounce: float = 2.0,
        walker: DirectoryWalker | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.driver = driver
        self.scan_dir = Path(scan_dir).expanduser()
        self.watch_dirs = [Path(item).expanduser() for item in watch_dirs]
        self.paths = list(paths)
        self.extra_roots = list(extra_roots)
        self.interval = interval
        self.debounce = debounce
        self.walker = walker or DirectoryWalker()
        self._clock = clock
        self._sleep = sleep
        self._previous: Optional[Dict[str, int]] = None
        self._pending: Dict[str, None] = {}
        self._last_batch: Optional[float] = None
        self.logger = get_logger("watch")

    def snapshot(self) -> Dict[str, int]:
        return self.walker.snapshot(self.watch_dirs)

    def implicated(self, changed: Iterable[str]) -> List[str]:
        """Map changed file paths to the scan-dir base names they belong to."""
        changed_names = {base_name_of(path) for path in changed}
        names: List[str] = []
        for base_name in self.driver.base_names(self.scan_dir):
            if changed_names.intersection(derive_candidates(base_name)):
                names.append(base_name)
        return names

    def tick(self) -> List[str]:
        """Poll once; return the base names re-bundled on this tick."""
        current = self.snapshot()
        previous = self._previous
        self._previous = current
        if previous is None:
            return []

        changed = _diff_snapshots(previous, current)
        if changed:
            self.logger.debug("Detected %d changed files", len(changed))
            try:
                implicated = self.implicated(changed)
            except NotADirectoryError as exc:
                self.logger.warning("%s; still watching", exc)
                implicated = []
            for name in implicated:
                self._pending[name] = None

        if not self._pending:
            return []
        now = self._clock()
        if self._last_batch is not None and now - self._last_batch < self.debounce:
            return []

        names = list(self._pending)
        self._pending.clear()
        for name in names:
            self.driver.run_one(name, self.paths, self.extra_roots)
        self._last_batch = self._clock()
        return names

    def run(self, *, initial_pass: bool = True, max_ticks: int | None = None) -> None:
        """Poll until interrupted, or for ``max_ticks`` ticks when given."""
        if initial_pass:
            self.driver.run_all(self.scan_dir, self.paths, self.extra_roots)
            self._last_batch = self._clock()
        self._previous = self.snapshot()
        self.logger.info(
            "Watching %s every %.1fs",
            ", ".join(str(item) for item in self.watch_dirs),
            self.interval,
        )
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            self._sleep(self.interval)
            self.tick()
            ticks += 1


def _diff_snapshots(previous: Dict[str, int], current: Dict[str, int]) -> List[str]:
    changed = [path for path, stamp in current.items() if previous.get(path) != stamp]
    changed.extend(path for path in previous if path not in current)
    return changed


__all__ = ["BatchDriver", "WatchLoop"]
