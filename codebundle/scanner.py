"""Directory walking and file listing utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Sequence

from .logging import get_logger
from .naming import base_name_of

_LOGGER = get_logger("scanner")

DEFAULT_PRUNE_DIRS: FrozenSet[str] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".venv",
        "node_modules",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".idea",
    }
)

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}


@dataclass(frozen=True)
class PruneRule:
    """A glob matched against each segment of a relative path."""

    pattern: str

    def matches(self, rel_path: str) -> bool:
        if not self.pattern:
            return False
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


# Hidden entries, assets, coverage output, node_modules and mobile platform trees.
FIND_PRUNE_RULES: tuple[PruneRule, ...] = (
    PruneRule(".*"),
    PruneRule("*asset*"),
    PruneRule("coverage*"),
    PruneRule("node_modules*"),
    PruneRule("ios*"),
    PruneRule("android*"),
)


class DirectoryWalker:
    """Recursive file enumeration in file-system order."""

    def __init__(self, prune_dirs: Iterable[str] | None = None) -> None:
        self.prune_dirs = (
            frozenset(prune_dirs) if prune_dirs is not None else DEFAULT_PRUNE_DIRS
        )

    def iter_files(self, root: str | Path) -> Iterator[Path]:
        """Yield files under ``root``, joined onto ``root`` as given."""
        root_path = Path(root)
        for dirpath, dirnames, filenames in os.walk(root_path):
            dirnames[:] = [name for name in dirnames if name not in self.prune_dirs]
            current_dir = Path(dirpath)
            for filename in filenames:
                if filename in _EXCLUDED_FILES:
                    continue
                yield current_dir / filename

    def index_by_base_name(self, root: str | Path) -> Dict[str, List[Path]]:
        """Group the files under ``root`` by base name, keeping walk order."""
        index: Dict[str, List[Path]] = {}
        for path in self.iter_files(root):
            index.setdefault(base_name_of(path), []).append(path)
        return index

    def snapshot(self, roots: Sequence[str | Path]) -> Dict[str, int]:
        """Return ``path -> mtime_ns`` for every file under ``roots``."""
        stamps: Dict[str, int] = {}
        for root in roots:
            if not Path(root).is_dir():
                continue
            for path in self.iter_files(root):
                try:
                    stamps[str(path)] = path.stat().st_mtime_ns
                except FileNotFoundError:
                    # Removed between listing and stat.
                    continue
        return stamps


def _should_prune(rel_path: str, rules: Sequence[PruneRule]) -> bool:
    return any(rule.matches(rel_path) for rule in rules)


def find_paths(
    root: str | Path = ".", rules: Sequence[PruneRule] = FIND_PRUNE_RULES
) -> Iterator[str]:
    """List ``root`` and everything below it, pre-order, like ``find -print``.

    Entries matching any prune rule are skipped together with their subtree.
    """
    root_str = str(root)
    yield root_str
    yield from _find_below(Path(root), "", root_str, rules)


def _find_below(
    directory: Path, rel_dir: str, display_dir: str, rules: Sequence[PruneRule]
) -> Iterator[str]:
    try:
        entries = list(os.scandir(directory))
    except OSError as exc:
        _LOGGER.debug("Cannot list %s: %s", directory, exc)
        return
    for entry in entries:
        rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
        if _should_prune(rel_path, rules):
            continue
        display = f"{display_dir.rstrip('/')}/{entry.name}"
        yield display
        if entry.is_dir(follow_symlinks=False):
            yield from _find_below(Path(entry.path), rel_path, display, rules)


__all__ = [
    "DEFAULT_PRUNE_DIRS",
    "DirectoryWalker",
    "FIND_PRUNE_RULES",
    "PruneRule",
    "find_paths",
]
