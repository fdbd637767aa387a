"""Companion file discovery for primary source files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence, Tuple

from .filters import FileFilter
from .logging import get_logger
from .models import RelatedMatch, RunState, SourcePath
from .naming import base_name_of, derive_candidates
from .scanner import DirectoryWalker


@dataclass(frozen=True)
class RoleLocation:
    """A fixed companion location: ``<dir>/<role dir>/<name><suffix><ext>``."""

    directory: str
    suffix: str


DEFAULT_ROLE_LOCATIONS: Tuple[RoleLocation, ...] = (
    RoleLocation(directory="input", suffix=".inputs"),
    RoleLocation(directory="types", suffix=".types"),
)


class RelatedFileMatcher:
    """Finds files sharing a derived entity name with a primary file."""

    def __init__(
        self,
        file_filter: FileFilter | None = None,
        walker: DirectoryWalker | None = None,
        role_locations: Sequence[RoleLocation] | None = None,
    ) -> None:
        self.file_filter = file_filter or FileFilter()
        self.walker = walker or DirectoryWalker()
        self.role_locations = (
            tuple(role_locations)
            if role_locations is not None
            else DEFAULT_ROLE_LOCATIONS
        )
        self.logger = get_logger("matcher")

    def matches_name(self, path: str | Path, name_filter: str) -> bool:
        """Return True when ``path`` carries one of ``name_filter``'s candidates."""
        return base_name_of(path) in derive_candidates(name_filter)

    def find_fixed(
        self, primary: SourcePath, state: RunState
    ) -> Iterator[RelatedMatch]:
        """Yield companions at the fixed role locations beside ``primary``."""
        candidates = derive_candidates(primary.base_name)
        for role in self.role_locations:
            role_dir = primary.parent / role.directory
            if not role_dir.is_dir():
                continue
            for candidate in candidates:
                target = role_dir / f"{candidate}{role.suffix}{primary.extension}"
                if not target.is_file() or not self.file_filter.admit(target):
                    continue
                if not state.claim_path(SourcePath.of(target)):
                    continue
                yield RelatedMatch(path=target, candidate=candidate, origin=role.directory)

    def find_related(
        self,
        primary: SourcePath,
        extra_roots: Sequence[str | Path],
        state: RunState,
    ) -> Iterator[RelatedMatch]:
        """Yield files under ``extra_roots`` whose base name is a candidate.

        Every root is searched with every candidate; a file already claimed in
        ``state`` (as a primary or an earlier match) is not yielded again.
        """
        candidates = derive_candidates(primary.base_name)
        for root in extra_roots:
            root_path = Path(root).expanduser()
            if not root_path.is_dir():
                self.logger.debug("Skipping missing extra root %s", root_path)
                continue
            index = self.walker.index_by_base_name(root_path)
            for candidate in candidates:
                for match in index.get(candidate, ()):
                    if not self.file_filter.admit(match):
                        continue
                    if not state.claim_path(SourcePath.of(match)):
                        continue
                    yield RelatedMatch(path=match, candidate=candidate, origin=str(root))


__all__ = ["DEFAULT_ROLE_LOCATIONS", "RelatedFileMatcher", "RoleLocation"]
