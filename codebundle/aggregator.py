"""Single-run aggregation of primary files, schema models and companions."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from .config import BundleConfig
from .filters import FileFilter
from .logging import get_logger
from .matcher import RelatedFileMatcher, RoleLocation
from .models import RelatedMatch, RunResult, RunState, SourcePath
from .naming import capitalize_first
from .scanner import DirectoryWalker
from .schema import SchemaModelStore


class Aggregator:
    """Composes one de-duplicated text stream from a set of input paths."""

    def __init__(
        self,
        file_filter: FileFilter | None = None,
        schema: SchemaModelStore | None = None,
        matcher: RelatedFileMatcher | None = None,
        walker: DirectoryWalker | None = None,
        comment_prefix: str = "//",
    ) -> None:
        self.file_filter = file_filter or FileFilter()
        self.schema = schema
        self.walker = walker or DirectoryWalker()
        self.matcher = matcher or RelatedFileMatcher(self.file_filter, self.walker)
        self.comment_prefix = comment_prefix
        self.logger = get_logger("aggregator")

    @classmethod
    def from_config(
        cls,
        config: BundleConfig,
        *,
        extensions: Sequence[str] | None = None,
        exclude_prefixes: Sequence[str] | None = None,
        schema_path: Path | None = None,
    ) -> "Aggregator":
        """Build an aggregator from configuration, with optional overrides."""
        file_filter = FileFilter.build(
            extensions or config.extensions,
            exclude_prefixes if exclude_prefixes is not None else config.exclude_prefixes,
        )
        walker = DirectoryWalker(config.prune_dirs)
        roles = None
        if config.roles is not None:
            roles = [RoleLocation(role.directory, role.suffix) for role in config.roles]
        matcher = RelatedFileMatcher(file_filter, walker, roles)
        schema_file = schema_path or config.schema
        schema = SchemaModelStore.from_path(schema_file) if schema_file else None
        return cls(
            file_filter=file_filter,
            schema=schema,
            matcher=matcher,
            walker=walker,
            comment_prefix=config.comment_prefix,
        )

    def run(
        self,
        paths: Sequence[str | Path],
        extra_roots: Sequence[str | Path] = (),
        name_filter: str | None = None,
    ) -> RunResult:
        """Emit every admitted primary, then companions of the named ones."""
        state = RunState()
        result = RunResult(schema_used=self.schema is not None)
        chunks: List[str] = []
        named: List[SourcePath] = []

        for raw in paths:
            path = Path(raw).expanduser()
            if path.is_file():
                if self.file_filter.is_excluded(path):
                    self.logger.debug("Excluded %s", path)
                    continue
                primary = SourcePath(path)
                if self._emit_primary(primary, state, chunks, result):
                    named.append(primary)
            elif path.is_dir():
                for file_path in self.walker.iter_files(path):
                    if not self.file_filter.admit(file_path):
                        continue
                    if name_filter is not None and not self.matcher.matches_name(
                        file_path, name_filter
                    ):
                        continue
                    primary = SourcePath(file_path)
                    emitted = self._emit_primary(primary, state, chunks, result)
                    if emitted and name_filter is not None:
                        named.append(primary)
            else:
                self.logger.debug("Ignoring missing path %s", path)

        for primary in named:
            for match in self.matcher.find_fixed(primary, state):
                self._emit_related(match, chunks, result)
            if extra_roots:
                for match in self.matcher.find_related(primary, extra_roots, state):
                    self._emit_related(match, chunks, result)

        result.models = list(state.model_order)
        chunks.append(self._summary(result))
        result.text = "".join(chunks)
        self.logger.debug(
            "Run finished: %d files, %d skipped, %d models",
            result.files_processed,
            result.files_skipped,
            result.model_count,
        )
        return result

    def _emit_primary(
        self,
        primary: SourcePath,
        state: RunState,
        chunks: List[str],
        result: RunResult,
    ) -> bool:
        if not state.claim_path(primary):
            return False
        content = self._read(primary.raw, result)
        if content is None:
            return False
        if self.schema is not None:
            model = self.schema.extract_model(
                capitalize_first(primary.base_name), state
            )
            if model is not None:
                chunks.append(model.text)
        chunks.append(self._block(f"File: {primary.raw}", content))
        result.files_processed += 1
        result.emitted.append(primary.raw)
        return True

    def _emit_related(
        self, match: RelatedMatch, chunks: List[str], result: RunResult
    ) -> None:
        content = self._read(match.path, result)
        if content is None:
            return
        chunks.append(self._block(f"Related ({match.candidate}): {match.path}", content))
        result.files_processed += 1
        result.emitted.append(match.path)

    def _read(self, path: Path, result: RunResult) -> Optional[str]:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Skipping unreadable file %s: %s", path, exc)
            result.files_skipped += 1
            return None
        if not content.strip():
            self.logger.debug("Skipping empty file %s", path)
            result.files_skipped += 1
            return None
        return content

    def _block(self, header: str, content: str) -> str:
        if not content.endswith("\n"):
            content += "\n"
        return f"{self.comment_prefix} {header}\n{content}\n"

    def _summary(self, result: RunResult) -> str:
        if result.is_empty:
            return f"{self.comment_prefix} Summary: no content found\n"
        summary = f"{self.comment_prefix} Summary: {result.files_processed} files processed"
        if result.schema_used:
            summary += f", {result.model_count} unique models"
            if result.models:
                summary += f" ({', '.join(result.models)})"
        return summary + "\n"


__all__ = ["Aggregator"]
