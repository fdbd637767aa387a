"""Core data models shared across codebundle components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from .naming import base_name_of


@dataclass(frozen=True)
class SourcePath:
    """A candidate source file as seen by the engine."""

    raw: Path

    @classmethod
    def of(cls, path: str | Path) -> "SourcePath":
        return cls(raw=Path(path))

    @property
    def base_name(self) -> str:
        return base_name_of(self.raw)

    @property
    def parent(self) -> Path:
        return self.raw.parent

    @property
    def extension(self) -> str:
        return self.raw.suffix

    def key(self) -> str:
        """Return the absolute path used for de-duplication."""
        return str(self.raw.expanduser().resolve())


@dataclass(frozen=True)
class SchemaModel:
    """A named model block extracted from a schema document."""

    name: str
    text: str


@dataclass(frozen=True)
class RelatedMatch:
    """A companion file discovered for a primary file."""

    path: Path
    candidate: str
    origin: str


@dataclass
class RunState:
    """Per-run trackers; one instance per aggregator run, never shared."""

    processed: Set[str] = field(default_factory=set)
    models: Set[str] = field(default_factory=set)
    model_order: List[str] = field(default_factory=list)

    def claim_path(self, path: SourcePath) -> bool:
        """Mark ``path`` as emitted; return False if it already was."""
        key = path.key()
        if key in self.processed:
            return False
        self.processed.add(key)
        return True

    def has_model(self, name: str) -> bool:
        return name in self.models

    def claim_model(self, name: str) -> bool:
        if name in self.models:
            return False
        self.models.add(name)
        self.model_order.append(name)
        return True


@dataclass
class RunResult:
    """Summary of a single aggregator run."""

    files_processed: int = 0
    files_skipped: int = 0
    models: List[str] = field(default_factory=list)
    emitted: List[Path] = field(default_factory=list)
    text: str = ""
    schema_used: bool = False

    @property
    def model_count(self) -> int:
        return len(self.models)

    @property
    def is_empty(self) -> bool:
        return self.files_processed == 0 and not self.models


@dataclass
class BatchResult:
    """Artifacts written or removed by a batch pass."""

    written: List[Path] = field(default_factory=list)
    deleted: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def artifact_for(self, base_name: str) -> Optional[Path]:
        for path in self.written:
            if path.name.startswith(f"{base_name}-code."):
                return path
        return None
