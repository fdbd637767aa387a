"""Bundle source files with their related inputs, types and schema models."""

from .aggregator import Aggregator
from .batch import BatchDriver, WatchLoop
from .filters import FileFilter
from .matcher import RelatedFileMatcher, RoleLocation
from .models import RunResult, RunState, SourcePath
from .naming import derive_candidates
from .schema import SchemaModelStore

__all__ = [
    "Aggregator",
    "BatchDriver",
    "FileFilter",
    "RelatedFileMatcher",
    "RoleLocation",
    "RunResult",
    "RunState",
    "SchemaModelStore",
    "SourcePath",
    "WatchLoop",
    "derive_candidates",
]
