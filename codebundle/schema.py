"""Model block extraction from line-oriented schema documents."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .logging import get_logger
from .models import RunState, SchemaModel

_MODEL_HEADER = re.compile(r"^\s*model\s+(?P<name>\w+)\s*\{")

_OUTSIDE = "outside"
_INSIDE = "inside"


def _is_block_end(line: str) -> bool:
    return line.rstrip() == "}"


def parse_models(lines: Iterable[str]) -> Dict[str, str]:
    """Return ``name -> block`` for every ``model <Name> {`` block in ``lines``.

    Blocks hold the lines between the header and the first unindented ``}``,
    followed by a blank separator. The first block for a name wins.
    """
    blocks: Dict[str, str] = {}
    state = _OUTSIDE
    current: Optional[str] = None
    body: List[str] = []

    for raw in lines:
        line = raw.rstrip("\n")
        if state == _OUTSIDE:
            match = _MODEL_HEADER.match(line)
            if match is None:
                continue
            current = match.group("name")
            body = []
            state = _INSIDE
            continue
        if _is_block_end(line):
            if current is not None and current not in blocks:
                blocks[current] = _render_block(body)
            current = None
            state = _OUTSIDE
            continue
        body.append(line)

    # An unterminated block runs to the end of the document.
    if state == _INSIDE and current is not None and current not in blocks:
        blocks[current] = _render_block(body)
    return blocks


def _render_block(body: List[str]) -> str:
    return "\n".join(body) + "\n\n"


class SchemaModelStore:
    """Parses a schema document once and hands out model blocks per run."""

    def __init__(self, text: str, *, source: Path | None = None) -> None:
        self.source = source
        self._blocks = parse_models(text.splitlines())
        self.logger = get_logger("schema")

    @classmethod
    def from_path(cls, path: str | Path) -> "SchemaModelStore":
        schema_path = Path(path).expanduser()
        if not schema_path.is_file():
            raise FileNotFoundError(f"Schema document not found: {path}")
        return cls(schema_path.read_text(encoding="utf-8"), source=schema_path)

    def model_names(self) -> List[str]:
        return list(self._blocks)

    def lookup(self, name: str) -> Optional[str]:
        """Return the block for ``name`` without touching any run state."""
        return self._blocks.get(name)

    def extract_model(self, name: str, state: RunState) -> Optional[SchemaModel]:
        """Return the model the first time it is requested within ``state``."""
        if state.has_model(name):
            return None
        block = self.lookup(name)
        if block is None:
            self.logger.debug("No schema model named %s", name)
            return None
        state.claim_model(name)
        return SchemaModel(name=name, text=block)


__all__ = ["SchemaModelStore", "parse_models"]
