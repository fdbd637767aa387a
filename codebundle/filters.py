"""Path eligibility rules for bundling."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Tuple

DEFAULT_EXTENSIONS: Tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".prisma",
    ".graphql",
    ".py",
)


def _normalise_extension(value: str) -> str:
    value = value.strip()
    if value and not value.startswith("."):
        return f".{value}"
    return value


@dataclass(frozen=True)
class FileFilter:
    """Extension allow-list plus raw string-prefix exclusion."""

    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude_prefixes: Tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        extensions: Iterable[str] | None = None,
        exclude_prefixes: Iterable[str] | None = None,
    ) -> "FileFilter":
        exts = tuple(
            ext for ext in (_normalise_extension(e) for e in extensions or ()) if ext
        )
        prefixes = tuple(p for p in exclude_prefixes or () if p)
        return cls(extensions=exts or DEFAULT_EXTENSIONS, exclude_prefixes=prefixes)

    def admit(self, path: str | Path) -> bool:
        return self.has_allowed_extension(path) and not self.is_excluded(path)

    def has_allowed_extension(self, path: str | Path) -> bool:
        return Path(path).suffix in self.extensions

    def is_excluded(self, path: str | Path) -> bool:
        # Raw string prefix: "scr" also excludes "scripts/foo.ts".
        return any(
            spelling.startswith(prefix)
            for spelling in _spellings(str(path))
            for prefix in self.exclude_prefixes
        )


def _spellings(text: str) -> Tuple[str, ...]:
    """Return ``text`` with and without a leading ``./``.

    ``Path`` drops the ``./`` that ``find .`` style walks print, so a prefix
    written as ``./scripts`` must still match ``scripts/foo.ts``.
    """
    if text.startswith("./"):
        return (text, text[2:])
    if os.path.isabs(text):
        return (text,)
    return (text, f"./{text}")


__all__ = ["DEFAULT_EXTENSIONS", "FileFilter"]
