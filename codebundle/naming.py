"""Candidate name derivation for related-artifact lookup.

Source files follow inconsistent naming conventions: ``UserService.ts`` sits next
to ``user.inputs.ts`` and a ``model User`` schema block. The helpers here guess
which part of a file name is the entity shared by those artifacts.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Tuple

# Checked in order; the first suffix the name ends with is stripped.
ROLE_SUFFIXES: Tuple[str, ...] = (
    "Store",
    "Service",
    "Controller",
    "Resolver",
    "Provider",
    "Manager",
    "Helper",
    "Utils",
    "Util",
)

# Two adjacent capitalized words: "PeuplementDetails". "userDetails" has only one.
COMPOUND_PATTERN = re.compile(r"[A-Z][a-z]+[A-Z][a-z]+")

FIRST_WORD_PATTERN = re.compile(r"[A-Z][a-z]+")


def base_name_of(path: str | Path) -> str:
    """Return the file name with every extension removed."""
    name = Path(path).name
    if name.startswith("."):
        head, _, _ = name[1:].partition(".")
        return f".{head}"
    head, _, _ = name.partition(".")
    return head or name


def capitalize_first(name: str) -> str:
    """Upper-case only the first character, leaving the rest untouched."""
    return name[:1].upper() + name[1:]


def strip_role_suffix(base_name: str) -> str | None:
    """Return ``base_name`` without its role suffix, or None if it has none."""
    for suffix in ROLE_SUFFIXES:
        if base_name.endswith(suffix) and len(base_name) > len(suffix):
            return base_name[: -len(suffix)]
    return None


def is_compound(name: str) -> bool:
    return COMPOUND_PATTERN.search(name) is not None


def derive_candidates(base_name: str) -> Tuple[str, ...]:
    """Return the ordered, de-duplicated candidate names for ``base_name``.

    The first entry is always ``base_name`` itself. Names without a role suffix
    yield only that entry; suffixed names add the stripped entity name and its
    case variants, plus the leading word for compound names.
    """
    stripped = strip_role_suffix(base_name)
    if stripped is None:
        return (base_name,)

    candidates: List[str] = [base_name]
    compound = is_compound(stripped)
    if compound:
        candidates.append(stripped)
    else:
        candidates.append(stripped.lower())

    for candidate in list(candidates):
        variants = [capitalize_first(candidate)]
        # A compound must never collapse into one lowercase word.
        if not (compound and candidate == stripped):
            variants.insert(0, candidate.lower())
        for variant in variants:
            if variant not in candidates:
                candidates.append(variant)

    if compound:
        match = FIRST_WORD_PATTERN.search(stripped)
        if match is not None:
            for variant in (match.group(0), match.group(0).lower()):
                if variant not in candidates:
                    candidates.append(variant)

    return tuple(candidates)


__all__ = [
    "COMPOUND_PATTERN",
    "FIRST_WORD_PATTERN",
    "ROLE_SUFFIXES",
    "base_name_of",
    "capitalize_first",
    "derive_candidates",
    "is_compound",
    "strip_role_suffix",
]
