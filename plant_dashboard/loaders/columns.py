"""
Column resolution: map whatever headers a user typed onto canonical fields.

Spellings are compared in snake_case form, so Title Case, snake_case and
camelCase variants of the same header resolve to one field.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from .utils import is_blank, to_snake_case

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnMap:
    """Canonical field -> 0-based column index for one header row."""

    indices: dict[str, int]
    unmatched: tuple[str, ...] = ()
    duplicates: tuple[str, ...] = field(default_factory=tuple)

    def __contains__(self, canonical: str) -> bool:
        return canonical in self.indices

    def get(self, canonical: str) -> int | None:
        return self.indices.get(canonical)


def build_alias_index(aliases: dict[str, Sequence[str]]) -> dict[str, str]:
    """Flatten canonical -> spellings into snake_case spelling -> canonical.

    The canonical name itself is always accepted as a spelling.
    """
    index: dict[str, str] = {}
    for canonical, spellings in aliases.items():
        for spelling in (canonical, *spellings):
            key = to_snake_case(spelling)
            owner = index.setdefault(key, canonical)
            if owner != canonical:
                raise ValueError(
                    f"Header alias '{spelling}' maps to both '{owner}' and '{canonical}'"
                )
    return index


def display_label(canonical: str, aliases: dict[str, Sequence[str]]) -> str:
    """Human-readable header for a canonical field (its first spelling)."""
    spellings = aliases.get(canonical)
    return spellings[0] if spellings else canonical


def resolve_columns(
    headers: Sequence[Any],
    aliases: dict[str, Sequence[str]],
) -> ColumnMap:
    """Resolve a header row against an alias table.

    Several headers may alias the same field; the leftmost one wins and the
    rest are recorded as duplicates. Headers matching no alias are recorded
    as unmatched. Fields without a column are simply absent.
    """
    alias_index = build_alias_index(aliases)
    indices: dict[str, int] = {}
    unmatched: list[str] = []
    duplicates: list[str] = []

    for col_idx, header in enumerate(headers):
        if is_blank(header):
            continue
        canonical = alias_index.get(to_snake_case(header))
        if canonical is None:
            unmatched.append(str(header).strip())
        elif canonical in indices:
            duplicates.append(str(header).strip())
        else:
            indices[canonical] = col_idx

    if duplicates:
        logger.debug("Ignoring duplicate headers (first match wins): %s", duplicates)

    return ColumnMap(
        indices=indices,
        unmatched=tuple(unmatched),
        duplicates=tuple(duplicates),
    )


def missing_required(
    columns: ColumnMap,
    required: Sequence[str],
    aliases: dict[str, Sequence[str]],
) -> list[str]:
    """Display labels of required fields that have no column."""
    return [display_label(name, aliases) for name in required if name not in columns]
