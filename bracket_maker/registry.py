from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable

from .models import Entrant

IdFactory = Callable[[], str]


def new_id() -> str:
    return uuid.uuid4().hex[:10]


def unique_names(raw: Iterable[object]) -> list[str]:
    """Trim, drop blanks and dedupe case-insensitively, keeping first-seen order."""
    seen: set[str] = set()
    names: list[str] = []
    for value in raw:
        name = str(value if value is not None else "").strip()
        if not name:
            continue
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        names.append(name)
    return names


def parse_entry_lines(text: str) -> list[str]:
    return unique_names(text.splitlines())


def register_entrants(
    raw: Iterable[object], *, id_factory: IdFactory = new_id
) -> list[Entrant]:
    return [Entrant(id=id_factory(), name=name) for name in unique_names(raw)]


def new_names_for(existing: Iterable[Entrant], raw: Iterable[object]) -> list[str]:
    """Return the names in ``raw`` that are not already registered."""
    taken = {entrant.name.lower() for entrant in existing}
    return [name for name in unique_names(raw) if name.lower() not in taken]


__all__ = [
    "IdFactory",
    "new_id",
    "new_names_for",
    "parse_entry_lines",
    "register_entrants",
    "unique_names",
]
