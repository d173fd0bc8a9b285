from __future__ import annotations

from collections.abc import Sequence

MIN_ENTRANTS = 2
MIN_SEEDS = 2
MAX_SEEDS = 4


class BracketError(Exception):
    """Base exception for bracket operations."""


class InvalidValueError(BracketError, ValueError):
    """Base exception for caller-correctable validation failures."""


class InsufficientEntrantsError(InvalidValueError):
    """Raised when a bracket is requested for fewer than two entrants."""


class InvalidSeedError(InvalidValueError):
    """Raised when seed names are missing, duplicated or not registered."""


class InvalidWinnerError(InvalidValueError):
    """Raised when a winner cannot be recorded on a match."""


class MergeClosedError(InvalidValueError):
    """Raised when entries are added after the bracket left Round 1."""


class NoEntrantsFoundError(InvalidValueError):
    """Raised when an import source yields no usable entrant names."""


class UnsupportedFileError(InvalidValueError):
    """Raised for import files with an unknown extension."""


class PreconditionError(BracketError):
    """Raised when an operation is not yet available for a tournament."""


class TournamentNotFoundError(BracketError, LookupError):
    """Raised when a tournament id does not exist in the repository."""


class MatchNotFoundError(BracketError, LookupError):
    """Raised when a match id does not exist in a tournament."""


def validate_tournament_name(raw: str) -> str:
    name = raw.strip()
    if not name:
        raise InvalidValueError("Please enter a tournament name")
    if len(name) > 120:
        raise InvalidValueError("Tournament name must be 120 characters or fewer")
    return name


def validate_entrant_count(count: int) -> int:
    if count < MIN_ENTRANTS:
        raise InsufficientEntrantsError(
            f"At least {MIN_ENTRANTS} entries are required to create a bracket"
        )
    return count


def validate_seed_names(
    seed_names: Sequence[str | None], entrant_names: Sequence[str]
) -> list[str]:
    """Return the distinct seed names, canonicalised to the registered spelling.

    Blank seeds are ignored. Matching against entrants is case-insensitive.
    """

    registered = {name.lower(): name for name in entrant_names}
    seeds: list[str] = []
    seen: set[str] = set()
    for raw in seed_names:
        value = (raw or "").strip()
        if not value:
            continue
        key = value.lower()
        if key in seen:
            continue
        if key not in registered:
            raise InvalidSeedError(f"Seed {value!r} must be one of the added entries")
        seen.add(key)
        seeds.append(registered[key])
    if len(seeds) < MIN_SEEDS:
        raise InvalidSeedError(f"Pick at least {MIN_SEEDS} different seeds")
    if len(seeds) > MAX_SEEDS:
        raise InvalidSeedError(f"At most {MAX_SEEDS} seeds are supported")
    return seeds


__all__ = [
    "BracketError",
    "InvalidValueError",
    "InsufficientEntrantsError",
    "InvalidSeedError",
    "InvalidWinnerError",
    "MergeClosedError",
    "NoEntrantsFoundError",
    "UnsupportedFileError",
    "PreconditionError",
    "TournamentNotFoundError",
    "MatchNotFoundError",
    "MIN_ENTRANTS",
    "MIN_SEEDS",
    "MAX_SEEDS",
    "validate_tournament_name",
    "validate_entrant_count",
    "validate_seed_names",
]
