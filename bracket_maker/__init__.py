"""Single-elimination tournament bracket maker."""

from .bracket import advance_round, can_advance, create_tournament, record_winner
from .merge import merge_entrants
from .models import (
    Entrant,
    Match,
    MatchStatus,
    Snapshot,
    Tournament,
    TournamentStatus,
    utc_now_iso,
)
from .registry import parse_entry_lines, register_entrants, unique_names
from .repository import TournamentRepository
from .seeding import next_power_of_two, place_seeds
from .service import BracketService
from .storage import (
    DynamoTournamentStore,
    JsonFileStore,
    MirroredStore,
    RemoteStore,
    SaveResult,
)
from .validation import (
    BracketError,
    InsufficientEntrantsError,
    InvalidSeedError,
    InvalidValueError,
    InvalidWinnerError,
    MatchNotFoundError,
    MergeClosedError,
    NoEntrantsFoundError,
    PreconditionError,
    TournamentNotFoundError,
    UnsupportedFileError,
)

__all__ = [
    "Entrant",
    "Match",
    "MatchStatus",
    "Snapshot",
    "Tournament",
    "TournamentStatus",
    "utc_now_iso",
    "advance_round",
    "can_advance",
    "create_tournament",
    "record_winner",
    "merge_entrants",
    "parse_entry_lines",
    "register_entrants",
    "unique_names",
    "next_power_of_two",
    "place_seeds",
    "TournamentRepository",
    "BracketService",
    "DynamoTournamentStore",
    "JsonFileStore",
    "MirroredStore",
    "RemoteStore",
    "SaveResult",
    "BracketError",
    "InsufficientEntrantsError",
    "InvalidSeedError",
    "InvalidValueError",
    "InvalidWinnerError",
    "MatchNotFoundError",
    "MergeClosedError",
    "NoEntrantsFoundError",
    "PreconditionError",
    "TournamentNotFoundError",
    "UnsupportedFileError",
]
