from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format (ms precision)."""
    return datetime.now(UTC).strftime(ISO_FORMAT)


class MatchStatus(str, Enum):
    SCHEDULED = "Scheduled"
    BYE = "Bye"
    FINAL = "Final"

    @classmethod
    def parse(cls, raw: object) -> MatchStatus:
        value = str(raw or "").strip().lower()
        for status in cls:
            if status.value.lower() == value:
                return status
        return cls.SCHEDULED


class TournamentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: object) -> TournamentStatus:
        value = str(raw or "").strip().lower()
        if value == cls.COMPLETED.value:
            return cls.COMPLETED
        return cls.ACTIVE


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(slots=True)
class Entrant:
    id: str
    name: str

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Entrant:
        return cls(id=str(data.get("id", "")), name=str(data.get("name", "")))


@dataclass(slots=True)
class Match:
    id: str
    round: int
    slot_a: str | None
    slot_b: str | None
    winner: str | None = None
    status: MatchStatus = MatchStatus.SCHEDULED

    @classmethod
    def pairing(
        cls, match_id: str, round_no: int, slot_a: str | None, slot_b: str | None
    ) -> Match:
        """Build a match, pre-resolving it as a bye when one side is empty."""
        if slot_a is None and slot_b is None:
            raise ValueError("A match needs at least one entrant")
        if slot_a is None or slot_b is None:
            return cls(
                id=match_id,
                round=round_no,
                slot_a=slot_a,
                slot_b=slot_b,
                winner=slot_a or slot_b,
                status=MatchStatus.BYE,
            )
        return cls(id=match_id, round=round_no, slot_a=slot_a, slot_b=slot_b)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "id": self.id,
            "round": self.round,
            "status": self.status.value,
        }
        if self.slot_a is not None:
            data["slot_a"] = self.slot_a
        if self.slot_b is not None:
            data["slot_b"] = self.slot_b
        if self.winner is not None:
            data["winner"] = self.winner
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Match:
        try:
            round_no = int(data.get("round", 1))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            round_no = 1
        return cls(
            id=str(data.get("id", "")),
            round=max(round_no, 1),
            slot_a=_optional_str(data.get("slot_a")),
            slot_b=_optional_str(data.get("slot_b")),
            winner=_optional_str(data.get("winner")),
            status=MatchStatus.parse(data.get("status")),
        )

    def clone(self) -> Match:
        return Match.from_dict(self.to_dict())

    @property
    def is_bye(self) -> bool:
        return (self.slot_a is None) != (self.slot_b is None)

    @property
    def is_contest(self) -> bool:
        return self.slot_a is not None and self.slot_b is not None

    def occupants(self) -> list[str]:
        return [slot for slot in (self.slot_a, self.slot_b) if slot is not None]


@dataclass(slots=True)
class Tournament:
    id: str
    name: str
    created_at: str
    entrants: list[Entrant]
    matches: list[Match]
    status: TournamentStatus = TournamentStatus.ACTIVE
    seed_top: str | None = None
    seed_bottom: str | None = None
    extra_seeds: list[str] = field(default_factory=list)
    champion: str | None = None
    deleted_at: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "entrants": [entrant.to_dict() for entrant in self.entrants],
            "matches": [match.to_dict() for match in self.matches],
            "status": self.status.value,
            "extra_seeds": list(self.extra_seeds),
        }
        if self.seed_top is not None:
            data["seed_top"] = self.seed_top
        if self.seed_bottom is not None:
            data["seed_bottom"] = self.seed_bottom
        if self.champion is not None:
            data["champion"] = self.champion
        if self.deleted_at is not None:
            data["deleted_at"] = self.deleted_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Tournament:
        entrants_data: Iterable[dict[str, object]] = data.get("entrants", [])  # type: ignore[assignment]
        matches_data: Iterable[dict[str, object]] = data.get("matches", [])  # type: ignore[assignment]
        extra_data: Iterable[object] = data.get("extra_seeds", [])  # type: ignore[assignment]
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            created_at=str(data.get("created_at", "")),
            entrants=[Entrant.from_dict(item) for item in entrants_data],
            matches=[Match.from_dict(item) for item in matches_data],
            status=TournamentStatus.parse(data.get("status")),
            seed_top=_optional_str(data.get("seed_top")),
            seed_bottom=_optional_str(data.get("seed_bottom")),
            extra_seeds=[str(value) for value in extra_data if value][:2],
            champion=_optional_str(data.get("champion")),
            deleted_at=_optional_str(data.get("deleted_at")),
        )

    def clone(self) -> Tournament:
        return Tournament.from_dict(self.to_dict())

    @property
    def is_completed(self) -> bool:
        return self.status is TournamentStatus.COMPLETED

    def max_round(self) -> int:
        return max((match.round for match in self.matches), default=0)

    def round_matches(self, round_no: int) -> list[Match]:
        return [match for match in self.matches if match.round == round_no]

    def current_round_matches(self) -> list[Match]:
        return self.round_matches(self.max_round())

    def rounds(self) -> list[tuple[int, list[Match]]]:
        grouped: dict[int, list[Match]] = {}
        for match in self.matches:
            grouped.setdefault(match.round, []).append(match)
        return sorted(grouped.items())

    def find_match(self, match_id: str) -> Match | None:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def find_entrant(self, entrant_id: str | None) -> Entrant | None:
        if entrant_id is None:
            return None
        for entrant in self.entrants:
            if entrant.id == entrant_id:
                return entrant
        return None

    def entrant_named(self, name: str) -> Entrant | None:
        key = name.strip().lower()
        for entrant in self.entrants:
            if entrant.name.lower() == key:
                return entrant
        return None

    def entrant_name(self, entrant_id: str | None, *, empty: str = "BYE/TBD") -> str:
        if entrant_id is None:
            return empty
        entrant = self.find_entrant(entrant_id)
        return entrant.name if entrant is not None else "Unknown"


@dataclass(slots=True)
class Snapshot:
    """Full tournament collection exchanged with a storage service.

    ``pending_sync`` marks a local copy holding changes the cloud store has
    not accepted yet.
    """

    tournaments: list[Tournament] = field(default_factory=list)
    deleted: list[Tournament] = field(default_factory=list)
    pending_sync: bool = False

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "tournaments": [tournament.to_dict() for tournament in self.tournaments],
            "deleted": [tournament.to_dict() for tournament in self.deleted],
        }
        if self.pending_sync:
            data["pending_sync"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Snapshot:
        tournaments_data = data.get("tournaments") or []
        deleted_data = data.get("deleted") or data.get("deleted_tournaments") or []
        if not isinstance(tournaments_data, list) or not isinstance(
            deleted_data, list
        ):
            raise ValueError("Snapshot collections must be lists")
        return cls(
            tournaments=[Tournament.from_dict(item) for item in tournaments_data],
            deleted=[Tournament.from_dict(item) for item in deleted_data],
            pending_sync=bool(data.get("pending_sync")),
        )


__all__ = [
    "Entrant",
    "Match",
    "MatchStatus",
    "Snapshot",
    "Tournament",
    "TournamentStatus",
    "ISO_FORMAT",
    "utc_now_iso",
]
