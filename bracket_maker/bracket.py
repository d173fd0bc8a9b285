from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from .models import (
    Entrant,
    Match,
    MatchStatus,
    Tournament,
    TournamentStatus,
    utc_now_iso,
)
from .registry import IdFactory, new_id
from .seeding import next_power_of_two, place_seeds
from .validation import (
    InvalidWinnerError,
    MatchNotFoundError,
    validate_entrant_count,
    validate_seed_names,
    validate_tournament_name,
)

log = logging.getLogger(__name__)


def _open_slot_order(slots: Sequence[str | None]) -> list[int]:
    half = len(slots) // 2
    top_free = [index for index in range(half) if slots[index] is None]
    bottom_free = [index for index in range(half, len(slots)) if slots[index] is None]
    order: list[int] = []
    for index in range(max(len(top_free), len(bottom_free))):
        if index < len(top_free):
            order.append(top_free[index])
        if index < len(bottom_free):
            order.append(bottom_free[index])
    return order


def build_slots(
    entrants: Sequence[Entrant],
    seed_ids: Sequence[str],
    rng: random.Random | None = None,
) -> list[str | None]:
    """Lay out entrant ids over a power-of-two slot array.

    Seeds take their fixed positions; everyone else is shuffled and dealt into
    the open slots alternating between the top and bottom halves.
    """
    validate_entrant_count(len(entrants))
    rng = rng or random.Random()
    size = next_power_of_two(len(entrants))
    slots = place_seeds(size, list(seed_ids))
    seeded = set(seed_ids)
    others = [entrant.id for entrant in entrants if entrant.id not in seeded]
    rng.shuffle(others)
    for position, entrant_id in zip(_open_slot_order(slots), others, strict=False):
        slots[position] = entrant_id
    return slots


def pair_into_matches(
    ids: Sequence[str | None], round_no: int, *, id_factory: IdFactory = new_id
) -> list[Match]:
    """Pair consecutive ids; empty pairs are skipped and lone ids get byes."""
    matches: list[Match] = []
    for index in range(0, len(ids), 2):
        slot_a = ids[index]
        slot_b = ids[index + 1] if index + 1 < len(ids) else None
        if slot_a is None and slot_b is None:
            continue
        matches.append(Match.pairing(id_factory(), round_no, slot_a, slot_b))
    return matches


def generate_round_one(
    entrants: Sequence[Entrant],
    seed_ids: Sequence[str],
    *,
    rng: random.Random | None = None,
    id_factory: IdFactory = new_id,
) -> list[Match]:
    slots = build_slots(entrants, seed_ids, rng)
    return pair_into_matches(slots, 1, id_factory=id_factory)


def create_tournament(
    name: str,
    entrants: Sequence[Entrant],
    seed_names: Sequence[str | None],
    *,
    rng: random.Random | None = None,
    id_factory: IdFactory = new_id,
) -> Tournament:
    tournament_name = validate_tournament_name(name)
    validate_entrant_count(len(entrants))
    seeds = validate_seed_names(seed_names, [entrant.name for entrant in entrants])
    ids_by_name = {entrant.name: entrant.id for entrant in entrants}
    seed_ids = [ids_by_name[seed] for seed in seeds]

    matches = generate_round_one(entrants, seed_ids, rng=rng, id_factory=id_factory)
    tournament = Tournament(
        id=id_factory(),
        name=tournament_name,
        created_at=utc_now_iso(),
        entrants=list(entrants),
        matches=matches,
        seed_top=seed_ids[0],
        seed_bottom=seed_ids[1],
        extra_seeds=seed_ids[2:],
    )
    log.info(
        "Created tournament %s (%s) with %d entrants and %d opening matches",
        tournament.name,
        tournament.id,
        len(entrants),
        len(matches),
    )
    return tournament


def record_winner(
    tournament: Tournament, match_id: str, winner_id: str | None
) -> Match:
    match = tournament.find_match(match_id)
    if match is None:
        raise MatchNotFoundError(f"Match {match_id} not found")
    if tournament.is_completed:
        raise InvalidWinnerError("Tournament is already completed")
    if match.round != tournament.max_round():
        raise InvalidWinnerError("Only matches in the current round can be updated")
    if not match.is_contest:
        raise InvalidWinnerError("Byes advance automatically")
    if winner_id is not None and winner_id not in (match.slot_a, match.slot_b):
        raise InvalidWinnerError(f"{winner_id} is not playing in match {match_id}")

    match.winner = winner_id
    match.status = MatchStatus.FINAL if winner_id else MatchStatus.SCHEDULED
    return match


def _real_matches(matches: Sequence[Match]) -> list[Match]:
    return [match for match in matches if match.slot_a or match.slot_b]


def can_advance(tournament: Tournament) -> bool:
    if tournament.is_completed:
        return False
    current = _real_matches(tournament.current_round_matches())
    return bool(current) and all(match.winner for match in current)


def advance_round(tournament: Tournament, *, id_factory: IdFactory = new_id) -> bool:
    """Close the current round.

    Returns ``False`` without touching the tournament when the round is not
    fully decided.
    """
    if not can_advance(tournament):
        return False
    current_round = tournament.max_round()
    winners = [
        match.winner
        for match in _real_matches(tournament.round_matches(current_round))
    ]
    if len(winners) == 1:
        tournament.status = TournamentStatus.COMPLETED
        tournament.champion = winners[0]
        log.info(
            "Tournament %s completed; champion %s",
            tournament.id,
            tournament.entrant_name(tournament.champion),
        )
        return True

    next_round = pair_into_matches(winners, current_round + 1, id_factory=id_factory)
    tournament.matches.extend(next_round)
    log.info(
        "Tournament %s advanced to round %d with %d matches",
        tournament.id,
        current_round + 1,
        len(next_round),
    )
    return True


__all__ = [
    "advance_round",
    "build_slots",
    "can_advance",
    "create_tournament",
    "generate_round_one",
    "pair_into_matches",
    "record_winner",
]
