"""Merge late entries into a bracket that has not left Round 1."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .bracket import pair_into_matches
from .models import Entrant, Match, MatchStatus, Tournament
from .registry import IdFactory, new_id, new_names_for
from .validation import MergeClosedError

log = logging.getLogger(__name__)


def _open_slots(matches: Iterable[Match]) -> list[tuple[Match, str]]:
    targets: list[tuple[Match, str]] = []
    for match in matches:
        if match.slot_a is None:
            targets.append((match, "slot_a"))
        if match.slot_b is None:
            targets.append((match, "slot_b"))
    return targets


def _index_of(matches: list[Match], entrant_id: str | None) -> int:
    if entrant_id is None:
        return -1
    for index, match in enumerate(matches):
        if entrant_id in (match.slot_a, match.slot_b):
            return index
    return -1


def reassemble_round_one(
    existing: list[Match],
    added: list[Match],
    seed_top: str | None,
    seed_bottom: str | None,
) -> list[Match]:
    """Keep the top and bottom seed matches at the ends of Round 1.

    New matches alternate between the front and the back of the interior.
    Without both seed matches the new matches are simply appended.
    """
    top_index = _index_of(existing, seed_top)
    bottom_index = _index_of(existing, seed_bottom)
    if top_index == -1 or bottom_index == -1 or top_index == bottom_index:
        return [*existing, *added]

    between = [
        match
        for index, match in enumerate(existing)
        if index not in (top_index, bottom_index)
    ]
    front_inserts = 0
    back_inserts = 0
    for position, match in enumerate(added):
        if position % 2 == 0:
            between.insert(front_inserts, match)
            front_inserts += 1
        else:
            between.insert(len(between) - back_inserts, match)
            back_inserts += 1
    return [existing[top_index], *between, existing[bottom_index]]


def merge_entrants(
    tournament: Tournament,
    names: Iterable[object],
    *,
    id_factory: IdFactory = new_id,
) -> list[Entrant]:
    """Register ``names`` in ``tournament`` and seat them in Round 1.

    Open bye slots are filled first; the rest are paired into new Round 1
    matches. Returns the entrants that were actually added.
    """
    if tournament.is_completed:
        raise MergeClosedError("Cannot add entries to a completed tournament")
    if tournament.max_round() > 1:
        raise MergeClosedError(
            "Cannot add entries after the tournament has advanced beyond Round 1"
        )

    added_names = new_names_for(tournament.entrants, names)
    if not added_names:
        return []
    new_entrants = [Entrant(id=id_factory(), name=name) for name in added_names]

    # Round 1 is rebuilt from copies and swapped in at the end.
    round_one = [match.clone() for match in tournament.round_matches(1)]
    later_rounds = [match for match in tournament.matches if match.round != 1]

    queue = [entrant.id for entrant in new_entrants]
    for match, side in _open_slots(round_one):
        if not queue:
            break
        setattr(match, side, queue.pop(0))
        if match.is_contest:
            match.status = MatchStatus.SCHEDULED
            match.winner = None

    added_matches = pair_into_matches(queue, 1, id_factory=id_factory)
    reassembled = reassemble_round_one(
        round_one, added_matches, tournament.seed_top, tournament.seed_bottom
    )

    tournament.entrants = [*tournament.entrants, *new_entrants]
    tournament.matches = [*reassembled, *later_rounds]
    log.info(
        "Merged %d entrants into tournament %s (%d filled byes, %d new matches)",
        len(new_entrants),
        tournament.id,
        len(new_entrants) - len(queue),
        len(added_matches),
    )
    return new_entrants


__all__ = ["merge_entrants", "reassemble_round_one"]
