"""Caller-facing tournament operations."""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from . import bracket, merge, render
from .importer import parse_entrants
from .models import Entrant, Match, Tournament
from .registry import IdFactory, new_id, register_entrants, unique_names
from .repository import TournamentRepository
from .storage import SaveResult
from .validation import (
    MAX_SEEDS,
    InvalidWinnerError,
    MatchNotFoundError,
    NoEntrantsFoundError,
    PreconditionError,
)

log: Final = logging.getLogger("bracket-maker")

_MATCH_REF = re.compile(r"^R(\d+)M(\d+)$", re.IGNORECASE)


class BracketService:
    def __init__(
        self,
        repository: TournamentRepository,
        *,
        rng: random.Random | None = None,
        id_factory: IdFactory = new_id,
    ) -> None:
        self.repository = repository
        self._rng = rng or random.Random()
        self._id_factory = id_factory

    # ----- Entries -----
    def import_entries(self, path: Path | str) -> list[str]:
        names = parse_entrants(path)
        if not names:
            raise NoEntrantsFoundError(
                f"Could not find a 'Players' column with entries in {path}"
            )
        log.info("Imported %d entries from %s", len(names), path)
        return names

    # ----- Tournaments -----
    def create_tournament(
        self,
        name: str,
        names: Sequence[str],
        seeds: Sequence[str] | None = None,
    ) -> Tournament:
        entrants = register_entrants(names, id_factory=self._id_factory)
        if seeds is None:
            seeds = [entrant.name for entrant in entrants[:MAX_SEEDS]]
        tournament = bracket.create_tournament(
            name,
            entrants,
            seeds,
            rng=self._rng,
            id_factory=self._id_factory,
        )
        return self.repository.add(tournament)

    def add_entries(self, tournament_key: str, names: Sequence[str]) -> list[Entrant]:
        if not unique_names(names):
            raise NoEntrantsFoundError("No valid entries to add")
        tournament = self.repository.find(tournament_key)
        added = merge.merge_entrants(tournament, names, id_factory=self._id_factory)
        if not added:
            log.info("All entries already registered in %s", tournament.name)
        return added

    def _resolve_entrant(self, tournament: Tournament, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        entrant = tournament.find_entrant(value) or tournament.entrant_named(value)
        if entrant is None:
            raise InvalidWinnerError(
                f"{value!r} is not registered in {tournament.name}"
            )
        return entrant.id

    def _resolve_match(self, tournament: Tournament, match_ref: str) -> str:
        """Accept a match id or a ``R<round>M<position>`` label."""
        if tournament.find_match(match_ref) is not None:
            return match_ref
        found = _MATCH_REF.match(match_ref.strip())
        if found is None:
            raise MatchNotFoundError(f"Match {match_ref} not found")
        round_no, position = int(found.group(1)), int(found.group(2))
        matches = tournament.round_matches(round_no)
        if not 1 <= position <= len(matches):
            raise MatchNotFoundError(f"Match {match_ref} not found")
        return matches[position - 1].id

    def record_winner(
        self, tournament_key: str, match_ref: str, winner: str | None
    ) -> Match:
        tournament = self.repository.find(tournament_key)
        winner_id = self._resolve_entrant(tournament, winner)
        match_id = self._resolve_match(tournament, match_ref)
        match = bracket.record_winner(tournament, match_id, winner_id)
        log.info(
            "Recorded winner %s for match %s in %s",
            tournament.entrant_name(winner_id, empty="(cleared)"),
            match_id,
            tournament.name,
        )
        return match

    def advance_round(self, tournament_key: str) -> Tournament:
        tournament = self.repository.find(tournament_key)
        if tournament.is_completed:
            raise PreconditionError(f"{tournament.name} is already completed")
        if not bracket.advance_round(tournament, id_factory=self._id_factory):
            raise PreconditionError(
                "Every match in the current round needs a winner before advancing"
            )
        return tournament

    def delete_tournament(self, tournament_key: str) -> Tournament:
        tournament = self.repository.find(tournament_key)
        deleted = self.repository.soft_delete(tournament.id)
        log.info("Moved tournament %s (%s) to deleted", deleted.name, deleted.id)
        return deleted

    # ----- Output -----
    def bracket_text(self, tournament_key: str) -> str:
        return render.render_bracket(self.repository.find(tournament_key))

    def standings_text(self, tournament_key: str) -> str:
        return render.render_standings(self.repository.find(tournament_key))

    def standings_csv(self, tournament_key: str) -> str:
        return render.export_standings_csv(self.repository.find(tournament_key))

    def winners(self) -> list[str]:
        return render.winners_lines(self.repository.tournaments)

    # ----- Persistence -----
    async def load(self) -> bool:
        return await self.repository.load()

    async def save(self) -> SaveResult:
        return await self.repository.save()


__all__ = ["BracketService"]
