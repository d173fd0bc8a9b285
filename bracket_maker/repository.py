from __future__ import annotations

import asyncio
import logging

from .models import Snapshot, Tournament, utc_now_iso
from .storage import SaveResult
from .validation import TournamentNotFoundError

log = logging.getLogger(__name__)


class TournamentRepository:
    """In-memory tournament collection backed by a snapshot store.

    The collection held here is authoritative; ``load`` and ``save`` run the
    blocking store call in a worker thread and can be cancelled like any
    other task.
    """

    def __init__(self, store=None) -> None:
        self._store = store
        self.tournaments: list[Tournament] = []
        self.deleted: list[Tournament] = []

    def snapshot(self) -> Snapshot:
        return Snapshot(
            tournaments=[tournament.clone() for tournament in self.tournaments],
            deleted=[tournament.clone() for tournament in self.deleted],
        )

    def replace(self, snapshot: Snapshot) -> None:
        self.tournaments = list(snapshot.tournaments)
        self.deleted = list(snapshot.deleted)

    async def load(self) -> bool:
        if self._store is None:
            return False
        snapshot = await asyncio.to_thread(self._store.load)
        if snapshot is None:
            log.warning("Tournament store unavailable; keeping in-memory data")
            return False
        self.replace(snapshot)
        if snapshot.pending_sync:
            log.warning("Loaded local changes the cloud store has not accepted yet")
        log.info(
            "Loaded %d tournaments (%d deleted)",
            len(self.tournaments),
            len(self.deleted),
        )
        return True

    async def save(self) -> SaveResult:
        if self._store is None:
            return SaveResult(
                saved=False, primary=False, message="No store configured."
            )
        # Copied before the store thread starts.
        snapshot = self.snapshot()
        ok = await asyncio.to_thread(self._store.save, snapshot)
        result = getattr(self._store, "last_result", None)
        if result is None:
            result = SaveResult(
                saved=ok, primary=ok, message="Saved." if ok else "Save failed."
            )
        if not result.saved:
            log.warning("Save failed; in-memory tournaments remain authoritative")
        elif not result.primary:
            log.warning(result.message)
        return result

    def add(self, tournament: Tournament) -> Tournament:
        self.tournaments.insert(0, tournament)
        return tournament

    def get(self, tournament_id: str) -> Tournament:
        for tournament in self.tournaments:
            if tournament.id == tournament_id:
                return tournament
        raise TournamentNotFoundError(f"Tournament {tournament_id} not found")

    def find(self, key: str) -> Tournament:
        """Look a tournament up by id, falling back to a case-insensitive name."""
        for tournament in self.tournaments:
            if tournament.id == key:
                return tournament
        lowered = key.strip().lower()
        for tournament in self.tournaments:
            if tournament.name.lower() == lowered:
                return tournament
        raise TournamentNotFoundError(f"Tournament {key} not found")

    def soft_delete(self, tournament_id: str) -> Tournament:
        tournament = self.get(tournament_id)
        tournament.deleted_at = utc_now_iso()
        self.tournaments = [
            entry for entry in self.tournaments if entry.id != tournament_id
        ]
        self.deleted.insert(0, tournament)
        return tournament

    def active(self) -> list[Tournament]:
        return [entry for entry in self.tournaments if not entry.is_completed]

    def completed(self) -> list[Tournament]:
        return [entry for entry in self.tournaments if entry.is_completed]


__all__ = ["TournamentRepository"]
