from unittest.mock import Mock

import pytest

from bracket_maker.models import (
    Entrant,
    Match,
    Snapshot,
    Tournament,
    TournamentStatus,
)
from bracket_maker.repository import TournamentRepository
from bracket_maker.storage import JsonFileStore, MirroredStore, SaveResult
from bracket_maker.validation import TournamentNotFoundError


def sample_tournament(tournament_id: str, name: str) -> Tournament:
    return Tournament(
        id=tournament_id,
        name=name,
        created_at="2024-03-01T10:00:00.000Z",
        entrants=[Entrant("a", "Asha"), Entrant("b", "Bilal")],
        matches=[Match("m1", 1, "a", "b")],
    )


def test_add_inserts_newest_first():
    repository = TournamentRepository()
    repository.add(sample_tournament("t1", "Spring Cup"))
    repository.add(sample_tournament("t2", "Summer Cup"))
    assert [entry.id for entry in repository.tournaments] == ["t2", "t1"]


def test_find_by_id_or_name():
    repository = TournamentRepository()
    spring = repository.add(sample_tournament("t1", "Spring Cup"))

    assert repository.get("t1") is spring
    assert repository.find("t1") is spring
    assert repository.find("  spring cup ") is spring
    with pytest.raises(TournamentNotFoundError):
        repository.find("Winter Cup")
    with pytest.raises(TournamentNotFoundError):
        repository.get("Spring Cup")


def test_soft_delete_moves_to_deleted():
    repository = TournamentRepository()
    repository.add(sample_tournament("t1", "Spring Cup"))
    repository.add(sample_tournament("t2", "Summer Cup"))

    deleted = repository.soft_delete("t1")

    assert deleted.deleted_at is not None
    assert [entry.id for entry in repository.tournaments] == ["t2"]
    assert [entry.id for entry in repository.deleted] == ["t1"]
    with pytest.raises(TournamentNotFoundError):
        repository.soft_delete("t1")


def test_snapshot_is_a_copy():
    repository = TournamentRepository()
    repository.add(sample_tournament("t1", "Spring Cup"))
    snapshot = repository.snapshot()
    snapshot.tournaments[0].name = "Changed"
    assert repository.tournaments[0].name == "Spring Cup"


def test_active_and_completed_split():
    repository = TournamentRepository()
    done = repository.add(sample_tournament("t1", "Spring Cup"))
    done.status = TournamentStatus.COMPLETED
    repository.add(sample_tournament("t2", "Summer Cup"))

    assert [entry.id for entry in repository.active()] == ["t2"]
    assert [entry.id for entry in repository.completed()] == ["t1"]


@pytest.mark.asyncio
async def test_save_and_load_through_json_store(tmp_path):
    store = JsonFileStore(tmp_path / "tournaments.json")
    repository = TournamentRepository(store)
    repository.add(sample_tournament("t1", "Spring Cup"))
    repository.add(sample_tournament("t2", "Summer Cup"))
    repository.soft_delete("t1")

    result = await repository.save()
    assert result == SaveResult(saved=True, primary=True, message="Saved.")

    reloaded = TournamentRepository(store)
    assert await reloaded.load() is True
    assert [entry.id for entry in reloaded.tournaments] == ["t2"]
    assert [entry.id for entry in reloaded.deleted] == ["t1"]


@pytest.mark.asyncio
async def test_load_keeps_memory_when_store_unavailable():
    store = Mock()
    store.load.return_value = None
    repository = TournamentRepository(store)
    repository.add(sample_tournament("t1", "Spring Cup"))

    assert await repository.load() is False
    assert [entry.id for entry in repository.tournaments] == ["t1"]


@pytest.mark.asyncio
async def test_save_uses_store_result_message():
    store = Mock()
    store.save.return_value = False
    store.last_result = SaveResult(
        saved=True, primary=False, message="Saved locally (cloud unavailable)."
    )
    repository = TournamentRepository(store)
    repository.add(sample_tournament("t1", "Spring Cup"))

    result = await repository.save()

    assert result.message == "Saved locally (cloud unavailable)."
    saved_snapshot = store.save.call_args.args[0]
    assert isinstance(saved_snapshot, Snapshot)
    assert saved_snapshot.tournaments[0] is not repository.tournaments[0]


@pytest.mark.asyncio
async def test_without_store_nothing_is_persisted():
    repository = TournamentRepository()
    assert await repository.load() is False
    result = await repository.save()
    assert result.saved is False
    assert result.message == "No store configured."


@pytest.mark.asyncio
async def test_reload_keeps_changes_the_cloud_rejected(tmp_path):
    local = JsonFileStore(tmp_path / "tournaments.json")
    cloud = Mock()
    cloud.load.return_value = Snapshot()
    cloud.save.return_value = False
    repository = TournamentRepository(MirroredStore(cloud, local))
    repository.add(sample_tournament("t1", "Spring Cup"))

    result = await repository.save()
    assert result.saved is True
    assert result.primary is False

    cloud.save.return_value = True
    reloaded = TournamentRepository(MirroredStore(cloud, local))
    assert await reloaded.load() is True
    assert [entry.id for entry in reloaded.tournaments] == ["t1"]
    assert cloud.save.call_args.args[0].tournaments[0].id == "t1"
    assert local.load().pending_sync is False
