import json
from pathlib import Path
from unittest.mock import Mock, patch

import requests
from botocore.exceptions import ClientError

from bracket_maker.config import AppConfig
from bracket_maker.models import Entrant, Match, Snapshot, Tournament
from bracket_maker.storage import (
    DynamoTournamentStore,
    JsonFileStore,
    MirroredStore,
    RemoteStore,
    build_store,
)


def sample_tournament(
    tournament_id: str = "t1", created_at: str = "2024-03-01"
) -> Tournament:
    return Tournament(
        id=tournament_id,
        name=f"Cup {tournament_id}",
        created_at=created_at,
        entrants=[Entrant("a", "Asha"), Entrant("b", "Bilal")],
        matches=[Match("m1", 1, "a", "b")],
        seed_top="a",
        seed_bottom="b",
    )


def sample_snapshot() -> Snapshot:
    deleted = sample_tournament("t9")
    deleted.deleted_at = "2024-03-05T00:00:00.000Z"
    return Snapshot(
        tournaments=[sample_tournament("t1"), sample_tournament("t2", "2024-03-02")],
        deleted=[deleted],
    )


def client_error(operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "x"}},
        operation,
    )


class FakeTable:
    def __init__(self, page_size: int = 100) -> None:
        self.items: dict[tuple[str, str], dict[str, object]] = {}
        self.page_size = page_size
        self.query_calls = 0
        self.fail = False

    def put_item(self, *, Item):
        self.items[(Item["pk"], Item["sk"])] = Item

    def query(self, *, KeyConditionExpression, ExclusiveStartKey=None, **_kwargs):
        if self.fail:
            raise client_error("Query")
        self.query_calls += 1
        key, value = KeyConditionExpression._values  # type: ignore[attr-defined]
        assert key.name == "pk"
        matching = [item for item in sorted(self.items) if item[0] == value]
        start = 0
        if ExclusiveStartKey is not None:
            last_key = (ExclusiveStartKey["pk"], ExclusiveStartKey["sk"])
            start = matching.index(last_key) + 1
        page = matching[start : start + self.page_size]
        resp: dict[str, object] = {"Items": [self.items[k].copy() for k in page]}
        if start + self.page_size < len(matching):
            last = page[-1]
            resp["LastEvaluatedKey"] = {"pk": last[0], "sk": last[1]}
        return resp

    def delete_item(self, *, Key, ConditionExpression):
        assert ConditionExpression
        self.items.pop((Key["pk"], Key["sk"]))


# ----- JSON file -----


def test_json_store_round_trip(tmp_path):
    store = JsonFileStore(tmp_path / "data" / "tournaments.json")
    snapshot = sample_snapshot()

    assert store.load() is None
    assert store.save(snapshot) is True
    assert store.load() == snapshot
    assert not (tmp_path / "data" / "tournaments.json.tmp").exists()

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert [entry["id"] for entry in raw["tournaments"]] == ["t1", "t2"]
    assert raw["deleted"][0]["deleted_at"] == "2024-03-05T00:00:00.000Z"


def test_json_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "tournaments.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFileStore(path).load() is None

    path.write_text('{"tournaments": "oops"}', encoding="utf-8")
    assert JsonFileStore(path).load() is None


def test_json_store_save_failure_returns_false(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    store = JsonFileStore(blocker / "tournaments.json")
    assert store.save(sample_snapshot()) is False


# ----- DynamoDB -----


def test_dynamo_store_round_trip_with_pagination():
    table = FakeTable(page_size=2)
    store = DynamoTournamentStore(table, namespace="club")
    snapshot = sample_snapshot()

    assert store.save(snapshot) is True
    assert sorted(sk for _, sk in table.items) == [
        "DELETED#t9",
        "TOURNAMENT#t1",
        "TOURNAMENT#t2",
    ]
    assert all(pk == "BRACKETS#club" for pk, _ in table.items)

    table.query_calls = 0
    loaded = store.load()
    assert table.query_calls == 2
    assert [entry.id for entry in loaded.tournaments] == ["t2", "t1"]
    assert [entry.id for entry in loaded.deleted] == ["t9"]
    assert loaded.tournaments[1] == snapshot.tournaments[0]


def test_dynamo_store_save_removes_stale_items():
    table = FakeTable()
    store = DynamoTournamentStore(table)
    snapshot = sample_snapshot()
    store.save(snapshot)

    moved = snapshot.tournaments.pop(0)
    moved.deleted_at = "2024-03-06T00:00:00.000Z"
    snapshot.deleted.insert(0, moved)
    assert store.save(snapshot) is True

    assert sorted(sk for _, sk in table.items) == [
        "DELETED#t1",
        "DELETED#t9",
        "TOURNAMENT#t2",
    ]
    assert [entry.id for entry in store.load().deleted] == ["t1", "t9"]


def test_dynamo_store_namespaces_are_isolated():
    table = FakeTable()
    DynamoTournamentStore(table, namespace="one").save(sample_snapshot())
    loaded = DynamoTournamentStore(table, namespace="two").load()
    assert loaded == Snapshot()


def test_dynamo_store_errors_are_reported():
    table = FakeTable()
    table.fail = True
    store = DynamoTournamentStore(table)
    assert store.load() is None
    assert store.save(sample_snapshot()) is False


def test_dynamo_store_skips_malformed_items():
    table = FakeTable()
    table.put_item(Item={"pk": "BRACKETS#default", "sk": "TOURNAMENT#x"})
    assert DynamoTournamentStore(table).load() == Snapshot()


# ----- Remote worker -----


def remote_response(body, status_code=200):
    resp = Mock()
    resp.status_code = status_code
    resp.json.return_value = body
    return resp


def test_remote_store_load_sends_app_key():
    session = Mock()
    session.get.return_value = remote_response(
        {"ok": True, "data": sample_snapshot().to_dict()}
    )
    store = RemoteStore("https://worker.example.com/", "secret", session=session)

    assert store.load() == sample_snapshot()
    args, kwargs = session.get.call_args
    assert args == ("https://worker.example.com/load",)
    assert kwargs["headers"]["X-App-Key"] == "secret"
    assert kwargs["timeout"] == 10.0


def test_remote_store_load_failures_return_none():
    session = Mock()
    store = RemoteStore("https://worker.example.com", "secret", session=session)

    session.get.side_effect = requests.ConnectionError("down")
    assert store.load() is None

    session.get.side_effect = None
    session.get.return_value = remote_response({"ok": False, "error": "Unauthorized"})
    assert store.load() is None

    session.get.return_value = remote_response({"ok": True, "data": None})
    assert store.load() is None


def test_remote_store_save_posts_snapshot():
    session = Mock()
    session.post.return_value = remote_response({"ok": True})
    store = RemoteStore(
        "https://worker.example.com", "secret", timeout=3, session=session
    )

    assert store.save(sample_snapshot()) is True
    args, kwargs = session.post.call_args
    assert args == ("https://worker.example.com/save",)
    assert kwargs["json"] == sample_snapshot().to_dict()
    assert kwargs["timeout"] == 3

    session.post.return_value = remote_response({"ok": False}, status_code=401)
    assert store.save(sample_snapshot()) is False

    session.post.side_effect = requests.Timeout("slow")
    assert store.save(sample_snapshot()) is False


# ----- Mirrored store -----


def test_mirrored_store_prefers_primary_and_refreshes_local(tmp_path):
    primary = Mock()
    primary.load.return_value = sample_snapshot()
    local = JsonFileStore(tmp_path / "tournaments.json")
    store = MirroredStore(primary, local)

    assert store.load() == sample_snapshot()
    assert local.load() == sample_snapshot()


def test_mirrored_store_falls_back_to_local(tmp_path):
    primary = Mock()
    primary.load.return_value = None
    primary.save.return_value = False
    local = JsonFileStore(tmp_path / "tournaments.json")
    local.save(sample_snapshot())
    store = MirroredStore(primary, local)

    assert store.load() == sample_snapshot()
    assert store.save(Snapshot()) is False
    assert store.last_result.saved is True
    assert store.last_result.primary is False
    assert store.last_result.message == "Saved locally (cloud unavailable)."
    assert local.load() == Snapshot(pending_sync=True)


def test_mirrored_store_pushes_unsynced_local_copy(tmp_path):
    local = JsonFileStore(tmp_path / "tournaments.json")
    offline = Mock()
    offline.save.return_value = False
    MirroredStore(offline, local).save(sample_snapshot())

    primary = Mock()
    primary.load.return_value = Snapshot()
    primary.save.return_value = True
    loaded = MirroredStore(primary, local).load()

    assert loaded == sample_snapshot()
    primary.load.assert_not_called()
    pushed = primary.save.call_args.args[0]
    assert pushed.pending_sync is False
    assert pushed.tournaments == sample_snapshot().tournaments
    assert local.load() == sample_snapshot()


def test_mirrored_store_keeps_unsynced_copy_while_primary_down(tmp_path):
    local = JsonFileStore(tmp_path / "tournaments.json")
    primary = Mock()
    primary.load.return_value = Snapshot()
    primary.save.return_value = False
    store = MirroredStore(primary, local)
    store.save(sample_snapshot())

    loaded = store.load()

    assert loaded.pending_sync is True
    assert loaded.tournaments == sample_snapshot().tournaments
    primary.load.assert_not_called()
    assert local.load().pending_sync is True


def test_mirrored_store_reports_cloud_save(tmp_path):
    primary = Mock()
    primary.save.return_value = True
    local = JsonFileStore(tmp_path / "tournaments.json")
    store = MirroredStore(primary, local)

    assert store.save(sample_snapshot()) is True
    assert store.last_result.message == "Saved to cloud."
    assert local.load() == sample_snapshot()
    assert primary.save.call_args.args[0].pending_sync is False


def test_mirrored_store_total_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    primary = Mock()
    primary.save.return_value = False
    store = MirroredStore(primary, JsonFileStore(blocker / "tournaments.json"))

    assert store.save(sample_snapshot()) is False
    assert store.last_result.saved is False
    assert "only held in memory" in store.last_result.message


# ----- build_store -----


def make_config(tmp_path, **overrides) -> AppConfig:
    values = {
        "store_path": tmp_path / "tournaments.json",
        "table_name": None,
        "aws_region": "us-east-1",
        "namespace": "default",
        "cloud_url": None,
        "cloud_app_key": None,
        "cloud_timeout": 10.0,
        "random_seed": None,
        "log_level": "INFO",
    }
    values.update(overrides)
    return AppConfig(**values)


def test_build_store_local_only(tmp_path):
    store = build_store(make_config(tmp_path))
    assert isinstance(store, JsonFileStore)
    assert store.path == Path(tmp_path / "tournaments.json")


def test_build_store_prefers_remote(tmp_path):
    config = make_config(
        tmp_path, cloud_url="https://worker.example.com", table_name="brackets"
    )
    store = build_store(config)
    assert isinstance(store, MirroredStore)
    assert isinstance(store.primary, RemoteStore)


def test_build_store_dynamodb(tmp_path):
    with patch("bracket_maker.storage.boto3.resource") as resource:
        store = build_store(make_config(tmp_path, table_name="brackets"))

    resource.assert_called_once_with("dynamodb", region_name="us-east-1")
    resource.return_value.Table.assert_called_once_with("brackets")
    assert isinstance(store.primary, DynamoTournamentStore)
    assert store.primary.partition == "BRACKETS#default"


def test_build_store_offline_ignores_cloud(tmp_path):
    config = make_config(
        tmp_path, cloud_url="https://worker.example.com", cloud_enabled=False
    )
    assert isinstance(build_store(config), JsonFileStore)
