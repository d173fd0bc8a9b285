"""Snapshot stores for the tournament collection.

Every store exposes ``load() -> Snapshot | None`` and ``save(snapshot) -> bool``.
Stores never raise for an unreachable backend: failures are logged and
reported through the return value so the in-memory collection stays usable.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, ClassVar

import boto3
import requests
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from .config import AppConfig
from .models import Snapshot, Tournament

log = logging.getLogger(__name__)


class JsonFileStore:
    """Local JSON file used as the always-available fallback."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Snapshot | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return Snapshot.from_dict(data)
        except (OSError, ValueError, AttributeError, TypeError) as exc:
            log.warning("Could not load tournaments from %s: %s", self._path, exc)
            return None

    def save(self, snapshot: Snapshot) -> bool:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, self._path)
        except OSError as exc:
            log.warning("Could not save tournaments to %s: %s", self._path, exc)
            return False
        return True


class DynamoTournamentStore:
    """One DynamoDB item per tournament under a shared partition key."""

    PK_TEMPLATE: ClassVar[str] = "BRACKETS#%s"
    ACTIVE_SK_TEMPLATE: ClassVar[str] = "TOURNAMENT#%s"
    DELETED_SK_TEMPLATE: ClassVar[str] = "DELETED#%s"

    def __init__(self, table, namespace: str = "default") -> None:
        self._table = table
        self._namespace = namespace

    @classmethod
    def from_config(cls, config: AppConfig) -> DynamoTournamentStore:
        dynamodb = boto3.resource("dynamodb", region_name=config.aws_region)
        return cls(dynamodb.Table(config.table_name), config.namespace)

    @property
    def partition(self) -> str:
        return self.PK_TEMPLATE % self._namespace

    def key(self, tournament: Tournament, *, deleted: bool) -> dict[str, str]:
        template = self.DELETED_SK_TEMPLATE if deleted else self.ACTIVE_SK_TEMPLATE
        return {"pk": self.partition, "sk": template % tournament.id}

    def to_item(self, tournament: Tournament, *, deleted: bool) -> dict[str, object]:
        item: dict[str, object] = self.key(tournament, deleted=deleted)
        item["tournament"] = tournament.to_dict()
        return item

    def _query_items(self) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("pk").eq(self.partition),
            "Select": "ALL_ATTRIBUTES",
        }
        while True:
            resp = self._table.query(**kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        return items

    def load(self) -> Snapshot | None:
        try:
            items = self._query_items()
        except (ClientError, BotoCoreError) as exc:
            log.warning("DynamoDB load failed: %s", exc)
            return None
        snapshot = Snapshot()
        for item in items:
            data = item.get("tournament")
            if not isinstance(data, dict):
                continue
            tournament = Tournament.from_dict(data)
            if str(item.get("sk", "")).startswith("DELETED#"):
                snapshot.deleted.append(tournament)
            else:
                snapshot.tournaments.append(tournament)
        snapshot.tournaments.sort(key=lambda entry: entry.created_at, reverse=True)
        snapshot.deleted.sort(key=lambda entry: entry.deleted_at or "", reverse=True)
        return snapshot

    def _items_for(self, snapshot: Snapshot) -> Iterable[dict[str, object]]:
        for tournament in snapshot.tournaments:
            yield self.to_item(tournament, deleted=False)
        for tournament in snapshot.deleted:
            yield self.to_item(tournament, deleted=True)

    def save(self, snapshot: Snapshot) -> bool:
        try:
            stale = {str(item["sk"]) for item in self._query_items()}
            for item in self._items_for(snapshot):
                self._table.put_item(Item=item)
                stale.discard(str(item["sk"]))
            for sk in sorted(stale):
                self._table.delete_item(
                    Key={"pk": self.partition, "sk": sk},
                    ConditionExpression="attribute_exists(pk)",
                )
        except (ClientError, BotoCoreError) as exc:
            log.warning("DynamoDB save failed: %s", exc)
            return False
        return True


class RemoteStore:
    """HTTP worker exposing ``GET /load`` and ``POST /save``."""

    def __init__(
        self,
        base_url: str,
        app_key: str | None = None,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._app_key = app_key or ""
        self._timeout = timeout
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {"X-App-Key": self._app_key, "Content-Type": "application/json"}

    def load(self) -> Snapshot | None:
        try:
            resp = self._session.get(
                f"{self._base_url}/load", headers=self._headers(), timeout=self._timeout
            )
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as exc:
            log.warning("Remote load failed: %s", exc)
            return None
        if not isinstance(body, dict) or not body.get("ok"):
            log.warning("Remote load rejected: %s", body)
            return None
        data = body.get("data")
        if not isinstance(data, dict):
            return None
        try:
            return Snapshot.from_dict(data)
        except (ValueError, AttributeError, TypeError) as exc:
            log.warning("Remote snapshot is malformed: %s", exc)
            return None

    def save(self, snapshot: Snapshot) -> bool:
        try:
            resp = self._session.post(
                f"{self._base_url}/save",
                headers=self._headers(),
                json=snapshot.to_dict(),
                timeout=self._timeout,
            )
            body = resp.json()
        except (requests.RequestException, ValueError) as exc:
            log.warning("Remote save failed: %s", exc)
            return False
        if not isinstance(body, dict) or not body.get("ok"):
            log.warning("Remote save rejected (HTTP %s): %s", resp.status_code, body)
            return False
        return True


@dataclass(slots=True)
class SaveResult:
    saved: bool
    primary: bool
    message: str


class MirroredStore:
    """Cloud store mirrored to a local file.

    Saves always write the fallback first. A save the primary rejects leaves
    the local copy flagged ``pending_sync``; the next load pushes that copy to
    the primary instead of replacing it with the older cloud snapshot.
    """

    def __init__(self, primary, fallback: JsonFileStore) -> None:
        self.primary = primary
        self.fallback = fallback
        self.last_result: SaveResult | None = None

    def load(self) -> Snapshot | None:
        local = self.fallback.load()
        if local is not None and local.pending_sync:
            log.info("Local copy has unsynced changes; pushing to primary")
            synced = replace(local, pending_sync=False)
            if self.primary.save(synced):
                self.fallback.save(synced)
                return synced
            return local

        snapshot = self.primary.load()
        if snapshot is not None:
            self.fallback.save(snapshot)
            return snapshot
        log.info("Primary store unavailable; loading local copy")
        return local

    def save(self, snapshot: Snapshot) -> bool:
        synced = replace(snapshot, pending_sync=False)
        local_ok = self.fallback.save(replace(snapshot, pending_sync=True))
        primary_ok = self.primary.save(synced)
        if primary_ok:
            local_ok = self.fallback.save(synced)
            message = "Saved to cloud."
        elif local_ok:
            message = "Saved locally (cloud unavailable)."
        else:
            message = "Save failed; changes are only held in memory."
        self.last_result = SaveResult(
            saved=primary_ok or local_ok, primary=primary_ok, message=message
        )
        return primary_ok


def build_store(config: AppConfig):
    local = JsonFileStore(config.store_path)
    if config.uses_remote:
        remote = RemoteStore(
            config.cloud_url,  # type: ignore[arg-type]
            config.cloud_app_key,
            timeout=config.cloud_timeout,
        )
        return MirroredStore(remote, local)
    if config.uses_dynamodb:
        return MirroredStore(DynamoTournamentStore.from_config(config), local)
    return local


__all__ = [
    "DynamoTournamentStore",
    "JsonFileStore",
    "MirroredStore",
    "RemoteStore",
    "SaveResult",
    "build_store",
]
