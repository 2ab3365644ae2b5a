"""Shared test fixtures for all test modules."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

import pytest

from blocknote.models.block import Block
from blocknote.services.exceptions import LocalCacheError, RemoteStoreError


BASE_TIME = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


class TickingClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


class MemoryLocalCache:
    """In-memory LocalCache."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, blob: str) -> None:
        self.writes += 1
        self.data[key] = blob


class FailingLocalCache:
    """LocalCache whose every access fails."""

    def get(self, key: str) -> Optional[str]:
        raise LocalCacheError(key, "disk unavailable")

    def set(self, key: str, blob: str) -> None:
        raise LocalCacheError(key, "disk full")


class FakeRemoteStore:
    """
    RemoteStore keeping rows in a dict and recording every call.

    Flip ``fail_upsert`` / ``fail_delete`` / ``fail_fetch`` to simulate
    outages and ``reachable`` to control the probe.
    """

    def __init__(self, rows: Optional[Sequence[dict[str, Any]]] = None, configured: bool = True):
        self.rows: dict[str, dict[str, Any]] = {row["id"]: dict(row) for row in rows or []}
        self.configured = configured
        self.reachable = True
        self.fail_upsert = False
        self.fail_delete = False
        self.fail_fetch = False
        self.calls: list[tuple[str, Any]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    @property
    def write_calls(self) -> list[tuple[str, Any]]:
        return [call for call in self.calls if call[0] in ("upsert", "delete")]

    @property
    def upserted_batches(self) -> list[list[str]]:
        return [ids for op, ids in self.calls if op == "upsert"]

    async def probe(self) -> bool:
        self.calls.append(("probe", None))
        return self.reachable

    async def fetch_all(self) -> list[dict[str, Any]]:
        self.calls.append(("fetch", None))
        if self.fail_fetch:
            raise RemoteStoreError("fetch", "connection refused")
        return sorted(self.rows.values(), key=lambda row: row.get("sort_order", 0))

    async def upsert_batch(self, records: Sequence[dict[str, Any]]) -> None:
        self.calls.append(("upsert", [record["id"] for record in records]))
        if self.fail_upsert:
            raise RemoteStoreError("upsert", "Service Unavailable", status_code=503)
        for record in records:
            self.rows[record["id"]] = dict(record)

    async def delete_batch(self, ids: Sequence[str]) -> None:
        self.calls.append(("delete", list(ids)))
        if self.fail_delete:
            raise RemoteStoreError("delete", "Service Unavailable", status_code=503)
        for block_id in ids:
            self.rows.pop(block_id, None)


def make_block(block_id: str, indent: int = 0, collapsed: bool = False, content: str = "", **extra) -> Block:
    """Block with a readable id and fixed timestamps."""
    return Block(
        id=block_id,
        indent=indent,
        is_collapsed=collapsed,
        content=content or f"<p>{block_id}</p>",
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
        **extra,
    )


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def local_cache():
    return MemoryLocalCache()


@pytest.fixture
def remote():
    return FakeRemoteStore()
