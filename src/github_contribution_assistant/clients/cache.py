import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from logging import Logger
from typing import TYPE_CHECKING, Any, Protocol

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, ValidationError

from github_contribution_assistant.clients.elasticsearch import get_elasticsearch_client, get_elasticsearch_index
from github_contribution_assistant.clients.models.github import RepositorySnapshot

if TYPE_CHECKING:
    from elasticsearch import AsyncElasticsearch

SNAPSHOT_TTL_SECONDS = 1800

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def get_snapshot_ttl() -> int:
    return int(os.getenv("SNAPSHOT_TTL_SECONDS", str(SNAPSHOT_TTL_SECONDS)))


class KeyValueStore(Protocol):
    """A string key/value store whose entries expire after a TTL."""

    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str, ttl_seconds: int) -> None: ...


class StoredValue(BaseModel):
    value: str
    expires_at: datetime


class InMemoryKeyValueStore:
    """A process-local store. Expired entries are dropped on read, and swept from the whole store on write."""

    def __init__(self, clock: Clock | None = None):
        self.clock: Clock = clock or utc_now
        self.entries: dict[str, StoredValue] = {}

    async def get(self, key: str) -> str | None:
        if not (stored := self.entries.get(key)):
            return None

        if stored.expires_at <= self.clock():
            del self.entries[key]
            return None

        return stored.value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        now: datetime = self.clock()

        for expired_key in [stored_key for stored_key, stored in self.entries.items() if stored.expires_at <= now]:
            del self.entries[expired_key]

        self.entries[key] = StoredValue(value=value, expires_at=now + timedelta(seconds=ttl_seconds))


class ElasticsearchKeyValueStore:
    """Stores each entry as a document keyed by the cache key. Expiry is checked against `expires_at` on read."""

    def __init__(self, elasticsearch_client: "AsyncElasticsearch", index: str | None = None, clock: Clock | None = None):
        self.elasticsearch_client: AsyncElasticsearch = elasticsearch_client
        self.index: str = index or get_elasticsearch_index()
        self.clock: Clock = clock or utc_now

    async def get(self, key: str) -> str | None:
        response = await self.elasticsearch_client.options(ignore_status=404).get(index=self.index, id=key)

        body: dict[str, Any] = response.body  # pyright: ignore[reportAny]

        if not body.get("found") or not (source := body.get("_source")):
            return None

        stored = StoredValue.model_validate(source)

        if stored.expires_at <= self.clock():
            return None

        return stored.value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        stored = StoredValue(value=value, expires_at=self.clock() + timedelta(seconds=ttl_seconds))

        _ = await self.elasticsearch_client.index(index=self.index, id=key, document=stored.model_dump(mode="json"))


def get_cache_backend(clock: Clock | None = None) -> KeyValueStore:
    if elasticsearch_client := get_elasticsearch_client():
        return ElasticsearchKeyValueStore(elasticsearch_client=elasticsearch_client, clock=clock)

    return InMemoryKeyValueStore(clock=clock)


class SnapshotCache:
    """Maps a repository key to its most recent snapshot.

    `get` returns whatever the store still holds; `get_fresh` additionally applies the freshness policy against the
    snapshot's `indexed_at` marker. The store's own expiry is only a backstop."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        ttl_seconds: int | None = None,
        clock: Clock | None = None,
        logger: Logger | None = None,
    ):
        self.clock: Clock = clock or utc_now
        self.store: KeyValueStore = store or get_cache_backend(clock=self.clock)
        self.ttl_seconds: int = ttl_seconds or get_snapshot_ttl()
        self.logger: Logger = logger or get_logger(name=__name__)

    async def get(self, key: str) -> RepositorySnapshot | None:
        if not (serialized := await self.store.get(key)):
            return None

        try:
            return RepositorySnapshot.model_validate_json(serialized)
        except ValidationError:
            self.logger.warning(f"Discarding unreadable cached snapshot for {key}")
            return None

    def is_fresh(self, snapshot: RepositorySnapshot) -> bool:
        return snapshot.age_seconds(now=self.clock()) < self.ttl_seconds

    async def get_fresh(self, key: str) -> RepositorySnapshot | None:
        if not (snapshot := await self.get(key)):
            return None

        if not self.is_fresh(snapshot):
            self.logger.info(f"Cached snapshot for {key} is stale, indexed at {snapshot.indexed_at.isoformat()}")
            return None

        return snapshot

    async def put(self, key: str, snapshot: RepositorySnapshot, ttl_seconds: int | None = None) -> None:
        await self.store.put(key, snapshot.model_dump_json(), ttl_seconds or self.ttl_seconds)
