from collections.abc import Sequence
from typing import Any

import pytest
from pydantic import BaseModel

from github_contribution_assistant.clients.cache import InMemoryKeyValueStore, SnapshotCache
from tests.fakes import EPOCH, ManualClock


@pytest.fixture(autouse=True)
def no_external_services(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests away from real Elasticsearch, Gemini and OpenAI."""

    for env_var in ("ES_URL", "ES_API_KEY", "GOOGLE_API_KEY", "OPENAI_API_KEY", "SNAPSHOT_TTL_SECONDS"):
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(now=EPOCH)


@pytest.fixture
def store(clock: ManualClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def snapshot_cache(store: InMemoryKeyValueStore, clock: ManualClock) -> SnapshotCache:
    return SnapshotCache(store=store, ttl_seconds=1800, clock=clock)


def handle_exclude_keys(dictionary: dict[str, Any], exclude_keys: list[str] | None = None) -> dict[str, Any]:
    if exclude_keys is None:
        return dictionary
    return {key: value for key, value in dictionary.items() if key not in exclude_keys}


def dump_for_snapshot(
    basemodel: None | BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any] | None:
    if basemodel is None:
        return None

    return handle_exclude_keys(basemodel.model_dump(exclude_none=exclude_none, **dump_kwargs), exclude_keys)


def dump_list_for_snapshot(
    basemodel: None | Sequence[BaseModel],
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> list[dict[str, Any]] | None:
    if basemodel is None:
        return None

    return [handle_exclude_keys(item.model_dump(exclude_none=exclude_none, **dump_kwargs), exclude_keys) for item in basemodel]
