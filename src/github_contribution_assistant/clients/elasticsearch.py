import os

from elasticsearch import AsyncElasticsearch

DEFAULT_SNAPSHOT_INDEX = "github-contribution-assistant-snapshots"


def get_elasticsearch_index() -> str:
    return os.getenv("ES_INDEX") or DEFAULT_SNAPSHOT_INDEX


def get_elasticsearch_client() -> AsyncElasticsearch | None:
    if not (host := os.getenv("ES_URL")):
        return None

    if not (api_key := os.getenv("ES_API_KEY")):
        return None

    return AsyncElasticsearch(
        hosts=[host],
        api_key=api_key,
        http_compress=True,
        retry_on_timeout=False,
    )
