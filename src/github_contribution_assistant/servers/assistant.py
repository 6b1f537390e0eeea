from logging import Logger
from typing import Any

from fastmcp import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger

from github_contribution_assistant.answering import AnswerGenerator
from github_contribution_assistant.clients.cache import SnapshotCache
from github_contribution_assistant.clients.models.github import RepositorySnapshot
from github_contribution_assistant.context import build_context
from github_contribution_assistant.models.identifier import RepositoryIdentifier
from github_contribution_assistant.models.repository.tree import get_base_name
from github_contribution_assistant.routing import QueryRouter
from github_contribution_assistant.servers.models.assistant import (
    AnswerDebug,
    AnswerResult,
    IndexResult,
    IndexStats,
    QueryDecision,
    RepositoryStatus,
    ThinkingTrace,
)
from github_contribution_assistant.servers.shared.annotations import QUESTION, URL
from github_contribution_assistant.servers.shared.errors import INDEX_FAILURE_MESSAGE, RepositoryUnavailableError
from github_contribution_assistant.snapshots import RepositorySnapshotBuilder

ACCESS_FAILURE_ANSWER = (
    "I couldn't access this repository. Please make sure the URL is correct and the repository is public, then try indexing it again."
)


class AssistantServer:
    """Answers questions about a repository from a cached snapshot, rebuilding the snapshot when it is missing or stale."""

    def __init__(
        self,
        builder: RepositorySnapshotBuilder | None = None,
        cache: SnapshotCache | None = None,
        router: QueryRouter | None = None,
        generator: AnswerGenerator | None = None,
        logger: Logger | None = None,
    ):
        self.logger: Logger = logger or get_logger(name=__name__)
        self.builder: RepositorySnapshotBuilder = builder or RepositorySnapshotBuilder(logger=self.logger)
        self.cache: SnapshotCache = cache or SnapshotCache(logger=self.logger)
        self.router: QueryRouter = router or QueryRouter(logger=self.logger)
        self.generator: AnswerGenerator = generator or AnswerGenerator(logger=self.logger)

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.index_repository))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.ask_question))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.repository_status))

        return fastmcp

    async def _rebuild(self, identifier: RepositoryIdentifier) -> RepositorySnapshot:
        """Build a new snapshot and cache it. Nothing is cached when the build fails."""

        snapshot: RepositorySnapshot | None = await self.builder.build(owner=identifier.owner, repo=identifier.name)

        if snapshot is None:
            raise RepositoryUnavailableError(full_name=identifier.full_name)

        await self.cache.put(key=identifier.cache_key, snapshot=snapshot)

        return snapshot

    async def index_repository(self, url: URL) -> IndexResult:
        """Index a GitHub repository so questions can be asked about it. A fresh cached index is reused."""

        identifier: RepositoryIdentifier = RepositoryIdentifier.from_url(url)

        if existing := await self.cache.get_fresh(key=identifier.cache_key):
            self.logger.info(f"Serving cached index for {identifier.full_name}")
            return IndexResult(success=True, message="Repository already indexed", stats=IndexStats.from_snapshot(existing, cached=True))

        try:
            snapshot: RepositorySnapshot = await self._rebuild(identifier)
        except RepositoryUnavailableError as e:
            self.logger.warning(f"Indexing {identifier.full_name} failed: {e}")
            return IndexResult(success=False, message=INDEX_FAILURE_MESSAGE)

        return IndexResult(success=True, message="Repository indexed successfully", stats=IndexStats.from_snapshot(snapshot))

    async def ask_question(self, url: URL, question: QUESTION) -> AnswerResult:
        """Ask a question about a GitHub repository: its architecture, code, issues, or how to contribute."""

        identifier: RepositoryIdentifier = RepositoryIdentifier.from_url(url)
        trace = ThinkingTrace()

        trace.record("Loading repository data", "Checking cached index")

        snapshot: RepositorySnapshot | None = await self.cache.get_fresh(key=identifier.cache_key)

        if snapshot is None:
            trace.record("Rebuilding index", "Cache expired, fetching fresh data")

            try:
                snapshot = await self._rebuild(identifier)
            except RepositoryUnavailableError as e:
                self.logger.warning(f"Answering a question about {identifier.full_name} failed: {e}")
                trace.record("Error", "Failed to access repository")
                return AnswerResult(answer=ACCESS_FAILURE_ANSWER, thinking=trace.steps)

        trace.record("Repository loaded", f"{len(snapshot.file_tree)} files, {len(snapshot.issues)} issues indexed")

        trace.record("Analyzing question", "Determining what data is needed")

        decision: QueryDecision = await self.router.route(question=question, snapshot=snapshot)

        files: dict[str, str] = {}

        if decision.needs_files and decision.files:
            trace.record("Fetching source files", ", ".join(get_base_name(path) for path in decision.files))

            files = await self.builder.fetch_file_bodies(owner=identifier.owner, repo=identifier.name, paths=decision.files)

            if files:
                trace.record("Files loaded", ", ".join(f"`{path}`" for path in files))
        else:
            trace.record("Using indexed data", "No additional file fetching needed")

        trace.record("Building context", "Preparing repository context for analysis")

        context: str = build_context(snapshot=snapshot, files=files)

        trace.record("Generating response", "Analyzing with AI")

        answer: str = await self.generator.generate(question=question, context=context)

        return AnswerResult(
            answer=answer,
            thinking=trace.steps,
            debug=AnswerDebug(
                files_in_index=len(snapshot.file_tree),
                issues_in_index=len(snapshot.issues),
                additional_files_fetched=len(files),
                context_length=len(context),
            ),
        )

    async def repository_status(self, url: URL) -> RepositoryStatus:
        """Report whether a repository is indexed, and when."""

        identifier: RepositoryIdentifier = RepositoryIdentifier.from_url(url)

        return RepositoryStatus.from_snapshot(await self.cache.get(key=identifier.cache_key))
