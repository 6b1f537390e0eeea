import asyncio
from collections.abc import Awaitable
from logging import Logger
from typing import TYPE_CHECKING, Any

from fastmcp.utilities.logging import get_logger

from github_contribution_assistant.clients.cache import Clock, utc_now
from github_contribution_assistant.clients.errors.github import ClientError
from github_contribution_assistant.clients.github import GitHubRepositoryClient
from github_contribution_assistant.clients.models.github import (
    RepositoryMetadata,
    RepositorySnapshot,
    SnapshotIssue,
    SnapshotPullRequest,
)
from github_contribution_assistant.models.repository.tree import MAX_TREE_DEPTH, FileTreeEntry, RepositoryTree, should_skip_directory
from github_contribution_assistant.servers.shared.utility import truncate_text

if TYPE_CHECKING:
    from types import CoroutineType

MAX_FILES_PER_QUESTION = 5
FILE_BODY_MAX_CHARACTERS = 6000

CONTRIBUTING_PATHS: tuple[str, ...] = ("CONTRIBUTING.md", ".github/CONTRIBUTING.md", "docs/CONTRIBUTING.md")


class RepositorySnapshotBuilder:
    """Fetches everything a snapshot is made of from the GitHub REST API.

    Only the repository metadata is mandatory. Every other sub-fetch degrades to empty or absent data when it fails,
    so one flaky endpoint never aborts the whole snapshot."""

    def __init__(self, github_client: GitHubRepositoryClient | None = None, clock: Clock | None = None, logger: Logger | None = None):
        self.github_client: GitHubRepositoryClient = github_client or GitHubRepositoryClient()
        self.clock: Clock = clock or utc_now
        self.logger: Logger = logger or get_logger(name=__name__)

    async def _fetch_or_default[T](self, description: str, fetch: Awaitable[T], default: T) -> T:
        try:
            return await fetch
        except ClientError as e:
            self.logger.warning(f"Failed to fetch {description}, continuing without it: {e}")
            return default

    async def build(self, owner: str, repo: str) -> RepositorySnapshot | None:
        """Build a full snapshot of the repository. Returns None if the repository metadata cannot be fetched."""

        self.logger.info(f"Indexing repository: {owner}/{repo}")

        metadata, readme, contributing, file_tree, issues, pull_requests, languages = await asyncio.gather(
            self._fetch_or_default(
                f"metadata for {owner}/{repo}", self.github_client.get_repository(owner=owner, repo=repo), default=None
            ),
            self._fetch_or_default(f"README for {owner}/{repo}", self.github_client.get_readme(owner=owner, repo=repo), default=None),
            self.fetch_contributing_guide(owner=owner, repo=repo),
            self.fetch_file_tree(owner=owner, repo=repo),
            self._fetch_or_default(
                f"issues for {owner}/{repo}", self.github_client.list_open_issues(owner=owner, repo=repo), default=list[SnapshotIssue]()
            ),
            self._fetch_or_default(
                f"pull requests for {owner}/{repo}",
                self.github_client.list_open_pull_requests(owner=owner, repo=repo),
                default=list[SnapshotPullRequest](),
            ),
            self._fetch_or_default(
                f"languages for {owner}/{repo}", self.github_client.get_languages(owner=owner, repo=repo), default=dict[str, int]()
            ),
        )

        if not isinstance(metadata, RepositoryMetadata):
            self.logger.warning(f"Failed to fetch repository metadata for {owner}/{repo}")
            return None

        snapshot = RepositorySnapshot.from_metadata(
            metadata,
            indexed_at=self.clock(),
            languages=languages,
            readme=readme,
            contributing=contributing,
            file_tree=file_tree,
            issues=issues,
            pull_requests=pull_requests,
        )

        self.logger.info(
            f"Indexed {owner}/{repo}: {len(snapshot.file_tree)} files, {len(snapshot.issues)} issues, {len(snapshot.pull_requests)} PRs"
        )

        return snapshot

    async def fetch_contributing_guide(self, owner: str, repo: str) -> str | None:
        """Look for a contributing guide in the usual places, first hit wins."""

        for path in CONTRIBUTING_PATHS:
            if content := await self._fetch_or_default(
                f"{path} for {owner}/{repo}", self.github_client.get_file_content(owner=owner, repo=repo, path=path), default=None
            ):
                return content

        return None

    async def fetch_file_tree(self, owner: str, repo: str) -> RepositoryTree:
        return RepositoryTree(entries=await self._walk_directory(owner=owner, repo=repo, path="", depth=0))

    async def _walk_directory(self, owner: str, repo: str, path: str, depth: int) -> list[FileTreeEntry]:
        if depth > MAX_TREE_DEPTH:
            return []

        children: list[FileTreeEntry] = await self._fetch_or_default(
            f"directory listing of '{path or '/'}' in {owner}/{repo}",
            self.github_client.list_directory(owner=owner, repo=repo, path=path),
            default=list[FileTreeEntry](),
        )

        # Skipped directories are still recorded, just never listed
        tasks: list[CoroutineType[Any, Any, list[FileTreeEntry]]] = [
            self._walk_directory(owner=owner, repo=repo, path=child.path, depth=depth + 1)
            for child in children
            if child.kind == "dir" and not should_skip_directory(child.path)
        ]

        nested: list[list[FileTreeEntry]] = await asyncio.gather(*tasks)

        return [*children, *(entry for entries in nested for entry in entries)]

    async def fetch_file_bodies(self, owner: str, repo: str, paths: list[str]) -> dict[str, str]:
        """Fetch the text of up to the first 5 requested files. Files that fail to fetch or decode are left out."""

        requested: list[str] = paths[:MAX_FILES_PER_QUESTION]

        contents: list[str | None] = await asyncio.gather(
            *[
                self._fetch_or_default(
                    f"{path} from {owner}/{repo}", self.github_client.get_file_content(owner=owner, repo=repo, path=path), default=None
                )
                for path in requested
            ]
        )

        return {
            path: truncate_text(content, FILE_BODY_MAX_CHARACTERS) for path, content in zip(requested, contents, strict=True) if content
        }
