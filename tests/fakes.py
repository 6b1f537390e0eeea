from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from mcp.types import SamplingMessage, TextContent
from pydantic import BaseModel

from github_contribution_assistant.clients.errors.github import RequestError
from github_contribution_assistant.clients.models.github import (
    RepositoryMetadata,
    RepositorySnapshot,
    SnapshotIssue,
    SnapshotPullRequest,
)
from github_contribution_assistant.models.repository.tree import FileTreeEntry, RepositoryTree

EPOCH = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = EPOCH):
        self.now: datetime = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class SamplingCall(BaseModel):
    messages: list[SamplingMessage]
    system_prompt: str | None
    max_tokens: int

    @property
    def text(self) -> str:
        return "\n".join(message.content.text for message in self.messages if isinstance(message.content, TextContent))


class FakeSampler:
    """Replays canned responses in order. An exception in the script is raised instead of returned."""

    def __init__(self, *responses: Any):  # pyright: ignore[reportAny]
        self.responses: list[Any] = list(responses)
        self.calls: list[SamplingCall] = []

    async def __call__(self, messages: Sequence[SamplingMessage], *, system_prompt: str | None = None, max_tokens: int = 2000) -> Any:  # pyright: ignore[reportAny]
        self.calls.append(SamplingCall(messages=list(messages), system_prompt=system_prompt, max_tokens=max_tokens))

        if not self.responses:
            msg = "FakeSampler ran out of responses"
            raise AssertionError(msg)

        response = self.responses.pop(0)  # pyright: ignore[reportAny]

        if isinstance(response, Exception):
            raise response

        return TextContent(type="text", text=response) if isinstance(response, str) else response


class FakeGitHubClient:
    """Serves a single in-memory repository with the same methods as the REST client."""

    def __init__(
        self,
        metadata: RepositoryMetadata | None,
        readme: str | None = None,
        files: dict[str, str] | None = None,
        directories: dict[str, list[FileTreeEntry]] | None = None,
        issues: list[SnapshotIssue] | None = None,
        pull_requests: list[SnapshotPullRequest] | None = None,
        languages: dict[str, int] | None = None,
        failing: set[str] | None = None,
    ):
        self.metadata: RepositoryMetadata | None = metadata
        self.readme: str | None = readme
        self.files: dict[str, str] = files or {}
        self.directories: dict[str, list[FileTreeEntry]] = directories or {}
        self.issues: list[SnapshotIssue] = issues or []
        self.pull_requests: list[SnapshotPullRequest] = pull_requests or []
        self.languages: dict[str, int] = languages or {}
        self.failing: set[str] = failing or set()

        self.listed_directories: list[str] = []
        self.fetched_files: list[str] = []
        self.repository_requests: int = 0

    def _fail_if_requested(self, name: str) -> None:
        if name in self.failing:
            raise RequestError(action=name, message="Server Error")

    async def get_repository(self, owner: str, repo: str, error_on_not_found: bool = False) -> RepositoryMetadata | None:
        self.repository_requests += 1
        self._fail_if_requested("repository")
        return self.metadata

    async def get_readme(self, owner: str, repo: str) -> str | None:
        self._fail_if_requested("readme")
        return self.readme

    async def get_file_content(self, owner: str, repo: str, path: str) -> str | None:
        self.fetched_files.append(path)
        self._fail_if_requested(path)
        return self.files.get(path)

    async def list_directory(self, owner: str, repo: str, path: str = "") -> list[FileTreeEntry]:
        self.listed_directories.append(path)
        self._fail_if_requested(f"dir:{path}")
        return self.directories.get(path, [])

    async def list_open_issues(self, owner: str, repo: str, limit: int = 30) -> list[SnapshotIssue]:
        self._fail_if_requested("issues")
        return self.issues[:limit]

    async def list_open_pull_requests(self, owner: str, repo: str, limit: int = 15) -> list[SnapshotPullRequest]:
        self._fail_if_requested("pull_requests")
        return self.pull_requests[:limit]

    async def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        self._fail_if_requested("languages")
        return self.languages


def file_entry(path: str, size: int = 100) -> FileTreeEntry:
    return FileTreeEntry(path=path, kind="file", size=size)


def dir_entry(path: str) -> FileTreeEntry:
    return FileTreeEntry(path=path, kind="dir")


def new_metadata(owner: str = "acme", name: str = "widgets") -> RepositoryMetadata:
    return RepositoryMetadata(
        owner=owner,
        name=name,
        full_name=f"{owner}/{name}",
        description="Widgets for everyone",
        url=f"https://github.com/{owner}/{name}",
        default_branch="main",
        language="TypeScript",
        topics=["widgets", "ui"],
        stars=1200,
        forks=85,
        open_issues_count=3,
    )


def new_issue(number: int, title: str | None = None, labels: list[str] | None = None, body: str | None = None) -> SnapshotIssue:
    return SnapshotIssue(
        number=number,
        title=title or f"Issue {number}",
        body=body,
        labels=labels or [],
        author="octocat",
        created_at=EPOCH,
        comments_count=0,
        url=f"https://github.com/acme/widgets/issues/{number}",
    )


def new_pull_request(number: int, draft: bool = False) -> SnapshotPullRequest:
    return SnapshotPullRequest(
        number=number,
        title=f"Pull request {number}",
        author="hubot",
        created_at=EPOCH,
        url=f"https://github.com/acme/widgets/pull/{number}",
        draft=draft,
    )


def new_snapshot(
    issues: list[SnapshotIssue] | None = None,
    pull_requests: list[SnapshotPullRequest] | None = None,
    entries: list[FileTreeEntry] | None = None,
    readme: str | None = "# Widgets\nWidgets for everyone.",
    contributing: str | None = None,
    languages: dict[str, int] | None = None,
    indexed_at: datetime = EPOCH,
) -> RepositorySnapshot:
    return RepositorySnapshot.from_metadata(
        new_metadata(),
        indexed_at=indexed_at,
        languages=languages if languages is not None else {"TypeScript": 7500, "CSS": 2500},
        readme=readme,
        contributing=contributing,
        file_tree=RepositoryTree(entries=entries if entries is not None else [file_entry("package.json"), dir_entry("src"), file_entry("src/index.ts")]),
        issues=issues,
        pull_requests=pull_requests,
    )
