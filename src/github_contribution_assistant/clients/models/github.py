from datetime import datetime
from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, ConfigDict, Field

from github_contribution_assistant.models.repository.tree import RepositoryTree
from github_contribution_assistant.servers.shared.utility import truncate_text

if TYPE_CHECKING:
    from githubkit.versions.v2022_11_28.models import FullRepository as GitHubKitFullRepository
    from githubkit.versions.v2022_11_28.models import Issue as GitHubKitIssue
    from githubkit.versions.v2022_11_28.models import PullRequestSimple as GitHubKitPullRequestSimple

README_MAX_CHARACTERS = 8000
CONTRIBUTING_MAX_CHARACTERS = 3000
ISSUE_BODY_MAX_CHARACTERS = 500
PULL_REQUEST_BODY_MAX_CHARACTERS = 300

GOOD_FIRST_ISSUE_LABELS = ("good first", "beginner")
HELP_WANTED_LABELS = ("help wanted",)

UNKNOWN_AUTHOR = "ghost"


def truncate_optional(text: str | None, max_length: int) -> str | None:
    if not text:
        return None
    return truncate_text(text, max_length)


def login_or_unknown(user: Any) -> str:  # pyright: ignore[reportAny]
    return getattr(user, "login", None) or UNKNOWN_AUTHOR


def label_names(labels: list[Any]) -> list[str]:  # pyright: ignore[reportExplicitAny]
    """Issue labels come back either as plain strings or as label objects."""

    names: list[str] = []

    for label in labels:
        name = label if isinstance(label, str) else getattr(label, "name", None)
        if name:
            names.append(name)

    return names


class RepositoryMetadata(BaseModel):
    """The descriptive metadata of a repository."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="The owner of the repository.")
    name: str = Field(description="The name of the repository.")
    full_name: str = Field(description="The `owner/name` of the repository.")
    description: str | None = Field(default=None, description="The description of the repository.")
    url: str = Field(description="The URL of the repository on github.com.")
    default_branch: str = Field(description="The default branch of the repository.")
    language: str | None = Field(default=None, description="The primary language of the repository.")
    topics: list[str] = Field(default_factory=list, description="The topics of the repository.")
    stars: int = Field(ge=0, description="The number of stars the repository has.")
    forks: int = Field(ge=0, description="The number of forks the repository has.")
    open_issues_count: int = Field(ge=0, description="The number of open issues and pull requests reported by GitHub.")

    @classmethod
    def from_full_repository(cls, full_repository: "GitHubKitFullRepository") -> Self:
        return cls(
            owner=full_repository.owner.login,
            name=full_repository.name,
            full_name=full_repository.full_name,
            description=full_repository.description,
            url=full_repository.html_url,
            default_branch=full_repository.default_branch,
            language=full_repository.language,
            topics=list(full_repository.topics or []),
            stars=full_repository.stargazers_count,
            forks=full_repository.forks_count,
            open_issues_count=full_repository.open_issues_count,
        )


class SnapshotIssue(BaseModel):
    """An open issue, as captured in a snapshot."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(description="The number of the issue.")
    title: str = Field(description="The title of the issue.")
    body: str | None = Field(default=None, description="The body of the issue, truncated.")
    labels: list[str] = Field(default_factory=list, description="The names of the labels on the issue.")
    author: str = Field(description="The login of the issue author.")
    created_at: datetime = Field(description="When the issue was opened.")
    comments_count: int = Field(default=0, ge=0, description="The number of comments on the issue.")
    url: str = Field(description="The URL of the issue on github.com.")

    @classmethod
    def from_issue(cls, issue: "GitHubKitIssue") -> Self:
        return cls(
            number=issue.number,
            title=issue.title,
            body=truncate_optional(issue.body, ISSUE_BODY_MAX_CHARACTERS),
            labels=label_names(issue.labels),
            author=login_or_unknown(issue.user),
            created_at=issue.created_at,
            comments_count=issue.comments,
            url=issue.html_url,
        )

    def has_label_containing(self, fragments: tuple[str, ...]) -> bool:
        return any(fragment in label.lower() for label in self.labels for fragment in fragments)

    @property
    def is_good_first_issue(self) -> bool:
        return self.has_label_containing(GOOD_FIRST_ISSUE_LABELS)

    @property
    def is_help_wanted(self) -> bool:
        return self.has_label_containing(HELP_WANTED_LABELS)


class SnapshotPullRequest(BaseModel):
    """An open pull request, as captured in a snapshot."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(description="The number of the pull request.")
    title: str = Field(description="The title of the pull request.")
    body: str | None = Field(default=None, description="The body of the pull request, truncated.")
    author: str = Field(description="The login of the pull request author.")
    created_at: datetime = Field(description="When the pull request was opened.")
    url: str = Field(description="The URL of the pull request on github.com.")
    draft: bool = Field(default=False, description="Whether the pull request is a draft.")

    @classmethod
    def from_pull_request_simple(cls, pull_request: "GitHubKitPullRequestSimple") -> Self:
        return cls(
            number=pull_request.number,
            title=pull_request.title,
            body=truncate_optional(pull_request.body, PULL_REQUEST_BODY_MAX_CHARACTERS),
            author=login_or_unknown(pull_request.user),
            created_at=pull_request.created_at,
            url=pull_request.html_url,
            draft=bool(pull_request.draft),
        )


class RepositorySnapshot(RepositoryMetadata):
    """The complete indexed state of one repository at one point in time."""

    languages: dict[str, int] = Field(default_factory=dict, description="Bytes of code per language.")
    readme: str | None = Field(default=None, description="The README, truncated.")
    contributing: str | None = Field(default=None, description="The contributing guide, truncated.")
    file_tree: RepositoryTree = Field(default_factory=RepositoryTree, description="The depth-bounded file tree.")
    issues: list[SnapshotIssue] = Field(default_factory=list, description="Open issues, most recently updated first.")
    pull_requests: list[SnapshotPullRequest] = Field(default_factory=list, description="Open pull requests, most recently updated first.")
    indexed_at: datetime = Field(description="When the snapshot was assembled.")

    @classmethod
    def from_metadata(
        cls,
        metadata: RepositoryMetadata,
        *,
        indexed_at: datetime,
        languages: dict[str, int] | None = None,
        readme: str | None = None,
        contributing: str | None = None,
        file_tree: RepositoryTree | None = None,
        issues: list[SnapshotIssue] | None = None,
        pull_requests: list[SnapshotPullRequest] | None = None,
    ) -> Self:
        return cls(
            **metadata.model_dump(),  # pyright: ignore[reportAny]
            languages=languages or {},
            readme=truncate_optional(readme, README_MAX_CHARACTERS),
            contributing=truncate_optional(contributing, CONTRIBUTING_MAX_CHARACTERS),
            file_tree=file_tree or RepositoryTree(),
            issues=issues or [],
            pull_requests=pull_requests or [],
            indexed_at=indexed_at,
        )

    @property
    def good_first_issues(self) -> list[SnapshotIssue]:
        return [issue for issue in self.issues if issue.is_good_first_issue]

    @property
    def help_wanted_issues(self) -> list[SnapshotIssue]:
        return [issue for issue in self.issues if issue.is_help_wanted]

    def age_seconds(self, now: datetime) -> float:
        return (now - self.indexed_at).total_seconds()
