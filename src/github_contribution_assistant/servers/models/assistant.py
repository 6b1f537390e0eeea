from datetime import datetime
from typing import Literal, Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from github_contribution_assistant.clients.models.github import RepositorySnapshot


class QueryDecision(BaseModel):
    """Whether answering a question requires source files, and which ones."""

    model_config = ConfigDict(populate_by_name=True)

    needs_files: bool = Field(
        default=False,
        validation_alias=AliasChoices("needs_files", "needsFiles"),
        description="Whether the contents of source files are needed to answer the question.",
    )
    files: list[str] = Field(default_factory=list, description="The paths of the files to fetch, most relevant first.")
    reasoning: str | None = Field(default=None, description="A brief explanation of the choice.")

    @classmethod
    def no_files(cls) -> Self:
        return cls(needs_files=False, files=[])


class ThinkingStep(BaseModel):
    """One entry of the trace of pipeline stages that ran for a question."""

    model_config = ConfigDict(frozen=True)

    step: str = Field(description="The name of the stage.")
    detail: str = Field(description="What happened during the stage.")
    status: Literal["done", "working"] = Field(default="done", description="Whether the stage completed.")


class ThinkingTrace:
    """An append-only log of thinking steps, handed to the caller as a copy once the question is answered."""

    def __init__(self) -> None:
        self._steps: list[ThinkingStep] = []

    def record(self, step: str, detail: str, status: Literal["done", "working"] = "done") -> None:
        self._steps.append(ThinkingStep(step=step, detail=detail, status=status))

    @property
    def steps(self) -> list[ThinkingStep]:
        return list(self._steps)


class AnswerDebug(BaseModel):
    files_in_index: int = Field(description="The number of entries in the indexed file tree.")
    issues_in_index: int = Field(description="The number of issues in the snapshot.")
    additional_files_fetched: int = Field(description="The number of source files fetched for this question.")
    context_length: int = Field(description="The length of the assembled context, in characters.")


class AnswerResult(BaseModel):
    """The answer to a question about a repository."""

    answer: str = Field(description="The answer, in markdown.")
    thinking: list[ThinkingStep] = Field(default_factory=list, description="The stages that ran to produce the answer.")
    debug: AnswerDebug | None = Field(default=None, description="Sizes of the data the answer was based on.")


class IndexStats(BaseModel):
    name: str
    full_name: str
    description: str | None
    language: str | None
    stars: int
    forks: int
    open_issues: int
    files_indexed: int
    recent_issues_loaded: int
    recent_prs_loaded: int
    good_first_issues: int | None = Field(default=None, description="Absent when the snapshot holds no good first issues.")
    help_wanted_issues: int | None = Field(default=None, description="Absent when the snapshot holds no help wanted issues.")
    has_readme: bool
    has_contributing: bool
    cached: bool = False
    indexed_at: datetime

    @classmethod
    def from_snapshot(cls, snapshot: RepositorySnapshot, cached: bool = False) -> Self:
        return cls(
            name=snapshot.name,
            full_name=snapshot.full_name,
            description=snapshot.description,
            language=snapshot.language,
            stars=snapshot.stars,
            forks=snapshot.forks,
            open_issues=snapshot.open_issues_count,
            files_indexed=len(snapshot.file_tree),
            recent_issues_loaded=len(snapshot.issues),
            recent_prs_loaded=len(snapshot.pull_requests),
            good_first_issues=len(snapshot.good_first_issues) or None,
            help_wanted_issues=len(snapshot.help_wanted_issues) or None,
            has_readme=bool(snapshot.readme),
            has_contributing=bool(snapshot.contributing),
            cached=cached,
            indexed_at=snapshot.indexed_at,
        )


class IndexResult(BaseModel):
    """The outcome of indexing a repository."""

    success: bool = Field(description="Whether a snapshot of the repository is available.")
    message: str = Field(description="A human-readable summary of the outcome.")
    stats: IndexStats | None = Field(default=None, description="Statistics about the snapshot, when indexing succeeded.")


class RepositoryStatus(BaseModel):
    """What the cache currently holds for a repository."""

    indexed: bool = Field(description="Whether a snapshot is cached.")
    indexed_at: datetime | None = Field(default=None, description="When the cached snapshot was assembled.")
    issues_count: int = Field(default=0, description="The number of issues in the cached snapshot.")
    files_count: int = Field(default=0, description="The number of file tree entries in the cached snapshot.")

    @classmethod
    def from_snapshot(cls, snapshot: RepositorySnapshot | None) -> Self:
        if snapshot is None:
            return cls(indexed=False)

        return cls(
            indexed=True,
            indexed_at=snapshot.indexed_at,
            issues_count=len(snapshot.issues),
            files_count=len(snapshot.file_tree),
        )
