"""Renders a repository snapshot, plus any fetched file bodies, into the text handed to the model.

Sections always appear in the same order and a section whose data is empty is left out entirely."""

from collections.abc import Mapping

from github_contribution_assistant.clients.models.github import RepositorySnapshot, SnapshotIssue, SnapshotPullRequest
from github_contribution_assistant.models.repository.tree import get_file_extension
from github_contribution_assistant.sampling.prompts import PromptBuilder
from github_contribution_assistant.servers.shared.utility import flatten_newlines, truncate_text

TOP_LANGUAGES_LIMIT = 5
IMPORTANT_FILES_LIMIT = 30
TOP_LEVEL_DIRECTORIES_LIMIT = 15
README_EXCERPT_CHARACTERS = 2000
CONTRIBUTING_EXCERPT_CHARACTERS = 1000
GOOD_FIRST_ISSUES_LIMIT = 5
HELP_WANTED_ISSUES_LIMIT = 5
RECENT_ISSUES_LIMIT = 10
ISSUE_EXCERPT_CHARACTERS = 150
PULL_REQUESTS_LIMIT = 5

ISSUE_LINK_INSTRUCTION = "(IMPORTANT: When mentioning ANY issue, use the markdown link format shown below with the exact URL)"
PULL_REQUEST_LINK_INSTRUCTION = "(Use these exact URLs when linking to PRs)"
NO_FILE_CONTENTS_INSTRUCTION = (
    "No source files were loaded for this question. To see actual code, the user should ask about specific files. "
    "Do NOT make up code."
)


def format_language_breakdown(languages: Mapping[str, int], limit: int = TOP_LANGUAGES_LIMIT) -> str | None:
    total_bytes = sum(languages.values())
    if total_bytes <= 0:
        return None

    top_languages = sorted(languages.items(), key=lambda item: item[1], reverse=True)[:limit]

    return ", ".join(f"{language} ({round(byte_count / total_bytes * 100)}%)" for language, byte_count in top_languages)


def format_issue(issue: SnapshotIssue) -> str:
    labels = f" [{', '.join(issue.labels)}]" if issue.labels else ""
    comments = f" ({issue.comments_count} comments)" if issue.comments_count > 0 else ""

    line = f"- [#{issue.number}]({issue.url}) {issue.title}{labels}{comments}"

    if issue.body:
        line += f"\n  > {truncate_text(flatten_newlines(issue.body), ISSUE_EXCERPT_CHARACTERS)}"

    return line


def format_pull_request(pull_request: SnapshotPullRequest) -> str:
    draft = " (draft)" if pull_request.draft else ""
    return f"- [#{pull_request.number}]({pull_request.url}) {pull_request.title} by @{pull_request.author}{draft}"


class ContextAssembler:
    """Builds the repository context one section at a time, in a fixed order."""

    def assemble(self, snapshot: RepositorySnapshot, files: Mapping[str, str] | None = None) -> str:
        prompt = PromptBuilder()

        self._add_header(prompt, snapshot)
        self._add_languages(prompt, snapshot)
        self._add_file_structure(prompt, snapshot)
        self._add_documents(prompt, snapshot)
        self._add_issues(prompt, snapshot)
        self._add_pull_requests(prompt, snapshot)
        self._add_file_contents(prompt, files or {})

        return prompt.render_text()

    def _add_header(self, prompt: PromptBuilder, snapshot: RepositorySnapshot) -> None:
        lines: list[str] = [
            f"**Description:** {snapshot.description or 'No description'}",
            f"**Primary Language:** {snapshot.language or 'Unknown'}",
            f"**Stars:** {snapshot.stars} | **Forks:** {snapshot.forks} | **Open Issues:** {snapshot.open_issues_count}",
        ]

        if snapshot.topics:
            lines.append(f"**Topics:** {', '.join(snapshot.topics)}")

        _ = prompt.add_text_section(title=f"Repository: {snapshot.full_name}", text=lines, level=2)

    def _add_languages(self, prompt: PromptBuilder, snapshot: RepositorySnapshot) -> None:
        if breakdown := format_language_breakdown(snapshot.languages):
            _ = prompt.add_text_section(title="Languages", text=breakdown, level=2)

    def _add_file_structure(self, prompt: PromptBuilder, snapshot: RepositorySnapshot) -> None:
        important_files: list[str] = snapshot.file_tree.important_files(limit=IMPORTANT_FILES_LIMIT)
        directories: list[str] = snapshot.file_tree.top_level_directories(limit=TOP_LEVEL_DIRECTORIES_LIMIT)

        lines: list[str] = []

        if important_files:
            lines.append("Key files:")
            lines.extend(f"- {path}" for path in important_files)

        if directories:
            lines.append(f"Top-level directories: {', '.join(directories)}")

        if lines:
            _ = prompt.add_text_section(title="File Structure", text=lines, level=2)

    def _add_documents(self, prompt: PromptBuilder, snapshot: RepositorySnapshot) -> None:
        if snapshot.readme:
            _ = prompt.add_text_section(
                title="README (excerpt)", text=truncate_text(snapshot.readme, README_EXCERPT_CHARACTERS), level=2
            )

        if snapshot.contributing:
            _ = prompt.add_text_section(
                title="Contributing Guidelines (excerpt)",
                text=truncate_text(snapshot.contributing, CONTRIBUTING_EXCERPT_CHARACTERS),
                level=2,
            )

    def _add_issues(self, prompt: PromptBuilder, snapshot: RepositorySnapshot) -> None:
        if not snapshot.issues:
            return

        _ = prompt.add_text_section(title="Open Issues", text=ISSUE_LINK_INSTRUCTION, level=2)

        # An issue may appear under several headings, the categories are not exclusive
        categories: list[tuple[str, list[SnapshotIssue]]] = [
            ("Good First Issues", snapshot.good_first_issues[:GOOD_FIRST_ISSUES_LIMIT]),
            ("Help Wanted", snapshot.help_wanted_issues[:HELP_WANTED_ISSUES_LIMIT]),
            ("Recent Issues", snapshot.issues[:RECENT_ISSUES_LIMIT]),
        ]

        for title, issues in categories:
            if issues:
                _ = prompt.add_text_section(title=title, text=[format_issue(issue) for issue in issues], level=3)

    def _add_pull_requests(self, prompt: PromptBuilder, snapshot: RepositorySnapshot) -> None:
        if not snapshot.pull_requests:
            return

        lines: list[str] = [PULL_REQUEST_LINK_INSTRUCTION]
        lines.extend(format_pull_request(pull_request) for pull_request in snapshot.pull_requests[:PULL_REQUESTS_LIMIT])

        _ = prompt.add_text_section(title="Open Pull Requests", text=lines, level=2)

    def _add_file_contents(self, prompt: PromptBuilder, files: Mapping[str, str]) -> None:
        if not files:
            _ = prompt.add_text_section(title="Note: No file contents loaded", text=NO_FILE_CONTENTS_INSTRUCTION, level=2)
            return

        _ = prompt.add_text_section(title="File Contents (ACTUAL CODE - you may quote this)", text=[], level=2)

        for path, content in files.items():
            _ = prompt.add_code_section(title=path, code=content, language=get_file_extension(path), level=3)


def build_context(snapshot: RepositorySnapshot, files: Mapping[str, str] | None = None) -> str:
    return ContextAssembler().assemble(snapshot=snapshot, files=files)
