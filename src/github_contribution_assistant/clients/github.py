import os
from collections.abc import Awaitable, Callable, Sequence
from logging import Logger, getLogger
from typing import Any, Literal, overload

from githubkit import GitHub as GitHubKit
from githubkit.auth.token import TokenAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException
from githubkit.exception import RequestFailed as GitHubKitRequestFailed
from githubkit.response import Response as GitHubKitResponse
from pydantic import BaseModel

from github_contribution_assistant.clients.errors.github import RequestError, ResourceNotFoundError
from github_contribution_assistant.clients.models.github import RepositoryMetadata, SnapshotIssue, SnapshotPullRequest
from github_contribution_assistant.models.repository.tree import FileTreeEntry
from github_contribution_assistant.servers.shared.utility import decode_content

NOT_FOUND_ERROR = 404

GITHUBKIT_RESPONSE_TYPE = BaseModel | Sequence[BaseModel]

DEFAULT_ISSUES_LIMIT = 30
DEFAULT_PULL_REQUESTS_LIMIT = 15


def extract_response[T: GITHUBKIT_RESPONSE_TYPE](response: GitHubKitResponse[T], /) -> T:
    """Extract the response from a response."""

    return response.parsed_data


def get_github_token() -> str:
    for env_var in ("GITHUB_TOKEN", "GITHUB_PERSONAL_ACCESS_TOKEN"):
        if token := os.environ.get(env_var):
            return token
    msg = "GITHUB_TOKEN or GITHUB_PERSONAL_ACCESS_TOKEN must be set"
    raise ValueError(msg)


def get_githubkit_client() -> GitHubKit[Any]:
    # A failed sub-fetch degrades to "no data" instead of being retried
    return GitHubKit[TokenAuthStrategy](auth=TokenAuthStrategy(token=get_github_token()), auto_retry=False)


class GitHubRepositoryClient:
    """Thin REST client for the handful of endpoints needed to index a repository."""

    githubkit_client: GitHubKit[Any]
    logger: Logger

    log_requests: bool
    log_responses: bool
    log_on_error: bool

    def __init__(
        self,
        githubkit_client: GitHubKit[Any] | None = None,
        logger: Logger | None = None,
        log_requests: bool = True,
        log_responses: bool = False,
        log_on_error: bool = True,
    ):
        self.githubkit_client = githubkit_client or get_githubkit_client()
        self.logger = logger or getLogger(__name__)
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.log_on_error = log_on_error

    def _get_loggers(
        self, log_request: bool | None = None, log_response: bool | None = None, log_on_error: bool | None = None
    ) -> tuple[Callable[[str], Any], Callable[[str], Any], Callable[[str], Any]]:
        request_logger = self.logger.info if log_request or self.log_requests else self.logger.debug
        response_logger = self.logger.info if log_response or self.log_responses else self.logger.debug
        error_logger = self.logger.exception if log_on_error or self.log_on_error else self.logger.debug
        return request_logger, response_logger, error_logger

    @overload
    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: Literal[False] = False,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None: ...

    @overload
    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: Literal[True] = True,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T: ...

    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: bool | None = None,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None:
        """Perform a single REST call and extract the parsed response.

        Args:
            action: The action being performed.
            log_request: Whether to log the request.
            log_response: Whether to log the response.
            log_on_error: Whether to log on error.
            error_on_not_found: Whether to raise an error if the resource is not found.

        Raises:
            ResourceNotFoundError: If the resource is not found and error_on_not_found is True.
            RequestError: If the request fails for any other reason.
        """

        request_logger, response_logger, error_logger = self._get_loggers(
            log_request=log_request, log_response=log_response, log_on_error=log_on_error
        )

        method_name: str = getattr(method, "__name__", repr(method))

        request_logger(f"Performing {action} using {method_name} with kwargs {request_args}")

        try:
            response: GitHubKitResponse[T] = await method(**request_args)
        except GitHubKitRequestFailed as e:
            if e.response.status_code == NOT_FOUND_ERROR:
                if error_on_not_found:
                    raise ResourceNotFoundError(action=action, resource=e.request.url.path) from e

                response_logger(f"{action} returned 404 for kwargs {request_args}")
                return None

            error_logger(f"RequestFailed error performing {action} using {method_name} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e
        except GitHubKitGitHubException as e:
            error_logger(f"Error performing {action} using {method_name} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e

        extracted_response = extract_response(response)

        response_logger(f"Extracted response for {action} using {method_name} with kwargs {request_args}: {extracted_response}")

        return extracted_response

    @overload
    async def get_repository(self, owner: str, repo: str, error_on_not_found: Literal[True] = True) -> RepositoryMetadata: ...

    @overload
    async def get_repository(self, owner: str, repo: str, error_on_not_found: Literal[False] = False) -> RepositoryMetadata | None: ...

    async def get_repository(self, owner: str, repo: str, error_on_not_found: bool = False) -> RepositoryMetadata | None:
        """Get the metadata of a repository."""

        if full_repository := await self._perform_rest_request(
            action="Get repository",
            error_on_not_found=error_on_not_found,
            method=self.githubkit_client.rest.repos.async_get,
            owner=owner,
            repo=repo,
        ):
            return RepositoryMetadata.from_full_repository(full_repository=full_repository)

        return None

    async def get_file_content(self, owner: str, repo: str, path: str) -> str | None:
        """Get the decoded text of a file on the default branch. Returns None for missing files and directories.

        Raises:
            ContentDecodeError: If the file is not valid base64-encoded UTF-8.
        """

        content = await self._perform_rest_request(
            action="Get file",
            method=self.githubkit_client.rest.repos.async_get_content,
            owner=owner,
            repo=repo,
            path=path,
        )

        return self._decode_content_file(content_file=content, path=path)

    async def get_readme(self, owner: str, repo: str) -> str | None:
        """Get the decoded text of the repository's README, whatever its file name."""

        content = await self._perform_rest_request(
            action="Get readme",
            method=self.githubkit_client.rest.repos.async_get_readme,
            owner=owner,
            repo=repo,
        )

        return self._decode_content_file(content_file=content, path="README")

    def _decode_content_file(self, content_file: Any, path: str) -> str | None:  # pyright: ignore[reportAny]
        # Directory listings come back as a list, symlinks and submodules carry no body
        if content_file is None or isinstance(content_file, list):
            return None

        if getattr(content_file, "encoding", None) != "base64" or not (content := getattr(content_file, "content", None)):
            return None

        return decode_content(content, path=path)

    async def list_directory(self, owner: str, repo: str, path: str = "") -> list[FileTreeEntry]:
        """List the immediate children of a directory. Returns an empty list if the path is missing or is a file."""

        items = await self._perform_rest_request(
            action="List directory",
            method=self.githubkit_client.rest.repos.async_get_content,
            owner=owner,
            repo=repo,
            path=path,
        )

        if not isinstance(items, list):
            return []

        return [FileTreeEntry.from_content_item(path=item.path, item_type=item.type, size=item.size) for item in items]

    async def list_open_issues(self, owner: str, repo: str, limit: int = DEFAULT_ISSUES_LIMIT) -> list[SnapshotIssue]:
        """List open issues, most recently updated first. Pull requests returned by the issues endpoint are dropped."""

        issues = await self._perform_rest_request(
            action="List issues",
            method=self.githubkit_client.rest.issues.async_list_for_repo,
            owner=owner,
            repo=repo,
            state="open",
            sort="updated",
            per_page=limit,
        )

        if not issues:
            return []

        return [SnapshotIssue.from_issue(issue=issue) for issue in issues if not issue.pull_request]

    async def list_open_pull_requests(self, owner: str, repo: str, limit: int = DEFAULT_PULL_REQUESTS_LIMIT) -> list[SnapshotPullRequest]:
        """List open pull requests, most recently updated first."""

        pull_requests = await self._perform_rest_request(
            action="List pull requests",
            method=self.githubkit_client.rest.pulls.async_list,
            owner=owner,
            repo=repo,
            state="open",
            sort="updated",
            per_page=limit,
        )

        if not pull_requests:
            return []

        return [SnapshotPullRequest.from_pull_request_simple(pull_request=pull_request) for pull_request in pull_requests]

    async def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        """Get the number of bytes of code per language."""

        languages = await self._perform_rest_request(
            action="Get languages",
            method=self.githubkit_client.rest.repos.async_list_languages,
            owner=owner,
            repo=repo,
        )

        if languages is None:
            return {}

        byte_counts: dict[str, Any] = languages.model_dump() if isinstance(languages, BaseModel) else dict(languages)  # pyright: ignore[reportUnknownArgumentType]

        return {language: int(count) for language, count in byte_counts.items()}  # pyright: ignore[reportAny]
