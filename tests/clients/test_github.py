import base64
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import pytest
from dirty_equals import IsDatetime
from githubkit.exception import GitHubException, RequestFailed
from inline_snapshot import snapshot

from github_contribution_assistant.clients.errors.github import RequestError, ResourceNotFoundError
from github_contribution_assistant.clients.github import GitHubRepositoryClient, get_github_token
from github_contribution_assistant.models.repository.tree import FileTreeEntry
from tests.conftest import dump_for_snapshot, dump_list_for_snapshot

CREATED_AT = datetime(2025, 1, 1, tzinfo=UTC)


class NotFoundError(RequestFailed):
    """A 404 from the REST API, without a real HTTP exchange behind it."""

    def __init__(self, path: str):
        Exception.__init__(self, "Not Found")
        self.response = SimpleNamespace(status_code=404)
        self.request = SimpleNamespace(url=SimpleNamespace(path=path))


class FakeEndpoint:
    """Stands in for a githubkit REST method: records the keyword arguments and returns or raises the canned result."""

    def __init__(self, result: Any = None):  # pyright: ignore[reportAny]
        self.result: Any = result
        self.calls: list[dict[str, Any]] = []
        self.__name__: str = "fake_endpoint"

    async def __call__(self, **kwargs: Any) -> Any:  # pyright: ignore[reportAny]
        self.calls.append(kwargs)

        if isinstance(self.result, Exception):
            raise self.result

        return SimpleNamespace(parsed_data=self.result)


def new_githubkit(**endpoints: FakeEndpoint) -> Any:  # pyright: ignore[reportAny]
    def endpoint(name: str) -> FakeEndpoint:
        return endpoints.get(name, FakeEndpoint())

    return SimpleNamespace(
        rest=SimpleNamespace(
            repos=SimpleNamespace(
                async_get=endpoint("get"),
                async_get_content=endpoint("get_content"),
                async_get_readme=endpoint("get_readme"),
                async_list_languages=endpoint("list_languages"),
            ),
            issues=SimpleNamespace(async_list_for_repo=endpoint("list_issues")),
            pulls=SimpleNamespace(async_list=endpoint("list_pulls")),
        )
    )


def base64_file(text: str) -> SimpleNamespace:
    return SimpleNamespace(type="file", encoding="base64", content=base64.b64encode(text.encode()).decode())


def full_repository() -> SimpleNamespace:
    return SimpleNamespace(
        owner=SimpleNamespace(login="acme"),
        name="widgets",
        full_name="acme/widgets",
        description="Widgets for everyone",
        html_url="https://github.com/acme/widgets",
        default_branch="main",
        language="TypeScript",
        topics=["widgets"],
        stargazers_count=1200,
        forks_count=85,
        open_issues_count=3,
    )


def raw_issue(number: int, labels: list[Any], body: str | None = None, pull_request: Any = None) -> SimpleNamespace:  # pyright: ignore[reportExplicitAny]
    return SimpleNamespace(
        number=number,
        title=f"Issue {number}",
        body=body,
        labels=labels,
        user=SimpleNamespace(login="octocat"),
        created_at=CREATED_AT,
        comments=2,
        html_url=f"https://github.com/acme/widgets/issues/{number}",
        pull_request=pull_request,
    )


def test_get_github_token(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "pat")

    assert get_github_token() == "pat"


def test_get_github_token_missing(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN", raising=False)

    with pytest.raises(ValueError, match="GITHUB_TOKEN"):
        _ = get_github_token()


def test_init_requires_token(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN", raising=False)

    with pytest.raises(ValueError):
        _ = GitHubRepositoryClient()


class TestRepositories:
    async def test_get_repository(self):
        endpoint = FakeEndpoint(result=full_repository())
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get=endpoint))

        repository = await client.get_repository(owner="acme", repo="widgets")

        assert endpoint.calls == [{"owner": "acme", "repo": "widgets"}]
        assert dump_for_snapshot(repository) == snapshot(
            {
                "owner": "acme",
                "name": "widgets",
                "full_name": "acme/widgets",
                "description": "Widgets for everyone",
                "url": "https://github.com/acme/widgets",
                "default_branch": "main",
                "language": "TypeScript",
                "topics": ["widgets"],
                "stars": 1200,
                "forks": 85,
                "open_issues_count": 3,
            }
        )

    async def test_get_repository_not_found(self):
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get=FakeEndpoint(result=NotFoundError("/repos/acme/missing"))))

        assert await client.get_repository(owner="acme", repo="missing") is None

    async def test_get_repository_not_found_error(self):
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get=FakeEndpoint(result=NotFoundError("/repos/acme/missing"))))

        with pytest.raises(ResourceNotFoundError, match="/repos/acme/missing"):
            _ = await client.get_repository(owner="acme", repo="missing", error_on_not_found=True)

    async def test_get_repository_server_error(self):
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get=FakeEndpoint(result=GitHubException("Bad Gateway"))))

        with pytest.raises(RequestError, match="Bad Gateway"):
            _ = await client.get_repository(owner="acme", repo="widgets")

    async def test_get_languages(self):
        client = GitHubRepositoryClient(
            githubkit_client=new_githubkit(list_languages=FakeEndpoint(result={"TypeScript": 7500, "CSS": 2500}))
        )

        assert await client.get_languages(owner="acme", repo="widgets") == {"TypeScript": 7500, "CSS": 2500}

    async def test_get_languages_not_found(self):
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(list_languages=FakeEndpoint(result=NotFoundError("/languages"))))

        assert await client.get_languages(owner="acme", repo="widgets") == {}


class TestFiles:
    async def test_get_file_content(self):
        endpoint = FakeEndpoint(result=base64_file("console.log('hi')\n"))
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get_content=endpoint))

        assert await client.get_file_content(owner="acme", repo="widgets", path="src/index.ts") == "console.log('hi')\n"
        assert endpoint.calls == [{"owner": "acme", "repo": "widgets", "path": "src/index.ts"}]

    async def test_get_file_content_missing(self):
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get_content=FakeEndpoint(result=NotFoundError("/contents/missing"))))

        assert await client.get_file_content(owner="acme", repo="widgets", path="missing") is None

    async def test_get_file_content_of_directory(self):
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get_content=FakeEndpoint(result=[base64_file("x")])))

        assert await client.get_file_content(owner="acme", repo="widgets", path="src") is None

    async def test_get_file_content_without_body(self):
        symlink = SimpleNamespace(type="symlink", encoding=None, content=None)
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get_content=FakeEndpoint(result=symlink)))

        assert await client.get_file_content(owner="acme", repo="widgets", path="link") is None

    async def test_get_readme(self):
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get_readme=FakeEndpoint(result=base64_file("# Widgets"))))

        assert await client.get_readme(owner="acme", repo="widgets") == "# Widgets"

    async def test_list_directory(self):
        items = [
            SimpleNamespace(path="src", type="dir", size=0),
            SimpleNamespace(path="package.json", type="file", size=512),
        ]
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get_content=FakeEndpoint(result=items)))

        assert await client.list_directory(owner="acme", repo="widgets") == [
            FileTreeEntry(path="src", kind="dir", size=0),
            FileTreeEntry(path="package.json", kind="file", size=512),
        ]

    async def test_list_directory_of_file(self):
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(get_content=FakeEndpoint(result=base64_file("x"))))

        assert await client.list_directory(owner="acme", repo="widgets", path="README.md") == []


class TestIssuesAndPullRequests:
    async def test_list_open_issues(self):
        endpoint = FakeEndpoint(
            result=[
                raw_issue(1, labels=[SimpleNamespace(name="good first issue"), "bug"], body="x" * 1000),
                raw_issue(2, labels=[], pull_request=SimpleNamespace(url="https://api.github.com/repos/acme/widgets/pulls/2")),
            ]
        )
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(list_issues=endpoint))

        issues = await client.list_open_issues(owner="acme", repo="widgets")

        assert endpoint.calls == [{"owner": "acme", "repo": "widgets", "state": "open", "sort": "updated", "per_page": 30}]
        assert dump_list_for_snapshot(issues, exclude_keys=["body"]) == snapshot(
            [
                {
                    "number": 1,
                    "title": "Issue 1",
                    "labels": ["good first issue", "bug"],
                    "author": "octocat",
                    "created_at": IsDatetime(),
                    "comments_count": 2,
                    "url": "https://github.com/acme/widgets/issues/1",
                }
            ]
        )
        assert issues[0].body is not None
        assert len(issues[0].body) == 500

    async def test_list_open_pull_requests(self):
        pull_request = SimpleNamespace(
            number=7,
            title="Add dark mode",
            body=None,
            user=None,
            created_at=CREATED_AT,
            html_url="https://github.com/acme/widgets/pull/7",
            draft=None,
        )
        endpoint = FakeEndpoint(result=[pull_request])
        client = GitHubRepositoryClient(githubkit_client=new_githubkit(list_pulls=endpoint))

        pull_requests = await client.list_open_pull_requests(owner="acme", repo="widgets")

        assert endpoint.calls == [{"owner": "acme", "repo": "widgets", "state": "open", "sort": "updated", "per_page": 15}]
        assert dump_list_for_snapshot(pull_requests) == snapshot(
            [
                {
                    "number": 7,
                    "title": "Add dark mode",
                    "author": "ghost",
                    "created_at": IsDatetime(),
                    "url": "https://github.com/acme/widgets/pull/7",
                    "draft": False,
                }
            ]
        )
