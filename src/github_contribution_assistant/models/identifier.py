import re
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

GITHUB_URL_PATTERN = re.compile(r"(?:https?://)?(?:www\.)?github\.com/(?P<owner>[A-Za-z0-9-]+)/(?P<name>[^/\s?#]+)", re.IGNORECASE)
BARE_IDENTIFIER_PATTERN = re.compile(r"(?P<owner>[A-Za-z0-9-]+)/(?P<name>[\w.-]+)/?")


class InvalidRepositoryIdentifierError(ValueError):
    """The provided value is not a GitHub repository URL or `owner/name` pair."""

    def __init__(self, value: str):
        super().__init__(f"Invalid GitHub repository URL: {value!r}. Expected `owner/name` or https://github.com/owner/name")


class RepositoryIdentifier(BaseModel):
    """The owner and name of a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="The owner of the repository.")
    name: str = Field(description="The name of the repository.")

    @classmethod
    def from_url(cls, url: str) -> Self:
        """Parse `owner/name`, `github.com/owner/name` or a full repository URL (optionally ending in `.git` or `/`)."""

        value = url.strip()

        match = GITHUB_URL_PATTERN.match(value) or BARE_IDENTIFIER_PATTERN.fullmatch(value)
        if match is None:
            raise InvalidRepositoryIdentifierError(url)

        owner: str = match.group("owner")
        name: str = match.group("name").removesuffix(".git")

        if not owner or not name:
            raise InvalidRepositoryIdentifierError(url)

        return cls(owner=owner, name=name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def cache_key(self) -> str:
        # GitHub owner and repository names are case-insensitive
        return f"repo:{self.full_name.lower()}"


def parse_repository_identifier(url: str) -> tuple[str, str]:
    identifier = RepositoryIdentifier.from_url(url)
    return identifier.owner, identifier.name
