import re
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field

MAX_TREE_DEPTH = 3

SKIPPED_DIRECTORIES: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        "coverage",
        ".next",
        ".nuxt",
        "vendor",
        "__pycache__",
        ".venv",
        "target",
        "out",
        ".idea",
        ".vscode",
        "assets",
    }
)

IMPORTANT_FILE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"^readme", re.IGNORECASE),
    re.compile(r"^contributing", re.IGNORECASE),
    re.compile(r"^changelog", re.IGNORECASE),
    re.compile(r"^license", re.IGNORECASE),
    re.compile(r"package\.json$"),
    re.compile(r"tsconfig\.json$"),
    re.compile(r"\.config\.(js|ts|mjs)$"),
    re.compile(r"^src/index\.(ts|js|tsx|jsx)$"),
    re.compile(r"^src/main\.(ts|js|tsx|jsx)$"),
    re.compile(r"^src/app\.(ts|js|tsx|jsx)$"),
    re.compile(r"^index\.(ts|js|tsx|jsx)$"),
    re.compile(r"^main\.(ts|js|py|go|rs)$"),
    re.compile(r"^app\.(ts|js|py)$"),
    re.compile(r"requirements\.txt$"),
    re.compile(r"pyproject\.toml$"),
    re.compile(r"Cargo\.toml$"),
    re.compile(r"go\.mod$"),
    re.compile(r"Makefile$"),
    re.compile(r"Dockerfile$"),
    re.compile(r"\.github/workflows/"),
    re.compile(r"^\.env\.example$"),
]


def get_file_extension(file_path: str) -> str:
    file_name = file_path.split("/")[-1]
    if "." not in file_name:
        return ""
    return file_name.split(".")[-1]


def get_base_name(path: str) -> str:
    return path.rstrip("/").split("/")[-1]


def should_skip_directory(path: str) -> bool:
    """Dependency caches, build output, VCS metadata and hidden directories are never traversed."""

    directory_name = get_base_name(path)

    return directory_name in SKIPPED_DIRECTORIES or directory_name.startswith(".")


def is_important_file(path: str) -> bool:
    return any(pattern.search(path) for pattern in IMPORTANT_FILE_PATTERNS)


class FileTreeEntry(BaseModel):
    """A file or directory found while walking the repository contents."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="The path of the entry, relative to the repository root.")
    kind: Literal["file", "dir"] = Field(description="Whether the entry is a file or a directory.")
    size: int | None = Field(default=None, description="The size of the file in bytes.")

    @classmethod
    def from_content_item(cls, path: str, item_type: str, size: int | None = None) -> Self:
        return cls(path=path, kind="dir" if item_type == "dir" else "file", size=size)

    @property
    def top_level_name(self) -> str:
        return self.path.split("/")[0]


class RepositoryTree(BaseModel):
    """The ordered entries of a depth-bounded walk of the repository."""

    model_config = ConfigDict(frozen=True)

    entries: list[FileTreeEntry] = Field(default_factory=list, description="The entries of the tree, in traversal order.")

    def __len__(self) -> int:
        return len(self.entries)

    def file_paths(self) -> list[str]:
        return [entry.path for entry in self.entries if entry.kind == "file"]

    def important_files(self, limit: int) -> list[str]:
        return [path for path in self.file_paths() if is_important_file(path)][:limit]

    def top_level_directories(self, limit: int) -> list[str]:
        directories: dict[str, None] = {}

        for entry in self.entries:
            if entry.kind == "dir":
                directories[entry.top_level_name] = None

        return list(directories)[:limit]
