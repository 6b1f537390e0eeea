import base64
import binascii

from github_contribution_assistant.clients.errors.github import ContentDecodeError

TRUNCATION_MARKER = "..."


def estimate_tokens(text: str) -> int:
    """Estimate the number of tokens for a given text."""
    return len(text) // 4


def truncate_text(text: str, max_length: int, marker: str = TRUNCATION_MARKER) -> str:
    """Cut the text down to at most `max_length` characters, the truncation marker included."""

    if len(text) <= max_length:
        return text

    if max_length <= len(marker):
        return text[:max_length]

    return text[: max_length - len(marker)] + marker


def flatten_newlines(text: str) -> str:
    return " ".join(text.splitlines())


def decode_content(content: str, path: str = "") -> str:
    """Decode a base64 body from the contents API. GitHub wraps the payload every 60 characters."""

    try:
        return base64.b64decode(content.replace("\n", ""), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ContentDecodeError(path=path, encoding="base64") from e
