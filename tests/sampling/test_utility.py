from types import SimpleNamespace

import pytest
from mcp.types import ImageContent, TextContent

from github_contribution_assistant.sampling.utility import (
    extract_text,
    get_sampling_tokens,
    new_sampling_message,
    new_user_sampling_message,
)


@pytest.mark.parametrize(
    ("response", "text"),
    [
        ("plain text", "plain text"),
        (TextContent(type="text", text="text content"), "text content"),
        ({"response": "from response"}, "from response"),
        ({"text": "from text"}, "from text"),
        ({"response": "", "text": "fallback"}, "fallback"),
        (SimpleNamespace(text="from attribute"), "from attribute"),
    ],
)
def test_extract_text(response: object, text: str):
    assert extract_text(response) == text


@pytest.mark.parametrize(
    "response",
    [
        None,
        "",
        TextContent(type="text", text=""),
        {"response": None},
        {"choices": [{"text": "nested"}]},
        SimpleNamespace(text=42),
        ImageContent(type="image", data="aGVsbG8=", mimeType="image/png"),
    ],
)
def test_extract_text_without_text(response: object):
    assert extract_text(response) is None


def test_new_sampling_message():
    message = new_sampling_message("assistant", ["line one", "line two"])

    assert message.role == "assistant"
    assert message.content == TextContent(type="text", text="line one\nline two")


def test_new_user_sampling_message():
    assert new_user_sampling_message("hello").role == "user"


def test_get_sampling_tokens():
    messages = [new_user_sampling_message("a" * 400)]

    assert get_sampling_tokens(system_prompt="b" * 40, messages=messages) > 110
    assert get_sampling_tokens(system_prompt=None, messages=[]) == 0
