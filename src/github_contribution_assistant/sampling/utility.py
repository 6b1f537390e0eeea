from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal, Protocol

from fastmcp.server.dependencies import get_context
from fastmcp.utilities.logging import get_logger
from mcp.types import SamplingMessage, TextContent

from github_contribution_assistant.servers.shared.utility import estimate_tokens

if TYPE_CHECKING:
    from fastmcp.server import Context

logger = get_logger(__name__)


def new_sampling_message(role: Literal["user", "assistant"], content: str | list[str]) -> SamplingMessage:
    if isinstance(content, list):
        content = "\n".join(content)

    return SamplingMessage(role=role, content=TextContent(type="text", text=content))


def new_user_sampling_message(content: str | list[str]) -> SamplingMessage:
    return new_sampling_message("user", content)


def get_sampling_tokens(system_prompt: str | None, messages: Sequence[SamplingMessage]) -> int:
    """Estimate the size of a sampling request."""

    system_prompt_size = estimate_tokens(system_prompt or "")

    return system_prompt_size + sum(estimate_tokens(message.model_dump_json()) for message in messages)


def extract_text(response: Any) -> str | None:  # pyright: ignore[reportAny]
    """Pull the plain text out of a model response envelope.

    This is the only place that knows the envelope shapes: MCP text content, objects exposing a `text` attribute,
    bare strings, and `{"response": ...}` / `{"text": ...}` mappings."""

    if isinstance(response, str):
        return response or None

    if isinstance(response, TextContent):
        return response.text or None

    if isinstance(response, Mapping):
        for key in ("response", "text"):
            if isinstance(value := response.get(key), str) and value:  # pyright: ignore[reportUnknownMemberType]
                return value
        return None

    if isinstance(text := getattr(response, "text", None), str) and text:
        return text

    return None


class Sampler(Protocol):
    """A text-in/text-out model call bounded by a token ceiling. Returns the raw response envelope."""

    async def __call__(
        self, messages: Sequence[SamplingMessage], *, system_prompt: str | None = None, max_tokens: int = 2000
    ) -> Any: ...  # pyright: ignore[reportAny]


class ContextSampler:
    """Samples through the current MCP request, using the client's model or the server's fallback sampling handler."""

    def __init__(self, temperature: float = 0.0):
        self.temperature: float = temperature

    async def __call__(
        self, messages: Sequence[SamplingMessage], *, system_prompt: str | None = None, max_tokens: int = 2000
    ) -> Any:  # pyright: ignore[reportAny]
        context: Context = get_context()

        logger.info(f"Sampling with prompt that is {get_sampling_tokens(system_prompt, messages)} tokens.")

        return await context.sample(
            messages=list[str | SamplingMessage](messages),
            system_prompt=system_prompt,
            temperature=self.temperature,
            max_tokens=max_tokens,
        )
