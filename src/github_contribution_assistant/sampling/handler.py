import os

from fastmcp.experimental.sampling.handlers.openai import OpenAISamplingHandler
from fastmcp.utilities.logging import get_logger

from github_contribution_assistant.sampling.gemini import GeminiSamplingHandler

logger = get_logger(__name__)

DEFAULT_GOOGLE_MODEL = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL = "gpt-4o"


def get_sampling_handler() -> GeminiSamplingHandler | OpenAISamplingHandler | None:
    """Pick the fallback sampling handler used when the connected client does not support sampling."""

    if os.getenv("GOOGLE_API_KEY"):
        return GeminiSamplingHandler(default_model=os.getenv("GOOGLE_MODEL") or DEFAULT_GOOGLE_MODEL)

    if os.getenv("OPENAI_API_KEY"):
        return OpenAISamplingHandler(default_model=os.getenv("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL)  # pyright: ignore[reportArgumentType]

    logger.warning(
        msg=(
            "No sampling handler configured, questions from clients that do not support sampling will fail. "
            "Set GOOGLE_API_KEY or OPENAI_API_KEY to answer questions with a server-side model."
        )
    )

    return None
