from logging import Logger

from fastmcp.utilities.logging import get_logger

from github_contribution_assistant.sampling.prompts import PromptBuilder, SystemPromptBuilder
from github_contribution_assistant.sampling.utility import ContextSampler, Sampler, extract_text, new_user_sampling_message

ANSWER_MAX_TOKENS = 2048

EMPTY_ANSWER_FALLBACK = "I apologize, but I couldn't generate a response. Please try rephrasing your question."
GENERATION_ERROR_MESSAGE = "An error occurred while generating the response. Please try again."

ANSWER_REQUEST = "Please provide a helpful, well-structured response. Use markdown formatting appropriately."


def build_answer_prompt(question: str, context: str) -> str:
    return f"{context}\n\n---\n\n**User Question:** {question}\n\n{ANSWER_REQUEST}"


class AnswerGenerator:
    """Produces the final markdown answer from the assembled repository context."""

    def __init__(self, sampler: Sampler | None = None, system_prompt: PromptBuilder | None = None, logger: Logger | None = None):
        self.sampler: Sampler = sampler or ContextSampler()
        self.system_prompt: str = (system_prompt or SystemPromptBuilder()).render_text()
        self.logger: Logger = logger or get_logger(name=__name__)

    async def generate(self, question: str, context: str) -> str:
        """Generate an answer. Never raises: a failed model call produces an apology instead."""

        messages = [new_user_sampling_message(content=build_answer_prompt(question, context))]

        try:
            response = await self.sampler(messages, system_prompt=self.system_prompt, max_tokens=ANSWER_MAX_TOKENS)  # pyright: ignore[reportAny]
        except Exception:
            self.logger.exception("Answer generation failed")
            return GENERATION_ERROR_MESSAGE

        if not (text := extract_text(response)):
            self.logger.warning("Answer generation returned no text")
            return EMPTY_ANSWER_FALLBACK

        return text
