from typing import Self

from mcp.types import SamplingMessage, TextContent
from pydantic import BaseModel, Field


class PromptSection(BaseModel):
    title: str = Field(description="The title of the section.")
    level: int = Field(default=1, description="The heading level of the section.")
    section: str = Field(description="The body of the section.")

    def render_text(self) -> str:
        if not self.section:
            return f"{'#' * self.level} {self.title}"
        return f"{'#' * self.level} {self.title}\n{self.section}"


WHO_YOU_ARE = PromptSection(
    title="Who you are",
    section="""\
You are an expert GitHub Contribution Assistant. You help developers understand repositories and find
meaningful ways to contribute to them.""",
)

DEEPLY_ROOTED = PromptSection(
    title="Deeply Rooted",
    section="""\
Only use information provided in the context. Never invent or guess code, file contents, issue numbers or
issue details. If you do not have the actual code for a file, say so instead of writing a snippet. Only
quote code that appears in the "File Contents" section.""",
)

LINKING = PromptSection(
    title="Linking",
    section="""\
Whenever you mention an issue or a pull request, link it in markdown as [#NUMBER](URL) using the exact URL
from the context. Use issue titles, numbers and labels exactly as provided.""",
)

RESPONSE_FORMAT = PromptSection(
    title="Response Format",
    section="""\
- Organize the response with `##` section headers.
- Reference file paths as inline code, for example `src/index.ts`.
- Keep paragraphs short, two or three sentences at most.
- If asked about code and no file contents are provided, explain which files look relevant based on the
  file structure and suggest looking at them.""",
)

SYSTEM_PROMPT_SECTIONS: list[PromptSection] = [WHO_YOU_ARE, DEEPLY_ROOTED, LINKING, RESPONSE_FORMAT]


class PromptBuilder(BaseModel):
    sections: list[PromptSection] = Field(default_factory=list, description="The sections of the prompt.")

    def add_text_section(self, title: str, text: str | list[str], level: int = 1) -> Self:
        if not isinstance(text, list):
            text = [text]

        self.sections.append(PromptSection(title=title, level=level, section="\n".join(text)))

        return self

    def add_code_section(self, title: str, code: str, language: str, level: int = 1) -> Self:
        self.sections.append(PromptSection(title=title, level=level, section=f"```{language}\n{code}\n```"))

        return self

    def render_text(self) -> str:
        return "\n\n".join(section.render_text() for section in self.sections)

    def to_sampling_messages(self) -> list[SamplingMessage]:
        return [SamplingMessage(role="user", content=TextContent(type="text", text=self.render_text()))]


class SystemPromptBuilder(PromptBuilder):
    sections: list[PromptSection] = Field(default_factory=lambda: SYSTEM_PROMPT_SECTIONS.copy(), description="The sections of the prompt.")
