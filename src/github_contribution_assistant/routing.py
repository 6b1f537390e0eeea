import re
from enum import StrEnum
from logging import Logger

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, ConfigDict

from github_contribution_assistant.clients.models.github import RepositorySnapshot
from github_contribution_assistant.sampling.extract import extract_single_object_from_text, object_in_text_instructions
from github_contribution_assistant.sampling.prompts import PromptBuilder
from github_contribution_assistant.sampling.utility import ContextSampler, Sampler, extract_text
from github_contribution_assistant.servers.models.assistant import QueryDecision
from github_contribution_assistant.snapshots import MAX_FILES_PER_QUESTION

CANDIDATE_FILES_LIMIT = 100
ROUTING_MAX_TOKENS = 256

FILE_SELECTION_GUIDANCE = """\
You are deciding which source files to fetch so that the question can be answered from real code.

File selection priority:
1. Entry points: index.ts, main.ts, app.ts, index.js, main.py, etc.
2. Config files: package.json, tsconfig.json, Cargo.toml, pyproject.toml
3. Core source files in src/ or lib/ directories
4. Files mentioned or implied in the question

Rules:
- Select the 3-5 most relevant files, only from the available files listed above.
- Prefer smaller, focused files over large ones.
- For architecture questions, pick entry points and key config files.
- For "how does X work" questions, pick the files most likely to contain X.
- Set needs_files to false if the question can be answered without reading code."""


class RoutingVerdict(StrEnum):
    NO_FILES = "no_files"
    SELECT_FILES = "select_files"


class RoutingRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: re.Pattern[str]
    verdict: RoutingVerdict

    def matches(self, question: str) -> bool:
        return self.pattern.search(question) is not None


def rule(pattern: str, verdict: RoutingVerdict) -> RoutingRule:
    return RoutingRule(pattern=re.compile(pattern, re.IGNORECASE), verdict=verdict)


# Evaluated top to bottom, the first matching rule wins.
ROUTING_RULES: list[RoutingRule] = [
    # Issue, pull request and contribution questions are answered from the snapshot alone
    rule(r"^(find|list|show).*(issue|bug|pr|pull request)", RoutingVerdict.NO_FILES),
    rule(r"good first issue", RoutingVerdict.NO_FILES),
    rule(r"help wanted", RoutingVerdict.NO_FILES),
    rule(r"how (do i|can i|to) contribute", RoutingVerdict.NO_FILES),
    rule(r"contribution guide", RoutingVerdict.NO_FILES),
    # Signals that the answer lives in the code
    rule(r"architect", RoutingVerdict.SELECT_FILES),
    rule(r"structure", RoutingVerdict.SELECT_FILES),
    rule(r"how does .+ work", RoutingVerdict.SELECT_FILES),
    rule(r"explain", RoutingVerdict.SELECT_FILES),
    rule(r"code", RoutingVerdict.SELECT_FILES),
    rule(r"implementation", RoutingVerdict.SELECT_FILES),
    rule(r"where is", RoutingVerdict.SELECT_FILES),
    rule(r"show me", RoutingVerdict.SELECT_FILES),
    rule(r"what does .+ do", RoutingVerdict.SELECT_FILES),
    rule(r"entry point", RoutingVerdict.SELECT_FILES),
    rule(r"main file", RoutingVerdict.SELECT_FILES),
    rule(r"config", RoutingVerdict.SELECT_FILES),
    rule(r"setup", RoutingVerdict.SELECT_FILES),
    rule(r"snippet", RoutingVerdict.SELECT_FILES),
]

DEFAULT_VERDICT = RoutingVerdict.NO_FILES


def classify_question(question: str, rules: list[RoutingRule] | None = None) -> RoutingVerdict:
    for routing_rule in ROUTING_RULES if rules is None else rules:
        if routing_rule.matches(question):
            return routing_rule.verdict

    return DEFAULT_VERDICT


def build_file_selection_prompt(question: str, candidates: list[str]) -> PromptBuilder:
    return (
        PromptBuilder()
        .add_text_section(title="Question", text=question)
        .add_text_section(title="Available files", text=candidates)
        .add_text_section(title="Instructions", text=[FILE_SELECTION_GUIDANCE, "", object_in_text_instructions(QueryDecision)])
    )


class QueryRouter:
    """Decides whether a question needs source files. Cheap pattern rules come first, the model is only asked
    to pick files when a question looks like it is about the code."""

    def __init__(self, sampler: Sampler | None = None, rules: list[RoutingRule] | None = None, logger: Logger | None = None):
        self.sampler: Sampler = sampler or ContextSampler()
        self.rules: list[RoutingRule] = ROUTING_RULES if rules is None else rules
        self.logger: Logger = logger or get_logger(name=__name__)

    def classify(self, question: str) -> RoutingVerdict:
        return classify_question(question, rules=self.rules)

    async def route(self, question: str, snapshot: RepositorySnapshot) -> QueryDecision:
        if self.classify(question) is RoutingVerdict.NO_FILES:
            return QueryDecision.no_files()

        candidates: list[str] = snapshot.file_tree.file_paths()[:CANDIDATE_FILES_LIMIT]
        if not candidates:
            return QueryDecision.no_files()

        return await self.select_files(question=question, candidates=candidates)

    async def select_files(self, question: str, candidates: list[str]) -> QueryDecision:
        """Ask the model which of the candidate files to fetch. Any failure means no files are fetched."""

        prompt: PromptBuilder = build_file_selection_prompt(question=question, candidates=candidates)

        try:
            response = await self.sampler(prompt.to_sampling_messages(), max_tokens=ROUTING_MAX_TOKENS)  # pyright: ignore[reportAny]
        except Exception:
            self.logger.exception("File selection request failed, answering without source files")
            return QueryDecision.no_files()

        if not (text := extract_text(response)):
            self.logger.warning("File selection returned no text, answering without source files")
            return QueryDecision.no_files()

        try:
            decision: QueryDecision = extract_single_object_from_text(text, QueryDecision)
        except ValueError as e:
            self.logger.warning(f"Could not parse the file selection response, answering without source files: {e}")
            return QueryDecision.no_files()

        return self._restrict_to_candidates(decision=decision, candidates=candidates)

    def _restrict_to_candidates(self, decision: QueryDecision, candidates: list[str]) -> QueryDecision:
        if not decision.needs_files:
            return QueryDecision.no_files()

        allowed: set[str] = set(candidates)
        files: list[str] = list(dict.fromkeys(path for path in decision.files if path in allowed))[:MAX_FILES_PER_QUESTION]

        if dropped := [path for path in decision.files if path not in allowed]:
            self.logger.info(f"Ignoring requested files that are not in the repository tree: {dropped}")

        return QueryDecision(needs_files=bool(files), files=files, reasoning=decision.reasoning)
