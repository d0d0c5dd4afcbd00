"""LLM relevance judge backing the default cross-encoder."""

import re

from .base import AgentConfiguration, TextAgent

RELEVANCE_SYSTEM_PROMPT = (
    "You are a relevance scorer. Given a query and a passage, score how relevant the passage "
    "is to the query on a scale from 0 to 1. Respond with only a number between 0 and 1, "
    "nothing else."
)

# leading number of the reply, e.g. "0.8" in "0.8 (relevant)"
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def parse_relevance(raw: str) -> float:
    """Parse a model reply into a score in [0, 1]; unparsable replies score 0."""
    match = _LEADING_NUMBER.match(raw.strip())
    if match is None:
        return 0.0
    return min(1.0, max(0.0, float(match.group())))


class RelevanceJudge(TextAgent):
    """Scores one (query, passage) pair per call."""

    def __init__(self, model: str | None = None):
        super().__init__(
            AgentConfiguration(
                agent_name="relevance_judge",
                model=model,
                system_prompt=RELEVANCE_SYSTEM_PROMPT,
                max_tokens=10,
            )
        )

    async def judge(self, query: str, passage: str) -> float:
        reply = await self.run_prompt(f"Query: {query}\n\nPassage: {passage}")
        return parse_relevance(reply)


__all__ = ["RelevanceJudge", "RELEVANCE_SYSTEM_PROMPT", "parse_relevance"]
