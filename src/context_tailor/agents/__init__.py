"""pydantic-ai backed LLM collaborators."""

from .base import AgentConfiguration, AgentExecutionError, TextAgent
from .relevance_judge import RelevanceJudge, parse_relevance
from .summarizer import LLMSummarizer

__all__ = [
    "AgentConfiguration",
    "AgentExecutionError",
    "TextAgent",
    "LLMSummarizer",
    "RelevanceJudge",
    "parse_relevance",
]
