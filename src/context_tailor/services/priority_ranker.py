"""Multi-factor priority ranking with task-type specific weights."""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from pydantic import BaseModel, Field

from context_tailor.models.synthesis import SourceType
from context_tailor.models.task_analysis import TaskType

T = TypeVar("T")

NEUTRAL_FACTOR = 0.5


class RankingWeights(BaseModel):
    relevance: float = Field(default=0.4, ge=0.0)
    recency: float = Field(default=0.2, ge=0.0)
    authority: float = Field(default=0.2, ge=0.0)
    specificity: float = Field(default=0.2, ge=0.0)


DEFAULT_WEIGHTS = RankingWeights()

TASK_TYPE_WEIGHTS: dict[TaskType, RankingWeights] = {
    TaskType.RESEARCH: RankingWeights(relevance=0.3, recency=0.35, authority=0.2, specificity=0.15),
    TaskType.CODING: RankingWeights(relevance=0.35, recency=0.1, authority=0.2, specificity=0.35),
    TaskType.DEBUGGING: RankingWeights(
        relevance=0.4, recency=0.15, authority=0.15, specificity=0.3
    ),
    TaskType.ANALYSIS: RankingWeights(
        relevance=0.4, recency=0.2, authority=0.25, specificity=0.15
    ),
}


@dataclass(frozen=True)
class RankFactors:
    """Per-item ranking inputs; missing factors count as neutral (0.5)."""

    relevance: float
    recency: float | None = None
    authority: float | None = None
    specificity: float | None = None


def resolve_weights(
    weights: RankingWeights | None = None, task_type: TaskType | None = None
) -> RankingWeights:
    if weights is not None:
        return weights
    if task_type is not None:
        return TASK_TYPE_WEIGHTS.get(task_type, DEFAULT_WEIGHTS)
    return DEFAULT_WEIGHTS


def compute_priority_score(factors: RankFactors, weights: RankingWeights) -> float:
    def _or_neutral(value: float | None) -> float:
        return NEUTRAL_FACTOR if value is None else value

    return (
        weights.relevance * factors.relevance
        + weights.recency * _or_neutral(factors.recency)
        + weights.authority * _or_neutral(factors.authority)
        + weights.specificity * _or_neutral(factors.specificity)
    )


def rank_by_priority(
    items: list[T],
    factors: Callable[[T], RankFactors],
    weights: RankingWeights | None = None,
    task_type: TaskType | None = None,
) -> list[T]:
    """Return ``items`` sorted by weighted priority, highest first (stable)."""
    resolved = resolve_weights(weights, task_type)
    return sorted(
        items, key=lambda item: compute_priority_score(factors(item), resolved), reverse=True
    )


AUTHORITY_SCORES: dict[SourceType, float] = {
    SourceType.USER_INPUT: 1.0,
    SourceType.PROJECT_DOC: 0.9,
    SourceType.API_RESPONSE: 0.7,
    SourceType.WEB_SEARCH: 0.5,
}


def compute_authority_score(source_type: SourceType) -> float:
    return AUTHORITY_SCORES.get(source_type, 0.5)


_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```|`[^`]+`")
_SPECIFIC_NUMBER_RE = re.compile(
    r"\b\d+(\.\d+)?\s*(ms|s|px|rem|em|kb|mb|gb|%|items?|steps?|tokens?)\b", re.I
)
_STEP_RE = re.compile(r"^\s*(\d+[\.\)]\s|\-\s|\*\s)", re.M)
_FUNCTION_RE = re.compile(r"\bfunction\b|\b=>\b|\bconst\b|\bvar\b|\blet\b")
_CLI_RE = re.compile(r"^\s*(npm|yarn|pnpm|git|docker|kubectl|bash|sh|curl|pip)\s", re.M)


def compute_specificity_score(content: str) -> float:
    """Score how concrete ``content`` is: code, CLI lines, numbers with units, steps."""
    score = 0.1
    if _CODE_BLOCK_RE.search(content):
        score += 0.3
    if _FUNCTION_RE.search(content):
        score += 0.15
    if _CLI_RE.search(content):
        score += 0.2
    if _SPECIFIC_NUMBER_RE.search(content):
        score += 0.15
    if _STEP_RE.search(content):
        score += 0.2
    if len(content.split("\n")) > 10:
        score += 0.1
    return min(score, 1.0)


__all__ = [
    "RankingWeights",
    "RankFactors",
    "DEFAULT_WEIGHTS",
    "TASK_TYPE_WEIGHTS",
    "resolve_weights",
    "compute_priority_score",
    "rank_by_priority",
    "compute_authority_score",
    "compute_specificity_score",
]
