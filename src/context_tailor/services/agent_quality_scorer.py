"""Quality scoring for generated agent configurations.

Reuses the ``QualitySubScores`` slots with agent-specific meanings:
coverage is role/stack coverage, relevance is convention specificity,
diversity is config-source diversity and compression is context depth.
"""

import re

from context_tailor.models.quality import (
    AgentConfig,
    AgentRequirement,
    QualityScore,
    QualitySubScores,
    ScoredConfig,
)

from .quality_scorer import weighted_overall

AGENT_QUALITY_WEIGHTS: dict[str, float] = {
    "coverage": 0.30,
    "relevance": 0.25,
    "diversity": 0.20,
    "compression": 0.25,
}

HIGH_CONFIG_SCORE = 7.0

_CODE_PATTERN = re.compile(r"`[^`]+`|function|class|import|export|interface|type ", re.I)


def score_config_coverage(agent: AgentConfig, requirement: AgentRequirement) -> float:
    full_text = " ".join(agent.conventions).lower() + " " + agent.mission.lower()

    stack_hits = sum(1 for tech in requirement.stack if tech.lower() in full_text)
    stack_coverage = stack_hits / len(requirement.stack) if requirement.stack else 0.5

    role_words = [w for w in requirement.role.lower().split() if len(w) > 3]
    role_hits = sum(1 for w in role_words if w in full_text)
    role_coverage = role_hits / len(role_words) if role_words else 0.5

    score = stack_coverage * 0.5 + role_coverage * 0.3
    if agent.conventions:
        score += 0.1
    if agent.tools:
        score += 0.1
    return min(1.0, score)


def score_context_depth(agent: AgentConfig) -> float:
    if not agent.context_chunks:
        return 0.2
    total_chars = sum(len(chunk) for chunk in agent.context_chunks)
    if total_chars > 5000:
        return 1.0
    if total_chars > 2000:
        return 0.8
    if total_chars > 500:
        return 0.6
    return 0.4


def score_specificity(agent: AgentConfig) -> float:
    conventions = agent.conventions
    if not conventions:
        return 0.1

    count = len(conventions)
    if count >= 15:
        score = 0.4
    elif count >= 8:
        score = 0.3
    elif count >= 3:
        score = 0.2
    else:
        score = 0.1

    average_length = sum(len(c) for c in conventions) / count
    if average_length >= 60:
        score += 0.3
    elif average_length >= 30:
        score += 0.2
    else:
        score += 0.1

    if any(_CODE_PATTERN.search(c) for c in conventions):
        score += 0.15

    if len(agent.mission) > 100:
        score += 0.15
    elif len(agent.mission) > 50:
        score += 0.1

    return min(1.0, score)


def score_source_diversity(agent: AgentConfig, scored_configs: list[ScoredConfig]) -> float:
    source_count = len(scored_configs)
    if source_count == 0 and not agent.source_attribution:
        return 0.1

    score = 0.0
    if source_count >= 3:
        score += 0.5
    elif source_count == 2:
        score += 0.4
    elif source_count == 1:
        score += 0.2

    type_count = len({s.type for s in agent.source_attribution})
    if type_count >= 3:
        score += 0.3
    elif type_count == 2:
        score += 0.2
    elif type_count == 1:
        score += 0.1

    high_scoring = sum(1 for c in scored_configs if c.combined_score >= HIGH_CONFIG_SCORE)
    if high_scoring >= 2:
        score += 0.2
    elif high_scoring == 1:
        score += 0.1

    return min(1.0, score)


def generate_agent_suggestions(sub_scores: QualitySubScores) -> list[str]:
    suggestions = []
    if sub_scores.coverage < 0.5:
        suggestions.append(
            "Try specifying more technologies in the stack to improve config matching."
        )
    if sub_scores.relevance < 0.5:
        suggestions.append(
            "Add more specific conventions or code examples to improve specificity."
        )
    if sub_scores.diversity < 0.5:
        suggestions.append(
            "Consider broadening the search with different role descriptions or stack terms."
        )
    if sub_scores.compression < 0.5:
        suggestions.append(
            "Link a project to include project-specific context and improve depth."
        )
    return suggestions


def score_agent_quality(
    agent: AgentConfig, requirement: AgentRequirement, scored_configs: list[ScoredConfig]
) -> QualityScore:
    sub_scores = QualitySubScores(
        coverage=score_config_coverage(agent, requirement),
        diversity=score_source_diversity(agent, scored_configs),
        relevance=score_specificity(agent),
        compression=score_context_depth(agent),
    )
    return QualityScore(
        overall=weighted_overall(sub_scores, AGENT_QUALITY_WEIGHTS),
        sub_scores=sub_scores,
        suggestions=generate_agent_suggestions(sub_scores),
    )


__all__ = [
    "AGENT_QUALITY_WEIGHTS",
    "score_config_coverage",
    "score_context_depth",
    "score_specificity",
    "score_source_diversity",
    "score_agent_quality",
]
