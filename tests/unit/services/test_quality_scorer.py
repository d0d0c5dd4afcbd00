"""Tests for context and agent-config quality scoring."""

import pytest

from context_tailor.models.quality import (
    AgentConfig,
    AgentRequirement,
    QualitySubScores,
    ScoredConfig,
    SourceAttribution,
)
from context_tailor.services.agent_quality_scorer import (
    score_agent_quality,
    score_config_coverage,
    score_context_depth,
    score_source_diversity,
    score_specificity,
)
from context_tailor.services.quality_scorer import (
    ChunkInfo,
    chunk_infos,
    generate_suggestions,
    score_compression,
    score_context,
    score_coverage,
    score_diversity,
    score_relevance,
    weighted_overall,
)


class TestContextSubScores:
    def test_coverage_counts_long_task_words(self):
        task = "Implement JWT authentication for the API"
        assert score_coverage(task, ["jwt tokens and Authentication"]) == 0.5

    def test_coverage_without_keywords_is_full(self):
        assert score_coverage("fix the bug", []) == 1.0

    @pytest.mark.parametrize(
        ("sources", "expected"),
        [
            ([], 0.0),
            ([ChunkInfo("d1", 0.9)], 0.2),
            ([ChunkInfo("d1", 0.9), ChunkInfo("d2", 0.9)], 0.5),
            ([ChunkInfo("d1", 0.9), ChunkInfo("d2", 0.9), ChunkInfo("d3", 0.9)], 0.8),
            ([ChunkInfo("d1", 0.9), ChunkInfo("web-search", 0.5, "WEB_SEARCH")], 0.7),
        ],
    )
    def test_diversity(self, sources, expected):
        assert score_diversity(sources) == pytest.approx(expected)

    def test_relevance_penalizes_weak_chunks(self):
        chunks = [ChunkInfo("d1", 0.9), ChunkInfo("d2", 0.1)]
        assert score_relevance(chunks) == pytest.approx(0.4)
        assert score_relevance([]) == 0.0

    @pytest.mark.parametrize(
        ("raw", "output", "expected"),
        [(0, 0, 0.5), (1000, 300, 1.0), (1000, 800, 0.7), (1000, 2000, 0.5), (1000, 100, 0.65)],
    )
    def test_compression(self, raw, output, expected):
        assert score_compression(raw, output) == pytest.approx(expected)

    def test_chunk_infos_use_document_and_source_type(self, make_compressed):
        chunks = [
            make_compressed("a", "x", relevance=0.7),
            make_compressed("b", "y", document_id=None, source_type="WEB_SEARCH"),
        ]
        assert chunk_infos(chunks) == [
            ChunkInfo("doc-1", 0.7, "document"),
            ChunkInfo("b", 0.8, "WEB_SEARCH"),
        ]


class TestScoreContext:
    def test_empty_context(self):
        score = score_context("", [], [], 0, 0)

        assert score.sub_scores == QualitySubScores(
            coverage=1.0, diversity=0.0, relevance=0.0, compression=0.5
        )
        assert score.suggestions == [
            "Consider refining your task description to be more specific.",
            "Context relies heavily on a single source. "
            "Consider uploading more varied documentation.",
        ]

    def test_good_context_scores_high(self):
        sources = [ChunkInfo("d1", 0.9), ChunkInfo("d2", 0.85), ChunkInfo("d3", 0.8)]
        score = score_context(
            "rotate signing keys",
            ["rotate the signing keys monthly"],
            sources,
            raw_token_count=1000,
            output_token_count=400,
        )
        assert score.overall >= 85
        assert score.suggestions == []

    def test_weighted_overall_bounds(self):
        ones = QualitySubScores(coverage=1, diversity=1, relevance=1, compression=1)
        zeros = QualitySubScores(coverage=0, diversity=0, relevance=0, compression=0)
        weights = {"coverage": 0.35, "relevance": 0.30, "diversity": 0.20, "compression": 0.15}
        assert weighted_overall(ones, weights) == 100
        assert weighted_overall(zeros, weights) == 0

    def test_suggestions_follow_sub_score_order(self):
        low = QualitySubScores(coverage=0.1, diversity=0.1, relevance=0.1, compression=0.1)
        suggestions = generate_suggestions(low)
        assert len(suggestions) == 4
        assert "key topics" in suggestions[0]
        assert "boilerplate" in suggestions[3]


@pytest.fixture
def requirement():
    return AgentRequirement(role="Backend API developer", stack=["FastAPI", "PostgreSQL"])


class TestAgentQuality:
    def test_config_coverage(self, requirement):
        agent = AgentConfig(
            name="api-dev",
            mission="Build backend services",
            tools=["pytest"],
            conventions=["Use FastAPI dependency injection for db sessions"],
        )
        assert score_config_coverage(agent, requirement) == pytest.approx(0.6)

    def test_context_depth(self):
        def depth(*chunks: str) -> float:
            agent = AgentConfig(name="a", mission="m", context_chunks=list(chunks))
            return score_context_depth(agent)

        assert depth() == 0.2
        assert depth("x" * 600) == 0.6
        assert depth("x" * 2500) == 0.8
        assert depth("x" * 3000, "y" * 3000) == 1.0

    def test_specificity(self):
        assert score_specificity(AgentConfig(name="a", mission="m")) == 0.1
        agent = AgentConfig(
            name="a",
            mission="Own the HTTP layer of the billing service end to end",
            conventions=[
                "Wrap handlers with `transactional()` decorators",
                "Return problem+json bodies from every error handler",
                "Keep route modules under four hundred lines each",
            ],
        )
        assert score_specificity(agent) == pytest.approx(0.2 + 0.2 + 0.15 + 0.1)

    def test_source_diversity(self):
        assert score_source_diversity(AgentConfig(name="a", mission="m"), []) == 0.1
        agent = AgentConfig(
            name="a",
            mission="m",
            source_attribution=[
                SourceAttribution(name="x", type="curated"),
                SourceAttribution(name="y", type="online"),
            ],
        )
        configs = [
            ScoredConfig(name="x", combined_score=8.5),
            ScoredConfig(name="y", combined_score=7.0),
            ScoredConfig(name="z", combined_score=3.0),
        ]
        assert score_source_diversity(agent, configs) == pytest.approx(0.9)

    def test_sparse_agent_gets_all_hints(self, requirement):
        agent = AgentConfig(name="a", mission="m")

        score = score_agent_quality(agent, requirement, [])

        assert score.overall < 50
        assert len(score.suggestions) == 4
        assert "stack" in score.suggestions[0]
        assert "Link a project" in score.suggestions[3]
