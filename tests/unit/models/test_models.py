"""Validation behaviour of the pipeline models."""

import pytest
from pydantic import ValidationError

from context_tailor.models import (
    ComplexityLevel,
    CompressionConfig,
    CompressionStats,
    ContextSource,
    Gap,
    GapReport,
    GapSeverity,
    GapType,
    KnowledgeDomain,
    QualityScore,
    QualitySubScores,
    RerankScore,
    ScoredChunk,
    ScoringConfig,
    SourceType,
    SynthesizedBlock,
    TailorMetadata,
    TailorRequest,
    TailorResponse,
    TaskAnalysis,
    TaskType,
)


class TestTailorRequest:
    def test_defaults_and_stripping(self):
        request = TailorRequest(task_input="  add rate limiting  ", project_id="p1")

        assert request.task_input == "add rate limiting"
        assert request.target_platform == "chatgpt"
        assert request.options.include_web_search is True
        assert request.options.max_tokens is None

    @pytest.mark.parametrize(
        "data",
        [
            {"task_input": "", "project_id": "p1"},
            {"task_input": "x" * 5001, "project_id": "p1"},
            {"task_input": "task", "project_id": ""},
            {"task_input": "task", "project_id": "p1", "target_platform": "gemini"},
            {"task_input": "task", "project_id": "p1", "options": {"max_tokens": 0}},
        ],
    )
    def test_invalid_requests(self, data):
        with pytest.raises(ValidationError):
            TailorRequest.model_validate(data)


class TestTaskAnalysis:
    def _analysis(self, **overrides):
        data = {
            "task_type": TaskType.CODING,
            "complexity": ComplexityLevel.LOW,
            "domains": [KnowledgeDomain.BACKEND],
            "suggested_search_queries": ["q"],
            "estimated_token_budget": 2000,
            "confidence": 0.5,
        }
        data.update(overrides)
        return TaskAnalysis(**data)

    def test_domains_are_deduplicated_in_order(self):
        analysis = self._analysis(
            domains=[KnowledgeDomain.SECURITY, KnowledgeDomain.BACKEND, KnowledgeDomain.SECURITY]
        )
        assert analysis.domains == [KnowledgeDomain.SECURITY, KnowledgeDomain.BACKEND]
        assert analysis.primary_domain == KnowledgeDomain.SECURITY

    @pytest.mark.parametrize(
        "overrides",
        [
            {"domains": []},
            {"suggested_search_queries": []},
            {"suggested_search_queries": ["q"] * 6},
            {"confidence": 1.5},
            {"estimated_token_budget": 0},
        ],
    )
    def test_invalid_analysis(self, overrides):
        with pytest.raises(ValidationError):
            self._analysis(**overrides)


class TestScoringModels:
    def test_source_type_defaults_to_project_doc(self):
        chunk = ScoredChunk(
            chunk_id="c",
            document_id="d",
            content="x",
            bi_encoder_score=0.5,
            cross_encoder_score=0.5,
            final_score=0.5,
        )
        assert chunk.source_type == "PROJECT_DOC"
        assert chunk.rank == 0

    def test_weights_are_bounded(self):
        with pytest.raises(ValidationError):
            ScoringConfig(bi_encoder_weight=1.5)

    def test_rerank_score_bounds(self):
        with pytest.raises(ValidationError):
            RerankScore(index=0, score=1.2)


class TestGapReport:
    def test_count(self):
        report = GapReport(
            gaps=[
                Gap(type=GapType.NO_CONTEXT, severity=GapSeverity.CRITICAL, description="a"),
                Gap(type=GapType.MISSING_DOMAIN, severity=GapSeverity.HIGH, description="b"),
                Gap(type=GapType.MISSING_DOMAIN, severity=GapSeverity.HIGH, description="c"),
            ],
            overall_coverage=0.2,
            estimated_quality_without_filling=0.1,
            estimated_quality_with_filling=0.5,
        )
        assert report.count(GapSeverity.HIGH) == 2
        assert report.count(GapSeverity.LOW) == 0

    def test_unknown_action_is_rejected(self):
        with pytest.raises(ValidationError):
            Gap(
                type=GapType.NO_CONTEXT,
                severity=GapSeverity.LOW,
                description="x",
                suggested_actions=["email_admin"],
            )


def test_compression_config_available_budget():
    assert CompressionConfig(total_token_budget=4000).available_budget == 3500
    assert CompressionConfig(total_token_budget=4000, reserved_tokens=0).available_budget == 4000


def test_blocks_are_frozen():
    block = SynthesizedBlock(
        content="x",
        sources=[
            ContextSource(
                source_type=SourceType.WEB_SEARCH,
                source_id="https://a.dev",
                title="A",
                url="https://a.dev",
                authority_score=0.5,
            )
        ],
        priority=0.4,
        section="Related Resources",
    )
    assert block.is_web
    with pytest.raises(ValidationError):
        block.priority = 0.9  # type: ignore[misc]


def test_quality_score_limits_suggestions():
    sub = QualitySubScores(coverage=0.1, diversity=0.1, relevance=0.1, compression=0.1)
    with pytest.raises(ValidationError):
        QualityScore(overall=10, sub_scores=sub, suggestions=["a", "b", "c", "d", "e"])
    with pytest.raises(ValidationError):
        QualityScore(overall=101, sub_scores=sub)


def test_response_record_excludes_session_id():
    metadata = TailorMetadata(
        total_tokens=104_000,
        tokens_used=10,
        chunks_retrieved=1,
        chunks_included=1,
        gap_report=GapReport(
            overall_coverage=1.0,
            estimated_quality_without_filling=1.0,
            estimated_quality_with_filling=1.0,
        ),
        compression_stats=CompressionStats(full_count=1),
        processing_time_ms=5,
        quality_score=0.9,
    )
    response = TailorResponse(session_id="s1", context="ctx", metadata=metadata)

    record = response.to_record()

    assert "session_id" not in record
    assert record["context"] == "ctx"
    assert record["metadata"]["web_search"]["triggered"] is False
    assert isinstance(record["metadata"]["gap_report"]["overall_coverage"], float)
