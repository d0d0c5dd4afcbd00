"""Tests for source synthesis and multi-factor priority ranking."""

import pytest

from context_tailor.models.synthesis import SourceType, WebResult
from context_tailor.models.task_analysis import (
    ComplexityLevel,
    KnowledgeDomain,
    TaskAnalysis,
    TaskType,
)
from context_tailor.services.priority_ranker import (
    DEFAULT_WEIGHTS,
    TASK_TYPE_WEIGHTS,
    RankFactors,
    RankingWeights,
    compute_authority_score,
    compute_priority_score,
    compute_specificity_score,
    rank_by_priority,
    resolve_weights,
)
from context_tailor.services.source_synthesizer import (
    SECTION_BACKGROUND,
    SECTION_CORE,
    SECTION_EXAMPLES,
    SECTION_RESOURCES,
    SourceSynthesizer,
    chunk_source,
    classify_section,
    deduplicate_chunks,
    detect_contradictions,
    merge_web_results,
)
from context_tailor.utils.text import jaccard_similarity


@pytest.fixture
def analysis():
    return TaskAnalysis(
        task_type=TaskType.CODING,
        complexity=ComplexityLevel.MEDIUM,
        domains=[KnowledgeDomain.SECURITY],
        key_entities=["jwt"],
        suggested_search_queries=["sign jwt tokens"],
        estimated_token_budget=4000,
        confidence=0.7,
    )


class TestDeduplication:
    def test_more_relevant_duplicate_replaces_in_place(self, make_compressed):
        chunks = [
            make_compressed("a", "rotate signing keys every month", relevance=0.5),
            make_compressed("b", "unrelated caching notes", relevance=0.6),
            make_compressed("c", "Rotate signing keys every month!", relevance=0.9),
        ]

        unique = deduplicate_chunks(chunks)

        assert [c.original_chunk_id for c in unique] == ["c", "b"]

    def test_less_relevant_duplicate_is_dropped(self, make_compressed):
        chunks = [
            make_compressed("a", "rotate signing keys every month", relevance=0.9),
            make_compressed("b", "rotate signing keys every month", relevance=0.4),
        ]
        assert [c.original_chunk_id for c in deduplicate_chunks(chunks)] == ["a"]

    def test_empty_chunks_from_different_documents_are_kept(self, make_compressed):
        chunks = [
            make_compressed("a", "", document_id="d1"),
            make_compressed("b", "", document_id="d2"),
        ]

        assert [c.original_chunk_id for c in deduplicate_chunks(chunks)] == ["a", "b"]
        assert jaccard_similarity(set(), set()) == 0.0


class TestContradictions:
    def test_conflicting_values_are_reported(self, make_compressed):
        chunks = [
            make_compressed("a", "timeout: 30s"),
            make_compressed("b", "timeout: 60s"),
        ]

        (contradiction,) = detect_contradictions(chunks)

        assert contradiction.claim == "timeout: 30s"
        assert contradiction.sources == ["a"]
        assert contradiction.alternative == "timeout: 60s"
        assert contradiction.alternative_sources == ["b"]

    def test_agreeing_values_are_not_contradictions(self, make_compressed):
        chunks = [make_compressed("a", "retries = 3"), make_compressed("b", "retries = 3")]
        assert detect_contradictions(chunks) == []

    def test_boolean_claims(self, make_compressed):
        chunks = [
            make_compressed("a", "The gateway does support streaming"),
            make_compressed("b", "Version two does not support streaming"),
        ]
        (contradiction,) = detect_contradictions(chunks)
        assert contradiction.sources == ["a"]
        assert contradiction.alternative_sources == ["b"]


class TestSections:
    def test_web_chunks_are_related_resources(self, make_compressed):
        chunk = make_compressed("w", "```js\ncode\n```", source_type="WEB_SEARCH", url="https://x")
        assert classify_section(chunk, KnowledgeDomain.SECURITY) == SECTION_RESOURCES

    def test_code_is_examples(self, make_compressed):
        chunk = make_compressed("a", "Usage:\n```python\nsign(token)\n```")
        assert classify_section(chunk, KnowledgeDomain.SECURITY) == SECTION_EXAMPLES

    def test_steps_with_inline_code_are_examples(self, make_compressed):
        chunk = make_compressed("a", "1. Run `make keys`\n2. Restart the service")
        assert classify_section(chunk, None) == SECTION_EXAMPLES

    def test_relevant_chunk_is_core(self, make_compressed):
        chunk = make_compressed("a", "Signing keys live in the vault.", relevance=0.8)
        assert classify_section(chunk, KnowledgeDomain.SECURITY) == SECTION_CORE
        assert classify_section(chunk, None) == SECTION_BACKGROUND

    def test_core_verb_without_domain(self, make_compressed):
        chunk = make_compressed("a", "Configure the signing key first.", relevance=0.8)
        assert classify_section(chunk, None) == SECTION_CORE

    def test_low_relevance_is_background(self, make_compressed):
        chunk = make_compressed("a", "Configure the signing key first.", relevance=0.5)
        assert classify_section(chunk, KnowledgeDomain.SECURITY) == SECTION_BACKGROUND


class TestSources:
    def test_project_source_title_fallbacks(self, make_compressed):
        named = chunk_source(make_compressed("a", "x", filename="auth.md"))
        titled = chunk_source(make_compressed("a", "x", title="Auth Guide", filename="auth.md"))
        bare = chunk_source(make_compressed("a", "x", document_id="doc-9"))

        assert named.title == "auth.md"
        assert titled.title == "Auth Guide"
        assert bare.title == "Document doc-9"
        assert bare.source_id == "doc-9"
        assert bare.source_type == SourceType.PROJECT_DOC
        assert bare.authority_score == 0.9

    def test_web_source_uses_url(self, make_compressed):
        chunk = make_compressed(
            "web-1", "x", document_id="web-search", source_type="WEB_SEARCH", url="https://jwt.io"
        )
        source = chunk_source(chunk)
        assert source.source_id == "https://jwt.io"
        assert source.title == "https://jwt.io"
        assert source.authority_score == 0.5


class TestSynthesize:
    @pytest.fixture
    def chunks(self, make_compressed):
        return [
            make_compressed(
                "c1",
                "Configure the JWT signing key in settings.",
                relevance=0.9,
                filename="auth.md",
            ),
            make_compressed(
                "c2", "```python\njwt.encode(payload, key)\n```", relevance=0.7, document_id="doc-2"
            ),
            make_compressed("c3", "History of token formats in general.", relevance=0.4),
        ]

    def test_blocks_follow_section_order(self, chunks, analysis):
        context = SourceSynthesizer().synthesize(list(reversed(chunks)), analysis=analysis)

        assert context.sections == [SECTION_CORE, SECTION_EXAMPLES, SECTION_BACKGROUND]
        assert [b.section for b in context.blocks] == context.sections
        assert context.blocks[0].content == "Configure the JWT signing key in settings."
        assert context.blocks[0].sources[0].title == "auth.md"
        assert context.source_count == 2
        assert context.contradiction_count == 0
        assert context.total_token_count > 0

    def test_block_priority_blends_relevance_specificity_authority(self, chunks, analysis):
        context = SourceSynthesizer().synthesize(chunks, analysis=analysis)
        core = context.blocks[0]
        assert core.priority == pytest.approx(0.9 * 0.5 + 0.1 * 0.3 + 0.9 * 0.2)

    def test_web_results_are_appended_once(self, chunks, analysis):
        web = [
            WebResult(
                url="https://jwt.io", title="JWT.io", snippet="Introduction to JSON Web Tokens"
            ),
            WebResult(
                url="https://dup.dev",
                title="Dup",
                snippet="Configure the JWT signing key in settings",
            ),
        ]

        context = SourceSynthesizer().synthesize(chunks, web_results=web, analysis=analysis)

        assert context.sections[-1] == SECTION_RESOURCES
        web_blocks = [b for b in context.blocks if b.is_web]
        assert [b.sources[0].url for b in web_blocks] == ["https://jwt.io"]
        assert web_blocks[0].priority == pytest.approx(0.3 * 0.1 + 0.5 * 0.5 + 0.1)
        assert context.source_count == 3

    def test_contradictions_are_attached_to_blocks(self, make_compressed):
        context = SourceSynthesizer().synthesize(
            [make_compressed("a", "timeout: 30s"), make_compressed("b", "timeout: 60s")]
        )

        assert context.contradiction_count == 1
        assert all(b.contradictions for b in context.blocks)

    def test_empty_input(self):
        context = SourceSynthesizer().synthesize([])
        assert context.blocks == []
        assert context.sections == []
        assert context.source_count == 0

    def test_merge_web_results_skips_covered_content(self, chunks, analysis):
        context = SourceSynthesizer().synthesize(chunks, analysis=analysis)
        web = [WebResult(url="https://a.dev", title="A", snippet="History of token formats")]
        assert merge_web_results(web, context.blocks) == []


class TestPriorityRanker:
    def test_missing_factors_are_neutral(self):
        score = compute_priority_score(RankFactors(relevance=1.0), DEFAULT_WEIGHTS)
        assert score == pytest.approx(0.4 + 0.2 * 0.5 * 3)

    def test_weight_resolution(self):
        custom = RankingWeights(relevance=1.0, recency=0, authority=0, specificity=0)
        assert resolve_weights(custom, TaskType.CODING) is custom
        assert resolve_weights(None, TaskType.CODING) == TASK_TYPE_WEIGHTS[TaskType.CODING]
        assert resolve_weights(None, TaskType.WRITING) == DEFAULT_WEIGHTS
        assert resolve_weights() == DEFAULT_WEIGHTS

    def test_rank_is_stable_and_descending(self):
        items = [("low", 0.2), ("tie-1", 0.6), ("high", 0.9), ("tie-2", 0.6)]
        ranked = rank_by_priority(items, lambda item: RankFactors(relevance=item[1]))
        assert [name for name, _ in ranked] == ["high", "tie-1", "tie-2", "low"]

    def test_weights_change_order(self):
        items = [
            ("relevant", RankFactors(relevance=0.9, specificity=0.1)),
            ("specific", RankFactors(relevance=0.6, specificity=1.0)),
        ]
        by_default = rank_by_priority(items, lambda item: item[1])
        by_coding = rank_by_priority(items, lambda item: item[1], task_type=TaskType.CODING)
        assert by_default[0][0] == "specific"
        assert by_coding[0][0] == "specific"

        weights = RankingWeights(relevance=1.0, recency=0, authority=0, specificity=0)
        assert rank_by_priority(items, lambda item: item[1], weights)[0][0] == "relevant"

    def test_authority_scores(self):
        assert compute_authority_score(SourceType.USER_INPUT) == 1.0
        assert compute_authority_score(SourceType.PROJECT_DOC) == 0.9
        assert compute_authority_score(SourceType.API_RESPONSE) == 0.7
        assert compute_authority_score(SourceType.WEB_SEARCH) == 0.5

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("plain prose", 0.1),
            ("use `sign()` here", 0.4),
            ("npm install jose", 0.3),
            ("expires after 30 ms", 0.25),
            ("- first\n- second", 0.3),
        ],
    )
    def test_specificity_signals(self, content, expected):
        assert compute_specificity_score(content) == pytest.approx(expected)

    def test_specificity_is_capped(self):
        content = "\n".join(
            ["```js", "const token = sign(payload)", "```", "npm install jose", "wait 5 ms"]
            + [f"- step {i}" for i in range(8)]
        )
        assert compute_specificity_score(content) == 1.0
