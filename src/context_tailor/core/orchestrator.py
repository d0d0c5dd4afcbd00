"""End-to-end tailoring pipeline.

Stages run in order: analyze → budget → score → gaps → web augmentation →
compress → synthesize → cite and format → quality → record session. Each
stage has its own fallback, so a collaborator failure degrades the response
and is reported in ``metadata.stage_failures`` instead of failing the request.
"""

import time
import uuid
from typing import Any, Protocol

import logfire
from pydantic import ValidationError

from context_tailor.agents.summarizer import LLMSummarizer
from context_tailor.core.config import config as global_config
from context_tailor.core.context import TailorContextManager
from context_tailor.core.exceptions import InvalidTailorRequestError
from context_tailor.core.logging import configure_logging
from context_tailor.models.api_models import (
    TailorMetadata,
    TailorPreviewResponse,
    TailorRequest,
    TailorResponse,
    TailorSection,
    WebSearchSummary,
)
from context_tailor.models.compression import (
    CompressedChunk,
    CompressedContext,
    CompressionConfig,
    CompressionLevel,
    CompressionStats,
)
from context_tailor.models.gaps import GapReport
from context_tailor.models.quality import QualityScore, QualitySubScores
from context_tailor.models.scoring import ScoredChunk, ScoringConfig
from context_tailor.models.synthesis import Citation, SynthesizedContext
from context_tailor.models.task_analysis import (
    ComplexityLevel,
    KnowledgeDomain,
    TaskAnalysis,
    TaskType,
)
from context_tailor.services.citation_tracker import collect_citations, format_citations_section
from context_tailor.services.context_compressor import ContextCompressor, estimate_compressed_size
from context_tailor.services.context_window import create_budget
from context_tailor.services.gap_analyzer import (
    GapAnalyzer,
    gap_search_queries,
    should_trigger_web_search,
    summarize_gaps,
)
from context_tailor.services.platform_formatter import extract_sections, format_context
from context_tailor.services.quality_scorer import (
    chunk_infos,
    generate_suggestions,
    score_context,
)
from context_tailor.services.relevance_scorer import RelevanceScorer, merge_scored_chunks
from context_tailor.services.source_synthesizer import SourceSynthesizer
from context_tailor.services.summarization import Summarizer
from context_tailor.services.task_analyzer import TaskAnalyzer
from context_tailor.services.web_results import process_web_results
from context_tailor.services.web_search import WebSearchManager
from context_tailor.utils.text import estimate_tokens

FALLBACK_QUERY_CHARS = 200
FALLBACK_TOKEN_BUDGET = 4000
PROJECT_DOCS_SECTION = "projectDocs"


class SessionRecorder(Protocol):
    """Persists a finished tailoring response and returns its session id."""

    async def record(
        self, user_id: str, request: TailorRequest, record: dict[str, Any]
    ) -> str: ...


def fallback_analysis(task_input: str) -> TaskAnalysis:
    """Minimal analysis that lets the pipeline continue when analysis fails."""
    return TaskAnalysis(
        task_type=TaskType.OTHER,
        complexity=ComplexityLevel.MEDIUM,
        domains=[KnowledgeDomain.GENERAL],
        key_entities=[],
        suggested_search_queries=[task_input[:FALLBACK_QUERY_CHARS]],
        estimated_token_budget=FALLBACK_TOKEN_BUDGET,
        confidence=0.1,
    )


def neutral_gap_report(chunks: list[ScoredChunk]) -> GapReport:
    return GapReport(
        gaps=[],
        overall_coverage=0.5 if chunks else 0.0,
        is_actionable=False,
        estimated_quality_without_filling=0.5,
        estimated_quality_with_filling=0.5,
    )


def uncompressed_context(chunks: list[ScoredChunk]) -> CompressedContext:
    """Every chunk at FULL, used when compression fails."""
    compressed = []
    for chunk in chunks:
        tokens = estimate_tokens(chunk.content)
        compressed.append(
            CompressedChunk(
                original_chunk_id=chunk.chunk_id,
                compression_level=CompressionLevel.FULL,
                content=chunk.content,
                original_token_count=tokens,
                compressed_token_count=tokens,
                relevance_score=chunk.final_score,
                document_id=chunk.document_id,
                metadata=dict(chunk.metadata),
            )
        )
    total = sum(c.compressed_token_count for c in compressed)
    return CompressedContext(
        chunks=compressed,
        total_token_count=total,
        stats=CompressionStats(
            full_count=len(compressed), original_tokens=total, compressed_tokens=total
        ),
    )


def local_session_id() -> str:
    return f"local-{int(time.time() * 1000)}"


class TailorOrchestrator:
    """Runs the tailoring pipeline for one request at a time.

    Collaborators are injected; only the relevance scorer is required; the
    others default to the standard implementations. Web augmentation needs a
    ``WebSearchManager`` with at least one available provider.
    """

    def __init__(
        self,
        scorer: RelevanceScorer,
        *,
        summarizer: Summarizer | None = None,
        web_search: WebSearchManager | None = None,
        session_recorder: SessionRecorder | None = None,
        task_analyzer: TaskAnalyzer | None = None,
        gap_analyzer: GapAnalyzer | None = None,
        compressor: ContextCompressor | None = None,
        synthesizer: SourceSynthesizer | None = None,
        scoring_config: ScoringConfig | None = None,
        enable_web_search: bool | None = None,
    ):
        configure_logging()
        self.scorer = scorer
        self.web_search = web_search
        self.session_recorder = session_recorder
        self.task_analyzer = task_analyzer or TaskAnalyzer()
        self.gap_analyzer = gap_analyzer or GapAnalyzer()
        if compressor is None:
            compressor = ContextCompressor(summarizer or LLMSummarizer())
        self.compressor = compressor
        self.synthesizer = synthesizer or SourceSynthesizer()
        self.scoring_config = scoring_config or ScoringConfig()
        self.enable_web_search = (
            global_config.enable_web_search if enable_web_search is None else enable_web_search
        )

    @staticmethod
    def _validate(request: TailorRequest | dict[str, Any]) -> TailorRequest:
        if isinstance(request, TailorRequest):
            return request
        try:
            return TailorRequest.model_validate(request)
        except ValidationError as e:
            raise InvalidTailorRequestError(
                "; ".join(err["msg"] for err in e.errors()),
                errors=e.errors(include_url=False, include_context=False, include_input=False),
            ) from e

    async def tailor(
        self, request: TailorRequest | dict[str, Any], user_id: str = "default"
    ) -> TailorResponse:
        """Assemble formatted, cited context for ``request``.

        Raises:
            InvalidTailorRequestError: The request does not validate. Nothing
                else is raised; stage failures degrade the response.
        """
        request = self._validate(request)
        started = time.perf_counter()
        failures: dict[str, str] = {}

        async with TailorContextManager(
            user_id=user_id, project_id=request.project_id, request_id=uuid.uuid4().hex
        ):
            with logfire.span(
                "tailor {project_id}",
                project_id=request.project_id,
                platform=request.target_platform,
            ):
                analysis = self._analyze(request, failures)

                budget = create_budget(request.target_platform)
                token_budget = request.options.max_tokens or min(
                    analysis.estimated_token_budget,
                    budget.allocations[PROJECT_DOCS_SECTION],
                )

                pool = await self._score_queries(
                    analysis.suggested_search_queries, request.project_id, failures
                )
                chunks_retrieved = len(pool)

                web_enabled = self._web_enabled(request)
                gap_report = self._analyze_gaps(analysis, pool, web_enabled, failures)

                web_summary = WebSearchSummary()
                if web_enabled and should_trigger_web_search(gap_report):
                    pool, web_summary = await self._augment_with_web(
                        self.web_search, analysis, gap_report, pool, failures
                    )

                compressed = await self._compress(pool, token_budget, failures)
                synthesized = self._synthesize(compressed, analysis, failures)
                citations = self._cite(synthesized, failures)
                context, sections = self._format(
                    synthesized, citations, request.target_platform, failures
                )
                quality = self._score_quality(request.task_input, compressed, failures)

                metadata = TailorMetadata(
                    total_tokens=budget.total_available,
                    tokens_used=synthesized.total_token_count,
                    chunks_retrieved=chunks_retrieved,
                    chunks_included=len(compressed.chunks),
                    gap_report=gap_report,
                    compression_stats=compressed.stats,
                    processing_time_ms=int((time.perf_counter() - started) * 1000),
                    quality_score=quality.overall / 100,
                    quality_details=quality if request.options.include_score else None,
                    web_search=web_summary,
                    stage_failures=failures,
                )
                response = TailorResponse(
                    session_id=local_session_id(),
                    context=context,
                    sections=sections,
                    citations=citations,
                    metadata=metadata,
                )

                session_id = await self._record_session(user_id, request, response, failures)
                logfire.info(
                    "Tailoring complete",
                    session_id=session_id,
                    chunks_included=metadata.chunks_included,
                    tokens_used=metadata.tokens_used,
                    quality=quality.overall,
                    failures=list(failures),
                )
                return response.model_copy(
                    update={
                        "session_id": session_id,
                        "metadata": metadata.model_copy(update={"stage_failures": dict(failures)}),
                    }
                )

    async def preview(
        self, request: TailorRequest | dict[str, Any], user_id: str = "default"
    ) -> TailorPreviewResponse:
        """Estimate a tailoring run without compression or LLM summarization."""
        request = self._validate(request)
        started = time.perf_counter()
        failures: dict[str, str] = {}

        async with TailorContextManager(user_id=user_id, project_id=request.project_id):
            analysis = self._analyze(request, failures)
            first_query = (
                analysis.suggested_search_queries[0]
                if analysis.suggested_search_queries
                else request.task_input
            )
            chunks = await self._score_queries([first_query], request.project_id, failures)
            gap_report = self._analyze_gaps(analysis, chunks, self._web_enabled(request), failures)

            try:
                stats = estimate_compressed_size(chunks)
            except Exception as e:
                failures["compression"] = str(e)
                logfire.warning("Compression estimate failed", error=str(e))
                stats = uncompressed_context(chunks).stats

            return TailorPreviewResponse(
                estimated_tokens=stats.compressed_tokens,
                estimated_chunks=stats.included_count,
                gap_summary=summarize_gaps(gap_report),
                estimated_quality=gap_report.estimated_quality_without_filling,
                processing_time_ms=int((time.perf_counter() - started) * 1000),
            )

    def _web_enabled(self, request: TailorRequest) -> bool:
        return (
            request.options.include_web_search
            and self.enable_web_search
            and self.web_search is not None
            and self.web_search.is_available()
        )

    def _analyze(self, request: TailorRequest, failures: dict[str, str]) -> TaskAnalysis:
        try:
            return self.task_analyzer.analyze(request.task_input)
        except Exception as e:
            failures["analysis"] = str(e)
            logfire.error("Task analysis failed, using fallback analysis", error=str(e))
            return fallback_analysis(request.task_input)

    async def _score_queries(
        self, queries: list[str], project_id: str, failures: dict[str, str]
    ) -> list[ScoredChunk]:
        results: list[list[ScoredChunk]] = []
        for query in queries:
            try:
                results.append(await self.scorer.score(query, project_id, self.scoring_config))
            except Exception as e:
                failures[f"scoring:{query}"] = str(e)
                logfire.warning("Scoring failed for query", query=query, error=str(e))
        return merge_scored_chunks(*results)

    def _analyze_gaps(
        self,
        analysis: TaskAnalysis,
        chunks: list[ScoredChunk],
        web_enabled: bool,
        failures: dict[str, str],
    ) -> GapReport:
        try:
            return self.gap_analyzer.analyze(analysis, chunks, web_search_enabled=web_enabled)
        except Exception as e:
            failures["gap_analysis"] = str(e)
            logfire.warning("Gap analysis failed, using neutral report", error=str(e))
            return neutral_gap_report(chunks)

    async def _augment_with_web(
        self,
        web_search: WebSearchManager,
        analysis: TaskAnalysis,
        gap_report: GapReport,
        pool: list[ScoredChunk],
        failures: dict[str, str],
    ) -> tuple[list[ScoredChunk], WebSearchSummary]:
        queries = gap_search_queries(gap_report.gaps) or list(analysis.suggested_search_queries)
        try:
            responses = await web_search.search_many(queries)
        except Exception as e:
            failures["web_search"] = str(e)
            logfire.warning("Web augmentation failed", error=str(e))
            return pool, WebSearchSummary(triggered=True, queries=queries)

        if len(responses) < len(queries):
            failed = len(queries) - len(responses)
            failures["web_search"] = f"{failed} of {len(queries)} queries failed"

        web_chunks = process_web_results([r for resp in responses for r in resp.results])
        unique_web = {c.chunk_id for c in web_chunks}
        summary = WebSearchSummary(
            triggered=True,
            queries=queries,
            providers=list(dict.fromkeys(resp.provider for resp in responses)),
            results_added=len(unique_web),
        )
        logfire.info(
            "Web augmentation added results", results=len(unique_web), queries=len(queries)
        )
        return merge_scored_chunks(pool, web_chunks), summary

    async def _compress(
        self, pool: list[ScoredChunk], token_budget: int, failures: dict[str, str]
    ) -> CompressedContext:
        try:
            return await self.compressor.compress(
                pool, CompressionConfig(total_token_budget=token_budget)
            )
        except Exception as e:
            failures["compression"] = str(e)
            logfire.warning("Compression failed, keeping chunks uncompressed", error=str(e))
            return uncompressed_context(pool)

    def _synthesize(
        self, compressed: CompressedContext, analysis: TaskAnalysis, failures: dict[str, str]
    ) -> SynthesizedContext:
        try:
            return self.synthesizer.synthesize(compressed.chunks, None, analysis)
        except Exception as e:
            failures["synthesis"] = str(e)
            logfire.warning("Synthesis failed, returning empty context", error=str(e))
            return SynthesizedContext()

    @staticmethod
    def _cite(synthesized: SynthesizedContext, failures: dict[str, str]) -> list[Citation]:
        try:
            return collect_citations(synthesized.blocks)
        except Exception as e:
            failures["citations"] = str(e)
            logfire.warning("Citation collection failed", error=str(e))
            return []

    @staticmethod
    def _format(
        synthesized: SynthesizedContext,
        citations: list[Citation],
        platform: str,
        failures: dict[str, str],
    ) -> tuple[str, list[TailorSection]]:
        try:
            context = format_context(synthesized, platform)
        except Exception as e:
            failures["formatting"] = str(e)
            logfire.warning("Formatting failed, returning raw content", error=str(e))
            context = "\n\n".join(block.content for block in synthesized.blocks)

        if citations:
            context = f"{context}\n\n{format_citations_section(citations)}"
        return context, extract_sections(synthesized)

    @staticmethod
    def _score_quality(
        task_input: str, compressed: CompressedContext, failures: dict[str, str]
    ) -> QualityScore:
        included = compressed.chunks
        if not included:
            # nothing made it into the context
            empty = QualitySubScores(coverage=0, diversity=0, relevance=0, compression=0)
            return QualityScore(
                overall=0, sub_scores=empty, suggestions=generate_suggestions(empty)
            )
        try:
            return score_context(
                task_input,
                [c.content for c in included],
                chunk_infos(included),
                compressed.stats.original_tokens,
                compressed.total_token_count,
            )
        except Exception as e:
            failures["quality"] = str(e)
            logfire.warning("Quality scoring failed", error=str(e))
            return QualityScore(
                overall=0,
                sub_scores=QualitySubScores(coverage=0, diversity=0, relevance=0, compression=0),
            )

    async def _record_session(
        self,
        user_id: str,
        request: TailorRequest,
        response: TailorResponse,
        failures: dict[str, str],
    ) -> str:
        if self.session_recorder is None:
            return response.session_id
        try:
            return await self.session_recorder.record(user_id, request, response.to_record())
        except Exception as e:
            failures["session"] = str(e)
            logfire.error("Failed to record tailoring session", error=str(e))
            return response.session_id


__all__ = [
    "SessionRecorder",
    "TailorOrchestrator",
    "fallback_analysis",
    "neutral_gap_report",
    "uncompressed_context",
]
