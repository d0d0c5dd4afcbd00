"""Assembles compressed chunks into deduplicated, sectioned, prioritized blocks."""

import re
from collections import defaultdict
from dataclasses import dataclass

import logfire

from context_tailor.models.compression import CompressedChunk
from context_tailor.models.synthesis import (
    ContextSource,
    Contradiction,
    SourceType,
    SynthesizedBlock,
    SynthesizedContext,
    WebResult,
)
from context_tailor.models.task_analysis import KnowledgeDomain, TaskAnalysis, TaskType
from context_tailor.utils.text import estimate_tokens, jaccard_similarity, word_set

from .priority_ranker import (
    RankFactors,
    compute_authority_score,
    compute_specificity_score,
    rank_by_priority,
)

SECTION_CORE = "Core Implementation"
SECTION_EXAMPLES = "Examples"
SECTION_BACKGROUND = "Background Context"
SECTION_RESOURCES = "Related Resources"
ORDERED_SECTIONS = [SECTION_CORE, SECTION_EXAMPLES, SECTION_BACKGROUND, SECTION_RESOURCES]

DEDUP_THRESHOLD = 0.6
CORE_RELEVANCE_MIN = 0.7

# identifier followed by "=" or ":" and a number with an optional unit
VALUE_PATTERN = re.compile(
    r"\b([a-z][a-z_\-\s]{2,20})\s*[=:]\s*(\d+(?:\.\d+)?(?:\s*[a-z]+)?)\b", re.I
)
BOOL_PATTERN = re.compile(
    r"\b(enable|disable|supports?|does not support|deprecated|not deprecated)"
    r"\s+([a-z][a-z\s]{2,30})\b",
    re.I,
)

CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```|^\s{4}\S", re.M)
STEP_RE = re.compile(r"^\s*(\d+[\.\)]\s|\-\s|\*\s)", re.M)
INLINE_CODE_RE = re.compile(r"`[^`]+`")
CORE_VERB_RE = re.compile(
    r"\b(implement|configure|setup|install|create|build|define|declare)\b", re.I
)


@dataclass
class _Claim:
    entity: str
    value: str
    chunk_id: str
    text: str


@dataclass
class _Candidate:
    block: SynthesizedBlock
    factors: RankFactors


def _is_web_chunk(chunk: CompressedChunk) -> bool:
    return chunk.metadata.get("source_type") == SourceType.WEB_SEARCH.value


def deduplicate_chunks(chunks: list[CompressedChunk]) -> list[CompressedChunk]:
    """Drop near-duplicates (Jaccard > 0.6), keeping the more relevant chunk in place."""
    kept: list[CompressedChunk] = []
    kept_words: list[set[str]] = []
    for chunk in chunks:
        words = word_set(chunk.content)
        for i, existing in enumerate(kept_words):
            if jaccard_similarity(words, existing) > DEDUP_THRESHOLD:
                if chunk.relevance_score > kept[i].relevance_score:
                    kept[i] = chunk
                    kept_words[i] = words
                break
        else:
            kept.append(chunk)
            kept_words.append(words)
    return kept


def extract_claims(chunk: CompressedChunk) -> list[_Claim]:
    claims = [
        _Claim(
            entity=m.group(1).strip().lower(),
            value=m.group(2).strip().lower(),
            chunk_id=chunk.original_chunk_id,
            text=m.group(0),
        )
        for m in VALUE_PATTERN.finditer(chunk.content)
    ]
    claims.extend(
        _Claim(
            entity=m.group(2).strip().lower(),
            value=m.group(1).strip().lower(),
            chunk_id=chunk.original_chunk_id,
            text=m.group(0),
        )
        for m in BOOL_PATTERN.finditer(chunk.content)
    )
    return claims


def detect_contradictions(chunks: list[CompressedChunk]) -> list[Contradiction]:
    """Find entities given two or more distinct values across chunks.

    Each such entity yields one contradiction between its two best-supported
    values.
    """
    by_entity: dict[str, list[_Claim]] = defaultdict(list)
    for chunk in chunks:
        for claim in extract_claims(chunk):
            by_entity[claim.entity].append(claim)

    contradictions: list[Contradiction] = []
    for claims in by_entity.values():
        if len(claims) < 2:
            continue
        by_value: dict[str, list[_Claim]] = defaultdict(list)
        for claim in claims:
            by_value[claim.value].append(claim)
        if len(by_value) < 2:
            continue

        first, second = sorted(by_value.values(), key=len, reverse=True)[:2]
        contradictions.append(
            Contradiction(
                claim=first[0].text,
                sources=list(dict.fromkeys(c.chunk_id for c in first)),
                alternative=second[0].text,
                alternative_sources=list(dict.fromkeys(c.chunk_id for c in second)),
            )
        )
    return contradictions


def classify_section(chunk: CompressedChunk, primary_domain: KnowledgeDomain | None) -> str:
    if _is_web_chunk(chunk):
        return SECTION_RESOURCES
    content = chunk.content
    has_steps_with_code = STEP_RE.search(content) and INLINE_CODE_RE.search(content)
    if CODE_BLOCK_RE.search(content) or has_steps_with_code:
        return SECTION_EXAMPLES
    if chunk.relevance_score >= CORE_RELEVANCE_MIN and (
        primary_domain is not None or CORE_VERB_RE.search(content)
    ):
        return SECTION_CORE
    return SECTION_BACKGROUND


def chunk_source(chunk: CompressedChunk) -> ContextSource:
    """Cite a project chunk by its document, or a web chunk by its URL."""
    metadata = chunk.metadata
    if _is_web_chunk(chunk):
        url = str(metadata.get("url", chunk.original_chunk_id))
        return ContextSource(
            source_type=SourceType.WEB_SEARCH,
            source_id=url,
            title=str(metadata.get("title") or url),
            url=url,
            timestamp=metadata.get("fetched_at"),
            authority_score=compute_authority_score(SourceType.WEB_SEARCH),
        )

    document_id = chunk.document_id or chunk.original_chunk_id
    title = metadata.get("title") or metadata.get("filename") or f"Document {document_id}"
    return ContextSource(
        source_type=SourceType.PROJECT_DOC,
        source_id=document_id,
        title=str(title),
        authority_score=compute_authority_score(SourceType.PROJECT_DOC),
    )


def web_result_source(result: WebResult) -> ContextSource:
    return ContextSource(
        source_type=SourceType.WEB_SEARCH,
        source_id=result.url,
        title=result.title,
        url=result.url,
        timestamp=result.fetched_at,
        authority_score=compute_authority_score(SourceType.WEB_SEARCH),
    )


def _chunk_candidate(
    chunk: CompressedChunk, section: str, contradictions: list[Contradiction]
) -> _Candidate:
    source = chunk_source(chunk)
    specificity = compute_specificity_score(chunk.content)
    authority = source.authority_score
    related = [
        c
        for c in contradictions
        if chunk.original_chunk_id in c.sources or chunk.original_chunk_id in c.alternative_sources
    ]
    block = SynthesizedBlock(
        content=chunk.content,
        sources=[source],
        priority=chunk.relevance_score * 0.5 + specificity * 0.3 + authority * 0.2,
        section=section,
        contradictions=related or None,
    )
    return _Candidate(
        block=block,
        factors=RankFactors(
            relevance=chunk.relevance_score, authority=authority, specificity=specificity
        ),
    )


def _web_candidates(
    web_results: list[WebResult], existing: list[SynthesizedBlock]
) -> list[_Candidate]:
    existing_words = [word_set(b.content) for b in existing]
    candidates: list[_Candidate] = []
    for result in web_results:
        text = result.content or result.snippet
        words = word_set(text)
        if any(jaccard_similarity(words, other) > DEDUP_THRESHOLD for other in existing_words):
            continue

        specificity = compute_specificity_score(text)
        authority = compute_authority_score(SourceType.WEB_SEARCH)
        block = SynthesizedBlock(
            content=text,
            sources=[web_result_source(result)],
            priority=0.3 * specificity + 0.5 * authority + 0.1,
            section=SECTION_RESOURCES,
        )
        candidates.append(
            _Candidate(
                block=block,
                factors=RankFactors(relevance=0.5, authority=authority, specificity=specificity),
            )
        )
        existing_words.append(words)
    return candidates


def merge_web_results(
    web_results: list[WebResult], existing_blocks: list[SynthesizedBlock]
) -> list[SynthesizedBlock]:
    """Blocks for web results not already covered by ``existing_blocks``."""
    return [c.block for c in _web_candidates(web_results, existing_blocks)]


class SourceSynthesizer:
    """Deduplicates, detects contradictions, sections and orders context blocks."""

    def synthesize(
        self,
        chunks: list[CompressedChunk],
        web_results: list[WebResult] | None = None,
        analysis: TaskAnalysis | None = None,
    ) -> SynthesizedContext:
        task_type: TaskType | None = analysis.task_type if analysis else None
        primary_domain = analysis.primary_domain if analysis else None

        unique = deduplicate_chunks(chunks)
        contradictions = detect_contradictions(unique)

        by_section: dict[str, list[_Candidate]] = {s: [] for s in ORDERED_SECTIONS}
        for chunk in unique:
            section = classify_section(chunk, primary_domain)
            by_section[section].append(_chunk_candidate(chunk, section, contradictions))

        blocks: list[SynthesizedBlock] = []
        used_sections: list[str] = []
        for section in ORDERED_SECTIONS:
            candidates = by_section[section]
            if not candidates:
                continue
            ranked = rank_by_priority(candidates, lambda c: c.factors, task_type=task_type)
            blocks.extend(c.block for c in ranked)
            used_sections.append(section)

        if web_results:
            web = _web_candidates(web_results, blocks)
            if web:
                ranked = rank_by_priority(web, lambda c: c.factors, task_type=task_type)
                blocks.extend(c.block for c in ranked)
                if SECTION_RESOURCES not in used_sections:
                    used_sections.append(SECTION_RESOURCES)

        source_ids = {source.source_id for block in blocks for source in block.sources}
        context = SynthesizedContext(
            blocks=blocks,
            total_token_count=sum(estimate_tokens(b.content) for b in blocks),
            source_count=len(source_ids),
            contradiction_count=len(contradictions),
            sections=used_sections,
        )
        logfire.info(
            "Context synthesized",
            input_chunks=len(chunks),
            blocks=len(blocks),
            sources=context.source_count,
            contradictions=context.contradiction_count,
        )
        return context


__all__ = [
    "ORDERED_SECTIONS",
    "SECTION_CORE",
    "SECTION_EXAMPLES",
    "SECTION_BACKGROUND",
    "SECTION_RESOURCES",
    "SourceSynthesizer",
    "classify_section",
    "deduplicate_chunks",
    "detect_contradictions",
    "merge_web_results",
]
