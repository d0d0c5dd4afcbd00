"""Citation collection over synthesized blocks and the plain-text sources footer."""

from context_tailor.models.synthesis import Citation, SourceType, SynthesizedBlock


def collect_citations(blocks: list[SynthesizedBlock]) -> list[Citation]:
    """One numbered citation per cited source, keeping its most relevant occurrence.

    Relevance is the block priority clamped to [0, 1]; on ties the earlier
    block wins. Numbering follows the order sources were first seen.
    API_RESPONSE and USER_INPUT sources are not cited.
    """
    best: dict[str, dict] = {}

    for block_index, block in enumerate(blocks):
        relevance = min(1.0, max(0.0, block.priority))
        for source in block.sources:
            if source.source_type == SourceType.PROJECT_DOC:
                candidate = {
                    "type": "document",
                    "source_title": source.title,
                    "document_id": source.source_id,
                    "chunk_index": block_index,
                    "relevance_score": relevance,
                }
            elif source.source_type == SourceType.WEB_SEARCH:
                candidate = {
                    "type": "web",
                    "source_title": source.title,
                    "source_url": source.url,
                    "chunk_index": block_index,
                    "relevance_score": relevance,
                    "fetched_at": source.timestamp,
                }
            else:
                continue

            existing = best.get(source.source_id)
            if existing is None or relevance > existing["relevance_score"]:
                # assignment to an existing key keeps its first-seen position
                best[source.source_id] = candidate

    return [Citation(id=str(n), **data) for n, data in enumerate(best.values(), start=1)]


def format_citations_section(citations: list[Citation]) -> str:
    lines = ["---", "Sources:"]
    for citation in citations:
        if citation.type == "document":
            lines.append(f'[{citation.id}] Document: "{citation.source_title}"')
        else:
            url_part = f" — {citation.source_url}" if citation.source_url else ""
            lines.append(f'[{citation.id}] Web: "{citation.source_title}"{url_part}')
    return "\n".join(lines)


__all__ = ["collect_citations", "format_citations_section"]
