"""Renders a synthesized context for a target chat platform.

ChatGPT gets Markdown sections with source lines. Claude gets the XML tags it
is tuned for: ``<project_docs>``, ``<web_research>`` and ``<task_analysis>``.
"""

from context_tailor.models.api_models import TailorSection
from context_tailor.models.synthesis import SynthesizedBlock, SynthesizedContext
from context_tailor.utils.text import estimate_tokens


def _group_by_section(blocks: list[SynthesizedBlock]) -> dict[str, list[SynthesizedBlock]]:
    grouped: dict[str, list[SynthesizedBlock]] = {}
    for block in blocks:
        grouped.setdefault(block.section, []).append(block)
    return grouped


def source_line(block: SynthesizedBlock) -> str:
    if not block.sources:
        return ""
    parts = [f"[{s.title}]({s.url})" if s.url else s.title for s in block.sources]
    return f"_Sources: {', '.join(parts)}_"


def relevance_label(block: SynthesizedBlock) -> str:
    if block.priority >= 0.8:
        return "High relevance"
    if block.priority >= 0.5:
        return "Medium relevance"
    return "Low relevance"


def _indent(text: str, prefix: str) -> str:
    return prefix + text.replace("\n", "\n" + prefix)


def format_for_chatgpt(context: SynthesizedContext) -> str:
    if not context.blocks:
        return "## Context\n\n_No relevant context found for this task._"

    parts = [
        "## Project Context\n",
        f"_{context.source_count} source(s) · {context.total_token_count} tokens_\n",
    ]
    for section, blocks in _group_by_section(context.blocks).items():
        parts.append(f"### {section}\n")
        for block in blocks:
            parts.extend([block.content, ""])
            line = source_line(block)
            if line:
                parts.extend([line, ""])
            if block.contradictions:
                parts.extend(
                    [
                        f"> **Note:** This section has {len(block.contradictions)} potential "
                        "contradiction(s). Verify before use.",
                        "",
                    ]
                )

    if context.contradiction_count > 0:
        parts.append(
            f"---\n_{context.contradiction_count} potential contradiction(s) "
            "detected across sources._"
        )
    return "\n".join(parts).strip()


def format_for_claude(context: SynthesizedContext) -> str:
    if not context.blocks:
        return "<project_docs>\nNo relevant context found for this task.\n</project_docs>"

    project_blocks = [b for b in context.blocks if not b.is_web]
    web_blocks = [b for b in context.blocks if b.is_web]
    parts: list[str] = []

    if project_blocks:
        parts.append("<project_docs>")
        for section, blocks in _group_by_section(project_blocks).items():
            parts.append(f'  <section name="{section}">')
            for block in blocks:
                parts.append("    <document>")
                if block.sources:
                    titles = ", ".join(s.title for s in block.sources)
                    parts.append(f"      <source>{titles}</source>")
                    if block.sources[0].url:
                        parts.append(f"      <url>{block.sources[0].url}</url>")
                parts.append(f"      <relevance>{relevance_label(block)}</relevance>")
                parts.append("      <content>")
                parts.append(_indent(block.content, "        "))
                parts.append("      </content>")
                if block.contradictions:
                    parts.append(
                        f"      <warning>Contains {len(block.contradictions)} potential "
                        "contradiction(s), verify before use.</warning>"
                    )
                parts.append("    </document>")
            parts.append("  </section>")
        parts.append("</project_docs>")

    if web_blocks:
        parts.append("<web_research>")
        for block in web_blocks:
            parts.append("  <result>")
            if block.sources:
                parts.append(f"    <title>{block.sources[0].title}</title>")
                if block.sources[0].url:
                    parts.append(f"    <url>{block.sources[0].url}</url>")
            parts.append("    <content>")
            parts.append(_indent(block.content, "      "))
            parts.append("    </content>")
            parts.append("  </result>")
        parts.append("</web_research>")

    parts.append("<task_analysis>")
    parts.append(f"  <total_sources>{context.source_count}</total_sources>")
    parts.append(f"  <total_tokens>{context.total_token_count}</total_tokens>")
    if context.contradiction_count > 0:
        parts.append(
            f"  <contradictions_detected>{context.contradiction_count}</contradictions_detected>"
        )
    parts.append(f"  <sections>{', '.join(context.sections)}</sections>")
    parts.append("</task_analysis>")
    return "\n".join(parts)


def format_context(context: SynthesizedContext, platform: str) -> str:
    """Format ``context`` for ``platform``; anything but Claude gets Markdown."""
    if platform.lower() == "claude":
        return format_for_claude(context)
    return format_for_chatgpt(context)


def extract_sections(context: SynthesizedContext) -> list[TailorSection]:
    """Per-section content and stats, in the order sections first appear."""
    sections: list[TailorSection] = []
    for name, blocks in _group_by_section(context.blocks).items():
        content = "\n\n".join(b.content for b in blocks)
        source_ids = {s.source_id for b in blocks for s in b.sources}
        sections.append(
            TailorSection(
                name=name,
                content=content,
                token_count=estimate_tokens(content),
                source_count=len(source_ids),
            )
        )
    return sections


__all__ = ["format_context", "format_for_chatgpt", "format_for_claude", "extract_sections"]
