"""Coverage gap detection between a task and the chunks retrieved for it."""

import logfire

from context_tailor.models.gaps import Gap, GapReport, GapSeverity, GapType
from context_tailor.models.scoring import ScoredChunk
from context_tailor.models.task_analysis import KnowledgeDomain, TaskAnalysis, TaskType
from context_tailor.utils.text import percent

# Coverage keywords, matched as substrings of lower-cased chunk content
DOMAIN_KEYWORDS: dict[KnowledgeDomain, list[str]] = {
    KnowledgeDomain.FRONTEND: [
        "react", "vue", "angular", "html", "css", "ui", "component", "dom", "browser",
        "typescript", "javascript", "vite", "webpack", "tailwind",
    ],
    KnowledgeDomain.BACKEND: [
        "server", "api", "express", "node", "fastapi", "django", "flask", "rest", "graphql",
        "endpoint", "route", "controller", "middleware",
    ],
    KnowledgeDomain.DATABASE: [
        "database", "sql", "postgres", "mysql", "mongodb", "redis", "query", "schema",
        "migration", "orm", "prisma", "sequelize", "index",
    ],
    KnowledgeDomain.DEVOPS: [
        "docker", "kubernetes", "ci", "cd", "deploy", "pipeline", "aws", "gcp", "azure",
        "terraform", "nginx", "helm", "container",
    ],
    KnowledgeDomain.SECURITY: [
        "auth", "authentication", "authorization", "jwt", "oauth", "csrf", "xss", "https",
        "encrypt", "permission", "role", "token",
    ],
    KnowledgeDomain.TESTING: [
        "test", "spec", "mock", "stub", "assert", "jest", "vitest", "cypress", "playwright",
        "coverage", "unit", "integration", "e2e",
    ],
    KnowledgeDomain.DESIGN: [
        "design", "ux", "ui", "figma", "wireframe", "prototype", "color", "typography",
        "layout", "accessibility", "a11y", "aria",
    ],
    KnowledgeDomain.ARCHITECTURE: [
        "architecture", "pattern", "design pattern", "microservice", "monolith", "event",
        "domain", "bounded context", "aggregate", "cqrs", "saga",
    ],
    KnowledgeDomain.DOCUMENTATION: [
        "documentation", "readme", "docs", "comment", "jsdoc", "tsdoc", "swagger", "openapi",
        "wiki", "guide",
    ],
    KnowledgeDomain.BUSINESS: [
        "business", "product", "requirement", "user story", "stakeholder", "kpi", "metric",
        "revenue", "cost", "roadmap",
    ],
    KnowledgeDomain.DATA_SCIENCE: [
        "data", "model", "ml", "machine learning", "neural", "training", "dataset", "feature",
        "prediction", "classification", "regression",
    ],
    KnowledgeDomain.GENERAL: [],
}  # fmt: skip

CODE_INDICATORS = [
    "```", "function", "class ", "const ", "import ", "export ", "return ", "=>",
    "async ", "await ",
]  # fmt: skip

EXAMPLE_DOMAINS = {KnowledgeDomain.FRONTEND, KnowledgeDomain.BACKEND, KnowledgeDomain.TESTING}

SHALLOW_COVERAGE_SCORE_THRESHOLD = 0.5
SHALLOW_COVERAGE_CHUNK_MINIMUM = 2
NO_CONTEXT_SCORE_THRESHOLD = 0.2
WEB_SEARCH_COVERAGE_THRESHOLD = 0.6
MAX_GAP_QUERIES = 5


def _domain_label(domain: KnowledgeDomain) -> str:
    return domain.value.lower()


def has_code(content: str) -> bool:
    return any(indicator in content for indicator in CODE_INDICATORS)


class GapAnalyzer:
    """Compares task requirements against the scored chunk pool."""

    def __init__(
        self,
        shallow_score_threshold: float = SHALLOW_COVERAGE_SCORE_THRESHOLD,
        shallow_chunk_minimum: int = SHALLOW_COVERAGE_CHUNK_MINIMUM,
    ):
        self.shallow_score_threshold = shallow_score_threshold
        self.shallow_chunk_minimum = shallow_chunk_minimum

    def analyze(
        self,
        analysis: TaskAnalysis,
        chunks: list[ScoredChunk],
        web_search_enabled: bool = True,
    ) -> GapReport:
        """Detect gaps and estimate response quality with and without filling them.

        Args:
            analysis: Result of task analysis
            chunks: Scored chunk pool for the task
            web_search_enabled: Whether gaps can be filled by web search

        Returns:
            Gap report; a pool that is empty or uniformly irrelevant yields a
            single NO_CONTEXT gap.
        """
        if not chunks or all(c.final_score < NO_CONTEXT_SCORE_THRESHOLD for c in chunks):
            return self._no_context_report(analysis, chunks, web_search_enabled)

        gaps: list[Gap] = []
        domain_scores: list[float] = []
        lead_entities = " ".join(analysis.key_entities[:2])

        for domain in analysis.domains:
            matching = self._matching_chunks(domain, chunks)

            if not matching:
                gaps.append(
                    Gap(
                        type=GapType.MISSING_DOMAIN,
                        severity=GapSeverity.HIGH,
                        description=(
                            f"No chunks found covering the {domain.value} domain. This topic is "
                            "required for the task but absent from the knowledge base."
                        ),
                        affected_domains=[domain],
                        suggested_actions=["web_search", "upload_document"],
                        suggested_queries=[
                            f"{_domain_label(domain)} {lead_entities}".strip(),
                            *analysis.suggested_search_queries[:1],
                        ],
                    )
                )
                domain_scores.append(0.0)
                continue

            top_score = max(c.final_score for c in matching)
            shallow = (
                top_score < self.shallow_score_threshold
                or len(matching) < self.shallow_chunk_minimum
            )
            if shallow:
                severity = (
                    GapSeverity.MEDIUM
                    if top_score < self.shallow_score_threshold * 0.6
                    else GapSeverity.LOW
                )
                gaps.append(
                    Gap(
                        type=GapType.SHALLOW_COVERAGE,
                        severity=severity,
                        description=(
                            f"Coverage for the {domain.value} domain is shallow: top score is "
                            f"{top_score:.2f} (threshold: {self.shallow_score_threshold}) with "
                            f"{len(matching)} matching chunk(s) (minimum: "
                            f"{self.shallow_chunk_minimum}). More detailed documents may "
                            "improve response quality."
                        ),
                        affected_domains=[domain],
                        suggested_actions=["upload_document", "web_search"],
                        suggested_queries=[
                            f"{_domain_label(domain)} detailed guide {lead_entities}".strip()
                        ],
                    )
                )
                domain_scores.append(min(top_score / self.shallow_score_threshold, 1.0) * 0.6)
            else:
                domain_scores.append(min(top_score, 1.0))

        if analysis.task_type in (TaskType.CODING, TaskType.DEBUGGING) and not any(
            has_code(c.content) for c in chunks
        ):
            gaps.append(self._missing_examples_gap(analysis))

        coverage = sum(domain_scores) / len(domain_scores) if domain_scores else 0.0
        report = self._build_report(gaps, coverage, web_search_enabled)
        logfire.info(
            "Gap analysis complete",
            gaps=len(report.gaps),
            coverage=round(report.overall_coverage, 3),
            actionable=report.is_actionable,
        )
        return report

    def _matching_chunks(
        self, domain: KnowledgeDomain, chunks: list[ScoredChunk]
    ) -> list[ScoredChunk]:
        if domain == KnowledgeDomain.GENERAL:
            return list(chunks)
        keywords = DOMAIN_KEYWORDS[domain]
        return [c for c in chunks if any(kw in c.content.lower() for kw in keywords)]

    def _no_context_report(
        self,
        analysis: TaskAnalysis,
        chunks: list[ScoredChunk],
        web_search_enabled: bool,
    ) -> GapReport:
        if not chunks:
            description = (
                "No relevant chunks were retrieved for this task. The knowledge base may be "
                "empty or missing entirely."
            )
        else:
            description = (
                "All retrieved chunks scored below the minimum relevance threshold. The "
                "available documents do not appear relevant to this task."
            )
        gap = Gap(
            type=GapType.NO_CONTEXT,
            severity=GapSeverity.CRITICAL,
            description=description,
            affected_domains=list(analysis.domains),
            suggested_actions=["web_search", "upload_document"],
            suggested_queries=list(analysis.suggested_search_queries),
        )
        logfire.info("No usable context for task", chunks=len(chunks))
        return GapReport(
            gaps=[gap],
            overall_coverage=0.0,
            is_actionable=web_search_enabled and bool(gap.suggested_queries),
            estimated_quality_without_filling=0.1,
            estimated_quality_with_filling=0.7,
        )

    @staticmethod
    def _missing_examples_gap(analysis: TaskAnalysis) -> Gap:
        entities = analysis.key_entities
        queries = [
            f"{' '.join(entities[:3])} code example".strip(),
            f"{entities[0] if entities else ''} implementation example".strip(),
        ]
        return Gap(
            type=GapType.MISSING_EXAMPLES,
            severity=GapSeverity.MEDIUM,
            description=(
                f"The task type is {analysis.task_type.value} but no code examples were found in "
                "retrieved chunks. Code snippets and working examples would significantly "
                "improve the response quality."
            ),
            affected_domains=[d for d in analysis.domains if d in EXAMPLE_DOMAINS],
            suggested_actions=["web_search", "upload_document"],
            suggested_queries=[q for q in queries if q],
        )

    @staticmethod
    def _build_report(gaps: list[Gap], coverage: float, web_search_enabled: bool) -> GapReport:
        critical = sum(1 for g in gaps if g.severity == GapSeverity.CRITICAL)
        high = sum(1 for g in gaps if g.severity == GapSeverity.HIGH)
        penalty = critical * 0.3 + high * 0.15

        without = max(0.0, coverage - penalty)
        gain = min(0.4, len(gaps) * 0.1) if gaps else 0.0
        return GapReport(
            gaps=gaps,
            overall_coverage=coverage,
            is_actionable=web_search_enabled and any(g.suggested_queries for g in gaps),
            estimated_quality_without_filling=without,
            estimated_quality_with_filling=min(1.0, without + gain),
        )


def detect_gaps(
    analysis: TaskAnalysis, chunks: list[ScoredChunk], web_search_enabled: bool = True
) -> GapReport:
    """Gap analysis with the default shallow-coverage thresholds."""
    return GapAnalyzer().analyze(analysis, chunks, web_search_enabled)


def should_trigger_web_search(report: GapReport) -> bool:
    if report.overall_coverage < WEB_SEARCH_COVERAGE_THRESHOLD:
        return True
    return any(g.severity == GapSeverity.CRITICAL for g in report.gaps)


def gap_search_queries(gaps: list[Gap]) -> list[str]:
    """Unique queries of HIGH and CRITICAL gaps, in order, at most five."""
    queries: dict[str, None] = {}
    for gap in gaps:
        if gap.severity in (GapSeverity.CRITICAL, GapSeverity.HIGH):
            for query in gap.suggested_queries:
                queries.setdefault(query, None)
    return list(queries)[:MAX_GAP_QUERIES]


def build_user_prompt(report: GapReport) -> str:
    """Explain coverage, gaps and recommended actions in plain text."""
    if not report.gaps:
        return (
            "Your knowledge base provides good coverage for this task. "
            "No additional information is needed."
        )

    lines = [
        f"Knowledge base coverage: {percent(report.overall_coverage)}% "
        f"(estimated response quality: {percent(report.estimated_quality_without_filling)}%).",
        "",
    ]

    critical = [g for g in report.gaps if g.severity == GapSeverity.CRITICAL]
    high = [g for g in report.gaps if g.severity == GapSeverity.HIGH]
    other = [g for g in report.gaps if g.severity not in (GapSeverity.CRITICAL, GapSeverity.HIGH)]
    for header, group in (
        ("Critical issues found:", critical),
        ("High-priority gaps:", high),
        ("Additional gaps:", other),
    ):
        if group:
            lines.append(header)
            lines.extend(f"  - {gap.description}" for gap in group)

    lines.append("")
    lines.append("Recommended actions:")
    if any("web_search" in g.suggested_actions for g in report.gaps):
        lines.append("  - A web search will be performed automatically to fill the gaps.")
    upload = [g for g in report.gaps if "upload_document" in g.suggested_actions]
    if upload:
        domains = dict.fromkeys(d.value for g in upload for d in g.affected_domains)
        lines.append(
            f"  - Consider uploading additional documents covering: {', '.join(domains)}."
        )
    if any("ask_user" in g.suggested_actions for g in report.gaps):
        lines.append("  - Providing more details about your task would improve the response.")

    lines.append("")
    lines.append(
        "Filling these gaps could improve response quality to approximately "
        f"{percent(report.estimated_quality_with_filling)}%."
    )
    return "\n".join(lines)


def summarize_gaps(report: GapReport) -> str:
    """One-line gap summary for preview responses."""
    coverage = percent(report.overall_coverage)
    if not report.gaps:
        return f"Good coverage ({coverage}%). No significant gaps detected."
    parts = [f"Coverage: {coverage}%."]
    critical = report.count(GapSeverity.CRITICAL)
    high = report.count(GapSeverity.HIGH)
    if critical:
        parts.append(f"{critical} critical gap(s).")
    if high:
        parts.append(f"{high} high-priority gap(s).")
    return " ".join(parts)


__all__ = [
    "DOMAIN_KEYWORDS",
    "CODE_INDICATORS",
    "GapAnalyzer",
    "detect_gaps",
    "has_code",
    "should_trigger_web_search",
    "gap_search_queries",
    "build_user_prompt",
    "summarize_gaps",
]
