"""Task analysis: turns a free-text task into domains, type, entities and queries."""

import re

import logfire

from context_tailor.models.task_analysis import (
    ComplexityLevel,
    KnowledgeDomain,
    TaskAnalysis,
    TaskType,
)

from .domain_classifier import assess_complexity, classify_domains, detect_task_type

TOKEN_BUDGETS: dict[ComplexityLevel, int] = {
    ComplexityLevel.LOW: 2000,
    ComplexityLevel.MEDIUM: 4000,
    ComplexityLevel.HIGH: 8000,
    ComplexityLevel.EXPERT: 16000,
}

ENTITY_PATTERNS: list[re.Pattern[str]] = [
    # Title Case phrases of two to four words
    re.compile(r"\b(?:[A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,3})\b"),
    # hyphenated terms
    re.compile(r"\b[a-z]+(?:-[a-z]+){1,3}\b", re.I),
    # CamelCase
    re.compile(r"\b[A-Z][a-z]+[A-Z][a-zA-Z]+\b"),
    # acronyms
    re.compile(r"\b[A-Z]{2,}\b"),
    # fixed technical compounds
    re.compile(
        r"\b(?:rate limiting|api endpoint|web socket|load balanc\w+|message queue|event loop"
        r"|connection pool|circuit breaker|design pattern|payment system|onboarding flow)\b",
        re.I,
    ),
]

STOP_WORDS = frozenset(
    """
    a an the and or but in on at to for of with by from is are was were be been
    being have has had do does did will would could should may might shall can need
    dare this that these those i you he she it we they what which who when where why
    how all each every both few more most other some such no not only same so than
    too very just after before into through during about against between implement
    write create build add use make get set run also as if up out then our
    """.split()
)

MAX_ENTITIES = 10
MAX_QUERIES = 4

_NON_ALPHA_SPACE = re.compile(r"[^a-z ]")
_TRAILING_PUNCTUATION = re.compile(r"[?!.]+$")


def extract_key_entities(text: str) -> list[str]:
    """Pull technical terms and noun phrases out of ``text``.

    Entities are lower-cased, longest first, and any entity contained in a
    longer one is dropped. At most ten are returned.
    """
    found: dict[str, None] = {}

    for pattern in ENTITY_PATTERNS:
        for match in pattern.findall(text):
            term = match.strip()
            if len(term) > 2 and term.lower() not in STOP_WORDS:
                found.setdefault(term.lower(), None)

    words = text.split()
    lowered = [w.lower() for w in words]
    for i in range(len(words) - 1):
        bigram = _NON_ALPHA_SPACE.sub("", f"{lowered[i]} {lowered[i + 1]}")
        if len(bigram) > 4 and lowered[i] not in STOP_WORDS and lowered[i + 1] not in STOP_WORDS:
            found.setdefault(bigram, None)
        if i < len(words) - 2:
            trigram = _NON_ALPHA_SPACE.sub("", f"{lowered[i]} {lowered[i + 1]} {lowered[i + 2]}")
            if (
                len(trigram) > 6
                and lowered[i] not in STOP_WORDS
                and lowered[i + 2] not in STOP_WORDS
            ):
                found.setdefault(trigram, None)

    deduped: list[str] = []
    for entity in sorted(found, key=len, reverse=True):
        if not any(entity in kept and entity != kept for kept in deduped):
            deduped.append(entity)
    return deduped[:MAX_ENTITIES]


def generate_search_queries(
    text: str,
    entities: list[str],
    domains: list[KnowledgeDomain],
    task_type: TaskType,
) -> list[str]:
    """Build two to four retrieval queries from the analysed task."""
    cleaned = _TRAILING_PUNCTUATION.sub("", text).strip()
    type_label = task_type.value.lower()
    queries = [cleaned]

    top_entities = " ".join(entities[:3])
    if top_entities:
        top_domain = domains[0] if domains else KnowledgeDomain.GENERAL
        label = "" if top_domain == KnowledgeDomain.GENERAL else f"{top_domain.value.lower()} "
        queries.append(f"{label}{top_entities}".strip())

    core_entity = entities[0] if entities else " ".join(cleaned.split(" ")[:4])
    queries.append(f"how to {type_label} {core_entity}")

    if len(domains) >= 2:
        pair = " and ".join(d.value.lower() for d in domains[:2])
        queries.append(f"best practices {pair} {core_entity}")

    unique: dict[str, str] = {}
    for query in queries:
        query = query.strip()
        if query:
            unique.setdefault(query.lower(), query)
    result = list(unique.values())[:MAX_QUERIES]

    if len(result) < 2:
        fallback = f"{type_label} {cleaned}".strip()
        if fallback.lower() not in unique:
            result.append(fallback)
    return result or [type_label]


def calculate_confidence(
    task_type: TaskType,
    domains: list[KnowledgeDomain],
    entities: list[str],
    input_length: int,
) -> float:
    score = 0.3
    if task_type != TaskType.OTHER:
        score += 0.2

    non_general = [d for d in domains if d != KnowledgeDomain.GENERAL]
    if len(non_general) >= 1:
        score += 0.2
    if len(non_general) >= 2:
        score += 0.1

    if len(entities) >= 2:
        score += 0.1
    if len(entities) >= 5:
        score += 0.1

    if input_length > 20:
        score += 0.05
    if input_length > 50:
        score += 0.05
    return min(1.0, score)


class TaskAnalyzer:
    """Deterministic, stateless task analysis.

    Never raises on unusual input: text without signal degrades to an OTHER
    task in the GENERAL domain at LOW complexity.
    """

    def analyze(self, task: str) -> TaskAnalysis:
        trimmed = task.strip()

        domains = classify_domains(trimmed)
        task_type = detect_task_type(trimmed)
        complexity = assess_complexity(trimmed, domains)
        entities = extract_key_entities(trimmed)
        queries = generate_search_queries(trimmed, entities, domains, task_type)

        analysis = TaskAnalysis(
            task_type=task_type,
            complexity=complexity,
            domains=domains,
            key_entities=entities,
            suggested_search_queries=queries,
            estimated_token_budget=TOKEN_BUDGETS[complexity],
            confidence=calculate_confidence(task_type, domains, entities, len(trimmed)),
        )
        logfire.debug(
            "Task analyzed",
            task_type=analysis.task_type.value,
            complexity=analysis.complexity.value,
            domains=[d.value for d in analysis.domains],
            query_count=len(analysis.suggested_search_queries),
        )
        return analysis


__all__ = [
    "TOKEN_BUDGETS",
    "STOP_WORDS",
    "TaskAnalyzer",
    "extract_key_entities",
    "generate_search_queries",
    "calculate_confidence",
]
