"""Keyword and pattern tables that classify a task's domains, type and complexity.

Every function here is pure: tables in, scores out. Extending a classifier
means editing a table, not control flow.
"""

from __future__ import annotations

import math
import re

from context_tailor.models.task_analysis import ComplexityLevel, KnowledgeDomain, TaskType

DOMAIN_KEYWORDS: dict[KnowledgeDomain, list[str]] = {
    KnowledgeDomain.FRONTEND: [
        "react", "vue", "angular", "svelte", "component", "ui", "css", "html", "dom",
        "browser", "client", "frontend", "front-end", "responsive", "animation", "tailwind",
        "webpack", "vite", "jsx", "tsx", "sass", "scss", "accessibility", "a11y", "spa",
        "rendering", "hydration", "nextjs", "nuxt", "remix", "typescript", "javascript",
    ],
    KnowledgeDomain.BACKEND: [
        "api", "endpoint", "server", "express", "middleware", "route", "rest", "graphql",
        "grpc", "microservice", "service", "handler", "controller", "request", "response",
        "http", "https", "websocket", "socket", "node", "fastify", "koa", "hono",
        "backend", "back-end", "rate limiting", "rate limit", "throttle", "payload",
        "header", "cors", "session", "cookie", "jwt", "token", "webhook",
    ],
    KnowledgeDomain.DATABASE: [
        "database", "db", "sql", "nosql", "query", "schema", "migration", "index",
        "table", "collection", "document", "record", "orm", "prisma", "sequelize",
        "mongoose", "postgres", "postgresql", "mysql", "mongodb", "redis", "sqlite",
        "transaction", "join", "relation", "foreign key", "primary key", "crud",
        "insert", "update", "delete", "select", "aggregate", "pipeline",
    ],
    KnowledgeDomain.DEVOPS: [
        "docker", "kubernetes", "k8s", "container", "deployment", "ci", "cd", "pipeline",
        "github actions", "jenkins", "terraform", "ansible", "aws", "gcp", "azure",
        "cloud", "infra", "infrastructure", "devops", "helm", "nginx", "load balancer",
        "autoscaling", "monitoring", "logging", "observability", "prometheus", "grafana",
        "environment", "env", "secret", "config map", "pod", "service mesh", "istio",
    ],
    KnowledgeDomain.SECURITY: [
        "security", "auth", "authentication", "authorization", "permission", "role",
        "oauth", "saml", "sso", "encryption", "hash", "password", "secret", "vulnerability",
        "xss", "csrf", "injection", "sanitize", "validate", "firewall", "ssl", "tls",
        "certificate", "rate limiting", "brute force", "ddos", "attack", "exploit",
        "audit", "compliance", "gdpr", "pii", "token", "api key", "scope", "claim",
    ],
    KnowledgeDomain.TESTING: [
        "test", "testing", "unit test", "integration test", "e2e", "end-to-end",
        "vitest", "jest", "mocha", "chai", "supertest", "playwright", "cypress",
        "mock", "stub", "spy", "fixture", "snapshot", "coverage", "assertion",
        "spec", "describe", "it block", "expect", "tdd", "bdd", "regression",
        "benchmark", "performance test", "load test",
    ],
    KnowledgeDomain.DESIGN: [
        "design", "ux", "ui", "wireframe", "mockup", "prototype", "figma", "sketch",
        "user experience", "user interface", "layout", "typography", "color", "palette",
        "icon", "illustration", "branding", "style guide", "design system",
        "component library", "interaction", "flow", "journey", "persona", "heuristic",
        "usability",
    ],
    KnowledgeDomain.ARCHITECTURE: [
        "architecture", "microservice", "monolith", "pattern", "design pattern",
        "system design", "scalability", "high availability", "fault tolerance",
        "event driven", "cqrs", "event sourcing", "saga", "domain driven", "ddd",
        "hexagonal", "clean architecture", "dependency injection", "inversion of control",
        "solid", "separation of concerns", "distributed", "messaging", "queue", "pub sub",
        "broker", "service bus", "payment system", "payment gateway", "checkout",
        "transaction", "workflow",
    ],
    KnowledgeDomain.DOCUMENTATION: [
        "documentation", "docs", "readme", "guide", "tutorial", "how-to", "reference",
        "api docs", "openapi", "swagger", "jsdoc", "typedoc", "wiki", "knowledge base",
        "onboarding", "user guide", "manual", "specification", "requirement", "changelog",
        "contributing", "comment", "annotation", "docstring",
    ],
    KnowledgeDomain.BUSINESS: [
        "business", "requirement", "stakeholder", "product", "feature", "roadmap",
        "sprint", "agile", "scrum", "kanban", "backlog", "user story", "epic",
        "kpi", "metric", "analytics", "revenue", "customer", "client", "market",
        "strategy", "goal", "objective", "okr", "roi", "cost", "budget", "pricing",
    ],
    KnowledgeDomain.DATA_SCIENCE: [
        "machine learning", "ml", "ai", "model", "training", "inference", "prediction",
        "classification", "regression", "neural network", "deep learning", "nlp",
        "data pipeline", "etl", "dataset", "feature engineering", "embedding",
        "vector", "similarity", "clustering", "pandas", "numpy", "pytorch", "tensorflow",
        "scikit", "jupyter", "notebook", "statistical", "probability",
    ],
}  # fmt: skip

TASK_TYPE_PATTERNS: dict[TaskType, list[re.Pattern[str]]] = {
    TaskType.CODING: [
        re.compile(r"\b(implement|build|create|develop|write|add|integrate|refactor|code)\b", re.I),
        re.compile(r"\b(function|class|module|component|feature|endpoint|api)\b", re.I),
    ],
    TaskType.WRITING: [
        re.compile(
            r"\b(write|draft|compose|document|describe|explain|summarize|create)\b"
            r".*\b(doc|guide|readme|article|post|content|copy)\b",
            re.I,
        ),
        re.compile(r"\b(user documentation|user guide|onboarding|tutorial|how-to)\b", re.I),
    ],
    TaskType.ANALYSIS: [
        re.compile(
            r"\b(analyze|analyse|review|audit|assess|evaluate|investigate|measure|profile)\b", re.I
        ),
        re.compile(r"\b(performance|bottleneck|memory leak|metrics|benchmark|report)\b", re.I),
    ],
    TaskType.RESEARCH: [
        re.compile(
            r"\b(research|explore|investigate|survey|compare|evaluate|study|look into)\b", re.I
        ),
        re.compile(
            r"\b(best practice|option|alternative|approach|technology|library|tool)\b", re.I
        ),
    ],
    TaskType.DEBUGGING: [
        re.compile(
            r"\b(debug|fix|troubleshoot|diagnose|resolve|investigate)\b"
            r".*\b(bug|issue|error|problem|crash|fail)\b",
            re.I,
        ),
        re.compile(
            r"\b(why|reason|cause)\b.*\b(not working|broken|failing|dropping|error)\b", re.I
        ),
    ],
    TaskType.DESIGN: [
        re.compile(
            r"\b(design|architect|plan|model|structure|diagram)\b"
            r".*\b(system|architecture|schema|database|flow)\b",
            re.I,
        ),
        re.compile(r"\b(microservice|monolith|pattern|ddd|event.driven)\b", re.I),
    ],
    TaskType.PLANNING: [
        re.compile(
            r"\b(plan|outline|roadmap|strategy|breakdown|organize|prioritize|schedule)\b", re.I
        ),
        re.compile(r"\b(phase|milestone|sprint|epic|story|backlog)\b", re.I),
    ],
}

INTEGRATION_KEYWORDS = [
    "integrate", "distributed", "microservice", "cross", "multi", "complex",
    "scalable", "enterprise", "production", "real-time", "high availability",
    "fault tolerant", "payment", "authentication", "authorization",
]  # fmt: skip

EXPERT_KEYWORDS = [
    "zero-downtime", "consensus", "raft", "paxos", "byzantine", "sharding",
    "partitioning", "consistent hashing", "cap theorem", "eventual consistency",
    "distributed transaction", "two-phase commit", "saga pattern", "cqrs",
    "event sourcing", "blockchain", "cryptography",
]  # fmt: skip

# (pattern, score delta) applied once each when the pattern matches
COMPLEXITY_MODIFIERS: list[tuple[re.Pattern[str], int]] = [
    (re.compile(r"\b(multiple|several|various|many|different)\b", re.I), 1),
    (re.compile(r"\b(scale|performance|optimize|efficient)\b", re.I), 2),
    (re.compile(r"\b(simple|basic|quick|straightforward|easy)\b", re.I), -3),
    (re.compile(r"\b(hello world|example|sample|demo|poc|prototype)\b", re.I), -2),
]

MAX_DOMAINS = 5
DOMAIN_RELATIVE_THRESHOLD = 0.2

_KEYWORD_PATTERNS: dict[str, re.Pattern[str]] = {
    keyword: re.compile(rf"\b{re.escape(keyword)}\b")
    for keywords in DOMAIN_KEYWORDS.values()
    for keyword in keywords
    if " " not in keyword
}


def _domain_score(lower: str, keywords: list[str]) -> float:
    score = 0.0
    for keyword in keywords:
        if " " in keyword:
            if keyword in lower:
                score += 2
            continue
        hits = len(_KEYWORD_PATTERNS[keyword].findall(lower))
        if hits:
            score += 1 + 0.5 * (hits - 1)
    return score


def classify_domains(text: str) -> list[KnowledgeDomain]:
    """Return up to five domains ordered by normalized keyword score.

    Falls back to ``[GENERAL]`` when no domain keyword appears.
    """
    lower = text.lower()
    word_count = len([w for w in re.split(r"\W+", lower) if w]) or 1
    norm = math.sqrt(word_count)

    scores: dict[KnowledgeDomain, float] = {}
    for domain, keywords in DOMAIN_KEYWORDS.items():
        normalized = _domain_score(lower, keywords) / norm
        if normalized > 0:
            scores[domain] = normalized

    if not scores:
        return [KnowledgeDomain.GENERAL]

    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    threshold = ranked[0][1] * DOMAIN_RELATIVE_THRESHOLD
    return [domain for domain, score in ranked if score >= threshold][:MAX_DOMAINS]


def detect_task_type(text: str) -> TaskType:
    """Pick the task type with the most matching patterns; OTHER when none match."""
    best_type = TaskType.OTHER
    best_score = 0
    for task_type, patterns in TASK_TYPE_PATTERNS.items():
        score = sum(1 for pattern in patterns if pattern.search(text))
        # strict comparison keeps the earlier type on ties
        if score > best_score:
            best_type, best_score = task_type, score
    return best_type


def complexity_score(text: str, domains: list[KnowledgeDomain]) -> int:
    lower = text.lower()
    score = 2 * sum(1 for d in domains if d != KnowledgeDomain.GENERAL)
    score += 2 * sum(1 for keyword in INTEGRATION_KEYWORDS if keyword in lower)
    score += 4 * sum(1 for keyword in EXPERT_KEYWORDS if keyword in lower)

    word_count = len(text.split())
    if word_count > 50:
        score += 2
    if word_count > 100:
        score += 2

    for pattern, delta in COMPLEXITY_MODIFIERS:
        if pattern.search(text):
            score += delta
    return score


def assess_complexity(text: str, domains: list[KnowledgeDomain]) -> ComplexityLevel:
    score = complexity_score(text, domains)
    if score <= 2:
        return ComplexityLevel.LOW
    if score <= 6:
        return ComplexityLevel.MEDIUM
    if score <= 12:
        return ComplexityLevel.HIGH
    return ComplexityLevel.EXPERT


__all__ = [
    "DOMAIN_KEYWORDS",
    "TASK_TYPE_PATTERNS",
    "INTEGRATION_KEYWORDS",
    "EXPERT_KEYWORDS",
    "classify_domains",
    "detect_task_type",
    "complexity_score",
    "assess_complexity",
]
