"""Token estimation and lexical similarity helpers shared across the pipeline."""

import math
import re

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")

# Rough tokens-per-word ratio for English prose and code
TOKENS_PER_WORD = 1.3


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text`` as ceil(words * 1.3)."""
    return math.ceil(len(text.split()) * TOKENS_PER_WORD)


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Cut ``text`` to the longest word prefix whose estimate fits ``max_tokens``."""
    words = text.split()
    if math.ceil(len(words) * TOKENS_PER_WORD) <= max_tokens:
        return text
    keep = max(0, math.floor(max_tokens / TOKENS_PER_WORD))
    while keep > 0 and math.ceil(keep * TOKENS_PER_WORD) > max_tokens:
        keep -= 1
    return " ".join(words[:keep])


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)


def percent(fraction: float) -> int:
    return round_half_up(fraction * 100)


def word_set(text: str) -> set[str]:
    """Lower-cased alphanumeric words of ``text`` as a set."""
    return set(_NON_ALNUM.sub(" ", text.lower()).split())


def jaccard_similarity(a: set[str], b: set[str]) -> float:
    """Jaccard index of two word sets; 0 when both are empty."""
    union = len(a | b)
    return len(a & b) / union if union else 0.0


__all__ = [
    "TOKENS_PER_WORD",
    "estimate_tokens",
    "truncate_to_tokens",
    "round_half_up",
    "percent",
    "word_set",
    "jaccard_similarity",
]
