"""Utility modules for the tailoring pipeline."""

from .text import (
    estimate_tokens,
    jaccard_similarity,
    percent,
    round_half_up,
    truncate_to_tokens,
    word_set,
)

__all__ = [
    "estimate_tokens",
    "truncate_to_tokens",
    "round_half_up",
    "percent",
    "word_set",
    "jaccard_similarity",
]
