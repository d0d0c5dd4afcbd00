"""Summarizer seam and the deterministic keyword extractor used for KEYWORDS chunks."""

import re
from collections import Counter
from typing import Protocol


class Summarizer(Protocol):
    async def summarize(self, text: str, max_tokens: int) -> str: ...


STOP_WORDS = frozenset(
    """
    a an the and or but in on at to for of with by from up about into through during
    is are was were be been being have has had do does did will would could should
    may might it its this that these those i you he she we they me him her us them
    my your his our their not no so if as can also then than when where which who
    what how all each more other some such only same any most just
    """.split()
)

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def extract_keywords(content: str, max_keywords: int = 10) -> str:
    """Return the most frequent content words of ``content`` joined by ``", "``.

    Words need more than two characters and must not be stop words. Equal
    frequencies keep first-appearance order.
    """
    words = [
        w
        for w in _NON_ALNUM.sub(" ", content.lower()).split()
        if len(w) > 2 and w not in STOP_WORDS
    ]
    # Counter preserves insertion order and most_common sorts stably
    return ", ".join(word for word, _ in Counter(words).most_common(max_keywords))


__all__ = ["Summarizer", "STOP_WORDS", "extract_keywords"]
