"""Sentence sentiment scoring backed by VADER."""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Collection, Protocol

if TYPE_CHECKING:
    from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer


class SentimentScorer(Protocol):
    """Scores a piece of text in [-1, 1]."""

    def supports(self, language: str) -> bool:
        ...

    def score(self, text: str) -> float:
        ...


class VaderSentimentScorer:
    """Compound polarity from VADER's English lexicon."""

    def __init__(
        self,
        analyzer: SentimentIntensityAnalyzer | None = None,
        *,
        languages: Collection[str] = ("en",),
    ) -> None:
        if analyzer is None:
            from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

            analyzer = SentimentIntensityAnalyzer()
        self._analyzer = analyzer
        self._languages = frozenset(languages)

    def supports(self, language: str) -> bool:
        return re.split(r"[-_]", language, maxsplit=1)[0].lower() in self._languages

    def score(self, text: str) -> float:
        compound = float(self._analyzer.polarity_scores(text)["compound"])
        return max(-1.0, min(1.0, compound))


__all__ = ["SentimentScorer", "VaderSentimentScorer"]
