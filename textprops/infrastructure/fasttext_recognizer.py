"""Language recognition backed by a fastText identification model."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Collection, Mapping

from textprops.tagging.hypotheses import top_hypotheses
from textprops.tagging.models import LanguageCode

if TYPE_CHECKING:
    from fasttext.FastText import _FastText

_LABEL_PREFIX = "__label__"


class FastTextLanguageRecognizer:
    """Score languages with fastText's ``lid.176`` model.

    Hints multiply the score of a language by ``1 + hint`` (capped at 1.0),
    constraints drop every other language before ranking.
    """

    def __init__(self, model_path: str, *, min_confidence: float = 0.3) -> None:
        self._model_path = model_path
        self._min_confidence = min_confidence
        self._model: _FastText | None = None
        self._log = logging.getLogger("textprops.infrastructure.fasttext")

    def _get_model(self) -> _FastText:
        if self._model is None:
            import fasttext

            self._log.info("Loading fastText model from %s", self._model_path)
            self._model = fasttext.load_model(self._model_path)
        return self._model

    def recognize(
        self,
        text: str,
        *,
        hints: Mapping[LanguageCode, float],
        constraints: Collection[LanguageCode],
        max_hypotheses: int,
    ) -> tuple[LanguageCode | None, dict[LanguageCode, float]]:
        flattened = " ".join(text.split())
        if not flattened:
            return None, {}

        # fastText predicts per line, newlines must not reach it
        labels, scores = self._get_model().predict(flattened, k=-1, threshold=0.0)
        candidates: dict[LanguageCode, float] = {}
        for label, score in zip(labels, scores):
            language = LanguageCode(label.replace(_LABEL_PREFIX, ""))
            if constraints and language not in constraints:
                continue
            boost = 1.0 + float(hints.get(language, 0.0))
            candidates[language] = min(1.0, float(score) * boost)

        ranked = top_hypotheses(candidates, max_hypotheses)
        dominant: LanguageCode | None = None
        if ranked:
            best, probability = next(iter(ranked.items()))
            if probability >= self._min_confidence:
                dominant = best
        return dominant, ranked


__all__ = ["FastTextLanguageRecognizer"]
