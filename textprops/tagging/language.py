"""Language identification on top of a provider recognizer."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from .errors import RankerInconsistencyError
from .hypotheses import top_hypotheses, validate_hypotheses
from .models import (
    DEFAULT_MAX_HYPOTHESES,
    LanguageCode,
    LanguageIdentificationResult,
    LanguageModelProvider,
)


@dataclass(frozen=True, slots=True)
class LanguageRecognizerConfig:
    """Fixed recognizer settings applied to every identification.

    ``hints`` are prior probabilities boosting specific languages and
    ``constraints`` restricts the candidate languages (empty means any).
    """

    hints: Mapping[LanguageCode, float] = field(default_factory=dict)
    constraints: frozenset[LanguageCode] = frozenset()
    max_hypotheses: int = DEFAULT_MAX_HYPOTHESES

    def new_request(self, text: str) -> "RecognitionRequest":
        return RecognitionRequest(
            text=text,
            hints=dict(self.hints),
            constraints=frozenset(self.constraints),
            max_hypotheses=self.max_hypotheses,
        )


@dataclass(frozen=True, slots=True)
class RecognitionRequest:
    """Input of a single recognition, built fresh for each call."""

    text: str
    hints: Mapping[LanguageCode, float]
    constraints: frozenset[LanguageCode]
    max_hypotheses: int


class LanguageIdentifier:
    """Identify the dominant language of a text and its top hypotheses."""

    def __init__(
        self,
        provider: LanguageModelProvider,
        config: LanguageRecognizerConfig | None = None,
    ) -> None:
        self._provider = provider
        self._config = config or LanguageRecognizerConfig()
        self._log = logging.getLogger("textprops.tagging.language")

    @property
    def config(self) -> LanguageRecognizerConfig:
        return self._config

    def identify(self, text: str) -> LanguageIdentificationResult:
        """Return the dominant language and at most K language hypotheses."""

        if not text.strip():
            return LanguageIdentificationResult(dominant=None, hypotheses={})

        request = self._config.new_request(text)
        dominant, raw_hypotheses = self._provider.recognize_language(
            request.text,
            hints=request.hints,
            constraints=request.constraints,
            max_hypotheses=request.max_hypotheses,
        )
        hypotheses = validate_hypotheses(raw_hypotheses, subject="language hypotheses")

        if request.constraints:
            dropped = set(hypotheses) - request.constraints
            if dropped:
                self._log.debug("Dropping unconstrained languages %s", sorted(dropped))
            hypotheses = {
                language: probability
                for language, probability in hypotheses.items()
                if language in request.constraints
            }
            if dominant is not None and dominant not in request.constraints:
                dominant = None

        if dominant is not None and not str(dominant).strip():
            raise RankerInconsistencyError("Recognizer returned an empty language code")

        return LanguageIdentificationResult(
            dominant=dominant,
            hypotheses=top_hypotheses(hypotheses, request.max_hypotheses),
        )


__all__ = ["LanguageIdentifier", "LanguageRecognizerConfig", "RecognitionRequest"]
