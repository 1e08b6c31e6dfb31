"""Entry point exposing the text analyses to presentation layers."""
from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass

from .language import LanguageIdentifier, LanguageRecognizerConfig
from .models import (
    DEFAULT_MAX_HYPOTHESES,
    LanguageIdentificationResult,
    LanguageModelProvider,
    Span,
    TaggerOptions,
    TagScheme,
    TokenGranularity,
)
from .pipeline import TaggingPipeline


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Outcome of running every analysis over the same text."""

    language: LanguageIdentificationResult
    sentiment: tuple[Span, ...]
    lexical: tuple[Span, ...]
    entities: tuple[Span, ...]


class TextPropertyService:
    """Language identification, lexical classes, entities and sentiment."""

    def __init__(
        self,
        provider: LanguageModelProvider,
        *,
        recognizer_config: LanguageRecognizerConfig | None = None,
        max_hypotheses: int = DEFAULT_MAX_HYPOTHESES,
        serialize_provider: bool = False,
    ) -> None:
        self._identifier = LanguageIdentifier(provider, recognizer_config)
        self._pipeline = TaggingPipeline(provider, self._identifier)
        self._max_hypotheses = max_hypotheses
        self._provider_lock = asyncio.Lock() if serialize_provider else None
        self._log = logging.getLogger("textprops.tagging.service")

    @property
    def serializes_provider(self) -> bool:
        return self._provider_lock is not None

    def identify_language(self, text: str) -> LanguageIdentificationResult:
        """Detect the dominant language and the most likely alternatives."""

        return self._identifier.identify(text)

    async def identify_lexical(self, text: str) -> list[Span]:
        """Classify nouns, verbs, adjectives and other parts of speech."""

        return await self.tag(text, TagScheme.LEXICAL_CLASS)

    async def identify_entities(self, text: str) -> list[Span]:
        """Find personal, place and organization names."""

        return await self.tag(text, TagScheme.NAME_TYPE)

    async def evaluate_sentiment_score(self, text: str) -> list[Span]:
        """Score the sentiment of every sentence in [-1, 1]."""

        return await self.tag(text, TagScheme.SENTIMENT_SCORE)

    async def tag(
        self,
        text: str,
        scheme: TagScheme,
        *,
        granularity: TokenGranularity | None = None,
        options: TaggerOptions | None = None,
    ) -> list[Span]:
        async with AsyncExitStack() as stack:
            if self._provider_lock is not None:
                await stack.enter_async_context(self._provider_lock)
            return await self._pipeline.run(
                text,
                scheme,
                granularity=granularity,
                options=options,
                max_hypotheses=self._max_hypotheses,
            )

    async def analyze(
        self,
        text: str,
        *,
        concurrent: bool = False,
        max_concurrency: int | None = None,
    ) -> AnalysisResult:
        """Run the four analyses over ``text``.

        Analyses run one after the other unless ``concurrent`` is set, in
        which case at most ``max_concurrency`` of them are in flight. The
        first asset error aborts the whole analysis.
        """

        language = self.identify_language(text)
        operations = (
            self.evaluate_sentiment_score,
            self.identify_lexical,
            self.identify_entities,
        )

        if not concurrent:
            results = [await operation(text) for operation in operations]
        else:
            semaphore = asyncio.Semaphore(max_concurrency or len(operations))

            async def bounded(operation) -> list[Span]:
                async with semaphore:
                    return await operation(text)

            tasks = [asyncio.ensure_future(bounded(operation)) for operation in operations]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise

        sentiment, lexical, entities = results
        self._log.debug(
            "Analysis finished: language=%s sentiment=%d lexical=%d entities=%d",
            language.dominant,
            len(sentiment),
            len(lexical),
            len(entities),
        )
        return AnalysisResult(
            language=language,
            sentiment=tuple(sentiment),
            lexical=tuple(lexical),
            entities=tuple(entities),
        )


__all__ = ["AnalysisResult", "TextPropertyService"]
