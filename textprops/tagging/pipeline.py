"""Orchestration of language detection, asset negotiation and tagging."""
from __future__ import annotations

import asyncio
import logging
import math
import unicodedata

from .assets import AssetAvailabilityGate
from .errors import RankerInconsistencyError
from .hypotheses import merge_hypotheses, validate_hypotheses
from .language import LanguageIdentifier
from .models import (
    DEFAULT_MAX_HYPOTHESES,
    LanguageModelProvider,
    Span,
    Tag,
    TaggerOptions,
    TagScheme,
    TextRange,
    TokenGranularity,
)


class TaggingPipeline:
    """Produce ordered, tagged spans for a text under one tag scheme."""

    def __init__(
        self,
        provider: LanguageModelProvider,
        identifier: LanguageIdentifier | None = None,
        gate: AssetAvailabilityGate | None = None,
    ) -> None:
        self._provider = provider
        self._identifier = identifier or LanguageIdentifier(provider)
        self._gate = gate or AssetAvailabilityGate(provider)
        self._log = logging.getLogger("textprops.tagging.pipeline")

    async def run(
        self,
        text: str,
        scheme: TagScheme,
        granularity: TokenGranularity | None = None,
        options: TaggerOptions | None = None,
        max_hypotheses: int = DEFAULT_MAX_HYPOTHESES,
    ) -> list[Span]:
        """Tag ``text`` and return its spans in left-to-right order.

        Granularity and options default to the ones of ``scheme``. Asset
        errors abort the run before any span is produced.
        """

        if max_hypotheses < 1:
            raise ValueError("max_hypotheses must be at least 1")
        granularity = granularity or scheme.default_granularity
        options = options or scheme.default_options

        if not text.strip():
            return []

        language = self._identifier.identify(text).dominant
        if language is None:
            self._log.debug(
                "No dominant language detected, skipping asset check for %s",
                scheme.value,
            )
        else:
            try:
                await self._gate.ensure(language, scheme, granularity)
            except asyncio.CancelledError:
                self._log.info(
                    "Tagging with %s cancelled while waiting for assets", scheme.value
                )
                raise

        spans: list[Span] = []
        previous_end = 0
        tagged = self._provider.tag(
            text, (0, len(text)), granularity, scheme, options
        )
        for raw_tag, text_range in tagged:
            start, end = _checked_range(text_range, len(text), previous_end)
            previous_end = end
            surface = text[start:end]
            if options.omit_whitespace and surface.isspace():
                continue
            if options.omit_punctuation and _is_punctuation(surface):
                continue

            tag = _checked_tag(raw_tag, start)
            if scheme is TagScheme.SENTIMENT_SCORE:
                hypotheses = _sentiment_hypotheses(tag, start)
            else:
                ranked = validate_hypotheses(
                    self._provider.hypotheses(
                        text, start, granularity, scheme, max_hypotheses
                    ),
                    subject=f"span at {start}",
                    limit=max_hypotheses,
                )
                hypotheses = merge_hypotheses(tag, ranked)

            spans.append(
                Span(
                    id=start,
                    text=surface,
                    start=start,
                    end=end,
                    tag=tag,
                    tag_hypotheses=hypotheses,
                )
            )

        self._log.debug(
            "Tagged %d spans with %s at %s granularity",
            len(spans),
            scheme.value,
            granularity.value,
        )
        return spans


def _checked_range(text_range: TextRange, length: int, previous_end: int) -> TextRange:
    start, end = text_range
    if not 0 <= start < end <= length:
        raise RankerInconsistencyError(
            f"Span range {start}-{end} is empty or outside a text of length {length}"
        )
    if start < previous_end:
        raise RankerInconsistencyError(
            f"Span {start}-{end} overlaps or precedes the previous span ending at {previous_end}"
        )
    return start, end


def _checked_tag(raw_tag: object, position: int) -> Tag | None:
    if raw_tag is None or raw_tag == "":
        return None
    if not isinstance(raw_tag, str):
        raise RankerInconsistencyError(
            f"Tag {raw_tag!r} at {position} is not a string"
        )
    return Tag(raw_tag)


def _sentiment_hypotheses(tag: Tag | None, position: int) -> dict[Tag, float]:
    if tag is None:
        return {}
    try:
        score = float(tag)
    except ValueError as exc:
        raise RankerInconsistencyError(
            f"Sentiment tag {tag!r} at {position} is not a number"
        ) from exc
    if math.isnan(score) or not -1.0 <= score <= 1.0:
        raise RankerInconsistencyError(
            f"Sentiment score {score} at {position} is outside [-1, 1]"
        )
    return merge_hypotheses(tag, {})


def _is_punctuation(surface: str) -> bool:
    stripped = surface.strip()
    return bool(stripped) and all(
        unicodedata.category(char).startswith("P") for char in stripped
    )


__all__ = ["TaggingPipeline"]
