"""Deterministic language model provider used across the test-suite."""
from __future__ import annotations

import asyncio
import re
from typing import Collection, Iterator, Mapping

from textprops.tagging import (
    AssetOutcome,
    LanguageCode,
    Tag,
    TaggerOptions,
    TagScheme,
    TokenGranularity,
)

_TOKEN = re.compile(r"\w+|[^\w\s]|\s+")
_SENTENCE = re.compile(r"[^.!?]+[.!?]*")

LEXICON = {
    "hello": "Interjection",
    "world": "Noun",
    "tokyo": "ProperNoun",
    "new": "ProperNoun",
    "york": "ProperNoun",
    "ada": "ProperNoun",
    "lovelace": "ProperNoun",
    "is": "Verb",
    "visited": "Verb",
    "awesome": "Adjective",
    "great": "Adjective",
    "terrible": "Adjective",
}

LEXICAL_HYPOTHESES = {
    "hello": {"Interjection": 0.71, "Noun": 0.2, "Adjective": 0.04, "Verb": 0.01},
    # the ranker leaves the best tag out of its top hypotheses
    "tokyo": {"Noun": 0.62, "Adjective": 0.11},
    "world": {"Noun": 0.93},
    "is": {"Verb": 0.99},
    "awesome": {"Adjective": 0.88, "Noun": 0.05},
}

NAMES = {
    "Tokyo": "PlaceName",
    "New York": "PlaceName",
    "Ada Lovelace": "PersonalName",
}

POSITIVE = {"awesome", "great"}
NEGATIVE = {"terrible"}


class FakeProvider:
    """Deterministic provider used to drive the pipeline in tests."""

    def __init__(
        self,
        *,
        dominant: str | None = "en",
        language_scores: Mapping[str, float] | None = None,
        available: Collection[TagScheme] | None = None,
        outcome: AssetOutcome | str | Exception = AssetOutcome.AVAILABLE,
        release: asyncio.Event | None = None,
    ) -> None:
        self.dominant = dominant
        self.language_scores = dict(
            language_scores
            if language_scores is not None
            else {"en": 0.91, "ja": 0.04, "fr": 0.02, "de": 0.01}
        )
        self.available = set(TagScheme) if available is None else set(available)
        self.outcome = outcome
        self.release = release
        self.recognize_calls: list[dict] = []
        self.asset_requests: list[tuple[str, TagScheme]] = []
        self.tag_calls: list[tuple[TokenGranularity, TagScheme, TaggerOptions]] = []
        self.hypothesis_calls: list[int] = []

    def recognize_language(
        self,
        text: str,
        *,
        hints: Mapping[LanguageCode, float],
        constraints: Collection[LanguageCode],
        max_hypotheses: int,
    ):
        self.recognize_calls.append(
            {
                "text": text,
                "hints": hints,
                "constraints": constraints,
                "max_hypotheses": max_hypotheses,
            }
        )
        if not text.strip():
            return None, {}
        dominant = LanguageCode(self.dominant) if self.dominant else None
        scores = {LanguageCode(code): score for code, score in self.language_scores.items()}
        return dominant, scores

    def available_schemes(self, granularity: TokenGranularity, language: LanguageCode):
        return frozenset(self.available)

    async def request_asset(self, language: LanguageCode, scheme: TagScheme):
        self.asset_requests.append((language, scheme))
        if self.release is not None:
            await self.release.wait()
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def tag(
        self,
        text: str,
        text_range: tuple[int, int],
        granularity: TokenGranularity,
        scheme: TagScheme,
        options: TaggerOptions,
    ) -> Iterator[tuple[Tag | None, tuple[int, int]]]:
        self.tag_calls.append((granularity, scheme, options))
        if granularity is TokenGranularity.SENTENCE:
            for match in _SENTENCE.finditer(text):
                start = match.start() + (len(match.group()) - len(match.group().lstrip()))
                end = match.end()
                if start >= end:
                    continue
                yield _sentence_tag(match.group(), scheme), (start, end)
            return

        names = _name_ranges(text) if options.join_names and scheme is TagScheme.NAME_TYPE else {}
        position = 0
        for match in _TOKEN.finditer(text):
            if match.start() < position:
                continue
            name_end = names.get(match.start())
            if name_end is not None:
                yield Tag(NAMES[text[match.start():name_end]]), (match.start(), name_end)
                position = name_end
                continue
            yield _word_tag(text, match.group(), match.start(), scheme), (match.start(), match.end())
            position = match.end()

    def hypotheses(
        self,
        text: str,
        position: int,
        granularity: TokenGranularity,
        scheme: TagScheme,
        max_hypotheses: int,
    ):
        self.hypothesis_calls.append(position)
        if scheme is not TagScheme.LEXICAL_CLASS:
            return {}
        match = _TOKEN.match(text, position)
        word = match.group().lower() if match else ""
        ranked = sorted(
            LEXICAL_HYPOTHESES.get(word, {}).items(), key=lambda item: -item[1]
        )
        return {Tag(tag): probability for tag, probability in ranked[:max_hypotheses]}


def _name_ranges(text: str) -> dict[int, int]:
    ranges: dict[int, int] = {}
    for name in NAMES:
        for match in re.finditer(re.escape(name), text):
            ranges[match.start()] = match.end()
    return ranges


def _word_tag(text: str, token: str, start: int, scheme: TagScheme) -> Tag | None:
    if token.isspace():
        return Tag("OtherWhitespace") if scheme is TagScheme.LEXICAL_CLASS else None
    if not token[0].isalnum():
        if scheme is not TagScheme.LEXICAL_CLASS:
            return None
        return Tag("SentenceTerminator" if token in ".!?" else "OtherPunctuation")
    if scheme is TagScheme.LEXICAL_CLASS:
        return Tag(LEXICON.get(token.lower(), "OtherWord"))
    if scheme is TagScheme.NAME_TYPE:
        for name, label in NAMES.items():
            if token in name.split():
                return Tag(label)
        return Tag("OtherWord")
    if scheme is TagScheme.TOKEN_TYPE:
        return Tag("Word")
    if scheme is TagScheme.LEMMA:
        return Tag(token.lower())
    return None


def _sentence_tag(sentence: str, scheme: TagScheme) -> Tag | None:
    if scheme is not TagScheme.SENTIMENT_SCORE:
        return None
    words = {word.lower() for word in re.findall(r"\w+", sentence)}
    if words & POSITIVE:
        return Tag("0.8")
    if words & NEGATIVE:
        return Tag("-0.6")
    return Tag("0.0")


