"""Dataclasses, enums and provider protocol shared by the tagging pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Collection, Iterable, Mapping, NewType, Protocol

LanguageCode = NewType("LanguageCode", str)
Tag = NewType("Tag", str)

DEFAULT_MAX_HYPOTHESES = 3


class TokenGranularity(str, Enum):
    """Unit the tagger iterates over."""

    WORD = "word"
    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"
    DOCUMENT = "document"


@dataclass(frozen=True, slots=True)
class TaggerOptions:
    """Tokenization switches honoured when producing spans."""

    omit_punctuation: bool = False
    omit_whitespace: bool = False
    join_names: bool = False


class TagScheme(str, Enum):
    """Linguistic annotation categories a provider can tag with."""

    LEXICAL_CLASS = "lexical_class"
    NAME_TYPE = "name_type"
    SENTIMENT_SCORE = "sentiment_score"
    TOKEN_TYPE = "token_type"
    LEMMA = "lemma"

    @property
    def default_granularity(self) -> TokenGranularity:
        if self is TagScheme.SENTIMENT_SCORE:
            return TokenGranularity.SENTENCE
        return TokenGranularity.WORD

    @property
    def default_options(self) -> TaggerOptions:
        if self is TagScheme.NAME_TYPE:
            return TaggerOptions(
                omit_punctuation=True, omit_whitespace=True, join_names=True
            )
        return TaggerOptions()


class LexicalClass:
    """Tag values emitted for :attr:`TagScheme.LEXICAL_CLASS`."""

    NOUN = Tag("Noun")
    PROPER_NOUN = Tag("ProperNoun")
    VERB = Tag("Verb")
    ADJECTIVE = Tag("Adjective")
    ADVERB = Tag("Adverb")
    PRONOUN = Tag("Pronoun")
    DETERMINER = Tag("Determiner")
    PARTICLE = Tag("Particle")
    PREPOSITION = Tag("Preposition")
    NUMBER = Tag("Number")
    CONJUNCTION = Tag("Conjunction")
    INTERJECTION = Tag("Interjection")
    OTHER_WORD = Tag("OtherWord")
    SENTENCE_TERMINATOR = Tag("SentenceTerminator")
    OPEN_QUOTE = Tag("OpenQuote")
    CLOSE_QUOTE = Tag("CloseQuote")
    OPEN_PARENTHESIS = Tag("OpenParenthesis")
    CLOSE_PARENTHESIS = Tag("CloseParenthesis")
    DASH = Tag("Dash")
    OTHER_PUNCTUATION = Tag("OtherPunctuation")
    PARAGRAPH_BREAK = Tag("ParagraphBreak")
    OTHER_WHITESPACE = Tag("OtherWhitespace")


class NameType:
    """Tag values emitted for :attr:`TagScheme.NAME_TYPE`."""

    PERSONAL_NAME = Tag("PersonalName")
    PLACE_NAME = Tag("PlaceName")
    ORGANIZATION_NAME = Tag("OrganizationName")
    OTHER_WORD = Tag("OtherWord")


class TokenType:
    """Tag values emitted for :attr:`TagScheme.TOKEN_TYPE`."""

    WORD = Tag("Word")
    PUNCTUATION = Tag("Punctuation")
    WHITESPACE = Tag("Whitespace")
    OTHER = Tag("Other")


class AssetOutcome(str, Enum):
    """Result of asking a provider to fetch a model asset.

    ``UNKNOWN`` covers outcome codes this package does not know about yet;
    callers treat it as success.
    """

    AVAILABLE = "available"
    NOT_AVAILABLE = "not_available"
    FETCH_FAILED = "fetch_failed"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "AssetOutcome":
        return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class LanguageIdentificationResult:
    """Dominant language guess plus a bounded set of hypotheses."""

    dominant: LanguageCode | None
    hypotheses: Mapping[LanguageCode, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "hypotheses", MappingProxyType(dict(self.hypotheses)))

    def ranked(self) -> list[tuple[LanguageCode, float]]:
        """Return the hypotheses sorted by probability, highest first."""

        return sorted(self.hypotheses.items(), key=lambda item: (-item[1], item[0]))


@dataclass(frozen=True, slots=True)
class Span:
    """Substring of the analysed text with its tag hypotheses."""

    id: int
    text: str
    start: int
    end: int
    tag: Tag | None
    tag_hypotheses: Mapping[Tag, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "tag_hypotheses", MappingProxyType(dict(self.tag_hypotheses))
        )

    def ranked(self) -> list[tuple[Tag, float]]:
        """Return the tag hypotheses sorted by probability, highest first."""

        return sorted(
            self.tag_hypotheses.items(), key=lambda item: (-item[1], item[0])
        )


TextRange = tuple[int, int]


class LanguageModelProvider(Protocol):
    """Recognition, tagging and asset primitives backing the pipeline."""

    def recognize_language(
        self,
        text: str,
        *,
        hints: Mapping[LanguageCode, float],
        constraints: Collection[LanguageCode],
        max_hypotheses: int,
    ) -> tuple[LanguageCode | None, Mapping[LanguageCode, float]]:
        """Return the dominant language and the best language hypotheses."""

    def available_schemes(
        self, granularity: TokenGranularity, language: LanguageCode
    ) -> Collection[TagScheme]:
        """Return the schemes that can be tagged right now for ``language``."""

    async def request_asset(
        self, language: LanguageCode, scheme: TagScheme
    ) -> AssetOutcome:
        """Fetch or load the model required to tag ``scheme`` in ``language``."""

    def tag(
        self,
        text: str,
        text_range: TextRange,
        granularity: TokenGranularity,
        scheme: TagScheme,
        options: TaggerOptions,
    ) -> Iterable[tuple[Tag | None, TextRange]]:
        """Tokenize ``text`` and yield the best tag of each token with its range."""

    def hypotheses(
        self,
        text: str,
        position: int,
        granularity: TokenGranularity,
        scheme: TagScheme,
        max_hypotheses: int,
    ) -> Mapping[Tag, float]:
        """Return the ranked tag hypotheses of the token starting at ``position``."""


__all__ = [
    "DEFAULT_MAX_HYPOTHESES",
    "AssetOutcome",
    "LanguageCode",
    "LanguageIdentificationResult",
    "LanguageModelProvider",
    "LexicalClass",
    "NameType",
    "Span",
    "Tag",
    "TagScheme",
    "TaggerOptions",
    "TextRange",
    "TokenGranularity",
    "TokenType",
]
