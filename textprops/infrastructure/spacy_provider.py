"""Language model provider built on spaCy pipelines."""
from __future__ import annotations

import asyncio
import importlib
import logging
import re
from typing import Any, Callable, Collection, Iterable, Iterator, Mapping

import spacy
from spacy.cli import download as spacy_download
from spacy.language import Language
from spacy.tokens import Doc, Token

from textprops import settings
from textprops.tagging.hypotheses import top_hypotheses
from textprops.tagging.models import (
    AssetOutcome,
    LanguageCode,
    LexicalClass,
    NameType,
    Tag,
    TaggerOptions,
    TagScheme,
    TextRange,
    TokenGranularity,
    TokenType,
)

from .fasttext_recognizer import FastTextLanguageRecognizer
from .sentiment import SentimentScorer, VaderSentimentScorer

_FALLBACK_PIPELINE = "xx"
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_PIPES = ("parser", "senter", "sentencizer")

_UPOS_TO_LEXICAL: dict[str, Tag] = {
    "NOUN": LexicalClass.NOUN,
    "PROPN": LexicalClass.PROPER_NOUN,
    "VERB": LexicalClass.VERB,
    "AUX": LexicalClass.VERB,
    "ADJ": LexicalClass.ADJECTIVE,
    "ADV": LexicalClass.ADVERB,
    "PRON": LexicalClass.PRONOUN,
    "DET": LexicalClass.DETERMINER,
    "PART": LexicalClass.PARTICLE,
    "ADP": LexicalClass.PREPOSITION,
    "NUM": LexicalClass.NUMBER,
    "CCONJ": LexicalClass.CONJUNCTION,
    "SCONJ": LexicalClass.CONJUNCTION,
    "INTJ": LexicalClass.INTERJECTION,
    "SYM": LexicalClass.OTHER_WORD,
    "X": LexicalClass.OTHER_WORD,
    "SPACE": LexicalClass.OTHER_WHITESPACE,
}

# Penn Treebank fine-grained tags mapped to universal POS tags.
_PTB_TO_UPOS: dict[str, str] = {
    "CC": "CCONJ", "CD": "NUM", "DT": "DET", "EX": "PRON", "FW": "X",
    "IN": "ADP", "JJ": "ADJ", "JJR": "ADJ", "JJS": "ADJ", "LS": "X",
    "MD": "AUX", "NN": "NOUN", "NNS": "NOUN", "NNP": "PROPN", "NNPS": "PROPN",
    "PDT": "DET", "POS": "PART", "PRP": "PRON", "PRP$": "PRON", "RB": "ADV",
    "RBR": "ADV", "RBS": "ADV", "RP": "ADP", "SYM": "SYM", "TO": "PART",
    "UH": "INTJ", "VB": "VERB", "VBD": "VERB", "VBG": "VERB", "VBN": "VERB",
    "VBP": "VERB", "VBZ": "VERB", "WDT": "DET", "WP": "PRON", "WP$": "PRON",
    "WRB": "ADV", "AFX": "ADJ", "ADD": "X", "XX": "X", "$": "SYM",
    ".": "PUNCT", ",": "PUNCT", ":": "PUNCT", "``": "PUNCT", "''": "PUNCT",
    "-LRB-": "PUNCT", "-RRB-": "PUNCT", "HYPH": "PUNCT", "NFP": "PUNCT",
    "_SP": "SPACE",
}

_ENTITY_LABELS: dict[str, Tag] = {
    "PERSON": NameType.PERSONAL_NAME,
    "PER": NameType.PERSONAL_NAME,
    "GPE": NameType.PLACE_NAME,
    "LOC": NameType.PLACE_NAME,
    "FAC": NameType.PLACE_NAME,
    "ORG": NameType.ORGANIZATION_NAME,
}

_SENTENCE_TERMINATORS = {".", "!", "?", "…", "。", "！", "？"}
_DASHES = {"-", "‐", "‑", "‒", "–", "—", "―"}

# pipe name, pipe labels and the (tokens x labels) probability matrix
_TagScores = tuple[str, tuple[str, ...], Any]


class SpacyLanguageModelProvider:
    """Tag text with installed spaCy pipelines, one per language.

    Pipelines are loaded lazily and kept for the lifetime of the provider.
    Text is tagged with the pipeline of the language last recognized for it
    through :meth:`recognize_language`, so tagging follows the configured
    hints and constraints. Sentence sentiment needs a ``sentiment`` scorer.
    The provider is not safe for concurrent use from several threads.
    """

    def __init__(
        self,
        recognizer: FastTextLanguageRecognizer,
        *,
        models: Mapping[str, str],
        default_language: str = "en",
        downloader: Callable[[str], Any] | None = None,
        sentiment: SentimentScorer | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._models = dict(models)
        self._default_language = default_language
        self._downloader = downloader or spacy_download
        self._sentiment = sentiment
        self._pipelines: dict[str, Language] = {}
        self._recognized: tuple[str, LanguageCode | None] | None = None
        self._last_parse: tuple[str, str | None, Doc] | None = None
        self._last_scores: tuple[Doc, _TagScores | None] | None = None
        self._log = logging.getLogger("textprops.infrastructure.spacy")

    def recognize_language(
        self,
        text: str,
        *,
        hints: Mapping[LanguageCode, float],
        constraints: Collection[LanguageCode],
        max_hypotheses: int,
    ) -> tuple[LanguageCode | None, Mapping[LanguageCode, float]]:
        dominant, hypotheses = self._recognizer.recognize(
            text, hints=hints, constraints=constraints, max_hypotheses=max_hypotheses
        )
        self._recognized = (text, dominant)
        return dominant, hypotheses

    def available_schemes(
        self, granularity: TokenGranularity, language: LanguageCode
    ) -> frozenset[TagScheme]:
        """Schemes of an already loaded pipeline; loading goes through :meth:`request_asset`."""

        nlp = self._pipelines.get(_base_language(language))
        if nlp is None:
            return frozenset()
        return self._supported_schemes(nlp, language)

    async def request_asset(
        self, language: LanguageCode, scheme: TagScheme
    ) -> AssetOutcome:
        package = self._package_for(language)
        if package is None:
            return AssetOutcome.NOT_AVAILABLE

        loop = asyncio.get_running_loop()
        if not spacy.util.is_package(package):
            downloaded = await loop.run_in_executor(None, self._download, package)
            if not downloaded:
                return AssetOutcome.FETCH_FAILED
            importlib.invalidate_caches()

        nlp = await loop.run_in_executor(None, self._load, language)
        if nlp is None:
            return AssetOutcome.FETCH_FAILED
        if scheme in self._supported_schemes(nlp, language):
            return AssetOutcome.AVAILABLE
        return AssetOutcome.NOT_AVAILABLE

    def tag(
        self,
        text: str,
        text_range: TextRange,
        granularity: TokenGranularity,
        scheme: TagScheme,
        options: TaggerOptions,
    ) -> Iterator[tuple[Tag | None, TextRange]]:
        doc = self._parse(text)
        lower, upper = text_range
        for start, end, tokens in _units(doc, granularity, scheme, options):
            if start < lower or end > upper:
                continue
            if options.omit_whitespace and all(token.is_space for token in tokens):
                continue
            if options.omit_punctuation and all(token.is_punct for token in tokens):
                continue
            if scheme is TagScheme.SENTIMENT_SCORE:
                yield self._sentiment_tag(text[start:end]), (start, end)
            else:
                yield _unit_tag(tokens, granularity, scheme), (start, end)

    def hypotheses(
        self,
        text: str,
        position: int,
        granularity: TokenGranularity,
        scheme: TagScheme,
        max_hypotheses: int,
    ) -> dict[Tag, float]:
        if scheme is not TagScheme.LEXICAL_CLASS or granularity is not TokenGranularity.WORD:
            return {}
        doc = self._parse(text)
        token = _token_at(doc, position)
        if token is None:
            return {}
        scores = self._lexical_scores(doc, token)
        return top_hypotheses(scores, max_hypotheses)

    def _supported_schemes(self, nlp: Language, language: str) -> frozenset[TagScheme]:
        schemes = set(_pipeline_schemes(nlp))
        if self._sentiment is not None and self._sentiment.supports(language):
            schemes.add(TagScheme.SENTIMENT_SCORE)
        return frozenset(schemes)

    def _sentiment_tag(self, text: str) -> Tag | None:
        if self._sentiment is None:
            return None
        score = max(-1.0, min(1.0, self._sentiment.score(text)))
        return Tag(f"{score:.1f}")

    def _package_for(self, language: str) -> str | None:
        return self._models.get(language) or self._models.get(_base_language(language))

    def _download(self, package: str) -> bool:
        self._log.info("Downloading spaCy package %s", package)
        try:
            self._downloader(package)
        except SystemExit as exc:
            # spacy.cli reports failures by exiting
            if exc.code in (0, None):
                return True
            self._log.error("Download of %s exited with %s", package, exc.code)
            return False
        return True

    def _load(self, language: str) -> Language | None:
        key = _base_language(language)
        if key in self._pipelines:
            return self._pipelines[key]
        package = self._package_for(language)
        if package is None or not spacy.util.is_package(package):
            return None
        self._log.info("Loading spaCy pipeline %s for %s", package, key)
        nlp = _with_sentences(spacy.load(package))
        self._pipelines[key] = nlp
        return nlp

    def _language_for(self, text: str) -> LanguageCode | None:
        if self._recognized is not None and self._recognized[0] == text:
            return self._recognized[1]
        dominant, _ = self._recognizer.recognize(
            text, hints={}, constraints=(), max_hypotheses=1
        )
        return dominant

    def _pipeline_for(self, language: str | None) -> Language:
        for candidate in (language, self._default_language):
            if candidate is None:
                continue
            nlp = self._load(candidate)
            if nlp is not None:
                return nlp
        if _FALLBACK_PIPELINE not in self._pipelines:
            self._pipelines[_FALLBACK_PIPELINE] = _with_sentences(
                spacy.blank(_FALLBACK_PIPELINE)
            )
        return self._pipelines[_FALLBACK_PIPELINE]

    def _parse(self, text: str) -> Doc:
        language = self._language_for(text)
        cached = self._last_parse
        if cached is not None and cached[0] == text and cached[1] == language:
            return cached[2]
        doc = self._pipeline_for(language)(text)
        self._last_parse = (text, language, doc)
        return doc

    def _lexical_scores(self, doc: Doc, token: Token) -> dict[Tag, float]:
        if self._last_scores is None or self._last_scores[0] is not doc:
            self._last_scores = (doc, self._predict_tags(doc))
        prediction = self._last_scores[1]
        if prediction is None:
            return {}

        pipe_name, labels, scores = prediction
        aggregated: dict[Tag, float] = {}
        for label, probability in zip(labels, scores[token.i]):
            upos = _label_to_upos(pipe_name, label)
            lexical = _lexical_for_upos(upos, token) if upos else None
            if lexical is None:
                continue
            aggregated[lexical] = aggregated.get(lexical, 0.0) + float(probability)
        return {tag: min(1.0, value) for tag, value in aggregated.items() if value > 0.0}

    def _predict_tags(self, doc: Doc) -> _TagScores | None:
        """Run the tagger once over ``doc`` and keep the per-token score matrix."""

        nlp = self._pipelines.get(doc.lang_) or self._pipeline_by_vocab(doc)
        if nlp is None:
            return None
        for name in ("morphologizer", "tagger"):
            if nlp.has_pipe(name):
                pipe = nlp.get_pipe(name)
                break
        else:
            return None

        scores = pipe.model.ops.to_numpy(pipe.model.predict([doc])[0])
        return name, tuple(pipe.labels), scores

    def _pipeline_by_vocab(self, doc: Doc) -> Language | None:
        for nlp in self._pipelines.values():
            if nlp.vocab is doc.vocab:
                return nlp
        return None


def create_spacy_provider(**overrides: Any) -> SpacyLanguageModelProvider:
    """Build a provider from settings, ``overrides`` win over the environment."""

    recognizer = FastTextLanguageRecognizer(
        overrides.get("fasttext_model", settings.get_fasttext_model_path()),
        min_confidence=float(overrides.get("min_confidence", 0.3)),
    )
    sentiment = overrides.get("sentiment")
    if sentiment is None:
        sentiment = VaderSentimentScorer(
            languages=overrides.get("sentiment_languages", ("en",))
        )
    return SpacyLanguageModelProvider(
        recognizer,
        models=overrides.get("models", settings.get_spacy_models()),
        default_language=overrides.get("default_language", settings.get_default_language()),
        sentiment=sentiment,
    )


def _base_language(language: str) -> str:
    return re.split(r"[-_]", language, maxsplit=1)[0].lower()


def _with_sentences(nlp: Language) -> Language:
    if not any(nlp.has_pipe(name) for name in _SENTENCE_PIPES):
        nlp.add_pipe("sentencizer")
    return nlp


def _pipeline_schemes(nlp: Language) -> frozenset[TagScheme]:
    schemes = {TagScheme.TOKEN_TYPE}
    if nlp.has_pipe("tagger") or nlp.has_pipe("morphologizer"):
        schemes.add(TagScheme.LEXICAL_CLASS)
    if nlp.has_pipe("ner"):
        schemes.add(TagScheme.NAME_TYPE)
    if nlp.has_pipe("lemmatizer"):
        schemes.add(TagScheme.LEMMA)
    return frozenset(schemes)


def _units(
    doc: Doc,
    granularity: TokenGranularity,
    scheme: TagScheme,
    options: TaggerOptions,
) -> Iterable[tuple[int, int, list[Token]]]:
    if granularity is TokenGranularity.WORD:
        return _word_units(doc, join_names=options.join_names and scheme is TagScheme.NAME_TYPE)
    if granularity is TokenGranularity.SENTENCE:
        return [
            (sent.start_char, sent.end_char, list(sent))
            for sent in doc.sents
            if sent.text.strip() or not options.omit_whitespace
        ]
    if granularity is TokenGranularity.PARAGRAPH:
        return _paragraph_units(doc)
    return [(0, len(doc.text), list(doc))] if doc.text else []


def _word_units(doc: Doc, *, join_names: bool) -> list[tuple[int, int, list[Token]]]:
    entity_at = {ent.start: ent for ent in doc.ents if ent.label_ in _ENTITY_LABELS} if join_names else {}
    units: list[tuple[int, int, list[Token]]] = []
    index = 0
    while index < len(doc):
        entity = entity_at.get(index)
        if entity is not None:
            units.append((entity.start_char, entity.end_char, list(entity)))
            index = entity.end
            continue
        token = doc[index]
        units.append((token.idx, token.idx + len(token.text), [token]))
        index += 1
    return units


def _paragraph_units(doc: Doc) -> list[tuple[int, int, list[Token]]]:
    units: list[tuple[int, int, list[Token]]] = []
    offset = 0
    for match in [*_PARAGRAPH_BREAK.finditer(doc.text), None]:
        end = match.start() if match else len(doc.text)
        if end > offset:
            span = doc.char_span(offset, end, alignment_mode="expand")
            if span is not None:
                units.append((offset, end, list(span)))
        offset = match.end() if match else end
    return units


def _unit_tag(
    tokens: list[Token], granularity: TokenGranularity, scheme: TagScheme
) -> Tag | None:
    if granularity is not TokenGranularity.WORD or not tokens:
        return None
    token = tokens[0]
    if scheme is TagScheme.NAME_TYPE:
        if token.is_space or token.is_punct:
            return None
        return _ENTITY_LABELS.get(token.ent_type_, NameType.OTHER_WORD)
    if scheme is TagScheme.LEXICAL_CLASS:
        return _lexical_for_upos(token.pos_, token) if token.pos_ else _surface_class(token)
    if scheme is TagScheme.TOKEN_TYPE:
        return _token_type(token)
    if scheme is TagScheme.LEMMA:
        return Tag(token.lemma_) if token.lemma_ else None
    return None


def _lexical_for_upos(upos: str, token: Token) -> Tag | None:
    if upos == "PUNCT":
        return _punctuation_class(token)
    if upos == "SPACE":
        return _whitespace_class(token)
    return _UPOS_TO_LEXICAL.get(upos)


def _surface_class(token: Token) -> Tag | None:
    if token.is_space:
        return _whitespace_class(token)
    if token.is_punct:
        return _punctuation_class(token)
    if token.like_num:
        return LexicalClass.NUMBER
    return None


def _punctuation_class(token: Token) -> Tag:
    if token.is_quote:
        if token.is_left_punct:
            return LexicalClass.OPEN_QUOTE
        if token.is_right_punct:
            return LexicalClass.CLOSE_QUOTE
    if token.is_bracket:
        return LexicalClass.OPEN_PARENTHESIS if token.is_left_punct else LexicalClass.CLOSE_PARENTHESIS
    if token.text in _DASHES:
        return LexicalClass.DASH
    if token.text and set(token.text) <= _SENTENCE_TERMINATORS:
        return LexicalClass.SENTENCE_TERMINATOR
    return LexicalClass.OTHER_PUNCTUATION


def _whitespace_class(token: Token) -> Tag:
    if token.text.count("\n") >= 2:
        return LexicalClass.PARAGRAPH_BREAK
    return LexicalClass.OTHER_WHITESPACE


def _token_type(token: Token) -> Tag:
    if token.is_space:
        return TokenType.WHITESPACE
    if token.is_punct:
        return TokenType.PUNCTUATION
    if token.is_alpha or token.like_num:
        return TokenType.WORD
    return TokenType.OTHER


def _label_to_upos(pipe_name: str, label: str) -> str | None:
    if pipe_name == "morphologizer":
        for feature in label.split("|"):
            key, _, value = feature.partition("=")
            if key == "POS":
                return value
        return None
    return _PTB_TO_UPOS.get(label)


def _token_at(doc: Doc, position: int) -> Token | None:
    for token in doc:
        if token.idx == position:
            return token
        if token.idx > position:
            break
    return None


__all__ = ["SpacyLanguageModelProvider", "create_spacy_provider"]
