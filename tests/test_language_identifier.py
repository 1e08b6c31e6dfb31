import pytest

from textprops.tagging import (
    LanguageCode,
    LanguageIdentifier,
    LanguageRecognizerConfig,
    RankerInconsistencyError,
)


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_text_has_no_language(provider, text):
    identifier = LanguageIdentifier(provider)

    result = identifier.identify(text)

    assert result.dominant is None
    assert result.hypotheses == {}
    assert provider.recognize_calls == []


def test_hypotheses_are_capped_at_three(provider):
    identifier = LanguageIdentifier(provider)

    result = identifier.identify("Hello World! Tokyo is awesome!")

    assert result.dominant == "en"
    assert len(result.hypotheses) <= 3
    assert [language for language, _ in result.ranked()] == ["en", "ja", "fr"]


def test_configuration_is_applied_to_every_call(provider):
    config = LanguageRecognizerConfig(
        hints={LanguageCode("en"): 0.9, LanguageCode("ja"): 0.5},
        max_hypotheses=2,
    )
    identifier = LanguageIdentifier(provider, config)

    identifier.identify("first text")
    provider.recognize_calls[0]["hints"]["fr"] = 1.0
    identifier.identify("second text")

    second = provider.recognize_calls[1]
    assert second["text"] == "second text"
    assert second["hints"] == {"en": 0.9, "ja": 0.5}
    assert second["max_hypotheses"] == 2
    assert config.hints == {"en": 0.9, "ja": 0.5}


def test_constraints_restrict_the_candidate_languages(provider):
    config = LanguageRecognizerConfig(
        constraints=frozenset({LanguageCode("fr"), LanguageCode("de")})
    )
    identifier = LanguageIdentifier(provider, config)

    result = identifier.identify("Bonjour")

    assert result.dominant is None
    assert set(result.hypotheses) == {"fr", "de"}


def test_missing_dominant_language_keeps_hypotheses(provider_factory):
    provider = provider_factory(dominant=None, language_scores={"en": 0.3, "nl": 0.28})
    identifier = LanguageIdentifier(provider)

    result = identifier.identify("ok")

    assert result.dominant is None
    assert result.hypotheses == {"en": 0.3, "nl": 0.28}


def test_out_of_range_probability_is_an_inconsistency(provider_factory):
    provider = provider_factory(language_scores={"en": 1.2})
    identifier = LanguageIdentifier(provider)

    with pytest.raises(RankerInconsistencyError):
        identifier.identify("Hello")


def test_language_hypotheses_cannot_be_mutated(provider):
    identifier = LanguageIdentifier(provider)

    result = identifier.identify("Hello World! Tokyo is awesome!")

    with pytest.raises(TypeError):
        result.hypotheses["xx"] = 1.0
