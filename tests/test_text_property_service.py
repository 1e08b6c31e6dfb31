import asyncio

import pytest

from textprops.tagging import (
    AssetOutcome,
    AssetUnavailableError,
    LanguageCode,
    LanguageRecognizerConfig,
    TagScheme,
    TextPropertyService,
)

_SAMPLE = "Hello World! Tokyo is awesome!"


def test_identify_language_uses_configured_hints(provider):
    service = TextPropertyService(
        provider,
        recognizer_config=LanguageRecognizerConfig(hints={LanguageCode("ja"): 0.5}),
    )

    result = service.identify_language(_SAMPLE)

    assert result.dominant == "en"
    assert provider.recognize_calls[-1]["hints"] == {"ja": 0.5}


@pytest.mark.asyncio
async def test_operations_use_their_scheme_defaults(provider):
    service = TextPropertyService(provider)

    lexical = await service.identify_lexical(_SAMPLE)
    entities = await service.identify_entities(_SAMPLE)
    sentiment = await service.evaluate_sentiment_score(_SAMPLE)

    assert any(span.text == " " for span in lexical)
    assert [span.text for span in entities] == ["Hello", "World", "Tokyo", "is", "awesome"]
    assert len(sentiment) == 2
    schemes = [scheme for _, scheme, _ in provider.tag_calls]
    assert schemes == [TagScheme.LEXICAL_CLASS, TagScheme.NAME_TYPE, TagScheme.SENTIMENT_SCORE]


@pytest.mark.asyncio
async def test_max_hypotheses_limits_ranked_tags(provider):
    service = TextPropertyService(provider, max_hypotheses=1)

    spans = await service.identify_lexical("Hello")

    assert spans[0].tag_hypotheses == {"Interjection": 0.71}


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [False, True])
async def test_analyze_runs_all_analyses(provider, concurrent):
    service = TextPropertyService(provider)

    result = await service.analyze(_SAMPLE, concurrent=concurrent, max_concurrency=2)

    assert result.language.dominant == "en"
    assert len(result.sentiment) == 2
    assert result.lexical[0].text == "Hello"
    assert "Tokyo" in [span.text for span in result.entities]


@pytest.mark.asyncio
async def test_analyze_of_blank_text_is_empty(provider_factory):
    provider = provider_factory(available=set(), outcome=AssetOutcome.NOT_AVAILABLE)
    service = TextPropertyService(provider)

    result = await service.analyze("   ")

    assert result.language.dominant is None
    assert result.language.hypotheses == {}
    assert result.sentiment == result.lexical == result.entities == ()


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [False, True])
async def test_analyze_fails_as_a_whole_on_asset_error(provider_factory, concurrent):
    provider = provider_factory(
        available={TagScheme.LEXICAL_CLASS},
        outcome=AssetOutcome.NOT_AVAILABLE,
    )
    service = TextPropertyService(provider)

    with pytest.raises(AssetUnavailableError):
        await service.analyze(_SAMPLE, concurrent=concurrent)


@pytest.mark.asyncio
async def test_serialized_provider_runs_one_pipeline_at_a_time(provider_factory):
    release = asyncio.Event()
    provider = provider_factory(available=set(), release=release)
    service = TextPropertyService(provider, serialize_provider=True)

    first = asyncio.create_task(service.identify_entities("Tokyo is great."))
    second = asyncio.create_task(service.identify_lexical("Tokyo is great."))
    for _ in range(10):
        await asyncio.sleep(0)

    assert len(provider.asset_requests) == 1
    release.set()
    await asyncio.gather(first, second)
    assert len(provider.asset_requests) == 2
