import inspect

import pytest
from fastapi.testclient import TestClient

from textprops.services.analysis import AnalysisConfig, build_analysis_container, create_app, load_provider
from textprops.tagging import AssetOutcome, TagScheme

from fakes import FakeProvider

_SAMPLE = "Hello World! Tokyo is awesome!"


def _client(provider: FakeProvider, **config) -> TestClient:
    app = create_app(AnalysisConfig(provider=provider, **config))
    return TestClient(app)


def test_healthcheck():
    client = _client(FakeProvider())

    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_language_endpoint_returns_sorted_hypotheses():
    client = _client(FakeProvider(), max_hypotheses=2)

    response = client.post("/language", json={"text": _SAMPLE})

    assert response.status_code == 200
    payload = response.json()
    assert payload["dominant"] == "en"
    assert [item["label"] for item in payload["hypotheses"]] == ["en", "ja"]


def test_lexical_endpoint_serializes_spans():
    client = _client(FakeProvider())

    response = client.post("/lexical", json={"text": "Tokyo"})

    assert response.status_code == 200
    [span] = response.json()
    assert span["text"] == "Tokyo"
    assert span["tag"] == "ProperNoun"
    assert span["hypotheses"][0] == {"label": "ProperNoun", "probability": 1.0}


def test_entities_endpoint_maps_unavailable_asset_to_404():
    provider = FakeProvider(available=set(), outcome=AssetOutcome.NOT_AVAILABLE)
    client = _client(provider)

    response = client.post("/entities", json={"text": "Tokyo is great."})

    assert response.status_code == 404
    assert "name_type" in response.json()["detail"]


def test_sentiment_endpoint_maps_fetch_failure_to_502():
    provider = FakeProvider(available=set(), outcome=AssetOutcome.FETCH_FAILED)
    client = _client(provider)

    response = client.post("/sentiment", json={"text": _SAMPLE})

    assert response.status_code == 502


def test_analyze_endpoint_runs_every_analysis():
    client = _client(FakeProvider(), concurrent=True)

    response = client.post("/analyze", json={"text": _SAMPLE})

    assert response.status_code == 200
    payload = response.json()
    assert payload["language"]["dominant"] == "en"
    assert [span["text"] for span in payload["sentiment"]] == ["Hello World!", "Tokyo is awesome!"]
    assert payload["entities"][2]["tag"] == "PlaceName"
    assert payload["lexical"][0]["text"] == "Hello"


def test_build_container_uses_configured_provider_factory():
    config = AnalysisConfig(
        provider_factory="fakes:FakeProvider",
        provider_settings={"dominant": "ja"},
    )

    container = build_analysis_container(config)

    assert container.service.identify_language("konnichiwa").dominant == "ja"


def test_load_provider_rejects_malformed_factory_path():
    with pytest.raises(ValueError, match="module:attribute"):
        load_provider("fakes.FakeProvider", {})


def test_available_schemes_skip_asset_requests():
    provider = FakeProvider(available={TagScheme.LEXICAL_CLASS})
    client = _client(provider)

    client.post("/lexical", json={"text": _SAMPLE})

    assert provider.asset_requests == []


def test_container_passes_provider_serialization_to_service():
    container = build_analysis_container(
        AnalysisConfig(provider=FakeProvider(), serialize_provider=True)
    )

    assert container.service.serializes_provider


def test_language_route_runs_on_the_event_loop():
    app = create_app(AnalysisConfig(provider=FakeProvider()))

    [route] = [route for route in app.routes if getattr(route, "path", None) == "/language"]

    assert inspect.iscoroutinefunction(route.endpoint)
