"""FastAPI application exposing the text analyses over HTTP."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import import_module
from typing import Any

import uvicorn
from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from textprops import settings
from textprops.tagging import (
    AnalysisResult,
    AssetError,
    AssetFetchFailedError,
    AssetUnavailableError,
    LanguageCode,
    LanguageIdentificationResult,
    LanguageModelProvider,
    LanguageRecognizerConfig,
    RankerInconsistencyError,
    Span,
    TextPropertyService,
)


@dataclass
class AnalysisConfig:
    """Configuration required to bootstrap the analysis service."""

    language_hints: dict[str, float] = field(default_factory=dict)
    language_constraints: frozenset[str] = frozenset()
    max_hypotheses: int = 3
    provider_factory: str | None = None
    provider_settings: dict[str, Any] = field(default_factory=dict)
    concurrent: bool = False
    max_concurrency: int | None = None
    serialize_provider: bool = False
    provider: LanguageModelProvider | None = None

    @classmethod
    def from_env(cls) -> "AnalysisConfig":
        """Build a configuration instance from environment variables."""

        return cls(
            language_hints=settings.get_language_hints(),
            language_constraints=settings.get_language_constraints(),
            max_hypotheses=settings.get_max_hypotheses(),
            provider_factory=settings.get_provider_factory(),
            concurrent=settings.get_analyze_concurrently(),
            max_concurrency=settings.get_max_concurrency(),
            serialize_provider=settings.get_serialize_provider(),
        )

    def recognizer_config(self) -> LanguageRecognizerConfig:
        return LanguageRecognizerConfig(
            hints={LanguageCode(code): weight for code, weight in self.language_hints.items()},
            constraints=frozenset(LanguageCode(code) for code in self.language_constraints),
            max_hypotheses=self.max_hypotheses,
        )


@dataclass
class AnalysisContainer:
    """Resolved dependencies for the analysis service."""

    config: AnalysisConfig
    provider: LanguageModelProvider
    service: TextPropertyService


def build_analysis_container(config: AnalysisConfig) -> AnalysisContainer:
    """Instantiate the provider and the service described by ``config``."""

    provider = config.provider or load_provider(
        config.provider_factory, config.provider_settings
    )
    service = TextPropertyService(
        provider,
        recognizer_config=config.recognizer_config(),
        max_hypotheses=config.max_hypotheses,
        serialize_provider=config.serialize_provider,
    )
    return AnalysisContainer(config=config, provider=provider, service=service)


def load_provider(factory_path: str | None, options: dict[str, Any]) -> LanguageModelProvider:
    """Import and call the provider factory given as ``module:attribute``."""

    if factory_path is None:
        raise ValueError("A provider factory or instance must be configured")
    module_name, _, attribute = factory_path.partition(":")
    if not attribute:
        raise ValueError(
            "TEXTPROPS_PROVIDER_FACTORY must follow the 'module:attribute' format"
        )
    module = import_module(module_name)
    factory = getattr(module, attribute)
    if callable(factory):
        return factory(**options)
    return factory


class TextPayload(BaseModel):
    """Text submitted for analysis."""

    text: str = Field(..., max_length=100_000)


class AnalyzePayload(TextPayload):
    concurrent: bool | None = None


class HypothesisResponse(BaseModel):
    label: str
    probability: float


class LanguageResponse(BaseModel):
    dominant: str | None
    hypotheses: list[HypothesisResponse]

    @classmethod
    def from_result(cls, result: LanguageIdentificationResult) -> "LanguageResponse":
        return cls(
            dominant=result.dominant,
            hypotheses=[
                HypothesisResponse(label=language, probability=probability)
                for language, probability in result.ranked()
            ],
        )


class SpanResponse(BaseModel):
    id: int
    text: str
    start: int
    end: int
    tag: str | None
    hypotheses: list[HypothesisResponse]

    @classmethod
    def from_dataclass(cls, span: Span) -> "SpanResponse":
        return cls(
            id=span.id,
            text=span.text,
            start=span.start,
            end=span.end,
            tag=span.tag,
            hypotheses=[
                HypothesisResponse(label=tag, probability=probability)
                for tag, probability in span.ranked()
            ],
        )


class AnalysisResponse(BaseModel):
    language: LanguageResponse
    sentiment: list[SpanResponse]
    lexical: list[SpanResponse]
    entities: list[SpanResponse]

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisResponse":
        return cls(
            language=LanguageResponse.from_result(result.language),
            sentiment=[SpanResponse.from_dataclass(span) for span in result.sentiment],
            lexical=[SpanResponse.from_dataclass(span) for span in result.lexical],
            entities=[SpanResponse.from_dataclass(span) for span in result.entities],
        )


def _to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, AssetUnavailableError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, AssetFetchFailedError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def include_routes(app: FastAPI, container: AnalysisContainer, *, prefix: str = "") -> None:
    """Register FastAPI routes exposing the analyses."""

    router = APIRouter(prefix=prefix, tags=["Analysis"])
    log = logging.getLogger("textprops.services.analysis")
    service = container.service

    @router.get("/healthz")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    # runs on the event loop, never in the threadpool
    @router.post("/language", response_model=LanguageResponse)
    async def identify_language(payload: TextPayload) -> LanguageResponse:
        try:
            result = service.identify_language(payload.text)
        except RankerInconsistencyError as exc:
            log.exception("Language identification failed")
            raise _to_http_error(exc) from exc
        return LanguageResponse.from_result(result)

    async def _spans(operation, text: str) -> list[SpanResponse]:
        try:
            spans = await operation(text)
        except (AssetError, RankerInconsistencyError) as exc:
            log.warning("Analysis failed: %s", exc)
            raise _to_http_error(exc) from exc
        return [SpanResponse.from_dataclass(span) for span in spans]

    @router.post("/lexical", response_model=list[SpanResponse])
    async def identify_lexical(payload: TextPayload) -> list[SpanResponse]:
        return await _spans(service.identify_lexical, payload.text)

    @router.post("/entities", response_model=list[SpanResponse])
    async def identify_entities(payload: TextPayload) -> list[SpanResponse]:
        return await _spans(service.identify_entities, payload.text)

    @router.post("/sentiment", response_model=list[SpanResponse])
    async def evaluate_sentiment(payload: TextPayload) -> list[SpanResponse]:
        return await _spans(service.evaluate_sentiment_score, payload.text)

    @router.post("/analyze", response_model=AnalysisResponse)
    async def analyze(payload: AnalyzePayload) -> AnalysisResponse:
        concurrent = (
            container.config.concurrent if payload.concurrent is None else payload.concurrent
        )
        try:
            result = await service.analyze(
                payload.text,
                concurrent=concurrent,
                max_concurrency=container.config.max_concurrency,
            )
        except (AssetError, RankerInconsistencyError) as exc:
            log.warning("Analysis failed: %s", exc)
            raise _to_http_error(exc) from exc
        return AnalysisResponse.from_result(result)

    app.include_router(router)


def create_app(config: AnalysisConfig | None = None) -> FastAPI:
    """Create a FastAPI application exposing the analysis endpoints."""

    config = config or AnalysisConfig.from_env()
    container = build_analysis_container(config)

    app = FastAPI(
        title="textprops API",
        version="1.0.0",
        description="Language identification, lexical classes, named entities and sentiment.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    include_routes(app, container)
    app.state.container = container
    return app


def run_api() -> None:
    """Run the analysis API with uvicorn."""

    load_dotenv()
    uvicorn.run(
        "textprops.services.analysis.app:create_app",
        host=settings.get_api_bind_host(),
        port=settings.get_api_port(),
        factory=True,
    )


__all__ = [
    "AnalysisConfig",
    "AnalysisContainer",
    "AnalysisResponse",
    "LanguageResponse",
    "SpanResponse",
    "build_analysis_container",
    "create_app",
    "include_routes",
    "load_provider",
    "run_api",
]
