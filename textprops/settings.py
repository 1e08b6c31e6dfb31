"""Shared settings loaded from environment variables."""
from __future__ import annotations

import json
import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_API_BIND_HOST = "0.0.0.0"
_DEFAULT_API_PORT = 8000
_DEFAULT_MAX_HYPOTHESES = 3
_DEFAULT_LANGUAGE = "en"
_DEFAULT_FASTTEXT_MODEL = "models/lid.176.bin"
_DEFAULT_PROVIDER_FACTORY = "textprops.infrastructure.spacy_provider:create_spacy_provider"

_DEFAULT_SPACY_MODELS = {
    "ca": "ca_core_news_sm",
    "da": "da_core_news_sm",
    "de": "de_core_news_sm",
    "el": "el_core_news_sm",
    "en": "en_core_web_sm",
    "es": "es_core_news_sm",
    "fi": "fi_core_news_sm",
    "fr": "fr_core_news_sm",
    "hr": "hr_core_news_sm",
    "it": "it_core_news_sm",
    "ja": "ja_core_news_sm",
    "ko": "ko_core_news_sm",
    "lt": "lt_core_news_sm",
    "mk": "mk_core_news_sm",
    "nb": "nb_core_news_sm",
    "nl": "nl_core_news_sm",
    "pl": "pl_core_news_sm",
    "pt": "pt_core_news_sm",
    "ro": "ro_core_news_sm",
    "ru": "ru_core_news_sm",
    "sl": "sl_core_news_sm",
    "sv": "sv_core_news_sm",
    "uk": "uk_core_news_sm",
    "zh": "zh_core_web_sm",
}


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _json_env(name: str) -> dict:
    raw = os.getenv(name)
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid JSON in environment variable {name!r}: {raw}") from exc
    if not isinstance(payload, dict):
        raise RuntimeError(f"Environment variable {name!r} must hold a JSON object")
    return payload


@lru_cache(maxsize=None)
def get_language_hints() -> dict[str, float]:
    """Return prior probabilities boosting specific languages."""

    return {str(key): float(value) for key, value in _json_env("TEXTPROPS_LANGUAGE_HINTS").items()}


@lru_cache(maxsize=None)
def get_language_constraints() -> frozenset[str]:
    """Return the languages recognition is restricted to (empty means any)."""

    raw = os.getenv("TEXTPROPS_LANGUAGE_CONSTRAINTS", "")
    return frozenset(code.strip() for code in raw.split(",") if code.strip())


@lru_cache(maxsize=None)
def get_max_hypotheses() -> int:
    """Return how many language and tag hypotheses are kept."""

    value = int(os.getenv("TEXTPROPS_MAX_HYPOTHESES", _DEFAULT_MAX_HYPOTHESES))
    if value < 1:
        raise RuntimeError("TEXTPROPS_MAX_HYPOTHESES must be at least 1")
    return value


@lru_cache(maxsize=None)
def get_analyze_concurrently() -> bool:
    """Return whether the composite analysis runs its taggers concurrently."""

    return _bool_env("TEXTPROPS_ANALYZE_CONCURRENT")


@lru_cache(maxsize=None)
def get_max_concurrency() -> int | None:
    """Return the bound on concurrently running taggers, ``None`` for no bound."""

    raw = os.getenv("TEXTPROPS_MAX_CONCURRENCY")
    if not raw:
        return None
    value = int(raw)
    if value < 1:
        raise RuntimeError("TEXTPROPS_MAX_CONCURRENCY must be at least 1")
    return value


@lru_cache(maxsize=None)
def get_serialize_provider() -> bool:
    """Return whether provider calls are serialized behind a lock."""

    return _bool_env("TEXTPROPS_SERIALIZE_PROVIDER")


@lru_cache(maxsize=None)
def get_default_language() -> str:
    """Return the language tagged with when detection is inconclusive."""

    return os.getenv("TEXTPROPS_DEFAULT_LANGUAGE", _DEFAULT_LANGUAGE)


@lru_cache(maxsize=None)
def get_spacy_models() -> dict[str, str]:
    """Return the spaCy package used for each language."""

    models = dict(_DEFAULT_SPACY_MODELS)
    models.update({str(key): str(value) for key, value in _json_env("TEXTPROPS_SPACY_MODELS").items()})
    return models


@lru_cache(maxsize=None)
def get_fasttext_model_path() -> str:
    """Return the path of the fastText language identification model."""

    return os.getenv("TEXTPROPS_FASTTEXT_MODEL", _DEFAULT_FASTTEXT_MODEL)


@lru_cache(maxsize=None)
def get_provider_factory() -> str:
    """Return the ``module:attribute`` path of the provider factory."""

    return os.getenv("TEXTPROPS_PROVIDER_FACTORY", _DEFAULT_PROVIDER_FACTORY)


@lru_cache(maxsize=None)
def get_api_port() -> int:
    """Return the port the HTTP API listens on."""

    return int(os.getenv("TEXTPROPS_API_PORT", os.getenv("PORT", _DEFAULT_API_PORT)))


@lru_cache(maxsize=None)
def get_api_bind_host() -> str:
    """Return the host Uvicorn binds to."""

    return os.getenv("TEXTPROPS_API_BIND_HOST", _DEFAULT_API_BIND_HOST)


__all__ = [
    "get_analyze_concurrently",
    "get_api_bind_host",
    "get_api_port",
    "get_default_language",
    "get_fasttext_model_path",
    "get_language_constraints",
    "get_language_hints",
    "get_max_concurrency",
    "get_max_hypotheses",
    "get_provider_factory",
    "get_serialize_provider",
    "get_spacy_models",
]
