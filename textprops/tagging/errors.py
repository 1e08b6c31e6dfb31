"""Exceptions raised by the tagging pipeline."""
from __future__ import annotations

from .models import LanguageCode, TagScheme


class TextAnalysisError(Exception):
    """Base class for every failure surfaced by the pipeline."""


class AssetError(TextAnalysisError):
    """The model needed to tag ``scheme`` in ``language`` could not be used."""

    def __init__(self, language: LanguageCode, scheme: TagScheme, message: str) -> None:
        super().__init__(message)
        self.language = language
        self.scheme = scheme


class AssetUnavailableError(AssetError):
    """The provider has no model for the language and scheme."""

    def __init__(self, language: LanguageCode, scheme: TagScheme) -> None:
        super().__init__(
            language,
            scheme,
            f"Tag scheme {scheme.value!r} is unavailable for language {language!r}",
        )


class AssetFetchFailedError(AssetError):
    """Fetching the model failed at the provider level."""

    def __init__(
        self, language: LanguageCode, scheme: TagScheme, reason: str | None = None
    ) -> None:
        message = f"Failed to fetch {scheme.value!r} model for language {language!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(language, scheme, message)


class RankerInconsistencyError(TextAnalysisError):
    """The provider returned spans or hypotheses that break the data model."""


__all__ = [
    "AssetError",
    "AssetFetchFailedError",
    "AssetUnavailableError",
    "RankerInconsistencyError",
    "TextAnalysisError",
]
