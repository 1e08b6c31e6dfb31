"""textprops - language identification and text tagging pipeline."""
from .tagging import (
    AnalysisResult,
    AssetError,
    AssetFetchFailedError,
    AssetUnavailableError,
    LanguageIdentificationResult,
    LanguageRecognizerConfig,
    RankerInconsistencyError,
    Span,
    TaggerOptions,
    TaggingPipeline,
    TagScheme,
    TextPropertyService,
    TokenGranularity,
)

__all__ = [
    "AnalysisResult",
    "AssetError",
    "AssetFetchFailedError",
    "AssetUnavailableError",
    "LanguageIdentificationResult",
    "LanguageRecognizerConfig",
    "RankerInconsistencyError",
    "Span",
    "TagScheme",
    "TaggerOptions",
    "TaggingPipeline",
    "TextPropertyService",
    "TokenGranularity",
]
