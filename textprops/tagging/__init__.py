"""Language identification and tagging pipeline components."""
from .assets import AssetAvailabilityGate
from .errors import (
    AssetError,
    AssetFetchFailedError,
    AssetUnavailableError,
    RankerInconsistencyError,
    TextAnalysisError,
)
from .hypotheses import merge_hypotheses
from .language import LanguageIdentifier, LanguageRecognizerConfig
from .models import (
    AssetOutcome,
    LanguageCode,
    LanguageIdentificationResult,
    LanguageModelProvider,
    LexicalClass,
    NameType,
    Span,
    Tag,
    TaggerOptions,
    TagScheme,
    TokenGranularity,
    TokenType,
)
from .pipeline import TaggingPipeline
from .service import AnalysisResult, TextPropertyService

__all__ = [
    "AnalysisResult",
    "AssetAvailabilityGate",
    "AssetError",
    "AssetFetchFailedError",
    "AssetOutcome",
    "AssetUnavailableError",
    "LanguageCode",
    "LanguageIdentificationResult",
    "LanguageIdentifier",
    "LanguageModelProvider",
    "LanguageRecognizerConfig",
    "LexicalClass",
    "NameType",
    "RankerInconsistencyError",
    "Span",
    "Tag",
    "TagScheme",
    "TaggerOptions",
    "TaggingPipeline",
    "TextAnalysisError",
    "TextPropertyService",
    "TokenGranularity",
    "TokenType",
    "merge_hypotheses",
]
