"""HTTP surface for the text analyses."""

from .app import (
    AnalysisConfig,
    AnalysisContainer,
    build_analysis_container,
    create_app,
    include_routes,
    load_provider,
    run_api,
)

__all__ = [
    "AnalysisConfig",
    "AnalysisContainer",
    "build_analysis_container",
    "create_app",
    "include_routes",
    "load_provider",
    "run_api",
]
