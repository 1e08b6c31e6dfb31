"""Availability checks for the models backing each tag scheme."""
from __future__ import annotations

import logging

from .errors import AssetError, AssetFetchFailedError, AssetUnavailableError
from .models import (
    AssetOutcome,
    LanguageCode,
    LanguageModelProvider,
    TagScheme,
    TokenGranularity,
)


class AssetAvailabilityGate:
    """Make sure the provider can tag a scheme before the pipeline uses it."""

    def __init__(self, provider: LanguageModelProvider) -> None:
        self._provider = provider
        self._log = logging.getLogger("textprops.tagging.assets")

    async def ensure(
        self,
        language: LanguageCode,
        scheme: TagScheme,
        granularity: TokenGranularity,
    ) -> None:
        """Return once ``scheme`` is usable for ``language`` or raise :class:`AssetError`.

        Schemes the provider already lists as available return without
        suspending. Otherwise the asset is requested and the call waits for
        the provider; cancellation of the waiting task propagates.
        """

        available = self._provider.available_schemes(granularity, language)
        if scheme in available:
            return

        self._log.info(
            "Requesting %s model for language %s", scheme.value, language
        )
        try:
            outcome = await self._provider.request_asset(language, scheme)
        except AssetError:
            raise
        except Exception as exc:
            raise AssetFetchFailedError(language, scheme, str(exc)) from exc

        outcome = _coerce_outcome(outcome)
        if outcome is AssetOutcome.AVAILABLE:
            self._log.info("Model for %s/%s is now available", language, scheme.value)
            return
        if outcome is AssetOutcome.NOT_AVAILABLE:
            raise AssetUnavailableError(language, scheme)
        if outcome is AssetOutcome.FETCH_FAILED:
            raise AssetFetchFailedError(language, scheme)

        self._log.warning(
            "Unknown asset outcome for %s/%s, continuing", language, scheme.value
        )


def _coerce_outcome(outcome: object) -> AssetOutcome:
    if isinstance(outcome, AssetOutcome):
        return outcome
    return AssetOutcome(outcome)


__all__ = ["AssetAvailabilityGate"]
