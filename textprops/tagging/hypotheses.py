"""Hypothesis merging and validation helpers."""
from __future__ import annotations

import math
from typing import Iterable, Mapping, TypeVar

from .errors import RankerInconsistencyError
from .models import Tag

K = TypeVar("K", bound=str)

BEST_TAG_WEIGHT = 1.0


def merge_hypotheses(
    best_tag: Tag | None, hypotheses: Mapping[Tag, float]
) -> dict[Tag, float]:
    """Return ``hypotheses`` with ``best_tag`` guaranteed to be present.

    Existing entries are never removed or re-weighted. A best tag the ranker
    left out of its top hypotheses is inserted with full confidence.
    """

    merged = dict(hypotheses)
    if best_tag is not None and best_tag not in merged:
        merged[best_tag] = BEST_TAG_WEIGHT
    return merged


def validate_hypotheses(
    hypotheses: Mapping[K, float] | Iterable[tuple[K, float]],
    *,
    subject: str,
    limit: int | None = None,
) -> dict[K, float]:
    """Copy provider hypotheses into a dict after checking their invariants."""

    items = hypotheses.items() if isinstance(hypotheses, Mapping) else hypotheses
    validated: dict[K, float] = {}
    for key, probability in items:
        if not key:
            raise RankerInconsistencyError(f"Empty hypothesis key for {subject}")
        if key in validated:
            raise RankerInconsistencyError(
                f"Duplicate hypothesis {key!r} for {subject}"
            )
        value = float(probability)
        if math.isnan(value) or not 0.0 <= value <= 1.0:
            raise RankerInconsistencyError(
                f"Probability {probability!r} of {key!r} is outside [0, 1] for {subject}"
            )
        validated[key] = value
    if limit is not None and len(validated) > limit:
        raise RankerInconsistencyError(
            f"{len(validated)} hypotheses returned for {subject}, limit is {limit}"
        )
    return validated


def top_hypotheses(hypotheses: Mapping[K, float], limit: int) -> dict[K, float]:
    """Keep the ``limit`` most probable entries."""

    ranked = sorted(hypotheses.items(), key=lambda item: (-item[1], item[0]))
    return dict(ranked[: max(0, limit)])


__all__ = ["BEST_TAG_WEIGHT", "merge_hypotheses", "top_hypotheses", "validate_hypotheses"]
