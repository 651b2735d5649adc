"""Review score aggregation.

Reviews do not carry their rubric, so the scale is guessed from magnitude:
an average above the nominal 0-5 scale is read as a sum of five 0-5
criteria and rescaled onto 0-5.
"""

from __future__ import annotations

from typing import Iterable

from dpub.config import (
    ACCEPTANCE_THRESHOLD,
    NOMINAL_SCALE_MAX,
    REQUIRED_REVIEWS,
    SUMMED_SCALE_MAX,
)
from dpub.reviews.models import Review, ReviewSummary


def normalize_score(average: float) -> float:
    """Rescale a summed-criteria average onto the nominal 0-5 scale.

    >>> normalize_score(4.2)
    4.2
    >>> normalize_score(20)
    4.0
    """
    if average > NOMINAL_SCALE_MAX:
        return (average / SUMMED_SCALE_MAX) * NOMINAL_SCALE_MAX
    return average


def aggregate_reviews(reviews: Iterable[Review]) -> ReviewSummary:
    """Average the scores of *reviews* and decide whether they pass."""
    scores = [r.score for r in reviews]
    count = len(scores)
    average = sum(scores) / count if count else 0.0
    average = normalize_score(average)
    return ReviewSummary(
        average_score=average,
        review_count=count,
        passes_threshold=average >= ACCEPTANCE_THRESHOLD and count >= REQUIRED_REVIEWS,
    )
