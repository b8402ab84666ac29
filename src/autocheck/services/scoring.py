"""Aggregate scoring across room entries."""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from autocheck.domain.rooms import GlobalSummary, Phase, RoomEntry, RoomStatus

EXCELLENT_THRESHOLD = 90
GOOD_THRESHOLD = 70
FAIR_THRESHOLD = 50


def compute_global(entries: Sequence[RoomEntry]) -> GlobalSummary:
    """Derive the global score and phase from a snapshot of entries.

    Errored entries are excluded from the average rather than counted as zero.
    """
    if not entries:
        return GlobalSummary(score=0, phase=Phase.IDLE)
    if any(entry.status is RoomStatus.ANALYZING for entry in entries):
        phase = Phase.ANALYZING
    else:
        phase = Phase.RESULTS
    scores = [
        entry.result.score
        for entry in entries
        if entry.status is RoomStatus.COMPLETE and entry.result is not None
    ]
    return GlobalSummary(score=_rounded_mean(scores), phase=phase)


def score_band(score: int) -> str:
    """Map a score to its display band."""
    if score >= EXCELLENT_THRESHOLD:
        return "excellent"
    if score >= GOOD_THRESHOLD:
        return "good"
    if score >= FAIR_THRESHOLD:
        return "fair"
    return "poor"


def _rounded_mean(scores: list[int]) -> int:
    """Round the mean half away from zero; an empty list scores 0."""
    if not scores:
        return 0
    mean = Decimal(sum(scores)) / Decimal(len(scores))
    return int(mean.quantize(Decimal(1), rounding=ROUND_HALF_UP))
