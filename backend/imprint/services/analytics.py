"""
Studio analytics.

Aggregates persisted session results and the image library into the numbers
shown on the analytics screen, and computes whether the active pool is large
enough for discovery to be offered at all.
"""

from __future__ import annotations

from collections.abc import Sequence

from imprint.models.library import LibraryImage, StyleCategory
from imprint.models.session import SessionResult

# Number of catalog categories shown in the library distribution panel
DISTRIBUTION_CATEGORY_COUNT = 5


def active_pool(library: Sequence[LibraryImage]) -> list[LibraryImage]:
    """Images eligible for discovery sessions."""
    return [img for img in library if img.in_pool]


def discovery_availability(library: Sequence[LibraryImage], min_required: int) -> dict:
    """Report whether the active pool meets the studio's minimum size.

    Returns a dict with ``pool_size``, ``min_required``, ``enabled``,
    ``progress_pct`` (capped at 100) and ``remaining`` (never negative).
    """
    pool_size = len(active_pool(library))
    if min_required > 0:
        progress = min(100.0, pool_size / min_required * 100.0)
    else:
        progress = 100.0

    return {
        "pool_size": pool_size,
        "min_required": min_required,
        "enabled": pool_size >= min_required,
        "progress_pct": round(progress, 2),
        "remaining": max(0, min_required - pool_size),
    }


def category_distribution(
    library: Sequence[LibraryImage],
    categories: Sequence[StyleCategory],
    limit: int = DISTRIBUTION_CATEGORY_COUNT,
) -> list[dict]:
    """Share of library images tagged with each of the first *limit* categories."""
    total = len(library)
    distribution: list[dict] = []
    for category in list(categories)[:limit]:
        count = sum(1 for img in library if category.id in img.style_categories)
        percentage = (count / total * 100.0) if total > 0 else 0.0
        distribution.append(
            {
                "id": category.id,
                "name": category.name,
                "count": count,
                "percentage": round(percentage, 2),
            }
        )
    return distribution


def studio_analytics(
    sessions: Sequence[SessionResult],
    library: Sequence[LibraryImage],
    categories: Sequence[StyleCategory],
) -> dict:
    """Aggregate statistics across all persisted sessions."""
    total_sessions = len(sessions)

    if total_sessions > 0:
        avg_decision_time = (
            sum(s.summary.average_response_time for s in sessions) / total_sessions
        )
        avg_decisiveness = sum(s.summary.decisiveness for s in sessions) / total_sessions
    else:
        avg_decision_time = 0.0
        avg_decisiveness = 0.0

    return {
        "total_sessions": total_sessions,
        "average_decision_time_ms": round(avg_decision_time, 2),
        "average_decisiveness": round(avg_decisiveness, 4),
        "library_size": len(library),
        "active_pool_size": len(active_pool(library)),
        "category_distribution": category_distribution(library, categories),
    }
