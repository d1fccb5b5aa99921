"""
Preference inference engine.

Turns the ordered list of swipe decisions from a finished discovery session
into a style profile: weighted primary/secondary styles, a decisiveness score
with its confidence label, and a templated narrative. Pure functions only;
the same inputs always produce the same ``Summary``.
"""

from __future__ import annotations

from collections.abc import Sequence

from imprint.config import (
    BASELINE_NARRATIVE,
    BLEND_TEMPLATE,
    CONFIDENT_MAX_MS,
    CONFIDENT_WEIGHT,
    CONSISTENT_TONE,
    CONSISTENT_TONE_ABOVE,
    DECISIVENESS_CEILING,
    DECISIVENESS_FLOOR,
    DECISIVENESS_TIME_SCALE_MS,
    DEFINITIVE_TEMPLATE,
    DELIBERATE_WEIGHT,
    INSTINCTIVE_MAX_MS,
    INSTINCTIVE_TONE,
    INSTINCTIVE_TONE_ABOVE,
    INSTINCTIVE_WEIGHT,
    LOW_CONFIDENCE_BELOW,
    MODERATE_CONFIDENCE_BELOW,
    NARRATIVE_TEMPLATE,
    NO_PREFERENCE_NARRATIVE,
    PRIMARY_STYLE_COUNT,
    SECONDARY_STYLE_COUNT,
    THOUGHTFUL_TONE,
    UNDERTONE_TEMPLATE,
    UNDO_PENALTY,
)
from imprint.models.library import StyleCategory
from imprint.models.session import Confidence, Summary, SwipeDecision


# ---------------------------------------------------------------------------
# Weighting
# ---------------------------------------------------------------------------

def response_weight(response_time_ms: float) -> float:
    """Influence of a liked decision, determined only by how fast it was made.

    Instinctive (< 1.2s) 3.0, confident (1.2s - 2.5s) 1.5, deliberate
    (> 2.5s) 0.8.
    """
    if response_time_ms < INSTINCTIVE_MAX_MS:
        return INSTINCTIVE_WEIGHT
    if response_time_ms > CONFIDENT_MAX_MS:
        return DELIBERATE_WEIGHT
    return CONFIDENT_WEIGHT


def accumulate_style_weights(decisions: Sequence[SwipeDecision]) -> dict[str, float]:
    """Sum the weight of every liked decision into each style id it carries.

    The returned dict preserves the order in which ids were first seen.
    """
    weights: dict[str, float] = {}
    for decision in decisions:
        if decision.direction != "like":
            continue
        weight = response_weight(decision.response_time_ms)
        for category_id in decision.style_categories:
            weights[category_id] = weights.get(category_id, 0.0) + weight
    return weights


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def rank_styles(
    weights: dict[str, float],
    categories: Sequence[StyleCategory],
) -> list[str]:
    """Return style names ordered by accumulated weight, heaviest first.

    Equal weights are ordered by the catalog's declaration order. Ids with no
    catalog entry are dropped.
    """
    catalog_order = {c.id: idx for idx, c in enumerate(categories)}
    names_by_id = {c.id: c.name for c in categories}

    known_ids = [cid for cid in weights if cid in names_by_id]
    known_ids.sort(key=lambda cid: (-weights[cid], catalog_order[cid]))

    names: list[str] = []
    for cid in known_ids:
        name = names_by_id[cid]
        if name not in names:
            names.append(name)
    return names


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------

def average_response_time(decisions: Sequence[SwipeDecision]) -> float:
    """Mean response time over all decisions; 0 for an empty session."""
    total = sum(d.response_time_ms for d in decisions)
    return total / (len(decisions) or 1)


def decisiveness_score(average_ms: float, undo_count: int) -> float:
    raw = 1.0 - (average_ms / DECISIVENESS_TIME_SCALE_MS) - (undo_count * UNDO_PENALTY)
    return min(DECISIVENESS_CEILING, max(DECISIVENESS_FLOOR, raw))


def confidence_label(decisiveness: float) -> Confidence:
    if decisiveness < LOW_CONFIDENCE_BELOW:
        return "low"
    if decisiveness < MODERATE_CONFIDENCE_BELOW:
        return "moderate"
    return "high"


# ---------------------------------------------------------------------------
# Narrative
# ---------------------------------------------------------------------------

def generate_narrative(
    primary: Sequence[str],
    secondary: Sequence[str],
    decisiveness: float,
) -> str:
    """Assemble the profile narrative from fixed templates."""
    if not primary:
        return BASELINE_NARRATIVE

    if len(primary) > 1:
        main = BLEND_TEMPLATE.format(first=primary[0], second=primary[1])
    else:
        main = DEFINITIVE_TEMPLATE.format(first=primary[0])

    support = ""
    if secondary:
        support = UNDERTONE_TEMPLATE.format(styles=" and ".join(secondary))

    if decisiveness > INSTINCTIVE_TONE_ABOVE:
        tone = INSTINCTIVE_TONE
    elif decisiveness > CONSISTENT_TONE_ABOVE:
        tone = CONSISTENT_TONE
    else:
        tone = THOUGHTFUL_TONE

    return NARRATIVE_TEMPLATE.format(main=main, support=support, tone=tone)


# ---------------------------------------------------------------------------
# Main entry-point
# ---------------------------------------------------------------------------

def analyze_session(
    decisions: Sequence[SwipeDecision],
    categories: Sequence[StyleCategory],
) -> Summary:
    """Infer a style ``Summary`` from a session's decisions.

    Parameters
    ----------
    decisions:
        The session's decisions in the order they were made (post-undo).
    categories:
        The style catalog used to resolve ids to display names.
    """
    average_ms = average_response_time(decisions)

    if not any(d.direction == "like" for d in decisions):
        return Summary(
            primary_styles=[],
            secondary_styles=[],
            narrative=NO_PREFERENCE_NARRATIVE,
            confidence="low",
            decisiveness=0.0,
            average_response_time=average_ms,
        )

    names = rank_styles(accumulate_style_weights(decisions), categories)
    primary = names[:PRIMARY_STYLE_COUNT]
    secondary = names[PRIMARY_STYLE_COUNT:PRIMARY_STYLE_COUNT + SECONDARY_STYLE_COUNT]

    undo_count = sum(1 for d in decisions if d.undo_used)
    decisiveness = decisiveness_score(average_ms, undo_count)

    return Summary(
        primary_styles=primary,
        secondary_styles=secondary,
        narrative=generate_narrative(primary, secondary, decisiveness),
        confidence=confidence_label(decisiveness),
        decisiveness=decisiveness,
        average_response_time=average_ms,
    )
