"""Summary report data for a finished session (consumed by export views)."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from imprint.config import INTUITIVE_AVERAGE_BELOW_MS
from imprint.models.library import LibraryImage
from imprint.models.session import SessionResult


def liked_image_ids(session: SessionResult) -> list[str]:
    return [d.image_id for d in session.decisions if d.direction == "like"]


def timing_label(average_ms: int) -> str:
    if average_ms < INTUITIVE_AVERAGE_BELOW_MS:
        return "Intuitive Selection"
    return "Deliberate Consideration"


def export_file_name(session: SessionResult) -> str:
    """File name the export view uses, e.g. ``Imprint_DNA_Ada_2026-10-19.pdf``."""
    day = datetime.fromtimestamp(session.date / 1000, tz=timezone.utc).date().isoformat()
    return f"Imprint_DNA_{session.client_name or 'Export'}_{day}.pdf"


def build_report(session: SessionResult, library: Sequence[LibraryImage]) -> dict:
    """Collect everything the summary screen shows for *session*.

    Liked images that have since been removed from the library are left out
    of ``preferred_images`` but still counted in ``liked_image_ids``.
    """
    liked = liked_image_ids(session)
    liked_set = set(liked)
    preferred = [img for img in library if img.id in liked_set]
    avg_ms = round(session.summary.average_response_time)

    return {
        "session_id": session.id,
        "client_name": session.client_name,
        "date": session.date,
        "summary": session.summary.model_dump(),
        "liked_image_ids": liked,
        "preferred_images": [img.model_dump() for img in preferred],
        "average_response_ms": avg_ms,
        "timing_label": timing_label(avg_ms),
        "file_name": export_file_name(session),
    }
