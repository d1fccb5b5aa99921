"""
Tests for studio analytics, discovery availability and session reports.
"""

import pytest

from imprint.models.session import SessionResult, Summary, SwipeDecision
from imprint.services.analytics import (
    active_pool,
    category_distribution,
    discovery_availability,
    studio_analytics,
)
from imprint.services.report import build_report, export_file_name, timing_label


def make_session(session_id="s1", avg=1000.0, decisiveness=0.8, client_name=None, liked=("img-000",)):
    decisions = tuple(
        SwipeDecision(
            image_id=image_id,
            direction="like",
            response_time_ms=avg,
            room_type="Bedroom",
            style_categories=("1",),
        )
        for image_id in liked
    ) + (
        SwipeDecision(
            image_id="img-rejected",
            direction="reject",
            response_time_ms=avg,
            room_type="Bedroom",
            style_categories=("2",),
        ),
    )
    return SessionResult(
        id=session_id,
        date=1_760_875_200_000,  # 2025-10-19T12:00:00Z
        client_name=client_name,
        decisions=decisions,
        summary=Summary(
            primary_styles=["Minimalist"],
            narrative="n",
            confidence="high",
            decisiveness=decisiveness,
            average_response_time=avg,
        ),
    )


# =============================================================================
# Availability
# =============================================================================

class TestDiscoveryAvailability:

    def test_enabled_at_threshold(self, image_factory):
        library = [image_factory(i) for i in range(5)]
        info = discovery_availability(library, 5)
        assert info == {
            "pool_size": 5,
            "min_required": 5,
            "enabled": True,
            "progress_pct": 100.0,
            "remaining": 0,
        }

    def test_inactive_images_do_not_count(self, image_factory):
        library = [image_factory(i, is_active=i % 2 == 0) for i in range(6)]
        info = discovery_availability(library, 5)
        assert info["pool_size"] == 3
        assert info["enabled"] is False
        assert info["progress_pct"] == 60.0
        assert info["remaining"] == 2

    def test_progress_capped_and_remaining_non_negative(self, image_factory):
        info = discovery_availability([image_factory(i) for i in range(12)], 5)
        assert info["progress_pct"] == 100.0
        assert info["remaining"] == 0

    def test_active_pool_keeps_unset_flag(self, image_factory):
        library = [image_factory(0, is_active=None), image_factory(1, is_active=False)]
        assert [img.id for img in active_pool(library)] == ["img-000"]


# =============================================================================
# Analytics
# =============================================================================

class TestStudioAnalytics:

    def test_averages_over_sessions(self, catalog, image_factory):
        sessions = [make_session("a", avg=1000, decisiveness=0.9), make_session("b", avg=2000, decisiveness=0.5)]
        stats = studio_analytics(sessions, [image_factory(0)], catalog)
        assert stats["total_sessions"] == 2
        assert stats["average_decision_time_ms"] == 1500
        assert stats["average_decisiveness"] == pytest.approx(0.7)

    def test_no_sessions(self, catalog):
        stats = studio_analytics([], [], catalog)
        assert stats["total_sessions"] == 0
        assert stats["average_decision_time_ms"] == 0
        assert stats["average_decisiveness"] == 0
        assert stats["library_size"] == 0

    def test_category_distribution(self, catalog, image_factory):
        library = [
            image_factory(0, styles=("1",)),
            image_factory(1, styles=("1", "2")),
            image_factory(2, styles=("3",)),
            image_factory(3, styles=("1",), is_active=False),
        ]
        distribution = category_distribution(library, catalog)
        assert [d["name"] for d in distribution] == [c.name for c in catalog[:5]]
        assert distribution[0]["count"] == 3
        assert distribution[0]["percentage"] == 75.0
        assert distribution[1]["count"] == 1
        assert distribution[3]["percentage"] == 0.0

    def test_distribution_of_empty_library(self, catalog):
        assert all(d["percentage"] == 0.0 for d in category_distribution([], catalog))


# =============================================================================
# Report
# =============================================================================

class TestReport:

    def test_timing_label(self):
        assert timing_label(1499) == "Intuitive Selection"
        assert timing_label(1500) == "Deliberate Consideration"

    def test_file_name_defaults_to_export(self):
        assert export_file_name(make_session()) == "Imprint_DNA_Export_2025-10-19.pdf"
        assert export_file_name(make_session(client_name="Ada")) == "Imprint_DNA_Ada_2025-10-19.pdf"

    def test_preferred_images_only_include_library_members(self, image_factory):
        session = make_session(liked=("img-000", "img-gone"), avg=1234.6)
        report = build_report(session, [image_factory(0), image_factory(1)])
        assert report["liked_image_ids"] == ["img-000", "img-gone"]
        assert [img["id"] for img in report["preferred_images"]] == ["img-000"]
        assert report["average_response_ms"] == 1235
        assert report["timing_label"] == "Intuitive Selection"
