"""
tests/test_reports.py — Moderation Report Tests
=================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import false, func, select

from playhub.constants import EntityType
from playhub.database.models import Report
from playhub.errors import ConflictError, NotFoundError, TooManyRequestsError, ValidationError
from playhub.services import post_service, report_service


@pytest.fixture
def post(db_engine, alice):
    return post_service.create_post(db_engine, alice, title="Free keys!!", body="click here")


def _report_count(session) -> int:
    return session.scalar(select(func.count()).select_from(Report))


class TestFileReport:
    def test_report_recorded(self, db_engine, db_session, post, bob):
        report = report_service.file_report(
            db_engine, EntityType.POST, post.id, bob, "  spam  ",
        )
        assert report.reason == "spam"
        assert _report_count(db_session) == 1
        assert post_service.get_post(db_engine, post.id)["report_count"] == 1

    def test_second_report_conflicts(self, db_engine, db_session, post, bob):
        report_service.file_report(db_engine, EntityType.POST, post.id, bob, "spam")
        with pytest.raises(ConflictError):
            report_service.file_report(db_engine, EntityType.POST, post.id, bob, "still spam")
        assert _report_count(db_session) == 1
        stored = db_session.scalar(select(Report.reason))
        assert stored == "spam"

    def test_duplicate_is_conflict_even_inside_throttle_window(
        self, db_engine, post, bob, throttle,
    ):
        report_service.file_report(
            db_engine, EntityType.POST, post.id, bob, "spam", throttle=throttle,
        )
        with pytest.raises(ConflictError):
            report_service.file_report(
                db_engine, EntityType.POST, post.id, bob, "spam", throttle=throttle,
            )

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_empty_reason_rejected(self, db_engine, post, bob, reason):
        with pytest.raises(ValidationError):
            report_service.file_report(db_engine, EntityType.POST, post.id, bob, reason)

    def test_unknown_entity(self, db_engine, bob):
        with pytest.raises(NotFoundError):
            report_service.file_report(db_engine, EntityType.REVIEW, 77, bob, "spam")

    def test_throttled_across_entities(self, db_engine, db_session, post, alice, bob, throttle):
        other = post_service.create_post(db_engine, alice, title="More keys", body="again")
        report_service.file_report(
            db_engine, EntityType.POST, post.id, bob, "spam", throttle=throttle,
        )
        with pytest.raises(TooManyRequestsError) as exc_info:
            report_service.file_report(
                db_engine, EntityType.POST, other.id, bob, "spam", throttle=throttle,
            )
        assert exc_info.value.retry_after > 0
        assert _report_count(db_session) == 1

    def test_different_users_may_report(self, db_engine, db_session, post, bob, admin):
        report_service.file_report(db_engine, EntityType.POST, post.id, bob, "spam")
        report_service.file_report(db_engine, EntityType.POST, post.id, admin, "confirmed")
        assert _report_count(db_session) == 2


class TestThrottleOnFailedInsert:
    def test_racing_duplicate_does_not_use_up_window(
        self, db_engine, db_session, post, alice, bob, throttle, monkeypatch,
    ):
        """A duplicate that slips past the read and hits the unique constraint
        leaves the reporter free to report something else straight away."""
        db_session.add(Report(
            entity_type=EntityType.POST, entity_id=post.id, user_id=bob.user_id, reason="spam",
        ))
        db_session.commit()

        real_select = report_service.select
        monkeypatch.setattr(
            report_service, "select", lambda *cols: real_select(*cols).where(false()),
        )
        with pytest.raises(ConflictError):
            report_service.file_report(
                db_engine, EntityType.POST, post.id, bob, "spam", throttle=throttle,
            )
        monkeypatch.undo()

        other = post_service.create_post(db_engine, alice, title="More keys", body="again")
        report_service.file_report(
            db_engine, EntityType.POST, other.id, bob, "spam", throttle=throttle,
        )
        assert _report_count(db_session) == 2
