"""
tests/test_review_service.py — Review Lifecycle Tests
=======================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from playhub.constants import EntityType
from playhub.database.models import Comment, ProgressReview, Reply, Report, Review, Vote
from playhub.engine.votes import LIKE
from playhub.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PreconditionFailedError,
    TooManyRequestsError,
    ValidationError,
)
from playhub.services import (
    achievement_service,
    progress_service,
    report_service,
    review_service,
    thread_service,
    vote_service,
)


@pytest.fixture
def library(db_engine, alice):
    """Alice owns Celeste and Hades."""
    for game in ("celeste", "hades"):
        progress_service.update_progress(
            db_engine, alice.user_id, game, owned=True, hours_played=12.5,
        )
    return alice


def _review(db_engine, catalog, author, game="celeste", **kwargs):
    kwargs.setdefault("score", 4.5)
    return review_service.create_review(db_engine, catalog, author, game_id=game, **kwargs)


class TestCreateReview:
    def test_review_created_and_linked_to_progress(self, db_engine, catalog, library):
        review = _review(db_engine, catalog, library, subject="Tough love", body="Great.")
        assert review.author_name == "Alice"
        assert review.hours_played == 12.5  # taken from the progress row
        progress = progress_service.get_progress(db_engine, library.user_id, "celeste")
        assert progress["review_ids"] == [review.id]

    def test_game_must_exist_in_catalog(self, db_engine, catalog, library):
        with pytest.raises(NotFoundError):
            _review(db_engine, catalog, library, game="half-life-3")

    def test_requires_progress_record(self, db_engine, catalog, bob):
        with pytest.raises(PreconditionFailedError):
            _review(db_engine, catalog, bob)

    def test_second_review_for_same_game_conflicts(self, db_engine, db_session, catalog, library):
        _review(db_engine, catalog, library)
        with pytest.raises(ConflictError):
            _review(db_engine, catalog, library, score=1.0)
        assert db_session.scalar(select(func.count()).select_from(Review)) == 1

    @pytest.mark.parametrize("score", [-0.5, 5.01, float("nan"), True, "4"])
    def test_score_out_of_range(self, db_engine, catalog, library, score):
        with pytest.raises(ValidationError):
            _review(db_engine, catalog, library, score=score)

    @pytest.mark.parametrize("score", [0, 5, 2.5])
    def test_score_bounds_inclusive(self, db_engine, catalog, library, score):
        assert _review(db_engine, catalog, library, score=score).score == float(score)

    def test_negative_hours_rejected(self, db_engine, catalog, library):
        with pytest.raises(ValidationError):
            _review(db_engine, catalog, library, hours_played=-1)

    def test_throttled(self, db_engine, db_session, catalog, library, throttle):
        _review(db_engine, catalog, library, throttle=throttle)
        with pytest.raises(TooManyRequestsError):
            _review(db_engine, catalog, library, game="hades", throttle=throttle)
        assert db_session.scalar(select(func.count()).select_from(Review)) == 1

    def test_first_review_achievement(self, db_engine, catalog, library):
        _review(db_engine, catalog, library)
        codes = [a["code"] for a in achievement_service.list_unlocked(db_engine, library.user_id)]
        assert "first_review" in codes


class TestListAndEdit:
    def test_list_by_game_newest_first(self, db_engine, catalog, library, bob):
        progress_service.update_progress(db_engine, bob.user_id, "celeste", owned=True)
        first = _review(db_engine, catalog, library)
        second = _review(db_engine, catalog, bob, score=3.0)
        _review(db_engine, catalog, library, game="hades")

        reviews = review_service.list_reviews(db_engine, game_id="celeste")
        assert [r["id"] for r in reviews] == [second.id, first.id]
        assert all(r["kind"] == "review" for r in reviews)

    def test_list_by_author(self, db_engine, catalog, library):
        _review(db_engine, catalog, library)
        _review(db_engine, catalog, library, game="hades")
        assert len(review_service.list_reviews(db_engine, author_id=library.user_id)) == 2

    def test_edit_overwrites_only_given_fields(self, db_engine, catalog, library):
        review = _review(db_engine, catalog, library, subject="Hard", recommend=True)
        edited = review_service.edit_review(db_engine, review.id, library, score=5.0)
        assert edited.score == 5.0
        assert edited.subject == "Hard"
        assert edited.recommend is True
        assert edited.edited_at is not None

    def test_only_author_edits(self, db_engine, catalog, library, admin):
        review = _review(db_engine, catalog, library)
        with pytest.raises(ForbiddenError):
            review_service.edit_review(db_engine, review.id, admin, score=0.5)


class TestDeleteReview:
    def test_delete_prunes_progress_and_interactions(
        self, db_engine, db_session, catalog, library, bob,
    ):
        review = _review(db_engine, catalog, library)
        vote_service.cast_vote(db_engine, EntityType.REVIEW, review.id, bob, LIKE)
        comment = thread_service.add_comment(
            db_engine, EntityType.REVIEW, review.id, bob, "agreed",
        )
        thread_service.add_reply(
            db_engine, EntityType.REVIEW, review.id, comment.id, library, "thanks",
        )
        report_service.file_report(db_engine, EntityType.REVIEW, review.id, bob, "spoilers")

        review_service.delete_review(db_engine, review.id, library)

        for model in (Review, ProgressReview, Vote, Comment, Reply, Report):
            assert db_session.scalar(select(func.count()).select_from(model)) == 0
        progress = progress_service.get_progress(db_engine, library.user_id, "celeste")
        assert progress["review_ids"] == []

    def test_admin_may_delete(self, db_engine, catalog, library, admin):
        review = _review(db_engine, catalog, library)
        review_service.delete_review(db_engine, review.id, admin)
        with pytest.raises(NotFoundError):
            review_service.get_review(db_engine, review.id)

    def test_stranger_may_not_delete(self, db_engine, catalog, library, bob):
        review = _review(db_engine, catalog, library)
        with pytest.raises(ForbiddenError):
            review_service.delete_review(db_engine, review.id, bob)

    def test_can_review_again_after_delete(self, db_engine, catalog, library):
        review = _review(db_engine, catalog, library)
        review_service.delete_review(db_engine, review.id, library)
        again = _review(db_engine, catalog, library, score=2.0)
        progress = progress_service.get_progress(db_engine, library.user_id, "celeste")
        assert progress["review_ids"] == [again.id]
