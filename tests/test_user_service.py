"""
tests/test_user_service.py — Accounts, Stats & Deletion Tests
===============================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from playhub.constants import EntityType
from playhub.database.models import Comment, Post, Report, User, UserGameProgress, Vote
from playhub.engine.votes import LIKE
from playhub.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from playhub.identity import Identity
from playhub.services import (
    post_service,
    progress_service,
    report_service,
    review_service,
    thread_service,
    user_service,
    vote_service,
)


class TestCreateUser:
    def test_blank_name_rejected(self, db_engine):
        with pytest.raises(ValidationError):
            user_service.create_user(db_engine, "   ")

    def test_duplicate_email_conflicts(self, db_engine):
        user_service.create_user(db_engine, "A", email="a@example.com")
        with pytest.raises(ConflictError):
            user_service.create_user(db_engine, "B", email="a@example.com")

    def test_get_unknown(self, db_engine):
        with pytest.raises(NotFoundError):
            user_service.get_user(db_engine, 1234)


class TestLogins:
    def test_login_count_increments(self, db_engine, alice):
        assert user_service.record_login(db_engine, alice.user_id) == 1
        assert user_service.record_login(db_engine, alice.user_id) == 2
        assert user_service.get_user(db_engine, alice.user_id)["login_count"] == 2


class TestStats:
    def test_totals(self, db_engine, catalog, alice):
        progress_service.update_progress(
            db_engine, alice.user_id, "celeste", owned=True, completed=True, hours_played=10,
        )
        progress_service.update_progress(
            db_engine, alice.user_id, "hades", wishlisted=True, hours_played=2.5,
        )
        review_service.create_review(db_engine, catalog, alice, game_id="celeste", score=5)

        stats = user_service.user_stats(db_engine, alice.user_id)
        assert stats["total_hours_played"] == 12.5
        assert stats["games_completed"] == 1
        assert stats["library_size"] == 1
        assert stats["wishlist_size"] == 1
        assert stats["reviews_written"] == 1
        # collector, finisher, dreamer, first_review
        assert stats["achievements_unlocked"] == 4


class TestDeleteUser:
    def test_only_self_or_admin(self, db_engine, alice, bob):
        with pytest.raises(ForbiddenError):
            user_service.delete_user(db_engine, alice.user_id, bob)

    def test_per_user_state_removed_content_kept(self, db_engine, db_session, alice, bob):
        post = post_service.create_post(db_engine, alice, title="t", body="b")
        thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "nice")
        vote_service.cast_vote(db_engine, EntityType.POST, post.id, bob, LIKE)
        report_service.file_report(db_engine, EntityType.POST, post.id, bob, "jk")
        progress_service.update_progress(db_engine, bob.user_id, "hades", owned=True)

        user_service.delete_user(db_engine, bob.user_id, bob)

        assert db_session.get(User, bob.user_id) is None
        for model in (Vote, Report, UserGameProgress):
            assert db_session.scalar(select(func.count()).select_from(model)) == 0
        comment = db_session.scalar(select(Comment))
        assert comment.author_id is None
        assert comment.author_name == "Bob"
        assert db_session.scalar(select(func.count()).select_from(Post)) == 1

    def test_admin_deletes_author(self, db_engine, db_session, alice, admin):
        post = post_service.create_post(db_engine, alice, title="t", body="b")
        user_service.delete_user(db_engine, alice.user_id, admin)
        view = post_service.get_post(db_engine, post.id)
        assert view["author_id"] is None
        assert view["author_name"] == "Alice"


class TestTokenIdentities:
    """Members are created the first time a token identity acts."""

    def test_first_login_registers_member(self, db_engine):
        assert user_service.record_login(db_engine, 4242, display_name="Newcomer") == 1
        user = user_service.get_user(db_engine, 4242)
        assert user["display_name"] == "Newcomer"
        assert user["login_count"] == 1

    def test_unknown_id_without_name_is_not_found(self, db_engine):
        with pytest.raises(NotFoundError):
            user_service.record_login(db_engine, 4242)

    def test_existing_row_keeps_its_name(self, db_engine, alice):
        user_service.update_user(db_engine, alice.user_id, alice, display_name="Alice B.")
        user_service.record_login(db_engine, alice.user_id, display_name="Alice")
        assert user_service.get_user(db_engine, alice.user_id)["display_name"] == "Alice B."

    def test_first_post_registers_member(self, db_engine, db_session):
        newcomer = Identity(user_id=5150, display_name="Fresh")
        post = post_service.create_post(db_engine, newcomer, title="Hi", body="New here")
        assert post.author_id == 5150
        assert db_session.get(User, 5150).display_name == "Fresh"


class TestUpdateUser:
    def test_self_update(self, db_engine, alice):
        result = user_service.update_user(
            db_engine, alice.user_id, alice, display_name="  Alice B.  ", email="a@b.test",
        )
        assert result["display_name"] == "Alice B."

    def test_admin_may_update_others(self, db_engine, alice, admin):
        result = user_service.update_user(db_engine, alice.user_id, admin, display_name="Al")
        assert result["display_name"] == "Al"

    def test_others_forbidden(self, db_engine, alice, bob):
        with pytest.raises(ForbiddenError):
            user_service.update_user(db_engine, alice.user_id, bob, display_name="Pwned")

    @pytest.mark.parametrize(
        "fields",
        [{}, {"display_name": "   "}, {"display_name": "x" * 101}, {"email": "nope"}],
    )
    def test_invalid_fields(self, db_engine, alice, fields):
        with pytest.raises(ValidationError):
            user_service.update_user(db_engine, alice.user_id, alice, **fields)

    def test_email_taken(self, db_engine, alice, bob):
        user_service.update_user(db_engine, alice.user_id, alice, email="shared@x.test")
        with pytest.raises(ConflictError):
            user_service.update_user(db_engine, bob.user_id, bob, email="shared@x.test")

    def test_published_content_keeps_old_name(self, db_engine, alice):
        post = post_service.create_post(db_engine, alice, title="t", body="b")
        user_service.update_user(db_engine, alice.user_id, alice, display_name="Renamed")
        assert post_service.get_post(db_engine, post.id)["author_name"] == "Alice"


class TestFavoriteGenre:
    def test_unset_is_none(self, db_engine, alice):
        assert user_service.get_favorite_genre(db_engine, alice.user_id) == {
            "user_id": alice.user_id, "genre": None,
        }

    def test_set_and_overwrite(self, db_engine, alice):
        user_service.set_favorite_genre(db_engine, alice.user_id, alice, " roguelike ")
        user_service.set_favorite_genre(db_engine, alice.user_id, alice, "metroidvania")
        assert user_service.get_favorite_genre(db_engine, alice.user_id)["genre"] == "metroidvania"
        assert user_service.get_user(db_engine, alice.user_id)["favorite_genre"] == "metroidvania"

    @pytest.mark.parametrize("genre", ["", "   ", None, "g" * 51])
    def test_invalid_genre(self, db_engine, alice, genre):
        with pytest.raises(ValidationError):
            user_service.set_favorite_genre(db_engine, alice.user_id, alice, genre)

    def test_others_forbidden(self, db_engine, alice, bob):
        with pytest.raises(ForbiddenError):
            user_service.set_favorite_genre(db_engine, alice.user_id, bob, "puzzle")

    def test_unknown_user(self, db_engine):
        with pytest.raises(NotFoundError):
            user_service.get_favorite_genre(db_engine, 999)
