"""
tests/test_threads.py — Comment & Reply Tests
===============================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from playhub.constants import EntityType
from playhub.database.models import Comment, Reply
from playhub.errors import ForbiddenError, NotFoundError, ValidationError
from playhub.services import post_service, thread_service


@pytest.fixture
def post(db_engine, alice):
    return post_service.create_post(db_engine, alice, title="LFG", body="Anyone for co-op?")


class TestAddComment:
    def test_comment_is_trimmed_and_listed(self, db_engine, post, bob):
        thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "  hello  ")
        view = post_service.get_post(db_engine, post.id)
        assert len(view["comments"]) == 1
        assert view["comments"][0]["text"] == "hello"
        assert view["comments"][0]["author_name"] == "Bob"

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text_rejected(self, db_engine, post, bob, text):
        with pytest.raises(ValidationError):
            thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, text)

    def test_unknown_entity(self, db_engine, bob):
        with pytest.raises(NotFoundError):
            thread_service.add_comment(db_engine, EntityType.POST, 404, bob, "hi")

    def test_comments_listed_in_creation_order(self, db_engine, post, bob, alice):
        for text in ("first", "second", "third"):
            thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, text)
        thread_service.add_comment(db_engine, EntityType.POST, post.id, alice, "fourth")
        view = post_service.get_post(db_engine, post.id)
        assert [c["text"] for c in view["comments"]] == ["first", "second", "third", "fourth"]


class TestReplies:
    def test_reply_nests_under_comment(self, db_engine, post, bob, alice):
        comment = thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "gg")
        thread_service.add_reply(db_engine, EntityType.POST, post.id, comment.id, alice, "ty")
        view = post_service.get_post(db_engine, post.id)
        assert [r["text"] for r in view["comments"][0]["replies"]] == ["ty"]

    def test_reply_to_unknown_comment(self, db_engine, post, alice):
        with pytest.raises(NotFoundError):
            thread_service.add_reply(db_engine, EntityType.POST, post.id, 12345, alice, "?")

    def test_comment_must_belong_to_entity(self, db_engine, post, alice, bob):
        other = post_service.create_post(db_engine, bob, title="Other", body="thread")
        comment = thread_service.add_comment(db_engine, EntityType.POST, other.id, alice, "x")
        with pytest.raises(NotFoundError):
            thread_service.add_reply(db_engine, EntityType.POST, post.id, comment.id, bob, "y")


class TestEdit:
    def test_author_edits_comment(self, db_engine, post, bob):
        comment = thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "tpyo")
        edited = thread_service.edit_comment(
            db_engine, EntityType.POST, post.id, comment.id, bob, "typo",
        )
        assert edited.text == "typo"
        assert edited.edited_at is not None

    def test_admin_cannot_edit_comment(self, db_engine, post, bob, admin):
        """Admins may delete, but never edit someone else's words."""
        comment = thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "mine")
        with pytest.raises(ForbiddenError):
            thread_service.edit_comment(
                db_engine, EntityType.POST, post.id, comment.id, admin, "theirs",
            )

    def test_author_edits_reply(self, db_engine, post, bob, alice):
        comment = thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "q")
        reply = thread_service.add_reply(
            db_engine, EntityType.POST, post.id, comment.id, alice, "a",
        )
        edited = thread_service.edit_reply(
            db_engine, EntityType.POST, post.id, comment.id, reply.id, alice, "answer",
        )
        assert edited.text == "answer"


class TestDelete:
    def test_post_author_cannot_delete_others_comment(self, db_engine, post, alice, bob):
        comment = thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "hello")
        with pytest.raises(ForbiddenError):
            thread_service.delete_comment(db_engine, EntityType.POST, post.id, comment.id, alice)

    def test_admin_deletes_comment_and_replies(self, db_engine, db_session, post, alice, bob, admin):
        comment = thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "hello")
        reply = thread_service.add_reply(
            db_engine, EntityType.POST, post.id, comment.id, alice, "hi",
        )
        thread_service.add_reply(db_engine, EntityType.POST, post.id, comment.id, bob, "yo")

        thread_service.delete_comment(db_engine, EntityType.POST, post.id, comment.id, admin)

        assert db_session.scalar(select(func.count()).select_from(Comment)) == 0
        assert db_session.scalar(select(func.count()).select_from(Reply)) == 0
        # The old ids no longer resolve
        with pytest.raises(NotFoundError):
            thread_service.delete_reply(
                db_engine, EntityType.POST, post.id, comment.id, reply.id, alice,
            )
        with pytest.raises(NotFoundError):
            thread_service.edit_reply(
                db_engine, EntityType.POST, post.id, comment.id, reply.id, alice, "edit",
            )
        with pytest.raises(NotFoundError):
            thread_service.add_reply(
                db_engine, EntityType.POST, post.id, comment.id, bob, "late",
            )

    def test_author_deletes_own_reply(self, db_engine, post, alice, bob):
        comment = thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "hello")
        reply = thread_service.add_reply(
            db_engine, EntityType.POST, post.id, comment.id, alice, "hi",
        )
        thread_service.delete_reply(
            db_engine, EntityType.POST, post.id, comment.id, reply.id, alice,
        )
        view = post_service.get_post(db_engine, post.id)
        assert view["comments"][0]["replies"] == []

    def test_other_user_cannot_delete_reply(self, db_engine, post, alice, bob):
        comment = thread_service.add_comment(db_engine, EntityType.POST, post.id, bob, "hello")
        reply = thread_service.add_reply(
            db_engine, EntityType.POST, post.id, comment.id, alice, "hi",
        )
        with pytest.raises(ForbiddenError):
            thread_service.delete_reply(
                db_engine, EntityType.POST, post.id, comment.id, reply.id, bob,
            )
