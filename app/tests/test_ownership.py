"""Tests for ownership checks and the comment deletion policy."""

from __future__ import annotations

import uuid

import pytest

from app.core.errors import Forbidden
from app.db.models import Comment, Tweet, User, Video
from app.services.ownership import can_delete_comment, ensure_can_delete_comment, ensure_owner, is_authorized


def _user(user_id: uuid.UUID | None = None) -> User:
    return User(id=user_id or uuid.uuid4(), username="someone", email="someone@example.com", full_name="Someone")


def test_is_authorized_depends_only_on_the_referenced_id():
    owner_id = uuid.uuid4()
    owner = _user(owner_id)

    assert is_authorized(owner, owner_id)
    assert is_authorized(owner, str(owner_id).upper())
    assert is_authorized(str(owner_id), owner_id.hex)
    assert not is_authorized(_user(), owner_id)


def test_ensure_owner_names_action_and_resource():
    owner = _user()
    tweet = Tweet(id=uuid.uuid4(), owner_id=owner.id, content="hello")

    ensure_owner(owner, tweet, action="update")
    with pytest.raises(Forbidden, match="You are not authorized to delete this tweet"):
        ensure_owner(_user(), tweet, action="delete")


def test_comment_deletion_policy_allows_author_and_video_owner():
    author, creator, stranger = _user(), _user(), _user()
    video = Video(id=uuid.uuid4(), owner_id=creator.id)
    comment = Comment(id=uuid.uuid4(), owner_id=author.id, video_id=video.id, content="hi")

    assert can_delete_comment(author, comment, video)
    assert can_delete_comment(creator, comment, video)
    assert not can_delete_comment(stranger, comment, video)

    with pytest.raises(Forbidden):
        ensure_can_delete_comment(stranger, comment, video)
