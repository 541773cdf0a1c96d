"""Read-side views: paginated joins with counts derived from current rows.

Nothing here is cached; every count is recomputed by the database on each
call. Views anchored on an entity (a channel, a video, a playlist) raise
``NotFound`` when the anchor is missing and return an empty page when it
simply has no children.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, and_, func, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationFailed
from app.core.ids import EntityId
from app.db.models import (
    Comment,
    Like,
    LikeTargetKind,
    Playlist,
    PlaylistVideo,
    Subscription,
    Tweet,
    User,
    Video,
    WatchHistoryEntry,
)
from app.schema.comment import CommentView
from app.schema.common import OwnerProfile, Page
from app.schema.dashboard import ChannelStats
from app.schema.playlist import PlaylistDetail, PlaylistSummary
from app.schema.tweet import TweetView
from app.schema.user import ChannelProfile, ChannelSummary
from app.schema.video import VideoDetail, VideoSummary
from app.services.pagination import PageParams, fetch_page

VIDEO_SORT_FIELDS = {
    "created_at": Video.created_at,
    "views": Video.views,
    "title": Video.title,
    "duration": Video.duration,
}


def _like_count(kind: LikeTargetKind, target_id_column: Any):
    return (
        select(func.count(Like.id))
        .where(Like.target_kind == kind.value, Like.target_id == target_id_column)
        .scalar_subquery()
    )


def _owner(user: User) -> OwnerProfile:
    return OwnerProfile.model_validate(user)


def _video_summary(video: Video, owner: User) -> VideoSummary:
    return VideoSummary(
        id=video.id,
        title=video.title,
        description=video.description,
        video_url=video.video_url,
        thumbnail_url=video.thumbnail_url,
        duration=video.duration,
        views=video.views,
        is_published=video.is_published,
        created_at=video.created_at,
        owner=_owner(owner),
    )


async def _require_user(session: AsyncSession, user_id: EntityId, message: str = "User not found") -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound(message)
    return user


def _videos_with_owner() -> Select[Any]:
    return select(Video, User).join(User, Video.owner_id == User.id)


async def _video_page(session: AsyncSession, stmt: Select[Any], params: PageParams) -> Page[VideoSummary]:
    rows, total = await fetch_page(session, stmt, params)
    return Page[VideoSummary].build([_video_summary(video, owner) for video, owner in rows], params, total)


async def channel_profile(session: AsyncSession, username: str, viewer: User | None = None) -> ChannelProfile:
    """Public channel page with subscription counts.

    ``is_subscribed`` is False when there is no viewer rather than an error.
    """

    normalized = username.strip().lower()
    if not normalized:
        raise ValidationFailed("Username is required")

    subscriber_count = (
        select(func.count(Subscription.id)).where(Subscription.channel_id == User.id).scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count(Subscription.id)).where(Subscription.subscriber_id == User.id).scalar_subquery()
    )
    columns: list[Any] = [
        User,
        subscriber_count.label("subscriber_count"),
        subscribed_to_count.label("subscribed_to_count"),
    ]
    if viewer is not None:
        is_subscribed = (
            select(Subscription.id)
            .where(Subscription.channel_id == User.id, Subscription.subscriber_id == viewer.id)
            .exists()
        )
        columns.append(is_subscribed.label("is_subscribed"))

    row = (await session.execute(select(*columns).where(User.username == normalized))).first()
    if row is None:
        raise NotFound("Channel does not exist")

    channel = row[0]
    return ChannelProfile(
        id=channel.id,
        username=channel.username,
        full_name=channel.full_name,
        email=channel.email,
        avatar_url=channel.avatar_url,
        cover_image_url=channel.cover_image_url,
        created_at=channel.created_at,
        subscriber_count=row.subscriber_count,
        subscribed_to_count=row.subscribed_to_count,
        is_subscribed=bool(row.is_subscribed) if viewer is not None else False,
    )


async def channel_stats(session: AsyncSession, channel_id: EntityId) -> ChannelStats:
    channel = await _require_user(session, channel_id, "Channel not found")

    owned_videos = select(Video.id).where(Video.owner_id == channel.id)
    stmt = select(
        select(func.count(Video.id)).where(Video.owner_id == channel.id).scalar_subquery().label("total_videos"),
        select(func.coalesce(func.sum(Video.views), 0))
        .where(Video.owner_id == channel.id)
        .scalar_subquery()
        .label("total_views"),
        select(func.count(Like.id))
        .where(Like.target_kind == LikeTargetKind.VIDEO.value, Like.target_id.in_(owned_videos))
        .scalar_subquery()
        .label("total_likes"),
        select(func.count(Subscription.id))
        .where(Subscription.channel_id == channel.id)
        .scalar_subquery()
        .label("total_subscribers"),
    )
    row = (await session.execute(stmt)).one()
    return ChannelStats(
        channel_id=channel.id,
        username=channel.username,
        full_name=channel.full_name,
        avatar_url=channel.avatar_url,
        total_videos=row.total_videos,
        total_views=int(row.total_views),
        total_likes=row.total_likes,
        total_subscribers=row.total_subscribers,
    )


async def watch_history(session: AsyncSession, user: User, params: PageParams) -> Page[VideoSummary]:
    """Videos in the user's watch history, in stored order, with owner profiles."""

    stmt = (
        _videos_with_owner()
        .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
        .where(WatchHistoryEntry.user_id == user.id)
        .order_by(WatchHistoryEntry.position.asc())
    )
    return await _video_page(session, stmt, params)


async def list_videos(
    session: AsyncSession,
    params: PageParams,
    *,
    query: str | None = None,
    owner_id: EntityId | None = None,
    sort_by: str = "created_at",
    sort_type: str = "desc",
    viewer: User | None = None,
) -> Page[VideoSummary]:
    """Search published videos; a viewer also sees their own unpublished uploads."""

    sort_column = VIDEO_SORT_FIELDS.get(sort_by)
    if sort_column is None:
        raise ValidationFailed(f"Cannot sort videos by {sort_by!r}")
    ascending = sort_type.lower() == "asc"

    visible = Video.is_published.is_(True)
    if viewer is not None:
        visible = or_(visible, Video.owner_id == viewer.id)

    stmt = _videos_with_owner().where(visible)
    if query and query.strip():
        needle = query.strip()
        stmt = stmt.where(
            or_(Video.title.icontains(needle, autoescape=True), Video.description.icontains(needle, autoescape=True))
        )
    if owner_id is not None:
        stmt = stmt.where(Video.owner_id == owner_id)

    stmt = stmt.order_by(
        sort_column.asc() if ascending else sort_column.desc(),
        Video.id.asc() if ascending else Video.id.desc(),
    )
    return await _video_page(session, stmt, params)


async def channel_videos(session: AsyncSession, user: User, params: PageParams) -> Page[VideoSummary]:
    """All of the user's own uploads, including unpublished ones."""

    stmt = (
        _videos_with_owner()
        .where(Video.owner_id == user.id)
        .order_by(Video.created_at.desc(), Video.id.desc())
    )
    return await _video_page(session, stmt, params)


async def liked_videos(session: AsyncSession, user: User, params: PageParams) -> Page[VideoSummary]:
    stmt = (
        _videos_with_owner()
        .join(
            Like,
            and_(Like.target_kind == LikeTargetKind.VIDEO.value, Like.target_id == Video.id),
        )
        .where(Like.liked_by_id == user.id)
        .order_by(Like.created_at.desc(), Like.id.desc())
    )
    return await _video_page(session, stmt, params)


async def video_detail(session: AsyncSession, video: Video, viewer: User | None = None) -> VideoDetail:
    owner = await _require_user(session, video.owner_id)
    comment_count = select(func.count(Comment.id)).where(Comment.video_id == video.id).scalar_subquery()
    columns: list[Any] = [
        _like_count(LikeTargetKind.VIDEO, video.id).label("like_count"),
        comment_count.label("comment_count"),
    ]
    if viewer is not None:
        columns.append(
            select(Like.id)
            .where(
                Like.target_kind == LikeTargetKind.VIDEO.value,
                Like.target_id == video.id,
                Like.liked_by_id == viewer.id,
            )
            .exists()
            .label("is_liked")
        )
    row = (await session.execute(select(*columns))).one()

    summary = _video_summary(video, owner)
    return VideoDetail(
        **summary.model_dump(),
        like_count=row.like_count,
        comment_count=row.comment_count,
        is_liked=bool(row.is_liked) if viewer is not None else False,
        updated_at=video.updated_at,
    )


async def video_comments(session: AsyncSession, video_id: EntityId, params: PageParams) -> Page[CommentView]:
    video = await session.get(Video, video_id)
    if video is None:
        raise NotFound("Video not found")

    stmt = (
        select(Comment, User, _like_count(LikeTargetKind.COMMENT, Comment.id).label("like_count"))
        .join(User, Comment.owner_id == User.id)
        .where(Comment.video_id == video.id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    rows, total = await fetch_page(session, stmt, params)
    items = [
        CommentView(
            id=comment.id,
            content=comment.content,
            video_id=comment.video_id,
            created_at=comment.created_at,
            owner=_owner(owner),
            like_count=likes,
        )
        for comment, owner, likes in rows
    ]
    return Page[CommentView].build(items, params, total)


async def user_tweets(session: AsyncSession, user_id: EntityId, params: PageParams) -> Page[TweetView]:
    user = await _require_user(session, user_id)

    stmt = (
        select(Tweet, _like_count(LikeTargetKind.TWEET, Tweet.id).label("like_count"))
        .where(Tweet.owner_id == user.id)
        .order_by(Tweet.created_at.desc(), Tweet.id.desc())
    )
    rows, total = await fetch_page(session, stmt, params)
    owner = _owner(user)
    items = [
        TweetView(id=tweet.id, content=tweet.content, created_at=tweet.created_at, owner=owner, like_count=likes)
        for tweet, likes in rows
    ]
    return Page[TweetView].build(items, params, total)


async def user_playlists(session: AsyncSession, user_id: EntityId, params: PageParams) -> Page[PlaylistSummary]:
    user = await _require_user(session, user_id)

    video_count = (
        select(func.count(PlaylistVideo.id)).where(PlaylistVideo.playlist_id == Playlist.id).scalar_subquery()
    )
    stmt = (
        select(Playlist, video_count.label("video_count"))
        .where(Playlist.owner_id == user.id)
        .order_by(Playlist.created_at.desc(), Playlist.id.desc())
    )
    rows, total = await fetch_page(session, stmt, params)
    owner = _owner(user)
    items = [
        PlaylistSummary(
            id=playlist.id,
            name=playlist.name,
            description=playlist.description,
            created_at=playlist.created_at,
            owner=owner,
            video_count=count,
        )
        for playlist, count in rows
    ]
    return Page[PlaylistSummary].build(items, params, total)


async def playlist_detail(
    session: AsyncSession,
    playlist_id: EntityId,
    params: PageParams,
    viewer: User | None = None,
) -> PlaylistDetail:
    """A playlist with one page of its videos in playlist order.

    Unpublished videos are listed only for the playlist owner.
    """

    playlist = await session.get(Playlist, playlist_id)
    if playlist is None:
        raise NotFound("Playlist not found")
    owner = await _require_user(session, playlist.owner_id)

    is_owner = viewer is not None and viewer.id == playlist.owner_id
    stmt = (
        _videos_with_owner()
        .join(PlaylistVideo, PlaylistVideo.video_id == Video.id)
        .where(PlaylistVideo.playlist_id == playlist.id)
        .where(true() if is_owner else Video.is_published.is_(True))
        .order_by(PlaylistVideo.position.asc())
    )
    videos = await _video_page(session, stmt, params)
    return PlaylistDetail(
        id=playlist.id,
        name=playlist.name,
        description=playlist.description,
        created_at=playlist.created_at,
        updated_at=playlist.updated_at,
        owner=_owner(owner),
        videos=videos,
    )


async def _subscription_page(
    session: AsyncSession,
    *,
    anchor_column: Any,
    anchor_id: EntityId,
    listed_column: Any,
    params: PageParams,
) -> Page[ChannelSummary]:
    stmt = (
        select(User, Subscription.created_at)
        .join(Subscription, listed_column == User.id)
        .where(anchor_column == anchor_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
    )
    rows, total = await fetch_page(session, stmt, params)
    items = [
        ChannelSummary(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            avatar_url=user.avatar_url,
            subscribed_at=subscribed_at,
        )
        for user, subscribed_at in rows
    ]
    return Page[ChannelSummary].build(items, params, total)


async def channel_subscribers(session: AsyncSession, channel_id: EntityId, params: PageParams) -> Page[ChannelSummary]:
    """Identities subscribed to ``channel_id``."""

    channel = await _require_user(session, channel_id, "Channel not found")
    return await _subscription_page(
        session,
        anchor_column=Subscription.channel_id,
        anchor_id=channel.id,
        listed_column=Subscription.subscriber_id,
        params=params,
    )


async def subscribed_channels(
    session: AsyncSession, subscriber_id: EntityId, params: PageParams
) -> Page[ChannelSummary]:
    """Channels ``subscriber_id`` is subscribed to."""

    subscriber = await _require_user(session, subscriber_id, "Subscriber not found")
    return await _subscription_page(
        session,
        anchor_column=Subscription.subscriber_id,
        anchor_id=subscriber.id,
        listed_column=Subscription.channel_id,
        params=params,
    )
