"""
SQLAlchemy-backed stores.

Candidate retrieval compiles the VisibilityFilter into the WHERE clause, so
visibility and moderation are enforced by the same query that fetches the
rows — there is no window between "fetch" and "check".

  SELECT * FROM posts
  WHERE (<audience rules>) AND (<moderation gate>)
  ORDER BY created_at DESC, post_id ASC
  LIMIT :limit
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedrank.errors import ProfileUnavailable, ViewerNotFound
from feedrank.models import Bookmark, Follow, Post, User
from feedrank.ranking.types import ContentItem, ViewerProfile, normalise_tags
from feedrank.ranking.visibility import VisibilityFilter

logger = logging.getLogger(__name__)


def post_to_item(post: Post) -> ContentItem:
    return ContentItem(
        item_id=post.post_id,
        author_id=post.author_id,
        created_at=post.created_at,
        visibility=post.visibility,
        moderation_status=post.moderation_status,
        like_count=post.like_count,
        comment_count=post.comment_count,
        save_count=post.save_count,
        view_count=post.view_count,
        tags=normalise_tags(post.tags if isinstance(post.tags, list) else ()),
        title=post.title,
        excerpt=post.excerpt,
        post_type=post.post_type,
        category=post.category,
        difficulty=post.difficulty,
    )


def _expertise_topics(expertise) -> list:
    if not isinstance(expertise, list):
        return []
    return [e.get("topic") for e in expertise if isinstance(e, dict)]


class SqlContentStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def fetch_recent_visible_approved(
        self,
        viewer: ViewerProfile,
        visibility: VisibilityFilter,
        limit: int,
    ) -> list[ContentItem]:
        stmt = (
            select(Post)
            .where(visibility.where_clause(Post, viewer))
            .order_by(Post.created_at.desc(), Post.post_id.asc())
            .limit(limit)
        )
        rows = await self.session.execute(stmt)
        return [post_to_item(p) for p in rows.scalars().all()]


class SqlProfileStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def fetch_viewer_profile(self, viewer_id: str) -> ViewerProfile:
        try:
            user = await self.session.get(User, viewer_id)
            if user is None:
                raise ViewerNotFound(viewer_id)

            following = await self.session.execute(
                select(Follow.followee_id).where(Follow.follower_id == viewer_id)
            )
            saved = await self.session.execute(
                select(Bookmark.post_id).where(Bookmark.user_id == viewer_id)
            )
        except SQLAlchemyError as exc:
            logger.error("Profile lookup failed for viewer %s: %s", viewer_id, exc)
            raise ProfileUnavailable(viewer_id, str(exc)) from exc

        return ViewerProfile.build(
            viewer_id,
            following=following.scalars().all(),
            skills=user.skills if isinstance(user.skills, list) else (),
            expertise_topics=_expertise_topics(user.expertise),
            saved=saved.scalars().all(),
        )
