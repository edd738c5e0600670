"""
SQLAlchemy ORM models — the read model the SQL stores rank from.

Tables:
  users     — profile fields that drive topic interests (skills, expertise)
  follows   — social graph edges (follower → followee)
  posts     — post metadata, visibility tier, moderation status, counters
  bookmarks — user × post saves
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from feedrank.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(255))
    # list[str], e.g. ["python", "kubernetes"]
    skills: Mapped[Optional[list]] = mapped_column(JSON)
    # list[{"topic": str, "level": str}]
    expertise: Mapped[Optional[list]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class Follow(Base):
    __tablename__ = "follows"

    follower_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    followee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class Post(Base):
    __tablename__ = "posts"

    post_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    author_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    title: Mapped[Optional[str]] = mapped_column(String(300))
    excerpt: Mapped[Optional[str]] = mapped_column(Text)
    post_type: Mapped[Optional[str]] = mapped_column(String(30))
    category: Mapped[Optional[str]] = mapped_column(String(100))
    difficulty: Mapped[Optional[str]] = mapped_column(String(30))
    tags: Mapped[Optional[list]] = mapped_column(JSON)
    visibility: Mapped[Optional[str]] = mapped_column(
        String(20)
    )  # 'public' | 'private' | 'followers'
    moderation_status: Mapped[Optional[str]] = mapped_column(
        String(20)
    )  # 'approved' | 'pending' | 'rejected'
    like_count: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    comment_count: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    save_count: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    view_count: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_posts_author", "author_id"),
        # Candidate retrieval: newest-first scan filtered by tier + status
        Index("idx_posts_created", "created_at"),
        Index("idx_posts_visibility", "visibility", "moderation_status"),
    )


class Bookmark(Base):
    __tablename__ = "bookmarks"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.post_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
