"""
SQLite persistence for classified topics and their posts.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, MetaData, String, Table, create_engine, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from memetok.errors import StorageError
from memetok.models import Category, Post, Topic

logger = logging.getLogger(__name__)

metadata = MetaData()

topics_table = Table(
    "topics",
    metadata,
    Column("id", String, primary_key=True),
    Column("title", String, nullable=False),
    Column("category", String, nullable=False, index=True),
    Column("subcategory_id", String, nullable=True, index=True),
    Column("created_at", Float, nullable=False),
    Column("trending_score", Float, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
)

posts_table = Table(
    "posts",
    metadata,
    Column("id", String, primary_key=True),
    Column("source_id", String, nullable=False),
    Column("image_url", String, nullable=False),
    Column("title", String, nullable=False),
    Column("popularity", Integer, nullable=False),
    Column("upvote_ratio", Float, nullable=False),
    Column("source_url", String, nullable=False),
    Column("created_at", Float, nullable=False),
    Column("topic_id", String, ForeignKey("topics.id"), nullable=True, index=True),
    Column("source_name", String, nullable=False),
)


class Store:
    """
    Process-wide store. The engine is created once and every operation runs in
    its own short transaction.

    Failures are logged and absorbed (writes become no-ops, reads return an
    empty list) unless ``strict`` is set, in which case ``StorageError`` is
    raised.
    """

    def __init__(self, db_path: str | Path = "memes.sqlite", strict: bool = False) -> None:
        self.strict = strict
        self.db_path = str(db_path)
        self.engine = self._create_engine(self.db_path)
        metadata.create_all(self.engine)

    @staticmethod
    def _create_engine(db_path: str) -> Engine:
        if db_path == ":memory:":
            return create_engine(
                "sqlite://",
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(f"sqlite:///{db_path}", future=True)

    def save_topic(self, topic: Topic) -> None:
        try:
            with self.engine.begin() as conn:
                self._upsert_topic(conn, topic)
        except SQLAlchemyError as exc:
            self._fail(f"saving topic {topic.id}", exc)

    def save_post(self, post: Post, topic_id: Optional[str] = None) -> Optional[str]:
        try:
            with self.engine.begin() as conn:
                return self._insert_post(conn, post, topic_id)
        except SQLAlchemyError as exc:
            self._fail(f"saving post {post.id}", exc)
        return None

    def save_classified(self, topic: Topic, posts: Iterable[Post]) -> List[str]:
        """Write ``topic`` and the posts that reference it in one transaction."""
        try:
            with self.engine.begin() as conn:
                self._upsert_topic(conn, topic)
                return [self._insert_post(conn, post, topic.id) for post in posts]
        except SQLAlchemyError as exc:
            self._fail(f"saving topic {topic.id} with its posts", exc)
        return []

    def get_topics(
        self,
        category: Optional[Category] = None,
        subcategory_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[Topic]:
        stmt = select(topics_table)
        if category is not None:
            stmt = stmt.where(topics_table.c.category == Category(category).value)
        if subcategory_id is not None:
            stmt = stmt.where(topics_table.c.subcategory_id == subcategory_id)
        if is_active is not None:
            stmt = stmt.where(topics_table.c.is_active == is_active)
        stmt = stmt.order_by(topics_table.c.trending_score.desc())
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            self._fail("reading topics", exc)
            return []
        return [_row_to_topic(row) for row in rows]

    def get_posts_for_topic(self, topic_id: str) -> List[Post]:
        stmt = (
            select(posts_table)
            .where(posts_table.c.topic_id == topic_id)
            .order_by(posts_table.c.created_at.desc())
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            self._fail(f"reading posts for topic {topic_id}", exc)
            return []
        return [_row_to_post(row) for row in rows]

    def close(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _upsert_topic(conn: Connection, topic: Topic) -> None:
        values = {
            "id": topic.id,
            "title": topic.title,
            "category": topic.category.value,
            "subcategory_id": topic.subcategory_id,
            "created_at": topic.created_at.timestamp(),
            "trending_score": topic.trending_score,
            "is_active": topic.is_active,
        }
        stmt = insert(topics_table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={key: getattr(stmt.excluded, key) for key in values if key != "id"},
        )
        conn.execute(stmt)

    @staticmethod
    def _insert_post(conn: Connection, post: Post, topic_id: Optional[str]) -> str:
        post_key = str(uuid.uuid4())
        values = {
            "id": post_key,
            "source_id": post.id,
            "image_url": post.url,
            "title": post.title,
            "popularity": post.score,
            "upvote_ratio": post.upvote_ratio,
            "source_url": post.url,
            "created_at": post.created_utc,
            "topic_id": topic_id,
            "source_name": post.subreddit,
        }
        stmt = insert(posts_table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={key: getattr(stmt.excluded, key) for key in values if key != "id"},
        )
        conn.execute(stmt)
        return post_key

    def _fail(self, action: str, exc: SQLAlchemyError) -> None:
        logger.error("Storage failure while %s: %s", action, exc)
        if self.strict:
            raise StorageError(f"{action} failed: {exc}") from exc


def _row_to_topic(row) -> Topic:
    try:
        category = Category(row.category)
    except ValueError:
        logger.warning("Unknown category '%s' on topic %s; reading as Other", row.category, row.id)
        category = Category.OTHER
    return Topic(
        id=row.id,
        title=row.title,
        category=category,
        subcategory_id=row.subcategory_id,
        created_at=datetime.fromtimestamp(row.created_at, tz=timezone.utc),
        trending_score=row.trending_score,
        is_active=bool(row.is_active),
    )


def _row_to_post(row) -> Post:
    return Post(
        id=row.source_id,
        title=row.title,
        url=row.image_url,
        subreddit=row.source_name,
        score=row.popularity,
        upvote_ratio=row.upvote_ratio,
        created_utc=row.created_at,
    )
