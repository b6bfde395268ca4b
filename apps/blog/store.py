"""
Post Store

The only component that touches the blog_posts table. Each operation runs
in its own short session; callers get detached BlogPost objects back.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from apps.blog.conflicts import check_conflict
from apps.blog.exceptions import PostConflictError, PostNotFoundError, StorageFailure
from apps.blog.models import BlogPost
from apps.blog.query import NormalizedQuery, PostPage
from apps.blog.schemas import PostWrite

logger = logging.getLogger(__name__)

TIMESTAMP_RESOLUTION = timedelta(microseconds=1)
# Ids are 64-bit integer primary keys
MIN_ID, MAX_ID = -(2**63), 2**63 - 1


def utcnow() -> datetime:
    """Naive UTC timestamp, the format stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PostStore:
    """CRUD and paginated listing over blog posts."""

    def __init__(self, session_factory: sessionmaker, clock=utcnow):
        self._session_factory = session_factory
        self._clock = clock

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(f"Database error during {operation}: {type(exc).__name__}: {exc}")
            raise StorageFailure(operation) from exc
        finally:
            session.close()

    @staticmethod
    def _check_id(post_id: int) -> None:
        if not MIN_ID <= post_id <= MAX_ID:
            raise PostNotFoundError(post_id)

    @staticmethod
    def _author_filter(stmt, query: NormalizedQuery):
        if query.author:
            stmt = stmt.where(BlogPost.author.icontains(query.author, autoescape=True))
        return stmt

    def list(self, query: NormalizedQuery) -> PostPage:
        """
        One page of posts, newest first (ties broken by id, newest first).

        The total is a window count in the same statement as the page, so
        both come from one snapshot. A page past the end is empty.
        """
        stmt = select(BlogPost, func.count().over().label("total_count"))
        stmt = self._author_filter(stmt, query)
        stmt = (
            stmt.order_by(BlogPost.created_at.desc(), BlogPost.id.desc())
            .offset(query.offset)
            .limit(query.limit)
        )

        with self._session("list") as session:
            rows = session.execute(stmt).all()
            if rows:
                items = [post for post, _ in rows]
                total_count = rows[0].total_count
            else:
                items = []
                count_stmt = self._author_filter(
                    select(func.count()).select_from(BlogPost), query
                )
                total_count = session.scalar(count_stmt)

        return PostPage(
            items=items,
            total_count=total_count,
            page=query.page,
            page_size=query.page_size,
        )

    def get_by_id(self, post_id: int) -> BlogPost:
        self._check_id(post_id)
        with self._session("get") as session:
            post = session.get(BlogPost, post_id)
        if post is None:
            raise PostNotFoundError(post_id)
        return post

    def count(self) -> int:
        with self._session("count") as session:
            return session.scalar(select(func.count()).select_from(BlogPost))

    def create(self, data: PostWrite) -> BlogPost:
        """Insert a validated post. Any id in data is ignored."""
        now = self._clock()
        post = BlogPost(
            title=data.title,
            author=data.author,
            content=data.content,
            created_at=now,
            updated_at=now,
        )
        with self._session("create") as session:
            session.add(post)
            session.commit()

        logger.info(f"Created blog post {post.id}")
        return post

    def update(self, post_id: int, data: PostWrite, expected_version: Optional[int] = None) -> BlogPost:
        """
        Replace title, author and content of an existing post.

        id and created_at always come from the stored row. expected_version
        is the caller's version token; None skips the explicit check but the
        UPDATE is still guarded by the version read in this transaction.
        """
        self._check_id(post_id)
        with self._session("update") as session:
            post = session.get(BlogPost, post_id)
            if post is None:
                raise PostNotFoundError(post_id)

            check_conflict(post.version, expected_version, post_id)

            post.title = data.title
            post.author = data.author
            post.content = data.content
            post.updated_at = max(self._clock(), post.updated_at + TIMESTAMP_RESOLUTION)

            try:
                session.commit()
            except StaleDataError:
                session.rollback()
                logger.warning(f"Concurrent modification of blog post {post_id}")
                raise PostConflictError(post_id=post_id)

        logger.info(f"Updated blog post {post_id} to version {post.version}")
        return post

    def delete(self, post_id: int) -> None:
        self._check_id(post_id)
        with self._session("delete") as session:
            result = session.execute(delete(BlogPost).where(BlogPost.id == post_id))
            deleted = result.rowcount
            session.commit()

        if deleted == 0:
            raise PostNotFoundError(post_id)
        logger.info(f"Deleted blog post {post_id}")
