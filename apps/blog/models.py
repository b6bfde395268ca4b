"""
Blog database models.

A single table of blog posts. Rows carry a version counter used for
optimistic concurrency control on updates.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime

from apps.shared.database import Base

TITLE_MAX_LENGTH = 200
AUTHOR_MAX_LENGTH = 100


class BlogPost(Base):
    """
    Blog post model.

    - id: assigned by the database, never reused (AUTOINCREMENT on SQLite)
    - created_at: set once on insert (naive UTC)
    - updated_at: set on insert, refreshed on every update
    - version: bumped by SQLAlchemy on every UPDATE; an UPDATE whose
      version no longer matches affects no rows and raises StaleDataError
    """
    __tablename__ = "blog_posts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    author = Column(String(AUTHOR_MAX_LENGTH), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<BlogPost id={self.id} version={self.version} title={self.title!r}>"
