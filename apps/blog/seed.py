"""
Sample data for development databases.
"""
import logging

from apps.blog.schemas import PostWrite
from apps.blog.store import PostStore

logger = logging.getLogger(__name__)

SAMPLE_POSTS = [
    PostWrite(
        title="Getting Started with .NET Core",
        author="John Doe",
        content="This is a sample blog post about getting started with .NET Core.",
    ),
    PostWrite(
        title="Introduction to Angular",
        author="Jane Smith",
        content="This is a sample blog post about getting started with Angular.",
    ),
]


def seed_sample_posts(store: PostStore) -> int:
    """
    Insert the sample posts into an empty store.
    Returns the number of posts created (0 if the store already had data).
    """
    if store.count() > 0:
        return 0

    for post in SAMPLE_POSTS:
        store.create(post)

    logger.info(f"Seeded {len(SAMPLE_POSTS)} sample blog posts")
    return len(SAMPLE_POSTS)
