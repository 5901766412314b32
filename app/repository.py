"""
Persistence gateway: the only module that builds SQLAlchemy queries.

Functions take the request's ``AsyncSession`` as their first argument and
flush but never commit; the transaction boundary belongs to ``get_db``.
Reads return ORM instances (or None); collections are always loaded
explicitly with ``selectinload`` because every relationship is declared
``lazy="noload"``.
"""
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Author, Comment, Post, Reply


def _with_thread():
    """Loader option that populates post → comments → replies in two extra queries."""
    return selectinload(Post.comments).selectinload(Comment.replies)


# ---------------------------------------------------------------------------
# Authors
# ---------------------------------------------------------------------------

async def get_author(db: AsyncSession, author_id: uuid.UUID) -> Author | None:
    return await db.get(Author, author_id)


async def get_author_by_email(db: AsyncSession, email: str) -> Author | None:
    result = await db.execute(select(Author).where(Author.email == email))
    return result.scalar_one_or_none()


async def add_author(db: AsyncSession, name: str, email: str, password_digest: str) -> Author:
    author = Author(name=name, email=email, password=password_digest)
    db.add(author)
    await db.flush()
    return author


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------

async def get_post(db: AsyncSession, post_id: uuid.UUID, with_thread: bool = False) -> Post | None:
    q = select(Post).where(Post.id == post_id)
    if with_thread:
        # populate_existing: the post may already sit in the identity map with
        # stale (noload) collections from earlier in the same request.
        q = q.options(_with_thread()).execution_options(populate_existing=True)
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def add_post(db: AsyncSession, author_id: uuid.UUID, content: str) -> Post:
    post = Post(author_id=author_id, content=content)
    db.add(post)
    await db.flush()
    return post


async def count_posts(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(Post))).scalar_one()


async def list_posts(db: AsyncSession, offset: int, limit: int) -> list[Post]:
    """Newest-first slice of all posts with comments and replies populated."""
    q = (
        select(Post)
        .options(_with_thread())
        # id breaks created_at ties so offset pages never overlap.
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Comments / replies
# ---------------------------------------------------------------------------

async def add_comment(
    db: AsyncSession, post_id: uuid.UUID, author_id: uuid.UUID, content: str
) -> Comment:
    comment = Comment(post_id=post_id, author_id=author_id, content=content)
    db.add(comment)
    await db.flush()
    return comment


async def get_post_comment(
    db: AsyncSession, post_id: uuid.UUID, comment_id: uuid.UUID
) -> Comment | None:
    """Return *comment_id* only if it belongs to *post_id*."""
    q = select(Comment).where(Comment.id == comment_id, Comment.post_id == post_id)
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def add_reply(
    db: AsyncSession, comment_id: uuid.UUID, author_id: uuid.UUID, content: str
) -> Reply:
    # A single INSERT: concurrent replies to one comment cannot overwrite each other.
    reply = Reply(comment_id=comment_id, author_id=author_id, content=content)
    db.add(reply)
    await db.flush()
    return reply
