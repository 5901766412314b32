"""
Post service: post creation and the paginated feed.

Design notes
------------
- The feed is offset-paginated (``skip = page_size * (page - 1)``) and
  ordered newest first, post id breaking timestamp ties.  It is only
  stable while nobody inserts between two page fetches.
- Every post in a feed page carries its comments, and every comment its
  replies.  Both levels are loaded with batched ``selectinload`` queries,
  so a page costs a COUNT plus three SELECTs regardless of its size.
- Feed pages go through the cache-aside pattern (Redis, then the
  database).  Any post/comment/reply write drops every cached page once
  its transaction commits.
"""
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app import repository
from app.cache import cache
from app.config import settings
from app.exceptions import NotFoundError
from app.models import Comment, Post, Reply
from app.schemas import FeedResponse, PostCreate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _iso(value) -> str | None:
    return value.isoformat() if value else None


def reply_to_dict(reply: Reply) -> dict:
    return {
        "id": str(reply.id),
        "comment": str(reply.comment_id),
        "author": str(reply.author_id),
        "content": reply.content,
        "created_at": _iso(reply.created_at),
        "updated_at": _iso(reply.updated_at),
    }


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": str(comment.id),
        "post": str(comment.post_id),
        "author": str(comment.author_id),
        "content": comment.content,
        "replies": [reply_to_dict(r) for r in comment.replies],
        "created_at": _iso(comment.created_at),
        "updated_at": _iso(comment.updated_at),
    }


def post_to_dict(post: Post) -> dict:
    """Serialise a Post with whatever comments/replies have been loaded on it."""
    return {
        "id": str(post.id),
        "author": str(post.author_id),
        "content": post.content,
        "comments": [comment_to_dict(c) for c in post.comments],
        "created_at": _iso(post.created_at),
        "updated_at": _iso(post.updated_at),
    }


def normalize_page(page) -> int:
    """Parse a raw ``page`` query value; anything unusable means page 1."""
    try:
        number = int(page)
    except (TypeError, ValueError):
        return 1
    return number if number >= 1 else 1


def _page_link(page: int, page_size: int) -> str:
    return f"?page={page}&perPage={page_size}"


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, author_id: uuid.UUID, data: PostCreate) -> dict:
    # The caller is already authenticated; the lookup guards against an
    # author removed between authentication and insert.
    if await repository.get_author(db, author_id) is None:
        raise NotFoundError("Author not found", status_code=400)

    post = await repository.add_post(db, author_id=author_id, content=data.content)
    cache.mark_feed_stale(db)
    logger.info("Author %s created post %s", author_id, post.id)

    # A new post has no comments; the noload collection serialises as [].
    return {"data": post_to_dict(post), "message": "Posted successfully"}


async def list_feed(db: AsyncSession, page: int = 1) -> FeedResponse:
    """
    Return one page of the feed, newest first.

    ``nextPage`` is set iff posts exist beyond this page; ``prevPage`` iff
    *page* is past the first.
    """
    page = normalize_page(page)
    page_size = settings.FEED_PAGE_SIZE

    cache_key = cache.feed_key(page)
    cached = await cache.get(cache_key)
    if cached:
        return FeedResponse(**cached)

    total = await repository.count_posts(db)
    posts = await repository.list_posts(db, offset=page_size * (page - 1), limit=page_size)

    response = FeedResponse(
        data=[post_to_dict(p) for p in posts],
        nextPage=_page_link(page + 1, page_size) if page * page_size < total else None,
        prevPage=_page_link(page - 1, page_size) if page > 1 else None,
    )
    await cache.set(cache_key, response.model_dump(), ttl=settings.CACHE_TTL_FEED)
    return response
