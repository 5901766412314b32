"""
Comment service: append-only comments on posts and replies on comments.

Neither comments nor replies can be edited or deleted.  A reply is a row of
its own pointing at its comment, so appending one is a single INSERT and
leaves every other comment and reply untouched.  All writes mark the cached
feed pages stale; they are dropped after the commit so the next read shows
the new thread.
"""
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app import repository
from app.cache import cache
from app.exceptions import NotFoundError
from app.schemas import CommentCreate, ReplyCreate
from app.services.post_service import post_to_dict, reply_to_dict

logger = logging.getLogger(__name__)


async def add_comment(db: AsyncSession, author_id: uuid.UUID, data: CommentCreate) -> dict:
    """
    Append a comment by *author_id* to the post ``data.post_id``.

    Returns the post with its comments and their replies populated.
    Missing post or author are reported as 400, matching the rest of the
    comment creation checks.
    """
    if await repository.get_post(db, data.post_id) is None:
        raise NotFoundError("Post Not found", status_code=400)

    if await repository.get_author(db, author_id) is None:
        raise NotFoundError("Author Not found", status_code=400)

    comment = await repository.add_comment(
        db, post_id=data.post_id, author_id=author_id, content=data.content
    )
    cache.mark_feed_stale(db)
    logger.info("Author %s commented %s on post %s", author_id, comment.id, data.post_id)

    post = await repository.get_post(db, data.post_id, with_thread=True)
    return post_to_dict(post)


async def add_reply(db: AsyncSession, author_id: uuid.UUID, data: ReplyCreate) -> dict:
    """
    Append a reply by *author_id* to comment ``data.comment_id``.

    The comment is looked up as a member of post ``data.post_id``: a comment
    id that exists but belongs to another post is reported as not found.
    """
    if await repository.get_post(db, data.post_id) is None:
        raise NotFoundError("Post not found")

    comment = await repository.get_post_comment(db, data.post_id, data.comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")

    reply = await repository.add_reply(
        db, comment_id=comment.id, author_id=author_id, content=data.content
    )
    cache.mark_feed_stale(db)
    logger.info("Author %s replied %s to comment %s", author_id, reply.id, comment.id)
    return reply_to_dict(reply)
