"""
Credential service: issues session tokens and resolves them back to the
authenticated author.

A token is valid when its signature verifies, its ``authorId`` claim is a
well-formed id, it has not expired (only when expiry is configured) and the
author it names still exists.  Every failure is the same
``UnauthenticatedError`` so callers cannot tell the cases apart.
"""
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app import repository
from app.exceptions import UnauthenticatedError
from app.models import Author
from app.security import decode_token, issue_token

logger = logging.getLogger(__name__)

AUTHENTICATE_MESSAGE = "Please authenticate"


def issue(author_id: uuid.UUID | str) -> str:
    return issue_token(author_id)


async def authenticate(db: AsyncSession, token: str | None) -> Author:
    if not token:
        raise UnauthenticatedError(AUTHENTICATE_MESSAGE)

    claims = decode_token(token)
    if claims is None:
        logger.debug("Rejected token: bad signature, format or expiry")
        raise UnauthenticatedError(AUTHENTICATE_MESSAGE)

    try:
        author_id = uuid.UUID(str(claims["authorId"]))
    except (KeyError, ValueError):
        logger.debug("Rejected token: malformed authorId claim")
        raise UnauthenticatedError(AUTHENTICATE_MESSAGE) from None

    author = await repository.get_author(db, author_id)
    if author is None:
        logger.debug("Rejected token: author %s no longer exists", author_id)
        raise UnauthenticatedError(AUTHENTICATE_MESSAGE)
    return author
