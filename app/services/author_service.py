"""
Author service: registration and login.

Emails are lowercased before every lookup and before storage, so the unique
constraint on ``authors.email`` makes addresses unique case-insensitively.
Login reports an unknown email and a wrong password with the same
``UnauthenticatedError`` so the API never reveals whether an account exists.
"""
import asyncio
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app import repository
from app.exceptions import ConflictError, UnauthenticatedError
from app.models import Author
from app.schemas import AuthorCreate, LoginRequest
from app.security import burn_password_check, hash_password, verify_password
from app.services import credential_service

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def author_to_dict(author: Author) -> dict:
    """Public author fields; the password digest is never serialised."""
    return {
        "id": str(author.id),
        "name": author.name,
        "email": author.email,
        "created_at": author.created_at.isoformat() if author.created_at else None,
        "updated_at": author.updated_at.isoformat() if author.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def register(db: AsyncSession, data: AuthorCreate) -> dict:
    """
    Create an author and return its public fields plus a fresh session token.

    Raises ``ConflictError`` when the (lowercased) email is already taken,
    whether that is seen by the pre-check or, for a concurrent registration,
    by the unique constraint.
    """
    email = data.email.lower()
    if await repository.get_author_by_email(db, email) is not None:
        raise ConflictError("Author already exist")

    # bcrypt is CPU-bound; keep it off the event loop.
    digest = await asyncio.to_thread(hash_password, data.password)
    try:
        author = await repository.add_author(
            db, name=data.name, email=email, password_digest=digest
        )
    except IntegrityError:
        raise ConflictError("Author already exist") from None

    logger.info("Registered author %s", author.id)
    return {
        **author_to_dict(author),
        "token": credential_service.issue(author.id),
        "message": "Account successfully created.",
    }


async def login(db: AsyncSession, data: LoginRequest) -> dict:
    author = await repository.get_author_by_email(db, data.email.lower())
    if author is None:
        await asyncio.to_thread(burn_password_check, data.password)
        logger.info("Login failed: unknown email")
        raise UnauthenticatedError("Unauthorized")

    if not await asyncio.to_thread(verify_password, data.password, author.password):
        logger.info("Login failed for author %s: password mismatch", author.id)
        raise UnauthenticatedError("Unauthorized")

    return {"token": credential_service.issue(author.id)}
