from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Author
from app.services import credential_service
from app.services.post_service import normalize_page

# auto_error=False: a missing or non-Bearer header must produce our own
# 401 body rather than FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_author(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Author:
    """
    Resolve the ``Authorization: Bearer <token>`` header to an Author.

    FastAPI resolves it before the body's fields are validated, so a bad
    token wins over an invalid payload with 401.  A body that is not JSON
    at all is rejected earlier, while parsing, with 400.
    """
    token = credentials.credentials if credentials else None
    return await credential_service.authenticate(db, token)


class FeedPageParams:
    """
    Query parameters for ``GET /all-posts``.

    Attributes
    ----------
    page:
        1-based page number.  Non-numeric or non-positive values fall back
        to 1 instead of failing the request.
    """

    def __init__(
        self,
        page: str | None = Query(
            None,
            description="Page number (1-based). Invalid values mean page 1.",
        ),
    ) -> None:
        self.page = normalize_page(page)
