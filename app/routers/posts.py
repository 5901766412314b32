from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import FeedPageParams, get_current_author
from app.models import Author
from app.schemas import CommentCreate, FeedResponse, PostCreate, ReplyCreate
from app.services import comment_service, post_service

router = APIRouter(tags=["posts"])

# Depends() is resolved before body field validation, so a bad token is
# rejected with 401 even when the fields are also invalid.  Malformed JSON
# fails while the body is parsed, before any dependency, with 400.

@router.post("/create-post")
async def create_post(
    data: PostCreate,
    author: Author = Depends(get_current_author),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.create_post(db, author.id, data)

@router.get("/all-posts", response_model=FeedResponse)
async def all_posts(
    params: FeedPageParams = Depends(),
    author: Author = Depends(get_current_author),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.list_feed(db, params.page)

@router.post("/add-comment", status_code=201)
async def add_comment(
    data: CommentCreate,
    author: Author = Depends(get_current_author),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await comment_service.add_comment(db, author.id, data)}

@router.post("/add-reply", status_code=201)
async def add_reply(
    data: ReplyCreate,
    author: Author = Depends(get_current_author),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await comment_service.add_reply(db, author.id, data)}
