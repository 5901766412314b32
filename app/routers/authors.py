from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.schemas import AuthorCreate, LoginRequest, RegisterResponse, TokenResponse
from app.services import author_service

router = APIRouter(tags=["authors"])

@router.post("/create-author", response_model=RegisterResponse)
async def create_author(data: AuthorCreate, db: AsyncSession = Depends(get_db)):
    return await author_service.register(db, data)

@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    return await author_service.login(db, data)
