# app/api/routes_users.py
# 로그인 사용자 전용 조회 (Bearer 필요)

from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends

from app.core.deps import get_current_user_id, get_likes
from app.models.schemas import RecipeOut
from app.services.likes import LikeService

router = APIRouter(prefix="/user", tags=["user"])

@router.get("/liked-recipes", response_model=List[RecipeOut], response_model_exclude_none=True)
async def liked_recipes(
    user_id: str = Depends(get_current_user_id),
    likes: LikeService = Depends(get_likes),
):
    # 최근에 좋아요한 순
    return [RecipeOut.model_validate(d) for d in await likes.liked_recipes(user_id)]
