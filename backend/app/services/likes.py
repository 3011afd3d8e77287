# app/services/likes.py
# 좋아요 토글 / 내가 좋아요한 레시피 / 인기 레시피
# 같은 사용자의 연속 클릭은 check-then-act 경쟁이 있음
# 카운트는 멤버십 문서가 실제로 생기거나 지워졌을 때만 움직인다 (음수 불가)

from __future__ import annotations
import logging
from typing import Any, Dict, List

from app.db.repository import LikeRepository, RecipeRepository
from app.services.resolver import RecipeNotFound, with_derived_fields

log = logging.getLogger(__name__)

DEFAULT_POPULAR_LIMIT = 10
MAX_POPULAR_LIMIT = 50


class LikeService:
    def __init__(self, recipes: RecipeRepository, likes: LikeRepository) -> None:
        self.recipes = recipes
        self.likes = likes

    async def toggle_like(self, user_id: str, recipe_id: str) -> Dict[str, Any]:
        if await self.recipes.get(recipe_id) is None:
            raise RecipeNotFound(recipe_id)

        if await self.likes.exists(user_id, recipe_id):
            changed = await self.likes.remove(user_id, recipe_id)
            delta, is_liked = -1, False
        else:
            changed = await self.likes.add(user_id, recipe_id)
            delta, is_liked = 1, True

        if changed:
            updated = await self.recipes.apply_like_delta(recipe_id, delta)
        else:
            # 다른 요청이 먼저 반영함
            log.info("like already applied user=%s recipe=%s liked=%s", user_id, recipe_id, is_liked)
            updated = await self.recipes.get(recipe_id)
        likes = max(int((updated or {}).get("likes") or 0), 0)
        log.info("like toggled user=%s recipe=%s liked=%s likes=%d", user_id, recipe_id, is_liked, likes)
        return {
            "success": True,
            "isLiked": is_liked,
            "likes": likes,
            "message": "Recipe liked successfully" if is_liked else "Recipe unliked successfully",
        }

    async def liked_recipes(self, user_id: str) -> List[Dict[str, Any]]:
        ids = await self.likes.recipe_ids_for_user(user_id)
        docs = await self.recipes.get_many(ids)
        return [with_derived_fields(d) for d in docs]

    async def popular_recipes(self, limit: int = DEFAULT_POPULAR_LIMIT) -> List[Dict[str, Any]]:
        limit = min(max(int(limit or DEFAULT_POPULAR_LIMIT), 1), MAX_POPULAR_LIMIT)
        docs = await self.recipes.query_popular(limit)
        return [with_derived_fields(d) for d in docs]
