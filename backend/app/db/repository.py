# app/db/repository.py
# recipes / recipe_likes 컬렉션 접근
# - 레시피 문서 _id = md5(normalizedName)
# - 좋아요 수는 반드시 $inc (동시 좋아요에도 유실 없음)
# - searchCount 갱신은 정확성을 요구하지 않는 통계값

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from app.db.indexes import RECIPE_LIKES, RECIPES
from app.models.schemas import RecipeDraft

def _now() -> datetime:
    return datetime.now(timezone.utc)

class RecipeRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.col = db[RECIPES]

    async def get(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        return await self.col.find_one({"_id": recipe_id})

    async def get_many(self, recipe_ids: Sequence[str]) -> List[Dict[str, Any]]:
        # 입력 id 순서 유지, 없는 레시피는 건너뜀
        if not recipe_ids:
            return []
        docs = await self.col.find({"_id": {"$in": list(recipe_ids)}}).to_list(length=len(recipe_ids))
        by_id = {d["_id"]: d for d in docs}
        return [by_id[rid] for rid in recipe_ids if rid in by_id]

    async def upsert_on_generate(
        self,
        recipe_id: str,
        normalized_name: str,
        display_name: str,
        draft: RecipeDraft,
        youtube_url: str,
    ) -> Dict[str, Any]:
        """
        생성 결과 저장. 최초 저장이면 createdAt/lastSearched=now, searchCount=1, likes=0.
        (오래된 캐시 재생성이면 내용만 교체, createdAt/likes는 유지)
        """
        now = _now()
        content = draft.model_dump(exclude={"error"}, exclude_none=True)
        update: Dict[str, Any] = {
            "$set": {
                "id": recipe_id,
                "normalizedName": normalized_name,
                "displayName": display_name,
                **content,
                "youtubeUrl": youtube_url,
                "lastSearched": now,
            },
            "$setOnInsert": {"createdAt": now, "likes": 0},
            "$inc": {"searchCount": 1},
        }
        if draft.error is not None:
            update["$set"]["error"] = draft.error
        else:
            update["$unset"] = {"error": ""}

        return await self.col.find_one_and_update(
            {"_id": recipe_id},
            update,
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    async def touch_on_hit(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        return await self.col.find_one_and_update(
            {"_id": recipe_id},
            {"$inc": {"searchCount": 1}, "$set": {"lastSearched": _now()}},
            return_document=ReturnDocument.AFTER,
        )

    async def set_youtube_url(self, recipe_id: str, url: str) -> None:
        # 예전 문서에 youtubeUrl이 없을 때만 채움
        await self.col.update_one(
            {"_id": recipe_id, "youtubeUrl": {"$exists": False}},
            {"$set": {"youtubeUrl": url}},
        )

    async def apply_like_delta(self, recipe_id: str, delta: int) -> Optional[Dict[str, Any]]:
        if delta not in (1, -1):
            raise ValueError(f"like delta must be +1 or -1, got {delta}")
        # 감소는 0 초과일 때만 (동시 취소 두 번에도 음수로 내려가지 않음)
        query: Dict[str, Any] = {"_id": recipe_id}
        if delta < 0:
            query["likes"] = {"$gt": 0}
        doc = await self.col.find_one_and_update(
            query,
            {"$inc": {"likes": delta}},
            return_document=ReturnDocument.AFTER,
        )
        return doc if doc is not None else await self.get(recipe_id)

    async def query_popular(self, limit: int) -> List[Dict[str, Any]]:
        cur = self.col.find({}).sort([("likes", DESCENDING), ("searchCount", DESCENDING)]).limit(limit)
        return await cur.to_list(length=limit)


class LikeRepository:
    # 문서 존재 여부 자체가 "좋아요" 상태 (별도 boolean 없음)
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.col = db[RECIPE_LIKES]

    async def exists(self, user_id: str, recipe_id: str) -> bool:
        doc = await self.col.find_one({"userId": user_id, "recipeId": recipe_id}, {"_id": 1})
        return doc is not None

    async def add(self, user_id: str, recipe_id: str) -> bool:
        # 새로 만들어졌을 때만 True (이미 있던 좋아요면 False)
        res = await self.col.update_one(
            {"userId": user_id, "recipeId": recipe_id},
            {"$setOnInsert": {"likedAt": _now()}},
            upsert=True,
        )
        return res.upserted_id is not None

    async def remove(self, user_id: str, recipe_id: str) -> bool:
        res = await self.col.delete_one({"userId": user_id, "recipeId": recipe_id})
        return res.deleted_count > 0

    async def recipe_ids_for_user(self, user_id: str) -> List[str]:
        # 최근에 좋아요한 순
        cur = self.col.find({"userId": user_id}, {"recipeId": 1}).sort("likedAt", DESCENDING)
        docs = await cur.to_list(length=None)
        return [d["recipeId"] for d in docs]
