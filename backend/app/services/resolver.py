# app/services/resolver.py
# 레시피 이름 → (캐시 조회 | LLM 생성) → 저장 → 응답
#
#   검증 ─┬─ 실패 → InvalidRecipeName (400, 부작용 없음)
#         └─ 조회 ─┬─ 신선한 캐시 → searchCount/lastSearched 갱신 → cached=True
#                  └─ 없음/오래됨 → 생성 → 저장 → cached=False
#
# 생성이 폴백 레시피여도 저장하고 그대로 돌려준다
# 단, 오래된 정상 레시피가 있으면 폴백으로 덮지 않고 기존 것을 제공

from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple

from app.db.repository import RecipeRepository
from app.services.llm import RecipeLLM
from app.services.utils import (
    calculate_active_cooking_time,
    generate_recipe_id,
    is_recipe_fresh,
    normalize_recipe_name,
    youtube_search_url,
)

log = logging.getLogger(__name__)


class InvalidRecipeName(ValueError):
    pass

class RecipeNotFound(Exception):
    pass


def display_name_of(doc: Dict[str, Any]) -> str:
    return doc.get("displayName") or doc.get("normalizedName") or "Unknown Recipe"

def with_derived_fields(doc: Dict[str, Any]) -> Dict[str, Any]:
    # 응답용 파생 필드: youtubeUrl(없으면 계산), activeTime
    out = dict(doc)
    out.setdefault("id", out.get("_id"))
    if not out.get("youtubeUrl"):
        out["youtubeUrl"] = youtube_search_url(display_name_of(out))
    out["activeTime"] = calculate_active_cooking_time(out.get("steps") or [])
    return out


class RecipeResolver:
    def __init__(
        self,
        recipes: RecipeRepository,
        llm: RecipeLLM,
        freshness_hours: Optional[float] = None,
    ) -> None:
        self.recipes = recipes
        self.llm = llm
        self.freshness_hours = freshness_hours

    def is_fresh(self, doc: Dict[str, Any]) -> bool:
        return is_recipe_fresh(doc.get("lastSearched"), self.freshness_hours)

    async def resolve(self, recipe_name: Any) -> Tuple[Dict[str, Any], bool]:
        """반환: (레시피 문서, cached 여부)"""
        normalized = normalize_recipe_name(recipe_name)
        if not normalized:
            raise InvalidRecipeName("Invalid recipe name provided")
        display_name = recipe_name.strip()
        recipe_id = generate_recipe_id(normalized)

        existing = await self.recipes.get(recipe_id)
        if existing is not None and self.is_fresh(existing):
            doc = await self.recipes.touch_on_hit(recipe_id) or existing
            if not doc.get("youtubeUrl"):
                # 예전 문서 보강 (한 번 계산 후 저장)
                url = youtube_search_url(display_name_of(doc))
                await self.recipes.set_youtube_url(recipe_id, url)
                doc = {**doc, "youtubeUrl": url}
            log.info("recipe cache hit id=%s name=%r count=%s", recipe_id, normalized, doc.get("searchCount"))
            return with_derived_fields(doc), True

        if existing is None:
            log.info("recipe cache miss id=%s name=%r; generating", recipe_id, normalized)
        else:
            log.info("recipe cache stale id=%s name=%r; regenerating", recipe_id, normalized)

        draft = await self.llm.generate_recipe(display_name)
        if draft.is_fallback and existing is not None and not existing.get("error"):
            # 재생성 실패: 멀쩡한 기존 레시피를 폴백으로 덮지 않고 그대로 제공
            log.warning("regeneration failed id=%s; serving stored recipe: %s", recipe_id, draft.error)
            doc = await self.recipes.touch_on_hit(recipe_id) or existing
            return with_derived_fields(doc), True
        if draft.is_fallback:
            log.warning("storing fallback recipe id=%s: %s", recipe_id, draft.error)

        doc = await self.recipes.upsert_on_generate(
            recipe_id,
            normalized,
            display_name,
            draft,
            youtube_search_url(display_name),
        )
        return with_derived_fields(doc), False

    async def get_recipe(self, recipe_id: str) -> Dict[str, Any]:
        doc = await self.recipes.get(recipe_id)
        if doc is None:
            raise RecipeNotFound(recipe_id)
        if not doc.get("youtubeUrl"):
            url = youtube_search_url(display_name_of(doc))
            await self.recipes.set_youtube_url(recipe_id, url)
            doc["youtubeUrl"] = url
        return with_derived_fields(doc)
