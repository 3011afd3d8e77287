# app/api/routes_recipes.py
# 레시피 이름 입력 → 캐시 조회/LLM 생성 → 레시피 JSON 반환
# 좋아요/인기/영상/영상 분석도 여기서 처리

from __future__ import annotations
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.deps import get_current_user_id, get_likes, get_llm, get_resolver, get_videos
from app.models.schemas import (
    AnalyzeVideoIn,
    AnalyzeVideoOut,
    GeneratedRecipeOut,
    GenerateIn,
    LikeIn,
    LikeOut,
    RecipeOut,
    RecipeVideosOut,
    SuggestionsIn,
    SuggestionsOut,
)
from app.services.likes import DEFAULT_POPULAR_LIMIT, LikeService
from app.services.llm import RecipeLLM
from app.services.resolver import InvalidRecipeName, RecipeNotFound, RecipeResolver, display_name_of
from app.services.youtube import YouTubeClient

log = logging.getLogger(__name__)

# 메인 라우터 (/recipe/...)
router = APIRouter(prefix="/recipe", tags=["recipe"])

MIN_SUGGEST_QUERY = 3

# ------------------------------
# 추천어 / 생성
# ------------------------------

@router.post("/suggestions", response_model=SuggestionsOut)
async def recipe_suggestions(body: SuggestionsIn, llm: RecipeLLM = Depends(get_llm)):
    query = body.query.strip()
    # 1~2글자는 추천하지 않음
    if len(query) < MIN_SUGGEST_QUERY:
        return SuggestionsOut(suggestions=[], query=query)
    return SuggestionsOut(suggestions=await llm.suggest_recipes(query), query=query)

@router.post("/generate", response_model=GeneratedRecipeOut, response_model_exclude_none=True)
async def generate_recipe(body: GenerateIn, resolver: RecipeResolver = Depends(get_resolver)):
    try:
        doc, cached = await resolver.resolve(body.recipeName)
    except InvalidRecipeName as e:
        raise HTTPException(status_code=400, detail=str(e))
    return GeneratedRecipeOut.model_validate({**doc, "cached": cached})

# ------------------------------
# 좋아요 (인증 필요)
# ------------------------------

@router.post("/like", response_model=LikeOut)
async def toggle_like(
    body: LikeIn,
    user_id: str = Depends(get_current_user_id),
    likes: LikeService = Depends(get_likes),
):
    if not body.recipeId:
        raise HTTPException(status_code=400, detail="Recipe ID is required")
    try:
        return await likes.toggle_like(user_id, body.recipeId)
    except RecipeNotFound:
        raise HTTPException(status_code=404, detail="Recipe not found")

# ------------------------------
# 단건 조회 / 영상
# ------------------------------

@router.get("/{recipe_id}", response_model=RecipeOut, response_model_exclude_none=True)
async def get_recipe(recipe_id: str, resolver: RecipeResolver = Depends(get_resolver)):
    try:
        return RecipeOut.model_validate(await resolver.get_recipe(recipe_id))
    except RecipeNotFound:
        raise HTTPException(status_code=404, detail="Recipe not found")

@router.get("/{recipe_id}/videos", response_model=RecipeVideosOut)
async def recipe_videos(
    recipe_id: str,
    resolver: RecipeResolver = Depends(get_resolver),
    videos: YouTubeClient = Depends(get_videos),
):
    try:
        recipe = await resolver.get_recipe(recipe_id)
    except RecipeNotFound:
        raise HTTPException(status_code=404, detail="Recipe not found")

    name = display_name_of(recipe)
    log.info("fetching videos for recipe %s (%s)", name, recipe_id)
    found = await videos.search_recipe_videos(name)
    return RecipeVideosOut(
        recipeId=recipe_id,
        recipeName=name,
        regularVideos=found["regularVideos"],
        shorts=found["shorts"],
        totalRegularVideos=len(found["regularVideos"]),
        totalShorts=len(found["shorts"]),
    )

@router.post("/{recipe_id}/analyze-video", response_model=AnalyzeVideoOut)
async def analyze_video(
    recipe_id: str,
    body: AnalyzeVideoIn,
    resolver: RecipeResolver = Depends(get_resolver),
    llm: RecipeLLM = Depends(get_llm),
    videos: YouTubeClient = Depends(get_videos),
):
    if not body.videoId:
        raise HTTPException(status_code=400, detail="Recipe ID and video ID are required")
    try:
        recipe = await resolver.get_recipe(recipe_id)
    except RecipeNotFound:
        raise HTTPException(status_code=404, detail="Recipe not found")

    # 클라이언트가 영상 정보를 안 보냈으면 YouTube에서 채움 (실패해도 진행)
    details = {}
    if not (body.title and body.channelTitle and body.description):
        details = await videos.get_video_details(body.videoId) or {}

    video = {
        "videoId": body.videoId,
        "title": body.title or details.get("title") or "Unknown Video",
        "channelTitle": body.channelTitle or details.get("channelTitle") or "Unknown Channel",
        "description": body.description or details.get("description") or "",
    }
    enhanced = await llm.analyze_video_tutorial(recipe, video)
    log.info("video analysis done recipe=%s video=%s", recipe_id, video["title"])
    return AnalyzeVideoOut(recipeId=recipe_id, videoId=body.videoId, enhancedRecipe=enhanced)

# ------------------------------
# 인기 레시피 (/recipes/...)
# ------------------------------

popular = APIRouter(prefix="/recipes", tags=["recipe"])

@popular.get("/popular", response_model=List[RecipeOut], response_model_exclude_none=True)
async def popular_recipes(
    limit: int = Query(DEFAULT_POPULAR_LIMIT, ge=1, le=50),
    likes: LikeService = Depends(get_likes),
):
    return [RecipeOut.model_validate(d) for d in await likes.popular_recipes(limit)]
