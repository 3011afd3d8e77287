# app/models/schemas.py
# Pydantic 모델 정의
# - Ingredient/RecipeStep/RecipeDraft: LLM 출력 보정 후의 표준 스키마
# - *In/*Out: 프론트 요청/응답 스키마 (필드명은 프론트와 동일한 camelCase)
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# ------------------------------
# 표준 레시피 스키마
# ------------------------------

class Ingredient(BaseModel):
    name: str
    quantity: str
    unit: str

class RecipeStep(BaseModel):
    description: str
    # 굽기/끓이기 같은 대기 단계에만 존재
    timeMinutes: Optional[Union[int, float]] = None

class RecipeDraft(BaseModel):
    ingredients: List[Ingredient] = Field(min_length=1)
    steps: List[RecipeStep] = Field(min_length=1)
    difficulty: str
    estimatedTime: int
    servings: int = 4
    error: Optional[str] = None   # 폴백 레시피일 때만

    @property
    def is_fallback(self) -> bool:
        return self.error is not None

# ------------------------------
# 요청 바디
# ------------------------------

class SuggestionsIn(BaseModel):
    query: str

class GenerateIn(BaseModel):
    # 누락/공백/문자열 아님은 422가 아니라 400 (normalize_recipe_name에서 거름)
    recipeName: Any = None

class LikeIn(BaseModel):
    recipeId: Optional[str] = None

class AnalyzeVideoIn(BaseModel):
    videoId: Optional[str] = None
    title: Optional[str] = None
    channelTitle: Optional[str] = None
    description: Optional[str] = None

# ------------------------------
# 응답
# ------------------------------

class RecipeOut(BaseModel):
    # 저장 문서의 _id, normalizedName 등 내부 필드는 무시
    model_config = ConfigDict(extra="ignore")

    id: str
    displayName: str
    ingredients: List[Ingredient] = Field(default_factory=list)
    steps: List[RecipeStep] = Field(default_factory=list)
    difficulty: str = ""
    estimatedTime: int = 0
    servings: int = 4
    activeTime: int = 0
    likes: int = 0
    searchCount: int = 0
    createdAt: Optional[datetime] = None
    lastSearched: Optional[datetime] = None
    youtubeUrl: Optional[str] = None
    error: Optional[str] = None

class GeneratedRecipeOut(RecipeOut):
    cached: bool

class SuggestionsOut(BaseModel):
    suggestions: List[str] = Field(default_factory=list)
    query: str

class LikeOut(BaseModel):
    success: bool
    isLiked: bool
    likes: int
    message: str

class VideoOut(BaseModel):
    videoId: str
    title: str = "Unknown Title"
    description: str = ""
    channelTitle: str = "Unknown Channel"
    publishedAt: Optional[str] = None
    thumbnails: Optional[Dict[str, Any]] = None
    duration: str = ""
    viewCount: str = "0"
    likeCount: str = "0"

class RecipeVideosOut(BaseModel):
    success: bool = True
    recipeId: str
    recipeName: str
    regularVideos: List[VideoOut] = Field(default_factory=list)
    shorts: List[VideoOut] = Field(default_factory=list)
    totalRegularVideos: int = 0
    totalShorts: int = 0
    message: str = "Videos fetched successfully"

class AnalyzeVideoOut(BaseModel):
    success: bool = True
    recipeId: str
    videoId: str
    enhancedRecipe: Dict[str, Any]
    message: str = "Video tutorial analyzed successfully"

class HealthOut(BaseModel):
    status: str
    message: str
    timestamp: str
    db: str = "skip"
